"""Synchronous Exa client (uses httpx)."""

from __future__ import annotations

import logging
import socket
import threading
from typing import Any, Dict, List, Mapping, Optional

import httpx

from exa_sdk._base import (
    DEFAULT_BASE_URL,
    DEFAULT_TIMEOUT,
    _build_headers,
    _build_query,
    _handle_response,
    _merge_headers,
)
from exa_sdk.config import ExaConfig
from exa_sdk.exceptions import ExaTimeoutError

logger = logging.getLogger(__name__)

_SOCKET_EVENTS = ("connection.connect_tcp.complete", "connection.start_tls.complete")


class _RequestDeadline:
    """Wall-clock limit for a single sync request.

    httpx timeouts apply per connect/read/write, so a server that keeps
    trickling bytes is never cut off by them. This timer collects the sockets
    the request opens (through the httpcore ``trace`` extension) and shuts
    them down when it fires, which unblocks any pending read.
    """

    def __init__(self, seconds: float) -> None:
        self.expired = False
        self._settled = False
        self._sockets: List[socket.socket] = []
        self._lock = threading.Lock()
        self._timer = threading.Timer(seconds, self._expire)
        self._timer.daemon = True

    def __enter__(self) -> "_RequestDeadline":
        self._timer.start()
        return self

    def __exit__(self, *exc: Any) -> None:
        self._timer.cancel()
        with self._lock:
            self._settled = True

    def trace(self, event_name: str, info: Dict[str, Any]) -> None:
        if event_name not in _SOCKET_EVENTS:
            return
        stream = info.get("return_value")
        sock = stream.get_extra_info("socket") if stream is not None else None
        if sock is None:
            return
        with self._lock:
            self._sockets.append(sock)
            expired = self.expired
        if expired:
            self._shutdown(sock)

    def _expire(self) -> None:
        with self._lock:
            if self._settled:
                return
            self.expired = True
            sockets = list(self._sockets)
        for sock in sockets:
            self._shutdown(sock)

    @staticmethod
    def _shutdown(sock: socket.socket) -> None:
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError as exc:
            # Socket already closed or detached by a TLS upgrade.
            logger.debug("Socket shutdown skipped: %s", exc)


class ExaClient:
    """Synchronous Python client for the Exa API.

    Usage::

        with ExaClient(api_key="...") as client:
            results = client.post("/search", {"query": "latest python release"})
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._headers = _build_headers(api_key)
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            # One connection per call, so every call's socket is seen by its deadline.
            limits=httpx.Limits(max_keepalive_connections=0),
        )

    @classmethod
    def from_env(cls, config: Optional[ExaConfig] = None, **kwargs: Any) -> "ExaClient":
        """Build a client from ``EXA_*`` environment variables."""
        config = config or ExaConfig.from_env()
        logger.debug("Creating Exa client with %s", config.redacted())
        return cls(config.api_key, base_url=config.base_url, timeout=config.timeout, **kwargs)

    @property
    def headers(self) -> Dict[str, str]:
        return dict(self._headers)

    @property
    def timeout(self) -> float:
        return self._timeout

    # ------------------------------------------------------------------
    # Context manager
    # ------------------------------------------------------------------

    def __enter__(self) -> "ExaClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Raises :class:`ExaAPIError` for non-2xx responses and
        :class:`ExaTimeoutError` when the call does not settle within the
        client timeout. Other transport errors are re-raised as-is.
        """
        kwargs: Dict[str, Any] = {"headers": _merge_headers(self._headers, headers)}
        query = _build_query(params)
        if query:
            kwargs["params"] = query
        if body is not None:
            kwargs["json"] = body

        logger.debug("%s %s", method, path)
        deadline = _RequestDeadline(self._timeout)
        kwargs["extensions"] = {"trace": deadline.trace}
        try:
            with deadline:
                resp = self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            if not (deadline.expired or isinstance(exc, httpx.TimeoutException)):
                raise
            logger.warning("%s %s timed out after %ss", method, path, self._timeout)
            raise ExaTimeoutError() from exc

        if deadline.expired:
            logger.warning("%s %s timed out after %ss", method, path, self._timeout)
            raise ExaTimeoutError()

        return _handle_response(method, path, resp)

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    def get(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return self.request("GET", path, params=params, headers=headers)

    def post(self, path: str, body: Any = None, headers: Optional[Mapping[str, str]] = None) -> Any:
        return self.request("POST", path, body=body, headers=headers)

    def put(self, path: str, body: Any = None, headers: Optional[Mapping[str, str]] = None) -> Any:
        return self.request("PUT", path, body=body, headers=headers)

    def patch(self, path: str, body: Any = None, headers: Optional[Mapping[str, str]] = None) -> Any:
        return self.request("PATCH", path, body=body, headers=headers)

    def delete(self, path: str, headers: Optional[Mapping[str, str]] = None) -> Any:
        return self.request("DELETE", path, headers=headers)
