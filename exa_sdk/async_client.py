"""Asynchronous Exa client (uses httpx.AsyncClient)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

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


class AsyncExaClient:
    """Async Python client for the Exa API.

    Usage::

        async with AsyncExaClient(api_key="...") as client:
            results = await client.post("/search", {"query": "latest python release"})
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._headers = _build_headers(api_key)
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_env(cls, config: Optional[ExaConfig] = None, **kwargs: Any) -> "AsyncExaClient":
        """Build a client from ``EXA_*`` environment variables."""
        config = config or ExaConfig.from_env()
        logger.debug("Creating async Exa client with %s", config.redacted())
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

    async def __aenter__(self) -> "AsyncExaClient":
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        The whole call, including reading the body, runs inside a single
        ``asyncio.timeout`` scope that is released however the call ends.
        """
        kwargs: Dict[str, Any] = {"headers": _merge_headers(self._headers, headers)}
        query = _build_query(params)
        if query:
            kwargs["params"] = query
        if body is not None:
            kwargs["json"] = body

        logger.debug("%s %s", method, path)
        try:
            async with asyncio.timeout(self._timeout):
                resp = await self._client.request(method, path, **kwargs)
        except (TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("%s %s timed out after %ss", method, path, self._timeout)
            raise ExaTimeoutError() from exc

        return _handle_response(method, path, resp)

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    async def get(
        self,
        path: str,
        params: Optional[Mapping[str, Any]] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Any:
        return await self.request("GET", path, params=params, headers=headers)

    async def post(self, path: str, body: Any = None, headers: Optional[Mapping[str, str]] = None) -> Any:
        return await self.request("POST", path, body=body, headers=headers)

    async def put(self, path: str, body: Any = None, headers: Optional[Mapping[str, str]] = None) -> Any:
        return await self.request("PUT", path, body=body, headers=headers)

    async def patch(self, path: str, body: Any = None, headers: Optional[Mapping[str, str]] = None) -> Any:
        return await self.request("PATCH", path, body=body, headers=headers)

    async def delete(self, path: str, headers: Optional[Mapping[str, str]] = None) -> Any:
        return await self.request("DELETE", path, headers=headers)
