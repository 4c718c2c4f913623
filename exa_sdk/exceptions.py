"""SDK exception hierarchy.

Failures are discriminated by class rather than by which attributes happen
to be set:

* :class:`ExaAPIError` -- the API answered with a non-2xx status.
* :class:`ExaTimeoutError` -- no answer arrived before the client timeout.
* anything else (``httpx.ConnectError``, ``json.JSONDecodeError`` ...) is a
  generic failure and is never wrapped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

TIMEOUT_STATUS = 408
TIMEOUT_MESSAGE = "Request timeout"


@dataclass(frozen=True)
class ErrorPayload:
    """Structured error body returned by the API (``{message, details}``)."""

    message: Optional[str] = None
    details: Optional[str] = None


class ExaError(Exception):
    """Base exception for all SDK errors."""


class ExaConfigurationError(ExaError, ValueError):
    """Raised when the client is built without the settings it needs."""


class ExaStatusError(ExaError):
    """A failure that carries an HTTP status code."""

    def __init__(
        self,
        message: str,
        status_code: int,
        response: Optional[httpx.Response] = None,
        payload: Optional[ErrorPayload] = None,
    ):
        self.status_code = status_code
        self.response = response
        self.payload = payload or ErrorPayload()
        super().__init__(message)

    @property
    def message(self) -> str:
        return self.args[0] if self.args else ""


class ExaAPIError(ExaStatusError):
    """Raised when the API returns a non-2xx response."""

    def __init__(
        self,
        status_code: int,
        response: Optional[httpx.Response] = None,
        payload: Optional[ErrorPayload] = None,
    ):
        super().__init__(
            f"HTTP error! status: {status_code}",
            status_code,
            response=response,
            payload=payload,
        )


class ExaTimeoutError(ExaStatusError):
    """Raised when a request does not settle within the client timeout.

    Reuses status 408, so it is told apart from a server-sent 408 only by
    its class and by the ``"Request timeout"`` message.
    """

    def __init__(self) -> None:
        super().__init__(TIMEOUT_MESSAGE, TIMEOUT_STATUS)
