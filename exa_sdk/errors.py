"""Turn any failure into a user-facing MCP error response."""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Literal, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field

from exa_sdk.exceptions import ExaStatusError

logger = logging.getLogger(__name__)

HelpTextGenerator = Callable[[int], str]


class ErrorLogger(Protocol):
    """Anything with ``log(message)`` and ``error(value)``."""

    def log(self, message: str) -> Any: ...

    def error(self, value: Any) -> Any: ...


class StdlibErrorLogger:
    """Adapts a :class:`logging.Logger` to the :class:`ErrorLogger` shape."""

    def __init__(self, target: Optional[logging.Logger] = None) -> None:
        self.target = target or logging.getLogger("exa_sdk")

    def log(self, message: str) -> None:
        self.target.info(message)

    def error(self, value: Any) -> None:
        if isinstance(value, BaseException):
            self.target.error("%s: %s", type(value).__name__, value, exc_info=value)
        else:
            self.target.error("%s", value)


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class McpErrorResponse(BaseModel):
    """Error result handed back to an MCP tool caller. ``isError`` is always true."""

    model_config = ConfigDict(populate_by_name=True)

    content: List[TextContent]
    is_error: Literal[True] = Field(default=True, alias="isError")

    @property
    def text(self) -> str:
        return self.content[0].text

    @classmethod
    def from_text(cls, text: str) -> "McpErrorResponse":
        return cls(content=[TextContent(text=text)])


def _status_of(error: Any) -> Union[int, str, None]:
    status = getattr(error, "status_code", None) or getattr(error, "status", None)
    if status:
        return status
    response = getattr(error, "response", None)
    if response is not None:
        return getattr(response, "status_code", None) or "unknown"
    return None


def _payload_field(error: Any, name: str) -> Optional[str]:
    payload = getattr(error, "payload", None)
    if isinstance(payload, dict):
        return payload.get(name)
    return getattr(payload, name, None)


def _is_http_failure(error: Any) -> bool:
    if isinstance(error, ExaStatusError):
        return True
    return getattr(error, "response", None) is not None or bool(
        getattr(error, "status_code", None) or getattr(error, "status", None)
    )


def _help_text(generator: Optional[HelpTextGenerator], status: Union[int, str]) -> str:
    if generator is None or not isinstance(status, int) or isinstance(status, bool):
        return ""
    try:
        help_text = generator(status)
    except Exception:
        logger.exception("Help text generator failed for status %s", status)
        return ""
    if not isinstance(help_text, str):
        logger.warning("Help text generator returned %r for status %s, ignoring", help_text, status)
        return ""
    return help_text


def handle_api_error(
    error: Any,
    error_logger: ErrorLogger,
    context_message: str,
    help_text_generator: Optional[HelpTextGenerator] = None,
) -> McpErrorResponse:
    """Log ``error`` and render it as an :class:`McpErrorResponse`.

    HTTP-layer failures (anything carrying a status code or a response) render
    as ``Error {context} ({status}): {message}``, followed by a ``Details:``
    line when the API sent details and by whatever ``help_text_generator``
    returns for the status. Everything else renders as
    ``Error {context}: {message}``. Never raises.
    """
    error_logger.error(error)

    if _is_http_failure(error):
        status = _status_of(error) or "unknown"
        message = _payload_field(error, "message") or str(error) or "Unknown error"
        details = _payload_field(error, "details") or ""

        error_logger.log(f"API error ({status}): {message}")

        text = f"Error {context_message} ({status}): {message}"
        if details:
            text += f"\nDetails: {details}"
        text += _help_text(help_text_generator, status)
        return McpErrorResponse.from_text(text)

    return McpErrorResponse.from_text(f"Error {context_message}: {error}")
