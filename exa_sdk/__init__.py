"""Exa SDK — Python client for the Exa search API."""

from exa_sdk.client import ExaClient
from exa_sdk.async_client import AsyncExaClient
from exa_sdk.config import ExaConfig
from exa_sdk.errors import ErrorLogger, McpErrorResponse, StdlibErrorLogger, handle_api_error
from exa_sdk.exceptions import (
    ErrorPayload,
    ExaAPIError,
    ExaConfigurationError,
    ExaError,
    ExaStatusError,
    ExaTimeoutError,
)
from exa_sdk.help_text import default_help_text

__all__ = [
    "ExaClient",
    "AsyncExaClient",
    "ExaConfig",
    "ErrorLogger",
    "McpErrorResponse",
    "StdlibErrorLogger",
    "handle_api_error",
    "default_help_text",
    "ErrorPayload",
    "ExaError",
    "ExaConfigurationError",
    "ExaStatusError",
    "ExaAPIError",
    "ExaTimeoutError",
]

__version__ = "0.1.0"
