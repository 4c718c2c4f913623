"""Shared constants and helpers used by both sync and async clients."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from exa_sdk.exceptions import ErrorPayload, ExaAPIError, ExaConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.exa.ai"
DEFAULT_TIMEOUT = 30.0

MISSING_API_KEY_MESSAGE = "EXA_API_KEY is required. Please provide it in the configuration."


def _build_headers(api_key: Optional[str]) -> Dict[str, str]:
    if not api_key:
        raise ExaConfigurationError(MISSING_API_KEY_MESSAGE)
    return {
        "accept": "application/json",
        "content-type": "application/json",
        "x-api-key": api_key,
    }


def _merge_headers(defaults: Mapping[str, str], overrides: Optional[Mapping[str, str]]) -> Dict[str, str]:
    merged = dict(defaults)
    if overrides:
        merged.update(overrides)
    return merged


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(item) for item in value)
    return str(value)


def _build_query(params: Optional[Mapping[str, Any]]) -> Dict[str, str]:
    """Drop ``None`` entries and stringify the rest.

    ``0``, ``""`` and ``False`` are real values and are kept.
    """
    if not params:
        return {}
    return {key: _stringify(value) for key, value in params.items() if value is not None}


def _extract_error(response: httpx.Response) -> ErrorPayload:
    """Pull ``message``/``details`` from an error body, falling back to the reason phrase."""
    try:
        body = response.json()
    except ValueError:
        return ErrorPayload(
            message=response.reason_phrase or f"HTTP error! status: {response.status_code}",
        )
    if isinstance(body, dict):
        return ErrorPayload(message=body.get("message"), details=body.get("details"))
    return ErrorPayload()


def _handle_response(method: str, path: str, response: httpx.Response) -> Any:
    if not response.is_success:
        payload = _extract_error(response)
        logger.warning(
            "%s %s failed with status %s: %s",
            method,
            path,
            response.status_code,
            payload.message,
        )
        raise ExaAPIError(response.status_code, response=response, payload=payload)

    if response.status_code == 204:
        return None
    return response.json()
