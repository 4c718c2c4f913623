"""Client configuration loaded from explicit values, the environment, or a ``.env`` file."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from exa_sdk._base import DEFAULT_BASE_URL, DEFAULT_TIMEOUT


def _redact(value: str) -> str:
    if len(value) < 8:
        return "***"
    return f"{value[:4]}***{value[-2:]}"


@dataclass(frozen=True)
class ExaConfig:
    """Settings for an Exa client.

    Environment variables:

    * ``EXA_API_KEY`` -- API key sent as ``x-api-key``.
    * ``EXA_BASE_URL`` -- API root, defaults to ``https://api.exa.ai``.
    * ``EXA_TIMEOUT_SECONDS`` -- per-request timeout, defaults to 30.
    """

    api_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "ExaConfig":
        load_dotenv(dotenv_path=dotenv_path)
        timeout = os.environ.get("EXA_TIMEOUT_SECONDS")
        return cls(
            api_key=os.environ.get("EXA_API_KEY"),
            base_url=os.environ.get("EXA_BASE_URL") or DEFAULT_BASE_URL,
            timeout=float(timeout) if timeout else DEFAULT_TIMEOUT,
        )

    def redacted(self) -> Dict[str, Any]:
        """Config as a dict safe to log."""
        return {
            "api_key": _redact(self.api_key) if self.api_key else None,
            "base_url": self.base_url,
            "timeout": self.timeout,
        }
