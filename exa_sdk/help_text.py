"""Stock help text for common Exa API failures."""

from __future__ import annotations


def default_help_text(status_code: int) -> str:
    if status_code in (401, 403):
        return "\nCheck that EXA_API_KEY is set to a valid Exa API key."
    if status_code == 408:
        return "\nThe request timed out. Try again, or narrow the request."
    if status_code == 429:
        return "\nRate limit exceeded. Wait a moment before retrying."
    if status_code >= 500:
        return "\nThe Exa API is currently unavailable. Try again later."
    return ""
