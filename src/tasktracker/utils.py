from __future__ import annotations

from typing import Optional


# PUBLIC_INTERFACE
def normalize_email(value: Optional[str]) -> str:
    """
    Normalize an email for storage and comparison.

    Args:
        value: Raw email as received from a client. None is treated as "".

    Returns:
        The email stripped of surrounding whitespace and lowercased.
    """
    return normalize_text(value).lower()


# PUBLIC_INTERFACE
def normalize_text(value: Optional[str]) -> str:
    """Strip surrounding whitespace from free-form text (passwords, titles)."""
    if value is None:
        return ""
    return value.strip()
