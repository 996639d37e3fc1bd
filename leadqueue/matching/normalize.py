"""Canonical forms for phone numbers and person names."""

from __future__ import annotations

import re

# Business is UAE based; customer phones arrive with and without +971.
DEFAULT_COUNTRY_CODE = "971"

_NON_DIGIT = re.compile(r"\D")
_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_phone(raw: str | None, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """Reduce ``raw`` to bare digits without leading zeros or country code.

    ``"+971 50 123 4567"``, ``"00971501234567"`` and ``"0501234567"`` all
    become ``"501234567"``. Zeros and the country code are stripped until
    neither prefix remains, which keeps the function idempotent.
    """

    if not raw:
        return ""
    digits = _NON_DIGIT.sub("", str(raw))
    while True:
        stripped = digits.lstrip("0")
        if country_code and stripped.startswith(country_code):
            stripped = stripped[len(country_code):]
        if stripped == digits:
            return digits
        digits = stripped


def normalize_name(raw: str | None) -> str:
    """Lowercase, drop punctuation and collapse whitespace."""

    if not raw:
        return ""
    name = _PUNCTUATION.sub("", str(raw).lower())
    return _WHITESPACE.sub(" ", name).strip()


__all__ = ["DEFAULT_COUNTRY_CODE", "normalize_name", "normalize_phone"]
