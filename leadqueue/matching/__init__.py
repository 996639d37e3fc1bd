"""Normalization and fuzzy matching of customer identities.

The order-to-customer matcher lives in :mod:`leadqueue.matching.matcher`.
"""

from .normalize import DEFAULT_COUNTRY_CODE, normalize_name, normalize_phone
from .scoring import (
    Confidence,
    MatchResult,
    edit_distance,
    fuzzy_name_match,
    match_confidence,
    phones_match,
    similarity,
)

__all__ = [
    "Confidence",
    "DEFAULT_COUNTRY_CODE",
    "MatchResult",
    "edit_distance",
    "fuzzy_name_match",
    "match_confidence",
    "normalize_name",
    "normalize_phone",
    "phones_match",
    "similarity",
]
