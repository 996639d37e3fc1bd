"""Edit-distance similarity and match confidence between customer records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .normalize import normalize_name, normalize_phone

if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..zoko.models import RemoteCustomer

HIGH_NAME_SCORE = 70
MEDIUM_NAME_SCORE = 50


class Confidence(str, Enum):
    """How likely two records describe the same person."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


@dataclass
class MatchResult:
    """Outcome of comparing a CRM identity with a commerce identity.

    ``customer`` is only populated by the order matcher, which knows which
    remote customer the comparison was made against.
    """

    phone_match: bool
    name_score: int
    confidence: Confidence
    customer: RemoteCustomer | None = None

    def as_dict(self) -> dict[str, object]:
        return {
            "phoneMatch": self.phone_match,
            "nameScore": self.name_score,
            "confidence": self.confidence.value,
        }


def edit_distance(a: str, b: str) -> int:
    """Levenshtein distance with unit insertion, deletion and substitution."""

    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1])
            else:
                current.append(1 + min(previous[j], current[j - 1], previous[j - 1]))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> int:
    """Return a 0-100 similarity score derived from :func:`edit_distance`."""

    if a == b:
        return 100
    if not a or not b:
        return 0
    longest = max(len(a), len(b))
    return round((1 - edit_distance(a, b) / longest) * 100)


def fuzzy_name_match(
    candidate: str | None, first_name: str | None, last_name: str | None
) -> int:
    """Best similarity of ``candidate`` against a first/last name pair.

    Tries "first last", "last first" and the first name alone, since CRM
    display names are often reversed or only carry a first name.
    """

    normalized = normalize_name(candidate)
    parts = [normalize_name(part) for part in (first_name, last_name) if part]
    parts = [part for part in parts if part]
    full = " ".join(parts)
    if not normalized or not full:
        return 0

    scores = [
        similarity(normalized, full),
        similarity(normalized, " ".join(reversed(parts))),
    ]
    first_only = normalize_name(first_name)
    if first_only:
        scores.append(similarity(normalized, first_only))
    return max(scores)


def phones_match(a: str | None, b: str | None) -> bool:
    """Equal normalized phones, or one a suffix of the other."""

    left = normalize_phone(a)
    right = normalize_phone(b)
    if not left or not right:
        return False
    return left == right or left.endswith(right) or right.endswith(left)


def match_confidence(
    phone_a: str | None,
    name_a: str | None,
    phone_b: str | None,
    first_b: str | None,
    last_b: str | None,
) -> MatchResult:
    """Classify how well identity A matches identity B.

    A phone match is required for any confidence above ``none``; the name
    score only grades a phone match.
    """

    phone_match = phones_match(phone_a, phone_b)
    name_score = fuzzy_name_match(name_a, first_b, last_b)

    if phone_match and name_score >= HIGH_NAME_SCORE:
        confidence = Confidence.HIGH
    elif phone_match and name_score >= MEDIUM_NAME_SCORE:
        confidence = Confidence.MEDIUM
    elif phone_match:
        confidence = Confidence.LOW
    else:
        confidence = Confidence.NONE
    return MatchResult(phone_match=phone_match, name_score=name_score, confidence=confidence)


__all__ = [
    "Confidence",
    "MatchResult",
    "edit_distance",
    "fuzzy_name_match",
    "match_confidence",
    "phones_match",
    "similarity",
]
