"""Fuzzy alias suggestions for unresolved unit tokens."""

from __future__ import annotations

from typing import List

from .errors import UNKNOWN_UNIT_GUIDANCE, ErrorDetails, ErrorKind
from .models import Registry
from .normalize import normalize_unit_text

DEFAULT_MAX_SUGGESTIONS = 5
DEFAULT_MIN_SIMILARITY = 0.3


def levenshtein_distance(a: str, b: str) -> int:
    """Edit distance between ``a`` and ``b`` (Wagner-Fischer, two rows)."""

    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    len_a, len_b = len(a), len(b)
    prev_row: List[int] = list(range(len_b + 1))
    curr_row: List[int] = [0] * (len_b + 1)

    for i in range(1, len_a + 1):
        curr_row[0] = i
        for j in range(1, len_b + 1):
            cost = 0 if a[i - 1] == b[j - 1] else 1
            curr_row[j] = min(
                prev_row[j] + 1,
                curr_row[j - 1] + 1,
                prev_row[j - 1] + cost,
            )
        prev_row, curr_row = curr_row, prev_row

    return prev_row[len_b]


def similarity(a: str, b: str) -> float:
    """Normalised similarity ``1 - distance / max(len(a), len(b))``."""

    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return 1.0 - (levenshtein_distance(a, b) / max_len)


def find_similar_units(
    query: str,
    registry: Registry | None,
    *,
    max_suggestions: int = DEFAULT_MAX_SUGGESTIONS,
    min_similarity: float = DEFAULT_MIN_SIMILARITY,
) -> list[str]:
    """Return aliases similar to ``query``, best match first."""

    if registry is None or not isinstance(query, str):
        return []
    normalized = normalize_unit_text(query)
    if not normalized:
        return []
    scored = []
    for alias in registry.aliases:
        score = similarity(normalized, alias)
        if score > min_similarity:
            scored.append((score, alias))
    scored.sort(key=lambda item: (-item[0], item[1]))
    return [alias for _, alias in scored[: max(max_suggestions, 0)]]


def enhance_with_suggestions(
    details: ErrorDetails,
    query: str,
    registry: Registry | None,
    *,
    max_suggestions: int = 3,
    min_similarity: float = DEFAULT_MIN_SIMILARITY,
) -> ErrorDetails:
    """Attach alias suggestions (or generic guidance) to UNKNOWN_UNIT errors."""

    if details.kind is not ErrorKind.UNKNOWN_UNIT:
        return details
    matches = find_similar_units(
        query, registry, max_suggestions=max_suggestions, min_similarity=min_similarity
    )
    if matches:
        return details.with_suggestions(matches)
    return details.with_suggestions(UNKNOWN_UNIT_GUIDANCE)


def available_units(registry: Registry | None) -> dict[str, list[str]]:
    """Aliases grouped by category, for help output."""

    if registry is None:
        return {}
    return registry.aliases_by_category()


__all__ = [
    "DEFAULT_MAX_SUGGESTIONS",
    "DEFAULT_MIN_SIMILARITY",
    "available_units",
    "enhance_with_suggestions",
    "find_similar_units",
    "levenshtein_distance",
    "similarity",
]
