"""
Keyword matching for search boxes.
"""

from __future__ import annotations

from rapidfuzz import fuzz

DEFAULT_THRESHOLD = 70


def _normalize(text: str | None) -> str:
    return (text or "").strip().lower()


def score(keyword: str | None, text: str | None) -> int:
    """Similarity in [0, 100]. An exact substring scores 100."""
    needle = _normalize(keyword)
    haystack = _normalize(text)
    if not needle or not haystack:
        return 0
    if needle in haystack:
        return 100
    return round(fuzz.partial_ratio(needle, haystack))


def match(keyword: str | None, text: str | None, threshold: int = DEFAULT_THRESHOLD) -> bool:
    return score(keyword, text) >= threshold


def match_any(keyword: str | None, *texts: str | None, threshold: int = DEFAULT_THRESHOLD) -> bool:
    return any(match(keyword, text, threshold) for text in texts)


__all__ = ("DEFAULT_THRESHOLD", "score", "match", "match_any")
