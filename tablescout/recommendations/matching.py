"""
Resolve a free-text restaurant name to one of a set of known places.

Matchers share one small interface so the resolver does not care which
policy is in use. ``ScoredNameMatcher`` is the default; ``ContainmentMatcher``
keeps the loose substring rule for callers that want it.
"""
from __future__ import annotations

import re
import unicodedata
from typing import Protocol

from fuzzywuzzy import fuzz

from ..places.models import PlaceDetails

_PUNCT_RE = re.compile(r"[^\w\s]")
_SPACE_RE = re.compile(r"\s+")
_STOPWORDS = frozenset({"the", "restaurant", "and", "of"})


class NameMatcher(Protocol):
    def match(self, name: str, candidates: list[PlaceDetails]) -> PlaceDetails | None:
        ...


def normalize_name(name: str) -> str:
    text = unicodedata.normalize("NFKD", name)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = text.lower().replace("&", " and ").replace("'", "").replace("’", "")
    text = _PUNCT_RE.sub(" ", text)
    return _SPACE_RE.sub(" ", text).strip()


def _tokens(normalized: str) -> set[str]:
    return {t for t in normalized.split() if t not in _STOPWORDS}


class ContainmentMatcher:
    """First candidate whose name contains, or is contained in, the query (case-insensitive)."""

    def match(self, name: str, candidates: list[PlaceDetails]) -> PlaceDetails | None:
        needle = name.lower()
        for candidate in candidates:
            cached = candidate.name.lower()
            if needle in cached or cached in needle:
                return candidate
        return None


class ScoredNameMatcher:
    """
    Tiered matcher: exact, normalized-exact, token overlap, then edit distance.

    A tier is only consulted when every earlier tier found nothing. Within the
    overlap and edit-distance tiers the highest scorer above its threshold
    wins; ties keep candidate order.
    """

    def __init__(self, min_token_overlap: float = 0.75, min_ratio: int = 90) -> None:
        self.min_token_overlap = min_token_overlap
        self.min_ratio = min_ratio

    def match(self, name: str, candidates: list[PlaceDetails]) -> PlaceDetails | None:
        if not name.strip() or not candidates:
            return None

        for candidate in candidates:
            if candidate.name == name:
                return candidate

        wanted = normalize_name(name)
        normalized = [(c, normalize_name(c.name)) for c in candidates]
        for candidate, cand_name in normalized:
            if cand_name == wanted:
                return candidate

        best = self._best_by_overlap(wanted, normalized)
        if best is not None:
            return best
        return self._best_by_ratio(wanted, normalized)

    def _best_by_overlap(
        self, wanted: str, normalized: list[tuple[PlaceDetails, str]]
    ) -> PlaceDetails | None:
        wanted_tokens = _tokens(wanted)
        if not wanted_tokens:
            return None
        best, best_score = None, 0.0
        for candidate, cand_name in normalized:
            cand_tokens = _tokens(cand_name)
            if not cand_tokens:
                continue
            score = len(wanted_tokens & cand_tokens) / max(len(wanted_tokens), len(cand_tokens))
            if score >= self.min_token_overlap and score > best_score:
                best, best_score = candidate, score
        return best

    def _best_by_ratio(
        self, wanted: str, normalized: list[tuple[PlaceDetails, str]]
    ) -> PlaceDetails | None:
        best, best_score = None, 0
        for candidate, cand_name in normalized:
            score = fuzz.ratio(wanted, cand_name)
            if score >= self.min_ratio and score > best_score:
                best, best_score = candidate, score
        return best


DEFAULT_MATCHER: NameMatcher = ScoredNameMatcher()
