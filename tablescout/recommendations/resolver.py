from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import DEFAULT_SETTINGS
from ..places.cache import recent_cached_places, upsert_place
from ..places.google_client import search_restaurants
from ..places.models import PlaceDetails, PlaceSearchParams
from .matching import DEFAULT_MATCHER, NameMatcher
from .models import ResolvedRecommendation, Suggestion

logger = logging.getLogger(__name__)

SearchFn = Callable[[PlaceSearchParams], list[PlaceDetails]]


class RecommendationResolver:
    """
    Turn generator suggestions into concrete place records.

    Each suggestion is matched against recently cached places first. Misses
    go to the place search provider through a worker pool of fixed width, so
    at most ``max_workers`` provider calls are in flight at once. Database
    access stays on the calling thread. Anything that fails to resolve is
    logged and dropped; output keeps suggestion order.
    """

    def __init__(
        self,
        session: Session,
        search: SearchFn | None = None,
        matcher: NameMatcher = DEFAULT_MATCHER,
        max_workers: int = DEFAULT_SETTINGS.resolver_workers,
    ) -> None:
        self.session = session
        self.search = search or search_restaurants
        self.matcher = matcher
        self.max_workers = max_workers

    def resolve(self, suggestions: list[Suggestion], city: str) -> list[ResolvedRecommendation]:
        if not suggestions:
            return []

        cached = recent_cached_places(self.session)
        resolved: list[PlaceDetails | None] = [
            self.matcher.match(s.restaurant_name, cached) for s in suggestions
        ]
        misses = [i for i, place in enumerate(resolved) if place is None]
        logger.info(
            "Resolving %d suggestions for %s: %d cache hits, %d to search",
            len(suggestions),
            city,
            len(suggestions) - len(misses),
            len(misses),
        )

        if misses:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                futures = {
                    i: pool.submit(self._search_one, suggestions[i].restaurant_name, city)
                    for i in misses
                }
            for i, future in futures.items():
                resolved[i] = self._collect(future, suggestions[i])

        results: list[ResolvedRecommendation] = []
        for suggestion, place in zip(suggestions, resolved):
            if place is None:
                continue
            results.append(
                ResolvedRecommendation(
                    restaurant=place,
                    reason=suggestion.reason,
                    confidence=suggestion.confidence,
                )
            )
        return results

    def _search_one(self, name: str, city: str) -> PlaceDetails | None:
        found = self.search(PlaceSearchParams(city=city, query=name, limit=1))
        return found[0] if found else None

    def _collect(self, future: Future, suggestion: Suggestion) -> PlaceDetails | None:
        try:
            place = future.result()
        except Exception:
            logger.warning(
                "Could not resolve restaurant %r: search failed",
                suggestion.restaurant_name,
                exc_info=True,
            )
            return None

        if place is None:
            logger.warning("Could not resolve restaurant %r: no results", suggestion.restaurant_name)
            return None

        try:
            with self.session.begin_nested():
                upsert_place(self.session, place)
        except SQLAlchemyError:
            logger.warning("Could not cache restaurant %r", place.name, exc_info=True)
        return place


def resolve_recommendations(
    session: Session,
    suggestions: list[Suggestion],
    city: str,
) -> list[ResolvedRecommendation]:
    return RecommendationResolver(session).resolve(suggestions, city)
