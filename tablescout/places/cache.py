from __future__ import annotations

import logging
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import DEFAULT_SETTINGS
from ..db.models import CachedPlace, SearchCacheEntry, as_utc, utcnow
from .models import PlaceDetails, PlaceSearchParams

logger = logging.getLogger(__name__)

_stats: dict[str, int] = {
    "place_hits": 0,
    "place_misses": 0,
    "search_hits": 0,
    "search_misses": 0,
}


def is_fresh(cached_at: datetime, ttl: timedelta, now: datetime | None = None) -> bool:
    """A row is fresh strictly before ``ttl`` has elapsed."""
    now = now or utcnow()
    return now - as_utc(cached_at) < ttl


# ── Place cache ──────────────────────────────────────────────────────────


def get_cached_place(
    session: Session,
    place_id: str,
    ttl: timedelta = DEFAULT_SETTINGS.place_cache_ttl,
    now: datetime | None = None,
) -> PlaceDetails | None:
    row = session.get(CachedPlace, place_id)
    if row is not None and is_fresh(row.cached_at, ttl, now):
        _stats["place_hits"] += 1
        return PlaceDetails(**row.data)
    _stats["place_misses"] += 1
    return None


def get_cached_places(session: Session, place_ids: list[str]) -> dict[str, PlaceDetails]:
    """Look up many ids at once regardless of age. Missing ids are absent from the result."""
    if not place_ids:
        return {}
    rows = session.scalars(
        select(CachedPlace).where(CachedPlace.place_id.in_(set(place_ids)))
    )
    return {row.place_id: PlaceDetails(**row.data) for row in rows}


def recent_cached_places(
    session: Session,
    limit: int = DEFAULT_SETTINGS.cache_scan_limit,
    ttl: timedelta = DEFAULT_SETTINGS.place_cache_ttl,
    now: datetime | None = None,
) -> list[PlaceDetails]:
    now = now or utcnow()
    rows = session.scalars(
        select(CachedPlace)
        .where(CachedPlace.cached_at > now - ttl)
        .order_by(CachedPlace.cached_at.desc())
        .limit(limit)
    )
    return [PlaceDetails(**row.data) for row in rows]


def upsert_place(session: Session, place: PlaceDetails, now: datetime | None = None) -> bool:
    """
    Write ``place`` under its provider id, overwriting any stale row.

    Returns False without writing when the record has no provider id.
    """
    if not place.place_id:
        logger.warning(
            "Not caching %r: no provider place id (content key %s)",
            place.name,
            place.content_key[:12],
        )
        return False
    session.merge(
        CachedPlace(
            place_id=place.place_id,
            data=place.model_dump(mode="json"),
            cached_at=now or utcnow(),
        )
    )
    session.flush()
    return True


# ── Search cache ─────────────────────────────────────────────────────────


def get_cached_search(
    session: Session,
    params: PlaceSearchParams,
    ttl: timedelta = DEFAULT_SETTINGS.search_cache_ttl,
    now: datetime | None = None,
) -> list[PlaceDetails] | None:
    row = session.get(SearchCacheEntry, params.cache_key())
    if row is not None and is_fresh(row.cached_at, ttl, now):
        _stats["search_hits"] += 1
        return [PlaceDetails(**item) for item in row.results]
    _stats["search_misses"] += 1
    return None


def store_search(
    session: Session,
    params: PlaceSearchParams,
    results: list[PlaceDetails],
    now: datetime | None = None,
) -> None:
    session.merge(
        SearchCacheEntry(
            cache_key=params.cache_key(),
            results=[r.model_dump(mode="json") for r in results],
            cached_at=now or utcnow(),
        )
    )
    session.flush()


# ── Stats ────────────────────────────────────────────────────────────────


def _rate(hits: int, misses: int) -> float:
    total = hits + misses
    return round(hits / total * 100, 1) if total > 0 else 0.0


def get_cache_stats() -> dict:
    return {
        "place": {
            "hits": _stats["place_hits"],
            "misses": _stats["place_misses"],
            "hit_rate": _rate(_stats["place_hits"], _stats["place_misses"]),
        },
        "search": {
            "hits": _stats["search_hits"],
            "misses": _stats["search_misses"],
            "hit_rate": _rate(_stats["search_hits"], _stats["search_misses"]),
        },
    }


def clear_cache_stats() -> None:
    for key in _stats:
        _stats[key] = 0
