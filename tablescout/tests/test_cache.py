from __future__ import annotations

from datetime import datetime, timedelta, timezone

from tablescout.db.models import CachedPlace
from tablescout.places.cache import (
    clear_cache_stats,
    get_cache_stats,
    get_cached_place,
    get_cached_search,
    is_fresh,
    recent_cached_places,
    store_search,
    upsert_place,
)
from tablescout.places.models import PlaceDetails, PlaceSearchParams

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _place(place_id="gp-1", name="Lou Malnati's"):
    return PlaceDetails(place_id=place_id, name=name, formatted_address="439 N Wells St, Chicago")


# ── Freshness ────────────────────────────────────────────────────────────


class TestFreshness:
    def test_place_cache_boundary_is_stale(self):
        assert is_fresh(NOW - timedelta(days=7) + timedelta(seconds=1), timedelta(days=7), NOW)
        assert not is_fresh(NOW - timedelta(days=7), timedelta(days=7), NOW)

    def test_search_cache_boundary_is_stale(self):
        assert is_fresh(NOW - timedelta(minutes=59), timedelta(hours=1), NOW)
        assert not is_fresh(NOW - timedelta(hours=1), timedelta(hours=1), NOW)

    def test_naive_timestamps_are_treated_as_utc(self):
        naive = (NOW - timedelta(hours=2)).replace(tzinfo=None)
        assert is_fresh(naive, timedelta(hours=3), NOW)
        assert not is_fresh(naive, timedelta(hours=2), NOW)


# ── Search cache key ─────────────────────────────────────────────────────


class TestSearchCacheKey:
    def test_array_order_does_not_matter(self):
        a = PlaceSearchParams(city="Chicago", cuisines=["a", "b"], price_levels=[3, 1])
        b = PlaceSearchParams(city="Chicago", cuisines=["b", "a"], price_levels=[1, 3])
        assert a.cache_key() == b.cache_key()

    def test_city_is_trimmed_and_lowercased(self):
        a = PlaceSearchParams(city="  Chicago ")
        b = PlaceSearchParams(city="chicago")
        assert a.cache_key() == b.cache_key()

    def test_min_rating_changes_key(self):
        a = PlaceSearchParams(city="Chicago", min_rating=4.0)
        b = PlaceSearchParams(city="Chicago", min_rating=4.5)
        assert a.cache_key() != b.cache_key()


# ── Place cache ──────────────────────────────────────────────────────────


def test_upsert_then_read_fresh_place(db):
    assert upsert_place(db, _place(), now=NOW)
    cached = get_cached_place(db, "gp-1", now=NOW + timedelta(days=6))
    assert cached is not None
    assert cached.name == "Lou Malnati's"


def test_stale_place_is_not_returned(db):
    upsert_place(db, _place(), now=NOW)
    assert get_cached_place(db, "gp-1", now=NOW + timedelta(days=7)) is None


def test_upsert_overwrites_existing_row(db):
    upsert_place(db, _place(name="Old Name"), now=NOW)
    upsert_place(db, _place(name="New Name"), now=NOW + timedelta(days=8))
    assert db.query(CachedPlace).count() == 1
    assert get_cached_place(db, "gp-1", now=NOW + timedelta(days=8)).name == "New Name"


def test_place_without_provider_id_is_not_cached(db):
    anonymous = PlaceDetails(name="Pop-up Stand", formatted_address="Somewhere")
    assert upsert_place(db, anonymous, now=NOW) is False
    assert db.query(CachedPlace).count() == 0


def test_content_key_is_separate_from_place_id():
    place = PlaceDetails(name="Pop-up Stand", formatted_address="Somewhere")
    assert place.place_id is None
    assert len(place.content_key) == 64


def test_recent_cached_places_excludes_stale_rows(db):
    upsert_place(db, _place("fresh", "Fresh Spot"), now=NOW - timedelta(days=1))
    upsert_place(db, _place("stale", "Stale Spot"), now=NOW - timedelta(days=8))
    names = [p.name for p in recent_cached_places(db, now=NOW)]
    assert names == ["Fresh Spot"]


def test_recent_cached_places_boundary_is_stale(db):
    upsert_place(db, _place("edge", "Edge Spot"), now=NOW - timedelta(days=7))
    upsert_place(db, _place("inside", "Inside Spot"), now=NOW - timedelta(days=7) + timedelta(seconds=1))
    names = [p.name for p in recent_cached_places(db, now=NOW)]
    assert names == ["Inside Spot"]


# ── Search cache ─────────────────────────────────────────────────────────


def test_search_cache_hit_and_expiry(db):
    params = PlaceSearchParams(city="Chicago", cuisines=["Italian"])
    store_search(db, params, [_place()], now=NOW)

    hit = get_cached_search(db, params, now=NOW + timedelta(minutes=30))
    assert [p.place_id for p in hit] == ["gp-1"]
    assert get_cached_search(db, params, now=NOW + timedelta(hours=1)) is None


def test_cache_stats_count_hits_and_misses(db):
    clear_cache_stats()
    params = PlaceSearchParams(city="Chicago")
    get_cached_search(db, params, now=NOW)
    store_search(db, params, [], now=NOW)
    get_cached_search(db, params, now=NOW)

    stats = get_cache_stats()
    assert stats["search"]["hits"] == 1
    assert stats["search"]["misses"] == 1
    assert stats["search"]["hit_rate"] == 50.0


def test_cache_stats_endpoint(admin_client):
    resp = admin_client.get("/cache/stats")
    assert resp.status_code == 200
    body = resp.json()
    assert set(body) == {"place", "search"}
    assert "hit_rate" in body["search"]
