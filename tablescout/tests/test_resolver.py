from __future__ import annotations

import threading
import time

from sqlalchemy.exc import OperationalError

from tablescout.db.models import CachedPlace
from tablescout.errors import PlacesAPIError
from tablescout.places.cache import upsert_place
from tablescout.places.models import PlaceDetails
from tablescout.recommendations.matching import ContainmentMatcher
from tablescout.recommendations.models import Suggestion
from tablescout.recommendations.resolver import RecommendationResolver


def _suggest(*names):
    return [Suggestion(restaurant_name=n, reason=f"because {n}", confidence="high") for n in names]


class FakeSearch:
    """Returns one place per query, named after the query, unless told otherwise."""

    def __init__(self, missing=(), failing=(), without_id=(), delay=0.0):
        self.missing = set(missing)
        self.failing = set(failing)
        self.without_id = set(without_id)
        self.delay = delay
        self.queries = []
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def __call__(self, params):
        with self._lock:
            self.queries.append((params.query, params.city, params.limit))
            self.active += 1
            self.peak = max(self.peak, self.active)
        try:
            if self.delay:
                time.sleep(self.delay)
            if params.query in self.failing:
                raise PlacesAPIError("boom")
            if params.query in self.missing:
                return []
            place_id = None if params.query in self.without_id else f"gp-{params.query}"
            return [PlaceDetails(place_id=place_id, name=params.query)]
        finally:
            with self._lock:
                self.active -= 1


def test_preserves_order_and_annotations(db):
    search = FakeSearch()
    results = RecommendationResolver(db, search=search).resolve(_suggest("A", "B", "C"), "Chicago")

    assert [r.restaurant.name for r in results] == ["A", "B", "C"]
    assert results[1].reason == "because B"
    assert results[1].confidence == "high"
    assert all(q[1:] == ("Chicago", 1) for q in search.queries)


def test_failures_are_dropped_without_raising(db):
    search = FakeSearch(missing={"B"}, failing={"D"})
    results = RecommendationResolver(db, search=search).resolve(_suggest("A", "B", "C", "D", "E"), "Chicago")

    assert [r.restaurant.name for r in results] == ["A", "C", "E"]


def test_all_failures_yield_empty_list(db):
    search = FakeSearch(failing={"A", "B"})
    assert RecommendationResolver(db, search=search).resolve(_suggest("A", "B"), "Chicago") == []


def test_empty_input(db):
    search = FakeSearch()
    assert RecommendationResolver(db, search=search).resolve([], "Chicago") == []
    assert search.queries == []


def test_cache_hit_skips_provider(db):
    upsert_place(db, PlaceDetails(place_id="cached-1", name="Monteverde"))
    search = FakeSearch()

    results = RecommendationResolver(db, search=search).resolve(_suggest("Monteverde", "Avec"), "Chicago")

    assert [r.restaurant.place_id for r in results] == ["cached-1", "gp-Avec"]
    assert [q[0] for q in search.queries] == ["Avec"]


def test_resolved_places_are_cached_by_provider_id(db):
    RecommendationResolver(db, search=FakeSearch()).resolve(_suggest("Avec"), "Chicago")

    row = db.get(CachedPlace, "gp-Avec")
    assert row is not None
    assert row.data["name"] == "Avec"


def test_places_without_provider_id_are_returned_but_not_cached(db):
    search = FakeSearch(without_id={"Pop-up"})
    results = RecommendationResolver(db, search=search).resolve(_suggest("Pop-up"), "Chicago")

    assert [r.restaurant.name for r in results] == ["Pop-up"]
    assert db.query(CachedPlace).count() == 0


def test_matcher_is_pluggable(db):
    upsert_place(db, PlaceDetails(place_id="cached-1", name="Joe's Pizza and Pasta"))
    search = FakeSearch()

    loose = RecommendationResolver(db, search=search, matcher=ContainmentMatcher())
    assert loose.resolve(_suggest("Joe's Pizza"), "Chicago")[0].restaurant.place_id == "cached-1"

    strict = RecommendationResolver(db, search=search)
    assert strict.resolve(_suggest("Joe's Pizza"), "Chicago")[0].restaurant.place_id == "gp-Joe's Pizza"


def test_provider_concurrency_is_bounded(db):
    search = FakeSearch(delay=0.05)
    names = [f"R{i}" for i in range(10)]

    results = RecommendationResolver(db, search=search, max_workers=3).resolve(_suggest(*names), "Chicago")

    assert len(results) == 10
    assert search.peak <= 3


def test_cache_write_failure_still_resolves(db, monkeypatch):
    def _locked(session, place, now=None):
        raise OperationalError("INSERT INTO restaurants", {}, Exception("database is locked"))

    monkeypatch.setattr("tablescout.recommendations.resolver.upsert_place", _locked)

    results = RecommendationResolver(db, search=FakeSearch()).resolve(_suggest("Avec", "Monteverde"), "Chicago")

    assert [r.restaurant.name for r in results] == ["Avec", "Monteverde"]
    assert db.query(CachedPlace).count() == 0
