from __future__ import annotations

import logging
import time

from sqlalchemy.orm import Session

from ..analytics.store import record_event
from ..errors import ValidationFailed
from .cache import get_cached_place, get_cached_search, store_search, upsert_place
from .config import DEFAULT_PLACES_CONFIG
from .google_client import get_place_details, search_restaurants
from .models import PlaceDetails, PlaceSearchParams, SearchRequest, SearchResponse

logger = logging.getLogger(__name__)


def search_places(session: Session, body: SearchRequest) -> SearchResponse:
    """
    Search restaurants in a city, serving repeat searches from the search cache.

    A fresh provider page is fetched at full size so that every offset/limit
    window over the same filters is answered by one cached page.
    """
    start_time = time.time()

    city = (body.city or "").strip()
    if not city:
        raise ValidationFailed("City is required")

    params = PlaceSearchParams(
        city=city,
        cuisines=body.cuisines,
        price_levels=body.price_level,
        max_distance=body.max_distance,
        min_rating=body.min_rating,
        limit=DEFAULT_PLACES_CONFIG.max_results,
    )

    restaurants = get_cached_search(session, params)
    cache_hit = restaurants is not None
    if restaurants is None:
        restaurants = search_restaurants(params)
        for restaurant in restaurants:
            upsert_place(session, restaurant)
        store_search(session, params, restaurants)

    page = restaurants[body.offset: body.offset + body.limit]

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    logger.info(
        "Search in %s returned %d restaurants (cache_hit=%s)", city, len(restaurants), cache_hit
    )
    record_event("search", {
        "city": city,
        "cuisines": body.cuisines,
        "price_level": body.price_level,
        "min_rating": body.min_rating,
        "total": len(restaurants),
        "response_time_ms": elapsed_ms,
        "cache_hit": cache_hit,
    })

    return SearchResponse(
        restaurants=page,
        total_count=len(restaurants),
        has_more=len(restaurants) > body.offset + body.limit,
    )


def get_restaurant(session: Session, place_id: str) -> PlaceDetails:
    """Cached details when younger than 7 days, otherwise a fresh provider fetch."""
    cached = get_cached_place(session, place_id)
    if cached is not None:
        return cached

    restaurant = get_place_details(place_id)
    if restaurant.place_id is None:
        restaurant = restaurant.model_copy(update={"place_id": place_id})
    upsert_place(session, restaurant)
    return restaurant
