from __future__ import annotations

import logging
from typing import Any

import requests

from ..config import DEFAULT_SETTINGS
from ..errors import PlacesAPIError
from .coalescer import RequestCoalescer
from .config import DEFAULT_PLACES_CONFIG, PlacesConfig
from .models import Geometry, LatLng, OpeningHours, Photo, PlaceDetails, PlaceSearchParams

logger = logging.getLogger(__name__)

_PRICE_LEVELS = {
    "PRICE_LEVEL_FREE": 1,
    "PRICE_LEVEL_INEXPENSIVE": 1,
    "PRICE_LEVEL_MODERATE": 2,
    "PRICE_LEVEL_EXPENSIVE": 3,
    "PRICE_LEVEL_VERY_EXPENSIVE": 4,
}

_inflight = RequestCoalescer(linger=DEFAULT_SETTINGS.coalesce_linger_seconds)


def price_level_to_number(price_level: str | None) -> int:
    """Map the provider's price enum onto 1-4; unknown or missing is moderate."""
    if not price_level:
        return 2
    return _PRICE_LEVELS.get(price_level, 2)


def build_text_query(params: PlaceSearchParams) -> str:
    if params.query:
        if params.city.lower() not in params.query.lower():
            return f"{params.query} in {params.city}"
        return params.query
    query = f"restaurants in {params.city}"
    if params.cuisines:
        query = f"{' or '.join(params.cuisines)} {query}"
    return query


def place_from_api(place: dict[str, Any]) -> PlaceDetails:
    photos = [
        Photo(
            photo_reference=p.get("name", ""),
            width=p.get("widthPx") or 400,
            height=p.get("heightPx") or 300,
        )
        for p in place.get("photos") or []
    ]
    hours = place.get("regularOpeningHours")
    location = place.get("location") or {}
    return PlaceDetails(
        place_id=place.get("id") or None,
        name=(place.get("displayName") or {}).get("text") or "Unknown Restaurant",
        formatted_address=place.get("formattedAddress", ""),
        formatted_phone_number=place.get("internationalPhoneNumber"),
        website=place.get("websiteUri"),
        rating=place.get("rating"),
        user_ratings_total=place.get("userRatingCount") or 0,
        price_level=price_level_to_number(place.get("priceLevel")),
        types=place.get("types") or [],
        geometry=Geometry(
            location=LatLng(
                lat=location.get("latitude") or 0.0,
                lng=location.get("longitude") or 0.0,
            )
        ),
        photos=photos,
        opening_hours=(
            OpeningHours(
                open_now=hours.get("openNow", False),
                weekday_text=hours.get("weekdayDescriptions", []),
            )
            if hours
            else None
        ),
        business_status=place.get("businessStatus"),
    )


def _raise_for_status(response: requests.Response, context: str) -> None:
    if response.ok:
        return
    try:
        details: Any = response.json()
    except ValueError:
        details = response.text
    logger.error(
        "Google Places API error (%s): status=%s details=%s",
        context,
        response.status_code,
        details,
    )
    if response.status_code == 400:
        raise PlacesAPIError(
            f"Invalid request to Google Places API: {details}. "
            "Check API key permissions and that Places API (New) is enabled."
        )
    raise PlacesAPIError(f"Google Places API error: {response.status_code}")


def _perform_search(params: PlaceSearchParams, config: PlacesConfig) -> list[PlaceDetails]:
    if not config.api_key:
        raise PlacesAPIError("Google Places API key is not configured")

    body: dict[str, Any] = {
        "textQuery": build_text_query(params),
        "maxResultCount": min(params.limit, config.max_results),
    }
    if params.min_rating:
        body["minRating"] = params.min_rating

    try:
        response = requests.post(
            f"{config.base_url}/places:searchText",
            json=body,
            headers={
                "Content-Type": "application/json",
                "X-Goog-Api-Key": config.api_key,
                "X-Goog-FieldMask": config.search_field_mask,
            },
            timeout=config.timeout,
        )
    except requests.exceptions.RequestException as exc:
        raise PlacesAPIError(f"Google Places API request failed: {exc}") from exc

    _raise_for_status(response, "searchText")
    places = response.json().get("places", [])

    if params.price_levels:
        places = [
            p for p in places
            if price_level_to_number(p.get("priceLevel")) in params.price_levels
        ]

    return [place_from_api(p) for p in places]


def search_restaurants(
    params: PlaceSearchParams,
    config: PlacesConfig = DEFAULT_PLACES_CONFIG,
) -> list[PlaceDetails]:
    """
    Text-search restaurants via Google Places (New).

    Identical searches that overlap in time share a single provider call.
    Raises ``PlacesAPIError`` on transport or HTTP failure.
    """
    results = _inflight.run(params.dedup_key(), lambda: _perform_search(params, config))
    return list(results)


def get_place_details(
    place_id: str,
    config: PlacesConfig = DEFAULT_PLACES_CONFIG,
) -> PlaceDetails:
    if not config.api_key:
        raise PlacesAPIError("Google Places API key is not configured")

    try:
        response = requests.get(
            f"{config.base_url}/places/{place_id}",
            headers={
                "X-Goog-Api-Key": config.api_key,
                "X-Goog-FieldMask": config.details_field_mask,
            },
            timeout=config.timeout,
        )
    except requests.exceptions.RequestException as exc:
        raise PlacesAPIError(f"Google Places API request failed: {exc}") from exc

    _raise_for_status(response, "placeDetails")
    return place_from_api(response.json())


def clear_inflight() -> None:
    _inflight.clear()
