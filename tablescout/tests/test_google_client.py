from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

from tablescout.errors import PlacesAPIError
from tablescout.places.config import PlacesConfig
from tablescout.places.google_client import (
    build_text_query,
    get_place_details,
    place_from_api,
    price_level_to_number,
    search_restaurants,
)
from tablescout.places.models import PlaceSearchParams

CONFIG = PlacesConfig(api_key="test-key")
NO_KEY_CONFIG = PlacesConfig(api_key="")

SAMPLE_PLACE = {
    "id": "ChIJ123",
    "displayName": {"text": "Girl & The Goat"},
    "formattedAddress": "809 W Randolph St, West Loop, Chicago, IL",
    "rating": 4.7,
    "userRatingCount": 9000,
    "priceLevel": "PRICE_LEVEL_EXPENSIVE",
    "types": ["restaurant", "american_restaurant"],
    "location": {"latitude": 41.884, "longitude": -87.648},
    "photos": [{"name": "places/ChIJ123/photos/abc", "widthPx": 800, "heightPx": 600}],
    "regularOpeningHours": {"openNow": True, "weekdayDescriptions": ["Monday: 5-10 PM"]},
    "businessStatus": "OPERATIONAL",
}

CHEAP_PLACE = {
    "id": "ChIJ456",
    "displayName": {"text": "Portillo's"},
    "priceLevel": "PRICE_LEVEL_INEXPENSIVE",
}


def _response(status=200, payload=None):
    resp = MagicMock()
    resp.ok = 200 <= status < 300
    resp.status_code = status
    resp.json.return_value = payload if payload is not None else {}
    resp.text = "error"
    return resp


# ── Conversion ───────────────────────────────────────────────────────────


class TestConversion:
    def test_price_levels(self):
        assert price_level_to_number("PRICE_LEVEL_INEXPENSIVE") == 1
        assert price_level_to_number("PRICE_LEVEL_VERY_EXPENSIVE") == 4
        assert price_level_to_number(None) == 2
        assert price_level_to_number("SOMETHING_NEW") == 2

    def test_place_from_api(self):
        place = place_from_api(SAMPLE_PLACE)
        assert place.place_id == "ChIJ123"
        assert place.name == "Girl & The Goat"
        assert place.price_level == 3
        assert place.geometry.location.lat == 41.884
        assert place.photos[0].photo_reference == "places/ChIJ123/photos/abc"
        assert place.opening_hours.open_now is True

    def test_missing_fields_fall_back(self):
        place = place_from_api({})
        assert place.place_id is None
        assert place.name == "Unknown Restaurant"
        assert place.opening_hours is None


class TestTextQuery:
    def test_city_only(self):
        assert build_text_query(PlaceSearchParams(city="Chicago")) == "restaurants in Chicago"

    def test_cuisines(self):
        params = PlaceSearchParams(city="Chicago", cuisines=["Thai", "Korean"])
        assert build_text_query(params) == "Thai or Korean restaurants in Chicago"

    def test_query_gets_city_appended(self):
        params = PlaceSearchParams(city="Chicago", query="Alinea")
        assert build_text_query(params) == "Alinea in Chicago"

    def test_query_already_mentions_city(self):
        params = PlaceSearchParams(city="Chicago", query="Alinea chicago")
        assert build_text_query(params) == "Alinea chicago"


# ── Search ───────────────────────────────────────────────────────────────


@patch("tablescout.places.google_client.requests.post")
def test_search_sends_request_and_converts(mock_post):
    mock_post.return_value = _response(payload={"places": [SAMPLE_PLACE]})

    results = search_restaurants(PlaceSearchParams(city="Chicago", limit=50, min_rating=4.0), config=CONFIG)

    assert [r.name for r in results] == ["Girl & The Goat"]
    body = mock_post.call_args.kwargs["json"]
    assert body["textQuery"] == "restaurants in Chicago"
    assert body["maxResultCount"] == 20
    assert body["minRating"] == 4.0
    headers = mock_post.call_args.kwargs["headers"]
    assert headers["X-Goog-Api-Key"] == "test-key"
    assert "places.displayName" in headers["X-Goog-FieldMask"]


@patch("tablescout.places.google_client.requests.post")
def test_search_filters_by_price_level(mock_post):
    mock_post.return_value = _response(payload={"places": [SAMPLE_PLACE, CHEAP_PLACE]})

    results = search_restaurants(PlaceSearchParams(city="Chicago", price_levels=[1]), config=CONFIG)

    assert [r.place_id for r in results] == ["ChIJ456"]


@patch("tablescout.places.google_client.requests.post")
def test_search_http_error_raises(mock_post):
    mock_post.return_value = _response(status=403, payload={"error": "denied"})

    with pytest.raises(PlacesAPIError):
        search_restaurants(PlaceSearchParams(city="Nowhere"), config=CONFIG)


@patch("tablescout.places.google_client.requests.post")
def test_search_transport_error_raises(mock_post):
    mock_post.side_effect = requests.exceptions.ConnectionError("no route")

    with pytest.raises(PlacesAPIError):
        search_restaurants(PlaceSearchParams(city="Offline"), config=CONFIG)


def test_search_without_api_key_raises():
    with pytest.raises(PlacesAPIError):
        search_restaurants(PlaceSearchParams(city="Keyless"), config=NO_KEY_CONFIG)


@patch("tablescout.places.google_client.requests.post")
def test_search_with_empty_payload(mock_post):
    mock_post.return_value = _response(payload={})
    assert search_restaurants(PlaceSearchParams(city="Empty Town"), config=CONFIG) == []


# ── Details ──────────────────────────────────────────────────────────────


@patch("tablescout.places.google_client.requests.get")
def test_place_details(mock_get):
    mock_get.return_value = _response(payload=SAMPLE_PLACE)

    place = get_place_details("ChIJ123", config=CONFIG)

    assert place.name == "Girl & The Goat"
    assert mock_get.call_args.args[0].endswith("/places/ChIJ123")


@patch("tablescout.places.google_client.requests.get")
def test_place_details_error(mock_get):
    mock_get.return_value = _response(status=400, payload={"error": "bad id"})

    with pytest.raises(PlacesAPIError):
        get_place_details("bad", config=CONFIG)
