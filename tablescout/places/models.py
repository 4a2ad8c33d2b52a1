from __future__ import annotations

import hashlib
import json

from pydantic import BaseModel, ConfigDict, Field


class LatLng(BaseModel):
    lat: float = 0.0
    lng: float = 0.0


class Geometry(BaseModel):
    location: LatLng = Field(default_factory=LatLng)


class Photo(BaseModel):
    photo_reference: str
    width: int = 400
    height: int = 300


class OpeningHours(BaseModel):
    open_now: bool = False
    weekday_text: list[str] = Field(default_factory=list)


class PlaceDetails(BaseModel):
    """
    A restaurant as the rest of the app sees it.

    ``place_id`` is the provider's stable id and is ``None`` when the provider
    did not supply one. Such records are identified by ``content_key`` instead,
    which is never used as a cache key.
    """

    place_id: str | None = None
    name: str
    formatted_address: str = ""
    formatted_phone_number: str | None = None
    website: str | None = None
    rating: float | None = None
    user_ratings_total: int = 0
    price_level: int | None = None
    types: list[str] = Field(default_factory=list)
    geometry: Geometry = Field(default_factory=Geometry)
    photos: list[Photo] = Field(default_factory=list)
    opening_hours: OpeningHours | None = None
    business_status: str | None = None

    @property
    def content_key(self) -> str:
        raw = f"{self.name.strip().lower()}|{self.formatted_address.strip().lower()}"
        return hashlib.sha256(raw.encode()).hexdigest()


class PlaceSearchParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: str
    query: str | None = None
    cuisines: list[str] = Field(default_factory=list)
    price_levels: list[int] = Field(default_factory=list)
    max_distance: float | None = None
    min_rating: float = 0.0
    limit: int = 20

    def dedup_key(self) -> str:
        """Serialised form used to collapse identical in-flight calls."""
        return json.dumps(self.model_dump(), sort_keys=True, default=str)

    def cache_key(self) -> str:
        """Order-independent hash over the fields that shape a result page."""
        normalized = {
            "city": self.city.strip().lower(),
            "cuisines": sorted(c.strip().lower() for c in self.cuisines),
            "price_levels": sorted(self.price_levels),
            "min_rating": float(self.min_rating or 0.0),
        }
        encoded = json.dumps(normalized, sort_keys=True)
        return hashlib.sha256(encoded.encode()).hexdigest()


class SearchRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    city: str | None = None
    cuisines: list[str] = Field(default_factory=list)
    price_level: list[int] = Field(default_factory=lambda: [1, 2, 3, 4], alias="priceLevel")
    max_distance: float = Field(default=10.0, alias="maxDistance")
    min_rating: float = Field(default=0.0, ge=0.0, le=5.0, alias="minRating")
    limit: int = Field(default=20, ge=1, le=20)
    offset: int = Field(default=0, ge=0)


class SearchResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    restaurants: list[PlaceDetails]
    total_count: int = Field(alias="totalCount")
    has_more: bool = Field(alias="hasMore")
