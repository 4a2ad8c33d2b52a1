from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..places.models import PlaceDetails

Confidence = Literal["high", "medium", "low"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SearchFilters(_CamelModel):
    cuisines: list[str] = Field(default_factory=list)
    price_level: list[int] = Field(default_factory=list, alias="priceLevel")
    max_distance: float | None = Field(default=None, alias="maxDistance")
    min_rating: float | None = Field(default=None, ge=0.0, le=5.0, alias="minRating")


class RecommendationRequest(_CamelModel):
    # Optional here so a missing city is a 400 rather than a schema error
    city: str | None = None
    limit: int = Field(default=10, ge=1, le=20)
    chat: str | None = Field(default=None, max_length=1000)
    filters: SearchFilters | None = None


class UserProfile(BaseModel):
    """Saved preferences plus the optional demographic fields fed to the prompt."""

    preferred_cuisines: list[str] = Field(default_factory=list)
    price_range: list[int] = Field(default_factory=lambda: [1, 2, 3, 4])
    max_distance: float = 10.0
    vibe_tags: list[str] = Field(default_factory=list)
    default_city: str | None = None
    age_range: str | None = None
    neighborhood: str | None = None
    dining_frequency: str | None = None
    typical_spend: str | None = None


class LikedPlace(BaseModel):
    name: str
    types: list[str] = Field(default_factory=list)
    price_level: int | None = None
    rating: float | None = None


class DislikedPlace(BaseModel):
    # Price and rating are withheld on purpose for passes/maybes
    name: str
    types: list[str] = Field(default_factory=list)


class InteractionHistory(BaseModel):
    likes: list[LikedPlace] = Field(default_factory=list)
    passes: list[DislikedPlace] = Field(default_factory=list)
    maybes: list[DislikedPlace] = Field(default_factory=list)


class Suggestion(_CamelModel):
    restaurant_name: str = Field(..., min_length=1, alias="restaurantName")
    reason: str = ""
    confidence: Confidence = "medium"

    @field_validator("reason", mode="before")
    @classmethod
    def _normalize_reason(cls, value: object) -> str:
        return "" if value is None else str(value)

    @field_validator("confidence", mode="before")
    @classmethod
    def _normalize_confidence(cls, value: object) -> str:
        text = str(value or "").strip().lower()
        return text if text in ("high", "medium", "low") else "medium"


class ResolvedRecommendation(BaseModel):
    restaurant: PlaceDetails
    reason: str
    confidence: Confidence


class RecommendationResponse(_CamelModel):
    recommendations: list[ResolvedRecommendation]
    total_count: int = Field(alias="totalCount")
    interaction_count: int = Field(alias="interactionCount")
