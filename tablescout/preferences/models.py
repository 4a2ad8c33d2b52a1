from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PreferencesIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    default_city: str | None = Field(default=None, alias="defaultCity")
    preferred_cuisines: list[str] = Field(default_factory=list, alias="preferredCuisines")
    price_range: list[int] = Field(default_factory=lambda: [1, 2, 3, 4], alias="priceRange")
    max_distance: float = Field(default=10.0, gt=0, le=25, alias="maxDistance")
    vibe_tags: list[str] = Field(default_factory=list, alias="vibeTags")
    age_range: str | None = Field(default=None, alias="ageRange")
    neighborhood: str | None = None
    dining_frequency: str | None = Field(default=None, alias="diningFrequency")
    typical_spend: str | None = Field(default=None, alias="typicalSpend")
