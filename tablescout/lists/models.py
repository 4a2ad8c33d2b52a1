from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ListCreate(BaseModel):
    name: str | None = Field(default=None, max_length=200)
    description: str | None = None


class ListUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None


class AddRestaurant(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    place_id: str | None = Field(default=None, alias="placeId")
