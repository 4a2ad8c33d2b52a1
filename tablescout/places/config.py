from __future__ import annotations

import os
from dataclasses import dataclass

from ..config import DEFAULT_SETTINGS  # noqa: F401  (loads .env first)

_FIELDS = (
    "id",
    "displayName",
    "formattedAddress",
    "rating",
    "userRatingCount",
    "priceLevel",
    "types",
    "location",
    "photos",
    "internationalPhoneNumber",
    "websiteUri",
    "regularOpeningHours",
    "businessStatus",
)


@dataclass(frozen=True)
class PlacesConfig:
    api_key: str = os.getenv("GOOGLE_PLACES_API_KEY", "")
    base_url: str = "https://places.googleapis.com/v1"
    timeout: float = 10.0
    max_results: int = 20

    @property
    def search_field_mask(self) -> str:
        return ",".join(f"places.{f}" for f in _FIELDS)

    @property
    def details_field_mask(self) -> str:
        return ",".join(_FIELDS)


DEFAULT_PLACES_CONFIG = PlacesConfig()
