from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from ..db.models import UserPreferences
from ..recommendations.models import UserProfile
from .models import PreferencesIn

_FIELDS = (
    "default_city",
    "preferred_cuisines",
    "price_range",
    "max_distance",
    "vibe_tags",
    "age_range",
    "neighborhood",
    "dining_frequency",
    "typical_spend",
)


def get_preferences(session: Session, user_id: str) -> UserPreferences | None:
    return session.get(UserPreferences, user_id)


def save_preferences(session: Session, user_id: str, body: PreferencesIn) -> UserPreferences:
    """Create or fully replace the user's preferences."""
    row = session.get(UserPreferences, user_id)
    if row is None:
        row = UserPreferences(user_id=user_id)
        session.add(row)
    for field in _FIELDS:
        setattr(row, field, getattr(body, field))
    session.flush()
    return row


def preferences_to_dict(row: UserPreferences) -> dict[str, Any]:
    data: dict[str, Any] = {field: getattr(row, field) for field in _FIELDS}
    data["user_id"] = row.user_id
    data["created_at"] = row.created_at
    data["updated_at"] = row.updated_at
    return data


def to_profile(row: UserPreferences) -> UserProfile:
    return UserProfile(
        preferred_cuisines=row.preferred_cuisines or [],
        price_range=row.price_range or [1, 2, 3, 4],
        max_distance=row.max_distance or 10.0,
        vibe_tags=row.vibe_tags or [],
        default_city=row.default_city,
        age_range=row.age_range,
        neighborhood=row.neighborhood,
        dining_frequency=row.dining_frequency,
        typical_spend=row.typical_spend,
    )
