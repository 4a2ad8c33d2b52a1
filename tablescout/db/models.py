from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    text,
)

from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=_uuid)
    username = Column(String(150), unique=True, nullable=False, index=True)
    password_hash = Column(String(128), nullable=False)
    role = Column(String(20), nullable=False, default="user")
    created_at = Column(DateTime(timezone=True), default=utcnow)


class UserPreferences(Base):
    __tablename__ = "user_preferences"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    default_city = Column(String(200), nullable=True)
    preferred_cuisines = Column(JSON, nullable=False, default=list)
    price_range = Column(JSON, nullable=False, default=lambda: [1, 2, 3, 4])
    max_distance = Column(Float, nullable=False, default=10.0)
    vibe_tags = Column(JSON, nullable=False, default=list)
    age_range = Column(String(50), nullable=True)
    neighborhood = Column(String(200), nullable=True)
    dining_frequency = Column(String(50), nullable=True)
    typical_spend = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Interaction(Base):
    """One row per UI action. Append-only, repeats allowed."""

    __tablename__ = "user_interactions"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    place_id = Column(String(255), nullable=False)
    action = Column(String(10), nullable=False)
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_interactions_user_created", "user_id", "created_at"),
    )


class CachedPlace(Base):
    """Place details keyed by the provider's own place id, never a derived slug."""

    __tablename__ = "restaurants"

    place_id = Column(String(255), primary_key=True)
    data = Column(JSON, nullable=False)
    cached_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)


class SearchCacheEntry(Base):
    __tablename__ = "search_cache"

    cache_key = Column(String(64), primary_key=True)
    results = Column(JSON, nullable=False, default=list)
    cached_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


class PreferenceSummary(Base):
    __tablename__ = "preference_summaries"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    summary = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class RestaurantList(Base):
    __tablename__ = "lists"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    is_default = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    __table_args__ = (
        # At most one default list per user
        Index(
            "uq_lists_one_default_per_user",
            "user_id",
            unique=True,
            sqlite_where=text("is_default = 1"),
            postgresql_where=text("is_default"),
        ),
    )


class ListRestaurant(Base):
    __tablename__ = "list_restaurants"

    id = Column(String(36), primary_key=True, default=_uuid)
    list_id = Column(String(36), ForeignKey("lists.id", ondelete="CASCADE"), nullable=False)
    place_id = Column(String(255), nullable=False)
    added_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        UniqueConstraint("list_id", "place_id", name="uq_list_restaurants_list_place"),
    )
