from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..config import DEFAULT_SETTINGS
from ..db.models import ListRestaurant, RestaurantList
from ..errors import NotFound, ValidationFailed
from ..places.cache import get_cached_places

logger = logging.getLogger(__name__)


def list_to_dict(row: RestaurantList) -> dict[str, Any]:
    return {
        "id": row.id,
        "user_id": row.user_id,
        "name": row.name,
        "description": row.description,
        "is_default": row.is_default,
        "created_at": row.created_at,
        "updated_at": row.updated_at,
    }


def get_default_list(session: Session, user_id: str) -> RestaurantList:
    """Return the user's default list, creating it on first use."""
    row = session.scalars(
        select(RestaurantList).where(
            RestaurantList.user_id == user_id,
            RestaurantList.is_default.is_(True),
        )
    ).first()
    if row is None:
        row = RestaurantList(
            user_id=user_id,
            name=DEFAULT_SETTINGS.default_list_name,
            is_default=True,
        )
        session.add(row)
        session.flush()
        logger.info("Created default list for user %s", user_id)
    return row


def get_user_lists(session: Session, user_id: str) -> list[RestaurantList]:
    get_default_list(session, user_id)
    return list(
        session.scalars(
            select(RestaurantList)
            .where(RestaurantList.user_id == user_id)
            .order_by(RestaurantList.created_at.desc())
        )
    )


def get_owned_list(session: Session, user_id: str, list_id: str) -> RestaurantList:
    row = session.get(RestaurantList, list_id)
    if row is None or row.user_id != user_id:
        raise NotFound("List not found")
    return row


def create_list(
    session: Session, user_id: str, name: str | None, description: str | None = None
) -> RestaurantList:
    if not name or not name.strip():
        raise ValidationFailed("Name is required")
    row = RestaurantList(user_id=user_id, name=name.strip(), description=description, is_default=False)
    session.add(row)
    session.flush()
    return row


def update_list(
    session: Session,
    user_id: str,
    list_id: str,
    name: str | None = None,
    description: str | None = None,
) -> RestaurantList:
    row = get_owned_list(session, user_id, list_id)
    if name is not None:
        row.name = name
    if description is not None:
        row.description = description
    session.flush()
    return row


def delete_list(session: Session, user_id: str, list_id: str) -> None:
    row = get_owned_list(session, user_id, list_id)
    if row.is_default:
        raise ValidationFailed("Cannot delete default list")
    session.execute(delete(ListRestaurant).where(ListRestaurant.list_id == row.id))
    session.delete(row)
    session.flush()


def list_restaurants(session: Session, user_id: str, list_id: str) -> tuple[RestaurantList, list[dict]]:
    """The list and the cached data of its places; places missing from the cache are omitted."""
    row = get_owned_list(session, user_id, list_id)
    place_ids = list(
        session.scalars(
            select(ListRestaurant.place_id)
            .where(ListRestaurant.list_id == row.id)
            .order_by(ListRestaurant.added_at)
        )
    )
    cached = get_cached_places(session, place_ids)
    restaurants = [cached[p].model_dump(mode="json") for p in place_ids if p in cached]
    return row, restaurants


def add_place(session: Session, list_row: RestaurantList, place_id: str) -> tuple[ListRestaurant, bool]:
    """
    Insert ``place_id`` into ``list_row`` unless it is already there.

    Returns the membership row and whether it was newly created.
    """
    existing = session.scalars(
        select(ListRestaurant).where(
            ListRestaurant.list_id == list_row.id,
            ListRestaurant.place_id == place_id,
        )
    ).first()
    if existing is not None:
        return existing, False

    entry = ListRestaurant(list_id=list_row.id, place_id=place_id)
    session.add(entry)
    session.flush()
    return entry, True


def add_to_list(session: Session, user_id: str, list_id: str, place_id: str | None) -> tuple[ListRestaurant, bool]:
    if not place_id:
        raise ValidationFailed("Place ID is required")
    row = get_owned_list(session, user_id, list_id)
    return add_place(session, row, place_id)


def remove_from_list(session: Session, user_id: str, list_id: str, place_id: str | None) -> None:
    if not place_id:
        raise ValidationFailed("Place ID is required")
    row = get_owned_list(session, user_id, list_id)
    session.execute(
        delete(ListRestaurant).where(
            ListRestaurant.list_id == row.id,
            ListRestaurant.place_id == place_id,
        )
    )
    session.flush()
