from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import DEFAULT_SETTINGS
from ..db.models import Interaction
from ..places.cache import get_cached_places
from .models import DislikedPlace, InteractionHistory, LikedPlace

LIKE_ACTIONS = frozenset({"like", "save"})


def load_recent_interactions(
    session: Session,
    user_id: str,
    limit: int = DEFAULT_SETTINGS.history_limit,
) -> list[Interaction]:
    """Newest first, at most ``limit`` rows."""
    return list(
        session.scalars(
            select(Interaction)
            .where(Interaction.user_id == user_id)
            .order_by(Interaction.created_at.desc())
            .limit(limit)
        )
    )


def aggregate_history(session: Session, interactions: list[Interaction]) -> InteractionHistory:
    """
    Bucket interactions by action and project each onto its cached place.

    ``like`` and ``save`` both land in likes; ``open`` is ignored. Interactions
    whose place is not in the cache are skipped. Repeats are kept.
    """
    places = get_cached_places(session, [i.place_id for i in interactions])
    history = InteractionHistory()

    for interaction in interactions:
        place = places.get(interaction.place_id)
        if place is None:
            continue
        if interaction.action in LIKE_ACTIONS:
            history.likes.append(
                LikedPlace(
                    name=place.name,
                    types=place.types,
                    price_level=place.price_level,
                    rating=place.rating,
                )
            )
        elif interaction.action == "pass":
            history.passes.append(DislikedPlace(name=place.name, types=place.types))
        elif interaction.action == "maybe":
            history.maybes.append(DislikedPlace(name=place.name, types=place.types))

    return history
