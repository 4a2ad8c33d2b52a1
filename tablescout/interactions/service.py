from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from ..analytics.store import record_event
from ..db.models import Interaction
from ..errors import ValidationFailed
from ..lists.service import add_place, get_default_list
from .models import VALID_ACTIONS, InteractionRequest

logger = logging.getLogger(__name__)


def record_interaction(session: Session, user_id: str, body: InteractionRequest) -> Interaction:
    """
    Append one interaction row.

    A ``save`` also puts the place in the user's default list; saving the same
    place again leaves a single membership.
    """
    if not isinstance(body.place_id, str) or not body.place_id or not body.action:
        raise ValidationFailed("Place ID and action are required")
    if body.action not in VALID_ACTIONS:
        raise ValidationFailed("Invalid action")

    interaction = Interaction(
        user_id=user_id,
        place_id=body.place_id,
        action=body.action,
        details=body.metadata,
    )
    session.add(interaction)
    session.flush()

    if body.action == "save":
        _, created = add_place(session, get_default_list(session, user_id), body.place_id)
        if not created:
            logger.debug("Place %s already in default list of user %s", body.place_id, user_id)

    record_event("interaction", {"action": body.action, "place_id": body.place_id})
    return interaction
