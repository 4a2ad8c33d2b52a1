from __future__ import annotations

import logging
import time

from sqlalchemy.orm import Session

from ..analytics.store import record_event
from ..config import DEFAULT_SETTINGS
from ..errors import NotFound, ValidationFailed
from ..llm.groq_client import build_recommendation_prompt, request_recommendations
from ..preferences.service import get_preferences, to_profile
from ..preferences.summary import get_summary
from .history import aggregate_history, load_recent_interactions
from .models import RecommendationRequest, RecommendationResponse
from .resolver import RecommendationResolver

logger = logging.getLogger(__name__)


def generate_recommendations(
    session: Session,
    user_id: str,
    request: RecommendationRequest,
) -> RecommendationResponse:
    """
    Build personalised recommendations for ``user_id``.

    Raises ``ValidationFailed`` for a missing city or too little history,
    ``NotFound`` when the user has no preferences and ``GeneratorError`` when
    the LLM call fails. Unparseable generator output is not an error; it
    produces an empty list.
    """
    start_time = time.time()

    city = (request.city or "").strip()
    if not city:
        raise ValidationFailed("City is required")

    preferences = get_preferences(session, user_id)
    if preferences is None:
        raise NotFound("User preferences not found")

    summary = get_summary(session, user_id)

    interactions = load_recent_interactions(session, user_id)
    total = len(interactions)
    minimum = DEFAULT_SETTINGS.min_interactions
    if total < minimum:
        raise ValidationFailed(
            f"You need at least {minimum} interactions to get personalized "
            f"recommendations. You have {total}."
        )

    history = aggregate_history(session, interactions)

    prompt = build_recommendation_prompt(
        to_profile(preferences),
        history,
        city=city,
        limit=request.limit,
        preference_summary=summary.summary if summary else None,
        chat_intent=request.chat,
        filters=request.filters,
    )
    suggestions = request_recommendations(prompt)[: request.limit]

    items = RecommendationResolver(session).resolve(suggestions, city)

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    logger.info(
        "Recommendations for user %s in %s: %d suggested, %d resolved in %sms",
        user_id,
        city,
        len(suggestions),
        len(items),
        elapsed_ms,
    )
    record_event("recommendations", {
        "city": city,
        "chat": bool(request.chat),
        "suggested": len(suggestions),
        "resolved": len(items),
        "interaction_count": total,
        "response_time_ms": elapsed_ms,
    })

    return RecommendationResponse(
        recommendations=items,
        total_count=len(items),
        interaction_count=total,
    )
