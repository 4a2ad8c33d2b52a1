from __future__ import annotations

import json
import logging
import re

from groq import Groq
from pydantic import ValidationError

from ..errors import GeneratorError
from ..recommendations.models import (
    InteractionHistory,
    SearchFilters,
    Suggestion,
    UserProfile,
)
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

_JSON_BLOCK_RE = re.compile(r"\{[\s\S]*\}")

RESPONSE_FORMAT = """\
Return your response in this exact JSON format:
{
  "recommendations": [
    {
      "restaurantName": "Exact Restaurant Name",
      "reason": "Brief explanation of why this matches",
      "confidence": "high"
    }
  ]
}

Return ONLY valid JSON, no additional text before or after."""


def _dollars(levels: list[int]) -> str:
    return ", ".join("$" * p for p in levels)


def _section(title: str, items: list[str]) -> str:
    if not items:
        return ""
    body = "\n".join(f"- {item}" for item in items)
    return f"{title}:\n{body}\n"


def build_recommendation_prompt(
    profile: UserProfile,
    history: InteractionHistory,
    city: str,
    limit: int,
    preference_summary: str | None = None,
    chat_intent: str | None = None,
    filters: SearchFilters | None = None,
) -> str:
    liked = "\n".join(
        f"- {r.name} ({', '.join(r.types[:3])}, "
        f"{'$' * r.price_level if r.price_level else 'price unknown'}, "
        f"rating: {r.rating if r.rating else 'N/A'})"
        for r in history.likes
    )
    passed = "\n".join(f"- {r.name} ({', '.join(r.types[:3])})" for r in history.passes)
    unsure = "\n".join(f"- {r.name} ({', '.join(r.types[:3])})" for r in history.maybes)

    global_profile: list[str] = []
    if profile.age_range:
        global_profile.append(f"Age Range: {profile.age_range}")
    if profile.neighborhood:
        global_profile.append(f"Preferred Neighborhood: {profile.neighborhood}")
    if profile.dining_frequency:
        global_profile.append(f"Dining Frequency: {profile.dining_frequency}")
    if profile.typical_spend:
        global_profile.append(f"Typical Spend: {profile.typical_spend}")

    active_filters: list[str] = []
    if filters is not None:
        if filters.cuisines:
            active_filters.append(f"Cuisines: {', '.join(filters.cuisines)}")
        if filters.price_level:
            active_filters.append(f"Price Levels: {_dollars(filters.price_level)}")
        if filters.max_distance:
            active_filters.append(f"Max Distance: {filters.max_distance} miles")
        if filters.min_rating:
            active_filters.append(f"Min Rating: {filters.min_rating} stars")

    parts = [
        "You are a dining concierge assistant. Based on the user's profile, "
        "preferences, interaction history, and specific request, "
        f"recommend {limit} restaurants in {city}.\n",
        _section("GLOBAL PROFILE", global_profile),
    ]
    if chat_intent:
        parts.append(f'USER REQUEST:\n"{chat_intent}"\n')
    if preference_summary:
        parts.append(f"PREFERENCE SUMMARY (from past behavior):\n{preference_summary}\n")
    parts.append(
        "SAVED PREFERENCES:\n"
        f"- Preferred Cuisines: {', '.join(profile.preferred_cuisines) or 'No specific preferences'}\n"
        f"- Price Range: {_dollars(profile.price_range) or 'Any'}\n"
        f"- Max Distance: {profile.max_distance} miles\n"
        f"- Vibe Tags: {', '.join(profile.vibe_tags) or 'No specific vibe preferences'}\n"
    )
    parts.append(_section("ACTIVE FILTERS (current search)", active_filters))
    parts.append(
        "INTERACTION HISTORY:\n\n"
        f"Restaurants the user LIKED:\n{liked or 'None yet'}\n\n"
        f"Restaurants the user PASSED on:\n{passed or 'None yet'}\n\n"
        f"Restaurants the user is UNSURE about (Maybe):\n{unsure or 'None yet'}\n"
    )

    near = f" (preferably in or near {profile.neighborhood})" if profile.neighborhood else ""
    focus = (
        ["Fulfilling the specific user request/intent", "Considering global profile and filters"]
        if chat_intent
        else [
            "Matching their stated preferences",
            "Learning from their liked restaurants (cuisine types, price levels, vibes)",
        ]
    )
    parts.append(
        "TASK:\n"
        f"Based on the above information, recommend up to {limit} specific restaurants "
        f"in {city} that the user would likely enjoy."
        f"{' PRIORITIZE matching the user request above.' if chat_intent else ''} Focus on:\n"
        f"1. {focus[0]}\n"
        f"2. {focus[1]}\n"
        "3. Learning from preference summary and interaction history\n"
        "4. Avoiding types of places they passed on\n"
        "5. Suggesting variety while staying within constraints\n\n"
        "IMPORTANT FORMAT REQUIREMENTS:\n"
        f"- Recommend REAL restaurants that exist in {city}{near}\n"
        "- Provide the exact restaurant name as it would appear on Google Maps\n"
        "- Include a brief reason for each recommendation (1-2 sentences max)\n"
        "- Assign a confidence level: high, medium, or low\n"
        f"- Return at most {limit} recommendations (fewer is fine if good matches are limited)\n"
    )
    parts.append(RESPONSE_FORMAT)

    return "\n".join(p for p in parts if p)


def parse_recommendations(text: str) -> list[Suggestion]:
    """
    Extract suggestions from a raw completion.

    Takes the outermost ``{...}`` block, requires a ``recommendations`` list
    and keeps the entries that validate. Anything unparseable yields ``[]``.
    """
    match = _JSON_BLOCK_RE.search(text or "")
    if not match:
        logger.warning("No JSON found in generator response: %.200r", text)
        return []

    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError:
        logger.warning("Generator response is not valid JSON: %.200r", text, exc_info=True)
        return []

    items = parsed.get("recommendations") if isinstance(parsed, dict) else None
    if not isinstance(items, list):
        logger.warning("Generator response has no recommendations list: %.200r", text)
        return []

    suggestions: list[Suggestion] = []
    for item in items:
        try:
            suggestions.append(Suggestion.model_validate(item))
        except ValidationError:
            logger.warning("Dropping malformed suggestion %r", item)
    return suggestions


def request_recommendations(
    prompt: str,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> list[Suggestion]:
    """
    Ask Groq for named restaurant suggestions.

    Raises ``GeneratorError`` when the call itself fails; a reply that cannot
    be parsed is not an error and returns an empty list.
    """
    if not config.enabled or not config.api_key:
        raise GeneratorError("Recommendation generator is not configured")

    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )
        content = response.choices[0].message.content or ""
    except Exception as exc:
        logger.exception("Groq recommendation call failed")
        raise GeneratorError("Failed to get recommendations from the generator") from exc

    return parse_recommendations(content)
