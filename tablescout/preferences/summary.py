from __future__ import annotations

from collections import Counter
from typing import Any

from sqlalchemy.orm import Session

from ..db.models import Interaction, PreferenceSummary, utcnow
from ..places.cache import get_cached_places
from ..recommendations.history import load_recent_interactions

EMPTY_SUMMARY = "No interaction history yet."

# Google place types that say nothing about taste
_GENERIC_TYPES = frozenset({"point_of_interest", "establishment", "food"})


def _count_types(counter: Counter[str], types: list[str]) -> None:
    for t in types:
        if t not in _GENERIC_TYPES:
            counter[t] += 1


def _neighborhood(address: str) -> str | None:
    parts = address.split(",")
    if len(parts) > 1:
        return parts[1].strip() or None
    return None


def build_summary(session: Session, interactions: list[Interaction]) -> tuple[str, dict[str, int]]:
    """
    Digest interactions into a short natural-language summary plus counts.

    Each liked or saved place counts once however often it was liked; the
    same holds for passes. ``maybe`` and ``open`` only show up in the total.
    """
    likes = [i for i in interactions if i.action == "like"]
    passes = [i for i in interactions if i.action == "pass"]
    saves = [i for i in interactions if i.action == "save"]

    liked = get_cached_places(session, [i.place_id for i in likes + saves])
    passed = get_cached_places(session, [i.place_id for i in passes])

    cuisines: Counter[str] = Counter()
    prices: Counter[str] = Counter()
    neighborhoods: Counter[str] = Counter()
    avoided: Counter[str] = Counter()

    for place in liked.values():
        _count_types(cuisines, place.types)
        if place.price_level:
            prices["$" * place.price_level] += 1
        hood = _neighborhood(place.formatted_address)
        if hood:
            neighborhoods[hood] += 1

    for place in passed.values():
        _count_types(avoided, place.types)

    parts: list[str] = []
    if cuisines:
        top = ", ".join(
            f"{name.replace('_', ' ')} ({count})" for name, count in cuisines.most_common(5)
        )
        parts.append(f"Favored cuisines: {top}")
    if prices:
        parts.append(f"Price preference: {', '.join(p for p, _ in prices.most_common())}")
    if neighborhoods:
        parts.append(f"Frequent neighborhoods: {', '.join(n for n, _ in neighborhoods.most_common(3))}")
    if avoided:
        parts.append(
            f"Tends to avoid: {', '.join(n.replace('_', ' ') for n, _ in avoided.most_common(3))}"
        )
    parts.append(
        f"Total interactions: {len(interactions)} "
        f"({len(likes)} likes, {len(passes)} passes, {len(saves)} saves)"
    )

    stats = {
        "totalInteractions": len(interactions),
        "likes": len(likes),
        "passes": len(passes),
        "saves": len(saves),
    }
    return ". ".join(parts) + ".", stats


def refresh_summary(session: Session, user_id: str) -> dict[str, Any]:
    """Recompute and overwrite the stored summary from the last 100 interactions."""
    interactions = load_recent_interactions(session, user_id)
    if not interactions:
        return {"summary": EMPTY_SUMMARY}

    text, stats = build_summary(session, interactions)
    row = session.get(PreferenceSummary, user_id)
    if row is None:
        session.add(PreferenceSummary(user_id=user_id, summary=text))
    else:
        row.summary = text
        row.updated_at = utcnow()
    session.flush()
    return {"summary": text, "stats": stats}


def get_summary(session: Session, user_id: str) -> PreferenceSummary | None:
    return session.get(PreferenceSummary, user_id)
