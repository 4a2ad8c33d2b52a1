from __future__ import annotations

from collections import Counter
from typing import Any


def _avg(values: list[float]) -> float:
    return round(sum(values) / len(values), 1) if values else 0.0


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    searches = [e for e in events if e["type"] == "search"]
    recs = [e for e in events if e["type"] == "recommendations"]
    interactions = [e for e in events if e["type"] == "interaction"]

    # Top cities across both searches and recommendation requests
    city_counter: Counter[str] = Counter()
    for e in searches + recs:
        city_counter[(e.get("city") or "unknown").strip().lower()] += 1
    top_cities = [{"name": n, "count": c} for n, c in city_counter.most_common(10)]

    cuisine_counter: Counter[str] = Counter()
    for s in searches:
        for c in s.get("cuisines", []) or []:
            cuisine_counter[c] += 1
    top_cuisines = [{"name": n, "count": c} for n, c in cuisine_counter.most_common(10)]

    # "open" is counted here even though it never feeds recommendations
    action_counts = dict(Counter(e.get("action") for e in interactions))

    suggested = sum(r.get("suggested", 0) for r in recs)
    resolved = sum(r.get("resolved", 0) for r in recs)

    search_hits = sum(1 for s in searches if s.get("cache_hit"))

    return {
        "total_searches": len(searches),
        "total_recommendation_requests": len(recs),
        "total_interactions": len(interactions),
        "avg_search_time_ms": _avg([s["response_time_ms"] for s in searches if "response_time_ms" in s]),
        "avg_recommendation_time_ms": _avg([r["response_time_ms"] for r in recs if "response_time_ms" in r]),
        "top_cities": top_cities,
        "top_cuisines": top_cuisines,
        "interaction_actions": action_counts,
        "chat_usage_rate": round(sum(1 for r in recs if r.get("chat")) / len(recs) * 100, 1) if recs else 0.0,
        "resolution": {
            "suggested": suggested,
            "resolved": resolved,
            "resolution_rate": round(resolved / suggested * 100, 1) if suggested else 0.0,
        },
        "search_cache": {
            "hits": search_hits,
            "misses": len(searches) - search_hits,
            "hit_rate": round(search_hits / len(searches) * 100, 1) if searches else 0.0,
        },
    }
