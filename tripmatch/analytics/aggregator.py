from __future__ import annotations

from collections import Counter
from typing import Any

from .events import MATCH_SEARCH


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    searches = [e for e in events if e["type"] == MATCH_SEARCH]
    total = len(searches)

    times = [s["response_time_ms"] for s in searches if "response_time_ms" in s]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    dest_counter: Counter[str] = Counter()
    for s in searches:
        dest_counter[s.get("destination", "unknown")] += 1
    top_destinations = [{"name": n, "count": c} for n, c in dest_counter.most_common(10)]

    interest_counter: Counter[str] = Counter()
    for s in searches:
        for i in s.get("interests", []) or []:
            interest_counter[i] += 1
    top_interests = [{"name": n, "count": c} for n, c in interest_counter.most_common(10)]

    zero_results = sum(1 for s in searches if not s.get("results_returned"))

    # Only searches that returned something have a top score
    top_scores = [s["top_score"] for s in searches if s.get("top_score") is not None]
    avg_top_score = round(sum(top_scores) / len(top_scores), 1) if top_scores else 0.0

    return {
        "totalSearches": total,
        "avgResponseTimeMs": avg_time,
        "topDestinations": top_destinations,
        "topInterests": top_interests,
        "zeroResultRate": round(zero_results / total * 100, 1) if total else 0.0,
        "avgTopScore": avg_top_score,
    }
