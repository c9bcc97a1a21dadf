from __future__ import annotations

import logging
import time

from ..analytics.events import MATCH_SEARCH, record_event
from ..auth.users import get_user
from ..trips.service import to_out
from ..trips.store import filter_candidates
from .models import MatchItem, MatchQuery, MatchResponse
from .scoring import ScoredMatch, score_candidates, search_pattern, select_top

logger = logging.getLogger(__name__)


def _record_search(
    query: MatchQuery,
    total_candidates: int,
    top: list[ScoredMatch],
    start_time: float,
) -> None:
    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event(MATCH_SEARCH, {
        "destination": query.destination,
        "interests": query.interests,
        "travel_style": query.travel_style,
        "total_candidates": total_candidates,
        "results_returned": len(top),
        "top_score": top[0].score if top else None,
        "response_time_ms": elapsed_ms,
    })


def find_matches(query: MatchQuery) -> MatchResponse:
    start_time = time.time()

    # --- Pre-filter: literal destination match, not cancelled ---
    candidates = filter_candidates(search_pattern(query.destination))
    total_candidates = len(candidates)

    if not candidates:
        _record_search(query, 0, [], start_time)
        return MatchResponse(matches=[], total_candidates=0)

    # --- Scoring ---
    scored = score_candidates(query, candidates)

    # --- Drop trips whose creator no longer resolves ---
    owned: list[ScoredMatch] = []
    for match in scored:
        if get_user(match.trip.creator_id) is None:
            logger.warning(
                "Dropping trip %s from matches: creator %s not found",
                match.trip.id, match.trip.creator_id,
            )
            continue
        owned.append(match)

    top = select_top(owned)

    items = [
        MatchItem(trip=to_out(m.trip), score=m.score, breakdown=m.breakdown)
        for m in top
    ]
    _record_search(query, total_candidates, top, start_time)
    return MatchResponse(matches=items, total_candidates=total_candidates)
