"""
Trip compatibility scoring.

A traveler's criteria (``MatchQuery``) are compared with a candidate
``TripListing`` across five factors. Each factor contributes a fixed maximum
and the total is their plain sum:

* **destination**  up to 40
* **dates**        up to 25
* **interests**    up to 20
* **budget**       up to 10
* **style**        up to 5

Everything here is a pure function of its arguments.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from numbers import Real
from typing import Callable, Iterable

from ..exceptions import InvalidInput
from ..trips.models import TripListing
from .models import MatchQuery

MAX_MATCHES = 5

_DATE_TIERS: tuple[tuple[float, int], ...] = ((0.99, 25), (0.70, 20), (0.40, 10))
_BUDGET_TIERS: tuple[tuple[float, int], ...] = ((2000, 10), (4000, 5))
_POINTS_PER_INTEREST = 5
_MAX_INTEREST_POINTS = 20
_STYLE_POINTS = 5


@dataclass(frozen=True)
class ScoredMatch:
    trip: TripListing
    score: int
    breakdown: dict[str, int] = field(default_factory=dict)


def search_pattern(destination: str) -> str:
    """Normalise a destination for literal, case-insensitive substring search."""
    return " ".join(destination.lower().split())


def _as_date(value: object, name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise InvalidInput(f"{name} must be a date, got {value!r}")


def _as_budget(value: object, name: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
        raise InvalidInput(f"{name} must be a finite number, got {value!r}")
    return float(value)


# ── Factors ──────────────────────────────────────────────────────────────


def destination_score(query: MatchQuery, trip: TripListing) -> int:
    wanted = query.destination.lower()
    offered = trip.destination.lower()
    if not wanted or not offered:
        return 0
    if offered == wanted:
        return 40
    if wanted in offered or offered in wanted:
        return 30
    pattern = search_pattern(query.destination)
    if pattern and pattern in search_pattern(trip.destination):
        return 15
    return 0


def date_overlap_score(query: MatchQuery, trip: TripListing) -> int:
    """Score the shared days against the shorter of the two ranges.

    A trip lying inside the query window therefore counts as a full match,
    and a trip covering the whole window does too.
    """
    query_start = _as_date(query.start_date, "query start_date")
    query_end = _as_date(query.end_date, "query end_date")
    trip_start = _as_date(trip.start_date, "trip start_date")
    trip_end = _as_date(trip.end_date, "trip end_date")

    window = (query_end - query_start).days
    if window <= 0:
        return 0
    if trip_end < trip_start or trip_start > query_end or trip_end < query_start:
        return 0

    overlap = (min(query_end, trip_end) - max(query_start, trip_start)).days
    span = min(window, (trip_end - trip_start).days)
    percent = overlap / span if span > 0 else 1.0

    for threshold, points in _DATE_TIERS:
        if percent >= threshold:
            return points
    return 0


def budget_score(query: MatchQuery, trip: TripListing) -> int:
    wanted = _as_budget(query.budget, "query budget")
    offered = _as_budget(trip.budget, "trip budget")
    if wanted is None or offered is None:
        return 0
    diff = abs(offered - wanted)
    for limit, points in _BUDGET_TIERS:
        if diff <= limit:
            return points
    return 0


def interest_score(query: MatchQuery, trip: TripListing) -> int:
    if not query.interests or not trip.interests:
        return 0
    common = len(set(query.interests) & set(trip.interests))
    return min(common * _POINTS_PER_INTEREST, _MAX_INTEREST_POINTS)


def travel_style_score(query: MatchQuery, trip: TripListing) -> int:
    if not query.travel_style or not trip.travel_style:
        return 0
    return _STYLE_POINTS if query.travel_style.lower() == trip.travel_style.lower() else 0


_FACTORS: tuple[tuple[str, Callable[[MatchQuery, TripListing], int]], ...] = (
    ("destination", destination_score),
    ("dates", date_overlap_score),
    ("budget", budget_score),
    ("interests", interest_score),
    ("style", travel_style_score),
)


# ── Scoring and ranking ──────────────────────────────────────────────────


def score_breakdown(query: MatchQuery, trip: TripListing) -> dict[str, int]:
    """Return the points each factor contributes for this pair."""
    return {name: factor(query, trip) for name, factor in _FACTORS}


def score_trip(query: MatchQuery, trip: TripListing) -> int:
    """Return the 0-100 compatibility score for one query/trip pair."""
    return sum(score_breakdown(query, trip).values())


def score_candidates(
    query: MatchQuery, candidates: Iterable[TripListing],
) -> list[ScoredMatch]:
    """Score every candidate, keeping input order."""
    scored: list[ScoredMatch] = []
    for trip in candidates:
        breakdown = score_breakdown(query, trip)
        scored.append(ScoredMatch(trip=trip, score=sum(breakdown.values()), breakdown=breakdown))
    return scored


def select_top(scored: Iterable[ScoredMatch]) -> list[ScoredMatch]:
    """Highest scores first; equal scores keep their input order."""
    return sorted(scored, key=lambda m: m.score, reverse=True)[:MAX_MATCHES]


def rank_matches(
    query: MatchQuery, candidates: Iterable[TripListing],
) -> list[ScoredMatch]:
    return select_top(score_candidates(query, candidates))
