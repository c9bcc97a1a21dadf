from __future__ import annotations

import logging
import threading
from datetime import date
from pathlib import Path

import pandas as pd

from ..config import DEFAULT_APP_CONFIG
from ..matchmaking.scoring import search_pattern
from .models import TripListing, TripStatus

logger = logging.getLogger(__name__)

_FRAME_COLUMNS = [
    "id",
    "destination",
    "destination_search",
    "status",
    "start_date",
    "created_at",
    "creator_id",
    "participants",
    "current_participants",
    "image",
]

_lock = threading.Lock()
_trips: dict[str, TripListing] = {}
_loaded: bool = False
# Bumped on every write; a view built from an older version is never cached.
_version: int = 0
_view: tuple[pd.DataFrame, dict[str, TripListing]] | None = None


def _split_list(raw: str) -> list[str]:
    return [part.strip() for part in raw.split("|") if part.strip()]


def _load_seed(path: Path) -> dict[str, TripListing]:
    if not path.exists():
        logger.warning("Seed trips file %s not found, starting empty", path)
        return {}

    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    trips: dict[str, TripListing] = {}
    for row in df.to_dict(orient="records"):
        values = {k: v.strip() for k, v in row.items() if v and v.strip()}
        values["interests"] = _split_list(row.get("interests", ""))
        values["participants"] = _split_list(row.get("participants", "")) or [values["creator_id"]]
        values["current_participants"] = len(values["participants"])
        trip = TripListing.model_validate(values)
        trips[trip.id] = trip

    logger.info("Loaded %d seed trips from %s", len(trips), path)
    return trips


def _ensure_loaded() -> None:
    global _loaded
    if _loaded:
        return
    seed = _load_seed(DEFAULT_APP_CONFIG.seed_trips_path)
    with _lock:
        if not _loaded:
            _trips.update(seed)
            _loaded = True
            _invalidate()


def _invalidate() -> None:
    """Drop the cached view. Callers hold ``_lock``."""
    global _version, _view
    _version += 1
    _view = None


def _build_frame(trips: list[TripListing]) -> pd.DataFrame:
    rows = [
        {
            "id": t.id,
            "destination": t.destination,
            "destination_search": search_pattern(t.destination),
            "status": t.status.value,
            "start_date": pd.Timestamp(t.start_date),
            "created_at": t.created_at.timestamp(),
            "creator_id": t.creator_id,
            "participants": list(t.participants),
            "current_participants": t.current_participants,
            "image": t.image,
        }
        for t in trips
    ]
    return pd.DataFrame(rows, columns=_FRAME_COLUMNS)


def _snapshot() -> tuple[pd.DataFrame, dict[str, TripListing]]:
    """Return a frame and the trips it was built from.

    The frame is built outside the lock, so a write can land meanwhile. The
    caller still gets a consistent pair, but it is only cached if no write
    happened during the build.
    """
    global _view
    _ensure_loaded()
    with _lock:
        if _view is not None:
            return _view
        version = _version
        trips = dict(_trips)

    view = (_build_frame(list(trips.values())), trips)
    with _lock:
        if _version == version:
            _view = view
    return view


def get_dataframe() -> pd.DataFrame:
    """Return a tabular view of the trip store, rebuilt after each write."""
    return _snapshot()[0]


# ── Record access ────────────────────────────────────────────────────────


def get_trip(trip_id: str) -> TripListing | None:
    _ensure_loaded()
    return _trips.get(trip_id)


def all_trips() -> list[TripListing]:
    _ensure_loaded()
    with _lock:
        return list(_trips.values())


def save_trip(trip: TripListing) -> TripListing:
    """Insert or replace a trip by id."""
    _ensure_loaded()
    with _lock:
        _trips[trip.id] = trip
        _invalidate()
    return trip


def delete_trip(trip_id: str) -> bool:
    _ensure_loaded()
    with _lock:
        removed = _trips.pop(trip_id, None) is not None
        if removed:
            _invalidate()
    return removed


def clear_trips() -> None:
    """Empty the store without re-seeding it."""
    global _loaded
    with _lock:
        _trips.clear()
        _loaded = True
        _invalidate()


# ── Queries ──────────────────────────────────────────────────────────────


def _open_mask(df: pd.DataFrame) -> pd.Series:
    return df["status"] != TripStatus.cancelled.value


def filter_candidates(pattern: str) -> list[TripListing]:
    """Open trips whose destination contains *pattern* as a literal substring."""
    df, trips = _snapshot()
    if df.empty or not pattern:
        return []
    mask = _open_mask(df) & df["destination_search"].str.contains(pattern, regex=False, na=False)
    return [trips[tid] for tid in df.loc[mask, "id"]]


def list_trips(
    creator: str | None = None,
    participant: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[TripListing], int]:
    """Open trips, newest first. Returns one page and the total count."""
    df, trips = _snapshot()
    if df.empty:
        return [], 0

    mask = _open_mask(df)
    if creator:
        mask = mask & (df["creator_id"] == creator)
    if participant:
        mask = mask & df["participants"].apply(lambda ps: participant in ps)

    matched = df.loc[mask].sort_values("created_at", ascending=False, kind="stable")
    skip = (page - 1) * limit
    ids = matched["id"].iloc[skip:skip + limit].tolist()
    return [trips[tid] for tid in ids], len(matched)


def upcoming_trips(today: date, limit: int = 5) -> list[TripListing]:
    """Planning or confirmed trips starting on or after *today*, soonest first."""
    df, trips = _snapshot()
    if df.empty:
        return []
    active = df["status"].isin([TripStatus.planning.value, TripStatus.confirmed.value])
    mask = active & (df["start_date"] >= pd.Timestamp(today))
    ordered = df.loc[mask].sort_values("start_date", kind="stable")
    return [trips[tid] for tid in ordered["id"].head(limit)]


def popular_destinations(limit: int = 5) -> list[dict]:
    """Group trips by destination and rank by travelers (participants, else trip count)."""
    df = get_dataframe()
    df = df[df["destination_search"] != ""]
    if df.empty:
        return []

    grouped = df.groupby("destination_search", sort=False).agg(
        name=("destination", "first"),
        count=("id", "size"),
        participants=("current_participants", "sum"),
        image=("image", "first"),
    )
    grouped["travelers"] = grouped["participants"].where(grouped["participants"] > 0, grouped["count"])
    top = grouped.sort_values("travelers", ascending=False, kind="stable").head(limit)

    results: list[dict] = []
    for _, row in top.iterrows():
        image = row["image"] if isinstance(row["image"], str) and row["image"] else None
        results.append({
            "name": row["name"],
            "image": image,
            "travelers": int(row["travelers"]),
        })
    return results


def count_created(user_id: str) -> int:
    """Open trips the user created."""
    df = get_dataframe()
    if df.empty:
        return 0
    return int((_open_mask(df) & (df["creator_id"] == user_id)).sum())


def count_joined(user_id: str) -> int:
    """Open trips the user joined but did not create."""
    df = get_dataframe()
    if df.empty:
        return 0
    joined = df["participants"].apply(lambda ps: user_id in ps)
    return int((_open_mask(df) & joined & (df["creator_id"] != user_id)).sum())
