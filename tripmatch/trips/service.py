from __future__ import annotations

import logging
import threading
import uuid
from datetime import date
from typing import Any

from ..auth.users import get_user
from ..exceptions import (
    AlreadyParticipant,
    InvalidInput,
    NotTripOwner,
    TripClosed,
    TripFull,
    TripNotFound,
)
from ..quota import check_can_create, check_can_join
from . import store
from .models import (
    PopularDestination,
    TripCreateRequest,
    TripListing,
    TripOut,
    TripStatus,
    TripUpdateRequest,
    UpcomingTrip,
    UserSummary,
)

logger = logging.getLogger(__name__)

# Serialises check-then-write sequences (capacity, quota) across request threads.
_write_lock = threading.Lock()

_NULLABLE_FIELDS = {"budget", "travel_style", "accommodation_type", "image"}


def to_out(trip: TripListing) -> TripOut:
    """Attach the creator's public summary, or ``None`` if the creator is gone."""
    creator = get_user(trip.creator_id)
    summary = UserSummary(**{k: creator[k] for k in ("id", "name", "email")}) if creator else None
    return TripOut(**trip.model_dump(), creator=summary)


def require_trip(trip_id: str) -> TripListing:
    trip = store.get_trip(trip_id)
    if trip is None:
        raise TripNotFound("Travel plan not found")
    return trip


def _require_owner(user: dict[str, Any], trip: TripListing) -> None:
    if trip.creator_id != user["id"] and user.get("role") != "admin":
        raise NotTripOwner("Only the trip creator can change this travel plan")


def create_trip(user: dict[str, Any], body: TripCreateRequest) -> TripListing:
    with _write_lock:
        check_can_create(user)
        trip = TripListing(
            id=uuid.uuid4().hex,
            **body.model_dump(),
            creator_id=user["id"],
            participants=[user["id"]],
            current_participants=1,
        )
        store.save_trip(trip)
    logger.info("User %s created trip %s to %s", user["id"], trip.id, trip.destination)
    return trip


def join_trip(user: dict[str, Any], trip_id: str) -> TripListing:
    with _write_lock:
        trip = require_trip(trip_id)
        if trip.status in (TripStatus.cancelled, TripStatus.completed):
            raise TripClosed(f"This trip is {trip.status.value}")
        if user["id"] in trip.participants:
            raise AlreadyParticipant("You are already a participant in this trip")
        if trip.current_participants >= trip.max_participants:
            raise TripFull("This trip is full")
        check_can_join(user)

        participants = [*trip.participants, user["id"]]
        updated = trip.model_copy(update={
            "participants": participants,
            "current_participants": trip.current_participants + 1,
        })
        store.save_trip(updated)
    logger.info("User %s joined trip %s", user["id"], trip_id)
    return updated


def update_trip(user: dict[str, Any], trip_id: str, body: TripUpdateRequest) -> TripListing:
    changes = {
        k: v for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k in _NULLABLE_FIELDS
    }
    with _write_lock:
        trip = require_trip(trip_id)
        _require_owner(user, trip)
        merged = TripListing.model_validate({**trip.model_dump(), **changes})
        if merged.end_date < merged.start_date:
            raise InvalidInput("endDate must not be before startDate")
        if merged.max_participants < merged.current_participants:
            raise InvalidInput("maxParticipants cannot be lower than the current participant count")
        store.save_trip(merged)
    logger.info("User %s updated trip %s: %s", user["id"], trip_id, sorted(changes))
    return merged


def delete_trip(user: dict[str, Any], trip_id: str) -> None:
    with _write_lock:
        trip = require_trip(trip_id)
        _require_owner(user, trip)
        store.delete_trip(trip_id)
    logger.info("User %s deleted trip %s", user["id"], trip_id)


def upcoming(today: date | None = None) -> list[UpcomingTrip]:
    today = today or date.today()
    results: list[UpcomingTrip] = []
    for trip in store.upcoming_trips(today):
        interest = trip.interests[0] if trip.interests else "Trip"
        results.append(UpcomingTrip(
            id=trip.id,
            date=f"{trip.start_date:%b} {trip.start_date.day}",
            label=f"{interest} • {trip.destination}",
            title=trip.title,
        ))
    return results


def _format_travelers(count: int) -> str:
    return f"{count / 1000:.1f}k" if count >= 1000 else str(count)


def popular() -> list[PopularDestination]:
    return [
        PopularDestination(
            name=d["name"], image=d["image"], travelers=_format_travelers(d["travelers"]),
        )
        for d in store.popular_destinations()
    ]
