from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Snake_case in Python, camelCase on the wire; either is accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TripStatus(str, Enum):
    planning = "planning"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


class TripListing(CamelModel):
    id: str
    title: str
    description: str = ""
    destination: str
    start_date: date
    end_date: date
    budget: float | None = None
    interests: list[str] = Field(default_factory=list)
    travel_style: str | None = None
    accommodation_type: str | None = None
    status: TripStatus = TripStatus.planning
    max_participants: int = 10
    current_participants: int = 1
    participants: list[str] = Field(default_factory=list)
    creator_id: str
    image: str | None = None
    created_at: datetime = Field(default_factory=_utcnow)


class TripCreateRequest(CamelModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    start_date: date
    end_date: date
    budget: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    interests: list[str] = Field(default_factory=list)
    max_participants: int = Field(default=10, ge=1, le=100)
    travel_style: str | None = None
    accommodation_type: str | None = None
    image: str | None = None

    @model_validator(mode="after")
    def _dates_in_order(self) -> TripCreateRequest:
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class TripUpdateRequest(CamelModel):
    title: str | None = Field(default=None, min_length=1)
    description: str | None = Field(default=None, min_length=1)
    destination: str | None = Field(default=None, min_length=1)
    start_date: date | None = None
    end_date: date | None = None
    budget: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    interests: list[str] | None = None
    max_participants: int | None = Field(default=None, ge=1, le=100)
    travel_style: str | None = None
    accommodation_type: str | None = None
    status: TripStatus | None = None
    image: str | None = None


class UserSummary(CamelModel):
    id: str
    name: str
    email: str


class TripOut(TripListing):
    creator: UserSummary | None = None


class TripListResponse(CamelModel):
    plans: list[TripOut]
    total: int
    pages: int


class TripResponse(CamelModel):
    plan: TripOut
    message: str | None = None


class UpcomingTrip(CamelModel):
    id: str
    date: str
    label: str
    title: str


class PopularDestination(CamelModel):
    name: str
    image: str | None = None
    travelers: str
