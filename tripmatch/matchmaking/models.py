from __future__ import annotations

from datetime import date

from pydantic import Field, model_validator

from ..trips.models import CamelModel, TripOut


class MatchQuery(CamelModel):
    destination: str = Field(..., min_length=1, description="Place name to match trips against")
    start_date: date
    end_date: date
    budget: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    interests: list[str] = Field(default_factory=list)
    travel_style: str | None = None


class MatchRequest(MatchQuery):
    @model_validator(mode="after")
    def _dates_in_order(self) -> MatchRequest:
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be before startDate")
        return self


class MatchItem(CamelModel):
    trip: TripOut
    score: int
    breakdown: dict[str, int] = Field(default_factory=dict)


class MatchResponse(CamelModel):
    matches: list[MatchItem]
    total_candidates: int
