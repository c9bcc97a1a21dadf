from __future__ import annotations

import logging
import math

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.events import MATCH_SEARCH, get_events
from .auth.dependencies import require_admin, require_user
from .auth.models import AuthResponse, LoginRequest, PremiumUpdate, RegisterRequest, UserOut
from .auth.users import authenticate, create_user, list_users, set_premium
from .config import DEFAULT_APP_CONFIG
from .exceptions import TripMatchError, general_exception_handler, tripmatch_error_handler
from .matchmaking.models import MatchRequest, MatchResponse
from .matchmaking.retrieval import find_matches
from .quota import UsageOut, get_usage
from .trips import service as trip_service
from .trips import store as trip_store
from .trips.models import (
    PopularDestination,
    TripCreateRequest,
    TripListResponse,
    TripOut,
    TripResponse,
    TripStatus,
    TripUpdateRequest,
    UpcomingTrip,
)

logging.basicConfig(
    level=DEFAULT_APP_CONFIG.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="TripMatch API", version="1.0.0")
app.add_middleware(SessionMiddleware, secret_key=DEFAULT_APP_CONFIG.session_secret)
app.add_exception_handler(TripMatchError, tripmatch_error_handler)
app.add_exception_handler(Exception, general_exception_handler)


def _start_session(request: Request, user: dict) -> None:
    request.session["user"] = {"id": user["id"], "role": user["role"]}


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/destinations/popular")
def popular_destinations() -> dict[str, list[PopularDestination]]:
    return {"destinations": trip_service.popular()}


@app.get("/travel-plans", response_model=TripListResponse)
def list_travel_plans(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    creator: str | None = None,
    participant: str | None = None,
) -> TripListResponse:
    trips, total = trip_store.list_trips(
        creator=creator, participant=participant, page=page, limit=limit,
    )
    return TripListResponse(
        plans=[trip_service.to_out(t) for t in trips],
        total=total,
        pages=math.ceil(total / limit),
    )


@app.get("/travel-plans/upcoming")
def upcoming_travel_plans() -> dict[str, list[UpcomingTrip]]:
    return {"upcoming": trip_service.upcoming()}


@app.get("/travel-plans/{trip_id}", response_model=TripResponse)
def get_travel_plan(trip_id: str) -> TripResponse:
    trip = trip_service.require_trip(trip_id)
    return TripResponse(plan=trip_service.to_out(trip))


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/register", response_model=AuthResponse, status_code=201)
def register(body: RegisterRequest, request: Request) -> AuthResponse:
    user = create_user(body.email, body.password, body.name)
    _start_session(request, user)
    return AuthResponse(status="ok", user=UserOut(**user))


@app.post("/auth/login", response_model=AuthResponse)
def login(body: LoginRequest, request: Request) -> AuthResponse:
    user = authenticate(body.email, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    _start_session(request, user)
    return AuthResponse(status="ok", user=UserOut(**user))


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me", response_model=UserOut)
def auth_me(user: dict = Depends(require_user)) -> UserOut:
    return UserOut(**user)


@app.post("/auth/upgrade", response_model=UserOut)
def upgrade(user: dict = Depends(require_user)) -> UserOut:
    updated = set_premium(user["id"], True)
    if not updated:
        raise HTTPException(status_code=404, detail="User not found")
    return UserOut(**updated)


# ── User endpoints ───────────────────────────────────────────────────────


@app.get("/users/me/usage", response_model=UsageOut)
def my_usage(user: dict = Depends(require_user)) -> UsageOut:
    return get_usage(user)


@app.post("/matchmaking", response_model=MatchResponse)
def matchmaking(
    body: MatchRequest,
    user: dict = Depends(require_user),
) -> MatchResponse:
    return find_matches(body)


@app.post("/travel-plans", response_model=TripResponse, status_code=201)
def create_travel_plan(
    body: TripCreateRequest,
    user: dict = Depends(require_user),
) -> TripResponse:
    trip = trip_service.create_trip(user, body)
    return TripResponse(plan=trip_service.to_out(trip))


@app.put("/travel-plans/{trip_id}", response_model=TripResponse)
def update_travel_plan(
    trip_id: str,
    body: TripUpdateRequest,
    user: dict = Depends(require_user),
) -> TripResponse:
    trip = trip_service.update_trip(user, trip_id, body)
    return TripResponse(plan=trip_service.to_out(trip))


@app.delete("/travel-plans/{trip_id}")
def delete_travel_plan(trip_id: str, user: dict = Depends(require_user)) -> dict:
    trip_service.delete_trip(user, trip_id)
    return {"message": "Travel plan deleted"}


@app.post("/travel-plans/{trip_id}/join", response_model=TripResponse)
def join_travel_plan(trip_id: str, user: dict = Depends(require_user)) -> TripResponse:
    trip = trip_service.join_trip(user, trip_id)
    return TripResponse(plan=trip_service.to_out(trip), message="Successfully joined the trip")


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/admin/stats")
def admin_stats(user: dict = Depends(require_admin)) -> dict:
    users = list_users()
    trips = trip_store.all_trips()
    cancelled = sum(1 for t in trips if t.status == TripStatus.cancelled)
    return {
        "totalUsers": len(users),
        "premiumUsers": sum(1 for u in users if u["is_premium"]),
        "totalTrips": len(trips),
        "activeTrips": len(trips) - cancelled,
        "cancelledTrips": cancelled,
        "matchSearches": len(get_events(MATCH_SEARCH)),
    }


@app.get("/admin/trips")
def admin_trips(user: dict = Depends(require_admin)) -> dict[str, list[TripOut]]:
    return {"trips": [trip_service.to_out(t) for t in trip_store.all_trips()]}


@app.delete("/admin/trips/{trip_id}")
def admin_delete_trip(trip_id: str, user: dict = Depends(require_admin)) -> dict:
    trip_service.delete_trip(user, trip_id)
    return {"message": "Travel plan deleted"}


@app.get("/admin/users")
def admin_users(user: dict = Depends(require_admin)) -> dict[str, list[UserOut]]:
    return {"users": [UserOut(**u) for u in list_users()]}


@app.patch("/admin/users/{user_id}", response_model=UserOut)
def admin_update_user(
    user_id: str,
    body: PremiumUpdate,
    user: dict = Depends(require_admin),
) -> UserOut:
    updated = set_premium(user_id, body.is_premium)
    if not updated:
        raise HTTPException(status_code=404, detail="User not found")
    return UserOut(**updated)


@app.get("/analytics")
def analytics(user: dict = Depends(require_admin)) -> dict:
    return compute_analytics(get_events())
