from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta, timezone

from fastapi.testclient import TestClient

from tripmatch.app import app
from tripmatch.config import DEFAULT_APP_CONFIG
from tripmatch.trips import store
from tripmatch.trips.models import TripListing, TripStatus
from tripmatch.trips.store import _load_seed, clear_trips, get_trip, save_trip

client = TestClient(app)

NEW_TRIP = {
    "title": "Kyoto Spring",
    "description": "Cherry blossoms and tea houses.",
    "destination": "Kyoto",
    "startDate": "2027-04-01",
    "endDate": "2027-04-07",
    "budget": 2500,
    "interests": ["Culture", "Food"],
    "maxParticipants": 2,
    "travelStyle": "Solo",
}


def _login_admin(c):
    c.post("/auth/login", json={"email": "admin@tripmatch.dev", "password": "admin123"})


def _new_user_client() -> tuple[TestClient, dict]:
    c = TestClient(app)
    resp = c.post("/auth/register", json={
        "email": f"trips-{uuid.uuid4().hex[:8]}@tripmatch.dev",
        "password": "secret123",
        "name": "Trip Tester",
    })
    return c, resp.json()["user"]


def _trip(trip_id: str, **overrides) -> TripListing:
    values = {
        "id": trip_id,
        "title": f"Trip {trip_id}",
        "destination": "Paris",
        "start_date": date(2027, 6, 1),
        "end_date": date(2027, 6, 10),
        "creator_id": "u-maya",
        "participants": ["u-maya"],
    }
    values.update(overrides)
    return TripListing(**values)


# ── Seed data ────────────────────────────────────────────────────────────


def test_seed_file_loads_all_trips():
    trips = _load_seed(DEFAULT_APP_CONFIG.seed_trips_path)
    assert len(trips) == 8
    assert trips["t-lisbon-cancelled"].status == TripStatus.cancelled
    assert trips["t-coxs-bazar"].participants == ["u-rafi", "u-maya"]
    assert trips["t-coxs-bazar"].current_participants == 2
    assert trips["t-paris-museums"].image is None


def test_write_during_frame_build_is_not_cached(monkeypatch):
    clear_trips()
    save_trip(_trip("a"))
    save_trip(_trip("b"))
    build = store._build_frame
    calls = []

    def build_then_delete(trips):
        calls.append(len(trips))
        if len(calls) == 1:
            store.delete_trip("b")
        return build(trips)

    monkeypatch.setattr(store, "_build_frame", build_then_delete)
    # The read that was in flight still sees the trips it started from
    assert sorted(t.id for t in store.filter_candidates("paris")) == ["a", "b"]
    # The next read rebuilds without the deleted trip
    assert [t.id for t in store.filter_candidates("paris")] == ["a"]
    assert store.count_created("u-maya") == 1
    assert calls == [2, 1]


# ── Listing ──────────────────────────────────────────────────────────────


def test_list_is_newest_first_and_skips_cancelled():
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    clear_trips()
    save_trip(_trip("old", created_at=base))
    save_trip(_trip("new", created_at=base + timedelta(days=2)))
    save_trip(_trip("gone", created_at=base + timedelta(days=3), status=TripStatus.cancelled))
    body = client.get("/travel-plans").json()
    assert [p["id"] for p in body["plans"]] == ["new", "old"]
    assert body["total"] == 2
    assert body["pages"] == 1


def test_list_paginates_and_filters_by_creator():
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    clear_trips()
    for i in range(5):
        save_trip(_trip(f"m{i}", created_at=base + timedelta(hours=i)))
    save_trip(_trip("r0", creator_id="u-rafi", participants=["u-rafi"]))

    body = client.get("/travel-plans", params={"creator": "u-maya", "limit": 2, "page": 2}).json()
    assert body["total"] == 5
    assert body["pages"] == 3
    assert [p["id"] for p in body["plans"]] == ["m2", "m1"]


def test_list_filters_by_participant():
    clear_trips()
    save_trip(_trip("joined", participants=["u-maya", "u-rafi"], current_participants=2))
    save_trip(_trip("other"))
    body = client.get("/travel-plans", params={"participant": "u-rafi"}).json()
    assert [p["id"] for p in body["plans"]] == ["joined"]


def test_get_missing_trip_is_404():
    resp = client.get("/travel-plans/does-not-exist")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Travel plan not found"


# ── Create ───────────────────────────────────────────────────────────────


def test_create_requires_login():
    c = TestClient(app)
    assert c.post("/travel-plans", json=NEW_TRIP).status_code == 401


def test_create_trip():
    c, user = _new_user_client()
    resp = c.post("/travel-plans", json=NEW_TRIP)
    assert resp.status_code == 201
    plan = resp.json()["plan"]
    assert plan["creatorId"] == user["id"]
    assert plan["participants"] == [user["id"]]
    assert plan["currentParticipants"] == 1
    assert plan["status"] == "planning"
    assert plan["creator"]["name"] == "Trip Tester"
    assert get_trip(plan["id"]) is not None


def test_create_rejects_reversed_dates():
    c, _ = _new_user_client()
    resp = c.post("/travel-plans", json={**NEW_TRIP, "startDate": "2027-04-08"})
    assert resp.status_code == 422


def test_create_rejects_missing_title():
    c, _ = _new_user_client()
    body = {k: v for k, v in NEW_TRIP.items() if k != "title"}
    assert c.post("/travel-plans", json=body).status_code == 422


# ── Join ─────────────────────────────────────────────────────────────────


def test_join_trip():
    owner, _ = _new_user_client()
    plan_id = owner.post("/travel-plans", json=NEW_TRIP).json()["plan"]["id"]

    joiner, joiner_user = _new_user_client()
    resp = joiner.post(f"/travel-plans/{plan_id}/join")
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Successfully joined the trip"
    assert body["plan"]["currentParticipants"] == 2
    assert joiner_user["id"] in body["plan"]["participants"]


def test_join_twice_is_rejected():
    owner, _ = _new_user_client()
    plan_id = owner.post("/travel-plans", json=NEW_TRIP).json()["plan"]["id"]
    resp = owner.post(f"/travel-plans/{plan_id}/join")
    assert resp.status_code == 400
    assert "already a participant" in resp.json()["detail"]


def test_join_full_trip_is_rejected():
    owner, _ = _new_user_client()
    plan_id = owner.post("/travel-plans", json={**NEW_TRIP, "maxParticipants": 1}).json()["plan"]["id"]
    joiner, _ = _new_user_client()
    resp = joiner.post(f"/travel-plans/{plan_id}/join")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "This trip is full"


def test_join_cancelled_trip_is_rejected():
    save_trip(_trip("cancelled-join", status=TripStatus.cancelled))
    joiner, _ = _new_user_client()
    assert joiner.post("/travel-plans/cancelled-join/join").status_code == 400


def test_join_missing_trip_is_404():
    joiner, _ = _new_user_client()
    assert joiner.post("/travel-plans/nope/join").status_code == 404


# ── Update / delete ──────────────────────────────────────────────────────


def test_owner_can_update():
    owner, _ = _new_user_client()
    plan_id = owner.post("/travel-plans", json=NEW_TRIP).json()["plan"]["id"]
    resp = owner.put(f"/travel-plans/{plan_id}", json={"title": "Kyoto Blossoms", "budget": None})
    assert resp.status_code == 200
    plan = resp.json()["plan"]
    assert plan["title"] == "Kyoto Blossoms"
    assert plan["budget"] is None
    assert plan["destination"] == "Kyoto"


def test_update_rejects_reversed_dates():
    owner, _ = _new_user_client()
    plan_id = owner.post("/travel-plans", json=NEW_TRIP).json()["plan"]["id"]
    resp = owner.put(f"/travel-plans/{plan_id}", json={"endDate": "2027-03-01"})
    assert resp.status_code == 422


def test_non_owner_cannot_update_or_delete():
    owner, _ = _new_user_client()
    plan_id = owner.post("/travel-plans", json=NEW_TRIP).json()["plan"]["id"]
    other, _ = _new_user_client()
    assert other.put(f"/travel-plans/{plan_id}", json={"title": "Mine now"}).status_code == 403
    assert other.delete(f"/travel-plans/{plan_id}").status_code == 403


def test_admin_can_update_any_trip():
    owner, _ = _new_user_client()
    plan_id = owner.post("/travel-plans", json=NEW_TRIP).json()["plan"]["id"]
    admin = TestClient(app)
    _login_admin(admin)
    resp = admin.put(f"/travel-plans/{plan_id}", json={"status": "confirmed"})
    assert resp.status_code == 200
    assert resp.json()["plan"]["status"] == "confirmed"


def test_owner_can_delete():
    owner, _ = _new_user_client()
    plan_id = owner.post("/travel-plans", json=NEW_TRIP).json()["plan"]["id"]
    resp = owner.delete(f"/travel-plans/{plan_id}")
    assert resp.status_code == 200
    assert client.get(f"/travel-plans/{plan_id}").status_code == 404


# ── Upcoming / popular ───────────────────────────────────────────────────


def test_upcoming_lists_next_five_open_trips():
    today = date.today()
    clear_trips()
    save_trip(_trip("past", start_date=today - timedelta(days=3), end_date=today + timedelta(days=3)))
    save_trip(_trip("done", start_date=today + timedelta(days=1), end_date=today + timedelta(days=2),
                    status=TripStatus.completed))
    for i in range(6):
        start = today + timedelta(days=10 - i)
        save_trip(_trip(f"u{i}", start_date=start, end_date=start + timedelta(days=2),
                        interests=["Food"] if i else []))

    upcoming = client.get("/travel-plans/upcoming").json()["upcoming"]
    assert [u["id"] for u in upcoming] == ["u5", "u4", "u3", "u2", "u1"]
    first = upcoming[0]
    start = today + timedelta(days=5)
    assert first["date"] == f"{start:%b} {start.day}"
    assert first["label"] == "Food • Paris"


def test_upcoming_label_defaults_to_trip():
    today = date.today()
    clear_trips()
    save_trip(_trip("bare", start_date=today, end_date=today, interests=[]))
    upcoming = client.get("/travel-plans/upcoming").json()["upcoming"]
    assert upcoming[0]["label"] == "Trip • Paris"


def test_popular_destinations_group_case_insensitively():
    clear_trips()
    save_trip(_trip("p1", destination="Paris", participants=["a", "b"], current_participants=2))
    save_trip(_trip("p2", destination="paris ", participants=["c"], current_participants=1,
                    image="https://images.example.com/paris.jpg"))
    save_trip(_trip("k1", destination="Kyoto", current_participants=1200))
    save_trip(_trip("b1", destination="Bali", current_participants=1))

    destinations = client.get("/destinations/popular").json()["destinations"]
    assert destinations[0] == {"name": "Kyoto", "image": None, "travelers": "1.2k"}
    assert destinations[1] == {
        "name": "Paris",
        "image": "https://images.example.com/paris.jpg",
        "travelers": "3",
    }
    assert destinations[2]["name"] == "Bali"
    assert len(destinations) == 3
