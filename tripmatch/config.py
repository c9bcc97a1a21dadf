from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent / ".env")

_DEFAULT_SEED_TRIPS = Path(__file__).resolve().parent / "data" / "seed_trips.csv"


@dataclass(frozen=True)
class AppConfig:
    session_secret: str = os.getenv("SESSION_SECRET", "tripmatch-secret-change-in-production")
    free_trip_plan_limit: int = int(os.getenv("FREE_TRIP_PLAN_LIMIT", "3"))
    free_joined_trip_limit: int = int(os.getenv("FREE_JOINED_TRIP_LIMIT", "3"))
    seed_trips_path: Path = Path(os.getenv("SEED_TRIPS_PATH", str(_DEFAULT_SEED_TRIPS)))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


DEFAULT_APP_CONFIG = AppConfig()
