"""
Free-tier usage quotas.

Free users may create ``free_trip_plan_limit`` open trips and join
``free_joined_trip_limit`` open trips created by others. Premium users are
unlimited. Cancelled or deleted trips no longer count against the quota.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .config import DEFAULT_APP_CONFIG, AppConfig
from .exceptions import QuotaExceeded
from .trips.models import CamelModel
from .trips.store import count_created, count_joined

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Allowance:
    used: int
    limit: int | None  # None means unlimited

    @property
    def remaining(self) -> int | None:
        if self.limit is None:
            return None
        return max(0, self.limit - self.used)

    @property
    def exhausted(self) -> bool:
        return self.limit is not None and self.used >= self.limit


class AllowanceOut(CamelModel):
    used: int
    limit: int | None
    remaining: int | None


class UsageOut(CamelModel):
    is_premium: bool
    trip_plans: AllowanceOut
    joined_trips: AllowanceOut


def _allowances(user: dict[str, Any], config: AppConfig) -> tuple[Allowance, Allowance]:
    premium = bool(user.get("is_premium"))
    created = Allowance(
        used=count_created(user["id"]),
        limit=None if premium else config.free_trip_plan_limit,
    )
    joined = Allowance(
        used=count_joined(user["id"]),
        limit=None if premium else config.free_joined_trip_limit,
    )
    return created, joined


def _out(allowance: Allowance) -> AllowanceOut:
    return AllowanceOut(used=allowance.used, limit=allowance.limit, remaining=allowance.remaining)


def get_usage(user: dict[str, Any], config: AppConfig = DEFAULT_APP_CONFIG) -> UsageOut:
    created, joined = _allowances(user, config)
    return UsageOut(
        is_premium=bool(user.get("is_premium")),
        trip_plans=_out(created),
        joined_trips=_out(joined),
    )


def check_can_create(user: dict[str, Any], config: AppConfig = DEFAULT_APP_CONFIG) -> None:
    created, _ = _allowances(user, config)
    if created.exhausted:
        logger.warning("User %s hit the trip plan limit (%s)", user["id"], created.limit)
        raise QuotaExceeded(
            f"Free plan allows {created.limit} trip plans. Upgrade to premium for unlimited trips."
        )


def check_can_join(user: dict[str, Any], config: AppConfig = DEFAULT_APP_CONFIG) -> None:
    _, joined = _allowances(user, config)
    if joined.exhausted:
        logger.warning("User %s hit the joined trip limit (%s)", user["id"], joined.limit)
        raise QuotaExceeded(
            f"Free plan allows joining {joined.limit} trips. Upgrade to premium for unlimited joins."
        )
