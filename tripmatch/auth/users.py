from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

import bcrypt

from ..exceptions import EmailTaken

logger = logging.getLogger(__name__)

_users: dict[str, dict[str, Any]] = {}

_PUBLIC_FIELDS = ("id", "email", "name", "role", "is_premium", "created_at")


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def _public(record: dict[str, Any]) -> dict[str, Any]:
    return {k: record[k] for k in _PUBLIC_FIELDS}


def _find_by_email(email: str) -> dict[str, Any] | None:
    email = email.strip().lower()
    for record in _users.values():
        if record["email"] == email:
            return record
    return None


def create_user(
    email: str,
    password: str,
    name: str,
    role: str = "user",
    is_premium: bool = False,
    user_id: str | None = None,
) -> dict[str, Any]:
    """Register a user. Raises ``EmailTaken`` if the email is in use."""
    if _find_by_email(email):
        raise EmailTaken("Email already registered")
    record = {
        "id": user_id or uuid.uuid4().hex,
        "email": email.strip().lower(),
        "name": name.strip(),
        "role": role,
        "is_premium": is_premium,
        "created_at": datetime.now(timezone.utc),
        "password_hash": _hash_password(password),
    }
    _users[record["id"]] = record
    logger.info("Registered user %s (%s)", record["id"], role)
    return _public(record)


def authenticate(email: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns the public user dict or ``None``."""
    record = _find_by_email(email)
    if record and _verify_password(password, record["password_hash"]):
        return _public(record)
    return None


def get_user(user_id: str | None) -> dict[str, Any] | None:
    record = _users.get(user_id) if user_id else None
    return _public(record) if record else None


def list_users() -> list[dict[str, Any]]:
    return [_public(r) for r in _users.values()]


def set_premium(user_id: str, is_premium: bool) -> dict[str, Any] | None:
    record = _users.get(user_id)
    if not record:
        return None
    record["is_premium"] = is_premium
    logger.info("User %s premium=%s", user_id, is_premium)
    return _public(record)


def delete_user(user_id: str) -> bool:
    return _users.pop(user_id, None) is not None


def _seed_users() -> None:
    """Pre-seed demo accounts on import. Seed trips reference these ids."""
    create_user("admin@tripmatch.dev", "admin123", "Admin", role="admin", user_id="u-admin")
    create_user("traveler@tripmatch.dev", "traveler123", "Demo Traveler", user_id="u-traveler")
    create_user("maya@tripmatch.dev", "maya12345", "Maya Rahman", is_premium=True, user_id="u-maya")
    create_user("rafi@tripmatch.dev", "rafi12345", "Rafi Chowdhury", user_id="u-rafi")


_seed_users()
