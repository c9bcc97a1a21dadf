from __future__ import annotations

from datetime import datetime

from pydantic import Field

from ..trips.models import CamelModel

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)


class RegisterRequest(CamelModel):
    email: str = Field(..., pattern=_EMAIL_PATTERN)
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=2)


class UserOut(CamelModel):
    id: str
    email: str
    name: str
    role: str
    is_premium: bool
    created_at: datetime


class AuthResponse(CamelModel):
    status: str
    user: UserOut


class PremiumUpdate(CamelModel):
    is_premium: bool
