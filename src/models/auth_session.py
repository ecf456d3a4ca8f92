# src/models/auth_session.py

"""Authentication session and profile models."""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class AuthEvent(Enum):
    """Session-change notifications delivered to subscribers."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


@dataclass(frozen=True)
class AuthSession:
    """Mirror of a backend session (tokens plus the signed-in user)."""

    access_token: str
    refresh_token: str
    expires_at: float
    user_id: str
    email: str


@dataclass(frozen=True)
class UserProfile:
    """Profile row written to ``users`` after sign-up."""

    id: str
    name: str
    email: str
    market: str

    def to_row(self) -> dict[str, Any]:
        """Serialise to the insert payload."""
        return asdict(self)
