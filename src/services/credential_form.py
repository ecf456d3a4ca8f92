# src/services/credential_form.py

"""Sign-in / sign-up form state and submission."""

import asyncio
import logging
import re
from dataclasses import dataclass
from enum import Enum

from src.backend.base_backend import BaseBackend
from src.backend.errors import BackendError
from src.config.settings import Settings
from src.models.auth_session import AuthSession, UserProfile
from src.models.notice import Notice

logger = logging.getLogger("price_tracker.credentials")

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+$")


class AuthMode(Enum):
    """Which auth operation the form submits."""

    SIGN_IN = "sign_in"
    SIGN_UP = "sign_up"


@dataclass
class CredentialDraft:
    """Raw identity fields as typed."""

    user_id: str = ""
    name: str = ""
    email: str = ""
    market: str = ""
    password: str = ""


# Field name -> label, in display order
_SIGN_IN_FIELDS: dict[str, str] = {
    "email": "Email Address",
    "password": "Password",
}
_SIGN_UP_FIELDS: dict[str, str] = {
    "user_id": "User ID",
    "name": "Full Name",
    "email": "Email Address",
    "market": "Market Sector",
    "password": "Password",
}


def market_options() -> list[tuple[str, str]]:
    """(label, value) pairs for the market sector selection."""
    return [(m, m.lower()) for m in Settings.MARKET_SECTORS]


class CredentialForm:
    """Collects credentials and calls the backend auth operations."""

    def __init__(self, backend: BaseBackend) -> None:
        self.backend = backend
        self.mode = AuthMode.SIGN_IN
        self.draft = CredentialDraft()
        self.show_password = False
        self.in_flight = False

    def toggle_mode(self) -> AuthMode:
        """Switch between sign-in and sign-up."""
        self.mode = (
            AuthMode.SIGN_UP if self.mode is AuthMode.SIGN_IN
            else AuthMode.SIGN_IN
        )
        logger.debug("Credential form mode: %s", self.mode.value)
        return self.mode

    def toggle_password(self) -> bool:
        """Flip password masking; returns True when visible."""
        self.show_password = not self.show_password
        return self.show_password

    def required_fields(self) -> dict[str, str]:
        """Fields the current mode requires, keyed by draft attribute."""
        if self.mode is AuthMode.SIGN_UP:
            return dict(_SIGN_UP_FIELDS)
        return dict(_SIGN_IN_FIELDS)

    def validate(self) -> Notice | None:
        """Return a warning notice for bad input, else ``None``."""
        missing = [
            label
            for attr, label in self.required_fields().items()
            if not getattr(self.draft, attr).strip()
        ]
        if missing:
            return Notice(
                "Missing information",
                f"Please fill in: {', '.join(missing)}",
                "warning",
            )
        if not _EMAIL_RE.match(self.draft.email.strip()):
            return Notice(
                "Invalid email",
                "Please enter a valid email address",
                "warning",
            )
        if self.mode is AuthMode.SIGN_UP:
            valid_markets = {value for _label, value in market_options()}
            if self.draft.market not in valid_markets:
                return Notice(
                    "Invalid market sector",
                    "Please select your market sector",
                    "warning",
                )
        return None

    async def submit(self) -> Notice:
        """Validate, then sign in or sign up."""
        if self.in_flight:
            return Notice(
                "Please wait",
                "Your previous request is still running",
                "warning",
            )
        problem = self.validate()
        if problem is not None:
            return problem

        self.in_flight = True
        try:
            if self.mode is AuthMode.SIGN_UP:
                return await self._sign_up()
            return await self._sign_in()
        except BackendError as exc:
            logger.error("%s failed: %s", self.mode.value, exc)
            return Notice(
                "Authentication failed", str(exc) or "Request failed", "error",
            )
        finally:
            self.in_flight = False

    async def _sign_in(self) -> Notice:
        email = self.draft.email.strip()
        session: AuthSession = await asyncio.to_thread(
            self.backend.sign_in, email, self.draft.password,
        )
        return Notice(
            "Login Successful!",
            f"Welcome back, {session.email or email}!",
        )

    async def _sign_up(self) -> Notice:
        profile = UserProfile(
            id=self.draft.user_id.strip(),
            name=self.draft.name.strip(),
            email=self.draft.email.strip(),
            market=self.draft.market,
        )
        session = await asyncio.to_thread(
            self.backend.sign_up,
            profile.email,
            self.draft.password,
            {"id": profile.id, "name": profile.name, "market": profile.market},
        )
        await self._save_profile(profile)
        if session is None:
            return Notice(
                "Account Created",
                "Check your email to confirm your account, then sign in.",
            )
        return Notice(
            "Account Created",
            f"Welcome, {profile.name}! You're now logged in.",
        )

    async def _save_profile(self, profile: UserProfile) -> None:
        """Best-effort ``users`` insert; failures are only logged."""
        try:
            await asyncio.to_thread(
                self.backend.insert,
                Settings.USERS_TABLE,
                [profile.to_row()],
            )
            logger.info("Profile row saved for %s", profile.email)
        except BackendError as exc:
            logger.warning(
                "Profile insert failed for %s (account still created): %s",
                profile.email,
                exc,
            )
