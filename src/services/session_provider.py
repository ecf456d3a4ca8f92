# src/services/session_provider.py

"""Owned session context that gates the dashboard."""

import asyncio
import logging
from collections.abc import Callable

from src.backend.base_backend import BaseBackend, Subscription
from src.backend.errors import BackendError
from src.models.auth_session import AuthEvent, AuthSession
from src.models.notice import Notice

logger = logging.getLogger("price_tracker.session")

SessionCallback = Callable[[AuthEvent, AuthSession | None], None]


class SessionProvider:
    """Mirror of "signed in with session S" or "signed out".

    Lifecycle: :meth:`start` registers for backend notifications and
    loads the current snapshot; :meth:`close` cancels the
    registration.  ``on_change`` runs on every notification and may
    be called from a worker thread.
    """

    def __init__(
        self,
        backend: BaseBackend,
        on_change: SessionCallback | None = None,
    ) -> None:
        self.backend = backend
        self.loading = True
        self.session: AuthSession | None = None
        self._on_change = on_change
        self._subscription: Subscription | None = None

    @property
    def authenticated(self) -> bool:
        """True once a session is known."""
        return self.session is not None

    async def start(self) -> AuthSession | None:
        """Subscribe to changes, then resolve the initial snapshot."""
        if self._subscription is None:
            self._subscription = self.backend.on_auth_state_change(
                self._handle_change
            )
        try:
            session = await asyncio.to_thread(self.backend.get_session)
        except BackendError as exc:
            logger.warning(
                "Initial session check failed, treating as signed out: %s",
                exc,
            )
            session = None
        logger.info(
            "Initial session check: %s",
            "user logged in" if session else "no user",
        )
        self._handle_change(AuthEvent.INITIAL_SESSION, session)
        return session

    def _handle_change(
        self, event: AuthEvent, session: AuthSession | None,
    ) -> None:
        self.session = session
        self.loading = False
        if self._on_change is not None:
            self._on_change(event, session)

    async def sign_out(self) -> Notice:
        """Sign out; the notification, not this call, flips the view."""
        try:
            await asyncio.to_thread(self.backend.sign_out)
        except BackendError as exc:
            logger.error("Sign-out failed: %s", exc)
            return Notice(
                "Error", str(exc) or "Failed to log out", "error",
            )
        return Notice(
            "Logged out successfully",
            "You have been logged out of your account.",
        )

    def close(self) -> None:
        """Cancel the backend registration. Safe to call twice."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
            logger.debug("Session provider unsubscribed")
