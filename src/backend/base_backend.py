# src/backend/base_backend.py

"""Abstract interface to the managed backend (auth + relational store)."""

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from src.models.auth_session import AuthEvent, AuthSession

AuthListener = Callable[[AuthEvent, AuthSession | None], None]

logger = logging.getLogger("price_tracker.backend")


class Subscription:
    """Cancellation handle returned by ``on_auth_state_change``."""

    def __init__(self, cancel: Callable[[], None]) -> None:
        self._cancel: Callable[[], None] | None = cancel

    @property
    def active(self) -> bool:
        """False once :meth:`unsubscribe` has run."""
        return self._cancel is not None

    def unsubscribe(self) -> None:
        """Stop delivering notifications. Safe to call twice."""
        if self._cancel is not None:
            self._cancel()
            self._cancel = None


class BaseBackend(ABC):
    """Auth and store operations consumed by the application.

    Concrete backends implement the network calls; session-change
    fan-out lives here so every backend notifies the same way.
    """

    def __init__(self) -> None:
        self._listeners: dict[int, AuthListener] = {}
        self._listener_ids = itertools.count(1)
        self._listener_lock = threading.Lock()

    # ── Session notifications ────────────────────────────

    def on_auth_state_change(
        self, callback: AuthListener,
    ) -> Subscription:
        """Register *callback* for session changes."""
        with self._listener_lock:
            listener_id = next(self._listener_ids)
            self._listeners[listener_id] = callback

        def cancel() -> None:
            with self._listener_lock:
                self._listeners.pop(listener_id, None)
            logger.debug("Auth listener %d removed", listener_id)

        logger.debug("Auth listener %d registered", listener_id)
        return Subscription(cancel)

    def close(self) -> None:
        """Release network resources. Nothing to do by default."""

    @property
    def listener_count(self) -> int:
        """Number of live session-change registrations."""
        with self._listener_lock:
            return len(self._listeners)

    def _emit(
        self, event: AuthEvent, session: AuthSession | None,
    ) -> None:
        """Deliver *event* to every registered listener."""
        with self._listener_lock:
            listeners = list(self._listeners.values())
        logger.info(
            "Auth state changed: %s (%s)",
            event.value,
            "session" if session else "no session",
        )
        for listener in listeners:
            try:
                listener(event, session)
            except Exception:
                logger.error(
                    "Auth listener failed for %s",
                    event.value,
                    exc_info=True,
                )

    # ── Auth ─────────────────────────────────────────────

    @abstractmethod
    def get_session(self) -> AuthSession | None:
        """Return the current session, or ``None`` when signed out."""
        ...

    @abstractmethod
    def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password."""
        ...

    @abstractmethod
    def sign_up(
        self,
        email: str,
        password: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuthSession | None:
        """Create an account.

        Returns ``None`` when the account needs email confirmation
        before a session is issued.
        """
        ...

    @abstractmethod
    def sign_out(self) -> None:
        """End the current session."""
        ...

    # ── Store ────────────────────────────────────────────

    @abstractmethod
    def select(
        self,
        table: str,
        columns: str = "*",
        order_by: str | None = None,
        ascending: bool = True,
    ) -> list[dict[str, Any]]:
        """Return every row of *table*, optionally ordered."""
        ...

    @abstractmethod
    def insert(
        self, table: str, rows: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Insert *rows* into *table* and return the created rows."""
        ...
