# src/backend/supabase_backend.py

"""Supabase backend built on the ``supabase`` client library."""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

import httpx
from postgrest import APIError
from supabase import Client, ClientOptions, create_client
from supabase_auth.errors import AuthApiError, AuthError

from src.backend.base_backend import BaseBackend
from src.backend.errors import BackendError
from src.config.settings import Settings
from src.models.auth_session import AuthEvent, AuthSession
from src.storage.session_store import FileSessionStorage

logger = logging.getLogger("price_tracker.supabase")


def to_auth_session(session: Any) -> AuthSession | None:
    """Convert a library session into the application's model."""
    if session is None:
        return None
    user = session.user
    expires_at = session.expires_at
    if expires_at is None:
        expires_at = time.time() + float(session.expires_in or 3600)
    return AuthSession(
        access_token=str(session.access_token),
        refresh_token=str(session.refresh_token or ""),
        expires_at=float(expires_at),
        user_id=str(user.id) if user is not None else "",
        email=str(user.email or "") if user is not None else "",
    )


def to_backend_error(exc: Exception) -> BackendError:
    """Map a library or transport failure onto :class:`BackendError`."""
    if isinstance(exc, APIError):
        code = str(exc.code) if exc.code is not None else None
        return BackendError(exc.message or str(exc), code=code)
    if isinstance(exc, AuthError):
        return BackendError(
            exc.message or str(exc),
            status_code=getattr(exc, "status", None),
            code=getattr(exc, "code", None),
        )
    return BackendError(f"Network error: {exc}")


class SupabaseBackend(BaseBackend):
    """Blocking Supabase client; call from ``asyncio.to_thread``.

    The library owns token refresh and session persistence.  Auth
    calls are serialised so concurrent readers never present the
    same refresh token twice.  No request is retried.
    """

    def __init__(
        self,
        url: str | None = None,
        anon_key: str | None = None,
        storage: FileSessionStorage | None = None,
    ) -> None:
        super().__init__()
        self.settings = Settings()
        base_url = url if url is not None else self.settings.SUPABASE_URL
        self.url = base_url.rstrip("/")
        self.anon_key = (
            anon_key if anon_key is not None
            else self.settings.SUPABASE_ANON_KEY
        )
        self.storage = storage or FileSessionStorage()
        self._client: Client | None = None
        self._client_lock = threading.Lock()
        self._auth_lock = threading.RLock()
        self._relay: Any = None

    # ── Client plumbing ──────────────────────────────────

    def _get_client(self) -> Client:
        """Create the library client on first use."""
        with self._client_lock:
            if self._client is not None:
                return self._client
            if not self.url:
                raise BackendError(
                    "Backend URL is not configured (set SUPABASE_URL)"
                )
            options = ClientOptions(
                auto_refresh_token=False,
                persist_session=True,
                storage=self.storage,
                postgrest_client_timeout=self.settings.REQUEST_TIMEOUT,
            )
            try:
                client = create_client(self.url, self.anon_key, options)
            except Exception as exc:
                logger.error("Could not create Supabase client: %s", exc)
                raise BackendError(str(exc)) from exc
            self._relay = client.auth.on_auth_state_change(
                self._relay_auth_change
            )
            self._client = client
            logger.debug("Supabase client created for %s", self.url)
            return client

    def _relay_auth_change(self, event: str, session: Any) -> None:
        """Forward a library notification to registered listeners."""
        try:
            auth_event = AuthEvent(event)
        except ValueError:
            logger.debug("Ignoring auth event %s", event)
            return
        self._emit(auth_event, to_auth_session(session))

    def _call(self, action: str, fn: Callable[..., Any], *args: Any) -> Any:
        """Run one library call, converting its failures."""
        try:
            return fn(*args)
        except (APIError, AuthError, httpx.HTTPError) as exc:
            error = to_backend_error(exc)
            logger.warning("%s failed: %s", action, error.message)
            raise error from exc

    def _authorize(self, client: Client) -> None:
        """Send store requests with the signed-in user's token."""
        session = self._library_session(client)
        if session is not None:
            client.postgrest.auth(session.access_token)

    def _library_session(self, client: Client) -> Any:
        """Current library session, refreshed by the library if expired.

        A rejected refresh forgets the local session, which notifies
        listeners with ``SIGNED_OUT``.
        """
        with self._auth_lock:
            try:
                return client.auth.get_session()
            except AuthApiError as exc:
                logger.warning(
                    "Session refresh failed, signing out locally: %s",
                    exc.message,
                )
                self._call(
                    "Local sign-out", client.auth.sign_out, {"scope": "local"},
                )
                raise to_backend_error(exc) from exc
            except (AuthError, httpx.HTTPError) as exc:
                error = to_backend_error(exc)
                logger.warning("Session check failed: %s", error.message)
                raise error from exc

    def close(self) -> None:
        """Stop relaying library notifications."""
        if self._relay is not None:
            self._relay.unsubscribe()
            self._relay = None

    # ── Auth ─────────────────────────────────────────────

    def get_session(self) -> AuthSession | None:
        """Return the persisted session, refreshed when expired."""
        return to_auth_session(self._library_session(self._get_client()))

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Password sign-in."""
        client = self._get_client()
        with self._auth_lock:
            response = self._call(
                "Sign-in",
                client.auth.sign_in_with_password,
                {"email": email, "password": password},
            )
        session = to_auth_session(response.session)
        if session is None:
            raise BackendError("Sign-in returned no session")
        logger.info("Signed in as %s", session.email or email)
        return session

    def sign_up(
        self,
        email: str,
        password: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuthSession | None:
        """Create an account; ``None`` when confirmation is pending."""
        client = self._get_client()
        with self._auth_lock:
            response = self._call(
                "Sign-up",
                client.auth.sign_up,
                {
                    "email": email,
                    "password": password,
                    "options": {"data": metadata or {}},
                },
            )
        session = to_auth_session(response.session)
        if session is None:
            logger.info("Account %s created, awaiting confirmation", email)
        return session

    def sign_out(self) -> None:
        """Revoke the session server-side, then forget it locally."""
        client = self._get_client()
        with self._auth_lock:
            self._call("Sign-out", client.auth.sign_out)

    # ── Store ────────────────────────────────────────────

    def select(
        self,
        table: str,
        columns: str = "*",
        order_by: str | None = None,
        ascending: bool = True,
    ) -> list[dict[str, Any]]:
        """Return every row of *table*."""
        client = self._get_client()
        self._authorize(client)
        query = client.table(table).select(columns)
        if order_by:
            query = query.order(order_by, desc=not ascending)
        response = self._call(f"Select from {table}", query.execute)
        rows: list[dict[str, Any]] = (
            response.data if isinstance(response.data, list) else []
        )
        logger.debug("Selected %d rows from %s", len(rows), table)
        return rows

    def insert(
        self, table: str, rows: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Insert *rows* into *table* and return the created rows."""
        client = self._get_client()
        self._authorize(client)
        query = client.table(table).insert(rows)
        response = self._call(f"Insert into {table}", query.execute)
        created: list[dict[str, Any]] = (
            response.data if isinstance(response.data, list) else []
        )
        logger.info("Inserted %d rows into %s", len(created), table)
        return created
