# tests/test_supabase_backend.py

"""Tests for the Supabase backend with a mocked client library."""

import tempfile
import threading
import time
import unittest
from pathlib import Path
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock, patch

import httpx
from postgrest import APIError
from supabase_auth.errors import AuthApiError

from src.backend.errors import BackendError
from src.backend.supabase_backend import SupabaseBackend, to_auth_session
from src.models.auth_session import AuthEvent, AuthSession
from src.storage.session_store import FileSessionStorage

_URL = "https://demo.supabase.co"


def _lib_session(
    email: str = "ana@example.com",
    token: str = "at-1",
    expires_at: int | None = 1_900_000_000,
) -> SimpleNamespace:
    """A stand-in for the library's session object."""
    return SimpleNamespace(
        access_token=token,
        refresh_token="rt-1",
        expires_at=expires_at,
        expires_in=3600,
        user=SimpleNamespace(id="u1", email=email),
    )


class _BackendMixin:
    """Build a backend around a mocked ``supabase`` client."""

    backend: SupabaseBackend
    client: MagicMock
    events: list[tuple[AuthEvent, AuthSession | None]]

    def _setup_backend(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.storage = FileSessionStorage(Path(self._tmp.name) / "s.json")
        self.client = MagicMock()
        self.client.auth.get_session.return_value = None
        patcher = patch(
            "src.backend.supabase_backend.create_client",
            return_value=self.client,
        )
        self.create_client = patcher.start()
        self._patcher = patcher
        self.backend = SupabaseBackend(
            url=_URL + "/", anon_key="anon-key", storage=self.storage,
        )
        self.events = []
        self.backend.on_auth_state_change(
            lambda event, session: self.events.append((event, session))
        )

    def _teardown_backend(self) -> None:
        self._patcher.stop()
        self._tmp.cleanup()

    def _library_emit(self, event: str, session: Any) -> None:
        """Fire a notification the way the auth client does."""
        relay = self.client.auth.on_auth_state_change.call_args.args[0]
        relay(event, session)


class TestClientSetup(_BackendMixin, unittest.TestCase):
    """Lazy client creation and options."""

    def setUp(self) -> None:
        self._setup_backend()

    def tearDown(self) -> None:
        self._teardown_backend()

    def test_client_created_once_with_file_storage(self) -> None:
        self.backend.get_session()
        self.backend.get_session()

        self.create_client.assert_called_once()
        url, key, options = self.create_client.call_args.args
        self.assertEqual((url, key), (_URL, "anon-key"))
        self.assertIs(options.storage, self.storage)
        self.assertTrue(options.persist_session)

    def test_missing_url_raises(self) -> None:
        backend = SupabaseBackend(url="", anon_key="", storage=self.storage)
        with self.assertRaises(BackendError) as ctx:
            backend.select("products")
        self.assertIn("SUPABASE_URL", str(ctx.exception))

    def test_client_creation_failure_wrapped(self) -> None:
        self.create_client.side_effect = ValueError("Invalid API key")
        backend = SupabaseBackend(
            url=_URL, anon_key="bad", storage=self.storage,
        )
        with self.assertRaises(BackendError) as ctx:
            backend.get_session()
        self.assertEqual(str(ctx.exception), "Invalid API key")

    def test_close_stops_relay(self) -> None:
        self.backend.get_session()
        relay = self.client.auth.on_auth_state_change.return_value
        self.backend.close()
        self.backend.close()
        relay.unsubscribe.assert_called_once_with()


class TestSupabaseAuth(_BackendMixin, unittest.TestCase):
    """Sign-in, sign-up, session check and sign-out."""

    def setUp(self) -> None:
        self._setup_backend()

    def tearDown(self) -> None:
        self._teardown_backend()

    def test_sign_in_with_password(self) -> None:
        self.client.auth.sign_in_with_password.return_value = (
            SimpleNamespace(session=_lib_session())
        )
        session = self.backend.sign_in("ana@example.com", "pw")

        self.client.auth.sign_in_with_password.assert_called_once_with(
            {"email": "ana@example.com", "password": "pw"}
        )
        self.assertEqual(session.email, "ana@example.com")
        self.assertEqual(session.access_token, "at-1")
        self.assertEqual(session.expires_at, 1_900_000_000.0)

    def test_sign_in_rejected_raises_server_message(self) -> None:
        self.client.auth.sign_in_with_password.side_effect = AuthApiError(
            "Invalid login credentials", 400, "invalid_credentials",
        )
        with self.assertRaises(BackendError) as ctx:
            self.backend.sign_in("ana@example.com", "wrong")
        self.assertEqual(str(ctx.exception), "Invalid login credentials")
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.code, "invalid_credentials")

    def test_network_error_wrapped(self) -> None:
        self.client.auth.sign_in_with_password.side_effect = (
            httpx.ConnectError("connection refused")
        )
        with self.assertRaises(BackendError) as ctx:
            self.backend.sign_in("ana@example.com", "pw")
        self.assertTrue(str(ctx.exception).startswith("Network error"))
        self.assertIsNone(ctx.exception.status_code)

    def test_sign_up_passes_metadata(self) -> None:
        self.client.auth.sign_up.return_value = SimpleNamespace(
            session=None, user=SimpleNamespace(id="u2"),
        )
        result = self.backend.sign_up(
            "new@example.com", "pw", {"id": "emp-1", "market": "retail"},
        )

        self.assertIsNone(result)
        self.client.auth.sign_up.assert_called_once_with({
            "email": "new@example.com",
            "password": "pw",
            "options": {"data": {"id": "emp-1", "market": "retail"}},
        })

    def test_sign_up_with_session(self) -> None:
        self.client.auth.sign_up.return_value = SimpleNamespace(
            session=_lib_session("new@example.com"),
        )
        session = self.backend.sign_up("new@example.com", "pw")
        self.assertIsNotNone(session)
        assert session is not None
        self.assertEqual(session.email, "new@example.com")

    def test_get_session_signed_out(self) -> None:
        self.assertIsNone(self.backend.get_session())

    def test_get_session_converts_library_session(self) -> None:
        self.client.auth.get_session.return_value = _lib_session()
        session = self.backend.get_session()
        self.assertEqual(session, AuthSession(
            "at-1", "rt-1", 1_900_000_000.0, "u1", "ana@example.com",
        ))

    def test_rejected_refresh_signs_out_locally(self) -> None:
        self.client.auth.get_session.side_effect = AuthApiError(
            "Invalid Refresh Token: Already Used", 400,
            "refresh_token_already_used",
        )
        with self.assertRaises(BackendError) as ctx:
            self.backend.get_session()
        self.assertIn("Refresh Token", str(ctx.exception))
        self.client.auth.sign_out.assert_called_once_with({"scope": "local"})

    def test_session_check_network_error_keeps_session(self) -> None:
        self.client.auth.get_session.side_effect = httpx.ReadTimeout("slow")
        with self.assertRaises(BackendError):
            self.backend.get_session()
        self.client.auth.sign_out.assert_not_called()

    def test_sign_out(self) -> None:
        self.backend.sign_out()
        self.client.auth.sign_out.assert_called_once_with()

    def test_sign_out_failure_wrapped(self) -> None:
        self.client.auth.sign_out.side_effect = httpx.ConnectError("down")
        with self.assertRaises(BackendError):
            self.backend.sign_out()


class TestSessionConversion(unittest.TestCase):
    """Library session to application model."""

    def test_none(self) -> None:
        self.assertIsNone(to_auth_session(None))

    def test_expires_in_fallback(self) -> None:
        before = time.time()
        session = to_auth_session(_lib_session(expires_at=None))
        assert session is not None
        self.assertGreaterEqual(session.expires_at, before + 3600)

    def test_missing_user(self) -> None:
        raw = _lib_session()
        raw.user = None
        session = to_auth_session(raw)
        assert session is not None
        self.assertEqual((session.user_id, session.email), ("", ""))


class TestSupabaseStore(_BackendMixin, unittest.TestCase):
    """Select and insert through the query builder."""

    def setUp(self) -> None:
        self._setup_backend()

    def tearDown(self) -> None:
        self._teardown_backend()

    def test_select_orders_ascending(self) -> None:
        query = self.client.table.return_value.select.return_value
        query.order.return_value.execute.return_value = SimpleNamespace(
            data=[{"id": 1, "name": "Widget"}],
        )
        rows = self.backend.select("products", "*", "name", True)

        self.assertEqual(rows, [{"id": 1, "name": "Widget"}])
        self.client.table.assert_called_once_with("products")
        self.client.table.return_value.select.assert_called_once_with("*")
        query.order.assert_called_once_with("name", desc=False)

    def test_select_descending(self) -> None:
        query = self.client.table.return_value.select.return_value
        query.order.return_value.execute.return_value = SimpleNamespace(
            data=[],
        )
        self.backend.select("prices", "*", "recorded_at", False)
        query.order.assert_called_once_with("recorded_at", desc=True)

    def test_select_without_order(self) -> None:
        query = self.client.table.return_value.select.return_value
        query.execute.return_value = SimpleNamespace(data=None)
        self.assertEqual(self.backend.select("suppliers"), [])
        query.order.assert_not_called()

    def test_select_uses_session_token(self) -> None:
        self.client.auth.get_session.return_value = _lib_session(token="at-9")
        self.backend.select("products")
        self.client.postgrest.auth.assert_called_once_with("at-9")

    def test_signed_out_select_keeps_anon_key(self) -> None:
        self.backend.select("products")
        self.client.postgrest.auth.assert_not_called()

    def test_insert_returns_created_rows(self) -> None:
        created = [{"id": 7, "product_id": 1, "supplier_id": 2, "price": 3.5}]
        builder = self.client.table.return_value.insert.return_value
        builder.execute.return_value = SimpleNamespace(data=created)

        rows = [{"product_id": 1, "supplier_id": 2, "price": 3.5}]
        self.assertEqual(self.backend.insert("prices", rows), created)
        self.client.table.return_value.insert.assert_called_once_with(rows)

    def test_insert_constraint_violation(self) -> None:
        builder = self.client.table.return_value.insert.return_value
        builder.execute.side_effect = APIError({
            "message": 'insert or update on table "prices" violates '
                       'foreign key constraint "prices_product_id_fkey"',
            "code": "23503",
            "hint": None,
            "details": None,
        })
        with self.assertRaises(BackendError) as ctx:
            self.backend.insert("prices", [{"product_id": 99}])
        self.assertEqual(ctx.exception.code, "23503")
        self.assertIn("foreign key", str(ctx.exception))

    def test_select_network_error(self) -> None:
        query = self.client.table.return_value.select.return_value
        query.execute.side_effect = httpx.ConnectTimeout("timed out")
        with self.assertRaises(BackendError) as ctx:
            self.backend.select("products")
        self.assertIn("timed out", str(ctx.exception))


class TestConcurrentSessionChecks(_BackendMixin, unittest.TestCase):
    """Parallel reads never refresh the same session twice at once."""

    def setUp(self) -> None:
        self._setup_backend()

    def tearDown(self) -> None:
        self._teardown_backend()

    def test_session_checks_are_serialised(self) -> None:
        active = 0
        overlap: list[int] = []
        guard = threading.Lock()

        def slow_get_session() -> SimpleNamespace:
            nonlocal active
            with guard:
                active += 1
                overlap.append(active)
            time.sleep(0.05)
            with guard:
                active -= 1
            return _lib_session()

        self.client.auth.get_session.side_effect = slow_get_session
        errors: list[Exception] = []

        def read() -> None:
            try:
                self.backend.select("products")
            except Exception as exc:
                errors.append(exc)

        threads = [threading.Thread(target=read) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(errors, [])
        self.assertEqual(self.client.auth.get_session.call_count, 4)
        self.assertEqual(max(overlap), 1)


class TestAuthListeners(_BackendMixin, unittest.TestCase):
    """Library notifications reach registered listeners."""

    def setUp(self) -> None:
        self._setup_backend()
        self.backend.get_session()

    def tearDown(self) -> None:
        self._teardown_backend()

    def test_signed_in_relayed(self) -> None:
        self._library_emit("SIGNED_IN", _lib_session())
        self.assertEqual(len(self.events), 1)
        event, session = self.events[0]
        self.assertEqual(event, AuthEvent.SIGNED_IN)
        assert session is not None
        self.assertEqual(session.email, "ana@example.com")

    def test_signed_out_relayed(self) -> None:
        self._library_emit("SIGNED_OUT", None)
        self.assertEqual(self.events, [(AuthEvent.SIGNED_OUT, None)])

    def test_token_refresh_relayed(self) -> None:
        self._library_emit("TOKEN_REFRESHED", _lib_session(token="at-2"))
        event, session = self.events[0]
        self.assertEqual(event, AuthEvent.TOKEN_REFRESHED)
        assert session is not None
        self.assertEqual(session.access_token, "at-2")

    def test_unmapped_event_ignored(self) -> None:
        self._library_emit("PASSWORD_RECOVERY", _lib_session())
        self.assertEqual(self.events, [])

    def test_unsubscribe_stops_delivery(self) -> None:
        extra: list[AuthEvent] = []
        sub = self.backend.on_auth_state_change(
            lambda event, session: extra.append(event)
        )
        self.assertEqual(self.backend.listener_count, 2)
        sub.unsubscribe()
        sub.unsubscribe()
        self.assertFalse(sub.active)
        self.assertEqual(self.backend.listener_count, 1)

        self._library_emit("SIGNED_OUT", None)
        self.assertEqual(extra, [])
        self.assertEqual(len(self.events), 1)

    def test_failing_listener_does_not_block_others(self) -> None:
        def boom(event: AuthEvent, session: AuthSession | None) -> None:
            raise RuntimeError("listener bug")

        late: list[AuthEvent] = []
        self.backend.on_auth_state_change(boom)
        self.backend.on_auth_state_change(
            lambda event, session: late.append(event)
        )
        with self.assertLogs("price_tracker.backend", "ERROR"):
            self._library_emit("SIGNED_OUT", None)
        self.assertEqual(late, [AuthEvent.SIGNED_OUT])


if __name__ == "__main__":
    unittest.main()
