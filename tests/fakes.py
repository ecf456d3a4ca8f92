# tests/fakes.py

"""In-memory backend and helpers shared by the test modules."""

import asyncio
import copy
import itertools
import threading
import time
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from src.backend.base_backend import BaseBackend
from src.backend.errors import BackendError
from src.models.auth_session import AuthEvent, AuthSession

BASE_TIME = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)

PRODUCTS: list[dict[str, Any]] = [
    {"id": 1, "name": "Widget", "unit": "kg"},
    {"id": 2, "name": "Bolt", "unit": "box"},
]
SUPPLIERS: list[dict[str, Any]] = [
    {"id": 1, "name": "Acme", "contact_info": "sales@acme.test"},
    {"id": 2, "name": "Globex", "contact_info": ""},
]


def make_session(
    email: str = "ana@example.com", expires_in: float = 3600,
) -> AuthSession:
    """A signed-in session that expires *expires_in* seconds from now."""
    return AuthSession(
        access_token=f"access-{email}",
        refresh_token=f"refresh-{email}",
        expires_at=time.time() + expires_in,
        user_id="user-1",
        email=email,
    )


def price_row(
    row_id: int,
    product_id: int = 1,
    supplier_id: int = 1,
    price: float = 10.0,
    minutes: int = 0,
) -> dict[str, Any]:
    """A stored ``prices`` row recorded *minutes* after BASE_TIME."""
    return {
        "id": row_id,
        "product_id": product_id,
        "supplier_id": supplier_id,
        "price": price,
        "recorded_at": (BASE_TIME + timedelta(minutes=minutes)).isoformat(),
    }


class FakeBackend(BaseBackend):
    """Backend double with in-memory tables and scripted failures.

    ``fail`` maps an operation name (``sign_in``, ``select:prices``,
    ``insert:users`` ...) to the error that call raises.  Every call
    is appended to ``calls``.
    """

    def __init__(
        self,
        products: list[dict[str, Any]] | None = None,
        suppliers: list[dict[str, Any]] | None = None,
        prices: list[dict[str, Any]] | None = None,
        session: AuthSession | None = None,
        auto_confirm: bool = True,
    ) -> None:
        super().__init__()
        self.tables: dict[str, list[dict[str, Any]]] = {
            "products": copy.deepcopy(
                PRODUCTS if products is None else products
            ),
            "suppliers": copy.deepcopy(
                SUPPLIERS if suppliers is None else suppliers
            ),
            "prices": copy.deepcopy(prices or []),
            "users": [],
        }
        self.session = session
        self.auto_confirm = auto_confirm
        self.fail: dict[str, BackendError] = {}
        self.calls: list[tuple[Any, ...]] = []
        self._lock = threading.Lock()
        self._price_ids = itertools.count(
            max((r["id"] for r in self.tables["prices"]), default=0) + 1
        )

    def _record(self, op: str, *args: Any) -> None:
        with self._lock:
            self.calls.append((op, *args))
        error = self.fail.get(op)
        if error is not None:
            raise error

    def count(self, op: str, *args: Any) -> int:
        """Number of recorded calls starting with (op, *args)."""
        prefix = (op, *args)
        return sum(1 for c in self.calls if c[: len(prefix)] == prefix)

    # ── Auth ─────────────────────────────────────────────

    def get_session(self) -> AuthSession | None:
        self._record("get_session")
        return self.session

    def sign_in(self, email: str, password: str) -> AuthSession:
        self._record("sign_in", email)
        self.session = make_session(email)
        self._emit(AuthEvent.SIGNED_IN, self.session)
        return self.session

    def sign_up(
        self,
        email: str,
        password: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuthSession | None:
        self._record("sign_up", email, metadata)
        if not self.auto_confirm:
            return None
        self.session = make_session(email)
        self._emit(AuthEvent.SIGNED_IN, self.session)
        return self.session

    def sign_out(self) -> None:
        self._record("sign_out")
        self.session = None
        self._emit(AuthEvent.SIGNED_OUT, None)

    # ── Store ────────────────────────────────────────────

    def select(
        self,
        table: str,
        columns: str = "*",
        order_by: str | None = None,
        ascending: bool = True,
    ) -> list[dict[str, Any]]:
        self._record(f"select:{table}", columns, order_by, ascending)
        rows = copy.deepcopy(self.tables[table])
        if table == "prices" and "products(" in columns:
            names = {
                "products": {p["id"]: p["name"] for p in self.tables["products"]},
                "suppliers": {
                    s["id"]: s["name"] for s in self.tables["suppliers"]
                },
            }
            for row in rows:
                product = names["products"].get(row["product_id"])
                supplier = names["suppliers"].get(row["supplier_id"])
                row["products"] = {"name": product} if product else None
                row["suppliers"] = {"name": supplier} if supplier else None
        if order_by is not None:
            rows.sort(key=lambda r: r[order_by], reverse=not ascending)
        return rows

    def insert(
        self, table: str, rows: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        self._record(f"insert:{table}", copy.deepcopy(rows))
        created = []
        for row in rows:
            stored = dict(row)
            if table == "prices":
                product_ids = {p["id"] for p in self.tables["products"]}
                if stored["product_id"] not in product_ids:
                    raise BackendError(
                        'insert or update on table "prices" violates '
                        'foreign key constraint "prices_product_id_fkey"',
                        status_code=409,
                        code="23503",
                    )
                stored["id"] = next(self._price_ids)
                stored["recorded_at"] = (
                    BASE_TIME + timedelta(days=1, minutes=stored["id"])
                ).isoformat()
            self.tables[table].append(stored)
            created.append(dict(stored))
        return created


async def wait_until(
    pause: Callable[[float], Any],
    predicate: Callable[[], bool],
    timeout: float = 5.0,
) -> None:
    """Await *pause* until *predicate* holds or *timeout* elapses."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await pause(0.05)
