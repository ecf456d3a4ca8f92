# src/services/price_recorder.py

"""Compose, validate and submit new price observations."""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Any

from src.backend.base_backend import BaseBackend
from src.backend.errors import BackendError
from src.config.settings import Settings
from src.models.notice import Notice
from src.models.price_record import NewPriceObservation
from src.storage.query_cache import QueryCache

logger = logging.getLogger("price_tracker.price_recorder")


@dataclass
class PriceDraft:
    """Raw form input, exactly as typed or selected."""

    product_id: str = ""
    supplier_id: str = ""
    price: str = ""


class DraftRejected(Exception):
    """A draft failed client-side validation."""

    def __init__(self, notice: Notice) -> None:
        super().__init__(notice.title)
        self.notice = notice


@dataclass
class SubmitResult:
    """Outcome of one submit attempt."""

    notice: Notice
    submitted: bool = False
    created: list[dict[str, Any]] = field(
        default_factory=lambda: list[dict[str, Any]]()
    )

    @property
    def ok(self) -> bool:
        """True when the insert was accepted by the store."""
        return self.submitted and not self.notice.is_error


def validate_draft(draft: PriceDraft) -> NewPriceObservation:
    """Check a draft and coerce it for insert.

    Checks run in order: every field present, then a finite
    positive price, then integer ids.  Raises :class:`DraftRejected` on failure.
    """
    product_id = draft.product_id.strip()
    supplier_id = draft.supplier_id.strip()
    raw_price = draft.price.strip()

    if not product_id or not supplier_id or not raw_price:
        raise DraftRejected(Notice(
            "Missing information",
            "Please fill in all fields",
            "warning",
        ))

    try:
        price = float(raw_price)
    except ValueError:
        price = math.nan
    if not math.isfinite(price) or price <= 0:
        raise DraftRejected(Notice(
            "Invalid price",
            "Please enter a valid price greater than 0",
            "warning",
        ))

    try:
        return NewPriceObservation(
            product_id=int(product_id),
            supplier_id=int(supplier_id),
            price=price,
        )
    except ValueError:
        raise DraftRejected(Notice(
            "Invalid selection",
            "Please choose a product and supplier from the lists",
            "warning",
        )) from None


class PriceRecorder:
    """Owns the price draft and is the only writer of ``prices``.

    A successful insert clears the draft and invalidates the cached
    price history; a failed one keeps the draft for a retry.
    """

    def __init__(self, backend: BaseBackend, cache: QueryCache) -> None:
        self.backend = backend
        self.cache = cache
        self.draft = PriceDraft()
        self.in_flight = False

    async def submit(self) -> SubmitResult:
        """Validate the current draft and insert it."""
        if self.in_flight:
            return SubmitResult(Notice(
                "Please wait",
                "The previous price is still being saved",
                "warning",
            ))

        try:
            observation = validate_draft(self.draft)
        except DraftRejected as rejected:
            logger.debug("Draft rejected: %s", rejected.notice.title)
            return SubmitResult(rejected.notice)

        self.in_flight = True
        try:
            created = await asyncio.to_thread(
                self.backend.insert,
                Settings.PRICES_TABLE,
                [observation.to_row()],
            )
        except BackendError as exc:
            logger.error("Price insert failed: %s", exc)
            return SubmitResult(
                Notice("Error", str(exc) or "Failed to add price", "error"),
                submitted=True,
            )
        finally:
            self.in_flight = False

        logger.info(
            "Recorded price %.2f for product %d / supplier %d",
            observation.price,
            observation.product_id,
            observation.supplier_id,
        )
        self.draft = PriceDraft()
        self.cache.invalidate(Settings.PRICE_TRENDS_KEY)
        return SubmitResult(
            Notice(
                "Price added successfully!",
                "The price has been recorded in the database.",
            ),
            submitted=True,
            created=created,
        )
