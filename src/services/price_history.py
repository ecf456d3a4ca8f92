# src/services/price_history.py

"""Price history reads and the two views derived from them.

One fetch of all observations (oldest first) feeds both:

- the time series, every record in fetch order, for charting;
- the recent-records table, the last ``RECENT_RECORDS_LIMIT``
  records presented newest first.
"""

import asyncio
import logging
from datetime import datetime

from src.backend.base_backend import BaseBackend
from src.backend.errors import BackendError
from src.config.settings import Settings
from src.models.price_record import PriceRecord, RecentRow, TrendPoint
from src.models.query_state import Failed, QueryState, Ready
from src.storage.query_cache import QueryCache

logger = logging.getLogger("price_tracker.price_history")

_JOINED_COLUMNS = "*,products(name),suppliers(name)"
_MISSING = "N/A"


def format_display_date(moment: datetime) -> str:
    """Locale calendar date of *moment* in local time."""
    return moment.astimezone().strftime("%x")


def format_price(price: float) -> str:
    """Price with exactly two decimals."""
    return f"{price:.2f}"


def build_time_series(records: list[PriceRecord]) -> list[TrendPoint]:
    """Map every record to a chart point, keeping fetch order."""
    return [
        TrendPoint(
            display_date=format_display_date(r.recorded_at),
            price=r.price,
            product=r.product_name or "Unknown Product",
            supplier=r.supplier_name or "Unknown Supplier",
        )
        for r in records
    ]


def recent_records(
    records: list[PriceRecord],
    limit: int | None = None,
) -> list[RecentRow]:
    """Last *limit* records of the ascending sequence, newest first."""
    count = limit if limit is not None else Settings.RECENT_RECORDS_LIMIT
    if count <= 0:
        return []
    tail = records[-count:]
    return [
        RecentRow(
            date=format_display_date(r.recorded_at),
            product=r.product_name or _MISSING,
            supplier=r.supplier_name or _MISSING,
            price=format_price(r.price),
        )
        for r in reversed(tail)
    ]


class PriceHistoryReader:
    """Reads all price observations joined with product/supplier names."""

    def __init__(self, backend: BaseBackend, cache: QueryCache) -> None:
        self.backend = backend
        self.cache = cache

    async def _load(self) -> list[PriceRecord]:
        rows = await asyncio.to_thread(
            self.backend.select,
            Settings.PRICES_TABLE,
            _JOINED_COLUMNS,
            "recorded_at",
            True,
        )
        return [PriceRecord.from_row(row) for row in rows]

    async def read(self) -> QueryState:
        """Fetch (or reuse) the ascending history and wrap the outcome."""
        try:
            records: list[PriceRecord] = await self.cache.fetch(
                Settings.PRICE_TRENDS_KEY, self._load,
            )
        except BackendError as exc:
            logger.error("Failed to read price history: %s", exc)
            return Failed(reason=str(exc))
        except (KeyError, TypeError, ValueError) as exc:
            logger.error(
                "Malformed price row: %s", exc, exc_info=True,
            )
            return Failed(reason=f"Malformed price data: {exc}")
        logger.debug("Read %d price records", len(records))
        return Ready(data=records)
