# src/services/reference_readers.py

"""Cached readers for the product catalog and supplier list."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from src.backend.base_backend import BaseBackend
from src.backend.errors import BackendError
from src.config.settings import Settings
from src.models.product import Product
from src.models.query_state import Failed, QueryState, Ready
from src.models.supplier import Supplier
from src.storage.query_cache import QueryCache

logger = logging.getLogger("price_tracker.readers")

RowT = TypeVar("RowT")


class ReferenceReader(Generic[RowT]):
    """Reads every row of a reference table ordered by name.

    Results are shared through the query cache under ``query_key``,
    so the listing view and the price form reuse a single fetch.
    """

    def __init__(
        self,
        backend: BaseBackend,
        cache: QueryCache,
        table: str,
        query_key: str,
        parse: Callable[[dict[str, Any]], RowT],
    ) -> None:
        self.backend = backend
        self.cache = cache
        self.table = table
        self.query_key = query_key
        self._parse = parse

    async def _load(self) -> list[RowT]:
        rows = await asyncio.to_thread(
            self.backend.select, self.table, "*", "name", True,
        )
        return [self._parse(row) for row in rows]

    async def read(self) -> QueryState:
        """Fetch (or reuse) the rows and wrap the outcome."""
        try:
            items: list[RowT] = await self.cache.fetch(
                self.query_key, self._load,
            )
        except BackendError as exc:
            logger.error("Failed to read %s: %s", self.table, exc)
            return Failed(reason=str(exc))
        except (KeyError, TypeError, ValueError) as exc:
            logger.error(
                "Malformed %s row: %s", self.table, exc, exc_info=True,
            )
            return Failed(reason=f"Malformed {self.table} data: {exc}")
        logger.debug("Read %d %s", len(items), self.table)
        return Ready(data=items)


class CatalogReader(ReferenceReader[Product]):
    """Products ordered by name."""

    def __init__(self, backend: BaseBackend, cache: QueryCache) -> None:
        super().__init__(
            backend,
            cache,
            Settings.PRODUCTS_TABLE,
            Settings.PRODUCTS_KEY,
            Product.from_row,
        )


class SupplierReader(ReferenceReader[Supplier]):
    """Suppliers ordered by name."""

    def __init__(self, backend: BaseBackend, cache: QueryCache) -> None:
        super().__init__(
            backend,
            cache,
            Settings.SUPPLIERS_TABLE,
            Settings.SUPPLIERS_KEY,
            Supplier.from_row,
        )
