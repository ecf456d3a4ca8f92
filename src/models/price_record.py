# src/models/price_record.py

"""Price observation models for recording and trend display."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class NewPriceObservation:
    """A validated observation ready to insert into ``prices``."""

    product_id: int
    supplier_id: int
    price: float

    def to_row(self) -> dict[str, Any]:
        """Serialise to the insert payload."""
        return {
            "product_id": self.product_id,
            "supplier_id": self.supplier_id,
            "price": self.price,
        }


def _joined_name(value: object) -> str | None:
    """Extract ``name`` from an embedded ``{"name": ...}`` join."""
    if isinstance(value, dict):
        name = value.get("name")
        return str(name) if name else None
    return None


@dataclass(frozen=True)
class PriceRecord:
    """A stored price observation joined with product/supplier names."""

    id: int
    product_id: int
    supplier_id: int
    price: float
    recorded_at: datetime
    product_name: str | None = None
    supplier_name: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "PriceRecord":
        """Build a PriceRecord from a ``prices`` row with embedded joins."""
        return cls(
            id=int(row["id"]),
            product_id=int(row["product_id"]),
            supplier_id=int(row["supplier_id"]),
            price=float(row["price"]),
            recorded_at=datetime.fromisoformat(str(row["recorded_at"])),
            product_name=_joined_name(row.get("products")),
            supplier_name=_joined_name(row.get("suppliers")),
        )


@dataclass(frozen=True)
class TrendPoint:
    """One point of the price time-series chart."""

    display_date: str
    price: float
    product: str
    supplier: str


@dataclass(frozen=True)
class RecentRow:
    """One row of the recent-records table, already formatted."""

    date: str
    product: str
    supplier: str
    price: str
