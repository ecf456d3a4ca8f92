# src/models/product.py

"""Catalog product reference data."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Product:
    """A product row from the ``products`` table (read-only here)."""

    id: int
    name: str
    unit: str = ""

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Product":
        """Build a Product from a store row."""
        return cls(
            id=int(row["id"]),
            name=str(row.get("name") or ""),
            unit=str(row.get("unit") or ""),
        )

    @property
    def label(self) -> str:
        """Selection label, e.g. ``Rice (kg)``."""
        return f"{self.name} ({self.unit})" if self.unit else self.name
