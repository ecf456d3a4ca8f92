# src/models/supplier.py

"""Supplier reference data."""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Supplier:
    """A supplier row from the ``suppliers`` table (read-only here)."""

    id: int
    name: str
    contact_info: str = ""

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Supplier":
        """Build a Supplier from a store row."""
        return cls(
            id=int(row["id"]),
            name=str(row.get("name") or ""),
            contact_info=str(row.get("contact_info") or ""),
        )
