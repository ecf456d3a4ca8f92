# src/models/notice.py

"""Transient user-facing notices (toasts)."""

from dataclasses import dataclass
from typing import Literal

Severity = Literal["information", "warning", "error"]


@dataclass(frozen=True)
class Notice:
    """A short message for the user, shown via ``App.notify``."""

    title: str
    message: str
    severity: Severity = "information"

    @property
    def is_error(self) -> bool:
        """True for validation warnings and collaborator errors."""
        return self.severity != "information"
