# src/models/query_state.py

"""Tagged result states for cached reads.

Views consume these with ``match`` so that exactly one of
loading / error / empty / data is rendered.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Pending:
    """The read has been issued and has not settled."""


@dataclass(frozen=True)
class Failed:
    """The read failed; *reason* is the collaborator's message."""

    reason: str


@dataclass(frozen=True)
class Ready(Generic[T]):
    """The read succeeded with *data*."""

    data: T


QueryState = Pending | Failed | Ready[Any]


class ViewKind(Enum):
    """The single affordance a reader view shows for a state."""

    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    DATA = "data"


def view_kind(state: QueryState) -> ViewKind:
    """Map a state to the one affordance that should be visible."""
    match state:
        case Pending():
            return ViewKind.LOADING
        case Failed():
            return ViewKind.ERROR
        case Ready(data=data) if not data:
            return ViewKind.EMPTY
        case Ready():
            return ViewKind.DATA
    raise TypeError(f"Unknown query state: {state!r}")
