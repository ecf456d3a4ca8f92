# src/ui/widgets.py

"""Small helpers shared by the dashboard views."""

from textual.app import App
from textual.widgets import Select

from src.models.notice import Notice


def select_value(select: Select[str]) -> str:
    """Selected value, or ``""`` while the prompt is showing."""
    value = select.value
    return value if isinstance(value, str) else ""


def show_notice(app: App[object], notice: Notice) -> None:
    """Raise a toast for *notice*."""
    app.notify(notice.message, title=notice.title, severity=notice.severity)
