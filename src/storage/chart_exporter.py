# src/storage/chart_exporter.py

"""Generate interactive Plotly HTML charts of recorded prices."""

import importlib
import logging
import webbrowser
from datetime import datetime
from pathlib import Path
from types import ModuleType
from typing import Any

from src.config.settings import Settings
from src.models.price_record import TrendPoint

logger = logging.getLogger("price_tracker.chart")

_CHARTS_DIR: Path = Settings.CHARTS_DIR


def _get_plotly_go() -> ModuleType:
    """Import plotly.graph_objects lazily."""
    return importlib.import_module("plotly.graph_objects")


def _ensure_charts_dir() -> Path:
    """Create charts directory if it doesn't exist."""
    _CHARTS_DIR.mkdir(parents=True, exist_ok=True)
    return _CHARTS_DIR


def build_trend_figure(points: list[TrendPoint]) -> Any:
    """Line chart of price against display date, in fetch order.

    The x axis is categorical so several observations on the same
    calendar date stay separate points in recording order.
    """
    go = _get_plotly_go()
    positions = list(range(len(points)))
    prices = [p.price for p in points]

    fig: Any = go.Figure()
    fig.add_trace(go.Scatter(
        x=positions,
        y=prices,
        mode="lines+markers",
        name="Price",
        customdata=[
            [p.display_date, p.product, p.supplier] for p in points
        ],
        hovertemplate=(
            "%{customdata[0]}<br>"
            "%{customdata[1]} @ %{customdata[2]}<br>"
            f"Price: {Settings.CURRENCY_SYMBOL}%{{y:.2f}}"
            "<extra></extra>"
        ),
    ))
    fig.update_layout(
        title="Price Trends Over Time",
        xaxis={
            "title": "Date",
            "tickmode": "array",
            "tickvals": positions,
            "ticktext": [p.display_date for p in points],
        },
        yaxis_title="Price",
        hovermode="closest",
        template="plotly_white",
    )
    return fig


def export_trend_chart(
    points: list[TrendPoint],
    open_browser: bool = True,
) -> Path | None:
    """Write the time-series chart as HTML; ``None`` when empty."""
    if not points:
        logger.warning("No price data available for a trend chart")
        return None

    fig = build_trend_figure(points)

    charts_dir = _ensure_charts_dir()
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = charts_dir / f"price_trends_{stamp}.html"
    fig.write_html(str(filepath))
    logger.info("Trend chart with %d points saved to %s", len(points), filepath)

    if open_browser:
        webbrowser.open(filepath.as_uri())

    return filepath
