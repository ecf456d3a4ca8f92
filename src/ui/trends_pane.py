# src/ui/trends_pane.py

"""Price trends tab: sparkline chart plus recent-records table."""

import asyncio
import logging
from typing import cast

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import (
    Button,
    ContentSwitcher,
    DataTable,
    LoadingIndicator,
    Sparkline,
    Static,
)

from src.config.settings import Settings
from src.models.price_record import PriceRecord, TrendPoint
from src.models.query_state import Failed, Pending, QueryState, Ready
from src.services.price_history import (
    PriceHistoryReader,
    build_time_series,
    recent_records,
)
from src.storage.chart_exporter import export_trend_chart

logger = logging.getLogger("price_tracker.ui.trends")


class TrendsPane(Vertical):
    """Renders one price-history read as a chart and a table."""

    BINDINGS = [
        Binding("x", "export_chart", "Export chart"),
    ]

    def __init__(self, reader: PriceHistoryReader, **kwargs: str) -> None:
        super().__init__(**kwargs)
        self.reader = reader
        self.state: QueryState = Pending()
        self.points: list[TrendPoint] = []

    def compose(self) -> ComposeResult:
        with ContentSwitcher(initial="trends_loading", id="trends_switcher"):
            yield LoadingIndicator(id="trends_loading")
            yield Static("", id="trends_error", classes="error_text")
            with Vertical(id="trends_content"):
                yield Static("Price Trends Over Time", classes="pane_title")
                with ContentSwitcher(
                    initial="chart_empty", id="chart_switcher",
                ):
                    yield Static(
                        "No price data available for trends",
                        id="chart_empty",
                        classes="empty_text",
                    )
                    with Vertical(id="chart_view"):
                        yield Sparkline(
                            [], summary_function=max, id="trend_sparkline",
                        )
                        yield Static("", id="chart_caption")
                        yield Button("Export Chart", id="export_chart_btn")
                yield Static("Recent Price Records", classes="pane_title")
                with ContentSwitcher(
                    initial="recent_empty", id="recent_switcher",
                ):
                    yield Static(
                        "No price records found",
                        id="recent_empty",
                        classes="empty_text",
                    )
                    yield DataTable(
                        id="recent_table",
                        zebra_stripes=True,
                        cursor_type="row",
                    )

    def on_mount(self) -> None:
        self._table().add_columns("Date", "Product", "Supplier", "Price")

    def _table(self) -> DataTable[str]:
        return cast(
            DataTable[str], self.query_one("#recent_table", DataTable),
        )

    async def refresh_data(self) -> None:
        """Read the history (refetching if invalidated) and render it."""
        self.render_state(Pending())
        self.render_state(await self.reader.read())

    def render_state(self, state: QueryState) -> None:
        """Show exactly one of loading / error / empty / data."""
        self.state = state
        outer = self.query_one("#trends_switcher", ContentSwitcher)

        match state:
            case Pending():
                outer.current = "trends_loading"
            case Failed(reason=reason):
                self.points = []
                self.query_one("#trends_error", Static).update(
                    f"Error loading price trends: {reason}"
                )
                outer.current = "trends_error"
            case Ready(data=records):
                self._render_records(cast(list[PriceRecord], records))
                outer.current = "trends_content"

    def _render_records(self, records: list[PriceRecord]) -> None:
        chart = self.query_one("#chart_switcher", ContentSwitcher)
        recent = self.query_one("#recent_switcher", ContentSwitcher)
        self.points = build_time_series(records)

        if not self.points:
            chart.current = "chart_empty"
        else:
            self.query_one("#trend_sparkline", Sparkline).data = [
                p.price for p in self.points
            ]
            prices = [p.price for p in self.points]
            symbol = Settings.CURRENCY_SYMBOL
            self.query_one("#chart_caption", Static).update(
                f"{self.points[0].display_date} → "
                f"{self.points[-1].display_date}  |  "
                f"{len(self.points)} prices, "
                f"low {symbol}{min(prices):.2f}, "
                f"high {symbol}{max(prices):.2f}"
            )
            chart.current = "chart_view"

        rows = recent_records(records)
        table = self._table()
        table.clear()
        if not rows:
            recent.current = "recent_empty"
            return
        for row in rows:
            table.add_row(
                row.date,
                row.product,
                row.supplier,
                f"{Settings.CURRENCY_SYMBOL}{row.price}",
            )
        recent.current = "recent_table"

    @on(Button.Pressed, "#export_chart_btn")
    async def action_export_chart(self) -> None:
        """Write the current series to an HTML chart."""
        if not self.points:
            self.app.notify("No price data to chart", severity="warning")
            return
        try:
            path = await asyncio.to_thread(export_trend_chart, self.points)
        except Exception as exc:
            logger.error("Chart export failed", exc_info=True)
            self.app.notify(f"Export failed: {exc}", severity="error")
            return
        logger.info("Exported trend chart to %s", path)
        self.app.notify(f"Chart saved to {path}")
