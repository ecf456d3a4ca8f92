# src/ui/catalog_pane.py

"""Product listing tab."""

from typing import cast

from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import (
    ContentSwitcher,
    DataTable,
    LoadingIndicator,
    Static,
)

from src.models.product import Product
from src.models.query_state import Failed, Pending, QueryState, Ready
from src.services.reference_readers import CatalogReader


class CatalogPane(Vertical):
    """Shows the product catalog as loading / error / empty / table."""

    def __init__(self, reader: CatalogReader, **kwargs: str) -> None:
        super().__init__(**kwargs)
        self.reader = reader
        self.state: QueryState = Pending()

    def compose(self) -> ComposeResult:
        yield Static("Product List", id="catalog_title", classes="pane_title")
        with ContentSwitcher(initial="catalog_loading", id="catalog_switcher"):
            yield LoadingIndicator(id="catalog_loading")
            yield Static("", id="catalog_error", classes="error_text")
            yield Static(
                "No products found\n"
                "Database might be empty or there could be a "
                "connection issue",
                id="catalog_empty",
                classes="empty_text",
            )
            yield DataTable(
                id="catalog_table", zebra_stripes=True, cursor_type="row",
            )

    def on_mount(self) -> None:
        self._table().add_columns("ID", "Product Name", "Unit")

    def _table(self) -> DataTable[str]:
        return cast(
            DataTable[str], self.query_one("#catalog_table", DataTable),
        )

    async def refresh_data(self) -> None:
        """Read the catalog (through the cache) and render it."""
        self.render_state(Pending())
        self.render_state(await self.reader.read())

    def render_state(self, state: QueryState) -> None:
        """Show exactly one affordance for *state*."""
        self.state = state
        switcher = self.query_one("#catalog_switcher", ContentSwitcher)
        title = self.query_one("#catalog_title", Static)

        match state:
            case Pending():
                title.update("Loading products...")
                switcher.current = "catalog_loading"
            case Failed(reason=reason):
                title.update("Product List")
                self.query_one("#catalog_error", Static).update(
                    f"Error loading products: {reason}"
                )
                switcher.current = "catalog_error"
            case Ready(data=products) if not products:
                title.update("Product List (0 items)")
                switcher.current = "catalog_empty"
            case Ready(data=products):
                self._fill(cast(list[Product], products))
                title.update(f"Product List ({len(products)} items)")
                switcher.current = "catalog_table"

    def _fill(self, products: list[Product]) -> None:
        table = self._table()
        table.clear()
        for product in products:
            table.add_row(str(product.id), product.name, product.unit)
