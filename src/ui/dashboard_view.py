# src/ui/dashboard_view.py

"""Authenticated layout: nav bar, three tabs and logout."""

import logging

from textual import on
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.widgets import Button, Static, TabbedContent, TabPane

from src.backend.base_backend import BaseBackend
from src.services.price_history import PriceHistoryReader
from src.services.price_recorder import PriceRecorder
from src.services.reference_readers import CatalogReader, SupplierReader
from src.services.session_provider import SessionProvider
from src.storage.query_cache import QueryCache
from src.ui.catalog_pane import CatalogPane
from src.ui.price_form_pane import PriceFormPane
from src.ui.trends_pane import TrendsPane
from src.ui.widgets import show_notice

logger = logging.getLogger("price_tracker.ui.dashboard")


class DashboardView(Container):
    """Routes between the catalog, add-price and trends tabs.

    Readers share the app's query cache, so the catalog tab and the
    add-price selections reuse one products fetch.
    """

    def __init__(
        self,
        backend: BaseBackend,
        cache: QueryCache,
        session_provider: SessionProvider,
        **kwargs: str,
    ) -> None:
        super().__init__(**kwargs)
        self.session_provider = session_provider
        self.catalog_reader = CatalogReader(backend, cache)
        self.supplier_reader = SupplierReader(backend, cache)
        self.history_reader = PriceHistoryReader(backend, cache)
        self.recorder = PriceRecorder(backend, cache)
        self.active = False

    def compose(self) -> ComposeResult:
        with Horizontal(id="nav_bar"):
            yield Static("Price Tracker", id="nav_title")
            yield Static("", id="nav_user")
            yield Button("Logout", variant="error", id="logout_btn")
        with TabbedContent(id="tabs", initial="products_tab"):
            with TabPane("Products", id="products_tab"):
                yield CatalogPane(self.catalog_reader, id="catalog_pane")
            with TabPane("Add Price", id="add_price_tab"):
                yield PriceFormPane(
                    self.recorder,
                    self.catalog_reader,
                    self.supplier_reader,
                    id="price_form_pane",
                )
            with TabPane("Price Trends", id="trends_tab"):
                yield TrendsPane(self.history_reader, id="trends_pane")

    def set_user(self, email: str) -> None:
        """Show who is signed in."""
        self.query_one("#nav_user", Static).update(email)

    async def activate(self) -> None:
        """Start loading data for the visible tab."""
        self.active = True
        await self.load_tab(self.query_one("#tabs", TabbedContent).active)

    def deactivate(self) -> None:
        """Stop reacting to tab changes until the next sign-in."""
        self.active = False

    async def load_tab(self, tab_id: str) -> None:
        """(Re)read the data behind *tab_id* through the cache."""
        if not self.active:
            return
        logger.debug("Loading tab %s", tab_id)
        if tab_id == "products_tab":
            await self.query_one("#catalog_pane", CatalogPane).refresh_data()
        elif tab_id == "add_price_tab":
            await self.query_one(
                "#price_form_pane", PriceFormPane
            ).refresh_data()
        elif tab_id == "trends_tab":
            await self.query_one("#trends_pane", TrendsPane).refresh_data()

    async def on_tabbed_content_tab_activated(
        self, event: TabbedContent.TabActivated,
    ) -> None:
        """Refresh the newly selected tab."""
        await self.load_tab(event.tabbed_content.active)

    @on(Button.Pressed, "#logout_btn")
    async def logout(self) -> None:
        """Sign out; the session notification swaps the view."""
        button = self.query_one("#logout_btn", Button)
        button.disabled = True
        try:
            notice = await self.session_provider.sign_out()
        finally:
            button.disabled = False
        show_notice(self.app, notice)
