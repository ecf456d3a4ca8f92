# src/ui/app.py

"""Terminal UI for the supplier price tracker."""

import logging

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.message import Message
from textual.widgets import (
    ContentSwitcher,
    Footer,
    Header,
    LoadingIndicator,
    Static,
    TabbedContent,
)

from src.backend.base_backend import BaseBackend
from src.backend.supabase_backend import SupabaseBackend
from src.models.auth_session import AuthEvent, AuthSession
from src.services.session_provider import SessionProvider
from src.storage.query_cache import QueryCache
from src.ui.dashboard_view import DashboardView
from src.ui.login_view import LoginView

logger = logging.getLogger("price_tracker.ui")


class SessionChanged(Message):
    """A session notification forwarded onto the UI loop."""

    def __init__(
        self, event: AuthEvent, session: AuthSession | None,
    ) -> None:
        super().__init__()
        self.event = event
        self.session = session


class PriceTrackerApp(App[object]):
    """Gates the dashboard behind the login form.

    The backend is injectable; the session provider, query cache
    and views are owned here and torn down on unmount.
    """

    CSS_PATH = "styles.css"
    TITLE = "Price Tracker"

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("f1", "show_tab('products_tab')", "Products"),
        Binding("f2", "show_tab('add_price_tab')", "Add Price"),
        Binding("f3", "show_tab('trends_tab')", "Trends"),
    ]

    def __init__(self, backend: BaseBackend | None = None) -> None:
        super().__init__()
        self._owns_backend = backend is None
        self.backend = backend or SupabaseBackend()
        self.query_cache = QueryCache()
        self.session_provider = SessionProvider(
            self.backend, on_change=self._forward_session_change,
        )

    def compose(self) -> ComposeResult:
        """Build the loading / login / dashboard switcher."""
        yield Header()
        yield ContentSwitcher(
            Container(
                LoadingIndicator(),
                Static("Loading...", id="session_loading_text"),
                id="session_loading",
            ),
            LoginView(self.backend, id="login_view"),
            DashboardView(
                self.backend,
                self.query_cache,
                self.session_provider,
                id="dashboard_view",
            ),
            initial="session_loading",
            id="gate",
        )
        yield Footer()

    async def on_mount(self) -> None:
        """Resolve the initial session; the notification picks the view."""
        logger.info("Setting up auth listeners")
        await self.session_provider.start()

    def on_unmount(self) -> None:
        """Release the session subscription and backend."""
        self.session_provider.close()
        if self._owns_backend:
            self.backend.close()

    def _forward_session_change(
        self, event: AuthEvent, session: AuthSession | None,
    ) -> None:
        # May run on a worker thread; post_message is thread-safe
        self.post_message(SessionChanged(event, session))

    @property
    def current_view(self) -> str | None:
        """Id of the visible top-level view."""
        return self.query_one("#gate", ContentSwitcher).current

    async def on_session_changed(self, message: SessionChanged) -> None:
        """Swap between login form and dashboard without a restart."""
        gate = self.query_one("#gate", ContentSwitcher)
        dashboard = self.query_one("#dashboard_view", DashboardView)

        if message.session is None:
            logger.info(
                "Rendering login form after %s", message.event.value,
            )
            dashboard.deactivate()
            if message.event is AuthEvent.SIGNED_OUT:
                self.query_cache.clear()
            gate.current = "login_view"
            return

        first_show = gate.current != "dashboard_view"
        gate.current = "dashboard_view"
        dashboard.set_user(message.session.email)
        if first_show:
            logger.info("User authenticated, rendering dashboard")
            await dashboard.activate()

    async def action_show_tab(self, tab_id: str) -> None:
        """Jump to a dashboard tab."""
        if self.current_view != "dashboard_view":
            return
        self.query_one("#tabs", TabbedContent).active = tab_id
