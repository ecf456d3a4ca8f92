# src/ui/price_form_pane.py

"""Add-price tab: product + supplier selection and a price input."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from textual import on
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.widgets import Button, Input, Label, Select, Static

from src.models.query_state import Failed, Pending, QueryState, Ready
from src.services.price_recorder import PriceRecorder, SubmitResult
from src.services.reference_readers import CatalogReader, SupplierReader
from src.ui.widgets import select_value, show_notice

logger = logging.getLogger("price_tracker.ui.add_price")


class PriceFormPane(Vertical):
    """Edits the recorder's draft and submits it."""

    def __init__(
        self,
        recorder: PriceRecorder,
        catalog_reader: CatalogReader,
        supplier_reader: SupplierReader,
        **kwargs: str,
    ) -> None:
        super().__init__(**kwargs)
        self.recorder = recorder
        self.catalog_reader = catalog_reader
        self.supplier_reader = supplier_reader
        self.loaded = False

    def compose(self) -> ComposeResult:
        yield Static("Add New Price", classes="pane_title")
        yield Label("Product")
        yield Select[str]([], prompt="Select a product", id="product_select")
        yield Label("Supplier")
        yield Select[str](
            [], prompt="Select a supplier", id="supplier_select",
        )
        yield Label("Price")
        yield Input(placeholder="0.00", type="number", id="price_input")
        yield Button("Add Price", variant="primary", id="add_price_btn")
        yield Static("", id="price_form_status", classes="error_text")

    async def refresh_data(self) -> None:
        """Load selection options; both lists share the cache."""
        status = self.query_one("#price_form_status", Static)
        status.update("Loading products and suppliers...")
        products, suppliers = await asyncio.gather(
            self.catalog_reader.read(), self.supplier_reader.read(),
        )
        problems = [
            problem
            for problem in (
                self._apply_options(
                    "#product_select", products,
                    lambda p: (p.label, str(p.id)), "products",
                ),
                self._apply_options(
                    "#supplier_select", suppliers,
                    lambda s: (s.name, str(s.id)), "suppliers",
                ),
            )
            if problem
        ]
        status.update("\n".join(problems))
        self.loaded = True

    def _apply_options(
        self,
        selector: str,
        state: QueryState,
        to_option: Callable[[Any], tuple[str, str]],
        noun: str,
    ) -> str:
        """Fill one selection from *state*; returns a problem line."""
        select: Select[str] = self.query_one(selector, Select)
        match state:
            case Pending():
                return f"Loading {noun}..."
            case Failed(reason=reason):
                return f"Error loading {noun}: {reason}"
            case Ready(data=items):
                current = select_value(select)
                options = [to_option(item) for item in items]
                select.set_options(options)
                if current in {value for _label, value in options}:
                    select.value = current
                return "" if options else f"No {noun} found"
        return ""

    def _sync_draft(self) -> None:
        """Copy widget values into the recorder's draft."""
        draft = self.recorder.draft
        draft.product_id = select_value(
            self.query_one("#product_select", Select)
        )
        draft.supplier_id = select_value(
            self.query_one("#supplier_select", Select)
        )
        draft.price = self.query_one("#price_input", Input).value

    def _reset_widgets(self) -> None:
        """Match the widgets to a cleared draft."""
        self.query_one("#product_select", Select).clear()
        self.query_one("#supplier_select", Select).clear()
        self.query_one("#price_input", Input).value = ""

    @on(Button.Pressed, "#add_price_btn")
    @on(Input.Submitted, "#price_input")
    async def submit(self) -> SubmitResult:
        """Submit the draft with the button disabled while in flight."""
        if self.recorder.in_flight:
            result = await self.recorder.submit()
            show_notice(self.app, result.notice)
            return result
        self._sync_draft()
        button = self.query_one("#add_price_btn", Button)
        button.disabled = True
        button.label = "Adding Price..."
        try:
            result = await self.recorder.submit()
        finally:
            button.disabled = False
            button.label = "Add Price"

        show_notice(self.app, result.notice)
        if result.ok:
            self._reset_widgets()
        return result
