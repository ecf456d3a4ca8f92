# src/cli/runner.py

"""Headless CLI commands, reusing the same readers and recorder."""

import json
import logging
import sys
from typing import Any

from rich.console import Console
from rich.table import Table

from src.backend.base_backend import BaseBackend
from src.config.settings import Settings
from src.models.price_record import PriceRecord
from src.models.product import Product
from src.models.query_state import Failed, Pending, QueryState, Ready
from src.models.supplier import Supplier
from src.services.price_history import (
    PriceHistoryReader,
    build_time_series,
    recent_records,
)
from src.services.price_recorder import PriceRecorder
from src.services.reference_readers import CatalogReader, SupplierReader
from src.storage.chart_exporter import export_trend_chart
from src.storage.query_cache import QueryCache

logger = logging.getLogger("price_tracker.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)

LIST_TARGETS: tuple[str, ...] = ("products", "suppliers", "trends")


def _unwrap(state: QueryState, noun: str) -> list[Any] | None:
    """Return the data of a Ready state, reporting anything else."""
    match state:
        case Ready(data=data):
            return list(data)
        case Failed(reason=reason):
            _err.print(f"[red]Error loading {noun}: {reason}[/red]")
        case Pending():
            _err.print(f"[yellow]{noun} still loading[/yellow]")
    return None


def _dump_json(rows: list[dict[str, Any]]) -> None:
    json.dump(rows, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def _print_products(products: list[Product]) -> None:
    table = Table(
        title=f"Product List ({len(products)} items)",
        title_style="bold cyan",
    )
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Product Name")
    table.add_column("Unit", style="magenta")
    for p in products:
        table.add_row(str(p.id), p.name, p.unit)
    Console().print(table)


def _print_suppliers(suppliers: list[Supplier]) -> None:
    table = Table(
        title=f"Suppliers ({len(suppliers)})",
        title_style="bold cyan",
    )
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Name")
    table.add_column("Contact", style="dim")
    for s in suppliers:
        table.add_row(str(s.id), s.name, s.contact_info or "—")
    Console().print(table)


def _print_recent(records: list[PriceRecord]) -> None:
    table = Table(
        title="Recent Price Records",
        title_style="bold cyan",
    )
    table.add_column("Date")
    table.add_column("Product")
    table.add_column("Supplier", style="magenta")
    table.add_column("Price", justify="right", style="green")
    for row in recent_records(records):
        table.add_row(
            row.date,
            row.product,
            row.supplier,
            f"{Settings.CURRENCY_SYMBOL}{row.price}",
        )
    Console().print(table)


async def list_command(
    backend: BaseBackend, target: str, output_format: str,
) -> int:
    """Print products, suppliers or recent prices. Returns an exit code."""
    cache = QueryCache()

    if target == "products":
        products = _unwrap(await CatalogReader(backend, cache).read(), target)
        if products is None:
            return 1
        if not products:
            _err.print("[yellow]No products found.[/yellow]")
        if output_format == "table":
            _print_products(products)
        else:
            _dump_json([
                {"id": p.id, "name": p.name, "unit": p.unit}
                for p in products
            ])
        return 0

    if target == "suppliers":
        suppliers = _unwrap(
            await SupplierReader(backend, cache).read(), target,
        )
        if suppliers is None:
            return 1
        if not suppliers:
            _err.print("[yellow]No suppliers found.[/yellow]")
        if output_format == "table":
            _print_suppliers(suppliers)
        else:
            _dump_json([
                {"id": s.id, "name": s.name, "contact_info": s.contact_info}
                for s in suppliers
            ])
        return 0

    records = _unwrap(
        await PriceHistoryReader(backend, cache).read(), "price trends",
    )
    if records is None:
        return 1
    if not records:
        _err.print("[yellow]No price records found.[/yellow]")
    if output_format == "table":
        _print_recent(records)
    else:
        _dump_json([
            {
                "date": row.date,
                "product": row.product,
                "supplier": row.supplier,
                "price": row.price,
            }
            for row in recent_records(records)
        ])
    return 0


async def add_price_command(
    backend: BaseBackend,
    product_id: str,
    supplier_id: str,
    price: str,
) -> int:
    """Record one price with the same validation as the form."""
    recorder = PriceRecorder(backend, QueryCache())
    recorder.draft.product_id = product_id
    recorder.draft.supplier_id = supplier_id
    recorder.draft.price = price

    result = await recorder.submit()
    if not result.ok:
        _err.print(
            f"[red]{result.notice.title}: {result.notice.message}[/red]"
        )
        return 1
    _err.print(f"[green]✓ {result.notice.title}[/green]")
    _dump_json(result.created)
    return 0


async def export_chart_command(
    backend: BaseBackend, open_browser: bool = True,
) -> int:
    """Write the price time series to an HTML chart."""
    records = _unwrap(
        await PriceHistoryReader(backend, QueryCache()).read(),
        "price trends",
    )
    if records is None:
        return 1
    path = export_trend_chart(
        build_time_series(records), open_browser=open_browser,
    )
    if path is None:
        _err.print("[yellow]No price data available for trends.[/yellow]")
        return 1
    _err.print(f"[green]✓ Chart saved → {path}[/green]")
    return 0
