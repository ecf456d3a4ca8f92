# main.py

"""Entry point for the price_tracker application (TUI or headless CLI)."""

import argparse
import asyncio
import locale
import logging
import sys

from src.config.logging_config import setup_logging

logger = logging.getLogger("price_tracker.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    from src.cli.runner import LIST_TARGETS

    parser = argparse.ArgumentParser(
        prog="price_tracker",
        description="Record and review product prices across suppliers.",
        epilog=(
            "Without options the interactive TUI starts. Headless "
            "commands reuse the session saved by the last TUI login."
        ),
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "-l",
        "--list",
        choices=LIST_TARGETS,
        default=None,
        dest="list_target",
        help="Print products, suppliers or the recent price records.",
    )
    group.add_argument(
        "--add-price",
        nargs=3,
        metavar=("PRODUCT_ID", "SUPPLIER_ID", "PRICE"),
        default=None,
        dest="add_price",
        help="Record a new price observation.",
    )
    group.add_argument(
        "--export-chart",
        action="store_true",
        default=False,
        dest="export_chart",
        help="Export the price trend chart as HTML.",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format for --list (default: json).",
    )
    parser.add_argument(
        "--no-browser",
        action="store_true",
        default=False,
        dest="no_browser",
        help="Do not open the exported chart in a browser.",
    )
    return parser


def _apply_user_locale() -> None:
    """Format dates (``%x``) in the user's locale instead of C."""
    try:
        locale.setlocale(locale.LC_TIME, "")
    except locale.Error as exc:
        logger.warning("Could not apply the user's locale: %s", exc)


def _run_tui() -> None:
    """Launch the interactive Textual TUI."""
    from src.ui.app import PriceTrackerApp

    try:
        app = PriceTrackerApp()
        app.run()
    except Exception:
        logger.critical("Fatal error during TUI run", exc_info=True)
        raise
    finally:
        logger.info("price_tracker TUI shutting down")


def _run_cli(args: argparse.Namespace) -> None:
    """Run one headless command and exit with its code."""
    from src.backend.supabase_backend import SupabaseBackend
    from src.cli import runner

    backend = SupabaseBackend()
    try:
        if args.list_target is not None:
            exit_code = asyncio.run(
                runner.list_command(
                    backend, args.list_target, args.output_format,
                )
            )
        elif args.add_price is not None:
            exit_code = asyncio.run(
                runner.add_price_command(backend, *args.add_price)
            )
        else:
            exit_code = asyncio.run(
                runner.export_chart_command(
                    backend, open_browser=not args.no_browser,
                )
            )
    finally:
        backend.close()
    sys.exit(exit_code)


def main() -> None:
    """Route to the TUI (no command) or a headless command."""
    log_file = setup_logging()
    logger.info("price_tracker starting, log file: %s", log_file)
    _apply_user_locale()

    parser = _build_parser()
    args = parser.parse_args()

    if args.list_target or args.add_price or args.export_chart:
        _run_cli(args)
    else:
        _run_tui()


if __name__ == "__main__":
    main()
