# src/config/logging_config.py

"""Per-run timestamped logging configuration for price_tracker.

Every launch (TUI or headless CLI) writes to its own file inside
``logs/``, e.g. ``logs/run_20260214_153045.log``.  All
``price_tracker.*`` loggers share that file handler.

Backend payloads pass through a :class:`SecretRedactingFilter` before
they are formatted, so bearer tokens and passwords never reach disk.
"""

import logging
import re
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# JSON-ish "key": "value" pairs and Bearer headers
_SECRET_RE = re.compile(
    r"(?P<key>[\"']?(?:access_token|refresh_token|password|apikey)"
    r"[\"']?\s*[:=]\s*[\"']?)(?P<value>[^\"',\s}]+)",
    re.IGNORECASE,
)
_BEARER_RE = re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*")


def redact(text: str) -> str:
    """Mask token and password values inside *text*."""
    text = _SECRET_RE.sub(r"\g<key>***", text)
    return _BEARER_RE.sub(r"\1***", text)


class SecretRedactingFilter(logging.Filter):
    """Rewrite a record's final message with secrets masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


def setup_logging(logs_dir: Path | None = None) -> Path:
    """Initialise the root ``price_tracker`` logger for the current run.

    Returns:
        The :class:`~pathlib.Path` to the log file created for this run.
    """
    target_dir = logs_dir or Settings.LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = target_dir / f"run_{timestamp}.log"

    root_logger = logging.getLogger("price_tracker")
    root_logger.setLevel(logging.DEBUG)

    # Repeated calls (tests, CLI after TUI) keep the first handlers
    if root_logger.handlers:
        return log_file

    redactor = SecretRedactingFilter()

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.addFilter(redactor)
    file_handler.setFormatter(
        logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT)
    )

    # Textual owns the terminal while the TUI runs, so stderr
    # only carries warnings and errors
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.addFilter(redactor)
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    root_logger.info("Logging initialised, log file: %s", log_file)

    return log_file
