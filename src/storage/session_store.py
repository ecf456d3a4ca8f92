# src/storage/session_store.py

"""JSON file storage for the auth client's persisted session."""

import json
import logging
import os
from pathlib import Path
from typing import Any

from supabase_auth import SyncSupportedStorage

from src.config.settings import Settings

logger = logging.getLogger("price_tracker.session_store")


class FileSessionStorage(SyncSupportedStorage):
    """Key/value storage in one owner-readable JSON file.

    The auth client keeps its session here so restarts stay signed
    in.  Persistence is best-effort: a file that cannot be read counts
    as empty, and a failed write is logged and skipped so sign-in and
    sign-out still complete.
    """

    def __init__(self, path: Path | None = None) -> None:
        self.path: Path = path or Settings.SESSION_PATH

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data: Any = json.load(f)
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
            logger.warning(
                "Ignoring unreadable session file %s: %s", self.path, exc,
            )
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed session file %s", self.path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _write(self, items: dict[str, str]) -> None:
        try:
            if not items:
                self.path.unlink(missing_ok=True)
                logger.debug("Session file %s removed", self.path)
                return
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(items, f, indent=2)
            os.chmod(self.path, 0o600)
        except OSError as exc:
            logger.warning(
                "Could not update session file %s: %s", self.path, exc,
            )
            return
        logger.debug("Session persisted to %s", self.path)

    def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read()
        items[key] = value
        self._write(items)

    def remove_item(self, key: str) -> None:
        items = self._read()
        if items.pop(key, None) is not None:
            self._write(items)
