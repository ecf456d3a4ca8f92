# tests/conftest.py

"""Shared pytest fixtures for all tests."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import patch

import pytest

from src.config.settings import Settings


@pytest.fixture(autouse=True)
def isolated_data_dir(tmp_path: Path) -> Generator[Path, None, None]:
    """Keep session files and exported charts out of the real data dir."""
    with patch.object(Settings, "DATA_DIR", tmp_path), \
            patch.object(Settings, "SESSION_PATH", tmp_path / "session.json"), \
            patch.object(Settings, "CHARTS_DIR", tmp_path / "charts"), \
            patch("src.storage.chart_exporter._CHARTS_DIR", tmp_path / "charts"):
        yield tmp_path
