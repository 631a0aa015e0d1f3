"""Pytest configuration and fixtures."""

import os
from unittest.mock import patch

import pytest

from spike_mcp.config import get_settings


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path):
    """Point every test at its own catalog and drop ambient SPIKE_* settings."""
    env = {
        k: v
        for k, v in os.environ.items()
        if not k.startswith("SPIKE_") and k != "LOG_LEVEL"
    }
    env["SPIKE_CATALOG_DIR"] = str(tmp_path / "catalog")
    with patch.dict(os.environ, env, clear=True):
        yield


@pytest.fixture
def catalog_config():
    """Catalog config resolved from the isolated environment."""
    return get_settings().get_catalog_config()


@pytest.fixture
def small_scan():
    """Keep auto/discover scans short."""
    with patch.dict(os.environ, {"SPIKE_AUTO_SCAN_LIMIT": "200", "SPIKE_AUTO_BATCH": "50"}):
        yield
