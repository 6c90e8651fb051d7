"""Pytest configuration and shared fixtures."""

import sys
import time
from pathlib import Path

import pytest

# Ensure src directory is in Python path for all tests
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pomotask.config import Config  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point the config loader at a temp file and drop any cached model."""
    config_path = tmp_path / "config.yaml"
    monkeypatch.setenv("POMOTASK_CONFIG", str(config_path))
    Config._instance = None
    yield config_path
    Config._instance = None


@pytest.fixture
def eastern_time(monkeypatch):
    """Use US Eastern as the local zone; DST ends there on 2026-11-01."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    with monkeypatch.context() as patch:
        patch.setenv("TZ", "EST5EDT,M3.2.0,M11.1.0")
        time.tzset()
        yield
    time.tzset()
