"""Tests for the package-level convenience API."""

import pytest

import ipopulse
from ipopulse.core.config import DelayConfig, IpoPulseConfig, StorageConfig


@pytest.fixture
def in_memory_runtime(monkeypatch):
    monkeypatch.setattr(ipopulse, "_runtime", None)
    runtime = ipopulse.configure(
        IpoPulseConfig(storage=StorageConfig(database=":memory:"), delays=DelayConfig.zero())
    )
    yield runtime
    runtime.close()


def test_configure_replaces_global_runtime(in_memory_runtime):
    assert ipopulse.get_runtime() is in_memory_runtime


def test_collect_bids_with_empty_catalog(in_memory_runtime):
    """No active listings means no network calls and an empty success."""
    assert ipopulse.collect_bids("SME") == {"success": True, "count": 0, "errors": 0}


def test_exports():
    assert ipopulse.__version__ == "0.1.0"
    assert ipopulse.SeriesClass.parse("eq") is ipopulse.SeriesClass.MAINBOARD
