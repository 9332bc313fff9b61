from __future__ import annotations

from collections.abc import Callable

import duckdb
import pytest
from typer.testing import CliRunner

from ipopulse.cli import bids as bids_module
from ipopulse.cli import collect as collect_module
from ipopulse.cli import listings as listings_module
from ipopulse.core.config import DelayConfig, IpoPulseConfig, StorageConfig
from ipopulse.core.runtime import IpoPulseRuntime


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def runtime_factory(
    exchange, upstream_config, memory_conn: duckdb.DuckDBPyConnection, monkeypatch: pytest.MonkeyPatch
) -> Callable[..., IpoPulseRuntime]:
    """Point every command group at one in-memory database and the mock exchange."""

    config = IpoPulseConfig(
        upstream=upstream_config,
        delays=DelayConfig.zero(),
        storage=StorageConfig(database=":memory:"),
    )

    def factory(*_: object) -> IpoPulseRuntime:
        return IpoPulseRuntime(config, connection=memory_conn, client_factory=exchange.client_factory)

    for module in (collect_module, bids_module, listings_module):
        monkeypatch.setattr(module, "get_runtime", factory)
    return factory
