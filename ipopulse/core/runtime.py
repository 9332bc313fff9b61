"""Wires configuration, storage, upstream access and services together."""

from __future__ import annotations

from duckdb import DuckDBPyConnection

from ipopulse.core.config import IpoPulseConfig
from ipopulse.core.data.catalog import DuckDBListingCatalog
from ipopulse.core.data.storage import DuckDBFactoryConfig, IpoPulseDuckDBFactory, TimeSeriesStore
from ipopulse.core.services import BidCollector, CollectionScheduler, ListingRefresher
from ipopulse.core.upstream import Pacer, ResilientFetcher, SessionBootstrapper
from ipopulse.core.upstream.session import ClientFactory


class IpoPulseRuntime:
    """Owns one DuckDB connection and the services built on top of it."""

    def __init__(
        self,
        config: IpoPulseConfig | None = None,
        *,
        connection: DuckDBPyConnection | None = None,
        client_factory: ClientFactory | None = None,
        pacer: Pacer | None = None,
    ) -> None:
        self.config = config or IpoPulseConfig()
        if connection is None:
            factory = IpoPulseDuckDBFactory(DuckDBFactoryConfig.from_storage(self.config.storage))
            connection = factory.create_connection()
            self._owns_connection = True
        else:
            self._owns_connection = False
        self.connection = connection
        self.pacer = pacer or Pacer()

        self.store = TimeSeriesStore(connection, max_points=self.config.storage.max_series_points)
        self.catalog = DuckDBListingCatalog(connection)
        self.bootstrapper = SessionBootstrapper(
            self.config.upstream, self.config.delays, client_factory=client_factory, pacer=self.pacer
        )
        self.fetcher = ResilientFetcher(
            self.config.upstream, self.config.delays, client_factory=client_factory, pacer=self.pacer
        )
        self.collector = BidCollector(
            self.catalog,
            self.store,
            self.bootstrapper,
            self.fetcher,
            delays=self.config.delays,
            pacer=self.pacer,
        )
        self.refresher = ListingRefresher(self.catalog, self.bootstrapper, self.fetcher)
        self.scheduler = CollectionScheduler(
            self.collector,
            self.refresher,
            self.config.scheduler,
            delays=self.config.delays,
            pacer=self.pacer,
        )

    def close(self) -> None:
        if self._owns_connection:
            self.connection.close()

    def __enter__(self) -> IpoPulseRuntime:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["IpoPulseRuntime"]
