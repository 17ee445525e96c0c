"""Service container with DI wiring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sflogs.data.remote import RemoteLogStore
from sflogs.services.download_service import DownloadService
from sflogs.services.log_service import LogService
from sflogs.services.search_service import SearchService

if TYPE_CHECKING:
    import httpx

    from sflogs.config import Config


@dataclass
class ServiceContainer:
    """Holds all services for one CLI command. Built once, immutable."""

    store: RemoteLogStore
    search_service: SearchService
    download_service: DownloadService
    log_service: LogService

    @classmethod
    async def create(
        cls,
        config: Config,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ServiceContainer:
        """Async factory that opens the store and wires all services."""
        store = RemoteLogStore(config, transport=transport)
        await store.connect()

        search_service = SearchService(store)
        download_service = DownloadService(store, search_service)
        log_service = LogService(store)

        return cls(
            store=store,
            search_service=search_service,
            download_service=download_service,
            log_service=log_service,
        )

    async def close(self) -> None:
        """Shut down all services."""
        await self.store.close()
