"""Storage systems registered to the application."""

import asyncio
from collections.abc import Iterator
from typing import Any

import structlog

from alphacloud.api.connector import Connector
from alphacloud.api.errors import RequestStatus
from alphacloud.api.models.responses import StorageSystem
from alphacloud.api.request import ApiRequest, EndPoint
from alphacloud.cache.disk import DiskCache
from alphacloud.controllers.base import EntityController
from alphacloud.utils.signals import Signal

logger = structlog.get_logger(__name__)


class DeviceInventory(EntityController):
    """List of storage systems, in API order.

    The first system is the primary one. A result is only materialized when it
    differs from the current list, so polling an unchanged inventory emits
    nothing.

    With ``cached`` enabled the last result is persisted to disk and restored
    when the inventory is created inside a running event loop. Restoring
    changes the data but never ``status``.
    """

    endpoint = EndPoint.ESS_LIST

    def __init__(
        self,
        connector: Connector | None = None,
        cached: bool = True,
        disk_cache: DiskCache | None = None,
    ) -> None:
        """Initialize the inventory.

        Args:
            connector: Connector to send requests with.
            cached: Whether to restore and persist results on disk.
            disk_cache: Cache file, defaults to the platform cache directory.
        """
        super().__init__(connector)
        self.model_reset = Signal("model_reset")

        self._systems: list[StorageSystem] = []
        self._primary_serial_number = ""
        self._cached = cached
        self._disk_cache = disk_cache if disk_cache is not None else DiskCache()
        self._cache_tasks: set[asyncio.Task[Any]] = set()

        if cached:
            self._schedule(self.restore_cache)

    def __len__(self) -> int:
        return len(self._systems)

    def __getitem__(self, index: int) -> StorageSystem:
        return self._systems[index]

    def __iter__(self) -> Iterator[StorageSystem]:
        return iter(self._systems)

    @property
    def systems(self) -> list[StorageSystem]:
        return list(self._systems)

    @property
    def count(self) -> int:
        return len(self._systems)

    @property
    def primary_serial_number(self) -> str:
        """Serial number of the first system, empty if there is none."""
        return self._primary_serial_number

    @property
    def cached(self) -> bool:
        return self._cached

    @cached.setter
    def cached(self, cached: bool) -> None:
        self._update("cached", cached)

    @property
    def disk_cache(self) -> DiskCache:
        return self._disk_cache

    def _schedule(self, coro_factory: Any, *args: Any) -> bool:
        """Run a cache coroutine as a background task, if an event loop is running."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, skipping cache access", path=str(self._disk_cache.path))
            return False

        task = loop.create_task(coro_factory(*args))
        self._cache_tasks.add(task)
        task.add_done_callback(self._cache_tasks.discard)
        return True

    async def restore_cache(self) -> bool:
        """Load the list from the disk cache.

        Skipped once a network result arrived.

        Returns:
            Whether cached data was applied.
        """
        array = await asyncio.to_thread(self._disk_cache.read)
        if array is None:
            return False

        if self._status is RequestStatus.FINISHED:
            logger.debug("Ignoring cached storage systems, already loaded")
            return False

        logger.debug("Restoring storage systems from cache", count=len(array))
        self._apply(array)
        return True

    async def _write_cache(self, array: list[Any]) -> None:
        await asyncio.to_thread(self._disk_cache.write, array)

    async def drain(self) -> None:
        """Wait for pending cache reads and writes."""
        while self._cache_tasks:
            await asyncio.gather(*self._cache_tasks, return_exceptions=True)

    def _create_request(self, connector: Connector) -> ApiRequest:
        return ApiRequest(connector, self.endpoint)

    def _store(self, request: ApiRequest) -> None:
        if self._cached and isinstance(request.data, list):
            self._schedule(self._write_cache, list(request.data))

    def _is_dirty(self, systems: list[StorageSystem]) -> bool:
        """Compare the count, then the raw JSON of each system by position."""
        if len(systems) != len(self._systems):
            return True
        return any(new.json_data != old.json_data for new, old in zip(systems, self._systems))

    def _apply(self, payload: Any) -> None:
        array = payload if isinstance(payload, list) else []
        systems = [StorageSystem.from_json(item if isinstance(item, dict) else {}) for item in array]

        if not self._is_dirty(systems):
            return

        old_count = len(self._systems)
        self._systems = systems
        self.model_reset.emit()

        if old_count != len(systems):
            self.changed.emit("count", len(systems))

        self._update("primary_serial_number", systems[0].serial_number if systems else "")
