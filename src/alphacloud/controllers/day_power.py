"""Power history of a storage system over a single day."""

import datetime as dt
from collections.abc import Iterator
from typing import Any

from alphacloud.api.connector import Connector
from alphacloud.api.models.responses import PowerEntry
from alphacloud.api.request import EndPoint
from alphacloud.controllers.base import DateQueryController
from alphacloud.utils.signals import Signal


def _sort_key(entry: PowerEntry) -> tuple[bool, dt.datetime]:
    # Entries without a timestamp go first.
    return (entry.upload_time is not None, entry.upload_time or dt.datetime.min)


class DayPowerSeries(DateQueryController):
    """Power samples of one day, ordered by upload time.

    The whole collection is replaced on every result; ``model_reset`` is
    emitted once per replacement and ``changed("count", n)`` when the number
    of entries differs.
    """

    endpoint = EndPoint.ONE_DAY_POWER_BY_SN

    def __init__(
        self,
        connector: Connector | None = None,
        serial_number: str = "",
        query_date: dt.date | None = None,
    ) -> None:
        super().__init__(connector, serial_number, query_date)
        self.model_reset = Signal("model_reset")

        self._entries: list[PowerEntry] = []
        self._peak_photovoltaic = 0
        self._peak_load = 0
        self._peak_grid_feed = 0
        self._peak_grid_charge = 0
        self._from_date_time: dt.datetime | None = None
        self._to_date_time: dt.datetime | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> PowerEntry:
        return self._entries[index]

    def __iter__(self) -> Iterator[PowerEntry]:
        return iter(self._entries)

    @property
    def entries(self) -> list[PowerEntry]:
        return list(self._entries)

    @property
    def count(self) -> int:
        return len(self._entries)

    @property
    def peak_photovoltaic(self) -> int:
        return self._peak_photovoltaic

    @property
    def peak_load(self) -> int:
        return self._peak_load

    @property
    def peak_grid_feed(self) -> int:
        return self._peak_grid_feed

    @property
    def peak_grid_charge(self) -> int:
        return self._peak_grid_charge

    @property
    def from_date_time(self) -> dt.datetime | None:
        """Upload time of the first entry."""
        return self._from_date_time

    @property
    def to_date_time(self) -> dt.datetime | None:
        """Upload time of the last entry."""
        return self._to_date_time

    def _apply(self, payload: Any) -> None:
        array = payload if isinstance(payload, list) else []

        peak_photovoltaic = 0
        peak_load = 0
        peak_grid_feed = 0
        peak_grid_charge = 0

        entries: list[PowerEntry] = []
        for item in array:
            entry = PowerEntry.from_json(item if isinstance(item, dict) else {})

            peak_photovoltaic = max(peak_photovoltaic, entry.photovoltaic_power)
            peak_load = max(peak_load, entry.current_load)
            peak_grid_feed = max(peak_grid_feed, entry.grid_feed)
            peak_grid_charge = max(peak_grid_charge, entry.grid_charge)

            entries.append(entry)

        entries.sort(key=_sort_key)

        old_count = len(self._entries)
        self._entries = entries
        self.model_reset.emit()

        if old_count != len(entries):
            self.changed.emit("count", len(entries))

        self._update("peak_photovoltaic", peak_photovoltaic)
        self._update("peak_load", peak_load)
        self._update("peak_grid_feed", peak_grid_feed)
        self._update("peak_grid_charge", peak_grid_charge)

        self._update("from_date_time", entries[0].upload_time if entries else None)
        self._update("to_date_time", entries[-1].upload_time if entries else None)
