"""Energy totals of a storage system for a single day."""

import datetime as dt
from typing import Any

from alphacloud.api.connector import Connector
from alphacloud.api.models.responses import kilo_to_unit
from alphacloud.api.request import EndPoint
from alphacloud.controllers.base import DateQueryController

# JSON key -> attribute, all values in kWh
_FIELDS = {
    "epv": "photovoltaic",
    "eInput": "input",
    "eOutput": "output",
    "eCharge": "charge",
    "eDischarge": "discharge",
    "eGridCharge": "grid_charge",
}


class DailyEnergy(DateQueryController):
    """Energy totals for one day, in Wh.

    ``input`` is the energy drawn from the grid, ``output`` the energy fed
    into it.
    """

    endpoint = EndPoint.ONE_DATE_ENERGY_BY_SN

    def __init__(
        self,
        connector: Connector | None = None,
        serial_number: str = "",
        query_date: dt.date | None = None,
    ) -> None:
        super().__init__(connector, serial_number, query_date)
        self._photovoltaic = 0
        self._input = 0
        self._output = 0
        self._charge = 0
        self._discharge = 0
        self._grid_charge = 0
        self._raw_json: dict[str, Any] = {}
        self._valid = False

    @property
    def photovoltaic(self) -> int:
        return self._photovoltaic

    @property
    def input(self) -> int:
        return self._input

    @property
    def output(self) -> int:
        return self._output

    @property
    def charge(self) -> int:
        return self._charge

    @property
    def discharge(self) -> int:
        return self._discharge

    @property
    def grid_charge(self) -> int:
        return self._grid_charge

    @property
    def total_load(self) -> int:
        """Energy consumed by the house."""
        return self._photovoltaic + self._discharge + self._input - self._output - self._charge

    @property
    def raw_json(self) -> dict[str, Any]:
        return self._raw_json

    @property
    def valid(self) -> bool:
        return self._valid

    def _apply(self, payload: Any) -> None:
        obj = payload if isinstance(payload, dict) else {}
        old_total_load = self.total_load

        for key, name in _FIELDS.items():
            self._update(name, kilo_to_unit(obj.get(key)))

        if self.total_load != old_total_load:
            self.changed.emit("total_load", self.total_load)

        self._update("raw_json", obj)
        self._update("valid", any(obj.get(key) is not None for key in _FIELDS))

    def _cacheable(self, payload: Any) -> bool:
        return self._valid
