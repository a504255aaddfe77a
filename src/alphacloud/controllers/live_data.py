"""Live power data of a storage system."""

from typing import Any

from alphacloud.api.connector import Connector
from alphacloud.api.models.responses import to_float, to_int
from alphacloud.api.request import EndPoint
from alphacloud.controllers.base import SystemController

# A response carrying any of these is considered valid.
_VALIDITY_KEYS = ("pload", "soc", "pgrid", "pbat")


class LiveData(SystemController):
    """Most recent power readings of a storage system.

    Powers are in W. ``grid_power`` is negative when feeding into the grid,
    ``battery_power`` is negative when charging.
    """

    endpoint = EndPoint.LAST_POWER_DATA

    def __init__(self, connector: Connector | None = None, serial_number: str = "") -> None:
        super().__init__(connector, serial_number)
        self._photovoltaic_power = 0
        self._current_load = 0
        self._grid_power = 0
        self._battery_power = 0
        self._battery_soc = 0.0
        self._raw_json: dict[str, Any] = {}
        self._valid = False

    @property
    def photovoltaic_power(self) -> int:
        return self._photovoltaic_power

    @property
    def current_load(self) -> int:
        return self._current_load

    @property
    def grid_power(self) -> int:
        return self._grid_power

    @property
    def battery_power(self) -> int:
        return self._battery_power

    @property
    def battery_soc(self) -> float:
        """Battery state of charge in percent."""
        return self._battery_soc

    @property
    def raw_json(self) -> dict[str, Any]:
        """The ``data`` object of the last response."""
        return self._raw_json

    @property
    def valid(self) -> bool:
        return self._valid

    def _apply(self, payload: Any) -> None:
        obj = payload if isinstance(payload, dict) else {}

        self._update("photovoltaic_power", to_int(obj.get("ppv")))
        self._update("current_load", to_int(obj.get("pload")))
        self._update("grid_power", to_int(obj.get("pgrid")))
        self._update("battery_power", to_int(obj.get("pbat")))
        self._update("battery_soc", to_float(obj.get("soc")))
        self._update("raw_json", obj)
        self._update("valid", any(obj.get(key) is not None for key in _VALIDITY_KEYS))
