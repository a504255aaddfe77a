"""Entity controllers backed by API requests."""

from alphacloud.controllers.base import DateQueryController, EntityController, SystemController
from alphacloud.controllers.daily_energy import DailyEnergy
from alphacloud.controllers.day_power import DayPowerSeries
from alphacloud.controllers.live_data import LiveData
from alphacloud.controllers.storage_systems import DeviceInventory

__all__ = [
    "DailyEnergy",
    "DateQueryController",
    "DayPowerSeries",
    "DeviceInventory",
    "EntityController",
    "LiveData",
    "SystemController",
]
