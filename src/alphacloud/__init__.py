"""Client library for the AlphaESS AlphaCloud open API."""

from alphacloud.api import ApiRequest, Connector, EndPoint, ErrorCode, RequestStatus
from alphacloud.config import Configuration, load_configuration
from alphacloud.controllers import DailyEnergy, DayPowerSeries, DeviceInventory, LiveData

__version__ = "0.1.0"

__all__ = [
    "ApiRequest",
    "Configuration",
    "Connector",
    "DailyEnergy",
    "DayPowerSeries",
    "DeviceInventory",
    "EndPoint",
    "ErrorCode",
    "LiveData",
    "RequestStatus",
    "load_configuration",
]
