"""Pydantic models for AlphaCloud API responses."""

import math
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def to_float(value: Any) -> float:
    """Coerce a JSON value to a float, 0 for missing or non-numeric values."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return 0.0
    try:
        result = float(value)
    except (ValueError, OverflowError):
        return 0.0
    return result if math.isfinite(result) else 0.0


def to_int(value: Any) -> int:
    """Coerce a JSON value to an int, rounding half away from zero."""
    return _round_half_away(to_float(value))


def kilo_to_unit(value: Any) -> int:
    """Convert a kW or kWh JSON value to W or Wh."""
    return _round_half_away(to_float(value) * 1000)


def _round_half_away(value: float) -> int:
    """Round to the nearest int, halves away from zero. Non-finite values give 0."""
    if not math.isfinite(value):
        return 0
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def parse_datetime(value: Any) -> datetime | None:
    """Parse an ISO 8601 timestamp such as ``2023-05-01 12:05:00``.

    Timestamps with an offset are converted to local time, so that all
    results are naive and comparable.

    Args:
        value: JSON value, usually a string without offset.

    Returns:
        A naive datetime, or None if the value is not a valid timestamp.
    """
    if not isinstance(value, str) or not value:
        return None
    try:
        result = datetime.fromisoformat(value)
    except ValueError:
        return None
    if result.tzinfo is not None:
        result = result.astimezone().replace(tzinfo=None)
    return result


class SystemStatus(Enum):
    """EMS status of a storage system."""

    UNKNOWN = -1
    NORMAL = 0

    @classmethod
    def from_json(cls, value: Any) -> "SystemStatus":
        if value == "Normal":
            return cls.NORMAL
        return cls.UNKNOWN


class PowerEntry(BaseModel):
    """One sample of a day's power series."""

    model_config = ConfigDict(frozen=True)

    photovoltaic_power: int = 0  # W
    current_load: int = 0  # W
    grid_feed: int = 0  # W
    grid_charge: int = 0  # W
    battery_soc: float = 0.0  # %
    upload_time: datetime | None = None
    json_data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> "PowerEntry":
        """Create an entry from an element of the ``getOneDayPowerBySn`` array.

        Args:
            obj: JSON object with ``ppv``, ``load``, ``feedIn``,
                ``gridCharge``, ``cbat`` and ``uploadTime``.
        """
        return cls(
            photovoltaic_power=to_int(obj.get("ppv")),
            current_load=to_int(obj.get("load")),
            grid_feed=to_int(obj.get("feedIn")),
            grid_charge=to_int(obj.get("gridCharge")),
            battery_soc=to_float(obj.get("cbat")),
            upload_time=parse_datetime(obj.get("uploadTime")),
            json_data=dict(obj),
        )


class StorageSystem(BaseModel):
    """A storage system registered to the application."""

    model_config = ConfigDict(frozen=True)

    serial_number: str = ""
    status: SystemStatus = SystemStatus.UNKNOWN
    inverter_model: str = ""
    inverter_power: int = 0  # W
    battery_model: str = ""
    battery_gross_capacity: int = 0  # Wh
    battery_remaining_capacity: int = 0  # Wh
    battery_usable_capacity: float = 0.0  # %
    photovoltaic_power: int = 0  # W
    json_data: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_json(cls, obj: dict[str, Any]) -> "StorageSystem":
        """Create a storage system from an element of the ``getEssList`` array."""

        def text(key: str) -> str:
            value = obj.get(key)
            return value if isinstance(value, str) else ""

        return cls(
            serial_number=text("sysSn"),
            status=SystemStatus.from_json(obj.get("emsStatus")),
            inverter_model=text("minv"),
            inverter_power=kilo_to_unit(obj.get("poinv")),
            battery_model=text("mbat"),
            battery_gross_capacity=kilo_to_unit(obj.get("cobat")),
            battery_remaining_capacity=kilo_to_unit(obj.get("surplusCobat")),
            battery_usable_capacity=to_float(obj.get("usCapacity")),
            photovoltaic_power=kilo_to_unit(obj.get("popv")),
            json_data=dict(obj),
        )
