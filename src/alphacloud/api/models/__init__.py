"""Pydantic models for AlphaCloud API responses."""

from alphacloud.api.models.responses import (
    PowerEntry,
    StorageSystem,
    SystemStatus,
    kilo_to_unit,
    parse_datetime,
    to_float,
    to_int,
)

__all__ = [
    "PowerEntry",
    "StorageSystem",
    "SystemStatus",
    "kilo_to_unit",
    "parse_datetime",
    "to_float",
    "to_int",
]
