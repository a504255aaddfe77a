"""Utility modules for AlphaCloud."""

from alphacloud.utils.exceptions import (
    AlphaCloudError,
    APIError,
    ConfigurationError,
)
from alphacloud.utils.signals import Signal

__all__ = [
    "APIError",
    "AlphaCloudError",
    "ConfigurationError",
    "Signal",
]
