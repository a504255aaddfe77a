"""Configuration for AlphaCloud."""

from alphacloud.config.settings import (
    DEFAULT_API_URL,
    DEFAULT_REQUEST_TIMEOUT,
    Configuration,
    Settings,
    default_configuration_path,
    get_settings,
    load_configuration,
)

__all__ = [
    "DEFAULT_API_URL",
    "DEFAULT_REQUEST_TIMEOUT",
    "Configuration",
    "Settings",
    "default_configuration_path",
    "get_settings",
    "load_configuration",
]
