"""Application settings and API configuration."""

import configparser
import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

import httpx
import structlog
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from alphacloud.utils.signals import Signal

logger = structlog.get_logger(__name__)

DEFAULT_API_URL = "https://openapi.alphaess.com/api"
DEFAULT_REQUEST_TIMEOUT = 30000  # ms

CONFIG_FILE_NAME = "alphacloud.ini"


def default_configuration_path() -> Path:
    """Get the path of the default INI configuration file."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    base = Path(config_home) if config_home else Path.home() / ".config"
    return base / CONFIG_FILE_NAME


def default_cache_dir() -> Path:
    """Get the platform cache directory."""
    cache_home = os.environ.get("XDG_CACHE_HOME")
    return Path(cache_home) if cache_home else Path.home() / ".cache"


def is_valid_url(url: str) -> bool:
    """Check whether a URL is well-formed enough to send requests to."""
    if not url:
        return False
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ALPHACLOUD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Configuration
    api_url: str | None = Field(
        default=None,
        description="AlphaCloud API URL (defaults to the INI file, then the official endpoint)",
    )
    app_id: str | None = Field(default=None, description="Application ID")
    app_secret: SecretStr | None = Field(default=None, description="Application secret")
    request_timeout: int | None = Field(
        default=None,
        ge=0,
        description="Request timeout in milliseconds (0 disables the timeout)",
    )
    config_file: Path | None = Field(
        default=None,
        description="INI configuration file (defaults to ~/.config/alphacloud.ini)",
    )

    # Cache Configuration
    cache_dir: Path = Field(
        default_factory=default_cache_dir,
        description="Directory for the storage systems cache file",
    )

    # Logging Configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="WARNING",
        description="Logging level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (logs to console if not set)",
    )
    log_max_bytes: int = Field(
        default=10 * 1024 * 1024,  # 10 MB
        description="Maximum log file size before rotation",
    )
    log_backup_count: int = Field(
        default=5,
        description="Number of backup log files to keep",
    )

    def get_config_file(self) -> Path:
        """Get the INI configuration file to read."""
        return self.config_file or default_configuration_path()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()


class Configuration:
    """API configuration: URL, application ID and secret, request timeout.

    A configuration is created empty and invalid. Every setter emits
    ``changed(name, value)`` when the value actually changed, followed by
    ``changed("valid", valid)`` when that flipped as a result.

    The INI file format is::

        [Api]
        ApiUrl=https://openapi.alphaess.com/api
        AppId=alpha...
        AppSecret=...
        Timeout=30000
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        app_id: str = "",
        app_secret: str = "",
        request_timeout: int = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self.changed = Signal("changed")
        self._api_url = api_url
        self._app_id = app_id
        self._app_secret = app_secret
        self._request_timeout = max(request_timeout, 0)

    def __repr__(self) -> str:
        return (
            f"Configuration(api_url={self._api_url!r}, app_id={self._app_id!r}, "
            f"request_timeout={self._request_timeout}, valid={self.valid})"
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Configuration":
        """Create a configuration from the INI file and environment overrides.

        Args:
            settings: Application settings.

        Returns:
            The configuration, which may still be invalid.
        """
        configuration = cls()
        configuration.load_from_file(settings.get_config_file())

        if settings.api_url:
            configuration.api_url = settings.api_url
        if settings.app_id:
            configuration.app_id = settings.app_id
        if settings.app_secret:
            configuration.app_secret = settings.app_secret.get_secret_value()
        if settings.request_timeout is not None:
            configuration.request_timeout = settings.request_timeout

        return configuration

    def _set(self, name: str, value: object) -> None:
        attr = f"_{name}"
        if getattr(self, attr) == value:
            return

        old_valid = self.valid
        setattr(self, attr, value)
        self.changed.emit(name, value)

        if old_valid != self.valid:
            self.changed.emit("valid", self.valid)

    @property
    def api_url(self) -> str:
        """The URL requests are sent to."""
        return self._api_url

    @api_url.setter
    def api_url(self, api_url: str) -> None:
        self._set("api_url", api_url)

    def reset_api_url(self) -> None:
        """Reset the API URL to the official endpoint."""
        self.api_url = DEFAULT_API_URL

    @property
    def app_id(self) -> str:
        """The application ID registered on the API."""
        return self._app_id

    @app_id.setter
    def app_id(self, app_id: str) -> None:
        self._set("app_id", app_id)

    @property
    def app_secret(self) -> str:
        return self._app_secret

    @app_secret.setter
    def app_secret(self, app_secret: str) -> None:
        self._set("app_secret", app_secret)

    @property
    def request_timeout(self) -> int:
        """Request timeout in milliseconds, 0 means no timeout."""
        return self._request_timeout

    @request_timeout.setter
    def request_timeout(self, request_timeout: int) -> None:
        if request_timeout < 0:
            return
        self._set("request_timeout", request_timeout)

    def reset_request_timeout(self) -> None:
        self.request_timeout = DEFAULT_REQUEST_TIMEOUT

    @property
    def valid(self) -> bool:
        """Whether requests can be made with this configuration."""
        return is_valid_url(self._api_url) and bool(self._app_id) and bool(self._app_secret)

    def load_from_file(self, path: str | Path) -> bool:
        """Load the configuration from an INI file.

        Args:
            path: The file path.

        Returns:
            Whether the configuration could be loaded and is valid.
        """
        parser = configparser.ConfigParser(interpolation=None)
        parser.optionxform = str  # type: ignore[assignment,method-assign]

        try:
            with open(path, encoding="utf-8") as f:
                parser.read_file(f)
        except OSError as e:
            logger.warning("Failed to read configuration", path=str(path), error=str(e))
            return False
        except (configparser.Error, UnicodeDecodeError) as e:
            logger.warning("Failed to parse configuration", path=str(path), error=str(e))
            return False

        logger.debug("Reading configuration", path=str(path))
        return self.load_from_parser(parser)

    def load_from_parser(self, parser: configparser.ConfigParser) -> bool:
        """Load the configuration from an already parsed INI document.

        Missing or malformed values fall back to their defaults.

        Returns:
            Whether the configuration is valid afterwards.
        """
        api_url = parser.get("Api", "ApiUrl", fallback=DEFAULT_API_URL)
        if not is_valid_url(api_url):
            api_url = DEFAULT_API_URL
        app_id = parser.get("Api", "AppId", fallback="")
        app_secret = parser.get("Api", "AppSecret", fallback="")

        try:
            timeout = parser.getint("Api", "Timeout", fallback=DEFAULT_REQUEST_TIMEOUT)
        except ValueError:
            timeout = DEFAULT_REQUEST_TIMEOUT

        self.api_url = api_url
        self.app_id = app_id
        self.app_secret = app_secret
        self.request_timeout = timeout

        return self.valid

    def load_default(self) -> bool:
        """Load the default configuration file."""
        return self.load_from_file(default_configuration_path())


def load_configuration(path: str | Path) -> Configuration:
    """Load a configuration from an INI file.

    Args:
        path: The file path.

    Returns:
        The loaded configuration, or a default (invalid) one if the file
        could not be read.
    """
    configuration = Configuration()
    configuration.load_from_file(path)
    return configuration
