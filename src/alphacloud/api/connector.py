"""API connection: a configuration plus an HTTP transport."""

import httpx
import structlog

from alphacloud.config.settings import Configuration
from alphacloud.utils.signals import Signal

logger = structlog.get_logger(__name__)


class Connector:
    """Aggregates a configuration and the HTTP client used to send requests.

    All entity controllers require a connector. Without a transport no
    requests can be sent.
    """

    def __init__(
        self,
        configuration: Configuration | None = None,
        transport: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the connector.

        Args:
            configuration: API configuration. An empty one is created and
                owned by this connector if none is given.
            transport: Async HTTP client to send requests with.
        """
        self.changed = Signal("changed")
        self._configuration: Configuration | None = None
        self._transport = transport
        self._unsubscribe_configuration = None
        self.owns_configuration = configuration is None

        self._attach(configuration if configuration is not None else Configuration())

    def __repr__(self) -> str:
        return f"Connector(configuration={self._configuration!r}, valid={self.valid})"

    def _attach(self, configuration: Configuration | None) -> None:
        """Follow the validity of a new configuration."""
        if self._unsubscribe_configuration:
            self._unsubscribe_configuration()
            self._unsubscribe_configuration = None

        self._configuration = configuration
        if configuration is not None:
            self._unsubscribe_configuration = configuration.changed.connect(
                self._on_configuration_changed
            )

    def _on_configuration_changed(self, name: str, value: object) -> None:
        # Without a transport the connector stays invalid either way.
        if name == "valid" and self._transport is not None:
            self.changed.emit("valid", self.valid)

    @property
    def configuration(self) -> Configuration | None:
        return self._configuration

    @configuration.setter
    def configuration(self, configuration: Configuration | None) -> None:
        self.set_configuration(configuration)

    def set_configuration(self, configuration: Configuration | None) -> None:
        """Replace the configuration."""
        if configuration is self._configuration:
            return

        old_valid = self.valid
        self._attach(configuration)
        self.owns_configuration = False
        self.changed.emit("configuration", configuration)

        if old_valid != self.valid:
            self.changed.emit("valid", self.valid)

    @property
    def transport(self) -> httpx.AsyncClient | None:
        """The HTTP client requests are sent with."""
        return self._transport

    @transport.setter
    def transport(self, transport: httpx.AsyncClient | None) -> None:
        self.set_transport(transport)

    def set_transport(self, transport: httpx.AsyncClient | None) -> None:
        """Replace the HTTP client."""
        if transport is self._transport:
            return

        old_valid = self.valid
        self._transport = transport

        if old_valid != self.valid:
            self.changed.emit("valid", self.valid)

    @property
    def valid(self) -> bool:
        """Whether the configuration is valid and a transport is set."""
        return (
            self._configuration is not None
            and self._configuration.valid
            and self._transport is not None
        )
