"""Tests for the connector."""

from alphacloud.api.connector import Connector
from alphacloud.config.settings import Configuration


class TestConnector:
    """Test Connector."""

    def test_owns_empty_configuration(self):
        """Test a connector without configuration creates its own."""
        connector = Connector()

        assert connector.configuration is not None
        assert connector.owns_configuration
        assert not connector.configuration.valid
        assert not connector.valid

    def test_valid_requires_transport(self, configuration):
        """Test a valid configuration alone is not enough."""
        connector = Connector(configuration)

        assert not connector.owns_configuration
        assert not connector.valid

    def test_valid(self, connector):
        assert connector.valid

    def test_set_transport_emits_valid(self, configuration, transport, spy):
        """Test setting a transport makes the connector valid."""
        connector = Connector(configuration)
        changes = spy(connector.changed)

        connector.transport = transport

        assert connector.valid
        assert changes.calls == [("valid", True)]

    def test_configuration_validity_forwarded(self, transport, spy):
        """Test validity changes of the configuration are forwarded."""
        configuration = Configuration(app_id="id")
        connector = Connector(configuration, transport)
        changes = spy(connector.changed)

        configuration.app_secret = "secret"
        assert changes.calls == [("valid", True)]

        configuration.app_secret = ""
        assert changes.calls[-1] == ("valid", False)

    def test_configuration_changes_without_transport_silent(self, spy):
        """Test nothing is emitted while the connector cannot become valid."""
        configuration = Configuration(app_id="id")
        connector = Connector(configuration)
        changes = spy(connector.changed)

        configuration.app_secret = "secret"

        assert len(changes) == 0

    def test_replace_configuration(self, configuration, transport, spy):
        """Test replacing the configuration."""
        connector = Connector(transport=transport)
        changes = spy(connector.changed)

        connector.configuration = configuration

        assert connector.configuration is configuration
        assert not connector.owns_configuration
        assert changes.calls == [("configuration", configuration), ("valid", True)]

    def test_replaced_configuration_detached(self, configuration, transport, spy):
        """Test the old configuration is no longer observed."""
        connector = Connector(configuration, transport)
        connector.configuration = Configuration()
        changes = spy(connector.changed)

        configuration.app_id = ""

        assert len(changes) == 0

    def test_same_configuration_silent(self, connector, configuration, spy):
        changes = spy(connector.changed)

        connector.configuration = configuration

        assert len(changes) == 0
