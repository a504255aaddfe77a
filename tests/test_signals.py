"""Tests for the signal implementation."""

from alphacloud.utils.signals import Signal


class TestSignal:
    """Test connecting and emitting."""

    def test_emit_in_connection_order(self):
        signal = Signal("changed")
        calls = []
        signal.connect(lambda value: calls.append(("first", value)))
        signal.connect(lambda value: calls.append(("second", value)))

        signal.emit(1)

        assert calls == [("first", 1), ("second", 1)]

    def test_unsubscribe(self):
        signal = Signal()
        calls = []
        unsubscribe = signal.connect(calls.append)

        unsubscribe()
        signal.emit(1)

        assert calls == []
        assert len(signal) == 0

    def test_disconnect_all(self):
        signal = Signal()
        signal.connect(print)
        signal.connect(repr)

        signal.disconnect()

        assert len(signal) == 0

    def test_disconnect_unknown_callback(self):
        signal = Signal()
        signal.connect(print)

        signal.disconnect(repr)

        assert len(signal) == 1

    def test_callback_disconnecting_itself(self):
        """Test every callback connected at emit time is called once."""
        signal = Signal()
        calls = []

        def once():
            calls.append("once")
            unsubscribe()

        unsubscribe = signal.connect(once)
        signal.connect(lambda: calls.append("other"))

        signal.emit()
        signal.emit()

        assert calls == ["once", "other", "other"]
