"""Tests for the synchronous Signal primitive."""

import pytest

from gameobservers.signal import Signal


class TestSignalConnection:
    """Tests for connecting and disconnecting handlers."""

    def test_connect_and_fire(self):
        """Handler receives fired arguments."""
        signal = Signal("Test")
        received = []

        signal.connect(lambda *args: received.append(args))
        signal.fire(1, "two")

        assert received == [(1, "two")]

    def test_handlers_called_in_connection_order(self):
        """Handlers run in the order they were connected."""
        signal = Signal()
        order = []

        signal.connect(lambda: order.append("first"))
        signal.connect(lambda: order.append("second"))
        signal.fire()

        assert order == ["first", "second"]

    def test_disconnect_stops_delivery(self):
        """A disconnected handler is not called again."""
        signal = Signal()
        received = []

        connection = signal.connect(received.append)
        signal.fire(1)
        connection.disconnect()
        signal.fire(2)

        assert received == [1]
        assert connection.connected is False
        assert signal.has_connections() is False

    def test_disconnect_is_idempotent(self):
        """Disconnecting twice does not raise."""
        signal = Signal()
        connection = signal.connect(lambda: None)

        connection.disconnect()
        connection.disconnect()

        assert connection.connected is False

    def test_disconnect_all(self):
        """disconnect_all() removes every handler."""
        signal = Signal()
        connections = [signal.connect(lambda: None) for _ in range(3)]

        signal.disconnect_all()

        assert not signal.has_connections()
        assert all(not c.connected for c in connections)


class TestSignalDelivery:
    """Tests for delivery semantics during fire()."""

    def test_handler_disconnected_mid_delivery_is_skipped(self):
        """A handler disconnected by an earlier handler does not run."""
        signal = Signal()
        received = []
        second = None

        def first():
            received.append("first")
            second.disconnect()

        signal.connect(first)
        second = signal.connect(lambda: received.append("second"))
        signal.fire()

        assert received == ["first"]

    def test_handler_connected_mid_delivery_waits(self):
        """A handler connected during delivery only sees later fires."""
        signal = Signal()
        received = []

        def first():
            received.append("first")
            signal.connect(lambda: received.append("late"))

        signal.connect(first)
        signal.fire()
        assert received == ["first"]

    def test_handler_exception_propagates(self):
        """Handler exceptions reach the code that fired the signal."""
        signal = Signal()

        def boom():
            raise RuntimeError("handler failed")

        signal.connect(boom)

        with pytest.raises(RuntimeError, match="handler failed"):
            signal.fire()
