"""Synchronous signal primitive.

A Signal is a single event source that hands its arguments to every connected
handler, inline and in connection order. It is the building block the
in-memory host uses for attribute, property, hierarchy, tag and player
notifications, and the shape the observers expect from a real host.

Unlike a fire-and-forget event bus, handler exceptions are NOT caught here.
Whatever a handler raises propagates to the code that fired the signal, which
mirrors how a host runtime surfaces script errors.
"""

from typing import Any, Callable, List

# Type alias for signal handlers
Handler = Callable[..., Any]


class Connection:
    """Handle returned by Signal.connect(); call disconnect() to unsubscribe."""

    def __init__(self, signal: "Signal", handler: Handler) -> None:
        self._signal = signal
        self.handler = handler
        self.connected = True

    def disconnect(self) -> None:
        if not self.connected:
            return
        self.connected = False
        self._signal._remove(self)

    def __repr__(self) -> str:
        state = "connected" if self.connected else "disconnected"
        return f"<Connection {self._signal.name} {state}>"


class Signal:
    """Synchronous signal with ordered, individually disconnectable handlers.

    Example usage:
        changed = Signal("Changed")

        def on_changed(value):
            print(f"changed to {value}")

        connection = changed.connect(on_changed)
        changed.fire(42)
        connection.disconnect()
    """

    def __init__(self, name: str = "Signal") -> None:
        """Initialize a signal with no connections.

        Args:
            name: Label used in logs and reprs
        """
        self.name = name
        self._connections: List[Connection] = []

    def connect(self, handler: Handler) -> Connection:
        """Subscribe a handler to this signal.

        Args:
            handler: Called with the positional arguments passed to fire()

        Returns:
            Connection handle for unsubscribing
        """
        connection = Connection(self, handler)
        self._connections.append(connection)
        return connection

    def _remove(self, connection: Connection) -> None:
        try:
            self._connections.remove(connection)
        except ValueError:
            pass

    def fire(self, *args: Any) -> None:
        """Deliver arguments to every connected handler.

        Handlers are called on a snapshot of the connection list, so handlers
        connected during delivery wait for the next fire. A handler that is
        disconnected mid-delivery and has not run yet is skipped.

        Args:
            *args: Positional arguments for each handler
        """
        for connection in list(self._connections):
            if connection.connected:
                connection.handler(*args)

    def has_connections(self) -> bool:
        """Check if any handler is currently connected."""
        return bool(self._connections)

    def disconnect_all(self) -> None:
        """Disconnect every handler.

        Used when the owning instance is destroyed.
        """
        for connection in list(self._connections):
            connection.disconnect()

    def __repr__(self) -> str:
        return f"<Signal {self.name} connections={len(self._connections)}>"
