"""Host runtime interfaces and the global host registry.

The observers never talk to an engine directly. Everything they need from the
host runtime (change notification, the tag index, player sessions and the
instance hierarchy) is described here as Protocols, so a live engine binding
and the in-memory host in gameobservers.memory are interchangeable.

Observers take an optional host= argument. When it is omitted they fall back
to the process-wide host installed with init_host().
"""

import enum
from typing import Any, List, Optional, Protocol

from .errors import HostNotInitializedError
from .signal import Signal


class ExitReason(enum.Enum):
    """Why a player left the session.

    Passed to player cleanups. UNKNOWN is also used when an observer is
    stopped while the player is still connected.
    """
    UNKNOWN = "unknown"
    DISCONNECTED = "disconnected"
    KICKED = "kicked"
    TELEPORTED = "teleported"
    SHUTDOWN = "shutdown"


class InstanceLike(Protocol):
    """A node in the host's instance hierarchy."""

    name: str
    parent: Optional["InstanceLike"]
    child_added: Signal
    child_removed: Signal
    ancestry_changed: Signal
    destroying: Signal

    def get_children(self) -> List["InstanceLike"]:
        ...

    def is_descendant_of(self, other: "InstanceLike") -> bool:
        ...

    def get_attribute(self, name: str) -> Any:
        ...

    def get_attribute_changed_signal(self, name: str) -> Signal:
        ...

    def get_property_changed_signal(self, prop: str) -> Signal:
        ...


class TagIndexLike(Protocol):
    """Tag membership index with per-tag add/remove notifications."""

    def get_tagged(self, tag: str) -> List[InstanceLike]:
        ...

    def get_instance_added_signal(self, tag: str) -> Signal:
        ...

    def get_instance_removed_signal(self, tag: str) -> Signal:
        ...


class PlayerLike(Protocol):
    """A connected player and their current character model."""

    name: str
    character: Optional[InstanceLike]
    character_added: Signal
    character_removing: Signal


class PlayersLike(Protocol):
    """Player session tracking.

    player_removing fires with (player, exit_reason) before the player is
    dropped from get_players().
    """

    local_player: Optional[PlayerLike]
    player_added: Signal
    player_removing: Signal

    def get_players(self) -> List[PlayerLike]:
        ...


class Host(Protocol):
    """Bundle of the ambient host services the observers depend on."""

    tags: TagIndexLike
    players: PlayersLike


_host: Optional[Host] = None


def init_host(host: Optional[Host]) -> None:
    """Install the process-wide host used when observers get no host= argument.

    Args:
        host: Host to install, or None to uninstall
    """
    global _host
    _host = host


def get_host() -> Host:
    """Get the process-wide host.

    Returns:
        The host installed with init_host()

    Raises:
        HostNotInitializedError: If no host has been installed
    """
    if _host is None:
        raise HostNotInitializedError(
            "No host installed. Call init_host() or pass host= to the observer."
        )
    return _host


def resolve_host(host: Optional[Host]) -> Host:
    """Return the explicitly injected host, or the global one."""
    if host is not None:
        return host
    return get_host()
