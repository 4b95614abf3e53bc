"""Character observers.

observe_character() follows the character model of every player (or of an
allow-list of players); observe_local_character() follows only the client's
own character. Both key their watch set by player, since a player has at most
one character at a time: a new character releases the old one's cleanup
before the callback runs for the new one.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from ..errors import ClientContextError
from ..host import Host, InstanceLike, PlayerLike, resolve_host
from ..signal import Connection
from ..watch import WatchSet

logger = logging.getLogger(__name__)


def _watch_characters(player: PlayerLike, watch: WatchSet) -> List[Connection]:
    """Feed one player's character lifecycle into a watch set keyed by player.

    The callback of the watch set receives (player, character).

    Returns:
        The character signal connections, for the caller to disconnect
    """

    def on_character_added(character: InstanceLike) -> None:
        watch.add(player, player, character)

    def on_character_removing(character: InstanceLike) -> None:
        watch.remove(player)

    connections = [
        player.character_added.connect(on_character_added),
        player.character_removing.connect(on_character_removing),
    ]
    if player.character is not None and player not in watch:
        try:
            watch.add(player, player, player.character)
        except Exception:
            for connection in connections:
                connection.disconnect()
            raise
    return connections


def observe_character(
    callback: Callable[[PlayerLike, InstanceLike], Optional[Callable[[], None]]],
    allowed_players: Optional[Sequence[PlayerLike]] = None,
    *,
    host: Optional[Host] = None,
) -> Callable[[], None]:
    """Observe player characters in the game.

    Example usage:
        def on_character(player, character):
            print(f"Character spawned for {player.name}")
            return lambda: print(f"Character removed for {player.name}")

        stop = observe_character(on_character)

    Args:
        callback: Called with (player, character) for every current character
            and every character spawned later. May return a cleanup that runs
            when the character is removed (death, respawn, leave) or the
            observer is stopped.
        allowed_players: Optional allow-list. None observes every player.
        host: Host providing player sessions (default: the global host)

    Returns:
        Stop function; idempotent
    """
    players = resolve_host(host).players
    allowed = list(allowed_players) if allowed_players is not None else None
    watch = WatchSet(callback, label="observe_character")

    # Observed players -> their character signal connections
    player_connections: Dict[PlayerLike, List[Connection]] = {}

    def on_player_added(player: PlayerLike) -> None:
        if watch.stopped or player in player_connections:
            return
        if allowed is not None and player not in allowed:
            return
        # Placeholder so re-entrant joins are ignored during the first callback
        player_connections[player] = []
        try:
            character_connections = _watch_characters(player, watch)
        except Exception:
            player_connections.pop(player, None)
            raise
        if player in player_connections:
            player_connections[player] = character_connections
        else:
            for connection in character_connections:
                connection.disconnect()

    def on_player_removing(player: PlayerLike, *_) -> None:
        character_connections = player_connections.pop(player, None)
        if character_connections is None:
            return
        for connection in character_connections:
            connection.disconnect()
        watch.remove(player)

    connections = [
        players.player_added.connect(on_player_added),
        players.player_removing.connect(on_player_removing),
    ]

    def stop() -> None:
        for connection in connections:
            connection.disconnect()
        for player_conns in player_connections.values():
            for connection in player_conns:
                connection.disconnect()
        player_connections.clear()
        watch.stop()

    try:
        for player in players.get_players():
            on_player_added(player)
    except Exception:
        stop()
        raise

    logger.debug(f"{watch.label}: observing {len(player_connections)} player(s)")
    return stop


def observe_local_character(
    callback: Callable[[InstanceLike], Optional[Callable[[], None]]],
    *,
    host: Optional[Host] = None,
) -> Callable[[], None]:
    """Observe the local player's character. Client only.

    Args:
        callback: Called with every character of the local player; may return
            a cleanup that runs when the character is removed or the observer
            is stopped
        host: Host providing player sessions (default: the global host)

    Returns:
        Stop function; idempotent

    Raises:
        ClientContextError: If the host has no local player (server context)
    """
    players = resolve_host(host).players
    local_player = players.local_player
    if local_player is None:
        raise ClientContextError(
            "observe_local_character can only be used in a client context "
            "(the host has no local player)"
        )

    def on_character(player: PlayerLike, character: InstanceLike) -> Optional[Callable[[], None]]:
        return callback(character)

    watch = WatchSet(on_character, label=f"observe_local_character({local_player.name})")
    connections = _watch_characters(local_player, watch)

    def stop() -> None:
        for connection in connections:
            connection.disconnect()
        watch.stop()

    return stop
