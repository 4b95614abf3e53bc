"""Player observer."""

import logging
from typing import Callable, Optional

from ..host import ExitReason, Host, PlayerLike, resolve_host
from ..watch import WatchSet

logger = logging.getLogger(__name__)


def observe_player(
    callback: Callable[[PlayerLike], Optional[Callable[[ExitReason], None]]],
    *,
    host: Optional[Host] = None,
) -> Callable[[], None]:
    """Observe players in the game.

    Example usage:
        def on_player(player):
            print(f"{player.name} entered the game")

            def on_leave(exit_reason):
                print(f"{player.name} left the game ({exit_reason.value})")
            return on_leave

        stop = observe_player(on_player)

    Args:
        callback: Called for every player already in the session and every
            player that joins. May return a cleanup, which receives the
            player's ExitReason when they leave, or ExitReason.UNKNOWN when
            the observer is stopped first.
        host: Host providing player sessions (default: the global host)

    Returns:
        Stop function; idempotent
    """
    players = resolve_host(host).players
    watch = WatchSet(callback, label="observe_player")

    def on_player_added(player: PlayerLike) -> None:
        watch.add(player, player)

    def on_player_removing(player: PlayerLike, exit_reason: ExitReason = ExitReason.UNKNOWN) -> None:
        watch.remove(player, exit_reason)

    connections = [
        players.player_added.connect(on_player_added),
        players.player_removing.connect(on_player_removing),
    ]

    def stop() -> None:
        for connection in connections:
            connection.disconnect()
        watch.stop(ExitReason.UNKNOWN)

    try:
        for player in players.get_players():
            if player not in watch:
                watch.add(player, player)
    except Exception:
        stop()
        raise

    logger.debug(f"{watch.label}: observing {len(watch)} existing player(s)")
    return stop
