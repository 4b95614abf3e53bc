"""Tests for observe_player()."""

from gameobservers.host import ExitReason
from gameobservers.observers import observe_player


class TestObservePlayer:
    """Tests for player observation lifecycle."""

    def test_existing_players_fire_immediately(self, recorder, host):
        """Players already in the session fire on registration."""
        alice = host.players.add_player("alice")
        bob = host.players.add_player("bob")

        observe_player(recorder.callback, host=host)

        assert recorder.log == [("callback", alice), ("callback", bob)]

    def test_join_and_leave_with_exit_reason(self, recorder, host):
        """Leaving passes the host's exit reason to the cleanup."""
        observe_player(recorder.callback, host=host)

        alice = host.players.add_player("alice")
        host.players.remove_player(alice, ExitReason.KICKED)

        assert recorder.log == [
            ("callback", alice),
            ("cleanup", alice, ExitReason.KICKED),
        ]

    def test_stop_uses_unknown_exit_reason(self, recorder, host):
        """Cleanups run by stop() receive ExitReason.UNKNOWN."""
        alice = host.players.add_player("alice")
        stop = observe_player(recorder.callback, host=host)

        stop()
        stop()
        host.players.add_player("bob")

        assert recorder.log == [
            ("callback", alice),
            ("cleanup", alice, ExitReason.UNKNOWN),
        ]

    def test_rejoin_fires_again(self, recorder, host):
        """A player who leaves and rejoins is observed twice, cleanup in between."""
        observe_player(recorder.callback, host=host)
        alice = host.players.add_player("alice")

        host.players.remove_player(alice)
        host.players.add_player(alice)

        assert recorder.log == [
            ("callback", alice),
            ("cleanup", alice, ExitReason.DISCONNECTED),
            ("callback", alice),
        ]
