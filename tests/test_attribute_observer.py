"""Tests for observe_attribute()."""

from unittest.mock import MagicMock

from gameobservers.memory import Instance
from gameobservers.observers import observe_attribute


class TestObserveAttribute:
    """Tests for attribute observation lifecycle."""

    def test_existing_value_fires_immediately(self, recorder):
        """An attribute that is already set fires the callback on registration."""
        part = Instance("Part")
        part.set_attribute("Health", 100)

        observe_attribute(part, "Health", recorder.callback)

        assert recorder.log == [("callback", 100)]

    def test_unset_attribute_does_not_fire(self):
        """No callback while the attribute is unset."""
        part = Instance("Part")
        callback = MagicMock()

        observe_attribute(part, "Health", callback)

        callback.assert_not_called()

    def test_change_runs_cleanup_before_callback(self, recorder):
        """Each change runs the previous cleanup before the new callback."""
        part = Instance("Part")
        observe_attribute(part, "Health", recorder.callback)

        part.set_attribute("Health", 10)
        part.set_attribute("Health", 20)

        assert recorder.log == [
            ("callback", 10),
            ("cleanup", 10),
            ("callback", 20),
        ]

    def test_clearing_attribute_runs_cleanup(self, recorder):
        """Setting the attribute to None releases the cleanup without a callback."""
        part = Instance("Part")
        part.set_attribute("Health", 10)
        observe_attribute(part, "Health", recorder.callback)

        part.set_attribute("Health", None)

        assert recorder.log == [("callback", 10), ("cleanup", 10)]

    def test_guard_rejection(self, recorder):
        """A rejected value runs the previous cleanup but not the callback."""
        part = Instance("Part")
        observe_attribute(part, "Health", recorder.callback, guard=lambda v: v > 5)

        part.set_attribute("Health", 10)
        part.set_attribute("Health", 3)

        assert recorder.log == [("callback", 10), ("cleanup", 10)]

    def test_guard_rejection_does_not_block_future_events(self, recorder):
        """Later values accepted by the guard still fire."""
        part = Instance("Part")
        observe_attribute(part, "Health", recorder.callback, guard=lambda v: v > 5)

        part.set_attribute("Health", 3)
        part.set_attribute("Health", 8)

        assert recorder.log == [("callback", 8)]

    def test_stop_runs_cleanup_and_blocks_callbacks(self, recorder):
        """stop() runs the pending cleanup once and ignores later changes."""
        part = Instance("Part")
        part.set_attribute("Health", 10)
        stop = observe_attribute(part, "Health", recorder.callback)

        stop()
        stop()
        part.set_attribute("Health", 20)

        assert recorder.log == [("callback", 10), ("cleanup", 10)]

    def test_other_attributes_ignored(self):
        """Changes to other attributes do not fire the callback."""
        part = Instance("Part")
        callback = MagicMock(return_value=None)
        observe_attribute(part, "Health", callback)

        part.set_attribute("Armor", 5)

        callback.assert_not_called()
