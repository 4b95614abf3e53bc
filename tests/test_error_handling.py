"""Tests for callback failure handling.

By default a failing callback propagates out of the host event that triggered
it. With the "log" policy the failure is logged and observation continues.
"""

import logging

import pytest

from gameobservers.config import set_callback_error_policy
from gameobservers.errors import ConfigError
from gameobservers.memory import Instance
from gameobservers.observers import observe_attribute, observe_children, observe_tag


def failing_callback(value):
    raise RuntimeError(f"callback failed for {value!r}")


class TestRaisePolicy:
    """Tests for the default "raise" policy."""

    def test_failure_during_registration_propagates(self):
        """A callback failing on registration propagates and leaves nothing connected."""
        part = Instance("Part")
        part.set_attribute("Health", 10)

        with pytest.raises(RuntimeError, match="callback failed"):
            observe_attribute(part, "Health", failing_callback)

        assert not part.get_attribute_changed_signal("Health").has_connections()

    def test_failure_during_event_propagates_to_firer(self, host):
        """A callback failing on a later event surfaces from the host call."""
        parent = Instance("Parent", parent=host.root)
        observe_children(parent, failing_callback)

        with pytest.raises(RuntimeError, match="callback failed"):
            Instance("Child", parent=parent)

    def test_tag_registration_failure_disconnects(self, host):
        """A failing tag callback on registration disconnects the tag signals."""
        door = Instance("Door", parent=host.root)
        host.tags.add_tag(door, "Door")

        with pytest.raises(RuntimeError):
            observe_tag("Door", failing_callback, host=host)

        assert not host.tags.get_instance_added_signal("Door").has_connections()
        assert not host.tags.get_instance_removed_signal("Door").has_connections()

    def test_failing_guard_propagates(self):
        """A guard that raises surfaces from the attribute change."""
        part = Instance("Part")

        def guard(value):
            if value == "bad":
                raise TypeError("guard failed")
            return True

        observe_attribute(part, "Health", lambda value: None, guard=guard)

        with pytest.raises(TypeError, match="guard failed"):
            part.set_attribute("Health", "bad")


class TestLogPolicy:
    """Tests for the "log" policy."""

    def test_failure_is_logged_and_observation_continues(self, host, caplog):
        """A failing callback is logged; later events are still delivered."""
        set_callback_error_policy("log")
        parent = Instance("Parent", parent=host.root)
        seen = []

        def callback(child):
            if child.name == "Bad":
                raise RuntimeError("bad child")
            seen.append(child.name)

        observe_children(parent, callback)

        with caplog.at_level(logging.ERROR, logger="gameobservers.watch"):
            Instance("Bad", parent=parent)
            Instance("Good", parent=parent)

        assert seen == ["Good"]
        assert "bad child" in caplog.text

    def test_failing_cleanup_is_logged(self, caplog):
        """A failing cleanup is logged and does not stop the observer."""
        set_callback_error_policy("log")
        part = Instance("Part")
        seen = []

        def callback(value):
            seen.append(value)

            def cleanup():
                raise RuntimeError("cleanup failed")
            return cleanup

        observe_attribute(part, "Health", callback)

        with caplog.at_level(logging.ERROR, logger="gameobservers.watch"):
            part.set_attribute("Health", 1)
            part.set_attribute("Health", 2)

        assert seen == [1, 2]
        assert "cleanup failed" in caplog.text

    def test_failing_guard_counts_as_rejection(self, recorder, caplog):
        """A guard that raises is logged and treated as a rejection."""
        set_callback_error_policy("log")
        part = Instance("Part")
        part.set_attribute("Health", 10)

        def guard(value):
            if value == "bad":
                raise TypeError("guard failed")
            return True

        observe_attribute(part, "Health", recorder.callback, guard=guard)

        with caplog.at_level(logging.ERROR, logger="gameobservers.watch"):
            part.set_attribute("Health", "bad")
            part.set_attribute("Health", 20)

        assert recorder.log == [
            ("callback", 10),
            ("cleanup", 10),
            ("callback", 20),
        ]
        assert "guard failed" in caplog.text

    def test_failed_tag_callback_not_retried_on_move(self, host, workspace):
        """A failed tag callback still counts as observed when moving between allowed ancestors."""
        set_callback_error_policy("log")
        lighting = Instance("Lighting", parent=host.root)
        door = Instance("Door", parent=workspace)
        host.tags.add_tag(door, "Door")
        calls = []

        def callback(instance):
            calls.append(instance)
            raise RuntimeError("door failed")

        observe_tag("Door", callback, ancestors=[workspace, lighting], host=host)
        door.parent = lighting

        assert calls == [door]

    def test_unknown_policy_rejected(self):
        """Only "raise" and "log" are accepted."""
        with pytest.raises(ConfigError, match="callback error policy"):
            set_callback_error_policy("ignore")
