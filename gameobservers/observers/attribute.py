"""Attribute observer.

observe_attribute() re-evaluates an instance attribute every time it changes.
The callback runs for each non-None value the guard accepts; the cleanup it
returns runs on the next change or when the observer is stopped. A value the
guard rejects still releases the previous cleanup. A guard that raises follows
the callback error policy; under "log" it counts as a rejection.
"""

import logging
from typing import Any, Callable, Optional

from ..host import InstanceLike
from ..watch import WatchSet

logger = logging.getLogger(__name__)


def observe_attribute(
    instance: InstanceLike,
    name: str,
    callback: Callable[[Any], Optional[Callable[[], None]]],
    guard: Optional[Callable[[Any], bool]] = None,
) -> Callable[[], None]:
    """Observe an attribute on the given instance.

    Example usage:
        def on_health(value):
            bar.show(value)
            return bar.hide

        stop = observe_attribute(model, "Health", on_health, guard=lambda v: v > 0)
        ...
        stop()

    Args:
        instance: The instance where the attribute lives
        name: Attribute name
        callback: Called with the attribute value; may return a cleanup
        guard: Optional predicate; the callback only runs when it returns True

    Returns:
        Stop function. Disconnects and runs the pending cleanup; idempotent.
    """
    watch = WatchSet(callback, label=f"observe_attribute({instance.name}.{name})")

    def on_changed() -> None:
        watch.remove(name)
        value = instance.get_attribute(name)
        if value is None:
            return
        if guard is not None and not watch.accepts(guard, value):
            logger.debug(f"{watch.label}: guard rejected {value!r}")
            return
        watch.add(name, value)

    connection = instance.get_attribute_changed_signal(name).connect(on_changed)
    try:
        on_changed()
    except Exception:
        connection.disconnect()
        watch.stop()
        raise

    def stop() -> None:
        connection.disconnect()
        watch.stop()

    return stop
