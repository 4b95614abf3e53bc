"""Property observer.

Same lifecycle as the attribute observer, without a guard: the callback
receives every value, None included.
"""

from typing import Any, Callable, Optional

from ..host import InstanceLike
from ..watch import WatchSet


def observe_property(
    instance: InstanceLike,
    prop: str,
    callback: Callable[[Any], Optional[Callable[[], None]]],
) -> Callable[[], None]:
    """Observe a property on the given instance.

    Args:
        instance: The instance where the property lives
        prop: Property name, read with getattr(instance, prop)
        callback: Called with the property value; may return a cleanup that
            runs when the value changes again or the observer is stopped

    Returns:
        Stop function; idempotent
    """
    watch = WatchSet(callback, label=f"observe_property({instance.name}.{prop})")

    def on_changed() -> None:
        watch.remove(prop)
        watch.add(prop, getattr(instance, prop))

    connection = instance.get_property_changed_signal(prop).connect(on_changed)
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
