"""Children observer."""

import logging
from typing import Callable, Optional

from ..host import InstanceLike
from ..watch import WatchSet

logger = logging.getLogger(__name__)


def observe_children(
    instance: InstanceLike,
    callback: Callable[[InstanceLike], Optional[Callable[[], None]]],
) -> Callable[[], None]:
    """Observe the children of the given instance.

    The callback runs synchronously for every existing child, then for each
    child added later. Its cleanup runs when the child is removed or
    reparented away, or when the observer is stopped.

    Args:
        instance: The instance whose children to observe
        callback: Called with each child; may return a cleanup

    Returns:
        Stop function; idempotent
    """
    watch = WatchSet(callback, label=f"observe_children({instance.name})")

    def on_child_added(child: InstanceLike) -> None:
        watch.add(child, child)

    def on_child_removed(child: InstanceLike) -> None:
        watch.remove(child)

    connections = [
        instance.child_added.connect(on_child_added),
        instance.child_removed.connect(on_child_removed),
    ]

    def stop() -> None:
        for connection in connections:
            connection.disconnect()
        watch.stop()

    try:
        for child in instance.get_children():
            if child not in watch and child.parent is instance:
                watch.add(child, child)
    except Exception:
        stop()
        raise

    logger.debug(f"{watch.label}: observing {len(watch)} existing child(ren)")
    return stop
