"""Tag observer.

observe_tag() follows every instance carrying a tag. With an ancestor
allow-list, an instance only counts while it is a descendant of one of the
allowed ancestors; moving out is treated like losing the tag and moving back
in runs the callback again.
"""

import logging
from typing import Callable, Dict, List, Optional, Sequence

from ..host import Host, InstanceLike, resolve_host
from ..signal import Connection
from ..watch import WatchSet

logger = logging.getLogger(__name__)


def observe_tag(
    tag: str,
    callback: Callable[[InstanceLike], Optional[Callable[[], None]]],
    ancestors: Optional[Sequence[InstanceLike]] = None,
    *,
    host: Optional[Host] = None,
) -> Callable[[], None]:
    """Observe instances with the given tag.

    Example usage:
        def on_door(door):
            prompt = attach_prompt(door)
            return prompt.destroy

        stop = observe_tag("Door", on_door, ancestors=[workspace])

    Args:
        tag: Tag name
        callback: Called for every qualifying instance; may return a cleanup
            that runs when the instance loses the tag, is destroyed, leaves
            the allowed ancestors, or the observer is stopped
        ancestors: Optional allow-list of ancestors. None allows all.
        host: Host providing the tag index (default: the global host)

    Returns:
        Stop function; idempotent
    """
    tags = resolve_host(host).tags
    allowed: Optional[List[InstanceLike]] = list(ancestors) if ancestors is not None else None
    watch = WatchSet(callback, label=f"observe_tag({tag!r})")

    # Tagged instances -> ancestry connection (None without an allow-list)
    tracked: Dict[InstanceLike, Optional[Connection]] = {}

    def is_allowed(instance: InstanceLike) -> bool:
        if allowed is None:
            return True
        return any(instance.is_descendant_of(ancestor) for ancestor in allowed)

    def evaluate(instance: InstanceLike) -> None:
        if instance not in tracked:
            return
        if is_allowed(instance):
            if instance not in watch:
                watch.add(instance, instance)
        else:
            watch.remove(instance)

    def on_instance_added(instance: InstanceLike) -> None:
        if watch.stopped or instance in tracked:
            return
        connection = None
        if allowed is not None:
            connection = instance.ancestry_changed.connect(
                lambda *_: evaluate(instance)
            )
        tracked[instance] = connection
        evaluate(instance)

    def on_instance_removed(instance: InstanceLike) -> None:
        if instance not in tracked:
            return
        connection = tracked.pop(instance)
        if connection is not None:
            connection.disconnect()
        watch.remove(instance)

    connections = [
        tags.get_instance_added_signal(tag).connect(on_instance_added),
        tags.get_instance_removed_signal(tag).connect(on_instance_removed),
    ]

    def stop() -> None:
        for connection in connections:
            connection.disconnect()
        for connection in tracked.values():
            if connection is not None:
                connection.disconnect()
        tracked.clear()
        watch.stop()

    try:
        for instance in tags.get_tagged(tag):
            on_instance_added(instance)
    except Exception:
        stop()
        raise

    logger.debug(f"{watch.label}: observing {len(watch)} of {len(tracked)} tagged instance(s)")
    return stop
