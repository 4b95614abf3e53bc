"""Generic watch set shared by every observer.

A WatchSet maps each tracked key (an instance, a player, a child) to the
cleanup its callback returned. The observers translate host events into
add/remove calls on a WatchSet and leave the bookkeeping to it:

- add(key, ...) runs any pending cleanup for the key, then the callback, and
  stores the new cleanup.
- remove(key, ...) runs and forgets the pending cleanup for the key.
- stop(...) runs every pending cleanup exactly once and ignores later adds.

Callbacks may fire host events themselves. If a key is removed, re-added or
the whole set is stopped while its callback is still running, the cleanup
returned by that invocation is run as soon as it comes back instead of being
stored, so a key never owns two cleanups and nothing is leaked.
"""

import logging
from typing import Any, Callable, Dict, Hashable, Iterator, List, Optional, Tuple

from .config import get_callback_error_policy

logger = logging.getLogger(__name__)

Cleanup = Callable[..., Any]
Callback = Callable[..., Optional[Cleanup]]


def _describe(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__qualname__", None) or repr(fn)


class WatchSet:
    """Key -> pending cleanup bookkeeping for one observer subscription.

    Attributes:
        label: Name used in log records (usually the observer and its target)
        stopped: True once stop() has been called
    """

    def __init__(self, callback: Callback, label: str = "observer") -> None:
        """Initialize an empty watch set.

        Args:
            callback: Called by add() with its extra arguments; may return a cleanup
            label: Name used in log records
        """
        self._callback = callback
        self.label = label
        self.stopped = False

        # Tracked keys; the value is None when the callback returned no cleanup
        self._entries: Dict[Hashable, Optional[Cleanup]] = {}

        # Keys whose callback is currently running -> invocation token
        self._in_flight: Dict[Hashable, object] = {}

        # Superseded invocation token -> args its late cleanup must receive
        self._superseded: Dict[object, Tuple[Any, ...]] = {}

        self._stop_args: Tuple[Any, ...] = ()

    def _invoke(self, fn: Callable[..., Any], args: Tuple[Any, ...]) -> Any:
        if get_callback_error_policy() == "log":
            try:
                return fn(*args)
            except Exception as e:
                logger.error(
                    f"{self.label}: {_describe(fn)} raised {type(e).__name__}: {e}",
                    exc_info=True
                )
                return None
        return fn(*args)

    def accepts(self, predicate: Callable[..., Any], *args: Any) -> bool:
        """Run a filter predicate under the callback error policy.

        Under the "log" policy a predicate that raises is logged and counts as
        a rejection.
        """
        return bool(self._invoke(predicate, args))

    def _release(self, key: Hashable, args: Tuple[Any, ...]) -> None:
        token = self._in_flight.pop(key, None)
        if token is not None:
            self._superseded[token] = args

        cleanup = self._entries.pop(key, None)
        if cleanup is not None:
            self._invoke(cleanup, args)

    def add(self, key: Hashable, *args: Any) -> None:
        """Start (or restart) tracking a key.

        Any cleanup still pending for the key runs before the callback.

        Args:
            key: Identity of the tracked entity
            *args: Arguments for the callback
        """
        if self.stopped:
            return

        self._release(key, ())

        token = object()
        self._in_flight[key] = token
        cleanup = None
        try:
            cleanup = self._invoke(self._callback, args)
        finally:
            superseded = self._in_flight.get(key) is not token
            if not superseded:
                del self._in_flight[key]
            stale_args = self._superseded.pop(token, self._stop_args)

        if not callable(cleanup):
            cleanup = None

        if superseded or self.stopped:
            logger.debug(f"{self.label}: {key!r} was released during its callback")
            if cleanup is not None:
                self._invoke(cleanup, stale_args)
            return

        self._entries[key] = cleanup
        logger.debug(f"{self.label}: tracking {key!r}")

    def remove(self, key: Hashable, *cleanup_args: Any) -> None:
        """Stop tracking a key and run its pending cleanup, if any.

        Removing a key that is not tracked is a no-op.

        Args:
            key: Identity of the tracked entity
            *cleanup_args: Arguments for the cleanup (e.g. a player's exit reason)
        """
        if key not in self._entries and key not in self._in_flight:
            return
        logger.debug(f"{self.label}: releasing {key!r}")
        self._release(key, cleanup_args)

    def stop(self, *cleanup_args: Any) -> None:
        """Run every pending cleanup exactly once and refuse further adds.

        Calling stop() again is a no-op. Every cleanup runs even if an earlier
        one raises; the first exception is re-raised once all have run.

        Args:
            *cleanup_args: Arguments for each cleanup
        """
        if self.stopped:
            return
        self.stopped = True
        self._stop_args = cleanup_args

        entries: List[Tuple[Hashable, Optional[Cleanup]]] = list(self._entries.items())
        self._entries.clear()
        logger.debug(f"{self.label}: stopping with {len(entries)} tracked key(s)")

        first_error: Optional[BaseException] = None
        for key, cleanup in entries:
            if cleanup is None:
                continue
            try:
                self._invoke(cleanup, cleanup_args)
            except Exception as e:
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    def keys(self) -> List[Hashable]:
        """Currently tracked keys, in the order they were added."""
        return list(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries or key in self._in_flight

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self.keys())
