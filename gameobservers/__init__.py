"""Lifecycle observers for game engine instances, tags, players and characters.

Every observer follows the same contract: it runs a callback for each entity
that qualifies now and later, runs the cleanup the callback returned once the
entity stops qualifying, and returns a stop function that cancels the
subscription and runs any cleanups still pending.

Host services (tag index, player sessions) are injected with host= or
installed once with init_host().
"""

from .config import (
    apply_config,
    get_callback_error_policy,
    load_config,
    set_callback_error_policy,
    setup_logging,
)
from .errors import (
    ClientContextError,
    ConfigError,
    HostNotInitializedError,
    ObserverError,
    SceneError,
)
from .host import ExitReason, Host, get_host, init_host
from .memory import Instance, MemoryHost, Player, Players, TagIndex
from .observers import (
    observe_attribute,
    observe_character,
    observe_children,
    observe_local_character,
    observe_player,
    observe_property,
    observe_tag,
)
from .scene import build_scene, load_scene, load_scene_file
from .signal import Connection, Signal
from .watch import WatchSet

__version__ = "0.1.0"

__all__ = [
    "observe_attribute",
    "observe_property",
    "observe_tag",
    "observe_player",
    "observe_character",
    "observe_local_character",
    "observe_children",
    "ExitReason",
    "Host",
    "init_host",
    "get_host",
    "Signal",
    "Connection",
    "WatchSet",
    "Instance",
    "TagIndex",
    "Player",
    "Players",
    "MemoryHost",
    "build_scene",
    "load_scene",
    "load_scene_file",
    "load_config",
    "apply_config",
    "setup_logging",
    "get_callback_error_policy",
    "set_callback_error_policy",
    "ObserverError",
    "HostNotInitializedError",
    "ClientContextError",
    "ConfigError",
    "SceneError",
]
