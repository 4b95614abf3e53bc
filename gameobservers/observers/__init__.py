"""Observer helpers.

Each helper subscribes to host signals, runs a callback for every entity that
currently qualifies and every entity that qualifies later, and returns a stop
function that disconnects everything and runs the outstanding cleanups.
"""

from .attribute import observe_attribute
from .character import observe_character, observe_local_character
from .children import observe_children
from .player import observe_player
from .property import observe_property
from .tag import observe_tag

__all__ = [
    "observe_attribute",
    "observe_character",
    "observe_children",
    "observe_local_character",
    "observe_player",
    "observe_property",
    "observe_tag",
]
