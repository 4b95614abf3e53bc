"""In-memory host runtime.

A small, self-contained implementation of the host interfaces from
gameobservers.host: an instance tree with attributes and property change
signals, a tag index, and player sessions with characters. It is what the
tests run against, and what scripts use when no live engine is attached.

Event ordering follows the engine conventions the observers are written for:

- Reparenting fires the property signal for "parent", then ChildRemoved on
  the old parent, ChildAdded on the new parent, and finally AncestryChanged
  on the moved instance and every descendant.
- destroy() fires Destroying, drops every tag (firing the tag's removed
  signal), destroys children, detaches from the parent and disconnects all
  of the instance's signals.
- Removing a player fires PlayerRemoving with the exit reason before the
  character is removed and before the player leaves get_players().
"""

import logging
from typing import Any, Dict, Iterator, List, Optional, Union

from .host import ExitReason
from .signal import Connection, Signal

logger = logging.getLogger(__name__)


class Instance:
    """A node in the instance hierarchy.

    Attributes:
        class_name: Engine class of the instance (e.g. "Model", "Part")
        destroyed: True once destroy() has run
    """

    def __init__(
        self,
        name: str = "Instance",
        parent: Optional["Instance"] = None,
        class_name: str = "Instance",
    ) -> None:
        self.class_name = class_name
        self.destroyed = False
        self._name = name
        self._parent: Optional["Instance"] = None
        self._children: List["Instance"] = []
        self._attributes: Dict[str, Any] = {}
        self._attribute_signals: Dict[str, Signal] = {}
        self._property_signals: Dict[str, Signal] = {}

        self.child_added = Signal(f"{name}.ChildAdded")
        self.child_removed = Signal(f"{name}.ChildRemoved")
        self.ancestry_changed = Signal(f"{name}.AncestryChanged")
        self.destroying = Signal(f"{name}.Destroying")

        if parent is not None:
            self.parent = parent

    def __repr__(self) -> str:
        return f"<{self.class_name} {self.get_full_name()}>"

    # ------------------------------------------------------------------ properties

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if value == self._name:
            return
        self._name = value
        self._fire_property_changed("name")

    @property
    def parent(self) -> Optional["Instance"]:
        return self._parent

    @parent.setter
    def parent(self, new_parent: Optional["Instance"]) -> None:
        if self.destroyed:
            raise RuntimeError(f"Cannot set parent of destroyed instance {self._name}")
        if new_parent is self._parent:
            return
        if new_parent is not None:
            if new_parent is self or new_parent.is_descendant_of(self):
                raise ValueError(
                    f"Cannot parent {self._name} to {new_parent.name}: would create a cycle"
                )
            if new_parent.destroyed:
                raise RuntimeError(f"Cannot parent {self._name} to destroyed instance {new_parent.name}")

        old_parent = self._parent
        if old_parent is not None:
            old_parent._children.remove(self)
        self._parent = new_parent
        if new_parent is not None:
            new_parent._children.append(self)

        self._fire_property_changed("parent")
        if old_parent is not None:
            old_parent.child_removed.fire(self)
        if new_parent is not None:
            new_parent.child_added.fire(self)
        for instance in [self, *self.get_descendants()]:
            instance.ancestry_changed.fire(self, new_parent)

    def set_property(self, prop: str, value: Any) -> None:
        """Set an arbitrary property and fire its change signal.

        Args:
            prop: Property name; read back with getattr(instance, prop)
            value: New value. Setting an equal value fires nothing.
        """
        if prop.startswith("_"):
            raise AttributeError(f"{prop!r} is not a property")
        if hasattr(self, prop) and getattr(self, prop) == value:
            return
        setattr(self, prop, value)
        if prop not in ("name", "parent"):
            self._fire_property_changed(prop)

    def get_property_changed_signal(self, prop: str) -> Signal:
        if prop not in self._property_signals:
            self._property_signals[prop] = Signal(f"{self._name}.{prop}Changed")
        return self._property_signals[prop]

    def _fire_property_changed(self, prop: str) -> None:
        signal = self._property_signals.get(prop)
        if signal is not None:
            signal.fire()

    # ------------------------------------------------------------------ attributes

    def get_attribute(self, name: str) -> Any:
        return self._attributes.get(name)

    def get_attributes(self) -> Dict[str, Any]:
        return dict(self._attributes)

    def set_attribute(self, name: str, value: Any) -> None:
        """Set (or with None, clear) an attribute and fire its change signal.

        Setting an attribute to its current value fires nothing.
        """
        if self._attributes.get(name) == value:
            return
        if value is None:
            del self._attributes[name]
        else:
            self._attributes[name] = value
        signal = self._attribute_signals.get(name)
        if signal is not None:
            signal.fire()

    def get_attribute_changed_signal(self, name: str) -> Signal:
        if name not in self._attribute_signals:
            self._attribute_signals[name] = Signal(f"{self._name}.{name}AttributeChanged")
        return self._attribute_signals[name]

    # ------------------------------------------------------------------ hierarchy

    def get_children(self) -> List["Instance"]:
        return list(self._children)

    def get_descendants(self) -> List["Instance"]:
        descendants: List["Instance"] = []
        for child in self._children:
            descendants.append(child)
            descendants.extend(child.get_descendants())
        return descendants

    def find_first_child(self, name: str) -> Optional["Instance"]:
        for child in self._children:
            if child.name == name:
                return child
        return None

    def is_descendant_of(self, other: "Instance") -> bool:
        ancestor = self._parent
        while ancestor is not None:
            if ancestor is other:
                return True
            ancestor = ancestor._parent
        return False

    def is_ancestor_of(self, other: "Instance") -> bool:
        return other.is_descendant_of(self)

    def get_full_name(self) -> str:
        names = []
        instance: Optional["Instance"] = self
        while instance is not None:
            names.append(instance.name)
            instance = instance._parent
        return ".".join(reversed(names))

    def destroy(self) -> None:
        """Destroy the instance and its descendants.

        Destroying an instance twice is a no-op.
        """
        if self.destroyed:
            return
        logger.debug(f"Destroying {self.get_full_name()}")
        self.destroying.fire()
        for child in list(self._children):
            child.destroy()
        self.parent = None
        self.destroyed = True
        for signal in self._signals():
            signal.disconnect_all()

    def _signals(self) -> Iterator[Signal]:
        yield self.child_added
        yield self.child_removed
        yield self.ancestry_changed
        yield self.destroying
        yield from self._attribute_signals.values()
        yield from self._property_signals.values()


class TagIndex:
    """Tag membership index with per-tag added/removed signals.

    A destroyed instance loses all of its tags.
    """

    def __init__(self) -> None:
        self._tagged: Dict[str, List[Instance]] = {}
        self._added_signals: Dict[str, Signal] = {}
        self._removed_signals: Dict[str, Signal] = {}
        self._destroying_connections: Dict[Instance, Connection] = {}

    @staticmethod
    def _check_tag(tag: str) -> None:
        if not isinstance(tag, str) or not tag:
            raise ValueError(f"Tag must be a non-empty string, got {tag!r}")

    def add_tag(self, instance: Instance, tag: str) -> None:
        self._check_tag(tag)
        if instance.destroyed:
            raise RuntimeError(f"Cannot tag destroyed instance {instance.name}")
        members = self._tagged.setdefault(tag, [])
        if instance in members:
            return
        members.append(instance)
        if instance not in self._destroying_connections:
            self._destroying_connections[instance] = instance.destroying.connect(
                lambda: self._drop_all(instance)
            )
        signal = self._added_signals.get(tag)
        if signal is not None:
            signal.fire(instance)

    def remove_tag(self, instance: Instance, tag: str) -> None:
        self._check_tag(tag)
        members = self._tagged.get(tag)
        if not members or instance not in members:
            return
        members.remove(instance)
        if not self.get_tags(instance):
            connection = self._destroying_connections.pop(instance, None)
            if connection is not None:
                connection.disconnect()
        signal = self._removed_signals.get(tag)
        if signal is not None:
            signal.fire(instance)

    def _drop_all(self, instance: Instance) -> None:
        for tag in self.get_tags(instance):
            self.remove_tag(instance, tag)

    def has_tag(self, instance: Instance, tag: str) -> bool:
        return instance in self._tagged.get(tag, ())

    def get_tags(self, instance: Instance) -> List[str]:
        return [tag for tag, members in self._tagged.items() if instance in members]

    def get_tagged(self, tag: str) -> List[Instance]:
        self._check_tag(tag)
        return list(self._tagged.get(tag, ()))

    def get_instance_added_signal(self, tag: str) -> Signal:
        self._check_tag(tag)
        if tag not in self._added_signals:
            self._added_signals[tag] = Signal(f"InstanceAdded({tag})")
        return self._added_signals[tag]

    def get_instance_removed_signal(self, tag: str) -> Signal:
        self._check_tag(tag)
        if tag not in self._removed_signals:
            self._removed_signals[tag] = Signal(f"InstanceRemoved({tag})")
        return self._removed_signals[tag]


class Player:
    """A player session and its current character model."""

    def __init__(self, name: str, user_id: Optional[int] = None) -> None:
        self.name = name
        self.user_id = user_id
        self.character: Optional[Instance] = None
        self.character_added = Signal(f"{name}.CharacterAdded")
        self.character_removing = Signal(f"{name}.CharacterRemoving")

    def __repr__(self) -> str:
        return f"<Player {self.name}>"

    def spawn_character(self, character: Optional[Instance] = None) -> Instance:
        """Give the player a new character, replacing any current one.

        Args:
            character: Model to use; a bare Model named after the player if None

        Returns:
            The new character
        """
        if self.character is not None:
            self.remove_character()
        if character is None:
            character = Instance(self.name, class_name="Model")
        self.character = character
        self.character_added.fire(character)
        return character

    def remove_character(self) -> None:
        """Remove and destroy the current character (death, respawn or leave)."""
        character = self.character
        if character is None:
            return
        self.character_removing.fire(character)
        self.character = None
        character.destroy()


class Players:
    """Player session tracking.

    Attributes:
        local_player: The client's own player; None in a server context
    """

    def __init__(self) -> None:
        self._players: List[Player] = []
        self.local_player: Optional[Player] = None
        self.player_added = Signal("PlayerAdded")
        self.player_removing = Signal("PlayerRemoving")

    def get_players(self) -> List[Player]:
        return list(self._players)

    def find_player(self, name: str) -> Optional[Player]:
        for player in self._players:
            if player.name == name:
                return player
        return None

    def add_player(self, player: Union[Player, str]) -> Player:
        """Join a player to the session.

        Args:
            player: Player object, or a name to create one

        Returns:
            The joined player
        """
        if isinstance(player, str):
            player = Player(player)
        if player in self._players:
            return player
        self._players.append(player)
        logger.debug(f"Player joined: {player.name}")
        self.player_added.fire(player)
        return player

    def remove_player(self, player: Player, exit_reason: ExitReason = ExitReason.DISCONNECTED) -> None:
        """Remove a player from the session.

        Removing a player that is not in the session is a no-op.
        """
        if player not in self._players:
            return
        logger.debug(f"Player leaving: {player.name} ({exit_reason.value})")
        self.player_removing.fire(player, exit_reason)
        player.remove_character()
        self._players.remove(player)
        if self.local_player is player:
            self.local_player = None

    def set_local_player(self, player: Optional[Player]) -> None:
        """Mark this host as a client owned by the given player (None for a server)."""
        if player is not None and player not in self._players:
            self.add_player(player)
        self.local_player = player


class MemoryHost:
    """Host bundle backed entirely by in-process objects.

    Attributes:
        root: Root of the instance tree
        tags: Tag index
        players: Player sessions
    """

    def __init__(self, root_name: str = "game") -> None:
        self.root = Instance(root_name, class_name="DataModel")
        self.tags = TagIndex()
        self.players = Players()

    @property
    def is_client(self) -> bool:
        return self.players.local_player is not None

    def find(self, path: str) -> Optional[Instance]:
        """Find an instance by slash-separated child names below the root.

        Args:
            path: e.g. "Workspace/Map/Door"; an empty path is the root

        Returns:
            The instance, or None if any segment is missing
        """
        instance: Optional[Instance] = self.root
        for segment in [s for s in path.split("/") if s]:
            if instance is None:
                return None
            instance = instance.find_first_child(segment)
        return instance
