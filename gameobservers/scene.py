"""YAML scene loader for the in-memory host.

A scene document describes an instance tree, tags, attributes and players:

    local_player: alice
    instances:
      - name: Workspace
        attributes: {Gravity: 196.2}
        children:
          - name: Door
            class: Part
            tags: [Interactive]
    players:
      - name: alice
        character:
          name: AliceModel
          attributes: {Health: 100}

Top-level instances are parented to host.root. Characters are parented to
host.root as well and handed to their player with spawn_character().
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .errors import SceneError
from .memory import Instance, MemoryHost, Player

logger = logging.getLogger(__name__)


def _require_mapping(value: Any, where: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise SceneError(f"{where}: expected a mapping, got {type(value).__name__}")
    return value


def _require_list(value: Any, where: str) -> List[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise SceneError(f"{where}: expected a list, got {type(value).__name__}")
    return value


def _build_instance(host: MemoryHost, node: Any, parent: Instance, where: str) -> Instance:
    node = _require_mapping(node, where)
    name = node.get("name")
    if not isinstance(name, str) or not name:
        raise SceneError(f"{where}: instance needs a non-empty 'name'")

    instance = Instance(name, class_name=str(node.get("class", "Instance")))
    for attr_name, value in _require_mapping(node.get("attributes") or {}, f"{where}.attributes").items():
        instance.set_attribute(str(attr_name), value)
    instance.parent = parent

    for tag in _require_list(node.get("tags"), f"{where}.tags"):
        if not isinstance(tag, str) or not tag:
            raise SceneError(f"{where}.tags: tags must be non-empty strings, got {tag!r}")
        host.tags.add_tag(instance, tag)

    for index, child in enumerate(_require_list(node.get("children"), f"{where}.children")):
        _build_instance(host, child, instance, f"{where}.children[{index}]")
    return instance


def build_scene(data: Any) -> MemoryHost:
    """Build a MemoryHost from an already-parsed scene document.

    Args:
        data: Parsed document (a mapping, or None for an empty scene)

    Returns:
        The populated host

    Raises:
        SceneError: If the document does not describe a valid scene
    """
    host = MemoryHost()
    if data is None:
        return host
    data = _require_mapping(data, "scene")

    for index, node in enumerate(_require_list(data.get("instances"), "instances")):
        _build_instance(host, node, host.root, f"instances[{index}]")

    for index, node in enumerate(_require_list(data.get("players"), "players")):
        where = f"players[{index}]"
        node = _require_mapping(node, where)
        name = node.get("name")
        if not isinstance(name, str) or not name:
            raise SceneError(f"{where}: player needs a non-empty 'name'")
        if host.players.find_player(name) is not None:
            raise SceneError(f"{where}: duplicate player '{name}'")
        user_id = node.get("user_id")
        if user_id is not None and not isinstance(user_id, int):
            raise SceneError(f"{where}.user_id: expected integer, got {type(user_id).__name__}")
        player = host.players.add_player(Player(name, user_id=user_id))

        character_node = node.get("character")
        if character_node is not None:
            character = _build_instance(host, character_node, host.root, f"{where}.character")
            player.spawn_character(character)

    local_player: Optional[str] = data.get("local_player")
    if local_player is not None:
        player = host.players.find_player(str(local_player))
        if player is None:
            raise SceneError(f"local_player '{local_player}' is not listed under players")
        host.players.set_local_player(player)

    logger.debug(
        f"Built scene with {len(host.root.get_descendants())} instance(s) "
        f"and {len(host.players.get_players())} player(s)"
    )
    return host


def load_scene(text: str) -> MemoryHost:
    """Parse a YAML scene document and build a MemoryHost from it.

    Raises:
        SceneError: If the YAML is malformed or the scene is invalid
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise SceneError(f"Invalid YAML scene: {e}") from e
    return build_scene(data)


def load_scene_file(path: Union[str, Path]) -> MemoryHost:
    """Load a YAML scene document from a file.

    Raises:
        SceneError: If the file cannot be read or the scene is invalid
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise SceneError(f"Failed to read scene file {path}: {e}") from e
    return load_scene(text)
