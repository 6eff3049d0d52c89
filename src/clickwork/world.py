from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional
from dacite import Config, from_dict
from dacite.exceptions import DaciteError
import yaml
from .logic import (
    Condition, HasFlag, NotFlag, HasItem, NotItem, AllOf, AnyOf, Negation, LEAF_CONDITIONS,
    ScriptAction, Say, AddItem, RemoveItem, SetFlag, HideHotspot, ShowEnding, Wait, Trade, UnknownAction,
)
from .dialog import DialogTree, DEFAULT_REVEAL_RATE
from .scripts import DEFAULT_WAIT_TICKS
from .util import snake_case

class ContentError(Exception):
    """Raised when content cannot be parsed into game definitions"""

@dataclass
class Header:
    title: str
    reveal_rate: int = DEFAULT_REVEAL_RATE
    default_wait: int = DEFAULT_WAIT_TICKS
    default_responses: dict[str, str] = field(default_factory=dict)            # verb -> text
    initial_inventory: list[str] = field(default_factory=list)
    initial_flags: list[str] = field(default_factory=list)

@dataclass
class Item:
    name: str
    description: str = ""
    use_on: dict[str, str] = field(default_factory=dict)                       # target id -> text, or "puzzle"
    use_default: Optional[str] = None
    aliases: list[str] = field(default_factory=list)

@dataclass
class Hotspot:
    name: str
    room: Optional[str] = None
    responses: dict[str, str] = field(default_factory=dict)                    # verb -> built-in response
    aliases: list[str] = field(default_factory=list)

@dataclass
class DialogOverride:
    dialog: str
    condition: Optional[Condition] = None

@dataclass
class NPC:
    name: str
    dialog: Optional[str] = None
    dialog_overrides: list[DialogOverride] = field(default_factory=list)       # First override whose condition holds wins
    responses: dict[str, str] = field(default_factory=dict)
    aliases: list[str] = field(default_factory=list)

@dataclass
class Trigger:
    verb: Optional[str] = None
    target: Optional[str] = None
    item: Optional[str] = None

    def signature(self) -> str:
        parts = [self.verb, self.item, self.target] if self.item else [self.verb, self.target]
        return ":".join(str(p) for p in parts)

@dataclass
class Puzzle:
    trigger: Trigger
    conditions: list[Condition] = field(default_factory=list)                  # Implicitly AND-ed leaf predicates
    actions: list[ScriptAction] = field(default_factory=list)
    fail_text: Optional[str] = None                                             # Shown when conditions fail

@dataclass
class World:
    """
    The game content, loaded from a yaml file.
    Read-only at runtime: game progress lives in GameState.
    """
    game: Header
    items: dict[str, Item] = field(default_factory=dict)
    hotspots: dict[str, Hotspot] = field(default_factory=dict)
    npcs: dict[str, NPC] = field(default_factory=dict)
    puzzles: list[Puzzle] = field(default_factory=list)
    dialogs: dict[str, DialogTree] = field(default_factory=dict)

def parse_condition(data: Any) -> Condition:
    """
    Parse an authored condition.
    Single key maps: {has_flag: x}, {not_flag: x}, {has_item: x}, {not_item: x},
    {and: [...]}, {or: [...]}, {not: {...}}. camelCase keys are accepted, as is
    the record form {type: has_item, item: x}.
    """
    if isinstance(data, Condition):
        return data
    if not isinstance(data, Mapping) or not data:
        raise ContentError(f"Invalid condition: {data!r}")

    if "type" in data:
        value = data.get("item", data.get("flag"))
        data = {data["type"]: value}
    if len(data) != 1:
        raise ContentError(f"Condition must have exactly one key: {dict(data)!r}")

    (key, value), = data.items()
    key = snake_case(str(key))

    if key == "has_flag":
        return HasFlag(str(value))
    if key == "not_flag":
        return NotFlag(str(value))
    if key == "has_item":
        return HasItem(str(value))
    if key == "not_item":
        return NotItem(str(value))
    if key == "and":
        return AllOf(tuple(parse_condition(c) for c in value or []))
    if key == "or":
        return AnyOf(tuple(parse_condition(c) for c in value or []))
    if key == "not":
        return Negation(parse_condition(value))

    raise ContentError(f"Unknown condition '{key}'")

def parse_action(data: Any) -> ScriptAction:
    """
    Parse an authored action.
    Either a record {type: say, text: ...} or a single key shorthand such as
    {say: ...}, {add_item: rope}, {set_flag: x}, {wait: 40}, {show_ending: true}
    or {hide_hotspot: {room: r, id: h}}. Unknown tags become UnknownAction.
    """
    if isinstance(data, ScriptAction):
        return data
    if not isinstance(data, Mapping) or not data:
        raise ContentError(f"Invalid action: {data!r}")

    if "type" in data:
        tag = snake_case(str(data["type"]))
        fields = {key: value for key, value in data.items() if key != "type"}
    elif len(data) == 1:
        (key, value), = data.items()
        tag = snake_case(str(key))
        fields = shorthand_action_fields(tag, value)
    else:
        raise ContentError(f"Action must have a 'type' or exactly one key: {dict(data)!r}")

    return build_action(tag, fields)

def shorthand_action_fields(tag: str, value: Any) -> dict[str, Any]:
    if tag == "say":
        return {"text": value}
    if tag in ("add_item", "remove_item"):
        return {"item": value}
    if tag == "set_flag":
        return {"flag": value}
    if tag == "wait":
        return {"duration": value}
    if tag == "show_ending":
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    return {"value": value}

def build_action(tag: str, fields: Mapping[str, Any]) -> ScriptAction:

    def required(key: str) -> str:
        if fields.get(key) is None:
            raise ContentError(f"Action '{tag}' is missing '{key}'")
        return str(fields[key])

    if tag == "say":
        return Say(text=required("text"))
    if tag == "add_item":
        return AddItem(item=required("item"))
    if tag == "remove_item":
        return RemoveItem(item=required("item"))
    if tag == "set_flag":
        return SetFlag(flag=required("flag"))
    if tag == "hide_hotspot":
        hotspot = fields.get("hotspot", fields.get("id"))
        if hotspot is None:
            raise ContentError("Action 'hide_hotspot' is missing 'hotspot'")
        return HideHotspot(room=required("room"), hotspot=str(hotspot))
    if tag == "show_ending":
        return ShowEnding()
    if tag == "wait":
        duration = fields.get("duration", fields.get("frames"))
        return Wait(duration=None if duration is None else int(duration))
    if tag == "trade":
        return Trade(give=fields.get("give"), receive=fields.get("receive"))

    return UnknownAction(name=tag, data=dict(fields))

CONTENT_CONFIG = Config(type_hooks={
    Condition: parse_condition,
    ScriptAction: parse_action,
})

def parse_world(data: Mapping[str, Any]) -> World:
    try:
        world = from_dict(World, data, config=CONTENT_CONFIG)
    except DaciteError as exc:
        raise ContentError(str(exc)) from exc

    for puzzle in world.puzzles:
        for condition in puzzle.conditions:
            if not isinstance(condition, LEAF_CONDITIONS):
                raise ContentError(f"Puzzle '{puzzle.trigger.signature()}' condition {condition!r} is not a flag or item check")

    return world

def load_world(path: Path) -> World:
    try:
        parsed_world = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as exc:
        raise ContentError(f"{path}: {exc}") from exc
    if not isinstance(parsed_world, Mapping):
        raise ContentError(f"{path}: expected a mapping at the top level")

    try:
        return parse_world(parsed_world)
    except ContentError as exc:
        raise ContentError(f"{path}: {exc}") from exc

def validate_world(world: World) -> list[str]:
    """Report dangling references. Never raises: problems are reported as a list of messages."""

    issues: list[str] = []

    for item_id in world.game.initial_inventory:
        if item_id not in world.items:
            issues.append(f"Initial item '{item_id}' was not found in the 'items' list.")

    # Items
    for item_id, item in world.items.items():
        for target_id in item.use_on:
            if target_id not in world.hotspots and target_id not in world.npcs:
                issues.append(f"Item '{item_id}' use_on target '{target_id}' is not a hotspot or NPC.")

    # NPCs
    for npc_id, npc in world.npcs.items():
        dialog_ids = [npc.dialog] if npc.dialog else []
        dialog_ids.extend(override.dialog for override in npc.dialog_overrides)
        for dialog_id in dialog_ids:
            if dialog_id not in world.dialogs:
                issues.append(f"NPC '{npc_id}' dialog '{dialog_id}' was not found in the 'dialogs' list.")

    # Puzzles
    for index, puzzle in enumerate(world.puzzles):
        trigger = puzzle.trigger
        if not trigger.verb or not trigger.target:
            issues.append(f"Puzzle #{index + 1} trigger is missing a verb or target and will never match.")
            continue
        if trigger.target not in world.hotspots and trigger.target not in world.npcs:
            issues.append(f"Puzzle '{trigger.signature()}' target '{trigger.target}' is not a hotspot or NPC.")
        if trigger.item and trigger.item not in world.items:
            issues.append(f"Puzzle '{trigger.signature()}' item '{trigger.item}' was not found in the 'items' list.")
        for action in puzzle.actions:
            if isinstance(action, (AddItem, RemoveItem)) and action.item not in world.items:
                issues.append(f"Puzzle '{trigger.signature()}' refers to unknown item '{action.item}'.")

    # Dialogs
    for dialog_id, tree in world.dialogs.items():
        if tree.start_node not in tree.nodes:
            issues.append(f"Dialog '{dialog_id}' start node '{tree.start_node}' does not exist.")
        for node_id, node in tree.nodes.items():
            targets = [node.next] + [choice.next for choice in node.choices]
            for target in targets:
                if target and target not in tree.nodes:
                    issues.append(f"Dialog '{dialog_id}' node '{node_id}' links to unknown node '{target}'.")

    return issues
