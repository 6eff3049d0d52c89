from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional

class Condition:
    """A condition that evaluates to true or false based on the game state"""

@dataclass(frozen=True)
class HasFlag(Condition):
    flag: str

@dataclass(frozen=True)
class NotFlag(Condition):
    flag: str

@dataclass(frozen=True)
class HasItem(Condition):
    item: str

@dataclass(frozen=True)
class NotItem(Condition):
    item: str

@dataclass(frozen=True)
class AllOf(Condition):
    """Authored as 'and'. True when every sub-condition is true (empty list is true)"""
    conditions: tuple[Condition, ...] = ()

@dataclass(frozen=True)
class AnyOf(Condition):
    """Authored as 'or'. True when any sub-condition is true (empty list is false)"""
    conditions: tuple[Condition, ...] = ()

@dataclass(frozen=True)
class Negation(Condition):
    """Authored as 'not'"""
    condition: Condition

# Leaf predicates. These are the only conditions allowed in a puzzle's flat condition list.
LEAF_CONDITIONS = (HasFlag, NotFlag, HasItem, NotItem)

class ScriptAction:
    """
    A single step of an action list.
    Puzzles and dialog nodes/choices carry ordered lists of these. The tag
    selects the effect handler the script runner dispatches to.
    """
    tag: ClassVar[str] = ""

@dataclass(frozen=True)
class Say(ScriptAction):
    tag: ClassVar[str] = "say"
    text: str

@dataclass(frozen=True)
class AddItem(ScriptAction):
    tag: ClassVar[str] = "add_item"
    item: str

@dataclass(frozen=True)
class RemoveItem(ScriptAction):
    tag: ClassVar[str] = "remove_item"
    item: str

@dataclass(frozen=True)
class SetFlag(ScriptAction):
    tag: ClassVar[str] = "set_flag"
    flag: str

@dataclass(frozen=True)
class HideHotspot(ScriptAction):
    tag: ClassVar[str] = "hide_hotspot"
    room: str
    hotspot: str

@dataclass(frozen=True)
class ShowEnding(ScriptAction):
    tag: ClassVar[str] = "show_ending"

@dataclass(frozen=True)
class Wait(ScriptAction):
    tag: ClassVar[str] = "wait"
    duration: Optional[int] = None          # Ticks. None means the runner's default wait.

@dataclass(frozen=True)
class Trade(ScriptAction):
    """Swap an item with an NPC: remove 'give' (if held), then add 'receive'"""
    tag: ClassVar[str] = "trade"
    give: Optional[str] = None
    receive: Optional[str] = None

@dataclass(frozen=True)
class UnknownAction(ScriptAction):
    """An action with an unrecognised tag. Passed through unchanged so newer content still loads."""
    name: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def tag(self) -> str:      # type: ignore[override]
        return self.name
