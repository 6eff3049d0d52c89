from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

class Inventory:
    """
    The items the player carries, in the order they were picked up.
    Items are referenced by id and each id is held at most once.
    """
    def __init__(self, item_ids: Optional[Iterable[str]] = None):
        self.items: list[str] = []
        for item_id in item_ids or []:
            self.add_item(item_id)

    def has_item(self, item_id: str) -> bool:
        return item_id in self.items

    def add_item(self, item_id: str):
        if item_id not in self.items:
            self.items.append(item_id)

    def remove_item(self, item_id: str):
        # Removing an item that isn't held is a no-op
        if item_id in self.items:
            self.items.remove(item_id)

    def ids(self) -> list[str]:
        return list(self.items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self.items

    def __iter__(self) -> Iterator[str]:
        return iter(list(self.items))

    def __len__(self) -> int:
        return len(self.items)

    def __repr__(self) -> str:
        return f"Inventory({self.items!r})"

@dataclass
class GameState:
    """
    Mutable game session state shared by puzzles, scripts and dialog.
    Passed explicitly to every evaluator and handler. Mutations are visible
    immediately to later evaluations.
    """
    flags: set[str] = field(default_factory=set)
    inventory: Inventory = field(default_factory=Inventory)
    hidden_hotspots: set[tuple[str, str]] = field(default_factory=set)     # (room, hotspot) pairs
    ending_shown: bool = False

    def has_flag(self, flag: str) -> bool:
        return flag in self.flags

    def set_flag(self, flag: str):
        self.flags.add(flag)

    def hide_hotspot(self, room: str, hotspot: str):
        self.hidden_hotspots.add((room, hotspot))

    def is_hotspot_hidden(self, hotspot: str) -> bool:
        return any(hidden == hotspot for _, hidden in self.hidden_hotspots)
