from typing import Iterable, Optional, Union
from .conditions import evaluate, flag_conditions, flags_satisfy
from .dialog import DialogTree
from .state import GameState
from .world import World, Item, Hotspot, NPC, Puzzle

FALLBACK_RESPONSE = "I can't do that."

Target = Union[Hotspot, NPC, Item]

class ContentCatalog:
    """
    Read-only lookups over loaded content: puzzles by trigger signature,
    dialog trees for NPCs, items and interaction targets.
    """
    def __init__(self, world: World):
        self.world = world

    def get_item(self, item_id: str) -> Optional[Item]:
        return self.world.items.get(item_id)

    def get_hotspot(self, hotspot_id: str) -> Optional[Hotspot]:
        return self.world.hotspots.get(hotspot_id)

    def get_npc(self, npc_id: str) -> Optional[NPC]:
        return self.world.npcs.get(npc_id)

    def get_target(self, target_id: str) -> Optional[Target]:
        """Hotspots take precedence over NPCs, which take precedence over items."""
        return self.get_hotspot(target_id) or self.get_npc(target_id) or self.get_item(target_id)

    def get_dialog(self, dialog_id: str) -> Optional[DialogTree]:
        return self.world.dialogs.get(dialog_id)

    def get_dialog_for_npc(self, npc: NPC, state: GameState) -> Optional[DialogTree]:
        for override in npc.dialog_overrides:
            if evaluate(override.condition, state):
                return self.get_dialog(override.dialog)
        return self.get_dialog(npc.dialog) if npc.dialog else None

    def default_response(self, verb: str) -> str:
        return self.world.game.default_responses.get(verb) or FALLBACK_RESPONSE

    def find_puzzle(self, verb: str, target_id: str, flags: Optional[set[str]] = None) -> Optional[Puzzle]:
        """Find the verb + target puzzle (no item) that applies given the current flags."""
        candidates = [
            puzzle
            for puzzle in self.world.puzzles
            if puzzle.trigger.item is None and matches_trigger(puzzle, verb, target_id)
        ]
        return select_puzzle(candidates, flags)

    def find_item_puzzle(self, verb: str, item_id: str, target_id: str, flags: Optional[set[str]] = None) -> Optional[Puzzle]:
        """Find the verb + item + target puzzle that applies given the current flags."""
        candidates = [
            puzzle
            for puzzle in self.world.puzzles
            if puzzle.trigger.item == item_id and matches_trigger(puzzle, verb, target_id)
        ]
        return select_puzzle(candidates, flags)

def matches_trigger(puzzle: Puzzle, verb: str, target_id: str) -> bool:
    # Triggers missing a verb or target are malformed and never match
    trigger = puzzle.trigger
    if not trigger.verb or not trigger.target:
        return False
    return trigger.verb == verb and trigger.target == target_id

def select_puzzle(candidates: Iterable[Puzzle], flags: Optional[set[str]]) -> Optional[Puzzle]:
    """
    Choose between puzzles sharing a trigger signature.
    Only puzzles whose flag conditions hold are eligible. The one with the
    most flag conditions (the most specific) wins, and ties go to the
    earliest defined. Item conditions are not considered here: they are
    checked by the resolver so that they can produce fail text.
    When no flags are given, the earliest candidate wins.
    """
    best: Optional[Puzzle] = None
    best_specificity = -1
    for puzzle in candidates:
        if flags is None:
            return puzzle
        if not flags_satisfy(puzzle.conditions, flags):
            continue
        specificity = len(flag_conditions(puzzle.conditions))
        if specificity > best_specificity:
            best = puzzle
            best_specificity = specificity
    return best
