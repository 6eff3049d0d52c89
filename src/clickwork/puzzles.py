import logging
from dataclasses import dataclass
from typing import Optional
from .catalog import ContentCatalog
from .conditions import check_puzzle_conditions
from .logic import ScriptAction
from .state import GameState
from .world import Puzzle

logger = logging.getLogger(__name__)

@dataclass
class PuzzleResult:
    puzzle: Puzzle
    actions: Optional[list[ScriptAction]] = None        # Set when the puzzle's conditions were met
    fail_text: Optional[str] = None                     # Set when they were not, and the puzzle explains why

    @property
    def succeeded(self) -> bool:
        return self.actions is not None

class PuzzleResolver:
    """
    Matches verb (+ item) + target interactions against puzzle definitions.
    Returns None when no puzzle applies, so the caller can fall through to
    its next way of responding.
    """
    def __init__(self, catalog: ContentCatalog):
        self.catalog = catalog

    def try_resolve(self, verb: str, target_id: str, state: GameState) -> Optional[PuzzleResult]:
        puzzle = self.catalog.find_puzzle(verb, target_id, state.flags)
        return self.check_puzzle(puzzle, state)

    def try_resolve_with_item(self, verb: str, item_id: str, target_id: str, state: GameState) -> Optional[PuzzleResult]:
        puzzle = self.catalog.find_item_puzzle(verb, item_id, target_id, state.flags)
        return self.check_puzzle(puzzle, state)

    def check_puzzle(self, puzzle: Optional[Puzzle], state: GameState) -> Optional[PuzzleResult]:
        if puzzle is None:
            return None

        if check_puzzle_conditions(puzzle.conditions, state):
            logger.debug("Puzzle '%s' solved", puzzle.trigger.signature())
            return PuzzleResult(puzzle=puzzle, actions=list(puzzle.actions))

        if puzzle.fail_text:
            return PuzzleResult(puzzle=puzzle, fail_text=puzzle.fail_text)

        # No fail text: treat as no match so the interaction falls through
        return None
