import logging
from typing import Iterable, Optional
from .logic import Condition, HasFlag, NotFlag, HasItem, NotItem, AllOf, AnyOf, Negation
from .state import GameState

logger = logging.getLogger(__name__)

def evaluate(condition: Optional[Condition], state: GameState) -> bool:
    """
    Evaluate a condition tree against the game state.
    A missing condition is unconditionally true. Evaluation never mutates
    state, so it is safe to call every tick (e.g. for dialog choice visibility).
    """
    if condition is None:
        return True

    if isinstance(condition, HasFlag):
        return state.has_flag(condition.flag)
    if isinstance(condition, NotFlag):
        return not state.has_flag(condition.flag)
    if isinstance(condition, HasItem):
        return state.inventory.has_item(condition.item)
    if isinstance(condition, NotItem):
        return not state.inventory.has_item(condition.item)

    # Logical combinators
    if isinstance(condition, AllOf):
        return all(evaluate(c, state) for c in condition.conditions)
    if isinstance(condition, AnyOf):
        return any(evaluate(c, state) for c in condition.conditions)
    if isinstance(condition, Negation):
        return not evaluate(condition.condition, state)

    logger.warning("Unknown condition %r treated as satisfied", condition)
    return True

def check_puzzle_condition(condition: Condition, state: GameState) -> bool:
    """Check one leaf predicate from a puzzle's flat condition list."""
    if isinstance(condition, HasItem):
        return state.inventory.has_item(condition.item)
    if isinstance(condition, NotItem):
        return not state.inventory.has_item(condition.item)
    if isinstance(condition, HasFlag):
        return state.has_flag(condition.flag)
    if isinstance(condition, NotFlag):
        return not state.has_flag(condition.flag)
    return True

def check_puzzle_conditions(conditions: Iterable[Condition], state: GameState) -> bool:
    """Puzzle conditions are implicitly AND-ed."""
    return all(check_puzzle_condition(c, state) for c in conditions)

def flag_conditions(conditions: Iterable[Condition]) -> list[Condition]:
    return [c for c in conditions if isinstance(c, (HasFlag, NotFlag))]

def flags_satisfy(conditions: Iterable[Condition], flags: set[str]) -> bool:
    """Check only the flag predicates of a puzzle's conditions. Item predicates are ignored."""
    for c in flag_conditions(conditions):
        if isinstance(c, HasFlag) and c.flag not in flags:
            return False
        if isinstance(c, NotFlag) and c.flag in flags:
            return False
    return True
