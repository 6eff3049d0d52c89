import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional
from enum import Enum
from .catalog import ContentCatalog
from .dialog import DialogSession
from .effects import apply_dialog_action, make_script_handlers
from .logic import ScriptAction
from .puzzles import PuzzleResolver, PuzzleResult
from .scripts import ActionHandler, HandlerResult, ScriptRunner
from .state import GameState, Inventory
from .world import World, Item, NPC

logger = logging.getLogger(__name__)

USE_VERBS = {"use", "give"}         # Verbs that act with the selected item
TALK_VERB = "talk_to"
TALK_VERBS = {TALK_VERB, "use"}    # Verbs that start a conversation with an NPC
LOOK_VERB = "look_at"
USE_ON_PUZZLE = "puzzle"            # use_on value meaning "defer to the puzzle for this target"

class ControlMode(Enum):
    """The single foreground activity that receives this tick's input"""
    GAMEPLAY = "gameplay"
    SCRIPT = "script"
    DIALOG = "dialog"

@dataclass
class TickInput:
    clicked: bool = False
    choice: Optional[int] = None        # Index into the visible dialog choices
    cancel: bool = False

class InteractionKind(Enum):
    PUZZLE = "puzzle"
    PUZZLE_FAILED = "puzzle_failed"
    ITEM_USE_ON = "item_use_on"
    ITEM_USE_DEFAULT = "item_use_default"
    DIALOG = "dialog"
    BUILT_IN = "built_in"
    DEFAULT = "default"

@dataclass
class InteractionOutcome:
    kind: InteractionKind
    message: Optional[str] = None
    actions: list[ScriptAction] = field(default_factory=list)
    npc_id: Optional[str] = None

def new_game_state(world: World) -> GameState:
    return GameState(
        flags=set(world.game.initial_flags),
        inventory=Inventory(world.game.initial_inventory),
    )

class GameEngine:
    """
    Resolves player interactions and owns the foreground control mode.

    Only one of dialog, script and plain gameplay is active at a time.
    Dialog has priority over scripts, which have priority over gameplay.
    The mode changes only when a dialog or script starts, and when it
    completes. Each tick's input is routed to the active one.
    """
    def __init__(self, world: World, state: Optional[GameState] = None):
        self.world = world
        self.catalog = ContentCatalog(world)
        self.state = state if state is not None else new_game_state(world)
        self.puzzles = PuzzleResolver(self.catalog)
        self.scripts = ScriptRunner(default_wait=world.game.default_wait)
        self.dialog = DialogSession(reveal_rate=world.game.reveal_rate)
        self.mode = ControlMode.GAMEPLAY
        self.messages: list[str] = []
        self.on_message: Optional[Callable[[str], object]] = None
        self.on_ending: Optional[Callable[[], Optional[HandlerResult]]] = None

    def show_message(self, text: str):
        self.messages.append(text)
        if self.on_message:
            self.on_message(text)

    def drain_messages(self) -> list[str]:
        messages = self.messages
        self.messages = []
        return messages

    def script_handlers(self) -> dict[str, ActionHandler]:
        return make_script_handlers(self.state, self.catalog, self.show_message, self.on_ending)

    def update(self, tick: Optional[TickInput] = None):
        """Advance one tick, routing input to the active foreground activity."""
        tick = tick or TickInput()

        if self.mode == ControlMode.DIALOG:
            if tick.cancel:
                self.dialog.end()
            else:
                self.dialog.update(clicked=tick.clicked, choice=tick.choice)
        elif self.mode == ControlMode.SCRIPT:
            self.scripts.update(self.script_handlers())

    def interact(self, verb: str, target_id: str, item_id: Optional[str] = None) -> Optional[InteractionOutcome]:
        """Resolve and perform a player interaction. Ignored unless in gameplay mode."""
        if self.mode != ControlMode.GAMEPLAY:
            logger.warning("Ignoring '%s %s' while in %s mode", verb, target_id, self.mode.value)
            return None

        outcome = self.resolve_interaction(verb, target_id, item_id)
        logger.debug("'%s' on '%s' (item '%s') resolved as %s", verb, target_id, item_id, outcome.kind.value)

        if outcome.kind == InteractionKind.PUZZLE:
            self.run_script(outcome.actions)
        elif outcome.kind == InteractionKind.DIALOG:
            assert outcome.npc_id is not None
            self.talk_to(outcome.npc_id)
        elif outcome.message:
            self.show_message(outcome.message)

        return outcome

    def resolve_interaction(self, verb: str, target_id: str, item_id: Optional[str] = None) -> InteractionOutcome:
        """
        Decide how an interaction is answered without performing it.
        Tries each tier in order and stops at the first that handles it.
        """
        npc = self.catalog.get_npc(target_id)

        # Using an item on the target
        if item_id and verb in USE_VERBS:
            result = self.puzzles.try_resolve_with_item(verb, item_id, target_id, self.state)
            if result:
                return puzzle_outcome(result)

            item: Optional[Item] = self.catalog.get_item(item_id)
            if item:
                use_on = item.use_on.get(target_id)
                if use_on == USE_ON_PUZZLE and not npc:
                    return InteractionOutcome(
                        kind=InteractionKind.ITEM_USE_ON,
                        message=item.use_default or self.catalog.default_response(verb))
                if use_on and use_on != USE_ON_PUZZLE:
                    return InteractionOutcome(kind=InteractionKind.ITEM_USE_ON, message=use_on)

            # NPCs handed an item they have no answer for start a conversation
            if npc:
                return InteractionOutcome(kind=InteractionKind.DIALOG, npc_id=target_id)

            if item and item.use_default:
                return InteractionOutcome(kind=InteractionKind.ITEM_USE_DEFAULT, message=item.use_default)

        # Verb + target puzzle
        result = self.puzzles.try_resolve(verb, target_id, self.state)
        if result:
            return puzzle_outcome(result)

        # Conversation
        if npc and verb in TALK_VERBS:
            return InteractionOutcome(kind=InteractionKind.DIALOG, npc_id=target_id)

        # Target's own response
        response = self.built_in_response(verb, target_id)
        if response:
            return InteractionOutcome(kind=InteractionKind.BUILT_IN, message=response)

        return InteractionOutcome(kind=InteractionKind.DEFAULT, message=self.catalog.default_response(verb))

    def built_in_response(self, verb: str, target_id: str) -> Optional[str]:
        target = self.catalog.get_target(target_id)
        if target is None:
            return None
        if isinstance(target, Item):
            return target.description if verb == LOOK_VERB and target.description else None

        response = target.responses.get(verb)
        if response:
            return response
        if isinstance(target, NPC) and verb == LOOK_VERB:
            return f"It's {target.name}."
        return None

    def talk_to(self, npc_id: str) -> bool:
        """Start a conversation with an NPC. Returns False if the NPC has nothing to say."""
        if self.mode != ControlMode.GAMEPLAY:
            logger.warning("Ignoring talk to '%s' while in %s mode", npc_id, self.mode.value)
            return False

        npc = self.catalog.get_npc(npc_id)
        tree = self.catalog.get_dialog_for_npc(npc, self.state) if npc else None
        if npc is None or tree is None:
            name = npc.name if npc else npc_id
            self.show_message(not_talking_message(name))
            return False

        # Mode is set first: a malformed tree can end the dialog during start()
        self.mode = ControlMode.DIALOG
        self.dialog.start(
            npc_id,
            tree,
            on_action=self.apply_dialog_action,
            on_complete=self.dialog_finished,
            game_state=self.state,
            speaker=npc.name)

        if not self.dialog.active:
            # Tree ended before saying anything (missing start node)
            self.show_message(not_talking_message(npc.name))
            return False
        return True

    def apply_dialog_action(self, action: ScriptAction):
        apply_dialog_action(action, self.state, self.catalog)

    def dialog_finished(self):
        self.mode = ControlMode.GAMEPLAY

    def run_script(self, actions: Iterable[ScriptAction], on_complete: Optional[Callable[[], object]] = None):
        if self.mode == ControlMode.DIALOG:
            logger.warning("Ignoring script while in dialog mode")
            return

        def script_finished():
            self.mode = ControlMode.GAMEPLAY
            if on_complete:
                on_complete()

        self.mode = ControlMode.SCRIPT
        self.scripts.run(actions, script_finished)

    def cancel_script(self):
        if self.mode == ControlMode.SCRIPT:
            self.scripts.cancel()
            self.mode = ControlMode.GAMEPLAY

def puzzle_outcome(result: PuzzleResult) -> InteractionOutcome:
    if result.succeeded:
        assert result.actions is not None
        return InteractionOutcome(kind=InteractionKind.PUZZLE, actions=result.actions)
    return InteractionOutcome(kind=InteractionKind.PUZZLE_FAILED, message=result.fail_text)

def not_talking_message(name: str) -> str:
    return f"{name} doesn't seem to want to talk right now."
