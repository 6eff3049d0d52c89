import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Mapping, Optional
from .logic import Condition, ScriptAction
from .conditions import evaluate
from .state import GameState

logger = logging.getLogger(__name__)

DEFAULT_REVEAL_RATE = 2             # Characters revealed per tick
IDLE_NODE_ID = "idle"

@dataclass(frozen=True)
class DialogChoice:
    text: str
    condition: Optional[Condition] = None                                       # Choice is only offered while condition holds
    actions: list[ScriptAction] = field(default_factory=list)                   # Executed when chosen, before moving on
    next: Optional[str] = None                                                  # Node to go to. None ends the dialog.

@dataclass(frozen=True)
class DialogNode:
    text: Optional[str] = None                                                  # NPC line revealed typewriter style
    choices: list[DialogChoice] = field(default_factory=list)                   # Player responses
    actions: list[ScriptAction] = field(default_factory=list)                   # Executed on entering the node
    next: Optional[str] = None                                                  # Auto-advance target (after one click)
    exhausted: bool = False                                                     # Entering this node exhausts the NPC's conversation

@dataclass(frozen=True)
class DialogTree:
    """
    A branching conversation, loaded once from content and never mutated.
    Nodes may link back to earlier nodes, so the tree is kept as a map of
    node id -> node and the session only tracks the current node id.
    """
    nodes: dict[str, DialogNode] = field(default_factory=dict)
    start_node: str = "start"
    idle_lines: list[str] = field(default_factory=list)                        # Shown round-robin once the NPC is exhausted

class DialogState(Enum):
    IDLE = "idle"
    REVEALING = "revealing"
    AWAITING_CHOICE = "awaiting_choice"
    AWAITING_ADVANCE = "awaiting_advance"
    ENDED = "ended"

class ExhaustionTracker:
    """
    Remembers which NPCs have nothing more to say, and which idle line each
    will say next. Lives independently of any conversation and is saved with
    the game.
    """
    def __init__(self):
        self.exhausted_npcs: dict[str, bool] = {}
        self.idle_line_index: dict[str, int] = {}

    def is_exhausted(self, npc_id: str) -> bool:
        return bool(self.exhausted_npcs.get(npc_id))

    def mark_exhausted(self, npc_id: str):
        if not self.is_exhausted(npc_id):
            logger.debug("NPC '%s' conversation exhausted", npc_id)
        self.exhausted_npcs[npc_id] = True

    def next_idle_line(self, npc_id: str, idle_lines: list[str]) -> str:
        index = self.idle_line_index.get(npc_id, 0) % len(idle_lines)
        self.idle_line_index[npc_id] = (index + 1) % len(idle_lines)
        return idle_lines[index]

    def get_state(self) -> dict[str, dict]:
        return {
            "exhausted_npcs": dict(self.exhausted_npcs),
            "idle_line_index": dict(self.idle_line_index),
        }

    def restore_state(self, state: Mapping[str, Any]):
        exhausted = state.get("exhausted_npcs", state.get("exhaustedNpcs")) or {}
        indexes = state.get("idle_line_index", state.get("idleLineIndex")) or {}
        self.exhausted_npcs = {npc_id: bool(value) for npc_id, value in exhausted.items()}
        self.idle_line_index = {npc_id: int(value) for npc_id, value in indexes.items()}

class DialogSession:
    """
    Runs one conversation at a time over a DialogTree.

    The conversation is a small state machine. Entering a node runs its
    actions and starts revealing its text a few characters per tick.
    Once fully revealed it either waits for a choice, waits for a click to
    advance to the next node, or waits for a click to end.

    The caller drives it with update() once per tick, plus the input
    signals skip(), select_choice(), acknowledge() and end(). Rendering and
    mapping clicks to choice indexes are up to the caller.
    """
    def __init__(self, reveal_rate: int = DEFAULT_REVEAL_RATE, exhaustion: Optional[ExhaustionTracker] = None):
        self.reveal_rate = max(1, reveal_rate)
        self.exhaustion = exhaustion or ExhaustionTracker()
        self._entry = 0
        self._reset()

    def _reset(self):
        self._entry += 1
        self.dialog_state = DialogState.IDLE
        self.tree: Optional[DialogTree] = None
        self.node_id: Optional[str] = None
        self.npc_id: Optional[str] = None
        self.speaker: Optional[str] = None
        self.game_state: Optional[GameState] = None
        self.on_action: Optional[Callable[[ScriptAction], Any]] = None
        self.on_complete: Optional[Callable[[], Any]] = None
        self.full_text = ""
        self.reveal_index = 0

    @property
    def active(self) -> bool:
        return self.dialog_state != DialogState.IDLE

    @property
    def node(self) -> Optional[DialogNode]:
        if self.tree is None or self.node_id is None:
            return None
        return self.tree.nodes.get(self.node_id)

    @property
    def visible_text(self) -> str:
        return self.full_text[:self.reveal_index]

    @property
    def visible_choices(self) -> list[DialogChoice]:
        """Choices whose conditions hold right now. Re-evaluated on every access."""
        if self.dialog_state != DialogState.AWAITING_CHOICE:
            return []
        return self._available_choices(self.node)

    @property
    def waiting_for_choice(self) -> bool:
        return self.dialog_state == DialogState.AWAITING_CHOICE

    @property
    def waiting_for_click(self) -> bool:
        return self.dialog_state in (DialogState.AWAITING_ADVANCE, DialogState.ENDED)

    def start(
            self,
            npc_id: str,
            tree: DialogTree,
            on_action: Optional[Callable[[ScriptAction], Any]] = None,
            on_complete: Optional[Callable[[], Any]] = None,
            game_state: Optional[GameState] = None,
            speaker: Optional[str] = None):

        if self.active:
            logger.warning("Starting dialog with '%s' while dialog with '%s' is active", npc_id, self.npc_id)

        self._reset()
        self.npc_id = npc_id
        self.speaker = speaker or npc_id
        self.on_action = on_action
        self.on_complete = on_complete
        self.game_state = game_state if game_state is not None else GameState()

        # Exhausted NPCs only say their next idle line
        if self.exhaustion.is_exhausted(npc_id) and tree.idle_lines:
            line = self.exhaustion.next_idle_line(npc_id, tree.idle_lines)
            self.tree = DialogTree(nodes={IDLE_NODE_ID: DialogNode(text=line)}, start_node=IDLE_NODE_ID)
        else:
            self.tree = tree

        self.dialog_state = DialogState.REVEALING
        self.go_to_node(self.tree.start_node)

    def go_to_node(self, node_id: str):
        node = self.tree.nodes.get(node_id) if self.tree else None
        if node is None:
            logger.warning("Dialog for '%s' has no node '%s'. Ending conversation.", self.npc_id, node_id)
            self.end()
            return

        self._entry += 1
        entry = self._entry
        self.node_id = node_id
        self.full_text = node.text or ""
        self.reveal_index = 0
        self.dialog_state = DialogState.REVEALING

        # Exhaustion counts as soon as the node is reached, even if the dialog is cancelled later
        if node.exhausted and self.npc_id:
            self.exhaustion.mark_exhausted(self.npc_id)

        for action in node.actions:
            self._dispatch(action)
            if self._entry != entry:
                return      # Action moved or ended the conversation

        if not self.full_text:
            self._finish_reveal()

    def update(self, clicked: bool = False, choice: Optional[int] = None):
        """Advance one tick. 'clicked' skips the reveal or acknowledges, 'choice' selects a visible choice."""
        if self.dialog_state == DialogState.REVEALING:
            if clicked:
                self.skip()
                return
            self.reveal_index = min(self.reveal_index + self.reveal_rate, len(self.full_text))
            if self.reveal_index >= len(self.full_text):
                self._finish_reveal()
            return

        if self.dialog_state == DialogState.AWAITING_CHOICE:
            if choice is not None:
                self.select_choice(choice)
        elif clicked and self.waiting_for_click:
            self.acknowledge()

    def skip(self):
        if self.dialog_state == DialogState.REVEALING:
            self._finish_reveal()

    def select_choice(self, index: int) -> bool:
        if self.dialog_state != DialogState.AWAITING_CHOICE:
            return False
        choices = self.visible_choices
        if not 0 <= index < len(choices):
            return False
        choice = choices[index]

        entry = self._entry
        for action in choice.actions:
            self._dispatch(action)
            if self._entry != entry:
                return True

        if choice.next:
            self.go_to_node(choice.next)
        else:
            self.end()
        return True

    def acknowledge(self):
        if self.dialog_state == DialogState.REVEALING:
            self.skip()
        elif self.dialog_state == DialogState.AWAITING_ADVANCE:
            node = self.node
            assert node is not None and node.next is not None
            self.go_to_node(node.next)
        elif self.dialog_state == DialogState.ENDED:
            self.end()

    def end(self):
        """End the conversation. Safe in any state. on_complete fires once per conversation."""
        if not self.active:
            return
        on_complete = self.on_complete
        logger.debug("Dialog with '%s' ended at node '%s'", self.npc_id, self.node_id)
        self._reset()
        if on_complete:
            on_complete()

    def get_exhaustion_state(self) -> dict[str, dict]:
        return self.exhaustion.get_state()

    def restore_exhaustion_state(self, state: Mapping[str, Any]):
        self.exhaustion.restore_state(state)

    def _finish_reveal(self):
        self.reveal_index = len(self.full_text)
        node = self.node
        assert node is not None
        if self._available_choices(node):
            self.dialog_state = DialogState.AWAITING_CHOICE
        elif node.next:
            self.dialog_state = DialogState.AWAITING_ADVANCE
        else:
            self.dialog_state = DialogState.ENDED

    def _available_choices(self, node: Optional[DialogNode]) -> list[DialogChoice]:
        if node is None or self.game_state is None:
            return []
        return [c for c in node.choices if evaluate(c.condition, self.game_state)]

    def _dispatch(self, action: ScriptAction):
        if self.on_action:
            self.on_action(action)
