from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional
from .commands import parse_command
from .dialog import DialogState
from .engine import ControlMode, GameEngine, TickInput
from .persistence import GameStatePersister
from .util import describe_string_list, strip_quotes
from .world import World

MAX_TICKS_PER_COMMAND = 100_000

class ActionStatus(Enum):
    OK = "ok"
    NO_EFFECT = "no_effect"
    INVALID = "invalid"

@dataclass
class ActionResult:
    status: ActionStatus
    message: str

def ok_result(message: str) -> ActionResult:
    return ActionResult(status=ActionStatus.OK, message=message)

def invalid_result(message: str) -> ActionResult:
    return ActionResult(status=ActionStatus.INVALID, message=message)

@dataclass
class ResolveNounResult:
    object_id: Optional[str] = None
    error: Optional[str] = None

@dataclass
class Candidate:
    object_id: str
    name: str
    aliases: list[str] = field(default_factory=list)

class App:
    """
    Text-mode driver for the game engine.
    Turns typed commands into interactions, ticks the engine until it needs
    more input, and renders messages and dialog as plain text.
    """
    def __init__(self, world: World, saves_folder: Path):
        self.world = world
        self.engine = GameEngine(world)
        self.persister = GameStatePersister(saves_folder)

    def handle_raw_command(self, raw_command: str) -> ActionResult:
        return self.handle_system_command(raw_command) or self.handle_game_command(raw_command)

    def handle_system_command(self, raw: str) -> Optional[ActionResult]:
        raw = strip_quotes(raw.strip()).strip()
        parts = [part.lower() for part in raw.split()]

        try:
            if parts:

                if parts[0] == "/save":
                    return self.handle_save(parts)

                if parts[0] == "/load":
                    return self.handle_load(parts)

        except RuntimeError as exc:
            return invalid_result(str(exc))

        return None

    def handle_save(self, parts: list[str]) -> ActionResult:
        """Save game state to file."""
        if len(parts) != 2:
            return invalid_result("Usage: /SAVE filename")
        if self.engine.mode != ControlMode.GAMEPLAY:
            return invalid_result("You can't save right now.")

        self.persister.save_game_state(self.engine, parts[1])
        return ok_result("Game saved")

    def handle_load(self, parts: list[str]) -> ActionResult:
        """Load game state from file"""
        if len(parts) != 2:
            return invalid_result("Usage: /LOAD filename")

        self.persister.load_game_state(self.engine, parts[1])
        return ok_result("Game loaded")

    def handle_game_command(self, raw: str) -> ActionResult:
        if self.engine.mode == ControlMode.DIALOG:
            return self.handle_dialog_input(raw)

        command = parse_command(raw)
        if command.error:
            return invalid_result(command.error)
        assert command.verb is not None

        if command.verb == "inventory":
            return ok_result(self.describe_inventory())

        # Resolve nouns to ids
        item_id: Optional[str] = None
        if command.target_noun:
            item_result = self.resolve_noun(command.main_noun or "", self.inventory_candidates(), carried=True)
            if item_result.error:
                return invalid_result(item_result.error)
            item_id = item_result.object_id
            target_result = self.resolve_noun(command.target_noun, self.target_candidates())
        else:
            target_result = self.resolve_noun(command.main_noun or "", self.target_candidates())
        if target_result.error:
            return invalid_result(target_result.error)
        assert target_result.object_id is not None

        self.engine.interact(command.verb, target_result.object_id, item_id)
        return self.run_until_input()

    def handle_dialog_input(self, raw: str) -> ActionResult:
        raw = raw.strip().lower()
        if raw in ("bye", "/bye"):
            self.engine.update(TickInput(cancel=True))
        elif not raw:
            self.engine.update(TickInput(clicked=True))
        elif raw.isdigit() and self.engine.dialog.waiting_for_choice:
            index = int(raw) - 1
            if not 0 <= index < len(self.engine.dialog.visible_choices):
                return invalid_result(f"Choose a number from 1 to {len(self.engine.dialog.visible_choices)}.")
            self.engine.update(TickInput(choice=index))
        else:
            return invalid_result("Choose a number, press Enter to continue, or type BYE to leave.")
        return self.run_until_input()

    def run_until_input(self) -> ActionResult:
        """Tick the engine until it needs player input, then describe what happened."""
        engine = self.engine
        for _ in range(MAX_TICKS_PER_COMMAND):
            if engine.mode == ControlMode.SCRIPT:
                engine.update()
            elif engine.mode == ControlMode.DIALOG and engine.dialog.dialog_state == DialogState.REVEALING:
                engine.update(TickInput(clicked=True))
            else:
                break

        lines = engine.drain_messages()
        if engine.mode == ControlMode.DIALOG:
            lines.extend(self.describe_dialog())
        return ok_result("\n".join(lines))

    def describe_dialog(self) -> list[str]:
        dialog = self.engine.dialog
        lines: list[str] = []
        if dialog.visible_text:
            lines.append(f"{dialog.speaker}: \"{dialog.visible_text}\"")
        if dialog.waiting_for_choice:
            lines.extend(f"  {index + 1}. {choice.text}" for index, choice in enumerate(dialog.visible_choices))
        elif dialog.waiting_for_click:
            lines.append("  (press Enter)")
        return lines

    def describe_inventory(self) -> str:
        names = [
            self.world.items[item_id].name
            for item_id in self.engine.state.inventory
            if item_id in self.world.items
        ]
        return f"You carry {describe_string_list(names, 'and')}." if names else "You carry nothing."

    def inventory_candidates(self) -> list[Candidate]:
        return [
            Candidate(item_id, self.world.items[item_id].name, self.world.items[item_id].aliases)
            for item_id in self.engine.state.inventory
            if item_id in self.world.items
        ]

    def target_candidates(self) -> list[Candidate]:
        state = self.engine.state
        candidates = [
            Candidate(hotspot_id, hotspot.name, hotspot.aliases)
            for hotspot_id, hotspot in self.world.hotspots.items()
            if not state.is_hotspot_hidden(hotspot_id)
        ]
        candidates.extend(Candidate(npc_id, npc.name, npc.aliases) for npc_id, npc in self.world.npcs.items())
        candidates.extend(self.inventory_candidates())
        return candidates

    def resolve_noun(self, noun: str, candidates: list[Candidate], carried: bool = False) -> ResolveNounResult:

        # Filter to matching objects. The same object may be listed more than once.
        matches: list[str] = []
        for candidate in candidates:
            if candidate_matches_noun(candidate, noun) and candidate.object_id not in matches:
                matches.append(candidate.object_id)

        # Must be exactly one
        if not matches:
            if carried:
                return ResolveNounResult(error=f"You are not carrying a {noun}.")
            return ResolveNounResult(error=f"There is no {noun} here.")

        if len(matches) > 1:
            return ResolveNounResult(error=f"Which {noun}?")

        return ResolveNounResult(object_id=matches[0])

def candidate_matches_noun(candidate: Candidate, noun: str) -> bool:
    noun = noun.lower()
    return (
        candidate.object_id.lower() == noun
        or candidate.name.lower() == noun
        or noun in (alias.lower() for alias in candidate.aliases)
    )
