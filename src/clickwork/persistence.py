import json
import logging
from pathlib import Path
from .engine import ControlMode, GameEngine
from .state import GameState, Inventory
from .dialog import ExhaustionTracker

logger = logging.getLogger(__name__)

class GameStatePersister:
    def __init__(self, saves_folder: Path):
        self.saves_folder = saves_folder

    def get_save_file_path(self, filename: str) -> Path:
        return get_save_file_path(self.saves_folder, filename, ".json")

    def save_game_state(self, engine: GameEngine, filename: str):
        save_file_path = self.get_save_file_path(filename)

        # Serialize game state
        state_json = json.dumps(state_to_dict(engine), indent=2)

        # Write to file
        logger.info("Saving to: %s", save_file_path)
        save_file_path.parent.mkdir(parents=True, exist_ok=True)
        save_file_path.write_text(state_json)

    def load_game_state(self, engine: GameEngine, filename: str):
        save_file_path = self.get_save_file_path(filename)
        if not save_file_path.exists():
            raise RuntimeError(f"Save '{filename}' does not exist.")

        # Read from file
        logger.info("Loading from: %s", save_file_path)
        state_json = save_file_path.read_text()

        # Deserialize
        try:
            state_dict = json.loads(state_json)
        except json.JSONDecodeError as exc:
            raise RuntimeError(f"Save '{filename}' is corrupt.") from exc
        if not isinstance(state_dict, dict):
            raise RuntimeError(f"Save '{filename}' is corrupt.")

        try:
            state_from_dict(engine, state_dict)
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise RuntimeError(f"Save '{filename}' is corrupt.") from exc

    def has_save(self, filename: str) -> bool:
        return self.get_save_file_path(filename).exists()

    def delete_save(self, filename: str):
        self.get_save_file_path(filename).unlink(missing_ok=True)

def get_save_file_path(folder_path: Path, filename: str, ext: str) -> Path:
    folder_path = folder_path.resolve()
    file_path = (folder_path / filename).with_suffix(ext).resolve()

    if not file_path.is_relative_to(folder_path):
        raise RuntimeError("Invalid filename")

    return file_path

def state_to_dict(engine: GameEngine) -> dict:
    state = engine.state
    return {
        "flags": sorted(state.flags),
        "inventory": state.inventory.ids(),
        "hidden_hotspots": [
            {"room": room, "hotspot": hotspot}
            for room, hotspot in sorted(state.hidden_hotspots)
        ],
        "ending_shown": state.ending_shown,
        "dialog_exhaustion": engine.dialog.get_exhaustion_state(),
    }

def state_from_dict(engine: GameEngine, data: dict):
    """Replace the engine's game state with a saved one. Only allowed between interactions."""
    if engine.mode != ControlMode.GAMEPLAY:
        raise RuntimeError("Cannot load while a dialog or script is running.")

    # Drop items the content no longer defines
    item_ids = [
        item_id
        for item_id in data.get("inventory", [])
        if engine.catalog.get_item(item_id) is not None
    ]

    state = GameState(
        flags=set(data.get("flags", [])),
        inventory=Inventory(item_ids),
        hidden_hotspots={
            (entry["room"], entry["hotspot"])
            for entry in data.get("hidden_hotspots", [])
        },
        ending_shown=bool(data.get("ending_shown", False)),
    )
    exhaustion = ExhaustionTracker()
    exhaustion.restore_state(data.get("dialog_exhaustion") or {})

    # Only replace anything once the whole save has been read
    engine.state = state
    engine.dialog.exhaustion = exhaustion
