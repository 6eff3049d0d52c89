import logging
from typing import Callable, Optional
from .catalog import ContentCatalog
from .logic import ScriptAction, Say, AddItem, RemoveItem, SetFlag, HideHotspot, ShowEnding, Trade
from .scripts import ActionHandler, HandlerResult
from .state import GameState

logger = logging.getLogger(__name__)

def give_item(state: GameState, catalog: ContentCatalog, item_id: str):
    if catalog.get_item(item_id) is None:
        logger.warning("Cannot add unknown item '%s' to inventory", item_id)
        return
    state.inventory.add_item(item_id)

def make_script_handlers(
        state: GameState,
        catalog: ContentCatalog,
        show_message: Callable[[str], object],
        on_ending: Optional[Callable[[], Optional[HandlerResult]]] = None) -> dict[str, ActionHandler]:
    """
    Build the effect handlers for the script runner.
    'on_ending' may return HandlerResult.PENDING to hold the script until
    the ending has been presented.
    """

    def say(action: ScriptAction):
        assert isinstance(action, Say)
        show_message(action.text)

    def add_item(action: ScriptAction):
        assert isinstance(action, AddItem)
        give_item(state, catalog, action.item)

    def remove_item(action: ScriptAction):
        assert isinstance(action, RemoveItem)
        state.inventory.remove_item(action.item)

    def set_flag(action: ScriptAction):
        assert isinstance(action, SetFlag)
        state.set_flag(action.flag)

    def hide_hotspot(action: ScriptAction):
        assert isinstance(action, HideHotspot)
        state.hide_hotspot(action.room, action.hotspot)

    def show_ending(action: ScriptAction) -> Optional[HandlerResult]:
        state.ending_shown = True
        return on_ending() if on_ending else None

    def trade(action: ScriptAction):
        apply_dialog_action(action, state, catalog)

    return {
        Say.tag: say,
        AddItem.tag: add_item,
        RemoveItem.tag: remove_item,
        SetFlag.tag: set_flag,
        HideHotspot.tag: hide_hotspot,
        ShowEnding.tag: show_ending,
        Trade.tag: trade,
    }

def apply_dialog_action(action: ScriptAction, state: GameState, catalog: ContentCatalog):
    """Apply an action from a dialog node or choice. Dialog actions only change flags and inventory."""
    if isinstance(action, SetFlag):
        state.set_flag(action.flag)
    elif isinstance(action, AddItem):
        give_item(state, catalog, action.item)
    elif isinstance(action, RemoveItem):
        state.inventory.remove_item(action.item)
    elif isinstance(action, Trade):
        if action.give and state.inventory.has_item(action.give):
            state.inventory.remove_item(action.give)
        if action.receive:
            give_item(state, catalog, action.receive)
    else:
        logger.warning("Dialog action '%s' is not supported in dialog. Ignoring.", action.tag)
