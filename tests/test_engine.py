"""Tests for interaction resolution and control mode handling."""

from clickwork.engine import ControlMode, GameEngine, InteractionKind, TickInput
from clickwork.scripts import HandlerResult
from clickwork.world import parse_world


def finish_script(engine, max_ticks=1000):
    for _ in range(max_ticks):
        if engine.mode != ControlMode.SCRIPT:
            return
        engine.update()
    raise AssertionError("script did not finish")


def choose(engine, index):
    engine.dialog.skip()
    engine.update(TickInput(choice=index))


def test_verb_target_puzzle_runs_script(engine):
    outcome = engine.interact("pick_up", "rope_on_stall")
    assert outcome.kind == InteractionKind.PUZZLE
    assert engine.mode == ControlMode.SCRIPT

    finish_script(engine)
    assert engine.mode == ControlMode.GAMEPLAY
    assert engine.state.inventory.has_item("rope")
    assert engine.state.is_hotspot_hidden("rope_on_stall")
    assert engine.drain_messages() == ["I'll take this rope. Might come in handy."]


def test_script_applies_one_action_per_tick(engine):
    engine.interact("pick_up", "rope_on_stall")
    engine.update()
    assert engine.messages and not engine.state.inventory.has_item("rope")
    engine.update()
    assert engine.state.inventory.has_item("rope")
    assert not engine.state.is_hotspot_hidden("rope_on_stall")
    engine.update()
    assert engine.state.is_hotspot_hidden("rope_on_stall")
    assert engine.mode == ControlMode.GAMEPLAY


def test_item_puzzle_fail_text(engine):
    outcome = engine.interact("use", "well", "rope")
    assert outcome.kind == InteractionKind.PUZZLE_FAILED
    assert engine.drain_messages() == ["I need something to lower into the well first."]
    assert engine.mode == ControlMode.GAMEPLAY


def test_item_puzzle_effects_visible_mid_script(engine):
    engine.state.inventory.add_item("rope")
    engine.interact("use", "well", "rope")

    saw_coin_while_running = False
    for _ in range(1000):
        if engine.mode != ControlMode.SCRIPT:
            break
        engine.update()
        if engine.scripts.is_running() and engine.state.inventory.has_item("gold_coin"):
            saw_coin_while_running = True

    assert saw_coin_while_running
    assert engine.state.inventory.ids() == ["gold_coin"]
    assert engine.state.has_flag("got_coin_from_well")


def test_item_use_on_text(engine):
    outcome = engine.interact("use", "notice_board", "rope")
    assert outcome.kind == InteractionKind.ITEM_USE_ON
    assert outcome.message == "I don't need to tie anything to the notice board."


def test_item_use_default(engine):
    outcome = engine.interact("use", "well", "old_key")
    assert outcome.kind == InteractionKind.ITEM_USE_DEFAULT
    assert outcome.message == "The key doesn't fit anything here."


def test_item_without_responses_falls_back_to_default(engine):
    outcome = engine.interact("use", "notice_board", "bucket")
    assert outcome.kind == InteractionKind.DEFAULT
    assert outcome.message == "I can't use that."


def test_item_use_on_npc_defers_to_conversation(engine):
    engine.state.inventory.add_item("gold_coin")
    outcome = engine.interact("give", "bartender", "gold_coin")
    assert outcome.kind == InteractionKind.DIALOG
    assert engine.mode == ControlMode.DIALOG


def test_talk_to_npc_starts_dialog(engine):
    outcome = engine.interact("talk_to", "hermit")
    assert outcome.kind == InteractionKind.DIALOG
    assert outcome.npc_id == "hermit"
    assert engine.mode == ControlMode.DIALOG
    assert engine.dialog.speaker == "Old Hermit Mirela"


def test_built_in_responses(engine):
    assert engine.interact("look_at", "well").message == "An old stone well. Something glints far below."
    assert engine.interact("push", "bartender").message == "He glares at you."
    assert engine.interact("look_at", "hermit").message == "It's Old Hermit Mirela."
    assert engine.interact("look_at", "rope").message == "A sturdy hempen rope. About ten feet long."


def test_default_responses(engine):
    outcome = engine.interact("talk_to", "well")
    assert outcome.kind == InteractionKind.DEFAULT
    assert outcome.message == "I don't think talking to that will help."

    outcome = engine.interact("close", "nothing_here")
    assert outcome.kind == InteractionKind.DEFAULT
    assert outcome.message == "It's not open."


def test_unlisted_verb_uses_fallback_response():
    world = parse_world({"game": {"title": "Bare"}, "hotspots": {"rock": {"name": "Rock"}}})
    assert GameEngine(world).interact("kick", "rock").message == "I can't do that."


def test_flag_gated_puzzle_falls_through_until_flag_set(engine):
    assert engine.interact("look_at", "notice_board").kind == InteractionKind.BUILT_IN

    engine.state.set_flag("got_tankard")
    assert engine.interact("look_at", "notice_board").kind == InteractionKind.PUZZLE
    finish_script(engine)
    assert engine.state.has_flag("game_complete")
    assert engine.state.ending_shown


def test_resolution_is_deterministic(engine):
    engine.state.inventory.add_item("rope")
    first = engine.resolve_interaction("use", "well", "rope")
    second = engine.resolve_interaction("use", "well", "rope")
    assert first == second
    assert engine.state.inventory.ids() == ["rope"]


def test_interactions_ignored_outside_gameplay(engine):
    engine.interact("pick_up", "rope_on_stall")
    assert engine.interact("look_at", "well") is None

    engine.cancel_script()
    engine.interact("talk_to", "hermit")
    assert engine.interact("look_at", "well") is None
    assert not engine.talk_to("bartender")


def test_cancel_script_keeps_applied_effects(engine):
    engine.interact("pick_up", "rope_on_stall")
    engine.update()
    engine.update()
    engine.cancel_script()

    assert engine.mode == ControlMode.GAMEPLAY
    assert engine.state.inventory.has_item("rope")
    assert not engine.state.is_hotspot_hidden("rope_on_stall")
    engine.update()
    assert not engine.state.is_hotspot_hidden("rope_on_stall")


def test_pending_ending_holds_script(engine):
    engine.on_ending = lambda: HandlerResult.PENDING
    engine.state.set_flag("got_tankard")
    engine.interact("look_at", "notice_board")
    for _ in range(200):
        engine.update()

    assert engine.state.ending_shown
    assert engine.mode == ControlMode.SCRIPT

    engine.scripts.advance()
    assert engine.mode == ControlMode.GAMEPLAY


def test_npc_without_dialog():
    world = parse_world({"game": {"title": "Quiet"}, "npcs": {"guard": {"name": "Guard"}}})
    engine = GameEngine(world)
    outcome = engine.interact("talk_to", "guard")
    assert outcome.kind == InteractionKind.DIALOG
    assert engine.mode == ControlMode.GAMEPLAY
    assert engine.drain_messages() == ["Guard doesn't seem to want to talk right now."]


def test_dialog_override_selected_by_condition(engine):
    engine.state.inventory.add_item("old_key")
    engine.talk_to("bartender")
    engine.dialog.skip()
    assert engine.dialog.visible_text.startswith("You already have the key")


def test_cancel_dialog_returns_to_gameplay(engine):
    engine.talk_to("bartender")
    engine.update(TickInput(cancel=True))
    assert engine.mode == ControlMode.GAMEPLAY
    assert not engine.dialog.active


def test_bartender_trades_coin_for_key(engine):
    engine.state.inventory.add_item("gold_coin")
    engine.talk_to("bartender")
    choose(engine, 0)
    assert [choice.text for choice in engine.dialog.visible_choices] == []

    engine.dialog.skip()
    assert len(engine.dialog.visible_choices) == 3
    engine.update(TickInput(choice=1))

    assert engine.dialog.node_id == "give_coin"
    assert engine.state.inventory.ids() == ["old_key"]


def test_coin_choice_hidden_without_coin(engine):
    engine.talk_to("bartender")
    choose(engine, 0)
    engine.dialog.skip()
    assert [choice.text for choice in engine.dialog.visible_choices] == [
        "A gold coin? Where would I find one?",
        "I'll be back.",
    ]


def test_hermit_exhausts_then_repeats_idle_lines(engine):
    engine.talk_to("hermit")
    choose(engine, 0)
    choose(engine, 0)
    assert engine.state.has_flag("hermit_hint_received")

    engine.dialog.skip()
    engine.update(TickInput(clicked=True))
    assert engine.dialog.node_id == "understood"
    engine.dialog.skip()
    engine.update(TickInput(clicked=True))
    assert engine.mode == ControlMode.GAMEPLAY

    engine.talk_to("hermit")
    engine.dialog.skip()
    assert engine.dialog.visible_text == "The old oaks are restless today."
    engine.update(TickInput(cancel=True))

    engine.talk_to("hermit")
    engine.dialog.skip()
    assert engine.dialog.visible_text == "Have you tried the well yet, child?"


def test_on_message_callback(engine):
    seen = []
    engine.on_message = seen.append
    engine.interact("look_at", "well")
    assert seen == ["An old stone well. Something glints far below."]


def test_giving_unwanted_item_to_npc_starts_conversation(engine):
    outcome = engine.interact("give", "bartender", "rope")
    assert outcome.kind == InteractionKind.DIALOG
    assert outcome.npc_id == "bartender"
    assert engine.mode == ControlMode.DIALOG


def test_item_use_default_does_not_apply_to_npcs(engine):
    outcome = engine.interact("use", "hermit", "old_key")
    assert outcome.kind == InteractionKind.DIALOG
    assert engine.mode == ControlMode.DIALOG


def test_use_on_npc_starts_conversation(engine):
    outcome = engine.interact("use", "bartender")
    assert outcome.kind == InteractionKind.DIALOG
    assert engine.mode == ControlMode.DIALOG


def test_item_use_on_text_still_wins_for_npcs():
    world = parse_world({
        "game": {"title": "Market"},
        "items": {"apple": {"name": "Apple", "use_on": {"merchant": "He isn't hungry."}}},
        "npcs": {"merchant": {"name": "Merchant"}},
    })
    outcome = GameEngine(world).interact("give", "merchant", "apple")
    assert outcome.kind == InteractionKind.ITEM_USE_ON
    assert outcome.message == "He isn't hungry."


def test_dialog_with_missing_start_node_gives_feedback():
    world = parse_world({
        "game": {"title": "Broken"},
        "npcs": {"guard": {"name": "Guard", "dialog": "guard"}},
        "dialogs": {"guard": {"start_node": "nowhere", "nodes": {}}},
    })
    engine = GameEngine(world)
    assert not engine.talk_to("guard")
    assert engine.mode == ControlMode.GAMEPLAY
    assert engine.drain_messages() == ["Guard doesn't seem to want to talk right now."]
