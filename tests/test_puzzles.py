"""Tests for puzzle lookup and resolution."""

from clickwork.catalog import ContentCatalog
from clickwork.logic import AddItem, Say, SetFlag
from clickwork.puzzles import PuzzleResolver
from clickwork.state import GameState, Inventory
from clickwork.world import parse_world


def make_resolver(puzzles, items=None):
    world = parse_world({
        "game": {"title": "Test"},
        "items": items or {"rope": {"name": "Rope"}, "key": {"name": "Key"}},
        "hotspots": {"well": {"name": "Well"}, "door": {"name": "Door"}},
        "puzzles": puzzles,
    })
    return PuzzleResolver(ContentCatalog(world))


def make_state(flags=(), items=()):
    return GameState(flags=set(flags), inventory=Inventory(items))


ROPE_ON_WELL = {
    "trigger": {"verb": "use", "item": "rope", "target": "well"},
    "conditions": [{"has_item": "rope"}],
    "actions": [{"say": "Got it"}, {"set_flag": "got_coin"}],
    "fail_text": "Need a rope",
}


def test_item_puzzle_succeeds_with_item():
    resolver = make_resolver([ROPE_ON_WELL])
    result = resolver.try_resolve_with_item("use", "rope", "well", make_state(items=["rope"]))
    assert result is not None
    assert result.succeeded
    assert result.actions == [Say("Got it"), SetFlag("got_coin")]
    assert result.fail_text is None


def test_item_puzzle_fails_with_fail_text():
    resolver = make_resolver([ROPE_ON_WELL])
    result = resolver.try_resolve_with_item("use", "rope", "well", make_state())
    assert result is not None
    assert not result.succeeded
    assert result.actions is None
    assert result.fail_text == "Need a rope"


def test_resolution_does_not_mutate_state():
    resolver = make_resolver([ROPE_ON_WELL])
    state = make_state(items=["rope"])
    resolver.try_resolve_with_item("use", "rope", "well", state)
    assert state.flags == set()
    assert state.inventory.ids() == ["rope"]


def test_no_matching_puzzle():
    resolver = make_resolver([ROPE_ON_WELL])
    assert resolver.try_resolve("use", "well", make_state()) is None
    assert resolver.try_resolve_with_item("use", "key", "well", make_state()) is None
    assert resolver.try_resolve_with_item("give", "rope", "well", make_state()) is None


def test_failed_conditions_without_fail_text_fall_through():
    puzzle = dict(ROPE_ON_WELL)
    del puzzle["fail_text"]
    resolver = make_resolver([puzzle])
    assert resolver.try_resolve_with_item("use", "rope", "well", make_state()) is None


def test_verb_target_puzzle_ignores_item_puzzles():
    resolver = make_resolver([
        ROPE_ON_WELL,
        {"trigger": {"verb": "use", "target": "well"}, "actions": [{"say": "Plain"}]},
    ])
    result = resolver.try_resolve("use", "well", make_state(items=["rope"]))
    assert result is not None
    assert result.actions == [Say("Plain")]


def test_puzzle_with_no_conditions_always_applies():
    resolver = make_resolver([{"trigger": {"verb": "open", "target": "door"}, "actions": [{"say": "Creak"}]}])
    result = resolver.try_resolve("open", "door", make_state())
    assert result is not None
    assert result.succeeded


def test_most_specific_flag_puzzle_wins():
    resolver = make_resolver([
        {"trigger": {"verb": "open", "target": "door"}, "actions": [{"say": "Locked"}]},
        {
            "trigger": {"verb": "open", "target": "door"},
            "conditions": [{"has_flag": "unlocked"}],
            "actions": [{"say": "Open"}],
        },
    ])
    before = resolver.try_resolve("open", "door", make_state())
    after = resolver.try_resolve("open", "door", make_state(flags=["unlocked"]))
    assert before.actions == [Say("Locked")]
    assert after.actions == [Say("Open")]


def test_equally_specific_puzzles_earliest_wins():
    resolver = make_resolver([
        {"trigger": {"verb": "open", "target": "door"}, "conditions": [{"not_flag": "a"}], "actions": [{"say": "First"}]},
        {"trigger": {"verb": "open", "target": "door"}, "conditions": [{"not_flag": "b"}], "actions": [{"say": "Second"}]},
    ])
    assert resolver.try_resolve("open", "door", make_state()).actions == [Say("First")]
    assert resolver.try_resolve("open", "door", make_state(flags=["a"])).actions == [Say("Second")]


def test_item_conditions_do_not_disqualify_candidates():
    resolver = make_resolver([
        {
            "trigger": {"verb": "open", "target": "door"},
            "conditions": [{"has_item": "key"}],
            "actions": [{"say": "Unlocked"}, {"add_item": "rope"}],
            "fail_text": "It's locked.",
        },
    ])
    result = resolver.try_resolve("open", "door", make_state())
    assert result.fail_text == "It's locked."
    result = resolver.try_resolve("open", "door", make_state(items=["key"]))
    assert result.actions == [Say("Unlocked"), AddItem("rope")]


def test_malformed_triggers_never_match():
    resolver = make_resolver([
        {"trigger": {"target": "door"}, "actions": [{"say": "No verb"}]},
        {"trigger": {"verb": "open"}, "actions": [{"say": "No target"}]},
    ])
    assert resolver.try_resolve("open", "door", make_state()) is None


def test_catalog_find_without_flags_returns_first_candidate():
    resolver = make_resolver([
        {"trigger": {"verb": "open", "target": "door"}, "conditions": [{"has_flag": "x"}], "actions": []},
        {"trigger": {"verb": "open", "target": "door"}, "actions": [{"say": "Second"}]},
    ])
    puzzle = resolver.catalog.find_puzzle("open", "door")
    assert puzzle.conditions != []
