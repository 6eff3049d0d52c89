from dataclasses import dataclass
from typing import Optional

VALID_VERBS = {
    "give",
    "open",
    "close",
    "pick_up",
    "look_at",
    "talk_to",
    "use",
    "push",
    "pull",
    "inventory",
}

VERB_ALIASES = {
    "look at": "look_at",
    "look": "look_at",
    "l": "look_at",
    "examine": "look_at",
    "x": "look_at",
    "pick up": "pick_up",
    "take": "pick_up",
    "get": "pick_up",
    "talk to": "talk_to",
    "talk": "talk_to",
    "speak to": "talk_to",
    "i": "inventory",
    "inv": "inventory",
}

# Verbs that take an item and a target: "use rope on well", "give coin to bartender"
ITEM_VERBS = {"use", "give"}
PREPOSITIONS = {"on", "with", "to"}

@dataclass
class ParsedCommand:
    raw: str
    verb: Optional[str] = None
    main_noun: Optional[str] = None         # The target, or the item when there is a target noun
    target_noun: Optional[str] = None
    error: Optional[str] = None

def parse_command(raw: str) -> ParsedCommand:
    raw = raw.strip()
    cmd = ParsedCommand(raw = raw)
    if not raw:
        cmd.error = "No command provided."
        return cmd

    tokens = [part.lower() for part in raw.split()]

    # Process verb. Two word verbs ("look at", "pick up") take priority.
    verb: Optional[str] = None
    verb_length = 0
    for length in (2, 1):
        phrase = " ".join(tokens[:length])
        candidate = VERB_ALIASES.get(phrase, phrase.replace(" ", "_"))
        if len(tokens) >= length and candidate in VALID_VERBS:
            verb, verb_length = candidate, length
            break
    verb_token = " ".join(tokens[:verb_length]) if verb else tokens[0]
    if verb is None:
        cmd.error = f"Unknown verb '{verb_token}'."
        return cmd
    cmd.verb = verb

    # Intransitive verbs
    if verb == "inventory":
        return cmd

    # Transitive verbs

    # Skip "the"
    remainder = tokens[verb_length:]
    if remainder and remainder[0] == "the":
        remainder = remainder[1:]

    if not remainder:
        missing_object = "whom" if verb == "talk_to" else "what"
        cmd.error = f"{verb_token.capitalize()} {missing_object}?"
        return cmd

    # verb item on target
    preposition_index = next((i for i, token in enumerate(remainder) if token in PREPOSITIONS), None)
    if verb in ITEM_VERBS and preposition_index is not None:

        # Split item and target
        cmd.main_noun = " ".join(remainder[:preposition_index])
        target_remainder = remainder[preposition_index + 1 :]

        # Skip "the"
        if target_remainder and target_remainder[0] == "the":
            target_remainder = target_remainder[1:]

        if not cmd.main_noun:
            cmd.error = f"{verb_token.capitalize()} what?"
            return cmd
        if not target_remainder:
            cmd.error = f"{verb_token.capitalize()} the {cmd.main_noun} {remainder[preposition_index]} what?"
            return cmd
        cmd.target_noun = " ".join(target_remainder)

    else:
        cmd.main_noun = " ".join(remainder)

    return cmd
