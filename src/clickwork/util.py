import re

def strip_quotes(s: str) -> str:
    if len(s) >= 2 and s[0] == s[-1] and s[0] in ("'", '"'):
        return s[1:-1]
    return s

def describe_string_list(strings: list[str], last_delimiter: str) -> str:
    """['a', 'b', 'c'] -> 'a, b and c'"""
    if len(strings) < 2:
        return "".join(strings)
    return f"{', '.join(strings[:-1])} {last_delimiter} {strings[-1]}"

def snake_case(name: str) -> str:
    """'hasFlag' -> 'has_flag'. Already snake_case names are returned unchanged."""
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()
