"""
Argument parsing for alert commands.

Turns the text between an action's parentheses into an ordered list of
parameters. Arguments are comma separated; a comma inside a double quoted
string does not split. Each argument is either named (`amount=1`,
`note="a, b"`) or positional (`1`, `"BTC"`).

Usage:
    params = parse_arguments('a=1,b="x,y",2')
    # [Param('a', '1', 0), Param('b', 'x,y', 1), Param('', '2', 2)]
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Sequence

QUOTE = '"'
SEPARATOR = ","

_NAMED_QUOTED = re.compile(r'^([A-Za-z][A-Za-z0-9_]*)\s*=\s*"([^"]*)"$')
_NAMED_BARE = re.compile(r"^([A-Za-z][A-Za-z0-9_]*)\s*=\s*(.+)$", re.DOTALL)


@dataclass(frozen=True)
class Param:
    """A single parsed argument. An empty name means positional."""

    name: str
    value: str
    index: int

    @property
    def is_positional(self) -> bool:
        return self.name == ""


def split_arguments(raw: str) -> List[str]:
    """
    Split an argument string on commas that are outside double quotes.

    Uses a two-state tokenizer (normal / in quote). Quotes are kept in the
    tokens; an unterminated quote runs to the end of the input. Tokens are
    trimmed. Empty tokens (`a,,b`) are dropped; whitespace-only tokens are
    kept as "" so they still hold their position.
    """
    tokens = []
    current = []
    in_quote = False

    for char in raw:
        if char == QUOTE:
            in_quote = not in_quote
            current.append(char)
        elif char == SEPARATOR and not in_quote:
            tokens.append("".join(current))
            current = []
        else:
            current.append(char)
    tokens.append("".join(current))

    return [token.strip() for token in tokens if token]


def _unquote(value: str) -> str:
    """Strip one pair of surrounding double quotes, if present."""
    if len(value) >= 2 and value[0] == QUOTE and value[-1] == QUOTE:
        return value[1:-1]
    return value


def classify_argument(token: str, index: int) -> Param:
    """Classify a single trimmed token as a named or positional Param."""
    match = _NAMED_QUOTED.match(token)
    if match:
        return Param(name=match.group(1), value=match.group(2), index=index)

    match = _NAMED_BARE.match(token)
    if match:
        return Param(
            name=match.group(1),
            value=_unquote(match.group(2).strip()),
            index=index,
        )

    return Param(name="", value=_unquote(token), index=index)


def parse_arguments(raw: str) -> List[Param]:
    """
    Parse a raw argument string into an ordered list of Params.

    Args:
        raw: Text between an action's parentheses

    Returns:
        Params in argument order, `index` being the argument position.
        Blank arguments produce no Param but keep their index.
    """
    if not raw:
        return []

    return [
        classify_argument(token, index)
        for index, token in enumerate(split_arguments(raw))
        if token
    ]


def bind_params(
    params: Sequence[Param],
    expected: Mapping[str, Any],
) -> Dict[str, Any]:
    """
    Bind parsed params onto an ordered set of expected argument names.

    A named param wins for its name (case-insensitive). Otherwise the
    positional param whose index matches the expected position is used,
    falling back to the default from `expected`. Unknown names are ignored.

    Args:
        params: Parsed params for one action
        expected: Ordered mapping of argument name -> default value

    Returns:
        Dict with one entry per expected argument
    """
    named = {p.name.lower(): p.value for p in params if not p.is_positional}
    positional = {p.index: p.value for p in params if p.is_positional}

    bound = {}
    for position, (name, default) in enumerate(expected.items()):
        if name.lower() in named:
            bound[name] = named[name.lower()]
        elif position in positional:
            bound[name] = positional[position]
        else:
            bound[name] = default
    return bound
