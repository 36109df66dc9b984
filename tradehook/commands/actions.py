"""
Action parsing for alert command bodies.

A command body is free text containing `name(args)` actions, executed in
the order they appear. Anything between actions (separators such as `;`,
newlines or commentary) is ignored.
"""

import re
from dataclasses import dataclass
from typing import List, Tuple

from .arguments import Param, parse_arguments

# Argument capture stops at the first ')', nested parentheses are not supported
ACTION_PATTERN = re.compile(r"([a-z]+)\(([^)]*)\)", re.IGNORECASE)


@dataclass(frozen=True)
class Action:
    """A single command to run against an exchange."""

    name: str
    params: Tuple[Param, ...] = ()

    def __str__(self) -> str:
        args = ", ".join(
            p.value if p.is_positional else f"{p.name}={p.value}"
            for p in self.params
        )
        return f"{self.name}({args})"


def parse_actions(body: str) -> List[Action]:
    """
    Parse every `name(args)` action in a command body.

    Args:
        body: Command body text, e.g. `buy(amount=1); wait(5s); sell(1)`

    Returns:
        Actions in left-to-right order
    """
    return [
        Action(
            name=match.group(1).strip(),
            params=tuple(parse_arguments(match.group(2).strip())),
        )
        for match in ACTION_PATTERN.finditer(body)
    ]
