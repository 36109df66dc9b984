"""
Command block extraction.

An alert message may contain any number of blocks of the form

    exchange(symbol) { actions }

where `exchange` is a configured alias (letter first, then letters or
digits), `symbol` contains no parentheses and the action body runs to the
first closing brace. The body may itself contain parentheses, the symbol
may not.
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterator

BLOCK_PATTERN = re.compile(
    r"([a-z][a-z0-9]*)\(([^()]*?)\)\s*\{([\s\S]*?)\}",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class Block:
    """A parsed `exchange(symbol){actions}` unit."""

    exchange_name: str
    symbol: str
    actions_text: str


def iter_blocks(message: str) -> Iterator[Block]:
    """
    Yield every complete block in a message.

    Blocks with an empty exchange name, symbol or action body are skipped.
    """
    for match in BLOCK_PATTERN.finditer(message):
        exchange_name = match.group(1).strip().lower()
        symbol = match.group(2).strip()
        actions_text = match.group(3).strip()

        if exchange_name and symbol and actions_text:
            yield Block(exchange_name, symbol, actions_text)


def extract_blocks(
    message: str,
    visit: Callable[[str, str, str], None],
) -> None:
    """Call `visit(exchange_name, symbol, actions_text)` for each block."""
    for block in iter_blocks(message):
        visit(block.exchange_name, block.symbol, block.actions_text)


def strip_blocks(message: str) -> str:
    """Remove every block from a message, leaving the free text."""
    return BLOCK_PATTERN.sub("", message)
