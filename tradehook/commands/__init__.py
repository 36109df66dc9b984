"""
Alert Command Parsing.

Provides:
- Block extraction (`exchange(symbol){actions}`)
- Action parsing (`name(args)`)
- Quote-aware argument parsing and binding
"""

from .arguments import (
    Param,
    parse_arguments,
    split_arguments,
    classify_argument,
    bind_params,
)
from .actions import (
    Action,
    parse_actions,
)
from .blocks import (
    Block,
    iter_blocks,
    extract_blocks,
    strip_blocks,
)

__all__ = [
    # Arguments
    "Param",
    "parse_arguments",
    "split_arguments",
    "classify_argument",
    "bind_params",
    # Actions
    "Action",
    "parse_actions",
    # Blocks
    "Block",
    "iter_blocks",
    "extract_blocks",
    "strip_blocks",
]
