"""
Exchange Module.

Provides:
- The exchange capability base class and lifecycle states
- The static exchange catalog
- A paper trading exchange for dry runs
"""

from .base import (
    Exchange,
    ExchangeState,
    parse_decimal,
    parse_duration,
)
from .paper import (
    PaperExchange,
    PaperOrder,
    OrderSide,
    OrderStatus,
)
from .catalog import (
    ExchangeCatalog,
    ExchangeCatalogEntry,
    DEFAULT_EXCHANGES,
    default_catalog,
)

__all__ = [
    "Exchange",
    "ExchangeState",
    "parse_decimal",
    "parse_duration",
    "PaperExchange",
    "PaperOrder",
    "OrderSide",
    "OrderStatus",
    "ExchangeCatalog",
    "ExchangeCatalogEntry",
    "DEFAULT_EXCHANGES",
    "default_catalog",
]
