"""
Exchange catalog.

Static registry mapping an exchange type name to the factory that builds
it. The catalog is fixed at construction time.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Iterable, Iterator, List, Optional

from config.settings import ExchangeCredentials

from .base import Exchange
from .paper import PaperExchange


@dataclass(frozen=True)
class ExchangeCatalogEntry:
    """A supported exchange type."""
    name: str
    description: str
    factory: Callable[[ExchangeCredentials], Exchange]


class ExchangeCatalog:
    """Immutable name -> entry registry."""

    def __init__(self, entries: Iterable[ExchangeCatalogEntry]):
        registry = {}
        for entry in entries:
            if entry.name in registry:
                raise ValueError(f"Duplicate exchange in catalog: {entry.name}")
            registry[entry.name] = entry
        self._entries = MappingProxyType(registry)

    def resolve(self, name: str) -> Optional[ExchangeCatalogEntry]:
        """Look up an exchange type by name."""
        return self._entries.get(name)

    def names(self) -> List[str]:
        return sorted(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[ExchangeCatalogEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


DEFAULT_EXCHANGES = (
    ExchangeCatalogEntry(
        name="paper",
        description="Paper trading simulator",
        factory=PaperExchange,
    ),
)


def default_catalog() -> ExchangeCatalog:
    """Catalog of all built-in exchanges."""
    return ExchangeCatalog(DEFAULT_EXCHANGES)
