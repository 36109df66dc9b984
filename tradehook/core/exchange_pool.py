"""
Reference-counted exchange connection pool.

Opened exchanges are shared between every command sequence that targets
the same (alias, credentials) identity. Each sequence takes a reference
when it opens the exchange and gives it back when it is done; the
exchange is terminated when the last reference goes.

Opens and closes for the same identity are serialized with a
per-identity asyncio.Lock, so a second caller arriving while the
exchange is still initialising waits for the outcome and then shares the
handle instead of creating a second one.

Usage:
    pool = ConnectionPool(default_catalog())
    exchange = await pool.open_exchange("binance", credentials, "BTCUSD")
    if exchange:
        ...
        await pool.close_exchange(exchange)
"""

import asyncio
import logging
from typing import Dict, Hashable, List, Optional, Tuple

from config.settings import ExchangeCredentials
from tradehook.errors import ErrorCategory, FailureLog
from tradehook.exchanges.base import Exchange, ExchangeState
from tradehook.exchanges.catalog import ExchangeCatalog

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Registry of opened exchanges, keyed by handle-defined identity."""

    def __init__(
        self,
        catalog: ExchangeCatalog,
        notifier=None,
        failures: Optional[FailureLog] = None,
    ):
        """
        Initialize connection pool.

        Args:
            catalog: Exchange types that may be opened
            notifier: Notifier attached to every new exchange (for `notify`)
            failures: Failure log for initialisation failures
        """
        self._catalog = catalog
        self._notifier = notifier
        self._failures = failures if failures is not None else FailureLog()

        self._opened: List[Exchange] = []
        self._locks: Dict[Hashable, asyncio.Lock] = {}

    # === Introspection ===

    @property
    def opened(self) -> Tuple[Exchange, ...]:
        return tuple(self._opened)

    @property
    def open_count(self) -> int:
        return len(self._opened)

    @property
    def failures(self) -> FailureLog:
        return self._failures

    # === Identity serialization ===

    @staticmethod
    def _identity_key(name: str, credentials: ExchangeCredentials) -> Hashable:
        return (name, credentials.identity())

    def _lock_for(self, name: str, credentials: ExchangeCredentials) -> asyncio.Lock:
        key = self._identity_key(name, credentials)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    # === Pool operations ===

    def find_opened(
        self,
        name: str,
        credentials: ExchangeCredentials,
    ) -> Optional[Exchange]:
        """Find an opened exchange matching the alias and credentials."""
        for exchange in self._opened:
            if exchange.matches(name, credentials):
                return exchange
        return None

    async def open_exchange(
        self,
        name: str,
        credentials: ExchangeCredentials,
        symbol: str,
    ) -> Optional[Exchange]:
        """
        Open an exchange, reusing an already opened one if possible.

        Args:
            name: Exchange alias from the message
            credentials: Credentials configured for the alias
            symbol: Symbol the exchange is being opened for

        Returns:
            The exchange, or None if the type is unknown or init failed
        """
        async with self._lock_for(name, credentials):
            exchange = self.find_opened(name, credentials)
            if exchange:
                exchange.add_reference()
                logger.debug(
                    f"Reusing exchange '{name}' (references={exchange.references})"
                )
                return exchange

            entry = self._catalog.resolve(credentials.exchange_type)
            if entry is None:
                return None

            logger.info(f"Starting {entry.description}")

            exchange = entry.factory(credentials)
            exchange.notifier = self._notifier
            exchange.state = ExchangeState.OPENING
            self._opened.append(exchange)

            try:
                await exchange.init(symbol)
            except Exception as e:
                logger.error(f"Failed to initialise exchange '{name}': {e}")
                self._failures.record_exception(
                    e,
                    category=ErrorCategory.INITIALIZATION_FAILURE,
                    exchange=name,
                )
                await self._destroy(exchange)
                return None

            exchange.state = ExchangeState.OPEN
            return exchange

    async def close_exchange(self, exchange: Optional[Exchange]) -> None:
        """
        Release one reference to an exchange.

        The exchange is terminated and removed once no references remain.
        Closing an exchange that is no longer pooled does nothing.
        """
        if exchange is None:
            return

        async with self._lock_for(exchange.name, exchange.credentials):
            if self.find_opened(exchange.name, exchange.credentials) is None:
                return

            remaining = exchange.remove_reference()
            if remaining > 0:
                logger.debug(
                    f"Exchange '{exchange.name}' still in use (references={remaining})"
                )
                return

            await self._destroy(exchange)

    async def close_all(self) -> None:
        """Terminate every opened exchange regardless of references."""
        for exchange in list(self._opened):
            async with self._lock_for(exchange.name, exchange.credentials):
                if exchange in self._opened:
                    await self._destroy(exchange)

    async def _destroy(self, exchange: Exchange) -> None:
        """Terminate and unregister an exchange. Caller holds its lock."""
        exchange.state = ExchangeState.DRAINING
        try:
            await exchange.terminate()
        except Exception as e:
            logger.error(f"Error terminating exchange '{exchange.name}': {e}")
        finally:
            self._opened = [item for item in self._opened if item is not exchange]
            exchange.state = ExchangeState.CLOSED
            logger.info(f"Closed exchange '{exchange.name}'")
