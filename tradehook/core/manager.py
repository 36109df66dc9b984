"""
Exchange Manager - message dispatch.

Takes one alert message and the configured credentials and:
1. Extracts every `exchange(symbol){actions}` block
2. Opens (or reuses) the exchange for each block
3. Runs the block's actions as a command sequence
4. Releases the exchange after a short cool-down so a following block
   for the same exchange can reuse the connection
5. Forwards any `{!}` alert text to the notifier

Blocks are dispatched as independent asyncio tasks. A block that fails
never affects the other blocks or the caller.

Usage:
    manager = ExchangeManager(default_catalog(), notifier)
    tasks = manager.execute_message(message, config.credentials)
    await manager.drain()
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Set

from config.settings import DispatchConfig, ExchangeCredentials
from tradehook.commands.blocks import Block, iter_blocks
from tradehook.errors import ErrorCategory, ExchangeNotFoundError, FailureLog
from tradehook.exchanges.base import Exchange
from tradehook.exchanges.catalog import ExchangeCatalog
from tradehook.notifications.notifier import Notifier

from .alerts import AlertExtractor
from .exchange_pool import ConnectionPool
from .sequence import SequenceResult, execute_command_sequence

logger = logging.getLogger(__name__)

BANNER = "=" * 32


class ExchangeManager:
    """Dispatches alert messages to exchanges."""

    def __init__(
        self,
        catalog: ExchangeCatalog,
        notifier: Optional[Notifier] = None,
        config: Optional[DispatchConfig] = None,
    ):
        """
        Initialize exchange manager.

        Args:
            catalog: Supported exchange types
            notifier: Notifier for alert text and the `notify` command
            config: Dispatch settings (cool-down, failure history)
        """
        self._config = config or DispatchConfig()
        self._notifier = notifier or Notifier()
        self._failures = FailureLog(max_history=self._config.failure_history)
        self._pool = ConnectionPool(
            catalog,
            notifier=self._notifier,
            failures=self._failures,
        )
        self._alerts = AlertExtractor(self._notifier)

        self._block_tasks: Set[asyncio.Task] = set()
        self._close_tasks: Set[asyncio.Task] = set()
        self._alert_tasks: Set[asyncio.Task] = set()

    @property
    def pool(self) -> ConnectionPool:
        return self._pool

    @property
    def failures(self) -> FailureLog:
        return self._failures

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    @property
    def pending_closes(self) -> int:
        return len(self._close_tasks)

    def execute_message(
        self,
        message: str,
        credentials: Sequence[ExchangeCredentials],
    ) -> List[asyncio.Task]:
        """
        Dispatch every command block in a message.

        Must be called from a running event loop. Returns without waiting
        for the blocks to finish.

        Args:
            message: Alert message text
            credentials: Configured exchange credentials

        Returns:
            One task per dispatched block, resolving to its SequenceResult
            (or None if the exchange could not be opened)
        """
        logger.info(BANNER)
        logger.info("Message Received")
        logger.info(f"{datetime.utcnow().isoformat()}")
        logger.info(f"Message : {message.strip()}")
        logger.info(BANNER)

        tasks = []
        for block in iter_blocks(message):
            try:
                exchange_credentials = self._find_credentials(
                    block.exchange_name, credentials
                )
            except ExchangeNotFoundError as e:
                logger.error(f"{e}. Skipping")
                self._failures.record_exception(e, exchange=block.exchange_name)
                continue

            task = asyncio.create_task(
                self._execute_block(block, exchange_credentials),
                name=f"block-{block.exchange_name}-{block.symbol}",
            )
            self._block_tasks.add(task)
            task.add_done_callback(self._block_tasks.discard)
            tasks.append(task)

        alert_task = asyncio.create_task(
            self._alerts.handle_alerts(message), name="alerts"
        )
        self._alert_tasks.add(alert_task)
        alert_task.add_done_callback(self._alert_tasks.discard)

        return tasks

    @staticmethod
    def _find_credentials(
        name: str,
        credentials: Sequence[ExchangeCredentials],
    ) -> ExchangeCredentials:
        """
        Find the credentials for an alias, ignoring case.

        Raises:
            ExchangeNotFoundError: If no credentials are configured for it
        """
        for item in credentials:
            if item.name.lower() == name.lower():
                return item
        raise ExchangeNotFoundError(
            f"No credentials for '{name}'", {"exchange": name}
        )

    async def _execute_block(
        self,
        block: Block,
        credentials: ExchangeCredentials,
    ) -> Optional[SequenceResult]:
        """Open the block's exchange, run its actions, schedule the close."""
        exchange = await self._pool.open_exchange(
            credentials.name, credentials, block.symbol
        )
        if exchange is None:
            logger.error(f"Exchange '{block.exchange_name}' is not supported")
            self._failures.record(
                ErrorCategory.EXCHANGE_NOT_FOUND,
                f"Exchange '{block.exchange_name}' is not supported",
                exchange=block.exchange_name,
            )
            return None

        try:
            return await execute_command_sequence(
                exchange,
                block.symbol,
                block.actions_text,
                failures=self._failures,
            )
        except Exception as e:
            logger.error(f"Command sequence terminated - {e}")
            self._failures.record_exception(
                e,
                category=ErrorCategory.SEQUENCE_FAILURE,
                exchange=block.exchange_name,
            )
            return None
        finally:
            self._schedule_close(exchange)

    def _schedule_close(self, exchange: Exchange) -> None:
        """Release the exchange after the cool-down, in its own task."""
        task = asyncio.create_task(
            self._close_after_cooldown(exchange),
            name=f"close-{exchange.name}",
        )
        self._close_tasks.add(task)
        task.add_done_callback(self._close_tasks.discard)

    async def _close_after_cooldown(self, exchange: Exchange) -> None:
        try:
            await asyncio.sleep(self._config.cooldown_seconds)
            await self._pool.close_exchange(exchange)
        except Exception as e:
            logger.error(f"Failed to close exchange '{exchange.name}': {e}")

    async def drain(self) -> None:
        """Wait for every dispatched block, alert and pending close to finish."""
        while self._block_tasks or self._close_tasks or self._alert_tasks:
            pending = (
                list(self._block_tasks)
                + list(self._close_tasks)
                + list(self._alert_tasks)
            )
            await asyncio.gather(*pending, return_exceptions=True)

    async def shutdown(self) -> None:
        """Drain outstanding work and terminate any exchange still open."""
        await self.drain()
        await self._pool.close_all()
