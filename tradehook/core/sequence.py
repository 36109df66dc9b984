"""
Command sequence execution.

Runs the actions of one block against an opened exchange, strictly one
after the other. A failing action is reported and skipped; it never
stops the actions after it.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from typing import List, Optional

from tradehook.commands.actions import Action, parse_actions
from tradehook.errors import ErrorCategory, FailureLog, FailureRecord, SequenceError
from tradehook.exchanges.base import Exchange, ExchangeState

logger = logging.getLogger(__name__)

BANNER = "=" * 32


@dataclass
class SequenceResult:
    """Outcome of one command sequence."""

    session: Optional[str]
    executed: List[Action] = field(default_factory=list)
    failures: List[FailureRecord] = field(default_factory=list)

    @property
    def succeeded(self) -> List[Action]:
        failed = {f.details.get("position") for f in self.failures}
        return [a for i, a in enumerate(self.executed) if i not in failed]

    @property
    def ok(self) -> bool:
        return not self.failures


def new_session_id() -> str:
    return str(uuid.uuid4())


async def execute_command_sequence(
    exchange: Exchange,
    symbol: str,
    actions_text: str,
    failures: Optional[FailureLog] = None,
) -> SequenceResult:
    """
    Execute every action in `actions_text` against an exchange, in order.

    Args:
        exchange: Opened exchange
        symbol: Symbol the block targets
        actions_text: Command body, e.g. `buy(1); wait(5s); sell(1)`
        failures: Failure log that action failures are recorded into

    Returns:
        SequenceResult with the session id and any action failures

    Raises:
        SequenceError: If the exchange has already been released
    """
    if not symbol or not actions_text:
        return SequenceResult(session=None)

    if exchange.state in (ExchangeState.DRAINING, ExchangeState.CLOSED):
        raise SequenceError(
            f"Exchange '{exchange.name}' is {exchange.state.value}",
            {"exchange": exchange.name, "symbol": symbol},
        )

    if failures is None:
        failures = FailureLog()

    session = new_session_id()
    commands = re.sub(r";\s*", "; ", actions_text.strip())

    logger.info(BANNER)
    logger.info(f"Exchange : {exchange.name}")
    logger.info(f"Symbol   : {symbol.upper()}")
    logger.info(f"Session  : {session}")
    logger.info(f"Commands : {commands}")
    logger.info(BANNER)

    result = SequenceResult(session=session)

    for position, action in enumerate(parse_actions(actions_text)):
        result.executed.append(action)
        try:
            await exchange.execute_command(symbol, action.name, action.params, session)
        except Exception as e:
            logger.error(f"{action.name} FAILED: {e}")
            record = failures.record_exception(
                e,
                category=ErrorCategory.ACTION_FAILURE,
                exchange=exchange.name,
                session=session,
            )
            record.details["action"] = action.name
            record.details["position"] = position
            result.failures.append(record)

    return result
