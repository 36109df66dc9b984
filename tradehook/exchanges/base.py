"""
Exchange capability base class.

Every exchange the dispatcher can talk to implements the same small
contract:

- init(symbol)                      prepare the connection
- execute_command(symbol, name, params, session)
- terminate()                       release the connection
- matches(name, credentials)        identity check used by the pool
- add_reference() / remove_reference()

Commands are async handlers registered by name. Every exchange gets the
generic `wait` and `notify` commands; concrete exchanges register their
own trading commands on top.
"""

import asyncio
import logging
import re
from abc import ABC
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Sequence

from config.settings import ExchangeCredentials
from tradehook.commands.arguments import Param, bind_params
from tradehook.errors import InvalidArgumentError, UnknownCommandError

logger = logging.getLogger(__name__)

CommandHandler = Callable[[str, Sequence[Param], str], Awaitable[Any]]

_DURATION = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(s|m|h)?\s*$", re.IGNORECASE)
_DURATION_UNITS = {"s": 1.0, "m": 60.0, "h": 3600.0}


class ExchangeState(Enum):
    """Lifecycle of a pooled exchange connection."""
    UNOPENED = "unopened"
    OPENING = "opening"
    OPEN = "open"
    DRAINING = "draining"
    CLOSED = "closed"


def parse_duration(value: str) -> float:
    """
    Parse a duration such as `30`, `30s`, `5m` or `1.5h` into seconds.

    Raises:
        InvalidArgumentError: If the value is not a duration
    """
    match = _DURATION.match(str(value))
    if not match:
        raise InvalidArgumentError(f"Invalid duration: {value!r}")
    unit = (match.group(2) or "s").lower()
    return float(match.group(1)) * _DURATION_UNITS[unit]


def parse_decimal(value: Any, name: str) -> Decimal:
    """
    Parse a numeric argument.

    Raises:
        InvalidArgumentError: If the value is missing or not a number
    """
    if value is None or str(value).strip() == "":
        raise InvalidArgumentError(f"Missing argument: {name}")
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidArgumentError(f"Argument {name} is not a number: {value!r}")
    if not result.is_finite():
        raise InvalidArgumentError(f"Argument {name} is not finite: {value!r}")
    return result


class Exchange(ABC):
    """
    Base class for exchange connections.

    The reference count starts at 1 for the caller that created the
    exchange. The connection pool owns lifecycle transitions.
    """

    def __init__(self, credentials: ExchangeCredentials):
        """
        Initialize exchange.

        Args:
            credentials: Credentials for the configured alias
        """
        self.name = credentials.name
        self.credentials = credentials
        self.state = ExchangeState.UNOPENED
        self.notifier = None

        self._references = 1
        self._commands: Dict[str, CommandHandler] = {}

        self.register_command("wait", self.wait)
        self.register_command("notify", self.notify)

    # === Capability contract ===

    def matches(self, name: str, credentials: ExchangeCredentials) -> bool:
        """Check if this exchange serves the given alias and credentials."""
        return self.name == name and self.credentials == credentials

    def add_reference(self) -> None:
        self._references += 1

    def remove_reference(self) -> int:
        """Drop one reference and return the remaining count."""
        self._references -= 1
        return self._references

    @property
    def references(self) -> int:
        return self._references

    async def init(self, symbol: str) -> None:
        """Prepare the exchange for trading `symbol`."""
        pass

    async def terminate(self) -> None:
        """Release any resources held by the exchange."""
        pass

    async def execute_command(
        self,
        symbol: str,
        name: str,
        params: Sequence[Param],
        session: str,
    ) -> Any:
        """
        Execute a single command.

        Args:
            symbol: Symbol the block targets
            name: Command name (case-insensitive)
            params: Parsed command arguments
            session: Correlation id of the running sequence

        Returns:
            Whatever the command handler returns

        Raises:
            UnknownCommandError: If no handler is registered for `name`
        """
        handler = self._commands.get(name.lower())
        if handler is None:
            raise UnknownCommandError(
                f"Unknown command '{name}' on {self.name}",
                {"exchange": self.name, "command": name},
            )

        logger.debug(f"[{session}] {self.name} {symbol} {name} {list(params)}")
        return await handler(symbol, params, session)

    # === Command registry ===

    def register_command(self, name: str, handler: CommandHandler) -> None:
        self._commands[name.lower()] = handler

    @property
    def commands(self) -> List[str]:
        return sorted(self._commands)

    # === Generic commands ===

    async def wait(self, symbol: str, params: Sequence[Param], session: str) -> float:
        """Pause the sequence, e.g. `wait(10s)`."""
        args = bind_params(params, {"duration": "1s"})
        seconds = parse_duration(args["duration"])
        logger.info(f"Waiting for {seconds:g}s")
        await asyncio.sleep(seconds)
        return seconds

    async def notify(self, symbol: str, params: Sequence[Param], session: str) -> str:
        """Send a notification, e.g. `notify("Entered long")`."""
        args = bind_params(params, {"msg": ""})
        text = args["msg"].strip()
        if not text:
            raise InvalidArgumentError("notify requires a message")

        if self.notifier is None:
            logger.warning(f"No notifier attached, dropping: {text}")
        else:
            await self.notifier.send_async(text)
        return text

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(name={self.name!r}, "
            f"state={self.state.value}, references={self._references})"
        )
