"""
Paper trading exchange.

Simulates order placement in memory so alert messages can be tried out
without touching a real account. Market orders (no price) fill
immediately and move the position; limit orders rest until cancelled.

Commands:
    buy(amount, price=None, tag="")
    sell(amount, price=None, tag="")
    cancel(tag="")        cancel resting orders (all when no tag)
    balance()             current position for the symbol
"""

import logging
import re
import time
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional, Sequence

from config.settings import ExchangeCredentials
from tradehook.commands.arguments import Param, bind_params
from tradehook.errors import ExchangeInitError, InvalidArgumentError

from .base import Exchange, parse_decimal

logger = logging.getLogger(__name__)

SYMBOL_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9/_.:\-]*$")


class OrderSide(Enum):
    """Order side (buy/sell)."""
    BUY = "buy"
    SELL = "sell"


class OrderStatus(Enum):
    """Simulated order status."""
    OPEN = "open"
    FILLED = "filled"
    CANCELED = "canceled"


@dataclass
class PaperOrder:
    """A simulated order."""
    order_id: str
    symbol: str
    side: OrderSide
    amount: Decimal
    price: Optional[Decimal]
    tag: str
    session: str
    status: OrderStatus = OrderStatus.OPEN
    created_at: float = field(default_factory=time.time)

    @property
    def is_open(self) -> bool:
        return self.status == OrderStatus.OPEN


class PaperExchange(Exchange):
    """In-memory exchange simulator."""

    def __init__(self, credentials: ExchangeCredentials):
        super().__init__(credentials)
        self._orders: List[PaperOrder] = []
        self._positions: Dict[str, Decimal] = {}

        self.register_command("buy", self.buy)
        self.register_command("sell", self.sell)
        self.register_command("cancel", self.cancel)
        self.register_command("balance", self.balance)

    async def init(self, symbol: str) -> None:
        if not SYMBOL_PATTERN.match(symbol):
            raise ExchangeInitError(
                f"Invalid symbol for paper trading: {symbol!r}",
                {"exchange": self.name, "symbol": symbol},
            )
        logger.info(f"Paper exchange '{self.name}' ready for {symbol.upper()}")

    async def terminate(self) -> None:
        open_orders = self.open_orders()
        logger.info(
            f"Paper exchange '{self.name}' closed with "
            f"{len(open_orders)} resting orders"
        )

    # === Commands ===

    async def buy(
        self, symbol: str, params: Sequence[Param], session: str
    ) -> PaperOrder:
        return self._place(OrderSide.BUY, symbol, params, session)

    async def sell(
        self, symbol: str, params: Sequence[Param], session: str
    ) -> PaperOrder:
        return self._place(OrderSide.SELL, symbol, params, session)

    async def cancel(
        self, symbol: str, params: Sequence[Param], session: str
    ) -> int:
        args = bind_params(params, {"tag": ""})
        count = 0
        for order in self.open_orders(symbol):
            if not args["tag"] or order.tag == args["tag"]:
                order.status = OrderStatus.CANCELED
                count += 1

        logger.info(f"Cancelled {count} paper orders on {symbol.upper()}")
        return count

    async def balance(
        self, symbol: str, params: Sequence[Param], session: str
    ) -> Decimal:
        position = self.position(symbol)
        logger.info(f"Paper position {symbol.upper()}: {position}")
        return position

    # === State ===

    def _place(
        self,
        side: OrderSide,
        symbol: str,
        params: Sequence[Param],
        session: str,
    ) -> PaperOrder:
        args = bind_params(params, {"amount": None, "price": None, "tag": ""})

        amount = parse_decimal(args["amount"], "amount")
        if amount <= 0:
            raise InvalidArgumentError(f"Amount must be positive, got {amount}")

        price = None
        if args["price"] is not None:
            price = parse_decimal(args["price"], "price")
            if price <= 0:
                raise InvalidArgumentError(f"Price must be positive, got {price}")

        order = PaperOrder(
            order_id=uuid.uuid4().hex[:12],
            symbol=symbol.upper(),
            side=side,
            amount=amount,
            price=price,
            tag=args["tag"],
            session=session,
        )

        if price is None:
            order.status = OrderStatus.FILLED
            delta = amount if side == OrderSide.BUY else -amount
            self._positions[order.symbol] = self.position(order.symbol) + delta

        self._orders.append(order)
        logger.info(
            f"Paper {side.value} {amount} {order.symbol} "
            f"@ {price if price is not None else 'market'} "
            f"-> {order.status.value} ({order.order_id})"
        )
        return order

    @property
    def orders(self) -> List[PaperOrder]:
        return list(self._orders)

    def open_orders(self, symbol: Optional[str] = None) -> List[PaperOrder]:
        return [
            o for o in self._orders
            if o.is_open and (symbol is None or o.symbol == symbol.upper())
        ]

    def position(self, symbol: str) -> Decimal:
        return self._positions.get(symbol.upper(), Decimal("0"))
