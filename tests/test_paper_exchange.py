"""
Tests for the exchange base class and the paper exchange.

Tests:
- Capability contract (matches, references)
- Command dispatch and generic commands
- Paper order placement, cancellation and positions
- Catalog lookup
"""

from decimal import Decimal
from unittest.mock import AsyncMock, Mock, patch

import pytest

from config.settings import ExchangeCredentials
from tradehook.commands import parse_arguments
from tradehook.errors import (
    ErrorCategory,
    ExchangeInitError,
    InvalidArgumentError,
    UnknownCommandError,
)
from tradehook.exchanges import (
    ExchangeCatalog,
    ExchangeCatalogEntry,
    ExchangeState,
    OrderSide,
    OrderStatus,
    PaperExchange,
    default_catalog,
    parse_decimal,
    parse_duration,
)


@pytest.fixture
def paper():
    return PaperExchange(ExchangeCredentials(name="paper"))


async def run(exchange, name, raw="", symbol="BTCUSD"):
    return await exchange.execute_command(symbol, name, parse_arguments(raw), "session-1")


class TestCapabilities:
    """Tests for the capability contract."""

    def test_initial_state(self, paper):
        assert paper.name == "paper"
        assert paper.references == 1
        assert paper.state == ExchangeState.UNOPENED

    def test_references(self, paper):
        paper.add_reference()
        assert paper.references == 2
        assert paper.remove_reference() == 1
        assert paper.remove_reference() == 0

    def test_matches(self, paper):
        assert paper.matches("paper", ExchangeCredentials(name="paper"))
        assert not paper.matches("paper", ExchangeCredentials(name="paper", key="x"))
        assert not paper.matches("other", ExchangeCredentials(name="paper"))

    def test_commands_registered(self, paper):
        assert paper.commands == ["balance", "buy", "cancel", "notify", "sell", "wait"]

    @pytest.mark.asyncio
    async def test_unknown_command(self, paper):
        with pytest.raises(UnknownCommandError) as exc_info:
            await run(paper, "teleport")
        assert exc_info.value.category == ErrorCategory.ACTION_FAILURE

    @pytest.mark.asyncio
    async def test_command_names_case_insensitive(self, paper):
        order = await run(paper, "BUY", "1")
        assert order.side == OrderSide.BUY


class TestGenericCommands:
    """Tests for wait and notify."""

    @pytest.mark.parametrize("value,seconds", [
        ("5", 5.0),
        ("5s", 5.0),
        ("2m", 120.0),
        ("1.5h", 5400.0),
        (" 10S ", 10.0),
    ])
    def test_parse_duration(self, value, seconds):
        assert parse_duration(value) == seconds

    def test_parse_duration_invalid(self):
        with pytest.raises(InvalidArgumentError):
            parse_duration("soon")

    @pytest.mark.asyncio
    async def test_wait(self, paper):
        with patch("tradehook.exchanges.base.asyncio.sleep", new_callable=AsyncMock) as sleep:
            assert await run(paper, "wait", "duration=2m") == 120.0
            sleep.assert_called_once_with(120.0)

    @pytest.mark.asyncio
    async def test_notify(self, paper):
        paper.notifier = Mock()
        paper.notifier.send_async = AsyncMock()
        assert await run(paper, "notify", '"Filled, at last"') == "Filled, at last"
        paper.notifier.send_async.assert_awaited_once_with("Filled, at last")

    @pytest.mark.asyncio
    async def test_notify_requires_message(self, paper):
        with pytest.raises(InvalidArgumentError):
            await run(paper, "notify")


class TestPaperExchange:
    """Tests for simulated trading."""

    @pytest.mark.asyncio
    async def test_init_valid_symbol(self, paper):
        await paper.init("BTC/USD")

    @pytest.mark.asyncio
    async def test_init_invalid_symbol(self, paper):
        with pytest.raises(ExchangeInitError):
            await paper.init("BTC USD")

    @pytest.mark.asyncio
    async def test_market_buy_fills(self, paper):
        order = await run(paper, "buy", "amount=0.5")

        assert order.status == OrderStatus.FILLED
        assert order.amount == Decimal("0.5")
        assert order.session == "session-1"
        assert paper.position("btcusd") == Decimal("0.5")

    @pytest.mark.asyncio
    async def test_market_sell_reduces_position(self, paper):
        await run(paper, "buy", "2")
        await run(paper, "sell", "0.5")

        assert paper.position("BTCUSD") == Decimal("1.5")
        assert await run(paper, "balance") == Decimal("1.5")

    @pytest.mark.asyncio
    async def test_limit_order_rests(self, paper):
        order = await run(paper, "buy", "1, 50000, tag=grid")

        assert order.status == OrderStatus.OPEN
        assert order.price == Decimal("50000")
        assert paper.open_orders("BTCUSD") == [order]
        assert paper.position("BTCUSD") == Decimal("0")

    @pytest.mark.asyncio
    async def test_cancel_by_tag(self, paper):
        await run(paper, "buy", "1, 100, tag=a")
        await run(paper, "buy", "1, 101, tag=b")

        assert await run(paper, "cancel", "tag=a") == 1
        assert [o.tag for o in paper.open_orders()] == ["b"]

    @pytest.mark.asyncio
    async def test_cancel_all_for_symbol(self, paper):
        await run(paper, "buy", "1, 100")
        await run(paper, "sell", "1, 200", symbol="ETHUSD")

        assert await run(paper, "cancel") == 1
        assert len(paper.open_orders()) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["", "amount=-1", "amount=abc", "1, price=0"])
    async def test_invalid_orders(self, paper, raw):
        with pytest.raises(InvalidArgumentError):
            await run(paper, "buy", raw)
        assert paper.orders == []


class TestCatalog:
    """Tests for the exchange catalog."""

    def test_default_catalog(self):
        catalog = default_catalog()
        assert catalog.names() == ["paper"]
        assert catalog.resolve("paper").factory is PaperExchange
        assert catalog.resolve("binance") is None
        assert "paper" in catalog

    def test_duplicate_rejected(self):
        entry = ExchangeCatalogEntry("x", "X", PaperExchange)
        with pytest.raises(ValueError):
            ExchangeCatalog([entry, entry])

    def test_parse_decimal(self):
        assert parse_decimal(" 1.25 ", "amount") == Decimal("1.25")
        with pytest.raises(InvalidArgumentError):
            parse_decimal("nan", "amount")
