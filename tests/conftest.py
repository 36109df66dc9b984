"""Shared fixtures: a scriptable exchange and a catalog that builds it."""

import asyncio
import time
from typing import List
from unittest.mock import Mock

import pytest

from config.settings import ExchangeCredentials
from tradehook.errors import CommandError, ExchangeInitError
from tradehook.exchanges import Exchange, ExchangeCatalog, ExchangeCatalogEntry


class RecordingExchange(Exchange):
    """
    Exchange double that records everything done to it.

    Commands:
        do(...)     records the call
        fail(...)   raises CommandError
        slow(...)   sleeps briefly, then records the call

    Set `fail_init: true` in the credentials options to make init fail.
    """

    def __init__(self, credentials: ExchangeCredentials):
        super().__init__(credentials)
        self.init_calls: List[str] = []
        self.terminate_calls = 0
        self.executed: List[tuple] = []

        self.register_command("do", self._do)
        self.register_command("fail", self._fail)
        self.register_command("slow", self._slow)

    async def init(self, symbol: str) -> None:
        self.init_calls.append(symbol)
        await asyncio.sleep(0)
        if self.credentials.options.get("fail_init"):
            raise ExchangeInitError(f"cannot start {self.name}")

    async def terminate(self) -> None:
        self.terminate_calls += 1

    async def _do(self, symbol, params, session):
        self.executed.append(("do", symbol, tuple(params), session))
        return len(self.executed)

    async def _fail(self, symbol, params, session):
        raise CommandError("boom")

    async def _slow(self, symbol, params, session):
        await asyncio.sleep(0.01)
        self.executed.append(("slow", symbol, tuple(params), session))


async def max_loop_stall(coro, interval=0.01):
    """Run `coro` next to a ticker and return the longest gap between ticks."""
    gaps = []
    done = False

    async def ticker():
        last = time.monotonic()
        while not done:
            await asyncio.sleep(interval)
            now = time.monotonic()
            gaps.append(now - last)
            last = now

    ticker_task = asyncio.create_task(ticker())
    try:
        await coro
    finally:
        done = True
        await ticker_task
    return max(gaps)


def slow_session(delay):
    """A requests session double whose POST blocks for `delay` seconds."""
    session = Mock()

    def post(*args, **kwargs):
        time.sleep(delay)
        return Mock()

    session.post.side_effect = post
    return session


@pytest.fixture
def created():
    """Every RecordingExchange built by the catalog fixture."""
    return []


@pytest.fixture
def catalog(created):
    """Catalog with a single 'recording' exchange type."""

    def factory(credentials):
        exchange = RecordingExchange(credentials)
        created.append(exchange)
        return exchange

    return ExchangeCatalog([
        ExchangeCatalogEntry("recording", "Recording test exchange", factory),
    ])


@pytest.fixture
def credentials():
    return ExchangeCredentials(name="binance", exchange="recording", key="k1")


@pytest.fixture
def credentials_list(credentials):
    return [
        credentials,
        ExchangeCredentials(name="kraken", exchange="recording", key="k2"),
        ExchangeCredentials(name="broken", exchange="recording", options={"fail_init": True}),
        ExchangeCredentials(name="mystery", exchange="unknown"),
    ]
