"""Fakes and fixtures for price feed tests."""

import asyncio

import pytest

from app.pricefeed.interface import (
    ConnectionRegistry,
    CurrencyProvider,
    QuoteProvider,
    SubscriptionStore,
)
from app.pricefeed.models import Subscription


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedCurrencyProvider(CurrencyProvider):
    """Returns (or raises) the scripted outcomes in order; repeats the last one."""

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0

    async def fetch_rate(self) -> float:
        self.calls += 1
        outcome = self.outcomes[min(self.calls, len(self.outcomes)) - 1]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class DictQuoteProvider(QuoteProvider):
    """Prices from a dict. Exception values are raised; delays are per ticker."""

    def __init__(self, prices: dict, delays: dict | None = None) -> None:
        self.prices = prices
        self.delays = delays or {}
        self.requested: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_price(self, symbol: str) -> float:
        self.requested.append(symbol)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(symbol, 0))
            value = self.prices.get(symbol, 0.0)
            if isinstance(value, BaseException):
                raise value
            return value
        finally:
            self.in_flight -= 1


class ListSubscriptionStore(SubscriptionStore):
    def __init__(self, pairs: list[tuple[str, str]] | None = None) -> None:
        self.pairs = list(pairs or [])
        self.reads = 0

    async def list_all_subscriptions(self) -> list[Subscription]:
        self.reads += 1
        return [Subscription(user_id=u, ticker=t) for u, t in self.pairs]


class RecordingRegistry(ConnectionRegistry):
    """Records every send; users in ``failing`` raise instead."""

    def __init__(self, failing: set[str] | None = None) -> None:
        self.sent: list[tuple[str, dict]] = []
        self.failing = failing or set()

    async def send_to_user(self, user_id: str, event: dict) -> int:
        if user_id in self.failing:
            raise ConnectionError(f"socket for {user_id} is gone")
        self.sent.append((user_id, event))
        return 1

    def events_for(self, user_id: str) -> list[dict]:
        return [event for uid, event in self.sent if uid == user_id]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def registry():
    return RecordingRegistry()


@pytest.fixture
def make_currency():
    return ScriptedCurrencyProvider


@pytest.fixture
def make_quotes():
    return DictQuoteProvider


@pytest.fixture
def make_store():
    return ListSubscriptionStore
