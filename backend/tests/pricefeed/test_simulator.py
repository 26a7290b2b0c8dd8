"""Tests for SimulatedQuoteProvider."""

import pytest

from app.pricefeed.simulator import COMPANY_NAMES, SEED_PRICES, SimulatedQuoteProvider


@pytest.mark.asyncio
class TestSimulatedQuoteProvider:
    """Unit tests for the GBM quote simulator."""

    async def test_first_price_is_seed(self):
        """Test that a known ticker starts at its seed price."""
        sim = SimulatedQuoteProvider(seed=1)
        assert await sim.get_price("AAPL") == SEED_PRICES["AAPL"]

    async def test_lowercase_symbol(self):
        """Test that symbols are case-insensitive."""
        sim = SimulatedQuoteProvider(seed=1)
        await sim.get_price("aapl")
        assert sim.peek("AAPL") == SEED_PRICES["AAPL"]

    async def test_unknown_ticker_gets_random_seed(self):
        """Test that unknown tickers start in a plausible range."""
        price = await SimulatedQuoteProvider(seed=1).get_price("ZZZZ")
        assert 50.0 <= price <= 300.0

    async def test_prices_stay_positive(self):
        """GBM prices can never go non-positive (exp() is always positive)."""
        sim = SimulatedQuoteProvider(step_seconds=3600, seed=7)
        for _ in range(2_000):
            assert await sim.get_price("TSLA") > 0

    async def test_prices_move(self):
        """Test that repeated requests walk away from the seed."""
        sim = SimulatedQuoteProvider(step_seconds=3600, seed=3)
        prices = {await sim.get_price("NVDA") for _ in range(50)}
        assert len(prices) > 1

    async def test_prices_rounded_to_cents(self):
        """Test that returned prices have at most 2 decimals."""
        sim = SimulatedQuoteProvider(seed=5)
        for _ in range(20):
            price = await sim.get_price("MSFT")
            assert round(price, 2) == price

    async def test_same_seed_same_path(self):
        """Test reproducibility with a fixed seed."""
        a, b = SimulatedQuoteProvider(seed=11), SimulatedQuoteProvider(seed=11)
        assert [await a.get_price("V") for _ in range(5)] == [await b.get_price("V") for _ in range(5)]

    async def test_list_symbols_covers_seeds(self):
        """Test that the simulator can drive the catalog refresh."""
        records = await SimulatedQuoteProvider().list_symbols("US")
        assert {r["symbol"] for r in records} == set(SEED_PRICES)
        assert all(r["type"] == "Common Stock" and r["description"] for r in records)
        assert set(COMPANY_NAMES) == set(SEED_PRICES)

    async def test_peek_unknown(self):
        """Test peek() for a ticker never requested."""
        assert SimulatedQuoteProvider().peek("AAPL") is None
