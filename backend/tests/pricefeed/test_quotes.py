"""Tests for QuoteFetcher."""

import asyncio
import time

import pytest

from app.pricefeed.errors import MalformedResponseError
from app.pricefeed.quotes import QuoteFetcher


@pytest.mark.asyncio
class TestQuoteFetcher:
    """Unit tests for concurrent per-ticker fetching."""

    async def test_returns_positive_prices(self, make_quotes):
        """Test the happy path."""
        fetcher = QuoteFetcher(make_quotes({"AAPL": 190.5, "MSFT": 420.0}))
        assert await fetcher.fetch_prices({"AAPL", "MSFT"}) == {"AAPL": 190.5, "MSFT": 420.0}

    async def test_zero_and_negative_prices_are_absent(self, make_quotes):
        """Test that c == 0 (unknown ticker) and negatives are dropped."""
        fetcher = QuoteFetcher(make_quotes({"AAPL": 190.5, "ZZZZ": 0.0, "NEG": -3.0}))
        prices = await fetcher.fetch_prices({"AAPL", "ZZZZ", "NEG"})
        assert prices == {"AAPL": 190.5}
        assert all(p > 0 for p in prices.values())

    async def test_errors_are_isolated(self, make_quotes):
        """Test that 3 failing tickers out of 10 leave the other 7 intact."""
        good = {f"T{i}": 10.0 + i for i in range(7)}
        bad = {
            "BAD1": ConnectionError("reset"),
            "BAD2": MalformedResponseError("no c"),
            "BAD3": ValueError("boom"),
        }
        fetcher = QuoteFetcher(make_quotes({**good, **bad}))

        prices = await fetcher.fetch_prices(set(good) | set(bad))

        assert prices == good

    async def test_timeout_only_drops_slow_ticker(self, make_quotes):
        """Test that a hanging ticker times out without delaying the rest."""
        provider = make_quotes({"FAST": 1.0, "SLOW": 2.0}, delays={"SLOW": 5.0})
        fetcher = QuoteFetcher(provider, timeout=0.1)

        start = time.monotonic()
        prices = await fetcher.fetch_prices({"FAST", "SLOW"})

        assert prices == {"FAST": 1.0}
        assert time.monotonic() - start < 1.0

    async def test_requests_run_concurrently(self, make_quotes):
        """Test that tickers are fetched in parallel, not one after another."""
        tickers = {f"T{i}" for i in range(5)}
        provider = make_quotes({t: 1.0 for t in tickers}, delays={t: 0.1 for t in tickers})
        fetcher = QuoteFetcher(provider, max_concurrency=10)

        start = time.monotonic()
        await fetcher.fetch_prices(tickers)

        assert time.monotonic() - start < 0.4
        assert provider.max_in_flight == 5

    async def test_concurrency_is_bounded(self, make_quotes):
        """Test that no more than max_concurrency requests are in flight."""
        tickers = {f"T{i}" for i in range(12)}
        provider = make_quotes({t: 1.0 for t in tickers}, delays={t: 0.02 for t in tickers})
        fetcher = QuoteFetcher(provider, max_concurrency=3)

        prices = await fetcher.fetch_prices(tickers)

        assert len(prices) == 12
        assert provider.max_in_flight == 3

    async def test_one_request_per_ticker(self, make_quotes):
        """Test that duplicate tickers are requested once and never retried."""
        provider = make_quotes({"AAPL": ConnectionError("down")})
        fetcher = QuoteFetcher(provider)

        await fetcher.fetch_prices(["AAPL", "AAPL"])

        assert provider.requested == ["AAPL"]

    async def test_non_numeric_price_is_absent(self, make_quotes):
        """Test that a provider returning junk does not leak into the result."""
        fetcher = QuoteFetcher(make_quotes({"AAPL": "n/a", "MSFT": None}))
        assert await fetcher.fetch_prices({"AAPL", "MSFT"}) == {}

    async def test_empty_input_makes_no_requests(self, make_quotes):
        """Test that no tickers means no upstream calls."""
        provider = make_quotes({})
        assert await QuoteFetcher(provider).fetch_prices(set()) == {}
        assert provider.requested == []

    async def test_cancellation_propagates(self, make_quotes):
        """Test that cancelling the fetch is not mistaken for a ticker failure."""
        provider = make_quotes({"AAPL": 1.0}, delays={"AAPL": 5.0})
        task = asyncio.create_task(QuoteFetcher(provider).fetch_prices({"AAPL"}))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


class TestQuoteFetcherConfig:
    def test_rejects_zero_concurrency(self, make_quotes):
        """Test that a zero concurrency bound is refused."""
        with pytest.raises(ValueError):
            QuoteFetcher(make_quotes({}), max_concurrency=0)
