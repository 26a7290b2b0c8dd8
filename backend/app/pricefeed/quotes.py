"""Concurrent per-ticker quote fetching with isolated failures."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Iterable

from .interface import QuoteProvider

logger = logging.getLogger(__name__)


class QuoteFetcher:
    """Fetches current prices for a set of tickers, one request per ticker.

    Requests run concurrently, at most ``max_concurrency`` in flight. Each one
    has its own timeout and its own error handling, so a slow or failing
    ticker only removes itself from the result. There are no retries; a
    ticker missing this cycle is asked for again on the next one.
    """

    def __init__(
        self,
        provider: QuoteProvider,
        max_concurrency: int = 10,
        timeout: float = 10.0,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._provider = provider
        self._max_concurrency = max_concurrency
        self._timeout = timeout

    async def fetch_prices(self, tickers: Iterable[str]) -> dict[str, float]:
        """Return {ticker: price} for every ticker that yielded a positive price."""
        unique = sorted(set(tickers))
        if not unique:
            return {}

        sem = asyncio.Semaphore(self._max_concurrency)

        async def run_one(ticker: str) -> tuple[str, float | None]:
            async with sem:
                return ticker, await self._fetch_one(ticker)

        results = await asyncio.gather(*(run_one(t) for t in unique))
        prices = {ticker: price for ticker, price in results if price is not None}
        logger.debug("Fetched %d/%d prices", len(prices), len(unique))
        return prices

    async def _fetch_one(self, ticker: str) -> float | None:
        """One ticker's price, or None if it failed, timed out, or was not positive."""
        try:
            price = await asyncio.wait_for(self._provider.get_price(ticker), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("Quote for %s timed out after %.1fs", ticker, self._timeout)
            return None
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Quote for %s failed: %s", ticker, e)
            return None

        try:
            price = float(price)
        except (TypeError, ValueError):
            logger.warning("Quote for %s is not numeric: %r", ticker, price)
            return None
        if not math.isfinite(price) or price <= 0:
            logger.debug("Quote for %s has no usable price (%r)", ticker, price)
            return None
        return price
