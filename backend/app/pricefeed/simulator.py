"""GBM-based quote provider for running without market data credentials."""

from __future__ import annotations

import logging
import math

import numpy as np

from .interface import QuoteProvider, SymbolLister

logger = logging.getLogger(__name__)

# Realistic USD starting prices for common subscriptions
SEED_PRICES: dict[str, float] = {
    "AAPL": 190.00,
    "GOOGL": 175.00,
    "MSFT": 420.00,
    "AMZN": 185.00,
    "TSLA": 250.00,
    "NVDA": 800.00,
    "META": 500.00,
    "JPM": 195.00,
    "V": 280.00,
    "NFLX": 600.00,
}

# Per-ticker annualized volatility; anything else gets DEFAULT_SIGMA
TICKER_SIGMA: dict[str, float] = {
    "TSLA": 0.50,
    "NVDA": 0.40,
    "NFLX": 0.35,
    "JPM": 0.18,
    "V": 0.17,
}
DEFAULT_SIGMA = 0.25
DEFAULT_MU = 0.05

COMPANY_NAMES: dict[str, str] = {
    "AAPL": "Apple Inc",
    "GOOGL": "Alphabet Inc Class A",
    "MSFT": "Microsoft Corp",
    "AMZN": "Amazon.com Inc",
    "TSLA": "Tesla Inc",
    "NVDA": "NVIDIA Corp",
    "META": "Meta Platforms Inc",
    "JPM": "JPMorgan Chase & Co",
    "V": "Visa Inc",
    "NFLX": "Netflix Inc",
}


class SimulatedQuoteProvider(QuoteProvider, SymbolLister):
    """Geometric Brownian Motion walk per ticker, advanced on every request.

    Math:
        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    ``dt`` is one broadcast interval as a fraction of a trading year, so
    each cycle moves prices by a realistic few cents. Prices stay positive
    because exp() is.
    """

    TRADING_SECONDS_PER_YEAR = 252 * 6.5 * 3600

    def __init__(self, step_seconds: float = 30.0, seed: int | None = None) -> None:
        self._dt = step_seconds / self.TRADING_SECONDS_PER_YEAR
        self._rng = np.random.default_rng(seed)
        self._prices: dict[str, float] = {}

    async def get_price(self, symbol: str) -> float:
        symbol = symbol.upper()
        if symbol not in self._prices:
            self._prices[symbol] = SEED_PRICES.get(symbol) or float(self._rng.uniform(50.0, 300.0))
            logger.debug("Simulator: seeded %s at %.2f", symbol, self._prices[symbol])
            return round(self._prices[symbol], 2)

        sigma = TICKER_SIGMA.get(symbol, DEFAULT_SIGMA)
        drift = (DEFAULT_MU - 0.5 * sigma**2) * self._dt
        diffusion = sigma * math.sqrt(self._dt) * self._rng.standard_normal()
        self._prices[symbol] *= math.exp(drift + diffusion)
        return round(self._prices[symbol], 2)

    async def list_symbols(self, exchange: str) -> list[dict]:
        """The seeded tickers, shaped like provider symbol records."""
        return [
            {"symbol": ticker, "description": COMPANY_NAMES[ticker], "type": "Common Stock"}
            for ticker in SEED_PRICES
        ]

    def peek(self, symbol: str) -> float | None:
        """Current simulated price without advancing it."""
        return self._prices.get(symbol.upper())
