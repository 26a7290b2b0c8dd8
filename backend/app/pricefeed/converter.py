"""Provider-currency to display-currency price conversion."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from .rate_cache import RateCache

_CENT = Decimal("0.01")


def convert_price(price: float, rate: float) -> float:
    """price * rate rounded half-up to 2 decimal places.

    Both operands go through their shortest repr so that 100.0 * 83.0 is
    exactly 8300.00 and not 8299.999....
    """
    product = Decimal(repr(price)) * Decimal(repr(rate))
    return float(product.quantize(_CENT, rounding=ROUND_HALF_UP))


class PriceConverter:
    """Applies one cached exchange rate to a batch of prices."""

    def __init__(self, rate_cache: RateCache) -> None:
        self._rates = rate_cache

    async def convert(self, prices: dict[str, float]) -> dict[str, float]:
        if not prices:
            return {}
        # One rate for the whole batch.
        rate = await self._rates.get_rate()
        return {ticker: convert_price(price, rate) for ticker, price in prices.items()}
