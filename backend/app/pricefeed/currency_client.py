"""CurrencyFreaks client for the USD -> display currency rate."""

from __future__ import annotations

import httpx

from .errors import MalformedResponseError, ProviderError
from .interface import CurrencyProvider


class CurrencyFreaksClient(CurrencyProvider):
    """Fetches the latest USD-based rate for one target symbol.

    GET /rates/latest?apikey=...&symbols=INR  ->  {"base": "USD", "rates": {"INR": "83.12"}}

    CurrencyFreaks reports rates as strings; both strings and numbers are
    accepted. Validation of the value itself (positive, finite) is left to
    RateCache.
    """

    def __init__(
        self,
        api_key: str,
        target_symbol: str = "INR",
        base_url: str = "https://api.currencyfreaks.com/v2.0",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._symbol = target_symbol.upper()
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def fetch_rate(self) -> float:
        response = await self._client.get(
            f"{self._base_url}/rates/latest",
            params={"apikey": self._api_key, "symbols": self._symbol},
        )
        response.raise_for_status()
        try:
            raw = response.json()["rates"][self._symbol]
            return float(raw)
        except (ValueError, KeyError, TypeError) as e:
            raise MalformedResponseError(f"no usable {self._symbol} rate in response") from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class UnconfiguredCurrencyProvider(CurrencyProvider):
    """Stand-in used when no currency API key is set. Every fetch fails."""

    async def fetch_rate(self) -> float:
        raise ProviderError("currency provider is not configured")
