"""Finnhub REST client for current quotes and exchange symbol lists."""

from __future__ import annotations

from typing import Any

import httpx

from .errors import MalformedResponseError
from .interface import QuoteProvider, SymbolLister


class FinnhubClient(QuoteProvider, SymbolLister):
    """QuoteProvider backed by the Finnhub REST API.

    GET /quote?symbol=AAPL&token=...  ->  {"c": 190.5, "d": ..., "pc": ...}
    GET /stock/symbol?exchange=US&token=...  ->  [{"symbol": ..., "type": ...}, ...]

    Prices are in USD. A ticker Finnhub does not know comes back as c == 0,
    which is passed through; QuoteFetcher treats it as absent.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://finnhub.io/api/v1",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def get_price(self, symbol: str) -> float:
        payload = await self._get("/quote", {"symbol": symbol})
        if not isinstance(payload, dict) or "c" not in payload:
            raise MalformedResponseError(f"quote for {symbol} has no current price")
        return _to_float(payload["c"])

    async def list_symbols(self, exchange: str) -> list[dict]:
        payload = await self._get("/stock/symbol", {"exchange": exchange})
        if not isinstance(payload, list):
            raise MalformedResponseError(f"symbol list for {exchange} is not a list")
        return payload

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get(self, path: str, params: dict[str, str]) -> Any:
        response = await self._client.get(
            f"{self._base_url}{path}",
            params={**params, "token": self._api_key},
        )
        response.raise_for_status()
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"{path} returned non-JSON body") from e


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise MalformedResponseError(f"price {value!r} is not numeric") from None
