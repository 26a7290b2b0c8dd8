"""Daily refresh of the searchable ticker catalog."""

from __future__ import annotations

import logging
import re

from .interface import CatalogStore, SymbolLister
from .models import CatalogEntry
from .quotes import QuoteFetcher

logger = logging.getLogger(__name__)

# Large caps that always go to the front of the candidate list
PRIORITY_TICKERS: tuple[str, ...] = (
    "AAPL", "MSFT", "GOOGL", "GOOG", "AMZN", "NVDA", "META", "TSLA",
    "NFLX", "AMD", "INTC", "CRM", "UBER", "PYPL", "ADBE", "ORCL",
    "CSCO", "IBM", "QCOM", "TXN", "AVGO", "COST", "SBUX", "PEP",
    "KO", "MCD", "WMT", "HD", "DIS", "V", "MA", "JPM", "BAC",
)

MAX_CANDIDATES = 200
MAX_STORED = 150
VALIDATION_BATCH = 25

_PLAIN_TICKER = re.compile(r"^[A-Z]{1,5}$")


def select_candidates(
    records: list[dict],
    priority: tuple[str, ...] = PRIORITY_TICKERS,
    limit: int = MAX_CANDIDATES,
) -> list[dict]:
    """Filter raw symbol records down to plain common stocks, priority first.

    Kept: type "Common Stock", a non-empty description, and a 1-5 letter
    uppercase symbol (which rules out class shares like BRK.B and warrants).
    Non-priority symbols are ordered by company name.
    """
    stocks = [
        r for r in records
        if r.get("type") == "Common Stock"
        and r.get("description")
        and _PLAIN_TICKER.match(str(r.get("symbol", "")))
    ]
    priority_set = set(priority)
    first = [r for r in stocks if r["symbol"] in priority_set]
    rest = sorted(
        (r for r in stocks if r["symbol"] not in priority_set),
        key=lambda r: r["description"],
    )
    return (first + rest)[:limit]


class CatalogRefresher:
    """Rebuilds the ticker catalog from the provider's symbol list.

    Only symbols that currently have a positive price are stored, so users
    are never offered a ticker that will never appear in an update.
    Candidates are priced in batches no larger than the number of slots
    still free, and validation stops once ``max_stored`` symbols are kept.
    """

    def __init__(
        self,
        lister: SymbolLister,
        fetcher: QuoteFetcher,
        store: CatalogStore,
        exchange: str = "US",
        max_stored: int = MAX_STORED,
        batch_size: int = VALIDATION_BATCH,
    ) -> None:
        self._lister = lister
        self._fetcher = fetcher
        self._store = store
        self._exchange = exchange
        self._max_stored = max_stored
        self._batch_size = batch_size

    async def refresh(self) -> int:
        """Fetch, filter, price-check and store symbols. Returns the number stored.

        Errors listing symbols propagate to the caller; per-symbol price
        failures just leave that symbol out.
        """
        logger.info("Catalog refresh: listing %s symbols", self._exchange)
        records = list(await self._lister.list_symbols(self._exchange))
        candidates = select_candidates(records)
        logger.info("Catalog refresh: validating up to %d of %d symbols", len(candidates), len(records))

        stored = 0
        checked = 0
        while stored < self._max_stored and checked < len(candidates):
            size = min(self._batch_size, self._max_stored - stored)
            batch = candidates[checked:checked + size]
            checked += len(batch)

            prices = await self._fetcher.fetch_prices(r["symbol"] for r in batch)
            for record in batch:
                if record["symbol"] not in prices:
                    continue
                await self._store.upsert(
                    CatalogEntry(ticker=record["symbol"], name=record["description"], exchange=self._exchange)
                )
                stored += 1

        logger.info("Catalog refresh: stored %d symbols after checking %d", stored, checked)
        return stored

    async def is_empty(self) -> bool:
        return await self._store.count() == 0
