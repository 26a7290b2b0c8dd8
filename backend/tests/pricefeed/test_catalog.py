"""Tests for the catalog refresh."""

import pytest

from app.pricefeed.catalog import CatalogRefresher, select_candidates
from app.pricefeed.quotes import QuoteFetcher
from app.pricefeed.stores import InMemoryCatalogStore


def _rec(symbol: str, description: str = "", type_: str = "Common Stock") -> dict:
    return {"symbol": symbol, "description": description or f"{symbol} Corp", "type": type_}


class _Lister:
    def __init__(self, records):
        self.records = records

    async def list_symbols(self, exchange):
        return self.records


class TestSelectCandidates:
    """Unit tests for symbol filtering and ordering."""

    def test_filters_non_plain_symbols(self):
        """Test that ETFs, class shares, warrants and long symbols are dropped."""
        records = [
            _rec("AAPL"),
            _rec("SPY", type_="ETP"),
            _rec("BRK.B"),
            _rec("ABC-WT"),
            _rec("TOOLONG"),
            _rec("lower"),
            {"symbol": "NODESC", "description": "", "type": "Common Stock"},
        ]
        assert [r["symbol"] for r in select_candidates(records)] == ["AAPL"]

    def test_priority_first_then_by_name(self):
        """Test that priority tickers lead and the rest sort by description."""
        records = [
            _rec("ZZZ", "Zeta Holdings"),
            _rec("AAA", "Alpha Widgets"),
            _rec("MSFT", "Microsoft Corp"),
            _rec("AAPL", "Apple Inc"),
        ]
        symbols = [r["symbol"] for r in select_candidates(records, priority=("AAPL", "MSFT"))]
        assert symbols[:2] == ["MSFT", "AAPL"]
        assert symbols[2:] == ["AAA", "ZZZ"]

    def test_limit(self):
        """Test the candidate cap."""
        records = [_rec(f"A{chr(65 + i)}") for i in range(20)]
        assert len(select_candidates(records, priority=(), limit=5)) == 5


@pytest.mark.asyncio
class TestCatalogRefresher:
    """Unit tests for the full refresh."""

    async def test_stores_only_priced_symbols(self, make_quotes):
        """Test that symbols without a positive price are not stored."""
        lister = _Lister([_rec("AAPL", "Apple Inc"), _rec("DEAD"), _rec("ERR")])
        quotes = make_quotes({"AAPL": 190.0, "DEAD": 0.0, "ERR": ConnectionError("x")})
        store = InMemoryCatalogStore()

        stored = await CatalogRefresher(lister, QuoteFetcher(quotes), store).refresh()

        assert stored == 1
        assert [e.ticker for e in await store.all()] == ["AAPL"]
        assert (await store.all())[0].name == "Apple Inc"

    async def test_respects_max_stored(self, make_quotes):
        """Test that no more than max_stored symbols are written."""
        records = [_rec(s) for s in ("AAA", "BBB", "CCC", "DDD")]
        quotes = make_quotes({r["symbol"]: 1.0 for r in records})
        store = InMemoryCatalogStore()

        stored = await CatalogRefresher(_Lister(records), QuoteFetcher(quotes), store, max_stored=2).refresh()

        assert stored == 2
        assert await store.count() == 2

    async def test_stops_pricing_once_full(self, make_quotes):
        """Test that candidates past the cap are never priced."""
        records = [_rec(s) for s in ("AAA", "BBB", "CCC", "DDD", "EEE")]
        quotes = make_quotes({"AAA": ConnectionError("x"), "BBB": 1.0, "CCC": 1.0, "DDD": 1.0, "EEE": 1.0})
        store = InMemoryCatalogStore()

        stored = await CatalogRefresher(_Lister(records), QuoteFetcher(quotes), store, max_stored=2).refresh()

        assert stored == 2
        assert [e.ticker for e in await store.all()] == ["BBB", "CCC"]
        assert sorted(quotes.requested) == ["AAA", "BBB", "CCC"]

    async def test_batches_never_exceed_batch_size(self, make_quotes):
        """Test that validation proceeds in batches and covers every candidate when needed."""
        records = [_rec(f"A{chr(65 + i)}") for i in range(7)]
        quotes = make_quotes({r["symbol"]: 0.0 for r in records})
        store = InMemoryCatalogStore()
        refresher = CatalogRefresher(_Lister(records), QuoteFetcher(quotes), store, batch_size=3)

        assert await refresher.refresh() == 0
        assert sorted(quotes.requested) == sorted(r["symbol"] for r in records)
        assert quotes.max_in_flight <= 3

    async def test_is_empty(self, make_quotes):
        """Test is_empty() before and after a refresh."""
        store = InMemoryCatalogStore()
        refresher = CatalogRefresher(_Lister([_rec("AAPL")]), QuoteFetcher(make_quotes({"AAPL": 1.0})), store)

        assert await refresher.is_empty()
        await refresher.refresh()
        assert not await refresher.is_empty()

    async def test_listing_failure_propagates(self, make_quotes):
        """Test that a failed symbol listing raises to the scheduler."""

        class Broken:
            async def list_symbols(self, exchange):
                raise ConnectionError("finnhub down")

        refresher = CatalogRefresher(Broken(), QuoteFetcher(make_quotes({})), InMemoryCatalogStore())
        with pytest.raises(ConnectionError):
            await refresher.refresh()
