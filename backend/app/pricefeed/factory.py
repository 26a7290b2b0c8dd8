"""Factories that wire the price feed from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .broadcaster import Broadcaster
from .catalog import CatalogRefresher
from .config import Settings
from .converter import PriceConverter
from .interface import (
    CatalogStore,
    ConnectionRegistry,
    CurrencyProvider,
    QuoteProvider,
    SubscriptionStore,
    SymbolLister,
)
from .quotes import QuoteFetcher
from .rate_cache import RateCache
from .scheduler import PriceScheduler
from .snapshot import SubscriptionSnapshot

logger = logging.getLogger(__name__)


def create_quote_provider(settings: Settings) -> QuoteProvider:
    """Pick the quote provider based on settings.

    - FINNHUB_API_KEY set and non-empty → FinnhubClient (real quotes)
    - Otherwise → SimulatedQuoteProvider (GBM walk)

    Both also implement SymbolLister, so either can drive the catalog refresh.
    """
    if settings.finnhub_api_key:
        from .finnhub_client import FinnhubClient

        logger.info("Quote provider: Finnhub (real data)")
        return FinnhubClient(
            api_key=settings.finnhub_api_key,
            base_url=settings.finnhub_base_url,
            timeout=settings.quote_timeout,
        )

    from .simulator import SimulatedQuoteProvider

    logger.info("Quote provider: GBM simulator")
    return SimulatedQuoteProvider(step_seconds=settings.broadcast_interval)


def create_currency_provider(settings: Settings) -> CurrencyProvider:
    """CurrencyFreaks if CURRENCY_FREAKS_API_KEY is set, else an always-failing stand-in."""
    if settings.currency_api_key:
        from .currency_client import CurrencyFreaksClient

        logger.info("Currency provider: CurrencyFreaks (USD -> %s)", settings.target_currency)
        return CurrencyFreaksClient(
            api_key=settings.currency_api_key,
            target_symbol=settings.target_currency,
            base_url=settings.currency_base_url,
            timeout=settings.currency_timeout,
        )

    from .currency_client import UnconfiguredCurrencyProvider

    logger.warning(
        "CURRENCY_FREAKS_API_KEY not set; prices use the default rate %.2f",
        settings.default_exchange_rate,
    )
    return UnconfiguredCurrencyProvider()


@dataclass
class PriceFeed:
    """The assembled pipeline plus the providers it owns."""

    scheduler: PriceScheduler
    rate_cache: RateCache
    quote_provider: QuoteProvider
    currency_provider: CurrencyProvider

    async def aclose(self) -> None:
        await self.scheduler.stop()
        await self.quote_provider.aclose()
        await self.currency_provider.aclose()


def create_price_feed(
    settings: Settings,
    subscriptions: SubscriptionStore,
    registry: ConnectionRegistry,
    catalog_store: CatalogStore | None = None,
    quote_provider: QuoteProvider | None = None,
    currency_provider: CurrencyProvider | None = None,
) -> PriceFeed:
    """Build an unstarted PriceFeed. Caller must await feed.scheduler.start()."""
    quotes = quote_provider or create_quote_provider(settings)
    currency = currency_provider or create_currency_provider(settings)

    rate_cache = RateCache(
        currency,
        validity_seconds=settings.currency_cache_seconds,
        default_rate=settings.default_exchange_rate,
        fetch_timeout=settings.currency_timeout,
    )
    fetcher = QuoteFetcher(
        quotes,
        max_concurrency=settings.max_concurrent_quotes,
        timeout=settings.quote_timeout,
    )

    catalog = None
    if catalog_store is not None:
        if isinstance(quotes, SymbolLister):
            catalog = CatalogRefresher(quotes, fetcher, catalog_store)
        else:
            logger.warning("Quote provider cannot list symbols; catalog refresh disabled")

    scheduler = PriceScheduler(
        snapshot=SubscriptionSnapshot(subscriptions),
        fetcher=fetcher,
        converter=PriceConverter(rate_cache),
        broadcaster=Broadcaster(registry),
        catalog=catalog,
        interval=settings.broadcast_interval,
        bootstrap_delay=settings.bootstrap_delay,
    )
    return PriceFeed(
        scheduler=scheduler,
        rate_cache=rate_cache,
        quote_provider=quotes,
        currency_provider=currency,
    )
