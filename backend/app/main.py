"""FastAPI entrypoint: wires the price feed and exposes the REST and streaming API.

Run with:
    uvicorn app.main:create_app --factory --app-dir backend
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI

from app.pricefeed import (
    Settings,
    create_auth_router,
    create_price_feed,
    create_stock_router,
    create_stream_router,
    create_subscription_router,
    get_settings,
)
from app.pricefeed.interface import QuoteProvider
from app.pricefeed.registry import InMemoryConnectionRegistry
from app.pricefeed.stores import InMemoryCatalogStore, InMemoryIdentityStore, InMemorySubscriptionStore


def create_app(
    settings: Settings | None = None,
    subscriptions: InMemorySubscriptionStore | None = None,
    identity: InMemoryIdentityStore | None = None,
    quote_provider: QuoteProvider | None = None,
) -> FastAPI:
    """Build the app. Collaborators default to in-memory implementations."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    registry = InMemoryConnectionRegistry()
    identity = identity or InMemoryIdentityStore()
    subscriptions = subscriptions or InMemorySubscriptionStore()
    catalog = InMemoryCatalogStore()
    feed = create_price_feed(
        settings,
        subscriptions=subscriptions,
        registry=registry,
        catalog_store=catalog,
        quote_provider=quote_provider,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await feed.scheduler.start()
        try:
            yield
        finally:
            await feed.aclose()

    app = FastAPI(title="Stock Price Broadcast", version="0.1.0", lifespan=lifespan)
    app.include_router(create_auth_router(identity))
    app.include_router(create_subscription_router(subscriptions, identity))
    app.include_router(create_stock_router(catalog, feed.scheduler, identity))
    app.include_router(create_stream_router(registry, identity))

    app.state.settings = settings
    app.state.feed = feed
    app.state.registry = registry
    app.state.subscriptions = subscriptions
    app.state.catalog = catalog
    app.state.identity = identity

    @app.get("/health")
    async def health() -> dict:
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "exchange_rate": feed.rate_cache.info(),
            "scheduler": feed.scheduler.stats(),
            "connections": registry.connection_count(),
        }

    return app
