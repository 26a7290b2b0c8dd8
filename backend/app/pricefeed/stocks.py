"""REST endpoints for the searchable ticker catalog."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query

from .auth import bearer_user
from .interface import IdentityStore
from .scheduler import PriceScheduler
from .stores import InMemoryCatalogStore


def create_stock_router(
    catalog: InMemoryCatalogStore,
    scheduler: PriceScheduler,
    identity: IdentityStore,
) -> APIRouter:
    """Create the catalog router. Every route needs a bearer token."""
    router = APIRouter(
        prefix="/api/stocks",
        tags=["stocks"],
        dependencies=[Depends(bearer_user(identity))],
    )

    @router.get("/search")
    async def search_stocks(query: str = "", limit: int = Query(20, ge=1, le=100)) -> dict:
        if not query.strip():
            raise HTTPException(status_code=400, detail="Search query is required")
        stocks = await catalog.search(query, limit=limit)
        return {"stocks": [asdict(e) for e in stocks], "count": len(stocks)}

    @router.get("")
    async def list_stocks() -> dict:
        stocks = await catalog.all()
        return {"stocks": [asdict(e) for e in stocks], "count": len(stocks)}

    @router.post("/refresh")
    async def refresh_stocks() -> dict:
        """Run the catalog refresh now instead of waiting for the daily timer."""
        if not scheduler.catalog_enabled:
            raise HTTPException(status_code=503, detail="Catalog refresh is not available")
        stored = await scheduler.refresh_catalog()
        if stored is None:
            raise HTTPException(status_code=503, detail="Catalog refresh did not complete")
        return {"message": "Stock list refreshed successfully", "stored": stored}

    return router
