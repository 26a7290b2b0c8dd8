"""REST endpoints for a user's ticker subscriptions."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from .auth import bearer_user
from .errors import DuplicateSubscriptionError, SubscriptionLimitError
from .interface import IdentityStore
from .schemas import SubscriptionRequest
from .stores import InMemorySubscriptionStore


def create_subscription_router(
    store: InMemorySubscriptionStore,
    identity: IdentityStore,
) -> APIRouter:
    """Create the subscription router. Every route needs a bearer token."""
    router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])
    current_user = bearer_user(identity)

    @router.get("")
    async def list_subscriptions(user_id: str = Depends(current_user)) -> dict:
        tickers = await store.list_for_user(user_id)
        return {"subscriptions": [{"ticker": t} for t in tickers], "count": len(tickers)}

    @router.post("", status_code=201)
    async def add_subscription(
        body: SubscriptionRequest,
        user_id: str = Depends(current_user),
    ) -> dict:
        try:
            subscription = await store.subscribe(user_id, body.ticker)
        except SubscriptionLimitError as e:
            raise HTTPException(
                status_code=400,
                detail=f"Maximum {store.max_per_user} stock subscriptions allowed per user",
            ) from e
        except DuplicateSubscriptionError as e:
            raise HTTPException(status_code=409, detail="Already subscribed to this stock") from e
        except ValueError as e:
            raise HTTPException(status_code=400, detail="Ticker symbol is required") from e
        return {"message": "Subscription added successfully", "ticker": subscription.ticker}

    @router.delete("/{ticker}")
    async def remove_subscription(ticker: str, user_id: str = Depends(current_user)) -> dict:
        removed = await store.unsubscribe(user_id, ticker)
        return {
            "message": "Subscription removed successfully" if removed else "Not subscribed to this stock",
            "ticker": ticker.upper().strip(),
            "removed": removed,
        }

    return router
