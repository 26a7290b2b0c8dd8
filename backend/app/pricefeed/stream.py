"""SSE streaming endpoint for per-user price updates."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncGenerator

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from .interface import IdentityStore
from .registry import InMemoryConnectionRegistry

logger = logging.getLogger(__name__)


def create_stream_router(
    registry: InMemoryConnectionRegistry,
    identity: IdentityStore,
) -> APIRouter:
    """Create the SSE streaming router bound to a registry and identity store."""
    router = APIRouter(prefix="/api/stream", tags=["streaming"])

    @router.get("/prices")
    async def stream_prices(request: Request, token: str = Query(...)) -> StreamingResponse:
        """SSE endpoint for the authenticated user's price updates.

        The client connects with EventSource and receives one event per
        broadcast cycle in which at least one of its tickers was priced:

            data: {"type": "priceUpdate", "data": {"AAPL": 15812.5}, "timestamp": "..."}

        A ticker missing from an event means no new price this cycle.
        """
        user_id = identity.resolve_token(token)
        if user_id is None:
            raise HTTPException(status_code=401, detail="Invalid or expired token")

        return StreamingResponse(
            _generate_events(registry, user_id, request),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",  # Disable nginx buffering if proxied
            },
        )

    return router


async def _generate_events(
    registry: InMemoryConnectionRegistry,
    user_id: str,
    request: Request,
    keepalive: float = 15.0,
) -> AsyncGenerator[str, None]:
    """Yield SSE frames from this connection's queue until the client leaves.

    Sends a comment line every ``keepalive`` seconds of silence so proxies
    keep the connection open between broadcast cycles.
    """
    yield "retry: 1000\n\n"

    queue = registry.connect(user_id)
    try:
        while True:
            if await request.is_disconnected():
                break
            try:
                event = await asyncio.wait_for(queue.get(), timeout=keepalive)
            except asyncio.TimeoutError:
                yield ": keepalive\n\n"
                continue
            yield f"event: {event['type']}\ndata: {json.dumps(event)}\n\n"
    except asyncio.CancelledError:
        logger.info("SSE stream cancelled for user %s", user_id)
    finally:
        registry.disconnect(user_id, queue)
