"""Point-in-time view of who is subscribed to what."""

from __future__ import annotations

import logging
from collections import defaultdict

from .interface import SubscriptionStore
from .models import Snapshot

logger = logging.getLogger(__name__)


class SubscriptionSnapshot:
    """Reads all subscriptions once and derives the per-cycle ticker views."""

    def __init__(self, store: SubscriptionStore) -> None:
        self._store = store

    async def take(self) -> Snapshot:
        """Single read of the store. Later changes show up in the next snapshot."""
        rows = await self._store.list_all_subscriptions()

        by_user: dict[str, set[str]] = defaultdict(set)
        for row in rows:
            ticker = row.ticker.upper().strip()
            if ticker:
                by_user[str(row.user_id)].add(ticker)

        tickers = frozenset().union(*by_user.values()) if by_user else frozenset()
        logger.debug("Snapshot: %d users, %d distinct tickers", len(by_user), len(tickers))
        return Snapshot(
            tickers=tickers,
            by_user={user: frozenset(ts) for user, ts in by_user.items()},
        )
