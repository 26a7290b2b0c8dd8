"""Per-user fan-out of converted prices."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Set
from datetime import datetime, timezone

from .interface import ConnectionRegistry
from .models import BroadcastMessage

logger = logging.getLogger(__name__)


def build_messages(
    by_user: Mapping[str, Set[str]],
    converted: Mapping[str, float],
    timestamp: datetime,
) -> list[BroadcastMessage]:
    """One message per user holding exactly their priced tickers.

    Users with no priced ticker get no message.
    """
    messages = []
    for user_id, tickers in by_user.items():
        prices = {t: converted[t] for t in sorted(tickers) if t in converted}
        if prices:
            messages.append(BroadcastMessage(user_id=user_id, prices=prices, timestamp=timestamp))
    return messages


class Broadcaster:
    """Delivers each user's price map to that user's connections only."""

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry

    async def broadcast(
        self,
        by_user: Mapping[str, Set[str]],
        converted: Mapping[str, float],
        timestamp: datetime | None = None,
    ) -> int:
        """Send this cycle's messages. Returns how many were delivered.

        Sends run concurrently and a failing send is logged and skipped, so one
        user's broken connection never holds up or cancels another's update.
        """
        ts = timestamp or datetime.now(timezone.utc)
        messages = build_messages(by_user, converted, ts)
        if not messages:
            return 0

        results = await asyncio.gather(*(self._deliver(m) for m in messages))
        delivered = sum(results)
        logger.debug("Broadcast %d/%d user updates", delivered, len(messages))
        return delivered

    async def _deliver(self, message: BroadcastMessage) -> bool:
        try:
            await self._registry.send_to_user(message.user_id, message.to_event())
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Price update delivery to user %s failed: %s", message.user_id, e)
            return False
        return True
