"""Data models for the price broadcast pipeline."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass(frozen=True, slots=True)
class Subscription:
    """A single (user, ticker) row from the subscription store."""

    user_id: str
    ticker: str


@dataclass(frozen=True, slots=True)
class Quote:
    """A positive price for one ticker at a point in time."""

    ticker: str
    price: float
    as_of: float = field(default_factory=time.time)  # Unix seconds


@dataclass(frozen=True, slots=True)
class ExchangeRate:
    """One fetched exchange rate. Only RateCache creates these."""

    rate: float
    fetched_at: float  # Monotonic seconds from the cache's clock

    def age(self, now: float) -> float:
        return now - self.fetched_at


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Point-in-time view of all subscriptions used by exactly one cycle."""

    tickers: frozenset[str]
    by_user: dict[str, frozenset[str]]

    @property
    def is_empty(self) -> bool:
        return not self.tickers


@dataclass(frozen=True, slots=True)
class BroadcastMessage:
    """Per-user price update for one cycle."""

    user_id: str
    prices: dict[str, float]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_event(self) -> dict:
        """Serialize to the outbound ``priceUpdate`` event shape."""
        return {
            "type": "priceUpdate",
            "data": dict(self.prices),
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    """A tradable ticker known to the catalog."""

    ticker: str
    name: str
    exchange: str = "US"


@dataclass(frozen=True, slots=True)
class Credentials:
    """Email and password presented at login."""

    email: str
    password: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class Principal:
    """An authenticated user. The price feed only ever needs ``id``."""

    id: str
    email: str
