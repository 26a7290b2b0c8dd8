"""Abstract interfaces for the collaborators the price feed talks to."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

from .models import CatalogEntry, Credentials, Principal, Subscription


class QuoteProvider(ABC):
    """Upstream source of current prices in the provider's currency (USD)."""

    @abstractmethod
    async def get_price(self, symbol: str) -> float:
        """Return the current price for one symbol.

        Implementations raise on network or HTTP errors and return whatever
        numeric value the upstream reported otherwise; callers decide what a
        non-positive value means.
        """

    async def aclose(self) -> None:
        """Release any network resources. Default is a no-op."""


class CurrencyProvider(ABC):
    """Upstream source of the provider-to-display exchange rate."""

    @abstractmethod
    async def fetch_rate(self) -> float:
        """Fetch a fresh rate. Raises on any failure."""

    async def aclose(self) -> None:
        """Release any network resources. Default is a no-op."""


class SubscriptionStore(ABC):
    """Read side of the subscription store used by the scheduler."""

    @abstractmethod
    async def list_all_subscriptions(self) -> list[Subscription]:
        """Return every (user, ticker) row as a single point-in-time read."""


class CatalogStore(ABC):
    """Storage for the searchable ticker catalog."""

    @abstractmethod
    async def count(self) -> int:
        """Number of tickers currently in the catalog."""

    @abstractmethod
    async def upsert(self, entry: CatalogEntry) -> None:
        """Insert or replace a catalog entry keyed by ticker."""


class ConnectionRegistry(ABC):
    """Delivers events to every live connection of one user."""

    @abstractmethod
    async def send_to_user(self, user_id: str, event: dict) -> int:
        """Send an event to the user's connections. Returns the number reached.

        Must not block on slow consumers.
        """


class IdentityStore(ABC):
    """Authenticates users and resolves opaque session tokens to user ids."""

    @abstractmethod
    def authenticate(self, credentials: Credentials) -> Principal | None:
        """Return the principal for valid credentials, or None."""

    @abstractmethod
    def resolve_token(self, token: str) -> str | None:
        """Return the user id for a valid token, or None."""


class SymbolLister(ABC):
    """Lists the raw symbols an exchange offers, for catalog refresh."""

    @abstractmethod
    async def list_symbols(self, exchange: str) -> Iterable[dict]:
        """Return raw symbol records (``symbol``, ``description``, ``type``...)."""
