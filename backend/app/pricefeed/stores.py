"""In-memory subscription, catalog and identity stores."""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import logging
import secrets

from .errors import DuplicateSubscriptionError, DuplicateUserError, SubscriptionLimitError
from .interface import CatalogStore, IdentityStore, SubscriptionStore
from .models import CatalogEntry, Credentials, Principal, Subscription

logger = logging.getLogger(__name__)

MAX_SUBSCRIPTIONS_PER_USER = 5
MIN_PASSWORD_LENGTH = 6
_HASH_ITERATIONS = 100_000


class InMemorySubscriptionStore(SubscriptionStore):
    """Subscriptions keyed by user, at most five distinct tickers each."""

    def __init__(self, max_per_user: int = MAX_SUBSCRIPTIONS_PER_USER) -> None:
        self._rows: dict[str, list[str]] = {}
        self._max_per_user = max_per_user
        self._lock = asyncio.Lock()

    @property
    def max_per_user(self) -> int:
        return self._max_per_user

    async def subscribe(self, user_id: str, ticker: str) -> Subscription:
        """Add a subscription.

        Raises SubscriptionLimitError if the user is at the limit and
        DuplicateSubscriptionError if it already exists.
        """
        user_id = str(user_id)
        ticker = ticker.upper().strip()
        if not ticker:
            raise ValueError("ticker must not be empty")
        async with self._lock:
            tickers = self._rows.setdefault(user_id, [])
            if len(tickers) >= self._max_per_user:
                raise SubscriptionLimitError(
                    f"user {user_id} already has {self._max_per_user} subscriptions"
                )
            if ticker in tickers:
                raise DuplicateSubscriptionError(f"user {user_id} already subscribed to {ticker}")
            tickers.append(ticker)
        logger.info("User %s subscribed to %s", user_id, ticker)
        return Subscription(user_id=user_id, ticker=ticker)

    async def unsubscribe(self, user_id: str, ticker: str) -> bool:
        """Remove a subscription. Returns False if it did not exist."""
        user_id = str(user_id)
        ticker = ticker.upper().strip()
        async with self._lock:
            tickers = self._rows.get(user_id, [])
            if ticker not in tickers:
                return False
            tickers.remove(ticker)
            if not tickers:
                del self._rows[user_id]
        logger.info("User %s unsubscribed from %s", user_id, ticker)
        return True

    async def list_for_user(self, user_id: str) -> list[str]:
        async with self._lock:
            return list(self._rows.get(str(user_id), []))

    async def list_all_subscriptions(self) -> list[Subscription]:
        async with self._lock:
            return [
                Subscription(user_id=user_id, ticker=ticker)
                for user_id, tickers in self._rows.items()
                for ticker in tickers
            ]


class InMemoryCatalogStore(CatalogStore):
    """Searchable ticker catalog keyed by symbol."""

    def __init__(self) -> None:
        self._entries: dict[str, CatalogEntry] = {}

    async def count(self) -> int:
        return len(self._entries)

    async def upsert(self, entry: CatalogEntry) -> None:
        self._entries[entry.ticker] = entry

    async def all(self) -> list[CatalogEntry]:
        return sorted(self._entries.values(), key=lambda e: e.ticker)

    async def search(self, query: str, limit: int = 20) -> list[CatalogEntry]:
        """Case-insensitive match on ticker prefix or name substring."""
        q = query.strip().lower()
        if not q:
            return []
        matches = [
            e for e in self._entries.values()
            if e.ticker.lower().startswith(q) or q in e.name.lower()
        ]
        # Ticker-prefix hits first, then alphabetical.
        matches.sort(key=lambda e: (not e.ticker.lower().startswith(q), e.ticker))
        return matches[:limit]


def _hash_password(password: str, salt: bytes) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, _HASH_ITERATIONS)


class InMemoryIdentityStore(IdentityStore):
    """Email/password accounts and the session tokens issued to them.

    Passwords are kept only as salted PBKDF2 digests. ``tokens`` seeds
    token -> user id pairs for callers that authenticate elsewhere.
    """

    def __init__(self, tokens: dict[str, str] | None = None) -> None:
        self._tokens = dict(tokens or {})
        self._users: dict[str, tuple[Principal, bytes, bytes]] = {}
        self._next_id = 1

    def register(self, email: str, password: str) -> Principal:
        """Create an account.

        Raises ValueError for a blank email or a short password and
        DuplicateUserError if the email is taken.
        """
        email = email.strip().lower()
        if not email:
            raise ValueError("Email is required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        if email in self._users:
            raise DuplicateUserError("User already exists with this email")

        salt = secrets.token_bytes(16)
        principal = Principal(id=str(self._next_id), email=email)
        self._next_id += 1
        self._users[email] = (principal, salt, _hash_password(password, salt))
        logger.info("Registered user %s", principal.id)
        return principal

    def authenticate(self, credentials: Credentials) -> Principal | None:
        record = self._users.get(credentials.email.strip().lower())
        if record is None:
            return None
        principal, salt, digest = record
        if not hmac.compare_digest(digest, _hash_password(credentials.password, salt)):
            return None
        return principal

    def issue(self, user_id: str) -> str:
        """Mint a new session token for the user."""
        token = secrets.token_urlsafe(32)
        self._tokens[token] = str(user_id)
        return token

    def resolve_token(self, token: str) -> str | None:
        if not token:
            return None
        return self._tokens.get(token)
