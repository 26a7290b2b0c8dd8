"""Price broadcast subsystem.

Public API:
    Settings, get_settings   - Environment-driven configuration
    RateCache                - Cached, fallback-aware exchange rate
    QuoteFetcher             - Concurrent per-ticker price fetch
    SubscriptionSnapshot     - Point-in-time subscription read
    PriceConverter           - USD -> display currency conversion
    Broadcaster              - Per-user fan-out to live connections
    PriceScheduler           - Broadcast and catalog-refresh timers
    create_price_feed        - Factory that wires all of the above
    create_auth_router       - FastAPI router factory for register and login
    create_subscription_router - FastAPI router factory for subscription CRUD
    create_stock_router      - FastAPI router factory for catalog search and refresh
    create_stream_router     - FastAPI router factory for the SSE endpoint
"""

from .auth import create_auth_router
from .broadcaster import Broadcaster
from .config import Settings, get_settings
from .converter import PriceConverter
from .factory import PriceFeed, create_price_feed
from .quotes import QuoteFetcher
from .rate_cache import RateCache
from .scheduler import PriceScheduler
from .snapshot import SubscriptionSnapshot
from .stocks import create_stock_router
from .stream import create_stream_router
from .subscriptions import create_subscription_router

__all__ = [
    "Settings",
    "get_settings",
    "RateCache",
    "QuoteFetcher",
    "SubscriptionSnapshot",
    "PriceConverter",
    "Broadcaster",
    "PriceScheduler",
    "PriceFeed",
    "create_price_feed",
    "create_auth_router",
    "create_subscription_router",
    "create_stock_router",
    "create_stream_router",
]
