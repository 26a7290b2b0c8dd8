"""Environment-driven settings for the price feed."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass
from datetime import time
from functools import lru_cache

# The catalog refresh is not configurable: it runs once a day at 02:00 server time.
CATALOG_REFRESH_AT = time(2, 0)


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, default).strip() or default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be a finite positive number, got {raw!r}")
    return value


@dataclass(frozen=True)
class Settings:
    broadcast_interval: float = 30.0
    currency_cache_hours: float = 1.0
    finnhub_api_key: str = ""
    finnhub_base_url: str = "https://finnhub.io/api/v1"
    currency_api_key: str = ""
    currency_base_url: str = "https://api.currencyfreaks.com/v2.0"
    target_currency: str = "INR"
    default_exchange_rate: float = 83.0
    quote_timeout: float = 10.0
    currency_timeout: float = 10.0
    max_concurrent_quotes: int = 10
    bootstrap_delay: float = 2.0
    log_level: str = "INFO"

    @property
    def currency_cache_seconds(self) -> float:
        return self.currency_cache_hours * 3600

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from the process environment, falling back to defaults.

        Raises ValueError for a numeric variable that is set but not a
        positive number.
        """
        return cls(
            broadcast_interval=_env_float("STOCK_UPDATE_INTERVAL", cls.broadcast_interval),
            currency_cache_hours=_env_float("CURRENCY_CACHE_HOURS", cls.currency_cache_hours),
            finnhub_api_key=os.environ.get("FINNHUB_API_KEY", "").strip(),
            finnhub_base_url=_env_str("FINNHUB_BASE_URL", cls.finnhub_base_url).rstrip("/"),
            currency_api_key=os.environ.get("CURRENCY_FREAKS_API_KEY", "").strip(),
            currency_base_url=_env_str("CURRENCY_FREAKS_BASE_URL", cls.currency_base_url).rstrip("/"),
            target_currency=_env_str("TARGET_CURRENCY", cls.target_currency).upper(),
            default_exchange_rate=_env_float("DEFAULT_EXCHANGE_RATE", cls.default_exchange_rate),
            quote_timeout=_env_float("QUOTE_TIMEOUT", cls.quote_timeout),
            currency_timeout=_env_float("CURRENCY_TIMEOUT", cls.currency_timeout),
            max_concurrent_quotes=int(_env_float("MAX_CONCURRENT_QUOTES", cls.max_concurrent_quotes)),
            bootstrap_delay=_env_float("BOOTSTRAP_DELAY", cls.bootstrap_delay),
            log_level=_env_str("LOG_LEVEL", cls.log_level).upper(),
        )


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
