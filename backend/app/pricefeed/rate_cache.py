"""Time-bounded, fallback-aware exchange rate cache."""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections.abc import Callable

from .errors import ProviderError
from .interface import CurrencyProvider
from .models import ExchangeRate

logger = logging.getLogger(__name__)

DEFAULT_RATE = 83.0


class RateCache:
    """Holds the single current exchange rate.

    Readers: PriceConverter, once per broadcast cycle.
    Writer: this class, after a successful upstream fetch.

    The check and the start of a fetch happen under one asyncio.Lock. A miss
    starts a single fetch task that every caller arriving before it finishes
    awaits, so no caller waits longer than one upstream call and a failure is
    shared rather than retried by each waiter in turn.
    """

    def __init__(
        self,
        provider: CurrencyProvider,
        validity_seconds: float = 3600.0,
        default_rate: float = DEFAULT_RATE,
        fetch_timeout: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._provider = provider
        self._validity = validity_seconds
        self._default = default_rate
        self._timeout = fetch_timeout
        self._clock = clock
        self._current: ExchangeRate | None = None
        self._lock = asyncio.Lock()
        self._inflight: asyncio.Task | None = None

    async def get_rate(self) -> float:
        """Return a usable positive rate. Never raises."""
        async with self._lock:
            current = self._current
            if current is not None and self._is_valid(current):
                logger.debug("Using cached exchange rate %.4f", current.rate)
                return current.rate
            if self._inflight is None:
                self._inflight = asyncio.create_task(self._refresh(), name="exchange-rate-fetch")
            inflight = self._inflight
        # A cancelled caller must not cancel the fetch other callers share
        return await asyncio.shield(inflight)

    async def _refresh(self) -> float:
        try:
            try:
                rate = await asyncio.wait_for(self._provider.fetch_rate(), timeout=self._timeout)
                rate = float(rate)
                if not math.isfinite(rate) or rate <= 0:
                    raise ProviderError(f"invalid exchange rate {rate!r}")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                return self._fallback(e)

            async with self._lock:
                self._current = ExchangeRate(rate=rate, fetched_at=self._clock())
            logger.info("Fetched fresh exchange rate %.4f", rate)
            return rate
        finally:
            self._inflight = None

    def _fallback(self, error: Exception) -> float:
        current = self._current
        if current is not None:
            logger.warning(
                "Exchange rate fetch failed (%s); using last known rate %.4f",
                error,
                current.rate,
            )
            return current.rate
        logger.warning(
            "Exchange rate fetch failed (%s); using default rate %.4f",
            error,
            self._default,
        )
        return self._default

    def info(self) -> dict:
        """Current rate, its age in seconds, and whether it is still valid."""
        current = self._current
        if current is None:
            return {"rate": None, "age_seconds": None, "is_valid": False}
        return {
            "rate": current.rate,
            "age_seconds": round(current.age(self._clock()), 3),
            "is_valid": self._is_valid(current),
        }

    @property
    def current(self) -> ExchangeRate | None:
        return self._current

    def _is_valid(self, current: ExchangeRate) -> bool:
        return current.age(self._clock()) < self._validity
