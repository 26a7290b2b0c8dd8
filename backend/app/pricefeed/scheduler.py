"""Timers that drive the price broadcast and the daily catalog refresh."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone

from .broadcaster import Broadcaster
from .catalog import CatalogRefresher
from .config import CATALOG_REFRESH_AT
from .converter import PriceConverter
from .quotes import QuoteFetcher
from .snapshot import SubscriptionSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CycleResult:
    """What one broadcast cycle did."""

    tickers: int
    priced: int
    messages: int
    finished_at: datetime


def seconds_until(target: time, now: datetime) -> float:
    """Seconds from ``now`` to the next wall-clock ``target``, always > 0."""
    candidate = datetime.combine(now.date(), target, tzinfo=now.tzinfo)
    if candidate <= now:
        candidate += timedelta(days=1)
    return (candidate - now).total_seconds()


class PriceScheduler:
    """Owns the broadcast timer, the catalog timer and the startup bootstrap.

    Lifecycle:
        scheduler = PriceScheduler(snapshot, fetcher, converter, broadcaster, catalog)
        await scheduler.start()
        # ... app runs ...
        await scheduler.stop()

    Broadcast overlap policy is skip-if-busy: when the timer fires while the
    previous cycle is still running, that fire is dropped (and counted)
    rather than starting a second cycle. Cycles therefore never overlap and
    never deliver out of order.
    """

    def __init__(
        self,
        snapshot: SubscriptionSnapshot,
        fetcher: QuoteFetcher,
        converter: PriceConverter,
        broadcaster: Broadcaster,
        catalog: CatalogRefresher | None = None,
        interval: float = 30.0,
        bootstrap_delay: float = 2.0,
        refresh_at: time = CATALOG_REFRESH_AT,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._snapshot = snapshot
        self._fetcher = fetcher
        self._converter = converter
        self._broadcaster = broadcaster
        self._catalog = catalog
        self._interval = interval
        self._bootstrap_delay = bootstrap_delay
        self._refresh_at = refresh_at
        self._now = now

        self._stop = asyncio.Event()
        self._tasks: list[asyncio.Task] = []
        self._cycle_task: asyncio.Task | None = None
        self._catalog_lock = asyncio.Lock()

        self._cycles_run = 0
        self._cycles_skipped = 0
        self._last_result: CycleResult | None = None

    # --- Lifecycle ---

    async def start(self) -> None:
        """Start both timers and the catalog bootstrap. Calling twice is a no-op."""
        if self.running:
            return
        self._stop.clear()
        self._tasks = [asyncio.create_task(self._broadcast_loop(), name="price-broadcast-timer")]
        if self._catalog is not None:
            self._tasks.append(asyncio.create_task(self._catalog_loop(), name="catalog-refresh-timer"))
            self._tasks.append(asyncio.create_task(self._bootstrap(), name="catalog-bootstrap"))
        logger.info(
            "Price scheduler started: broadcast every %.1fs, catalog refresh daily at %s",
            self._interval,
            self._refresh_at.strftime("%H:%M"),
        )

    async def stop(self) -> None:
        """Stop further fires and cancel any in-flight work. Safe to call repeatedly."""
        self._stop.set()
        tasks = list(self._tasks)
        if self._cycle_task is not None:
            tasks.append(self._cycle_task)
        for task in tasks:
            if not task.done():
                task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._tasks = []
        self._cycle_task = None
        logger.info("Price scheduler stopped")

    @property
    def running(self) -> bool:
        return any(not t.done() for t in self._tasks)

    @property
    def busy(self) -> bool:
        return self._cycle_task is not None and not self._cycle_task.done()

    # --- Broadcast ---

    def tick(self) -> bool:
        """Handle one broadcast timer fire. Returns False if it was skipped."""
        if self.busy:
            self._cycles_skipped += 1
            logger.warning("Previous price broadcast still running; skipping this tick")
            return False
        self._cycle_task = asyncio.create_task(self._guarded_cycle(), name="price-broadcast-cycle")
        return True

    async def run_cycle(self) -> CycleResult:
        """One full pipeline pass: snapshot, fetch, convert, broadcast.

        Each stage finishes before the next begins, so no user ever sees a
        price from a half-converted batch.
        """
        snapshot = await self._snapshot.take()
        if snapshot.is_empty:
            logger.debug("No active subscriptions; nothing to broadcast")
            return self._record(CycleResult(0, 0, 0, datetime.now(timezone.utc)))

        prices = await self._fetcher.fetch_prices(snapshot.tickers)
        converted = await self._converter.convert(prices)
        timestamp = datetime.now(timezone.utc)
        sent = await self._broadcaster.broadcast(snapshot.by_user, converted, timestamp)

        logger.info(
            "Price cycle: %d/%d tickers priced, %d of %d users updated",
            len(converted),
            len(snapshot.tickers),
            sent,
            len(snapshot.by_user),
        )
        return self._record(CycleResult(len(snapshot.tickers), len(converted), sent, timestamp))

    async def _guarded_cycle(self) -> None:
        try:
            await self.run_cycle()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Price broadcast cycle failed")

    async def _broadcast_loop(self) -> None:
        """Fire immediately, then every interval until stopped."""
        while not self._stop.is_set():
            self.tick()
            if await self._sleep(self._interval):
                return

    # --- Catalog ---

    @property
    def catalog_enabled(self) -> bool:
        return self._catalog is not None

    async def refresh_catalog(self) -> int | None:
        """Run the catalog refresh, logging (not raising) any failure.

        Returns the number of symbols stored, or None if no refresh ran to
        completion (no catalog wired, one already running, or it failed).
        """
        if self._catalog is None:
            return None
        if self._catalog_lock.locked():
            logger.info("Catalog refresh already in progress; skipping")
            return None
        async with self._catalog_lock:
            try:
                return await self._catalog.refresh()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Catalog refresh failed; will retry at next scheduled run")
                return None

    async def _catalog_loop(self) -> None:
        while not self._stop.is_set():
            delay = seconds_until(self._refresh_at, self._now())
            logger.debug("Next catalog refresh in %.0fs", delay)
            if await self._sleep(delay):
                return
            await self.refresh_catalog()

    async def _bootstrap(self) -> None:
        """After a grace delay, populate the catalog once if it is empty."""
        if await self._sleep(self._bootstrap_delay):
            return
        try:
            empty = await self._catalog.is_empty()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("Catalog bootstrap check failed")
            return
        if empty:
            logger.info("Ticker catalog is empty; running initial refresh")
            await self.refresh_catalog()
        else:
            logger.info("Ticker catalog already populated; skipping initial refresh")

    # --- Internals ---

    async def _sleep(self, seconds: float) -> bool:
        """Wait ``seconds`` or until stop. Returns True if stopped."""
        try:
            await asyncio.wait_for(self._stop.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return False
        return True

    def _record(self, result: CycleResult) -> CycleResult:
        self._cycles_run += 1
        self._last_result = result
        return result

    def stats(self) -> dict:
        last = self._last_result
        return {
            "running": self.running,
            "interval_seconds": self._interval,
            "cycles_run": self._cycles_run,
            "cycles_skipped": self._cycles_skipped,
            "last_cycle_at": last.finished_at.isoformat() if last else None,
            "last_tickers": last.tickers if last else None,
            "last_priced": last.priced if last else None,
            "last_messages": last.messages if last else None,
        }
