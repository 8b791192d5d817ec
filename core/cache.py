"""
In-memory feed cache with a background refresher.

Snapshot model
──────────────
The cache holds exactly one ``CacheSnapshot`` reference. The refresher is the
only writer: it builds a complete new snapshot and publishes it with a single
attribute assignment, so a reader sees either the old or the new snapshot and
never a mix. Readers take no locks and never wait for the refresher.

Refresh loop
────────────
  not due yet            → sleep until ``refreshed_at + refresh_interval``
  fetch raised           → sleep ``error_cooldown``; snapshot unchanged
  fetched < cached items → discard, sleep ``partial_retry_delay``
  otherwise              → publish new snapshot stamped with "now"

All sleeps go through a ``threading.Event`` so ``stop()`` interrupts them.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING

from core.errors import FetchError, NotAvailable, PartialResult
from core.fetcher import FeedFetcher
from core.models import EMPTY_SNAPSHOT, CacheSnapshot, Item

if TYPE_CHECKING:
    from config.settings import Settings

logger = logging.getLogger(__name__)

#: ``last_refresh`` before the first successful fetch; always overdue.
ZERO_TIME = datetime.min.replace(tzinfo=timezone.utc)

REFRESH_INTERVAL = 15 * 60
ERROR_COOLDOWN = 5 * 60
PARTIAL_RETRY_DELAY = 30
FETCH_COUNT = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RefreshOutcome(str, Enum):
    """Result of a single refresh attempt."""

    REFRESHED = "refreshed"
    PARTIAL = "partial"
    FAILED = "failed"


class FeedCache:
    """Owns the current snapshot and the loop that keeps it fresh."""

    def __init__(
        self,
        fetcher: FeedFetcher,
        *,
        refresh_interval: float = REFRESH_INTERVAL,
        error_cooldown: float = ERROR_COOLDOWN,
        partial_retry_delay: float = PARTIAL_RETRY_DELAY,
        fetch_count: int = FETCH_COUNT,
        clock: Callable[[], datetime] = _utcnow,
        stop_event: threading.Event | None = None,
    ) -> None:
        self._fetcher = fetcher
        self.refresh_interval = refresh_interval
        self.error_cooldown = error_cooldown
        self.partial_retry_delay = partial_retry_delay
        self.fetch_count = fetch_count
        self._clock = clock
        self._stop = stop_event or threading.Event()
        self._snapshot: CacheSnapshot = EMPTY_SNAPSHOT
        self._thread: threading.Thread | None = None

    @classmethod
    def from_settings(cls, fetcher: FeedFetcher, settings: Settings) -> "FeedCache":
        return cls(
            fetcher,
            refresh_interval=settings.refresh_interval,
            error_cooldown=settings.error_cooldown,
            partial_retry_delay=settings.partial_retry_delay,
            fetch_count=settings.fetch_count,
        )

    # ── Read side ──────────────────────────────────────────────────────────

    def current(self) -> CacheSnapshot:
        """Return the latest committed snapshot."""
        return self._snapshot

    def item_at(self, pos: int) -> Item:
        """Return the item at *pos* (0 = newest).

        Raises:
            NotAvailable: If *pos* is negative, beyond the snapshot, or the
                cache has not been filled yet.
        """
        items = self._snapshot.items
        if pos < 0 or pos >= len(items):
            raise NotAvailable(pos)
        return items[pos]

    @property
    def last_refresh(self) -> datetime:
        return self._snapshot.refreshed_at or ZERO_TIME

    # ── Write side ─────────────────────────────────────────────────────────

    def seconds_until_due(self) -> float:
        """Seconds left before the next fetch is allowed; 0 when overdue."""
        due = self.last_refresh + timedelta(seconds=self.refresh_interval)
        return max(0.0, (due - self._clock()).total_seconds())

    def _commit(self, items: list[Item]) -> CacheSnapshot:
        cached = len(self._snapshot)
        if len(items) < cached:
            raise PartialResult(len(items), cached)
        snapshot = CacheSnapshot(items=tuple(items), refreshed_at=self._clock())
        self._snapshot = snapshot
        return snapshot

    def refresh_once(self) -> RefreshOutcome:
        """Fetch once and publish the result if it does not shrink the cache."""
        logger.debug("Refreshing feed cache (count=%d)", self.fetch_count)
        try:
            items = self._fetcher.fetch_recent(self.fetch_count, exclude_replies=True)
            snapshot = self._commit(items)
        except FetchError as exc:
            logger.warning("Feed fetch failed, keeping %d cached items: %s", len(self._snapshot), exc)
            return RefreshOutcome.FAILED
        except PartialResult as exc:
            logger.info("Discarding short fetch result: %s", exc)
            return RefreshOutcome.PARTIAL
        except Exception:
            logger.exception("Unexpected error while refreshing feed cache")
            return RefreshOutcome.FAILED

        logger.info("Feed cache refreshed with %d items", len(snapshot))
        return RefreshOutcome.REFRESHED

    # ── Background loop ────────────────────────────────────────────────────

    def run(self) -> None:
        """Refresh until ``stop()`` is called. Blocks the calling thread."""
        logger.info("Feed refresher started (interval=%ss)", self.refresh_interval)
        while not self._stop.is_set():
            wait = self.seconds_until_due()
            if wait > 0:
                self._stop.wait(wait)
                continue

            outcome = self.refresh_once()
            if outcome is RefreshOutcome.FAILED:
                self._stop.wait(self.error_cooldown)
            elif outcome is RefreshOutcome.PARTIAL:
                # back off briefly so short pages do not hammer the upstream API
                self._stop.wait(self.partial_retry_delay)
        logger.info("Feed refresher stopped")

    def start(self) -> threading.Thread:
        """Run the refresh loop in a daemon thread (idempotent)."""
        if self._thread and self._thread.is_alive():
            return self._thread
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="feed-refresher", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: float | None = None) -> None:
        """Signal the loop to exit and wait for the thread to finish."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if not self._thread.is_alive():
                self._thread = None
