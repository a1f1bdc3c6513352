# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Short-lived cache for the eligible-pieces listing.

Poll loops can ask for the listing far more often than it changes, so the
most recent successful fetch is reused for a freshness window (10 seconds
by default).
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from ..observability.collector import MetricsCollector
from ..observability.constants import CACHE_HITS_TOTAL, CACHE_MISSES_TOTAL
from ..types.pieces import Piece

logger = logging.getLogger(__name__)

DEFAULT_FRESHNESS_WINDOW = 10.0

FetchFn = Callable[[], Awaitable[tuple[list[Piece], int | None]]]


@dataclass(frozen=True)
class CachedListing:
    """A successful eligible-pieces fetch."""

    fetched_at: float
    entries: tuple[Piece, ...]
    total_count: int | None = None


@dataclass(frozen=True)
class CacheResult:
    """
    Result of EligibilityCache.get_or_refresh().

    Attributes:
        entries: Pieces in the order the deal engine returned them
        total_count: Server-reported number of eligible pieces, if any
        used_cache: True if served from cache without a fetch
    """

    entries: tuple[Piece, ...]
    total_count: int | None
    used_cache: bool


class EligibilityCache:
    """
    Holds the latest eligible-pieces listing and its fetch time.

    Refreshes are serialized by an asyncio.Lock: at most one fetch is in
    flight, and callers that queued behind it observe the refreshed value
    instead of fetching again.

    A failed fetch propagates its exception and leaves the previous listing
    untouched; stale data is never served in place of an error.
    """

    def __init__(
        self,
        freshness_window: float = DEFAULT_FRESHNESS_WINDOW,
        clock: Callable[[], float] = time.monotonic,
        metrics_collector: MetricsCollector | None = None,
    ) -> None:
        """
        Args:
            freshness_window: Seconds a listing stays fresh after its fetch
            clock: Monotonic time source, injectable for tests
            metrics_collector: Optional collector for hit/miss counters
        """
        self._freshness_window = freshness_window
        self._clock = clock
        self._metrics_collector = metrics_collector
        self._listing: CachedListing | None = None
        self._lock = asyncio.Lock()

    @property
    def freshness_window(self) -> float:
        return self._freshness_window

    @property
    def listing(self) -> CachedListing | None:
        """The last successful fetch, or None before the first one."""
        return self._listing

    def is_fresh(self, now: float | None = None) -> bool:
        """True if a listing exists and is younger than the freshness window."""
        if self._listing is None:
            return False
        if now is None:
            now = self._clock()
        return now - self._listing.fetched_at < self._freshness_window

    async def get_or_refresh(
        self, fetch_fn: FetchFn, now: float | None = None
    ) -> CacheResult:
        """
        Return the cached listing if fresh, otherwise fetch a new one.

        Args:
            fetch_fn: Coroutine function returning ``(entries, total_count)``
            now: Current clock reading; defaults to the cache's clock

        Returns:
            CacheResult with ``used_cache`` telling whether a fetch happened.

        Raises:
            Whatever ``fetch_fn`` raises. The cached listing is unchanged.
        """
        async with self._lock:
            if now is None:
                now = self._clock()

            listing = self._listing
            if listing is not None and self.is_fresh(now):
                logger.debug(
                    "Serving %d eligible pieces from cache (age %.1fs)",
                    len(listing.entries),
                    now - listing.fetched_at,
                )
                self._record(CACHE_HITS_TOTAL)
                return CacheResult(
                    entries=listing.entries,
                    total_count=listing.total_count,
                    used_cache=True,
                )

            entries, total_count = await fetch_fn()

            listing = CachedListing(
                fetched_at=now,
                entries=tuple(entries),
                total_count=total_count,
            )
            self._listing = listing
            self._record(CACHE_MISSES_TOTAL)
            return CacheResult(
                entries=listing.entries,
                total_count=listing.total_count,
                used_cache=False,
            )

    def _record(self, metric: str) -> None:
        if self._metrics_collector is not None:
            self._metrics_collector.inc_counter(metric)
