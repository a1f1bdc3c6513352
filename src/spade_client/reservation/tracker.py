# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""ReservationTracker remembering which pieces were already attempted."""

import asyncio
import logging

logger = logging.getLogger(__name__)


class ReservationTracker:
    """
    Set of piece CIDs this process has already tried to reserve.

    Entries are never removed: the deal engine remains the source of truth
    for eligibility, and a piece that was attempted is simply skipped in
    later listings for the rest of the process lifetime.

    All reads and writes go through one asyncio.Lock so concurrent poll
    cycles never observe a torn read or lose an update. Note that the lock
    only makes each call atomic; a has() followed by add() in two
    concurrent callers can still both pass has() for the same piece.
    """

    def __init__(self) -> None:
        self._requested: set[str] = set()
        self._lock = asyncio.Lock()

    async def has(self, piece_cid: str) -> bool:
        """Return True if ``piece_cid`` was already attempted."""
        async with self._lock:
            return piece_cid in self._requested

    async def add(self, piece_cid: str) -> None:
        """Record ``piece_cid`` as attempted. Idempotent."""
        async with self._lock:
            self._requested.add(piece_cid)
            logger.debug(
                "Tracked piece: piece_cid=%s, tracked=%d",
                piece_cid,
                len(self._requested),
            )

    async def first_untracked(self, piece_cids: list[str]) -> str | None:
        """
        Return the first CID in ``piece_cids`` not yet attempted.

        The scan runs under a single lock acquisition, preserving the
        order of ``piece_cids``.
        """
        async with self._lock:
            for piece_cid in piece_cids:
                if piece_cid not in self._requested:
                    return piece_cid
            return None

    @property
    def count(self) -> int:
        """Return the number of tracked pieces."""
        return len(self._requested)
