# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Reservation workflow: pick the next eligible piece and reserve it.

One call to ReservationOrchestrator.reserve_next() is one poll cycle:

1. Refresh the eligible-pieces listing (served from cache when fresh).
2. If the deal engine reports zero eligible pieces, there is nothing to do.
3. Pick the first piece, in the order the service returned them, that this
   process has not attempted yet.
4. Invoke the reservation and record the outcome in the tracker.

A piece is recorded as attempted when the reservation succeeds, and also
when the service reports it is already over-replicated (retrying can never
succeed). Any other failure leaves the piece eligible for a later cycle.
"""

import logging

from ..exceptions import NoEligiblePieceError, RemoteRejectionError, SpadeClientError
from ..gateway import SpadeGateway
from ..observability.collector import MetricsCollector
from ..observability.constants import (
    OUTCOME_ABANDONED,
    OUTCOME_ERROR,
    OUTCOME_REJECTED,
    OUTCOME_RESERVED,
    POLL_CYCLES_TOTAL,
    REMOTE_REJECTIONS_TOTAL,
    RESERVATIONS_TOTAL,
)
from ..types.pieces import Piece, trim_cid
from .cache import EligibilityCache
from .tracker import ReservationTracker

logger = logging.getLogger(__name__)


class ReservationOrchestrator:
    """
    Owns the eligibility cache and the reservation tracker for one provider.

    Both are created at construction time (or injected) and live as long
    as the orchestrator; nothing else mutates them.

    The orchestrator expects a single poller: concurrent reserve_next()
    calls are safe for the cache and tracker, but two of them may both pick
    the same untried piece before either records it. Exclusivity across
    callers and processes is enforced by the deal engine.
    """

    def __init__(
        self,
        gateway: SpadeGateway,
        cache: EligibilityCache | None = None,
        tracker: ReservationTracker | None = None,
        metrics_collector: MetricsCollector | None = None,
    ) -> None:
        self._gateway = gateway
        self._metrics_collector = metrics_collector
        self._cache = cache or EligibilityCache(metrics_collector=metrics_collector)
        self._tracker = tracker or ReservationTracker()

    @property
    def cache(self) -> EligibilityCache:
        return self._cache

    @property
    def tracker(self) -> ReservationTracker:
        return self._tracker

    async def reserve_next(self) -> str | None:
        """
        Run one poll cycle.

        Returns:
            The CID of the reserved piece, or None if the deal engine
            currently lists no eligible pieces.

        Raises:
            NoEligiblePieceError: Every listed piece was already attempted.
            RemoteRejectionError: The deal engine refused the reservation.
            SpadeClientError: Any transport, status or decode failure while
                listing or invoking.
        """
        self._record(POLL_CYCLES_TOTAL)

        result = await self._cache.get_or_refresh(self._fetch_eligible)
        total = (
            result.total_count
            if result.total_count is not None
            else len(result.entries)
        )

        if total == 0:
            if not result.used_cache:
                logger.info(" > No eligible pieces at the moment.")
            return None

        if not result.used_cache:
            logger.info(" > Found %d eligible pieces", total)

        piece = await self._select(result.entries)
        if piece is None:
            raise NoEligiblePieceError(listed=len(result.entries))

        return await self._reserve(piece)

    async def _fetch_eligible(self) -> tuple[list[Piece], int | None]:
        envelope = await self._gateway.list_eligible()
        return list(envelope.payload or []), envelope.response_entries

    async def _select(self, entries: tuple[Piece, ...]) -> Piece | None:
        """First piece, in listing order, not yet attempted."""
        piece_cid = await self._tracker.first_untracked(
            [piece.piece_cid for piece in entries]
        )
        if piece_cid is None:
            return None
        return next(piece for piece in entries if piece.piece_cid == piece_cid)

    async def _reserve(self, piece: Piece) -> str:
        logger.info("  > Requesting %s", piece.piece_cid)

        try:
            await self._gateway.invoke(piece.piece_cid, piece.tenant_policy_cid)
        except RemoteRejectionError as e:
            self._record(REMOTE_REJECTIONS_TOTAL, {"slug": e.slug})
            if e.is_over_replicated:
                # Terminal for this piece; skip it on later cycles.
                await self._tracker.add(piece.piece_cid)
                self._record(RESERVATIONS_TOTAL, {"outcome": OUTCOME_ABANDONED})
            else:
                self._record(RESERVATIONS_TOTAL, {"outcome": OUTCOME_REJECTED})
            logger.warning(
                "   > Could not invoke reservation %s: %s",
                trim_cid(piece.piece_cid),
                e.slug,
            )
            raise
        except SpadeClientError as e:
            self._record(RESERVATIONS_TOTAL, {"outcome": OUTCOME_ERROR})
            logger.warning(
                "   > Could not invoke reservation %s: %s",
                trim_cid(piece.piece_cid),
                e,
            )
            raise

        await self._tracker.add(piece.piece_cid)
        self._record(RESERVATIONS_TOTAL, {"outcome": OUTCOME_RESERVED})
        logger.info("   > Successfully requested %s", piece.piece_cid)
        return piece.piece_cid

    def _record(self, metric: str, labels: dict[str, str] | None = None) -> None:
        if self._metrics_collector is not None:
            self._metrics_collector.inc_counter(metric, labels=labels)
