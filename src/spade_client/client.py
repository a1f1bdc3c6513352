# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Top-level Spade client wiring chain facade, gateway and orchestrator.
"""

import logging
from types import TracebackType

import httpx
from typing_extensions import Self

from .auth.token import AuthTokenBuilder
from .chain.lotus import LotusChainFacade
from .config import ClientConfig
from .exceptions import SpadeClientError, StartupError
from .gateway import SpadeGateway
from .observability.collector import MetricsCollector
from .protocols.chain import ChainFacadeProtocol
from .reservation.cache import EligibilityCache
from .reservation.orchestrator import ReservationOrchestrator
from .types.pieces import PendingProposals, PieceManifest

logger = logging.getLogger(__name__)


class SpadeClient:
    """
    Storage-provider client for the Spade deal engine.

    The client is responsible for:
    - Running the one-shot startup checks (chain sync, deal engine reachable)
    - Building the gateway and the reservation orchestrator
    - Closing the HTTP clients it owns

    Polling cadence is up to the caller: invoke reserve_next() from a timer
    or loop once start() has succeeded.

    Example:
        >>> async with SpadeClient(config) as client:
        ...     while True:
        ...         try:
        ...             await client.reserve_next()
        ...         except SpadeClientError as e:
        ...             logger.warning(e)
        ...         await asyncio.sleep(5)
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        chain: ChainFacadeProtocol | None = None,
        http_client: httpx.AsyncClient | None = None,
        metrics_collector: MetricsCollector | None = None,
    ) -> None:
        """
        Args:
            config: Client configuration; defaults are used when omitted
            chain: Chain facade to sign with. When omitted, a
                LotusChainFacade is built from ``config.lotus`` and connected
                (sync check included) by start().
            http_client: Optional httpx client for the deal engine API
            metrics_collector: Optional collector; when omitted and
                ``config.metrics_enabled`` is set, one is created on the
                global Prometheus registry
        """
        self.config = config or ClientConfig()
        self._owned_chain: LotusChainFacade | None = None
        if chain is None:
            self._owned_chain = LotusChainFacade(self.config.lotus)
            chain = self._owned_chain
        self._chain = chain

        if metrics_collector is None and self.config.metrics_enabled:
            metrics_collector = MetricsCollector()
        self._metrics_collector = metrics_collector

        spade = self.config.spade
        self.gateway = SpadeGateway(
            spade.url,
            AuthTokenBuilder(chain),
            client=http_client,
            timeout=spade.request_timeout,
            verify=not spade.insecure_skip_verify,
            metrics_collector=metrics_collector,
        )
        self.orchestrator = ReservationOrchestrator(
            self.gateway,
            cache=EligibilityCache(
                freshness_window=spade.eligibility_cache_ttl,
                metrics_collector=metrics_collector,
            ),
            metrics_collector=metrics_collector,
        )
        self._running = False
        self._closed = False

    @property
    def metrics_collector(self) -> MetricsCollector | None:
        return self._metrics_collector

    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """
        Run the startup checks.

        Raises:
            StartupError: If the chain node is unreachable or out of sync,
                or the deal engine cannot be reached with our credential.
        """
        if self._running:
            return
        if self._closed:
            raise StartupError("spade client is closed")

        try:
            if self._owned_chain is not None:
                await self._owned_chain.connect()

            try:
                await self.gateway.list_pending()
            except SpadeClientError as e:
                raise StartupError(f"error starting spade client: {e}") from e
        except StartupError:
            await self._close_owned()
            raise

        logger.info("Successfully connected to Spade API")
        self._running = True

    async def stop(self) -> None:
        """
        Close owned HTTP clients.

        Safe to call on a client that was never started, and more than once.
        """
        was_running = self._running
        self._running = False
        await self._close_owned()
        if was_running:
            logger.info("shutting down spade API client")

    async def __aenter__(self) -> Self:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.stop()

    async def reserve_next(self) -> str | None:
        """Run one poll cycle. See ReservationOrchestrator.reserve_next()."""
        return await self.orchestrator.reserve_next()

    async def pending_proposals(self) -> PendingProposals:
        envelope = await self.gateway.list_pending()
        return envelope.payload or PendingProposals()

    async def piece_manifest(self, proposal_id: str) -> PieceManifest:
        envelope = await self.gateway.piece_manifest(proposal_id)
        return envelope.payload or {}

    async def _close_owned(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self.gateway.aclose()
        if self._owned_chain is not None:
            await self._owned_chain.aclose()
