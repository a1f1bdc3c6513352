# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Chain facade backed by Lotus daemon and miner JSON-RPC endpoints.

Only the handful of calls the Spade client needs are wrapped:

- Filecoin.NodeStatus              -> current epoch and sync lag
- Filecoin.StateGetBeaconEntry     -> randomness beacon for an epoch
- Filecoin.WalletSign              -> signature with the worker key
- Filecoin.ActorAddress (miner)    -> storage provider address
- Filecoin.ChainGetTipSetByHeight  -> finalized tipset for the lookups below
- Filecoin.StateMinerInfo          -> worker address of the provider
"""

import base64
import binascii
import itertools
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from ..config import LotusConfig
from ..exceptions import ChainRPCError, SpadeClientError, StartupError

logger = logging.getLogger(__name__)

MAINNET_GENESIS_TIMESTAMP = 1598306400
EPOCH_DURATION_SECONDS = 30


def expected_mainnet_epoch(now: float) -> int:
    """Epoch mainnet should be at for wall-clock time ``now``."""
    return int((now - MAINNET_GENESIS_TIMESTAMP) // EPOCH_DURATION_SECONDS)


@dataclass(frozen=True)
class SyncStatus:
    """
    Sync state of the Lotus daemon.

    Attributes:
        epoch: Epoch the node has synced to
        behind: Lag reported by the node itself
        expected_epoch: Epoch derived from wall-clock time
    """

    epoch: int
    behind: int
    expected_epoch: int

    @property
    def actual_behind(self) -> int:
        """Lag relative to the wall-clock epoch."""
        return max(self.expected_epoch - self.epoch, 0)

    def in_sync(self, max_blocks_behind: int) -> bool:
        return self.behind <= max_blocks_behind and self.actual_behind <= max_blocks_behind


class LotusRPC:
    """Minimal JSON-RPC 2.0 client for a single Lotus endpoint."""

    def __init__(
        self,
        url: str,
        auth_token: str = "",
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._url = url
        self._headers = {"Authorization": f"Bearer {auth_token}"} if auth_token else {}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._ids = itertools.count(1)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def call(self, method: str, *params: Any) -> Any:
        """
        Call ``method`` with positional ``params`` and return its result.

        Raises:
            ChainRPCError: On transport failure, non-200 status, a malformed
                reply, or a JSON-RPC error object.
        """
        request = {
            "jsonrpc": "2.0",
            "method": method,
            "params": list(params),
            "id": next(self._ids),
        }
        try:
            response = await self._client.post(
                self._url, json=request, headers=self._headers
            )
        except httpx.TransportError as e:
            raise ChainRPCError(f"{method} failed: {e}", method) from e

        if response.status_code != 200:
            raise ChainRPCError(
                f"{method} returned HTTP {response.status_code}", method
            )

        try:
            reply = response.json()
        except ValueError as e:
            raise ChainRPCError(f"{method} returned malformed JSON: {e}", method) from e

        if not isinstance(reply, dict):
            raise ChainRPCError(
                f"{method} returned a non-object reply: {type(reply).__name__}", method
            )

        error = reply.get("error")
        if isinstance(error, dict):
            raise ChainRPCError(
                f"{method} failed: {error.get('message', error)}",
                method,
                code=error.get("code"),
            )
        if error:
            raise ChainRPCError(f"{method} failed: {error}", method)
        return reply.get("result")


_MALFORMED_REPLY = (KeyError, TypeError, AttributeError, ValueError)


def _unexpected_reply(method: str, error: Exception) -> ChainRPCError:
    return ChainRPCError(f"{method} returned an unexpected reply: {error!r}", method)


def _b64decode(value: str | None, method: str) -> bytes:
    try:
        return base64.b64decode(value or "", validate=True)
    except (binascii.Error, TypeError, ValueError) as e:
        raise ChainRPCError(f"{method} returned invalid base64 data: {e}", method) from e


class LotusChainFacade:
    """
    ChainFacadeProtocol implementation over Lotus JSON-RPC.

    connect() must succeed before the facade is used: it verifies the
    daemon is in sync and resolves the provider and worker addresses.
    """

    def __init__(
        self,
        config: LotusConfig,
        daemon: LotusRPC | None = None,
        miner: LotusRPC | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._daemon = daemon or LotusRPC(
            config.daemon_url, config.daemon_auth_token, timeout=config.request_timeout
        )
        self._miner = miner or LotusRPC(
            config.miner_url, config.miner_auth_token, timeout=config.request_timeout
        )
        self._clock = clock
        self._miner_address: str | None = None
        self._worker_address: str | None = None

    @property
    def provider_address(self) -> str:
        if self._miner_address is None:
            raise SpadeClientError("lotus chain facade is not connected")
        return self._miner_address

    @property
    def worker_address(self) -> str:
        if self._worker_address is None:
            raise SpadeClientError("lotus chain facade is not connected")
        return self._worker_address

    async def connect(self) -> None:
        """
        Verify sync and resolve addresses.

        Raises:
            StartupError: If the node is unreachable, out of sync, or the
                provider/worker addresses cannot be resolved.
        """
        try:
            status = await self.sync_status()
        except ChainRPCError as e:
            raise StartupError(f"error checking node status: {e}") from e

        if not status.in_sync(self._config.max_blocks_behind):
            raise StartupError(
                f"daemon is not in sync: node reported behind {status.behind}, "
                f"actual behind {status.actual_behind}"
            )
        logger.info("Successfully connected to main lotus node, chain in sync")

        try:
            miner_address = await self._miner.call("Filecoin.ActorAddress")
            tipset = await self._daemon.call(
                "Filecoin.ChainGetTipSetByHeight",
                status.epoch - self._config.finality_epochs,
                [],
            )
            miner_info = await self._daemon.call(
                "Filecoin.StateMinerInfo", miner_address, tipset["Cids"]
            )
        except ChainRPCError as e:
            raise StartupError(f"error resolving miner addresses: {e}") from e
        except (KeyError, TypeError) as e:
            raise StartupError(f"unexpected reply resolving miner addresses: {e}") from e

        self._miner_address = miner_address
        self._worker_address = miner_info["Worker"]
        logger.info(
            "Successfully connected to lotus miner node, Miner Address: %s, Worker %s",
            self._miner_address,
            self._worker_address,
        )

    async def aclose(self) -> None:
        await self._daemon.aclose()
        await self._miner.aclose()

    async def sync_status(self) -> SyncStatus:
        method = "Filecoin.NodeStatus"
        status = await self._daemon.call(method, False)
        try:
            sync = status["SyncStatus"]
            epoch = int(sync["Epoch"])
            behind = int(sync["Behind"])
        except _MALFORMED_REPLY as e:
            raise _unexpected_reply(method, e) from e
        return SyncStatus(
            epoch=epoch,
            behind=behind,
            expected_epoch=expected_mainnet_epoch(self._clock()),
        )

    async def current_epoch(self) -> int:
        method = "Filecoin.NodeStatus"
        status = await self._daemon.call(method, False)
        try:
            return int(status["SyncStatus"]["Epoch"])
        except _MALFORMED_REPLY as e:
            raise _unexpected_reply(method, e) from e

    async def beacon_entry(self, epoch: int) -> bytes:
        method = "Filecoin.StateGetBeaconEntry"
        entry = await self._daemon.call(method, epoch)
        try:
            data = entry["Data"]
        except _MALFORMED_REPLY as e:
            raise _unexpected_reply(method, e) from e
        return _b64decode(data, method)

    async def sign_as_worker(self, message: bytes) -> bytes:
        method = "Filecoin.WalletSign"
        signature = await self._daemon.call(
            method,
            self.worker_address,
            base64.b64encode(message).decode("ascii"),
        )
        try:
            data = signature["Data"]
        except _MALFORMED_REPLY as e:
            raise _unexpected_reply(method, e) from e
        return _b64decode(data, method)
