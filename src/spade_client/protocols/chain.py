# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Protocol for chain-node integration."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class ChainFacadeProtocol(Protocol):
    """
    Minimal protocol for the chain node backing a storage provider.

    The core library does NOT speak the chain RPC protocol. It only needs:
    1. The current chain epoch, to timestamp credentials
    2. The randomness beacon entry for that epoch, as the unpredictable
       part of the signed message
    3. A signature made with the provider's worker key
    4. The provider (miner actor) address the signature vouches for
    """

    @property
    def provider_address(self) -> str:
        """On-chain address of the storage provider, e.g. ``f01234``."""
        ...

    async def current_epoch(self) -> int:
        """Current chain epoch as seen by the node."""
        ...

    async def beacon_entry(self, epoch: int) -> bytes:
        """Raw randomness beacon data for ``epoch``."""
        ...

    async def sign_as_worker(self, message: bytes) -> bytes:
        """Sign ``message`` with the provider's worker key."""
        ...
