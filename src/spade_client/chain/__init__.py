# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Chain facade implementations.

Exports:
    LotusChainFacade: ChainFacadeProtocol over Lotus JSON-RPC
    LotusRPC: Minimal JSON-RPC client for one Lotus endpoint
    SyncStatus: Daemon sync state used by the startup check
"""

from .lotus import (
    EPOCH_DURATION_SECONDS,
    MAINNET_GENESIS_TIMESTAMP,
    LotusChainFacade,
    LotusRPC,
    SyncStatus,
    expected_mainnet_epoch,
)

__all__ = [
    "EPOCH_DURATION_SECONDS",
    "MAINNET_GENESIS_TIMESTAMP",
    "LotusChainFacade",
    "LotusRPC",
    "SyncStatus",
    "expected_mainnet_epoch",
]
