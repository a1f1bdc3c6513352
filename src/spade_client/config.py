# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Configuration for the Spade client.

This module provides configuration classes for the chain node connection,
the deal engine API and the reservation loop.
"""

from dataclasses import dataclass, field

DEFAULT_SPADE_URL = "https://api.spade.storage/sp"


@dataclass
class LotusConfig:
    """
    Connection settings for the Lotus daemon and miner JSON-RPC endpoints.
    """

    daemon_url: str = "http://127.0.0.1:1234/rpc/v0"
    """Lotus daemon JSON-RPC URL."""

    daemon_auth_token: str = ""
    """Bearer token for the daemon API (needs 'sign' permission)."""

    miner_url: str = "http://127.0.0.1:2345/rpc/v0"
    """Lotus miner JSON-RPC URL."""

    miner_auth_token: str = ""
    """Bearer token for the miner API."""

    max_blocks_behind: int = 5
    """Maximum lag behind the expected mainnet epoch accepted at startup."""

    finality_epochs: int = 900
    """How far behind head to look up the worker address (chain finality)."""

    request_timeout: float = 30.0
    """JSON-RPC request timeout in seconds."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.daemon_url:
            raise ValueError("daemon_url must not be empty")
        if not self.miner_url:
            raise ValueError("miner_url must not be empty")
        if self.max_blocks_behind < 0:
            raise ValueError("max_blocks_behind must not be negative")
        if self.finality_epochs < 0:
            raise ValueError("finality_epochs must not be negative")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")


@dataclass
class SpadeConfig:
    """
    Settings for the deal engine API and the reservation loop.
    """

    url: str = DEFAULT_SPADE_URL
    """Base URL of the storage-provider API; endpoint paths are appended."""

    request_timeout: float = 30.0
    """HTTP request timeout in seconds."""

    insecure_skip_verify: bool = False
    """Disable TLS certificate verification (for test deployments only)."""

    eligibility_cache_ttl: float = 10.0
    """Seconds an eligible-pieces listing is served from cache."""

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.url:
            raise ValueError("url must not be empty")
        self.url = self.url.rstrip("/")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if self.eligibility_cache_ttl < 0:
            raise ValueError("eligibility_cache_ttl must not be negative")


@dataclass
class ClientConfig:
    """Top-level configuration combining all sections."""

    lotus: LotusConfig = field(default_factory=LotusConfig)
    spade: SpadeConfig = field(default_factory=SpadeConfig)

    metrics_enabled: bool = True
    """Enable Prometheus counters."""


__all__ = [
    "DEFAULT_SPADE_URL",
    "ClientConfig",
    "LotusConfig",
    "SpadeConfig",
]
