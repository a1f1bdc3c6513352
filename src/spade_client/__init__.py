# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Spade Client - storage-provider client for the Spade deal engine.

This library lets a Filecoin storage provider authenticate to the Spade
deal engine with a chain-anchored signature and reserve eligible pieces
without double-reserving them.

Key Features:
    - FIL-SPID-V0 credentials signed with the provider's worker key
    - Eligible-pieces listing cached for a short freshness window
    - Per-process deduplication of reservation attempts
    - Classification of deal engine refusals into retry-or-abort decisions
    - Lotus JSON-RPC chain facade with startup sync check

Quick Start:
    >>> from spade_client import ClientConfig, SpadeClient
    >>> from spade_client.config import LotusConfig
    >>>
    >>> config = ClientConfig(lotus=LotusConfig(daemon_auth_token="..."))
    >>> async with SpadeClient(config) as client:
    ...     piece_cid = await client.reserve_next()

Main Exports:
    - SpadeClient: Startup checks and wiring
    - ReservationOrchestrator: One poll-and-reserve cycle per call
    - SpadeGateway: Authenticated deal engine API calls
    - AuthTokenBuilder, build_auth_token: Credential construction
    - ChainFacadeProtocol, LotusChainFacade: Chain node integration

Version: 1.0.0
"""

__version__ = "1.0.0"

from .auth import AuthCredential, AuthTokenBuilder, build_auth_token
from .chain import LotusChainFacade
from .client import SpadeClient
from .config import ClientConfig, LotusConfig, SpadeConfig
from .exceptions import (
    ChainRPCError,
    HTTPStatusError,
    NoEligiblePieceError,
    RemoteRejectionError,
    ResponseDecodeError,
    SigningError,
    SpadeClientError,
    SpadeTransportError,
    StartupError,
    UnauthorizedError,
)
from .gateway import SpadeGateway
from .protocols import ChainFacadeProtocol
from .reservation import EligibilityCache, ReservationOrchestrator, ReservationTracker
from .types import (
    APIErrorCode,
    ErrorAction,
    ErrorCategory,
    Piece,
    ReservationOutcome,
    ResponseEnvelope,
)

__all__ = [
    "APIErrorCode",
    # Auth
    "AuthCredential",
    "AuthTokenBuilder",
    # Protocols
    "ChainFacadeProtocol",
    "ChainRPCError",
    # Config
    "ClientConfig",
    # Reservation
    "EligibilityCache",
    "ErrorAction",
    "ErrorCategory",
    "HTTPStatusError",
    # Chain
    "LotusChainFacade",
    "LotusConfig",
    "NoEligiblePieceError",
    # Types
    "Piece",
    "RemoteRejectionError",
    "ReservationOrchestrator",
    "ReservationOutcome",
    "ReservationTracker",
    "ResponseDecodeError",
    "ResponseEnvelope",
    "SigningError",
    # Client
    "SpadeClient",
    # Exceptions
    "SpadeClientError",
    "SpadeConfig",
    "SpadeGateway",
    "SpadeTransportError",
    "StartupError",
    "UnauthorizedError",
    "build_auth_token",
]
