# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Wire types and error classification for the deal engine API."""

from .envelope import EnvelopeHead, ResponseEnvelope
from .error_codes import APIErrorCode, ErrorAction, ErrorCategory
from .pieces import (
    DealProposal,
    PendingProposals,
    Piece,
    PieceManifest,
    ProposalFailure,
    ReservationOutcome,
    TenantReplicationState,
    trim_cid,
)

__all__ = [
    "APIErrorCode",
    "DealProposal",
    "EnvelopeHead",
    "ErrorAction",
    "ErrorCategory",
    "PendingProposals",
    "Piece",
    "PieceManifest",
    "ProposalFailure",
    "ReservationOutcome",
    "ResponseEnvelope",
    "TenantReplicationState",
    "trim_cid",
]
