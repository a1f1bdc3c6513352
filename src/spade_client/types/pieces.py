# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Payload models for the deal engine endpoints.

These are immutable snapshots of what the service returned. Field names
are Pythonic; aliases carry the JSON names used on the wire.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

CID_TRIM_PREFIX = 6
CID_TRIM_SUFFIX = 8


def trim_cid(cid: str) -> str:
    """Shorten a CID for log output, e.g. ``baga6e~xyz12345``."""
    if len(cid) <= CID_TRIM_PREFIX + CID_TRIM_SUFFIX + 2:
        return cid
    return cid[:CID_TRIM_PREFIX] + "~" + cid[-CID_TRIM_SUFFIX:]


class _Snapshot(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Piece(_Snapshot):
    """
    A piece the provider is eligible to reserve.

    Attributes:
        piece_cid: Content identifier of the piece
        padded_piece_size: Padded size in bytes
        claiming_tenant: Tenant that claimed the piece
        tenant_policy_cid: Policy that governs a reservation of this piece
        sample_reserve_cmd: Example command line for a manual reservation
    """

    piece_cid: str
    padded_piece_size: int = Field(ge=0)
    claiming_tenant: int = Field(alias="tenant_id")
    tenant_policy_cid: str
    sample_reserve_cmd: str | None = None


class TenantReplicationState(_Snapshot):
    """Per-tenant replication accounting returned with a reservation."""

    tenant_id: int
    tenant_client: str | None = Field(default=None, alias="tenant_client_id")

    max_in_flight_bytes: int = Field(alias="tenant_max_in_flight_bytes")
    sp_in_flight_bytes: int = Field(alias="actual_in_flight_bytes")

    max_total: int = Field(alias="tenant_max_total")
    max_org: int = Field(alias="tenant_max_per_org")
    max_city: int = Field(alias="tenant_max_per_metro")
    max_country: int = Field(alias="tenant_max_per_country")
    max_continent: int = Field(alias="tenant_max_per_continent")

    total: int = Field(alias="actual_total")
    in_org: int = Field(alias="actual_within_org")
    in_city: int = Field(alias="actual_within_metro")
    in_country: int = Field(alias="actual_within_country")
    in_continent: int = Field(alias="actual_within_continent")

    deal_already_exists: bool = Field(default=False, alias="sp_holds_qualifying_deal")


class ReservationOutcome(_Snapshot):
    """Payload of a successful ``reserve_piece`` invocation."""

    piece_cid: str | None = None
    replication_states: list[TenantReplicationState] = Field(
        default_factory=list, alias="tenant_replication_states"
    )
    deal_start_time: datetime | None = None
    deal_start_epoch: int | None = None


class ProposalFailure(_Snapshot):
    """A recent deal proposal that failed on the provider side."""

    error_time: datetime = Field(alias="timestamp")
    error: str
    piece_cid: str
    proposal_id: str = Field(alias="deal_proposal_id")
    proposal_cid: str | None = Field(default=None, alias="deal_proposal_cid")
    tenant_id: int
    tenant_client: str = Field(alias="tenant_client_id")


class DealProposal(_Snapshot):
    """A deal proposal waiting for the provider to import the data."""

    proposal_id: str = Field(alias="deal_proposal_id")
    proposal_cid: str | None = Field(default=None, alias="deal_proposal_cid")
    hours_remaining: int
    piece_size: int
    piece_cid: str
    tenant_id: int
    tenant_client: str = Field(alias="tenant_client_id")
    start_time: datetime = Field(alias="deal_start_time")
    start_epoch: int = Field(alias="deal_start_epoch")
    import_cmd: str = Field(alias="sample_import_cmd")
    segmentation: str | None = Field(default=None, alias="segmentation_type")
    assembly_cmd: str | None = Field(default=None, alias="sample_assembly_cmd")
    data_sources: list[str] = Field(default_factory=list)


class PendingProposals(_Snapshot):
    """Payload of the ``pending_proposals`` endpoint."""

    recent_failures: list[ProposalFailure] = Field(default_factory=list)
    pending_proposals: list[DealProposal] = Field(default_factory=list)


# Piece manifests are passed through without interpretation.
PieceManifest = dict[str, Any]


__all__ = [
    "CID_TRIM_PREFIX",
    "CID_TRIM_SUFFIX",
    "DealProposal",
    "PendingProposals",
    "Piece",
    "PieceManifest",
    "ProposalFailure",
    "ReservationOutcome",
    "TenantReplicationState",
    "trim_cid",
]
