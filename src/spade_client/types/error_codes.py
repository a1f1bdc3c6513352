# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Deal engine error codes and their classification.

The deal engine reports refusals with an integer code and a slug (the Go
constant name, e.g. ``ErrTooManyReplicas``). Each code belongs to a
category, and each category maps to the action a reservation loop should
take.
"""

from __future__ import annotations

from enum import Enum, IntEnum


class ErrorCategory(Enum):
    """Broad grouping of deal engine error codes."""

    MALFORMED_REQUEST = "malformed_request"
    UNAUTHORIZED = "unauthorized"
    SERVICE_DISABLED = "service_disabled"
    PIECE_POLICY = "piece_policy"
    PROVIDER_ELIGIBILITY = "provider_eligibility"
    REPLICATION_CAPACITY = "replication_capacity"
    EXTERNAL_REFUSAL = "external_refusal"


class ErrorAction(Enum):
    """
    What a reservation loop should do after a rejection.

    - ABORT: give up on this call and surface the error.
    - RETRY_LATER: the condition may clear; try again on a later poll.
    - ABANDON_PIECE: the piece can never be reserved; stop trying it.
    """

    ABORT = "abort"
    RETRY_LATER = "retry_later"
    ABANDON_PIECE = "abandon_piece"


class APIErrorCode(IntEnum):
    """Closed set of error codes returned by the deal engine."""

    INVALID_REQUEST = 4400
    UNAUTHORIZED_ACCESS = 4401
    SYSTEM_TEMPORARILY_DISABLED = 4503

    OVERSIZED_PIECE = 4011
    STORAGE_PROVIDER_SUSPENDED = 4012
    STORAGE_PROVIDER_INELIGIBLE_TO_MINE = 4013

    STORAGE_PROVIDER_INFO_TOO_OLD = 4041
    STORAGE_PROVIDER_UNDIALABLE = 4042
    STORAGE_PROVIDER_UNSUPPORTED = 4043
    SP_UNSUPPORTED = 4044

    UNCLAIMED_PIECE_CID = 4020
    PROVIDER_HAS_REPLICA = 4021
    TENANTS_OUT_OF_DATACAP = 4022
    TOO_MANY_REPLICAS = 4023
    PROVIDER_ABOVE_MAX_IN_FLIGHT = 4024
    REPLICATION_RULES_VIOLATION = 4029  # no common rejection theme across tenants

    EXTERNAL_RESERVATION_REFUSED = 4030

    @property
    def slug(self) -> str:
        """Slug the deal engine uses for this code."""
        return _SLUGS[self]

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORIES[self]

    @property
    def action(self) -> ErrorAction:
        """Recommended reaction for a reservation loop."""
        if self is APIErrorCode.TOO_MANY_REPLICAS:
            return ErrorAction.ABANDON_PIECE
        if self.category in (
            ErrorCategory.SERVICE_DISABLED,
            ErrorCategory.REPLICATION_CAPACITY,
        ):
            return ErrorAction.RETRY_LATER
        return ErrorAction.ABORT

    @classmethod
    def from_slug(cls, slug: str) -> APIErrorCode | None:
        """Look up a code by its slug. Unknown slugs return None."""
        return _BY_SLUG.get(slug)

    @classmethod
    def from_value(cls, value: int | None) -> APIErrorCode | None:
        """Look up a code by its integer value. Unknown values return None."""
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None

    @classmethod
    def classify(cls, slug: str | None, value: int | None = None) -> APIErrorCode | None:
        """
        Classify a rejection from its slug and/or numeric code.

        The slug wins when both are present, since it is what the service
        documents as the error identity.
        """
        if slug:
            code = cls.from_slug(slug)
            if code is not None:
                return code
        return cls.from_value(value)


_SLUGS: dict[APIErrorCode, str] = {
    APIErrorCode.INVALID_REQUEST: "ErrInvalidRequest",
    APIErrorCode.UNAUTHORIZED_ACCESS: "ErrUnauthorizedAccess",
    APIErrorCode.SYSTEM_TEMPORARILY_DISABLED: "ErrSystemTemporarilyDisabled",
    APIErrorCode.OVERSIZED_PIECE: "ErrOversizedPiece",
    APIErrorCode.STORAGE_PROVIDER_SUSPENDED: "ErrStorageProviderSuspended",
    APIErrorCode.STORAGE_PROVIDER_INELIGIBLE_TO_MINE: "ErrStorageProviderIneligibleToMine",
    APIErrorCode.STORAGE_PROVIDER_INFO_TOO_OLD: "ErrStorageProviderInfoTooOld",
    APIErrorCode.STORAGE_PROVIDER_UNDIALABLE: "ErrStorageProviderUndialable",
    APIErrorCode.STORAGE_PROVIDER_UNSUPPORTED: "ErrStorageProviderUnsupported",
    APIErrorCode.SP_UNSUPPORTED: "ErrSPUnsupported",
    APIErrorCode.UNCLAIMED_PIECE_CID: "ErrUnclaimedPieceCID",
    APIErrorCode.PROVIDER_HAS_REPLICA: "ErrProviderHasReplica",
    APIErrorCode.TENANTS_OUT_OF_DATACAP: "ErrTenantsOutOfDatacap",
    APIErrorCode.TOO_MANY_REPLICAS: "ErrTooManyReplicas",
    APIErrorCode.PROVIDER_ABOVE_MAX_IN_FLIGHT: "ErrProviderAboveMaxInFlight",
    APIErrorCode.REPLICATION_RULES_VIOLATION: "ErrReplicationRulesViolation",
    APIErrorCode.EXTERNAL_RESERVATION_REFUSED: "ErrExternalReservationRefused",
}

_BY_SLUG: dict[str, APIErrorCode] = {slug: code for code, slug in _SLUGS.items()}

_CATEGORIES: dict[APIErrorCode, ErrorCategory] = {
    APIErrorCode.INVALID_REQUEST: ErrorCategory.MALFORMED_REQUEST,
    APIErrorCode.UNAUTHORIZED_ACCESS: ErrorCategory.UNAUTHORIZED,
    APIErrorCode.SYSTEM_TEMPORARILY_DISABLED: ErrorCategory.SERVICE_DISABLED,
    APIErrorCode.OVERSIZED_PIECE: ErrorCategory.PIECE_POLICY,
    APIErrorCode.UNCLAIMED_PIECE_CID: ErrorCategory.PIECE_POLICY,
    APIErrorCode.STORAGE_PROVIDER_SUSPENDED: ErrorCategory.PROVIDER_ELIGIBILITY,
    APIErrorCode.STORAGE_PROVIDER_INELIGIBLE_TO_MINE: ErrorCategory.PROVIDER_ELIGIBILITY,
    APIErrorCode.STORAGE_PROVIDER_INFO_TOO_OLD: ErrorCategory.PROVIDER_ELIGIBILITY,
    APIErrorCode.STORAGE_PROVIDER_UNDIALABLE: ErrorCategory.PROVIDER_ELIGIBILITY,
    APIErrorCode.STORAGE_PROVIDER_UNSUPPORTED: ErrorCategory.PROVIDER_ELIGIBILITY,
    APIErrorCode.SP_UNSUPPORTED: ErrorCategory.PROVIDER_ELIGIBILITY,
    APIErrorCode.PROVIDER_HAS_REPLICA: ErrorCategory.REPLICATION_CAPACITY,
    APIErrorCode.TENANTS_OUT_OF_DATACAP: ErrorCategory.REPLICATION_CAPACITY,
    APIErrorCode.TOO_MANY_REPLICAS: ErrorCategory.REPLICATION_CAPACITY,
    APIErrorCode.PROVIDER_ABOVE_MAX_IN_FLIGHT: ErrorCategory.REPLICATION_CAPACITY,
    APIErrorCode.REPLICATION_RULES_VIOLATION: ErrorCategory.REPLICATION_CAPACITY,
    APIErrorCode.EXTERNAL_RESERVATION_REFUSED: ErrorCategory.EXTERNAL_REFUSAL,
}


__all__ = ["APIErrorCode", "ErrorAction", "ErrorCategory"]
