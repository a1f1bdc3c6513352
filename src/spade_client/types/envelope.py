# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Response envelope shared by every deal engine endpoint.

Every response wraps its endpoint-specific payload in the same set of
leading fields. The envelope is a generic pydantic model parameterized by
the payload type, e.g. ``ResponseEnvelope[list[Piece]]``.
"""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class ResponseEnvelope(BaseModel, Generic[T]):
    """
    Structure wrapping all responses from the deal engine.

    Attributes:
        request_id: Server-side request identifier (for support tickets)
        response_time: When the server produced the response
        response_state_epoch: Chain epoch of the state the answer was computed from
        response_code: HTTP-like status code echoed in the body
        error_code: Numeric APIErrorCode when the call was refused
        error_slug: Error identity when the call was refused; empty on success
        error_lines: Human readable error details
        info_lines: Human readable informational lines
        response_entries: Number of entries in the payload, for list endpoints
        payload: Endpoint-specific payload
    """

    model_config = ConfigDict(populate_by_name=True)

    request_id: str | None = None
    response_time: datetime = Field(alias="response_timestamp")
    response_state_epoch: int | None = None
    response_code: int
    error_code: int | None = None
    error_slug: str | None = None
    error_lines: list[str] | None = None
    info_lines: list[str] | None = None
    response_entries: int | None = None
    payload: T | None = Field(default=None, alias="response")

    @property
    def is_error(self) -> bool:
        """True if the service refused the call (non-empty error slug)."""
        return bool(self.error_slug)

    @property
    def entry_count(self) -> int:
        """
        Number of payload entries.

        Prefers the server-reported count and falls back to the payload
        length for list payloads.
        """
        if self.response_entries is not None:
            return self.response_entries
        if isinstance(self.payload, list):
            return len(self.payload)
        return 0



class EnvelopeHead(BaseModel):
    """
    Error fields of an envelope, all optional.

    Used to detect a refusal before the full envelope is validated, so a
    refusal that omits the timestamp or status code still surfaces its slug.
    """

    error_code: int | None = None
    error_slug: str | None = None
    error_lines: list[str] | None = None


__all__ = ["EnvelopeHead", "ResponseEnvelope"]
