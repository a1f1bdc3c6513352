# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
HTTP gateway to the deal engine's storage-provider API.

Every request carries a freshly built FIL-SPID-V0 credential in its
``Authorization`` header. Responses are decoded into ResponseEnvelope and
failures are mapped onto the exception hierarchy:

- no HTTP response at all      -> SpadeTransportError
- HTTP 401                     -> UnauthorizedError
- any other non-200 status     -> HTTPStatusError
- body is not a valid envelope -> ResponseDecodeError
- 200 with a non-empty slug    -> RemoteRejectionError
"""

import logging
from typing import Any, TypeVar
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from .auth.token import AuthTokenBuilder
from .exceptions import (
    HTTPStatusError,
    RemoteRejectionError,
    ResponseDecodeError,
    SpadeTransportError,
    UnauthorizedError,
)
from .observability.collector import MetricsCollector
from .observability.constants import HTTP_RESPONSES_TOTAL, TRANSPORT_ERRORS_TOTAL
from .types.envelope import EnvelopeHead, ResponseEnvelope
from .types.error_codes import APIErrorCode
from .types.pieces import PendingProposals, Piece, PieceManifest, ReservationOutcome

logger = logging.getLogger(__name__)

PENDING_PROPOSALS_PATH = "/pending_proposals"
ELIGIBLE_PIECES_PATH = "/eligible_pieces"
INVOKE_PATH = "/invoke"
PIECE_MANIFEST_PATH = "/piece_manifest"

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

E = TypeVar("E", bound=ResponseEnvelope[Any])


class SpadeGateway:
    """
    Authenticated client for the deal engine API.

    Args:
        base_url: API base URL; endpoint paths are appended to it
        auth: Builds the per-request credential
        client: Optional pre-configured httpx.AsyncClient (e.g. with a
            MockTransport in tests). When omitted, one is created and owned
            by the gateway.
        timeout: Request timeout in seconds for an owned client
        verify: TLS certificate verification for an owned client
        metrics_collector: Optional collector for response counters
    """

    def __init__(
        self,
        base_url: str,
        auth: AuthTokenBuilder,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        verify: bool = True,
        metrics_collector: MetricsCollector | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._auth = auth
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, verify=verify)
        self._metrics_collector = metrics_collector

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        """Close the underlying HTTP client if the gateway created it."""
        if self._owns_client:
            await self._client.aclose()

    async def list_pending(self) -> ResponseEnvelope[PendingProposals]:
        """Fetch pending deal proposals and recent failures."""
        body = await self._request("GET", PENDING_PROPOSALS_PATH)
        return self._decode(ResponseEnvelope[PendingProposals], body)

    async def list_eligible(self) -> ResponseEnvelope[list[Piece]]:
        """Fetch the pieces this provider may currently reserve."""
        body = await self._request("GET", ELIGIBLE_PIECES_PATH)
        return self._decode(ResponseEnvelope[list[Piece]], body)

    async def invoke(
        self, piece_cid: str, tenant_policy: str
    ) -> ResponseEnvelope[ReservationOutcome]:
        """
        Ask the deal engine to reserve ``piece_cid`` under ``tenant_policy``.

        The form body is also bound into the credential's signature so the
        service can verify that the signature covers these parameters.
        """
        query = urlencode(
            [
                ("call", "reserve_piece"),
                ("piece_cid", piece_cid),
                ("tenant_policy", tenant_policy),
            ]
        )
        body = await self._request("POST", INVOKE_PATH, body=query)
        envelope = self._decode(ResponseEnvelope[ReservationOutcome], body)
        if envelope.payload is not None and envelope.payload.piece_cid is None:
            envelope.payload = envelope.payload.model_copy(
                update={"piece_cid": piece_cid}
            )
        return envelope

    async def piece_manifest(self, proposal_id: str) -> ResponseEnvelope[PieceManifest]:
        """Fetch the aggregate manifest for a deal proposal (passed through as-is)."""
        body = await self._request(
            "GET", PIECE_MANIFEST_PATH, params={"proposal": proposal_id}
        )
        return self._decode(ResponseEnvelope[PieceManifest], body)

    async def _request(
        self,
        method: str,
        path: str,
        body: str = "",
        params: dict[str, str] | None = None,
    ) -> bytes:
        """Send one authenticated request and return the raw 200 body."""
        headers = {"Authorization": await self._auth.build(body)}
        if body:
            headers["Content-Type"] = FORM_CONTENT_TYPE

        try:
            response = await self._client.request(
                method,
                self._base_url + path,
                content=body.encode("utf-8") if body else None,
                params=params,
                headers=headers,
            )
        except httpx.TransportError as e:
            self._record(TRANSPORT_ERRORS_TOTAL, {"endpoint": path})
            raise SpadeTransportError(
                f"request to spade {path} failed: {e}", endpoint=path
            ) from e

        self._record(
            HTTP_RESPONSES_TOTAL,
            {"endpoint": path, "status": str(response.status_code)},
        )
        data = response.content

        if response.status_code == 401:
            raise UnauthorizedError(body=data, endpoint=path)

        if response.status_code != 200:
            logger.debug("spade returned response body: %r", data)
            raise HTTPStatusError(
                f"spade API returned {response.status_code} instead of expected 200",
                status_code=response.status_code,
                body=data,
                endpoint=path,
            )

        return data

    def _decode(self, envelope_type: type[E], body: bytes) -> E:
        """
        Decode ``body`` into ``envelope_type``.

        The leading fields are checked for an error slug before the payload
        is validated, so refusals with an empty or odd payload still surface
        as RemoteRejectionError rather than a decode failure.
        """
        try:
            head = EnvelopeHead.model_validate_json(body)
        except ValidationError as e:
            raise ResponseDecodeError(f"could not unmarshal response: {e}", body) from e

        if head.error_slug:
            raise RemoteRejectionError(
                head.error_slug,
                code=APIErrorCode.classify(head.error_slug, head.error_code),
                error_lines=head.error_lines,
            )

        try:
            return envelope_type.model_validate_json(body)
        except ValidationError as e:
            raise ResponseDecodeError(f"could not unmarshal response: {e}", body) from e

    def _record(self, metric: str, labels: dict[str, str]) -> None:
        if self._metrics_collector is not None:
            self._metrics_collector.inc_counter(metric, labels=labels)
