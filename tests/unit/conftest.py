"""
Shared fixtures for the Spade client unit tests.

Provides a fake chain facade, JSON builders for deal engine responses, and
a factory for gateways backed by httpx.MockTransport.
"""

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest
from prometheus_client import CollectorRegistry

from spade_client.auth.token import AuthTokenBuilder
from spade_client.gateway import SpadeGateway
from spade_client.observability.collector import MetricsCollector

BASE_URL = "https://spade.test/sp"
TIMESTAMP = "2026-10-18T12:00:00Z"


class FakeChain:
    """In-memory ChainFacadeProtocol implementation with deterministic signing."""

    def __init__(
        self,
        epoch: int = 3_000_000,
        beacon: bytes = b"beacon-data",
        address: str = "f01234",
    ) -> None:
        self.epoch = epoch
        self.beacon = beacon
        self.address = address
        self.signed: list[bytes] = []
        self.sign_error: Exception | None = None

    @property
    def provider_address(self) -> str:
        return self.address

    async def current_epoch(self) -> int:
        return self.epoch

    async def beacon_entry(self, epoch: int) -> bytes:
        return self.beacon + str(epoch).encode()

    async def sign_as_worker(self, message: bytes) -> bytes:
        if self.sign_error is not None:
            raise self.sign_error
        self.signed.append(message)
        return b"sig:" + message


@pytest.fixture
def chain():
    """Create a fake chain facade."""
    return FakeChain()


@pytest.fixture
def piece_json():
    """Build the JSON form of an eligible piece."""

    def _build(cid: str, policy: str = "policy-1", tenant: int = 7) -> dict[str, Any]:
        return {
            "piece_cid": cid,
            "padded_piece_size": 34359738368,
            "tenant_id": tenant,
            "tenant_policy_cid": policy,
            "sample_reserve_cmd": f"echo reserve {cid}",
        }

    return _build


@pytest.fixture
def envelope_json():
    """Build a deal engine response envelope as bytes."""

    def _build(response: Any = None, **fields: Any) -> bytes:
        body: dict[str, Any] = {
            "request_id": "req-1",
            "response_timestamp": TIMESTAMP,
            "response_code": 200,
            "response": response,
        }
        body.update(fields)
        return json.dumps(body).encode()

    return _build


@pytest.fixture
def metrics():
    """Create a metrics collector on an isolated registry."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def make_gateway(chain, metrics):
    """
    Create a SpadeGateway whose HTTP traffic is served by ``handler``.

    The returned gateway also exposes the list of requests it sent as
    ``gateway.sent``.
    """

    def _build(handler: Callable[[httpx.Request], httpx.Response]) -> SpadeGateway:
        sent: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(_record))
        gateway = SpadeGateway(
            BASE_URL,
            AuthTokenBuilder(chain),
            client=client,
            metrics_collector=metrics,
        )
        gateway.sent = sent  # type: ignore[attr-defined]
        return gateway

    return _build
