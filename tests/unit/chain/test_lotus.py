"""Tests for the Lotus JSON-RPC client and chain facade."""

import base64
import json

import httpx
import pytest

from spade_client.auth import AuthTokenBuilder
from spade_client.chain import (
    EPOCH_DURATION_SECONDS,
    MAINNET_GENESIS_TIMESTAMP,
    LotusChainFacade,
    LotusRPC,
    SyncStatus,
    expected_mainnet_epoch,
)
from spade_client.config import LotusConfig
from spade_client.exceptions import ChainRPCError, SpadeClientError, StartupError
from spade_client.gateway import SpadeGateway
from spade_client.protocols import ChainFacadeProtocol

HEAD = 4_000_000
NOW = MAINNET_GENESIS_TIMESTAMP + HEAD * EPOCH_DURATION_SECONDS


class FakeLotusNode:
    """Serves canned JSON-RPC results keyed by method name."""

    def __init__(self, results=None, errors=None):
        self.results = dict(results or {})
        self.errors = dict(errors or {})
        self.calls = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        self.calls.append(payload)
        method = payload["method"]
        if method in self.errors:
            body = {"jsonrpc": "2.0", "id": payload["id"], "error": self.errors[method]}
        else:
            body = {"jsonrpc": "2.0", "id": payload["id"], "result": self.results[method]}
        return httpx.Response(200, json=body)

    def rpc(self, auth_token: str = "") -> LotusRPC:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return LotusRPC("http://lotus.test/rpc/v0", auth_token, client=client)


def _node_status(epoch: int = HEAD, behind: int = 0) -> dict:
    return {"SyncStatus": {"Epoch": epoch, "Behind": behind}}


@pytest.fixture
def daemon():
    return FakeLotusNode(
        {
            "Filecoin.NodeStatus": _node_status(),
            "Filecoin.ChainGetTipSetByHeight": {"Cids": [{"/": "bafy-tipset"}]},
            "Filecoin.StateMinerInfo": {"Owner": "f0100", "Worker": "f3worker"},
            "Filecoin.StateGetBeaconEntry": {
                "Round": 1,
                "Data": base64.b64encode(b"randomness").decode(),
            },
            "Filecoin.WalletSign": {
                "Type": 2,
                "Data": base64.b64encode(b"signature").decode(),
            },
        }
    )


@pytest.fixture
def miner():
    return FakeLotusNode({"Filecoin.ActorAddress": "f01234"})


@pytest.fixture
def facade(daemon, miner):
    return LotusChainFacade(
        LotusConfig(),
        daemon=daemon.rpc(),
        miner=miner.rpc(),
        clock=lambda: NOW,
    )


class TestExpectedEpoch:
    """Tests for the wall-clock epoch helper."""

    def test_genesis_is_epoch_zero(self):
        assert expected_mainnet_epoch(MAINNET_GENESIS_TIMESTAMP) == 0

    def test_thirty_second_epochs(self):
        assert expected_mainnet_epoch(MAINNET_GENESIS_TIMESTAMP + 29) == 0
        assert expected_mainnet_epoch(MAINNET_GENESIS_TIMESTAMP + 30) == 1
        assert expected_mainnet_epoch(NOW) == HEAD


class TestSyncStatus:
    """Tests for the sync check."""

    def test_in_sync_within_threshold(self):
        status = SyncStatus(epoch=HEAD - 5, behind=5, expected_epoch=HEAD)
        assert status.actual_behind == 5
        assert status.in_sync(5) is True

    def test_out_of_sync_by_reported_lag(self):
        status = SyncStatus(epoch=HEAD, behind=6, expected_epoch=HEAD)
        assert status.in_sync(5) is False

    def test_out_of_sync_by_wall_clock(self):
        status = SyncStatus(epoch=HEAD - 10, behind=0, expected_epoch=HEAD)
        assert status.in_sync(5) is False

    def test_node_ahead_of_clock_is_not_negative(self):
        status = SyncStatus(epoch=HEAD + 2, behind=0, expected_epoch=HEAD)
        assert status.actual_behind == 0


class TestLotusRPC:
    """Tests for the JSON-RPC transport."""

    @pytest.mark.asyncio
    async def test_request_shape(self):
        """Calls are JSON-RPC 2.0 with positional params and a bearer token."""
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": 7})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        rpc = LotusRPC("http://lotus.test/rpc/v0", "secret", client=client)

        assert await rpc.call("Filecoin.Thing", 1, "two") == 7

        body = json.loads(seen[0].content)
        assert body["jsonrpc"] == "2.0"
        assert body["method"] == "Filecoin.Thing"
        assert body["params"] == [1, "two"]
        assert seen[0].headers["Authorization"] == "Bearer secret"

    @pytest.mark.asyncio
    async def test_error_object_raises(self):
        node = FakeLotusNode(
            errors={"Filecoin.WalletSign": {"code": 1, "message": "key not found"}}
        )

        with pytest.raises(ChainRPCError, match="key not found") as exc_info:
            await node.rpc().call("Filecoin.WalletSign")

        assert exc_info.value.method == "Filecoin.WalletSign"
        assert exc_info.value.code == 1

    @pytest.mark.asyncio
    async def test_http_status_raises(self):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(401))
        )
        rpc = LotusRPC("http://lotus.test/rpc/v0", client=client)

        with pytest.raises(ChainRPCError, match="HTTP 401"):
            await rpc.call("Filecoin.NodeStatus", False)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        rpc = LotusRPC("http://lotus.test/rpc/v0", client=client)

        with pytest.raises(ChainRPCError) as exc_info:
            await rpc.call("Filecoin.NodeStatus", False)

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_malformed_json_raises(self):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, content=b"nope"))
        )
        rpc = LotusRPC("http://lotus.test/rpc/v0", client=client)

        with pytest.raises(ChainRPCError, match="malformed"):
            await rpc.call("Filecoin.NodeStatus", False)


class TestLotusChainFacadeConnect:
    """Tests for the startup checks."""

    @pytest.mark.asyncio
    async def test_connect_resolves_addresses(self, facade, daemon):
        """The worker is looked up at head minus finality."""
        await facade.connect()

        assert facade.provider_address == "f01234"
        assert facade.worker_address == "f3worker"
        tipset_call = next(
            c for c in daemon.calls if c["method"] == "Filecoin.ChainGetTipSetByHeight"
        )
        assert tipset_call["params"] == [HEAD - 900, []]
        info_call = next(
            c for c in daemon.calls if c["method"] == "Filecoin.StateMinerInfo"
        )
        assert info_call["params"] == ["f01234", [{"/": "bafy-tipset"}]]

    @pytest.mark.asyncio
    async def test_out_of_sync_node_fails_startup(self, facade, daemon):
        daemon.results["Filecoin.NodeStatus"] = _node_status(epoch=HEAD - 50, behind=0)

        with pytest.raises(StartupError, match="not in sync"):
            await facade.connect()

    @pytest.mark.asyncio
    async def test_unreachable_node_fails_startup(self, facade, daemon):
        daemon.errors["Filecoin.NodeStatus"] = {"code": -1, "message": "boom"}

        with pytest.raises(StartupError, match="node status"):
            await facade.connect()

    @pytest.mark.asyncio
    async def test_miner_lookup_failure_fails_startup(self, facade, miner):
        miner.errors["Filecoin.ActorAddress"] = {"code": -1, "message": "no miner"}

        with pytest.raises(StartupError, match="miner addresses"):
            await facade.connect()

    def test_addresses_unavailable_before_connect(self, facade):
        with pytest.raises(SpadeClientError, match="not connected"):
            _ = facade.provider_address


class TestLotusChainFacadeOperations:
    """Tests for the chain operations used by the credential builder."""

    def test_satisfies_protocol(self, facade):
        assert isinstance(facade, ChainFacadeProtocol)

    @pytest.mark.asyncio
    async def test_current_epoch(self, facade):
        assert await facade.current_epoch() == HEAD

    @pytest.mark.asyncio
    async def test_beacon_entry_decodes_data(self, facade, daemon):
        assert await facade.beacon_entry(HEAD) == b"randomness"
        assert daemon.calls[-1]["params"] == [HEAD]

    @pytest.mark.asyncio
    async def test_sign_as_worker(self, facade, daemon):
        """The message is sent base64 encoded and signed by the worker key."""
        await facade.connect()

        signature = await facade.sign_as_worker(b"   hello")

        assert signature == b"signature"
        call = daemon.calls[-1]
        assert call["method"] == "Filecoin.WalletSign"
        assert call["params"] == ["f3worker", base64.b64encode(b"   hello").decode()]

    @pytest.mark.asyncio
    async def test_invalid_base64_raises(self, facade, daemon):
        daemon.results["Filecoin.StateGetBeaconEntry"] = {"Data": "***"}

        with pytest.raises(ChainRPCError, match="base64"):
            await facade.beacon_entry(HEAD)


class TestMalformedReplies:
    """Replies of the wrong shape surface as ChainRPCError."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", [[1, 2], "ok", 42])
    async def test_non_object_reply(self, reply):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda r: httpx.Response(200, json=reply))
        )
        rpc = LotusRPC("http://lotus.test/rpc/v0", client=client)

        with pytest.raises(ChainRPCError, match="non-object"):
            await rpc.call("Filecoin.NodeStatus", False)

    @pytest.mark.asyncio
    async def test_string_error_object(self):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(
                lambda r: httpx.Response(200, json={"id": 1, "error": "rate limited"})
            )
        )
        rpc = LotusRPC("http://lotus.test/rpc/v0", client=client)

        with pytest.raises(ChainRPCError, match="rate limited"):
            await rpc.call("Filecoin.NodeStatus", False)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("entry", [None, "not-a-dict", {"Round": 1}, {"Data": 5}])
    async def test_beacon_entry(self, facade, daemon, entry):
        daemon.results["Filecoin.StateGetBeaconEntry"] = entry

        with pytest.raises(ChainRPCError) as exc_info:
            await facade.beacon_entry(HEAD)

        assert exc_info.value.method == "Filecoin.StateGetBeaconEntry"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status", [None, {}, {"SyncStatus": None}, {"SyncStatus": {"Epoch": "x"}}]
    )
    async def test_current_epoch(self, facade, daemon, status):
        daemon.results["Filecoin.NodeStatus"] = status

        with pytest.raises(ChainRPCError) as exc_info:
            await facade.current_epoch()

        assert exc_info.value.method == "Filecoin.NodeStatus"

    @pytest.mark.asyncio
    async def test_sign_as_worker(self, facade, daemon):
        await facade.connect()
        daemon.results["Filecoin.WalletSign"] = None

        with pytest.raises(ChainRPCError) as exc_info:
            await facade.sign_as_worker(b"msg")

        assert exc_info.value.method == "Filecoin.WalletSign"

    @pytest.mark.asyncio
    async def test_malformed_node_status_fails_startup(self, facade, daemon):
        daemon.results["Filecoin.NodeStatus"] = {"SyncStatus": {"Epoch": HEAD}}

        with pytest.raises(StartupError, match="node status"):
            await facade.connect()

    @pytest.mark.asyncio
    async def test_gateway_request_fails_with_client_error(
        self, facade, daemon, envelope_json
    ):
        """A malformed beacon while authenticating stays inside the hierarchy."""
        sent = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return httpx.Response(200, content=envelope_json([]))

        await facade.connect()
        daemon.results["Filecoin.StateGetBeaconEntry"] = None
        gateway = SpadeGateway(
            "https://spade.test/sp",
            AuthTokenBuilder(facade),
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

        with pytest.raises(SpadeClientError):
            await gateway.list_eligible()

        assert sent == []
