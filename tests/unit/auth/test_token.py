"""Tests for FIL-SPID-V0 credential construction."""

import base64

import pytest

from spade_client.auth import (
    AUTH_SCHEME,
    AuthCredential,
    AuthTokenBuilder,
    build_auth_token,
    signing_message,
)
from spade_client.exceptions import ChainRPCError, SigningError
from spade_client.protocols import ChainFacadeProtocol


async def _echo_sign(message: bytes) -> bytes:
    return b"sig:" + message


class TestBuildAuthToken:
    """Tests for the stateless build_auth_token function."""

    @pytest.mark.asyncio
    async def test_without_payload_has_no_trailing_segment(self):
        """An empty payload produces exactly three ';'-separated fields."""
        token = await build_auth_token(
            epoch=42,
            beacon=b"\x01\x02\x03",
            sign=_echo_sign,
            provider_address="f01000",
        )

        expected_sig = base64.b64encode(b"sig:   \x01\x02\x03").decode()
        assert token == f"FIL-SPID-V0 42;f01000;{expected_sig}"
        assert token.count(";") == 2

    @pytest.mark.asyncio
    async def test_with_payload_appends_encoded_payload(self):
        """A payload adds one trailing base64 segment."""
        payload = b"call=reserve_piece&piece_cid=baga&tenant_policy=p1"
        token = await build_auth_token(
            epoch=42,
            beacon=b"B",
            sign=_echo_sign,
            provider_address="f01000",
            optional_payload=payload,
        )

        fields = token.split(" ", 1)[1].split(";")
        assert len(fields) == 4
        assert base64.b64decode(fields[3]) == payload

    @pytest.mark.asyncio
    async def test_signed_message_is_padding_beacon_payload(self):
        """The signed bytes are 3 spaces, the beacon, then the raw payload."""
        seen = []

        async def sign(message: bytes) -> bytes:
            seen.append(message)
            return b"x"

        await build_auth_token(7, b"BEACON", sign, "f0", b"PAYLOAD")

        assert seen == [b"   BEACONPAYLOAD"]
        assert signing_message(b"BEACON", b"PAYLOAD") == b"   BEACONPAYLOAD"

    @pytest.mark.asyncio
    async def test_sign_failure_raises_signing_error(self):
        """Any signer failure becomes a SigningError with the cause chained."""

        async def sign(message: bytes) -> bytes:
            raise ChainRPCError("wallet locked", "Filecoin.WalletSign")

        with pytest.raises(SigningError) as exc_info:
            await build_auth_token(1, b"B", sign, "f0")

        assert isinstance(exc_info.value.__cause__, ChainRPCError)

    @pytest.mark.asyncio
    async def test_signing_error_passes_through_unwrapped(self):
        """A SigningError from the signer is not wrapped twice."""
        original = SigningError("no key")

        async def sign(message: bytes) -> bytes:
            raise original

        with pytest.raises(SigningError) as exc_info:
            await build_auth_token(1, b"B", sign, "f0")

        assert exc_info.value is original


class TestAuthCredential:
    """Tests for AuthCredential serialization and parsing."""

    def test_parse_round_trips_serialize(self):
        """parse() recovers every field written by serialize()."""
        cred = AuthCredential(
            epoch=123,
            provider_address="f09999",
            signature=b"\x00\xffsig",
            optional_payload=b"a=b",
        )

        parsed = AuthCredential.parse(cred.serialize())

        assert parsed == cred
        assert str(cred) == cred.serialize()

    def test_parse_rejects_other_scheme(self):
        """Headers using another scheme are refused."""
        with pytest.raises(ValueError, match="scheme"):
            AuthCredential.parse("Bearer abc")

    def test_parse_rejects_wrong_field_count(self):
        """Credentials must have 3 or 4 fields."""
        with pytest.raises(ValueError, match="fields"):
            AuthCredential.parse("FIL-SPID-V0 1;f0")

    def test_parse_rejects_bad_base64(self):
        """Malformed signature encoding is reported as ValueError."""
        with pytest.raises(ValueError, match="malformed"):
            AuthCredential.parse("FIL-SPID-V0 1;f0;***")

    def test_default_scheme(self):
        """The default scheme is FIL-SPID-V0."""
        cred = AuthCredential(epoch=1, provider_address="f0", signature=b"s")
        assert cred.scheme == AUTH_SCHEME == "FIL-SPID-V0"


class TestAuthTokenBuilder:
    """Tests for AuthTokenBuilder bound to a chain facade."""

    def test_fake_chain_satisfies_protocol(self, chain):
        """The fake chain used across tests implements ChainFacadeProtocol."""
        assert isinstance(chain, ChainFacadeProtocol)

    @pytest.mark.asyncio
    async def test_uses_current_epoch_and_its_beacon(self, chain):
        """The credential is anchored at the node's current epoch."""
        chain.epoch = 555
        builder = AuthTokenBuilder(chain)

        token = await builder.build()
        cred = AuthCredential.parse(token)

        assert cred.epoch == 555
        assert cred.provider_address == chain.address
        assert chain.signed == [b"   " + chain.beacon + b"555"]
        assert cred.signature == b"sig:" + chain.signed[0]

    @pytest.mark.asyncio
    async def test_string_payload_is_utf8_encoded(self, chain):
        """String payloads are signed and transported as UTF-8 bytes."""
        builder = AuthTokenBuilder(chain)

        cred = AuthCredential.parse(await builder.build("call=reserve_piece"))

        assert cred.optional_payload == b"call=reserve_piece"
        assert chain.signed[0].endswith(b"call=reserve_piece")

    @pytest.mark.asyncio
    async def test_fresh_signature_per_call(self, chain):
        """Nothing is cached between builds."""
        builder = AuthTokenBuilder(chain)

        await builder.build()
        chain.epoch += 1
        await builder.build()

        assert len(chain.signed) == 2
        assert chain.signed[0] != chain.signed[1]

    @pytest.mark.asyncio
    async def test_sign_failure_is_fatal(self, chain):
        """A signing failure aborts the build."""
        chain.sign_error = RuntimeError("ledger unplugged")
        builder = AuthTokenBuilder(chain)

        with pytest.raises(SigningError, match="ledger unplugged"):
            await builder.build()
