# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
FIL-SPID-V0 authentication credentials.

A credential proves control of a storage provider's worker key at a given
chain epoch. The signed message is three ASCII spaces, followed by the
randomness beacon data for the epoch, followed by an optional
request-specific payload. The header value has the form::

    FIL-SPID-V0 <epoch>;<provider address>;<b64 signature>[;<b64 payload>]

Credentials are built fresh for each outgoing request and never cached.
"""

import base64
import binascii
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from ..exceptions import SigningError
from ..protocols.chain import ChainFacadeProtocol

logger = logging.getLogger(__name__)

AUTH_SCHEME = "FIL-SPID-V0"
MESSAGE_PADDING = b"   "

Signer = Callable[[bytes], Awaitable[bytes]]


@dataclass(frozen=True)
class AuthCredential:
    """
    A signed FIL-SPID-V0 credential.

    Attributes:
        epoch: Chain epoch whose beacon entry was signed
        provider_address: Storage provider the signature vouches for
        signature: Raw signature bytes from the worker key
        optional_payload: Request-specific bytes bound into the signature
        scheme: Credential scheme name
    """

    epoch: int
    provider_address: str
    signature: bytes
    optional_payload: bytes = b""
    scheme: str = AUTH_SCHEME

    def serialize(self) -> str:
        """Render the credential as an ``Authorization`` header value."""
        header = "%s %d;%s;%s" % (
            self.scheme,
            self.epoch,
            self.provider_address,
            base64.b64encode(self.signature).decode("ascii"),
        )
        if self.optional_payload:
            header += ";" + base64.b64encode(self.optional_payload).decode("ascii")
        return header

    def __str__(self) -> str:
        return self.serialize()

    @classmethod
    def parse(cls, header: str) -> "AuthCredential":
        """
        Parse a header value produced by serialize().

        Raises:
            ValueError: If the header is not a well-formed credential.
        """
        scheme, sep, rest = header.partition(" ")
        if not sep or scheme != AUTH_SCHEME:
            raise ValueError(f"unsupported credential scheme: {scheme!r}")
        parts = rest.split(";")
        if len(parts) not in (3, 4):
            raise ValueError("credential must have 3 or 4 ';'-separated fields")
        try:
            epoch = int(parts[0])
            signature = base64.b64decode(parts[2], validate=True)
            payload = base64.b64decode(parts[3], validate=True) if len(parts) == 4 else b""
        except (ValueError, binascii.Error) as e:
            raise ValueError(f"malformed credential: {e}") from e
        return cls(
            epoch=epoch,
            provider_address=parts[1],
            signature=signature,
            optional_payload=payload,
            scheme=scheme,
        )


def signing_message(beacon: bytes, optional_payload: bytes = b"") -> bytes:
    """Bytes the worker key signs for a credential."""
    return MESSAGE_PADDING + beacon + optional_payload


async def build_auth_token(
    epoch: int,
    beacon: bytes,
    sign: Signer,
    provider_address: str,
    optional_payload: bytes = b"",
) -> str:
    """
    Build a serialized credential from its inputs.

    Args:
        epoch: Chain epoch the beacon entry belongs to
        beacon: Randomness beacon data for ``epoch``
        sign: Coroutine signing a message with the worker key
        provider_address: Storage provider address
        optional_payload: Request-specific bytes to bind into the signature

    Returns:
        The ``Authorization`` header value.

    Raises:
        SigningError: If ``sign`` fails.
    """
    message = signing_message(beacon, optional_payload)
    try:
        signature = await sign(message)
    except SigningError:
        raise
    except Exception as e:
        raise SigningError(f"error signing with wallet: {e}") from e

    return AuthCredential(
        epoch=epoch,
        provider_address=provider_address,
        signature=signature,
        optional_payload=optional_payload,
    ).serialize()


class AuthTokenBuilder:
    """Builds credentials for the provider identity behind a chain facade."""

    def __init__(self, chain: ChainFacadeProtocol) -> None:
        self._chain = chain

    @property
    def provider_address(self) -> str:
        return self._chain.provider_address

    async def build(self, optional_payload: str | bytes = b"") -> str:
        """
        Build a credential anchored at the node's current epoch.

        Args:
            optional_payload: Request-specific data to bind into the
                signature. Strings are UTF-8 encoded.
        """
        if isinstance(optional_payload, str):
            optional_payload = optional_payload.encode("utf-8")

        epoch = await self._chain.current_epoch()
        beacon = await self._chain.beacon_entry(epoch)

        logger.debug(
            "Building %s credential for %s at epoch %d",
            AUTH_SCHEME,
            self._chain.provider_address,
            epoch,
        )
        return await build_auth_token(
            epoch=epoch,
            beacon=beacon,
            sign=self._chain.sign_as_worker,
            provider_address=self._chain.provider_address,
            optional_payload=optional_payload,
        )
