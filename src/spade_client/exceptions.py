# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Exception classes for the Spade client library.

This module defines the exception hierarchy used throughout the library.
All exceptions inherit from SpadeClientError, making it easy to catch
every client-related failure with a single except clause while still
telling the individual failure kinds apart:

- SpadeTransportError: the request never produced an HTTP response
- HTTPStatusError / UnauthorizedError: the service answered with a non-200 status
- ResponseDecodeError: the response body is not a valid envelope
- RemoteRejectionError: a 200 response whose envelope carries an error slug
- NoEligiblePieceError: every listed piece has already been attempted
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types.error_codes import APIErrorCode, ErrorAction, ErrorCategory


class SpadeClientError(Exception):
    """Base exception for all Spade client errors.

    Example:
        try:
            piece_cid = await orchestrator.reserve_next()
        except SpadeClientError as e:
            logger.error(f"Poll cycle failed: {e}")
    """

    pass


class SpadeTransportError(SpadeClientError):
    """Raised when a request to the deal engine fails below the HTTP layer.

    Connection refusals, TLS failures and timeouts all end up here. The
    original httpx exception is chained as ``__cause__``.

    Attributes:
        endpoint: The API path that was being requested.
    """

    def __init__(self, message: str, endpoint: str | None = None):
        super().__init__(message)
        self.endpoint = endpoint


class HTTPStatusError(SpadeClientError):
    """Raised when the deal engine answers with a status other than 200.

    Attributes:
        status_code: The HTTP status code returned.
        body: The raw response body, kept for diagnostics.
        endpoint: The API path that was requested.

    Example:
        try:
            await gateway.list_eligible()
        except HTTPStatusError as e:
            logger.debug("spade returned %d: %r", e.status_code, e.body)
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        body: bytes = b"",
        endpoint: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.endpoint = endpoint


class UnauthorizedError(HTTPStatusError):
    """Raised when the deal engine rejects the request signature (HTTP 401).

    This is never retried automatically: a 401 means the credential itself
    is wrong (wrong worker key, wrong provider address, clock/epoch skew),
    and repeating the call will not fix it.
    """

    def __init__(self, body: bytes = b"", endpoint: str | None = None):
        super().__init__(
            "spade API returned 401 (Unauthorized) - wrong token?",
            status_code=401,
            body=body,
            endpoint=endpoint,
        )


class ResponseDecodeError(SpadeClientError):
    """Raised when a response body cannot be decoded into its envelope.

    Attributes:
        body: The raw response body that failed to decode.
    """

    def __init__(self, message: str, body: bytes = b""):
        super().__init__(message)
        self.body = body


class RemoteRejectionError(SpadeClientError):
    """Raised when the deal engine returns an envelope with an error slug.

    The transport succeeded (HTTP 200) but the service refused the call.
    The slug is the error identity and is used verbatim as the message so
    operators can look it up directly.

    Attributes:
        slug: The error slug, e.g. ``"ErrTooManyReplicas"``.
        code: The classified APIErrorCode, or None for unknown codes.
        error_lines: Human readable detail lines sent by the service.

    Example:
        try:
            await gateway.invoke(piece_cid, tenant_policy)
        except RemoteRejectionError as e:
            if e.action is ErrorAction.RETRY_LATER:
                ...
    """

    def __init__(
        self,
        slug: str,
        code: APIErrorCode | None = None,
        error_lines: list[str] | None = None,
    ):
        super().__init__(slug)
        self.slug = slug
        self.code = code
        self.error_lines = error_lines or []

    @property
    def category(self) -> ErrorCategory | None:
        """Rejection category, or None when the code is not recognised."""
        return self.code.category if self.code is not None else None

    @property
    def action(self) -> ErrorAction:
        """What the caller should do about this rejection."""
        from .types.error_codes import ErrorAction

        return self.code.action if self.code is not None else ErrorAction.ABORT

    @property
    def is_over_replicated(self) -> bool:
        """True if the piece already has enough replicas and should be skipped."""
        from .types.error_codes import ErrorAction

        return self.action is ErrorAction.ABANDON_PIECE


class NoEligiblePieceError(SpadeClientError):
    """Raised when every eligible piece has already been attempted.

    Attributes:
        listed: Number of pieces in the eligibility listing that was scanned.
    """

    def __init__(
        self,
        message: str = "no eligible pieces are valid to be requested",
        listed: int = 0,
    ):
        super().__init__(message)
        self.listed = listed


class SigningError(SpadeClientError):
    """Raised when the worker key could not sign the authentication message.

    Without a signature no credential can be produced, so the operation
    that needed it cannot proceed.
    """

    pass


class ChainRPCError(SpadeClientError):
    """Raised when a Lotus JSON-RPC call fails.

    Attributes:
        method: The JSON-RPC method name, e.g. ``"Filecoin.NodeStatus"``.
        code: The JSON-RPC error code, if the node returned one.
    """

    def __init__(self, message: str, method: str, code: int | None = None):
        super().__init__(message)
        self.method = method
        self.code = code


class StartupError(SpadeClientError):
    """Raised when a one-shot startup check fails.

    Covers an unreachable or out-of-sync chain node and an unreachable
    deal engine. The library never exits the process itself; bootstrap
    code decides what to do with this.

    Example:
        try:
            await client.start()
        except StartupError as e:
            logger.error(f"Cannot start: {e}")
            raise SystemExit(1)
    """

    pass
