# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Chain-anchored authentication for the deal engine API.

Exports:
    AuthCredential: Parsed/serializable FIL-SPID-V0 credential
    AuthTokenBuilder: Builds credentials through a chain facade
    build_auth_token: Builds a credential from explicit inputs
"""

from .token import (
    AUTH_SCHEME,
    AuthCredential,
    AuthTokenBuilder,
    build_auth_token,
    signing_message,
)

__all__ = [
    "AUTH_SCHEME",
    "AuthCredential",
    "AuthTokenBuilder",
    "build_auth_token",
    "signing_message",
]
