# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Protocol definitions for pluggable Spade client components.

Available protocols:
- ChainFacadeProtocol: Interface to the chain node (epoch, beacon, worker signing)
"""

from .chain import ChainFacadeProtocol

__all__ = ["ChainFacadeProtocol"]
