# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""Reservation workflow for eligible pieces.

Exports:
    ReservationOrchestrator: Runs one poll-and-reserve cycle per call
    EligibilityCache: Short-lived cache of the eligible-pieces listing
    ReservationTracker: Set of pieces already attempted by this process
"""

from .cache import CachedListing, CacheResult, EligibilityCache
from .orchestrator import ReservationOrchestrator
from .tracker import ReservationTracker

__all__ = [
    "CacheResult",
    "CachedListing",
    "EligibilityCache",
    "ReservationOrchestrator",
    "ReservationTracker",
]
