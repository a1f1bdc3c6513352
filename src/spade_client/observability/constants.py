# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metric name constants following Prometheus naming conventions.

All metric names use the `spade_client_` prefix.

Naming Conventions:
    - Counter metrics end with `_total`

Label Best Practices:
    To prevent label cardinality explosion, use only:
    - `outcome` - Reservation outcome (enum: reserved, rejected, abandoned, error)
    - `slug` - Remote error slug (closed set published by the deal engine)
    - `endpoint` - API path (closed set)
    - `status` - HTTP status code as string

    NEVER use:
    - `piece_cid` - Unique per piece (unbounded!)
"""


# =============================================================================
# Global Prefix
# =============================================================================

METRIC_PREFIX = "spade_client"
"""Prefix for all Prometheus metrics in this library."""


# =============================================================================
# Polling Metrics (reservation/orchestrator.py)
# =============================================================================

POLL_CYCLES_TOTAL = f"{METRIC_PREFIX}_poll_cycles_total"
"""Total reserve_next() invocations."""

RESERVATIONS_TOTAL = f"{METRIC_PREFIX}_reservations_total"
"""Total reservation attempts, labelled by outcome."""

REMOTE_REJECTIONS_TOTAL = f"{METRIC_PREFIX}_remote_rejections_total"
"""Total refusals from the deal engine, labelled by error slug."""


# =============================================================================
# Cache Metrics (reservation/cache.py)
# =============================================================================

CACHE_HITS_TOTAL = f"{METRIC_PREFIX}_eligibility_cache_hits_total"
"""Eligibility listings served from cache."""

CACHE_MISSES_TOTAL = f"{METRIC_PREFIX}_eligibility_cache_misses_total"
"""Eligibility listings fetched from the deal engine."""


# =============================================================================
# Gateway Metrics (gateway.py)
# =============================================================================

HTTP_RESPONSES_TOTAL = f"{METRIC_PREFIX}_http_responses_total"
"""HTTP responses from the deal engine, labelled by endpoint and status."""

TRANSPORT_ERRORS_TOTAL = f"{METRIC_PREFIX}_transport_errors_total"
"""Requests that failed before an HTTP response was received."""


# =============================================================================
# Label values
# =============================================================================

OUTCOME_RESERVED = "reserved"
OUTCOME_REJECTED = "rejected"
OUTCOME_ABANDONED = "abandoned"
OUTCOME_ERROR = "error"


__all__ = [
    "CACHE_HITS_TOTAL",
    "CACHE_MISSES_TOTAL",
    "HTTP_RESPONSES_TOTAL",
    "METRIC_PREFIX",
    "OUTCOME_ABANDONED",
    "OUTCOME_ERROR",
    "OUTCOME_REJECTED",
    "OUTCOME_RESERVED",
    "POLL_CYCLES_TOTAL",
    "REMOTE_REJECTIONS_TOTAL",
    "RESERVATIONS_TOTAL",
    "TRANSPORT_ERRORS_TOTAL",
]
