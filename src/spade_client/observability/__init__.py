# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Observability for the Spade client.

Exports:
    MetricsCollector: Prometheus-backed counter collector.
    Metric name constants from .constants.
"""

from .collector import METRIC_DEFINITIONS, MetricDefinition, MetricsCollector
from .constants import (
    CACHE_HITS_TOTAL,
    CACHE_MISSES_TOTAL,
    HTTP_RESPONSES_TOTAL,
    METRIC_PREFIX,
    OUTCOME_ABANDONED,
    OUTCOME_ERROR,
    OUTCOME_REJECTED,
    OUTCOME_RESERVED,
    POLL_CYCLES_TOTAL,
    REMOTE_REJECTIONS_TOTAL,
    RESERVATIONS_TOTAL,
    TRANSPORT_ERRORS_TOTAL,
)

__all__ = [
    "CACHE_HITS_TOTAL",
    "CACHE_MISSES_TOTAL",
    "HTTP_RESPONSES_TOTAL",
    "METRIC_DEFINITIONS",
    "METRIC_PREFIX",
    "OUTCOME_ABANDONED",
    "OUTCOME_ERROR",
    "OUTCOME_REJECTED",
    "OUTCOME_RESERVED",
    "POLL_CYCLES_TOTAL",
    "REMOTE_REJECTIONS_TOTAL",
    "RESERVATIONS_TOTAL",
    "TRANSPORT_ERRORS_TOTAL",
    "MetricDefinition",
    "MetricsCollector",
]
