# Copyright 2026 Seth Bang
# SPDX-License-Identifier: Apache-2.0
"""
Metrics collector backed by prometheus_client with a dict mirror.

Usage:
    >>> from spade_client.observability import MetricsCollector
    >>> collector = MetricsCollector()
    >>> collector.inc_counter(
    ...     'spade_client_reservations_total', labels={'outcome': 'reserved'}
    ... )
    >>> collector.get_metrics()

Thread Safety:
    All operations are thread-safe. Uses RLock for reentrant locking.
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, ClassVar

from prometheus_client import REGISTRY, CollectorRegistry, Counter

from .constants import (
    CACHE_HITS_TOTAL,
    CACHE_MISSES_TOTAL,
    HTTP_RESPONSES_TOTAL,
    POLL_CYCLES_TOTAL,
    REMOTE_REJECTIONS_TOTAL,
    RESERVATIONS_TOTAL,
    TRANSPORT_ERRORS_TOTAL,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetricDefinition:
    """Definition for a counter that can be instantiated."""

    name: str
    description: str
    label_names: tuple[str, ...] = ()


METRIC_DEFINITIONS: dict[str, MetricDefinition] = {
    d.name: d
    for d in (
        MetricDefinition(POLL_CYCLES_TOTAL, "Total reservation poll cycles"),
        MetricDefinition(
            RESERVATIONS_TOTAL, "Reservation attempts by outcome", ("outcome",)
        ),
        MetricDefinition(
            REMOTE_REJECTIONS_TOTAL, "Deal engine refusals by error slug", ("slug",)
        ),
        MetricDefinition(CACHE_HITS_TOTAL, "Eligibility listings served from cache"),
        MetricDefinition(CACHE_MISSES_TOTAL, "Eligibility listings fetched remotely"),
        MetricDefinition(
            HTTP_RESPONSES_TOTAL,
            "Deal engine HTTP responses by endpoint and status",
            ("endpoint", "status"),
        ),
        MetricDefinition(
            TRANSPORT_ERRORS_TOTAL,
            "Deal engine requests that failed without a response",
            ("endpoint",),
        ),
    )
}


class MetricsCollector:
    """
    Counter collector exporting to Prometheus and to a plain dict.

    Only the counters declared in METRIC_DEFINITIONS are accepted. To
    prevent unbounded memory growth, at most MAX_LABEL_COMBINATIONS unique
    label combinations are tracked per metric.
    """

    MAX_LABEL_COMBINATIONS: ClassVar[int] = 1000

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """
        Args:
            registry: Prometheus registry to register counters with. Defaults
                to the global registry; pass a fresh CollectorRegistry in tests.
        """
        self._registry = registry if registry is not None else REGISTRY
        self._counters: dict[str, dict[str, int]] = defaultdict(
            lambda: defaultdict(int)
        )
        self._prom_counters: dict[str, Counter | None] = {}
        self._label_combinations: dict[str, set[str]] = defaultdict(set)
        self._lock = threading.RLock()

    def _labels_to_key(self, labels: dict[str, str] | None) -> str:
        if not labels:
            return ""
        return ",".join(f"{k}={v}" for k, v in sorted(labels.items()))

    def _check_cardinality(self, name: str, label_key: str) -> bool:
        if label_key in self._label_combinations[name]:
            return True
        if len(self._label_combinations[name]) >= self.MAX_LABEL_COMBINATIONS:
            logger.warning(
                f"Cardinality limit ({self.MAX_LABEL_COMBINATIONS}) reached "
                f"for metric {name}. Dropping label combination: {label_key}"
            )
            return False
        self._label_combinations[name].add(label_key)
        return True

    def _get_or_create_prom_counter(self, defn: MetricDefinition) -> Counter | None:
        if defn.name not in self._prom_counters:
            try:
                self._prom_counters[defn.name] = Counter(
                    defn.name,
                    defn.description,
                    list(defn.label_names),
                    registry=self._registry,
                )
            except ValueError as e:
                # Already registered, e.g. a second client on the global registry
                logger.warning(f"Failed to create Prometheus counter {defn.name}: {e}")
                self._prom_counters[defn.name] = None
        return self._prom_counters[defn.name]

    def inc_counter(
        self,
        name: str,
        value: int = 1,
        labels: dict[str, str] | None = None,
    ) -> None:
        """
        Increment a counter.

        Raises:
            KeyError: If ``name`` is not a declared metric.
        """
        defn = METRIC_DEFINITIONS[name]
        label_key = self._labels_to_key(labels)

        with self._lock:
            if not self._check_cardinality(name, label_key):
                return
            self._counters[name][label_key] += value

            counter = self._get_or_create_prom_counter(defn)
            if counter is None:
                return
            if defn.label_names:
                counter.labels(**(labels or {})).inc(value)
            else:
                counter.inc(value)

    def get_counter(self, name: str, labels: dict[str, str] | None = None) -> int:
        """Current value of a counter (0 if never incremented)."""
        with self._lock:
            return self._counters.get(name, {}).get(self._labels_to_key(labels), 0)

    def get_metrics(self) -> dict[str, Any]:
        """Snapshot of all counters as nested dicts, for JSON export."""
        with self._lock:
            return {name: dict(values) for name, values in self._counters.items()}


__all__ = ["METRIC_DEFINITIONS", "MetricDefinition", "MetricsCollector"]
