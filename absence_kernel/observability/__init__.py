"""
Observability & Audit Layer

RESPONSIBILITY: Audit log and metrics for kernel transitions
ALLOWED INPUTS: Audit records and metric points emitted by the kernel
OUTPUTS: AuditLogEntry lists, MetricPoint series, audit reports

WHAT THIS LAYER MUST NOT DO:
============================
- Modify kernel behavior
- Filter or interpret events (only record them)
- Read wall-clock time (all records carry logical time)
- Hold references to kernel-internal containers

BOUNDARY ENFORCEMENT:
=====================
- Receives immutable records only
- Append-only collectors
- Provides read-only copies of collected data
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
from enum import Enum
import hashlib

# ONLY import from contracts - never from other layers' implementations
from ..contracts.base import Time
from ..contracts.events import AuditEventType, AuditLogEntry, MetricPoint


# =============================================================================
# AUDIT COLLECTOR
# =============================================================================

class AuditCollector:
    """
    Append-only audit log.

    Entry ids are derived from sequence and content, so two kernels fed
    identical inputs produce identical audit logs.
    """

    def __init__(self):
        self._entries: List[AuditLogEntry] = []
        self._sequence: int = 0

    def next_entry_id(self, content: str) -> str:
        self._sequence += 1
        digest = hashlib.sha256(f"{self._sequence}|{content}".encode()).hexdigest()[:16]
        return f"audit_{digest}"

    def collect(self, entry: AuditLogEntry):
        """Collect an audit entry (append-only)."""
        self._entries.append(entry)

    def get_entries(
        self,
        event_type: Optional[AuditEventType] = None,
        since: Optional[Time] = None,
        until: Optional[Time] = None
    ) -> List[AuditLogEntry]:
        """Get entries, optionally filtered by type and logical time (inclusive)."""
        entries = self._entries

        if event_type:
            entries = [e for e in entries if e.event_type == event_type]
        if since is not None:
            entries = [e for e in entries if e.at_time >= since]
        if until is not None:
            entries = [e for e in entries if e.at_time <= until]

        return list(entries)

    @property
    def entry_count(self) -> int:
        return len(self._entries)


# =============================================================================
# METRICS COLLECTOR
# =============================================================================

class MetricType(Enum):
    """Types of metrics collected."""
    COUNTER = "counter"
    GAUGE = "gauge"


@dataclass
class MetricDefinition:
    """Definition of a metric to collect."""
    name: str
    metric_type: MetricType
    description: str
    labels: Tuple[str, ...] = field(default_factory=tuple)


class MetricsCollector:
    """
    Collect kernel metrics as append-only series of data points.

    Counters record increments; `total()` sums them. Gauges record
    absolute values; `get_latest()` reads the current one.
    """

    def __init__(self):
        self._metrics: Dict[str, List[MetricPoint]] = {}
        self._definitions: Dict[str, MetricDefinition] = {}
        self._register_default_metrics()

    def _register_default_metrics(self):
        """Register standard kernel metrics."""
        defaults = [
            MetricDefinition(
                name="intents_declared_total",
                metric_type=MetricType.COUNTER,
                description="Total number of accepted intent declarations"
            ),
            MetricDefinition(
                name="observations_recorded_total",
                metric_type=MetricType.COUNTER,
                description="Total number of accepted action observations"
            ),
            MetricDefinition(
                name="absences_derived_total",
                metric_type=MetricType.COUNTER,
                description="Total number of absences derived"
            ),
            MetricDefinition(
                name="current_time",
                metric_type=MetricType.GAUGE,
                description="Logical clock value after each advance"
            ),
            MetricDefinition(
                name="pending_intents",
                metric_type=MetricType.GAUGE,
                description="Intents whose deadline the clock has not reached"
            ),
            MetricDefinition(
                name="contract_violations_total",
                metric_type=MetricType.COUNTER,
                description="Fatal contract violations raised",
                labels=("kind",)
            ),
        ]

        for definition in defaults:
            self.register_metric(definition)

    def register_metric(self, definition: MetricDefinition):
        """Register a new metric definition."""
        self._definitions[definition.name] = definition
        if definition.name not in self._metrics:
            self._metrics[definition.name] = []

    def get_definition(self, metric_name: str) -> Optional[MetricDefinition]:
        return self._definitions.get(metric_name)

    def record(
        self,
        metric_name: str,
        value: float,
        at_time: Time,
        labels: Optional[Dict[str, str]] = None
    ):
        """Record a metric data point."""
        if metric_name not in self._metrics:
            self._metrics[metric_name] = []

        label_tuple = tuple(sorted(labels.items())) if labels else ()

        point = MetricPoint(
            metric_name=metric_name,
            value=value,
            at_time=at_time,
            labels=label_tuple
        )
        self._metrics[metric_name].append(point)

    def get_metric(
        self,
        metric_name: str,
        labels: Optional[Dict[str, str]] = None
    ) -> List[MetricPoint]:
        """Get metric data points, optionally restricted to a label set."""
        points = self._metrics.get(metric_name, [])

        if labels:
            wanted = set(labels.items())
            points = [p for p in points if wanted.issubset(p.labels)]

        return list(points)

    def get_latest(self, metric_name: str) -> Optional[MetricPoint]:
        """Get the latest value for a metric."""
        points = self._metrics.get(metric_name, [])
        return points[-1] if points else None

    def total(self, metric_name: str, labels: Optional[Dict[str, str]] = None) -> float:
        """Sum of recorded values (meaningful for counters)."""
        return sum(p.value for p in self.get_metric(metric_name, labels))

    def get_all_metrics(self) -> Dict[str, List[MetricPoint]]:
        """Get all metrics (copy)."""
        return {k: list(v) for k, v in self._metrics.items()}

    def compute_aggregates(self, metric_name: str) -> Dict[str, float]:
        """Compute aggregate statistics for a metric."""
        points = self.get_metric(metric_name)

        if not points:
            return {}

        values = [p.value for p in points]

        return {
            'count': len(values),
            'sum': sum(values),
            'min': min(values),
            'max': max(values),
            'avg': sum(values) / len(values),
        }


# =============================================================================
# OBSERVABILITY ENGINE
# =============================================================================

@dataclass
class ObservabilityConfig:
    """Configuration for observability engine."""
    enable_audit: bool = True
    enable_metrics: bool = True


class ObservabilityEngine:
    """
    Central Observability Engine.

    BOUNDARY ENFORCEMENT:
    - ONLY observes, never modifies
    - Disabled collectors turn every call into a no-op
    """

    def __init__(self, config: Optional[ObservabilityConfig] = None):
        self._config = config or ObservabilityConfig()
        self._audit = AuditCollector() if self._config.enable_audit else None
        self._metrics = MetricsCollector() if self._config.enable_metrics else None

    @property
    def config(self) -> ObservabilityConfig:
        return self._config

    def log_audit(
        self,
        event_type: AuditEventType,
        action: str,
        at_time: Time,
        entity_id: Optional[str] = None,
        metadata: Optional[Dict[str, str]] = None
    ) -> Optional[AuditLogEntry]:
        """Build and collect an audit entry. Returns None when auditing is off."""
        if not self._audit:
            return None

        meta = tuple(metadata.items()) if metadata else ()
        entry = AuditLogEntry(
            entry_id=self._audit.next_entry_id(
                f"{event_type.value}|{action}|{at_time}|{entity_id or ''}|{meta}"
            ),
            event_type=event_type,
            at_time=at_time,
            action=action,
            entity_id=entity_id,
            metadata=meta
        )
        self._audit.collect(entry)
        return entry

    def collect_metric(
        self,
        metric_name: str,
        value: float,
        at_time: Time,
        labels: Optional[Dict[str, str]] = None
    ):
        """Collect a metric data point."""
        if self._metrics:
            self._metrics.record(metric_name, value, at_time, labels)

    def get_audit_log(self) -> Optional[AuditCollector]:
        """Get audit collector (read-only access)."""
        return self._audit

    def get_metrics(self) -> Optional[MetricsCollector]:
        """Get metrics collector (read-only access)."""
        return self._metrics

    def generate_audit_report(self) -> Dict:
        """Generate a summary of everything collected so far."""
        entries = self._audit.get_entries() if self._audit else []

        by_type: Dict[str, int] = {}
        for entry in entries:
            by_type[entry.event_type.value] = by_type.get(entry.event_type.value, 0) + 1

        report = {
            'total_entries': len(entries),
            'by_event_type': by_type,
            'time_range': {
                'start': entries[0].at_time if entries else None,
                'end': entries[-1].at_time if entries else None,
            },
        }

        if self._metrics:
            report['metrics'] = {
                'intents_declared': self._metrics.total("intents_declared_total"),
                'observations_recorded': self._metrics.total("observations_recorded_total"),
                'absences_derived': self._metrics.total("absences_derived_total"),
                'contract_violations': self._metrics.total("contract_violations_total"),
            }

        return report
