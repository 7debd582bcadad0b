"""
Event Contracts

Immutable records that flow between layers:

- Kernel input events: the accepted inputs, as stored in the event log
- Audit and metric records, as collected by the observability layer

All types are frozen. No behavior beyond deterministic fingerprinting.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple, Union
from enum import Enum

from .base import ActionId, Intent, Time


# =============================================================================
# KERNEL INPUT EVENTS
# =============================================================================

class KernelEventKind(Enum):
    """The three kinds of kernel input."""
    DECLARE = "declare"
    OBSERVE = "observe"
    ADVANCE = "advance"


@dataclass(frozen=True)
class IntentDeclared:
    """An intent accepted by declare_intent."""
    intent: Intent

    kind = KernelEventKind.DECLARE

    def fingerprint(self) -> str:
        return f"{self.kind.value}|{self.intent.fingerprint()}"


@dataclass(frozen=True)
class ActionObserved:
    """An observation accepted by observe_action."""
    action: ActionId
    time: Time

    kind = KernelEventKind.OBSERVE

    def fingerprint(self) -> str:
        return f"{self.kind.value}|{self.action.hex()}|{self.time}"


@dataclass(frozen=True)
class TimeAdvanced:
    """A clock move accepted by advance_time."""
    to: Time

    kind = KernelEventKind.ADVANCE

    def fingerprint(self) -> str:
        return f"{self.kind.value}|{self.to}"


KernelEvent = Union[IntentDeclared, ActionObserved, TimeAdvanced]


# =============================================================================
# AUDIT AND METRICS
# =============================================================================

class AuditEventType(Enum):
    """Explicit audit event types."""
    DECLARATION = "declaration"
    OBSERVATION = "observation"
    TIME_ADVANCE = "time_advance"
    ABSENCE = "absence"
    ERROR = "error"


@dataclass(frozen=True)
class AuditLogEntry:
    """Immutable audit log entry, stamped with logical time."""
    entry_id: str
    event_type: AuditEventType
    at_time: Time
    action: str
    entity_id: Optional[str] = None
    metadata: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        for k, v in self.metadata:
            if k == key:
                return v
        return default


@dataclass(frozen=True)
class MetricPoint:
    """Immutable metric data point."""
    metric_name: str
    value: float
    at_time: Time
    labels: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)
