"""
Contracts Module

This module defines the immutable types shared by every layer of the
kernel. No layer may import implementation details from another layer;
they meet only through these contracts.

DESIGN PRINCIPLES:
==================
1. All contract types are immutable (frozen dataclasses)
2. All failures are enumerated in ErrorCode
3. Time is logical, never read from the wall clock
4. Identifiers are fixed-width opaque tokens
"""

from .base import (
    Time, IntentId, ActionId, ID_WIDTH,
    make_id, require_id, require_time, short_id,
    ErrorCode, Error,
    Intent, Absence, IntentStatus,
)
from .violations import (
    ContractViolation, PrematureDeadline, LateObservation,
    TimeRegression, KernelHalted,
)
from .events import (
    KernelEventKind, KernelEvent, IntentDeclared, ActionObserved, TimeAdvanced,
    AuditEventType, AuditLogEntry, MetricPoint,
)
from .temporal import LogSequence, LogEntry

__all__ = [
    'Time',
    'IntentId',
    'ActionId',
    'ID_WIDTH',
    'make_id',
    'require_id',
    'require_time',
    'short_id',
    'ErrorCode',
    'Error',
    'Intent',
    'Absence',
    'IntentStatus',
    'ContractViolation',
    'PrematureDeadline',
    'LateObservation',
    'TimeRegression',
    'KernelHalted',
    'KernelEventKind',
    'KernelEvent',
    'IntentDeclared',
    'ActionObserved',
    'TimeAdvanced',
    'AuditEventType',
    'AuditLogEntry',
    'MetricPoint',
    'LogSequence',
    'LogEntry',
]
