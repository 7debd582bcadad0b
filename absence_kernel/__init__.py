"""
Absence Kernel

A logical-clock state machine that tracks promises to act by a deadline
(intents), records when actions actually happen (observations), and
derives irrevocable records that a promised action never happened in
time (absences).

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Responsibility: Immutable types, identifiers, error codes, violations
   - MUST NOT: Hold state or import from other layers

2. TEMPORAL (temporal/)
   - Responsibility: Logical clock, kernel, input log, replay
   - Allowed inputs: declare_intent, observe_action, advance_time
   - MUST NOT: Read wall-clock time, retract an absence, accept late input

3. OBSERVABILITY (observability/)
   - Responsibility: Audit log and metrics of kernel transitions
   - MUST NOT: Modify kernel behavior

CONSTRAINTS ENFORCED:
=====================
- Monotonic: clock, absence set and earliest observations only move one way
- Fatal contracts: late or premature input raises and halts the kernel
- Deterministic: identical inputs always produce identical state hashes
- Single owner: no internal locking; hosts serialize access
"""

from .config import KernelConfig
from .contracts import (
    Time, IntentId, ActionId, ID_WIDTH, make_id,
    Intent, Absence, IntentStatus,
    ContractViolation, PrematureDeadline, LateObservation,
    TimeRegression, KernelHalted,
)
from .observability import ObservabilityConfig, ObservabilityEngine
from .temporal import Kernel, KernelSnapshot, LogicalClock, ImmutableEventLog, ReplayEngine

__version__ = "0.1.0"

__all__ = [
    'KernelConfig',
    'ObservabilityConfig',
    'ObservabilityEngine',
    'Time',
    'IntentId',
    'ActionId',
    'ID_WIDTH',
    'make_id',
    'Intent',
    'Absence',
    'IntentStatus',
    'ContractViolation',
    'PrematureDeadline',
    'LateObservation',
    'TimeRegression',
    'KernelHalted',
    'Kernel',
    'KernelSnapshot',
    'LogicalClock',
    'ImmutableEventLog',
    'ReplayEngine',
]
