"""
Temporal Layer
==============

The kernel and everything that moves with its clock.

INVARIANTS:
- Logical time only; the clock never moves backward
- Absences are derived by advancing time and never removed
- Accepted inputs are appended to a hash-chained log
- Same log -> same kernel state (deterministic replay)

Modules:
- clock: Monotonic logical clock
- kernel: Intent / observation / absence state machine
- event_log: Append-only record of accepted inputs
- replay: Rebuild kernel state from the log
"""

from .clock import LogicalClock
from .kernel import Kernel, KernelSnapshot
from .event_log import ImmutableEventLog, LogState
from .replay import ReplayEngine, ReplayResult

__all__ = [
    'LogicalClock',
    'Kernel',
    'KernelSnapshot',
    'ImmutableEventLog',
    'LogState',
    'ReplayEngine',
    'ReplayResult',
]
