"""
Replay Engine
=============

Rebuilds kernel state from the input event log.

INVARIANT: Replay is deterministic.
Same log up to the same sequence = same kernel state hash.

Each replay feeds the recorded inputs, in order, into a fresh kernel.
A violation during replay can only come from a log that does not match
what the kernel accepted; it is reported as a failed ReplayResult.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import KernelConfig
from ..contracts.base import Error, IntentId
from ..contracts.temporal import LogSequence
from ..contracts.violations import ContractViolation, KernelHalted
from ..observability import ObservabilityConfig
from .event_log import ImmutableEventLog
from .kernel import Kernel, KernelSnapshot


@dataclass(frozen=True)
class ReplayResult:
    """
    Result of replay operation.

    Contains the rebuilt state and the absences derived by the entry at
    `at_sequence` itself. The diff depends only on the log, never on
    earlier calls to the engine.
    """
    success: bool
    at_sequence: LogSequence
    snapshot: Optional[KernelSnapshot] = None
    error: Optional[Error] = None
    new_absences: Tuple[IntentId, ...] = ()


class ReplayEngine:
    """
    Replays an ImmutableEventLog into fresh kernels.

    GUARANTEES:
    ===========
    1. Replay produces identical state for identical log
    2. The replayed kernel records nothing (no log, no audit, no metrics)
    3. The source log is only read
    """

    def __init__(self, log: ImmutableEventLog):
        self._log = log

    def replay_to(self, sequence: LogSequence) -> ReplayResult:
        """Rebuild kernel state after applying entries 1..sequence."""
        is_valid, error = self._log.verify_integrity()
        if not is_valid:
            return ReplayResult(success=False, at_sequence=sequence, error=error)

        kernel = self._fresh_kernel()
        before_last = frozenset()
        for entry in self._log.replay(until_seq=sequence):
            before_last = kernel.absences()
            try:
                kernel.apply(entry.event)
            except ContractViolation as violation:
                return ReplayResult(
                    success=False,
                    at_sequence=sequence,
                    error=violation.error.with_context(
                        "log_sequence", str(entry.sequence.value)
                    )
                )

        snapshot = kernel.snapshot()

        return ReplayResult(
            success=True,
            at_sequence=sequence,
            snapshot=snapshot,
            new_absences=tuple(sorted(snapshot.absences - before_last))
        )

    def replay_full(self) -> ReplayResult:
        """Replay entire log from start."""
        return self.replay_to(self._log.state.head_sequence)

    def get_state_at(self, sequence: LogSequence) -> Optional[KernelSnapshot]:
        """Kernel state at a specific sequence (point-in-time query)."""
        result = self.replay_to(sequence)
        if result.success:
            return result.snapshot
        return None

    def verify_determinism(self) -> Tuple[bool, Optional[str]]:
        """
        Replay twice and compare state hashes.
        Returns (is_deterministic, difference_description).
        """
        first = self.replay_full()
        second = self.replay_full()

        if not (first.success and second.success):
            error = first.error or second.error
            return (False, f"Replay failed: {error.message}")

        if first.snapshot.state_hash != second.snapshot.state_hash:
            return (False, f"Hash mismatch: {first.snapshot.state_hash} != {second.snapshot.state_hash}")

        return (True, None)

    def verify_against(self, kernel: Kernel) -> Tuple[bool, Optional[str]]:
        """Compare the fully replayed state with a live kernel."""
        result = self.replay_full()
        if not result.success:
            return (False, f"Replay failed: {result.error.message}")

        try:
            live_hash = kernel.state_hash()
        except KernelHalted as halted:
            return (False, f"Kernel halted: {halted}")
        if result.snapshot.state_hash != live_hash:
            return (False, f"Hash mismatch: replayed {result.snapshot.state_hash} != live {live_hash}")

        return (True, None)

    @staticmethod
    def _fresh_kernel() -> Kernel:
        return Kernel(KernelConfig(
            enable_event_log=False,
            observability=ObservabilityConfig(enable_audit=False, enable_metrics=False)
        ))
