"""
Immutable Event Log
===================

Append-only record of accepted kernel inputs with sequence numbering.

INVARIANTS:
- No updates or deletes - append only
- Every entry has monotonic sequence number
- Hash chain for integrity verification
- Deterministic replay: same entries -> same kernel state

Rejected inputs (contract violations) never reach the log.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, Optional, List, Tuple

from ..contracts.base import Error, ErrorCode
from ..contracts.events import KernelEvent
from ..contracts.temporal import LogSequence, LogEntry


@dataclass(frozen=True)
class LogState:
    """
    Immutable snapshot of log state.
    """
    head_sequence: LogSequence
    head_hash: str
    entry_count: int

    @staticmethod
    def empty() -> 'LogState':
        return LogState(
            head_sequence=LogSequence(0),
            head_hash="",
            entry_count=0
        )


class ImmutableEventLog:
    """
    Append-only event log.

    GUARANTEES:
    ===========
    1. NO updates - entries are immutable once written
    2. NO deletes - log only grows
    3. Deterministic - same events in same order -> same hashes
    4. Verifiable - hash chain ensures integrity
    """

    def __init__(self):
        self._entries: List[LogEntry] = []
        self._sequence_counter = LogSequence(0)
        self._head_hash = ""

    @property
    def state(self) -> LogState:
        """Get current log state (immutable snapshot)."""
        return LogState(
            head_sequence=self._sequence_counter,
            head_hash=self._head_hash,
            entry_count=len(self._entries)
        )

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, event: KernelEvent) -> LogEntry:
        """
        Append event to log.

        This is the ONLY write operation.
        """
        new_sequence = self._sequence_counter.next()

        entry = LogEntry.create(
            sequence=new_sequence,
            event=event,
            previous_hash=self._head_hash
        )

        self._entries.append(entry)
        self._sequence_counter = new_sequence
        self._head_hash = entry.entry_hash

        return entry

    def replay(
        self,
        from_seq: Optional[LogSequence] = None,
        until_seq: Optional[LogSequence] = None
    ) -> Iterator[LogEntry]:
        """
        Replay entries in sequence order.

        Args:
            from_seq: Start from this sequence (inclusive), None = start
            until_seq: Stop at this sequence (inclusive), None = end
        """
        start = (from_seq.value if from_seq else 1)
        end = (until_seq.value if until_seq else len(self._entries))

        for entry in self._entries:
            if entry.sequence.value < start:
                continue
            if entry.sequence.value > end:
                break
            yield entry

    def get_entry(self, sequence: LogSequence) -> Optional[LogEntry]:
        """Get specific entry by sequence number."""
        if sequence.value < 1 or sequence.value > len(self._entries):
            return None
        return self._entries[sequence.value - 1]

    def verify_integrity(self) -> Tuple[bool, Optional[Error]]:
        """
        Verify hash chain integrity.

        Checks both the back-links and each entry's own hash.
        Returns (is_valid, error) tuple.
        """
        expected_previous = ""

        for entry in self._entries:
            if entry.previous_hash != expected_previous:
                return (False, Error(
                    code=ErrorCode.STRUCTURAL_INCONSISTENCY,
                    message=f"Hash chain broken at sequence {entry.sequence.value}",
                    context=(
                        ("expected_hash", expected_previous),
                        ("actual_hash", entry.previous_hash),
                    )
                ))
            recomputed = LogEntry.compute_hash(entry.sequence, entry.event, entry.previous_hash)
            if recomputed != entry.entry_hash:
                return (False, Error(
                    code=ErrorCode.STRUCTURAL_INCONSISTENCY,
                    message=f"Corrupt entry at sequence {entry.sequence.value}: hash mismatch",
                    context=(
                        ("expected_hash", recomputed),
                        ("actual_hash", entry.entry_hash),
                    )
                ))
            expected_previous = entry.entry_hash

        return (True, None)
