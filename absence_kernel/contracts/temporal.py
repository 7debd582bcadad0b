from __future__ import annotations
from dataclasses import dataclass
import hashlib

from .events import KernelEvent


@dataclass(frozen=True)
class LogSequence:
    """
    Immutable sequence position in the log.
    """
    value: int

    def next(self) -> 'LogSequence':
        return LogSequence(self.value + 1)

    def __lt__(self, other: 'LogSequence') -> bool:
        return self.value < other.value

    def __le__(self, other: 'LogSequence') -> bool:
        return self.value <= other.value


@dataclass(frozen=True)
class LogEntry:
    """
    Immutable log entry.
    INVARIANTS:
    - Once written, never modified.
    - Entries form a hash chain for integrity verification.
    """
    sequence: LogSequence
    event: KernelEvent
    previous_hash: str
    entry_hash: str

    @staticmethod
    def compute_hash(sequence: LogSequence, event: KernelEvent, previous_hash: str) -> str:
        hash_content = (
            f"{sequence.value}|"
            f"{event.fingerprint()}|"
            f"{previous_hash}"
        )
        return hashlib.sha256(hash_content.encode()).hexdigest()

    @staticmethod
    def create(
        sequence: LogSequence,
        event: KernelEvent,
        previous_hash: str
    ) -> 'LogEntry':
        """Factory for deterministic entry creation."""
        return LogEntry(
            sequence=sequence,
            event=event,
            previous_hash=previous_hash,
            entry_hash=LogEntry.compute_hash(sequence, event, previous_hash)
        )
