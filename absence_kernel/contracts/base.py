"""
Base Contracts and Shared Types

These are the foundational types used across all layers.
All types here are IMMUTABLE and represent pure data.

BOUNDARY ENFORCEMENT:
=====================
- This module is READ-ONLY from all layers
- Layers may import types but MUST NOT modify this module
- All types are frozen dataclasses for immutability guarantee
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional, Tuple
from enum import Enum, auto
import hashlib


# =============================================================================
# IDENTITY AND TIME TYPES
# =============================================================================

# Logical time: a non-negative integer, never wall-clock.
Time = int

# Opaque fixed-width tokens. No meaning attaches to their bytes.
IntentId = bytes
ActionId = bytes

ID_WIDTH = 32


def make_id(seed: str) -> bytes:
    """Generate a deterministic fixed-width token from a seed string."""
    return hashlib.sha256(seed.encode('utf-8')).digest()


def require_id(value: object, name: str) -> bytes:
    """Validate an opaque identifier token."""
    if not isinstance(value, bytes) or len(value) != ID_WIDTH:
        raise ValueError(f"{name} must be a {ID_WIDTH}-byte token")
    return value


def require_time(value: object, name: str) -> Time:
    """Validate a logical time value."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer logical time")
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


def short_id(token: bytes) -> str:
    """Short hex rendering of a token for messages and audit metadata."""
    return token.hex()[:16]


# =============================================================================
# ERROR STATES (Explicit, never silent)
# =============================================================================

class ErrorCode(Enum):
    """
    Explicit error codes.
    Every failure the kernel can report is enumerated here.
    """
    # Temporal contract violations (fatal)
    PREMATURE_DEADLINE = auto()
    LATE_OBSERVATION = auto()
    TIME_REGRESSION = auto()

    # Use after a fatal violation
    KERNEL_HALTED = auto()

    # Event log / replay integrity
    STRUCTURAL_INCONSISTENCY = auto()


@dataclass(frozen=True)
class Error:
    """
    Immutable error representation with full context.
    Errors are data: they can be stored, audited and compared.
    """
    code: ErrorCode
    message: str
    at_time: Optional[Time] = None
    context: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    def with_context(self, key: str, value: str) -> Error:
        """Return new Error with additional context (immutable)."""
        return Error(
            code=self.code,
            message=self.message,
            at_time=self.at_time,
            context=self.context + ((key, value),)
        )

    def context_value(self, key: str) -> str:
        for k, v in self.context:
            if k == key:
                return v
        raise KeyError(key)


# =============================================================================
# DOMAIN TYPES
# =============================================================================

@dataclass(frozen=True)
class Intent:
    """
    A promise that `action` will be observed strictly before `deadline`.

    Once declared, an intent is never mutated. Several intents may be
    bound to the same action.
    """
    id: IntentId
    action: ActionId
    deadline: Time

    def __post_init__(self):
        require_id(self.id, "Intent.id")
        require_id(self.action, "Intent.action")
        require_time(self.deadline, "Intent.deadline")

    def fingerprint(self) -> str:
        return f"{self.id.hex()}:{self.action.hex()}:{self.deadline}"


@dataclass(frozen=True)
class Absence:
    """
    Irrevocable record that an intent's action was not observed in time.

    `derived_at` is the clock value of the tick that derived it, which
    may be later than the deadline when time advances in large steps.
    """
    intent_id: IntentId
    action: ActionId
    deadline: Time
    derived_at: Time


class IntentStatus(Enum):
    """
    Explicit intent states.

    FULFILLED and ABSENT are reached only once the clock meets the deadline.
    ABSENT is final.
    """
    PENDING = "pending"
    FULFILLED = "fulfilled"
    ABSENT = "absent"
