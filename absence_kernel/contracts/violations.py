"""
Contract Violations

The three temporal contracts of the kernel, as exceptions.

A violation is a programming error in the caller, not a runtime
condition to be retried. The kernel raises it before mutating anything
and then refuses every further call with KernelHalted.
"""

from __future__ import annotations
from typing import Tuple

from .base import Error, ErrorCode, Time


class ContractViolation(Exception):
    """Base class for fatal kernel contract violations."""

    code: ErrorCode = ErrorCode.STRUCTURAL_INCONSISTENCY

    def __init__(self, message: str, at_time: Time, context: Tuple[Tuple[str, str], ...] = ()):
        super().__init__(message)
        self.error = Error(
            code=self.code,
            message=message,
            at_time=at_time,
            context=tuple(context)
        )

    @property
    def kind(self) -> str:
        return type(self).__name__


class PrematureDeadline(ContractViolation):
    """Intent declared with a deadline at or before the current time."""
    code = ErrorCode.PREMATURE_DEADLINE


class LateObservation(ContractViolation):
    """Action observed at or after a deadline bound to it."""
    code = ErrorCode.LATE_OBSERVATION


class TimeRegression(ContractViolation):
    """Clock asked to move backward."""
    code = ErrorCode.TIME_REGRESSION


class KernelHalted(ContractViolation):
    """Kernel used after a fatal violation."""
    code = ErrorCode.KERNEL_HALTED
