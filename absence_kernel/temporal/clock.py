"""
Logical Clock
=============

Monotonic integer clock driven entirely by an external caller.

GUARANTEES:
- Starts at 0
- Never moves backward
- Never reads system time
- Every accepted advance is recorded for audit and replay comparison
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Tuple

from ..contracts.base import Time, require_time
from ..contracts.violations import TimeRegression


@dataclass
class LogicalClock:
    """
    Non-decreasing logical clock.

    Advancing to the current value is legal and is recorded as a tick.
    """
    _now: Time = 0
    _ticks: List[Time] = field(default_factory=list)

    def now(self) -> Time:
        """Current logical time."""
        return self._now

    def advance(self, to: Time) -> Time:
        """
        Move the clock to `to`.

        Raises:
            ValueError: `to` is not a non-negative integer
            TimeRegression: `to` is earlier than the current time
        """
        require_time(to, "to")
        if to < self._now:
            raise TimeRegression(
                f"Cannot advance clock backward from {self._now} to {to}",
                at_time=self._now,
                context=(
                    ("current_time", str(self._now)),
                    ("requested_time", str(to)),
                )
            )
        self._now = to
        self._ticks.append(to)
        return self._now

    def tick_count(self) -> int:
        """Number of accepted advances."""
        return len(self._ticks)

    def history(self) -> Tuple[Time, ...]:
        """All accepted advances, in order."""
        return tuple(self._ticks)

    def __repr__(self) -> str:
        return f"LogicalClock(now={self._now}, ticks={len(self._ticks)})"
