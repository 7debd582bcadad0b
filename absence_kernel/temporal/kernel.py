"""
Absence Kernel
==============

Logical-clock state machine over intents, observations and absences.

INVARIANTS:
- current_time never decreases
- Every intent's deadline was strictly after current_time when declared
- The absence set only grows
- An action's earliest observation time never increases
- An intent becomes absent iff the clock reached its deadline with no
  observation of its action at or before that deadline

DEADLINE BOUNDARY:
- Observation side is exclusive: observing at the deadline is too late
- Absence side is inclusive: absence is derived once current_time >= deadline

FAILURE SEMANTICS:
Contract violations are checked before any mutation, raised, and then
halt the kernel. A halted kernel raises KernelHalted on every further call.
"""

from __future__ import annotations
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterator, List, Optional, Set, Tuple
import hashlib

from ..config import KernelConfig
from ..contracts.base import (
    Time, IntentId, ActionId, Intent, Absence, IntentStatus,
    require_id, require_time, short_id
)
from ..contracts.events import (
    KernelEvent, IntentDeclared, ActionObserved, TimeAdvanced, AuditEventType
)
from ..contracts.violations import (
    ContractViolation, PrematureDeadline, LateObservation, KernelHalted
)
from ..observability import ObservabilityEngine
from .clock import LogicalClock
from .event_log import ImmutableEventLog


@dataclass(frozen=True)
class KernelSnapshot:
    """
    Immutable point-in-time copy of kernel state.

    Collections are sorted so that equal states compare and hash equal.
    """
    current_time: Time
    intents: Tuple[Intent, ...]
    observations: Tuple[Tuple[ActionId, Time], ...]
    absences: FrozenSet[IntentId]
    state_hash: str


class Kernel:
    """
    Irreversible-commitment kernel.

    Driven by three calls: declare_intent, observe_action, advance_time.
    Everything else is a read-only accessor. Not thread-safe: a host
    that shares a kernel must serialize calls.
    """

    def __init__(self, config: Optional[KernelConfig] = None):
        self._config = config or KernelConfig()

        self._clock = LogicalClock()
        self._intents: Dict[IntentId, Intent] = {}
        self._intents_by_action: Dict[ActionId, Set[IntentId]] = {}
        self._observations: Dict[ActionId, Time] = {}  # earliest only
        self._absences: Dict[IntentId, Absence] = {}   # insert-only
        self._fulfilled: Set[IntentId] = set()

        self._violation: Optional[ContractViolation] = None

        self._event_log = ImmutableEventLog() if self._config.enable_event_log else None
        self._observability = ObservabilityEngine(self._config.observability)

    # -------------------------------------------------------------------------
    # Mutating operations
    # -------------------------------------------------------------------------

    def declare_intent(self, intent: Intent) -> None:
        """
        Register an intent.

        Re-declaring an existing id overwrites it. An id that is already
        absent stays absent.

        Raises:
            PrematureDeadline: intent.deadline <= current_time
        """
        with self._transition():
            if not isinstance(intent, Intent):
                raise TypeError(f"expected Intent, got {type(intent).__name__}")

            now = self._clock.now()
            if intent.deadline <= now:
                raise PrematureDeadline(
                    f"Intent {short_id(intent.id)} declared with deadline "
                    f"{intent.deadline} at time {now}",
                    at_time=now,
                    context=(
                        ("intent_id", intent.id.hex()),
                        ("deadline", str(intent.deadline)),
                        ("current_time", str(now)),
                    )
                )

            previous = self._intents.get(intent.id)
            if previous is not None and previous.action != intent.action:
                bound = self._intents_by_action[previous.action]
                bound.discard(intent.id)
                if not bound:
                    del self._intents_by_action[previous.action]

            self._intents[intent.id] = intent
            self._intents_by_action.setdefault(intent.action, set()).add(intent.id)
            self._fulfilled.discard(intent.id)

            self._record(IntentDeclared(intent))
            self._observability.log_audit(
                AuditEventType.DECLARATION,
                action="declare_intent",
                at_time=now,
                entity_id=intent.id.hex(),
                metadata={
                    "action": intent.action.hex(),
                    "deadline": str(intent.deadline),
                    "redeclared": str(previous is not None).lower(),
                }
            )
            self._observability.collect_metric("intents_declared_total", 1, now)
            self._observability.collect_metric("pending_intents", self._pending_count(), now)

    def observe_action(self, action: ActionId, time: Time) -> None:
        """
        Record that `action` occurred at `time`.

        Only the earliest time per action is kept.

        Raises:
            LateObservation: time >= deadline of any intent bound to action
        """
        with self._transition():
            require_id(action, "action")
            require_time(time, "time")
            now = self._clock.now()

            late = [
                self._intents[intent_id]
                for intent_id in self._intents_by_action.get(action, ())
                if time >= self._intents[intent_id].deadline
            ]
            if late:
                breached = min(late, key=lambda i: (i.deadline, i.id))
                raise LateObservation(
                    f"Action {short_id(action)} observed at {time}, at or after "
                    f"deadline {breached.deadline} of intent {short_id(breached.id)}",
                    at_time=now,
                    context=(
                        ("action", action.hex()),
                        ("time", str(time)),
                        ("intent_id", breached.id.hex()),
                        ("deadline", str(breached.deadline)),
                    )
                )

            recorded = self._observations.get(action)
            if recorded is None or time < recorded:
                self._observations[action] = time

            self._record(ActionObserved(action=action, time=time))
            self._observability.log_audit(
                AuditEventType.OBSERVATION,
                action="observe_action",
                at_time=now,
                entity_id=action.hex(),
                metadata={
                    "time": str(time),
                    "earliest": str(self._observations[action]),
                }
            )
            self._observability.collect_metric("observations_recorded_total", 1, now)

    def advance_time(self, to: Time) -> None:
        """
        Move the clock to `to` and derive any absences now due.

        Raises:
            TimeRegression: to < current_time
        """
        with self._transition():
            require_time(to, "to")
            previous = self._clock.now()
            self._clock.advance(to)

            self._record(TimeAdvanced(to=to))
            self._observability.log_audit(
                AuditEventType.TIME_ADVANCE,
                action="advance_time",
                at_time=to,
                metadata={"from": str(previous), "to": str(to)}
            )

            for absence in self._compute_absences():
                self._observability.log_audit(
                    AuditEventType.ABSENCE,
                    action="derive_absence",
                    at_time=to,
                    entity_id=absence.intent_id.hex(),
                    metadata={
                        "action": absence.action.hex(),
                        "deadline": str(absence.deadline),
                    }
                )
                self._observability.collect_metric("absences_derived_total", 1, to)

            self._observability.collect_metric("current_time", to, to)
            self._observability.collect_metric("pending_intents", self._pending_count(), to)

    def apply(self, event: KernelEvent) -> None:
        """Apply a recorded input event through the matching operation."""
        if isinstance(event, IntentDeclared):
            self.declare_intent(event.intent)
        elif isinstance(event, ActionObserved):
            self.observe_action(event.action, event.time)
        elif isinstance(event, TimeAdvanced):
            self.advance_time(event.to)
        else:
            raise TypeError(f"unknown kernel event {type(event).__name__}")

    # -------------------------------------------------------------------------
    # Read-only accessors
    # -------------------------------------------------------------------------

    @property
    def current_time(self) -> Time:
        self._ensure_live()
        return self._clock.now()

    def absences(self) -> FrozenSet[IntentId]:
        """Snapshot of the absence set."""
        self._ensure_live()
        return frozenset(self._absences)

    def absence_records(self) -> Tuple[Absence, ...]:
        """All absence records, ordered by derivation time then id."""
        self._ensure_live()
        return tuple(sorted(self._absences.values(), key=lambda a: (a.derived_at, a.intent_id)))

    def fulfilled(self) -> FrozenSet[IntentId]:
        self._ensure_live()
        return frozenset(self._fulfilled)

    def observation_time(self, action: ActionId) -> Optional[Time]:
        """Earliest recorded observation of `action`, if any."""
        self._ensure_live()
        return self._observations.get(action)

    def intent(self, intent_id: IntentId) -> Optional[Intent]:
        self._ensure_live()
        return self._intents.get(intent_id)

    def intents(self) -> Tuple[Intent, ...]:
        self._ensure_live()
        return tuple(self._intents[i] for i in sorted(self._intents))

    def status(self, intent_id: IntentId) -> Optional[IntentStatus]:
        """Status of a declared intent, or None if it was never declared."""
        self._ensure_live()
        if intent_id not in self._intents:
            return None
        if intent_id in self._absences:
            return IntentStatus.ABSENT
        if intent_id in self._fulfilled:
            return IntentStatus.FULFILLED
        return IntentStatus.PENDING

    def state_hash(self) -> str:
        """Deterministic hash of intents, observations, absences and clock."""
        self._ensure_live()
        return self._compute_state_hash()

    def snapshot(self) -> KernelSnapshot:
        self._ensure_live()
        return KernelSnapshot(
            current_time=self._clock.now(),
            intents=tuple(self._intents[i] for i in sorted(self._intents)),
            observations=tuple(sorted(self._observations.items())),
            absences=frozenset(self._absences),
            state_hash=self._compute_state_hash()
        )

    def clock_history(self) -> Tuple[Time, ...]:
        self._ensure_live()
        return self._clock.history()

    # Recording layers and halt state stay readable after a violation.

    @property
    def is_halted(self) -> bool:
        return self._violation is not None

    @property
    def violation(self) -> Optional[ContractViolation]:
        return self._violation

    @property
    def event_log(self) -> Optional[ImmutableEventLog]:
        return self._event_log

    @property
    def observability(self) -> ObservabilityEngine:
        return self._observability

    @property
    def config(self) -> KernelConfig:
        return self._config

    def __repr__(self) -> str:
        state = "HALTED" if self.is_halted else "LIVE"
        return (
            f"Kernel({state}, time={self._clock.now()}, intents={len(self._intents)}, "
            f"absences={len(self._absences)})"
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @contextmanager
    def _transition(self) -> Iterator[None]:
        """Run a mutating operation; any contract violation halts the kernel."""
        self._ensure_live()
        try:
            yield
        except ContractViolation as violation:
            self._halt(violation)
            raise

    def _ensure_live(self):
        if self._violation is not None:
            raise KernelHalted(
                f"Kernel halted by {self._violation.kind}: {self._violation}",
                at_time=self._clock.now(),
                context=(("cause", self._violation.error.code.name),)
            ) from self._violation

    def _halt(self, violation: ContractViolation):
        self._violation = violation
        now = self._clock.now()
        self._observability.log_audit(
            AuditEventType.ERROR,
            action=violation.kind,
            at_time=now,
            metadata=dict(
                (("code", violation.error.code.name), ("message", violation.error.message))
                + violation.error.context
            )
        )
        self._observability.collect_metric(
            "contract_violations_total", 1, now, labels={"kind": violation.kind}
        )

    def _record(self, event: KernelEvent):
        if self._event_log is not None:
            self._event_log.append(event)

    def _compute_absences(self) -> List[Absence]:
        """Derive absences due at the current time. Returns the new ones."""
        now = self._clock.now()
        derived: List[Absence] = []

        for intent_id in sorted(self._intents):
            if intent_id in self._absences or intent_id in self._fulfilled:
                continue
            intent = self._intents[intent_id]
            if now < intent.deadline:
                continue
            if self._was_observed(intent):
                self._fulfilled.add(intent_id)
            else:
                absence = Absence(
                    intent_id=intent_id,
                    action=intent.action,
                    deadline=intent.deadline,
                    derived_at=now
                )
                self._absences[intent_id] = absence
                derived.append(absence)

        return derived

    def _was_observed(self, intent: Intent) -> bool:
        recorded = self._observations.get(intent.action)
        return recorded is not None and recorded <= intent.deadline

    def _pending_count(self) -> int:
        return len(self._intents) - len(self._absences) - len(self._fulfilled)

    def _compute_state_hash(self) -> str:
        content = (
            f"{self._clock.now()}|"
            f"{','.join(self._intents[i].fingerprint() for i in sorted(self._intents))}|"
            f"{','.join(f'{a.hex()}:{t}' for a, t in sorted(self._observations.items()))}|"
            f"{','.join(i.hex() for i in sorted(self._absences))}"
        )
        return hashlib.sha256(content.encode()).hexdigest()
