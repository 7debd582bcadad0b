"""
Event Log Tests
===============

INVARIANTS TESTED:
1. Append-only with monotonic sequence numbers
2. Hash chain detects tampering
3. Only accepted kernel inputs are logged
"""

import dataclasses

import pytest

from absence_kernel import Kernel, Intent, make_id, LateObservation
from absence_kernel.contracts import (
    ActionObserved, IntentDeclared, TimeAdvanced, LogSequence, ErrorCode,
)
from absence_kernel.temporal import ImmutableEventLog


def sample_intent() -> Intent:
    return Intent(id=make_id("intent:log"), action=make_id("action:log"), deadline=10)


class TestImmutableEventLog:

    def test_append_assigns_sequences(self):
        log = ImmutableEventLog()

        first = log.append(TimeAdvanced(to=1))
        second = log.append(TimeAdvanced(to=2))

        assert first.sequence.value == 1
        assert second.sequence.value == 2
        assert second.previous_hash == first.entry_hash
        assert log.state.entry_count == 2
        assert log.state.head_hash == second.entry_hash

    def test_empty_log_state(self):
        log = ImmutableEventLog()
        assert log.state.head_sequence == LogSequence(0)
        assert log.state.head_hash == ""
        assert log.verify_integrity() == (True, None)

    def test_hashes_are_deterministic(self):
        events = [IntentDeclared(sample_intent()), ActionObserved(make_id("action:log"), 3), TimeAdvanced(12)]

        a, b = ImmutableEventLog(), ImmutableEventLog()
        for event in events:
            a.append(event)
            b.append(event)

        assert a.state.head_hash == b.state.head_hash
        assert len(a.state.head_hash) == 64

    def test_replay_window(self):
        log = ImmutableEventLog()
        for t in range(1, 6):
            log.append(TimeAdvanced(to=t))

        window = list(log.replay(from_seq=LogSequence(2), until_seq=LogSequence(4)))
        assert [e.event.to for e in window] == [2, 3, 4]

    def test_get_entry_bounds(self):
        log = ImmutableEventLog()
        log.append(TimeAdvanced(to=1))

        assert log.get_entry(LogSequence(1)).event == TimeAdvanced(to=1)
        assert log.get_entry(LogSequence(0)) is None
        assert log.get_entry(LogSequence(2)) is None

    def test_detects_rewritten_event(self):
        log = ImmutableEventLog()
        log.append(TimeAdvanced(to=1))
        log.append(TimeAdvanced(to=2))

        forged = dataclasses.replace(log._entries[0], event=TimeAdvanced(to=99))
        log._entries[0] = forged

        is_valid, error = log.verify_integrity()
        assert not is_valid
        assert error.code == ErrorCode.STRUCTURAL_INCONSISTENCY

    def test_detects_broken_link(self):
        log = ImmutableEventLog()
        log.append(TimeAdvanced(to=1))
        log.append(TimeAdvanced(to=2))

        log._entries[1] = dataclasses.replace(log._entries[1], previous_hash="0" * 64)

        is_valid, error = log.verify_integrity()
        assert not is_valid
        assert "sequence 2" in error.message


class TestKernelLogging:

    def test_kernel_logs_accepted_inputs_in_order(self):
        kernel = Kernel()
        intent = sample_intent()
        kernel.declare_intent(intent)
        kernel.observe_action(intent.action, 4)
        kernel.advance_time(10)

        events = [entry.event for entry in kernel.event_log.replay()]
        assert events == [
            IntentDeclared(intent),
            ActionObserved(action=intent.action, time=4),
            TimeAdvanced(to=10),
        ]

    def test_rejected_input_is_not_logged(self):
        kernel = Kernel()
        intent = sample_intent()
        kernel.declare_intent(intent)

        with pytest.raises(LateObservation):
            kernel.observe_action(intent.action, 10)

        assert len(kernel.event_log) == 1
