"""
Replay Engine Tests
===================

INVARIANTS TESTED:
1. Replaying a kernel's log reproduces its state hash
2. Point-in-time replay sees only the inputs up to that sequence
3. Inconsistent logs surface as failed results, never exceptions
"""

import dataclasses

import pytest

from absence_kernel import Kernel, Intent, TimeRegression, make_id
from absence_kernel.contracts import TimeAdvanced, LogSequence, ErrorCode
from absence_kernel.temporal import ImmutableEventLog, ReplayEngine


@pytest.fixture
def busy_kernel():
    kernel = Kernel()
    kept = Intent(id=make_id("intent:kept"), action=make_id("action:kept"), deadline=10)
    broken = Intent(id=make_id("intent:broken"), action=make_id("action:broken"), deadline=15)
    kernel.declare_intent(kept)
    kernel.declare_intent(broken)
    kernel.observe_action(kept.action, 6)
    kernel.advance_time(12)
    kernel.advance_time(20)
    return kernel


class TestReplayEngine:

    def test_full_replay_matches_live_kernel(self, busy_kernel):
        engine = ReplayEngine(busy_kernel.event_log)

        result = engine.replay_full()
        assert result.success
        assert result.snapshot.state_hash == busy_kernel.state_hash()
        assert engine.verify_against(busy_kernel) == (True, None)

    def test_replay_is_deterministic(self, busy_kernel):
        engine = ReplayEngine(busy_kernel.event_log)
        assert engine.verify_determinism() == (True, None)

    def test_point_in_time_state(self, busy_kernel):
        engine = ReplayEngine(busy_kernel.event_log)

        # Entries: declare, declare, observe, advance(12), advance(20)
        at_four = engine.get_state_at(LogSequence(4))
        assert at_four.current_time == 12
        assert at_four.absences == frozenset()

        at_five = engine.get_state_at(LogSequence(5))
        assert at_five.current_time == 20
        assert at_five.absences == frozenset({make_id("intent:broken")})

    def test_new_absences_between_replays(self, busy_kernel):
        engine = ReplayEngine(busy_kernel.event_log)

        first = engine.replay_to(LogSequence(4))
        assert first.new_absences == ()

        second = engine.replay_to(LogSequence(5))
        assert second.new_absences == (make_id("intent:broken"),)

    def test_violation_in_log_is_reported(self):
        log = ImmutableEventLog()
        log.append(TimeAdvanced(to=10))
        log.append(TimeAdvanced(to=5))

        result = ReplayEngine(log).replay_full()

        assert not result.success
        assert result.error.code == ErrorCode.TIME_REGRESSION
        assert result.error.context_value("log_sequence") == "2"

    def test_tampered_log_is_reported(self, busy_kernel):
        log = busy_kernel.event_log
        log._entries[3] = dataclasses.replace(log._entries[3], event=TimeAdvanced(to=11))

        engine = ReplayEngine(log)
        result = engine.replay_full()

        assert not result.success
        assert result.error.code == ErrorCode.STRUCTURAL_INCONSISTENCY
        assert engine.verify_against(busy_kernel)[0] is False

    def test_replay_does_not_touch_source(self, busy_kernel):
        before = busy_kernel.event_log.state
        ReplayEngine(busy_kernel.event_log).replay_full()
        assert busy_kernel.event_log.state == before

    def test_new_absences_do_not_depend_on_call_order(self, busy_kernel):
        engine = ReplayEngine(busy_kernel.event_log)
        broken = (make_id("intent:broken"),)

        assert engine.replay_to(LogSequence(5)).new_absences == broken
        assert engine.replay_to(LogSequence(4)).new_absences == ()
        assert engine.replay_to(LogSequence(5)).new_absences == broken
        assert engine.get_state_at(LogSequence(5)).absences == frozenset(broken)
        assert engine.replay_full().new_absences == broken

    def test_verify_against_halted_kernel_reports_failure(self, busy_kernel):
        with pytest.raises(TimeRegression):
            busy_kernel.advance_time(1)

        is_same, reason = ReplayEngine(busy_kernel.event_log).verify_against(busy_kernel)

        assert is_same is False
        assert reason.startswith("Kernel halted")
