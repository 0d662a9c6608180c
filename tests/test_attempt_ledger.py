import pytest
from pydantic import ValidationError

from stepcheck.attempt_ledger import AttemptLedger


def record(ledger, step_index, user_input, is_correct=False, expected="40", progress=0.0):
    return ledger.record(step_index, "final", user_input, is_correct, expected, progress)


def test_attempt_ids_increase(clock):
    ledger = AttemptLedger(clock=clock)
    first = record(ledger, 0, "41")
    clock.advance(1)
    second = record(ledger, 0, "42")
    assert second.attempt_id > first.attempt_id
    assert len(ledger) == 2


def test_attempt_fields(clock):
    ledger = AttemptLedger(clock=clock)
    attempt = record(ledger, 2, " 4 0 ", is_correct=True, progress=100.0)
    assert attempt.sanitized_input == "40"
    assert attempt.sanitized_expected_answer == "40"
    assert attempt.step_label == "final"
    assert attempt.attempt_time == clock()
    assert attempt.cumulative_progress == 100.0


def test_attempts_are_immutable(clock):
    attempt = record(AttemptLedger(clock=clock), 0, "41")
    with pytest.raises(ValidationError):
        attempt.user_input = "40"


def test_duplicate_event_is_ignored(clock):
    ledger = AttemptLedger(clock=clock)
    assert record(ledger, 0, "41") is not None
    clock.advance(0.05)
    assert record(ledger, 0, " 41") is None
    assert len(ledger) == 1


def test_same_input_after_window_is_recorded(clock):
    ledger = AttemptLedger(clock=clock)
    record(ledger, 0, "41")
    clock.advance(0.5)
    assert record(ledger, 0, "41") is not None
    assert len(ledger) == 2


def test_same_input_on_another_step_is_recorded(clock):
    ledger = AttemptLedger(clock=clock)
    record(ledger, 0, "41")
    assert record(ledger, 1, "41") is not None


def test_time_spent_recorded_only_on_correct_attempt(clock):
    ledger = AttemptLedger(clock=clock)
    start = clock()
    ledger.start_step_timer(0)
    clock.advance(5)
    wrong = record(ledger, 0, "41")
    clock.advance(7)
    right = record(ledger, 0, "40", is_correct=True)

    assert wrong.time_spent_on_step is None
    assert wrong.step_start_time == start
    assert right.time_spent_on_step == pytest.approx(12.0)
    assert ledger.timing_for(0).is_completed


def test_timer_starts_on_first_attempt(clock):
    ledger = AttemptLedger(clock=clock)
    attempt = record(ledger, 0, "41")
    assert attempt.step_start_time == attempt.attempt_time


def test_start_step_timer_keeps_first_start(clock):
    ledger = AttemptLedger(clock=clock)
    first = ledger.start_step_timer(0).start_time
    clock.advance(3)
    assert ledger.start_step_timer(0).start_time == first


def test_for_step_and_clear(clock):
    ledger = AttemptLedger(clock=clock)
    record(ledger, 0, "41")
    clock.advance(1)
    record(ledger, 1, "42")
    assert [a.user_input for a in ledger.for_step(1)] == ["42"]

    ledger.clear()
    assert len(ledger) == 0
    assert record(ledger, 0, "41").attempt_id == 1


def test_stats(clock):
    ledger = AttemptLedger(clock=clock)
    assert ledger.stats()["total_attempts"] == 0

    record(ledger, 0, "41")
    clock.advance(4)
    record(ledger, 0, "40", is_correct=True)
    stats = ledger.stats()
    assert stats["total_attempts"] == 2
    assert stats["correct_attempts"] == 1
    assert stats["accuracy"] == 0.5
    assert stats["steps_attempted"] == 1
    assert stats["step_durations"] == {0: 4.0}
