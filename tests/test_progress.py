import pytest

from stepcheck.progress import consolation_for, score
from stepcheck.schemas import Step, StepLabel, ValidationResult

CORRECT = ValidationResult(mathematically_correct=True, positionally_valid=True, is_current_step_correct=True)
WRONG = ValidationResult()


def test_full_solve_reaches_100(linear_steps):
    status = score(["6(6)+4", "36+4", "40"], linear_steps, [CORRECT, CORRECT, CORRECT])
    assert status.percentage == 100.0
    assert status.correct_steps == 3
    assert status.is_complete
    assert status.all_correct
    assert status.step_correctness == [True, True, True]


def test_uncommitted_lines_count_nothing(linear_steps):
    status = score(["6(6)+4", "36+4", ""], linear_steps, [None, None, None])
    assert status.percentage == 0.0
    assert status.completed_steps == 0


def test_consolation_for_wrong_attempt(linear_steps):
    status = score(["", "", "41"], linear_steps, [None, None, WRONG])
    assert status.base_progress == 0.0
    assert status.consolation_progress == pytest.approx(16.67)
    assert status.completed_steps == 1
    assert not status.all_correct


def test_no_reward_for_overlong_wrong_answer():
    assert consolation_for("1234567", "40", 100 / 3) == 0.0
    # three extra characters still earn the capped amount
    assert consolation_for("12345", "40", 100 / 3) == pytest.approx(100 / 3 / 2)


def test_consolation_scales_with_length():
    assert consolation_for("4", "40", 50) == pytest.approx(12.5)
    assert consolation_for("", "40", 50) == 0.0
    assert consolation_for("4", "", 50) == 0.0


def test_final_answer_position(linear_steps):
    detected = ValidationResult(final_answer_detected=True)
    status = score(["40", "", ""], linear_steps, [detected, None, None])
    assert status.final_answer_detected
    assert status.final_answer_position == 0


@pytest.mark.parametrize("lines,states", [
    (["6(6)+4", "36+4", "40"], [CORRECT, CORRECT, CORRECT]),
    (["6(6)+4", "99999999", "4"], [CORRECT, WRONG, WRONG]),
    (["1", "2", "3"], [WRONG, WRONG, WRONG]),
    (["6(6)+5", "36+5", "41"], [WRONG, WRONG, WRONG]),
])
def test_progress_bounds(linear_steps, lines, states):
    status = score(lines, linear_steps, states)
    assert 0 <= status.percentage <= 100
    assert status.percentage == round(status.base_progress + status.consolation_progress, 2)


def test_score_is_rederivable(linear_steps):
    args = (["6(6)+4", "3", ""], linear_steps, [CORRECT, WRONG, None])
    assert score(*args) == score(*args)


def test_no_steps():
    status = score([], [], [])
    assert status.percentage == 0.0
    assert status.total_steps == 0


def test_percentage_is_sum_of_parts_to_two_decimals():
    for total in range(1, 8):
        steps = [Step(label=StepLabel.EVALUATION, answer=["40"]) for _ in range(total)]
        for correct in range(total):
            for length in range(1, 6):
                lines = ["40"] * correct + ["1" * length] * (total - correct)
                states = [CORRECT] * correct + [WRONG] * (total - correct)
                status = score(lines, steps, states)
                expected = status.base_progress + status.consolation_progress
                assert status.percentage == pytest.approx(expected, abs=0.01)


def test_two_step_consolation_rounding():
    steps = [Step(label=StepLabel.EVALUATION, answer=["1234567"]) for _ in range(2)]
    status = score(["1234567", "1234"], steps, [CORRECT, WRONG])
    assert status.base_progress == 50.0
    assert status.consolation_progress == 14.29
    assert status.percentage == 64.29
