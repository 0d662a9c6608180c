from typing import Optional, Sequence

from .config import CONSOLATION_MAX_EXCESS_CHARS
from .schemas import CompletionStatus, Step, ValidationResult


def consolation_for(user_input: str, expected_answer: str, step_weight: float) -> float:
    """Partial credit for a wrong but substantive attempt.

    At most half of the step weight, proportional to how much of the expected
    length the attempt covers. Attempts more than a few characters longer than
    the expected answer earn nothing.
    """
    user_length = len(user_input.strip())
    expected_length = len(expected_answer.strip())
    if user_length == 0 or expected_length == 0:
        return 0.0
    if user_length - expected_length > CONSOLATION_MAX_EXCESS_CHARS:
        return 0.0
    consolation_per_char = (step_weight / expected_length) / 2
    return consolation_per_char * min(user_length, expected_length)


def score(
    lines: Sequence[str],
    steps: Sequence[Step],
    validated_states: Sequence[Optional[ValidationResult]],
) -> CompletionStatus:
    """Completion status derived from the committed lines.

    ``validated_states[i]`` is the result of the last commit of line ``i`` or
    ``None`` when that line was never committed. Uncommitted lines count for
    nothing, whatever they contain.

    Both progress parts are rounded to two decimals on their own, so
    ``percentage`` equals their sum to two decimals, not bit for bit.
    """
    total_steps = len(steps)
    if total_steps == 0:
        return CompletionStatus(
            total_steps=0,
            completed_steps=0,
            correct_steps=0,
            percentage=0.0,
            base_progress=0.0,
            consolation_progress=0.0,
            step_correctness=[],
            final_answer_detected=False,
        )

    step_weight = 100 / total_steps
    base_progress = 0.0
    consolation_progress = 0.0
    completed_steps = 0
    correct_steps = 0
    step_correctness = []
    final_answer_position = None

    for i, step in enumerate(steps):
        line = lines[i] if i < len(lines) else ""
        state = validated_states[i] if i < len(validated_states) else None

        if state is None or not line.strip():
            step_correctness.append(False)
            continue

        completed_steps += 1
        if state.final_answer_detected and final_answer_position is None:
            final_answer_position = i

        if state.is_current_step_correct:
            correct_steps += 1
            base_progress += step_weight
            step_correctness.append(True)
        else:
            consolation_progress += consolation_for(line, step.reference_answer, step_weight)
            step_correctness.append(False)

    base_progress = round(base_progress, 2)
    consolation_progress = round(consolation_progress, 2)

    return CompletionStatus(
        total_steps=total_steps,
        completed_steps=completed_steps,
        correct_steps=correct_steps,
        percentage=round(base_progress + consolation_progress, 2),
        base_progress=base_progress,
        consolation_progress=consolation_progress,
        step_correctness=step_correctness,
        final_answer_detected=final_answer_position is not None,
        final_answer_position=final_answer_position,
        is_complete=completed_steps == total_steps,
        all_correct=correct_steps == total_steps,
    )
