import logging
from typing import List, Optional, Sequence, Tuple

from .equivalence import matches_any
from .math_normalizer import normalize
from .schemas import FinalAnswerGuidance, Step, StepLabel, ValidationResult

logger = logging.getLogger(__name__)

STEP_TYPE_MESSAGES = {
    StepLabel.SUBSTITUTION: "substitution step (replace the variable with the given value)",
    StepLabel.SIMPLIFICATION: "simplification step (show your calculation work)",
    StepLabel.EVALUATION: "evaluation step (compute the value)",
    StepLabel.FINAL: "final answer",
    StepLabel.MATH: "mathematical work",
    StepLabel.TEXT: "explanation",
}


def step_type_message(label: StepLabel) -> str:
    return STEP_TYPE_MESSAGES.get(label, "work")


def _matches_literally(user_input: str, answers: Sequence[str]) -> bool:
    user_norm = normalize(user_input)
    return any(user_norm == normalize(answer) for answer in answers)


def validate_step(
    user_input: str,
    expected_answer: Optional[str],
    step_label: Optional[StepLabel],
    step_index: int,
    all_steps: Sequence[Step],
) -> ValidationResult:
    """Two-phase validation of one committed line.

    Phase one checks the input against the step's own answer. Phase two checks
    it against the final answer: a final answer typed at an earlier step is
    rejected so the learner has to show intermediate work, unless the input
    literally equals the current step's own answer.
    """
    if not all_steps or not (0 <= step_index < len(all_steps)):
        logger.debug("No declared step at index %s, cannot validate", step_index)
        return ValidationResult()

    step = all_steps[step_index]
    answers = step.answers if expected_answer is None else [expected_answer]
    label = step_label or step.label
    if not user_input or not user_input.strip():
        return ValidationResult()

    final_index = len(all_steps) - 1
    final_step = all_steps[final_index]

    final_answer_detected = matches_any(user_input, final_step.answers, final_step.label)
    mathematically_correct = matches_any(user_input, answers, label)

    premature_final = (
        step_index != final_index
        and final_answer_detected
        and not _matches_literally(user_input, answers)
    )
    if premature_final:
        logger.debug("Final answer %r entered at step %s, showing work required", user_input, step_index)
        mathematically_correct = False

    positionally_valid = mathematically_correct and not premature_final
    is_current_step_correct = (
        (step_index == final_index and final_answer_detected)
        or (mathematically_correct and not premature_final)
    )

    return ValidationResult(
        mathematically_correct=mathematically_correct,
        positionally_valid=positionally_valid,
        final_answer_detected=final_answer_detected,
        is_current_step_correct=is_current_step_correct,
    )


class MathStepGrader:
    """
    Step-by-step grader over a declared solution path:
    - validates single committed lines
    - finds the first step the learner still has to show
    - explains a final answer that skipped intermediate steps
    """

    def __init__(self, steps: Sequence[Step]):
        self.steps: List[Step] = list(steps)

    def validate(self, user_input: str, step_index: int) -> ValidationResult:
        if not (0 <= step_index < len(self.steps)):
            return ValidationResult()
        step = self.steps[step_index]
        return validate_step(user_input, None, step.label, step_index, self.steps)

    def find_first_missing_step(self, lines: Sequence[str]) -> Optional[Tuple[int, Step]]:
        for i, step in enumerate(self.steps):
            line = lines[i] if i < len(lines) else ""
            if not line or not line.strip():
                return i, step
            if not self.validate(line, i).is_current_step_correct:
                return i, step
        return None

    def detect_final_answer_jump(self, line: str, line_index: int, lines: Sequence[str]) -> FinalAnswerGuidance:
        if not line or not line.strip() or not self.steps:
            return FinalAnswerGuidance()

        final_index = len(self.steps) - 1
        if line_index == final_index:
            return FinalAnswerGuidance()

        final_step = self.steps[final_index]
        if not matches_any(line, final_step.answers, final_step.label):
            return FinalAnswerGuidance()

        missing = self.find_first_missing_step(lines)
        if missing is None:
            return FinalAnswerGuidance()

        index, step = missing
        return FinalAnswerGuidance(
            is_final_answer=True,
            guidance_message=f"Your final answer is correct! But please show your {step_type_message(step.label)} first.",
            next_missing_step_index=index,
            next_missing_step=step,
        )

    def grade_lines(self, lines: Sequence[str]) -> List[ValidationResult]:
        """Validate every line against its step, in order."""
        return [self.validate(line, i) for i, line in enumerate(lines[: len(self.steps)])]

    def all_correct(self, lines: Sequence[str]) -> bool:
        results = self.grade_lines(lines)
        return len(results) == len(self.steps) and all(r.is_current_step_correct for r in results)
