"""One learner working through one multi-step problem.

Keystrokes (``type``) only update drafts and start step timers. Explicit
commits (``commit``) validate the line, rescore completion, record an
attempt, reclassify behavior and update the hint policy.
"""
import logging
import time
from typing import Callable, List, Optional, Sequence

from .answer_analyzer import diagnose
from .attempt_ledger import AttemptLedger
from .behavior_classifier import classify
from .hint_policy import HintIntervalTracker
from .math_normalizer import normalize
from .math_step_grader import MathStepGrader
from .progress import score
from .schemas import (
    CommitOutcome,
    CompletionStatus,
    LineState,
    ProblemKey,
    Step,
    Thresholds,
    UserBehaviorProfile,
    ValidationResult,
)
from .token_feedback import token_feedback, token_feedback_hint, tokenize_math

logger = logging.getLogger(__name__)


class ProblemSession:
    def __init__(
        self,
        steps: Sequence[Step],
        key: Optional[ProblemKey] = None,
        clock: Callable[[], float] = time.time,
        thresholds: Optional[Thresholds] = None,
    ):
        self.clock = clock
        self.thresholds = thresholds or Thresholds()
        self.ledger = AttemptLedger(clock=clock)
        self.hints = HintIntervalTracker()
        self._load(steps, key)

    def _load(self, steps: Sequence[Step], key: Optional[ProblemKey]) -> None:
        self.key = key
        self.steps: List[Step] = list(steps)
        self.grader = MathStepGrader(self.steps)
        size = len(self.steps)
        self.drafts: List[str] = [""] * size
        self.committed: List[str] = [""] * size
        self.slots: List[LineState] = [LineState.EMPTY] * size
        self.validated: List[Optional[ValidationResult]] = [None] * size
        self.profile = UserBehaviorProfile()
        self.ledger.clear()
        self.hints.reset()

    def _in_range(self, index: int) -> bool:
        return 0 <= index < len(self.steps)

    @property
    def completion(self) -> CompletionStatus:
        return score(self.committed, self.steps, self.validated)

    def switch_problem(self, key: ProblemKey, steps: Sequence[Step]) -> bool:
        """Load another problem. Returns True when session state was reset."""
        if key == self.key:
            return False
        logger.info(
            "Switching problem %s -> %s, session reset",
            self.key, key,
            extra={"problem": str(key)},
        )
        self._load(steps, key)
        return True

    def type(self, index: int, text: str) -> Optional[LineState]:
        """Record a keystroke-level edit. Never validates."""
        if not self._in_range(index):
            return None
        if self.slots[index] == LineState.CORRECT:
            return LineState.CORRECT

        self.drafts[index] = text
        if text.strip():
            self.ledger.start_step_timer(index)
            self.slots[index] = LineState.ATTEMPTED
        elif self.validated[index] is None:
            self.slots[index] = LineState.EMPTY
        else:
            self.slots[index] = LineState.ATTEMPTED
        return self.slots[index]

    def _snapshot(self, index: int, state: LineState, validation: ValidationResult) -> CommitOutcome:
        return CommitOutcome(
            step_index=index,
            state=state,
            validation=validation,
            completion=self.completion,
            profile=self.profile,
            hint=self.hints.decide(self.profile),
        )

    def commit(self, index: int, text: Optional[str] = None) -> CommitOutcome:
        """Validate and record the line at ``index``.

        ``text`` replaces the draft first when given. Committing to a line that
        is already correct repeats its result and records nothing.
        """
        if not self._in_range(index):
            logger.debug("Commit to undeclared step %s ignored", index)
            return self._snapshot(index, LineState.EMPTY, ValidationResult())

        if self.slots[index] == LineState.CORRECT:
            return self._snapshot(index, LineState.CORRECT, self.validated[index])

        if text is not None:
            self.type(index, text)
        line = self.drafts[index]
        if not line.strip():
            return self._snapshot(index, self.slots[index], ValidationResult())

        step = self.steps[index]
        validation = self.grader.validate(line, index)
        correct = validation.is_current_step_correct
        state = LineState.CORRECT if correct else LineState.INCORRECT

        self.committed[index] = line
        self.validated[index] = validation
        self.slots[index] = state
        completion = self.completion

        attempt = self.ledger.record(
            index, step.label.value, line, correct, step.reference_answer, completion.percentage,
        )
        if attempt is not None:
            self.profile = classify(self.ledger.attempts, self.thresholds)
            self.hints.observe(self.profile)

        extras = {}
        if not correct:
            user_tokens = tokenize_math(line)
            expected_tokens = tokenize_math(step.reference_answer)
            feedback = token_feedback(user_tokens, expected_tokens)
            history = [a.sanitized_input for a in self.ledger.for_step(index)]
            extras = {
                "token_feedback": feedback,
                "token_hint": token_feedback_hint(feedback, user_tokens, expected_tokens),
                "diagnosis": diagnose(normalize(line), step.reference_answer, history),
            }

        outcome = CommitOutcome(
            step_index=index,
            state=state,
            validation=validation,
            completion=completion,
            attempt=attempt,
            profile=self.profile,
            hint=self.hints.decide(self.profile),
            guidance=self.grader.detect_final_answer_jump(line, index, self.committed),
            **extras,
        )

        logger.debug(
            "Step %s committed: %s (%s%%)", index, state.value, completion.percentage,
            extra={"step_index": index},
        )
        return outcome

    def acknowledge_hint(self) -> None:
        self.hints.acknowledge_hint()
