import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from .config import DUPLICATE_WINDOW_SECONDS
from .math_normalizer import normalize
from .schemas import Attempt

logger = logging.getLogger(__name__)


@dataclass
class StepTiming:
    step_index: int
    start_time: float
    end_time: Optional[float] = None

    @property
    def is_completed(self) -> bool:
        return self.end_time is not None

    @property
    def duration(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return self.end_time - self.start_time


class AttemptLedger:
    """Append-only record of validated attempts for one problem session."""

    def __init__(self, clock: Callable[[], float] = time.time, duplicate_window: float = DUPLICATE_WINDOW_SECONDS):
        self.clock = clock
        self.duplicate_window = duplicate_window
        self._attempts: List[Attempt] = []
        self._timings: Dict[int, StepTiming] = {}
        self._next_id = 1
        self._last_event: Optional[Tuple[int, str, float]] = None

    @property
    def attempts(self) -> List[Attempt]:
        return list(self._attempts)

    def __len__(self) -> int:
        return len(self._attempts)

    def start_step_timer(self, step_index: int) -> StepTiming:
        """Start timing a step on its first non-empty input; later calls are no-ops."""
        timing = self._timings.get(step_index)
        if timing is None:
            timing = StepTiming(step_index=step_index, start_time=self.clock())
            self._timings[step_index] = timing
            logger.debug("Step %s timer started", step_index)
        return timing

    def _complete_step_timer(self, step_index: int, now: float) -> Optional[float]:
        timing = self._timings.get(step_index)
        if timing is None or timing.is_completed:
            return None
        timing.end_time = now
        return timing.duration

    def timing_for(self, step_index: int) -> Optional[StepTiming]:
        return self._timings.get(step_index)

    def _is_duplicate(self, step_index: int, sanitized: str, now: float) -> bool:
        if self._last_event is None:
            return False
        last_index, last_input, last_time = self._last_event
        return last_index == step_index and last_input == sanitized and now - last_time < self.duplicate_window

    def record(
        self,
        step_index: int,
        step_label: str,
        user_input: str,
        is_correct: bool,
        expected_answer: str,
        progress: float,
    ) -> Optional[Attempt]:
        """Append one attempt and return it.

        A call repeating the previous ``(step_index, normalized input)`` inside
        the duplicate window is a double-fired event: nothing is recorded and
        ``None`` is returned.
        """
        now = self.clock()
        sanitized = normalize(user_input)

        if self._is_duplicate(step_index, sanitized, now):
            logger.debug("Ignoring duplicate attempt on step %s: %r", step_index, user_input)
            return None
        self._last_event = (step_index, sanitized, now)

        if user_input.strip():
            timing = self.start_step_timer(step_index)
        else:
            timing = self._timings.get(step_index)
        step_start_time = timing.start_time if timing else now

        time_spent = self._complete_step_timer(step_index, now) if is_correct else None

        attempt = Attempt(
            attempt_id=self._next_id,
            step_index=step_index,
            step_label=str(step_label),
            user_input=user_input,
            sanitized_input=sanitized,
            is_correct=is_correct,
            expected_answer=expected_answer,
            sanitized_expected_answer=normalize(expected_answer),
            cumulative_progress=progress,
            step_start_time=step_start_time,
            attempt_time=now,
            time_spent_on_step=time_spent,
        )
        self._next_id += 1
        self._attempts.append(attempt)

        logger.info(
            "Attempt %s stored: step %s (%s) correct=%s progress=%s%%",
            attempt.attempt_id, step_index, step_label, is_correct, progress,
            extra={"step_index": step_index, "attempt_id": attempt.attempt_id},
        )
        return attempt

    def for_step(self, step_index: int) -> List[Attempt]:
        return [a for a in self._attempts if a.step_index == step_index]

    def clear(self) -> None:
        self._attempts = []
        self._timings = {}
        self._next_id = 1
        self._last_event = None

    def stats(self) -> dict:
        if not self._attempts:
            return {
                "total_attempts": 0,
                "correct_attempts": 0,
                "accuracy": 0.0,
                "steps_attempted": 0,
                "step_durations": {},
            }

        correct = sum(1 for a in self._attempts if a.is_correct)
        durations = {
            index: round(timing.duration, 3)
            for index, timing in sorted(self._timings.items())
            if timing.is_completed
        }
        return {
            "total_attempts": len(self._attempts),
            "correct_attempts": correct,
            "accuracy": round(correct / len(self._attempts), 4),
            "steps_attempted": len({a.step_index for a in self._attempts}),
            "step_durations": durations,
        }
