"""Learner behavior classification from the attempt ledger.

``classify`` is a pure function of the full attempt list: it is recomputed
from scratch after every commit and keeps no state between calls.
"""
import logging
import re
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .schemas import (
    Attempt,
    BehaviorTrigger,
    BehaviorType,
    Severity,
    StepBehaviorAnalysis,
    Thresholds,
    UserBehaviorProfile,
)

logger = logging.getLogger(__name__)

REPEATED_CHAR_RE = re.compile(r"(.)\1{2,}")
KEYBOARD_ROLL_RE = re.compile(r"[qwertyuiop]{3,}|[asdfghjkl]{3,}|[zxcvbnm]{3,}")
LEADING_INT_RE = re.compile(r"^[+-]?\d+")

# Order used when two categories share the top score
PRIMARY_PRECEDENCE = [
    BehaviorType.STRUGGLING_HIGH,
    BehaviorType.GUESSING,
    BehaviorType.STRUGGLING,
    BehaviorType.PERSISTENT,
]

RECENT_STEP_WINDOW = 3


def _group_by_step(attempts: Iterable[Attempt]) -> Dict[int, List[Attempt]]:
    groups: Dict[int, List[Attempt]] = {}
    for attempt in attempts:
        groups.setdefault(attempt.step_index, []).append(attempt)
    for group in groups.values():
        group.sort(key=lambda a: (a.attempt_time, a.attempt_id))
    return dict(sorted(groups.items()))


def _time_gaps(attempts: Sequence[Attempt]) -> List[float]:
    return [b.attempt_time - a.attempt_time for a, b in zip(attempts, attempts[1:])]


def is_random_input(user_input: str, expected_answer: str, thresholds: Thresholds) -> bool:
    text = user_input.strip().lower()
    if len(text) < len(expected_answer.strip()) * thresholds.min_input_length_ratio:
        return True
    return bool(REPEATED_CHAR_RE.search(text) or KEYBOARD_ROLL_RE.search(text))


def _leading_int(text: str) -> Optional[int]:
    match = LEADING_INT_RE.match(text.strip())
    return int(match.group()) if match else None


def has_sequential_guessing(inputs: Sequence[str]) -> bool:
    """True when three consecutive inputs read as n, n+1, n+2."""
    numbers = [_leading_int(text) for text in inputs if text.strip()]
    for a, b, c in zip(numbers, numbers[1:], numbers[2:]):
        if a is not None and b is not None and c is not None and b == a + 1 and c == b + 1:
            return True
    return False


class _StepSignals:
    def __init__(self, attempts: List[Attempt], thresholds: Thresholds):
        self.attempts = attempts
        self.wrong_attempts = sum(1 for a in attempts if not a.is_correct)
        self.has_correct = any(a.is_correct for a in attempts)
        self.total_time = max(0.0, attempts[-1].attempt_time - attempts[0].step_start_time)

        gaps = _time_gaps(attempts)
        self.average_attempt_time = sum(gaps) / len(gaps) if gaps else 0.0
        self.rapid_submissions = sum(1 for gap in gaps if gap < thresholds.rapid_submission_time)
        rushed = sum(1 for gap in gaps if gap < thresholds.rushing_time)
        self.rushing_ratio = rushed / max(1, len(attempts) - 1)

        self.random_inputs = sum(
            1 for a in attempts if is_random_input(a.user_input, a.expected_answer, thresholds)
        )
        self.sequential = has_sequential_guessing([a.user_input for a in attempts])
        self.is_stuck = not self.has_correct and (
            self.wrong_attempts >= thresholds.wrong_attempts_struggling
            or self.total_time > thresholds.time_on_step_struggling
        )


def _score(signals: _StepSignals, thresholds: Thresholds) -> Dict[BehaviorType, float]:
    scores = {behavior: 0.0 for behavior in BehaviorType}

    wrong = signals.wrong_attempts
    if wrong >= thresholds.wrong_attempts_high_struggling:
        scores[BehaviorType.STRUGGLING_HIGH] = 1.0
        scores[BehaviorType.STRUGGLING] = 0.8
    elif wrong >= thresholds.wrong_attempts_struggling:
        scores[BehaviorType.STRUGGLING] = 0.7 + (wrong - thresholds.wrong_attempts_struggling) * 0.1

    if signals.total_time > thresholds.time_on_step_struggling and signals.is_stuck:
        time_score = min(0.8, signals.total_time / (thresholds.time_on_step_struggling * 2))
        scores[BehaviorType.STRUGGLING] = max(scores[BehaviorType.STRUGGLING], time_score)

    guessing = 0.0
    if len(signals.attempts) > 1 and signals.rushing_ratio >= thresholds.rushing_consistency_threshold:
        guessing += 0.5
    if signals.rapid_submissions >= thresholds.rapid_submission_count:
        guessing += 0.4
    if signals.random_inputs >= thresholds.random_input_count:
        guessing += 0.4
    if signals.sequential:
        guessing += 0.5
    scores[BehaviorType.GUESSING] = min(1.0, guessing)

    attempts = len(signals.attempts)
    if attempts >= thresholds.persistent_attempts and signals.total_time >= thresholds.persistent_time_min:
        scores[BehaviorType.PERSISTENT] = min(1.0, attempts / (thresholds.persistent_attempts * 2))

    strongest = max(score for behavior, score in scores.items() if behavior != BehaviorType.NORMAL)
    scores[BehaviorType.NORMAL] = max(0.0, 1 - 1.2 * strongest)

    return _resolve_conflicts(scores)


def _resolve_conflicts(scores: Dict[BehaviorType, float]) -> Dict[BehaviorType, float]:
    if scores[BehaviorType.STRUGGLING_HIGH] > 0.5:
        scores[BehaviorType.STRUGGLING] = min(scores[BehaviorType.STRUGGLING], 0.3)
    if scores[BehaviorType.GUESSING] > scores[BehaviorType.STRUGGLING]:
        scores[BehaviorType.STRUGGLING] *= 0.5
    if scores[BehaviorType.PERSISTENT] > 0.5:
        scores[BehaviorType.GUESSING] *= 0.2
    return scores


def _primary_behavior(scores: Dict[BehaviorType, float]) -> BehaviorType:
    best = max(PRIMARY_PRECEDENCE, key=lambda behavior: (scores[behavior], -PRIMARY_PRECEDENCE.index(behavior)))
    if scores[best] > 0.5:
        return best
    return BehaviorType.NORMAL


def _evidence(behavior: BehaviorType, signals: _StepSignals, thresholds: Thresholds) -> List[str]:
    evidence = []
    if behavior in (BehaviorType.STRUGGLING, BehaviorType.STRUGGLING_HIGH):
        evidence.append(f"{signals.wrong_attempts} incorrect attempts")
        if signals.total_time > thresholds.time_on_step_struggling:
            evidence.append(f"{signals.total_time:.0f}s spent on step")
        if signals.is_stuck:
            evidence.append("no correct answer yet")
    elif behavior == BehaviorType.GUESSING:
        if signals.rapid_submissions:
            evidence.append(f"{signals.rapid_submissions} rapid submissions")
        if signals.random_inputs:
            evidence.append(f"{signals.random_inputs} random-looking inputs")
        if signals.sequential:
            evidence.append("sequential number guessing")
        if signals.rushing_ratio >= thresholds.rushing_consistency_threshold:
            evidence.append(f"average {signals.average_attempt_time:.1f}s between attempts")
    elif behavior == BehaviorType.PERSISTENT:
        evidence.append(f"{len(signals.attempts)} attempts over {signals.total_time:.0f}s")
    return evidence


def _analyze_step(
    step_index: int,
    attempts: List[Attempt],
    thresholds: Thresholds,
) -> Tuple[StepBehaviorAnalysis, List[BehaviorTrigger]]:
    signals = _StepSignals(attempts, thresholds)
    scores = _score(signals, thresholds)
    primary = _primary_behavior(scores)
    flags = [
        behavior for behavior in PRIMARY_PRECEDENCE
        if behavior != primary and scores[behavior] > 0.3
    ]

    analysis = StepBehaviorAnalysis(
        step_label=attempts[-1].step_label,
        primary_behavior=primary,
        behavior_flags=flags,
        wrong_attempts=signals.wrong_attempts,
        total_time=signals.total_time,
        average_attempt_time=signals.average_attempt_time,
        is_stuck=signals.is_stuck,
        behavior_scores=scores,
    )

    attempt_ids = [a.attempt_id for a in attempts]
    triggers = []
    if primary != BehaviorType.NORMAL and scores[primary] > 0.6:
        triggers.append(BehaviorTrigger(
            type=primary,
            severity=Severity.from_score(scores[primary]),
            description=primary.description,
            evidence=_evidence(primary, signals, thresholds),
            step_index=step_index,
            attempt_ids=attempt_ids,
        ))
    for flag in flags:
        if scores[flag] > 0.7:
            triggers.append(BehaviorTrigger(
                type=flag,
                severity=Severity.MEDIUM,
                description=flag.description,
                evidence=_evidence(flag, signals, thresholds),
                step_index=step_index,
                attempt_ids=attempt_ids,
            ))
    return analysis, triggers


def current_behavior(step_behaviors: Dict[int, StepBehaviorAnalysis]) -> BehaviorType:
    """Most frequent non-normal behavior over the last few steps, latest step counted twice."""
    recent = sorted(step_behaviors)[-RECENT_STEP_WINDOW:]
    votes: Counter = Counter()
    for position, step_index in enumerate(recent):
        behavior = step_behaviors[step_index].primary_behavior
        if behavior == BehaviorType.NORMAL:
            continue
        votes[behavior] += 2 if position == len(recent) - 1 else 1

    if not votes:
        return BehaviorType.NORMAL
    ranked = votes.most_common()
    if len(ranked) > 1 and ranked[0][1] == ranked[1][1]:
        return BehaviorType.NORMAL
    return ranked[0][0]


def classify(attempts: Sequence[Attempt], thresholds: Optional[Thresholds] = None) -> UserBehaviorProfile:
    """Build a behavior profile from every attempt recorded so far."""
    if not attempts:
        return UserBehaviorProfile()
    thresholds = thresholds or Thresholds()

    step_behaviors: Dict[int, StepBehaviorAnalysis] = {}
    triggers: List[BehaviorTrigger] = []
    for step_index, group in _group_by_step(attempts).items():
        analysis, step_triggers = _analyze_step(step_index, group, thresholds)
        step_behaviors[step_index] = analysis
        triggers.extend(step_triggers)

    ordered = sorted(attempts, key=lambda a: (a.attempt_time, a.attempt_id))
    gaps = _time_gaps(ordered)
    correct = sum(1 for a in attempts if a.is_correct)

    profile = UserBehaviorProfile(
        current_behavior=current_behavior(step_behaviors),
        active_triggers=triggers,
        step_behaviors=step_behaviors,
        overall_accuracy=correct / len(attempts),
        average_time_per_attempt=sum(gaps) / len(gaps) if gaps else 0.0,
        total_attempts=len(attempts),
        struggling_steps=[
            index for index, analysis in step_behaviors.items()
            if analysis.primary_behavior in (BehaviorType.STRUGGLING, BehaviorType.STRUGGLING_HIGH)
        ],
    )
    logger.debug(
        "Classified %s attempts: current behavior %s, %s triggers",
        len(attempts), profile.current_behavior.value, len(triggers),
        extra={"behavior": profile.current_behavior.value},
    )
    return profile
