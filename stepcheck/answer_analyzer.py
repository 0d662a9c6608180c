import re
from typing import Optional, Sequence

from .schemas import AnswerDiagnosis, AnswerDiagnosisKind

# leading number, the way a lenient float parse reads "12abc" as 12
LEADING_NUMBER_RE = re.compile(r"^\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")

DIAGNOSIS_DESCRIPTIONS = {
    AnswerDiagnosisKind.SIGN_ERROR: "The value is right but the sign is wrong. Check your plus and minus signs.",
    AnswerDiagnosisKind.REPETITION: "You have entered this answer before. Try a different approach.",
    AnswerDiagnosisKind.CLOSE_ATTEMPT: "You're very close. Recheck your last calculation.",
    AnswerDiagnosisKind.MAGNITUDE_ERROR: "Your answer is off by a factor of ten or more. Check your place values.",
    AnswerDiagnosisKind.GUESSING: "Your answers are far apart. Work through the step instead of guessing.",
    AnswerDiagnosisKind.RANDOM: "Several different answers so far. Slow down and review the step.",
    AnswerDiagnosisKind.DEFAULT: "Not quite. Review this step and try again.",
}


def parse_number(text: str) -> Optional[float]:
    match = LEADING_NUMBER_RE.match(text or "")
    return float(match.group()) if match else None


def is_sign_error(user_input: str, correct_answer: str) -> bool:
    user, correct = parse_number(user_input), parse_number(correct_answer)
    if user is None or correct is None:
        return False
    return abs(user) == abs(correct) and user != correct


def is_close_attempt(user_input: str, correct_answer: str) -> bool:
    user, correct = parse_number(user_input), parse_number(correct_answer)
    if user is None or correct is None or correct == 0:
        return False
    return abs((user - correct) / correct) * 100 <= 20


def is_repetition(user_input: str, history: Sequence[str]) -> bool:
    if len(history) < 2:
        return False
    return sum(1 for previous in history if previous == user_input) >= 2


def is_scattered_guessing(history: Sequence[str], correct_answer: str) -> bool:
    """Numeric attempts whose distances to the answer vary widely."""
    correct = parse_number(correct_answer)
    if len(history) < 3 or correct is None:
        return False
    values = [v for v in (parse_number(h) for h in history) if v is not None]
    if len(values) < 3:
        return False
    diffs = [abs(v - correct) for v in values]
    mean = sum(diffs) / len(diffs)
    variance = sum((d - mean) ** 2 for d in diffs) / len(diffs)
    return variance > (abs(correct) * 0.5) ** 2


def is_magnitude_error(user_input: str, correct_answer: str) -> bool:
    user, correct = parse_number(user_input), parse_number(correct_answer)
    if user is None or correct is None or correct == 0:
        return False
    ratio = abs(user / correct)
    return 10 <= ratio < 100 or 0.01 < ratio <= 0.1


def diagnose(user_input: str, correct_answer: str, history: Sequence[str] = ()) -> AnswerDiagnosis:
    """Classify a wrong answer. The first matching pattern wins."""
    history = list(history)
    if is_sign_error(user_input, correct_answer):
        kind = AnswerDiagnosisKind.SIGN_ERROR
    elif is_repetition(user_input, history):
        kind = AnswerDiagnosisKind.REPETITION
    elif is_close_attempt(user_input, correct_answer):
        kind = AnswerDiagnosisKind.CLOSE_ATTEMPT
    elif is_magnitude_error(user_input, correct_answer):
        kind = AnswerDiagnosisKind.MAGNITUDE_ERROR
    elif is_scattered_guessing(history, correct_answer):
        kind = AnswerDiagnosisKind.GUESSING
    elif len(history) >= 2:
        kind = AnswerDiagnosisKind.RANDOM
    else:
        kind = AnswerDiagnosisKind.DEFAULT

    return AnswerDiagnosis(
        kind=kind,
        description=DIAGNOSIS_DESCRIPTIONS[kind],
        user_input=user_input,
        correct_answer=correct_answer,
        attempt_history=history,
    )
