from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import config


class StepLabel(str, Enum):
    SUBSTITUTION = "substitution"
    SIMPLIFICATION = "simplification"
    EVALUATION = "evaluation"
    FINAL = "final"
    MATH = "math"
    TEXT = "text"


class Step(BaseModel):
    label: StepLabel
    answer: Union[str, List[str]]
    placeholder: Optional[str] = None

    @field_validator("answer")
    @classmethod
    def _answer_not_empty(cls, value):
        if isinstance(value, list) and not value:
            raise ValueError("a step needs at least one acceptable answer")
        return value

    @property
    def answers(self) -> List[str]:
        """All acceptable answers for this step."""
        return list(self.answer) if isinstance(self.answer, list) else [self.answer]

    @property
    def reference_answer(self) -> str:
        """The answer used for lengths and display."""
        return self.answers[0]


class ValidationResult(BaseModel):
    mathematically_correct: bool = False
    positionally_valid: bool = False
    final_answer_detected: bool = False
    is_current_step_correct: bool = False


class LineState(str, Enum):
    EMPTY = "empty"
    ATTEMPTED = "attempted"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class CompletionStatus(BaseModel):
    total_steps: int
    completed_steps: int
    correct_steps: int
    percentage: float
    base_progress: float
    consolation_progress: float
    step_correctness: List[bool]
    final_answer_detected: bool
    final_answer_position: Optional[int] = None
    is_complete: bool = False
    all_correct: bool = False


class Attempt(BaseModel):
    model_config = ConfigDict(frozen=True)

    attempt_id: int
    step_index: int
    step_label: str
    user_input: str
    sanitized_input: str
    is_correct: bool
    expected_answer: str
    sanitized_expected_answer: str
    cumulative_progress: float
    step_start_time: float
    attempt_time: float
    time_spent_on_step: Optional[float] = None


class BehaviorType(str, Enum):
    NORMAL = "normal"
    STRUGGLING = "struggling"
    STRUGGLING_HIGH = "struggling-high"
    GUESSING = "guessing"
    PERSISTENT = "persistent"

    @property
    def description(self) -> str:
        return BEHAVIOR_DESCRIPTIONS[self]


BEHAVIOR_DESCRIPTIONS: Dict[BehaviorType, str] = {
    BehaviorType.NORMAL: "Working steadily through the problem",
    BehaviorType.STRUGGLING: "Having difficulty with current step",
    BehaviorType.STRUGGLING_HIGH: "Experiencing significant difficulty",
    BehaviorType.GUESSING: "Making rapid, seemingly random attempts",
    BehaviorType.PERSISTENT: "Making many attempts but showing determination",
}


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @classmethod
    def from_score(cls, score: float) -> "Severity":
        if score >= 0.8:
            return cls.HIGH
        if score >= 0.6:
            return cls.MEDIUM
        return cls.LOW


class Thresholds(BaseModel):
    """Classifier thresholds. Times are in seconds."""

    model_config = ConfigDict(frozen=True)

    wrong_attempts_struggling: int = config.WRONG_ATTEMPTS_STRUGGLING
    wrong_attempts_high_struggling: int = config.WRONG_ATTEMPTS_HIGH_STRUGGLING
    time_on_step_struggling: float = config.TIME_ON_STEP_STRUGGLING
    rapid_submission_time: float = config.RAPID_SUBMISSION_TIME
    rapid_submission_count: int = config.RAPID_SUBMISSION_COUNT
    rushing_time: float = config.RUSHING_TIME
    rushing_consistency_threshold: float = config.RUSHING_CONSISTENCY_THRESHOLD
    min_input_length_ratio: float = config.MIN_INPUT_LENGTH_RATIO
    random_input_count: int = config.RANDOM_INPUT_COUNT
    persistent_attempts: int = config.PERSISTENT_ATTEMPTS
    persistent_time_min: float = config.PERSISTENT_TIME_MIN


class BehaviorTrigger(BaseModel):
    type: BehaviorType
    severity: Severity
    description: str
    evidence: List[str] = Field(default_factory=list)
    step_index: int
    attempt_ids: List[int] = Field(default_factory=list)


class StepBehaviorAnalysis(BaseModel):
    step_label: str
    primary_behavior: BehaviorType
    behavior_flags: List[BehaviorType]
    wrong_attempts: int
    total_time: float
    average_attempt_time: float
    is_stuck: bool
    behavior_scores: Dict[BehaviorType, float]


class UserBehaviorProfile(BaseModel):
    current_behavior: BehaviorType = BehaviorType.NORMAL
    active_triggers: List[BehaviorTrigger] = Field(default_factory=list)
    step_behaviors: Dict[int, StepBehaviorAnalysis] = Field(default_factory=dict)
    overall_accuracy: float = 0.0
    average_time_per_attempt: float = 0.0
    total_attempts: int = 0
    struggling_steps: List[int] = Field(default_factory=list)


class FinalAnswerGuidance(BaseModel):
    is_final_answer: bool = False
    guidance_message: Optional[str] = None
    next_missing_step_index: Optional[int] = None
    next_missing_step: Optional[Step] = None


class TokenStatus(str, Enum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"
    GREY = "grey"


class TokenFeedback(BaseModel):
    token: str
    status: TokenStatus
    index: int


class AnswerDiagnosisKind(str, Enum):
    SIGN_ERROR = "sign-error"
    REPETITION = "repetition"
    CLOSE_ATTEMPT = "close-attempt"
    MAGNITUDE_ERROR = "magnitude-error"
    GUESSING = "guessing"
    RANDOM = "random"
    DEFAULT = "default"


class AnswerDiagnosis(BaseModel):
    kind: AnswerDiagnosisKind
    description: str
    user_input: str
    correct_answer: str
    attempt_history: List[str] = Field(default_factory=list)


class HintDecision(BaseModel):
    should_request: bool
    reason: Optional[str] = None
    attempts_since_last_hint: int = 0


class ProblemKey(BaseModel):
    model_config = ConfigDict(frozen=True)

    topic_id: Optional[int] = None
    category_id: Optional[int] = None
    question_id: Optional[int] = None


class CommitOutcome(BaseModel):
    step_index: int
    state: LineState
    validation: ValidationResult
    completion: CompletionStatus
    attempt: Optional[Attempt] = None
    profile: UserBehaviorProfile
    hint: HintDecision
    guidance: FinalAnswerGuidance = Field(default_factory=FinalAnswerGuidance)
    token_feedback: List[TokenFeedback] = Field(default_factory=list)
    token_hint: Optional[str] = None
    diagnosis: Optional[AnswerDiagnosis] = None
