import logging
from typing import Optional

from .config import HINT_ATTEMPT_INTERVAL, HINT_BEHAVIORS
from .schemas import BehaviorType, HintDecision, UserBehaviorProfile

logger = logging.getLogger(__name__)


class HintIntervalTracker:
    """Decides when a hint should be requested. Never fetches one itself.

    A hint is warranted while the learner shows a hint-worthy behavior, or once
    ``interval`` attempts have passed since the last hint. A change of behavior
    restarts the count.
    """

    def __init__(self, interval: int = HINT_ATTEMPT_INTERVAL):
        self.interval = interval
        self.attempts_since_hint = 0
        self.interval_active = False
        self.last_behavior: Optional[BehaviorType] = None

    def observe(self, profile: UserBehaviorProfile) -> None:
        """Account for one new attempt and the profile computed after it."""
        behavior = profile.current_behavior
        if self.last_behavior is not None and behavior != self.last_behavior:
            logger.info(
                "Behavior changed %s -> %s, hint interval reset",
                self.last_behavior.value, behavior.value,
                extra={"behavior": behavior.value},
            )
            self.attempts_since_hint = 0
            self.interval_active = False
        self.last_behavior = behavior

        if self.interval_active:
            return
        self.attempts_since_hint += 1
        if self.attempts_since_hint >= self.interval:
            self.interval_active = True
            logger.info("Hint interval reached after %s attempts", self.attempts_since_hint)

    def should_request_hint(self, profile: UserBehaviorProfile) -> bool:
        return profile.current_behavior.value in HINT_BEHAVIORS or self.interval_active

    def decide(self, profile: UserBehaviorProfile) -> HintDecision:
        reason = None
        if profile.current_behavior.value in HINT_BEHAVIORS:
            reason = f"behavior:{profile.current_behavior.value}"
        elif self.interval_active:
            reason = "attempt-interval"
        return HintDecision(
            should_request=reason is not None,
            reason=reason,
            attempts_since_last_hint=self.attempts_since_hint,
        )

    def acknowledge_hint(self) -> None:
        """Called once a hint has been shown."""
        self.attempts_since_hint = 0
        self.interval_active = False

    def reset(self) -> None:
        self.acknowledge_hint()
        self.last_behavior = None
