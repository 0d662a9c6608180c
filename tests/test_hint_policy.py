from stepcheck.hint_policy import HintIntervalTracker
from stepcheck.schemas import BehaviorType, UserBehaviorProfile


def profile(behavior=BehaviorType.NORMAL):
    return UserBehaviorProfile(current_behavior=behavior)


def test_interval_reached_after_three_attempts():
    tracker = HintIntervalTracker()
    normal = profile()
    tracker.observe(normal)
    tracker.observe(normal)
    assert not tracker.should_request_hint(normal)

    tracker.observe(normal)
    assert tracker.should_request_hint(normal)
    decision = tracker.decide(normal)
    assert decision.should_request
    assert decision.reason == "attempt-interval"
    assert decision.attempts_since_last_hint == 3


def test_counting_stops_while_interval_active():
    tracker = HintIntervalTracker(interval=2)
    for _ in range(5):
        tracker.observe(profile())
    assert tracker.attempts_since_hint == 2
    assert tracker.interval_active


def test_acknowledge_resets_interval():
    tracker = HintIntervalTracker(interval=1)
    tracker.observe(profile())
    assert tracker.should_request_hint(profile())
    tracker.acknowledge_hint()
    assert not tracker.should_request_hint(profile())
    assert tracker.attempts_since_hint == 0


def test_hint_worthy_behaviors_request_immediately():
    for behavior in (BehaviorType.STRUGGLING, BehaviorType.STRUGGLING_HIGH,
                     BehaviorType.GUESSING, BehaviorType.PERSISTENT):
        tracker = HintIntervalTracker()
        tracker.observe(profile(behavior))
        decision = tracker.decide(profile(behavior))
        assert decision.should_request
        assert decision.reason == f"behavior:{behavior.value}"


def test_behavior_change_resets_count():
    tracker = HintIntervalTracker()
    tracker.observe(profile())
    tracker.observe(profile())
    tracker.observe(profile(BehaviorType.GUESSING))
    assert tracker.attempts_since_hint == 1
    assert not tracker.interval_active
