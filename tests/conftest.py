import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stepcheck.schemas import Step, StepLabel  # noqa: E402


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def linear_steps():
    """f(x) = 6x + 4 evaluated at x = 6."""
    return [
        Step(label=StepLabel.SUBSTITUTION, answer="6(6)+4"),
        Step(label=StepLabel.SIMPLIFICATION, answer="36+4"),
        Step(label=StepLabel.FINAL, answer="40"),
    ]
