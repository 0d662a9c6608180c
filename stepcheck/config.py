import os
from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("STEPCHECK_LOG_LEVEL", "INFO")
LOG_JSON = os.getenv("STEPCHECK_LOG_JSON", "false").lower() in ("1", "true", "yes")

# Equivalence
NUMERIC_TOLERANCE = float(os.getenv("STEPCHECK_NUMERIC_TOLERANCE", "1e-10"))
MAX_EXPRESSION_LENGTH = int(os.getenv("STEPCHECK_MAX_EXPRESSION_LENGTH", "200"))
# Bounds on what the parser lets sympy evaluate exactly
MAX_EXPONENT = int(os.getenv("STEPCHECK_MAX_EXPONENT", "1000"))
MAX_FACTORIAL_ARGUMENT = int(os.getenv("STEPCHECK_MAX_FACTORIAL_ARGUMENT", "170"))
MAX_MAGNITUDE = 1e300

# Progress
CONSOLATION_MAX_EXCESS_CHARS = 3

# Attempt ledger
DUPLICATE_WINDOW_SECONDS = float(os.getenv("STEPCHECK_DUPLICATE_WINDOW", "0.1"))

# Hint requests
HINT_ATTEMPT_INTERVAL = int(os.getenv("STEPCHECK_HINT_INTERVAL", "3"))
HINT_BEHAVIORS = ("struggling", "struggling-high", "guessing", "persistent")

# Behavior classifier (seconds)
WRONG_ATTEMPTS_STRUGGLING = 3
WRONG_ATTEMPTS_HIGH_STRUGGLING = 5
TIME_ON_STEP_STRUGGLING = 60.0
RAPID_SUBMISSION_TIME = 3.0
RAPID_SUBMISSION_COUNT = 3
RUSHING_TIME = 1.5
RUSHING_CONSISTENCY_THRESHOLD = 0.8
MIN_INPUT_LENGTH_RATIO = 0.3
RANDOM_INPUT_COUNT = 2
PERSISTENT_ATTEMPTS = 7
PERSISTENT_TIME_MIN = 30.0
