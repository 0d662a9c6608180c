"""Internal error types.

None of these escape the public validation or classification operations:
each is raised and caught inside the pipeline so that it can fall back to a
cheaper strategy.
"""


class StepcheckError(Exception):
    """Base class for stepcheck errors."""
    pass


class LatexConversionError(StepcheckError):
    """Raised when math markup cannot be converted to linear form."""
    pass


class ExpressionError(StepcheckError):
    """Raised when text cannot be safely handed to the expression parser."""
    pass
