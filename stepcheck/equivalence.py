"""Mathematical equivalence of two answers.

Comparison runs through an ordered list of strategies. Each strategy returns
``True``/``False`` when it can decide and ``None`` when it cannot, in which
case the next one is tried:

1. normalized string match
2. numeric evaluation (absolute tolerance)
3. symbolic simplification, compared as canonical strings
4. structural parse, compared as expression trees
5. whitespace/case-insensitive match of the raw inputs

``text`` steps skip the mathematical strategies and use a synonym table.
"""
import logging
import math
import re
from typing import Callable, List, Optional, Sequence, Tuple

import sympy as sp
from sympy.parsing.sympy_parser import (
    convert_xor,
    implicit_multiplication_application,
    parse_expr,
    standard_transformations,
)

from .config import (
    MAX_EXPONENT,
    MAX_EXPRESSION_LENGTH,
    MAX_FACTORIAL_ARGUMENT,
    MAX_MAGNITUDE,
    NUMERIC_TOLERANCE,
)
from .exceptions import ExpressionError
from .math_normalizer import normalize, sanitize_text
from .schemas import StepLabel

logger = logging.getLogger(__name__)

# Implicit multiplication: 2x -> 2*x, 6(6) -> 6*(6)
TRANSFORMATIONS = standard_transformations + (convert_xor, implicit_multiplication_application)
STRUCTURAL_TRANSFORMATIONS = standard_transformations + (convert_xor,)

# Names the parser may resolve; anything else becomes a Symbol or Function.
GLOBAL_DICT = {
    name: getattr(sp, name)
    for name in (
        "Integer", "Float", "Rational", "Symbol", "Function", "factorial",
        "Add", "Mul", "Pow",
        "sqrt", "root", "sin", "cos", "tan", "log", "ln", "exp", "pi", "oo",
    )
}
GLOBAL_DICT["abs"] = sp.Abs

# Stands in for factorial while bounds are checked; never evaluates
_DEFERRED_FACTORIAL = sp.Function("factorial")

SAFE_EXPRESSION_RE = re.compile(r"[0-9a-z+\-*/^().,!|]+")

TEXT_SYNONYMS = [
    {"yes", "y", "true", "t", "correct", "oo"},
    {"no", "n", "false", "f", "incorrect", "hindi"},
]

Sides = Tuple[str, ...]
Strategy = Callable[[Sides, Sides], Optional[bool]]


def split_equation(expr: str) -> Sides:
    """Split ``lhs=rhs`` into its sides; anything else is a single side."""
    if expr.count("=") != 1 or re.search(r"[<>!]=|=[<>]", expr):
        return (expr,)
    lhs, rhs = expr.split("=")
    return (lhs, rhs)


def parse_math(expr: str, structural: bool = False) -> sp.Expr:
    """Parse a normalized expression with sympy.

    Raises:
        ExpressionError: the text is empty, too long or uses characters the
            parser is not allowed to see.
    """
    if not expr:
        raise ExpressionError("empty expression")
    if len(expr) > MAX_EXPRESSION_LENGTH:
        raise ExpressionError("expression too long")
    if not SAFE_EXPRESSION_RE.fullmatch(expr) or "__" in expr:
        raise ExpressionError(f"unsupported characters in {expr!r}")

    expr = expr.replace("|", "")
    transformations = STRUCTURAL_TRANSFORMATIONS if structural else TRANSFORMATIONS
    try:
        # unevaluated pass first, so oversized powers and factorials are
        # rejected before sympy computes them exactly
        _check_bounds(parse_expr(
            expr,
            transformations=transformations,
            global_dict=dict(GLOBAL_DICT, factorial=_DEFERRED_FACTORIAL),
            evaluate=False,
        ))
        return parse_expr(
            expr,
            transformations=transformations,
            global_dict=dict(GLOBAL_DICT),
            evaluate=not structural,
        )
    except ExpressionError:
        raise
    except Exception as e:
        # tokenizer and eval errors surface as assorted exception types
        raise ExpressionError(f"cannot parse {expr!r}: {e}") from e


def _magnitude(expr: sp.Expr) -> float:
    try:
        return abs(complex(expr.evalf(15)))
    except (OverflowError, TypeError, ValueError):
        return math.inf


def _check_bounds(tree: sp.Expr) -> None:
    """Raise ExpressionError if exact evaluation of ``tree`` would blow up."""
    for node in sp.postorder_traversal(tree):
        if isinstance(node, _DEFERRED_FACTORIAL):
            argument = node.args[0]
            if argument.is_number and _magnitude(argument) > MAX_FACTORIAL_ARGUMENT:
                raise ExpressionError("factorial argument too large")
        elif isinstance(node, sp.Pow):
            if node.exp.is_number and _magnitude(node.exp) > MAX_EXPONENT:
                raise ExpressionError("exponent too large")
            if node.is_number and _magnitude(node) > MAX_MAGNITUDE:
                raise ExpressionError("value too large")


def evaluate_number(expr: str) -> Optional[complex]:
    """Numeric value of an expression, or ``None`` if it has free variables."""
    parsed = parse_math(expr)
    if not getattr(parsed, "is_number", False):
        return None
    value = complex(sp.N(parsed))
    if value != value:  # nan
        return None
    return value


def _pairwise(user: Sides, expected: Sides, compare: Callable[[str, str], Optional[bool]]) -> Optional[bool]:
    if len(user) != len(expected):
        return None
    results = []
    for a, b in zip(user, expected):
        outcome = compare(a, b)
        if outcome is None:
            return None
        results.append(outcome)
    return all(results)


def _string_match(user: Sides, expected: Sides) -> Optional[bool]:
    if user == expected:
        return True
    return None


def _numeric_match(user: Sides, expected: Sides) -> Optional[bool]:
    def compare(a: str, b: str) -> Optional[bool]:
        if a == b:
            return True
        value_a = evaluate_number(a)
        value_b = evaluate_number(b)
        if value_a is None or value_b is None:
            return None
        return abs(value_a - value_b) < NUMERIC_TOLERANCE

    return _pairwise(user, expected, compare)


def _symbolic_match(user: Sides, expected: Sides) -> Optional[bool]:
    def compare(a: str, b: str) -> bool:
        if a == b:
            return True
        return str(sp.simplify(parse_math(a))) == str(sp.simplify(parse_math(b)))

    return _pairwise(user, expected, compare)


def _structural_match(user: Sides, expected: Sides) -> Optional[bool]:
    def compare(a: str, b: str) -> bool:
        if a == b:
            return True
        return sp.srepr(parse_math(a, structural=True)) == sp.srepr(parse_math(b, structural=True))

    return _pairwise(user, expected, compare)


MATH_STRATEGIES: List[Tuple[str, Strategy]] = [
    ("string", _string_match),
    ("numeric", _numeric_match),
    ("symbolic", _symbolic_match),
    ("structural", _structural_match),
]


def run_strategies(user_norm: str, expected_norm: str, strategies: Sequence[Tuple[str, Strategy]] = MATH_STRATEGIES) -> Optional[bool]:
    """Run strategies in order; the first decision wins."""
    user_sides = split_equation(user_norm)
    expected_sides = split_equation(expected_norm)

    for name, strategy in strategies:
        try:
            outcome = strategy(user_sides, expected_sides)
        except Exception as e:
            logger.debug("%s comparison failed for %r vs %r: %s", name, user_norm, expected_norm, e)
            continue
        if outcome is not None:
            logger.debug("%s comparison: %r vs %r = %s", name, user_norm, expected_norm, outcome)
            return outcome
    return None


def _text_form(value: str) -> str:
    text = normalize(value)
    # infinity markup also normalizes to "oo"; only a typed "oo" counts as a word
    if text == "oo":
        return sanitize_text(value)
    return text


def are_text_equivalent(user: str, expected: str) -> bool:
    user_norm = _text_form(user)
    expected_norm = _text_form(expected)
    if user_norm == expected_norm:
        return True
    for group in TEXT_SYNONYMS:
        if user_norm in group and expected_norm in group:
            return True
    return False


def are_equivalent(user: str, expected: str, label: Optional[StepLabel] = None) -> bool:
    """Decide whether two answers denote the same value. Never raises."""
    if label == StepLabel.TEXT:
        return are_text_equivalent(user, expected)

    outcome = run_strategies(normalize(user), normalize(expected))
    if outcome is not None:
        return outcome

    result = sanitize_text(user) == sanitize_text(expected)
    logger.debug("All math comparisons undecided for %r vs %r, string fallback = %s", user, expected, result)
    return result


def matches_any(user: str, answers: Sequence[str], label: Optional[StepLabel] = None) -> bool:
    return any(are_equivalent(user, answer, label) for answer in answers)
