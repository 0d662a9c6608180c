import pytest

from stepcheck.equivalence import (
    are_equivalent,
    evaluate_number,
    matches_any,
    parse_math,
    split_equation,
)
from stepcheck.exceptions import ExpressionError
from stepcheck.schemas import StepLabel


def test_identical_answers():
    assert are_equivalent("6(6)+4", "6(6)+4")


def test_numeric_equivalence():
    assert are_equivalent("40", "36+4")
    assert are_equivalent("1/2", "0.5")
    assert are_equivalent("\\frac{1}{2}", "0.5")
    assert are_equivalent("sqrt(16)", "4")
    assert not are_equivalent("41", "40")


def test_implicit_multiplication():
    assert are_equivalent("6(6)+4", "40")
    assert are_equivalent("2x", "2*x")


def test_symbolic_equivalence():
    assert are_equivalent("2x+3", "3+2x")
    assert are_equivalent("x^2", "x*x")
    assert not are_equivalent("x+1", "x+2")


@pytest.mark.parametrize("a,b", [
    ("40", "36+4"),
    ("0.5", "1/2"),
    ("41", "40"),
    ("2x+3", "3+2x"),
    ("3 × 4", "12"),
])
def test_symmetry(a, b):
    assert are_equivalent(a, b) == are_equivalent(b, a)


def test_equations_compared_side_by_side():
    assert are_equivalent("y=2x+1", "y=1+2x")
    assert not are_equivalent("y=2x+1", "y=2x+2")
    assert not are_equivalent("y=2x+1", "2x+1")


def test_text_synonyms():
    assert are_equivalent("No", "no", StepLabel.TEXT)
    assert are_equivalent("NO", "no", StepLabel.TEXT)
    assert are_equivalent("n", "no", StepLabel.TEXT)
    assert are_equivalent("True", "yes", StepLabel.TEXT)
    assert not are_equivalent("yes", "no", StepLabel.TEXT)


def test_unparseable_input_is_not_equivalent():
    assert are_equivalent("__import__('os')", "1") is False
    assert are_equivalent("(((", "1") is False


def test_matches_any():
    assert matches_any("0.50", ["1/2", "half"])
    assert not matches_any("3", ["1/2", "0.25"])


def test_parse_math_rejects_bad_input():
    with pytest.raises(ExpressionError):
        parse_math("")
    with pytest.raises(ExpressionError):
        parse_math("1;2")
    with pytest.raises(ExpressionError):
        parse_math("1+" * 150)


def test_evaluate_number():
    assert evaluate_number("36+4") == 40
    assert evaluate_number("x+1") is None


def test_split_equation():
    assert split_equation("y=2x") == ("y", "2x")
    assert split_equation("2x") == ("2x",)
    assert split_equation("x>=2") == ("x>=2",)


@pytest.mark.parametrize("expr", ["9^9^9", "2^100000", "0.5^(10^9)", "100000!", "(10^10)!"])
def test_parse_math_rejects_oversized_evaluation(expr):
    with pytest.raises(ExpressionError):
        parse_math(expr)


def test_power_tower_is_not_equivalent():
    assert are_equivalent("9^9^9", "40") is False
    assert are_equivalent("9^9^9", "9^9^9") is True


def test_small_powers_and_factorials_still_evaluate():
    assert evaluate_number("2^10") == 1024
    assert evaluate_number("5!") == 120
    assert are_equivalent("x^2*x^3", "x^5")


def test_infinity_markup_is_not_a_yes():
    assert not are_equivalent("\\infty", "yes", StepLabel.TEXT)
    assert not are_equivalent("yes", "\\infty", StepLabel.TEXT)
    assert are_equivalent("Oo", "yes", StepLabel.TEXT)
    assert are_equivalent("\\infty", "\\infty", StepLabel.TEXT)
