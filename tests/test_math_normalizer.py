import logging

import pytest

from stepcheck.exceptions import LatexConversionError
from stepcheck.math_normalizer import latex_to_linear, normalize, sanitize_text


def test_empty_input():
    assert normalize("") == ""
    assert normalize(None) == ""


def test_whitespace_and_case_removed():
    assert normalize("  6 (6) + 4 ") == "6(6)+4"
    assert normalize("Yes") == "yes"


def test_invisible_characters_removed():
    assert normalize("x\u00a0+\u200b2\ufeff") == "x+2"


def test_unicode_operators():
    assert normalize("3 × 4 ÷ 2") == "3*4/2"
    assert normalize("5 − 1") == "5-1"
    assert normalize("x²") == "x^2"
    assert normalize("2π") == "2pi"


def test_fraction_and_roots():
    assert normalize("\\frac{1}{2}") == "(1)/(2)"
    assert normalize("\\sqrt{16}") == "sqrt(16)"
    assert normalize("\\sqrt[3]{8}") == "root(8,3)"


def test_operator_commands():
    assert normalize("2 \\cdot 3") == "2*3"
    assert normalize("6 \\times 6") == "6*6"
    assert normalize("8 \\div 2") == "8/2"


def test_layout_and_colour_commands_dropped():
    assert normalize("\\left(x+1\\right)") == "(x+1)"
    assert normalize("\\textcolor{red}{5}") == "5"


def test_exponent_groups():
    assert normalize("x^{2}") == "x^2"
    assert normalize("x^{10}") == "x^(10)"


def test_latex_to_linear_rejects_malformed_markup():
    with pytest.raises(LatexConversionError):
        latex_to_linear("\\frac{1}{2")
    with pytest.raises(LatexConversionError):
        latex_to_linear("x}")


def test_malformed_markup_falls_back_to_cleanup(caplog):
    with caplog.at_level(logging.WARNING):
        result = normalize("\\frac{1}{2")
    assert "\\" not in result
    assert "{" not in result and "}" not in result
    assert any("regex cleanup" in r.getMessage() for r in caplog.records)


def test_normalize_is_stable():
    once = normalize("\\frac{x}{2} + 1")
    assert normalize(once) == once


def test_sanitize_text():
    assert sanitize_text(" No ") == "no"
    assert sanitize_text("") == ""


def test_deeply_nested_markup_falls_back_to_cleanup():
    nested = "{" * 600 + "1" + "}" * 600
    with pytest.raises(LatexConversionError):
        latex_to_linear(nested)
    assert normalize(nested) == "1"
    assert "2" in normalize("^" * 600 + "2")


def test_moderate_nesting_is_converted():
    assert normalize("{" * 20 + "x" + "}" * 20) == "(" * 20 + "x" + ")" * 20
