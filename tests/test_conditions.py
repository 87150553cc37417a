import pytest

from api_chain.conditions import ConditionEvaluator, evaluate_condition
from api_chain.errors import ConditionError


def test_sentinels_skip_the_parser():
    ev = ConditionEvaluator()
    assert ev.evaluate("always") is True
    assert ev.evaluate("never") is False


@pytest.mark.parametrize("expr,expected", [
    ("\"mike\" == 'mike'", True),
    ("'mike' != \"mike\"", False),
    ("1 < 2", True),
    ("2.5 >= 3", False),
    ("-1 < 0", True),
    ("'a' < 'b' && 3 > 2", True),
    ("1 == 2 or 'x' == 'x'", True),
    ("!(1 == 1)", False),
    ("not false", True),
    ("'it\\'s' == \"it's\"", True),
    ("0", False),
    ("''", False),
    ("null == null", True),
])
def test_expressions(expr, expected):
    assert evaluate_condition(expr) is expected


@pytest.mark.parametrize("expr", [
    "23'2",
    "hack",
    "'unterminated",
    "1 ==",
    "(1 == 1",
    "1 2",
    "'a' < 1",
    "",
])
def test_malformed_expressions_raise(expr):
    with pytest.raises(ConditionError):
        evaluate_condition(expr)


def test_deep_nesting_is_a_condition_error():
    with pytest.raises(ConditionError):
        evaluate_condition("(" * 5000 + "1 == 1" + ")" * 5000)
    with pytest.raises(ConditionError):
        evaluate_condition("!" * 5000 + "true")


def test_shallow_nesting_still_evaluates():
    assert evaluate_condition("(" * 20 + "1 == 1" + ")" * 20) is True


def test_oversized_number_literal_is_a_condition_error():
    with pytest.raises(ConditionError):
        evaluate_condition("1" * 5000 + " == 1")
