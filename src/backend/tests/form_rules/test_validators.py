import pytest

from common.form_rules.context import RuleContext
from common.form_rules.registry import Validator, registry


def check(key, value, arg=None) -> bool:
    ctx = RuleContext(control=None, value=value, snapshot={})
    return registry.resolve(key)(ctx, arg)


def test_filled_and_blank():
    assert check(Validator.FILLED, "x")
    assert not check(Validator.FILLED, "")
    assert not check(Validator.FILLED, [])
    assert not check(Validator.FILLED, False)
    assert check(Validator.FILLED, 0)
    assert check(Validator.BLANK, None)


def test_equal_compares_as_text():
    assert check(Validator.EQUAL, 5, "5")
    assert check(Validator.EQUAL, True, True)
    assert not check(Validator.EQUAL, False, True)
    assert check(Validator.IS_IN, "b", ["a", "b"])
    assert check(Validator.EQUAL, ["a", "b"], ["a", "b", "c"])
    assert not check(Validator.EQUAL, ["a", "x"], ["a", "b"])
    assert not check(Validator.EQUAL, [], ["a"])
    assert check(Validator.NOT_EQUAL, "a", "b")
    assert check(Validator.IS_NOT_IN, "z", ["a", "b"])


def test_lengths():
    assert check(Validator.MIN_LENGTH, "abc", 3)
    assert not check(Validator.MIN_LENGTH, "ab", 3)
    assert check(Validator.MAX_LENGTH, "abcde", 5)
    assert not check(Validator.MAX_LENGTH, "abcdef", 5)
    assert check(Validator.LENGTH, "abcd", [2, 4])
    assert check(Validator.LENGTH, "abcd", 4)
    assert not check(Validator.LENGTH, "abcd", [5, None])
    assert check(Validator.MIN_LENGTH, ["a", "b"], 2)
    assert check(Validator.MIN_LENGTH, "žluť", 4)


def test_numeric_operators():
    assert check(Validator.INTEGER, 17)
    assert check(Validator.INTEGER, "-17")
    assert not check(Validator.INTEGER, "17.5")
    assert not check(Validator.INTEGER, True)
    assert check(Validator.FLOAT, "17,5")
    assert check(Validator.FLOAT, ".5")
    assert not check(Validator.FLOAT, "1e5x")
    assert check(Validator.RANGE, 18, [18, 120])
    assert not check(Validator.RANGE, 17, [18, 120])
    assert check(Validator.RANGE, "50", [None, 120])
    assert check(Validator.RANGE, 500, [18, ""])
    assert check(Validator.MIN, 3, 3)
    assert not check(Validator.MAX, 4, 3)


@pytest.mark.parametrize(
    "key, value, arg",
    [
        (Validator.RANGE, "abc", [1, 10]),
        (Validator.RANGE, None, [1, 10]),
        (Validator.RANGE, 5, 10),
        (Validator.RANGE, 5, ["x", 10]),
        (Validator.MIN_LENGTH, "abc", "three"),
        (Validator.COUNT, "a", 1),
        (Validator.PATTERN, "abc", None),
        (Validator.PATTERN, "abc", "(unclosed"),
        (Validator.EMAIL, None, None),
        (Validator.URL, 42, None),
    ],
)
def test_type_mismatch_is_false_not_error(key, value, arg):
    assert check(key, value, arg) is False


def test_pattern_must_match_whole_value():
    assert check(Validator.PATTERN, "abc123", r".*[0-9].*")
    assert not check(Validator.PATTERN, "abc", r".*[0-9].*")
    assert not check(Validator.PATTERN, "abc1", r"[a-z]+")
    assert check(Validator.PATTERN_ICASE, "ABC", r"[a-z]+")
    assert check(Validator.PATTERN, ["a1", "b2"], r"[a-z][0-9]")


def test_email_and_url():
    assert check(Validator.EMAIL, "ada@example.com")
    assert not check(Validator.EMAIL, "ada@example")
    assert not check(Validator.EMAIL, "ada example.com")
    assert check(Validator.URL, "https://example.com/path?q=1")
    assert check(Validator.URL, "example.com")
    assert not check(Validator.URL, "not a url")


def test_count_and_submitted():
    assert check(Validator.COUNT, ["a", "b"], [1, 2])
    assert not check(Validator.COUNT, ["a", "b", "c"], [1, 2])
    assert check(Validator.SUBMITTED, True)
    assert not check(Validator.SUBMITTED, False)
