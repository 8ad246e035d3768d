"""Built-in operators.

Every predicate here is total over coerced values: a value or argument of the
wrong shape makes the rule fail instead of raising.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional, Sequence

from .coercion import is_filled
from .context import RuleContext
from .registry import Validator, registry

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"^[+-]?[0-9]+\Z")
_FLOAT_RE = re.compile(r"^[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)\Z")
_EMAIL_RE = re.compile(
    r"^[-a-z0-9!#$%&'*+/=?^_`{|}~]+(\.[-a-z0-9!#$%&'*+/=?^_`{|}~]+)*"
    r"@([a-z0-9]([-a-z0-9]{0,61}[a-z0-9])?\.)+[a-z]{2,}\Z",
    re.IGNORECASE,
)
_URL_RE = re.compile(
    r"^https?://([a-z0-9]([-a-z0-9]*[a-z0-9])?\.)*[a-z0-9]([-a-z0-9]*[a-z0-9])?"
    r"(:[0-9]{1,5})?([/?#]\S*)?\Z",
    re.IGNORECASE,
)
_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*:", re.IGNORECASE)


def stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.replace(" ", "").replace(",", ".")
        if _FLOAT_RE.match(text):
            return float(text)
    return None


def _as_values(value: Any) -> list:
    return list(value) if isinstance(value, (list, tuple)) else [value]


def _length(value: Any) -> int:
    if isinstance(value, (list, tuple)):
        return len(value)
    return len(stringify(value))


def _bounds(arg: Any) -> Optional[Sequence[Any]]:
    if isinstance(arg, (list, tuple)):
        return arg if len(arg) == 2 else None
    return [arg, arg]


def in_range(value: Any, bounds: Optional[Sequence[Any]]) -> bool:
    if bounds is None:
        return False
    number = to_number(value)
    if number is None:
        return False
    low, high = (None if b in (None, "") else to_number(b) for b in bounds)
    if (bounds[0] not in (None, "") and low is None) or (bounds[1] not in (None, "") and high is None):
        return False
    return (low is None or number >= low) and (high is None or number <= high)


def validate_filled(ctx: RuleContext, arg: Any) -> bool:
    return is_filled(ctx.value)


def validate_blank(ctx: RuleContext, arg: Any) -> bool:
    return not is_filled(ctx.value)


def validate_equal(ctx: RuleContext, arg: Any) -> bool:
    values = _as_values(ctx.value)
    candidates = {stringify(item) for item in _as_values(arg)}
    return bool(values) and all(stringify(v) in candidates for v in values)


def validate_not_equal(ctx: RuleContext, arg: Any) -> bool:
    return not validate_equal(ctx, arg)


def validate_min_length(ctx: RuleContext, arg: Any) -> bool:
    return in_range(_length(ctx.value), [arg, None])


def validate_max_length(ctx: RuleContext, arg: Any) -> bool:
    return in_range(_length(ctx.value), [None, arg])


def validate_length(ctx: RuleContext, arg: Any) -> bool:
    return in_range(_length(ctx.value), _bounds(arg))


def validate_count(ctx: RuleContext, arg: Any) -> bool:
    if not isinstance(ctx.value, (list, tuple)):
        return False
    return in_range(len(ctx.value), _bounds(arg))


def validate_email(ctx: RuleContext, arg: Any) -> bool:
    return isinstance(ctx.value, str) and bool(_EMAIL_RE.match(ctx.value))


def validate_url(ctx: RuleContext, arg: Any) -> bool:
    if not isinstance(ctx.value, str) or not ctx.value:
        return False
    url = ctx.value if _SCHEME_RE.match(ctx.value) else "http://" + ctx.value
    return bool(_URL_RE.match(url))


def _match_pattern(value: Any, pattern: Any, flags: int = 0) -> bool:
    if not isinstance(pattern, str):
        return False
    try:
        compiled = re.compile(pattern, flags)
    except re.error as exc:
        logger.warning("Invalid validation pattern %r: %s", pattern, exc)
        return False
    return all(compiled.fullmatch(stringify(v)) is not None for v in _as_values(value))


def validate_pattern(ctx: RuleContext, arg: Any) -> bool:
    return _match_pattern(ctx.value, arg)


def validate_pattern_icase(ctx: RuleContext, arg: Any) -> bool:
    return _match_pattern(ctx.value, arg, re.IGNORECASE)


def validate_integer(ctx: RuleContext, arg: Any) -> bool:
    value = ctx.value
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, str) and bool(_INTEGER_RE.match(value))


def validate_float(ctx: RuleContext, arg: Any) -> bool:
    return to_number(ctx.value) is not None


def validate_min(ctx: RuleContext, arg: Any) -> bool:
    return in_range(ctx.value, [arg, None])


def validate_max(ctx: RuleContext, arg: Any) -> bool:
    return in_range(ctx.value, [None, arg])


def validate_range(ctx: RuleContext, arg: Any) -> bool:
    if not isinstance(arg, (list, tuple)):
        return False
    return in_range(ctx.value, _bounds(arg))


def validate_submitted(ctx: RuleContext, arg: Any) -> bool:
    return ctx.value is True


BUILTIN_VALIDATORS = {
    Validator.FILLED: (validate_filled, "This field is required."),
    Validator.BLANK: (validate_blank, "This field should be blank."),
    Validator.EQUAL: (validate_equal, "Please enter %s."),
    Validator.NOT_EQUAL: (validate_not_equal, "This value should not be %s."),
    Validator.IS_IN: (validate_equal, "Please select a valid option."),
    Validator.IS_NOT_IN: (validate_not_equal, "This value is not allowed."),
    Validator.MIN_LENGTH: (validate_min_length, "Please enter at least %d characters."),
    Validator.MAX_LENGTH: (validate_max_length, "Please enter no more than %d characters."),
    Validator.LENGTH: (validate_length, "Please enter a value between %d and %d characters long."),
    Validator.EMAIL: (validate_email, "Please enter a valid email address."),
    Validator.URL: (validate_url, "Please enter a valid URL."),
    Validator.PATTERN: (validate_pattern, "Please enter a value in the required format."),
    Validator.PATTERN_ICASE: (validate_pattern_icase, "Please enter a value in the required format."),
    Validator.INTEGER: (validate_integer, "Please enter a valid integer."),
    Validator.FLOAT: (validate_float, "Please enter a valid number."),
    Validator.MIN: (validate_min, "Please enter a value greater than or equal to %d."),
    Validator.MAX: (validate_max, "Please enter a value less than or equal to %d."),
    Validator.RANGE: (validate_range, "Please enter a value between %d and %d."),
    Validator.COUNT: (validate_count, "Please select between %d and %d items."),
    Validator.SUBMITTED: (validate_submitted, "This button was not used."),
}

for _key, (_func, _message) in BUILTIN_VALIDATORS.items():
    registry.register_builtin(_key, _func, _message)
