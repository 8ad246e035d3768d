from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional, Union

from .errors import UnknownOperatorError

logger = logging.getLogger(__name__)

NEGATION_PREFIXES = ("~", "!")


class Validator(str, Enum):
    """Built-in operators. Values are the stable tags used on the wire."""

    FILLED = ":filled"
    BLANK = ":blank"
    EQUAL = ":equal"
    NOT_EQUAL = ":notEqual"
    IS_IN = ":isIn"
    IS_NOT_IN = ":isNotIn"
    MIN_LENGTH = ":minLength"
    MAX_LENGTH = ":maxLength"
    LENGTH = ":length"
    EMAIL = ":email"
    URL = ":url"
    PATTERN = ":pattern"
    PATTERN_ICASE = ":patternCaseInsensitive"
    INTEGER = ":integer"
    FLOAT = ":float"
    MIN = ":min"
    MAX = ":max"
    RANGE = ":range"
    COUNT = ":count"
    SUBMITTED = ":submitted"

    # Aliases.
    REQUIRED = ":filled"
    NUMERIC = ":integer"

    def __invert__(self) -> "OperatorRef":
        return OperatorRef(self, negated=True)


OperatorKey = Union[Validator, str]


@dataclass(frozen=True)
class OperatorRef:
    """An operator key plus a negation flag: `Builtin(enum) | Named(str)`."""

    key: OperatorKey
    negated: bool = False

    def __invert__(self) -> "OperatorRef":
        return OperatorRef(self.key, negated=not self.negated)

    @property
    def builtin(self) -> bool:
        return isinstance(self.key, Validator)

    @property
    def tag(self) -> str:
        return self.key.value if isinstance(self.key, Validator) else self.key

    @classmethod
    def parse(cls, operator: Union["OperatorRef", OperatorKey]) -> "OperatorRef":
        if isinstance(operator, OperatorRef):
            return operator
        if isinstance(operator, Validator):
            return cls(operator)
        if not isinstance(operator, str) or not operator:
            raise TypeError(f"Operator must be a Validator or a non-empty string, got {operator!r}")

        negated = False
        key = operator
        while key[:1] in NEGATION_PREFIXES:
            negated = not negated
            key = key[1:]
        try:
            return cls(Validator(key), negated)
        except ValueError:
            return cls(key, negated)


Predicate = Callable[[Any, Any], Any]


@dataclass(frozen=True)
class Operator:
    key: OperatorKey
    func: Predicate
    message: Optional[str] = None

    @property
    def tag(self) -> str:
        return self.key.value if isinstance(self.key, Validator) else self.key

    def __call__(self, ctx, arg) -> bool:
        return bool(self.func(ctx, arg))


class OperatorRegistry:
    def __init__(self):
        self._builtins: Dict[Validator, Operator] = {}
        self._named: Dict[str, Operator] = {}

    def register_builtin(self, key: Validator, func: Predicate, message: Optional[str] = None) -> None:
        if key in self._builtins:
            raise ValueError(f"Duplicate built-in operator registered: {key.value}")
        self._builtins[key] = Operator(key, func, message)

    def register(self, name: str, func: Predicate, message: Optional[str] = None) -> Operator:
        if not name or name[:1] in (":",) + NEGATION_PREFIXES:
            raise ValueError(f"Invalid operator name: {name!r}")
        if name in self._named:
            raise ValueError(f"Duplicate operator registered: {name}")
        operator = Operator(name, func, message)
        self._named[name] = operator
        logger.info("Registered validation operator %s", name)
        return operator

    def resolve(self, ref: Union[OperatorRef, OperatorKey]) -> Operator:
        ref = OperatorRef.parse(ref)
        if isinstance(ref.key, Validator):
            operator = self._builtins.get(ref.key)
        else:
            operator = self._named.get(ref.key)
        if operator is None:
            raise UnknownOperatorError(ref.tag)
        return operator

    def __contains__(self, key: object) -> bool:
        try:
            self.resolve(key)  # type: ignore[arg-type]
        except (UnknownOperatorError, TypeError):
            return False
        return True

    def operators(self) -> Iterable[Operator]:
        yield from self._builtins.values()
        yield from self._named.values()


registry = OperatorRegistry()


def register_validator(name: str, message: Optional[str] = None) -> Callable[[Predicate], Predicate]:
    """Register a named validator with the process-wide registry.

    The predicate receives a `RuleContext` (control, coerced value and the
    whole snapshot) and the rule argument; its result is read for truthiness.
    """

    def decorator(func: Predicate) -> Predicate:
        registry.register(name, func, message)
        return func

    return decorator
