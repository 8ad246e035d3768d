from __future__ import annotations

import re
from enum import Enum
from typing import Any, Iterable, Optional

_LINE_BREAKS = re.compile(r"\r\n|\r|\n")
_INTEGER_TEXT = re.compile(r"^[+-]?[0-9]+\Z")

# Strings a browser may post for an unchecked/false checkbox.
_FALSY_TEXT = {"", "0"}


class ControlKind(str, Enum):
    TEXT = "text"
    PASSWORD = "password"
    EMAIL = "email"
    INTEGER = "integer"
    HIDDEN = "hidden"
    TEXTAREA = "textarea"
    CHECKBOX = "checkbox"
    SELECT = "select"
    RADIO_LIST = "radio_list"
    CHECKBOX_LIST = "checkbox_list"
    MULTI_SELECT = "multi_select"
    SUBMIT = "submit"
    BUTTON = "button"


SINGLE_LINE_KINDS = frozenset(
    {ControlKind.TEXT, ControlKind.PASSWORD, ControlKind.EMAIL, ControlKind.INTEGER, ControlKind.HIDDEN}
)
CHOICE_KINDS = frozenset({ControlKind.SELECT, ControlKind.RADIO_LIST})
MULTI_KINDS = frozenset({ControlKind.CHECKBOX_LIST, ControlKind.MULTI_SELECT})
BUTTON_KINDS = frozenset({ControlKind.SUBMIT, ControlKind.BUTTON})


def _as_text(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bool):
        return "1" if raw else ""
    if isinstance(raw, float) and raw.is_integer():
        return str(int(raw))
    if isinstance(raw, (list, tuple)):
        # A scalar control only keeps the last posted value.
        return _as_text(raw[-1]) if raw else ""
    return str(raw)


def _as_list(raw: Any) -> list[str]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple, set, frozenset)):
        return [_as_text(v) for v in raw]
    return [_as_text(raw)]


def normalize_line(raw: Any) -> str:
    return _LINE_BREAKS.sub(" ", _as_text(raw)).strip()


def normalize_text(raw: Any) -> str:
    return _LINE_BREAKS.sub("\n", _as_text(raw))


def coerce_value(kind: ControlKind, raw: Any, items: Optional[Iterable[str]] = None) -> Any:
    """Normalize a raw submitted value into the typed value of a control kind.

    Never raises for user input: values that do not fit the kind are kept in a
    shape the validators can reject (e.g. a non-numeric INTEGER stays text).
    """
    if kind in BUTTON_KINDS:
        return raw is not None and raw is not False

    if kind == ControlKind.CHECKBOX:
        if isinstance(raw, bool):
            return raw
        return _as_text(raw) not in _FALSY_TEXT

    if kind in MULTI_KINDS:
        allowed = None if items is None else set(items)
        values = []
        for value in _as_list(raw):
            if allowed is not None and value not in allowed:
                continue
            if value not in values:
                values.append(value)
        return values

    if kind in CHOICE_KINDS:
        value = _as_text(raw)
        if value == "" or (items is not None and value not in set(items)):
            return None
        return value

    if kind == ControlKind.TEXTAREA:
        return normalize_text(raw)

    text = normalize_line(raw)
    if kind == ControlKind.INTEGER:
        if isinstance(raw, int) and not isinstance(raw, bool):
            return raw
        if text == "":
            return None
        if _INTEGER_TEXT.match(text):
            try:
                return int(text)
            except ValueError:
                # Beyond the interpreter's digit limit; kept as text.
                return text
    return text


def is_filled(value: Any) -> bool:
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, (list, tuple, set, frozenset)):
        return len(value) > 0
    return True
