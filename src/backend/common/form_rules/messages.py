from __future__ import annotations

import math
import re
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol

from .registry import OperatorRef, OperatorRegistry, Validator, registry as default_registry
from .tree import ControlRef, RuleNode
from .validators import stringify, to_number

if TYPE_CHECKING:
    from .controls import Control, Form

PLACEHOLDER_RE = re.compile(r"%(%|name|label|value|[0-9]+\$[ds]|[ds])")

# Negated built-ins borrow the message of their logical counterpart.
NEGATED_COUNTERPARTS = {
    Validator.FILLED: Validator.BLANK,
    Validator.BLANK: Validator.FILLED,
    Validator.EQUAL: Validator.NOT_EQUAL,
    Validator.NOT_EQUAL: Validator.EQUAL,
    Validator.IS_IN: Validator.IS_NOT_IN,
    Validator.IS_NOT_IN: Validator.IS_IN,
}


class Translator(Protocol):
    def translate(self, message: str, count: Optional[int] = None) -> str:
        ...


def translate(form: "Form", message: str, count: Optional[int] = None) -> str:
    if form.translator is None:
        return message
    return str(form.translator.translate(message, count))


def plural_count(argument: Any) -> Optional[int]:
    if isinstance(argument, int) and not isinstance(argument, bool):
        return argument
    return None


def message_template(
    node: RuleNode,
    form: "Form",
    operators: OperatorRegistry = default_registry,
) -> str:
    """Untranslated message template of a rule, never empty."""
    if node.message:
        return node.message
    ref = node.operator
    configured = form.config.message_for(ref)
    if configured:
        return configured
    if ref.negated:
        counterpart = NEGATED_COUNTERPARTS.get(ref.key) if isinstance(ref.key, Validator) else None
        if counterpart is not None:
            return operators.resolve(OperatorRef(counterpart)).message or form.config.default_message
        return form.config.default_message
    return operators.resolve(ref).message or form.config.default_message


def control_label(control: "Control", form: "Form") -> str:
    if control.label is None:
        return control.name or ""
    return translate(form, control.label).rstrip(":")


def format_message(
    template: str,
    *,
    name: str,
    label: str,
    value: Any,
    argument: Any,
    resolve: Callable[[ControlRef], Any],
) -> str:
    """Substitute %name, %label, %value and the argument placeholders.

    `%d`/`%s` consume argument items in order, `%2$d` picks one by position
    and continues from there; control references are read through `resolve`.
    """
    args = argument if isinstance(argument, list) else [argument]
    position = -1

    def replace(match: "re.Match[str]") -> str:
        nonlocal position
        token = match.group(1)
        if token == "%":
            return "%"
        if token == "name":
            return name
        if token == "label":
            return label
        if token == "value":
            if isinstance(value, (list, tuple)):
                return ", ".join(stringify(v) for v in value)
            return stringify(value)

        if "$" in token:
            position = int(token.split("$", 1)[0]) - 1
        else:
            position += 1
        item = args[position] if 0 <= position < len(args) else None
        if isinstance(item, ControlRef):
            item = resolve(item)
        if item is None:
            return ""
        if token.endswith("d"):
            number = to_number(item)
            if number is None or (isinstance(number, float) and not math.isfinite(number)):
                return stringify(item)
            return stringify(int(number))
        return stringify(item)

    return PLACEHOLDER_RE.sub(replace, template)
