from __future__ import annotations

import json
from typing import Any, Iterable, List, Optional

from .controls import Control, Form
from .messages import control_label, message_template, plural_count, translate
from .models import ControlDescription, FormDescription, RuleDescription, SubmitterDescription
from .registry import OperatorRegistry, registry as default_registry
from .tree import Argument, ConditionNode, ControlRef, Node


def export_argument(argument: Argument) -> Any:
    if isinstance(argument, ControlRef):
        return {"control": argument.address}
    if isinstance(argument, list):
        return [export_argument(item) for item in argument]
    return argument


class Serializer:
    """Exports rule trees for a remote evaluator.

    Messages are translated but keep their placeholders: `%value` and control
    arguments can only be known where the live values are.
    """

    def __init__(self, form: Form, operators: Optional[OperatorRegistry] = None):
        self.form = form
        self._operators = operators or default_registry

    def serialize(self, control: Control) -> ControlDescription:
        self.form.finalize()
        tree = control.tree
        return ControlDescription(
            address=control.address,
            name=control.name or "",
            kind=control.kind.value,
            label=control_label(control, self.form) if control.label is not None else None,
            required=control.is_required,
            validate_=control.validates,
            disabled=control.disabled,
            default=control.empty_value() if control.disabled else None,
            items=list(control.items.keys()) if control.items is not None else None,
            rules=self._rules(tree) if tree is not None else [],
        )

    def serialize_form(self) -> FormDescription:
        return FormDescription(
            form=self.form.name or "",
            controls=[self.serialize(control) for control in self.form.controls()],
            submitters=[
                SubmitterDescription(
                    address=button.address,
                    scope=list(button.validation_scope) if button.validation_scope is not None else None,
                )
                for button in self.form.controls()
                if button.is_button
            ],
        )

    def data_attribute(self, control: Control) -> str:
        """JSON rules of one control, for embedding in its rendered element."""
        rules = self.serialize(control).model_dump(mode="json", by_alias=True, exclude_none=True)["rules"]
        return json.dumps(rules, separators=(",", ":"))

    def _rules(self, nodes: Iterable[Node]) -> List[RuleDescription]:
        return [self._rule(node) for node in nodes]

    def _rule(self, node: Node) -> RuleDescription:
        description = RuleDescription(
            op=node.operator.tag,
            neg=node.negated,
            control=node.control.address,
            arg=export_argument(node.argument),
        )
        if isinstance(node, ConditionNode):
            description.rules = self._rules(node.children)
            if node.else_children is not None:
                description.else_rules = self._rules(node.else_children)
        else:
            description.msg = translate(
                self.form,
                message_template(node, self.form, self._operators),
                plural_count(node.argument),
            )
        return description


def serialize_control(control: Control) -> ControlDescription:
    if control.form is None:
        raise ValueError(f"Control {control.name!r} does not belong to a form")
    return Serializer(control.form).serialize(control)


def serialize_form(form: Form) -> FormDescription:
    return Serializer(form).serialize_form()
