"""Server-side evaluation of rule trees.

The walk over a control's rules is strictly in declaration order (the
required rule of a scope first). The first failing rule stops that control;
a condition never fails by itself, it only selects which branch is walked.
Every control of the form is evaluated so all messages surface in one pass.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from .context import RuleContext
from .controls import Control, Form
from .messages import control_label, format_message, message_template, plural_count, translate
from .models import ControlError, ControlVerdict, FormResult
from .registry import OperatorRegistry, registry as default_registry
from .snapshot import Snapshot
from .tree import Argument, ConditionNode, ControlRef, Node, RuleNode

logger = logging.getLogger(__name__)


class Evaluator:
    def __init__(self, operators: Optional[OperatorRegistry] = None):
        self._operators = operators or default_registry

    def evaluate(self, control: Control, snapshot: Snapshot) -> ControlVerdict:
        form = self._form_of(control)
        form.finalize()
        if not control.validates or control.disabled or control.tree is None:
            return ControlVerdict(address=control.address, valid=True)

        failed = self._walk(control.tree, form, snapshot)
        if failed is None:
            return ControlVerdict(address=control.address, valid=True)

        message = self._message(failed, control, form, snapshot)
        logger.debug("Control %s failed %s: %s", control.address, failed.operator.tag, message)
        return ControlVerdict(address=control.address, valid=False, message=message)

    def validate(self, form: Form, snapshot: Snapshot) -> FormResult:
        form.finalize()
        result = FormResult(form=form.name or "", submitter=snapshot.submitter)
        scope = self._submit_scope(form, snapshot)
        for control in form.controls():
            if scope is not None and not _in_scope(control.address, scope):
                continue
            verdict = self.evaluate(control, snapshot)
            if not verdict.valid:
                result.errors.append(ControlError(control=verdict.address, message=verdict.message or ""))
        if result.errors:
            logger.debug("Form %s invalid: %d error(s)", form.name, len(result.errors))
        return result

    def check(self, node: Node, form: Form, snapshot: Snapshot) -> bool:
        """Run one rule or gate, negation applied."""
        operator = self._operators.resolve(node.operator)
        subject = form.get_control(node.control.address)
        ctx = RuleContext(control=subject, value=snapshot[subject.address], snapshot=snapshot)
        passed = operator(ctx, resolve_argument(node.argument, snapshot))
        return passed != node.negated

    def _walk(self, nodes: Iterable[Node], form: Form, snapshot: Snapshot) -> Optional[RuleNode]:
        for node in nodes:
            if isinstance(node, ConditionNode):
                # Resolved first so an unknown operator surfaces even on a skipped gate.
                self._operators.resolve(node.operator)
                if form.get_control(node.control.address).disabled:
                    continue
                branch = node.children if self.check(node, form, snapshot) else node.else_children
                if branch is None:
                    continue
                failed = self._walk(branch, form, snapshot)
                if failed is not None:
                    return failed
            elif not self.check(node, form, snapshot):
                return node
        return None

    def _message(self, node: RuleNode, control: Control, form: Form, snapshot: Snapshot) -> str:
        template = translate(
            form,
            message_template(node, form, self._operators),
            plural_count(node.argument),
        )
        return format_message(
            template,
            name=control.name or "",
            label=control_label(control, form),
            value=snapshot[control.address],
            argument=node.argument,
            resolve=lambda ref: snapshot[ref.address],
        )

    @staticmethod
    def _form_of(control: Control) -> Form:
        form = control.form
        if form is None:
            raise ValueError(f"Control {control.name!r} does not belong to a form")
        return form

    @staticmethod
    def _submit_scope(form: Form, snapshot: Snapshot) -> Optional[tuple]:
        if snapshot.submitter is None:
            return None
        return form.get_control(snapshot.submitter).validation_scope


def resolve_argument(argument: Argument, snapshot: Snapshot) -> Any:
    """Dereference control references against the snapshot being evaluated."""
    if isinstance(argument, ControlRef):
        return snapshot[argument.address]
    if isinstance(argument, list):
        return [snapshot[item.address] if isinstance(item, ControlRef) else item for item in argument]
    return argument


def _in_scope(address: str, scope: tuple) -> bool:
    return any(address == prefix or address.startswith(prefix + ".") for prefix in scope)


def validate_form(form: Form, snapshot: Snapshot, operators: Optional[OperatorRegistry] = None) -> FormResult:
    return Evaluator(operators).validate(form, snapshot)
