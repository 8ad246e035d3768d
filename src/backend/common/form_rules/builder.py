"""Build-phase API for attaching rules and conditions to a control.

A `RuleScope` never moves: opening a condition returns a new scope one frame
deeper, closing it returns the parent scope. The frames are an immutable
tuple, so any scope can be inspected (`state`, `depth`) in isolation.

    form["email"].add_condition_on(form["newsletters"], Validator.EQUAL, True) \
        .set_required("Enter your e-mail to receive newsletters.") \
        .add_rule(Validator.EMAIL) \
        .end_condition()
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, List, Optional, Tuple, Union

from .controls import Control
from .errors import BuildError
from .registry import OperatorKey, OperatorRef, Validator
from .tree import Argument, ConditionNode, ControlRef, Node, RuleNode

_SCALARS = (str, int, float, bool, type(None))


class BuilderState(str, Enum):
    ROOT = "ROOT"
    IN_BRANCH = "IN_BRANCH"
    IN_ELSE_BRANCH = "IN_ELSE_BRANCH"


@dataclass(frozen=True)
class ScopeFrame:
    condition: ConditionNode
    in_else: bool = False


@dataclass(frozen=True)
class RuleScope:
    control: Control
    frames: Tuple[ScopeFrame, ...] = ()

    @property
    def depth(self) -> int:
        return len(self.frames)

    @property
    def state(self) -> BuilderState:
        if not self.frames:
            return BuilderState.ROOT
        return BuilderState.IN_ELSE_BRANCH if self.frames[-1].in_else else BuilderState.IN_BRANCH

    @property
    def nodes(self) -> List[Node]:
        """The node list new rules are appended to."""
        if not self.frames:
            return self.control.rule_tree.nodes
        top = self.frames[-1]
        if top.in_else and top.condition.else_children is not None:
            return top.condition.else_children
        return top.condition.children

    def add_rule(
        self,
        operator: Union[OperatorRef, OperatorKey],
        message: Optional[str] = None,
        arg: Any = None,
    ) -> "RuleScope":
        self._ensure_building()
        if message is not None and not isinstance(message, str):
            raise BuildError(f"Rule message must be a string, got {type(message).__name__}")
        self.nodes.append(
            RuleNode(
                control=self.control.ref,
                operator=self._operator(operator),
                argument=self._argument(arg),
                message=message or None,
            )
        )
        return self

    def add_condition(self, operator: Union[OperatorRef, OperatorKey], arg: Any = None) -> "RuleScope":
        return self.add_condition_on(self.control, operator, arg)

    def add_condition_on(
        self,
        control: Control,
        operator: Union[OperatorRef, OperatorKey],
        arg: Any = None,
    ) -> "RuleScope":
        self._ensure_building()
        condition = ConditionNode(
            control=self._reference(control),
            operator=self._operator(operator),
            argument=self._argument(arg),
        )
        self.nodes.append(condition)
        return RuleScope(self.control, self.frames + (ScopeFrame(condition),))

    def else_condition(self) -> "RuleScope":
        self._ensure_building()
        if not self.frames:
            raise BuildError("else_condition() called without an open condition")
        top = self.frames[-1]
        if top.in_else or top.condition.else_children is not None:
            raise BuildError("A condition can only have one else branch")
        top.condition.else_children = []
        return RuleScope(self.control, self.frames[:-1] + (replace(top, in_else=True),))

    def end_condition(self) -> "RuleScope":
        self._ensure_building()
        if not self.frames:
            raise BuildError("end_condition() called without an open condition")
        return RuleScope(self.control, self.frames[:-1])

    def set_required(self, message: Union[str, bool, None] = True) -> "RuleScope":
        """Require a filled value; the check runs first in this scope."""
        self._ensure_building()
        if not self.control.supports_required:
            raise BuildError(f"{self.control.kind.value} controls cannot be required")
        if message is False:
            raise BuildError("set_required(False) is not supported; rules are never removed")
        node = RuleNode(
            control=self.control.ref,
            operator=OperatorRef(Validator.FILLED),
            message=message if isinstance(message, str) and message else None,
            required=True,
        )
        if not self.frames:
            self.control.rule_tree.required = node
            return self
        nodes = self.nodes
        if nodes and isinstance(nodes[0], RuleNode) and nodes[0].required:
            nodes[0] = node
        else:
            nodes.insert(0, node)
        return self

    def _ensure_building(self) -> None:
        form = self.control.form
        if form is None:
            raise BuildError(f"Control {self.control.name!r} must belong to a form before rules are attached")
        if form.finalized:
            raise BuildError(f"Form {form.name!r} is finalized; rules of {self.control.address!r} are read-only")

    @staticmethod
    def _operator(operator: Union[OperatorRef, OperatorKey]) -> OperatorRef:
        try:
            return OperatorRef.parse(operator)
        except TypeError as exc:
            raise BuildError(str(exc)) from exc

    def _reference(self, control: Any) -> ControlRef:
        if not isinstance(control, Control):
            raise BuildError(f"Expected a control, got {type(control).__name__}")
        if control.form is not self.control.form:
            raise BuildError(f"Control {control.name!r} does not belong to the same form as {self.control.address!r}")
        return control.ref

    def _argument(self, arg: Any) -> Argument:
        if isinstance(arg, Control):
            return self._reference(arg)
        if isinstance(arg, (list, tuple)):
            items: list = []
            for item in arg:
                if isinstance(item, Control):
                    items.append(self._reference(item))
                elif isinstance(item, _SCALARS):
                    items.append(item)
                else:
                    raise BuildError(f"Unsupported rule argument item: {item!r}")
            return items
        if isinstance(arg, _SCALARS):
            return arg
        raise BuildError(f"Unsupported rule argument: {arg!r}")
