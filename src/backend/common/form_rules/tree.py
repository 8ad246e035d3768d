from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Union

from .registry import OperatorRef, Validator

Scalar = Union[str, int, float, bool, None]


@dataclass(frozen=True)
class ControlRef:
    """Address of another control whose value is read at evaluation time."""

    address: str


Argument = Union[Scalar, ControlRef, List[Union[Scalar, ControlRef]]]


@dataclass
class RuleNode:
    control: ControlRef
    operator: OperatorRef
    argument: Argument = None
    message: Optional[str] = None
    required: bool = False

    @property
    def negated(self) -> bool:
        return self.operator.negated


@dataclass
class ConditionNode:
    """A gate: `children` apply when it passes, `else_children` when it fails."""

    control: ControlRef
    operator: OperatorRef
    argument: Argument = None
    children: List["Node"] = field(default_factory=list)
    else_children: Optional[List["Node"]] = None

    @property
    def negated(self) -> bool:
        return self.operator.negated


Node = Union[RuleNode, ConditionNode]


@dataclass
class RuleTree:
    """Top-level rules of one control.

    The required rule is kept apart so it always runs first, whatever the
    declaration order.
    """

    owner: ControlRef
    required: Optional[RuleNode] = None
    nodes: List[Node] = field(default_factory=list)

    def __iter__(self) -> Iterator[Node]:
        if self.required is not None:
            yield self.required
        yield from self.nodes

    def __len__(self) -> int:
        return len(self.nodes) + (1 if self.required is not None else 0)

    @property
    def is_required(self) -> bool:
        if self.required is not None:
            return True
        return any(
            isinstance(node, RuleNode) and node.operator == OperatorRef(Validator.FILLED)
            for node in self.nodes
        )

