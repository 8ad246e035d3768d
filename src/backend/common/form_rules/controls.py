from __future__ import annotations

import re
from typing import TYPE_CHECKING, Any, Dict, Iterable, Iterator, Mapping, Optional, Sequence, Tuple, Union

from .coercion import BUTTON_KINDS, MULTI_KINDS, ControlKind, coerce_value
from .config import EngineConfig
from .errors import BuildError
from .tree import ControlRef, RuleTree

if TYPE_CHECKING:
    from .builder import RuleScope
    from .messages import Translator

_NAME_RE = re.compile(r"^[A-Za-z0-9_]+\Z")

ScopeSpec = Union[bool, None, Sequence[Union["Control", "Container"]]]


class Component:
    def __init__(self):
        self.name: Optional[str] = None
        self.parent: Optional[Container] = None

    @property
    def form(self) -> Optional["Form"]:
        node: Optional[Component] = self
        while node is not None and not isinstance(node, Form):
            node = node.parent
        return node

    @property
    def address(self) -> str:
        parts = []
        node: Optional[Component] = self
        while node is not None and not isinstance(node, Form):
            parts.append(node.name or "")
            node = node.parent
        return ".".join(reversed(parts))

    def _ensure_mutable(self) -> None:
        form = self.form
        if form is not None and form.finalized:
            raise BuildError(f"Form {form.name!r} is finalized; {self.address or 'it'} can no longer be changed")


class Control(Component):
    """A single named input. Values live in a `Snapshot`, never on the control."""

    def __init__(
        self,
        label: Optional[str] = None,
        *,
        kind: ControlKind = ControlKind.TEXT,
        items: Optional[Union[Mapping[str, str], Iterable[str]]] = None,
        default: Any = None,
    ):
        super().__init__()
        self.label = label
        self.kind = ControlKind(kind)
        self.items: Optional[Dict[str, str]] = None
        if items is not None:
            if isinstance(items, Mapping):
                self.items = {str(k): str(v) for k, v in items.items()}
            else:
                self.items = {str(k): str(k) for k in items}
        self.default = default
        self.disabled = False
        self._validation_scope: Optional[Tuple[str, ...]] = None
        self._rule_tree: Optional[RuleTree] = None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.address or '?'} ({self.kind.value})>"

    # Capability flags.
    @property
    def supports_required(self) -> bool:
        return self.kind not in BUTTON_KINDS

    @property
    def multi_value(self) -> bool:
        return self.kind in MULTI_KINDS

    @property
    def is_button(self) -> bool:
        return self.kind in BUTTON_KINDS

    @property
    def ref(self) -> ControlRef:
        if self.form is None:
            raise BuildError(f"Control {self.name!r} is not attached to a form")
        return ControlRef(self.address)

    @property
    def rule_tree(self) -> RuleTree:
        if self._rule_tree is None:
            self._rule_tree = RuleTree(owner=self.ref)
        return self._rule_tree

    @property
    def tree(self) -> Optional[RuleTree]:
        """The rule tree if any rule was attached; read-only access for evaluation."""
        return self._rule_tree

    @property
    def rules(self) -> "RuleScope":
        from .builder import RuleScope

        return RuleScope(self)

    @property
    def is_required(self) -> bool:
        return self._rule_tree is not None and self._rule_tree.is_required

    @property
    def validates(self) -> bool:
        return self._validation_scope != ()

    @property
    def validation_scope(self) -> Optional[Tuple[str, ...]]:
        """None validates everything, () nothing, otherwise the listed addresses."""
        return self._validation_scope

    def coerce(self, raw: Any) -> Any:
        return coerce_value(self.kind, raw, None if self.items is None else self.items.keys())

    def empty_value(self) -> Any:
        return self.coerce(self.default)

    # Builder shortcuts, all operating on the root scope.
    def add_rule(self, operator, message: Optional[str] = None, arg: Any = None) -> "RuleScope":
        return self.rules.add_rule(operator, message, arg)

    def add_condition(self, operator, arg: Any = None) -> "RuleScope":
        return self.rules.add_condition(operator, arg)

    def add_condition_on(self, control: "Control", operator, arg: Any = None) -> "RuleScope":
        return self.rules.add_condition_on(control, operator, arg)

    def set_required(self, message: Union[str, bool, None] = True) -> "Control":
        self.rules.set_required(message)
        return self

    def set_disabled(self, disabled: bool = True) -> "Control":
        self._ensure_mutable()
        self.disabled = disabled
        return self

    def set_validation_scope(self, scope: ScopeSpec) -> "Control":
        self._ensure_mutable()
        if scope is None or scope is True:
            self._validation_scope = None
        elif scope is False:
            self._validation_scope = ()
        else:
            if not self.is_button and len(scope) > 0:
                raise BuildError("Only buttons accept a list of containers as validation scope")
            addresses = []
            for component in scope:
                if not isinstance(component, Component) or component.form is not self.form:
                    raise BuildError(f"Validation scope of {self.address!r} must reference components of the same form")
                addresses.append(component.address)
            self._validation_scope = tuple(addresses)
        return self


class Container(Component):
    def __init__(self):
        super().__init__()
        self._components: Dict[str, Component] = {}

    def __getitem__(self, address: str) -> Component:
        head, _, rest = address.partition(".")
        component = self._components[head]
        if rest:
            if not isinstance(component, Container):
                raise KeyError(address)
            return component[rest]
        return component

    def __contains__(self, address: object) -> bool:
        try:
            self[address]  # type: ignore[index]
        except (KeyError, TypeError):
            return False
        return True

    def components(self) -> Iterator[Component]:
        return iter(self._components.values())

    def controls(self) -> Iterator[Control]:
        """Every control in declaration order, nested containers depth-first."""
        for component in self._components.values():
            if isinstance(component, Container):
                yield from component.controls()
            elif isinstance(component, Control):
                yield component

    def get_control(self, address: str) -> Control:
        component = self[address]
        if not isinstance(component, Control):
            raise KeyError(f"{address!r} is a container, not a control")
        return component

    def add_component(self, component: Component, name: str) -> Component:
        self._ensure_mutable()
        if not isinstance(name, str) or not _NAME_RE.match(name):
            raise BuildError(f"Invalid component name {name!r}; use letters, digits and underscores")
        if name in self._components:
            raise BuildError(f"Component {name!r} already exists in {self.address or 'the form'}")
        if component.parent is not None or isinstance(component, Form):
            raise BuildError(f"Component {component.name!r} already belongs to a container")
        component.name = name
        component.parent = self
        self._components[name] = component
        return component

    def add_container(self, name: str) -> "Container":
        return self.add_component(Container(), name)  # type: ignore[return-value]

    def _add(self, name: str, label: Optional[str], kind: ControlKind, **kwargs: Any) -> Control:
        return self.add_component(Control(label, kind=kind, **kwargs), name)  # type: ignore[return-value]

    def add_text(self, name: str, label: Optional[str] = None, *, default: Any = None) -> Control:
        return self._add(name, label, ControlKind.TEXT, default=default)

    def add_password(self, name: str, label: Optional[str] = None) -> Control:
        return self._add(name, label, ControlKind.PASSWORD)

    def add_email(self, name: str, label: Optional[str] = None, *, default: Any = None) -> Control:
        return self._add(name, label, ControlKind.EMAIL, default=default)

    def add_integer(self, name: str, label: Optional[str] = None, *, default: Any = None) -> Control:
        return self._add(name, label, ControlKind.INTEGER, default=default)

    def add_textarea(self, name: str, label: Optional[str] = None, *, default: Any = None) -> Control:
        return self._add(name, label, ControlKind.TEXTAREA, default=default)

    def add_hidden(self, name: str, default: Any = None) -> Control:
        return self._add(name, None, ControlKind.HIDDEN, default=default)

    def add_checkbox(self, name: str, caption: Optional[str] = None, *, default: bool = False) -> Control:
        return self._add(name, caption, ControlKind.CHECKBOX, default=default)

    def add_select(self, name: str, label: Optional[str] = None, items=None, *, default: Any = None) -> Control:
        return self._add(name, label, ControlKind.SELECT, items=items or {}, default=default)

    def add_radio_list(self, name: str, label: Optional[str] = None, items=None, *, default: Any = None) -> Control:
        return self._add(name, label, ControlKind.RADIO_LIST, items=items or {}, default=default)

    def add_checkbox_list(self, name: str, label: Optional[str] = None, items=None, *, default: Any = None) -> Control:
        return self._add(name, label, ControlKind.CHECKBOX_LIST, items=items or {}, default=default)

    def add_multi_select(self, name: str, label: Optional[str] = None, items=None, *, default: Any = None) -> Control:
        return self._add(name, label, ControlKind.MULTI_SELECT, items=items or {}, default=default)

    def add_submit(self, name: str, caption: Optional[str] = None) -> Control:
        return self._add(name, caption, ControlKind.SUBMIT)

    def add_button(self, name: str, caption: Optional[str] = None) -> Control:
        return self._add(name, caption, ControlKind.BUTTON)


class Form(Container):
    """Root container. Owns the translator, the engine config and the build/evaluate switch."""

    def __init__(
        self,
        name: str = "form",
        *,
        translator: Optional["Translator"] = None,
        config: Optional[EngineConfig] = None,
    ):
        super().__init__()
        self.name = name
        self.translator = translator
        self.config = config or EngineConfig()
        self.finalized = False

    def finalize(self) -> "Form":
        """Close the build phase. Rule trees are read-only from here on."""
        self.finalized = True
        return self

    def submitters(self) -> Iterator[Control]:
        for control in self.controls():
            if control.kind == ControlKind.SUBMIT:
                yield control
