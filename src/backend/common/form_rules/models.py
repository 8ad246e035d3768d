from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ControlVerdict(BaseModel):
    """Outcome of one control's rule tree. A failure is data, not an exception."""

    address: str
    valid: bool
    message: Optional[str] = None


class ControlError(BaseModel):
    # None means the error belongs to the form as a whole.
    control: Optional[str] = None
    message: str
    manual: bool = False


class FormResult(BaseModel):
    form: str
    submitter: Optional[str] = None
    errors: List[ControlError] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def valid(self) -> bool:
        return not self.errors

    def add_error(self, message: str, control: Optional[str] = None) -> None:
        """Manual error channel for checks that live outside the rule tree."""
        if not message:
            raise ValueError("Manual error message must not be empty")
        self.errors.append(ControlError(control=control, message=message, manual=True))

    def errors_for(self, control: str) -> List[str]:
        return [e.message for e in self.errors if e.control == control]

    @property
    def form_errors(self) -> List[str]:
        return [e.message for e in self.errors if e.control is None]


class RuleDescription(BaseModel):
    """One exported rule or condition; conditions carry `rules` (and maybe `else`)."""

    model_config = ConfigDict(populate_by_name=True)

    op: str
    neg: bool = False
    control: str
    arg: Any = None
    msg: Optional[str] = None
    rules: Optional[List["RuleDescription"]] = None
    else_rules: Optional[List["RuleDescription"]] = Field(default=None, alias="else")

    @property
    def is_condition(self) -> bool:
        return self.rules is not None


class ControlDescription(BaseModel):
    address: str
    name: str
    kind: str
    label: Optional[str] = None
    required: bool = False
    validate_: bool = Field(default=True, alias="validate")
    disabled: bool = False
    items: Optional[List[str]] = None
    # Coerced default, exported for disabled controls whose value stays fixed.
    default: Any = None
    rules: List[RuleDescription] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class SubmitterDescription(BaseModel):
    address: str
    # Container/control addresses validated on submit; absent means everything.
    scope: Optional[List[str]] = None


class FormDescription(BaseModel):
    form: str
    controls: List[ControlDescription] = Field(default_factory=list)
    submitters: List[SubmitterDescription] = Field(default_factory=list)

    def to_transport(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def control(self, address: str) -> ControlDescription:
        for control in self.controls:
            if control.address == address:
                return control
        raise KeyError(address)


RuleDescription.model_rebuild()
