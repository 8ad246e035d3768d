from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional, Sequence

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from common.form_rules import Evaluator, Form, FormResult, Snapshot, build_snapshot, serialize_form

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/forms", tags=["forms"])

# Manual checks run after the rule tree, e.g. uniqueness lookups a rule cannot do.
FormCheck = Callable[[Snapshot, FormResult], None]

_FORMS: Dict[str, Form] = {}
_CHECKS: Dict[str, Sequence[FormCheck]] = {}


class Submission(BaseModel):
    values: Dict[str, Any] = Field(default_factory=dict)
    submitter: Optional[str] = None


def register_form(form: Form, checks: Sequence[FormCheck] = ()) -> Form:
    """Publish a fully built form. Its rules are frozen from here on."""
    if form.name in _FORMS:
        raise ValueError(f"Duplicate form registered: {form.name}")
    form.finalize()
    _FORMS[form.name] = form
    _CHECKS[form.name] = tuple(checks)
    return form


def _get_form(form_name: str) -> Form:
    form = _FORMS.get(form_name)
    if form is None:
        raise HTTPException(status_code=404, detail=f"Unknown form: {form_name}")
    return form


@router.get("/{form_name}/rules")
def form_rules(form_name: str):
    return serialize_form(_get_form(form_name)).to_transport()


@router.post("/{form_name}/validate")
def validate_submission(form_name: str, submission: Submission):
    form = _get_form(form_name)
    try:
        snapshot = build_snapshot(form, submission.values, submission.submitter)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    result = Evaluator().validate(form, snapshot)
    for check in _CHECKS.get(form_name, ()):
        check(snapshot, result)
    if not result.valid:
        logger.info("Submission of %s rejected with %d error(s)", form_name, len(result.errors))
    return result.model_dump(mode="json")
