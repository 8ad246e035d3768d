"""Form validation rules that run the same on the server and in the browser.

Rules and conditions are declared on controls while a form is built,
evaluated against a per-request `Snapshot` on the server, and exported as a
JSON description that a remote evaluator walks with the same algorithm.
"""

from .builder import BuilderState, RuleScope
from .coercion import ControlKind
from .config import EngineConfig, load_engine_config
from .context import RuleContext
from .controls import Container, Control, Form
from .errors import BuildError, FormRulesError, UnknownOperatorError
from .evaluator import Evaluator, validate_form
from .models import (
    ControlDescription,
    ControlError,
    ControlVerdict,
    FormDescription,
    FormResult,
    RuleDescription,
)
from .registry import OperatorRef, Validator, register_validator, registry
from .remote import RemoteEvaluator
from .serializer import Serializer, serialize_control, serialize_form
from .snapshot import Snapshot, build_snapshot

# Import built-in validators so they self-register with the global registry.
from . import validators as _builtin_validators  # noqa: F401
