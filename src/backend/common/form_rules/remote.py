"""Reference implementation of the remote (browser-side) evaluator.

It only reads the exported description (plain JSON) and live field values,
never the server's controls or rule objects, and shares no predicate code
with `validators`. It is what a script embedded in the page does on a
submit-intent event: normalize current values, walk every control's rules,
and cancel the submission when anything fails. The server remains
authoritative: operators the remote side does not know are skipped.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

RemoteValidator = Callable[[Any, Any], Any]

_BREAKS = re.compile(r"\r\n|\r|\n")
_INT = re.compile(r"^[+-]?\d+$", re.ASCII)
_NUM = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$", re.ASCII)
_MAIL = re.compile(
    r"^[-a-z0-9!#$%&'*+/=?^_`{|}~]+(\.[-a-z0-9!#$%&'*+/=?^_`{|}~]+)*@([a-z0-9]([-a-z0-9]{0,61}[a-z0-9])?\.)+[a-z]{2,}$",
    re.IGNORECASE,
)
_WEB = re.compile(
    r"^https?://([a-z0-9]([-a-z0-9]*[a-z0-9])?\.)*[a-z0-9]([-a-z0-9]*[a-z0-9])?(:[0-9]{1,5})?([/?#]\S*)?\Z",
    re.IGNORECASE,
)
_PLACEHOLDER = re.compile(r"%(%|name|label|value|\d+\$[ds]|[ds])", re.ASCII)


def _text(v: Any) -> str:
    if v is True:
        return "1"
    if v is None or v is False:
        return ""
    if isinstance(v, float) and v.is_integer():
        return "%d" % v
    return "%s" % v


def _num(v: Any) -> Optional[float]:
    # Ints stay exact; only text is parsed as float.
    if v is True or v is False or v is None:
        return None
    if isinstance(v, (int, float)):
        return v
    s = _text(v).replace(" ", "").replace(",", ".")
    return float(s) if _NUM.match(s) and "\n" not in s else None


def _seq(v: Any) -> list:
    return list(v) if isinstance(v, list) else [v]


def _size(v: Any) -> int:
    return len(v) if isinstance(v, list) else len(_text(v))


def _between(n: Any, lo: Any, hi: Any) -> bool:
    x = _num(n)
    if x is None:
        return False
    if lo not in (None, ""):
        low = _num(lo)
        if low is None or x < low:
            return False
    if hi not in (None, ""):
        high = _num(hi)
        if high is None or x > high:
            return False
    return True


def _pair(arg: Any) -> list:
    if isinstance(arg, list):
        return arg if len(arg) == 2 else [None, None, None]
    return [arg, arg]


def _equal(val: Any, arg: Any) -> bool:
    vals = _seq(val)
    if not vals:
        return False
    allowed = [_text(a) for a in _seq(arg)]
    for v in vals:
        if _text(v) not in allowed:
            return False
    return True


def _filled(val: Any, arg: Any) -> bool:
    if isinstance(val, list):
        return len(val) > 0
    return val is not None and val is not False and val != ""


def _pattern(val: Any, arg: Any, flags: int = 0) -> bool:
    if not isinstance(arg, str):
        return False
    try:
        rx = re.compile(arg, flags)
    except re.error:
        return False
    return all(rx.fullmatch(_text(v)) for v in _seq(val))


def _url(val: Any, arg: Any) -> bool:
    if not isinstance(val, str) or val == "" or "\n" in val:
        return False
    if not re.match(r"^[a-z][a-z0-9+.-]*:", val, re.IGNORECASE):
        val = "http://" + val
    return _WEB.match(val) is not None


def _integer(val: Any, arg: Any) -> bool:
    if isinstance(val, bool):
        return False
    return isinstance(val, int) or (isinstance(val, str) and _INT.match(val) is not None and "\n" not in val)


def _range(val: Any, arg: Any) -> bool:
    if not isinstance(arg, list) or len(arg) != 2:
        return False
    return _between(val, arg[0], arg[1])


BUILTINS: Dict[str, RemoteValidator] = {
    ":filled": _filled,
    ":blank": lambda val, arg: not _filled(val, arg),
    ":equal": _equal,
    ":notEqual": lambda val, arg: not _equal(val, arg),
    ":isIn": _equal,
    ":isNotIn": lambda val, arg: not _equal(val, arg),
    ":minLength": lambda val, arg: _between(_size(val), arg, None),
    ":maxLength": lambda val, arg: _between(_size(val), None, arg),
    ":length": lambda val, arg: len(_pair(arg)) == 2 and _between(_size(val), *_pair(arg)),
    ":email": lambda val, arg: isinstance(val, str) and _MAIL.match(val) is not None and "\n" not in val,
    ":url": _url,
    ":pattern": _pattern,
    ":patternCaseInsensitive": lambda val, arg: _pattern(val, arg, re.IGNORECASE),
    ":integer": _integer,
    ":float": lambda val, arg: _num(val) is not None,
    ":min": lambda val, arg: _between(val, arg, None),
    ":max": lambda val, arg: _between(val, None, arg),
    ":range": _range,
    ":count": lambda val, arg: isinstance(val, list) and len(_pair(arg)) == 2 and _between(len(val), *_pair(arg)),
    ":submitted": lambda val, arg: val is True,
}


def effective_value(control: Mapping[str, Any], raw: Any) -> Any:
    """What the page reads from an element of the given kind."""
    kind = control.get("kind", "text")
    items = control.get("items")
    if kind in ("submit", "button"):
        return raw is not None and raw is not False
    if kind in ("checkbox_list", "multi_select"):
        picked: List[str] = []
        for v in (raw if isinstance(raw, (list, tuple)) else ([] if raw is None else [raw])):
            s = _text(v)
            if (items is None or s in items) and s not in picked:
                picked.append(s)
        return picked
    if isinstance(raw, (list, tuple)):
        raw = raw[-1] if raw else None
    if kind == "checkbox":
        return raw if isinstance(raw, bool) else _text(raw) not in ("", "0")
    if kind in ("select", "radio_list"):
        s = _text(raw)
        return s if s != "" and (items is None or s in items) else None
    if kind == "textarea":
        return _BREAKS.sub("\n", _text(raw))
    s = _BREAKS.sub(" ", _text(raw)).strip()
    if kind == "integer":
        if isinstance(raw, int) and not isinstance(raw, bool):
            return raw
        if s == "":
            return None
        if _INT.match(s):
            try:
                return int(s)
            except ValueError:
                return s
    return s


@dataclass
class RemoteVerdict:
    valid: bool
    errors: Dict[str, str] = field(default_factory=dict)


class RemoteEvaluator:
    def __init__(self, description: Mapping[str, Any], validators: Optional[Mapping[str, RemoteValidator]] = None):
        self._controls: Dict[str, Mapping[str, Any]] = {c["address"]: c for c in description.get("controls", [])}
        self._submitters: Dict[str, Any] = {s["address"]: s.get("scope") for s in description.get("submitters", [])}
        self._validators: Dict[str, RemoteValidator] = dict(BUILTINS)
        self._validators.update(validators or {})

    def read_values(self, live: Mapping[str, Any]) -> Dict[str, Any]:
        """A fresh snapshot of the page: every control, disabled ones at their default."""
        values = {}
        for address, control in self._controls.items():
            raw = control.get("default") if control.get("disabled") else live.get(address)
            values[address] = effective_value(control, raw)
        return values

    def validate_control(self, address: str, live: Mapping[str, Any]) -> Optional[str]:
        return self._control_error(address, self.read_values(live))

    def validate_form(self, live: Mapping[str, Any], submitter: Optional[str] = None) -> RemoteVerdict:
        values = self.read_values(live)
        scope = self._submitters.get(submitter) if submitter is not None else None
        errors: Dict[str, str] = {}
        for address in self._controls:
            if scope is not None and not any(address == p or address.startswith(p + ".") for p in scope):
                continue
            message = self._control_error(address, values)
            if message is not None:
                errors[address] = message
        return RemoteVerdict(valid=not errors, errors=errors)

    def should_submit(self, live: Mapping[str, Any], submitter: Optional[str] = None) -> bool:
        """False means the submit event must be cancelled and nothing sent."""
        return self.validate_form(live, submitter).valid

    def _control_error(self, address: str, values: Dict[str, Any]) -> Optional[str]:
        control = self._controls[address]
        if control.get("validate") is False or control.get("disabled"):
            return None
        return self._run_rules(control.get("rules", []), control, values)

    def _run_rules(self, rules: List[Mapping[str, Any]], owner: Mapping[str, Any], values: Dict[str, Any]) -> Optional[str]:
        for rule in rules:
            target = self._controls.get(rule["control"], {})
            is_condition = "rules" in rule
            if is_condition and target.get("disabled"):
                continue
            outcome = self._test(rule, values)
            if outcome is None:
                continue
            if is_condition:
                branch = rule["rules"] if outcome else rule.get("else")
                if branch is None:
                    continue
                message = self._run_rules(branch, owner, values)
                if message is not None:
                    return message
            elif not outcome:
                return self._format(rule, owner, values)
        return None

    def _test(self, rule: Mapping[str, Any], values: Dict[str, Any]) -> Optional[bool]:
        fn = self._validators.get(rule["op"])
        if fn is None:
            logger.warning("Remote evaluator has no implementation for %s; skipping", rule["op"])
            return None
        ok = bool(fn(values.get(rule["control"]), self._arg(rule.get("arg"), values)))
        return not ok if rule.get("neg") else ok

    def _arg(self, arg: Any, values: Dict[str, Any]) -> Any:
        if isinstance(arg, dict) and "control" in arg:
            return values.get(arg["control"])
        if isinstance(arg, list):
            return [self._arg(a, values) for a in arg]
        return arg

    def _format(self, rule: Mapping[str, Any], owner: Mapping[str, Any], values: Dict[str, Any]) -> str:
        args = rule.get("arg")
        args = args if isinstance(args, list) else [args]
        value = values.get(owner["address"])
        state = {"i": -1}

        def sub(m: "re.Match[str]") -> str:
            tok = m.group(1)
            if tok == "%":
                return "%"
            if tok == "name":
                return owner.get("name", "")
            if tok == "label":
                return owner.get("label") if owner.get("label") is not None else owner.get("name", "")
            if tok == "value":
                return ", ".join(_text(v) for v in value) if isinstance(value, list) else _text(value)
            state["i"] = int(tok[: tok.index("$")]) - 1 if "$" in tok else state["i"] + 1
            i = state["i"]
            item = self._arg(args[i], values) if 0 <= i < len(args) else None
            if item is None:
                return ""
            number = _num(item) if tok[-1] == "d" else None
            if isinstance(number, float) and not math.isfinite(number):
                number = None
            if number is not None:
                return "%d" % int(number)
            return _text(item)

        return _PLACEHOLDER.sub(sub, rule.get("msg") or "")
