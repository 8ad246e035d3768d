from __future__ import annotations

from typing import Any, Dict, Iterator, Mapping, Optional

from .controls import Form


class Snapshot(Mapping[str, Any]):
    """Coerced values of every control of a form, keyed by dotted address."""

    def __init__(self, values: Mapping[str, Any], submitter: Optional[str] = None):
        self._values = dict(values)
        self.submitter = submitter

    def __getitem__(self, address: str) -> Any:
        try:
            return self._values[address]
        except KeyError:
            raise KeyError(f"No value for control {address!r} in snapshot") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Snapshot({self._values!r}, submitter={self.submitter!r})"


def flatten(data: Mapping[str, Any], prefix: str = "") -> Dict[str, Any]:
    """Turn nested container mappings into dotted addresses."""
    flat: Dict[str, Any] = {}
    for key, value in data.items():
        address = f"{prefix}{key}"
        if isinstance(value, Mapping):
            flat.update(flatten(value, address + "."))
        else:
            flat[address] = value
    return flat


def build_snapshot(form: Form, data: Mapping[str, Any], submitter: Optional[str] = None) -> Snapshot:
    """Coerce submitted data into a snapshot covering every control of `form`.

    Missing controls get their empty value, disabled controls keep their
    default. The submitter is the explicit address, or else the first submit
    button present in the data.
    """
    flat = flatten(data)
    values: Dict[str, Any] = {}
    for control in form.controls():
        address = control.address
        if control.disabled:
            values[address] = control.empty_value()
        elif control.is_button:
            values[address] = control.coerce(flat.get(address))
        elif address in flat:
            values[address] = control.coerce(flat[address])
        else:
            values[address] = control.coerce(None)

    if submitter is not None:
        if submitter not in form or not form.get_control(submitter).is_button:
            raise ValueError(f"Unknown submit button: {submitter!r}")
        values[submitter] = True
    else:
        submitter = next((c.address for c in form.submitters() if values[c.address] is True), None)
    return Snapshot(values, submitter=submitter)
