from __future__ import annotations


class FormRulesError(Exception):
    """Base class for misconfigured forms (never raised for bad user input)."""


class BuildError(FormRulesError):
    """The rule tree was mutated in an invalid builder state."""


class UnknownOperatorError(FormRulesError, LookupError):
    def __init__(self, key: str):
        super().__init__(f"Unknown validation operator: {key!r}")
        self.key = key
