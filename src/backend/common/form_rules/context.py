from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .controls import Control
    from .snapshot import Snapshot


@dataclass(frozen=True)
class RuleContext:
    """What an operator sees: the subject control, its value and the snapshot."""

    control: "Control"
    value: Any
    snapshot: "Snapshot"

    @property
    def name(self) -> str:
        return self.control.name

    @property
    def address(self) -> str:
        return self.control.address

    def value_of(self, address: str) -> Any:
        return self.snapshot[address]
