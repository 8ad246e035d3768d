from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from .registry import OperatorRef

CONFIG_ENV_VAR = "FORM_RULES_CONFIG"


class EngineConfig(BaseModel):
    """Engine-wide settings shared by every form built with it.

    `messages` overrides default messages per operator; keys are operator tags
    (`":filled"`, `"myapp.zip"`), prefixed with `~` for the negated variant.
    """

    messages: Dict[str, str] = Field(default_factory=dict)
    # Used when neither the rule, the config nor the operator provides a message.
    default_message: str = "Please enter a valid value."

    @field_validator("messages")
    @classmethod
    def _normalize_keys(cls, value: Dict[str, str]) -> Dict[str, str]:
        normalized: Dict[str, str] = {}
        for key, message in value.items():
            if not key.lstrip("~!"):
                raise ValueError(f"Invalid operator key {key!r}")
            ref = OperatorRef.parse(key)
            if not message:
                raise ValueError(f"Empty message configured for {key!r}")
            normalized[("~" if ref.negated else "") + ref.tag] = message
        return normalized

    def message_for(self, ref: OperatorRef) -> Optional[str]:
        return self.messages.get(("~" if ref.negated else "") + ref.tag)


def _load_yaml(text: str):
    try:
        import yaml  # type: ignore
    except ModuleNotFoundError as exc:
        raise RuntimeError(
            "PyYAML is required for YAML engine config. Install the `yaml` extra (pip install form-rules[yaml])."
        ) from exc
    return yaml.safe_load(text)


def load_engine_config(path: Union[str, Path, None] = None) -> EngineConfig:
    """Load engine settings from a YAML/JSON file.

    Without an explicit path, `FORM_RULES_CONFIG` (environment or `.env`) is
    used; when that is unset too, defaults apply.
    """
    load_dotenv()
    if path is None:
        path = os.getenv(CONFIG_ENV_VAR, "").strip() or None
    if path is None:
        return EngineConfig()

    path = Path(path)
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        raw = _load_yaml(text)
    else:
        raw = json.loads(text)
    return EngineConfig.model_validate(raw or {})
