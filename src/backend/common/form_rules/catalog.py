from __future__ import annotations

import argparse
import importlib
import json
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from .registry import Validator, registry

# Ensure built-in validators are imported/registered when generating a catalog.
from . import validators as _builtin_validators  # noqa: F401


class OperatorCatalogEntry(BaseModel):
    key: str
    builtin: bool
    default_message: Optional[str] = None
    aliases: List[str] = Field(default_factory=list)

    module: str
    function: str
    doc: str = ""


def build_catalog() -> List[OperatorCatalogEntry]:
    aliases: dict[str, List[str]] = {}
    for alias, member in Validator.__members__.items():
        if alias != member.name:
            aliases.setdefault(member.value, []).append(alias)

    entries: List[OperatorCatalogEntry] = []
    for operator in registry.operators():
        func = operator.func
        entries.append(
            OperatorCatalogEntry(
                key=operator.tag,
                builtin=isinstance(operator.key, Validator),
                default_message=operator.message,
                aliases=sorted(aliases.get(operator.tag, [])),
                module=getattr(func, "__module__", "") or "",
                function=getattr(func, "__qualname__", getattr(func, "__name__", "")),
                doc=(getattr(func, "__doc__", None) or "").strip(),
            )
        )

    entries.sort(key=lambda e: (not e.builtin, e.key))
    return entries


def _dump_json(catalog: list[dict[str, Any]]) -> str:
    return json.dumps(catalog, indent=2, sort_keys=True)


def _dump_yaml(catalog: list[dict[str, Any]]) -> str:
    try:
        import yaml  # type: ignore
    except ModuleNotFoundError as exc:
        raise SystemExit(
            "PyYAML is required for YAML output. Install the `yaml` extra (e.g., `pip install form-rules[yaml]`)."
        ) from exc

    return yaml.safe_dump(catalog, sort_keys=True)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="List the validation operators known to the registry.")
    parser.add_argument(
        "--format",
        choices=("yaml", "json"),
        default="yaml",
        help="Output format (default: yaml).",
    )
    parser.add_argument(
        "--import",
        dest="modules",
        action="append",
        default=[],
        metavar="MODULE",
        help="Import a module that registers custom validators (repeatable).",
    )
    args = parser.parse_args(argv)

    for module in args.modules:
        importlib.import_module(module)

    catalog = [e.model_dump() for e in build_catalog()]
    if args.format == "json":
        print(_dump_json(catalog))
    else:
        print(_dump_yaml(catalog))


if __name__ == "__main__":
    main()
