"""Edit script loading (YAML or JSON)."""

from __future__ import annotations
from pathlib import Path
from typing import Any, List
import json

import yaml

from .models import EditScript, ScriptOp
from .validator import ValidationErrorRecord, run_validation


class ScriptValidationError(ValueError):
    def __init__(self, errors: List[ValidationErrorRecord]) -> None:
        self.errors = errors
        lines = [f"{e.code} {e.path}: {e.message}" for e in errors]
        super().__init__("Invalid edit script:\n  " + "\n  ".join(lines))


def read_script_data(path: str | Path) -> dict[str, Any]:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(p)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        data: Any = yaml.safe_load(text)
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("Root of an edit script must be an object")
    return data


def parse_script(data: dict[str, Any]) -> EditScript:
    errors = run_validation(data)
    if errors:
        raise ScriptValidationError(errors)
    ops = [
        ScriptOp(op["op"], {k: v for k, v in op.items() if k != "op"})
        for op in data["operations"]
    ]
    return EditScript(version=int(data.get("version", 1)), operations=ops)


def load_script(path: str | Path) -> EditScript:
    return parse_script(read_script_data(path))


__all__ = [
    "load_script",
    "parse_script",
    "read_script_data",
    "ScriptValidationError",
]
