"""Edit script validation.

Phases:
 1. schema: structure and field types
 2. semantic: value ranges and names

Returns a list of ValidationErrorRecord; empty list means success.
"""

from __future__ import annotations
from typing import Any, Dict, List

from ..codec.constants import IMAGE_DIMENSION, RESPAWN_DIRECTIONS, MetaEntry
from .models import (
    OP_FIELDS,
    OP_FILL_META,
    OP_OPTIONAL_FIELDS,
    OP_SET_BUMP_PIXEL,
    OP_SET_META,
    OP_SET_RESPAWN,
    OP_SET_TEXTURE,
    RESOURCE_NAMES,
)

SUPPORTED_VERSIONS = (1,)
_CELL_OPS = (OP_SET_META, OP_SET_BUMP_PIXEL, OP_SET_TEXTURE, OP_SET_RESPAWN)


class ValidationErrorRecord:
    def __init__(self, code: str, message: str, path: str = "") -> None:
        self.code = code
        self.message = message
        self.path = path

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "path": self.path}

    def __repr__(self) -> str:
        return (
            f"ValidationErrorRecord(code={self.code}, path={self.path}, "
            f"message={self.message})"
        )


def _err(
    errors: List[ValidationErrorRecord], code: str, message: str, path: str
):
    errors.append(ValidationErrorRecord(code, message, path))


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _schema_phase(script: Dict[str, Any]) -> List[ValidationErrorRecord]:
    errors: List[ValidationErrorRecord] = []
    version = script.get("version", 1)
    if not _is_int(version):
        _err(errors, "E_TYPE", "'version' must be an integer", "version")
    ops = script.get("operations")
    if not isinstance(ops, list):
        _err(errors, "E_TYPE", "'operations' must be a list", "operations")
        return errors
    for i, op in enumerate(ops):
        path = f"operations[{i}]"
        if not isinstance(op, dict):
            _err(errors, "E_TYPE", "Operation must be an object", path)
            continue
        name = op.get("op")
        if not isinstance(name, str):
            _err(errors, "E_FIELD", "Missing or invalid 'op'", path)
            continue
        if name not in OP_FIELDS:
            _err(errors, "E_OP", f"Unknown operation '{name}'", path + ".op")
            continue
        for key in OP_FIELDS[name]:
            if key not in op:
                _err(errors, "E_FIELD", f"Missing '{key}'", f"{path}.{key}")
            elif key == "entry" and isinstance(op[key], str):
                pass
            elif not _is_int(op[key]):
                _err(
                    errors,
                    "E_TYPE",
                    f"'{key}' must be an integer",
                    f"{path}.{key}",
                )
        for key in OP_OPTIONAL_FIELDS.get(name, ()):
            value = op.get(key)
            if value is None and (key == "direction" or key not in op):
                continue
            if not _is_int(value):
                _err(
                    errors,
                    "E_TYPE",
                    f"'{key}' must be an integer",
                    f"{path}.{key}",
                )
        if "resource" in op and not isinstance(op["resource"], str):
            _err(
                errors, "E_TYPE", "'resource' must be a string", path + ".resource"
            )
    return errors


def _range(
    errors: List[ValidationErrorRecord],
    op: Dict[str, Any],
    key: str,
    lo: int,
    hi: int,
    path: str,
) -> None:
    value = op.get(key)
    if _is_int(value) and not lo <= value <= hi:
        _err(
            errors,
            "E_RANGE",
            f"'{key}' must be within {lo}..{hi}, got {value}",
            f"{path}.{key}",
        )


def _semantic_phase(script: Dict[str, Any]) -> List[ValidationErrorRecord]:
    errors: List[ValidationErrorRecord] = []
    if script.get("version", 1) not in SUPPORTED_VERSIONS:
        _err(
            errors,
            "E_RANGE",
            f"Unsupported script version {script.get('version')}",
            "version",
        )
    for i, op in enumerate(script["operations"]):
        path = f"operations[{i}]"
        name = op["op"]
        resource = op.get("resource")
        if resource is not None and resource not in RESOURCE_NAMES:
            _err(
                errors,
                "E_RANGE",
                f"Unknown resource '{resource}'",
                path + ".resource",
            )
        if "flat" in op:
            _range(errors, op, "flat", -0x8000, 0x7FFF, path)
        if name in _CELL_OPS:
            _range(errors, op, "x", 0, 0x7FFF, path)
            _range(errors, op, "y", 0, 0x7FFF, path)
        if name in (OP_SET_META, OP_SET_BUMP_PIXEL, OP_FILL_META):
            _range(errors, op, "value", 0, 0xFF, path)
        if name == OP_SET_TEXTURE:
            _range(errors, op, "texture", -0x8000, 0x7FFF, path)
            _range(errors, op, "height", -0x8000, 0x7FFF, path)
        if name in (OP_SET_META, OP_FILL_META):
            entry = op["entry"]
            if isinstance(entry, str):
                if entry.upper() not in MetaEntry.__members__:
                    _err(
                        errors,
                        "E_RANGE",
                        f"Unknown metadata entry '{entry}'",
                        path + ".entry",
                    )
            else:
                _range(errors, op, "entry", 0, len(MetaEntry) - 1, path)
        if name in (OP_SET_BUMP_PIXEL, OP_SET_RESPAWN):
            _range(errors, op, "px", 0, IMAGE_DIMENSION - 1, path)
            _range(errors, op, "py", 0, IMAGE_DIMENSION - 1, path)
        if name == OP_SET_RESPAWN:
            _range(errors, op, "direction", 0, RESPAWN_DIRECTIONS - 1, path)
    return errors


def run_validation(script: Dict[str, Any]) -> List[ValidationErrorRecord]:
    errors: List[ValidationErrorRecord] = []
    errors.extend(_schema_phase(script))
    if errors:
        return errors  # stop early if schema invalid
    errors.extend(_semantic_phase(script))
    return errors


__all__ = ["run_validation", "ValidationErrorRecord"]
