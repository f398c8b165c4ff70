"""Dataclass models for edit scripts."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List

OP_CLONE_FLAT = "clone_flat"
OP_REINDEX = "reindex"
OP_SET_META = "set_meta"
OP_SET_BUMP_PIXEL = "set_bump_pixel"
OP_SET_TEXTURE = "set_texture"
OP_FILL_META = "fill_meta"
OP_SET_RESPAWN = "set_respawn"

# Required integer fields per operation (besides "op").
OP_FIELDS: Dict[str, tuple[str, ...]] = {
    OP_CLONE_FLAT: ("flat",),
    OP_REINDEX: (),
    OP_SET_META: ("flat", "x", "y", "entry", "value"),
    OP_SET_BUMP_PIXEL: ("flat", "x", "y", "px", "py", "value"),
    OP_SET_TEXTURE: ("flat", "x", "y", "texture"),
    OP_FILL_META: ("flat", "entry", "value"),
    OP_SET_RESPAWN: ("flat", "x", "y"),
}

# Optional integer fields; "direction" may also be null (no respawn).
OP_OPTIONAL_FIELDS: Dict[str, tuple[str, ...]] = {
    OP_SET_TEXTURE: ("height",),
    OP_SET_RESPAWN: ("px", "py", "direction"),
}

RESOURCE_NAMES = ("bump", "odd", "camera")


@dataclass(slots=True)
class ScriptOp:
    op: str
    args: Dict[str, Any] = field(default_factory=dict)

    def __getitem__(self, key: str) -> Any:
        return self.args[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.args.get(key, default)


@dataclass(slots=True)
class EditScript:
    version: int = 1
    operations: List[ScriptOp] = field(default_factory=list)


__all__ = [
    "ScriptOp",
    "EditScript",
    "OP_CLONE_FLAT",
    "OP_REINDEX",
    "OP_SET_META",
    "OP_SET_BUMP_PIXEL",
    "OP_SET_TEXTURE",
    "OP_FILL_META",
    "OP_SET_RESPAWN",
    "OP_FIELDS",
    "OP_OPTIONAL_FIELDS",
    "RESOURCE_NAMES",
]
