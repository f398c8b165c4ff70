"""Apply a validated edit script to an edit session."""

from __future__ import annotations

from typing import Any, Dict, List

from ..codec.constants import ChunkKind, MetaEntry
from ..editing.session import EditSession
from ..reporting import get_reporter, task
from .models import (
    OP_CLONE_FLAT,
    OP_FILL_META,
    OP_REINDEX,
    OP_SET_BUMP_PIXEL,
    OP_SET_META,
    OP_SET_RESPAWN,
    OP_SET_TEXTURE,
    EditScript,
    ScriptOp,
)

__all__ = ["run_script", "RESOURCE_KINDS"]

RESOURCE_KINDS = {
    "bump": ChunkKind.BUMP_IMAGE,
    "odd": ChunkKind.ODD_IMAGE,
    "camera": ChunkKind.CAMERA_POS,
}


def _entry(value) -> MetaEntry | int:
    if isinstance(value, str):
        return MetaEntry[value.upper()]
    return value


def _apply(session: EditSession, op: ScriptOp) -> Dict[str, Any]:
    if op.op == OP_CLONE_FLAT:
        clone = session.clone(op["flat"])
        return {"op": op.op, "flat": op["flat"], "new_id": clone.declared_id}
    if op.op == OP_REINDEX:
        kind = RESOURCE_KINDS[op.get("resource", "bump")]
        result = session.reindex(kind)
        return {
            "op": op.op,
            "resource": op.get("resource", "bump"),
            "summary": result.summary(),
        }
    if op.op == OP_SET_META:
        old = session.set_meta(
            op["flat"], op["x"], op["y"], _entry(op["entry"]), op["value"]
        )
        return {"op": op.op, "flat": op["flat"], "old": old}
    if op.op == OP_SET_BUMP_PIXEL:
        index = session.set_bump_pixel(
            op["flat"], op["x"], op["y"], op["px"], op["py"], op["value"]
        )
        return {"op": op.op, "flat": op["flat"], "bump": index}
    if op.op == OP_SET_TEXTURE:
        old_texture, old_height = session.set_texture(
            op["flat"], op["x"], op["y"], op["texture"], op.get("height")
        )
        return {
            "op": op.op,
            "flat": op["flat"],
            "old_texture": old_texture,
            "old_height": old_height,
        }
    if op.op == OP_FILL_META:
        changed = session.fill_meta(
            op["flat"], _entry(op["entry"]), op["value"]
        )
        return {"op": op.op, "flat": op["flat"], "changed": changed}
    if op.op == OP_SET_RESPAWN:
        odd = session.set_respawn(
            op["flat"],
            op["x"],
            op["y"],
            op.get("px", 0),
            op.get("py", 0),
            op.get("direction"),
        )
        return {"op": op.op, "flat": op["flat"], "odd": odd}
    raise ValueError(f"Unsupported operation: {op.op}")


def run_script(session: EditSession, script: EditScript) -> List[Dict[str, Any]]:
    """Apply operations in order; the first failure stops the run."""
    results: List[Dict[str, Any]] = []
    rep = get_reporter()
    with task("script", "Apply edit script", total=len(script.operations)):
        for i, op in enumerate(script.operations):
            results.append(_apply(session, op))
            rep.advance("script", current_item=f"{i}: {op.op}")
    return results
