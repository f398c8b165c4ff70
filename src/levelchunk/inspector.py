"""Level inspection utilities.

Public functions:
- inspect_level(level) -> dict (JSON-serialisable)
- validate_level(level) -> list[str]

Validation reports problems in a decoded tree without raising; the codec
already rejected anything that is not a well-formed file.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .codec.constants import SECTION_ORDER, ChunkKind
from .codec.flat import FlatChunk
from .codec.errors import LevelError
from .codec.level import LevelChunk, encode_body
from .editing.reindex import canonical_ids, cell_reference
from .editing.respawn import respawn_marker

__all__ = ["inspect_level", "validate_level", "arena_usage"]


def _respawn_info(flat: FlatChunk, level: LevelChunk) -> Dict[str, int]:
    allowed = forbidden = 0
    for _x, _y, cell in flat.meta_cells():
        marker = respawn_marker(cell, level.odds)
        if marker is None:
            continue
        if marker.allowed:
            allowed += 1
        else:
            forbidden += 1
    return {"allowed": allowed, "forbidden": forbidden}


def _flat_info(flat: FlatChunk, level: LevelChunk) -> Dict[str, Any]:
    info: Dict[str, Any] = {
        "id": flat.declared_id,
        "name": flat.declared_name,
        "size": [flat.width, flat.height],
        "scale": [flat.scale_x, flat.scale_y],
        "origin": [flat.origin.x, flat.origin.y, flat.origin.z],
        "rotation": [flat.rotation.x, flat.rotation.y, flat.rotation.z],
        "flags": {
            "a": flat.flags.a,
            "b": flat.flags.b,
            "c": flat.flags.c,
            "d": flat.flags.d,
            "e": flat.flags.e,
        },
    }
    if flat.extension is not None:
        info["objects"] = len(flat.extension.objects)
        info["weapons"] = len(flat.extension.weapons)
        info["respawns"] = _respawn_info(flat, level)
    return info


def arena_usage(level: LevelChunk, kind: ChunkKind) -> List[int]:
    """Reference counts per entry; out-of-range references are skipped."""
    usage = [0] * len(level.arena(kind))
    for flat in level.flats:
        for _x, _y, cell in flat.meta_cells():
            ref = cell_reference(kind, cell, len(usage))
            if ref is not None and ref < len(usage):
                usage[ref] += 1
    return usage


def _dangling(level: LevelChunk, kind: ChunkKind) -> List[str]:
    arena = level.arena(kind)
    found = []
    for flat in level.flats:
        for x, y, cell in flat.meta_cells():
            ref = cell_reference(kind, cell, len(arena))
            if ref is not None and ref >= len(arena):
                found.append(
                    f"Flat {flat.name} cell ({x},{y}) references missing "
                    f"{arena.name} entry {ref}"
                )
    return found


def _arena_info(level: LevelChunk, kind: ChunkKind) -> Dict[str, Any]:
    arena = level.arena(kind)
    usage = arena_usage(level, kind)
    canonical = canonical_ids(arena.payloads())
    return {
        "name": arena.name,
        "count": len(arena),
        "used": sum(1 for u in usage if u),
        "references": sum(usage),
        "distinct": len(set(canonical)),
        "clear": sum(1 for e in arena if e.is_clear()),
    }


def inspect_level(level: LevelChunk) -> Dict[str, Any]:
    cap = level.capacity
    return {
        "file_size": cap.total_size,
        "body_size": cap.body_size,
        "capacity": {
            "trailing_zero_bytes": cap.trailing_zero_bytes,
            "exceeded": cap.exceeded,
            "deficit": cap.deficit,
        },
        "sections": [k.name for k in level.section_order],
        "flats": [_flat_info(f, level) for f in level.flats],
        "arenas": {
            kind.name.lower(): _arena_info(level, kind)
            for kind in SECTION_ORDER
            if kind != ChunkKind.FLAT
        },
    }


def validate_level(level: LevelChunk) -> List[str]:
    issues: List[str] = []
    ids: Dict[int, str] = {}
    for flat in level.flats:
        if flat.declared_id in ids:
            issues.append(
                f"Flat id {flat.declared_id} used by both "
                f"{ids[flat.declared_id]} and {flat.name}"
            )
        ids.setdefault(flat.declared_id, flat.name)
        if flat.flags.solid != (flat.extension is not None):
            issues.append(
                f"Flat {flat.name}: flag A is {flat.flags.a} but the "
                "metadata block is "
                f"{'present' if flat.extension is not None else 'missing'}"
            )
    for kind in (ChunkKind.BUMP_IMAGE, ChunkKind.ODD_IMAGE, ChunkKind.CAMERA_POS):
        issues.extend(_dangling(level, kind))
    if level.capacity.exceeded:
        issues.append(
            f"Level exceeds its fixed size by {level.capacity.deficit} bytes"
        )
    else:
        try:
            body = encode_body(level)
        except LevelError as e:
            issues.append(f"Level cannot be encoded: {e}")
        else:
            if len(body) != level.capacity.body_size:
                issues.append(
                    f"Encoded size {len(body)} disagrees with tracked size "
                    f"{level.capacity.body_size}"
                )
    return issues
