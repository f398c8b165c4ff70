"""High-level API for levelchunk.

Loads and saves level files and runs the edit operations the CLI exposes.
All functions take paths or decoded levels; none print.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List

from .codec.constants import ChunkKind
from .codec.errors import E_ROUNDTRIP, ConsistencyError, LevelError
from .codec.flat import decode_flat, encode_flat
from .codec.level import LevelChunk, decode_level, encode_level
from .editing.reindex import ReindexResult
from .editing.session import EditSession, SessionOptions
from .inspector import inspect_level as _inspect_level_impl
from .inspector import validate_level as _validate_level_impl
from .logging import get_logger
from .reporting import get_reporter, task
from .script.loader import load_script
from .script.runner import RESOURCE_KINDS, run_script

__all__ = [
    "SessionOptions",
    "SaveResult",
    "load_level",
    "save_level",
    "verify_level",
    "inspect_level",
    "validate_level",
    "reindex_level",
    "clone_level_flat",
    "apply_script",
    "resource_kind",
]


@dataclass(slots=True)
class SaveResult:
    output_file: Path
    bytes_written: int
    trailing_zero_bytes: int


def resource_kind(name: str) -> ChunkKind:
    try:
        return RESOURCE_KINDS[name]
    except KeyError:
        raise ValueError(
            f"Unknown resource '{name}' (choose from {sorted(RESOURCE_KINDS)})"
        ) from None


def load_level(
    path: str | Path, options: SessionOptions | None = None
) -> LevelChunk:
    options = options or SessionOptions()
    p = Path(path)
    data = p.read_bytes()
    level = decode_level(data)
    if options.verify_roundtrip and encode_level(level) != data:
        raise ConsistencyError(
            code=E_ROUNDTRIP,
            message=f"{p.name} does not re-encode to identical bytes",
            context={"path": str(p)},
        )
    get_logger().debug(
        "loaded %s: %d bytes, %d free", p.name, len(data),
        level.capacity.trailing_zero_bytes,
    )
    return level


def save_level(level: LevelChunk, path: str | Path) -> SaveResult:
    """Encode and write; raises CapacityError while the level is over size."""
    data = encode_level(level)
    p = Path(path)
    p.write_bytes(data)
    get_logger().info("Saved %s (%d bytes)", p.name, len(data))
    return SaveResult(p, len(data), level.capacity.trailing_zero_bytes)


def verify_level(level: LevelChunk) -> List[str]:
    """Round trip every flat through the codec; returns failures."""
    failures: List[str] = []
    with task("verify", "Verify flats", total=len(level.flats)):
        for flat in level.flats:
            try:
                first = encode_flat(flat)
                if encode_flat(decode_flat(first)) != first:
                    failures.append(f"Flat {flat.name}: re-encoding differs")
            except LevelError as e:
                failures.append(f"Flat {flat.name}: {e}")
            get_reporter().advance("verify", current_item=flat.name)
    return failures


def inspect_level(path: str | Path) -> Dict[str, Any]:
    level = load_level(path, SessionOptions(verify_roundtrip=False))
    info = _inspect_level_impl(level)
    info["path"] = str(path)
    return info


def validate_level(path: str | Path) -> List[str]:
    level = load_level(path, SessionOptions(verify_roundtrip=False))
    return _validate_level_impl(level)


def reindex_level(
    level: LevelChunk,
    kind: ChunkKind = ChunkKind.BUMP_IMAGE,
    options: SessionOptions | None = None,
) -> ReindexResult:
    result = EditSession(level, options).reindex(kind)
    get_reporter().status(f"Reindex summary: {result.summary()}")
    return result


def clone_level_flat(
    level: LevelChunk, declared_id: int, options: SessionOptions | None = None
):
    clone = EditSession(level, options).clone(declared_id)
    rep = get_reporter()
    rep.status(f"Clone summary: new flat {clone.name}")
    return clone


def apply_script(
    level: LevelChunk,
    script_path: str | Path,
    options: SessionOptions | None = None,
) -> List[Dict[str, Any]]:
    script = load_script(script_path)
    get_logger().info(
        "Loaded edit script %s (%d operations)",
        Path(script_path).name,
        len(script.operations),
    )
    return run_script(EditSession(level, options), script)
