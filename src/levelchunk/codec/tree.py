"""Uniform tree view over the closed set of chunk types.

A level's children are its flats followed by the three resource arenas; an
arena's children are its entries; flats and resources are leaves. Dispatch
is by type over that fixed set, there is no chunk base class.
"""

from __future__ import annotations

from typing import Iterator, List, Tuple, Union

from .constants import ChunkKind
from .errors import E_CHUNK_KIND, E_NOT_FOUND, ContractError, EditError
from .flat import FlatChunk
from .level import LevelChunk
from .resources import ResourceArena, ResourceChunk

__all__ = [
    "Chunk",
    "children",
    "child_at",
    "chunk_name",
    "replace_child",
    "walk",
]

Chunk = Union[LevelChunk, FlatChunk, ResourceArena, ResourceChunk]

_ARENA_FIELDS = {
    ChunkKind.BUMP_IMAGE: "bumps",
    ChunkKind.ODD_IMAGE: "odds",
    ChunkKind.CAMERA_POS: "cameras",
}


def children(chunk: Chunk) -> List[Chunk]:
    if isinstance(chunk, LevelChunk):
        return [*chunk.flats, chunk.bumps, chunk.odds, chunk.cameras]
    if isinstance(chunk, ResourceArena):
        return list(chunk.entries)
    if isinstance(chunk, (FlatChunk, ResourceChunk)):
        return []
    raise TypeError(f"Not a chunk: {type(chunk).__name__}")


def child_at(chunk: Chunk, index: int) -> Chunk:
    kids = children(chunk)
    if not 0 <= index < len(kids):
        raise EditError(
            code=E_NOT_FOUND,
            message=f"{chunk_name(chunk)} has no child {index}",
        )
    return kids[index]


def chunk_name(chunk: Chunk) -> str:
    return chunk.name


def walk(chunk: Chunk, depth: int = 0) -> Iterator[Tuple[int, Chunk]]:
    """Pre-order traversal yielding ``(depth, chunk)``."""
    yield depth, chunk
    for child in children(chunk):
        yield from walk(child, depth + 1)


def _mismatch(old: Chunk, new: Chunk) -> ContractError:
    return ContractError(
        code=E_CHUNK_KIND,
        message=(
            f"Cannot replace {chunk_name(old)} with a "
            f"{type(new).__name__} of another kind"
        ),
    )


def _index_of(items, target) -> int:
    for i, item in enumerate(items):
        if item is target:
            return i
    return -1


def replace_child(parent: Chunk, old: Chunk, new: Chunk) -> None:
    """Swap ``old`` for ``new`` in place; both must fill the same role."""
    if type(old) is not type(new):
        raise _mismatch(old, new)

    if isinstance(parent, LevelChunk):
        if isinstance(old, FlatChunk):
            i = _index_of(parent.flats, old)
            if i >= 0:
                parent.flats[i] = new
                return
        elif isinstance(old, ResourceArena):
            if old.kind != new.kind:
                raise _mismatch(old, new)
            if parent.arena(old.kind) is old:
                setattr(parent, _ARENA_FIELDS[old.kind], new)
                return
    elif isinstance(parent, ResourceArena) and isinstance(old, ResourceChunk):
        if new.kind != parent.kind:
            raise _mismatch(old, new)
        i = _index_of(parent.entries, old)
        if i >= 0:
            new.index = i
            parent.entries[i] = new
            return

    raise EditError(
        code=E_NOT_FOUND,
        message=f"{chunk_name(old)} is not a child of {chunk_name(parent)}",
    )

