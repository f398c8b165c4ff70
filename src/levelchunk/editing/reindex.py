"""Content-dedup reindex of a shared resource arena.

Flats point at resources through one byte of a metadata cell (the slot
depends on the arena, see ``RESOURCE_META_SLOTS``). Bump references are in
every cell. Byte 0 names an odd image only on respawn-encoded cells, and
the camera byte only counts once the level carries camera positions. Over
time editing leaves unused entries and byte-identical copies behind. A
reindex pass:

1. counts references per original index,
2. groups entries with identical payloads (lowest index is canonical),
3. hands out dense new indices from 0 to every class with a nonzero total
   usage, in ascending canonical order,
4. rewrites the payloads (from a snapshot) and every metadata cell,
5. clears the tail beyond the highest index still in use.

The arena keeps its length: capacity is fixed, only the contents move.
All validation happens before the first byte is changed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from ..codec.constants import RESOURCE_META_SLOTS, ChunkKind
from ..codec.errors import (
    E_DANGLING_REF,
    E_UNMAPPED_INDEX,
    ConsistencyError,
)
from ..codec.flat import FlatChunk
from ..codec.level import LevelChunk
from ..logging import get_logger
from .respawn import respawn_encoded

__all__ = [
    "ReindexPlan",
    "ReindexResult",
    "cell_reference",
    "usage_counts",
    "canonical_ids",
    "plan_reindex",
    "reindex_resources",
]


@dataclass(slots=True)
class ReindexPlan:
    kind: ChunkKind
    usage: List[int]
    canonical: List[int]
    mapping: Dict[int, int]  # original index -> new index (used classes only)

    @property
    def distinct_count(self) -> int:
        return len(set(self.canonical))

    @property
    def populated_count(self) -> int:
        return len(set(self.mapping.values()))

    @property
    def reclaimed(self) -> int:
        """Used entries folded into an identical lower-indexed entry."""
        return sum(
            1
            for i, c in enumerate(self.canonical)
            if c != i and self.usage[i] > 0
        )


@dataclass(slots=True)
class ReindexResult:
    kind: ChunkKind
    mapping: Dict[int, int]
    usage_before: List[int]
    usage_after: List[int]
    distinct_count: int
    reclaimed: int
    populated_count: int
    free_count: int
    changed: bool = False
    cells_rewritten: int = 0
    cleared: List[int] = field(default_factory=list)

    def summary(self) -> str:
        return (
            f"{self.distinct_count} distinct payloads, "
            f"{self.reclaimed} duplicates coalesced, "
            f"{self.populated_count} in use, {self.free_count} free"
        )


def _cells(flats: Iterable[FlatChunk]):
    for flat in flats:
        for x, y, cell in flat.meta_cells():
            yield flat, x, y, cell


def cell_reference(kind: ChunkKind, cell, arena_len: int) -> Optional[int]:
    """Index ``cell`` points at in the ``kind`` arena, or None if it holds none."""
    if kind == ChunkKind.ODD_IMAGE and not respawn_encoded(cell):
        return None
    if kind == ChunkKind.CAMERA_POS and arena_len == 0:
        return None
    return cell[RESOURCE_META_SLOTS[kind]]


def usage_counts(
    flats: Iterable[FlatChunk], kind: ChunkKind, arena_len: int
) -> List[int]:
    """Reference count per arena index; raises on an out-of-range index."""
    usage = [0] * arena_len
    for flat, x, y, cell in _cells(flats):
        ref = cell_reference(kind, cell, arena_len)
        if ref is None:
            continue
        if ref >= arena_len:
            raise ConsistencyError(
                code=E_DANGLING_REF,
                message=(
                    f"Flat {flat.name} cell ({x},{y}) references index {ref} "
                    f"but only {arena_len} entries exist"
                ),
                context={"flat": flat.declared_id, "x": x, "y": y, "ref": ref},
            )
        usage[ref] += 1
    return usage


def canonical_ids(payloads: Sequence[bytes]) -> List[int]:
    """Lowest index holding identical bytes, per index."""
    first_seen: Dict[bytes, int] = {}
    result: List[int] = []
    for i, payload in enumerate(payloads):
        result.append(first_seen.setdefault(bytes(payload), i))
    return result


def plan_reindex(
    kind: ChunkKind, payloads: Sequence[bytes], usage: Sequence[int]
) -> ReindexPlan:
    if len(payloads) != len(usage):
        raise ValueError("payloads and usage must have the same length")
    canonical = canonical_ids(payloads)

    class_usage: Dict[int, int] = {}
    for i, c in enumerate(canonical):
        class_usage[c] = class_usage.get(c, 0) + usage[i]

    new_index: Dict[int, int] = {}
    for c in sorted(class_usage):
        if class_usage[c] > 0:
            new_index[c] = len(new_index)

    mapping = {
        i: new_index[c] for i, c in enumerate(canonical) if c in new_index
    }
    for i, count in enumerate(usage):
        if count and i not in mapping:
            raise ConsistencyError(
                code=E_UNMAPPED_INDEX,
                message=f"Index {i} is referenced {count} times but unmapped",
                context={"kind": kind.name, "index": i},
            )
    return ReindexPlan(kind, list(usage), canonical, mapping)


def reindex_resources(
    level: LevelChunk, kind: ChunkKind = ChunkKind.BUMP_IMAGE
) -> ReindexResult:
    """Deduplicate and compact one arena of ``level`` in place."""
    logger = get_logger()
    arena = level.arena(kind)
    slot = int(RESOURCE_META_SLOTS[kind])
    before = arena.payloads()

    usage = usage_counts(level.flats, kind, len(arena))
    plan = plan_reindex(kind, before, usage)

    snapshot = {
        old: before[old] for old in plan.mapping if plan.canonical[old] == old
    }
    highest = -1
    for old, payload in sorted(snapshot.items()):
        new = plan.mapping[old]
        arena.entries[new].data[:] = payload
        highest = max(highest, new)
    cleared: List[int] = []
    for i in range(highest + 1, len(arena)):
        if not arena.entries[i].is_clear():
            cleared.append(i)
        arena.entries[i].clear()

    rewritten = 0
    for _flat, _x, _y, cell in _cells(level.flats):
        old = cell_reference(kind, cell, len(arena))
        if old is None:
            continue
        new = plan.mapping[old]
        if new != old:
            cell[slot] = new
            rewritten += 1

    after = arena.payloads()
    usage_after = usage_counts(level.flats, kind, len(arena))
    result = ReindexResult(
        kind=kind,
        mapping=dict(plan.mapping),
        usage_before=usage,
        usage_after=usage_after,
        distinct_count=plan.distinct_count,
        reclaimed=plan.reclaimed,
        populated_count=plan.populated_count,
        free_count=len(arena) - plan.populated_count,
        changed=rewritten > 0 or after != before,
        cells_rewritten=rewritten,
        cleared=cleared,
    )
    logger.debug("reindex %s mapping: %s", arena.name, result.mapping)
    logger.info("Reindex %s: %s", arena.name, result.summary())
    return result
