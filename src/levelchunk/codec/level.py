"""Level container codec.

Layout::

    b"SHET"
    repeated sections: int16 kind, int16 count, count records
    int16 kind 0 (END)
    zero padding up to the fixed file size

Each section's kind is the discriminant that selects the record decoder;
a kind may appear once. Sections are written back in the order they were
read (absent, empty sections stay absent). The trailing zero run is unused
capacity: its length seeds the level's :class:`CapacityTracker` and is written
back verbatim on save so the output keeps the original file size.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from ..capacity import CapacityTracker
from ..logging import get_logger
from .constants import LEVEL_MAGIC, SECTION_ORDER, ChunkKind
from .errors import (
    E_CHUNK_KIND,
    E_DUP_SECTION,
    E_MAGIC,
    E_ROUNDTRIP,
    E_TRAILING_NONZERO,
    ConsistencyError,
    format_error,
)
from .flat import FlatChunk, read_flat, write_flat
from .primitives import ByteCursor, ByteSink
from .resources import (
    ResourceArena,
    ResourceChunk,
    check_arena_count,
    read_resource,
    write_resource,
)

__all__ = [
    "LevelChunk",
    "read_level",
    "write_level",
    "encode_body",
    "decode_level",
    "encode_level",
]


@dataclass(slots=True)
class LevelChunk:
    flats: List[FlatChunk] = field(default_factory=list)
    bumps: ResourceArena = field(
        default_factory=lambda: ResourceArena(ChunkKind.BUMP_IMAGE)
    )
    odds: ResourceArena = field(
        default_factory=lambda: ResourceArena(ChunkKind.ODD_IMAGE)
    )
    cameras: ResourceArena = field(
        default_factory=lambda: ResourceArena(ChunkKind.CAMERA_POS)
    )
    capacity: CapacityTracker = field(default_factory=CapacityTracker)
    section_order: List[ChunkKind] = field(
        default_factory=lambda: list(SECTION_ORDER)
    )

    name = "level"

    def arena(self, kind: ChunkKind) -> ResourceArena:
        if kind == ChunkKind.BUMP_IMAGE:
            return self.bumps
        if kind == ChunkKind.ODD_IMAGE:
            return self.odds
        if kind == ChunkKind.CAMERA_POS:
            return self.cameras
        raise KeyError(f"No resource arena for {kind!r}")

    def get_bump(self, index: int) -> Optional[ResourceChunk]:
        return self.bumps.get(index)

    def get_odd(self, index: int) -> Optional[ResourceChunk]:
        return self.odds.get(index)

    def get_camera(self, index: int) -> Optional[ResourceChunk]:
        return self.cameras.get(index)

    def find_flat(self, declared_id: int) -> Optional[FlatChunk]:
        for flat in self.flats:
            if flat.declared_id == declared_id:
                return flat
        return None


# ---------------------------------------------------------------------------
# Section codecs, keyed by the discriminant read from the stream.
# ---------------------------------------------------------------------------


def _read_flats(level: LevelChunk, cur: ByteCursor, count: int) -> None:
    level.flats = [read_flat(cur) for _ in range(count)]


def _resource_section_reader(kind: ChunkKind):
    def _read(level: LevelChunk, cur: ByteCursor, count: int) -> None:
        check_arena_count(kind, count, cur.offset)
        arena = level.arena(kind)
        arena.entries = [read_resource(kind, i, cur) for i in range(count)]

    return _read


_SECTION_READERS: Dict[
    ChunkKind, Callable[[LevelChunk, ByteCursor, int], None]
] = {
    ChunkKind.FLAT: _read_flats,
    ChunkKind.BUMP_IMAGE: _resource_section_reader(ChunkKind.BUMP_IMAGE),
    ChunkKind.ODD_IMAGE: _resource_section_reader(ChunkKind.ODD_IMAGE),
    ChunkKind.CAMERA_POS: _resource_section_reader(ChunkKind.CAMERA_POS),
}


def read_level(cur: ByteCursor) -> LevelChunk:
    logger = get_logger()
    start = cur.offset
    magic = cur.read_bytes(len(LEVEL_MAGIC), "level magic")
    if magic != LEVEL_MAGIC:
        raise format_error(
            E_MAGIC, f"Bad level magic: {magic!r}", start, value=magic.hex()
        )
    level = LevelChunk(section_order=[])
    seen: set[ChunkKind] = set()
    while True:
        kind_offset = cur.offset
        raw_kind = cur.read_i16("section kind")
        try:
            kind = ChunkKind(raw_kind)
        except ValueError as e:
            raise format_error(
                E_CHUNK_KIND,
                f"Unrecognised section kind: {raw_kind}",
                kind_offset,
                value=raw_kind,
            ) from e
        if kind == ChunkKind.END:
            break
        if kind in seen:
            raise format_error(
                E_DUP_SECTION,
                f"Section {kind.name} appears twice",
                kind_offset,
            )
        seen.add(kind)
        level.section_order.append(kind)
        count = cur.read_count(f"{kind.name.lower()} count")
        _SECTION_READERS[kind](level, cur, count)
        logger.debug("section %s: %d records", kind.name, count)

    body_size = cur.offset - start
    padding_offset = cur.offset
    padding = cur.read_bytes(cur.remaining(), "trailing padding")
    nonzero = next((i for i, b in enumerate(padding) if b), None)
    if nonzero is not None:
        raise format_error(
            E_TRAILING_NONZERO,
            "Trailing padding must be zero",
            padding_offset + nonzero,
        )
    level.capacity = CapacityTracker(
        total_size=body_size + len(padding),
        trailing_zero_bytes=len(padding),
    )
    logger.debug(
        "decoded level: %d flats, %d bumps, %d odds, %d cameras, "
        "body=%d free=%d",
        len(level.flats),
        len(level.bumps),
        len(level.odds),
        len(level.cameras),
        body_size,
        len(padding),
    )
    return level


def _write_section(kind: ChunkKind, records, sink: ByteSink, writer) -> None:
    sink.write_i16(int(kind), "section kind")
    sink.write_i16(len(records), f"{kind.name.lower()} count")
    for record in records:
        writer(record, sink)


def _section_records(level: LevelChunk, kind: ChunkKind) -> list:
    if kind == ChunkKind.FLAT:
        return level.flats
    return level.arena(kind).entries


def encode_body(level: LevelChunk) -> bytes:
    """Encode everything but the trailing padding."""
    sink = ByteSink()
    sink.write_bytes(LEVEL_MAGIC)
    order = list(level.section_order)
    for kind in SECTION_ORDER:
        if kind not in order and _section_records(level, kind):
            order.append(kind)
    for kind in order:
        if kind == ChunkKind.FLAT:
            _write_section(kind, level.flats, sink, write_flat)
        else:
            _write_section(
                kind, _section_records(level, kind), sink, write_resource
            )
    sink.write_i16(int(ChunkKind.END), "section kind")
    return sink.getvalue()


def write_level(level: LevelChunk, sink: ByteSink) -> None:
    """Encode the full file; refuses while the capacity is overdrawn."""
    level.capacity.ensure_can_save()
    body = encode_body(level)
    expected = level.capacity.total_size - level.capacity.trailing_zero_bytes
    if len(body) != expected:
        raise ConsistencyError(
            code=E_ROUNDTRIP,
            message="Encoded level size disagrees with tracked capacity",
            context={
                "encoded": len(body),
                "expected": expected,
                "trailing_zero_bytes": level.capacity.trailing_zero_bytes,
            },
        )
    sink.write_bytes(body)
    sink.write_bytes(bytes(level.capacity.trailing_zero_bytes))


def decode_level(data: bytes) -> LevelChunk:
    return read_level(ByteCursor(data))


def encode_level(level: LevelChunk) -> bytes:
    sink = ByteSink()
    write_level(level, sink)
    return sink.getvalue()
