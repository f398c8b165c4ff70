"""Shared, index-addressed resource arrays (bump, odd and camera chunks).

Resources are fixed-size opaque payloads. Flats refer to them by the byte
stored in a metadata cell, so an arena is a plain list addressed by index;
nothing holds references to the payload objects themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from .constants import (
    IMAGE_DIMENSION,
    MAX_RESOURCE_INDEX,
    RESOURCE_SIZES,
    ChunkKind,
)
from .errors import E_COUNT, E_FIELD_RANGE, ContractError, format_error
from .primitives import ByteCursor, ByteSink

__all__ = [
    "ResourceChunk",
    "ResourceArena",
    "read_resource",
    "write_resource",
    "check_arena_count",
]

_KIND_LABELS = {
    ChunkKind.BUMP_IMAGE: "bump",
    ChunkKind.ODD_IMAGE: "odd",
    ChunkKind.CAMERA_POS: "camera",
}
_ARENA_NAMES = {
    ChunkKind.BUMP_IMAGE: "bump images",
    ChunkKind.ODD_IMAGE: "odd images",
    ChunkKind.CAMERA_POS: "camera positions",
}


@dataclass(slots=True)
class ResourceChunk:
    kind: ChunkKind
    index: int
    data: bytearray

    def __post_init__(self) -> None:
        size = RESOURCE_SIZES[self.kind]
        if len(self.data) != size:
            raise ContractError(
                E_FIELD_RANGE,
                f"{_KIND_LABELS[self.kind]} payload must be {size} bytes, "
                f"got {len(self.data)}",
            )
        self.data = bytearray(self.data)

    @property
    def name(self) -> str:
        return f"{_KIND_LABELS[self.kind]} #{self.index}"

    def is_clear(self) -> bool:
        return not any(self.data)

    def clear(self) -> None:
        self.data[:] = bytes(len(self.data))

    def copy_from(self, other: "ResourceChunk") -> None:
        if other.kind != self.kind:
            raise ContractError(
                E_FIELD_RANGE,
                f"Cannot copy {other.name} into {self.name}",
            )
        self.data[:] = other.data

    # Bump and odd images are 8x8 pixel grids stored column by column.
    def _pixel_offset(self, x: int, y: int) -> int:
        if self.kind == ChunkKind.CAMERA_POS:
            raise ContractError(
                E_FIELD_RANGE, f"{self.name} has no pixel grid"
            )
        if not (0 <= x < IMAGE_DIMENSION and 0 <= y < IMAGE_DIMENSION):
            raise ContractError(
                E_FIELD_RANGE, f"Pixel ({x},{y}) outside {self.name}"
            )
        return IMAGE_DIMENSION * x + y

    def pixel(self, x: int, y: int) -> int:
        return self.data[self._pixel_offset(x, y)]

    def set_pixel(self, x: int, y: int, value: int) -> None:
        if not 0 <= value <= 0xFF:
            raise ContractError(
                E_FIELD_RANGE, f"Pixel value out of byte range: {value}"
            )
        self.data[self._pixel_offset(x, y)] = value


@dataclass(slots=True)
class ResourceArena:
    kind: ChunkKind
    entries: List[ResourceChunk] = field(default_factory=list)

    @property
    def name(self) -> str:
        return _ARENA_NAMES[self.kind]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[ResourceChunk]:
        return iter(self.entries)

    def get(self, index: int) -> Optional[ResourceChunk]:
        if 0 <= index < len(self.entries):
            return self.entries[index]
        return None

    def payloads(self) -> List[bytes]:
        return [bytes(e.data) for e in self.entries]

    def append_blank(self) -> ResourceChunk:
        if len(self.entries) > MAX_RESOURCE_INDEX:
            raise ContractError(
                E_COUNT,
                f"{self.name} already holds {len(self.entries)} entries",
            )
        entry = ResourceChunk(
            self.kind, len(self.entries), bytearray(RESOURCE_SIZES[self.kind])
        )
        self.entries.append(entry)
        return entry

    @classmethod
    def from_payloads(cls, kind: ChunkKind, payloads) -> "ResourceArena":
        return cls(
            kind,
            [ResourceChunk(kind, i, bytearray(p)) for i, p in enumerate(payloads)],
        )


def read_resource(kind: ChunkKind, index: int, cur: ByteCursor) -> ResourceChunk:
    size = RESOURCE_SIZES[kind]
    data = cur.read_bytes(size, _KIND_LABELS[kind])
    return ResourceChunk(kind, index, bytearray(data))


def write_resource(res: ResourceChunk, sink: ByteSink) -> None:
    sink.write_bytes(res.data)


def check_arena_count(kind: ChunkKind, count: int, offset: int) -> None:
    if count > MAX_RESOURCE_INDEX + 1:
        raise format_error(
            E_COUNT,
            f"Too many {_KIND_LABELS[kind]} entries: {count}",
            offset,
            value=count,
        )
