"""Single-writer edit session over one decoded level."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from ..codec.constants import ChunkKind, MetaEntry
from ..codec.errors import E_BUSY, E_NOT_FOUND, EditError
from ..codec.flat import FlatChunk
from ..codec.level import LevelChunk
from ..logging import get_logger
from .actions import (
    clone_flat,
    fill_cell_meta,
    set_bump_pixel,
    set_cell_meta,
    set_cell_texture,
    set_respawn,
)
from .reindex import ReindexResult, reindex_resources

__all__ = ["SessionOptions", "EditSession"]


@dataclass(slots=True)
class SessionOptions:
    verify_roundtrip: bool = True  # re-encode on load and compare bytes
    report_capacity: bool = True  # send capacity overruns to the reporter
    default_resource: ChunkKind = ChunkKind.BUMP_IMAGE


class EditSession:
    """Serialises edits on ``level``.

    Every mutating call runs inside :meth:`edit`. A second edit started
    while one is in progress, from the same thread or another, is refused
    with ``E_BUSY`` instead of interleaving.
    """

    def __init__(
        self, level: LevelChunk, options: SessionOptions | None = None
    ) -> None:
        self.level = level
        self.options = options or SessionOptions()
        self._lock = threading.Lock()
        if not self.options.report_capacity:
            level.capacity.on_exceeded = self._log_capacity

    @staticmethod
    def _log_capacity(deficit: int) -> None:
        get_logger().debug("capacity exceeded by %d bytes", deficit)

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @contextmanager
    def edit(self, label: str = "edit") -> Iterator[LevelChunk]:
        if not self._lock.acquire(blocking=False):
            raise EditError(
                code=E_BUSY,
                message=f"Cannot start '{label}': another edit is in progress",
            )
        try:
            yield self.level
        finally:
            self._lock.release()

    def flat(self, declared_id: int) -> FlatChunk:
        flat = self.level.find_flat(declared_id)
        if flat is None:
            raise EditError(
                code=E_NOT_FOUND,
                message=f"No flat with id {declared_id}",
                context={"flat": declared_id},
            )
        return flat

    def reindex(self, kind: ChunkKind | None = None) -> ReindexResult:
        kind = kind or self.options.default_resource
        with self.edit(f"reindex {kind.name.lower()}") as level:
            return reindex_resources(level, kind)

    def clone(self, declared_id: int) -> FlatChunk:
        with self.edit("clone") as level:
            return clone_flat(level, self.flat(declared_id))

    def set_meta(
        self,
        declared_id: int,
        x: int,
        y: int,
        entry: MetaEntry | int,
        value: int,
    ) -> int:
        with self.edit("set meta"):
            return set_cell_meta(self.flat(declared_id), x, y, entry, value)

    def set_bump_pixel(
        self, declared_id: int, x: int, y: int, px: int, py: int, value: int
    ) -> int:
        with self.edit("set bump pixel") as level:
            return set_bump_pixel(
                level, self.flat(declared_id), x, y, px, py, value
            )

    def set_texture(
        self,
        declared_id: int,
        x: int,
        y: int,
        texture_id: int,
        terrain_height: Optional[int] = None,
    ) -> Tuple[int, int]:
        with self.edit("set texture"):
            return set_cell_texture(
                self.flat(declared_id), x, y, texture_id, terrain_height
            )

    def fill_meta(
        self, declared_id: int, entry: MetaEntry | int, value: int
    ) -> int:
        with self.edit("fill meta"):
            return fill_cell_meta(self.flat(declared_id), entry, value)

    def set_respawn(
        self,
        declared_id: int,
        x: int,
        y: int,
        px: int = 0,
        py: int = 0,
        direction: Optional[int] = None,
    ) -> Optional[int]:
        with self.edit("set respawn") as level:
            return set_respawn(
                level, self.flat(declared_id), x, y, px, py, direction
            )
