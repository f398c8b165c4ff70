"""Tree edits on flats and their shared resources.

Clone a flat, edit textures and metadata bytes, paint a bump pixel and
place respawn points.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from ..codec.constants import (
    IMAGE_DIMENSION,
    MAX_RESOURCE_INDEX,
    NO_RESPAWN_VALUES,
    RESOURCE_META_SLOTS,
    RESPAWN_DIRECTIONS,
    TWO_DEFAULT,
    TWO_NO_RESPAWN,
    ChunkKind,
    MetaEntry,
)
from ..codec.errors import (
    E_DANGLING_REF,
    E_EXTENSION,
    E_FIELD_RANGE,
    E_NO_FREE_SLOT,
    E_ROUNDTRIP,
    ConsistencyError,
    EditError,
    internal_error,
)
from ..codec.flat import FlatChunk, decode_flat, encode_flat
from ..codec.level import LevelChunk
from ..logging import get_logger
from .reindex import cell_reference
from .respawn import RespawnPlacement

__all__ = [
    "clone_flat",
    "set_cell_texture",
    "set_cell_meta",
    "fill_cell_meta",
    "set_bump_pixel",
    "set_respawn",
    "next_flat_id",
]

_INT16_MIN = -0x8000
_INT16_MAX = 0x7FFF
_SECTION_HEADER_SIZE = 4  # int16 kind + int16 count
_BUMP_SLOT = int(RESOURCE_META_SLOTS[ChunkKind.BUMP_IMAGE])


def next_flat_id(level: LevelChunk) -> int:
    return 1 + max([0] + [f.declared_id for f in level.flats])


def _clone_name(level: LevelChunk, new_id: int) -> str:
    taken = {f.declared_name for f in level.flats}
    for n in range(1, 10):
        candidate = f"NewFlat{n}"
        if candidate not in taken:
            return candidate
    return f"NF{new_id:06d}"


def clone_flat(level: LevelChunk, flat: FlatChunk) -> FlatChunk:
    """Append a deep copy of ``flat`` with a fresh id and generated name.

    The copy is made by encoding and decoding; the second encoding must
    equal the first. The clone's encoded size is charged to the level's
    capacity once, which may leave the level unsaveable until space is
    reclaimed.
    """
    first = encode_flat(flat)
    clone = decode_flat(first)
    if encode_flat(clone) != first:
        raise ConsistencyError(
            code=E_ROUNDTRIP,
            message=f"Flat {flat.name} does not survive an encode/decode cycle",
            context={"flat": flat.declared_id},
        )

    new_id = next_flat_id(level)
    if new_id > _INT16_MAX:
        raise EditError(
            code=E_FIELD_RANGE,
            message=f"No flat id left above {new_id - 1}",
        )
    clone.declared_id = new_id
    clone.declared_name = _clone_name(level, new_id)

    delta = len(encode_flat(clone))
    if ChunkKind.FLAT not in level.section_order:
        level.section_order.insert(0, ChunkKind.FLAT)
        delta += _SECTION_HEADER_SIZE
    level.flats.append(clone)
    level.capacity.register_delta(delta, reason=f"clone of {flat.name}")
    get_logger().info("Cloned %s as %s (%d bytes)", flat.name, clone.name, delta)
    return clone


def _check_xy(flat: FlatChunk, x: int, y: int) -> None:
    if not (0 <= x < flat.width and 0 <= y < flat.height):
        raise EditError(
            code=E_FIELD_RANGE,
            message=(
                f"Cell ({x},{y}) outside {flat.name} "
                f"({flat.width}x{flat.height})"
            ),
        )


def _require_meta(flat: FlatChunk) -> List[List[bytearray]]:
    if flat.extension is None:
        raise EditError(
            code=E_EXTENSION,
            message=f"Flat {flat.name} has no metadata grid (flag A unset)",
        )
    return flat.extension.tex_meta


def _check_cell(flat: FlatChunk, x: int, y: int) -> bytearray:
    tex_meta = _require_meta(flat)
    _check_xy(flat, x, y)
    return tex_meta[x][y]


def _check_byte(value: int, label: str) -> None:
    if not 0 <= value <= 0xFF:
        raise EditError(
            code=E_FIELD_RANGE, message=f"{label} out of range: {value}"
        )


def _check_pixel(px: int, py: int, label: str) -> None:
    if not (0 <= px < IMAGE_DIMENSION and 0 <= py < IMAGE_DIMENSION):
        raise EditError(
            code=E_FIELD_RANGE, message=f"{label} ({px},{py}) out of range"
        )


def _check_entry(entry: MetaEntry | int) -> int:
    slot = int(entry)
    if not 0 <= slot < len(MetaEntry):
        raise EditError(
            code=E_FIELD_RANGE, message=f"Metadata entry out of range: {entry}"
        )
    return slot


def set_cell_texture(
    flat: FlatChunk,
    x: int,
    y: int,
    texture_id: int,
    terrain_height: Optional[int] = None,
) -> Tuple[int, int]:
    """Set the texture (and optionally the terrain height) of one square.

    Works on plain and solid flats alike; the size of the flat does not
    change. Returns the previous ``(texture_id, terrain_height)``.
    """
    _check_xy(flat, x, y)
    checks = (("Texture id", texture_id), ("Terrain height", terrain_height))
    for label, value in checks:
        if value is not None and not _INT16_MIN <= value <= _INT16_MAX:
            raise EditError(
                code=E_FIELD_RANGE, message=f"{label} out of range: {value}"
            )
    old = (flat.texture_ids[x][y], flat.terrain_heights[x][y])
    flat.texture_ids[x][y] = texture_id
    if terrain_height is not None:
        flat.terrain_heights[x][y] = terrain_height
    return old


def set_cell_meta(
    flat: FlatChunk, x: int, y: int, entry: MetaEntry | int, value: int
) -> int:
    """Write one metadata byte; returns the previous value."""
    cell = _check_cell(flat, x, y)
    slot = _check_entry(entry)
    _check_byte(value, "Metadata value")
    old = cell[slot]
    cell[slot] = value
    return old


def fill_cell_meta(flat: FlatChunk, entry: MetaEntry | int, value: int) -> int:
    """Write one metadata byte in every cell; returns how many changed."""
    tex_meta = _require_meta(flat)
    slot = _check_entry(entry)
    _check_byte(value, "Metadata value")
    changed = 0
    for column in tex_meta:
        for cell in column:
            if cell[slot] != value:
                cell[slot] = value
                changed += 1
    get_logger().debug(
        "filled entry %d of %s with %d (%d cells changed)",
        slot,
        flat.name,
        value,
        changed,
    )
    return changed


def _usage(level: LevelChunk, kind: ChunkKind) -> List[int]:
    usage = [0] * len(level.arena(kind))
    for flat in level.flats:
        for _x, _y, cell in flat.meta_cells():
            ref = cell_reference(kind, cell, len(usage))
            if ref is not None and ref < len(usage):
                usage[ref] += 1
    return usage


def set_bump_pixel(
    level: LevelChunk,
    flat: FlatChunk,
    x: int,
    y: int,
    px: int,
    py: int,
    value: int,
) -> int:
    """Paint pixel ``(px, py)`` of the bump image under cell ``(x, y)``.

    A bump referenced only by this cell is edited in place. A shared one is
    copied into the first unused slot above 0 and the cell is repointed, so
    other cells keep their image. Returns the bump index that was changed.
    """
    cell = _check_cell(flat, x, y)
    _check_pixel(px, py, "Bump pixel")
    _check_byte(value, "Bump pixel value")
    index = cell[_BUMP_SLOT]
    if index >= len(level.bumps):
        raise EditError(
            code=E_DANGLING_REF,
            message=(
                f"Cell ({x},{y}) of {flat.name} references bump #{index}, "
                "which does not exist; edit the index first"
            ),
            context={"ref": index, "bumps": len(level.bumps)},
        )
    usage = _usage(level, ChunkKind.BUMP_IMAGE)
    bump = level.bumps.entries[index]

    if usage[index] == 0:
        raise internal_error(
            f"{bump.name} is referenced by ({x},{y}) but counted unused",
            {"flat": flat.declared_id},
        )
    if usage[index] == 1:
        bump.set_pixel(px, py, value)
        return index

    free = next((i for i in range(1, len(usage)) if usage[i] == 0), None)
    if free is None:
        raise EditError(
            code=E_NO_FREE_SLOT,
            message=(
                f"{bump.name} is shared and every other bump slot is in use; "
                "run a bump reindex to free slots"
            ),
            context={"ref": index},
        )
    target = level.bumps.entries[free]
    target.copy_from(bump)
    target.set_pixel(px, py, value)
    cell[_BUMP_SLOT] = free
    get_logger().debug(
        "copy-on-write %s -> %s for %s (%d,%d)",
        bump.name,
        target.name,
        flat.name,
        x,
        y,
    )
    return free


def _free_odd(level: LevelChunk, direction: int) -> int:
    """Index of an odd image filled with ``direction``, reusing a spare one."""
    usage = _usage(level, ChunkKind.ODD_IMAGE)
    free = next((i for i in range(1, len(usage)) if usage[i] == 0), None)
    if free is not None:
        odd = level.odds.entries[free]
    elif len(level.odds) > MAX_RESOURCE_INDEX:
        raise EditError(
            code=E_NO_FREE_SLOT,
            message="Every odd image slot is in use; run an odd reindex",
        )
    else:
        odd = level.odds.append_blank()
        delta = len(odd.data)
        if ChunkKind.ODD_IMAGE not in level.section_order:
            level.section_order.append(ChunkKind.ODD_IMAGE)
            delta += _SECTION_HEADER_SIZE
        level.capacity.register_delta(delta, reason=f"new {odd.name}")
    odd.data[:] = bytes([direction]) * len(odd.data)
    return odd.index


def set_respawn(
    level: LevelChunk,
    flat: FlatChunk,
    x: int,
    y: int,
    px: int = 0,
    py: int = 0,
    direction: Optional[int] = None,
) -> Optional[int]:
    """Place a respawn point at pixel ``(px, py)`` of cell ``(x, y)``.

    ``direction`` counts sixteenths of a turn from north; None forbids
    respawning on the square instead. An odd image already holding the
    heading at some tile orientation is reused, otherwise a spare one is
    filled, otherwise one is appended (which costs capacity). Returns the
    odd image index, or None when respawning was switched off.
    """
    cell = _check_cell(flat, x, y)
    if direction is None:
        cell[MetaEntry.TWO] = TWO_NO_RESPAWN
        return None
    _check_pixel(px, py, "Respawn position")
    if not 0 <= direction < RESPAWN_DIRECTIONS:
        raise EditError(
            code=E_FIELD_RANGE,
            message=f"Respawn direction out of range: {direction}",
        )
    if cell[MetaEntry.WAYPOINT] == 0:
        raise EditError(
            code=E_FIELD_RANGE,
            message=(
                f"Cell ({x},{y}) of {flat.name} has no waypoint; "
                "set one before placing a respawn"
            ),
        )

    placement = RespawnPlacement(px, py, direction)
    odd_index = next(
        (i for i, odd in enumerate(level.odds) if placement.matches(odd)), None
    )
    if odd_index is None:
        odd_index = _free_odd(level, placement.direction)

    if cell[MetaEntry.TWO] in NO_RESPAWN_VALUES:
        cell[MetaEntry.TWO] = TWO_DEFAULT
    cell[MetaEntry.FOUR] = placement.four_value
    cell[MetaEntry.ZERO] = odd_index
    cell[MetaEntry.SEVEN] = placement.seven_value()
    get_logger().debug(
        "respawn on %s (%d,%d): odd #%d four=%d seven=%d",
        flat.name,
        x,
        y,
        odd_index,
        cell[MetaEntry.FOUR],
        cell[MetaEntry.SEVEN],
    )
    return odd_index
