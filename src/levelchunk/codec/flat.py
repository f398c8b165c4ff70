"""FlatChunk record codec.

A Flat is a drivable sheet of tex squares. Layout (little-endian int16
unless noted)::

    id, name (8 ASCII chars + NUL), origin (8), rotation (8),
    width, height, scale_x, scale_y,
    width*height x (texture_id, terrain_height)   -- x outer, y inner
    flag A, B, C, D (int16), flag E (int8); nonzero means set
    trailer: 2 bytes when A is set, else 6
    only when A is set:
        width*height x 8 metadata bytes            -- same order as tex grid
        object_count, object_count x ObjectEntry (22 bytes)
        weapon_count, weapon_count x WeaponEntry (12 bytes)

Flag E being a single byte while A-D are shorts is how observed files are
laid out; it is kept exactly as found on both read and write.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..logging import get_logger
from .constants import (
    FLAT_NAME_LENGTH,
    META_CELL_SIZE,
    TRAILER_SIZE_PLAIN,
    TRAILER_SIZE_SOLID,
    ChunkKind,
    MetaEntry,
    WeaponType,
)
from .errors import (
    E_EXTENSION,
    E_FIELD_RANGE,
    E_NAME_LENGTH,
    E_WEAPON_TYPE,
    ContractError,
    format_error,
)
from .primitives import ByteCursor, ByteSink, Short3Coord

__all__ = [
    "ObjectEntry",
    "WeaponEntry",
    "FlatFlags",
    "FlatExtension",
    "FlatChunk",
    "read_flat",
    "write_flat",
    "encode_flat",
    "decode_flat",
    "trailer_size",
]


@dataclass(slots=True)
class ObjectEntry:
    rotation: Short3Coord = field(default_factory=Short3Coord)
    origin: Short3Coord = field(default_factory=Short3Coord)
    objt_type: int = 0
    flag_unknown: int = 0
    is_solid: int = 0
    short_unknown: int = 0

    @classmethod
    def read(cls, cur: ByteCursor) -> "ObjectEntry":
        return cls(
            rotation=Short3Coord.read(cur, "object rotation"),
            origin=Short3Coord.read(cur, "object origin"),
            objt_type=cur.read_i16("object type"),
            flag_unknown=cur.read_i8("object flag"),
            is_solid=cur.read_i8("object solid flag"),
            short_unknown=cur.read_i16("object unknown"),
        )

    def write(self, sink: ByteSink) -> None:
        self.rotation.write(sink, "object rotation")
        self.origin.write(sink, "object origin")
        sink.write_i16(self.objt_type, "object type")
        sink.write_i8(self.flag_unknown, "object flag")
        sink.write_i8(self.is_solid, "object solid flag")
        sink.write_i16(self.short_unknown, "object unknown")


@dataclass(slots=True)
class WeaponEntry:
    weapon_type: WeaponType = WeaponType.GRABBER
    short_unknown: int = 0
    position: Short3Coord = field(default_factory=Short3Coord)

    @classmethod
    def read(cls, cur: ByteCursor) -> "WeaponEntry":
        start = cur.offset
        raw = cur.read_i16("weapon type")
        try:
            weapon_type = WeaponType(raw)
        except ValueError as e:
            raise format_error(
                E_WEAPON_TYPE,
                f"Unrecognised weapon type: {raw}",
                start,
                value=raw,
            ) from e
        return cls(
            weapon_type=weapon_type,
            short_unknown=cur.read_i16("weapon unknown"),
            position=Short3Coord.read(cur, "weapon position"),
        )

    def write(self, sink: ByteSink) -> None:
        sink.write_i16(int(self.weapon_type), "weapon type")
        sink.write_i16(self.short_unknown, "weapon unknown")
        self.position.write(sink, "weapon position")


@dataclass(slots=True)
class FlatFlags:
    """Raw flag values; any nonzero value counts as set and is kept as found."""

    a: int = 0  # solid; carries the metadata/object/weapon block
    b: int = 0
    c: int = 0
    d: int = 0  # visibility, sometimes ignored
    e: int = 0  # set on many ramps; stored as a single byte

    @property
    def solid(self) -> bool:
        return self.a != 0


@dataclass(slots=True)
class FlatExtension:
    """Block present only on Flats with flag A set."""

    tex_meta: List[List[bytearray]] = field(default_factory=list)
    objects: List[ObjectEntry] = field(default_factory=list)
    weapons: List[WeaponEntry] = field(default_factory=list)

    @classmethod
    def blank(cls, width: int, height: int) -> "FlatExtension":
        return cls(
            tex_meta=[
                [bytearray(META_CELL_SIZE) for _ in range(height)]
                for _ in range(width)
            ]
        )


@dataclass(slots=True)
class FlatChunk:
    declared_id: int
    declared_name: str
    origin: Short3Coord = field(default_factory=Short3Coord)
    rotation: Short3Coord = field(default_factory=Short3Coord)
    width: int = 0
    height: int = 0
    scale_x: int = 0
    scale_y: int = 0
    texture_ids: List[List[int]] = field(default_factory=list)
    terrain_heights: List[List[int]] = field(default_factory=list)
    flags: FlatFlags = field(default_factory=FlatFlags)
    trailer: bytes = b"\x00" * TRAILER_SIZE_PLAIN
    extension: Optional[FlatExtension] = None

    kind = ChunkKind.FLAT

    @property
    def name(self) -> str:
        return f"[{self.declared_id}] {self.declared_name}"

    @property
    def tex_meta(self) -> Optional[List[List[bytearray]]]:
        return self.extension.tex_meta if self.extension else None

    @property
    def objects(self) -> Optional[List[ObjectEntry]]:
        return self.extension.objects if self.extension else None

    @property
    def weapons(self) -> Optional[List[WeaponEntry]]:
        return self.extension.weapons if self.extension else None

    def meta_cells(self):
        """Yield ``(x, y, cell)`` for every metadata cell (none without A)."""
        if self.extension is None:
            return
        for x, column in enumerate(self.extension.tex_meta):
            for y, cell in enumerate(column):
                yield x, y, cell

    def meta_value(self, x: int, y: int, entry: MetaEntry) -> int:
        if self.extension is None:
            raise ContractError(
                E_EXTENSION, f"Flat {self.name} has no metadata grid"
            )
        return self.extension.tex_meta[x][y][int(entry)]


def trailer_size(flag_a: int) -> int:
    return TRAILER_SIZE_SOLID if flag_a else TRAILER_SIZE_PLAIN


def read_flat(cur: ByteCursor) -> FlatChunk:
    start = cur.offset
    declared_id = cur.read_i16("flat id")
    name_offset = cur.offset
    declared_name = cur.read_ascii_cstring("flat name")
    if len(declared_name) != FLAT_NAME_LENGTH:
        raise format_error(
            E_NAME_LENGTH,
            f"Expecting name to be length {FLAT_NAME_LENGTH} & null-terminated",
            cur.offset,
            name=declared_name,
            name_offset=name_offset,
        )

    origin = Short3Coord.read(cur, "flat origin")
    rotation = Short3Coord.read(cur, "flat rotation")
    width = cur.read_i16("flat width")
    height = cur.read_i16("flat height")
    scale_x = cur.read_i16("flat scale_x")
    scale_y = cur.read_i16("flat scale_y")
    if width < 0 or height < 0:
        raise format_error(
            E_FIELD_RANGE,
            f"Negative flat dimensions: {width}x{height}",
            cur.offset,
        )

    texture_ids: List[List[int]] = []
    terrain_heights: List[List[int]] = []
    for _x in range(width):
        tex_column: List[int] = []
        height_column: List[int] = []
        for _y in range(height):
            tex_column.append(cur.read_i16("texture id"))
            height_column.append(cur.read_i16("terrain height"))
        texture_ids.append(tex_column)
        terrain_heights.append(height_column)

    flags = FlatFlags(
        a=cur.read_i16("flag A"),
        b=cur.read_i16("flag B"),
        c=cur.read_i16("flag C"),
        d=cur.read_i16("flag D"),
        e=cur.read_i8("flag E"),
    )
    trailer = cur.read_bytes(trailer_size(flags.a), "flat trailer")

    extension: Optional[FlatExtension] = None
    if flags.a:
        tex_meta = [
            [
                bytearray(cur.read_bytes(META_CELL_SIZE, "tex metadata"))
                for _y in range(height)
            ]
            for _x in range(width)
        ]
        objects = [
            ObjectEntry.read(cur)
            for _ in range(cur.read_count("object count"))
        ]
        weapons = [
            WeaponEntry.read(cur)
            for _ in range(cur.read_count("weapon count"))
        ]
        extension = FlatExtension(tex_meta, objects, weapons)

    flat = FlatChunk(
        declared_id=declared_id,
        declared_name=declared_name,
        origin=origin,
        rotation=rotation,
        width=width,
        height=height,
        scale_x=scale_x,
        scale_y=scale_y,
        texture_ids=texture_ids,
        terrain_heights=terrain_heights,
        flags=flags,
        trailer=trailer,
        extension=extension,
    )
    get_logger().debug(
        "decoded flat %s at %d (%d bytes, %dx%d, solid=%s)",
        flat.name,
        start,
        cur.offset - start,
        width,
        height,
        flags.solid,
    )
    return flat


def _check_grid(flat: FlatChunk, grid, label: str, cell_len: int | None = None):
    if len(grid) != flat.width or any(len(col) != flat.height for col in grid):
        raise ContractError(
            E_FIELD_RANGE,
            f"{label} of {flat.name} does not match {flat.width}x{flat.height}",
        )
    if cell_len is not None:
        for column in grid:
            for cell in column:
                if len(cell) != cell_len:
                    raise ContractError(
                        E_FIELD_RANGE,
                        f"{label} cell of {flat.name} must be {cell_len} bytes",
                    )


def write_flat(flat: FlatChunk, sink: ByteSink) -> None:
    if flat.flags.a and flat.extension is None:
        raise ContractError(
            E_EXTENSION,
            f"Flat {flat.name} has flag A set but no metadata/object/weapon block",
        )
    if not flat.flags.a and flat.extension is not None:
        raise ContractError(
            E_EXTENSION,
            f"Flat {flat.name} has flag A unset but carries a metadata block",
        )
    if len(flat.declared_name) != FLAT_NAME_LENGTH:
        raise ContractError(
            E_NAME_LENGTH,
            f"Flat name must be {FLAT_NAME_LENGTH} characters: "
            f"{flat.declared_name!r}",
        )
    expected_trailer = trailer_size(flat.flags.a)
    if len(flat.trailer) != expected_trailer:
        raise ContractError(
            E_FIELD_RANGE,
            f"Flat {flat.name} trailer must be {expected_trailer} bytes, "
            f"got {len(flat.trailer)}",
        )
    _check_grid(flat, flat.texture_ids, "texture_ids")
    _check_grid(flat, flat.terrain_heights, "terrain_heights")

    sink.write_i16(flat.declared_id, "flat id")
    sink.write_ascii_cstring(flat.declared_name, "flat name")
    flat.origin.write(sink, "flat origin")
    flat.rotation.write(sink, "flat rotation")
    sink.write_i16(flat.width, "flat width")
    sink.write_i16(flat.height, "flat height")
    sink.write_i16(flat.scale_x, "flat scale_x")
    sink.write_i16(flat.scale_y, "flat scale_y")

    for x in range(flat.width):
        for y in range(flat.height):
            sink.write_i16(flat.texture_ids[x][y], "texture id")
            sink.write_i16(flat.terrain_heights[x][y], "terrain height")

    sink.write_i16(flat.flags.a, "flag A")
    sink.write_i16(flat.flags.b, "flag B")
    sink.write_i16(flat.flags.c, "flag C")
    sink.write_i16(flat.flags.d, "flag D")
    sink.write_i8(flat.flags.e, "flag E")  # byte, see module docstring
    sink.write_bytes(flat.trailer)

    if flat.extension is None:
        return
    ext = flat.extension
    _check_grid(flat, ext.tex_meta, "tex_meta", META_CELL_SIZE)
    for x in range(flat.width):
        for y in range(flat.height):
            sink.write_bytes(ext.tex_meta[x][y])
    sink.write_i16(len(ext.objects), "object count")
    for obj in ext.objects:
        obj.write(sink)
    sink.write_i16(len(ext.weapons), "weapon count")
    for weapon in ext.weapons:
        weapon.write(sink)


def encode_flat(flat: FlatChunk) -> bytes:
    sink = ByteSink()
    write_flat(flat, sink)
    return sink.getvalue()


def decode_flat(data: bytes) -> FlatChunk:
    cur = ByteCursor(data)
    return read_flat(cur)
