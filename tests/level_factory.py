"""Builders for raw flat and level byte streams used across tests.

Bytes are assembled with ``struct`` directly rather than through the codec so
that decoding is checked against an independent layout.
"""

from __future__ import annotations

import struct
from typing import Iterable, Sequence

SECTION_FLAT = 1
SECTION_BUMP = 2
SECTION_ODD = 3
SECTION_CAMERA = 4

BUMP_SLOT = 6
ODD_SLOT = 0
CAMERA_SLOT = 3


def coord(x: int = 0, y: int = 0, z: int = 0, pad: int = 0) -> bytes:
    return struct.pack("<hhhh", x, y, z, pad)


def meta_cell(**slots: int) -> bytes:
    """8 metadata bytes; keyword ``s0``..``s7`` sets individual slots."""
    cell = bytearray(8)
    for key, value in slots.items():
        cell[int(key[1:])] = value
    return bytes(cell)


def object_bytes(
    rotation=(0, 0, 0),
    origin=(0, 0, 0),
    objt_type: int = 3,
    flag: int = 0,
    solid: int = 1,
    unknown: int = 0,
) -> bytes:
    return (
        coord(*rotation)
        + coord(*origin)
        + struct.pack("<hbbh", objt_type, flag, solid, unknown)
    )


def weapon_bytes(weapon_type: int = 1, unknown: int = 0, pos=(0, 0, 0)) -> bytes:
    return struct.pack("<hh", weapon_type, unknown) + coord(*pos)


def flat_bytes(
    *,
    flat_id: int = 1,
    name: str = "FLATNAME",
    width: int = 1,
    height: int = 1,
    solid: int = 0,
    flags_bcd: Sequence[int] = (0, 0, 0),
    flag_e: int = 0,
    trailer: bytes | None = None,
    origin=(0, 0, 0),
    rotation=(0, 0, 0),
    scale=(1, 1),
    meta: Sequence[bytes] | None = None,
    objects: Iterable[bytes] = (),
    weapons: Iterable[bytes] = (),
) -> bytes:
    """One encoded FlatChunk. ``meta`` lists cells x-outer, y-inner."""
    out = bytearray()
    out += struct.pack("<h", flat_id)
    out += name.encode("ascii") + b"\x00"
    out += coord(*origin)
    out += coord(*rotation)
    out += struct.pack("<hhhh", width, height, *scale)
    for x in range(width):
        for y in range(height):
            out += struct.pack("<hh", 100 + x * height + y, x - y)
    out += struct.pack("<hhhh", int(solid), *flags_bcd)
    out += struct.pack("<b", flag_e)
    if trailer is None:
        trailer = bytes(range(1, 3)) if solid else bytes(range(1, 7))
    out += trailer
    if solid:
        cells = list(meta) if meta is not None else [bytes(8)] * (width * height)
        assert len(cells) == width * height
        for cell in cells:
            out += cell
        objects = list(objects)
        out += struct.pack("<h", len(objects))
        for obj in objects:
            out += obj
        weapons = list(weapons)
        out += struct.pack("<h", len(weapons))
        for weapon in weapons:
            out += weapon
    return bytes(out)


def solid_flat(
    flat_id: int, width: int, height: int, bump_refs: Sequence[int], **kw
) -> bytes:
    cells = [meta_cell(s6=ref) for ref in bump_refs]
    return flat_bytes(
        flat_id=flat_id, width=width, height=height, solid=True, meta=cells, **kw
    )


def image(fill: int) -> bytes:
    return bytes([fill]) * 64


def section(kind: int, records: Sequence[bytes]) -> bytes:
    return struct.pack("<hh", kind, len(records)) + b"".join(records)


def level_bytes(
    flats: Sequence[bytes] = (),
    bumps: Sequence[bytes] = (),
    odds: Sequence[bytes] = (),
    cameras: Sequence[bytes] = (),
    *,
    padding: int = 64,
    order: Sequence[int] = (
        SECTION_FLAT,
        SECTION_BUMP,
        SECTION_ODD,
        SECTION_CAMERA,
    ),
) -> bytes:
    records = {
        SECTION_FLAT: flats,
        SECTION_BUMP: bumps,
        SECTION_ODD: odds,
        SECTION_CAMERA: cameras,
    }
    body = b"SHET"
    for kind in order:
        body += section(kind, records[kind])
    body += struct.pack("<h", 0)
    return body + bytes(padding)


PLAIN_FLAT_1X1_SIZE = 54
