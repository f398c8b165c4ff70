"""Respawn marker derived from a metadata cell.

The encoding is only partly understood. This reproduces what the level
editor displays: the waypoint byte gates the marker, a few values of the
"Two" byte mean respawning is forbidden, and otherwise the "Seven" byte
packs a position inside the tile whose odd-image pixel, combined with the
"Four" byte, gives a heading. Treat the result as approximate.

Placing a respawn goes the other way: the point and heading are tried at
each of the four tile orientations against the existing odd images, and
the orientation that matches is stored in "Four" (4 stands for north).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..codec.constants import (
    ANGLE_UNITS_PER_QUARTER_TURN,
    IMAGE_DIMENSION,
    NO_RESPAWN_VALUES,
    RESPAWN_DIRECTIONS,
    MetaEntry,
)
from ..codec.resources import ResourceArena, ResourceChunk

__all__ = [
    "NORTH",
    "EAST",
    "SOUTH",
    "WEST",
    "RespawnMarker",
    "RespawnPlacement",
    "respawn_encoded",
    "respawn_marker",
]

NORTH, EAST, SOUTH, WEST = range(4)

# "Four" value for a north-facing placement; 0 would reverse the heading.
_FOUR_NORTH = 4


@dataclass(frozen=True, slots=True)
class RespawnMarker:
    allowed: bool
    position: Optional[Tuple[int, int]] = None
    odd_value: Optional[int] = None
    direction: Optional[int] = None  # 1024 units per quarter turn


def respawn_encoded(cell) -> bool:
    """Whether byte 0 of ``cell`` names an odd image."""
    return (
        cell[MetaEntry.WAYPOINT] != 0
        and cell[MetaEntry.TWO] not in NO_RESPAWN_VALUES
    )


def respawn_marker(cell, odds: ResourceArena) -> Optional[RespawnMarker]:
    if cell[MetaEntry.WAYPOINT] == 0:
        return None
    if not respawn_encoded(cell):
        return RespawnMarker(allowed=False)

    seven = cell[MetaEntry.SEVEN]
    rx, ry = seven // 16, seven % 16
    odd = odds.get(cell[MetaEntry.ZERO])
    offset = 8 * rx + ry
    if odd is None or offset >= len(odd.data):
        # Odd image missing or position outside it: no heading.
        return RespawnMarker(allowed=True, position=(rx, ry))

    odd_value = odd.data[offset]
    four = cell[MetaEntry.FOUR]
    if four == 0:
        direction = odd_value * 256
    else:
        direction = four * ANGLE_UNITS_PER_QUARTER_TURN - odd_value * 256
    return RespawnMarker(
        allowed=True, position=(rx, ry), odd_value=odd_value, direction=direction
    )


@dataclass(slots=True)
class RespawnPlacement:
    """A point inside a tile with a heading, seen at one tile orientation."""

    x: int
    y: int
    direction: int
    orientation: int = NORTH

    def rotate_to(self, orientation: int) -> None:
        steps = (orientation - self.orientation) % 4
        top = IMAGE_DIMENSION - 1
        x, y = self.x, self.y
        if steps == 1:
            self.x, self.y = top - y, x
        elif steps == 2:
            self.x, self.y = top - x, top - y
        elif steps == 3:
            self.x, self.y = y, top - x
        self.direction = (self.direction + 4 * steps) % RESPAWN_DIRECTIONS
        self.orientation = orientation

    def matches(self, odd: ResourceChunk) -> bool:
        """Try every orientation; stays rotated to the first that matches."""
        start = self.orientation
        for orientation in (NORTH, EAST, SOUTH, WEST):
            self.rotate_to(orientation)
            # odd images are indexed with y flipped
            if odd.pixel(self.x, IMAGE_DIMENSION - 1 - self.y) == self.direction:
                return True
        self.rotate_to(start)
        return False

    @property
    def four_value(self) -> int:
        return _FOUR_NORTH if self.orientation == NORTH else self.orientation

    def seven_value(self) -> int:
        """Position byte, always taken at the north orientation."""
        self.rotate_to(NORTH)
        return self.x * 16 + self.y
