"""Binary layout constants for level files."""

from __future__ import annotations

from enum import IntEnum

LEVEL_MAGIC = b"SHET"

SHORT3_COORD_SIZE = 8
FLAT_NAME_LENGTH = 8  # characters, excluding the NUL terminator
META_CELL_SIZE = 8
OBJECT_ENTRY_SIZE = 22
WEAPON_ENTRY_SIZE = 12

# Opaque trailer after the flags; length keyed on flag A.
TRAILER_SIZE_SOLID = 2
TRAILER_SIZE_PLAIN = 6

IMAGE_DIMENSION = 8
BUMP_IMAGE_SIZE = IMAGE_DIMENSION * IMAGE_DIMENSION
ODD_IMAGE_SIZE = IMAGE_DIMENSION * IMAGE_DIMENSION
CAMERA_POS_SIZE = 8

# Resource indices are stored in single metadata bytes.
MAX_RESOURCE_INDEX = 255

# 1024 fixed-point units per quarter turn.
ANGLE_UNITS_PER_QUARTER_TURN = 1024

# Metadata "Two" values meaning no respawn is allowed on the square.
NO_RESPAWN_VALUES = frozenset({2, 5, 8, 12})
# "Two" values written when respawning is switched off or back on.
TWO_NO_RESPAWN = 2
TWO_DEFAULT = 0

# Respawn headings: sixteenths of a turn, 0 is north, counting west-about.
RESPAWN_DIRECTIONS = 16


class ChunkKind(IntEnum):
    """Discriminant written in front of each container section."""

    END = 0
    FLAT = 1
    BUMP_IMAGE = 2
    ODD_IMAGE = 3
    CAMERA_POS = 4


class MetaEntry(IntEnum):
    """Byte offsets within a tex square's 8-byte metadata cell."""

    ZERO = 0  # odd image index when respawn-encoded
    ONE = 1  # always zero in observed files
    TWO = 2  # corner state; NO_RESPAWN_VALUES disable respawn
    CAMERA_POS = 3
    FOUR = 4  # respawn orientation
    WAYPOINT = 5
    BUMPMAP = 6
    SEVEN = 7  # respawn offset within the square


class WeaponType(IntEnum):
    GRABBER = 1
    OMMER = 2
    MOLOTOVS = 3
    TURBO_BALL = 4
    FLAME_BALL = 5
    INVISIBILITY = 6
    MALLET = 7
    MOLOTOVS_2 = 8
    FIRE_TRAIL = 9
    MISSILES = 10
    MINES = 11
    GROUP_GRABBER = 12
    OMNI_OMMER = 13
    MULTI_MALLET = 14
    GROUP_SPEED_UP = 15


RESOURCE_SIZES = {
    ChunkKind.BUMP_IMAGE: BUMP_IMAGE_SIZE,
    ChunkKind.ODD_IMAGE: ODD_IMAGE_SIZE,
    ChunkKind.CAMERA_POS: CAMERA_POS_SIZE,
}

# Which metadata byte references which resource array.
RESOURCE_META_SLOTS = {
    ChunkKind.BUMP_IMAGE: MetaEntry.BUMPMAP,
    ChunkKind.ODD_IMAGE: MetaEntry.ZERO,
    ChunkKind.CAMERA_POS: MetaEntry.CAMERA_POS,
}

# Canonical section order on save.
SECTION_ORDER = (
    ChunkKind.FLAT,
    ChunkKind.BUMP_IMAGE,
    ChunkKind.ODD_IMAGE,
    ChunkKind.CAMERA_POS,
)
