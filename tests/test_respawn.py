from levelchunk.codec.constants import ChunkKind
from levelchunk.codec.resources import ResourceArena
from levelchunk.editing.respawn import (
    EAST,
    NORTH,
    SOUTH,
    WEST,
    RespawnPlacement,
    respawn_encoded,
    respawn_marker,
)

from level_factory import meta_cell


def _odds():
    data = bytearray(64)
    data[8 * 1 + 2] = 3
    return ResourceArena.from_payloads(ChunkKind.ODD_IMAGE, [bytes(64), data])


def test_no_waypoint_no_marker():
    assert respawn_marker(meta_cell(s7=0x12), _odds()) is None


def test_forbidden_respawn():
    for two in (2, 5, 8, 12):
        marker = respawn_marker(meta_cell(s5=1, s2=two), _odds())
        assert marker is not None and not marker.allowed


def test_direction_without_orientation():
    marker = respawn_marker(meta_cell(s5=1, s0=1, s7=0x12), _odds())
    assert marker.allowed
    assert marker.position == (1, 2)
    assert marker.odd_value == 3
    assert marker.direction == 3 * 256


def test_direction_with_orientation():
    marker = respawn_marker(meta_cell(s5=1, s0=1, s4=2, s7=0x12), _odds())
    assert marker.direction == 2 * 1024 - 3 * 256


def test_position_outside_odd_image_has_no_direction():
    marker = respawn_marker(meta_cell(s5=1, s0=1, s7=0x90), _odds())
    assert marker.allowed
    assert marker.position == (9, 0)
    assert marker.direction is None


def test_placement_rotates_point_and_heading():
    placement = RespawnPlacement(1, 2, 3)
    assert placement.four_value == 4
    placement.rotate_to(EAST)
    assert (placement.x, placement.y, placement.direction) == (5, 1, 7)
    assert placement.four_value == EAST
    placement.rotate_to(SOUTH)
    assert (placement.x, placement.y, placement.direction) == (6, 5, 11)
    placement.rotate_to(WEST)
    assert (placement.x, placement.y, placement.direction) == (2, 6, 15)
    assert placement.seven_value() == 1 * 16 + 2
    assert placement.orientation == NORTH
    assert placement.direction == 3


def test_placement_without_match_keeps_orientation():
    placement = RespawnPlacement(1, 2, 3)
    assert not placement.matches(_odds().entries[0])
    assert placement.orientation == NORTH
    assert (placement.x, placement.y) == (1, 2)


def test_encoded_needs_waypoint_and_allowed_two():
    assert not respawn_encoded(meta_cell(s0=1))
    assert not respawn_encoded(meta_cell(s5=1, s2=8))
    assert respawn_encoded(meta_cell(s5=1, s2=1))
