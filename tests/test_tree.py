import pytest

from levelchunk.codec.constants import ChunkKind
from levelchunk.codec.errors import ContractError, EditError
from levelchunk.codec.flat import decode_flat
from levelchunk.codec.level import decode_level
from levelchunk.codec.resources import ResourceChunk
from levelchunk.codec.tree import (
    child_at,
    children,
    chunk_name,
    replace_child,
    walk,
)

from level_factory import flat_bytes, image, level_bytes


def _level():
    return decode_level(
        level_bytes(
            flats=[flat_bytes(flat_id=3), flat_bytes(flat_id=4)],
            bumps=[image(1), image(2)],
            cameras=[bytes(8)],
        )
    )


def test_children_and_names():
    level = _level()
    names = [chunk_name(c) for c in children(level)]
    assert names == [
        "[3] FLATNAME",
        "[4] FLATNAME",
        "bump images",
        "odd images",
        "camera positions",
    ]
    assert chunk_name(child_at(level.bumps, 1)) == "bump #1"
    assert children(level.flats[0]) == []


def test_walk_visits_every_chunk():
    level = _level()
    visited = list(walk(level))
    assert visited[0] == (0, level)
    # level + 2 flats + 3 arenas + 2 bumps + 1 camera
    assert len(visited) == 9
    assert max(depth for depth, _ in visited) == 2


def test_child_at_out_of_range():
    with pytest.raises(EditError):
        child_at(_level().odds, 0)


def test_replace_flat():
    level = _level()
    new = decode_flat(flat_bytes(flat_id=9))
    replace_child(level, level.flats[1], new)
    assert level.flats[1] is new


def test_replace_resource_keeps_index():
    level = _level()
    new = ResourceChunk(ChunkKind.BUMP_IMAGE, 0, bytearray(image(5)))
    replace_child(level.bumps, level.bumps.entries[1], new)
    assert level.get_bump(1) is new
    assert new.index == 1


def test_replace_with_other_kind_rejected():
    level = _level()
    camera = ResourceChunk(ChunkKind.CAMERA_POS, 0, bytearray(8))
    with pytest.raises(ContractError):
        replace_child(level.bumps, level.bumps.entries[0], camera)
    with pytest.raises(ContractError):
        replace_child(level, level.flats[0], camera)


def test_replace_missing_child():
    level = _level()
    stranger = decode_flat(flat_bytes(flat_id=1))
    with pytest.raises(EditError):
        replace_child(level, stranger, decode_flat(flat_bytes(flat_id=2)))
