import pytest

from levelchunk.codec.errors import CapacityError
from levelchunk.codec.flat import encode_flat
from levelchunk.codec.level import decode_level, encode_level
from levelchunk.editing.actions import clone_flat, next_flat_id

from level_factory import PLAIN_FLAT_1X1_SIZE, flat_bytes, level_bytes, solid_flat


def _level(padding: int):
    data = level_bytes(
        flats=[
            flat_bytes(flat_id=3),
            flat_bytes(flat_id=7, name="SEVENSEV"),
            flat_bytes(flat_id=5),
        ],
        padding=padding,
    )
    return data, decode_level(data)


def test_clone_gets_next_id_and_generated_name():
    data, level = _level(padding=200)
    source = level.find_flat(7)
    clone = clone_flat(level, source)
    assert clone.declared_id == 8
    assert clone.declared_name == "NewFlat1"
    assert level.flats[-1] is clone
    assert clone is not source
    assert clone.texture_ids == source.texture_ids
    assert clone.texture_ids is not source.texture_ids


def test_clone_charges_capacity_once():
    data, level = _level(padding=200)
    seen = []
    level.capacity.on_exceeded = seen.append
    clone_flat(level, level.find_flat(7))
    assert level.capacity.trailing_zero_bytes == 200 - PLAIN_FLAT_1X1_SIZE
    assert seen == []
    out = encode_level(level)
    assert len(out) == len(data)


def test_clone_over_capacity_blocks_save():
    _, level = _level(padding=10)
    seen = []
    level.capacity.on_exceeded = seen.append
    clone_flat(level, level.find_flat(7))
    assert seen == [PLAIN_FLAT_1X1_SIZE - 10]
    with pytest.raises(CapacityError):
        encode_level(level)


def test_clone_of_solid_flat_is_independent():
    data = level_bytes(flats=[solid_flat(1, 1, 2, [0, 0])], padding=500)
    level = decode_level(data)
    clone = clone_flat(level, level.flats[0])
    clone.extension.tex_meta[0][0][6] = 9
    assert level.flats[0].extension.tex_meta[0][0][6] == 0
    assert len(encode_flat(clone)) == len(encode_flat(level.flats[0]))


def test_second_clone_gets_fresh_name():
    _, level = _level(padding=500)
    first = clone_flat(level, level.flats[0])
    second = clone_flat(level, level.flats[0])
    assert (first.declared_name, second.declared_name) == (
        "NewFlat1",
        "NewFlat2",
    )
    assert next_flat_id(level) == 10
