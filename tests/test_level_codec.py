import struct

import pytest

from levelchunk.codec.constants import ChunkKind
from levelchunk.codec.errors import CapacityError, FormatError
from levelchunk.codec.level import decode_level, encode_level

from level_factory import (
    SECTION_BUMP,
    SECTION_FLAT,
    flat_bytes,
    image,
    level_bytes,
    solid_flat,
)


def _sample(padding: int = 32) -> bytes:
    return level_bytes(
        flats=[flat_bytes(flat_id=1), solid_flat(2, 2, 1, [0, 1])],
        bumps=[image(0), image(7)],
        odds=[image(3)],
        cameras=[bytes(range(8))],
        padding=padding,
    )


def test_level_round_trip():
    data = _sample()
    level = decode_level(data)
    assert len(level.flats) == 2
    assert len(level.bumps) == 2 and len(level.odds) == 1
    assert level.get_camera(0).data == bytes(range(8))
    assert level.get_bump(5) is None
    assert level.find_flat(2).flags.a
    assert level.capacity.trailing_zero_bytes == 32
    assert level.capacity.total_size == len(data)
    assert encode_level(level) == data


def test_section_order_preserved():
    data = level_bytes(
        flats=[flat_bytes()],
        bumps=[image(1)],
        order=(SECTION_BUMP, SECTION_FLAT),
    )
    level = decode_level(data)
    assert level.section_order == [ChunkKind.BUMP_IMAGE, ChunkKind.FLAT]
    assert encode_level(level) == data


def test_bad_magic():
    data = b"XXXX" + _sample()[4:]
    with pytest.raises(FormatError) as exc:
        decode_level(data)
    assert exc.value.code == "E_MAGIC"
    assert exc.value.offset == 0


def test_unknown_section_kind():
    data = b"SHET" + struct.pack("<hh", 9, 0) + struct.pack("<h", 0)
    with pytest.raises(FormatError) as exc:
        decode_level(data)
    assert exc.value.code == "E_CHUNK_KIND"
    assert exc.value.offset == 4


def test_duplicate_section():
    data = level_bytes(order=(SECTION_FLAT, SECTION_FLAT))
    with pytest.raises(FormatError) as exc:
        decode_level(data)
    assert exc.value.code == "E_DUP_SECTION"


def test_trailing_padding_must_be_zero():
    data = bytearray(_sample(padding=8))
    data[-3] = 1
    with pytest.raises(FormatError) as exc:
        decode_level(bytes(data))
    assert exc.value.code == "E_TRAILING_NONZERO"
    assert exc.value.offset == len(data) - 3


def test_missing_end_marker_is_truncation():
    data = _sample(padding=0)[:-2]
    with pytest.raises(FormatError) as exc:
        decode_level(data)
    assert exc.value.code == "E_TRUNCATED"


def test_save_blocked_while_over_capacity():
    level = decode_level(_sample(padding=4))
    level.capacity.register_delta(10)
    with pytest.raises(CapacityError) as exc:
        encode_level(level)
    assert exc.value.code == "E_CAPACITY"
    assert exc.value.context["deficit"] == 6
