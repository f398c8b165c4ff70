import struct

import pytest

from levelchunk.codec.errors import ContractError, FormatError
from levelchunk.codec.primitives import ByteCursor, ByteSink, Short3Coord


def test_cursor_reads_little_endian():
    cur = ByteCursor(struct.pack("<hb", -2, 7))
    assert cur.read_i16() == -2
    assert cur.read_i8() == 7
    assert cur.remaining() == 0


def test_short_read_reports_offset():
    cur = ByteCursor(b"\x01\x02\x03")
    cur.read_i16()
    with pytest.raises(FormatError) as exc:
        cur.read_i16("width")
    assert exc.value.code == "E_TRUNCATED"
    assert exc.value.offset == 2


def test_negative_count_rejected():
    cur = ByteCursor(struct.pack("<h", -1))
    with pytest.raises(FormatError) as exc:
        cur.read_count("object count")
    assert exc.value.code == "E_COUNT"


def test_coord_round_trip():
    raw = struct.pack("<hhhh", 1, -2, 3, 0)
    c = Short3Coord.read(ByteCursor(raw))
    assert c == Short3Coord(1, -2, 3)
    sink = ByteSink()
    c.write(sink)
    assert sink.getvalue() == raw


def test_coord_padding_violation_offset():
    raw = b"\xff" * 4 + struct.pack("<hhhh", 1, 2, 3, 5)
    cur = ByteCursor(raw, offset=4)
    with pytest.raises(FormatError) as exc:
        Short3Coord.read(cur)
    assert exc.value.code == "E_PADDING"
    assert exc.value.offset == 10


def test_coord_addition_wraps():
    total = Short3Coord(32767, 0, -32768) + Short3Coord(1, 5, -1)
    assert total == Short3Coord(-32768, 5, 32767)


def test_cstring_requires_terminator():
    with pytest.raises(FormatError) as exc:
        ByteCursor(b"ABC").read_ascii_cstring("name")
    assert exc.value.code == "E_TRUNCATED"


def test_cstring_round_trip():
    sink = ByteSink()
    sink.write_ascii_cstring("FLATNAME")
    assert sink.getvalue() == b"FLATNAME\x00"
    assert ByteCursor(sink.getvalue()).read_ascii_cstring() == "FLATNAME"


def test_sink_rejects_out_of_range_values():
    sink = ByteSink()
    with pytest.raises(ContractError):
        sink.write_i16(40000, "width")
    with pytest.raises(ContractError):
        sink.write_i8(200, "flag")
    with pytest.raises(ContractError):
        Short3Coord(70000, 0, 0).write(sink)
    assert len(sink) == 0
