"""Primitive codecs: little-endian scalars, strings and Short3Coord.

``ByteCursor`` reads from an in-memory buffer and raises :class:`FormatError`
with the current offset on any short read. ``ByteSink`` is the matching
writer. All integers are little-endian.
"""

from __future__ import annotations

from dataclasses import dataclass
import struct
from typing import TYPE_CHECKING

from .constants import SHORT3_COORD_SIZE
from .errors import (
    E_COUNT,
    E_FIELD_RANGE,
    E_PADDING,
    E_TRUNCATED,
    ContractError,
    format_error,
)

if TYPE_CHECKING:  # pragma: no cover
    import numpy as np

__all__ = [
    "ByteCursor",
    "ByteSink",
    "Short3Coord",
]

_I16 = struct.Struct("<h")
_I8 = struct.Struct("<b")
_COORD = struct.Struct("<hhhh")
_MAX_CSTRING = 256


class ByteCursor:
    def __init__(self, data: bytes, offset: int = 0) -> None:
        self.data = memoryview(data)
        self.offset = offset

    def remaining(self) -> int:
        return len(self.data) - self.offset

    def _take(self, size: int, label: str) -> memoryview:
        end = self.offset + size
        if size < 0 or end > len(self.data):
            raise format_error(
                E_TRUNCATED,
                f"Out of range read for {label}: "
                f"{self.offset}+{size}>{len(self.data)}",
                self.offset,
            )
        view = self.data[self.offset : end]
        self.offset = end
        return view

    def read_bytes(self, size: int, label: str = "bytes") -> bytes:
        return bytes(self._take(size, label))

    def read_i16(self, label: str = "int16") -> int:
        return _I16.unpack(self._take(2, label))[0]

    def read_i8(self, label: str = "int8") -> int:
        return _I8.unpack(self._take(1, label))[0]

    def read_count(self, label: str) -> int:
        start = self.offset
        count = self.read_i16(label)
        if count < 0:
            raise format_error(
                E_COUNT, f"Negative {label}: {count}", start, value=count
            )
        return count

    def read_ascii_cstring(self, label: str = "string") -> str:
        start = self.offset
        end = bytes(self.data[start : start + _MAX_CSTRING]).find(b"\x00")
        if end < 0:
            raise format_error(
                E_TRUNCATED, f"Unterminated {label}", start
            )
        raw = self._take(end + 1, label)
        try:
            return bytes(raw[:-1]).decode("ascii")
        except UnicodeDecodeError as e:
            raise format_error(
                E_FIELD_RANGE, f"Non-ASCII {label}: {e}", start
            ) from e


class ByteSink:
    def __init__(self) -> None:
        self._buf = bytearray()

    def __len__(self) -> int:
        return len(self._buf)

    def getvalue(self) -> bytes:
        return bytes(self._buf)

    def write_bytes(self, data: bytes) -> None:
        self._buf.extend(data)

    def write_i16(self, value: int, label: str = "int16") -> None:
        try:
            self._buf.extend(_I16.pack(int(value)))
        except struct.error as e:
            raise ContractError(
                E_FIELD_RANGE, f"{label} out of int16 range: {value}"
            ) from e

    def write_i8(self, value: int, label: str = "int8") -> None:
        try:
            self._buf.extend(_I8.pack(int(value)))
        except struct.error as e:
            raise ContractError(
                E_FIELD_RANGE, f"{label} out of int8 range: {value}"
            ) from e

    def write_ascii_cstring(self, text: str, label: str = "string") -> None:
        try:
            raw = text.encode("ascii")
        except UnicodeEncodeError as e:
            raise ContractError(
                E_FIELD_RANGE, f"{label} must be ASCII: {text!r}"
            ) from e
        if b"\x00" in raw:
            raise ContractError(
                E_FIELD_RANGE, f"{label} contains NUL: {text!r}"
            )
        self._buf.extend(raw + b"\x00")


@dataclass(frozen=True, slots=True)
class Short3Coord:
    """Three signed 16-bit components stored in 8 bytes (last two zero)."""

    x: int = 0
    y: int = 0
    z: int = 0

    @classmethod
    def read(cls, cur: ByteCursor, label: str = "coord") -> "Short3Coord":
        start = cur.offset
        x, y, z, pad = _COORD.unpack(cur.read_bytes(SHORT3_COORD_SIZE, label))
        if pad != 0:
            raise format_error(
                E_PADDING,
                f"Expecting two zero bytes after {label}",
                start + 6,
                value=pad,
            )
        return cls(x, y, z)

    def write(self, sink: ByteSink, label: str = "coord") -> None:
        try:
            sink.write_bytes(_COORD.pack(self.x, self.y, self.z, 0))
        except struct.error as e:
            raise ContractError(
                E_FIELD_RANGE, f"{label} component out of int16 range: {self}"
            ) from e

    def __add__(self, other: "Short3Coord") -> "Short3Coord":
        return Short3Coord(
            _wrap16(self.x + other.x),
            _wrap16(self.y + other.y),
            _wrap16(self.z + other.z),
        )

    def __str__(self) -> str:
        return f"({self.x},{self.y},{self.z})"

    def to_point(self) -> "np.ndarray":
        from .geometry import coord_to_point

        return coord_to_point(self)

    @classmethod
    def from_point(cls, point) -> "Short3Coord":
        return cls(int(point[0]), int(point[1]), int(point[2]))

    def to_rotation_matrix(self) -> "np.ndarray":
        from .geometry import rotation_matrix

        return rotation_matrix(self)

    @classmethod
    def from_rotation(cls, matrix) -> "Short3Coord":
        """Approximate inverse of :meth:`to_rotation_matrix`.

        Only two of the three rotation degrees of freedom survive; see
        :func:`levelchunk.codec.geometry.coord_from_rotation`.
        """
        from .geometry import coord_from_rotation

        return coord_from_rotation(matrix)


def _wrap16(value: int) -> int:
    return ((value + 0x8000) & 0xFFFF) - 0x8000
