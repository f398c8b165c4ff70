"""Error definitions for levelchunk.

Three families matter to callers:

- :class:`FormatError` - the input bytes are not a valid level; fatal to the
  load. ``context["offset"]`` holds the stream position of detection.
- :class:`ConsistencyError` - an invariant the code itself maintains was
  broken; indicates a bug, never bad input.
- :class:`CapacityError` - an edit grew the level beyond its fixed size;
  tracked as state and raised only when a save is attempted.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Optional

E_TRUNCATED = "E_TRUNCATED"
E_PADDING = "E_PADDING"
E_NAME_LENGTH = "E_NAME_LENGTH"
E_WEAPON_TYPE = "E_WEAPON_TYPE"
E_COUNT = "E_COUNT"
E_MAGIC = "E_MAGIC"
E_CHUNK_KIND = "E_CHUNK_KIND"
E_DUP_SECTION = "E_DUP_SECTION"
E_TRAILING_NONZERO = "E_TRAILING_NONZERO"
E_EXTENSION = "E_EXTENSION"
E_FIELD_RANGE = "E_FIELD_RANGE"
E_DANGLING_REF = "E_DANGLING_REF"
E_UNMAPPED_INDEX = "E_UNMAPPED_INDEX"
E_ROUNDTRIP = "E_ROUNDTRIP"
E_CAPACITY = "E_CAPACITY"
E_NO_FREE_SLOT = "E_NO_FREE_SLOT"
E_NOT_FOUND = "E_NOT_FOUND"
E_BUSY = "E_BUSY"
E_INTERNAL = "E_INTERNAL"


@dataclass
class LevelError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class FormatError(LevelError):
    @property
    def offset(self) -> Optional[int]:
        return (self.context or {}).get("offset")


class ConsistencyError(LevelError):
    pass


class ContractError(LevelError):
    """Caller handed the encoder a record its layout cannot express."""


class CapacityError(LevelError):
    pass


class EditError(LevelError):
    """A requested edit cannot be applied; the tree is left unchanged."""


def format_error(
    code: str, message: str, offset: int, **context: Any
) -> FormatError:
    return FormatError(
        code=code, message=message, context={"offset": offset, **context}
    )


def internal_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> ConsistencyError:
    return ConsistencyError(code=E_INTERNAL, message=message, context=context)


__all__ = [
    "LevelError",
    "FormatError",
    "ConsistencyError",
    "ContractError",
    "CapacityError",
    "EditError",
    "format_error",
    "internal_error",
    "E_TRUNCATED",
    "E_PADDING",
    "E_NAME_LENGTH",
    "E_WEAPON_TYPE",
    "E_COUNT",
    "E_MAGIC",
    "E_CHUNK_KIND",
    "E_DUP_SECTION",
    "E_TRAILING_NONZERO",
    "E_EXTENSION",
    "E_FIELD_RANGE",
    "E_DANGLING_REF",
    "E_UNMAPPED_INDEX",
    "E_ROUNDTRIP",
    "E_CAPACITY",
    "E_NO_FREE_SLOT",
    "E_NOT_FOUND",
    "E_BUSY",
    "E_INTERNAL",
]
