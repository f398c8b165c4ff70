"""Fixed-size capacity bookkeeping for a loaded level.

A level file never changes size: the zero run after the END marker is the
only room edits can grow into. The tracker holds that run's length as a
signed count. Insertions charge their encoded size against it; a negative
balance is reported through the sink as soon as it happens but only becomes
an error when a save is attempted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from .codec.errors import E_CAPACITY, CapacityError
from .logging import get_logger
from .reporting import get_reporter

__all__ = ["CapacityTracker"]


def _report_to_active_reporter(deficit: int) -> None:
    get_reporter().capacity_exceeded(deficit)


@dataclass(slots=True)
class CapacityTracker:
    total_size: int = 0
    trailing_zero_bytes: int = 0
    on_exceeded: Optional[Callable[[int], None]] = field(
        default=None, repr=False, compare=False
    )

    @property
    def body_size(self) -> int:
        return self.total_size - self.trailing_zero_bytes

    @property
    def exceeded(self) -> bool:
        return self.trailing_zero_bytes < 0

    @property
    def deficit(self) -> int:
        return max(0, -self.trailing_zero_bytes)

    def register_delta(self, delta: int, *, reason: str = "") -> int:
        """Charge ``delta`` bytes of growth (negative frees space).

        Returns the new balance.
        """
        self.trailing_zero_bytes -= delta
        get_logger().debug(
            "capacity %+d bytes%s -> %d free",
            -delta,
            f" ({reason})" if reason else "",
            self.trailing_zero_bytes,
        )
        if delta > 0 and self.exceeded:
            sink = self.on_exceeded or _report_to_active_reporter
            sink(self.deficit)
        return self.trailing_zero_bytes

    def ensure_can_save(self) -> None:
        if self.exceeded:
            raise CapacityError(
                code=E_CAPACITY,
                message=(
                    f"Level is {self.deficit} bytes over its fixed size of "
                    f"{self.total_size} bytes"
                ),
                context={
                    "total_size": self.total_size,
                    "deficit": self.deficit,
                },
            )
