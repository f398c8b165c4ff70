from .base import (
    Reporter,
    TaskStatus,
    get_reporter,
    set_reporter,
    task,
)
from .base import (
    set_verbosity,
    get_verbosity,
)
from .plain import PlainReporter
from .silent import SilentReporter
from .rich_reporter import RichReporter

__all__ = [
    "Reporter",
    "TaskStatus",
    "get_reporter",
    "set_reporter",
    "task",
    "set_verbosity",
    "get_verbosity",
    "PlainReporter",
    "SilentReporter",
    "RichReporter",
    "make_reporter",
]

_BACKENDS = {
    "plain": PlainReporter,
    "rich": RichReporter,
    "silent": SilentReporter,
}


def make_reporter(name: str) -> Reporter:
    try:
        factory = _BACKENDS[name]
    except KeyError:
        raise ValueError(
            f"Unknown reporter '{name}' (choose from {sorted(_BACKENDS)})"
        ) from None
    return factory()
