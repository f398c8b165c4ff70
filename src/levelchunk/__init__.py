"""levelchunk package

Reads, edits and writes chunked level files: FlatChunk sheets, the shared
bump/odd/camera resource arrays they index, and the fixed-size container
that holds them.

Prefer importing the programmatic API from :mod:`levelchunk.api` or the CLI
entry point from :mod:`levelchunk.cli`.
"""

from ._version import __version__  # noqa: F401

__all__ = ["__version__"]
