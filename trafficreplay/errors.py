"""Exception taxonomy for replay sources."""

from __future__ import annotations


class ReplayError(Exception):
    """Base error for the replay package."""


class NoMatchingFilesError(ReplayError):
    """The input pattern is empty or matched nothing at startup."""


class FileOpenError(ReplayError):
    """A resolved path could not be opened."""


class DecompressionError(ReplayError):
    """A compressed file failed decompression initialization."""


class StreamError(ReplayError):
    """A read from the underlying stream failed with something other than EOF."""


class ChannelClosed(ReplayError):
    """The hand-off channel was closed."""


class SourceExhausted(ChannelClosed, EOFError):
    """Every matching file has been consumed; no more records will arrive."""
