"""Timed, file-based replay of recorded request/response traffic."""

from __future__ import annotations

from .errors import (
    ChannelClosed,
    DecompressionError,
    FileOpenError,
    NoMatchingFilesError,
    ReplayError,
    SourceExhausted,
    StreamError,
)
from .file_input import FileInput
from .file_output import FileOutput

__all__ = [
    "ChannelClosed",
    "DecompressionError",
    "FileInput",
    "FileOpenError",
    "FileOutput",
    "NoMatchingFilesError",
    "ReplayError",
    "SourceExhausted",
    "StreamError",
]

__version__ = "0.1.0"
