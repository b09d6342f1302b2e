"""Open record files as line-readable byte streams."""

from __future__ import annotations

import gzip
import logging
import zlib
from pathlib import Path
from typing import BinaryIO, Union

from .errors import DecompressionError, FileOpenError

logger = logging.getLogger(__name__)

GZIP_SUFFIX = ".gz"


def is_compressed(path: Union[str, Path]) -> bool:
    return str(path).endswith(GZIP_SUFFIX)


def open_stream(path: Union[str, Path]) -> BinaryIO:
    """Open ``path`` for reading, transparently decompressing ``.gz`` files.

    Raises ``FileOpenError`` when the file cannot be opened and
    ``DecompressionError`` when a ``.gz`` file has an unusable header.
    """

    try:
        handle = open(path, "rb")
    except OSError as exc:
        logger.error("Can't read file %s: %s", path, exc)
        raise FileOpenError(f"Can't read file {path}: {exc}") from exc

    if not is_compressed(path):
        return handle

    reader = gzip.GzipFile(filename=str(path), fileobj=handle, mode="rb")
    try:
        # GzipFile parses the header lazily; force it so corruption shows up here.
        if not reader.peek(1) and handle.tell() == 0:
            raise EOFError("empty file has no gzip header")
    except (OSError, EOFError, zlib.error) as exc:
        reader.close()
        handle.close()
        logger.error("Can't decompress file %s: %s", path, exc)
        raise DecompressionError(f"Can't decompress file {path}: {exc}") from exc
    return _GzipStream(reader, handle)


class _GzipStream:
    """GzipFile does not close a caller-supplied fileobj; close both together."""

    def __init__(self, reader: gzip.GzipFile, raw: BinaryIO) -> None:
        self._reader = reader
        self._raw = raw
        self.name = raw.name

    def readline(self, size: int = -1) -> bytes:
        return self._reader.readline(size)

    def read(self, size: int = -1) -> bytes:
        return self._reader.read(size)

    def close(self) -> None:
        try:
            self._reader.close()
        finally:
            self._raw.close()

    @property
    def closed(self) -> bool:
        return self._raw.closed

    def __enter__(self) -> "_GzipStream":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
