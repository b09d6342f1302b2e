"""Split a record file stream into records on the separator line."""

from __future__ import annotations

import logging
import zlib
from typing import BinaryIO, Iterator

from .errors import StreamError
from .proto import SEPARATOR_LINE

logger = logging.getLogger(__name__)


def iter_records(stream: BinaryIO, separator_line: bytes = SEPARATOR_LINE) -> Iterator[bytes]:
    """Yield every complete record in ``stream`` as an independent ``bytes``.

    The trailing newline that precedes the separator is stripped. A record
    left unterminated at end of stream is dropped.
    """

    buffer = bytearray()
    while True:
        try:
            line = stream.readline()
        except (OSError, EOFError, zlib.error) as exc:
            raise StreamError(f"Read failed on {getattr(stream, 'name', stream)}: {exc}") from exc

        if not line:
            break
        if not line.endswith(b"\n"):
            # Partial last line; the record it belongs to can never be closed.
            buffer.extend(line)
            break

        if line == separator_line:
            if buffer:
                yield bytes(buffer[:-1])
            buffer.clear()
        else:
            buffer.extend(line)

    if buffer:
        logger.debug("Dropping %d bytes of unterminated record at end of stream", len(buffer))
