"""Write records in the format ``FileInput`` reads."""

from __future__ import annotations

import gzip
import logging
import re
from pathlib import Path
from typing import BinaryIO, Optional, Union

from .proto import PAYLOAD_SEPARATOR, payload_header, payload_id
from .readers import is_compressed

logger = logging.getLogger(__name__)


class FileOutput:
    """Append records to ``path``, gzip-compressed when it ends in ``.gz``.

    With ``max_size`` set, output is split into chunks named
    ``<stem>_000<suffix>``, ``<stem>_001<suffix>``... which sort in write order
    and can be replayed with a ``<stem>_*<suffix>`` pattern.
    """

    def __init__(self, path: Union[str, Path], max_size: int = 0) -> None:
        self.path = Path(path)
        self.max_size = int(max_size)
        self._chunk = self._next_chunk_index()
        self._written = 0
        self._handle: Optional[BinaryIO] = None
        self.current_path = self._chunk_path(self._chunk)

    def _chunk_path(self, index: int) -> Path:
        if self.max_size <= 0:
            return self.path
        stem, suffix = self._split_name()
        return self.path.with_name(f"{stem}_{index:03d}{suffix}")

    def _split_name(self):
        name = self.path.name
        suffix = "".join(self.path.suffixes)
        stem = name[: len(name) - len(suffix)] if suffix else name
        return stem, suffix

    def _next_chunk_index(self) -> int:
        # Continue after chunks left by earlier runs so replay order stays write order.
        if self.max_size <= 0 or not self.path.parent.is_dir():
            return 0
        stem, suffix = self._split_name()
        chunk_re = re.compile(re.escape(stem) + r"_(\d{3,})" + re.escape(suffix) + "$")
        indexes = [int(m.group(1)) for m in (chunk_re.match(p.name) for p in self.path.parent.iterdir()) if m]
        return max(indexes) + 1 if indexes else 0

    def _open(self) -> BinaryIO:
        self.current_path.parent.mkdir(parents=True, exist_ok=True)
        if is_compressed(self.current_path):
            return gzip.open(self.current_path, "ab")  # type: ignore[return-value]
        return open(self.current_path, "ab")

    def write(self, record: bytes) -> int:
        if self._handle is None:
            self._handle = self._open()
        self._handle.write(record)
        self._handle.write(PAYLOAD_SEPARATOR)
        self._written += len(record) + len(PAYLOAD_SEPARATOR)
        self._rotate_if_needed()
        return len(record)

    def write_payload(
        self,
        kind: bytes,
        payload: bytes,
        timestamp: Optional[int] = None,
        payload_uuid: Optional[bytes] = None,
    ) -> int:
        header = payload_header(kind, payload_uuid or payload_id(), timestamp)
        return self.write(header + payload)

    def _rotate_if_needed(self) -> None:
        if self.max_size <= 0 or self._written < self.max_size:
            return
        self.close()
        self._chunk += 1
        self._written = 0
        self.current_path = self._chunk_path(self._chunk)
        logger.debug("FileOutput: rotated to %s", self.current_path)

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None

    def __enter__(self) -> "FileOutput":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __str__(self) -> str:
        return f"File output: {self.path}"
