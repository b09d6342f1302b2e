"""Ordered rotation across the files matched by a glob pattern."""

from __future__ import annotations

import glob
import logging
from typing import BinaryIO, List, Optional

from .errors import NoMatchingFilesError
from .readers import open_stream

logger = logging.getLogger(__name__)


class FileCursor:
    """Walk the lexicographically sorted matches of ``pattern`` forward.

    The match set is re-resolved on every rotation so files that appear while
    replay is running are picked up, as long as they sort after the current
    one.
    """

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self.current_path: Optional[str] = None
        self.stream: Optional[BinaryIO] = None

    def resolve(self) -> List[str]:
        return sorted(glob.glob(self.pattern))

    def open_first(self) -> BinaryIO:
        if not self.pattern:
            logger.error("Wrong file pattern %r", self.pattern)
            raise NoMatchingFilesError("Empty file pattern")
        matches = self.resolve()
        if not matches:
            logger.error("No files match pattern: %s", self.pattern)
            raise NoMatchingFilesError(f"No files match pattern: {self.pattern}")
        return self._open(matches[0])

    def advance(self) -> Optional[BinaryIO]:
        """Open the file after the current one, or return ``None`` if there is none."""

        try:
            matches = self.resolve()
        except OSError as exc:
            logger.warning("Could not resolve %s: %s", self.pattern, exc)
            return None

        try:
            idx = matches.index(self.current_path)
        except ValueError:
            logger.info("Current file %s no longer matches %s", self.current_path, self.pattern)
            return None
        if idx == len(matches) - 1:
            return None
        return self._open(matches[idx + 1])

    def close(self) -> None:
        if self.stream is not None:
            self.stream.close()
            self.stream = None

    def _open(self, path: str) -> BinaryIO:
        self.close()
        stream = open_stream(path)
        self.current_path = path
        self.stream = stream
        logger.debug("Opened %s", path)
        return stream
