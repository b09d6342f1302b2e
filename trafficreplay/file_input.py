"""Replay source that reads records written by ``FileOutput``."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Iterator, Optional

from .errors import ChannelClosed, ReplayError, SourceExhausted
from .file_cursor import FileCursor
from .framer import iter_records
from .handoff import HandoffChannel
from .pacing import TimingGovernor

logger = logging.getLogger(__name__)


class FileInput:
    """Replay recorded traffic from every file matching ``pattern``.

    Files are read in lexicographic order; ``.gz`` files are decompressed on
    the fly. Requests are released with their recorded spacing divided by
    ``speed_factor``. One background thread does all of the file work, and
    records are handed over one at a time through ``read``/``next_record``.
    """

    def __init__(
        self,
        pattern: str,
        speed_factor: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.path = pattern
        self.speed_factor = speed_factor
        self._cursor = FileCursor(pattern)
        self._governor = TimingGovernor(sleep=sleep)
        self._channel = HandoffChannel()

        self._cursor.open_first()

        self._thread = threading.Thread(target=self._emit, name=f"file-input:{pattern}", daemon=True)
        self._thread.start()

    @property
    def speed_factor(self) -> float:
        return self._speed_factor

    @speed_factor.setter
    def speed_factor(self, value: float) -> None:
        value = float(value)
        if value <= 0:
            raise ValueError(f"speed_factor must be positive, got {value}")
        self._speed_factor = value

    @property
    def current_file(self) -> Optional[str]:
        return self._cursor.current_path

    def read(self, data: bytearray) -> int:
        """Copy the next record into ``data`` and return the record's length.

        Only ``len(data)`` bytes are copied when the record is larger. Raises
        ``SourceExhausted`` once every file is consumed, or the producer's
        fatal error if it stopped on one.
        """

        buf = self.next_record()
        view = memoryview(data)
        n = min(len(view), len(buf))
        view[:n] = buf[:n]
        return len(buf)

    def next_record(self, timeout: Optional[float] = None) -> bytes:
        return self._channel.receive(timeout=timeout)

    def __iter__(self) -> Iterator[bytes]:
        while True:
            try:
                yield self.next_record()
            except ChannelClosed:
                return

    def close(self) -> None:
        self._channel.close()

    def wait(self, timeout: Optional[float] = None) -> bool:
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def __enter__(self) -> "FileInput":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def __str__(self) -> str:
        return "File input: " + self.path

    def _emit(self) -> None:
        stream = self._cursor.stream
        try:
            while stream is not None:
                for record in iter_records(stream):
                    self._governor.pace(record, self._speed_factor)
                    self._channel.send(record)
                # If the pattern matches multiple files, move on to the next one.
                stream = self._cursor.advance()
        except ChannelClosed:
            logger.debug("FileInput: consumer closed '%s'", self.path)
        except ReplayError as exc:
            logger.error("FileInput: stopping '%s': %s", self.path, exc)
            self._channel.close(exc)
        except Exception as exc:  # pylint: disable=broad-except
            logger.exception("FileInput: producer for '%s' crashed", self.path)
            self._channel.close(exc)
        else:
            logger.info("FileInput: end of file '%s'", self.path)
            self._channel.close(SourceExhausted(f"No more files match {self.path}"))
        finally:
            self._cursor.close()
