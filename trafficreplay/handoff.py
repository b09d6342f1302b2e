"""Single-slot rendezvous between the producer thread and one consumer."""

from __future__ import annotations

import threading
import time
from typing import Optional

from .errors import ChannelClosed


class HandoffChannel:
    """Unbuffered hand-off: ``send`` returns only once the record was taken.

    At most one record is ever in flight. ``close`` is the end-of-input
    signal; a stored error is raised to the consumer instead of
    ``ChannelClosed``.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._item: Optional[bytes] = None
        self._full = False
        self._closed = False
        self._error: Optional[BaseException] = None
        self._sent = 0
        self._taken = 0

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    @property
    def error(self) -> Optional[BaseException]:
        with self._cond:
            return self._error

    def send(self, item: bytes) -> None:
        with self._cond:
            while self._full and not self._closed:
                self._cond.wait()
            if self._closed:
                raise ChannelClosed("send on closed channel")
            self._item = item
            self._full = True
            self._sent += 1
            ticket = self._sent
            self._cond.notify_all()
            while self._taken < ticket and not self._closed:
                self._cond.wait()
            if self._taken < ticket:
                self._item = None
                self._full = False
                raise ChannelClosed("channel closed before the record was received")

    def receive(self, timeout: Optional[float] = None) -> bytes:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not self._full:
                if self._closed:
                    if self._error is not None:
                        raise self._error.with_traceback(None)
                    raise ChannelClosed("channel closed")
                if deadline is None:
                    self._cond.wait()
                else:
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        raise TimeoutError("no record received in time")
                    self._cond.wait(remaining)
            item = self._item
            self._item = None
            self._full = False
            self._taken += 1
            self._cond.notify_all()
            return item  # type: ignore[return-value]

    def close(self, error: Optional[BaseException] = None) -> None:
        with self._cond:
            if not self._closed:
                self._closed = True
                self._error = error
            self._cond.notify_all()
