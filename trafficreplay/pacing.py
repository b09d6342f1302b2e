"""Reproduce recorded request timing."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from .proto import is_request, parse_timestamp, payload_meta

logger = logging.getLogger(__name__)

NANOS_PER_SECOND = 1_000_000_000


class TimingGovernor:
    """Track the previous request timestamp and sleep out the recorded gaps.

    Only request records with a parseable timestamp take part; everything
    else passes straight through. The first request is never delayed.
    Out-of-order timestamps produce no delay.
    """

    def __init__(self, sleep: Callable[[float], None] = time.sleep) -> None:
        self._sleep = sleep
        self.last_ts: Optional[int] = None

    def delay_for(self, record: bytes, speed_factor: float = 1.0) -> Optional[float]:
        meta = payload_meta(record)
        if len(meta) < 3 or not is_request(meta):
            return None
        ts = parse_timestamp(meta[2])
        if ts is None:
            return None

        delay: Optional[float] = None
        if self.last_ts is not None:
            diff = ts - self.last_ts
            if speed_factor != 1:
                diff = diff / speed_factor
            delay = diff / NANOS_PER_SECOND
        self.last_ts = ts
        return delay

    def pace(self, record: bytes, speed_factor: float = 1.0) -> float:
        """Sleep for the record's scaled gap and return the seconds slept."""

        delay = self.delay_for(record, speed_factor)
        if delay is None:
            return 0.0
        if delay < 0:
            logger.debug("Timestamp went backwards by %.6fs; not delaying", -delay)
            return 0.0
        if delay > 0:
            self._sleep(delay)
        return delay
