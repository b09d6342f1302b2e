"""Record file format shared by the reader and the writer.

A record file is a sequence of records, each followed by ``PAYLOAD_SEPARATOR``.
Every record starts with a one-line metadata header::

    <kind> <id> <timestamp-ns>\\n<payload>

``kind`` is one of the type tags below; ``timestamp`` is an integer in
nanoseconds.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import List, Optional

FORMAT_VERSION = "1"

PAYLOAD_SEPARATOR = "\n\U0001F435\U0001F648\U0001F649\n".encode("utf-8")
# The framer sees the separator as a line of its own; the leading newline
# terminates the last payload line.
SEPARATOR_LINE = PAYLOAD_SEPARATOR[1:]

REQUEST_PAYLOAD = b"1"
RESPONSE_PAYLOAD = b"2"
REPLAYED_RESPONSE_PAYLOAD = b"3"

KIND_NAMES = {
    REQUEST_PAYLOAD: "request",
    RESPONSE_PAYLOAD: "response",
    REPLAYED_RESPONSE_PAYLOAD: "replayed",
}


@dataclass(frozen=True)
class RecordMeta:
    kind: bytes
    id: bytes
    timestamp: int

    @property
    def kind_name(self) -> str:
        return KIND_NAMES.get(self.kind, "unknown")


def payload_meta(record: bytes) -> List[bytes]:
    header_size = record.find(b"\n")
    if header_size < 0:
        header_size = 0
    return record[:header_size].split(b" ")


def is_request(meta: List[bytes]) -> bool:
    return bool(meta) and meta[0][:1] == REQUEST_PAYLOAD


def parse_timestamp(field: bytes) -> Optional[int]:
    try:
        return int(field.decode("ascii"), 10)
    except (UnicodeDecodeError, ValueError):
        return None


def parse_meta(record: bytes) -> Optional[RecordMeta]:
    """Return the parsed header, or ``None`` when it is too short or malformed."""

    meta = payload_meta(record)
    if len(meta) < 3:
        return None
    ts = parse_timestamp(meta[2])
    if ts is None:
        return None
    return RecordMeta(kind=meta[0][:1], id=meta[1], timestamp=ts)


def payload_id() -> bytes:
    return uuid.uuid4().hex[:24].encode("ascii")


def payload_header(kind: bytes, payload_uuid: bytes, timestamp: Optional[int] = None) -> bytes:
    if timestamp is None:
        timestamp = time.time_ns()
    return b"%s %s %d\n" % (kind, payload_uuid, timestamp)
