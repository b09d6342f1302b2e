import gzip
import threading
import time
from pathlib import Path

import pytest

from trafficreplay.errors import (
    DecompressionError,
    NoMatchingFilesError,
    SourceExhausted,
    StreamError,
)
from trafficreplay.file_input import FileInput
from trafficreplay.proto import PAYLOAD_SEPARATOR


def _req(ts: int, body: bytes = b"GET / HTTP/1.1\r\n\r\n") -> bytes:
    return b"1 req%d %d\n" % (ts, ts) + body


def _resp(ts: int) -> bytes:
    return b"2 resp%d %d\nHTTP/1.1 200 OK\r\n\r\n" % (ts, ts)


def _write(path: Path, *records: bytes) -> Path:
    path.write_bytes(b"".join(r + PAYLOAD_SEPARATOR for r in records))
    return path


def _no_sleep(_seconds: float) -> None:
    return None


def test_replays_files_in_order_then_stops(tmp_path: Path):
    _write(tmp_path / "c.log", _req(3))
    _write(tmp_path / "a.log", _req(1))
    _write(tmp_path / "b.log", _req(2), _resp(2))
    source = FileInput(str(tmp_path / "*.log"), sleep=_no_sleep)
    assert list(source) == [_req(1), _req(2), _resp(2), _req(3)]
    assert source.wait(timeout=2)
    with pytest.raises(SourceExhausted):
        source.next_record()
    with pytest.raises(EOFError):
        source.read(bytearray(10))


def test_picks_up_file_created_during_replay(tmp_path: Path):
    _write(tmp_path / "a.log", _req(1))
    _write(tmp_path / "c.log", _req(3), _req(4))
    source = FileInput(str(tmp_path / "*.log"), sleep=_no_sleep)
    assert source.next_record(timeout=2) == _req(1)
    assert source.next_record(timeout=2) == _req(3)
    # The producer is now holding c.log's second record, so d.log exists
    # before it reaches the end of c.log.
    _write(tmp_path / "d.log", _req(5))
    assert source.next_record(timeout=2) == _req(4)
    assert source.next_record(timeout=2) == _req(5)
    with pytest.raises(SourceExhausted):
        source.next_record(timeout=2)


def test_gzip_and_plain_files_frame_identically(tmp_path: Path):
    records = [_req(1), _resp(1), _req(2, b"POST /a HTTP/1.1\r\n\r\n{}"), _resp(2)]
    plain = _write(tmp_path / "plain.gor", *records)
    with gzip.open(tmp_path / "packed.gor.gz", "wb") as handle:
        handle.write(plain.read_bytes())

    from_plain = list(FileInput(str(plain), sleep=_no_sleep))
    from_gzip = list(FileInput(str(tmp_path / "packed.gor.gz"), sleep=_no_sleep))
    assert from_plain == from_gzip == records


def test_read_copies_into_caller_buffer(tmp_path: Path):
    record = _req(1, b"GET /long/path HTTP/1.1\r\n\r\n")
    _write(tmp_path / "a.log", record, record)
    source = FileInput(str(tmp_path / "a.log"), sleep=_no_sleep)

    buf = bytearray(1024)
    n = source.read(buf)
    assert n == len(record)
    first = bytes(buf[:n])
    assert first == record

    small = bytearray(4)
    assert source.read(small) == len(record)
    assert bytes(small) == record[:4]
    assert first == record


def test_pacing_reproduces_recorded_gap(tmp_path: Path):
    _write(tmp_path / "a.log", _req(5_000_000_000_000), _resp(1), _req(5_000_300_000_000))
    started = time.monotonic()
    source = FileInput(str(tmp_path / "a.log"))
    source.next_record(timeout=2)
    first_at = time.monotonic()
    source.next_record(timeout=2)
    source.next_record(timeout=2)
    second_at = time.monotonic()
    assert first_at - started < 0.2
    assert 0.25 <= second_at - first_at < 0.6


def test_speed_factor_shortens_gap(tmp_path: Path):
    _write(tmp_path / "a.log", _req(0), _req(600_000_000))
    source = FileInput(str(tmp_path / "a.log"), speed_factor=2.0)
    source.next_record(timeout=2)
    first_at = time.monotonic()
    source.next_record(timeout=2)
    gap = time.monotonic() - first_at
    assert 0.25 <= gap < 0.5


def test_speed_factor_validation(tmp_path: Path):
    _write(tmp_path / "a.log", _req(1))
    source = FileInput(str(tmp_path / "a.log"), sleep=_no_sleep)
    assert source.speed_factor == 1.0
    source.speed_factor = 3
    assert source.speed_factor == 3.0
    with pytest.raises(ValueError):
        source.speed_factor = 0
    assert str(source) == "File input: " + str(tmp_path / "a.log")
    source.close()


def test_delays_follow_recorded_gaps(tmp_path: Path):
    sleeps = []
    _write(tmp_path / "a.log", _req(1_000_000_000), _resp(9), b"1 short\nbody", _req(3_000_000_000))
    source = FileInput(str(tmp_path / "a.log"), speed_factor=4.0, sleep=sleeps.append)
    assert len(list(source)) == 4
    assert sleeps == [0.5]


def test_one_record_in_flight(tmp_path: Path):
    records = [_req(i) for i in range(1, 40)]
    _write(tmp_path / "a.log", *records)
    paced = []

    def _sleep(seconds: float) -> None:
        paced.append(seconds)

    source = FileInput(str(tmp_path / "a.log"), sleep=_sleep)
    time.sleep(0.1)
    # Only the first record has been framed; it is waiting to be taken.
    assert paced == []
    received = [source.next_record(timeout=2)]
    time.sleep(0.05)
    assert len(paced) <= 1
    received.extend(source)
    assert received == records


def test_no_matching_files_fails_construction(tmp_path: Path):
    with pytest.raises(NoMatchingFilesError):
        FileInput(str(tmp_path / "*.gor"))


def test_corrupt_first_gzip_fails_construction(tmp_path: Path):
    (tmp_path / "a.gor.gz").write_bytes(b"garbage")
    with pytest.raises(DecompressionError):
        FileInput(str(tmp_path / "*.gz"))


def test_corrupt_later_gzip_reaches_consumer(tmp_path: Path):
    with gzip.open(tmp_path / "a.gor.gz", "wb") as handle:
        handle.write(_req(1) + PAYLOAD_SEPARATOR)
    (tmp_path / "b.gor.gz").write_bytes(b"garbage")
    source = FileInput(str(tmp_path / "*.gz"), sleep=_no_sleep)
    assert source.next_record(timeout=2) == _req(1)
    with pytest.raises(DecompressionError):
        source.next_record(timeout=2)
    assert source.wait(timeout=2)


def test_truncated_gzip_is_stream_error(tmp_path: Path):
    payload = b"".join(_req(i) + PAYLOAD_SEPARATOR for i in range(1, 200))
    blob = gzip.compress(payload)
    (tmp_path / "a.gor.gz").write_bytes(blob[:-4])
    source = FileInput(str(tmp_path / "a.gor.gz"), sleep=_no_sleep)
    with pytest.raises(StreamError):
        list(source)


def test_close_stops_producer(tmp_path: Path):
    _write(tmp_path / "a.log", *[_req(i) for i in range(1, 10)])
    with FileInput(str(tmp_path / "a.log"), sleep=_no_sleep) as source:
        assert source.next_record(timeout=2) == _req(1)
    assert source.wait(timeout=2)
    assert list(source) == []


def test_speed_change_applies_to_later_records(tmp_path: Path):
    _write(tmp_path / "a.log", _req(0), _req(1_000_000), _req(401_000_000))
    source = FileInput(str(tmp_path / "a.log"))
    source.next_record(timeout=2)
    changer = threading.Thread(target=setattr, args=(source, "speed_factor", 4.0))
    changer.start()
    changer.join()
    source.next_record(timeout=2)
    started = time.monotonic()
    source.next_record(timeout=2)
    gap = time.monotonic() - started
    assert 0.05 <= gap < 0.3


def test_empty_first_gzip_fails_construction(tmp_path: Path):
    (tmp_path / "a.gor.gz").write_bytes(b"")
    with pytest.raises(DecompressionError):
        FileInput(str(tmp_path / "*.gz"))


def test_empty_later_gzip_reaches_consumer(tmp_path: Path):
    with gzip.open(tmp_path / "a.gor.gz", "wb") as handle:
        handle.write(_req(1) + PAYLOAD_SEPARATOR)
    (tmp_path / "b.gor.gz").write_bytes(b"")
    source = FileInput(str(tmp_path / "*.gz"), sleep=_no_sleep)
    assert source.next_record(timeout=2) == _req(1)
    with pytest.raises(DecompressionError):
        source.next_record(timeout=2)
    assert source.wait(timeout=2)
