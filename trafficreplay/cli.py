"""Command line entrypoints for trafficreplay."""

from __future__ import annotations

import argparse
import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Optional

from .config import load_settings, parse_input_spec
from .errors import ReplayError
from .file_input import FileInput
from .file_output import FileOutput
from .logging_setup import setup_logging
from .pacing import NANOS_PER_SECOND
from .proto import REQUEST_PAYLOAD, parse_meta

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="trafficreplay", description="Replay recorded traffic files")
    sub = parser.add_subparsers(dest="cmd", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--input", type=str, default=None, help="Glob pattern, optionally with a |NNN%% speed suffix")
    common.add_argument("--config", type=Path, default=None)
    common.add_argument("--log-level", type=str, default=None)
    common.add_argument("--log-file", type=Path, default=None)

    replay = sub.add_parser("replay", parents=[common], help="Replay records with their recorded timing")
    replay.add_argument("--speed", type=float, default=None)
    replay.add_argument("--output", type=Path, default=None, help="Write replayed records to this file")
    replay.add_argument("--output-max-size", type=int, default=None)

    sub.add_parser("inspect", parents=[common], help="Summarize records without pacing")

    return parser.parse_args(argv)


def _no_sleep(_seconds: float) -> None:
    return None


def _describe(record: bytes) -> str:
    meta = parse_meta(record)
    if meta is None:
        return f"unknown - {len(record)}"
    return f"{meta.kind_name} {meta.id.decode('ascii', 'replace')} {len(record)}"


def run_replay(source: FileInput, output: Optional[FileOutput]) -> int:
    count = 0
    for record in source:
        if output is not None:
            output.write(record)
        else:
            print(_describe(record))
        count += 1
    return count


def run_inspect(source: FileInput) -> dict:
    kinds: Counter = Counter()
    first_ts: Optional[int] = None
    last_ts: Optional[int] = None
    for record in source:
        meta = parse_meta(record)
        if meta is None:
            kinds["unknown"] += 1
            continue
        kinds[meta.kind_name] += 1
        if meta.kind == REQUEST_PAYLOAD:
            if first_ts is None:
                first_ts = meta.timestamp
            last_ts = meta.timestamp
    span = 0.0
    if first_ts is not None and last_ts is not None:
        span = (last_ts - first_ts) / NANOS_PER_SECOND
    return {
        "records": sum(kinds.values()),
        "kinds": dict(kinds),
        "first_request_ts": first_ts,
        "last_request_ts": last_ts,
        "span_seconds": span,
    }


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ValueError) as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 2

    log_file = args.log_file or (Path(settings.log_file) if settings.log_file else None)
    setup_logging(log_file, args.log_level or settings.log_level)

    pattern, speed = settings.pattern, settings.speed
    if args.input:
        try:
            pattern, spec_speed = parse_input_spec(args.input)
        except ValueError as exc:
            print(f"[ERROR] {exc}", file=sys.stderr)
            return 2
        if spec_speed is not None:
            speed = spec_speed
    if not pattern:
        print("[ERROR] --input or input.pattern is required", file=sys.stderr)
        return 2

    try:
        if args.cmd == "inspect":
            with FileInput(pattern, sleep=_no_sleep) as source:
                summary = run_inspect(source)
            print(f"[RESULT] records: {summary['records']}")
            for kind, count in sorted(summary["kinds"].items()):
                print(f"[RESULT] {kind}: {count}")
            print(f"[RESULT] span_seconds: {summary['span_seconds']:.3f}")
            return 0

        if args.speed is not None:
            speed = args.speed
        output_path = args.output or (Path(settings.output_path) if settings.output_path else None)
        max_size = args.output_max_size if args.output_max_size is not None else settings.output_max_size
        output = FileOutput(output_path, max_size=max_size) if output_path else None
        try:
            with FileInput(pattern, speed_factor=speed) as source:
                logger.info("Replaying %s at %.2fx", source, source.speed_factor)
                count = run_replay(source, output)
        finally:
            if output is not None:
                output.close()
        print(f"[INFO] Replayed {count} records")
        return 0
    except ReplayError as exc:
        # A corrupt or unreadable input makes the whole run unusable.
        logger.error("Replay failed: %s", exc)
        return 1
    except ValueError as exc:
        print(f"[ERROR] {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
