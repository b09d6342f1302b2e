from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, TextIO, Tuple

import yaml

CONFIG_ENV = "TRAFFICREPLAY_CONFIG"

DEFAULT_CONFIG: Dict[str, Any] = {
    "input": {"pattern": None, "speed": 1.0},
    "output": {"path": None, "max_size": 0},
    "logging": {"level": "INFO", "file": "logs/trafficreplay.log"},
}

_SPEED_SUFFIX = re.compile(r"^(?P<pattern>.*)\|(?P<percent>\d+(?:\.\d+)?)%$")


@dataclass
class ReplaySettings:
    pattern: Optional[str] = None
    speed: float = 1.0
    output_path: Optional[str] = None
    output_max_size: int = 0
    log_level: str = "INFO"
    log_file: Optional[str] = "logs/trafficreplay.log"


_CONFIG_PARSERS: Dict[str, Callable[[TextIO], Any]] = {
    ".yaml": yaml.safe_load,
    ".yml": yaml.safe_load,
    ".json": json.load,
}


def load_config_file(path: str | Path) -> Dict[str, Any]:
    """Read a replay config mapping from a ``.yaml``/``.yml``/``.json`` file."""

    config_path = Path(path)
    parser = _CONFIG_PARSERS.get(config_path.suffix.lower())
    if parser is None:
        raise ValueError(f"Unsupported config format: {config_path}")
    if not config_path.is_file():
        raise FileNotFoundError(f"Config not found: {config_path}")
    with config_path.open("r", encoding="utf-8") as handle:
        data = parser(handle)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Replay config must be a mapping, got {type(data).__name__}: {config_path}")
    return data


def merge_defaults(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Overlay ``overrides`` on ``base`` section by section; neither input is modified."""

    merged = {key: dict(value) if isinstance(value, dict) else value for key, value in base.items()}
    for key, value in overrides.items():
        current = merged.get(key)
        merged[key] = merge_defaults(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return merged


def parse_input_spec(value: str) -> Tuple[str, Optional[float]]:
    """Split ``"logs/*.gor|200%"`` into ``("logs/*.gor", 2.0)``.

    Without a ``|NNN%`` suffix the speed is ``None``.
    """

    if "|" not in value:
        return value, None
    match = _SPEED_SUFFIX.match(value)
    if not match:
        raise ValueError(f"Invalid input speed suffix: {value!r}")
    percent = float(match.group("percent"))
    if percent <= 0:
        raise ValueError(f"Input speed must be positive: {value!r}")
    return match.group("pattern"), percent / 100.0


def _coerce_float(value: Any, default: float) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    return result if result > 0 else default


def _coerce_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def load_settings(path: Optional[str | Path] = None) -> ReplaySettings:
    raw: Dict[str, Any] = dict(DEFAULT_CONFIG)
    config_path = path or os.getenv(CONFIG_ENV)
    if config_path:
        raw = merge_defaults(raw, load_config_file(config_path))

    input_raw = raw.get("input") if isinstance(raw.get("input"), dict) else {}
    output_raw = raw.get("output") if isinstance(raw.get("output"), dict) else {}
    logging_raw = raw.get("logging") if isinstance(raw.get("logging"), dict) else {}

    pattern = os.getenv("TRAFFICREPLAY_INPUT") or input_raw.get("pattern")
    speed = _coerce_float(os.getenv("TRAFFICREPLAY_SPEED") or input_raw.get("speed", 1.0), 1.0)
    if pattern:
        pattern, spec_speed = parse_input_spec(str(pattern))
        if spec_speed is not None:
            speed = spec_speed

    level = os.getenv("TRAFFICREPLAY_LOG_LEVEL") or logging_raw.get("level") or "INFO"
    log_file = os.getenv("TRAFFICREPLAY_LOG_FILE") or logging_raw.get("file")

    return ReplaySettings(
        pattern=pattern,
        speed=speed,
        output_path=output_raw.get("path"),
        output_max_size=_coerce_int(output_raw.get("max_size", 0), 0),
        log_level=str(level).upper(),
        log_file=str(log_file) if log_file else None,
    )
