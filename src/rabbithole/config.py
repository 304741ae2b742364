from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

POLL_INTERVAL_MIN_MS = 200
POLL_INTERVAL_MAX_MS = 5000


@dataclass(frozen=True)
class RabbitholeConfig:
    http_host: str = "127.0.0.1"
    http_port: int = 8765
    root_mount: str = "/"
    poll_interval_ms: int = 500
    log_level: str = "INFO"
    log_file: Optional[str] = None
    config_path: Optional[str] = None


def _first_existing(paths: List[Path]) -> Optional[Path]:
    for p in paths:
        if p.exists() and p.is_file():
            return p
    return None


def get_config_path() -> Path:
    env = os.environ.get("RABBITHOLE_CONFIG")
    candidates: List[Path] = []
    if env:
        candidates.append(Path(env).expanduser())
    candidates.append(Path("/etc/rabbithole/config.yaml"))
    candidates.append(Path.cwd() / "config" / "rabbithole.yaml")

    chosen = _first_existing(candidates)
    if not chosen:
        raise FileNotFoundError(
            "No config found. Create ./config/rabbithole.yaml, set RABBITHOLE_CONFIG "
            "or use /etc/rabbithole/config.yaml."
        )
    return chosen


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ValueError(f"config.{name} must be a mapping")
    return value


def _int(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"config.{key} must be an integer, got {value!r}") from None


def parse_config(data: Dict[str, Any], config_path: Optional[str] = None) -> RabbitholeConfig:
    if not isinstance(data, dict):
        raise ValueError("config root must be a mapping")

    http = _section(data, "http")
    sampler = _section(data, "sampler")
    logging_cfg = _section(data, "logging")

    poll_ms = _int(sampler.get("poll_interval_ms", 500), "sampler.poll_interval_ms")
    poll_ms = max(POLL_INTERVAL_MIN_MS, min(POLL_INTERVAL_MAX_MS, poll_ms))

    log_file = logging_cfg.get("file")

    return RabbitholeConfig(
        http_host=str(http.get("host", "127.0.0.1")),
        http_port=_int(http.get("port", 8765), "http.port"),
        root_mount=str(sampler.get("root_mount", "/")),
        poll_interval_ms=poll_ms,
        log_level=str(logging_cfg.get("level", "INFO")).upper(),
        log_file=str(log_file) if log_file else None,
        config_path=config_path,
    )


def load_config() -> RabbitholeConfig:
    path = get_config_path()
    with path.open("r", encoding="utf-8") as f:
        data: Dict[str, Any] = yaml.safe_load(f) or {}
    return parse_config(data, config_path=str(path))


def load_config_or_default() -> RabbitholeConfig:
    try:
        return load_config()
    except FileNotFoundError:
        return RabbitholeConfig()
