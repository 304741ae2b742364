from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from rabbithole.config import RabbitholeConfig, load_config, load_config_or_default, parse_config


def write(tmp_path: Path, body: str) -> Path:
    p = tmp_path / "rabbithole.yaml"
    p.write_text(textwrap.dedent(body).lstrip(), encoding="utf-8")
    return p


def test_load_from_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    p = write(
        tmp_path,
        """
        http:
          host: "0.0.0.0"
          port: 9001
        sampler:
          root_mount: "C:\\\\"
          poll_interval_ms: 1000
        logging:
          level: debug
          file: "/tmp/rabbithole.log"
        """,
    )
    monkeypatch.setenv("RABBITHOLE_CONFIG", str(p))

    cfg = load_config()
    assert cfg.http_host == "0.0.0.0"
    assert cfg.http_port == 9001
    assert cfg.root_mount == "C:\\"
    assert cfg.poll_interval_ms == 1000
    assert cfg.log_level == "DEBUG"
    assert cfg.log_file == "/tmp/rabbithole.log"
    assert cfg.config_path == str(p)


def test_empty_file_gives_defaults(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RABBITHOLE_CONFIG", str(write(tmp_path, "")))
    cfg = load_config()
    assert cfg.http_port == 8765
    assert cfg.root_mount == "/"
    assert cfg.log_file is None


def test_poll_interval_is_clamped() -> None:
    assert parse_config({"sampler": {"poll_interval_ms": 10}}).poll_interval_ms == 200
    assert parse_config({"sampler": {"poll_interval_ms": 60000}}).poll_interval_ms == 5000


def test_bad_section_type() -> None:
    with pytest.raises(ValueError):
        parse_config({"sampler": ["/"]})


def test_bad_port() -> None:
    with pytest.raises(ValueError):
        parse_config({"http": {"port": "eighty"}})


def test_missing_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("RABBITHOLE_CONFIG", str(tmp_path / "nope.yaml"))
    monkeypatch.chdir(tmp_path)
    if Path("/etc/rabbithole/config.yaml").exists():
        pytest.skip("system config present")

    with pytest.raises(FileNotFoundError):
        load_config()
    assert load_config_or_default() == RabbitholeConfig()
