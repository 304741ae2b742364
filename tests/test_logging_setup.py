import json
import logging

import pytest

from rabbithole.logging_setup import JsonFormatter, configure_logging


@pytest.fixture()
def clean_logger():
    logger = logging.getLogger("rabbithole")
    saved = list(logger.handlers)
    logger.handlers.clear()
    yield logger
    for h in logger.handlers:
        h.close()
    logger.handlers[:] = saved


def test_json_formatter_fields():
    record = logging.LogRecord("rabbithole.collectors.disk", logging.INFO, __file__, 1, "hello %s", ("disk",), None)
    record.event = "probe"
    payload = json.loads(JsonFormatter().format(record))
    assert payload["level"] == "INFO"
    assert payload["logger"] == "rabbithole.collectors.disk"
    assert payload["msg"] == "hello disk"
    assert payload["event"] == "probe"
    assert "ts_utc" in payload


def test_configure_writes_json_file(clean_logger, tmp_path):
    path = tmp_path / "logs" / "rabbithole.log"
    logger = configure_logging(level="debug", log_file=str(path), console=False)
    assert logger.level == logging.DEBUG

    logging.getLogger("rabbithole.collectors.network").debug("counters unavailable")
    for h in logger.handlers:
        h.flush()

    lines = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert lines[0]["event"] == "logging_configured"
    assert lines[-1]["msg"] == "counters unavailable"


def test_configure_is_idempotent(clean_logger):
    first = configure_logging(console=True)
    count = len(first.handlers)
    configure_logging(console=True)
    assert len(first.handlers) == count


def test_unknown_level_falls_back_to_info(clean_logger):
    assert configure_logging(level="chatty", console=True).level == logging.INFO


def test_json_formatter_omits_event_when_absent():
    record = logging.LogRecord("rabbithole", logging.WARNING, __file__, 1, "plain", (), None)
    payload = json.loads(JsonFormatter().format(record))
    assert "event" not in payload
    assert "exc" not in payload
