import json
import sys

import pytest
from loguru import logger

from memegen.core.logger import _console_format, setup_logger


@pytest.fixture(autouse=True)
def restore_default_sink():
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_file_sink_writes_json_lines_with_extras(tmp_path):
    log_file = tmp_path / "logs" / "memegen.log"

    setup_logger("DEBUG", log_file=log_file)
    logger.info("Meme generated", activity_id=123, mood="proud")
    logger.remove()

    records = [json.loads(line)["record"] for line in log_file.read_text().splitlines()]
    generated = next(r for r in records if r["message"] == "Meme generated")
    assert generated["extra"] == {"activity_id": 123, "mood": "proud"}
    assert generated["level"]["name"] == "INFO"


def test_file_sink_respects_level(tmp_path):
    log_file = tmp_path / "memegen.log"

    setup_logger("WARNING", log_file=log_file)
    logger.info("quiet")
    logger.warning("loud")
    logger.remove()

    messages = [json.loads(line)["record"]["message"] for line in log_file.read_text().splitlines()]
    assert messages == ["loud"]


def test_console_format_shows_extras_only_when_present():
    assert "{extra}" in _console_format({"extra": {"activity_id": 1}})
    assert "{extra}" not in _console_format({"extra": {}})
    assert _console_format({"extra": {}}).endswith("{exception}")


def test_no_file_sink_without_log_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    setup_logger("INFO")
    logger.info("console only")

    assert list(tmp_path.iterdir()) == []
