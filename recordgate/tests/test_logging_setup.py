"""Tests for recordgate.main logging setup."""
import gzip
import json
import logging
from logging.handlers import RotatingFileHandler

import pytest
import structlog

from recordgate.core.config import Settings
from recordgate.core.log_sink import LogSink
from recordgate.main import _gzip_namer, _gzip_rotator, _shorten_logger_name, setup_logging


@pytest.fixture()
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    # Drop what setup_logging installed; pytest re-adds its own capture handlers per phase
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    structlog.reset_defaults()


class TestRotation:

    def test_namer(self):
        assert _gzip_namer("/var/log/recordgate.log.1") == "/var/log/recordgate.log.1.gz"

    def test_rotator_compresses_and_removes_source(self, tmp_path):
        source = tmp_path / "recordgate.log"
        source.write_text('{"event": "m"}\n', encoding="utf-8")
        dest = tmp_path / "recordgate.log.1.gz"

        _gzip_rotator(str(source), str(dest))

        assert not source.exists()
        with gzip.open(dest, "rt", encoding="utf-8") as f:
            assert f.read() == '{"event": "m"}\n'


class TestShortenLoggerName:

    def test_mapped(self):
        event = _shorten_logger_name(None, "info", {"logger": "recordgate.core.activity_log"})
        assert event["logger"] == "activity"

    def test_dotted(self):
        assert _shorten_logger_name(None, "info", {"logger": "recordgate.api.v1.logs"})["logger"] == "logs"

    def test_plain(self):
        assert _shorten_logger_name(None, "info", {"logger": "remote"})["logger"] == "remote"


class TestSetupLogging:

    def test_json_file_handler(self, tmp_path, restore_logging):
        settings = Settings(RECORDGATE_SECRET_KEY="k", RECORDGATE_LOG_DIR=str(tmp_path), _env_file=None)
        setup_logging(settings)

        file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].namer is _gzip_namer
        assert file_handlers[0].rotator is _gzip_rotator

        LogSink().emit("info", "remote message", "self", 1, "exc_info", True, "user", "alice")
        file_handlers[0].flush()

        lines = (tmp_path / "recordgate.log").read_text(encoding="utf-8").splitlines()
        entry = json.loads(lines[-1])
        assert entry["event"] == "remote message"
        assert entry["logger"] == "remote"
        assert entry["level"] == "info"
        assert entry["data_self"] == 1
        assert entry["data_exc_info"] is True
        assert entry["user"] == "alice"

    def test_console_only(self, restore_logging):
        setup_logging(Settings(RECORDGATE_SECRET_KEY="k", _env_file=None))
        assert not [h for h in logging.getLogger().handlers if isinstance(h, RotatingFileHandler)]
