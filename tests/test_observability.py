"""
Tests for logging setup and level resolution.
"""

import logging
from pathlib import Path

import pytest

from release_installer.core.observability.logging_config import (
    _parse_level,
    resolve_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in root.handlers:
        if h not in handlers:
            h.close()
    root.handlers[:] = handlers
    root.setLevel(level)


class TestResolveLevel:
    def test_default(self):
        assert resolve_level() == "WARNING"

    def test_env(self):
        assert resolve_level(env_level="INFO") == "INFO"

    def test_debug_wins(self):
        assert resolve_level(debug=True, verbose=True, quiet=True, env_level="ERROR") == "DEBUG"

    def test_verbose_beats_quiet(self):
        assert resolve_level(verbose=True, quiet=True) == "INFO"

    def test_quiet_beats_env(self):
        assert resolve_level(quiet=True, env_level="DEBUG") == "ERROR"


class TestParseLevel:
    def test_names(self):
        assert _parse_level("debug") == logging.DEBUG
        assert _parse_level("ERROR") == logging.ERROR

    def test_garbage_falls_back(self):
        assert _parse_level("loud") == logging.WARNING
        assert _parse_level(None) == logging.WARNING


class TestSetupLogging:
    def test_console_level(self):
        setup_logging("INFO")
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1

    def test_file_handler(self, tmp_path: Path):
        log_file = tmp_path / "install.log"
        setup_logging("WARNING", log_file=str(log_file), log_file_level="DEBUG")
        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2

        logging.getLogger("release_installer.test").debug("to the file only")
        for h in root.handlers:
            h.flush()
        assert "to the file only" in log_file.read_text()

    def test_repeated_setup_does_not_stack_handlers(self):
        setup_logging("INFO")
        setup_logging("INFO")
        assert len(logging.getLogger().handlers) == 1

    def test_file_parent_created(self, tmp_path: Path):
        log_file = tmp_path / "var" / "log" / "release-installer.log"
        setup_logging("ERROR", log_file=str(log_file))
        logging.getLogger("release_installer.test").error("written")
        for h in logging.getLogger().handlers:
            h.flush()
        assert "ERROR" in log_file.read_text()

    def test_console_format_widens(self):
        setup_logging("DEBUG")
        fmt = logging.getLogger().handlers[0].formatter._fmt
        assert "%(lineno)d" in fmt
        setup_logging("WARNING")
        assert logging.getLogger().handlers[0].formatter._fmt == "%(message)s"
