"""
Tests for logging setup.
"""

import io
import logging

import pytest

from recipeforge.core.observability.logging_config import setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSetupLogging:

    def test_console_level(self):
        stream = io.StringIO()
        setup_logging("WARNING", stream=stream)
        log = logging.getLogger("recipeforge.test")
        log.info("hidden")
        log.warning("shown")
        assert "hidden" not in stream.getvalue()
        assert "WARNING: shown" in stream.getvalue()

    def test_file_gets_more_detail(self, tmp_path):
        stream = io.StringIO()
        log_file = tmp_path / "build.log"
        setup_logging("ERROR", log_file=str(log_file), log_file_level="DEBUG", stream=stream)
        logging.getLogger("recipeforge.test").debug("step detail")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "step detail" in log_file.read_text()
        assert stream.getvalue() == ""
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_level_falls_back(self):
        stream = io.StringIO()
        setup_logging("LOUD", stream=stream)
        assert logging.getLogger().level == logging.WARNING

    def test_third_party_quieted(self):
        setup_logging("INFO", stream=io.StringIO())
        assert logging.getLogger("urllib3").level == logging.WARNING
