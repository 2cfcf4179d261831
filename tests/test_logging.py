"""Tests for logging configuration."""

import logging

from rich.logging import RichHandler

from tilediff.core.logging import LOGGER_NAME, configure_logging, get_logger


def tilediff_handlers():
    return logging.getLogger(LOGGER_NAME).handlers


# ============================================================================
# Configuration Tests
# ============================================================================


class TestConfigureLogging:
    def test_default_is_console_only(self):
        configure_logging()

        [handler] = tilediff_handlers()
        assert isinstance(handler, RichHandler)
        assert handler.level == logging.WARNING
        assert not logging.getLogger(LOGGER_NAME).propagate

    def test_console_writes_to_stderr(self, capsys):
        configure_logging()

        get_logger("tilediff.validation").warning("layer skipped")

        captured = capsys.readouterr()
        assert "layer skipped" in captured.err
        assert captured.out == ""

    def test_below_level_dropped(self, capsys):
        configure_logging(level=logging.WARNING)

        get_logger("tilediff.benchmark").debug("starting scenario")

        assert "starting scenario" not in capsys.readouterr().err

    def test_log_file(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        configure_logging(level=logging.DEBUG, log_file=log_file, console=False)

        get_logger("tilediff.fixtures.loader").info("regenerating bing/4-8-5")

        line = log_file.read_text().strip()
        assert line.endswith("tilediff.fixtures.loader - INFO - regenerating bing/4-8-5")

    def test_reconfigure_replaces_handlers(self, tmp_path):
        configure_logging(log_file=tmp_path / "run.log")
        assert len(tilediff_handlers()) == 2

        configure_logging(console=False)

        assert tilediff_handlers() == []


# ============================================================================
# Logger Naming Tests
# ============================================================================


class TestGetLogger:
    def test_package_names_kept(self):
        assert get_logger("tilediff.codecs.mvt").name == "tilediff.codecs.mvt"
        assert get_logger("tilediff").name == "tilediff"

    def test_foreign_names_nested(self):
        assert get_logger("mlt_decoder").name == "tilediff.mlt_decoder"

    def test_similar_prefix_nested(self):
        assert get_logger("tilediffx").name == "tilediff.tilediffx"
