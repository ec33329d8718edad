"""Tests for script_sentinel.utils.logger — levels, timers and file logging."""

from __future__ import annotations

import pathlib

import pytest

from script_sentinel.utils import logger


class TestLevels:
    def test_info_goes_to_stderr_with_context(self, capsys, monkeypatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "debug")
        logger.create_logger("Classifier").info("Resolved script", {"tier": "registry"})

        err = capsys.readouterr().err
        assert "[Classifier]" in err
        assert "Resolved script" in err
        assert "tier=" in err

    def test_threshold_filters_lower_levels(self, capsys, monkeypatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "warning")
        log = logger.create_logger("Store")
        log.debug("hidden")
        log.info("hidden too")
        log.warn("shown")

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err


class TestTimers:
    def test_end_timer_returns_duration(self, monkeypatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "error")
        log = logger.create_logger("Timing")
        log.start_timer("render")
        assert log.end_timer("render") >= 0.0

    def test_unknown_timer_warns_and_returns_zero(self, capsys, monkeypatch) -> None:
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert logger.create_logger("Timing").end_timer("never-started") == 0.0
        assert "was not started" in capsys.readouterr().err


class TestFileLogging:
    def test_disabled_by_default(self, monkeypatch) -> None:
        monkeypatch.delenv("WRITE_TO_FILE", raising=False)
        assert logger.start_log_file("shop.example.com") is None

    def test_writes_plain_text(self, monkeypatch, tmp_path: pathlib.Path) -> None:
        monkeypatch.setenv("WRITE_TO_FILE", "true")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.chdir(tmp_path)

        path = logger.start_log_file("www.shop.example.com")
        try:
            logger.create_logger("Sentinel").success("Analysis complete")
        finally:
            logger.end_log_file()

        assert path is not None
        assert pathlib.Path(path).name.startswith("shop.example.com_")
        content = pathlib.Path(path).read_text(encoding="utf-8")
        assert "Analysis complete" in content
        assert "\033[" not in content


@pytest.mark.parametrize(
    ("ms", "expected"),
    [(250, "250ms"), (1500, "1.50s"), (61000, "1m 1.0s")],
)
def test_format_duration(ms: float, expected: str) -> None:
    assert logger._format_duration(ms) == expected
