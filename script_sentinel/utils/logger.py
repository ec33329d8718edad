"""
Console logger for the sentinel's analysis and chat stages.

Every line carries a wall-clock stamp, a level glyph and the module
context.  Named timers report how long a render, a batch or an oracle
call took.  When ``WRITE_TO_FILE=true`` each analysis also gets its own
plain-text log under ``.logs/``.

Timer state and the open log file are held in ``contextvars`` so two
analyses running on the same event loop keep separate books.
"""

from __future__ import annotations

import contextvars
import io
import os
import pathlib
import re
import sys
import time
from datetime import UTC, datetime
from typing import NamedTuple

_RESET = "\033[0m"
_BOLD = "\033[1m"
_DIM = "\033[2m"
_RED = "\033[31m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_BLUE = "\033[34m"
_MAGENTA = "\033[35m"
_CYAN = "\033[36m"
_GRAY = "\033[90m"

_ANSI_ESCAPE = re.compile(r"\033\[[0-9;]*m")


class _Level(NamedTuple):
    rank: int
    colour: str
    glyph: str


_LEVELS: dict[str, _Level] = {
    "debug": _Level(10, _GRAY, "•"),
    "info": _Level(20, _CYAN, "ℹ"),
    "success": _Level(20, _GREEN, "✓"),
    "timing": _Level(20, _MAGENTA, "⏱"),
    "warn": _Level(30, _YELLOW, "⚠"),
    "error": _Level(40, _RED, "✗"),
}

_timers: contextvars.ContextVar[dict[str, tuple[float, str]] | None] = contextvars.ContextVar(
    "sentinel_timers", default=None
)
_log_file: contextvars.ContextVar[io.TextIOWrapper | None] = contextvars.ContextVar(
    "sentinel_log_file", default=None
)


def _paint(text: str, *styles: str) -> str:
    return "".join(styles) + text + _RESET


def _timer_book() -> dict[str, tuple[float, str]]:
    book = _timers.get()
    if book is None:
        book = {}
        _timers.set(book)
    return book


def _min_rank() -> int:
    """Lowest level rank that ``LOG_LEVEL`` lets through (default: debug)."""
    name = os.environ.get("LOG_LEVEL", "debug").lower()
    level = _LEVELS.get("warn" if name == "warning" else name)
    return level.rank if level else _LEVELS["debug"].rank


def _clock() -> str:
    now = datetime.now(UTC)
    return f"{now:%H:%M:%S}.{now.microsecond // 1000:03d}"


def _format_duration(ms: float) -> str:
    """Render a millisecond duration as ``ms``, ``s`` or ``m s``."""
    if ms < 1000:
        return f"{int(ms)}ms"
    if ms < 60_000:
        return f"{ms / 1000:.2f}s"
    minutes, remainder = divmod(ms, 60_000)
    return f"{int(minutes)}m {remainder / 1000:.1f}s"


def _render_value(value: object) -> str:
    match value:
        case None:
            return _paint("None", _DIM)
        case bool():
            return _paint(str(value), _GREEN if value else _RED)
        case int() | float():
            return _paint(str(value), _YELLOW)
        case str():
            shown = value if len(value) <= 200 else value[:197] + "..."
            return _paint(f'"{shown}"', _GREEN)
        case list() | tuple():
            return _paint(f"[{len(value)} items]", _CYAN)
        case dict():
            return _paint(f"{{{len(value)} keys}}", _CYAN)
    return str(value)


# ── Per-analysis log file ───────────────────────────────────────


def start_log_file(host: str) -> str | None:
    """Open a fresh log file for one analysis of *host*.

    Any file already open in this context is closed first.

    Returns:
        The file path, or ``None`` when file logging is off or the
        file could not be created.
    """
    if os.environ.get("WRITE_TO_FILE", "").lower() != "true":
        return None

    end_log_file()

    stem = "".join(ch if ch.isalnum() or ch in ".-" else "_" for ch in host.removeprefix("www."))[:50]
    started = datetime.now(UTC)
    directory = pathlib.Path.cwd() / ".logs"
    path = directory / f"{stem}_{started:%Y-%m-%d_%H-%M-%S}.log"

    try:
        directory.mkdir(parents=True, exist_ok=True)
        stream = path.open("a", encoding="utf-8")
    except OSError as exc:
        print(_paint(f"✗ [Logger] Cannot open log file {path}: {exc}", _RED), file=sys.stderr)
        return None

    banner = "=" * 80
    stream.write(f"\n{banner}\n  Script Sentinel - {host}\n  Started: {started.isoformat()}\n{banner}\n")
    _log_file.set(stream)
    return str(path)


def end_log_file() -> None:
    """Close the log file opened by ``start_log_file``, if any."""
    stream = _log_file.get()
    if stream is None:
        return
    _log_file.set(None)
    try:
        stream.close()
    except OSError:
        print(_paint("⚠ [Logger] Log file did not close cleanly", _YELLOW), file=sys.stderr)


# ── Logger ──────────────────────────────────────────────────────


class Logger:
    """A context-tagged logger; create one per module via ``create_logger``."""

    def __init__(self, context: str = "Sentinel") -> None:
        self._context = context

    def _emit(self, line: str) -> None:
        print(line, file=sys.stderr)
        stream = _log_file.get()
        if stream is not None:
            stream.write(_ANSI_ESCAPE.sub("", line) + "\n")
            stream.flush()

    def _log(self, level_name: str, message: str, data: dict[str, object] | None = None) -> None:
        level = _LEVELS[level_name]
        if level.rank < _min_rank():
            return
        parts = [
            _paint(f"[{_clock()}]", _GRAY),
            _paint(level.glyph, level.colour),
            _paint(f"[{self._context}]", _BOLD),
            message,
        ]
        if data:
            parts.extend(f"{_paint(f'{key}=', _DIM)}{_render_value(value)}" for key, value in data.items())
        self._emit(" ".join(parts))

    def info(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("info", message, data)

    def success(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("success", message, data)

    def warn(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("warn", message, data)

    def error(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("error", message, data)

    def debug(self, message: str, data: dict[str, object] | None = None) -> None:
        self._log("debug", message, data)

    def start_timer(self, label: str) -> None:
        """Begin timing *label* within this logger's context."""
        _timer_book()[f"{self._context}:{label}"] = (time.monotonic(), _clock())
        self._log("timing", f"Starting: {label}")

    def end_timer(self, label: str, message: str | None = None) -> float:
        """Stop timing *label* and log the elapsed time.

        Returns:
            Elapsed milliseconds, or ``0.0`` if the timer was never started.
        """
        started = _timer_book().pop(f"{self._context}:{label}", None)
        if started is None:
            self.warn(f'Timer "{label}" was not started')
            return 0.0
        began_at, began_clock = started
        elapsed = (time.monotonic() - began_at) * 1000
        summary = message or f"Completed: {label}"
        self._log(
            "timing",
            f"{summary} {_paint('took', _DIM)} {_paint(_format_duration(elapsed), _MAGENTA)}"
            f" {_paint(f'(started {began_clock})', _DIM)}",
        )
        return elapsed

    def section(self, title: str) -> None:
        """Print a divider headed by *title*."""
        rule = _paint("─" * 60, _BLUE)
        for line in ("", rule, _paint(f"  {title}", _BLUE, _BOLD), rule, ""):
            self._emit(line)


def create_logger(context: str) -> Logger:
    """Create a logger tagged with *context* (usually the module's role)."""
    return Logger(context)
