"""Logging setup and a writer that forwards text to a logger at a fixed level."""

from __future__ import annotations

import logging
import sys
import time
from dataclasses import dataclass

TRACE = 5
PANIC = 60

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(PANIC, "PANIC")

_LEVELS = {
    "panic": PANIC,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": TRACE,
}

_LEVEL_LABELS = {
    TRACE: "TRACE",
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARNING",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "FATAL",
    PANIC: "PANIC",
}

_handler: logging.Handler | None = None


class _Formatter(logging.Formatter):
    """Formats records as '<time> [<LEVEL>] <message>' with centisecond timestamps."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s [%(label)s] %(message)s")

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        stamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(record.created))
        return f"{stamp}.{int(record.msecs) // 10:02d}"

    def format(self, record: logging.LogRecord) -> str:
        record.label = _LEVEL_LABELS.get(record.levelno, record.levelname)
        return super().format(record)


def parse_level(level_name: str) -> int:
    """Return the logging level for a name such as 'debug' or 'warn'."""
    try:
        return _LEVELS[level_name.lower()]
    except KeyError:
        raise ValueError(f"not a valid log level: {level_name!r}") from None


def setup(level_name: str) -> None:
    """Configure the root logger to write formatted records to stderr."""
    global _handler
    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_Formatter())
    root.addHandler(handler)
    _handler = handler

    try:
        level = parse_level(level_name)
    except ValueError as exc:
        print(
            f"Warning: Invalid log level '{level_name}' provided: {exc}. Defaulting to 'info'.",
            file=sys.stderr,
        )
        level = logging.INFO
    root.setLevel(level)


@dataclass
class LevelWriter:
    """Writes each message to a logger at one fixed level."""

    logger: logging.Logger
    level: int

    def write(self, message: str) -> int:
        """Log the message without its trailing newline; return its length."""
        text = message.removesuffix("\n")
        if self.level >= PANIC:
            self.logger.log(PANIC, text)
            raise RuntimeError(text)
        if self.level == logging.CRITICAL:
            self.logger.critical(text)
            raise SystemExit(1)
        if self.level in _LEVEL_LABELS:
            self.logger.log(self.level, text)
        else:
            self.logger.info(text)
        return len(message)

    def flush(self) -> None:
        """Nothing is buffered."""


def component_logger(level: int, component: str) -> LevelWriter:
    """Return a writer that logs for the named component at the given level."""
    return LevelWriter(logging.getLogger(f"certbotmanager.{component}"), level)