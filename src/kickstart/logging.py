from __future__ import annotations

import logging
import sys
from enum import Enum
from typing import Any, TextIO

from kickstart.colors import BOLD, CYAN, DARK_GRAY, GREEN, MAGENTA, RED, YELLOW, colorize
from kickstart.exceptions import ConfigurationFatal

__all__ = [
    "LogLevel",
    "PANIC",
    "ConsoleFormatter",
    "configure_logger",
    "format_error_value",
    "get_logger",
    "resolve_level",
]

_DEFAULT_LOGGER_NAME = "kickstart"

PANIC = logging.CRITICAL + 10
logging.addLevelName(PANIC, "PANIC")


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"
    PANIC = "panic"

    def to_logging(self) -> int:
        return _LEVELS[self]


_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.FATAL: logging.CRITICAL,
    LogLevel.PANIC: PANIC,
}

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


def format_error_value(value: Any, *, disabled: bool = False) -> str:
    """Render an error field on a single line, bold and red.

    Tabs become a space and newlines become ``" | "`` so multi-line errors
    such as wrapped tracebacks stay on the log line.
    """
    text = "" if value is None else str(value)
    text = text.replace("\t", "\\t").replace("\n", "\\n")
    text = text.replace("\\t", " ").replace("\\n", " | ").replace("|  |", "|")

    return colorize(colorize(text, BOLD, disabled), RED, disabled)


class ConsoleFormatter(logging.Formatter):
    """Human readable console lines: ``<time> <LVL> <message> key=value``."""

    _TAGS = {
        logging.DEBUG: ("DBG", YELLOW),
        logging.INFO: ("INF", GREEN),
        logging.WARNING: ("WRN", RED),
        logging.ERROR: ("ERR", RED),
        logging.CRITICAL: ("FTL", RED),
        PANIC: ("PNC", MAGENTA),
    }

    def __init__(self, *, use_color: bool) -> None:
        super().__init__(datefmt="%H:%M:%S")
        self._use_color = use_color

    def _disabled(self) -> bool:
        return not self._use_color

    def format_level(self, levelno: int) -> str:
        tag, color = self._TAGS.get(levelno, ("???", 0))
        if levelno == logging.ERROR or levelno >= logging.CRITICAL:
            tag = colorize(tag, BOLD, self._disabled())

        return colorize(tag, color, self._disabled())

    def format_fields(self, record: logging.LogRecord) -> list[str]:
        parts: list[str] = []
        for key in sorted(k for k in record.__dict__ if k not in _RECORD_ATTRS):
            value = record.__dict__[key]
            if key == "error":
                name = colorize(f"{key}=", RED, self._disabled())
                parts.append(name + format_error_value(value, disabled=self._disabled()))
            else:
                name = colorize(f"{key}=", CYAN, self._disabled())
                parts.append(f"{name}{value}")

        return parts

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        timestamp = colorize(self.formatTime(record, self.datefmt), DARK_GRAY, self._disabled())
        parts = [timestamp, self.format_level(record.levelno), record.getMessage()]
        parts.extend(self.format_fields(record))
        line = " ".join(p for p in parts if p)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"

        return line


def resolve_level(debug: bool, level: str) -> int:
    """Map the ``--debug`` / ``--loglevel`` pair onto a logging level.

    ``debug`` wins before the name is looked at, so an invalid name is
    tolerated when debugging.
    """
    if debug:
        return logging.DEBUG

    try:
        return LogLevel(level).to_logging()
    except ValueError:
        raise ConfigurationFatal(f"invalid log level: {level}") from None


def configure_logger(
    debug: bool,
    level: str,
    *,
    color: bool = True,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Configure the root kickstart logger and return it.

    Parameters
    ----------
    debug:
        Force DEBUG regardless of ``level``.
    level:
        One of the :class:`LogLevel` names.
    color:
        Disable ANSI colors when False. ``NO_COLOR`` also disables them.
    stream:
        Stream to write logs to. Defaults to stderr.
    """
    resolved = resolve_level(debug, level)

    logger = logging.getLogger(_DEFAULT_LOGGER_NAME)
    logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(ConsoleFormatter(use_color=color))

    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False

    return logger


def get_logger(name: str | None = None) -> logging.Logger:
    """Return the kickstart logger or one of its children."""
    full_name = _DEFAULT_LOGGER_NAME if not name else f"{_DEFAULT_LOGGER_NAME}.{name}"
    return logging.getLogger(full_name)
