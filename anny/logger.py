"""Coloured, timestamped console logging."""

from __future__ import annotations

import sys
from datetime import datetime
from typing import Any, NoReturn, TextIO

from .text import format_text

_RED = "\u001b[31m"
_YELLOW = "\u001b[33m"
_GREEN = "\u001b[32m"
_MAGENTA = "\u001b[35m"
_RESET = "\u001b[0m"


def _emit(stream: TextIO, color: str, tag: str, values: tuple[Any, ...]) -> None:
    for value in values:
        stamp = datetime.now().strftime("%d/%m/%Y - %H:%M:%S")
        line = format_text("[%s] %s[%s]%s %+v", stamp, color, tag, _RESET, value)
        print(line, file=stream, flush=True)


def fatal(*args: Any) -> NoReturn:
    """Log each value as FATAL and exit with status 1."""
    _emit(sys.stderr, _RED, "FATAL", args)
    sys.exit(1)


def error(*args: Any) -> None:
    _emit(sys.stderr, _RED, "ERROR", args)


def warn(*args: Any) -> None:
    _emit(sys.stderr, _YELLOW, "WARN", args)


def info(*args: Any) -> None:
    _emit(sys.stdout, _GREEN, "INFO", args)


def debug(*args: Any) -> None:
    _emit(sys.stdout, _MAGENTA, "DEBUG", args)


def fatalf(text: str, *args: Any) -> NoReturn:
    fatal(format_text(text, *args))


def errorf(text: str, *args: Any) -> None:
    error(format_text(text, *args))


def warnf(text: str, *args: Any) -> None:
    warn(format_text(text, *args))


def infof(text: str, *args: Any) -> None:
    info(format_text(text, *args))


def debugf(text: str, *args: Any) -> None:
    debug(format_text(text, *args))