"""Duration parsing and formatting helpers."""

from __future__ import annotations

import random
import re
from datetime import timedelta
from fractions import Fraction

_MICROSECOND = 1000
_SECOND = 1_000_000_000
_UNITS = {
    "ns": 1, "us": _MICROSECOND, "\u00b5s": _MICROSECOND, "\u03bcs": _MICROSECOND,
    "ms": 1_000_000, "s": _SECOND, "m": 60 * _SECOND, "h": 3600 * _SECOND,
}
_MAX_NANOS = (1 << 63) - 1
_SEGMENT = re.compile(r"([0-9]*)(?:\.([0-9]*))?([^0-9.]*)")
_CLOCK_DIGITS = re.compile(r"[+-]?[0-9]+")


def _tdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b >= 0) else -quotient


def random_bool() -> bool:
    """Return True or False with equal chance."""
    return random.getrandbits(1) == 0


def format_time(duration: timedelta) -> str:
    """Format a duration as MM:SS, HH:MM:SS or DD:HH:MM:SS."""
    micros = (duration.days * 86400 + duration.seconds) * 1_000_000 + duration.microseconds
    total = _tdiv(micros, 1_000_000)
    days = _tdiv(total, 86400)
    hours = _tdiv(total - days * 86400, 3600)
    minutes = _tdiv(total - _tdiv(total, 3600) * 3600, 60)
    seconds = total - _tdiv(total, 60) * 60

    if days > 0:
        parts = (days, hours, minutes, seconds)
    elif hours > 0:
        parts = (hours, minutes, seconds)
    else:
        parts = (minutes, seconds)
    return ":".join(f"{part:02d}" for part in parts)


def parse_go_duration(text: str) -> timedelta:
    """Parse a unit-suffixed duration such as ``1h30m`` or ``-1.5s``; raise ValueError if malformed."""
    original = text
    invalid = ValueError(f'time: invalid duration "{original}"')
    negative = text[:1] == "-"
    if text[:1] in ("-", "+"):
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise invalid

    total = 0
    while text:
        match = _SEGMENT.match(text)
        whole, fraction, unit = match.group(1), match.group(2) or "", match.group(3)
        if text[0] not in "0123456789." or not (whole or fraction):
            raise invalid
        if not unit:
            raise ValueError(f'time: missing unit in duration "{original}"')
        if unit not in _UNITS:
            raise ValueError(f'time: unknown unit "{unit}" in duration "{original}"')
        text = text[match.end():]
        factor = _UNITS[unit]
        total += int(whole or "0") * factor
        if fraction:
            total += int(Fraction(int(fraction), 10 ** len(fraction)) * factor)
        if total > _MAX_NANOS + 1:
            raise invalid

    if negative:
        total = -total
    elif total > _MAX_NANOS:
        raise invalid
    return timedelta(microseconds=_tdiv(total, _MICROSECOND))


def parse_duration(text: str) -> timedelta:
    """Parse ``5m5s``-style durations or clock forms such as ``05:05`` and ``1:02:03``."""
    try:
        return parse_go_duration(text)
    except ValueError:
        pass

    if not _CLOCK_DIGITS.fullmatch(text.replace(":", "")) or len(text) > 8:
        raise ValueError("invalid duration")

    parts = text.split(":")
    if len(parts) == 3:
        result = f"{parts[0]}h{parts[1]}m{parts[2]}s"
    elif len(parts) == 2:
        result = f"{parts[0]}m{parts[1]}s"
    else:
        result = f"{parts[0]}s"
    return parse_go_duration(result)