"""printf-style formatting with the verbs the bot relies on."""

from __future__ import annotations

import json
import re
from typing import Any

_VERB = re.compile(r"%([-+# 0]*)([0-9]+)?(?:\.([0-9]+))?(.)?", re.DOTALL)
_TYPE_NAMES = ((bool, "bool"), (int, "int"), (float, "float64"), (str, "string"))


def _type_name(value: Any) -> str:
    if value is None:
        return "<nil>"
    return next((name for kind, name in _TYPE_NAMES if isinstance(value, kind)), type(value).__name__)


def _plain(value: Any) -> str:
    if value is None:
        return "<nil>"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value).removesuffix(".0")
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(map(_plain, value)) + "]"
    if isinstance(value, dict):
        items = sorted(value.items(), key=lambda item: str(item[0]))
        return "map[" + " ".join(f"{_plain(k)}:{_plain(v)}" for k, v in items) + "]"
    return str(value)


def _pad(text: str, flags: str, width: str | None) -> str:
    if not width:
        return text
    size = int(width)
    if "-" in flags:
        return text.ljust(size)
    if "0" in flags:
        if text[:1] in ("+", "-"):
            return text[0] + text[1:].rjust(size - 1, "0")
        return text.rjust(size, "0")
    return text.rjust(size)


def _convert(value: Any, verb: str, flags: str, precision: str | None) -> str | None:
    """Return the text for one verb, or None when the value does not suit it."""
    is_int = isinstance(value, int) and not isinstance(value, bool)
    if verb in "vs":
        text = _plain(value)
        return text[: int(precision)] if verb == "s" and precision is not None else text
    if verb == "d" and is_int:
        return format(value, "+d" if "+" in flags else "d")
    if verb in "xX":
        if is_int:
            return format(value, verb)
        if isinstance(value, (str, bytes)):
            raw = (value.encode() if isinstance(value, str) else value).hex()
            return raw if verb == "x" else raw.upper()
    if verb == "f" and (is_int or isinstance(value, float)):
        places = int(precision) if precision is not None else 6
        return format(float(value), f"{'+' if '+' in flags else ''}.{places}f")
    if verb == "t" and isinstance(value, bool):
        return _plain(value)
    if verb == "q" and isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    return None


def format_text(template: str, *args: Any) -> str:
    """Format ``template`` with printf-style verbs (%v, %s, %d, %x, %f, %t, %q, %%)."""
    remaining = iter(args)
    used = 0

    def replace(match: re.Match[str]) -> str:
        nonlocal used
        flags, width, precision, verb = match.groups()
        if verb is None:
            return "%!(NOVERB)"
        if verb == "%":
            return "%"
        if used >= len(args):
            return f"%!{verb}(MISSING)"
        value = next(remaining)
        used += 1
        text = _convert(value, verb, flags, precision)
        if text is None:
            return f"%!{verb}({_type_name(value)}={_plain(value)})"
        return _pad(text, flags, width)

    result = _VERB.sub(replace, template)
    extra = args[used:]
    if extra:
        result += "%!(EXTRA " + ", ".join(f"{_type_name(v)}={_plain(v)}" for v in extra) + ")"
    return result


def pick(value: bool, if_true: str, if_false: str) -> str:
    """Return ``if_true`` when ``value`` holds, otherwise ``if_false``."""
    return if_true if value else if_false