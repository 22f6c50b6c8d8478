"""Plain HTTP fetching helpers and the link pattern used to recognise URLs."""

from __future__ import annotations

import re

import requests

LINK_REGEX = re.compile(
    r"https?:\/\/(www\.)?[-a-zA-Z0-9@:%._\+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
    r"([-a-zA-Z0-9()@:%_\+.~#?&//=]*)"
)


def from_web(url: str) -> bytes:
    """GET ``url`` and return the raw response body, whatever the status."""
    response = requests.get(url)
    try:
        return response.content
    finally:
        response.close()


def from_web_string(url: str) -> str:
    """GET ``url`` and return the body decoded as UTF-8."""
    return from_web(url).decode("utf-8", errors="replace")