from unittest.mock import MagicMock, patch

import pytest
import requests

from anny.web import LINK_REGEX, from_web, from_web_string


def _response(body):
    response = MagicMock()
    response.content = body
    return response


@patch("anny.web.requests.get")
def test_from_web_returns_body_and_closes(get):
    response = _response(b"payload")
    get.return_value = response

    assert from_web("http://example.com/data") == b"payload"
    get.assert_called_once_with("http://example.com/data")
    response.close.assert_called_once()


@patch("anny.web.requests.get")
def test_from_web_string_decodes_utf8(get):
    get.return_value = _response("olá mundo".encode("utf-8"))

    assert from_web_string("http://example.com/text") == "olá mundo"


@patch("anny.web.requests.get")
def test_from_web_propagates_errors(get):
    get.side_effect = requests.ConnectionError("down")

    with pytest.raises(requests.ConnectionError):
        from_web_string("http://example.com/")


@pytest.mark.parametrize(
    ("text", "link"),
    [
        ("https://example.com/path?q=1", "https://example.com/path?q=1"),
        ("http://www.example.org", "http://www.example.org"),
        ("see https://example.net/x", "https://example.net/x"),
    ],
)
def test_link_regex_matches_links(text, link):
    match = LINK_REGEX.search(text)
    assert match is not None
    assert match.group(0) == link


@pytest.mark.parametrize("text", ["hello world", "never gonna give you up", "example.com"])
def test_link_regex_ignores_plain_text(text):
    assert LINK_REGEX.search(text) is None