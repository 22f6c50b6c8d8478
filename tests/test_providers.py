from datetime import timedelta

import pytest

from anny.providers import (
    Playlist,
    Provider,
    QueryResult,
    Song,
    find_by_input,
    find_song,
    register_provider,
)


class FakeProvider(Provider):
    def __init__(self, name, supported=(), query=False):
        self.name = name
        self.supported = set(supported)
        self.query = query
        self.loads = 0
        self.found = []

    def display_name(self):
        return self.name

    def is_supported(self, term, query):
        return term in self.supported or (query and self.query)

    def find(self, term):
        self.found.append(term)
        return QueryResult(songs=[Song(title=term, provider=self)])

    def is_loaded(self, song):
        return bool(song.media_url)

    def load(self, song):
        self.loads += 1
        song.media_url = "media:" + song.title


def test_find_by_input_picks_first_supporting_provider():
    first = FakeProvider("first", supported={"a"})
    second = FakeProvider("second", supported={"a", "b"})
    assert find_by_input("a", False, [first, second]) is first
    assert find_by_input("b", False, [first, second]) is second


def test_find_by_input_respects_query_support():
    searcher = FakeProvider("search", query=True)
    assert find_by_input("anything", False, [searcher]) is None
    assert find_by_input("anything", True, [searcher]) is searcher


def test_find_song_returns_none_without_provider():
    assert find_song("nothing", True, [FakeProvider("x")]) is None


def test_find_song_delegates_to_provider():
    provider = FakeProvider("x", supported={"term"})
    result = find_song("term", False, [provider])
    assert provider.found == ["term"]
    assert [song.title for song in result.songs] == ["term"]
    assert result.playlist is None


def test_song_load_only_when_not_loaded():
    provider = FakeProvider("x")
    song = Song(title="tune", provider=provider)
    assert song.is_loaded() is False
    song.load()
    song.load()
    assert provider.loads == 1
    assert song.media_url == "media:tune"
    assert song.is_loaded() is True


def test_provider_name():
    assert Song(provider=FakeProvider("Named")).provider_name() == "Named"


def test_song_without_provider_raises():
    with pytest.raises(RuntimeError):
        Song(title="orphan").load()


def test_register_provider_is_used_by_default():
    provider = FakeProvider("registered", supported={"only-registered-term"})
    assert register_provider(provider) is provider
    assert find_by_input("only-registered-term", False) is provider
    assert find_song("only-registered-term", False).songs[0].provider is provider


def test_provider_is_abstract():
    with pytest.raises(TypeError):
        Provider()


def test_playlist_defaults_to_zero_duration():
    playlist = Playlist("t", "a", "u")
    assert playlist.duration == timedelta(0)