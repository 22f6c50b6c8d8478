"""Song sources: the provider interface, songs, playlists and provider lookup."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta


class Provider(ABC):
    """A place songs can be searched for and loaded from."""

    @abstractmethod
    def display_name(self) -> str: ...

    @abstractmethod
    def is_supported(self, term: str, query: bool) -> bool: ...

    @abstractmethod
    def find(self, term: str) -> QueryResult | None: ...

    @abstractmethod
    def is_loaded(self, song: Song) -> bool: ...

    @abstractmethod
    def load(self, song: Song) -> None: ...


@dataclass
class Playlist:
    title: str
    author: str
    url: str
    duration: timedelta = timedelta(0)


@dataclass(eq=False)
class Song:
    title: str = ""
    author: str = ""
    thumbnail: str = ""
    url: str = ""
    media_url: str = ""
    duration: timedelta = timedelta(0)
    is_live: bool = False
    is_opus: bool = False
    expires: datetime | None = None
    provider: Provider | None = field(default=None, repr=False)

    def _source(self) -> Provider:
        if self.provider is None:
            raise RuntimeError(f"song {self.title!r} has no provider")
        return self.provider

    def is_loaded(self) -> bool:
        return self._source().is_loaded(self)

    def load(self) -> None:
        """Load the media details unless they are already loaded."""
        if not self.is_loaded():
            self._source().load(self)

    def provider_name(self) -> str:
        return self._source().display_name()


@dataclass
class QueryResult:
    songs: list[Song] = field(default_factory=list)
    playlist: Playlist | None = None


_PROVIDERS: list[Provider] = []


def register_provider(provider: Provider) -> Provider:
    """Add ``provider`` to the providers consulted by default and return it."""
    _PROVIDERS.append(provider)
    return provider


def find_by_input(term: str, query_support: bool,
                  providers: Iterable[Provider] | None = None) -> Provider | None:
    """Return the first provider that supports ``term``, or None."""
    candidates = _PROVIDERS if providers is None else providers
    return next((p for p in candidates if p.is_supported(term, query_support)), None)


def find_song(term: str, query_support: bool,
              providers: Iterable[Provider] | None = None) -> QueryResult | None:
    """Look ``term`` up with the first provider that supports it."""
    provider = find_by_input(term, query_support, providers)
    return None if provider is None else provider.find(term)