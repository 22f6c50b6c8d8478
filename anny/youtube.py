"""YouTube song provider built on a pluggable metadata backend."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Protocol

from . import emojis
from .providers import Playlist, Provider, QueryResult, Song
from .web import LINK_REGEX, from_web_string

_VIDEO_REGEX = re.compile(
    r"^((?:https?:)?\/\/)?((?:www|m)\.)?((?:youtube\.com|youtu.be))"
    r"(\/(?:[\w\-]+\?v=|embed\/|v\/)?)([\w\-]+)(\S+)?\Z",
    re.ASCII,
)
_PLAYLIST_REGEX = re.compile(r"[&?]list=([A-Za-z0-9_-]{13,42})(&.*)?\Z")
_HLS_REGEX = re.compile(
    r"(https?:\/\/(www\.)?[-a-zA-Z0-9@:%._\+~#=]{2,256}\.[a-z]{2,6}\b"
    r"([-a-zA-Z0-9@:%_\+.~#,?&*//=]*)(.m3u8)\b([-a-zA-Z0-9@:%_\+.~#,?&//=]*))",
    re.ASCII,
)
_ID_PATTERNS = (
    re.compile(r"(?:v|embed|shorts|watch\?v)(?:=|/)([^\"&?/=%]{11})"),
    re.compile(r"(?:=|/)([^\"&?/=%]{11})"),
    re.compile(r"([^\"&?/=%]{11})"),
)
_EXPIRE_DIGITS = re.compile(r"[+-]?[0-9]+")

OPUS_ITAG = 251
M4A_ITAG = 140
SEARCH_LIMIT = 5
LIVE_EXPIRY = timedelta(minutes=10)


@dataclass
class VideoInfo:
    id: str
    title: str
    author: str
    duration: timedelta = timedelta(0)
    itags: tuple[int, ...] = ()
    qualities: tuple[str, ...] = ()
    hls_manifest_url: str = ""


@dataclass
class PlaylistEntry:
    id: str
    title: str
    author: str
    duration: timedelta = timedelta(0)


@dataclass
class PlaylistInfo:
    id: str
    title: str
    author: str
    entries: list[PlaylistEntry] = field(default_factory=list)


@dataclass
class SearchItem:
    title: str
    url: str
    uploader: str = ""
    thumbnail: str = ""
    duration: timedelta | None = None
    live: bool = False


class YoutubeBackend(Protocol):
    """Fetches YouTube metadata; every method raises on failure."""

    def get_video(self, video_id: str) -> VideoInfo: ...

    def get_playlist(self, url: str) -> PlaylistInfo: ...

    def get_stream_url(self, video: VideoInfo, itag: int) -> str: ...

    def search(self, term: str, limit: int) -> list[SearchItem]: ...


def extract_video_id(term: str) -> str:
    """Pull the video id out of a YouTube URL, or validate a bare id."""
    video_id = term
    if "youtu" in video_id or any(ch in video_id for ch in "\"?&/<%="):
        for pattern in _ID_PATTERNS:
            match = pattern.search(video_id)
            if match:
                video_id = match.group(1)
    if any(ch in video_id for ch in "?&/<%="):
        raise ValueError("invalid characters in video id")
    if len(video_id) < 10:
        raise ValueError("the video id must be at least 10 characters long")
    return video_id


def get_expires(url: str) -> datetime:
    """Read the ``expire=`` Unix timestamp out of a stream URL."""
    first = url.find("expire=")
    if first == -1:
        raise ValueError("unexpected URL")
    end = url.find("&", first)
    if end == -1:
        raise ValueError("unexpected URL")
    digits = url[first + 7:end]
    if not _EXPIRE_DIGITS.fullmatch(digits):
        raise ValueError(f"invalid expiry {digits!r}")
    try:
        return datetime.fromtimestamp(int(digits), tz=timezone.utc)
    except (OverflowError, OSError) as exc:
        raise ValueError(f"invalid expiry {digits!r}") from exc


def get_live_url(manifest_url: str) -> str:
    """Fetch an HLS manifest and return the first playlist URL inside it."""
    body = from_web_string(manifest_url)
    match = _HLS_REGEX.search(body)
    if match is None or not match.group(0):
        raise ValueError("no valid URL found within HLS")
    return match.group(0)


def _thumbnail(video_id: str, size: str = "mqdefault") -> str:
    return f"https://img.youtube.com/vi/{video_id}/{size}.jpg"


class YoutubeProvider(Provider):
    """Finds videos, playlists and search results on YouTube."""

    def __init__(self, backend: YoutubeBackend) -> None:
        self.backend = backend
        self._cache: dict[str, Song] = {}

    def display_name(self) -> str:
        return f"{emojis.YOUTUBE} YouTube"

    def is_supported(self, term: str, query: bool) -> bool:
        return bool(
            _VIDEO_REGEX.search(term)
            or (query and not LINK_REGEX.search(term))
            or _PLAYLIST_REGEX.search(term)
        )

    def is_loaded(self, song: Song) -> bool:
        if song.expires is None:
            return False
        return datetime.now(timezone.utc) + song.duration <= song.expires

    def load(self, song: Song) -> None:
        loaded = self._handle_video(song.url)
        song.media_url = loaded.media_url
        song.is_opus = loaded.is_opus
        song.expires = loaded.expires
        song.thumbnail = loaded.thumbnail

    def find(self, term: str) -> QueryResult | None:
        if _PLAYLIST_REGEX.search(term):
            return self._handle_playlist(term)
        if _VIDEO_REGEX.search(term):
            return QueryResult(songs=[self._handle_video(term)])

        items = self.backend.search(term, SEARCH_LIMIT)
        if not items:
            return None
        return QueryResult(songs=[
            Song(
                title=item.title,
                url=item.url,
                author=item.uploader,
                thumbnail=item.thumbnail,
                duration=item.duration or timedelta(0),
                is_live=item.live,
                provider=self,
            )
            for item in items
        ])

    def _handle_playlist(self, url: str) -> QueryResult:
        try:
            info = self.backend.get_playlist(url)
        except Exception as error:
            try:
                return QueryResult(songs=[self._handle_video(url)])
            except Exception:
                raise error from None

        playlist = Playlist(
            title=info.title,
            author=info.author,
            url=f"https://youtube.com/playlist?list={info.id}",
        )
        songs = []
        for entry in info.entries:
            playlist.duration += entry.duration
            songs.append(Song(
                title=entry.title,
                author=entry.author,
                duration=entry.duration,
                thumbnail=_thumbnail(entry.id),
                url=f"https://youtu.be/{entry.id}",
                provider=self,
            ))
        return QueryResult(songs=songs, playlist=playlist)

    def _handle_video(self, term: str) -> Song:
        video_id = extract_video_id(term)
        cached = self._cache.get(video_id)
        if cached is not None and self.is_loaded(cached):
            return cached

        video = self.backend.get_video(video_id)
        is_live = video.duration <= timedelta(0)
        is_opus = False
        if not is_live:
            if OPUS_ITAG in video.itags:
                itag, is_opus = OPUS_ITAG, True
            elif M4A_ITAG in video.itags:
                itag = M4A_ITAG
            else:
                raise ValueError(f"no audio format available for video {video.id}")
            media_url = self.backend.get_stream_url(video, itag)
            expires = get_expires(media_url)
        else:
            media_url = get_live_url(video.hls_manifest_url)
            expires = datetime.now(timezone.utc) + LIVE_EXPIRY

        size = "maxresdefault" if "720p" in video.qualities else "mqdefault"
        song = Song(
            title=video.title,
            author=video.author,
            url=f"https://youtu.be/{video.id}",
            duration=video.duration,
            thumbnail=_thumbnail(video.id, size),
            media_url=media_url,
            expires=expires,
            is_live=video.duration == timedelta(0),
            is_opus=is_opus,
            provider=self,
        )
        if not song.is_live:
            self._cache[video_id] = song
        return song