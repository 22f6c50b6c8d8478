"""Per-guild music players: the queue, playback loop and idle disconnection."""

from __future__ import annotations

import random
import threading
from concurrent.futures import CancelledError
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import Any, Callable, Protocol

from . import emojis, logger
from .commands import BasicContext, DiscordState
from .embed import Embed
from .providers import Song
from .text import format_text, pick
from .timeutil import format_time


class PlayerState(IntEnum):
    STOPPED = 0
    DESTROYED = 1
    PAUSED = 2
    PLAYING = 3


class VoiceSession(Protocol):
    """A voice connection able to stream audio.

    ``play_url`` blocks until the track ends and raises
    ``concurrent.futures.CancelledError`` when the session is torn down.
    """

    def play_url(self, url: str, is_opus: bool) -> None: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...

    def stop(self) -> None: ...

    def seek(self, position: timedelta) -> None: ...

    def playback_position(self) -> timedelta: ...

    def destroy(self) -> None: ...


@dataclass(eq=False)
class RequestedSong:
    """A queued song together with who asked for it and when."""

    song: Song
    requester: dict[str, Any]
    requested_at: datetime

    def __getattr__(self, name: str) -> Any:
        if name == "song":
            raise AttributeError(name)
        return getattr(self.song, name)

    def to_dict(self) -> dict[str, Any]:
        stamp = self.requested_at.isoformat()
        if stamp.endswith("+00:00"):
            stamp = stamp[:-6] + "Z"
        return {
            "title": self.song.title,
            "author": self.song.author,
            "thumbnail": self.song.thumbnail,
            "url": self.song.url,
            "duration": (self.song.duration // timedelta(microseconds=1)) * 1000,
            "isLive": self.song.is_live,
            "requester": self.requester,
            "requestedAt": stamp,
        }


def _start(target: Callable[..., Any], *args: Any) -> None:
    threading.Thread(target=target, args=args, daemon=True).start()


class Player(BasicContext):
    """Plays a guild's queue through a voice session and reports to a text channel."""

    def __init__(self, manager: PlayerManager, guild_id: Any, text_id: Any, voice_id: Any) -> None:
        super().__init__(text_id, guild_id, manager.client)
        self.manager = manager
        self.text_id = text_id
        self.voice_id = voice_id
        self.voice: VoiceSession | None = None
        self.timer: threading.Timer | None = None
        self.state = PlayerState.STOPPED
        self.current: RequestedSong | None = None
        self.queue: list[RequestedSong] = []
        self._guard = threading.RLock()
        self._loop = threading.Lock()

    def _cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()

    def _drop_first(self) -> None:
        if self.queue:
            del self.queue[0]

    def _now_playing(self, song: RequestedSong) -> Embed:
        requester = song.requester or {}
        return (
            Embed()
            .set_description("%s Tocando agora [%s](%s)", emojis.ANIMATED_HYPE, song.title, song.url)
            .set_image(song.thumbnail)
            .set_color(0x00C1FF)
            .add_field("Autor", song.author, True)
            .add_field("Duração", pick(song.is_live, "--:--", format_time(song.duration)), True)
            .add_field("Provedor", song.provider_name(), True)
            .set_timestamp(song.requested_at)
            .set_footer(format_text("Adicionado por %s", requester.get("username", "")),
                        requester.get("avatar_url", ""))
        )

    def play(self) -> None:
        """Play queued songs until the queue runs dry, then schedule disconnection."""
        while True:
            if not self._loop.acquire(blocking=False):
                return
            try:
                self._play_queue()
            finally:
                self._loop.release()
            if not (self.state is PlayerState.STOPPED and self.voice is not None and self.queue):
                return

    def _play_queue(self) -> None:
        while self.state is PlayerState.STOPPED and self.voice is not None:
            if not self.queue:
                self.stop(True)
                return
            self._cancel_timer()

            song = self.queue[0]
            try:
                song.load()
            except Exception as exc:
                self._drop_first()
                self.send(emojis.CRY, "Um erro ocorreu ao carregar a música **%s**: `%v`", song.title, exc)
                continue

            self._drop_first()
            self.current, self.state = song, PlayerState.PLAYING
            _start(self.send, self._now_playing(song))

            try:
                self.voice.play_url(song.media_url, song.is_opus)
            except CancelledError:
                continue
            except Exception as exc:
                self.send(emojis.CRY, "Um erro ocorreu ao tocar a música **%s**: `%v`", song.title, exc)
            self.current, self.state = None, PlayerState.STOPPED

    def stop(self, schedule: bool) -> None:
        """Tear the player down now, or after the idle timeout when ``schedule`` is set."""
        with self._guard:
            if not schedule:
                self.manager.remove(self, False)
                return
            if self.state is not PlayerState.STOPPED or self.queue:
                logger.warn("something tried to start the timer, but the player is still playing something")
                return
            self._cancel_timer()
            timer = threading.Timer(self.manager.idle_timeout.total_seconds(), self._expire)
            timer.daemon = True
            self.timer = timer
            timer.start()

    def _expire(self) -> None:
        with self._guard:
            self.manager.remove(self, True)

    def pause(self) -> None:
        if self.state is PlayerState.PLAYING:
            self.voice.pause()
            self.state = PlayerState.PAUSED

    def resume(self) -> None:
        if self.state is PlayerState.PAUSED:
            self.voice.resume()
            self.state = PlayerState.PLAYING

    def skip(self) -> None:
        if self.current is None:
            return
        self.current, self.state = None, PlayerState.STOPPED
        self.voice.stop()

    def add_songs(self, requester: dict[str, Any], shuffle: bool, *args: Song) -> None:
        """Queue songs for ``requester`` and start playback in the background."""
        now = datetime.now(timezone.utc)
        self.queue.extend(RequestedSong(song, requester, now) for song in args)
        if shuffle:
            self.shuffle()
        _start(self.play)

    def shuffle(self) -> None:
        random.shuffle(self.queue)


class PlayerManager:
    """Keeps one player per guild."""

    def __init__(self, client: DiscordState, connect_voice: Callable[[Any], VoiceSession],
                 idle_timeout: timedelta = timedelta(minutes=3)) -> None:
        self.client = client
        self.connect_voice = connect_voice
        self.idle_timeout = idle_timeout
        self._players: dict[Any, Player] = {}
        self._lock = threading.Lock()

    def get(self, guild_id: Any) -> Player | None:
        with self._lock:
            return self._players.get(guild_id)

    def get_or_create(self, guild_id: Any, text_id: Any, voice_id: Any) -> Player:
        """Return the guild's player, creating it if needed, and halt its idle timer."""
        player = self.get(guild_id)
        if player is None:
            player = self.create(guild_id, text_id, voice_id)
        if player.timer is not None:
            player.timer.cancel()
        return player

    def create(self, guild_id: Any, text_id: Any, voice_id: Any) -> Player:
        """Register a new player and connect it to the voice channel in the background."""
        with self._lock:
            existing = self._players.get(guild_id)
            if existing is not None:
                logger.warn("something tried to create a new player for a guild that already has an existing player")
                return existing
            player = Player(self, guild_id, text_id, voice_id)
            self._players[guild_id] = player
        _start(self._connect, player)
        return player

    def _connect(self, player: Player) -> None:
        try:
            session = self.connect_voice(player.voice_id)
        except Exception as exc:
            player.send(emojis.CRY, "Um erro ocorreu ao tentar se conectar ao canal de voz: ```py\n%+v```", exc)
            player.stop(False)
            return
        player.voice = session
        player.play()

    def remove(self, player: Player | None, scheduled: bool) -> None:
        """Destroy ``player``; a scheduled removal is skipped while it has work left."""
        if player is None or player.state is PlayerState.DESTROYED:
            return
        if scheduled and (player.state is not PlayerState.STOPPED or player.queue):
            return

        player.state = PlayerState.DESTROYED
        player.queue.clear()
        if player.timer is not None:
            player.timer.cancel()
        if player.voice is not None:
            player.voice.destroy()
        with self._lock:
            self._players.pop(player.guild_id, None)