"""Music commands: playback control, the queue, lyrics and voice-state handling."""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timedelta, timezone
from typing import Any
from urllib.parse import quote_plus

from . import emojis
from .client import Client, Event, Module
from .commands import AutoCompleteContext, BooleanOption, Command, CommandContext, StringOption
from .embed import Embed
from .player import Player, PlayerManager, PlayerState
from .providers import Provider, find_by_input, find_song
from .text import format_text, pick
from .timeutil import format_time, parse_duration
from .web import from_web_string

VOICE_STATE_UPDATE = "VOICE_STATE_UPDATE"
MEMBER_DISCONNECT = 27
DISCORD_EPOCH_MS = 1420070400000
KICK_WINDOW = timedelta(seconds=5)
MAX_LYRICS_LENGTH = 4096
QUEUE_PAGE_SIZE = 20
SUGGEST_URL = "http://suggestqueries.google.com/complete/search?client=youtube&ds=yt&client=chrome&q="

NOT_IN_VOICE = "Você não está conectado em nenhum canal de voz."
NOTHING_PLAYING = "Não há nada tocando no momento."
LIVE_FORBIDDEN = "Você não pode fazer isso em transmissões ao vivo."


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _is_null(value: Any) -> bool:
    return value is None or str(value) in ("", "0")


def _created_at(snowflake: Any) -> datetime:
    millis = (int(snowflake) >> 22) + DISCORD_EPOCH_MS
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def _google_suggestions(query: str) -> list[str]:
    body = from_web_string(SUGGEST_URL + quote_plus(query))
    try:
        data = json.loads(body)
    except ValueError:
        return []
    if not isinstance(data, list) or len(data) < 2 or not isinstance(data[1], list):
        return []
    return [entry if isinstance(entry, str) else json.dumps(entry) for entry in data[1]]


def check_idle(player: Player) -> None:
    """Schedule disconnection when the player has nothing playing or queued."""
    if player.state is not PlayerState.STOPPED or player.queue:
        return
    player.stop(True)


class MusicModule:
    """The music commands and the voice-state listener, bound to one player manager.

    ``lyrics_search(query)`` returns a list of entries (empty when nothing was
    found); each entry has ``title``, ``url``, ``image``, ``artist_name``,
    ``artist_image`` and a ``lyrics()`` method. ``suggest(query)`` returns
    search suggestions for autocompletion and defaults to YouTube suggestions.
    """

    def __init__(self, client: Client, players: PlayerManager,
                 providers: Iterable[Provider] | None,
                 lyrics_search: Callable[[str], Sequence[Any]],
                 suggest: Callable[[str], Iterable[str]] | None = None) -> None:
        self.client = client
        self.players = players
        self.providers = list(providers) if providers is not None else None
        self.lyrics_search = lyrics_search
        self.suggest = suggest or _google_suggestions

    def _require_voice(self, ctx: CommandContext) -> bool:
        if ctx.voice_state() is None:
            ctx.ephemeral().reply(emojis.CRY, NOT_IN_VOICE)
            return False
        return True

    def play(self, ctx: CommandContext) -> None:
        query, shuffle = str(ctx.argument(0)), ctx.argument(1).as_bool()

        state = ctx.voice_state()
        if state is None:
            ctx.ephemeral().reply(emojis.CRY, NOT_IN_VOICE)
            return

        embed = Embed().set_color(0xF0FF00).set_description(
            "%s Obtendo resultados para sua pesquisa...", emojis.ANIMATED_STAFF)
        ctx.reply(embed)

        player = self.players.get_or_create(ctx.guild_id, ctx.channel_id, _field(state, "channel_id"))
        try:
            self._enqueue(ctx, player, embed, query, shuffle)
        finally:
            check_idle(player)

    def _enqueue(self, ctx: CommandContext, player: Player, embed: Embed,
                 query: str, shuffle: bool) -> None:
        try:
            result = find_song(query, True, self.providers)
        except Exception as exc:
            ctx.stacktrace(exc)
            return

        if result is None or (result.playlist is None and not result.songs):
            ctx.reply(embed.set_color(0xF93A2F).set_description(
                "%s Não consegui encontrar essa música.", emojis.CRY))
            return

        if result.playlist is not None:
            playlist = result.playlist
            player.add_songs(ctx.sender, shuffle, *result.songs)
            ctx.reply(
                embed.set_color(0x00D166)
                .set_description("%s Lista de reprodução [%s](%s) adicionada na fila",
                                 emojis.YEAH, playlist.title, playlist.url)
                .add_field("Criador", playlist.author, True)
                .add_field("Músicas", len(result.songs), True)
                .add_field("Duração", format_time(playlist.duration), True)
            )
            return

        song = result.songs[0]
        (embed.set_thumbnail(song.thumbnail)
         .add_field("Autor", song.author, True)
         .add_field("Duração", pick(song.is_live, "--:--", format_time(song.duration)), True)
         .add_field("Provedor", song.provider_name(), True))

        if not song.is_loaded():
            ctx.reply(embed.set_description("%s Carregando [%s](%s)",
                                            emojis.ANIMATED_STAFF, song.title, song.url))
            try:
                song.load()
            except Exception as exc:
                ctx.stacktrace(exc)
                return

        player.add_songs(ctx.sender, shuffle, song)
        ctx.reply(
            embed.set_color(0x00D166)
            .set_thumbnail(song.thumbnail)
            .set_description("%s Música [%s](%s) adicionada na fila", emojis.YEAH, song.title, song.url)
        )

    def autocomplete(self, ctx: AutoCompleteContext) -> list[dict[str, str]]:
        value = ctx.data["options"][0].get("value", "")
        text = value if isinstance(value, str) else json.dumps(value)
        query = text.replace('"', "")
        if not query.strip():
            return []

        if find_by_input(query, False, self.providers) is not None:
            return [{"name": query, "value": query}]

        return [{"name": choice, "value": choice} for choice in self.suggest(query)]

    def skip(self, ctx: CommandContext) -> None:
        if not self._require_voice(ctx):
            return
        player = self.players.get(ctx.guild_id)
        if player is None or player.state is PlayerState.STOPPED:
            ctx.ephemeral().reply(emojis.CRY, "Não há nada para pular no momento.")
            return
        player.skip()
        ctx.reply(emojis.OK, "Música pulada com sucesso.")

    def stop(self, ctx: CommandContext) -> None:
        if not self._require_voice(ctx):
            return
        player = self.players.get(ctx.guild_id)
        if player is None:
            ctx.ephemeral().reply(emojis.CRY, NOTHING_PLAYING)
            return
        player.stop(False)
        ctx.reply(emojis.OK, "Batidão parado com sucesso.")

    def pause_or_resume(self, ctx: CommandContext) -> None:
        if not self._require_voice(ctx):
            return
        player = self.players.get(ctx.guild_id)
        if player is None or player.state is PlayerState.STOPPED or player.current is None:
            ctx.ephemeral().reply(emojis.CRY, NOTHING_PLAYING)
            return
        if player.current.is_live:
            ctx.ephemeral().reply(emojis.CRY, LIVE_FORBIDDEN)
            return

        if player.state is PlayerState.PLAYING:
            player.pause()
            ctx.reply(emojis.OK, "Batidão pausada com sucesso.")
        else:
            player.resume()
            ctx.reply(emojis.OK, "Batidão despausado com sucesso.")

    def seek(self, ctx: CommandContext) -> None:
        if not self._require_voice(ctx):
            return
        player = self.players.get(ctx.guild_id)
        if player is None or player.state is not PlayerState.PLAYING or player.current is None:
            ctx.ephemeral().reply(emojis.CRY, "Não há nada tocando no momento ou o batidão está pausado.")
            return
        if player.current.is_live:
            ctx.ephemeral().reply(emojis.CRY, LIVE_FORBIDDEN)
            return

        try:
            position = parse_duration(str(ctx.argument(0)))
        except ValueError:
            position = None
        if position is None or position < timedelta(0) or position > player.current.duration:
            ctx.ephemeral().reply(emojis.CRY, "Duração inválida ou maior que a duração total da música.")
            return

        player.voice.seek(position)
        ctx.reply(emojis.OK, "Posição do batidão alterada para os minutos `%s`.", format_time(position))

    def now_playing(self, ctx: CommandContext) -> None:
        player = self.players.get(ctx.guild_id)
        if player is None or player.state is PlayerState.STOPPED or player.current is None:
            ctx.ephemeral().reply(emojis.CRY, NOTHING_PLAYING)
            return

        current = player.current
        requester = current.requester or {}
        position = player.voice.playback_position() if player.voice is not None else timedelta(0)
        embed = (
            Embed()
            .set_description("%s Tocando no momento: **[%s](%s)**", emojis.ANIMATED_HYPE, current.title, current.url)
            .set_thumbnail(current.thumbnail)
            .set_color(0x00FF59)
            .add_field("Autor", current.author, True)
            .add_field("Duração", format_text("%v/%v", format_time(position),
                                              pick(current.is_live, "--:--", format_time(current.duration))), True)
            .add_field("Provedor", current.provider_name(), True)
            .set_footer(format_text("Adicionado por %s#%s", requester.get("username", ""),
                                    requester.get("discriminator", "")),
                        requester.get("avatar_url", ""))
            .set_timestamp(current.requested_at)
        )

        if player.state is PlayerState.PAUSED:
            embed.set_color(0xB4BE10).set_description(
                "%s Pausado no momento em: [%s](%s)", emojis.CRY, current.title, current.url)

        ctx.reply(embed)

    def shuffle(self, ctx: CommandContext) -> None:
        if not self._require_voice(ctx):
            return
        player = self.players.get(ctx.guild_id)
        if player is None or player.state is PlayerState.STOPPED:
            ctx.ephemeral().reply(emojis.CRY, NOTHING_PLAYING)
            return
        if len(player.queue) < 2:
            ctx.ephemeral().reply(emojis.CRY, "Não há músicas suficientes para embaralhar na fila.")
            return
        player.shuffle()
        ctx.reply(emojis.OK, "Músicas embaralhadas com sucesso.")

    def queue(self, ctx: CommandContext) -> None:
        player = self.players.get(ctx.guild_id)
        if player is None or not player.queue:
            ctx.ephemeral().reply(emojis.CRY, "Não há nada na fila no momento.")
            return

        shown = player.queue[:QUEUE_PAGE_SIZE]
        text = "".join(
            format_text("**%d** - [%s](%s)\n", number, track.title, track.url)
            for number, track in enumerate(shown, start=1)
        )
        sender = ctx.sender or {}
        ctx.reply(
            Embed()
            .set_color(0xA652BB)
            .set_description("%s", text)
            .set_footer(format_text("Mostrando %d de %d músicas", len(shown), len(player.queue)),
                        sender.get("avatar_url", ""))
            .set_timestamp(datetime.now(timezone.utc))
        )

    def lyrics(self, ctx: CommandContext) -> None:
        player = self.players.get(ctx.guild_id)
        query, replaced = str(ctx.argument(0)), False
        if not query:
            if player is None or player.current is None:
                ctx.reply(emojis.CRY, "Não há nada tocando no momento, e você não passou nenhuam música para obter a letra.")
                return
            current = player.current
            if "-" in current.title:
                query = current.title
            else:
                query, replaced = format_text("%s - %s", current.author, current.title), True

        embed = Embed().set_color(0xF0FF00).set_description("%s Obtendo resultados...", emojis.ANIMATED_STAFF)
        ctx.reply(embed)

        try:
            results = list(self.lyrics_search(query))
            if not results and replaced and player is not None and player.current is not None:
                results = list(self.lyrics_search(player.current.title))
        except Exception as exc:
            ctx.stacktrace(exc)
            return

        if not results:
            ctx.reply(embed.set_color(0xF93A2F).set_description(
                "%s Não consegui achar a letra dessa música.", emojis.CRY))
            return

        entry = results[0]
        ctx.reply(embed.set_description("%s Carregando letra...", emojis.ANIMATED_STAFF))

        try:
            text = entry.lyrics()
        except Exception as exc:
            ctx.stacktrace(exc)
            return

        if len(text) > MAX_LYRICS_LENGTH:
            ctx.reply(embed.set_color(0xF93A2F).set_description(
                "%s A letra dessa música é muito grande.", emojis.CRY))
            return

        ctx.reply(
            embed.set_color(0x0099E1)
            .set_author(entry.artist_name, entry.artist_image)
            .set_url(entry.url)
            .set_title("%s", entry.title)
            .set_description("%s", text)
            .set_thumbnail(entry.image)
        )

    def on_voice_state_update(self, event: Any) -> None:
        """Tear down the guild's player when the bot is removed from its voice channel."""
        user = self.client.user or {}
        if _field(event, "user_id") != user.get("id"):
            return

        guild_id = _field(event, "guild_id")
        player = self.players.get(guild_id)
        if player is None or not _is_null(_field(event, "channel_id")):
            return

        player.stop(False)

        try:
            logs = self.client.state.audit_log(guild_id, MEMBER_DISCONNECT, 1)
        except Exception:
            logs = None
        users = _field(logs, "users") or []
        entries = _field(logs, "entries") or []
        if users and entries:
            entry = entries[0]
            age = datetime.now(timezone.utc) - _created_at(_field(entry, "id"))
            if age < KICK_WINDOW:
                player.send(emojis.CRY, "O vacilão do <@%s> me expulsou do batidão, bonk nele %s",
                            _field(entry, "user_id"), emojis.ANIMATED_BONK)
                return
        player.send(emojis.ANIMATED_BONK, "Quem foi o vacião que me expulsou do batidão? %s", emojis.CRY)

    def module(self) -> Module:
        """Return the module holding the music commands and events."""
        pause_description = "Pausar ou despausar a música atual"
        commands = [
            Command(
                name="tocar", description="Sistema de músicas", handler=self.play,
                options=[
                    StringOption("musica", "Nome, ou URL de uma música ou playlist",
                                 required=True, autocomplete=True),
                    BooleanOption("embaralhar", "Embaralhar as músicas da fila"),
                ],
                autocomplete_handler=self.autocomplete,
            ),
            Command(name="pular", description="Pular a música atual", handler=self.skip),
            Command(name="parar",
                    description="Parar a música atual, limpar a fila e desconectar do canal de voz.",
                    handler=self.stop),
            Command(name="pausar", description=pause_description, handler=self.pause_or_resume),
            Command(name="despausar", description=pause_description, handler=self.pause_or_resume),
            Command(
                name="seek", description="Alterar a posição do batidão", handler=self.seek,
                options=[StringOption("posição",
                                      "Posição desejada, exemplo de formatos válidos: 05:05 ou 5m5s",
                                      required=True)],
            ),
            Command(name="tocando",
                    description="Mostra as informações dá música que estiver tocando no momento",
                    handler=self.now_playing),
            Command(name="embaralhar", description="Embaralhar as músicas da fila", handler=self.shuffle),
            Command(name="fila", description="Mostra as músicas adicionadas na fila", handler=self.queue),
            Command(
                name="letra", description="Mostra a letra da música", handler=self.lyrics,
                options=[StringOption("nome", "nome da música")],
            ),
        ]
        return Module(
            name="Música",
            emote=emojis.YEAH,
            commands=commands,
            events=[Event(VOICE_STATE_UPDATE, self.on_voice_state_update)],
        )