# anny

The building blocks of a Discord bot for Portuguese-speaking servers. The bot
queues and plays music in voice channels, shows lyrics, lists its own
commands and offers a small HTTP API that reports what each server is playing.
All user-facing messages are in Portuguese.

## Commands

The commands are grouped into modules:

| Module      | Command       | What it does                                           |
|-------------|---------------|--------------------------------------------------------|
| Música      | `/tocar`      | Queue a song or playlist by name or URL (autocomplete) |
|             | `/pular`      | Skip the current song                                  |
|             | `/parar`      | Stop, clear the queue and leave the voice channel      |
|             | `/pausar`     | Pause or resume the current song                       |
|             | `/despausar`  | Pause or resume the current song                       |
|             | `/seek`       | Jump to a position (`05:05` or `5m5s`)                 |
|             | `/tocando`    | Show the song that is playing now                      |
|             | `/embaralhar` | Shuffle the queue                                      |
|             | `/fila`       | Show up to 20 queued songs                             |
|             | `/letra`      | Show the lyrics of a song or of the current one        |
| Miscelânea  | `/ajuda`      | List every command                                     |
|             | `/ping`       | Show the gateway latency                               |

By default, a player that has sat idle for three minutes is destroyed and
its voice session is closed. You can change this with the `idle_timeout` of
`PlayerManager`. If the bot is removed from its voice channel, the player is
torn down. The bot then posts a message that names the member who
disconnected it, if the audit log shows one within the last five seconds.

## Building blocks

- `anny.client.Client(state)` wraps a Discord session object. It registers
  modules with `add_module`/`add_modules` and opens the session with
  `connect`. `deploy_commands` brings Discord's command list in line with the
  registered commands: it creates, edits and deletes commands, and raises
  `RuntimeError` on failure. `handle_interaction` routes commands and
  autocompletion. If a handler raises, the user gets the traceback as the
  answer.
- `anny.commands` defines `Command`, `StringOption`, `BooleanOption`,
  `InteractionEvent` and the contexts handed to handlers: `CommandContext`
  has `argument`, `reply`, `edit`, `ephemeral`, `stacktrace` and more, and
  `BasicContext.send` posts to a channel.
- `anny.player.PlayerManager(client, connect_voice, idle_timeout)` keeps one
  `Player` per guild. A `Player` plays its queue through a voice session and
  announces each song in the text channel.
- `anny.providers` has the `Provider` interface, `Song`, `Playlist` and
  `QueryResult`. `find_song(term, query_support, providers)` uses the first
  provider that supports the term. When `providers` is `None`, it uses those
  added with `register_provider`.
- `anny.youtube.YoutubeProvider(backend)` handles video links, playlist links
  and free-text searches. It keeps loaded videos in a cache until their
  stream URLs expire.
- `anny.music.MusicModule(client, players, providers, lyrics_search, suggest)`
  implements the music commands and the voice-state listener. `module()`
  returns the `Module` to register.
- `anny.misc.build_misc_module()` returns the help and ping commands. The
  help command lists `anny.misc.MODULES`, so point it at the client's list
  (`misc.MODULES = client.modules`).
- `anny.rest.create_app(players)` returns a Flask application. It serves
  `GET /api/player/<id>` with the current song, the queue, the player state
  and the playback position in nanoseconds. Errors come back as
  `{"data": null, "error": ...}`. `build_rest_module(players, port)` wraps
  the application as a module that starts the server on `0.0.0.0:port` when
  it is added.

Wiring it together looks like this:

```python
from anny import misc
from anny.client import Client
from anny.music import MusicModule
from anny.player import PlayerManager
from anny.providers import register_provider
from anny.rest import build_rest_module
from anny.youtube import YoutubeProvider

client = Client(state)                       # your DiscordState implementation
players = PlayerManager(client.state, connect_voice)
register_provider(YoutubeProvider(backend))  # your YoutubeBackend implementation

music = MusicModule(client, players, None, lyrics_search)
client.add_modules(music.module(), misc.build_misc_module(), build_rest_module(players, 8080))
misc.MODULES = client.modules

client.connect()
client.deploy_commands()
```

## Helpers

```python
from anny.embed import Embed
from anny.timeutil import format_time, parse_duration

parse_duration("05:05")                  # timedelta(minutes=5, seconds=5)
parse_duration("1h2m3s")                 # unit-suffixed durations work too
format_time(parse_duration("1:02:03"))   # "01:02:03"

embed = Embed()
embed.set_color(0x00C1FF)
embed.set_description("%s Tocando agora", "♪")
embed.add_field("Autor", "Someone", True)
payload = embed.to_dict()
```

- `anny.text.format_text` does printf-style formatting (`%v`, `%s`, `%d`,
  `%x`, `%f`, `%t`, `%q`).
- `anny.web.from_web` and `from_web_string` fetch a URL over HTTP.
- `anny.logger` writes coloured, timestamped lines. `info` and `debug` go to
  standard output. `warn`, `error` and `fatal` go to standard error, and
  `fatal` also exits with status 1.

## What the package does not do

You must supply several parts yourself. The package leaves out:

- the Discord gateway and REST connection. `Client` works with any object
  that has the methods listed by `anny.commands.DiscordState`.
- voice streaming. `PlayerManager` takes a `connect_voice(voice_id)` callable
  that returns an object with the methods of `anny.player.VoiceSession`.
- YouTube metadata and stream lookup. `YoutubeProvider` needs an object with
  the methods of `anny.youtube.YoutubeBackend`.
- lyrics lookup. `MusicModule` takes a `lyrics_search(query)` callable that
  returns entries with `title`, `url`, `image`, `artist_name`, `artist_image`
  and a `lyrics()` method. Autocompletion falls back to YouTube search
  suggestions fetched over HTTP unless you pass `suggest`.
- a command-line entry point and reading settings from the environment. You
  start the bot from your own code, as shown above.