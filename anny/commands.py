"""Slash-command definitions and the contexts handed to command handlers."""

from __future__ import annotations

import contextlib
import json
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from . import emojis, logger
from .embed import Embed
from .text import format_text

CHAT_INPUT = 1
APPLICATION_COMMAND = 2
AUTOCOMPLETE = 4
MESSAGE_WITH_SOURCE = 4
DEFERRED_MESSAGE_WITH_SOURCE = 5
AUTOCOMPLETE_RESULT = 8
EPHEMERAL = 1 << 6
STRING_OPTION = 3
BOOLEAN_OPTION = 5


class DiscordState(Protocol):
    """The Discord session operations the bot relies on; failures are raised."""

    def add_handler(self, event: str, handler: Callable[[Any], Any]) -> None: ...
    def open(self) -> None: ...
    def close(self) -> None: ...
    def me(self) -> dict[str, Any]: ...
    def latency(self) -> float: ...
    def current_application(self) -> dict[str, Any]: ...
    def commands(self, app_id: Any) -> list[dict[str, Any]]: ...
    def create_command(self, app_id: Any, data: dict[str, Any]) -> Any: ...
    def edit_command(self, app_id: Any, command_id: Any, data: dict[str, Any]) -> Any: ...
    def delete_command(self, app_id: Any, command_id: Any) -> None: ...
    def respond_interaction(self, interaction_id: Any, token: str, response: dict[str, Any]) -> None: ...
    def edit_interaction_response(self, app_id: Any, token: str, data: dict[str, Any]) -> Any: ...
    def guild(self, guild_id: Any) -> Any: ...
    def voice_state(self, guild_id: Any, user_id: Any) -> Any: ...
    def send_message(self, channel_id: Any, data: dict[str, Any]) -> Any: ...
    def audit_log(self, guild_id: Any, action_type: int, limit: int) -> Any: ...


@dataclass
class StringOption:
    name: str
    description: str
    required: bool = False
    autocomplete: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = {"type": STRING_OPTION, "name": self.name, "description": self.description}
        data.update({key: True for key in ("required", "autocomplete") if getattr(self, key)})
        return data


@dataclass
class BooleanOption:
    name: str
    description: str
    required: bool = False

    def to_dict(self) -> dict[str, Any]:
        data = {"type": BOOLEAN_OPTION, "name": self.name, "description": self.description}
        if self.required:
            data["required"] = True
        return data


@dataclass
class InteractionEvent:
    """An incoming interaction: ``data`` holds the command name and its options."""

    id: Any
    app_id: Any
    token: str
    type: int
    data: dict[str, Any]
    guild_id: Any = None
    channel_id: Any = None
    member: dict[str, Any] | None = None
    user: dict[str, Any] | None = None

    @property
    def sender(self) -> dict[str, Any] | None:
        if self.member is not None and self.member.get("user") is not None:
            return self.member["user"]
        return self.user


@dataclass
class Command:
    name: str
    description: str
    handler: Callable[[CommandContext], Any] | None = None
    module: Any = None
    deferred: bool = False
    type: int = CHAT_INPUT
    options: list[Any] = field(default_factory=list)
    autocomplete_handler: Callable[[AutoCompleteContext], list[dict[str, Any]]] | None = None

    def to_payload(self) -> dict[str, Any]:
        """Return the command as the data Discord expects when creating it."""
        data: dict[str, Any] = {"name": self.name, "description": self.description, "type": self.type}
        if self.options:
            data["options"] = [option.to_dict() for option in self.options]
        return data


class Argument:
    """One option passed to a command, or an empty one when absent."""

    def __init__(self, option: dict[str, Any] | None = None) -> None:
        self.option = option

    def as_bool(self) -> bool:
        value = None if self.option is None else self.option.get("value")
        if isinstance(value, str):
            with contextlib.suppress(ValueError):
                value = json.loads(value)
        return value if isinstance(value, bool) else False

    def __str__(self) -> str:
        value = None if self.option is None else self.option.get("value")
        if value is None:
            return ""
        return value if isinstance(value, str) else json.dumps(value)


@dataclass
class _Response:
    content: str | None = None
    embeds: list[dict[str, Any]] | None = None
    flags: int = 0
    files: list[Any] = field(default_factory=list)

    def payload(self, with_flags: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.content is not None:
            data["content"] = self.content
        if self.embeds is not None:
            data["embeds"] = self.embeds
        if self.flags and with_flags:
            data["flags"] = self.flags
        if self.files:
            data["files"] = list(self.files)
        return data

    def apply(self, args: tuple[Any, ...]) -> None:
        """Take message text or an embed from reply arguments."""
        if len(args) > 1:
            if not isinstance(args[1], str):
                raise TypeError("the second reply argument must be a format string")
            self.content = format_text("%v | %v", args[0], format_text(args[1], *args[2:]))
        elif len(args) == 1:
            if isinstance(args[0], Embed):
                self.embeds = [args[0].to_dict()]
            else:
                self.content = format_text("%v", args[0])


class CommandContext:
    """State for answering one command interaction."""

    def __init__(self, event: InteractionEvent, client: DiscordState,
                 data: dict[str, Any], sent: bool = False) -> None:
        self.event = event
        self.client = client
        self.data = data
        self.sent = sent
        self._lock = threading.RLock()
        self._response = _Response()

    @property
    def guild_id(self) -> Any:
        return self.event.guild_id

    @property
    def channel_id(self) -> Any:
        return self.event.channel_id

    @property
    def sender(self) -> dict[str, Any] | None:
        return self.event.sender

    @property
    def response(self) -> dict[str, Any]:
        return self._response.payload()

    def argument(self, index: int) -> Argument:
        options = self.data.get("options") or []
        return Argument(options[index]) if 0 <= index < len(options) else Argument()

    def _has_guild(self) -> bool:
        return self.guild_id is not None and str(self.guild_id) not in ("", "0", "-1")

    def guild(self) -> Any:
        if not self._has_guild():
            return None
        try:
            return self.client.guild(self.guild_id)
        except Exception:
            return None

    def voice_state(self) -> Any:
        if not self._has_guild():
            return None
        try:
            return self.client.voice_state(self.guild_id, (self.sender or {}).get("id"))
        except Exception:
            return None

    def file(self, file: Any) -> CommandContext:
        self._response.files.append(file)
        return self

    def embed(self, embed: Embed) -> CommandContext:
        self._response.embeds = [embed.to_dict()]
        return self

    def ephemeral(self) -> CommandContext:
        self._response.flags = EPHEMERAL
        return self

    def reply(self, *args: Any) -> None:
        """Answer the interaction, or edit the answer once one was sent."""
        with self._lock:
            if not self.sent:
                self._response.apply(args)
                try:
                    self.client.respond_interaction(
                        self.event.id, self.event.token,
                        {"type": MESSAGE_WITH_SOURCE, "data": self._response.payload()})
                except Exception as exc:
                    logger.errorf('Não foi possível responder a interação "%s" (GuildID: %v): %v',
                                  self.data.get("name", ""), self.guild_id, exc)
                else:
                    self.sent = True
                return
        with contextlib.suppress(Exception):
            self.edit(*args)

    def edit(self, *args: Any) -> Any:
        """Edit the interaction's answer and return the edited message."""
        with self._lock:
            self._response.apply(args)
            try:
                return self.client.edit_interaction_response(
                    self.event.app_id, self.event.token, self._response.payload(with_flags=False))
            except Exception as exc:
                logger.errorf('Não foi possível editar a resposta da interação "%s" (GuildID: %v): %v',
                              self.data.get("name", ""), self.guild_id, exc)
                raise

    def stacktrace(self, error: BaseException) -> None:
        """Report an error to the user."""
        if not self.sent:
            self.reply(emojis.CRY, "Um erro ocorreu ao executar essa ação: `%v`", error)
        else:
            self.reply(Embed().set_color(0xED4245).set_description(
                "%s Um erro ocorreu ao executar essa ação: `%v`", emojis.CRY, error))


@dataclass
class AutoCompleteContext:
    event: InteractionEvent
    client: DiscordState
    data: dict[str, Any]

    @property
    def guild_id(self) -> Any:
        return self.event.guild_id


class BasicContext:
    """Sends plain messages to one channel."""

    def __init__(self, channel_id: Any, guild_id: Any, client: DiscordState) -> None:
        self.channel_id = channel_id
        self.guild_id = guild_id
        self.client = client
        self._lock = threading.RLock()
        self._response = _Response()

    def guild(self) -> Any:
        return None if self.guild_id is None else self.client.guild(self.guild_id)

    def file(self, file: Any) -> None:
        self._response.files.append(file)

    def embed(self, embed: Embed) -> None:
        self._response.embeds = [embed.to_dict()]

    def send(self, *args: Any) -> None:
        """Send a message built from ``args`` and start a fresh one."""
        with self._lock:
            self._response.apply(args)
            payload = self._response.payload()
            self._response = _Response()
            try:
                self.client.send_message(self.channel_id, payload)
            except Exception as exc:
                logger.errorf("Não foi possível enviar mensagem no canal %v: %v", self.channel_id, exc)