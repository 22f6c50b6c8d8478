"""The bot client: module registry, command deployment and interaction routing."""

from __future__ import annotations

import threading
import traceback
from dataclasses import dataclass, field
from typing import Any, Callable

from . import emojis, logger
from .commands import (
    APPLICATION_COMMAND,
    AUTOCOMPLETE,
    AUTOCOMPLETE_RESULT,
    DEFERRED_MESSAGE_WITH_SOURCE,
    MESSAGE_WITH_SOURCE,
    AutoCompleteContext,
    Command,
    CommandContext,
    DiscordState,
    InteractionEvent,
)

INTERACTION_CREATE = "INTERACTION_CREATE"


@dataclass
class Event:
    """A gateway event name and the handler to call for it."""

    name: str
    handler: Callable[[Any], Any]


@dataclass
class Module:
    name: str = ""
    emote: str = ""
    commands: list[Command] = field(default_factory=list)
    events: list[Event] = field(default_factory=list)
    on_init: Callable[[], Any] | None = None
    on_login: Callable[[], Any] | None = None


def _start(target: Callable[[], Any]) -> None:
    threading.Thread(target=target, daemon=True).start()


class Client:
    """Ties a Discord session to the registered modules and their commands."""

    def __init__(self, state: DiscordState) -> None:
        self.state = state
        self.user: dict[str, Any] | None = None
        self.commands: dict[str, Command] = {}
        self.modules: list[Module] = []
        state.add_handler(INTERACTION_CREATE, self.handle_interaction)

    def connect(self) -> None:
        """Open the session, fetch the bot user and run each module's login hook."""
        self.state.open()
        self.user = self.state.me()
        for module in self.modules:
            if module.on_login is not None:
                _start(module.on_login)

    def deploy_commands(self) -> None:
        """Bring Discord's command list in line with the registered commands."""
        try:
            app_id = self.state.current_application()["id"]
        except Exception as exc:
            raise RuntimeError(f"unable to get application information: {exc}") from exc
        try:
            previous = self.state.commands(app_id)
        except Exception as exc:
            raise RuntimeError(f"Failed to get Discord command list: {exc}") from exc

        checked: set[str] = set()
        for old in previous:
            new = self.commands.get(old.get("name"))
            if new is None:
                logger.debugf('Removendo comando "%s" do Discord.', old.get("name"))
                try:
                    self.state.delete_command(app_id, old.get("id"))
                except Exception as exc:
                    raise RuntimeError(f'failed to delete "{old.get("name")}" command: {exc}') from exc
                continue

            wanted = [option.to_dict() for option in new.options]
            if (old.get("options") or []) != wanted or new.description != old.get("description"):
                logger.debugf("Atualizando commando %s no Discord.", new.name)
                try:
                    self.state.edit_command(app_id, old.get("id"), new.to_payload())
                except Exception as exc:
                    raise RuntimeError(f'failed to update "{new.name}" command: {exc}') from exc
            checked.add(new.name)

        for command in self.commands.values():
            if command.name in checked:
                continue
            logger.debugf("Criando comando %s no Discord.", command.name)
            try:
                self.state.create_command(app_id, command.to_payload())
            except Exception as exc:
                raise RuntimeError(f'failed to create "{command.name}" command: {exc}') from exc

    def close(self) -> None:
        self.state.close()

    def add_modules(self, *args: Module) -> None:
        for module in args:
            self.add_module(module)

    def add_module(self, module: Module) -> None:
        for command in module.commands:
            command.module = module
            self.commands[command.name] = command
        for event in module.events:
            self.state.add_handler(event.name, event.handler)
        if module.on_init is not None:
            _start(module.on_init)
        self.modules.append(module)

    def handle_interaction(self, event: InteractionEvent) -> None:
        """Route an interaction to its command; a failure is reported to the user."""
        try:
            self._dispatch(event)
        except Exception as exc:
            trace = f"panic: {exc}\n\n{traceback.format_exc()}"
            content = f"{emojis.CRY} | Um erro fatal ocorreu ao executar essa ação: ```py\n{trace}```"
            try:
                self.state.respond_interaction(
                    event.id, event.token,
                    {"type": MESSAGE_WITH_SOURCE, "data": {"content": content}},
                )
            except Exception as report_error:
                logger.errorf("Não foi possível reportar o erro da interação: %v", report_error)

    def _dispatch(self, event: InteractionEvent) -> None:
        data = event.data or {}
        command = self.commands.get(data.get("name", ""))
        if command is None:
            return

        if event.type == APPLICATION_COMMAND:
            if command.deferred:
                self.state.respond_interaction(
                    event.id, event.token, {"type": DEFERRED_MESSAGE_WITH_SOURCE}
                )
            if command.handler is not None:
                command.handler(CommandContext(event, self.state, data, command.deferred))
        elif event.type == AUTOCOMPLETE and command.autocomplete_handler is not None:
            choices = command.autocomplete_handler(AutoCompleteContext(event, self.state, data))
            self.state.respond_interaction(
                event.id, event.token,
                {"type": AUTOCOMPLETE_RESULT, "data": {"choices": list(choices)}},
            )