import threading

import pytest

from anny import emojis
from anny.client import INTERACTION_CREATE, Client, Event, Module
from anny.commands import (
    APPLICATION_COMMAND,
    AUTOCOMPLETE,
    AUTOCOMPLETE_RESULT,
    DEFERRED_MESSAGE_WITH_SOURCE,
    Command,
    InteractionEvent,
    StringOption,
)


class FakeState:
    def __init__(self, previous=None, fail_create=False):
        self.handlers = []
        self.responses = []
        self.previous = previous or []
        self.created, self.edited, self.deleted = [], [], []
        self.fail_create = fail_create
        self.opened = self.closed = False

    def add_handler(self, event, handler):
        self.handlers.append((event, handler))

    def open(self):
        self.opened = True

    def close(self):
        self.closed = True

    def me(self):
        return {"id": "99", "username": "anny"}

    def current_application(self):
        return {"id": "app"}

    def commands(self, app_id):
        return self.previous

    def create_command(self, app_id, data):
        if self.fail_create:
            raise ConnectionError("down")
        self.created.append(data)

    def edit_command(self, app_id, command_id, data):
        self.edited.append((command_id, data))

    def delete_command(self, app_id, command_id):
        self.deleted.append(command_id)

    def respond_interaction(self, interaction_id, token, response):
        self.responses.append(response)

    def edit_interaction_response(self, app_id, token, data):
        return data


def event(kind, name, options=None):
    return InteractionEvent(id="1", app_id="2", token="token", type=kind,
                            data={"name": name, "options": options or []}, guild_id="10")


def test_client_registers_interaction_handler():
    state = FakeState()
    client = Client(state)
    assert state.handlers == [(INTERACTION_CREATE, client.handle_interaction)]


def test_add_module_registers_commands_and_events():
    state = FakeState()
    client = Client(state)
    cmd = Command("ping", "d")
    handler = lambda e: None
    module = Module(name="Misc", commands=[cmd], events=[Event("READY", handler)])
    client.add_modules(module)
    assert client.commands["ping"] is cmd
    assert cmd.module is module
    assert ("READY", handler) in state.handlers
    assert client.modules == [module]


def test_connect_runs_login_hooks():
    state = FakeState()
    client = Client(state)
    done = threading.Event()
    client.add_module(Module(on_login=done.set))
    client.connect()
    assert state.opened
    assert client.user["id"] == "99"
    assert done.wait(2)
    client.close()
    assert state.closed


def test_deploy_commands_syncs_list():
    keep = Command("keep", "same")
    change = Command("change", "new description", options=[StringOption("a", "b")])
    fresh = Command("fresh", "brand")
    previous = [
        {"id": "k", "name": "keep", "description": "same"},
        {"id": "c", "name": "change", "description": "old"},
        {"id": "g", "name": "gone", "description": "x"},
    ]
    state = FakeState(previous)
    client = Client(state)
    client.add_module(Module(commands=[keep, change, fresh]))
    client.deploy_commands()
    assert state.deleted == ["g"]
    assert state.edited == [("c", change.to_payload())]
    assert state.created == [fresh.to_payload()]


def test_deploy_failure_is_raised():
    state = FakeState(fail_create=True)
    client = Client(state)
    client.add_module(Module(commands=[Command("ping", "d")]))
    with pytest.raises(RuntimeError, match="ping"):
        client.deploy_commands()


def test_command_interaction_calls_handler():
    state = FakeState()
    client = Client(state)
    seen = []
    client.add_module(Module(commands=[Command("ping", "d", handler=lambda ctx: seen.append(ctx))]))
    client.handle_interaction(event(APPLICATION_COMMAND, "ping"))
    assert len(seen) == 1
    assert seen[0].sent is False
    assert state.responses == []


def test_deferred_command_acknowledges_first():
    state = FakeState()
    client = Client(state)
    seen = []
    client.add_module(Module(commands=[Command("ping", "d", deferred=True, handler=seen.append)]))
    client.handle_interaction(event(APPLICATION_COMMAND, "ping"))
    assert state.responses == [{"type": DEFERRED_MESSAGE_WITH_SOURCE}]
    assert seen[0].sent is True


def test_autocomplete_interaction_returns_choices():
    state = FakeState()
    client = Client(state)
    choices = [{"name": "a", "value": "a"}]
    client.add_module(Module(commands=[Command("tocar", "d", autocomplete_handler=lambda ctx: choices)]))
    client.handle_interaction(event(AUTOCOMPLETE, "tocar"))
    assert state.responses == [{"type": AUTOCOMPLETE_RESULT, "data": {"choices": choices}}]


def test_unknown_command_is_ignored():
    state = FakeState()
    client = Client(state)
    client.handle_interaction(event(APPLICATION_COMMAND, "nope"))
    assert state.responses == []


def test_handler_failure_is_reported():
    state = FakeState()
    client = Client(state)

    def broken(ctx):
        raise ValueError("kaboom")

    client.add_module(Module(commands=[Command("ping", "d", handler=broken)]))
    client.handle_interaction(event(APPLICATION_COMMAND, "ping"))
    content = state.responses[0]["data"]["content"]
    assert content.startswith(emojis.CRY)
    assert "panic: kaboom" in content
    assert "ValueError" in content