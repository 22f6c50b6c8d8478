import threading
import time
from datetime import datetime, timedelta, timezone

import pytest

from anny.player import PlayerManager, PlayerState, RequestedSong
from anny.providers import Song
from anny.rest import build_rest_module, create_app


class FakeState:
    def send_message(self, channel_id, data):
        return None


class FakeVoice:
    def play_url(self, url, is_opus):
        return None

    def pause(self):
        return None

    def resume(self):
        return None

    def stop(self):
        return None

    def seek(self, position):
        return None

    def playback_position(self):
        return timedelta(seconds=3)

    def destroy(self):
        return None


def wait_for(predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


@pytest.fixture
def manager():
    return PlayerManager(FakeState(), lambda voice_id: FakeVoice(), timedelta(hours=1))


@pytest.fixture
def ready_player(manager):
    player = manager.create(42, 100, 200)
    assert wait_for(lambda: player.voice is not None and player.timer is not None)
    yield player
    player.timer.cancel()


def test_unknown_guild_is_not_found(manager):
    response = create_app(manager).test_client().get("/api/player/12345")
    assert response.status_code == 404
    assert response.get_json() == {"data": None, "error": "Not Found"}


@pytest.mark.parametrize("raw", ["abc", "0", "-5"])
def test_invalid_ids_are_not_found(manager, raw):
    response = create_app(manager).test_client().get(f"/api/player/{raw}")
    assert response.status_code == 404
    assert response.get_json()["data"] is None


def test_unknown_route_uses_json_errors(manager):
    response = create_app(manager).test_client().get("/nowhere")
    assert response.status_code == 404
    assert response.get_json()["error"] == "Not Found"


def test_idle_player_is_reported(ready_player, manager):
    response = create_app(manager).test_client().get("/api/player/42")
    assert response.status_code == 200
    body = response.get_json()
    assert body["error"] is None
    assert body["data"]["current"] is None
    assert body["data"]["queue"] == []
    assert body["data"]["state"] == int(PlayerState.STOPPED)
    assert body["data"]["position"] == 3_000_000_000


def test_playing_player_reports_songs(ready_player, manager):
    requester = {"id": "7", "username": "user"}
    moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
    current = RequestedSong(Song(title="Now", url="https://youtu.be/now",
                                 duration=timedelta(seconds=90)), requester, moment)
    queued = RequestedSong(Song(title="Next", url="https://youtu.be/next",
                                duration=timedelta(seconds=30)), requester, moment)
    ready_player.state = PlayerState.PLAYING
    ready_player.current = current
    ready_player.queue.append(queued)

    body = create_app(manager).test_client().get("/api/player/42").get_json()
    assert body["data"]["state"] == int(PlayerState.PLAYING)
    assert body["data"]["current"] == current.to_dict()
    assert body["data"]["queue"] == [queued.to_dict()]


def test_player_without_voice_is_not_found():
    release = threading.Event()

    def connect(voice_id):
        release.wait(5)
        return FakeVoice()

    manager = PlayerManager(FakeState(), connect, timedelta(hours=1))
    player = manager.create(7, 1, 2)
    try:
        assert manager.get(7) is player
        response = create_app(manager).test_client().get("/api/player/7")
        assert response.status_code == 404
    finally:
        release.set()


def test_unexpected_errors_become_500():
    class ExplodingRegistry:
        def get(self, guild_id):
            raise RuntimeError("boom")

    response = create_app(ExplodingRegistry()).test_client().get("/api/player/42")
    assert response.status_code == 500
    assert response.get_json() == {"data": None, "error": "boom"}


def test_rest_module_only_initialises(manager):
    module = build_rest_module(manager, 8080)
    assert module.commands == []
    assert module.events == []
    assert module.on_login is None
    assert callable(module.on_init)