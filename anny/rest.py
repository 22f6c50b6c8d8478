"""HTTP API exposing the state of guild players."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Any

from flask import Flask, abort, jsonify, request

from . import logger
from .client import Module

_SNOWFLAKE = re.compile(r"[0-9]+")
_NULL_SNOWFLAKE = 2**64 - 1


def _parse_snowflake(raw: str) -> int | None:
    if not _SNOWFLAKE.fullmatch(raw):
        return None
    value = int(raw)
    if value <= 0 or value >= _NULL_SNOWFLAKE:
        return None
    return value


def _nanoseconds(duration: timedelta) -> int:
    return (duration // timedelta(microseconds=1)) * 1000


def create_app(players: Any) -> Flask:
    """Build the web app; ``players`` looks players up by guild id via ``get``."""
    app = Flask(__name__)

    @app.errorhandler(Exception)
    def handle_error(error: Exception) -> Any:
        code = getattr(error, "code", None)
        name = getattr(error, "name", None)
        if isinstance(code, int) and isinstance(name, str):
            return jsonify({"data": None, "error": name}), code
        logger.errorf("%s %s: %+v", request.method, request.path, error)
        return jsonify({"data": None, "error": str(error)}), 500

    @app.get("/api/player/<guild_id>")
    def player_index(guild_id: str) -> Any:
        parsed = _parse_snowflake(guild_id)
        if parsed is None:
            abort(404)
        player = players.get(parsed)
        if player is None:
            player = players.get(guild_id)
        if player is None or player.voice is None:
            abort(404)

        current = player.current
        return jsonify({
            "data": {
                "current": current.to_dict() if current is not None else None,
                "queue": [song.to_dict() for song in player.queue],
                "state": int(player.state),
                "position": _nanoseconds(player.voice.playback_position()),
            },
            "error": None,
        })

    return app


def build_rest_module(players: Any, port: Any) -> Module:
    """Return a module that serves the API on ``port`` when initialised."""

    def serve() -> None:
        app = create_app(players)
        try:
            app.run(host="0.0.0.0", port=int(port))
        except (Exception, SystemExit) as exc:
            logger.fatalf("Não foi possível iniciar a API na porta %s: %v", port, exc)

    return Module(on_init=serve)