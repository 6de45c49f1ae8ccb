# memory_game/server.py
from __future__ import annotations
import argparse
import dataclasses
import logging
from typing import Optional

from flask import Flask, current_app, jsonify, request

from .config import Config, get_config
from .controller import GameController, validate_login
from .storage import JsonFileBackend, MemoryBackend, SessionStore

logger = logging.getLogger(__name__)


def build_controller(config: Config) -> GameController:
    if config.storage == "memory":
        backend = MemoryBackend()
    else:
        backend = JsonFileBackend(config.data_dir)
    return GameController(
        SessionStore(backend),
        match_delay=config.match_delay,
        mismatch_delay=config.mismatch_delay,
        win_delay=config.win_delay,
    )


def create_app(controller: Optional[GameController] = None) -> Flask:
    app = Flask(__name__)
    # One local player per server process, like the browser's single profile.
    app.extensions["memory_game"] = controller or build_controller(get_config())

    @app.get("/health")
    def api_health():
        return jsonify({"status": "ok"})

    @app.get("/state")
    def api_state():
        return _ok()

    @app.post("/login")
    def api_login():
        data = _json_object()
        if data is None:
            return _error("expected a JSON object")
        try:
            name, email = validate_login(data.get("name"), data.get("email"))
        except ValueError as e:
            return _error(str(e))
        _controller().login(name, email)
        return _ok()

    @app.post("/start")
    def api_start():
        _controller().start_game()
        return _ok()

    @app.post("/click")
    def api_click():
        data = _json_object()
        if data is None:
            return _error("expected a JSON object")
        index = data.get("index")
        if not isinstance(index, int) or isinstance(index, bool):
            return _error("index must be an integer")
        _controller().click_tile(index)
        return _ok()

    @app.post("/stop")
    def api_stop():
        _controller().request_stop()
        return _ok()

    @app.post("/stop/confirm")
    def api_stop_confirm():
        _controller().confirm_stop()
        return _ok()

    @app.post("/stop/cancel")
    def api_stop_cancel():
        _controller().cancel_stop()
        return _ok()

    @app.post("/logout")
    def api_logout():
        _controller().logout()
        return _ok()

    return app


def _json_object() -> Optional[dict]:
    data = request.get_json(force=True, silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        return None
    return data


def _controller() -> GameController:
    return current_app.extensions["memory_game"]


def _ok():
    return jsonify({"status": "ok", **_controller().snapshot()})


def _error(message: str):
    return jsonify({"status": "error", "message": message}), 400


def parse_args():
    config = get_config()
    p = argparse.ArgumentParser(description="Memory game server")
    p.add_argument("-H", "--host", default=config.host)
    p.add_argument("-p", "--port", type=int, default=config.port)
    p.add_argument("-d", "--data-dir", default=config.data_dir)
    p.add_argument("--storage", choices=["file", "memory"], default=config.storage)
    p.add_argument("--debug", action="store_true")
    return p.parse_args()


def main():
    a = parse_args()
    config = dataclasses.replace(get_config(), host=a.host, port=a.port,
                                 data_dir=a.data_dir, storage=a.storage)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("serving on %s:%d (storage=%s)", config.host, config.port, config.storage)
    app = create_app(build_controller(config))
    # debug=True only for development; the reloader would fork a second controller
    app.run(host=config.host, port=config.port, debug=a.debug, use_reloader=False)


if __name__ == "__main__":
    main()
