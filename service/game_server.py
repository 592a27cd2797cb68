import logging
import os
from typing import Any

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

from board_rules import Direction, valid_moves
from game_state import GameState, apply_move, new_game


app = Flask(__name__)
allowed_origins = os.environ.get("GAME_ALLOWED_ORIGINS", "*")
CORS(app, resources={r"/(new|move)": {"origins": allowed_origins}})


def _state_response(state: GameState, **extra: Any) -> Response:
    response = state.to_dict()
    response["valid_moves"] = [d.value for d in valid_moves(state.board)]
    response.update(extra)
    return jsonify(response)


@app.get("/health")
def health():
    return jsonify({"status": "ok"})


@app.post("/new")
def start_game():
    return _state_response(new_game())


@app.post("/move")
def make_move():
    payload = request.get_json(force=True, silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "Payload must be a JSON object"}), 400
    if "board" not in payload or "direction" not in payload:
        return jsonify({"error": "Payload must include 'board' and 'direction' keys"}), 400

    try:
        state = GameState.from_dict(payload)
        direction = Direction(str(payload["direction"]).lower())
    except (ValueError, TypeError, OverflowError) as exc:
        app.logger.warning("Rejected malformed move payload: %s", exc)
        return jsonify({"error": str(exc)}), 400

    next_state = apply_move(state, direction)
    return _state_response(next_state, moved=next_state is not state)


if __name__ == "__main__":
    logging.basicConfig(
        level=os.environ.get("GAME_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Use 0.0.0.0 so the web app can reach it from another process on the same machine.
    port = int(os.environ.get("PORT", 5050))
    app.run(host="0.0.0.0", port=port, debug=bool(os.environ.get("FLASK_DEBUG")))
