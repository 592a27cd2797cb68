"""Immutable 2048 game state and the move/spawn/terminal-check cycle.

Every operation returns a new ``GameState``; a rejected move hands back the
very same object so callers can compare snapshots by identity.

Randomness comes from an injectable source with the numpy ``Generator``
interface (``integers(high)`` and ``random()``). When none is passed, a
process-wide generator seeded from OS entropy is used.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

import numpy as np

import board_rules
from board_rules import Board, Direction

logger = logging.getLogger(__name__)

TWO_PROBABILITY = 0.9


class TileRng(Protocol):
    def integers(self, high: int) -> Any: ...

    def random(self) -> float: ...


_default_rng: TileRng = np.random.default_rng()


def _flag(payload: Dict[str, Any], key: str) -> bool:
    value = payload.get(key, False)
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be a boolean, received {value!r}")
    return value


@dataclass(frozen=True, eq=False)
class GameState:
    board: Board
    score: int
    won: bool = False
    over: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "board": board_rules.board_to_list(self.board),
            "score": self.score,
            "won": self.won,
            "over": self.over,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "GameState":
        """Rebuild a state sent back by a client; the score is derived from the board."""
        board = board_rules.to_board(payload["board"])
        return cls(
            board=board,
            score=board_rules.board_score(board),
            won=_flag(payload, "won"),
            over=_flag(payload, "over"),
        )


def _resolve_rng(rng: Optional[TileRng]) -> TileRng:
    return _default_rng if rng is None else rng


def random_tile_value(rng: Optional[TileRng] = None) -> int:
    return 2 if _resolve_rng(rng).random() < TWO_PROBABILITY else 4


def spawn_tile(board: Board, rng: Optional[TileRng] = None) -> Board:
    """Place one 2 or 4 on a uniformly chosen empty cell; a full board is returned as is."""
    empties = board_rules.empty_positions(board)
    if not empties:
        return board
    rng = _resolve_rng(rng)
    r, c = empties[int(rng.integers(len(empties)))]
    next_board = np.array(board, dtype=np.int64)
    next_board[r, c] = random_tile_value(rng)
    return board_rules.to_board(next_board)


def new_game(rng: Optional[TileRng] = None) -> GameState:
    board = board_rules.empty_board()
    board = spawn_tile(board, rng)
    board = spawn_tile(board, rng)
    return GameState(board=board, score=board_rules.board_score(board))


def apply_move(state: GameState, direction: Direction, rng: Optional[TileRng] = None) -> GameState:
    if state.over:
        return state

    candidate = board_rules.move(state.board, direction)
    if np.array_equal(candidate, state.board):
        logger.debug("Rejected %s: board unchanged", direction)
        return state

    board = spawn_tile(candidate, rng)
    won = state.won or board_rules.max_tile(board) >= board_rules.WINNING_TILE
    over = board_rules.is_stuck(board)

    if won and not state.won:
        logger.debug("Reached %d", board_rules.WINNING_TILE)
    if over:
        logger.debug("No moves left, final score %d", board_rules.board_score(board))

    return GameState(board=board, score=board_rules.board_score(board), won=won, over=over)


__all__ = [
    "GameState",
    "TWO_PROBABILITY",
    "TileRng",
    "apply_move",
    "new_game",
    "random_tile_value",
    "spawn_tile",
]
