"""Core 2048 board mechanics shared by the game state machine, server and tests."""

from enum import Enum
from typing import Iterable, List, Sequence, Tuple

import numpy as np

SIZE = 4
WINNING_TILE = 2048

Board = np.ndarray
Position = Tuple[int, int]


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"


DIRECTIONS: Sequence[Direction] = (Direction.UP, Direction.RIGHT, Direction.DOWN, Direction.LEFT)


def _freeze(arr: np.ndarray) -> Board:
    board = np.array(arr, dtype=np.int64)
    board.setflags(write=False)
    return board


def empty_board() -> Board:
    return _freeze(np.zeros((SIZE, SIZE), dtype=np.int64))


def to_board(grid: Iterable[Iterable[int]]) -> Board:
    """Build a read-only board from a row-major grid, rejecting malformed input."""
    raw = np.array([list(row) for row in grid], dtype=object)
    if raw.shape != (SIZE, SIZE):
        raise ValueError(f"Expected {SIZE}x{SIZE} grid, received shape {raw.shape}")
    for value in raw.flat:
        if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, np.integer)):
            raise ValueError(f"Tile values must be integers, received {value!r}")
    try:
        board = raw.astype(np.int64)
    except OverflowError as exc:
        raise ValueError(f"Tile value out of range: {exc}") from exc
    if (board < 0).any():
        raise ValueError("Tile values must be non-negative")
    tiles = board[board != 0]
    # a power of two has a single bit set
    if ((tiles & (tiles - 1)) != 0).any() or (tiles == 1).any():
        raise ValueError("Tile values must be powers of two >= 2")
    return _freeze(board)


def board_to_list(board: Board) -> List[List[int]]:
    return [[int(v) for v in row] for row in board]


def slide_and_merge_line(line: Iterable[int]) -> List[int]:
    """Slide a line toward index 0, merging each equal pair once."""
    values = [int(v) for v in line]
    filtered = [v for v in values if v != 0]
    merged: List[int] = []
    skip = False
    for idx, value in enumerate(filtered):
        if skip:
            skip = False
            continue
        if idx + 1 < len(filtered) and filtered[idx + 1] == value:
            merged.append(value * 2)
            skip = True
        else:
            merged.append(value)
    return merged + [0] * (len(values) - len(merged))


def transpose(board: Board) -> Board:
    return board.T


def reverse_rows(board: Board) -> Board:
    return np.fliplr(board)


def _apply_left(board: Board) -> Board:
    return np.array([slide_and_merge_line(row) for row in board], dtype=np.int64)


def move(board: Board, direction: Direction) -> Board:
    """Return the board after sliding every tile toward *direction*.

    All four directions reduce to the left-slide row primitive: the board is
    reoriented so the move points left, slid, then oriented back.
    """
    arr = np.asarray(board, dtype=np.int64)
    direction = Direction(direction)

    if direction is Direction.LEFT:
        next_board = _apply_left(arr)
    elif direction is Direction.RIGHT:
        next_board = reverse_rows(_apply_left(reverse_rows(arr)))
    elif direction is Direction.UP:
        next_board = transpose(_apply_left(transpose(arr)))
    else:
        next_board = transpose(reverse_rows(_apply_left(reverse_rows(transpose(arr)))))

    return _freeze(next_board)


def simulate_move(board: Board, direction: Direction) -> Tuple[Board, bool]:
    next_board = move(board, direction)
    return next_board, not np.array_equal(next_board, board)


def valid_moves(board: Board) -> List[Direction]:
    allowed: List[Direction] = []
    for direction in DIRECTIONS:
        _, changed = simulate_move(board, direction)
        if changed:
            allowed.append(direction)
    return allowed


def empty_positions(board: Board) -> List[Position]:
    return [(int(r), int(c)) for r, c in zip(*np.where(np.asarray(board) == 0))]


def has_adjacent_pair(board: Board) -> bool:
    """True when two horizontally or vertically adjacent cells hold equal values."""
    arr = np.asarray(board)
    horizontal = arr[:, :-1] == arr[:, 1:]
    vertical = arr[:-1, :] == arr[1:, :]
    return bool(horizontal.any() or vertical.any())


def is_stuck(board: Board) -> bool:
    return not empty_positions(board) and not has_adjacent_pair(board)


def board_score(board: Board) -> int:
    return int(np.asarray(board).sum())


def max_tile(board: Board) -> int:
    return int(np.asarray(board).max())


__all__ = [
    "Board",
    "DIRECTIONS",
    "Direction",
    "Position",
    "SIZE",
    "WINNING_TILE",
    "board_score",
    "board_to_list",
    "empty_board",
    "empty_positions",
    "has_adjacent_pair",
    "is_stuck",
    "max_tile",
    "move",
    "reverse_rows",
    "simulate_move",
    "slide_and_merge_line",
    "to_board",
    "transpose",
    "valid_moves",
]
