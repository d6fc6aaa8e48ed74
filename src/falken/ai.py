"""Time-boxed minimax opponent for Falken tic-tac-toe."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple
import logging
import math
import random
import time

from .game import (
    COMPUTER,
    Board,
    Draw,
    FalkenError,
    InProgress,
    Player,
    apply_move,
    empty_cells,
    evaluate,
    other,
)

log = logging.getLogger("falken.ai")

NO_MOVE = -1

WIN_SCORE = 10
MAX_DEPTH = 6
TIME_LIMIT = 2.5  # seconds
DAMPENER = 0.3


class NoMoveAvailable(FalkenError, RuntimeError):
    """Raised when the search is asked to move on a board with no empty cell."""

    def __init__(self) -> None:
        super().__init__("No valid moves available")


@dataclass
class MinimaxAI:
    """Depth- and time-limited minimax player.

    Public surface used by the shell:
      - MinimaxAI(player="O")
      - choose(board, deadline=None) -> cell index

    ``dampener`` is the probability of skipping the search and playing a
    random empty cell. ``rng`` and ``clock`` are injectable so callers can
    force either branch and control the deadline.
    """

    player: Player = COMPUTER
    dampener: float = DAMPENER
    max_depth: int = MAX_DEPTH
    time_limit: float = TIME_LIMIT
    rng: random.Random = field(default_factory=random.Random, repr=False)
    clock: Callable[[], float] = field(default=time.monotonic, repr=False)

    # ---- public API ----

    def choose(self, board: Board, deadline: Optional[float] = None) -> int:
        moves = empty_cells(board)
        if not moves:
            raise NoMoveAvailable()

        if self.rng.random() < self.dampener:
            move = self.rng.choice(moves)
            log.debug("dampener fired, random move %d", move)
            return move

        if deadline is None:
            deadline = self.clock() + self.time_limit

        move, score = self._search_root(board, moves, deadline)
        log.debug(
            "search picked %d (score %s, deadline %s)",
            move,
            score,
            "hit" if self.clock() >= deadline else "ok",
        )
        return move

    # ---- core search ----

    def _search_root(
        self, board: Board, moves: Tuple[int, ...], deadline: float
    ) -> Tuple[int, float]:
        best_move = moves[0]
        best_score = -math.inf
        for move in moves:
            if self.clock() >= deadline:
                break
            child = apply_move(board, move, self.player)
            score = self._minimax(child, other(self.player), 1, deadline)
            if score > best_score:
                best_score, best_move = score, move
        return best_move, best_score

    def _minimax(
        self, board: Board, to_move: Player, depth: int, deadline: float
    ) -> float:
        result = evaluate(board)
        if isinstance(result, Draw):
            return 0
        if not isinstance(result, InProgress):
            if result.mark == self.player:
                return WIN_SCORE - depth
            return depth - WIN_SCORE
        if depth >= self.max_depth or self.clock() >= deadline:
            return 0

        maximizing = to_move == self.player
        value: Optional[float] = None
        for move in empty_cells(board):
            if self.clock() >= deadline:
                break
            child = apply_move(board, move, to_move)
            score = self._minimax(child, other(to_move), depth + 1, deadline)
            if value is None:
                value = score
            elif maximizing:
                value = max(value, score)
            else:
                value = min(value, score)
        # Abandoned before any child was scored
        return 0 if value is None else value


def choose_move(
    board: Board, deadline: Optional[float] = None, ai: Optional[MinimaxAI] = None
) -> int:
    """Pick the computer's move, or ``NO_MOVE`` on a board with no empty cell."""
    if not empty_cells(board):
        return NO_MOVE
    if ai is None:
        ai = MinimaxAI()
    return ai.choose(board, deadline)
