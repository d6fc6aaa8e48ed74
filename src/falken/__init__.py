"""Falken package exposing tic-tac-toe rules, the minimax opponent, and the web shell."""

from .ai import MinimaxAI, choose_move
from .game import Board, apply_move, create_board, empty_cells, evaluate, find_winning_line
from .ui import app

__all__ = [
    "Board",
    "MinimaxAI",
    "app",
    "apply_move",
    "choose_move",
    "create_board",
    "empty_cells",
    "evaluate",
    "find_winning_line",
]
