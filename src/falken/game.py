"""Core rules for Falken tic-tac-toe: immutable boards and result detection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple, Union

Player = str  # "X" or "O"
Cell = Optional[Player]

HUMAN: Player = "X"
COMPUTER: Player = "O"

WINNING_LINES: Tuple[Tuple[int, int, int], ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class FalkenError(Exception):
    """Base class for recoverable game errors."""


class CellOccupied(FalkenError, ValueError):
    """Raised when a move targets a cell that already holds a mark."""

    def __init__(self, index: int) -> None:
        super().__init__(f"Cell {index} already occupied")
        self.index = index


# ---------- Board ----------


@dataclass(frozen=True)
class Board:
    # None marks an empty cell
    cells: Tuple[Cell, ...] = (None,) * 9

    def __post_init__(self) -> None:
        object.__setattr__(self, "cells", tuple(self.cells))
        if len(self.cells) != 9:
            raise ValueError("A board has exactly 9 cells")

    @classmethod
    def from_cells(cls, cells: Iterable[object]) -> "Board":
        """Build a board from 'X', 'O' and any of None, '' or ' ' for empty."""
        normalized = []
        for c in cells:
            if c in (None, "", " "):
                normalized.append(None)
            elif c in (HUMAN, COMPUTER):
                normalized.append(c)
            else:
                raise ValueError(f"Unknown cell value {c!r}")
        return cls(tuple(normalized))

    def __getitem__(self, index: int) -> Cell:
        return self.cells[index]

    def __iter__(self) -> Iterator[Cell]:
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self.cells)

    def is_full(self) -> bool:
        return all(c is not None for c in self.cells)


# ---------- Results ----------


@dataclass(frozen=True)
class InProgress:
    pass


@dataclass(frozen=True)
class Win:
    mark: Player


@dataclass(frozen=True)
class Draw:
    pass


GameResult = Union[InProgress, Win, Draw]

IN_PROGRESS = InProgress()
DRAW = Draw()


# ---------- Operations ----------


def other(mark: Player) -> Player:
    return COMPUTER if mark == HUMAN else HUMAN


def create_board() -> Board:
    return Board()


def apply_move(board: Board, index: int, mark: Player) -> Board:
    """Return a copy of ``board`` with ``mark`` placed at ``index``.

    Raises ``CellOccupied`` if the cell is taken. Out-of-range indices are a
    caller bug and surface as ``IndexError``.
    """
    if not 0 <= index < len(board.cells):
        raise IndexError(f"Cell index {index} out of range")
    if board.cells[index] is not None:
        raise CellOccupied(index)
    cells = list(board.cells)
    cells[index] = mark
    return Board(tuple(cells))


def find_winning_line(board: Board) -> Optional[Tuple[int, int, int]]:
    for line in WINNING_LINES:
        a, b, c = line
        v = board[a]
        if v is not None and v == board[b] == board[c]:
            return line
    return None


def evaluate(board: Board) -> GameResult:
    line = find_winning_line(board)
    if line is not None:
        return Win(board[line[0]])  # type: ignore[arg-type]
    if board.is_full():
        return DRAW
    return IN_PROGRESS


def is_terminal(result: GameResult) -> bool:
    return not isinstance(result, InProgress)


def empty_cells(board: Board) -> Tuple[int, ...]:
    """Indices of empty cells in ascending order."""
    return tuple(i for i, c in enumerate(board.cells) if c is None)
