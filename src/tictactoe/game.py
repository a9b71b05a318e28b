"""Core rules for Tic-Tac-Toe: board helpers, outcome evaluation, game state."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

Player = str  # "X" or "O"
Line = Tuple[int, int, int]
Board = Sequence[str]

EMPTY = " "
PLAYERS: Tuple[Player, Player] = ("X", "O")
CENTER = 4

# Scan order matters: rows, columns, main diagonal, anti-diagonal.
WINNING_LINES: Tuple[Line, ...] = (
    (0, 1, 2),
    (3, 4, 5),
    (6, 7, 8),
    (0, 3, 6),
    (1, 4, 7),
    (2, 5, 8),
    (0, 4, 8),
    (2, 4, 6),
)


class InvalidBoard(ValueError):
    """Raised when a board is not nine cells of 'X', 'O' or ' '."""


class InvalidMove(ValueError):
    """Raised when a mark cannot be placed on the requested cell."""


@dataclass(frozen=True)
class Outcome:
    winner: Optional[Player] = None
    line: Optional[Line] = None
    tie: bool = False

    @classmethod
    def win(cls, player: Player, line: Line) -> "Outcome":
        return cls(winner=player, line=line)

    @property
    def finished(self) -> bool:
        return self.winner is not None or self.tie

    @property
    def status(self) -> str:
        if self.winner is not None:
            return "won"
        if self.tie:
            return "tied"
        return "in_progress"


NO_OUTCOME = Outcome()
TIE = Outcome(tie=True)


# ---------- Board helpers ----------


def new_board() -> List[str]:
    return [EMPTY] * 9


def validate_board(board: Board) -> None:
    if len(board) != 9:
        raise InvalidBoard(f"Board must have 9 cells, got {len(board)}")
    for idx, value in enumerate(board):
        if value != EMPTY and value not in PLAYERS:
            raise InvalidBoard(f"Cell {idx} holds unsupported value {value!r}")


def other_player(player: Player) -> Player:
    if player not in PLAYERS:
        raise ValueError(f"Unknown player mark {player!r}")
    return "O" if player == "X" else "X"


def empty_cells(board: Board) -> List[int]:
    """Indices of empty cells in ascending order."""
    return [i for i, c in enumerate(board) if c == EMPTY]


def place(board: Board, index: int, player: Player) -> List[str]:
    """Return a copy of ``board`` with ``player`` placed on ``index``."""
    if player not in PLAYERS:
        raise ValueError(f"Unknown player mark {player!r}")
    if not 0 <= index < 9:
        raise InvalidMove(f"Cell index {index} is out of range")
    if board[index] != EMPTY:
        raise InvalidMove("Cell already occupied")
    cells = list(board)
    cells[index] = player
    return cells


def evaluate(board: Board) -> Outcome:
    """Return the outcome of ``board``.

    The first complete line in ``WINNING_LINES`` order is reported, so a board
    holding two complete lines always names the earlier one. A full board with
    no complete line is a tie; anything else has no outcome yet.
    """
    validate_board(board)
    for line in WINNING_LINES:
        a, b, c = line
        v = board[a]
        if v != EMPTY and v == board[b] == board[c]:
            return Outcome.win(v, line)
    if EMPTY not in board:
        return TIE
    return NO_OUTCOME


# ---------- Game ----------


@dataclass
class TicTacToeGame:
    cells: List[str] = field(default_factory=new_board)
    current_player: Player = "X"
    outcome: Outcome = NO_OUTCOME

    def __post_init__(self) -> None:
        validate_board(self.cells)
        if self.current_player not in PLAYERS:
            raise ValueError(f"Unknown player mark {self.current_player!r}")
        self.outcome = evaluate(self.cells)

    # ---- API used by UI & AI ----

    @property
    def winner(self) -> Optional[Player]:
        return self.outcome.winner

    @property
    def drawn(self) -> bool:
        return self.outcome.tie

    @property
    def finished(self) -> bool:
        return self.outcome.finished

    def available_moves(self) -> List[int]:
        if self.finished:
            return []
        return empty_cells(self.cells)

    def play_move(self, index: int) -> Outcome:
        """Place the current player's mark, re-evaluate and hand the turn over."""
        if self.finished:
            raise InvalidMove("Game already finished")
        self.cells = place(self.cells, index, self.current_player)
        self.outcome = evaluate(self.cells)
        self.current_player = other_player(self.current_player)
        return self.outcome

    def reset(self) -> None:
        self.cells = new_board()
        self.current_player = "X"
        self.outcome = NO_OUTCOME

    def clone(self) -> "TicTacToeGame":
        return TicTacToeGame(
            cells=self.cells.copy(), current_player=self.current_player
        )
