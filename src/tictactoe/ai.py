"""Computer opponents for Tic-Tac-Toe: a one-ply heuristic and full minimax."""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .game import (
    CENTER,
    PLAYERS,
    Board,
    Player,
    TicTacToeGame,
    empty_cells,
    evaluate,
    place,
    validate_board,
)

logger = logging.getLogger(__name__)

Move = Optional[int]
NO_MOVE: Move = None


class Difficulty(str, Enum):
    EASY = "easy"
    HARD = "hard"


def select_move(
    board: Board,
    ai_mark: Player,
    human_mark: Player,
    difficulty: Difficulty,
    rng: Optional[random.Random] = None,
) -> Move:
    """Pick the computer's next cell for ``board``.

    ``rng`` only needs a ``choice`` method; it drives the random fallback of
    the easy strategy and the opening move of the hard one. Returns
    ``NO_MOVE`` when the board has no empty cell left. The caller is expected
    not to ask for a move on a board that is already decided.
    """
    validate_board(board)
    if ai_mark not in PLAYERS or human_mark not in PLAYERS:
        raise ValueError("Marks must be 'X' or 'O'")
    if ai_mark == human_mark:
        raise ValueError("Computer and human must use different marks")

    chooser = rng if rng is not None else random
    if Difficulty(difficulty) is Difficulty.EASY:
        move = easy_move(board, ai_mark, human_mark, chooser)
    else:
        move = hard_move(board, ai_mark, human_mark, chooser)
    logger.debug("%s move for %s: %s", Difficulty(difficulty).value, ai_mark, move)
    return move


# ---------- easy ----------


def _wins_with(board: Board, cell: int, player: Player) -> bool:
    return evaluate(place(board, cell, player)).winner == player


def easy_move(board: Board, ai_mark: Player, human_mark: Player, rng) -> Move:
    """Win now, else block the first threat found, else centre, else random."""
    empties = empty_cells(board)
    if not empties:
        return NO_MOVE

    for cell in empties:
        if _wins_with(board, cell, ai_mark):
            return cell
    # Only the first threat in index order is blocked.
    for cell in empties:
        if _wins_with(board, cell, human_mark):
            return cell
    if CENTER in empties:
        return CENTER
    return rng.choice(empties)


# ---------- hard ----------


def hard_move(board: Board, ai_mark: Player, human_mark: Player, rng) -> Move:
    empties = empty_cells(board)
    if not empties:
        return NO_MOVE
    if len(empties) == 9:
        return rng.choice(range(9))

    _, move = _minimax(list(board), ai_mark, human_mark, True, {})
    return move


def _terminal_score(board: Board, ai_mark: Player) -> Optional[float]:
    outcome = evaluate(board)
    if not outcome.finished:
        return None
    if outcome.tie:
        return 0.0
    # Sign says who won; magnitude prefers quicker wins and slower losses.
    weight = 1 + len(empty_cells(board))
    return float(weight) if outcome.winner == ai_mark else -float(weight)


def _minimax(
    cells: List[str],
    ai_mark: Player,
    human_mark: Player,
    maximizing: bool,
    table: Dict[Tuple[Tuple[str, ...], bool], float],
) -> Tuple[float, Move]:
    terminal = _terminal_score(cells, ai_mark)
    if terminal is not None:
        return terminal, NO_MOVE

    key = (tuple(cells), maximizing)
    player = ai_mark if maximizing else human_mark
    best_move: Move = NO_MOVE
    value = -math.inf if maximizing else math.inf

    for cell in empty_cells(cells):
        child = place(cells, cell, player)
        if (tuple(child), not maximizing) in table:
            score = table[(tuple(child), not maximizing)]
        else:
            score, _ = _minimax(child, ai_mark, human_mark, not maximizing, table)
        # Strict comparison keeps the lowest index among equal scores.
        if (maximizing and score > value) or (not maximizing and score < value):
            value, best_move = score, cell

    table[key] = value
    return value, best_move


@dataclass
class ComputerPlayer:
    """Computer opponent bound to one mark and one difficulty."""

    player: Player = "O"
    difficulty: Difficulty = Difficulty.HARD
    rng: random.Random = field(default_factory=random.Random, repr=False)

    @property
    def opponent(self) -> Player:
        return "O" if self.player == "X" else "X"

    def choose(self, game: TicTacToeGame) -> int:
        if game.finished:
            raise ValueError("Game already finished")
        if game.current_player != self.player:
            raise ValueError("It is not this AI player's turn")
        snapshot = game.clone()
        move = select_move(
            snapshot.cells, self.player, self.opponent, self.difficulty, self.rng
        )
        if move is None:
            raise RuntimeError("No valid moves available")
        return move
