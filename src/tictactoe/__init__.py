"""Tic-Tac-Toe package exposing game rules, computer opponents, and the web application."""

from .ai import ComputerPlayer, Difficulty, select_move
from .game import TicTacToeGame, evaluate
from .ui import app

__all__ = [
    "ComputerPlayer",
    "Difficulty",
    "TicTacToeGame",
    "app",
    "evaluate",
    "select_move",
]
