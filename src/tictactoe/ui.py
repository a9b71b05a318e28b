"""FastAPI-powered web UI for playing Tic-Tac-Toe in the browser."""

from __future__ import annotations

import logging
import random
import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .ai import ComputerPlayer, Difficulty
from .game import EMPTY, PLAYERS, Player, TicTacToeGame, other_player

logger = logging.getLogger(__name__)


class GameMode(str, Enum):
    PVP = "pvp"
    PVC = "pvc"


MODE_LABELS: Dict[GameMode, str] = {
    GameMode.PVP: "Player vs Player",
    GameMode.PVC: "Player vs Computer",
}

AI_THINK_DELAY: Tuple[float, float] = (0.35, 0.55)


def _empty_scores() -> Dict[str, int]:
    return {"X": 0, "O": 0, "ties": 0}


@dataclass
class GameSession:
    """One browser's running match: the current round, settings and tally."""

    game: TicTacToeGame
    mode: GameMode = GameMode.PVC
    difficulty: Difficulty = Difficulty.EASY
    human_mark: Player = "X"
    ai: Optional[ComputerPlayer] = None
    scores: Dict[str, int] = field(default_factory=_empty_scores)
    move_log: List[Dict[str, int | str]] = field(default_factory=list)
    ai_pending: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def record_result(self) -> None:
        """Add the finished round to the tally."""
        game = self.game
        if game.winner is not None:
            self.scores[game.winner] += 1
        elif game.drawn:
            self.scores["ties"] += 1

    def ai_should_move(self) -> bool:
        return bool(
            self.ai
            and not self.game.finished
            and self.game.current_player == self.ai.player
        )


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="Tic-Tac-Toe", description="Tic-tac-toe played in the browser")


class GameSettings(BaseModel):
    """Request payload for starting a game or changing its settings."""

    model_config = ConfigDict(populate_by_name=True)

    mode: GameMode = GameMode.PVC
    difficulty: Difficulty = Difficulty.EASY
    human_mark: str = Field(default="X", alias="humanMark")

    @field_validator("human_mark")
    @classmethod
    def ensure_known_mark(cls, value: str) -> str:
        value = value.upper()
        if value not in PLAYERS:
            raise ValueError(f"Unsupported mark {value}. Choose X or O.")
        return value


class MoveRequest(BaseModel):
    """Request payload for submitting a move on an existing game."""

    model_config = ConfigDict(populate_by_name=True)

    cell_index: int = Field(alias="cellIndex", ge=0, le=8)


def _apply_settings(session: GameSession, settings: GameSettings) -> None:
    session.mode = settings.mode
    session.difficulty = settings.difficulty
    session.human_mark = settings.human_mark
    if settings.mode is GameMode.PVC:
        session.ai = ComputerPlayer(
            player=other_player(settings.human_mark),
            difficulty=settings.difficulty,
        )
    else:
        session.ai = None


def _create_session(settings: GameSettings) -> Tuple[str, GameSession]:
    """Create a new game session and register it for later access."""

    session = GameSession(game=TicTacToeGame())
    _apply_settings(session, settings)
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    logger.info(
        "Created game %s (mode=%s, difficulty=%s, human=%s)",
        session_id,
        session.mode.value,
        session.difficulty.value,
        session.human_mark,
    )
    return session_id, session


def _get_session(game_id: str) -> GameSession:
    try:
        return SESSIONS[game_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Game not found") from exc


def _finish_round_if_over(game_id: str, session: GameSession) -> None:
    if not session.game.finished:
        return
    session.record_result()
    logger.info(
        "Game %s round finished: %s (scores=%s)",
        game_id,
        session.game.winner or "tie",
        session.scores,
    )


def _run_ai_turn(game_id: str) -> None:
    session = SESSIONS.get(game_id)
    if not session:
        return

    time.sleep(max(0.0, random.uniform(*AI_THINK_DELAY)))

    with session.lock:
        try:
            if not session.ai_should_move():
                return
            ai = session.ai
            cell_index = ai.choose(session.game)
            session.game.play_move(cell_index)
            session.move_log.append({"player": ai.player, "cellIndex": cell_index})
            logger.debug("Game %s: computer %s played %d", game_id, ai.player, cell_index)
            _finish_round_if_over(game_id, session)
        finally:
            session.ai_pending = False


def _schedule_ai_if_needed(
    game_id: str,
    session: GameSession,
    background_tasks: Optional[BackgroundTasks],
) -> None:
    # Caller holds session.lock.
    if session.ai_should_move() and not session.ai_pending:
        session.ai_pending = True
        if background_tasks is not None:
            background_tasks.add_task(_run_ai_turn, game_id)


def _serialize_session(game_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        game = session.game
        outcome = game.outcome
        state: Dict[str, object] = {
            "id": game_id,
            "mode": session.mode.value,
            "modeLabel": MODE_LABELS[session.mode],
            "difficulty": session.difficulty.value,
            "humanMark": session.human_mark,
            "computerMark": session.ai.player if session.ai else None,
            "cells": ["" if c == EMPTY else c for c in game.cells],
            "currentPlayer": game.current_player,
            "status": outcome.status,
            "winner": outcome.winner,
            "winningLine": list(outcome.line) if outcome.line else None,
            "drawn": outcome.tie,
            "availableMoves": game.available_moves(),
            "scores": dict(session.scores),
            "moveLog": list(session.move_log),
            "aiPending": session.ai_pending,
        }
        if session.move_log:
            state["lastMove"] = session.move_log[-1]
        return state


def _apply_player_move(
    game_id: str,
    session: GameSession,
    cell_index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    with session.lock:
        game = session.game
        if game.finished:
            raise HTTPException(status_code=400, detail="Game already finished")

        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")

        if session.ai and game.current_player == session.ai.player:
            raise HTTPException(status_code=400, detail="It is the computer's turn")

        player = game.current_player
        try:
            game.play_move(cell_index)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        session.move_log.append({"player": player, "cellIndex": cell_index})
        _finish_round_if_over(game_id, session)
        _schedule_ai_if_needed(game_id, session, background_tasks)


def _reset_round(
    game_id: str,
    session: GameSession,
    background_tasks: Optional[BackgroundTasks],
    clear_scores: bool = False,
) -> None:
    # Caller holds session.lock.
    session.game.reset()
    session.move_log.clear()
    session.ai_pending = False
    if clear_scores:
        session.scores = _empty_scores()
    _schedule_ai_if_needed(game_id, session, background_tasks)


@app.get("/api/config")
def get_config() -> Dict[str, object]:
    return {
        "modes": [{"value": m.value, "label": MODE_LABELS[m]} for m in GameMode],
        "difficulties": [d.value for d in Difficulty],
        "marks": list(PLAYERS),
    }


@app.post("/api/game")
def create_game(
    settings: GameSettings, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    game_id, session = _create_session(settings)
    with session.lock:
        _schedule_ai_if_needed(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.get("/api/game/{game_id}")
def get_game(game_id: str) -> Dict[str, object]:
    session = _get_session(game_id)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/move")
def make_move(
    game_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(game_id)
    _apply_player_move(game_id, session, request.cell_index, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/reset")
def reset_game(game_id: str, background_tasks: BackgroundTasks) -> Dict[str, object]:
    """Start a new round and keep the running tally."""
    session = _get_session(game_id)
    with session.lock:
        _reset_round(game_id, session, background_tasks)
    return _serialize_session(game_id, session)


@app.post("/api/game/{game_id}/mode")
def change_mode(
    game_id: str, settings: GameSettings, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    """Switch mode, difficulty or marks; board and tally start over."""
    session = _get_session(game_id)
    with session.lock:
        _apply_settings(session, settings)
        _reset_round(game_id, session, background_tasks, clear_scores=True)
    logger.info(
        "Game %s switched to mode=%s difficulty=%s human=%s",
        game_id,
        session.mode.value,
        session.difficulty.value,
        session.human_mark,
    )
    return _serialize_session(game_id, session)


@app.get("/", response_class=HTMLResponse)
def index() -> str:
    return HTML_PAGE


HTML_PAGE = """<!DOCTYPE html>
<html lang=\"en\" data-theme=\"light\">
  <head>
    <meta charset=\"utf-8\" />
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <title>Tic Tac Toe</title>
    <style>
      :root {
        --accent: #ff4081;
        --primary: #1976d2;
        --secondary: #424242;
        --bg-primary: #ffffff;
        --bg-panel: #f5f7fb;
        --text: #13203a;
        font-family: system-ui, -apple-system, BlinkMacSystemFont, \"Segoe UI\", sans-serif;
      }
      [data-theme='dark'] {
        --secondary: #b0b0b0;
        --bg-primary: #161b26;
        --bg-panel: #202737;
        --text: #e8ecf4;
      }
      * {
        box-sizing: border-box;
      }
      body {
        margin: 0;
        min-height: 100vh;
        display: flex;
        justify-content: center;
        padding: 2rem 1rem;
        background: var(--bg-primary);
        color: var(--text);
        transition: background 0.3s ease, color 0.3s ease;
      }
      main {
        width: min(420px, 100%);
        text-align: center;
      }
      h1 {
        color: var(--primary);
        margin: 0.5rem 0 1rem;
        letter-spacing: 0.06em;
      }
      .theme-toggle {
        float: right;
        border: 1px solid var(--secondary);
        background: transparent;
        color: var(--text);
        border-radius: 999px;
        padding: 0.25rem 0.75rem;
        cursor: pointer;
      }
      .scoreboard {
        display: flex;
        justify-content: space-between;
        gap: 0.5rem;
        padding: 0.6rem 1rem;
        border-radius: 12px;
        background: var(--bg-panel);
        font-weight: 600;
      }
      .scoreboard .x {
        color: var(--primary);
      }
      .scoreboard .o {
        color: var(--accent);
      }
      .scoreboard .tie {
        color: var(--secondary);
      }
      .controls {
        display: flex;
        flex-wrap: wrap;
        gap: 0.5rem;
        justify-content: center;
        margin: 1rem 0;
      }
      .controls select,
      .controls button {
        padding: 0.4rem 0.6rem;
        border-radius: 8px;
        border: 1px solid var(--secondary);
        background: var(--bg-panel);
        color: var(--text);
      }
      .controls button.primary {
        background: var(--primary);
        border-color: var(--primary);
        color: #fff;
        cursor: pointer;
      }
      .status {
        min-height: 1.5rem;
        font-weight: 600;
      }
      .status.x {
        color: var(--primary);
      }
      .status.o,
      .status.won {
        color: var(--accent);
      }
      .status.tied {
        color: var(--secondary);
      }
      .board {
        display: grid;
        grid-template-columns: repeat(3, 1fr);
        gap: 6px;
        margin: 1rem auto;
        width: min(320px, 90vw);
        aspect-ratio: 1;
      }
      .board.thinking {
        opacity: 0.75;
      }
      .square {
        font-size: 2.6rem;
        font-weight: 700;
        border: 2px solid var(--secondary);
        border-radius: 10px;
        background: var(--bg-panel);
        cursor: pointer;
      }
      .square:disabled {
        cursor: default;
      }
      .square.x {
        color: var(--primary);
      }
      .square.o {
        color: var(--accent);
      }
      .square.highlight {
        border-color: var(--accent);
        box-shadow: 0 0 0 3px rgba(255, 64, 129, 0.25);
      }
      .message {
        min-height: 1.25rem;
        color: var(--accent);
      }
      .footer {
        color: var(--secondary);
        font-size: 0.9rem;
      }
    </style>
  </head>
  <body>
    <main>
      <button class=\"theme-toggle\" id=\"theme-toggle\" aria-label=\"Switch to dark mode\">🌙 Dark</button>
      <h1>Tic Tac Toe</h1>
      <div class=\"scoreboard\">
        <span class=\"x\" id=\"score-x\">X: 0</span>
        <span class=\"tie\" id=\"score-ties\">Ties: 0</span>
        <span class=\"o\" id=\"score-o\">O: 0</span>
      </div>
      <div class=\"controls\">
        <select id=\"mode\" aria-label=\"Select game mode\">
          <option value=\"pvc\">Player vs Computer</option>
          <option value=\"pvp\">Player vs Player</option>
        </select>
        <select id=\"difficulty\" aria-label=\"Select difficulty\">
          <option value=\"easy\">Easy</option>
          <option value=\"hard\">Hard</option>
        </select>
        <select id=\"human-mark\" aria-label=\"Play as\">
          <option value=\"X\">Play as X</option>
          <option value=\"O\">Play as O</option>
        </select>
        <button class=\"primary\" id=\"new-game\" aria-label=\"Start a new game\">New Game</button>
      </div>
      <div class=\"status\" id=\"status\">Setting up your game…</div>
      <div class=\"board\" id=\"board\"></div>
      <div class=\"message\" id=\"message\"></div>
      <p class=\"footer\" id=\"footer\"></p>
    </main>
    <script>
      const boardEl = document.getElementById('board');
      const statusEl = document.getElementById('status');
      const messageEl = document.getElementById('message');
      const footerEl = document.getElementById('footer');
      const modeEl = document.getElementById('mode');
      const difficultyEl = document.getElementById('difficulty');
      const markEl = document.getElementById('human-mark');
      const newGameButton = document.getElementById('new-game');
      const themeToggle = document.getElementById('theme-toggle');

      let gameId = null;
      let gameState = null;
      let isRequestPending = false;
      let aiPollHandle = null;

      function currentSettings() {
        return {
          mode: modeEl.value,
          difficulty: difficultyEl.value,
          humanMark: markEl.value,
        };
      }

      function stopAiPolling() {
        if (aiPollHandle !== null) {
          clearTimeout(aiPollHandle);
          aiPollHandle = null;
        }
      }

      function ensureAiPolling() {
        if (aiPollHandle !== null) return;
        aiPollHandle = window.setTimeout(pollAiState, 450);
      }

      async function postJson(url, body) {
        const response = await fetch(url, {
          method: 'POST',
          headers: { 'Content-Type': 'application/json' },
          body: body === undefined ? undefined : JSON.stringify(body),
        });
        if (!response.ok) {
          const payload = await response.json().catch(() => ({}));
          const detail = typeof payload?.detail === 'string' ? payload.detail : 'Request failed';
          throw new Error(detail);
        }
        return response.json();
      }

      async function run(action) {
        if (isRequestPending) return;
        isRequestPending = true;
        messageEl.textContent = '';
        try {
          setState(await action());
        } catch (error) {
          messageEl.textContent = error.message || 'Network error. Please try again.';
        } finally {
          isRequestPending = false;
        }
      }

      function startGame() {
        stopAiPolling();
        return run(() => postJson('/api/game', currentSettings()));
      }

      function changeSettings() {
        if (!gameId) return startGame();
        stopAiPolling();
        return run(() => postJson(`/api/game/${gameId}/mode`, currentSettings()));
      }

      function resetRound() {
        if (!gameId) return startGame();
        stopAiPolling();
        return run(() => postJson(`/api/game/${gameId}/reset`));
      }

      function sendMove(cellIndex) {
        if (!gameState || gameState.status !== 'in_progress' || gameState.aiPending) {
          return;
        }
        return run(() => postJson(`/api/game/${gameId}/move`, { cellIndex }));
      }

      async function pollAiState() {
        aiPollHandle = null;
        if (!gameId) return;
        try {
          const response = await fetch(`/api/game/${gameId}`);
          if (response.ok) {
            setState(await response.json());
          }
        } catch (error) {
          console.error('Polling failed', error);
        } finally {
          if (gameState?.aiPending && gameState.status === 'in_progress') {
            ensureAiPolling();
          }
        }
      }

      function setState(data) {
        gameId = data.id;
        gameState = data;
        render();
        if (gameState.aiPending && gameState.status === 'in_progress') {
          ensureAiPolling();
        } else {
          stopAiPolling();
        }
      }

      function render() {
        const state = gameState;
        const winningLine = state.winningLine || [];
        const finished = state.status !== 'in_progress';
        boardEl.innerHTML = '';
        boardEl.classList.toggle('thinking', Boolean(state.aiPending));
        state.cells.forEach((value, idx) => {
          const square = document.createElement('button');
          square.className = 'square';
          if (value) square.classList.add(value === 'X' ? 'x' : 'o');
          if (winningLine.includes(idx)) square.classList.add('highlight');
          square.textContent = value;
          square.disabled = Boolean(value) || finished || state.aiPending;
          square.setAttribute('aria-label', value ? `Cell occupied by ${value}` : 'Empty cell');
          square.addEventListener('click', () => sendMove(idx));
          boardEl.appendChild(square);
        });

        document.getElementById('score-x').textContent = `X: ${state.scores.X}`;
        document.getElementById('score-o').textContent = `O: ${state.scores.O}`;
        document.getElementById('score-ties').textContent = `Ties: ${state.scores.ties}`;

        statusEl.className = 'status';
        if (state.status === 'won') {
          statusEl.textContent = `Winner: ${state.winner}`;
          statusEl.classList.add('won');
        } else if (state.status === 'tied') {
          statusEl.textContent = 'It’s a tie!';
          statusEl.classList.add('tied');
        } else if (state.aiPending) {
          statusEl.textContent = 'Computer is thinking…';
          statusEl.classList.add(state.currentPlayer.toLowerCase());
        } else {
          statusEl.textContent = `Next: ${state.currentPlayer}`;
          statusEl.classList.add(state.currentPlayer.toLowerCase());
        }

        newGameButton.textContent = finished ? 'New Game' : 'Reset Game';
        difficultyEl.disabled = state.mode !== 'pvc';
        markEl.disabled = state.mode !== 'pvc';
        footerEl.textContent =
          state.mode === 'pvc'
            ? `You are ${state.humanMark}. ${state.computerMark} is Computer.`
            : 'X and O take turns.';
      }

      function applyTheme(theme) {
        document.documentElement.setAttribute('data-theme', theme);
        const next = theme === 'light' ? 'dark' : 'light';
        themeToggle.textContent = theme === 'light' ? '🌙 Dark' : '☀️ Light';
        themeToggle.setAttribute('aria-label', `Switch to ${next} mode`);
      }

      themeToggle.addEventListener('click', () => {
        const current = document.documentElement.getAttribute('data-theme');
        applyTheme(current === 'light' ? 'dark' : 'light');
      });
      newGameButton.addEventListener('click', resetRound);
      [modeEl, difficultyEl, markEl].forEach((el) => el.addEventListener('change', changeSettings));

      applyTheme('light');
      startGame();
    </script>
  </body>
</html>
"""
