"""Tests for the FastAPI Tic-Tac-Toe interface."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tictactoe import ui
from tictactoe.ui import app


client = TestClient(app)
ui.AI_THINK_DELAY = (0.0, 0.0)


def new_game(**settings):
    response = client.post("/api/game", json=settings)
    assert response.status_code == 200
    return response.json()


def move(game_id, cell_index):
    return client.post(f"/api/game/{game_id}/move", json={"cellIndex": cell_index})


def test_index_serves_page():
    response = client.get("/")
    assert response.status_code == 200
    assert "Tic Tac Toe" in response.text


def test_config_lists_modes_and_difficulties():
    payload = client.get("/api/config").json()
    assert [m["value"] for m in payload["modes"]] == ["pvp", "pvc"]
    assert payload["difficulties"] == ["easy", "hard"]


def test_create_game_and_first_move():
    payload = new_game(mode="pvc", difficulty="hard")
    assert payload["currentPlayer"] == "X"
    assert payload["humanMark"] == "X"
    assert payload["computerMark"] == "O"
    assert payload["cells"] == [""] * 9
    assert payload["status"] == "in_progress"
    assert payload["moveLog"] == []
    assert payload["scores"] == {"X": 0, "O": 0, "ties": 0}

    game_id = payload["id"]
    move_response = move(game_id, 0)
    assert move_response.status_code == 200
    state = move_response.json()
    assert state["moveLog"][0] == {"player": "X", "cellIndex": 0}
    assert state["cells"][0] == "X"
    assert state["currentPlayer"] == "O"
    assert state["aiPending"] is True

    follow_up = client.get(f"/api/game/{game_id}")
    assert follow_up.status_code == 200
    final_state = follow_up.json()
    assert final_state["aiPending"] is False
    assert final_state["currentPlayer"] == "X"
    assert final_state["lastMove"] == {"player": "O", "cellIndex": 4}
    assert final_state["cells"][4] == "O"


def test_computer_opens_when_human_plays_o():
    payload = new_game(mode="pvc", difficulty="easy", humanMark="O")
    assert payload["computerMark"] == "X"
    assert payload["aiPending"] is True

    state = client.get(f"/api/game/{payload['id']}").json()
    assert state["currentPlayer"] == "O"
    assert state["moveLog"][0]["player"] == "X"
    # Easy opens in the centre.
    assert state["cells"][4] == "X"


def test_invalid_move_rejected():
    game_id = new_game(mode="pvp")["id"]
    assert move(game_id, 0).status_code == 200

    duplicate_move = move(game_id, 0)
    assert duplicate_move.status_code == 400
    assert duplicate_move.json()["detail"]


def test_move_rejected_while_computer_is_pending():
    game_id = new_game(mode="pvc", difficulty="easy")["id"]
    ui.SESSIONS[game_id].ai_pending = True

    response = move(game_id, 0)

    assert response.status_code == 400
    assert response.json()["detail"] == "AI is completing its move"
    assert ui.SESSIONS[game_id].game.cells[0] == " "


def test_move_rejected_on_computer_turn():
    game_id = new_game(mode="pvc", difficulty="easy")["id"]
    session = ui.SESSIONS[game_id]
    session.ai_pending = False
    session.game.play_move(0)

    response = move(game_id, 1)

    assert response.status_code == 400
    assert response.json()["detail"] == "It is the computer's turn"
    assert session.game.cells[1] == " "


def test_out_of_range_cell_rejected():
    game_id = new_game(mode="pvp")["id"]
    assert move(game_id, 9).status_code == 422


def test_rejects_unsupported_settings():
    assert client.post("/api/game", json={"difficulty": "nightmare"}).status_code == 422
    assert client.post("/api/game", json={"mode": "online"}).status_code == 422
    assert client.post("/api/game", json={"humanMark": "Q"}).status_code == 422


def test_missing_game_returns_404():
    assert client.get("/api/game/missing").status_code == 404
    assert move("missing", 0).status_code == 404


def test_pvp_win_updates_scores_and_blocks_further_moves():
    game_id = new_game(mode="pvp")["id"]
    for cell in (0, 3, 1, 4):
        assert move(game_id, cell).status_code == 200
    state = move(game_id, 2).json()

    assert state["status"] == "won"
    assert state["winner"] == "X"
    assert state["winningLine"] == [0, 1, 2]
    assert state["scores"] == {"X": 1, "O": 0, "ties": 0}
    assert state["computerMark"] is None

    late = move(game_id, 8)
    assert late.status_code == 400
    assert client.get(f"/api/game/{game_id}").json()["scores"]["X"] == 1


def test_tie_counts_and_reset_keeps_scores():
    game_id = new_game(mode="pvp")["id"]
    for cell in (0, 1, 2, 4, 3, 5, 7, 6, 8):
        state = move(game_id, cell).json()
    assert state["status"] == "tied"
    assert state["drawn"] is True
    assert state["scores"]["ties"] == 1

    reset = client.post(f"/api/game/{game_id}/reset")
    assert reset.status_code == 200
    fresh = reset.json()
    assert fresh["cells"] == [""] * 9
    assert fresh["status"] == "in_progress"
    assert fresh["currentPlayer"] == "X"
    assert fresh["moveLog"] == []
    assert fresh["scores"]["ties"] == 1


def test_changing_mode_clears_board_and_scores():
    game_id = new_game(mode="pvp")["id"]
    for cell in (0, 3, 1, 4, 2):
        move(game_id, cell)

    response = client.post(
        f"/api/game/{game_id}/mode", json={"mode": "pvc", "difficulty": "hard"}
    )
    assert response.status_code == 200
    state = response.json()
    assert state["mode"] == "pvc"
    assert state["difficulty"] == "hard"
    assert state["computerMark"] == "O"
    assert state["cells"] == [""] * 9
    assert state["scores"] == {"X": 0, "O": 0, "ties": 0}


def test_hard_computer_wins_and_is_tallied():
    game_id = new_game(mode="pvc", difficulty="hard")["id"]
    # X: 0, O answers 4; X: 8, O answers 1 (first non-losing reply); X: 2 leaves O to win.
    move(game_id, 0)
    move(game_id, 8)
    state = client.get(f"/api/game/{game_id}").json()
    assert state["cells"][4] == "O"
    assert state["cells"][1] == "O"

    move(game_id, 2)
    state = client.get(f"/api/game/{game_id}").json()
    assert state["winner"] == "O"
    assert state["winningLine"] == [1, 4, 7]
    assert state["scores"]["O"] == 1
