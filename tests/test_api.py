"""Tests for the FastAPI Falken session shell."""

from __future__ import annotations

from fastapi.testclient import TestClient

from falken import ui
from falken.ai import MinimaxAI
from falken.game import Board
from falken.ui import app


client = TestClient(app)
ui.AI_THINK_DELAY = (0.0, 0.0)


def _new_session() -> str:
    response = client.post("/api/session")
    assert response.status_code == 200
    return response.json()["id"]


def _start_playing() -> str:
    session_id = _new_session()
    client.post(f"/api/session/{session_id}/password", json={"password": "JOSHUA"})
    client.post(f"/api/session/{session_id}/respond", json={"response": "yes"})
    state = client.post(f"/api/session/{session_id}/choice", json={"choice": 10}).json()
    assert state["screen"] == "playing"
    ui.SESSIONS[session_id].ai = MinimaxAI(dampener=0.0)
    return session_id


def test_new_session_starts_at_password_gate():
    response = client.post("/api/session")
    payload = response.json()
    assert payload["screen"] == "password"
    assert payload["score"] == {"wins": 0, "losses": 0, "draws": 0}
    assert payload["board"] == [""] * 9


def test_wrong_password_rejected():
    session_id = _new_session()
    state = client.post(
        f"/api/session/{session_id}/password", json={"password": "falken"}
    ).json()
    assert state["screen"] == "password"
    assert state["passwordError"] is True


def test_password_then_intro_then_games_list():
    session_id = _new_session()
    state = client.post(
        f"/api/session/{session_id}/password", json={"password": "Joshua"}
    ).json()
    assert state["screen"] == "respond"
    assert state["message"].startswith("GREETINGS PROFESSOR FALKEN.")

    state = client.post(
        f"/api/session/{session_id}/respond", json={"response": " Y "}
    ).json()
    assert state["screen"] == "gamelist"
    assert "TIC TAC TOE" in state["games"]
    assert len(state["games"]) == 18


def test_declining_the_game_resets_session():
    session_id = _new_session()
    client.post(f"/api/session/{session_id}/password", json={"password": "joshua"})
    state = client.post(
        f"/api/session/{session_id}/respond", json={"response": "no"}
    ).json()
    assert state["screen"] == "password"


def test_thermonuclear_war_is_a_strange_game():
    session_id = _new_session()
    client.post(f"/api/session/{session_id}/password", json={"password": "joshua"})
    client.post(f"/api/session/{session_id}/respond", json={"response": "y"})
    state = client.post(f"/api/session/{session_id}/choice", json={"choice": 17}).json()
    assert state["screen"] == "message"
    assert "THE ONLY WINNING MOVE IS" in state["message"]

    state = client.post(f"/api/session/{session_id}/continue").json()
    assert state["screen"] == "gamelist"


def test_quit_from_games_list_returns_to_password():
    session_id = _new_session()
    client.post(f"/api/session/{session_id}/password", json={"password": "joshua"})
    client.post(f"/api/session/{session_id}/respond", json={"response": "y"})
    state = client.post(f"/api/session/{session_id}/choice", json={"choice": 18}).json()
    assert state["message"] == "GOODBYE."
    state = client.post(f"/api/session/{session_id}/continue").json()
    assert state["screen"] == "password"


def test_out_of_range_choice_rejected():
    session_id = _new_session()
    response = client.post(f"/api/session/{session_id}/choice", json={"choice": 19})
    assert response.status_code == 422


def test_move_and_ai_reply():
    session_id = _start_playing()
    state = client.post(f"/api/session/{session_id}/move", json={"index": 4}).json()
    assert state["board"][4] == "X"
    assert state["aiPending"] is True

    follow_up = client.get(f"/api/session/{session_id}").json()
    assert follow_up["aiPending"] is False
    assert follow_up["turn"] == "X"
    assert follow_up["board"].count("O") == 1
    assert follow_up["status"] == "Your turn (X)"


def test_occupied_cell_rejected():
    session_id = _start_playing()
    client.post(f"/api/session/{session_id}/move", json={"index": 0})
    state = client.get(f"/api/session/{session_id}").json()
    taken = state["board"].index("O")

    duplicate = client.post(f"/api/session/{session_id}/move", json={"index": taken})
    assert duplicate.status_code == 400
    assert duplicate.json()["detail"]
    assert client.get(f"/api/session/{session_id}").json()["board"] == state["board"]


def test_out_of_range_move_rejected():
    session_id = _start_playing()
    response = client.post(f"/api/session/{session_id}/move", json={"index": 9})
    assert response.status_code == 422


def test_move_rejected_before_game_starts():
    session_id = _new_session()
    response = client.post(f"/api/session/{session_id}/move", json={"index": 0})
    assert response.status_code == 400


def test_human_win_counts_and_play_again():
    session_id = _start_playing()
    session = ui.SESSIONS[session_id]
    session.board = Board.from_cells(["X", "X", "", "O", "O", "", "", "", ""])

    state = client.post(f"/api/session/{session_id}/move", json={"index": 2}).json()
    assert state["screen"] == "gameover"
    assert state["result"] == {"winner": "X"}
    assert state["winLine"] == [0, 1, 2]
    assert state["score"]["wins"] == 1
    assert state["status"] == "You win!"

    state = client.post(f"/api/session/{session_id}/again", json={"again": "y"}).json()
    assert state["screen"] == "playing"
    assert state["board"] == [""] * 9
    assert state["score"]["wins"] == 1


def test_computer_win_counts_as_loss():
    session_id = _start_playing()
    session = ui.SESSIONS[session_id]
    session.board = Board.from_cells(["O", "O", "", "X", "", "", "X", "", ""])

    client.post(f"/api/session/{session_id}/move", json={"index": 8})
    state = client.get(f"/api/session/{session_id}").json()
    assert state["board"][2] == "O"
    assert state["result"] == {"winner": "O"}
    assert state["score"]["losses"] == 1
    assert state["status"] == "Computer wins!"

    state = client.post(f"/api/session/{session_id}/again", json={"again": False}).json()
    assert state["screen"] == "gamelist"


def test_draw_counts():
    session_id = _start_playing()
    session = ui.SESSIONS[session_id]
    session.board = Board.from_cells(["X", "O", "X", "X", "O", "O", "O", "X", ""])

    state = client.post(f"/api/session/{session_id}/move", json={"index": 8}).json()
    assert state["result"] == {"draw": True}
    assert state["score"]["draws"] == 1
    assert state["aiPending"] is False


def test_missing_session_returns_404():
    missing = client.get("/api/session/INVALID")
    assert missing.status_code == 404


def test_empty_response_keeps_waiting():
    session_id = _new_session()
    client.post(f"/api/session/{session_id}/password", json={"password": "joshua"})
    state = client.post(
        f"/api/session/{session_id}/respond", json={"response": ""}
    ).json()
    assert state["screen"] == "respond"
    assert state["message"].startswith("GREETINGS")


def test_other_games_are_under_construction():
    session_id = _new_session()
    client.post(f"/api/session/{session_id}/password", json={"password": "joshua"})
    client.post(f"/api/session/{session_id}/respond", json={"response": "y"})
    state = client.post(f"/api/session/{session_id}/choice", json={"choice": 1}).json()
    assert state["screen"] == "message"
    assert state["message"] == "UNDER CONSTRUCTION..."

    state = client.post(f"/api/session/{session_id}/continue").json()
    assert state["screen"] == "gamelist"
    assert state["message"] is None


def test_quit_mid_round_then_resume():
    session_id = _start_playing()
    client.post(f"/api/session/{session_id}/move", json={"index": 4})
    board_before = client.get(f"/api/session/{session_id}").json()["board"]

    state = client.post(f"/api/session/{session_id}/quit").json()
    assert state["screen"] == "gamelist"

    state = client.post(f"/api/session/{session_id}/choice", json={"choice": 10}).json()
    assert state["screen"] == "playing"
    assert state["board"] == board_before


def test_quit_after_round_starts_fresh_next_time():
    session_id = _start_playing()
    session = ui.SESSIONS[session_id]
    session.board = Board.from_cells(["X", "X", "", "O", "O", "", "", "", ""])
    client.post(f"/api/session/{session_id}/move", json={"index": 2})

    state = client.post(f"/api/session/{session_id}/quit").json()
    assert state["screen"] == "gamelist"
    assert state["score"]["wins"] == 1

    state = client.post(f"/api/session/{session_id}/choice", json={"choice": 10}).json()
    assert state["screen"] == "playing"
    assert state["board"] == [""] * 9
    assert state["score"]["wins"] == 1


def test_quit_rejected_while_ai_pending():
    session_id = _start_playing()
    ui.SESSIONS[session_id].ai_pending = True

    response = client.post(f"/api/session/{session_id}/quit")
    assert response.status_code == 400
    ui.SESSIONS[session_id].ai_pending = False
    assert client.get(f"/api/session/{session_id}").json()["screen"] == "playing"


def test_quit_not_available_before_a_game():
    session_id = _new_session()
    response = client.post(f"/api/session/{session_id}/quit")
    assert response.status_code == 400
