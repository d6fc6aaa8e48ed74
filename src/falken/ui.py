"""FastAPI session shell driving the Falken tic-tac-toe engine."""

from __future__ import annotations

import logging
import os
import random
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from fastapi import BackgroundTasks, FastAPI, HTTPException
from pydantic import BaseModel, Field, field_validator

from .ai import MinimaxAI, choose_move
from .game import (
    COMPUTER,
    HUMAN,
    Board,
    CellOccupied,
    Draw,
    GameResult,
    InProgress,
    Player,
    Win,
    apply_move,
    create_board,
    evaluate,
    find_winning_line,
    is_terminal,
)

log = logging.getLogger("falken.ui")

INTRO_TEXT = "GREETINGS PROFESSOR FALKEN.\nSHALL WE PLAY A GAME?"
STRANGE_GAME_TEXT = "A STRANGE GAME.\nTHE ONLY WINNING MOVE IS\nNOT TO PLAY."
GOODBYE_TEXT = "GOODBYE."
UNDER_CONSTRUCTION_TEXT = "UNDER CONSTRUCTION..."

GAMES: Tuple[str, ...] = (
    "FALKEN'S MAZE",
    "BLACK JACK",
    "GIN RUMMY",
    "HEARTS",
    "BRIDGE",
    "CHECKERS",
    "CHESS",
    "BACKGAMMON",
    "POKER",
    "TIC TAC TOE",
    "FIGHTER COMBAT",
    "GUERRILLA ENGAGEMENT",
    "DESERT WARFARE",
    "AIR-TO-GROUND ACTIONS",
    "THEATERWIDE TACTICAL WARFARE",
    "THEATERWIDE BIOTOXIC AND CHEMICAL WARFARE",
    "GLOBAL THERMONUCLEAR WAR",
    "QUIT",
)

# Screens
PASSWORD = "password"
RESPOND = "respond"
GAMELIST = "gamelist"
MESSAGE = "message"
PLAYING = "playing"
GAMEOVER = "gameover"

AI_THINK_DELAY: Tuple[float, float] = (0.3, 0.5)


def _password() -> str:
    return os.environ.get("FALKEN_PASSWORD", "joshua")


@dataclass
class Score:
    wins: int = 0
    losses: int = 0
    draws: int = 0

    def record(self, result: GameResult) -> None:
        """Count a finished round from the human's point of view."""
        if isinstance(result, Draw):
            self.draws += 1
        elif isinstance(result, Win):
            if result.mark == HUMAN:
                self.wins += 1
            else:
                self.losses += 1


@dataclass
class GameSession:
    """Screen, round and score state for one connected player."""

    ai: MinimaxAI = field(default_factory=MinimaxAI)
    screen: str = PASSWORD
    board: Board = field(default_factory=create_board)
    turn: Player = HUMAN
    result: GameResult = field(default_factory=InProgress)
    score: Score = field(default_factory=Score)
    password_error: bool = False
    message: Optional[str] = None
    exit_after_message: bool = False
    ai_pending: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def new_round(self) -> None:
        self.board = create_board()
        self.turn = HUMAN
        self.result = InProgress()
        self.ai_pending = False
        self.screen = PLAYING

    def reset(self) -> None:
        """Back to the password screen with a fresh score."""
        self.board = create_board()
        self.turn = HUMAN
        self.result = InProgress()
        self.score = Score()
        self.password_error = False
        self.message = None
        self.exit_after_message = False
        self.ai_pending = False
        self.screen = PASSWORD

    def show_message(self, text: str, exit_after: bool = False) -> None:
        self.message = text
        self.exit_after_message = exit_after
        self.screen = MESSAGE

    def place(self, index: int, mark: Player) -> None:
        """Apply a move and settle the round if it ended."""
        self.board = apply_move(self.board, index, mark)
        self.result = evaluate(self.board)
        if not is_terminal(self.result):
            self.turn = COMPUTER if mark == HUMAN else HUMAN
            return
        self.score.record(self.result)
        self.screen = GAMEOVER
        log.info("round over: %s, score %s", self.result, self.score)


SESSIONS: Dict[str, GameSession] = {}
app = FastAPI(title="Falken", description="Tic-tac-toe against WOPR")


class PasswordRequest(BaseModel):
    password: str = ""


class RespondRequest(BaseModel):
    response: str = ""


class ChoiceRequest(BaseModel):
    """Request payload for picking an entry from the games list (1-based)."""

    choice: int = Field(ge=1, le=len(GAMES))


class MoveRequest(BaseModel):
    index: int = Field(ge=0, le=8, description="Row-major cell index")


class AgainRequest(BaseModel):
    again: bool

    @field_validator("again", mode="before")
    @classmethod
    def accept_yes_no(cls, value: object) -> object:
        if isinstance(value, str) and value.strip().lower() in ("y", "n"):
            return value.strip().lower() == "y"
        return value


def _create_session() -> Tuple[str, GameSession]:
    session = GameSession()
    session_id = uuid.uuid4().hex
    SESSIONS[session_id] = session
    log.info("session %s created", session_id)
    return session_id, session


def _get_session(session_id: str) -> GameSession:
    try:
        return SESSIONS[session_id]
    except KeyError as exc:
        raise HTTPException(status_code=404, detail="Session not found") from exc


def _require_screen(session: GameSession, *screens: str) -> None:
    if session.screen not in screens:
        raise HTTPException(
            status_code=400,
            detail=f"Not available on the {session.screen} screen",
        )


def _status(session: GameSession) -> str:
    result = session.result
    if isinstance(result, Draw):
        return "It's a draw!"
    if isinstance(result, Win):
        return "You win!" if result.mark == HUMAN else "Computer wins!"
    if session.ai_pending or session.turn == COMPUTER:
        return "Computer is thinking..."
    return f"Your turn ({HUMAN})"


def _serialize_result(result: GameResult) -> Optional[Dict[str, object]]:
    if isinstance(result, Win):
        return {"winner": result.mark}
    if isinstance(result, Draw):
        return {"draw": True}
    return None


def _serialize_session(session_id: str, session: GameSession) -> Dict[str, object]:
    with session.lock:
        win_line = find_winning_line(session.board)
        state: Dict[str, object] = {
            "id": session_id,
            "screen": session.screen,
            "board": [c or "" for c in session.board],
            "turn": session.turn,
            "result": _serialize_result(session.result),
            "winLine": list(win_line) if win_line else None,
            "score": {
                "wins": session.score.wins,
                "losses": session.score.losses,
                "draws": session.score.draws,
            },
            "aiPending": session.ai_pending,
            "message": session.message,
            "passwordError": session.password_error,
            "status": _status(session),
        }
        if session.screen == GAMELIST:
            state["games"] = list(GAMES)
        return state


def _run_ai_turn(session_id: str) -> None:
    session = SESSIONS.get(session_id)
    if not session:
        return

    time.sleep(max(0.0, random.uniform(*AI_THINK_DELAY)))

    with session.lock:
        try:
            if session.screen != PLAYING or session.turn != session.ai.player:
                return
            index = choose_move(session.board, ai=session.ai)
            session.place(index, session.ai.player)
        finally:
            session.ai_pending = False


def _apply_player_move(
    session_id: str,
    session: GameSession,
    index: int,
    background_tasks: Optional[BackgroundTasks] = None,
) -> None:
    should_schedule_ai = False
    with session.lock:
        _require_screen(session, PLAYING)
        if session.ai_pending or session.turn != HUMAN:
            raise HTTPException(status_code=400, detail="AI is completing its move")
        try:
            session.place(index, HUMAN)
        except CellOccupied as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        should_schedule_ai = session.screen == PLAYING
        if should_schedule_ai:
            session.ai_pending = True

    if should_schedule_ai and background_tasks is not None:
        background_tasks.add_task(_run_ai_turn, session_id)


@app.post("/api/session")
def create_session() -> Dict[str, object]:
    session_id, session = _create_session()
    return _serialize_session(session_id, session)


@app.get("/api/session/{session_id}")
def get_session(session_id: str) -> Dict[str, object]:
    session = _get_session(session_id)
    return _serialize_session(session_id, session)


@app.post("/api/session/{session_id}/password")
def submit_password(session_id: str, request: PasswordRequest) -> Dict[str, object]:
    session = _get_session(session_id)
    with session.lock:
        _require_screen(session, PASSWORD)
        if request.password.lower() == _password().lower():
            session.password_error = False
            session.message = INTRO_TEXT
            session.screen = RESPOND
            log.info("session %s passed the password gate", session_id)
        else:
            session.password_error = True
    return _serialize_session(session_id, session)


@app.post("/api/session/{session_id}/respond")
def respond(session_id: str, request: RespondRequest) -> Dict[str, object]:
    session = _get_session(session_id)
    with session.lock:
        _require_screen(session, RESPOND)
        answer = request.response.strip().lower()
        if answer in ("y", "yes"):
            session.message = None
            session.screen = GAMELIST
        elif request.response:
            session.reset()
    return _serialize_session(session_id, session)


@app.post("/api/session/{session_id}/choice")
def choose_game(session_id: str, request: ChoiceRequest) -> Dict[str, object]:
    session = _get_session(session_id)
    with session.lock:
        _require_screen(session, GAMELIST)
        selected = GAMES[request.choice - 1]
        log.info("session %s chose %s", session_id, selected)
        if selected == "TIC TAC TOE":
            if is_terminal(session.result):
                session.new_round()
            else:
                # Resume a round left with /quit
                session.screen = PLAYING
        elif selected == "QUIT":
            session.show_message(GOODBYE_TEXT, exit_after=True)
        elif selected == "GLOBAL THERMONUCLEAR WAR":
            session.show_message(STRANGE_GAME_TEXT)
        else:
            session.show_message(UNDER_CONSTRUCTION_TEXT)
    return _serialize_session(session_id, session)


@app.post("/api/session/{session_id}/continue")
def dismiss_message(session_id: str) -> Dict[str, object]:
    session = _get_session(session_id)
    with session.lock:
        _require_screen(session, MESSAGE)
        if session.exit_after_message:
            session.reset()
        else:
            session.message = None
            session.screen = GAMELIST
    return _serialize_session(session_id, session)


@app.post("/api/session/{session_id}/move")
def make_move(
    session_id: str, request: MoveRequest, background_tasks: BackgroundTasks
) -> Dict[str, object]:
    session = _get_session(session_id)
    _apply_player_move(session_id, session, request.index, background_tasks)
    return _serialize_session(session_id, session)


@app.post("/api/session/{session_id}/again")
def play_again(session_id: str, request: AgainRequest) -> Dict[str, object]:
    session = _get_session(session_id)
    with session.lock:
        _require_screen(session, GAMEOVER)
        if request.again:
            session.new_round()
        else:
            session.screen = GAMELIST
    return _serialize_session(session_id, session)


@app.post("/api/session/{session_id}/quit")
def quit_game(session_id: str) -> Dict[str, object]:
    session = _get_session(session_id)
    with session.lock:
        _require_screen(session, PLAYING, GAMEOVER)
        if session.ai_pending:
            raise HTTPException(status_code=400, detail="AI is completing its move")
        session.screen = GAMELIST
    return _serialize_session(session_id, session)
