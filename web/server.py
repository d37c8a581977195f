"""
FastAPI web server: REST API and WebSocket for human-vs-computer games.
The server holds no rules of its own; every move goes through the game manager.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Optional, Union

from fastapi import FastAPI, WebSocket, WebSocketDisconnect, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from domino import db_ops
from domino.bot_ai import is_bot_player, maybe_play_bot_turns
from domino.config import HUMAN_ID
from domino.errors import EngineMisuse, GameError
from domino.game_engine import Rules
from domino.game_manager import game_manager
from domino.models import init_db
from web.ws_manager import ws_manager

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    logger.info("Database initialized.")
    yield


app = FastAPI(title="Domino Game", lifespan=lifespan)


class NewGameRequest(BaseModel):
    player_name: str = "Player"
    seed: Optional[int] = None
    spinner: Optional[bool] = None
    spinner_immediate: Optional[bool] = None
    scoring: Optional[bool] = None


class MoveRequest(BaseModel):
    tile: Union[str, dict]  # "6-2" or {"left": 6, "right": 2}
    side: Optional[str] = None


def _rules_from(body: NewGameRequest) -> Rules:
    overrides = {
        name: value
        for name, value in (
            ("spinner", body.spinner),
            ("spinner_immediate", body.spinner_immediate),
            ("scoring", body.scoring),
        )
        if value is not None
    }
    return Rules.from_dict({**Rules().to_dict(), **overrides})


def _require_game(game_id: str):
    session = game_manager.get_session(game_id)
    if not session:
        raise HTTPException(status_code=404, detail="Game not found")
    return session


# --- REST API ---

@app.post("/api/games")
async def create_game(body: NewGameRequest):
    """Deal a new game against the computer."""
    game_id = game_manager.create_game(body.player_name, seed=body.seed, rules=_rules_from(body))
    await _after_action(game_id)
    return JSONResponse({
        "game_id": game_id,
        "player_id": HUMAN_ID,
        "state": game_manager.get_game_state(game_id, for_player_id=HUMAN_ID),
    })


@app.get("/api/games/{game_id}")
async def get_game_state(game_id: str):
    _require_game(game_id)
    return JSONResponse(game_manager.get_game_state(game_id, for_player_id=HUMAN_ID))


@app.get("/api/games/{game_id}/moves")
async def get_valid_moves(game_id: str):
    _require_game(game_id)
    return JSONResponse({"moves": game_manager.get_valid_moves(game_id, HUMAN_ID)})


@app.post("/api/games/{game_id}/move")
async def play_move(game_id: str, body: MoveRequest):
    """Play a tile. Without a side the tile must fit exactly one end."""
    _require_game(game_id)
    try:
        result = game_manager.play_move(game_id, HUMAN_ID, body.tile, body.side)
    except EngineMisuse as e:
        raise HTTPException(status_code=400, detail=str(e))

    if result.get("success"):
        await _after_action(game_id)
    return JSONResponse(result)


@app.post("/api/games/{game_id}/draw")
async def draw_tile(game_id: str):
    """Draw until something fits; passes the turn if the boneyard runs out."""
    _require_game(game_id)
    result = game_manager.draw_tile(game_id, HUMAN_ID)

    if result.get("success"):
        await _after_action(game_id)
    return JSONResponse(result)


@app.post("/api/games/{game_id}/next")
async def next_round(game_id: str):
    _require_game(game_id)
    ok, message = game_manager.next_round(game_id)
    if not ok:
        raise HTTPException(status_code=409, detail=message)
    await _after_action(game_id)
    return JSONResponse({"success": True, "message": message,
                         "state": game_manager.get_game_state(game_id, for_player_id=HUMAN_ID)})


@app.delete("/api/games/{game_id}")
async def close_game(game_id: str):
    if not game_manager.close_game(game_id):
        raise HTTPException(status_code=404, detail="Game not found")
    await ws_manager.broadcast_event(game_id, "game_closed", {"game_id": game_id})
    ws_manager.cleanup_game(game_id)
    return JSONResponse({"success": True})


@app.post("/api/games/{game_id}/save")
async def save_game(game_id: str):
    _require_game(game_id)
    save_id = await db_ops.save_snapshot(game_id, game_manager.snapshot(game_id))
    return JSONResponse({"save_id": save_id})


@app.post("/api/saves/{save_id}/load")
async def load_game(save_id: int):
    snapshot = await db_ops.load_snapshot(save_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="Save not found")
    try:
        game_id = game_manager.restore_game(snapshot)
    except (ValueError, KeyError, EngineMisuse, GameError) as e:
        raise HTTPException(status_code=422, detail=f"Cannot restore save: {e}")

    await _after_action(game_id)
    return JSONResponse({
        "game_id": game_id,
        "player_id": HUMAN_ID,
        "state": game_manager.get_game_state(game_id, for_player_id=HUMAN_ID),
    })


@app.get("/api/leaderboard")
async def leaderboard():
    return JSONResponse({"leaderboard": await db_ops.get_leaderboard()})


async def _after_action(game_id: str):
    """Push the new state, then either wrap up the round or wake the computer."""
    await _broadcast_state(game_id)
    session = game_manager.get_session(game_id)
    if not session:
        return
    if session.engine.is_over:
        await _handle_game_over(game_id)
    else:
        _trigger_bot_turns(game_id)


async def _broadcast_state(game_id: str):
    await ws_manager.broadcast_game_state(
        game_id,
        lambda viewer_id: game_manager.get_game_state(game_id, for_player_id=HUMAN_ID if viewer_id == HUMAN_ID else None),
    )


def _trigger_bot_turns(game_id: str):
    """If the computer is to move, schedule its play. The task is cancelled if the game is closed."""
    session = game_manager.get_session(game_id)
    if not session or session.engine.is_over:
        return
    if is_bot_player(session.engine.current_player.player_id):
        task = asyncio.create_task(maybe_play_bot_turns(game_id, _broadcast_state, _handle_game_over))
        game_manager.set_bot_task(game_id, task)


async def _handle_game_over(game_id: str):
    """Record the finished round and tell the table."""
    session = game_manager.get_session(game_id)
    already_saved = session is not None and session.result_recorded
    result = game_manager.handle_game_over(game_id)
    if result is None:
        return

    await ws_manager.broadcast_event(game_id, "game_over", result)
    if not already_saved:
        await db_ops.save_game_result(result)


# --- WebSocket ---

@app.websocket("/ws/{game_id}")
async def websocket_endpoint(websocket: WebSocket, game_id: str, viewer: str = HUMAN_ID):
    """Live updates for a game. Only the human viewer sees their own hand."""
    await ws_manager.connect(game_id, viewer, websocket)

    state = game_manager.get_game_state(game_id, for_player_id=HUMAN_ID if viewer == HUMAN_ID else None)
    if state:
        await websocket.send_text(json.dumps({"type": "game_state", "data": state}))

    try:
        while True:
            # Moves go through REST; the socket only answers pings
            data = await websocket.receive_text()
            msg = json.loads(data)

            if msg.get("type") == "ping":
                await websocket.send_text(json.dumps({"type": "pong"}))

    except WebSocketDisconnect:
        ws_manager.disconnect(game_id, viewer)
    except Exception as e:
        logger.error(f"WS error: {e}")
        ws_manager.disconnect(game_id, viewer)
