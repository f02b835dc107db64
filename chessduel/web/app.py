"""
FastAPI application — the room server for two-player games.

Exposes:
  POST /api/games               Create a game room for an inviting player
  POST /api/games/{id}/join     Second player joins; seats are assigned and the game is created
  GET  /api/games/{id}          Room info plus the serialized game state
  WS   /ws/games/{id}           Submit actions and receive every applied action + state

Each room holds one GameSession, the single authority for that game. Actions
from all sockets are linearized with a per-room asyncio.Lock, and a
background watcher submits timeout game-overs through the same path. Rooms
live in memory only.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect

from chessduel.actions import (
    AcceptDraw,
    AcceptTakeback,
    ActionFormatError,
    Color,
    DeclineDraw,
    DeclineTakeback,
    GameAction,
    GameOver,
    MoveMade,
    OfferDraw,
    PlayerResigned,
    RequestTakeback,
    action_from_dict,
    action_to_dict,
)
from chessduel.clock import detect_timeout
from chessduel.config import load_config_or_default
from chessduel.logging_setup import setup_logging
from chessduel.session import GameSession, seat_players
from chessduel.state import TimeControl, new_game

config = load_config_or_default()
logger = logging.getLogger("chessduel.web")

app = FastAPI(title="chessduel")


@dataclass
class Room:
    game_id: str
    creator_id: str
    time_control: TimeControl
    session: GameSession | None = None
    sockets: set[WebSocket] = field(default_factory=set)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def info(self) -> dict:
        return {
            "gameId": self.game_id,
            "creatorId": self.creator_id,
            "state": self.session.to_dict() if self.session else None,
        }


_rooms: dict[str, Room] = {}
_watcher: asyncio.Task | None = None


def _to_json(data: dict) -> str:
    """json.dumps with datetime → ISO-string support."""
    def _default(obj: object) -> str:
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")
    return json.dumps(data, default=_default)


def _get_room(game_id: str) -> Room:
    room = _rooms.get(game_id)
    if room is None:
        raise HTTPException(status_code=404, detail=f"Unknown game: {game_id}")
    return room


# --------------------------------------------------------------------------- #
# Lifecycle                                                                    #
# --------------------------------------------------------------------------- #

@app.on_event("startup")
async def _startup() -> None:
    global _watcher
    setup_logging(config.logging)
    _watcher = asyncio.create_task(_watch_clocks(config.web.clock_poll_seconds))


@app.on_event("shutdown")
async def _shutdown() -> None:
    global _watcher
    if _watcher is not None:
        _watcher.cancel()
        try:
            await _watcher
        except asyncio.CancelledError:
            pass
        _watcher = None


async def _watch_clocks(interval: float) -> None:
    while True:
        await asyncio.sleep(interval)
        await _check_clocks()


async def _check_clocks() -> None:
    """Submit a timeout game-over for any game whose running clock hit zero."""
    for room in list(_rooms.values()):
        if room.session is None:
            continue
        # One broken room must not stop the others' clocks
        try:
            timeout = detect_timeout(room.session.state)
            if timeout is not None:
                logger.info("Game %s: %s", room.game_id, timeout.reason)
                await _submit(room, timeout)
        except Exception:
            logger.exception("Clock check failed for game %s", room.game_id)


# --------------------------------------------------------------------------- #
# REST                                                                         #
# --------------------------------------------------------------------------- #

@app.post("/api/games")
def create_game(payload: dict):
    creator_id = str(payload.get("creatorId", "")).strip()
    if not creator_id:
        raise HTTPException(status_code=400, detail="creatorId is required")

    try:
        time_control = TimeControl(
            base_minutes=float(payload.get("baseMinutes", config.game.base_minutes)),
            increment_seconds=float(payload.get("incrementSeconds", config.game.increment_seconds)),
        )
    except (TypeError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=f"Bad time control: {exc}") from exc
    if time_control.base_minutes <= 0 or time_control.increment_seconds < 0:
        raise HTTPException(status_code=400, detail="Time control must be positive")

    room = Room(game_id=uuid.uuid4().hex, creator_id=creator_id, time_control=time_control)
    _rooms[room.game_id] = room
    logger.info("Game %s created by %s", room.game_id, creator_id)
    return room.info()


@app.post("/api/games/{game_id}/join")
async def join_game(game_id: str, payload: dict):
    room = _get_room(game_id)
    player_id = str(payload.get("playerId", "")).strip()
    if not player_id:
        raise HTTPException(status_code=400, detail="playerId is required")

    async with room.lock:
        if room.session is not None:
            if room.session.color_of(player_id) is None:
                raise HTTPException(status_code=409, detail="Both seats are taken")
            return room.info()
        if player_id == room.creator_id:
            raise HTTPException(status_code=409, detail="Waiting for an opponent to join")

        white, black = seat_players(room.creator_id, player_id, config.game.player_ordering)
        room.session = GameSession(
            new_game(
                white=white,
                black=black,
                time_control=room.time_control,
                variant=config.game.variant,
            )
        )
        logger.info("Game %s: %s (white) vs %s (black)", game_id, white, black)
        await _broadcast(room, {"type": "state", "state": room.session.to_dict()})
    return room.info()


@app.get("/api/games/{game_id}")
def get_game(game_id: str):
    return _get_room(game_id).info()


# --------------------------------------------------------------------------- #
# WebSocket game                                                               #
# --------------------------------------------------------------------------- #

@app.websocket("/ws/games/{game_id}")
async def game_ws(ws: WebSocket, game_id: str) -> None:
    room = _rooms.get(game_id)
    await ws.accept()
    if room is None:
        await _send_error(ws, f"Unknown game: {game_id}")
        await ws.close(code=4404)
        return

    # Identity comes from the transport and overrides anything in the payload
    player_id = ws.query_params.get("playerId")

    room.sockets.add(ws)
    try:
        if room.session is not None:
            await ws.send_text(_to_json({"type": "state", "state": room.session.to_dict()}))

        while True:
            msg = await ws.receive_json()
            try:
                action = action_from_dict(msg)
            except ActionFormatError as exc:
                await _send_error(ws, str(exc))
                continue

            if room.session is None:
                await _send_error(ws, "Game has not started")
                continue

            if player_id:
                try:
                    action = _bind_to_seat(action, player_id, room.session.color_of(player_id))
                except SeatError as exc:
                    await _send_error(ws, str(exc))
                    continue
            await _submit(room, action)

    except WebSocketDisconnect:
        pass
    finally:
        room.sockets.discard(ws)


class SeatError(Exception):
    """A socket tried to act for a seat it does not hold."""


def _claimed_color(action: GameAction) -> Color | None:
    match action:
        case RequestTakeback(player=color) | OfferDraw(player=color) | PlayerResigned(player=color):
            return color
        case AcceptTakeback(accepting_player=color) | AcceptDraw(accepting_player=color):
            return color
        case DeclineTakeback(declining_player=color) | DeclineDraw(declining_player=color):
            return color
    return None


def _bind_to_seat(action: GameAction, player_id: str, seat: Color | None) -> GameAction:
    """Stamp `action` with the socket's player, or raise SeatError."""
    if seat is None:
        raise SeatError(f"{player_id} is not seated in this game")
    if isinstance(action, GameOver):
        raise SeatError("Game over is decided by the server")

    claimed = _claimed_color(action)
    if claimed is not None and claimed != seat:
        raise SeatError(f"{player_id} plays {seat}, not {claimed}")

    match action:
        case MoveMade():
            return replace(action, player_id=player_id)
        case AcceptDraw(accepting_player=None):
            return replace(action, accepting_player=seat)
        case DeclineDraw(declining_player=None):
            return replace(action, declining_player=seat)
    return action


async def _send_error(ws: WebSocket, message: str) -> None:
    await ws.send_text(_to_json({"type": "error", "message": message}))


async def _submit(room: Room, action: GameAction) -> None:
    """Apply one action under the room lock and fan the result out."""
    if room.session is None:
        return
    async with room.lock:
        applied = room.session.dispatch(action)
        message = {
            "type": "applied",
            "actions": [action_to_dict(a) for a in applied],
            "state": room.session.to_dict(),
        }
    await _broadcast(room, message)


async def _broadcast(room: Room, message: dict) -> None:
    text = _to_json(message)
    for ws in list(room.sockets):
        try:
            await ws.send_text(text)
        except (WebSocketDisconnect, RuntimeError):
            room.sockets.discard(ws)
