"""
chessduel — a two-player chess session driven by a pure transition function.

    state, emitted = apply(state, action)

Callers feed every emitted action back through apply() in order;
GameSession.dispatch() does that for you.
"""

from __future__ import annotations

from chessduel.actions import (
    AcceptDraw,
    AcceptTakeback,
    Color,
    DeclineDraw,
    DeclineTakeback,
    GameAction,
    GameOver,
    GameOverReason,
    Move,
    MoveMade,
    OfferDraw,
    PlayerResigned,
    RequestTakeback,
    action_from_dict,
    action_to_dict,
    opposite_color,
)
from chessduel.game import apply
from chessduel.session import GameSession
from chessduel.state import GameState, TimeControl, new_game, state_from_dict, state_to_dict

__all__ = [
    "AcceptDraw",
    "AcceptTakeback",
    "Color",
    "DeclineDraw",
    "DeclineTakeback",
    "GameAction",
    "GameOver",
    "GameOverReason",
    "GameSession",
    "GameState",
    "Move",
    "MoveMade",
    "OfferDraw",
    "PlayerResigned",
    "RequestTakeback",
    "TimeControl",
    "action_from_dict",
    "action_to_dict",
    "apply",
    "new_game",
    "opposite_color",
    "state_from_dict",
    "state_to_dict",
]
