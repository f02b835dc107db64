"""
GameSession — the caller-side driver around the transition function.

One session is the single logical authority for one game: it applies one
action at a time and drains every emitted follow-up before returning, so
listeners always observe a fully settled state.

Usage:
    session = GameSession(new_game(white="alice", black="bob"))
    session.subscribe(lambda action, state: print(action.type, state.status))
    session.dispatch(MoveMade(Move("e2", "e4"), player_id="alice"))
"""

from __future__ import annotations

import logging
import random
from collections import deque
from collections.abc import Callable
from typing import Literal

from chessduel.actions import Color, GameAction
from chessduel.game import apply
from chessduel.rules import RulesEngine, get_rules
from chessduel.state import GameState, state_to_dict

logger = logging.getLogger("chessduel.session")

PlayerOrdering = Literal["creator-white", "creator-black", "random"]
Listener = Callable[[GameAction, GameState], None]


class GameSession:
    def __init__(self, state: GameState, rules: RulesEngine | None = None) -> None:
        self._state = state
        self._rules = rules or get_rules(state.variant)
        self._listeners: list[Listener] = []

    @property
    def state(self) -> GameState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def dispatch(self, action: GameAction, *, now: str | None = None) -> list[GameAction]:
        """
        Apply `action` and every action it transitively emits, in emission order.

        Returns all actions that were applied, starting with `action`.
        """
        applied: list[GameAction] = []
        queue: deque[GameAction] = deque([action])
        while queue:
            current = queue.popleft()
            self._state, emitted = apply(self._state, current, rules=self._rules, now=now)
            applied.append(current)
            logger.debug("Applied %s -> status=%s moves=%d", current.type, self._state.status, len(self._state.moves))
            for listener in list(self._listeners):
                listener(current, self._state)
            queue.extend(emitted)
        return applied

    def color_of(self, player_id: str) -> Color | None:
        return self._state.color_of(player_id)

    def to_dict(self) -> dict:
        return state_to_dict(self._state)


def seat_players(
    creator_id: str,
    joiner_id: str,
    ordering: PlayerOrdering = "creator-white",
    rng: random.Random | None = None,
) -> tuple[str, str]:
    """Return (white_id, black_id) for an invitation's two participants."""
    match ordering:
        case "creator-white":
            return creator_id, joiner_id
        case "creator-black":
            return joiner_id, creator_id
        case "random":
            creator_white = (rng or random).random() < 0.5
            return (creator_id, joiner_id) if creator_white else (joiner_id, creator_id)
    raise ValueError(f"Unknown player ordering: {ordering!r}")
