"""
Session State — the record for one game instance.

GameState is plain data: no behaviour beyond read-only helpers, so it can be
copied, serialized and shipped between peers as-is. Only the transition
function in game.py changes it after new_game() creates it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, get_args

from chessduel.actions import (
    COLORS,
    GAME_OVER_REASONS,
    Color,
    GameOverReason,
    Move,
    move_from_dict,
    move_to_dict,
)
from chessduel.rules import get_rules

GameVariant = Literal["standard"]
GameStatus = Literal["waiting", "in-progress", "complete"]

VARIANTS: tuple[GameVariant, ...] = get_args(GameVariant)
STATUSES: tuple[GameStatus, ...] = get_args(GameStatus)


class StateFormatError(ValueError):
    """Raised when a serialized state cannot be decoded."""


class StateInvariantError(ValueError):
    """Raised when a state breaks one or more session invariants."""

    def __init__(self, violations: list[str]) -> None:
        super().__init__("; ".join(violations))
        self.violations = violations


@dataclass(frozen=True)
class TimeControl:
    base_minutes: float = 5
    increment_seconds: float = 3


@dataclass
class GameState:
    variant: GameVariant = "standard"
    time_control: TimeControl = field(default_factory=TimeControl)
    players: dict[Color, str] = field(default_factory=dict)
    moves: list[Move] = field(default_factory=list)
    moves_with_notation: list[str] = field(default_factory=list)
    move_times: list[str] = field(default_factory=list)   # ISO-8601, UTC
    boards: list[str] = field(default_factory=list)       # boards[0] is the start position
    status: GameStatus = "waiting"
    game_over_reason: GameOverReason | None = None
    completed_at: str | None = None
    takeback_request: dict[Color, int] = field(default_factory=dict)
    draw_offer: Color | None = None

    @property
    def player_to_move(self) -> Color:
        return "white" if len(self.moves) % 2 == 0 else "black"

    @property
    def last_mover(self) -> Color | None:
        if not self.moves:
            return None
        return "white" if len(self.moves) % 2 == 1 else "black"

    @property
    def current_board(self) -> str:
        return self.boards[-1]

    @property
    def seats_filled(self) -> bool:
        return bool(self.players.get("white")) and bool(self.players.get("black"))

    def color_of(self, player_id: str) -> Color | None:
        for color in COLORS:
            if self.players.get(color) == player_id:
                return color
        return None


def new_game(
    *,
    white: str | None = None,
    black: str | None = None,
    time_control: TimeControl | None = None,
    variant: GameVariant = "standard",
    starting_fen: str | None = None,
) -> GameState:
    """Create the zero state for a game. Either seat may be left empty."""
    players: dict[Color, str] = {}
    if white:
        players["white"] = white
    if black:
        players["black"] = black
    return GameState(
        variant=variant,
        time_control=time_control or TimeControl(),
        players=players,
        boards=[starting_fen or get_rules(variant).initial_position()],
    )


def check_invariants(state: GameState) -> None:
    """Raise StateInvariantError naming every broken invariant."""
    violations: list[str] = []
    n = len(state.moves)

    if not (len(state.boards) == n + 1 == len(state.moves_with_notation) + 1 == len(state.move_times) + 1):
        violations.append(
            f"length mismatch: boards={len(state.boards)} moves={n} "
            f"notation={len(state.moves_with_notation)} times={len(state.move_times)}"
        )
    if state.variant not in VARIANTS:
        violations.append(f"unknown variant {state.variant!r}")
    if state.status not in STATUSES:
        violations.append(f"unknown status {state.status!r}")

    complete = state.status == "complete"
    if complete != (state.game_over_reason is not None):
        violations.append("game_over_reason must be set exactly when status is complete")
    if complete != (state.completed_at is not None):
        violations.append("completed_at must be set exactly when status is complete")
    if state.game_over_reason is not None and state.game_over_reason not in GAME_OVER_REASONS:
        violations.append(f"unknown game-over reason {state.game_over_reason!r}")
    if state.status == "waiting" and n:
        violations.append("a game with moves cannot be waiting")

    for color, target in state.takeback_request.items():
        if color not in COLORS:
            violations.append(f"takeback request keyed by non-color {color!r}")
        elif not 0 <= target <= n:
            violations.append(f"{color} takeback target {target} outside 0..{n}")

    if state.draw_offer is not None and not state.players.get(state.draw_offer):
        violations.append(f"draw offered by unseated color {state.draw_offer!r}")

    if violations:
        raise StateInvariantError(violations)


# --------------------------------------------------------------------------- #
# Wire form                                                                    #
# --------------------------------------------------------------------------- #

def state_to_dict(state: GameState) -> dict:
    """JSON-safe dict with the same keys peers exchange on the wire."""
    data: dict = {
        "variant": state.variant,
        "timeControl": {
            "baseMinutes": state.time_control.base_minutes,
            "incrementSeconds": state.time_control.increment_seconds,
        },
        "players": dict(state.players),
        "moves": [move_to_dict(m) for m in state.moves],
        "movesWithNotation": list(state.moves_with_notation),
        "moveTimes": list(state.move_times),
        "boards": list(state.boards),
        "status": state.status,
        "takebackRequest": dict(state.takeback_request),
    }
    if state.game_over_reason is not None:
        data["gameOverReason"] = state.game_over_reason
    if state.completed_at is not None:
        data["completedAt"] = state.completed_at
    if state.draw_offer is not None:
        data["drawOffer"] = state.draw_offer
    return data


def state_from_dict(data: object) -> GameState:
    """
    Decode and validate a state produced by state_to_dict().

    Raises:
        StateFormatError: the dict is structurally wrong.
        StateInvariantError: it decodes but breaks a session invariant.
    """
    if not isinstance(data, dict):
        raise StateFormatError(f"State must be an object, got {type(data).__name__}")

    try:
        tc_raw = data.get("timeControl") or {}
        state = GameState(
            variant=data.get("variant", "standard"),
            time_control=TimeControl(
                base_minutes=float(tc_raw.get("baseMinutes", 5)),
                increment_seconds=float(tc_raw.get("incrementSeconds", 3)),
            ),
            players={c: str(p) for c, p in (data.get("players") or {}).items() if p},
            moves=[move_from_dict(m) for m in data.get("moves", [])],
            moves_with_notation=[str(s) for s in data.get("movesWithNotation", [])],
            move_times=[str(t) for t in data.get("moveTimes", [])],
            boards=[str(b) for b in data["boards"]],
            status=data.get("status", "waiting"),
            game_over_reason=data.get("gameOverReason"),
            completed_at=data.get("completedAt"),
            takeback_request={
                c: int(i) for c, i in (data.get("takebackRequest") or {}).items() if i is not None
            },
            draw_offer=data.get("drawOffer"),
        )
    except (KeyError, TypeError, AttributeError, ValueError) as exc:
        raise StateFormatError(f"Invalid game state: {exc}") from exc

    for color in state.players:
        if color not in COLORS:
            raise StateFormatError(f"players keyed by non-color {color!r}")
    check_invariants(state)
    return state
