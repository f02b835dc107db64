"""
Action vocabulary — everything a player (or a clock observer) can do to a game.

Actions are frozen dataclasses so they can be queued, logged and replayed
without anyone mutating them in flight. Each class carries its wire tag in
`type`; action_to_dict()/action_from_dict() convert to and from the plain
dict form exchanged between peers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar, Literal, get_args

Color = Literal["white", "black"]
PromotionPiece = Literal["q", "r", "b", "n"]
GameOverReason = Literal[
    "checkmate",
    "white-resignation",
    "black-resignation",
    "stalemate",
    "insufficient-material",
    "threefold-repetition",
    "white-timeout",
    "black-timeout",
    "draw-agreed",
]

COLORS: tuple[Color, ...] = get_args(Color)
GAME_OVER_REASONS: tuple[GameOverReason, ...] = get_args(GameOverReason)

_SQUARE_RE = re.compile(r"^[a-h][1-8]$")
_UCI_RE = re.compile(r"^([a-h][1-8])([a-h][1-8])([qrbn])?$")


class ActionFormatError(ValueError):
    """Raised when a wire dict cannot be turned into an action."""


def opposite_color(color: Color) -> Color:
    return "black" if color == "white" else "white"


@dataclass(frozen=True)
class Move:
    """A proposed transition. Legality is the rules engine's business."""

    source: str
    target: str
    promotion: PromotionPiece | None = None

    def uci(self) -> str:
        return f"{self.source}{self.target}{self.promotion or ''}"

    @classmethod
    def from_uci(cls, text: str) -> Move:
        m = _UCI_RE.match(text.strip().lower())
        if m is None:
            raise ActionFormatError(f"Not a UCI move: {text!r}")
        source, target, promotion = m.groups()
        return cls(source=source, target=target, promotion=promotion)  # type: ignore[arg-type]


# --------------------------------------------------------------------------- #
# Actions                                                                      #
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class MoveMade:
    type: ClassVar[str] = "move-made"

    move: Move
    player_id: str | None = None   # when set, must match the seat that is to move


@dataclass(frozen=True)
class RequestTakeback:
    type: ClassVar[str] = "request-takeback"

    player: Color


@dataclass(frozen=True)
class AcceptTakeback:
    type: ClassVar[str] = "accept-takeback"

    accepting_player: Color


@dataclass(frozen=True)
class DeclineTakeback:
    type: ClassVar[str] = "decline-takeback"

    declining_player: Color


@dataclass(frozen=True)
class OfferDraw:
    type: ClassVar[str] = "offer-draw"

    player: Color


@dataclass(frozen=True)
class AcceptDraw:
    type: ClassVar[str] = "accept-draw"

    accepting_player: Color | None = None


@dataclass(frozen=True)
class DeclineDraw:
    type: ClassVar[str] = "decline-draw"

    declining_player: Color | None = None


@dataclass(frozen=True)
class PlayerResigned:
    type: ClassVar[str] = "player-resigned"

    player: Color


@dataclass(frozen=True)
class GameOver:
    type: ClassVar[str] = "game-over"

    reason: GameOverReason


# Union type for type-safe pattern matching in the reducer and its callers
GameAction = (
    MoveMade
    | RequestTakeback
    | AcceptTakeback
    | DeclineTakeback
    | OfferDraw
    | AcceptDraw
    | DeclineDraw
    | PlayerResigned
    | GameOver
)


# --------------------------------------------------------------------------- #
# Wire form                                                                    #
# --------------------------------------------------------------------------- #

def action_to_dict(action: GameAction) -> dict:
    """Plain dict form: {"type": "<tag>", ...camelCase fields}."""
    match action:
        case MoveMade(move=move, player_id=player_id):
            data: dict = {"type": action.type, "move": move_to_dict(move)}
            if player_id is not None:
                data["playerId"] = player_id
            return data
        case RequestTakeback(player=player) | OfferDraw(player=player) | PlayerResigned(player=player):
            return {"type": action.type, "player": player}
        case AcceptTakeback(accepting_player=color):
            return {"type": action.type, "acceptingPlayer": color}
        case DeclineTakeback(declining_player=color):
            return {"type": action.type, "decliningPlayer": color}
        case AcceptDraw(accepting_player=color):
            return _with_optional({"type": action.type}, "acceptingPlayer", color)
        case DeclineDraw(declining_player=color):
            return _with_optional({"type": action.type}, "decliningPlayer", color)
        case GameOver(reason=reason):
            return {"type": action.type, "reason": reason}
    raise TypeError(f"Not a game action: {action!r}")


def action_from_dict(data: object) -> GameAction:
    """
    Parse the wire form produced by action_to_dict().

    Raises:
        ActionFormatError: unknown type tag, missing field or bad value.
    """
    if not isinstance(data, dict):
        raise ActionFormatError(f"Action must be an object, got {type(data).__name__}")

    kind = data.get("type")
    try:
        match kind:
            case "move-made":
                player_id = data.get("playerId")
                return MoveMade(
                    move=move_from_dict(data["move"]),
                    player_id=str(player_id) if player_id is not None else None,
                )
            case "request-takeback":
                return RequestTakeback(player=_color(data["player"]))
            case "accept-takeback":
                return AcceptTakeback(accepting_player=_color(data["acceptingPlayer"]))
            case "decline-takeback":
                return DeclineTakeback(declining_player=_color(data["decliningPlayer"]))
            case "offer-draw":
                return OfferDraw(player=_color(data["player"]))
            case "accept-draw":
                return AcceptDraw(accepting_player=_optional_color(data.get("acceptingPlayer")))
            case "decline-draw":
                return DeclineDraw(declining_player=_optional_color(data.get("decliningPlayer")))
            case "player-resigned":
                return PlayerResigned(player=_color(data["player"]))
            case "game-over":
                reason = data["reason"]
                if reason not in GAME_OVER_REASONS:
                    raise ActionFormatError(f"Unknown game-over reason: {reason!r}")
                return GameOver(reason=reason)
    except KeyError as exc:
        raise ActionFormatError(f"{kind} action is missing field {exc}") from exc

    raise ActionFormatError(f"Unknown action type: {kind!r}")


def move_to_dict(move: Move) -> dict:
    return _with_optional({"source": move.source, "target": move.target}, "promotion", move.promotion)


def move_from_dict(raw: object) -> Move:
    if not isinstance(raw, dict):
        raise ActionFormatError(f"move must be an object, got {raw!r}")
    source = str(raw["source"]).lower()
    target = str(raw["target"]).lower()
    for square in (source, target):
        if not _SQUARE_RE.match(square):
            raise ActionFormatError(f"Not a square: {square!r}")
    promotion = raw.get("promotion")
    if promotion is not None and promotion not in get_args(PromotionPiece):
        raise ActionFormatError(f"Bad promotion piece: {promotion!r}")
    return Move(source=source, target=target, promotion=promotion)


def _color(value: object) -> Color:
    if value not in COLORS:
        raise ActionFormatError(f"Not a color: {value!r}")
    return value  # type: ignore[return-value]


def _optional_color(value: object) -> Color | None:
    return None if value is None else _color(value)


def _with_optional(data: dict, key: str, value: object) -> dict:
    if value is not None:
        data[key] = value
    return data
