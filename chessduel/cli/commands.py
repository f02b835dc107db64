"""
Turns a typed command line into a game action (or a local view command).

Grammar, one command per line, optionally prefixed by the acting colour
("black accept"); without a prefix the side to move acts:

    e2e4 | e7e8q            make a move (UCI)
    resign                  resign the game
    draw                    offer a draw
    takeback                ask to take back
    accept [draw|takeback]  accept the opponent's pending offer
    decline [draw|takeback] decline it
    back | forward | first | latest   move the history cursor
    help | quit
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from chessduel.actions import (
    COLORS,
    AcceptDraw,
    AcceptTakeback,
    ActionFormatError,
    Color,
    DeclineDraw,
    DeclineTakeback,
    GameAction,
    Move,
    MoveMade,
    OfferDraw,
    PlayerResigned,
    RequestTakeback,
    opposite_color,
)
from chessduel.state import GameState

ViewCommand = Literal["back", "forward", "first", "latest"]
VIEW_COMMANDS: tuple[ViewCommand, ...] = ("back", "forward", "first", "latest")


class CommandError(ValueError):
    """The line could not be understood; the message is shown to the user."""


@dataclass(frozen=True)
class Command:
    kind: Literal["action", "view", "help", "quit"]
    action: GameAction | None = None
    view: ViewCommand | None = None


def parse_command(text: str, state: GameState) -> Command:
    words = text.strip().lower().split()
    if not words:
        raise CommandError("Type a move like e2e4, or 'help'.")

    actor: Color = state.player_to_move
    if words[0] in COLORS:
        actor = words.pop(0)  # type: ignore[assignment]
        if not words:
            raise CommandError(f"What should {actor} do?")

    verb, args = words[0], words[1:]
    match verb:
        case "help" | "?":
            return Command(kind="help")
        case "quit" | "exit":
            return Command(kind="quit")
        case "back" | "forward" | "first" | "latest":
            return Command(kind="view", view=verb)
        case "resign":
            return Command(kind="action", action=PlayerResigned(player=actor))
        case "draw":
            return Command(kind="action", action=OfferDraw(player=actor))
        case "takeback":
            return Command(kind="action", action=RequestTakeback(player=actor))
        case "accept" | "decline":
            return Command(kind="action", action=_resolve_offer(verb, args, actor, state))

    try:
        move = Move.from_uci(verb)
    except ActionFormatError:
        raise CommandError(f"Unknown command {text.strip()!r}. Type 'help' for the list.") from None
    return Command(kind="action", action=MoveMade(move=move, player_id=state.players.get(actor)))


def _resolve_offer(verb: str, args: list[str], actor: Color, state: GameState) -> GameAction:
    opponent = opposite_color(actor)
    if args:
        topic = args[0]
    else:
        pending = []
        if state.draw_offer == opponent:
            pending.append("draw")
        if opponent in state.takeback_request:
            pending.append("takeback")
        if not pending:
            raise CommandError(f"{opponent.title()} has nothing pending for {actor} to {verb}.")
        if len(pending) > 1:
            raise CommandError(f"Both a draw and a takeback are pending; say '{verb} draw' or '{verb} takeback'.")
        topic = pending[0]

    match (verb, topic):
        case ("accept", "draw"):
            return AcceptDraw(accepting_player=actor)
        case ("decline", "draw"):
            return DeclineDraw(declining_player=actor)
        case ("accept", "takeback"):
            return AcceptTakeback(accepting_player=actor)
        case ("decline", "takeback"):
            return DeclineTakeback(declining_player=actor)
    raise CommandError(f"Can only {verb} a draw or a takeback, not {topic!r}.")
