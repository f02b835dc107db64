"""
The transition function — the single point of state change for a game.

    new_state, emitted = apply(state, action)

apply() never performs I/O and never calls itself. Follow-up effects
(a mating move ending the game, a resignation, an accepted draw) come back as
emitted actions which the caller must feed through apply() again, in order,
before handling anything else. session.GameSession does that draining.

Invalid actions (wrong player, illegal move, offer outside play, nothing to
accept) are no-ops: the state comes back unchanged and nothing is emitted.
The reason is logged at DEBUG for whoever is watching.
"""

from __future__ import annotations

import copy
import logging
from datetime import datetime, timezone

from chessduel.actions import (
    AcceptDraw,
    AcceptTakeback,
    DeclineDraw,
    DeclineTakeback,
    GameAction,
    GameOver,
    MoveMade,
    OfferDraw,
    PlayerResigned,
    RequestTakeback,
    opposite_color,
)
from chessduel.rules import IllegalMoveError, RulesEngine, get_rules
from chessduel.state import GameState

logger = logging.getLogger("chessduel.game")


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def apply(
    state: GameState,
    action: GameAction,
    *,
    rules: RulesEngine | None = None,
    now: str | None = None,
) -> tuple[GameState, list[GameAction]]:
    """
    Apply one action and return (new_state, emitted_actions).

    The input state is left untouched. `rules` defaults to the engine
    registered for the state's variant; `now` (ISO-8601) defaults to the
    current UTC time and stamps accepted moves and completion.
    """
    new_state = copy.deepcopy(state)
    emitted: list[GameAction] = []

    match action:
        case MoveMade():
            _move_made(new_state, action, rules, now, emitted)
        case RequestTakeback():
            _request_takeback(new_state, action)
        case AcceptTakeback():
            _accept_takeback(new_state, action)
        case DeclineTakeback():
            new_state.takeback_request.pop(opposite_color(action.declining_player), None)
        case OfferDraw():
            if new_state.status == "in-progress":
                new_state.draw_offer = action.player
            else:
                logger.debug("Draw offer by %s ignored: game is %s", action.player, new_state.status)
        case AcceptDraw():
            offer = new_state.draw_offer
            if offer is not None and action.accepting_player != offer:
                emitted.append(GameOver(reason="draw-agreed"))
        case DeclineDraw():
            if new_state.draw_offer is not None and action.declining_player != new_state.draw_offer:
                new_state.draw_offer = None
        case PlayerResigned():
            reason = "white-resignation" if action.player == "white" else "black-resignation"
            emitted.append(GameOver(reason=reason))
        case GameOver():
            if new_state.status != "complete":
                new_state.status = "complete"
                new_state.game_over_reason = action.reason
                new_state.completed_at = now or utc_now()
                new_state.draw_offer = None
        case _:
            logger.warning("Ignoring unknown action %r", action)

    for follow_up in emitted:
        logger.debug("%s emitted %r", action.type, follow_up)

    return new_state, emitted


# --------------------------------------------------------------------------- #
# Handlers                                                                     #
# --------------------------------------------------------------------------- #

def _move_made(
    state: GameState,
    action: MoveMade,
    rules: RulesEngine | None,
    now: str | None,
    emitted: list[GameAction],
) -> None:
    if not state.seats_filled:
        logger.debug("Move %s ignored: both seats must be filled", action.move.uci())
        return

    turn = state.player_to_move
    if action.player_id and action.player_id != state.players[turn]:
        logger.debug("Move %s ignored: it is %s's turn", action.move.uci(), turn)
        return

    # Any engine failure leaves the state as it was
    try:
        engine = rules or get_rules(state.variant)
        applied = engine.validate_and_apply(state.current_board, action.move)
        conditions = engine.terminal_conditions(applied.position, [*state.boards, applied.position])
    except IllegalMoveError as exc:
        logger.debug("Invalid move: %s", exc)
        return
    except Exception:
        logger.exception("Rules engine failed on move %s", action.move.uci())
        return

    if state.status == "waiting" and not state.moves:
        state.status = "in-progress"
    if state.status != "in-progress":
        logger.debug("Move %s ignored: game is %s", action.move.uci(), state.status)
        return

    state.move_times.append(now or utc_now())
    state.moves.append(action.move)
    state.moves_with_notation.append(applied.notation)
    state.boards.append(applied.position)

    reason = conditions.first_reason()
    if reason is not None:
        emitted.append(GameOver(reason=reason))


def _request_takeback(state: GameState, action: RequestTakeback) -> None:
    if state.status != "in-progress":
        return

    n = len(state.moves)
    if action.player == state.last_mover:
        target = n - 1
    elif n >= 2:
        # Requester is to move: undo the opponent's reply and their own move
        target = n - 2
    else:
        return
    state.takeback_request[action.player] = target


def _accept_takeback(state: GameState, action: AcceptTakeback) -> None:
    requester = opposite_color(action.accepting_player)
    target = state.takeback_request.get(requester)
    if target is None or target > len(state.moves):
        return

    del state.moves[target:]
    del state.moves_with_notation[target:]
    del state.move_times[target:]
    del state.boards[target + 1:]
    del state.takeback_request[requester]

    # A pending request may now point past the shortened history
    for color, pending in list(state.takeback_request.items()):
        if pending > len(state.moves):
            del state.takeback_request[color]
