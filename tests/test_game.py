"""
Tests for apply() — the transition function.

Covers move handling (seats, turn order, legality, lifecycle), terminal
condition detection and the idempotent game-over. Negotiation protocols
live in test_negotiation.py.
"""

import unittest

from chessduel.actions import GameOver, Move, MoveMade, PlayerResigned
from chessduel.game import apply
from chessduel.rules import StandardChessRules
from chessduel.state import check_invariants, new_game

NOW = "2026-01-01T12:00:00+00:00"
LATER = "2026-01-01T12:05:00+00:00"


def _seated(**kwargs):
    return new_game(white="alice", black="bob", **kwargs)


def _play(state, *ucis):
    """Apply moves (and any emitted actions) in order; returns (state, last_emitted)."""
    emitted = []
    for uci in ucis:
        state, emitted = apply(state, MoveMade(Move.from_uci(uci)), now=NOW)
        for follow_up in emitted:
            state, _ = apply(state, follow_up, now=NOW)
    return state, emitted


class MoveMadeTests(unittest.TestCase):

    def test_move_rejected_until_both_seats_filled(self):
        state = new_game(white="alice")
        new_state, emitted = apply(state, MoveMade(Move("e2", "e4")), now=NOW)
        self.assertEqual(new_state, state)
        self.assertEqual(emitted, [])
        self.assertEqual(new_state.status, "waiting")

    def test_first_move_starts_the_game(self):
        state, emitted = apply(_seated(), MoveMade(Move("e2", "e4")), now=NOW)
        self.assertEqual(emitted, [])
        self.assertEqual(state.status, "in-progress")
        self.assertEqual(len(state.boards), 2)
        self.assertEqual(state.moves, [Move("e2", "e4")])
        self.assertEqual(state.moves_with_notation, ["e4"])
        self.assertEqual(state.move_times, [NOW])

    def test_input_state_is_not_mutated(self):
        state = _seated()
        apply(state, MoveMade(Move("e2", "e4")), now=NOW)
        self.assertEqual(len(state.boards), 1)
        self.assertEqual(state.moves, [])
        self.assertEqual(state.status, "waiting")

    def test_wrong_player_is_silently_rejected(self):
        state = _seated()
        new_state, emitted = apply(state, MoveMade(Move("e2", "e4"), player_id="bob"), now=NOW)
        self.assertEqual(new_state, state)
        self.assertEqual(emitted, [])

    def test_matching_player_id_is_accepted(self):
        state, _ = apply(_seated(), MoveMade(Move("e2", "e4"), player_id="alice"), now=NOW)
        state, _ = apply(state, MoveMade(Move("e7", "e5"), player_id="bob"), now=NOW)
        self.assertEqual(state.moves_with_notation, ["e4", "e5"])

    def test_illegal_move_is_silently_rejected(self):
        state, _ = _play(_seated(), "e2e4")
        new_state, emitted = apply(state, MoveMade(Move("e7", "e4")), now=NOW)
        self.assertEqual(new_state, state)
        self.assertEqual(emitted, [])

    def test_length_invariant_holds_across_moves(self):
        state = _seated()
        for uci in ("e2e4", "e7e5", "g1f3", "b8c6", "f1b5"):
            state, _ = _play(state, uci)
            check_invariants(state)
            self.assertEqual(len(state.boards), len(state.moves) + 1)
            self.assertEqual(len(state.moves_with_notation), len(state.moves))
            self.assertEqual(len(state.move_times), len(state.moves))
        self.assertEqual(state.moves_with_notation[-1], "Bb5")

    def test_pawn_reaching_last_rank_defaults_to_queen(self):
        state = _seated(starting_fen="8/P6k/8/8/8/8/8/K7 w - - 0 1")
        state, _ = apply(state, MoveMade(Move("a7", "a8")), now=NOW)
        self.assertEqual(state.moves_with_notation, ["a8=Q"])

    def test_explicit_underpromotion(self):
        state = _seated(starting_fen="8/P6k/8/8/8/8/8/K7 w - - 0 1")
        state, _ = apply(state, MoveMade(Move("a7", "a8", promotion="n")), now=NOW)
        self.assertEqual(state.moves_with_notation, ["a8=N"])

    def test_unknown_promotion_piece_is_silently_rejected(self):
        state = _seated(starting_fen="8/P6k/8/8/8/8/8/K7 w - - 0 1")
        new_state, emitted = apply(state, MoveMade(Move("a7", "a8", promotion="x")), now=NOW)
        self.assertEqual(new_state, state)
        self.assertEqual(emitted, [])

    def test_promotion_letter_on_ordinary_move_is_ignored(self):
        state, _ = apply(_seated(), MoveMade(Move("e2", "e4", promotion="q")), now=NOW)
        self.assertEqual(state.moves_with_notation, ["e4"])

    def test_failing_rules_engine_leaves_state_unchanged(self):
        class BrokenRules(StandardChessRules):
            def validate_and_apply(self, position, move):
                raise RuntimeError("engine blew up")

        state = _seated()
        with self.assertLogs("chessduel.game", level="ERROR"):
            new_state, emitted = apply(state, MoveMade(Move("e2", "e4")), rules=BrokenRules(), now=NOW)
        self.assertEqual(new_state, state)
        self.assertEqual(emitted, [])

    def test_unregistered_variant_leaves_state_unchanged(self):
        state = _seated()
        state.variant = "atomic"
        with self.assertLogs("chessduel.game", level="ERROR"):
            new_state, emitted = apply(state, MoveMade(Move("e2", "e4")), now=NOW)
        self.assertEqual(new_state, state)
        self.assertEqual(emitted, [])

    def test_moves_rejected_once_game_is_complete(self):
        state, _ = _play(_seated(), "e2e4")
        state, _ = apply(state, GameOver(reason="black-timeout"), now=NOW)
        new_state, emitted = apply(state, MoveMade(Move("e7", "e5")), now=NOW)
        self.assertEqual(new_state, state)
        self.assertEqual(emitted, [])

    def test_complete_game_without_moves_never_restarts(self):
        state, _ = apply(_seated(), GameOver(reason="white-timeout"), now=NOW)
        new_state, _ = apply(state, MoveMade(Move("e2", "e4")), now=NOW)
        self.assertEqual(new_state.status, "complete")
        self.assertEqual(new_state.moves, [])


class TerminalConditionTests(unittest.TestCase):

    def test_checkmate_emits_single_game_over(self):
        state, _ = _play(_seated(), "f2f3", "e7e5", "g2g4")
        state, emitted = apply(state, MoveMade(Move("d8", "h4")), now=NOW)

        self.assertEqual(emitted, [GameOver(reason="checkmate")])
        self.assertEqual(state.moves_with_notation[-1], "Qh4#")
        # Emission alone does not complete the game
        self.assertEqual(state.status, "in-progress")

        state, emitted = apply(state, emitted[0], now=LATER)
        self.assertEqual(emitted, [])
        self.assertEqual(state.status, "complete")
        self.assertEqual(state.game_over_reason, "checkmate")
        self.assertEqual(state.completed_at, LATER)

    def test_stalemate(self):
        state = _seated(starting_fen="7k/8/6K1/8/8/8/8/5Q2 w - - 0 1")
        _, emitted = apply(state, MoveMade(Move("f1", "f7")), now=NOW)
        self.assertEqual(emitted, [GameOver(reason="stalemate")])

    def test_insufficient_material(self):
        state = _seated(starting_fen="7k/8/8/8/8/8/8/Kn6 w - - 0 1")
        _, emitted = apply(state, MoveMade(Move("a1", "b1")), now=NOW)
        self.assertEqual(emitted, [GameOver(reason="insufficient-material")])

    def test_threefold_repetition_detected_from_history(self):
        shuffle = ("g1f3", "g8f6", "f3g1", "f6g8")
        state, emitted = _play(_seated(), *shuffle, *shuffle[:3])
        self.assertEqual(emitted, [])
        self.assertEqual(state.status, "in-progress")

        state, emitted = apply(state, MoveMade(Move("f6", "g8")), now=NOW)
        self.assertEqual(emitted, [GameOver(reason="threefold-repetition")])

    def test_ordinary_move_emits_nothing(self):
        _, emitted = _play(_seated(), "e2e4", "e7e5")
        self.assertEqual(emitted, [])


class GameOverTests(unittest.TestCase):

    def test_game_over_is_idempotent(self):
        state, _ = _play(_seated(), "e2e4")
        once, _ = apply(state, GameOver(reason="white-timeout"), now=NOW)
        twice, emitted = apply(once, GameOver(reason="checkmate"), now=LATER)
        self.assertEqual(twice, once)
        self.assertEqual(emitted, [])
        self.assertEqual(twice.game_over_reason, "white-timeout")
        self.assertEqual(twice.completed_at, NOW)

    def test_resignation_emits_matching_reason(self):
        state, _ = _play(_seated(), "e2e4")
        state, emitted = apply(state, PlayerResigned(player="black"), now=NOW)
        self.assertEqual(emitted, [GameOver(reason="black-resignation")])
        self.assertEqual(state.status, "in-progress")

        state, _ = apply(state, emitted[0], now=NOW)
        self.assertEqual(state.status, "complete")
        self.assertEqual(state.game_over_reason, "black-resignation")
        self.assertIsNotNone(state.completed_at)

    def test_second_resignation_does_not_change_outcome(self):
        state, _ = _play(_seated(), "e2e4")
        state, emitted = apply(state, PlayerResigned(player="white"), now=NOW)
        state, _ = apply(state, emitted[0], now=NOW)

        after, emitted = apply(state, PlayerResigned(player="black"), now=LATER)
        after, _ = apply(after, emitted[0], now=LATER)
        self.assertEqual(after, state)
        self.assertEqual(after.game_over_reason, "white-resignation")

    def test_completion_clears_pending_draw_offer(self):
        from chessduel.actions import OfferDraw

        state, _ = _play(_seated(), "e2e4")
        state, _ = apply(state, OfferDraw(player="white"), now=NOW)
        state, _ = apply(state, GameOver(reason="black-timeout"), now=NOW)
        self.assertIsNone(state.draw_offer)
        check_invariants(state)
