"""
Rules-engine contract and the standard-chess implementation.

The transition function only ever talks to a RulesEngine: validate a move
against a position, and ask whether a position ends the game. Swapping the
ruleset means registering a different engine for a variant name; no other
module knows about python-chess.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

import chess

from chessduel.actions import GameOverReason, Move


class IllegalMoveError(Exception):
    """The engine rejected a move. Caller state is untouched."""


@dataclass(frozen=True)
class AppliedMove:
    notation: str   # SAN, e.g. "Nf3", "exd8=Q+"
    position: str   # FEN after the move


@dataclass(frozen=True)
class TerminalConditions:
    checkmate: bool = False
    stalemate: bool = False
    insufficient_material: bool = False
    threefold_repetition: bool = False

    def first_reason(self) -> GameOverReason | None:
        """The one reason to report; checkmate outranks the draws."""
        if self.checkmate:
            return "checkmate"
        if self.stalemate:
            return "stalemate"
        if self.insufficient_material:
            return "insufficient-material"
        if self.threefold_repetition:
            return "threefold-repetition"
        return None


class RulesEngine(ABC):
    """Narrow capability interface the reducer depends on."""

    @abstractmethod
    def initial_position(self) -> str:
        ...

    @abstractmethod
    def validate_and_apply(self, position: str, move: Move) -> AppliedMove:
        """Return the move's notation and resulting position, or raise IllegalMoveError."""
        ...

    @abstractmethod
    def terminal_conditions(self, position: str, history: Sequence[str] = ()) -> TerminalConditions:
        """
        Check `position` for game-ending conditions.

        `history` is every earlier position of the game, oldest first, and may
        include `position` itself as its last entry.
        """
        ...


class StandardChessRules(RulesEngine):
    """RulesEngine over python-chess."""

    def initial_position(self) -> str:
        return chess.STARTING_FEN

    def validate_and_apply(self, position: str, move: Move) -> AppliedMove:
        try:
            board = chess.Board(position)
        except ValueError as exc:
            raise IllegalMoveError(f"Bad position {position!r}: {exc}") from exc

        candidate = self._to_chess_move(board, move)
        san = board.san(candidate)
        board.push(candidate)
        return AppliedMove(notation=san, position=board.fen())

    def terminal_conditions(self, position: str, history: Sequence[str] = ()) -> TerminalConditions:
        board = chess.Board(position)
        return TerminalConditions(
            checkmate=board.is_checkmate(),
            stalemate=board.is_stalemate(),
            insufficient_material=board.is_insufficient_material(),
            threefold_repetition=_occurrences(position, history) >= 3,
        )

    # ------------------------------------------------------------------ #
    # Internal                                                            #
    # ------------------------------------------------------------------ #

    @staticmethod
    def _to_chess_move(board: chess.Board, move: Move) -> chess.Move:
        try:
            from_square = chess.parse_square(move.source)
            to_square = chess.parse_square(move.target)
        except ValueError as exc:
            raise IllegalMoveError(str(exc)) from exc

        if move.promotion and move.promotion not in _PROMOTIONS:
            raise IllegalMoveError(f"Unknown promotion piece {move.promotion!r}")
        promotion = _PROMOTIONS.get(move.promotion) if move.promotion else None

        candidate = chess.Move(from_square, to_square, promotion=promotion)
        if candidate in board.legal_moves:
            return candidate

        if promotion is None:
            # Unspecified promotion: a pawn reaching the last rank becomes a queen
            queened = chess.Move(from_square, to_square, promotion=chess.QUEEN)
            if queened in board.legal_moves:
                return queened
        else:
            # A promotion letter on a move that promotes nothing is ignored
            plain = chess.Move(from_square, to_square)
            if plain in board.legal_moves:
                return plain

        raise IllegalMoveError(f"{move.uci()} is not legal in {board.fen()}")


_PROMOTIONS: dict[str, chess.PieceType] = {
    "q": chess.QUEEN,
    "r": chess.ROOK,
    "b": chess.BISHOP,
    "n": chess.KNIGHT,
}


def repetition_key(fen: str) -> str:
    """Placement, side to move, castling rights and en-passant square."""
    return " ".join(fen.split()[:4])


def _occurrences(position: str, history: Sequence[str]) -> int:
    key = repetition_key(position)
    count = sum(1 for fen in history if repetition_key(fen) == key)
    if not history or history[-1] != position:
        count += 1
    return count


_ENGINES: dict[str, RulesEngine] = {
    "standard": StandardChessRules(),
}


def get_rules(variant: str) -> RulesEngine:
    try:
        return _ENGINES[variant]
    except KeyError:
        raise ValueError(f"No rules engine registered for variant {variant!r}") from None
