"""
Board rendering helpers.

ASCII and SVG both come from python-chess. square_highlights() computes the
squares a board view should tint: the last move's source and target, and the
king of the side to move when it is in check.
"""

from __future__ import annotations

import chess
import chess.svg

from chessduel.actions import Move

LAST_MOVE_SOURCE = "#1e960027"
LAST_MOVE_TARGET = "#1e960033"
KING_IN_CHECK = "#ff000033"


def render_ascii(fen: str) -> str:
    """Standard ASCII board via python-chess."""
    return str(chess.Board(fen))


def square_highlights(last_move: Move | None, fen: str) -> dict[str, str]:
    """Map of square name -> fill colour for the given position."""
    styles: dict[str, str] = {}
    board = chess.Board(fen)

    if board.is_check():
        king = board.king(board.turn)
        if king is not None:
            styles[chess.square_name(king)] = KING_IN_CHECK

    if last_move is not None:
        styles[last_move.source] = LAST_MOVE_SOURCE
        styles[last_move.target] = LAST_MOVE_TARGET

    return styles


def render_svg(
    fen: str,
    last_move: Move | None = None,
    orientation: str = "white",
    size: int = 400,
) -> str:
    """SVG string of the position with highlights, from `orientation`'s side."""
    board = chess.Board(fen)
    fill = {
        chess.parse_square(square): colour
        for square, colour in square_highlights(last_move, fen).items()
    }
    return chess.svg.board(
        board=board,
        fill=fill,
        orientation=chess.WHITE if orientation == "white" else chess.BLACK,
        size=size,
    )
