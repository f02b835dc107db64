"""
HistoryCursor — lets a viewer scrub through past positions.

The cursor is view-only: it indexes into the game's `boards` list and never
touches the game state. Moves should only be submitted while the cursor sits
on the live position (is_on_most_recent_state).
"""

from __future__ import annotations


class HistoryCursor:
    def __init__(self, boards: list[str]) -> None:
        if not boards:
            raise ValueError("boards must contain at least the starting position")
        self._boards = list(boards)
        self._index = len(boards) - 1

    @property
    def index(self) -> int:
        """Index into boards; 0 is the start, i is the position after move i-1."""
        return self._index

    @property
    def board(self) -> str:
        return self._boards[self._index]

    @property
    def is_on_most_recent_state(self) -> bool:
        return self._index == len(self._boards) - 1

    def select_move(self, move_index: int) -> None:
        """View the position right after moves[move_index]."""
        self._go(move_index + 1)

    def back(self) -> None:
        self._go(self._index - 1)

    def forward(self) -> None:
        self._go(self._index + 1)

    def first(self) -> None:
        self._go(0)

    def latest(self) -> None:
        self._go(len(self._boards) - 1)

    def sync(self, boards: list[str]) -> None:
        """
        Track a new boards list from the live state.

        A cursor on the live position follows new moves; one that was looking
        at history stays put unless a takeback removed that position.
        """
        if not boards:
            raise ValueError("boards must contain at least the starting position")
        was_live = self.is_on_most_recent_state
        self._boards = list(boards)
        if was_live:
            self._index = len(boards) - 1
        else:
            self._index = min(self._index, len(boards) - 1)

    def _go(self, index: int) -> None:
        self._index = max(0, min(index, len(self._boards) - 1))
