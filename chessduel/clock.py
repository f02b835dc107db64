"""
Clock observer — derives live remaining time from the immutable move stamps.

The game record only stores when each move was accepted plus the time
control. Everything here is a pure function of those, so every peer computes
the same clocks without any clock state being synchronized.

Clock rules:
  - clocks start with the first move; White's first move is free
  - move i (i >= 1) costs its mover move_times[i] - move_times[i-1],
    after which the increment is credited
  - the side to move is charged from the last move until now (or until
    completed_at once the game is over)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from chessduel.actions import Color, GameOver
from chessduel.state import GameState


@dataclass(frozen=True)
class ClockReading:
    white_ms: float
    black_ms: float
    running: Color | None = None   # whose clock is ticking, if any

    def remaining(self, color: Color) -> float:
        return self.white_ms if color == "white" else self.black_ms


def remaining_times(state: GameState, now: datetime | None = None) -> ClockReading:
    base_ms = state.time_control.base_minutes * 60_000
    increment_ms = state.time_control.increment_seconds * 1000
    clocks: dict[Color, float] = {"white": base_ms, "black": base_ms}

    stamps = [_parse(t) for t in state.move_times]
    for i in range(1, len(stamps)):
        mover: Color = "white" if i % 2 == 0 else "black"
        clocks[mover] -= _ms_between(stamps[i - 1], stamps[i])
        clocks[mover] += increment_ms

    running: Color | None = None
    if stamps and state.status != "waiting":
        to_move = state.player_to_move
        if state.status == "complete" and state.completed_at:
            end = _parse(state.completed_at)
        else:
            end = _aware(now) if now else datetime.now(timezone.utc)
            running = to_move
        clocks[to_move] -= max(0.0, _ms_between(stamps[-1], end))

    return ClockReading(
        white_ms=max(0.0, clocks["white"]),
        black_ms=max(0.0, clocks["black"]),
        running=running,
    )


def detect_timeout(state: GameState, now: datetime | None = None) -> GameOver | None:
    """The game-over action to submit if the side to move has run out of time."""
    if state.status != "in-progress":
        return None
    reading = remaining_times(state, now)
    if reading.running is None or reading.remaining(reading.running) > 0:
        return None
    return GameOver(reason=f"{reading.running}-timeout")  # type: ignore[arg-type]


def format_clock(ms: float) -> str:
    """m:ss normally; seconds with hundredths under ten seconds."""
    seconds = max(0.0, ms) / 1000
    if seconds < 10:
        return f"{seconds:.2f}"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"


def _parse(stamp: str) -> datetime:
    return _aware(datetime.fromisoformat(stamp))


def _aware(moment: datetime) -> datetime:
    # Naive stamps are taken to be UTC
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)


def _ms_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() * 1000
