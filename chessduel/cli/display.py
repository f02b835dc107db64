"""
Rich-based terminal rendering.

This is the ONLY place where terminal output happens. show_game() draws the
board the cursor points at, both clocks and the move list; display_action()
is a GameSession listener that narrates each applied action.
"""

from __future__ import annotations

from datetime import datetime

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from chessduel.actions import (
    AcceptTakeback,
    DeclineDraw,
    DeclineTakeback,
    GameAction,
    MoveMade,
    OfferDraw,
    PlayerResigned,
    RequestTakeback,
    opposite_color,
)
from chessduel.cli import commands
from chessduel.clock import format_clock, remaining_times
from chessduel.cursor import HistoryCursor
from chessduel.renderer import render_ascii
from chessduel.state import GameState

console = Console(legacy_windows=False)

_REASON_TEXT = {
    "checkmate": "Checkmate",
    "white-resignation": "White resigned",
    "black-resignation": "Black resigned",
    "stalemate": "Stalemate",
    "insufficient-material": "Insufficient material",
    "threefold-repetition": "Threefold repetition",
    "white-timeout": "White ran out of time",
    "black-timeout": "Black ran out of time",
    "draw-agreed": "Draw agreed",
}


def display_action(action: GameAction, state: GameState) -> None:
    """GameSession listener: one line per applied action."""
    match action:
        case MoveMade():
            if state.moves and state.moves[-1] == action.move:
                console.print(f"  [green]✓[/] [bold]{state.moves_with_notation[-1]}[/]  [dim]({action.move.uci()})[/]")
        case RequestTakeback(player=player):
            if player in state.takeback_request:
                console.print(f"  [yellow]↶[/] {player.title()} asks to take back")
        case AcceptTakeback(accepting_player=player):
            console.print(f"  [dim]{player.title()} accepts the takeback[/]")
        case DeclineTakeback(declining_player=player):
            console.print(f"  [dim]{player.title()} declined the takeback[/]")
        case OfferDraw(player=player):
            if state.draw_offer == player:
                console.print(f"  [yellow]½[/] {player.title()} offers a draw")
        case DeclineDraw():
            if state.draw_offer is None:
                console.print("  [dim]Draw offer declined[/]")
        case PlayerResigned(player=player):
            console.print(f"  [red]⚑[/] {player.title()} resigns")


def show_game(state: GameState, cursor: HistoryCursor) -> None:
    cursor.sync(state.boards)
    reading = remaining_times(state)

    white = state.players.get("white", "—")
    black = state.players.get("black", "—")
    header = (
        f"[bold bright_black]♚ {black}[/]  {format_clock(reading.black_ms)}"
        f"{'  ◀' if reading.running == 'black' else ''}"
    )
    footer = (
        f"[bold white]♔ {white}[/]  {format_clock(reading.white_ms)}"
        f"{'  ◀' if reading.running == 'white' else ''}"
    )

    subtitle = "[dim]live[/]" if cursor.is_on_most_recent_state else f"[yellow]viewing move {cursor.index}[/]"
    console.print()
    console.print(header)
    console.print(
        Panel(
            f"[green]{render_ascii(cursor.board)}[/]",
            subtitle=subtitle,
            border_style="dim",
            padding=(0, 1),
            expand=False,
        )
    )
    console.print(footer)

    if state.moves_with_notation:
        console.print(_move_table(state, cursor))

    pending: list[str] = []
    if state.draw_offer:
        pending.append(f"{state.draw_offer} offers a draw")
    for color, target in state.takeback_request.items():
        pending.append(f"{color} requests a takeback to move {target}")
    if pending:
        console.print(f"[yellow]Pending:[/] {'; '.join(pending)}")

    if state.status == "in-progress" or state.status == "waiting":
        console.print(f"[dim]{state.player_to_move.title()} to move[/]")


def show_game_over(state: GameState) -> None:
    reason = _REASON_TEXT.get(state.game_over_reason or "", state.game_over_reason or "")
    winner = _winner(state)
    outcome = f"Winner: [bold]{state.players.get(winner, winner)}[/]" if winner else "[yellow]Draw[/]"
    completed = ""
    if state.completed_at:
        completed = datetime.fromisoformat(state.completed_at).strftime("%Y-%m-%d %H:%M:%S")

    console.print()
    console.print(
        Panel(
            f"{reason}\n{outcome}\n[dim]Moves: {len(state.moves)}  {completed}[/]",
            title="[bold]Game Over[/]",
            border_style="green" if winner else "yellow",
            expand=False,
        )
    )


def show_help() -> None:
    console.print(Panel(escape((commands.__doc__ or "").strip()), title="Commands", border_style="dim", expand=False))


def show_error(message: str) -> None:
    console.print(f"  [red]✗[/] {message}")


def _move_table(state: GameState, cursor: HistoryCursor) -> Table:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("#", style="dim", justify="right")
    table.add_column("White")
    table.add_column("Black")

    sans = state.moves_with_notation
    for i in range(0, len(sans), 2):
        cells = []
        for j in (i, i + 1):
            if j >= len(sans):
                cells.append("")
            elif j == cursor.index - 1:
                cells.append(f"[reverse]{sans[j]}[/]")
            else:
                cells.append(sans[j])
        table.add_row(f"{i // 2 + 1}.", *cells)
    return table


def _winner(state: GameState) -> str | None:
    match state.game_over_reason:
        case "checkmate":
            # The side to move is the one mated
            return opposite_color(state.player_to_move)
        case "white-resignation" | "white-timeout":
            return "black"
        case "black-resignation" | "black-timeout":
            return "white"
    return None
