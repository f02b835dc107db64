"""
chessduel — terminal hot-seat game.

Wires together:  config → logging → new game → GameSession → command loop → rich display
"""

from __future__ import annotations

import sys
from pathlib import Path

from rich.prompt import Prompt

from chessduel.cli.commands import CommandError, parse_command
from chessduel.cli.display import (
    console,
    display_action,
    show_error,
    show_game,
    show_game_over,
    show_help,
)
from chessduel.clock import detect_timeout
from chessduel.config import load_config_or_default
from chessduel.cursor import HistoryCursor
from chessduel.logging_setup import setup_logging
from chessduel.session import GameSession
from chessduel.state import new_game


def main() -> None:
    try:
        config = load_config_or_default(Path("config.yaml"))
    except ValueError as exc:
        console.print(f"[red]Config error:[/] {exc}")
        sys.exit(1)

    # Terminal is busy with the board; logs go to the file only
    setup_logging(config.logging, console=False)

    white = Prompt.ask("[bold white]♔  White player[/]", default="White")
    black = Prompt.ask("[bold bright_black]♚  Black player[/]", default="Black")

    session = GameSession(
        new_game(
            white=white,
            black=black,
            time_control=config.game.time_control,
            variant=config.game.variant,
        )
    )
    session.subscribe(display_action)
    cursor = HistoryCursor(session.state.boards)

    console.print("[dim]Type 'help' for commands.[/]")

    while session.state.status != "complete":
        show_game(session.state, cursor)
        try:
            line = Prompt.ask(f"[bold]{session.state.player_to_move}[/]")
        except (EOFError, KeyboardInterrupt):
            console.print()
            return

        # Clocks are only looked at between inputs in a terminal game
        timeout = detect_timeout(session.state)
        if timeout is not None:
            session.dispatch(timeout)
            break

        try:
            command = parse_command(line, session.state)
        except CommandError as exc:
            show_error(str(exc))
            continue

        match command.kind:
            case "quit":
                return
            case "help":
                show_help()
            case "view":
                getattr(cursor, command.view)()
            case "action":
                if not cursor.is_on_most_recent_state and command.action.type == "move-made":
                    show_error("You are looking at an old position; type 'latest' first.")
                    continue
                before = len(session.state.moves)
                session.dispatch(command.action)
                if command.action.type == "move-made" and len(session.state.moves) == before:
                    show_error(f"{line.strip()} is not a legal move here.")

    show_game(session.state, cursor)
    show_game_over(session.state)


if __name__ == "__main__":
    main()
