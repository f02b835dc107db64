"""
Configuration loading from config.yaml.

Uses typed dataclasses throughout so the rest of the app gets IDE
completion and type-checker support without touching raw dicts.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import get_args

import yaml

from chessduel.session import PlayerOrdering
from chessduel.state import VARIANTS, GameVariant, TimeControl

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class GameConfig:
    variant: GameVariant = "standard"
    base_minutes: float = 5
    increment_seconds: float = 3
    player_ordering: PlayerOrdering = "creator-white"

    @property
    def time_control(self) -> TimeControl:
        return TimeControl(base_minutes=self.base_minutes, increment_seconds=self.increment_seconds)


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: str | None = "./logs/chessduel.log"   # None disables the file handler

    @property
    def level_number(self) -> int:
        return logging.getLevelName(self.level)


@dataclass
class WebConfig:
    host: str = "0.0.0.0"
    port: int = 8000
    clock_poll_seconds: float = 0.5   # how often open games are checked for timeouts


@dataclass
class Config:
    game: GameConfig = field(default_factory=GameConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    web: WebConfig = field(default_factory=WebConfig)


def load_config(path: str | Path = "config.yaml") -> Config:
    """
    Load and validate config.yaml.

    Raises:
        FileNotFoundError: config.yaml is missing.
        ValueError: required fields are absent or invalid.
    """
    cfg_path = Path(path)
    if not cfg_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {cfg_path.resolve()}\n"
            "Copy config.example.yaml to config.yaml and adjust it."
        )

    with cfg_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    try:
        game_raw = raw.get("game") or {}
        game_cfg = GameConfig(
            variant=game_raw.get("variant", "standard"),
            base_minutes=float(game_raw.get("base_minutes", 5)),
            increment_seconds=float(game_raw.get("increment_seconds", 3)),
            player_ordering=game_raw.get("player_ordering", "creator-white"),
        )

        log_raw = raw.get("logging") or {}
        log_cfg = LoggingConfig(
            level=str(log_raw.get("level", "INFO")).upper(),
            file=log_raw.get("file", "./logs/chessduel.log"),
        )

        web_raw = raw.get("web") or {}
        web_cfg = WebConfig(
            host=str(web_raw.get("host", "0.0.0.0")),
            port=int(web_raw.get("port", 8000)),
            clock_poll_seconds=float(web_raw.get("clock_poll_seconds", 0.5)),
        )

        config = Config(game=game_cfg, logging=log_cfg, web=web_cfg)
        _validate(config)
        return config

    except (AttributeError, KeyError, TypeError) as exc:
        raise ValueError(f"Invalid config.yaml structure: {exc}") from exc


def load_config_or_default(path: str | Path = "config.yaml") -> Config:
    """Like load_config(), but a missing file just means defaults."""
    if not Path(path).exists():
        return Config()
    return load_config(path)


def _validate(config: Config) -> None:
    if config.game.variant not in VARIANTS:
        raise ValueError(f"game.variant must be one of {VARIANTS}, got '{config.game.variant}'")
    orderings = get_args(PlayerOrdering)
    if config.game.player_ordering not in orderings:
        raise ValueError(
            f"game.player_ordering must be one of {orderings}, got '{config.game.player_ordering}'"
        )
    if config.game.base_minutes <= 0:
        raise ValueError("game.base_minutes must be > 0")
    if config.game.increment_seconds < 0:
        raise ValueError("game.increment_seconds must be >= 0")
    if config.logging.level not in _LOG_LEVELS:
        raise ValueError(f"logging.level must be one of {_LOG_LEVELS}, got '{config.logging.level}'")
    if config.web.clock_poll_seconds <= 0:
        raise ValueError("web.clock_poll_seconds must be > 0")
