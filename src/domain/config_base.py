"""Load scoreboard runtime configuration from a TOML file."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
import tomllib

from domain.common import DEFAULT_MATCH_FORMAT, MATCH_FORMATS
from domain.engine import SetRules

DEFAULT_DB_URL = "sqlite:///scoreboard.db"
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "scoreboard.toml"


@dataclass(frozen=True)
class ScoreboardConfig:
    """Settings shared by the service, repository backends and CLI."""

    file_path: Path | None = None
    db_url: str = DEFAULT_DB_URL
    default_match_format: int = DEFAULT_MATCH_FORMAT
    rules: SetRules = field(default_factory=SetRules)
    max_retries: int = 3
    log_level: str = "INFO"

    def as_config_json(self) -> dict[str, Any]:
        return {
            "db_url": self.db_url,
            "default_match_format": self.default_match_format,
            "enforce_set_rules": self.rules.enforce_set_rules,
            "points_per_set": self.rules.points_per_set,
            "min_margin": self.rules.min_margin,
            "max_retries": self.max_retries,
            "log_level": self.log_level,
        }


def load_scoreboard_config(config_path: Path) -> ScoreboardConfig:
    """Load and validate one scoreboard TOML config file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    if config_path.is_dir():
        raise IsADirectoryError(f"Config path is a directory: {config_path}")

    with config_path.open("rb") as file:
        raw = tomllib.load(file)
    return _parse_scoreboard_config(raw, config_path)


def _parse_scoreboard_config(raw: dict[str, Any], file_path: Path) -> ScoreboardConfig:
    database_raw = raw.get("database", {})
    match_raw = raw.get("match", {})
    rules_raw = raw.get("rules", {})
    service_raw = raw.get("service", {})
    logging_raw = raw.get("logging", {})

    db_url = str(database_raw.get("url", DEFAULT_DB_URL)).strip()
    if not db_url:
        raise ValueError(f"{file_path}: [database].url must not be empty")

    default_match_format = int(match_raw.get("default_format", DEFAULT_MATCH_FORMAT))
    if default_match_format not in MATCH_FORMATS:
        raise ValueError(f"{file_path}: [match].default_format must be one of {MATCH_FORMATS}")

    rules = SetRules(
        enforce_set_rules=bool(rules_raw.get("enforce_set_rules", False)),
        points_per_set=int(rules_raw.get("points_per_set", 25)),
        min_margin=int(rules_raw.get("min_margin", 2)),
    )
    if rules.points_per_set <= 0:
        raise ValueError(f"{file_path}: [rules].points_per_set must be > 0")
    if rules.min_margin < 1:
        raise ValueError(f"{file_path}: [rules].min_margin must be >= 1")

    max_retries = int(service_raw.get("max_retries", 3))
    if max_retries < 0:
        raise ValueError(f"{file_path}: [service].max_retries must be >= 0")

    log_level = str(logging_raw.get("level", "INFO")).upper()
    if log_level not in logging.getLevelNamesMapping():
        raise ValueError(f"{file_path}: [logging].level {log_level!r} is not a logging level")

    return ScoreboardConfig(
        file_path=file_path,
        db_url=db_url,
        default_match_format=default_match_format,
        rules=rules,
        max_retries=max_retries,
        log_level=log_level,
    )


__all__ = ["DEFAULT_CONFIG_PATH", "DEFAULT_DB_URL", "ScoreboardConfig", "load_scoreboard_config"]
