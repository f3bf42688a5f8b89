"""Scoreboard repository backends."""

from repositories.base import ScoreboardRepository
from repositories.memory import InMemoryScoreboardRepository
from repositories.sql import SqlScoreboardRepository, ensure_scoreboard_schema

__all__ = [
    "InMemoryScoreboardRepository",
    "ScoreboardRepository",
    "SqlScoreboardRepository",
    "ensure_scoreboard_schema",
]
