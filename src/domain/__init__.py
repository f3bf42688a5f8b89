"""Scoreboard domain: records, error kinds and the match engine."""

from domain.common import GameState, Match, SetRecord, Side
from domain.engine import MatchEngine, SetCompletion, SetRules
from domain.errors import (
    ConcurrentUpdate,
    InvalidTransition,
    NotFound,
    OutOfRangeValue,
    ScoreboardError,
)

__all__ = [
    "ConcurrentUpdate",
    "GameState",
    "InvalidTransition",
    "Match",
    "MatchEngine",
    "NotFound",
    "OutOfRangeValue",
    "ScoreboardError",
    "SetCompletion",
    "SetRecord",
    "SetRules",
    "Side",
]
