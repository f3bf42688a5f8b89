"""ORM models."""

from models.base import Base, JSONDocument
from models.match import GameStateRow, MatchRow
from models.settings import MatchTemplateRow, SettingsRow
from models.team import TeamRow

__all__ = [
    "Base",
    "GameStateRow",
    "JSONDocument",
    "MatchRow",
    "MatchTemplateRow",
    "SettingsRow",
    "TeamRow",
]
