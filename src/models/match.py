"""matches and game_states table models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base, JSONDocument


class MatchRow(Base):
    """Match progress; set_history is stored as a JSON array of set records."""

    __tablename__ = "matches"
    __table_args__ = (
        CheckConstraint("format IN (3, 5)", name="ck_matches_format"),
        CheckConstraint("current_set >= 1", name="ck_matches_current_set"),
        CheckConstraint(
            "home_sets_won >= 0 AND away_sets_won >= 0",
            name="ck_matches_sets_won",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    home_team_id: Mapped[int | None] = mapped_column(ForeignKey("teams.id"), nullable=True)
    away_team_id: Mapped[int | None] = mapped_column(ForeignKey("teams.id"), nullable=True)
    format: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    current_set: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    home_sets_won: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    away_sets_won: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    winner: Mapped[str | None] = mapped_column(String(4), nullable=True)
    set_history: Mapped[list[dict[str, Any]]] = mapped_column(
        JSONDocument, nullable=False, default=list
    )
    sets_won_overridden: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )


class GameStateRow(Base):
    """Live score of the open set, one row per match."""

    __tablename__ = "game_states"
    __table_args__ = (
        UniqueConstraint("match_id", name="uq_game_states_match"),
        CheckConstraint(
            "home_score >= 0 AND away_score >= 0",
            name="ck_game_states_scores",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    match_id: Mapped[int] = mapped_column(ForeignKey("matches.id"), nullable=False)
    home_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    away_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    display_options: Mapped[dict[str, Any]] = mapped_column(JSONDocument, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
