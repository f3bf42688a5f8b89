"""settings and match_templates table models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class SettingsRow(Base):
    """Per-account display and match defaults."""

    __tablename__ = "settings"
    __table_args__ = (
        CheckConstraint("default_match_format IN (3, 5)", name="ck_settings_default_format"),
    )

    owner_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    sponsor_logo_path: Mapped[str | None] = mapped_column(String(512), nullable=True)
    primary_color: Mapped[str] = mapped_column(String(7), nullable=False, default="#1565C0")
    accent_color: Mapped[str] = mapped_column(String(7), nullable=False, default="#FF6F00")
    theme: Mapped[str] = mapped_column(String(16), nullable=False, default="standard")
    default_match_format: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    auto_save: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )


class MatchTemplateRow(Base):
    """Saved team pairing and format."""

    __tablename__ = "match_templates"
    __table_args__ = (
        CheckConstraint("format IN (3, 5)", name="ck_match_templates_format"),
        Index("idx_match_templates_owner", "owner_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(String(512), nullable=True)
    home_team_id: Mapped[int | None] = mapped_column(ForeignKey("teams.id"), nullable=True)
    away_team_id: Mapped[int | None] = mapped_column(ForeignKey("teams.id"), nullable=True)
    format: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
