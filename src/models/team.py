"""teams table model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class TeamRow(Base):
    """A team owned by one account; logos are opaque paths."""

    __tablename__ = "teams"
    __table_args__ = (Index("idx_teams_owner", "owner_id"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    logo_path: Mapped[str | None] = mapped_column(String(512), nullable=True)
    color_scheme: Mapped[str] = mapped_column(String(16), nullable=False, default="blue")
    custom_color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    custom_text_color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    custom_set_background_color: Mapped[str | None] = mapped_column(String(7), nullable=True)
    is_template: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
