"""SQLAlchemy-backed scoreboard persistence."""

from __future__ import annotations

from typing import Any

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from domain.common import (
    ColorConfig,
    CustomColors,
    DisplayOptions,
    GameState,
    Match,
    MatchTemplate,
    SetRecord,
    Settings,
    Team,
    parse_winner,
)
from domain.errors import ConcurrentUpdate, NotFound
from models import Base, GameStateRow, MatchRow, MatchTemplateRow, SettingsRow, TeamRow


def ensure_scoreboard_schema(engine: Engine) -> None:
    """Create every scoreboard table and index if they do not exist."""
    Base.metadata.create_all(bind=engine)


def _team_from_row(row: TeamRow) -> Team:
    custom = None
    if row.custom_color is not None:
        custom = CustomColors(
            color=row.custom_color,
            text_color=row.custom_text_color or "#FFFFFF",
            set_background_color=row.custom_set_background_color or "#000000",
        )
    return Team(
        id=row.id,
        owner_id=row.owner_id,
        name=row.name,
        location=row.location,
        logo_path=row.logo_path,
        color=ColorConfig(scheme=row.color_scheme, custom=custom),
        is_template=row.is_template,
    )


def _team_values(team: Team) -> dict[str, Any]:
    custom = team.color.custom
    return {
        "owner_id": team.owner_id,
        "name": team.name,
        "location": team.location,
        "logo_path": team.logo_path,
        "color_scheme": team.color.scheme,
        "custom_color": None if custom is None else custom.color,
        "custom_text_color": None if custom is None else custom.text_color,
        "custom_set_background_color": None if custom is None else custom.set_background_color,
        "is_template": team.is_template,
    }


def _match_from_row(row: MatchRow) -> Match:
    return Match(
        id=row.id,
        name=row.name,
        home_team_id=row.home_team_id,
        away_team_id=row.away_team_id,
        format=row.format,
        current_set=row.current_set,
        home_sets_won=row.home_sets_won,
        away_sets_won=row.away_sets_won,
        is_complete=row.is_complete,
        winner=parse_winner(row.winner),
        set_history=tuple(SetRecord.from_json(item) for item in row.set_history or []),
        sets_won_overridden=row.sets_won_overridden,
        version=row.version,
    )


def _match_values(match: Match) -> dict[str, Any]:
    return {
        "name": match.name,
        "home_team_id": match.home_team_id,
        "away_team_id": match.away_team_id,
        "format": match.format,
        "current_set": match.current_set,
        "home_sets_won": match.home_sets_won,
        "away_sets_won": match.away_sets_won,
        "is_complete": match.is_complete,
        "winner": None if match.winner is None else match.winner.value,
        "set_history": [record.to_json() for record in match.set_history],
        "sets_won_overridden": match.sets_won_overridden,
    }


def _game_state_from_row(row: GameStateRow) -> GameState:
    return GameState(
        match_id=row.match_id,
        home_score=row.home_score,
        away_score=row.away_score,
        display_options=DisplayOptions.from_json(row.display_options),
    )


def _game_state_values(state: GameState) -> dict[str, Any]:
    return {
        "home_score": state.home_score,
        "away_score": state.away_score,
        "display_options": state.display_options.to_json(),
    }


def _settings_from_row(row: SettingsRow) -> Settings:
    return Settings(
        owner_id=row.owner_id,
        sponsor_logo_path=row.sponsor_logo_path,
        primary_color=row.primary_color,
        accent_color=row.accent_color,
        theme=row.theme,
        default_match_format=row.default_match_format,
        auto_save=row.auto_save,
    )


def _template_from_row(row: MatchTemplateRow) -> MatchTemplate:
    return MatchTemplate(
        id=row.id,
        owner_id=row.owner_id,
        name=row.name,
        description=row.description,
        home_team_id=row.home_team_id,
        away_team_id=row.away_team_id,
        format=row.format,
        is_public=row.is_public,
    )


def _template_values(template: MatchTemplate) -> dict[str, Any]:
    return {
        "owner_id": template.owner_id,
        "name": template.name,
        "description": template.description,
        "home_team_id": template.home_team_id,
        "away_team_id": template.away_team_id,
        "format": template.format,
        "is_public": template.is_public,
    }


class SqlScoreboardRepository:
    """``ScoreboardRepository`` over any SQLAlchemy database.

    Each call runs in its own transaction. Match saves use a versioned UPDATE
    so concurrent writers cannot silently overwrite each other.
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def get_team(self, team_id: int) -> Team:
        with self._session_factory() as session:
            row = session.get(TeamRow, team_id)
            if row is None:
                raise NotFound("team", team_id)
            return _team_from_row(row)

    def save_team(self, team: Team) -> Team:
        with self._session_factory.begin() as session:
            if team.id is None:
                row = TeamRow(**_team_values(team))
                session.add(row)
            else:
                row = session.get(TeamRow, team.id)
                if row is None:
                    raise NotFound("team", team.id)
                for key, value in _team_values(team).items():
                    setattr(row, key, value)
            session.flush()
            return _team_from_row(row)

    def add_match(self, match: Match, state: GameState) -> tuple[Match, GameState]:
        with self._session_factory.begin() as session:
            for team_id in (match.home_team_id, match.away_team_id):
                if team_id is not None and session.get(TeamRow, team_id) is None:
                    raise NotFound("team", team_id)
            match_row = MatchRow(**_match_values(match), version=0)
            session.add(match_row)
            session.flush()
            state_row = GameStateRow(match_id=match_row.id, **_game_state_values(state))
            session.add(state_row)
            session.flush()
            return _match_from_row(match_row), _game_state_from_row(state_row)

    def get_match(self, match_id: int) -> Match:
        with self._session_factory() as session:
            row = session.get(MatchRow, match_id)
            if row is None:
                raise NotFound("match", match_id)
            return _match_from_row(row)

    def get_game_state(self, match_id: int) -> GameState:
        with self._session_factory() as session:
            row = session.scalar(select(GameStateRow).where(GameStateRow.match_id == match_id))
            if row is None:
                raise NotFound("game state for match", match_id)
            return _game_state_from_row(row)

    def save_match_state(self, match: Match, state: GameState) -> tuple[Match, GameState]:
        if match.id is None:
            raise NotFound("match", None)
        with self._session_factory.begin() as session:
            result = session.execute(
                update(MatchRow)
                .where(MatchRow.id == match.id, MatchRow.version == match.version)
                .values(**_match_values(match), version=match.version + 1, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                stored_version = session.scalar(select(MatchRow.version).where(MatchRow.id == match.id))
                if stored_version is None:
                    raise NotFound("match", match.id)
                raise ConcurrentUpdate(match.id, match.version, stored_version)

            result = session.execute(
                update(GameStateRow)
                .where(GameStateRow.match_id == match.id)
                .values(**_game_state_values(state), updated_at=func.now())
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                raise NotFound("game state for match", match.id)

            match_row = session.get(MatchRow, match.id, populate_existing=True)
            state_row = session.scalar(select(GameStateRow).where(GameStateRow.match_id == match.id))
            return _match_from_row(match_row), _game_state_from_row(state_row)

    def latest_match_id(self) -> int | None:
        with self._session_factory() as session:
            return session.scalar(select(func.max(MatchRow.id)))

    def get_settings(self, owner_id: str) -> Settings | None:
        with self._session_factory() as session:
            row = session.get(SettingsRow, owner_id)
            return None if row is None else _settings_from_row(row)

    def save_settings(self, settings: Settings) -> Settings:
        with self._session_factory.begin() as session:
            row = session.get(SettingsRow, settings.owner_id)
            if row is None:
                row = SettingsRow(owner_id=settings.owner_id)
                session.add(row)
            row.sponsor_logo_path = settings.sponsor_logo_path
            row.primary_color = settings.primary_color
            row.accent_color = settings.accent_color
            row.theme = settings.theme
            row.default_match_format = settings.default_match_format
            row.auto_save = settings.auto_save
            row.updated_at = func.now()
            session.flush()
            return settings

    def get_template(self, template_id: int) -> MatchTemplate:
        with self._session_factory() as session:
            row = session.get(MatchTemplateRow, template_id)
            if row is None:
                raise NotFound("template", template_id)
            return _template_from_row(row)

    def save_template(self, template: MatchTemplate) -> MatchTemplate:
        with self._session_factory.begin() as session:
            if template.id is None:
                row = MatchTemplateRow(**_template_values(template))
                session.add(row)
            else:
                row = session.get(MatchTemplateRow, template.id)
                if row is None:
                    raise NotFound("template", template.id)
                for key, value in _template_values(template).items():
                    setattr(row, key, value)
            session.flush()
            return _template_from_row(row)

    def list_templates(self, owner_id: str) -> list[MatchTemplate]:
        with self._session_factory() as session:
            rows = session.scalars(
                select(MatchTemplateRow)
                .where(or_(MatchTemplateRow.owner_id == owner_id, MatchTemplateRow.is_public.is_(True)))
                .order_by(MatchTemplateRow.id)
            ).all()
            return [_template_from_row(row) for row in rows]

    def delete_template(self, template_id: int) -> None:
        with self._session_factory.begin() as session:
            result = session.execute(delete(MatchTemplateRow).where(MatchTemplateRow.id == template_id))
            if result.rowcount == 0:
                raise NotFound("template", template_id)


__all__ = ["SqlScoreboardRepository", "ensure_scoreboard_schema"]
