"""Persistence contract the scoreboard service depends on."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from domain.common import GameState, Match, MatchTemplate, Settings, Team


@runtime_checkable
class ScoreboardRepository(Protocol):
    """Read/write access to scoreboard records by id.

    Lookups of unknown ids raise ``NotFound``. ``save_match_state`` writes the
    match and its game state in one unit and raises ``ConcurrentUpdate`` when
    ``match.version`` no longer matches the stored row.
    """

    def get_team(self, team_id: int) -> Team: ...

    def save_team(self, team: Team) -> Team: ...

    def add_match(self, match: Match, state: GameState) -> tuple[Match, GameState]: ...

    def get_match(self, match_id: int) -> Match: ...

    def get_game_state(self, match_id: int) -> GameState: ...

    def save_match_state(self, match: Match, state: GameState) -> tuple[Match, GameState]: ...

    def latest_match_id(self) -> int | None: ...

    def get_settings(self, owner_id: str) -> Settings | None: ...

    def save_settings(self, settings: Settings) -> Settings: ...

    def get_template(self, template_id: int) -> MatchTemplate: ...

    def save_template(self, template: MatchTemplate) -> MatchTemplate: ...

    def list_templates(self, owner_id: str) -> list[MatchTemplate]: ...

    def delete_template(self, template_id: int) -> None: ...


__all__ = ["ScoreboardRepository"]
