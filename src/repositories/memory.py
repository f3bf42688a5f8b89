"""Process-local repository backend, used by tests and throwaway sessions."""

from __future__ import annotations

import threading
from dataclasses import replace
from itertools import count

from domain.common import GameState, Match, MatchTemplate, Settings, Team
from domain.errors import ConcurrentUpdate, NotFound


class InMemoryScoreboardRepository:
    """Dict-backed ``ScoreboardRepository`` with the same versioning rules as the SQL backend."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._teams: dict[int, Team] = {}
        self._matches: dict[int, Match] = {}
        self._game_states: dict[int, GameState] = {}
        self._settings: dict[str, Settings] = {}
        self._templates: dict[int, MatchTemplate] = {}
        self._team_ids = count(1)
        self._match_ids = count(1)
        self._template_ids = count(1)

    def get_team(self, team_id: int) -> Team:
        with self._lock:
            try:
                return self._teams[team_id]
            except KeyError:
                raise NotFound("team", team_id) from None

    def save_team(self, team: Team) -> Team:
        with self._lock:
            if team.id is None:
                team = replace(team, id=next(self._team_ids))
            elif team.id not in self._teams:
                raise NotFound("team", team.id)
            self._teams[team.id] = team
            return team

    def add_match(self, match: Match, state: GameState) -> tuple[Match, GameState]:
        with self._lock:
            for team_id in (match.home_team_id, match.away_team_id):
                if team_id is not None and team_id not in self._teams:
                    raise NotFound("team", team_id)
            match_id = next(self._match_ids)
            stored_match = replace(match, id=match_id, version=0)
            stored_state = replace(state, match_id=match_id)
            self._matches[match_id] = stored_match
            self._game_states[match_id] = stored_state
            return stored_match, stored_state

    def get_match(self, match_id: int) -> Match:
        with self._lock:
            try:
                return self._matches[match_id]
            except KeyError:
                raise NotFound("match", match_id) from None

    def get_game_state(self, match_id: int) -> GameState:
        with self._lock:
            try:
                return self._game_states[match_id]
            except KeyError:
                raise NotFound("game state for match", match_id) from None

    def save_match_state(self, match: Match, state: GameState) -> tuple[Match, GameState]:
        if match.id is None:
            raise NotFound("match", None)
        with self._lock:
            stored = self._matches.get(match.id)
            if stored is None:
                raise NotFound("match", match.id)
            if stored.version != match.version:
                raise ConcurrentUpdate(match.id, match.version, stored.version)
            saved_match = replace(match, version=match.version + 1)
            saved_state = replace(state, match_id=match.id)
            self._matches[match.id] = saved_match
            self._game_states[match.id] = saved_state
            return saved_match, saved_state

    def latest_match_id(self) -> int | None:
        with self._lock:
            return max(self._matches, default=None)

    def get_settings(self, owner_id: str) -> Settings | None:
        with self._lock:
            return self._settings.get(owner_id)

    def save_settings(self, settings: Settings) -> Settings:
        with self._lock:
            self._settings[settings.owner_id] = settings
            return settings

    def get_template(self, template_id: int) -> MatchTemplate:
        with self._lock:
            try:
                return self._templates[template_id]
            except KeyError:
                raise NotFound("template", template_id) from None

    def save_template(self, template: MatchTemplate) -> MatchTemplate:
        with self._lock:
            if template.id is None:
                template = replace(template, id=next(self._template_ids))
            elif template.id not in self._templates:
                raise NotFound("template", template.id)
            self._templates[template.id] = template
            return template

    def list_templates(self, owner_id: str) -> list[MatchTemplate]:
        with self._lock:
            return [
                template
                for _, template in sorted(self._templates.items())
                if template.owner_id == owner_id or template.is_public
            ]

    def delete_template(self, template_id: int) -> None:
        with self._lock:
            if self._templates.pop(template_id, None) is None:
                raise NotFound("template", template_id)


__all__ = ["InMemoryScoreboardRepository"]
