"""Boundary between request handlers, the match engine and a repository."""

from __future__ import annotations

import logging
import threading
import weakref
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Any

from domain.common import (
    DEFAULT_MATCH_FORMAT,
    GameState,
    Match,
    MatchTemplate,
    Settings,
    Side,
    Team,
    validate_format,
)
from domain.engine import MatchEngine, SetCompletion
from domain.errors import ConcurrentUpdate, InvalidTransition, NotFound
from repositories.base import ScoreboardRepository

logger = logging.getLogger(__name__)

DEFAULT_OWNER_ID = "default-user-id"

Transition = Callable[[Match, GameState], tuple[Match, GameState]]


@dataclass(frozen=True)
class ScoreboardSnapshot:
    """Everything the display needs to render one match."""

    match: Match
    state: GameState
    home_team: Team | None
    away_team: Team | None

    def to_json(self) -> dict[str, Any]:
        return {
            "match": self.match.to_json(),
            "gameState": self.state.to_json(),
            "homeTeam": None if self.home_team is None else self.home_team.to_json(),
            "awayTeam": None if self.away_team is None else self.away_team.to_json(),
        }


class ScoreboardService:
    """Run scoreboard intents by match id against a repository.

    Writers for the same match are serialized with a per-match lock. Saves are
    also version-checked, so a writer in another process causes a re-read and
    a fresh transition rather than a lost update or a replayed delta.
    """

    def __init__(
        self,
        repository: ScoreboardRepository,
        engine: MatchEngine | None = None,
        *,
        max_retries: int = 3,
        default_match_format: int = DEFAULT_MATCH_FORMAT,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.repository = repository
        self.engine = engine or MatchEngine()
        self.max_retries = max_retries
        self.default_match_format = validate_format(default_match_format)
        # Entries vanish once no writer holds the lock.
        self._locks: weakref.WeakValueDictionary[int, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    # Match lifecycle

    def start_match(
        self,
        home_team_id: int | None,
        away_team_id: int | None,
        match_format: int | None = None,
        *,
        owner_id: str = DEFAULT_OWNER_ID,
        name: str | None = None,
    ) -> tuple[Match, GameState]:
        if match_format is None:
            match_format = self.settings(owner_id).default_match_format
        match, state = self.engine.start_match(home_team_id, away_team_id, match_format, name=name)
        match, state = self.repository.add_match(match, state)
        logger.info("started match %s (best-of-%s)", match.id, match.format)
        return match, state

    def scoreboard(self, match_id: int) -> ScoreboardSnapshot:
        match = self.repository.get_match(match_id)
        state = self.repository.get_game_state(match_id)
        return ScoreboardSnapshot(
            match=match,
            state=state,
            home_team=self._optional_team(match.home_team_id),
            away_team=self._optional_team(match.away_team_id),
        )

    def current_match(self) -> ScoreboardSnapshot:
        match_id = self.repository.latest_match_id()
        if match_id is None:
            raise NotFound("match", "current")
        return self.scoreboard(match_id)

    def adjust_score(self, match_id: int, side: Side | str, delta: int) -> GameState:
        _, state = self._apply(
            match_id,
            "adjust score",
            lambda match, state: (match, self.engine.adjust_score(match, state, side, delta)),
        )
        return state

    def complete_set(self, match_id: int) -> SetCompletion:
        completions: list[SetCompletion] = []

        def transition(match: Match, state: GameState) -> tuple[Match, GameState]:
            completion = self.engine.complete_set(match, state)
            completions.append(completion)
            return completion.match, completion.state

        match, state = self._apply(match_id, "complete set", transition)
        return replace(completions[-1], match=match, state=state)

    def reset_set(self, match_id: int) -> GameState:
        _, state = self._apply(
            match_id,
            "reset set",
            lambda match, state: (match, self.engine.reset_set(state)),
        )
        return state

    def reset_match(self, match_id: int) -> tuple[Match, GameState]:
        return self._apply(match_id, "reset match", self.engine.reset_match)

    def set_format(self, match_id: int, match_format: int) -> Match:
        match, _ = self._apply(
            match_id,
            "set format",
            lambda match, state: (self.engine.set_format(match, match_format), state),
        )
        return match

    def set_sets_won(self, match_id: int, side: Side | str, value: int) -> Match:
        match, _ = self._apply(
            match_id,
            "set sets won",
            lambda match, state: (self.engine.set_sets_won(match, side, value), state),
        )
        return match

    # Teams

    def create_team(self, name: str, *, owner_id: str = DEFAULT_OWNER_ID, **fields: Any) -> Team:
        return self.repository.save_team(Team(name=name, owner_id=owner_id, **fields))

    def update_team(self, team_id: int, **changes: Any) -> Team:
        team = self.repository.get_team(team_id)
        return self.repository.save_team(replace(team, **changes))

    # Settings

    def settings(self, owner_id: str = DEFAULT_OWNER_ID) -> Settings:
        """Stored settings for ``owner_id``, or defaults built from the service's match format."""
        stored = self.repository.get_settings(owner_id)
        if stored is not None:
            return stored
        return Settings(owner_id=owner_id, default_match_format=self.default_match_format)

    def update_settings(self, owner_id: str = DEFAULT_OWNER_ID, **changes: Any) -> Settings:
        return self.repository.save_settings(replace(self.settings(owner_id), **changes))

    # Templates

    def save_template(
        self,
        owner_id: str,
        name: str,
        *,
        description: str | None = None,
        match_id: int | None = None,
        home_team_id: int | None = None,
        away_team_id: int | None = None,
        match_format: int | None = None,
        is_public: bool = False,
    ) -> MatchTemplate:
        """Save a reusable setup, copying teams and format from ``match_id`` when given."""
        if match_id is not None:
            match = self.repository.get_match(match_id)
            home_team_id = home_team_id if home_team_id is not None else match.home_team_id
            away_team_id = away_team_id if away_team_id is not None else match.away_team_id
            match_format = match_format if match_format is not None else match.format
        if match_format is None:
            match_format = self.settings(owner_id).default_match_format
        for team_id in (home_team_id, away_team_id):
            if team_id is not None:
                self.repository.get_team(team_id)
        return self.repository.save_template(
            MatchTemplate(
                owner_id=owner_id,
                name=name,
                description=description,
                home_team_id=home_team_id,
                away_team_id=away_team_id,
                format=match_format,
                is_public=is_public,
            )
        )

    def templates(self, owner_id: str = DEFAULT_OWNER_ID) -> list[MatchTemplate]:
        return self.repository.list_templates(owner_id)

    def delete_template(self, owner_id: str, template_id: int) -> None:
        template = self.repository.get_template(template_id)
        if template.owner_id != owner_id:
            raise InvalidTransition(f"template {template_id} belongs to another account")
        self.repository.delete_template(template_id)

    def start_match_from_template(
        self, template_id: int, *, owner_id: str = DEFAULT_OWNER_ID
    ) -> tuple[Match, GameState]:
        template = self.repository.get_template(template_id)
        if template.owner_id != owner_id and not template.is_public:
            raise NotFound("template", template_id)
        return self.start_match(
            template.home_team_id,
            template.away_team_id,
            template.format,
            owner_id=owner_id,
            name=template.name,
        )

    # Internals

    def _optional_team(self, team_id: int | None) -> Team | None:
        return None if team_id is None else self.repository.get_team(team_id)

    def _lock_for(self, match_id: int) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(match_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[match_id] = lock
            return lock

    def _apply(self, match_id: int, intent: str, transition: Transition) -> tuple[Match, GameState]:
        with self._lock_for(match_id):
            attempt = 0
            while True:
                match = self.repository.get_match(match_id)
                state = self.repository.get_game_state(match_id)
                new_match, new_state = transition(match, state)
                if new_match == match and new_state == state:
                    return match, state
                try:
                    return self.repository.save_match_state(new_match, new_state)
                except ConcurrentUpdate as exc:
                    if attempt >= self.max_retries:
                        raise
                    attempt += 1
                    logger.warning(
                        "%s on match %s raced another writer (%s); retry %s/%s",
                        intent,
                        match_id,
                        exc,
                        attempt,
                        self.max_retries,
                    )


__all__ = ["DEFAULT_OWNER_ID", "ScoreboardService", "ScoreboardSnapshot"]
