"""Tests for the scoreboard service boundary over the in-memory repository."""

from __future__ import annotations

import logging
import threading
from dataclasses import replace

import pytest

from domain.common import GameState, Match, SetRecord, Side
from domain.errors import ConcurrentUpdate, InvalidTransition, NotFound
from domain.service import DEFAULT_OWNER_ID, ScoreboardService
from repositories import InMemoryScoreboardRepository


class RacingRepository(InMemoryScoreboardRepository):
    """Lets another writer bump the away score right before each of the next ``races`` saves."""

    def __init__(self, races: int) -> None:
        super().__init__()
        self.races = races

    def save_match_state(self, match: Match, state: GameState) -> tuple[Match, GameState]:
        if self.races > 0:
            self.races -= 1
            stored_match = self.get_match(match.id)
            stored_state = self.get_game_state(match.id)
            super().save_match_state(
                stored_match, replace(stored_state, away_score=stored_state.away_score + 1)
            )
        return super().save_match_state(match, state)


def _service(repository: InMemoryScoreboardRepository | None = None, **kwargs) -> ScoreboardService:
    return ScoreboardService(repository or InMemoryScoreboardRepository(), **kwargs)


def _start(service: ScoreboardService, match_format: int = 5) -> Match:
    home = service.create_team("Eagles")
    away = service.create_team("Tigers")
    match, _ = service.start_match(home.id, away.id, match_format)
    return match


def _win_set(service: ScoreboardService, match_id: int, side: Side, points: int = 25) -> None:
    for _ in range(points):
        service.adjust_score(match_id, side, 1)
    service.complete_set(match_id)


def test_start_match_creates_zeroed_state() -> None:
    service = _service()
    match = _start(service, 3)

    snapshot = service.scoreboard(match.id)
    assert snapshot.match.format == 3
    assert snapshot.match.current_set == 1
    assert snapshot.match.set_history == ()
    assert (snapshot.state.home_score, snapshot.state.away_score) == (0, 0)
    assert snapshot.home_team.name == "Eagles"
    assert snapshot.away_team.name == "Tigers"


def test_start_match_uses_account_default_format() -> None:
    service = _service()
    service.update_settings(default_match_format=3)
    home = service.create_team("Eagles")
    away = service.create_team("Tigers")

    match, _ = service.start_match(home.id, away.id)
    assert match.format == 3


def test_service_default_format_applies_without_stored_settings() -> None:
    service = _service(default_match_format=3)
    home = service.create_team("Eagles")
    away = service.create_team("Tigers")

    match, _ = service.start_match(home.id, away.id)
    assert match.format == 3

    service.update_settings(default_match_format=5)
    match, _ = service.start_match(home.id, away.id)
    assert match.format == 5


def test_start_match_with_unknown_team() -> None:
    service = _service()
    with pytest.raises(NotFound):
        service.start_match(1, 2, 5)


def test_score_and_complete_set_persist() -> None:
    service = _service()
    match = _start(service)
    for _ in range(25):
        service.adjust_score(match.id, Side.HOME, 1)
    for _ in range(20):
        service.adjust_score(match.id, "away", 1)

    completion = service.complete_set(match.id)
    assert completion.record == SetRecord(1, 25, 20, Side.HOME)
    assert completion.match_decided is False
    assert completion.match == service.scoreboard(match.id).match
    assert completion.match.current_set == 2
    assert completion.match.home_sets_won == 1
    assert (completion.state.home_score, completion.state.away_score) == (0, 0)


def test_best_of_three_sweep_completes_match() -> None:
    service = _service()
    match = _start(service, 3)
    _win_set(service, match.id, Side.AWAY)
    _win_set(service, match.id, Side.AWAY)

    finished = service.scoreboard(match.id).match
    assert finished.is_complete is True
    assert finished.winner is Side.AWAY
    assert finished.status == "completed"

    with pytest.raises(InvalidTransition):
        service.adjust_score(match.id, Side.HOME, 1)
    with pytest.raises(InvalidTransition):
        service.complete_set(match.id)
    assert service.scoreboard(match.id).match.version == finished.version


def test_noop_intent_does_not_write() -> None:
    service = _service()
    match = _start(service)

    state = service.reset_set(match.id)
    assert (state.home_score, state.away_score) == (0, 0)
    service.adjust_score(match.id, Side.HOME, -1)
    assert service.scoreboard(match.id).match.version == 0


def test_reset_match_restores_fresh_state() -> None:
    service = _service()
    match = _start(service, 3)
    _win_set(service, match.id, Side.HOME)
    _win_set(service, match.id, Side.HOME)

    reset, state = service.reset_match(match.id)
    assert reset.is_complete is False
    assert reset.winner is None
    assert reset.current_set == 1
    assert reset.set_history == ()
    assert reset.format == 3
    assert (state.home_score, state.away_score) == (0, 0)


def test_set_format_and_set_sets_won_go_through_repository() -> None:
    service = _service()
    match = _start(service, 5)
    _win_set(service, match.id, Side.HOME)
    _win_set(service, match.id, Side.HOME)

    shortened = service.set_format(match.id, 3)
    assert shortened.is_complete is True
    assert shortened.winner is Side.HOME

    service.reset_match(match.id)
    corrected = service.set_sets_won(match.id, Side.AWAY, 1)
    assert corrected.away_sets_won == 1
    assert corrected.sets_won_overridden is True
    assert service.scoreboard(match.id).match == corrected


def test_stale_save_is_retried_on_fresh_state(caplog: pytest.LogCaptureFixture) -> None:
    repository = RacingRepository(races=1)
    service = _service(repository)
    match = _start(service)

    with caplog.at_level(logging.WARNING, logger="domain.service"):
        state = service.adjust_score(match.id, Side.HOME, 1)

    assert (state.home_score, state.away_score) == (1, 1)
    assert repository.get_match(match.id).version == 2
    assert "raced another writer" in caplog.text


def test_retries_are_bounded() -> None:
    repository = RacingRepository(races=5)
    service = _service(repository, max_retries=1)
    match = _start(service)

    with pytest.raises(ConcurrentUpdate):
        service.adjust_score(match.id, Side.HOME, 1)


def test_concurrent_score_updates_are_not_lost() -> None:
    service = _service()
    match = _start(service)

    def tap() -> None:
        for _ in range(25):
            service.adjust_score(match.id, Side.HOME, 1)

    threads = [threading.Thread(target=tap) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    snapshot = service.scoreboard(match.id)
    assert snapshot.state.home_score == 200
    assert snapshot.match.version == 200


def test_current_match_is_latest() -> None:
    service = _service()
    with pytest.raises(NotFound):
        service.current_match()

    _start(service)
    second = _start(service, 3)
    assert service.current_match().match.id == second.id


def test_snapshot_json_payload() -> None:
    service = _service()
    match = _start(service)
    service.adjust_score(match.id, Side.AWAY, 1)

    payload = service.scoreboard(match.id).to_json()
    assert set(payload) == {"match", "gameState", "homeTeam", "awayTeam"}
    assert payload["gameState"]["awayScore"] == 1
    assert payload["match"]["status"] == "in_progress"
    assert payload["homeTeam"]["name"] == "Eagles"


def test_update_team() -> None:
    service = _service()
    team = service.create_team("Eagles", location="Gym A")
    updated = service.update_team(team.id, location="Gym B")
    assert updated.location == "Gym B"
    assert service.repository.get_team(team.id) == updated


def test_templates_copy_match_and_start_new_match() -> None:
    service = _service()
    match = _start(service, 3)

    template = service.save_template(DEFAULT_OWNER_ID, "League night", match_id=match.id)
    assert (template.home_team_id, template.away_team_id) == (match.home_team_id, match.away_team_id)
    assert template.format == 3
    assert service.templates() == [template]

    started, state = service.start_match_from_template(template.id)
    assert started.id != match.id
    assert started.format == 3
    assert started.name == "League night"
    assert state.match_id == started.id


def test_template_visibility_and_ownership() -> None:
    service = _service()
    private = service.save_template("user-2", "Private", match_format=5)
    public = service.save_template("user-2", "Shared", match_format=3, is_public=True)

    assert service.templates() == [public]
    with pytest.raises(NotFound):
        service.start_match_from_template(private.id)
    with pytest.raises(InvalidTransition):
        service.delete_template(DEFAULT_OWNER_ID, public.id)

    started, _ = service.start_match_from_template(public.id)
    assert started.format == 3

    service.delete_template("user-2", public.id)
    assert service.templates() == []


def test_negative_max_retries_rejected() -> None:
    with pytest.raises(ValueError):
        _service(max_retries=-1)


def test_match_locks_are_released_after_writes() -> None:
    service = _service()
    first = _start(service)
    second = _start(service)

    service.adjust_score(first.id, Side.HOME, 1)
    service.adjust_score(second.id, Side.AWAY, 1)
    assert len(service._locks) == 0
