"""Contract tests shared by the in-memory and SQLAlchemy repositories."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import replace
from pathlib import Path

import pytest

from db import create_db_engine, create_session_factory
from domain.common import (
    ColorConfig,
    CustomColors,
    DisplayOptions,
    GameState,
    Match,
    MatchTemplate,
    SetRecord,
    Settings,
    Side,
    Team,
)
from domain.errors import ConcurrentUpdate, NotFound
from repositories import (
    InMemoryScoreboardRepository,
    ScoreboardRepository,
    SqlScoreboardRepository,
    ensure_scoreboard_schema,
)


@pytest.fixture(params=["memory", "sql"])
def repository(request: pytest.FixtureRequest, tmp_path: Path) -> Iterator[ScoreboardRepository]:
    if request.param == "memory":
        yield InMemoryScoreboardRepository()
        return

    engine = create_db_engine(f"sqlite:///{tmp_path / 'scoreboard.db'}")
    ensure_scoreboard_schema(engine)
    yield SqlScoreboardRepository(create_session_factory(engine))
    engine.dispose()


def _teams(repository: ScoreboardRepository) -> tuple[Team, Team]:
    home = repository.save_team(Team(name="Eagles", owner_id="user-1", location="Central High"))
    away = repository.save_team(
        Team(
            name="Tigers",
            owner_id="user-1",
            color=ColorConfig(scheme="custom", custom=CustomColors(color="#AA0000")),
        )
    )
    return home, away


def test_backends_satisfy_protocol(repository: ScoreboardRepository) -> None:
    assert isinstance(repository, ScoreboardRepository)


def test_team_save_and_get(repository: ScoreboardRepository) -> None:
    home, away = _teams(repository)
    assert home.id is not None and away.id is not None
    assert home.id != away.id
    assert repository.get_team(away.id) == away

    renamed = repository.save_team(replace(home, name="Eagles Two"))
    assert repository.get_team(home.id).name == "Eagles Two"
    assert renamed.id == home.id


def test_unknown_ids_raise_not_found(repository: ScoreboardRepository) -> None:
    with pytest.raises(NotFound):
        repository.get_team(404)
    with pytest.raises(NotFound):
        repository.save_team(Team(name="Ghosts", id=404))
    with pytest.raises(NotFound):
        repository.get_match(404)
    with pytest.raises(NotFound):
        repository.get_game_state(404)
    with pytest.raises(NotFound):
        repository.get_template(404)
    with pytest.raises(NotFound):
        repository.delete_template(404)


def test_add_match_requires_existing_teams(repository: ScoreboardRepository) -> None:
    with pytest.raises(NotFound):
        repository.add_match(Match(home_team_id=1, away_team_id=2), GameState(match_id=None))


def test_add_match_assigns_id_and_game_state(repository: ScoreboardRepository) -> None:
    home, away = _teams(repository)
    match, state = repository.add_match(
        Match(home_team_id=home.id, away_team_id=away.id, format=3, name="Opener"),
        GameState(match_id=None),
    )
    assert match.id is not None
    assert match.version == 0
    assert state.match_id == match.id
    assert repository.get_match(match.id) == match
    assert repository.get_game_state(match.id) == state
    assert repository.latest_match_id() == match.id


def test_save_match_state_persists_both_records_and_bumps_version(
    repository: ScoreboardRepository,
) -> None:
    home, away = _teams(repository)
    match, state = repository.add_match(
        Match(home_team_id=home.id, away_team_id=away.id), GameState(match_id=None)
    )
    progressed = replace(
        match,
        current_set=2,
        home_sets_won=1,
        set_history=(SetRecord(1, 25, 17, Side.HOME), SetRecord(2)),
    )
    live = replace(state, home_score=3, display_options=DisplayOptions(show_sponsors=False))

    saved_match, saved_state = repository.save_match_state(progressed, live)
    assert saved_match == replace(progressed, version=1)
    assert saved_state == live
    assert repository.get_match(match.id) == saved_match
    assert repository.get_game_state(match.id) == live


def test_stale_save_raises_concurrent_update(repository: ScoreboardRepository) -> None:
    home, away = _teams(repository)
    match, state = repository.add_match(
        Match(home_team_id=home.id, away_team_id=away.id), GameState(match_id=None)
    )
    repository.save_match_state(match, replace(state, home_score=1))

    with pytest.raises(ConcurrentUpdate) as excinfo:
        repository.save_match_state(match, replace(state, away_score=1))

    assert excinfo.value.actual_version == 1
    stored = repository.get_game_state(match.id)
    assert (stored.home_score, stored.away_score) == (1, 0)


def test_save_match_state_for_unknown_match(repository: ScoreboardRepository) -> None:
    with pytest.raises(NotFound):
        repository.save_match_state(
            Match(id=99, home_team_id=None, away_team_id=None), GameState(match_id=99)
        )


def test_settings_round_trip(repository: ScoreboardRepository) -> None:
    assert repository.get_settings("user-1") is None
    settings = Settings(owner_id="user-1", theme="dark", default_match_format=3)
    repository.save_settings(settings)
    assert repository.get_settings("user-1") == settings

    repository.save_settings(replace(settings, accent_color="#00FF00"))
    assert repository.get_settings("user-1").accent_color == "#00FF00"


def test_templates_visible_to_owner_or_public(repository: ScoreboardRepository) -> None:
    home, away = _teams(repository)
    own = repository.save_template(
        MatchTemplate(owner_id="user-1", name="Mine", home_team_id=home.id, away_team_id=away.id)
    )
    shared = repository.save_template(MatchTemplate(owner_id="user-2", name="Shared", is_public=True))
    repository.save_template(MatchTemplate(owner_id="user-2", name="Private"))

    assert [template.name for template in repository.list_templates("user-1")] == ["Mine", "Shared"]
    assert repository.get_template(own.id) == own

    repository.delete_template(shared.id)
    assert [template.name for template in repository.list_templates("user-1")] == ["Mine"]
