"""Tests for scoreboard records and their persisted JSON shape."""

from __future__ import annotations

import json

import pytest

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
    find_inconsistencies,
    sets_to_win,
)
from domain.errors import OutOfRangeValue


def _sample_match() -> Match:
    return Match(
        id=12,
        name="Finals",
        home_team_id=1,
        away_team_id=2,
        format=5,
        current_set=3,
        home_sets_won=1,
        away_sets_won=1,
        set_history=(
            SetRecord(1, 25, 22, Side.HOME),
            SetRecord(2, 21, 25, Side.AWAY),
            SetRecord(3),
        ),
        version=4,
    )


def test_sets_to_win_thresholds() -> None:
    assert sets_to_win(3) == 2
    assert sets_to_win(5) == 3


def test_match_json_uses_persisted_field_names() -> None:
    payload = _sample_match().to_json()
    assert payload["homeTeamId"] == 1
    assert payload["awayTeamId"] == 2
    assert payload["currentSet"] == 3
    assert payload["homeSetsWon"] == 1
    assert payload["awaySetsWon"] == 1
    assert payload["isComplete"] is False
    assert payload["winner"] is None
    assert payload["setHistory"] == [
        {"setNumber": 1, "homeScore": 25, "awayScore": 22, "winner": "home"},
        {"setNumber": 2, "homeScore": 21, "awayScore": 25, "winner": "away"},
        {"setNumber": 3, "homeScore": 0, "awayScore": 0, "winner": None},
    ]


def test_match_and_game_state_round_trip_through_json_text() -> None:
    match = _sample_match()
    state = GameState(
        match_id=12,
        home_score=14,
        away_score=9,
        display_options=DisplayOptions(show_timer=True),
    )

    decoded_match = Match.from_json(json.loads(json.dumps(match.to_json())))
    decoded_state = GameState.from_json(json.loads(json.dumps(state.to_json())))

    assert decoded_match == match
    assert decoded_state == state


def test_match_from_json_accepts_minimal_legacy_payload() -> None:
    match = Match.from_json({"id": 1, "homeTeamId": 1, "awayTeamId": 2, "format": 3})
    assert match.current_set == 1
    assert match.set_history == ()
    assert match.version == 0


@pytest.mark.parametrize(
    "payload",
    [
        {"format": 4},
        {"format": 5, "currentSet": 0},
        {"format": 5, "homeSetsWon": -1},
        {"format": 5, "homeSetsWon": "2"},
        {"format": 5, "winner": "draw"},
        {"format": 5, "setHistory": [{"homeScore": 3}]},
        {"format": 5, "setHistory": "nope"},
        {"format": 5, "isComplete": "yes"},
    ],
)
def test_match_from_json_rejects_malformed_payloads(payload: dict) -> None:
    with pytest.raises(OutOfRangeValue):
        Match.from_json(payload)


def test_game_state_rejects_negative_scores() -> None:
    with pytest.raises(OutOfRangeValue):
        GameState(match_id=1, home_score=-1)


def test_team_round_trip_with_custom_colors() -> None:
    team = Team(
        id=5,
        owner_id="user-1",
        name="Eagles",
        location="Central High",
        logo_path="logos/eagles.png",
        color=ColorConfig(scheme="custom", custom=CustomColors(color="#112233")),
    )
    assert Team.from_json(team.to_json()) == team


def test_team_without_custom_colors_has_none_overrides() -> None:
    payload = Team(name="Tigers").to_json()
    assert payload["customColor"] is None
    assert payload["colorScheme"] == "blue"


@pytest.mark.parametrize("name", ["", "x" * 51, "Team<script>"])
def test_team_name_validation(name: str) -> None:
    with pytest.raises(OutOfRangeValue):
        Team(name=name)


def test_custom_scheme_requires_colors() -> None:
    with pytest.raises(OutOfRangeValue):
        ColorConfig(scheme="custom")
    with pytest.raises(OutOfRangeValue):
        ColorConfig(scheme="magenta")
    with pytest.raises(OutOfRangeValue):
        CustomColors(color="red")
    with pytest.raises(OutOfRangeValue):
        CustomColors(color="#112233", text_color=None)
    with pytest.raises(OutOfRangeValue):
        CustomColors(color=None)


def test_settings_defaults_and_round_trip() -> None:
    settings = Settings(owner_id="user-1")
    assert settings.primary_color == "#1565C0"
    assert settings.accent_color == "#FF6F00"
    assert settings.default_match_format == 5
    assert Settings.from_json(settings.to_json()) == settings


def test_settings_validation() -> None:
    with pytest.raises(OutOfRangeValue):
        Settings(owner_id="user-1", theme="neon")
    with pytest.raises(OutOfRangeValue):
        Settings(owner_id="user-1", default_match_format=7)


def test_template_round_trip() -> None:
    template = MatchTemplate(
        id=3,
        owner_id="user-1",
        name="League night",
        home_team_id=1,
        away_team_id=2,
        format=3,
        is_public=True,
    )
    assert MatchTemplate.from_json(template.to_json()) == template


def test_find_inconsistencies_flags_drift() -> None:
    match = Match(
        id=1,
        home_team_id=1,
        away_team_id=2,
        format=5,
        current_set=2,
        home_sets_won=2,
        set_history=(SetRecord(1, 25, 20, Side.HOME),),
    )
    problems = find_inconsistencies(match)
    assert any("disagree with set history" in problem for problem in problems)


def test_find_inconsistencies_accepts_open_match() -> None:
    assert find_inconsistencies(_sample_match()) == []
