"""Scoreboard records shared by the engine, repositories and display layer.

Every record is a frozen dataclass; transitions build new instances with
``dataclasses.replace``. ``to_json``/``from_json`` produce the camelCase
payloads stored by the persistence layer and read by the display.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from domain.errors import OutOfRangeValue

MATCH_FORMATS = (3, 5)
DEFAULT_MATCH_FORMAT = 5
COLOR_SCHEMES = ("pink", "cyan", "orange", "purple", "green", "red", "blue", "yellow", "custom")
THEMES = ("standard", "dark", "light", "custom")

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")
_TEAM_NAME = re.compile(r"^[a-zA-Z0-9\s\-']+$")
_MISSING = object()


class Side(str, Enum):
    """Which team a score, set or match result belongs to."""

    HOME = "home"
    AWAY = "away"

    @property
    def opponent(self) -> Side:
        return Side.AWAY if self is Side.HOME else Side.HOME


def parse_side(value: Side | str) -> Side:
    try:
        return Side(value)
    except ValueError as exc:
        raise OutOfRangeValue(f"side must be 'home' or 'away', got {value!r}") from exc


def parse_winner(value: Side | str | None) -> Side | None:
    return None if value is None else parse_side(value)


def validate_format(match_format: Any) -> int:
    """Return ``match_format`` if it is a supported best-of-N value."""
    if isinstance(match_format, bool) or match_format not in MATCH_FORMATS:
        raise OutOfRangeValue(f"format must be one of {MATCH_FORMATS}, got {match_format!r}")
    return int(match_format)


def sets_to_win(match_format: int) -> int:
    """Majority threshold for a best-of-N match (2 for best-of-3, 3 for best-of-5)."""
    return match_format // 2 + 1


def _int_field(raw: Mapping[str, Any], key: str, default: Any = _MISSING, *, minimum: int = 0) -> int:
    value = raw.get(key, default)
    if value is _MISSING:
        raise OutOfRangeValue(f"missing required field {key!r}")
    if isinstance(value, bool) or not isinstance(value, int):
        raise OutOfRangeValue(f"{key} must be an integer, got {value!r}")
    if value < minimum:
        raise OutOfRangeValue(f"{key} must be >= {minimum}, got {value}")
    return value


def _optional_int_field(raw: Mapping[str, Any], key: str) -> int | None:
    if raw.get(key) is None:
        return None
    return _int_field(raw, key, minimum=1)


def _bool_field(raw: Mapping[str, Any], key: str, default: bool) -> bool:
    value = raw.get(key, default)
    if not isinstance(value, bool):
        raise OutOfRangeValue(f"{key} must be a boolean, got {value!r}")
    return value


def _optional_str_field(raw: Mapping[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise OutOfRangeValue(f"{key} must be a string, got {value!r}")
    return value


def _require_non_negative(**values: int) -> None:
    for name, value in values.items():
        if value < 0:
            raise OutOfRangeValue(f"{name} must be >= 0, got {value}")


def _validate_hex_color(name: str, value: str | None) -> None:
    if value is not None and not _HEX_COLOR.match(value):
        raise OutOfRangeValue(f"{name} must be a #RRGGBB hex color, got {value!r}")


@dataclass(frozen=True)
class SetRecord:
    """One entry of a match's set history; ``winner is None`` marks an unplayed set."""

    set_number: int
    home_score: int = 0
    away_score: int = 0
    winner: Side | None = None

    def __post_init__(self) -> None:
        if self.set_number < 1:
            raise OutOfRangeValue(f"set_number must be >= 1, got {self.set_number}")
        _require_non_negative(home_score=self.home_score, away_score=self.away_score)

    @property
    def is_completed(self) -> bool:
        return self.winner is not None

    def to_json(self) -> dict[str, Any]:
        return {
            "setNumber": self.set_number,
            "homeScore": self.home_score,
            "awayScore": self.away_score,
            "winner": None if self.winner is None else self.winner.value,
        }

    @classmethod
    def from_json(cls, raw: Mapping[str, Any]) -> SetRecord:
        return cls(
            set_number=_int_field(raw, "setNumber", minimum=1),
            home_score=_int_field(raw, "homeScore", 0),
            away_score=_int_field(raw, "awayScore", 0),
            winner=parse_winner(raw.get("winner")),
        )


@dataclass(frozen=True)
class Match:
    """Best-of-N match progress: sets won, the open set and the set history."""

    home_team_id: int | None
    away_team_id: int | None
    format: int = DEFAULT_MATCH_FORMAT
    id: int | None = None
    current_set: int = 1
    home_sets_won: int = 0
    away_sets_won: int = 0
    is_complete: bool = False
    winner: Side | None = None
    set_history: tuple[SetRecord, ...] = ()
    sets_won_overridden: bool = False
    version: int = 0
    name: str | None = None

    def __post_init__(self) -> None:
        validate_format(self.format)
        if self.current_set < 1:
            raise OutOfRangeValue(f"current_set must be >= 1, got {self.current_set}")
        _require_non_negative(
            home_sets_won=self.home_sets_won,
            away_sets_won=self.away_sets_won,
            version=self.version,
        )
        if not isinstance(self.set_history, tuple):
            object.__setattr__(self, "set_history", tuple(self.set_history))

    @property
    def sets_to_win(self) -> int:
        return sets_to_win(self.format)

    @property
    def status(self) -> str:
        return "completed" if self.is_complete else "in_progress"

    def sets_won(self, side: Side) -> int:
        return self.home_sets_won if side is Side.HOME else self.away_sets_won

    def set_record(self, set_number: int) -> SetRecord | None:
        for record in self.set_history:
            if record.set_number == set_number:
                return record
        return None

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "homeTeamId": self.home_team_id,
            "awayTeamId": self.away_team_id,
            "format": self.format,
            "currentSet": self.current_set,
            "homeSetsWon": self.home_sets_won,
            "awaySetsWon": self.away_sets_won,
            "isComplete": self.is_complete,
            "status": self.status,
            "winner": None if self.winner is None else self.winner.value,
            "setHistory": [record.to_json() for record in self.set_history],
            "setsWonOverridden": self.sets_won_overridden,
            "version": self.version,
        }

    @classmethod
    def from_json(cls, raw: Mapping[str, Any]) -> Match:
        history_raw = raw.get("setHistory") or []
        if not isinstance(history_raw, list):
            raise OutOfRangeValue(f"setHistory must be a list, got {history_raw!r}")
        return cls(
            id=_optional_int_field(raw, "id"),
            name=_optional_str_field(raw, "name"),
            home_team_id=_optional_int_field(raw, "homeTeamId"),
            away_team_id=_optional_int_field(raw, "awayTeamId"),
            format=validate_format(raw.get("format", DEFAULT_MATCH_FORMAT)),
            current_set=_int_field(raw, "currentSet", 1, minimum=1),
            home_sets_won=_int_field(raw, "homeSetsWon", 0),
            away_sets_won=_int_field(raw, "awaySetsWon", 0),
            is_complete=_bool_field(raw, "isComplete", False),
            winner=parse_winner(raw.get("winner")),
            set_history=tuple(SetRecord.from_json(item) for item in history_raw),
            sets_won_overridden=_bool_field(raw, "setsWonOverridden", False),
            version=_int_field(raw, "version", 0),
        )


@dataclass(frozen=True)
class DisplayOptions:
    show_set_history: bool = True
    show_sponsors: bool = True
    show_timer: bool = False

    def to_json(self) -> dict[str, Any]:
        return {
            "showSetHistory": self.show_set_history,
            "showSponsors": self.show_sponsors,
            "showTimer": self.show_timer,
        }

    @classmethod
    def from_json(cls, raw: Mapping[str, Any] | None) -> DisplayOptions:
        if raw is None:
            return cls()
        return cls(
            show_set_history=_bool_field(raw, "showSetHistory", True),
            show_sponsors=_bool_field(raw, "showSponsors", True),
            show_timer=_bool_field(raw, "showTimer", False),
        )


@dataclass(frozen=True)
class GameState:
    """Live point count of the currently open set."""

    match_id: int | None
    home_score: int = 0
    away_score: int = 0
    display_options: DisplayOptions = field(default_factory=DisplayOptions)

    def __post_init__(self) -> None:
        _require_non_negative(home_score=self.home_score, away_score=self.away_score)

    def score(self, side: Side) -> int:
        return self.home_score if side is Side.HOME else self.away_score

    def to_json(self) -> dict[str, Any]:
        return {
            "matchId": self.match_id,
            "homeScore": self.home_score,
            "awayScore": self.away_score,
            "displayOptions": self.display_options.to_json(),
        }

    @classmethod
    def from_json(cls, raw: Mapping[str, Any]) -> GameState:
        return cls(
            match_id=_optional_int_field(raw, "matchId"),
            home_score=_int_field(raw, "homeScore", 0),
            away_score=_int_field(raw, "awayScore", 0),
            display_options=DisplayOptions.from_json(raw.get("displayOptions")),
        )


@dataclass(frozen=True)
class CustomColors:
    """Explicit color overrides used when a team picks the ``custom`` scheme."""

    color: str
    text_color: str = "#FFFFFF"
    set_background_color: str = "#000000"

    def __post_init__(self) -> None:
        for name in ("color", "text_color", "set_background_color"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise OutOfRangeValue(f"{name} is required, got {value!r}")
            _validate_hex_color(name, value)


@dataclass(frozen=True)
class ColorConfig:
    scheme: str = "blue"
    custom: CustomColors | None = None

    def __post_init__(self) -> None:
        if self.scheme not in COLOR_SCHEMES:
            raise OutOfRangeValue(f"color scheme must be one of {COLOR_SCHEMES}, got {self.scheme!r}")
        if self.scheme == "custom" and self.custom is None:
            raise OutOfRangeValue("custom color scheme requires custom colors")


@dataclass(frozen=True)
class Team:
    name: str
    id: int | None = None
    owner_id: str | None = None
    location: str | None = None
    logo_path: str | None = None
    color: ColorConfig = field(default_factory=ColorConfig)
    is_template: bool = False

    def __post_init__(self) -> None:
        if not 1 <= len(self.name) <= 50 or not _TEAM_NAME.match(self.name):
            raise OutOfRangeValue(
                "team name must be 1-50 letters, numbers, spaces, hyphens or apostrophes, "
                f"got {self.name!r}"
            )
        if self.location is not None and len(self.location) > 100:
            raise OutOfRangeValue("team location must be at most 100 characters")

    def to_json(self) -> dict[str, Any]:
        custom = self.color.custom
        return {
            "id": self.id,
            "userId": self.owner_id,
            "name": self.name,
            "location": self.location,
            "logoPath": self.logo_path,
            "colorScheme": self.color.scheme,
            "customColor": None if custom is None else custom.color,
            "customTextColor": None if custom is None else custom.text_color,
            "customSetBackgroundColor": None if custom is None else custom.set_background_color,
            "isTemplate": self.is_template,
        }

    @classmethod
    def from_json(cls, raw: Mapping[str, Any]) -> Team:
        custom_color = _optional_str_field(raw, "customColor")
        custom = None
        if custom_color is not None:
            custom = CustomColors(
                color=custom_color,
                text_color=_optional_str_field(raw, "customTextColor") or "#FFFFFF",
                set_background_color=_optional_str_field(raw, "customSetBackgroundColor") or "#000000",
            )
        return cls(
            id=_optional_int_field(raw, "id"),
            owner_id=_optional_str_field(raw, "userId"),
            name=_optional_str_field(raw, "name") or "",
            location=_optional_str_field(raw, "location"),
            logo_path=_optional_str_field(raw, "logoPath"),
            color=ColorConfig(scheme=_optional_str_field(raw, "colorScheme") or "blue", custom=custom),
            is_template=_bool_field(raw, "isTemplate", False),
        )


@dataclass(frozen=True)
class Settings:
    """Per-account display and match defaults."""

    owner_id: str
    sponsor_logo_path: str | None = None
    primary_color: str = "#1565C0"
    accent_color: str = "#FF6F00"
    theme: str = "standard"
    default_match_format: int = DEFAULT_MATCH_FORMAT
    auto_save: bool = True

    def __post_init__(self) -> None:
        _validate_hex_color("primary_color", self.primary_color)
        _validate_hex_color("accent_color", self.accent_color)
        if self.theme not in THEMES:
            raise OutOfRangeValue(f"theme must be one of {THEMES}, got {self.theme!r}")
        validate_format(self.default_match_format)

    def to_json(self) -> dict[str, Any]:
        return {
            "userId": self.owner_id,
            "sponsorLogoPath": self.sponsor_logo_path,
            "primaryColor": self.primary_color,
            "accentColor": self.accent_color,
            "theme": self.theme,
            "defaultMatchFormat": self.default_match_format,
            "autoSave": self.auto_save,
        }

    @classmethod
    def from_json(cls, raw: Mapping[str, Any]) -> Settings:
        owner_id = _optional_str_field(raw, "userId")
        if owner_id is None:
            raise OutOfRangeValue("missing required field 'userId'")
        return cls(
            owner_id=owner_id,
            sponsor_logo_path=_optional_str_field(raw, "sponsorLogoPath"),
            primary_color=_optional_str_field(raw, "primaryColor") or "#1565C0",
            accent_color=_optional_str_field(raw, "accentColor") or "#FF6F00",
            theme=_optional_str_field(raw, "theme") or "standard",
            default_match_format=validate_format(raw.get("defaultMatchFormat", DEFAULT_MATCH_FORMAT)),
            auto_save=_bool_field(raw, "autoSave", True),
        )


@dataclass(frozen=True)
class MatchTemplate:
    """Saved team pairing and format that can seed new matches."""

    owner_id: str
    name: str
    id: int | None = None
    description: str | None = None
    home_team_id: int | None = None
    away_team_id: int | None = None
    format: int = DEFAULT_MATCH_FORMAT
    is_public: bool = False

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise OutOfRangeValue("template name is required")
        validate_format(self.format)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "userId": self.owner_id,
            "name": self.name,
            "description": self.description,
            "homeTeamId": self.home_team_id,
            "awayTeamId": self.away_team_id,
            "format": self.format,
            "isPublic": self.is_public,
        }

    @classmethod
    def from_json(cls, raw: Mapping[str, Any]) -> MatchTemplate:
        owner_id = _optional_str_field(raw, "userId")
        if owner_id is None:
            raise OutOfRangeValue("missing required field 'userId'")
        return cls(
            id=_optional_int_field(raw, "id"),
            owner_id=owner_id,
            name=_optional_str_field(raw, "name") or "",
            description=_optional_str_field(raw, "description"),
            home_team_id=_optional_int_field(raw, "homeTeamId"),
            away_team_id=_optional_int_field(raw, "awayTeamId"),
            format=validate_format(raw.get("format", DEFAULT_MATCH_FORMAT)),
            is_public=_bool_field(raw, "isPublic", False),
        )


def find_inconsistencies(match: Match) -> list[str]:
    """Describe every invariant a persisted match violates; empty when consistent."""
    problems: list[str] = []
    threshold = match.sets_to_win

    numbers = [record.set_number for record in match.set_history]
    if numbers != sorted(set(numbers)):
        problems.append(f"set history numbers are not unique and ascending: {numbers}")

    if match.current_set > match.format + 1:
        problems.append(f"current set {match.current_set} exceeds format {match.format}")
    elif not match.is_complete and match.current_set > match.format:
        problems.append(f"open match is on set {match.current_set} of best-of-{match.format}")

    for record in match.set_history:
        if record.set_number < match.current_set and not record.is_completed:
            problems.append(f"set {record.set_number} is behind the current set but has no winner")
        if record.set_number >= match.current_set and record.is_completed:
            problems.append(f"set {record.set_number} has a winner but has not been played yet")

    if not match.sets_won_overridden:
        home_from_history = sum(1 for record in match.set_history if record.winner is Side.HOME)
        away_from_history = sum(1 for record in match.set_history if record.winner is Side.AWAY)
        if (match.home_sets_won, match.away_sets_won) != (home_from_history, away_from_history):
            problems.append(
                f"sets won {match.home_sets_won}-{match.away_sets_won} disagree with "
                f"set history {home_from_history}-{away_from_history}"
            )

    if match.home_sets_won + match.away_sets_won > match.format:
        problems.append(
            f"{match.home_sets_won + match.away_sets_won} sets won in a best-of-{match.format}"
        )

    decided = max(match.home_sets_won, match.away_sets_won) >= threshold
    if match.is_complete != decided:
        problems.append(
            f"is_complete={match.is_complete} but sets won are "
            f"{match.home_sets_won}-{match.away_sets_won} (threshold {threshold})"
        )
    if match.is_complete and match.winner is None:
        problems.append("completed match has no winner")
    if not match.is_complete and match.winner is not None:
        problems.append(f"open match has winner {match.winner.value}")

    return problems


__all__ = [
    "COLOR_SCHEMES",
    "ColorConfig",
    "CustomColors",
    "DEFAULT_MATCH_FORMAT",
    "DisplayOptions",
    "GameState",
    "MATCH_FORMATS",
    "Match",
    "MatchTemplate",
    "SetRecord",
    "Settings",
    "Side",
    "THEMES",
    "Team",
    "find_inconsistencies",
    "parse_side",
    "parse_winner",
    "sets_to_win",
    "validate_format",
]
