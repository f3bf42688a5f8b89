"""Volleyball set and match progression rules."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from domain.common import (
    DEFAULT_MATCH_FORMAT,
    GameState,
    Match,
    SetRecord,
    Side,
    parse_side,
    sets_to_win,
    validate_format,
)
from domain.errors import InvalidTransition, OutOfRangeValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SetRules:
    """Optional guard on ``complete_set``; disabled means the operator decides."""

    enforce_set_rules: bool = False
    points_per_set: int = 25
    min_margin: int = 2

    def is_set_decided(self, home_score: int, away_score: int) -> bool:
        if max(home_score, away_score) < self.points_per_set:
            return False
        return abs(home_score - away_score) >= self.min_margin


@dataclass(frozen=True)
class SetCompletion:
    """Result of closing the open set; both records must be persisted together."""

    match: Match
    state: GameState
    record: SetRecord
    match_decided: bool


def _decide(match_format: int, home_sets_won: int, away_sets_won: int) -> tuple[bool, Side | None]:
    threshold = sets_to_win(match_format)
    if home_sets_won < threshold and away_sets_won < threshold:
        return False, None
    return True, Side.HOME if home_sets_won >= away_sets_won else Side.AWAY


class MatchEngine:
    """Pure transitions over a (Match, GameState) pair.

    No method performs I/O or mutates its arguments: callers fetch the current
    records, apply one transition and persist what comes back.
    """

    def __init__(self, rules: SetRules | None = None) -> None:
        self.rules = rules or SetRules()

    def start_match(
        self,
        home_team_id: int | None,
        away_team_id: int | None,
        match_format: int = DEFAULT_MATCH_FORMAT,
        *,
        match_id: int | None = None,
        name: str | None = None,
    ) -> tuple[Match, GameState]:
        match = Match(
            id=match_id,
            name=name,
            home_team_id=home_team_id,
            away_team_id=away_team_id,
            format=validate_format(match_format),
        )
        return match, GameState(match_id=match_id)

    def adjust_score(self, match: Match, state: GameState, side: Side | str, delta: int) -> GameState:
        """Move one side's live score by +1/-1; decrementing a zero score is a no-op."""
        self._require_open(match, "adjust the score")
        side = parse_side(side)
        if isinstance(delta, bool) or not isinstance(delta, int) or delta not in (1, -1):
            raise OutOfRangeValue(f"score delta must be +1 or -1, got {delta!r}")

        current = state.score(side)
        updated = max(current + delta, 0)
        if updated == current:
            return state
        if side is Side.HOME:
            return replace(state, home_score=updated)
        return replace(state, away_score=updated)

    def complete_set(self, match: Match, state: GameState) -> SetCompletion:
        """Close the open set with the live score and advance to the next one."""
        self._require_open(match, "complete a set")
        if self.rules.enforce_set_rules and not self.rules.is_set_decided(
            state.home_score, state.away_score
        ):
            raise InvalidTransition(
                f"set {match.current_set} at {state.home_score}-{state.away_score} is not decided "
                f"(needs {self.rules.points_per_set} points and a {self.rules.min_margin}-point lead)"
            )

        if state.home_score > state.away_score:
            set_winner = Side.HOME
        elif state.away_score > state.home_score:
            set_winner = Side.AWAY
        else:
            # Ties go to home; kept until there is a product decision on tied sets.
            set_winner = Side.HOME
            logger.warning(
                "set %s of match %s completed tied at %s-%s; awarding it to home",
                match.current_set,
                match.id,
                state.home_score,
                state.away_score,
            )

        record = SetRecord(
            set_number=match.current_set,
            home_score=state.home_score,
            away_score=state.away_score,
            winner=set_winner,
        )
        history = {entry.set_number: entry for entry in match.set_history}
        history[record.set_number] = record

        home_sets_won = sum(1 for entry in history.values() if entry.winner is Side.HOME)
        away_sets_won = sum(1 for entry in history.values() if entry.winner is Side.AWAY)
        is_complete, winner = _decide(match.format, home_sets_won, away_sets_won)

        next_set = match.current_set + 1
        # A decided match gets no placeholder; history then holds only played sets.
        if not is_complete and next_set <= match.format and next_set not in history:
            history[next_set] = SetRecord(set_number=next_set)

        updated_match = replace(
            match,
            set_history=tuple(history[number] for number in sorted(history)),
            home_sets_won=home_sets_won,
            away_sets_won=away_sets_won,
            current_set=next_set,
            is_complete=is_complete,
            winner=winner,
            sets_won_overridden=False,
        )
        logger.info(
            "match %s set %s won by %s %s-%s (sets %s-%s)",
            match.id,
            record.set_number,
            set_winner.value,
            record.home_score,
            record.away_score,
            home_sets_won,
            away_sets_won,
        )
        if is_complete:
            logger.info("match %s won by %s", match.id, winner.value if winner else None)

        return SetCompletion(
            match=updated_match,
            state=self.reset_set(state),
            record=record,
            match_decided=is_complete,
        )

    def reset_set(self, state: GameState) -> GameState:
        return replace(state, home_score=0, away_score=0)

    def reset_match(self, match: Match, state: GameState) -> tuple[Match, GameState]:
        """Reinitialize progress for the same teams and format."""
        logger.info("resetting match %s (was %s, set %s)", match.id, match.status, match.current_set)
        fresh = replace(
            match,
            current_set=1,
            home_sets_won=0,
            away_sets_won=0,
            is_complete=False,
            winner=None,
            set_history=(),
            sets_won_overridden=False,
        )
        return fresh, self.reset_set(state)

    def set_format(self, match: Match, match_format: int) -> Match:
        """Switch best-of-3/best-of-5 and re-evaluate completion against the new threshold."""
        self._require_open(match, "change the format")
        match_format = validate_format(match_format)
        is_complete, winner = _decide(match_format, match.home_sets_won, match.away_sets_won)

        current_set = match.current_set if is_complete else min(match.current_set, match_format)
        history = tuple(
            entry
            for entry in match.set_history
            if entry.is_completed or entry.set_number <= match_format
        )
        if is_complete:
            logger.info("format change to best-of-%s decides match %s", match_format, match.id)
        return replace(
            match,
            format=match_format,
            current_set=current_set,
            set_history=history,
            is_complete=is_complete,
            winner=winner,
        )

    def set_sets_won(self, match: Match, side: Side | str, value: int) -> Match:
        """Manual correction of one side's sets won; set history is left untouched."""
        self._require_open(match, "override sets won")
        side = parse_side(side)
        if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= match.format:
            raise OutOfRangeValue(f"sets won must be between 0 and {match.format}, got {value!r}")
        other = match.sets_won(side.opponent)
        if value + other > match.format:
            raise OutOfRangeValue(
                f"total sets won {value + other} cannot exceed match format {match.format}"
            )

        home_sets_won = value if side is Side.HOME else other
        away_sets_won = other if side is Side.HOME else value
        is_complete, winner = _decide(match.format, home_sets_won, away_sets_won)
        logger.warning(
            "manual override on match %s: %s sets won %s -> %s",
            match.id,
            side.value,
            match.sets_won(side),
            value,
        )
        return replace(
            match,
            home_sets_won=home_sets_won,
            away_sets_won=away_sets_won,
            is_complete=is_complete,
            winner=winner,
            sets_won_overridden=True,
        )

    @staticmethod
    def _require_open(match: Match, action: str) -> None:
        if match.is_complete:
            raise InvalidTransition(f"cannot {action}: match {match.id} is complete; reset it first")


__all__ = ["MatchEngine", "SetCompletion", "SetRules"]
