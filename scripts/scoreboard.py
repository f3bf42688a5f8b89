#!/usr/bin/env python3
"""Operator commands for the volleyball scoreboard."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import Annotated, TypeVar

import typer
from sqlalchemy.engine import Engine

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import create_db_engine, create_session_factory
from domain.common import ColorConfig, Side, find_inconsistencies
from domain.config_base import DEFAULT_CONFIG_PATH, ScoreboardConfig, load_scoreboard_config
from domain.engine import MatchEngine
from domain.errors import ScoreboardError
from domain.service import ScoreboardService, ScoreboardSnapshot
from repositories import SqlScoreboardRepository, ensure_scoreboard_schema

T = TypeVar("T")

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Volleyball scoreboard commands.",
)


@app.callback()
def main(
    ctx: typer.Context,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", help="Scoreboard TOML config. Defaults to config/scoreboard.toml."),
    ] = None,
    db_url: Annotated[
        str | None,
        typer.Option("--db-url", help="Database URL; overrides [database].url."),
    ] = None,
) -> None:
    """Load configuration and logging before any command runs."""
    if config_path is not None:
        config = load_scoreboard_config(config_path)
    elif DEFAULT_CONFIG_PATH.exists():
        config = load_scoreboard_config(DEFAULT_CONFIG_PATH)
    else:
        config = ScoreboardConfig()
    if db_url is not None:
        config = replace(config, db_url=db_url)

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = config


def _open_engine(ctx: typer.Context) -> Engine:
    """Create the schema if needed; the engine is disposed when the command finishes."""
    config: ScoreboardConfig = ctx.obj
    engine = create_db_engine(config.db_url)
    ctx.call_on_close(engine.dispose)
    ensure_scoreboard_schema(engine)
    return engine


def _open_service(ctx: typer.Context) -> ScoreboardService:
    config: ScoreboardConfig = ctx.obj
    return ScoreboardService(
        SqlScoreboardRepository(create_session_factory(_open_engine(ctx))),
        MatchEngine(config.rules),
        max_retries=config.max_retries,
        default_match_format=config.default_match_format,
    )


def _run(action: Callable[[], T]) -> T:
    try:
        return action()
    except ScoreboardError as exc:
        typer.echo(f"error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _echo_snapshot(snapshot: ScoreboardSnapshot) -> None:
    match = snapshot.match
    home_name = snapshot.home_team.name if snapshot.home_team else "HOME"
    away_name = snapshot.away_team.name if snapshot.away_team else "AWAY"
    typer.echo(f"match={match.id} best_of={match.format} status={match.status}")
    typer.echo(
        f"{home_name} {match.home_sets_won} - {match.away_sets_won} {away_name}"
        + ("" if match.is_complete else f"  (set {match.current_set}: "
           f"{snapshot.state.home_score}-{snapshot.state.away_score})")
    )
    for record in match.set_history:
        if record.is_completed:
            typer.echo(
                f"  set {record.set_number}: {record.home_score}-{record.away_score} "
                f"winner={record.winner.value}"
            )
    if match.sets_won_overridden:
        typer.echo("  sets won were corrected manually")
    if match.winner is not None:
        typer.echo(f"winner={match.winner.value}")


@app.command("init-db")
def init_db(ctx: typer.Context) -> None:
    """Create scoreboard tables if they do not exist."""
    config: ScoreboardConfig = ctx.obj
    _open_engine(ctx)
    typer.echo(f"schema ready at {config.db_url}")


@app.command("add-team")
def add_team(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Team display name.")],
    location: Annotated[str | None, typer.Option("--location")] = None,
    scheme: Annotated[str, typer.Option("--scheme", help="Color scheme name.")] = "blue",
) -> None:
    """Register a team."""
    service = _open_service(ctx)
    team = _run(lambda: service.create_team(name, location=location, color=ColorConfig(scheme=scheme)))
    typer.echo(f"team={team.id} name={team.name}")


@app.command("new-match")
def new_match(
    ctx: typer.Context,
    home: Annotated[int, typer.Option("--home", help="Home team id.")],
    away: Annotated[int, typer.Option("--away", help="Away team id.")],
    match_format: Annotated[
        int | None,
        typer.Option(
            "--format",
            help="Best-of-N sets (3 or 5). Defaults to account settings, then [match].default_format.",
        ),
    ] = None,
    name: Annotated[str | None, typer.Option("--name")] = None,
) -> None:
    """Start a match with zero scores and empty set history."""
    service = _open_service(ctx)
    match, _ = _run(lambda: service.start_match(home, away, match_format, name=name))
    typer.echo(f"match={match.id} best_of={match.format}")


@app.command("score")
def score(
    ctx: typer.Context,
    match_id: Annotated[int, typer.Argument()],
    side: Annotated[Side, typer.Argument(case_sensitive=False)],
    down: Annotated[bool, typer.Option("--down", help="Take a point away instead.")] = False,
) -> None:
    """Add (or with --down remove) one point for a side."""
    service = _open_service(ctx)
    state = _run(lambda: service.adjust_score(match_id, side, -1 if down else 1))
    typer.echo(f"score {state.home_score}-{state.away_score}")


@app.command("complete-set")
def complete_set(ctx: typer.Context, match_id: Annotated[int, typer.Argument()]) -> None:
    """Close the current set with the live score."""
    service = _open_service(ctx)
    completion = _run(lambda: service.complete_set(match_id))
    record = completion.record
    typer.echo(
        f"set {record.set_number} {record.home_score}-{record.away_score} "
        f"winner={record.winner.value if record.winner else None}"
    )
    if completion.match_decided and completion.match.winner is not None:
        typer.echo(f"match complete winner={completion.match.winner.value}")


@app.command("reset-set")
def reset_set(ctx: typer.Context, match_id: Annotated[int, typer.Argument()]) -> None:
    """Zero the live score of the current set."""
    service = _open_service(ctx)
    _run(lambda: service.reset_set(match_id))
    typer.echo("score 0-0")


@app.command("reset-match")
def reset_match(ctx: typer.Context, match_id: Annotated[int, typer.Argument()]) -> None:
    """Restart the match with the same teams and format; also repairs corrupted state."""
    service = _open_service(ctx)
    match, _ = _run(lambda: service.reset_match(match_id))
    typer.echo(f"match={match.id} reset to set 1")


@app.command("set-format")
def set_format(
    ctx: typer.Context,
    match_id: Annotated[int, typer.Argument()],
    match_format: Annotated[int, typer.Argument(help="3 or 5.")],
) -> None:
    """Change the best-of-N format of an open match."""
    service = _open_service(ctx)
    match = _run(lambda: service.set_format(match_id, match_format))
    typer.echo(f"match={match.id} best_of={match.format} status={match.status}")


@app.command("set-sets-won")
def set_sets_won(
    ctx: typer.Context,
    match_id: Annotated[int, typer.Argument()],
    side: Annotated[Side, typer.Argument(case_sensitive=False)],
    value: Annotated[int, typer.Argument()],
) -> None:
    """Manually correct one side's sets won."""
    service = _open_service(ctx)
    match = _run(lambda: service.set_sets_won(match_id, side, value))
    typer.echo(f"sets {match.home_sets_won}-{match.away_sets_won} status={match.status}")


@app.command("show")
def show(
    ctx: typer.Context,
    match_id: Annotated[int | None, typer.Argument(help="Defaults to the current match.")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the display payload.")] = False,
) -> None:
    """Print the scoreboard for one match."""
    service = _open_service(ctx)
    snapshot = _run(lambda: service.current_match() if match_id is None else service.scoreboard(match_id))
    if as_json:
        typer.echo(json.dumps(snapshot.to_json(), indent=2))
        return
    _echo_snapshot(snapshot)


@app.command("check")
def check(ctx: typer.Context, match_id: Annotated[int, typer.Argument()]) -> None:
    """Report invariant violations in stored match state."""
    service = _open_service(ctx)
    match = _run(lambda: service.scoreboard(match_id)).match
    problems = find_inconsistencies(match)
    if not problems:
        typer.echo(f"match={match.id} consistent")
        return
    for problem in problems:
        typer.echo(f"match={match.id} {problem}")
    typer.echo("run reset-match to restore a clean state")
    raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
