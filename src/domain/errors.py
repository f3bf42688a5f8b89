"""Error kinds raised by the scoreboard engine and its collaborators."""

from __future__ import annotations


class ScoreboardError(Exception):
    """Base class for every scoreboard failure surfaced to callers."""


class InvalidTransition(ScoreboardError):
    """An intent is not allowed in the current match state."""


class OutOfRangeValue(ScoreboardError):
    """A format, side, delta, count or payload field is outside its domain."""


class NotFound(ScoreboardError):
    """A referenced record has no backing row."""

    def __init__(self, kind: str, record_id: object) -> None:
        super().__init__(f"{kind} {record_id!r} not found")
        self.kind = kind
        self.record_id = record_id


class ConcurrentUpdate(ScoreboardError):
    """A save carried a stale version; the caller must re-fetch before retrying."""

    def __init__(self, match_id: int, expected_version: int, actual_version: int) -> None:
        super().__init__(
            f"match {match_id} changed concurrently "
            f"(expected version={expected_version}, stored version={actual_version})"
        )
        self.match_id = match_id
        self.expected_version = expected_version
        self.actual_version = actual_version


__all__ = [
    "ConcurrentUpdate",
    "InvalidTransition",
    "NotFound",
    "OutOfRangeValue",
    "ScoreboardError",
]
