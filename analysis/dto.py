"""DTO types produced by the reconstruction and aggregation stages.

DTOs are plain data containers used to transport reconstructed telemetry to
the statistics stages and to the presentation layer. They intentionally avoid
any Django/ORM dependencies.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any

from .modes import GameMode, Outcome

UNKNOWN_PLAYER_ID = "Unknown"


@dataclass(frozen=True, slots=True)
class RawEvent:
    """A single telemetry event as emitted by the game client.

    Attributes:
        event_at: Event timestamp (timezone-aware), or None when missing.
        event_type: Event type identifier (e.g. "simon_select", "game_over").
        player_id: Optional player identifier.
        session_id: Optional session identifier.
        game_reference: Optional game identifier; blank values are None.
        game_level: Optional level the event was stamped with.
        game_mode: Optional raw mode string (e.g. "modeAR", "mode2D").
        game_color: Optional color name for selection events.
        extra: Read-only side-map of any fields not listed above.
    """

    event_at: datetime | None
    event_type: str | None
    player_id: str | None = None
    session_id: str | None = None
    game_reference: str | None = None
    game_level: int | None = None
    game_mode: str | None = None
    game_color: str | None = None
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True, slots=True)
class ResponseTimeSample:
    """Elapsed time between the end of a prompt sequence and the level outcome.

    Attributes:
        game_reference: Game the sample was extracted from.
        level: Level the prompt sequence was shown for (always > 0).
        mode: Game mode category, or None when the mode is unclassified.
        seconds: Strictly positive response time in seconds.
    """

    game_reference: str
    level: int
    mode: GameMode | None
    seconds: float


@dataclass(frozen=True, slots=True)
class LevelRow:
    """Per-level detail for a single game."""

    level: int
    simon_colors: tuple[str, ...]
    player_colors: tuple[str, ...]
    response_time_seconds: float | None


@dataclass(frozen=True)
class Game:
    """A valid game reconstructed from events sharing a game reference.

    Attributes:
        game_reference: Stable game identifier.
        mode: Mode category derived from the first event carrying a mode.
        raw_mode: The raw mode string the category was derived from.
        events: All events of the game; timed events first in stable
            `event_at` order, followed by untimed events in arrival order.
        outcome: Outcome classification.
        started_at: Timestamp of the first timed event.
        ended_at: Timestamp of the last timed event.
        max_level: Highest non-null level stamped on any event (may be 0).
        levels: Per-level detail rows for levels > 0.
        response_times: Matched response-time samples, one per level at most.
    """

    game_reference: str
    mode: GameMode | None
    raw_mode: str | None
    events: tuple[RawEvent, ...]
    outcome: Outcome
    started_at: datetime | None
    ended_at: datetime | None
    max_level: int | None
    levels: tuple[LevelRow, ...] = ()
    response_times: tuple[ResponseTimeSample, ...] = ()

    @property
    def highest_level(self) -> int | None:
        """Return the highest attained level (> 0), or None when none exists."""

        if self.max_level is None or self.max_level <= 0:
            return None
        return self.max_level


@dataclass(frozen=True)
class Session:
    """A session with at least one valid game.

    Attributes:
        session_id: Stable session identifier.
        player_id: First player identifier seen for the session, if any.
        started_at: Earliest event timestamp in the session (any event).
        ended_at: Latest timestamp among the session's game events.
        game_references: Valid games touched by the session, first-seen order.
        max_level: Highest level > 0 reached in the session's valid games.
    """

    session_id: str
    player_id: str | None
    started_at: datetime | None
    ended_at: datetime | None
    game_references: tuple[str, ...]
    max_level: int | None

    @property
    def duration_seconds(self) -> float | None:
        """Return the session span in seconds, or None when not positive."""

        if self.started_at is None or self.ended_at is None:
            return None
        seconds = (self.ended_at - self.started_at).total_seconds()
        if seconds <= 0:
            return None
        return seconds


@dataclass(frozen=True)
class Player:
    """A player with at least one valid game.

    Attributes:
        player_id: Player identifier, or `UNKNOWN_PLAYER_ID` for the bucket of
            events without one.
        session_ids: Valid sessions in which the player touched a valid game.
        game_references: Valid games attributable to the player.
    """

    player_id: str
    session_ids: tuple[str, ...]
    game_references: tuple[str, ...]

    @property
    def identified(self) -> bool:
        """Return True when the player is not the unknown-player bucket."""

        return self.player_id != UNKNOWN_PLAYER_ID


@dataclass(frozen=True)
class Reconstruction:
    """The recovered Player -> Session -> Game hierarchy for one batch.

    Attributes:
        events: The parsed batch, in arrival order.
        games: Valid games, in first-seen order.
        sessions: Valid sessions, in first-seen order.
        players: Players with valid games, in first-seen order.
        invalid_game_references: Game references excluded as invalid.
    """

    events: tuple[RawEvent, ...]
    games: tuple[Game, ...] = ()
    sessions: tuple[Session, ...] = ()
    players: tuple[Player, ...] = ()
    invalid_game_references: tuple[str, ...] = ()

    @property
    def samples(self) -> tuple[ResponseTimeSample, ...]:
        """Return every response-time sample across valid games."""

        return tuple(sample for game in self.games for sample in game.response_times)

    def game(self, game_reference: str) -> Game | None:
        """Return a valid game by reference, or None."""

        for game in self.games:
            if game.game_reference == game_reference:
                return game
        return None


@dataclass(frozen=True, slots=True)
class ModeSummary:
    """Per-mode totals.

    Attributes:
        mode: Mode category.
        game_count: Number of valid games in the mode.
        average_highest_level: Mean of per-game highest levels (> 0), or None.
    """

    mode: GameMode
    game_count: int
    average_highest_level: float | None


@dataclass(frozen=True, slots=True)
class DashboardTotals:
    """Overall totals across the batch."""

    total_games: int
    total_sessions: int
    total_players: int
    average_games_per_session: float | None
    modes: tuple[ModeSummary, ...] = ()


@dataclass(frozen=True, slots=True)
class PlayerSummary:
    """Per-player summary over valid games and sessions.

    Level values are per-game levels reached. "Lowest" and "average" ignore
    level 0; "highest" keeps it when it is the only value present. Session
    values are in seconds.
    """

    player_id: str
    session_count: int
    game_count: int
    highest_level_ar: int | None
    lowest_level_ar: int | None
    average_level_ar: float | None
    highest_level_2d: int | None
    lowest_level_2d: int | None
    average_level_2d: float | None
    longest_session_seconds: float | None
    shortest_session_seconds: float | None
    average_session_seconds: float | None


@dataclass(frozen=True, slots=True)
class PairedModeMetrics:
    """Per-player AR vs 2D metrics for players with valid games in both modes."""

    player_id: str
    ar_mean_response_time: float | None
    two_d_mean_response_time: float | None
    ar_highest_level: int | None
    two_d_highest_level: int | None


@dataclass(frozen=True, slots=True)
class RegressionRow:
    """One observation for the response-time regression models.

    Attributes:
        level: Level the response time was measured on.
        mode_indicator: 1.0 for AR games, 0.0 otherwise.
        previous_response_time: Response time of the previous matched level in
            the same game (ascending level order), 0.0 for the first.
        response_time: Response time in seconds.
    """

    level: float
    mode_indicator: float
    previous_response_time: float
    response_time: float
