"""Reconstruction of the Player -> Session -> Game hierarchy.

Telemetry arrives as a flat, unordered batch. This module groups events into
games by game reference, drops games that never showed a prompt sequence,
extracts per-level response times, and groups valid games into sessions and
players. It is pure: no Django imports and no I/O.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from .dto import (
    UNKNOWN_PLAYER_ID,
    Game,
    LevelRow,
    Player,
    RawEvent,
    Reconstruction,
    ResponseTimeSample,
    Session,
)
from .events import parse_events
from .modes import GameMode, classify_mode, classify_outcome, qualifying_event_type

logger = logging.getLogger(__name__)


def reconstruct(records: object) -> Reconstruction:
    """Parse a raw batch and rebuild its games, sessions and players.

    Args:
        records: A list of raw event mappings (or RawEvent instances).

    Returns:
        Reconstruction containing only valid games and the sessions/players
        that touched them.

    Raises:
        EventBatchError: When the batch itself is malformed.
    """

    events = parse_events(records)
    grouped = group_events_by_game(events)

    games: list[Game] = []
    invalid: list[str] = []
    for game_reference, game_events in grouped.items():
        game = build_game(game_reference, game_events)
        if game is None:
            invalid.append(game_reference)
            continue
        games.append(game)

    if invalid:
        logger.debug("Skipped %d games without a prompt sequence", len(invalid))

    valid_references = {game.game_reference for game in games}
    games_by_reference = {game.game_reference: game for game in games}
    sessions, players = group_sessions_and_players(events, valid_references, games_by_reference)

    logger.info(
        "Reconstructed %d events into %d valid games, %d sessions, %d players",
        len(events),
        len(games),
        len(sessions),
        len(players),
    )
    return Reconstruction(
        events=events,
        games=tuple(games),
        sessions=sessions,
        players=players,
        invalid_game_references=tuple(invalid),
    )


def group_events_by_game(events: Iterable[RawEvent]) -> dict[str, list[RawEvent]]:
    """Group events by game reference, preserving arrival order.

    Events without a game reference belong to no game.
    """

    grouped: dict[str, list[RawEvent]] = {}
    for event in events:
        if not event.game_reference:
            continue
        grouped.setdefault(event.game_reference, []).append(event)
    return grouped


def game_mode_of(events: Iterable[RawEvent]) -> tuple[GameMode | None, str | None]:
    """Return the mode category and raw mode of the first event carrying one."""

    for event in events:
        if event.game_mode:
            return classify_mode(event.game_mode), event.game_mode
    return None, None


def is_valid_game(events: Sequence[RawEvent], mode: GameMode | None) -> bool:
    """Return True if the game contains its mode's qualifying event."""

    wanted = qualifying_event_type(mode)
    return any(event.event_type == wanted for event in events)


def build_game(game_reference: str, events: Sequence[RawEvent]) -> Game | None:
    """Build a Game from its events, or None when the game is invalid.

    Args:
        game_reference: Shared game reference of the events.
        events: The game's events in arrival order.

    Returns:
        A Game with outcome, time span, level rows and response times.
    """

    mode, raw_mode = game_mode_of(events)
    if not is_valid_game(events, mode):
        return None

    timeline = sort_timeline(events)
    untimed = [event for event in events if event.event_at is None]
    levels = [event.game_level for event in events if event.game_level is not None]

    rows, samples = extract_levels(game_reference, timeline, mode)
    return Game(
        game_reference=game_reference,
        mode=mode,
        raw_mode=raw_mode,
        events=tuple(timeline) + tuple(untimed),
        outcome=classify_outcome(event.event_type for event in events),
        started_at=timeline[0].event_at if timeline else None,
        ended_at=timeline[-1].event_at if timeline else None,
        max_level=max(levels) if levels else None,
        levels=rows,
        response_times=samples,
    )


def sort_timeline(events: Iterable[RawEvent]) -> list[RawEvent]:
    """Return timed events sorted by `event_at`; ties keep arrival order."""

    timed = [event for event in events if event.event_at is not None]
    return sorted(timed, key=_event_time)


def extract_levels(
    game_reference: str,
    timeline: Sequence[RawEvent],
    mode: GameMode | None,
) -> tuple[tuple[LevelRow, ...], tuple[ResponseTimeSample, ...]]:
    """Extract per-level rows and response-time samples for a game.

    Args:
        game_reference: Game the timeline belongs to.
        timeline: The game's timed events sorted by `event_at`.
        mode: Mode category of the game.

    Returns:
        Tuple of (level rows, samples), both in ascending level order. Only
        levels > 0 are considered; each level yields at most one sample.
    """

    qualifying = qualifying_event_type(mode)
    buckets: dict[int, list[int]] = {}
    for position, event in enumerate(timeline):
        if event.game_level is None:
            continue
        buckets.setdefault(event.game_level, []).append(position)

    rows: list[LevelRow] = []
    samples: list[ResponseTimeSample] = []
    for level in sorted(buckets):
        if level <= 0:
            continue
        positions = buckets[level]
        seconds = _match_response_time(timeline, positions, level=level, qualifying=qualifying)
        if seconds is not None:
            samples.append(
                ResponseTimeSample(game_reference=game_reference, level=level, mode=mode, seconds=seconds)
            )
        rows.append(
            LevelRow(
                level=level,
                simon_colors=tuple(
                    timeline[p].game_color
                    for p in positions
                    if timeline[p].event_type == qualifying and timeline[p].game_color
                ),
                player_colors=tuple(
                    timeline[p].game_color
                    for p in positions
                    if timeline[p].event_type == "player_select" and timeline[p].game_color
                ),
                response_time_seconds=seconds,
            )
        )
    return tuple(rows), tuple(samples)


def _match_response_time(
    timeline: Sequence[RawEvent],
    positions: Sequence[int],
    *,
    level: int,
    qualifying: str,
) -> float | None:
    """Match a level's last qualifying event to the event that ended the level.

    Level-complete events are stamped with the level being advanced to, so the
    end of level N is the first `level_complete` at level N + 1 after the
    qualifying event; `game_over` is the fallback.
    """

    start_position: int | None = None
    for position in reversed(positions):
        if timeline[position].event_type == qualifying:
            start_position = position
            break
    if start_position is None:
        return None

    following = timeline[start_position + 1 :]
    end = next(
        (
            event
            for event in following
            if event.event_type == "level_complete" and event.game_level == level + 1
        ),
        None,
    )
    if end is None:
        end = next((event for event in following if event.event_type == "game_over"), None)
    if end is None:
        return None

    seconds = (_event_time(end) - _event_time(timeline[start_position])).total_seconds()
    if seconds <= 0:
        return None
    return seconds


@dataclass
class _SessionAccumulator:
    """Mutable per-session state used while walking the batch."""

    session_id: str
    player_id: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None
    game_references: dict[str, None] = field(default_factory=dict)


@dataclass
class _PlayerAccumulator:
    """Mutable per-player state used while walking the batch."""

    player_id: str
    session_ids: dict[str, None] = field(default_factory=dict)
    game_references: dict[str, None] = field(default_factory=dict)


def group_sessions_and_players(
    events: Iterable[RawEvent],
    valid_references: set[str],
    games_by_reference: dict[str, Game],
) -> tuple[tuple[Session, ...], tuple[Player, ...]]:
    """Walk the batch once and bucket valid games by session and player.

    A session starts at its earliest event of any kind and ends at its latest
    game event (any event carrying a game reference). Sessions and players
    without a valid game are dropped.
    """

    sessions: dict[str, _SessionAccumulator] = {}
    players: dict[str, _PlayerAccumulator] = {}

    for event in events:
        player_id = event.player_id or UNKNOWN_PLAYER_ID
        player = players.get(player_id)
        if player is None:
            player = players[player_id] = _PlayerAccumulator(player_id=player_id)

        valid_reference = event.game_reference if event.game_reference in valid_references else None
        if valid_reference is not None:
            player.game_references[valid_reference] = None

        if not event.session_id:
            continue

        session = sessions.get(event.session_id)
        if session is None:
            session = sessions[event.session_id] = _SessionAccumulator(session_id=event.session_id)
        if session.player_id is None and event.player_id:
            session.player_id = event.player_id

        if event.event_at is not None:
            if session.started_at is None or event.event_at < session.started_at:
                session.started_at = event.event_at
            if event.game_reference and (session.ended_at is None or event.event_at > session.ended_at):
                session.ended_at = event.event_at

        if valid_reference is not None:
            session.game_references[valid_reference] = None
            player.session_ids[event.session_id] = None

    built_sessions = tuple(
        Session(
            session_id=acc.session_id,
            player_id=acc.player_id,
            started_at=acc.started_at,
            ended_at=acc.ended_at,
            game_references=tuple(acc.game_references),
            max_level=_max_level(games_by_reference[ref] for ref in acc.game_references),
        )
        for acc in sessions.values()
        if acc.game_references
    )
    built_players = tuple(
        Player(
            player_id=acc.player_id,
            session_ids=tuple(acc.session_ids),
            game_references=tuple(acc.game_references),
        )
        for acc in players.values()
        if acc.game_references
    )
    return built_sessions, built_players


def _max_level(games: Iterable[Game]) -> int | None:
    """Return the highest level > 0 across games, or None."""

    levels = [game.highest_level for game in games if game.highest_level is not None]
    return max(levels) if levels else None


def _event_time(event: RawEvent) -> datetime:
    """Return the timestamp of a timed event."""

    assert event.event_at is not None
    return event.event_at
