"""Aggregation helpers for the Metric Aggregator stage.

This module derives the secondary quantities consumed by the statistics
stages (levels reached, session durations, outcome tables, per-player and
per-mode groupings) from a `Reconstruction`. Every helper returns freshly
built containers so analyses never share mutable state.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Callable, TypeVar

from .dto import (
    DashboardTotals,
    Game,
    ModeSummary,
    PairedModeMetrics,
    Player,
    PlayerSummary,
    RawEvent,
    Reconstruction,
    RegressionRow,
)
from .modes import TABULATED_OUTCOMES, GameMode, Outcome

T = TypeVar("T")

MODES: tuple[GameMode, ...] = (GameMode.AR, GameMode.TWO_D)


def average_metric(
    items: Iterable[T],
    *,
    value_getter: Callable[[T], float | int | None],
) -> float | None:
    """Compute an average across items for a selected metric.

    Args:
        items: Items to average over.
        value_getter: Callable that extracts a numeric value from an item.

    Returns:
        Arithmetic mean across extracted values, or None when no values exist.
    """

    total = 0.0
    count = 0
    for item in items:
        value = value_getter(item)
        if value is None:
            continue
        total += value
        count += 1
    if count == 0:
        return None
    return total / count


def games_by_mode(reconstruction: Reconstruction) -> dict[GameMode, list[Game]]:
    """Group valid games by mode category; unclassified games are left out."""

    grouped: dict[GameMode, list[Game]] = {mode: [] for mode in MODES}
    for game in reconstruction.games:
        if game.mode is not None:
            grouped[game.mode].append(game)
    return grouped


def mode_summaries(reconstruction: Reconstruction) -> tuple[ModeSummary, ...]:
    """Summarize valid games and average highest level per mode."""

    return tuple(
        ModeSummary(
            mode=mode,
            game_count=len(games),
            average_highest_level=average_metric(games, value_getter=lambda game: game.highest_level),
        )
        for mode, games in games_by_mode(reconstruction).items()
    )


def dashboard_totals(reconstruction: Reconstruction) -> DashboardTotals:
    """Compute overall game, session and player totals.

    Only identified players count toward the player total. The average games
    per session divides valid-game memberships by valid sessions.
    """

    sessions = reconstruction.sessions
    memberships = sum(len(session.game_references) for session in sessions)
    return DashboardTotals(
        total_games=len(reconstruction.games),
        total_sessions=len(sessions),
        total_players=sum(1 for player in reconstruction.players if player.identified),
        average_games_per_session=(memberships / len(sessions)) if sessions else None,
        modes=mode_summaries(reconstruction),
    )


def player_summaries(reconstruction: Reconstruction) -> tuple[PlayerSummary, ...]:
    """Summarize every identified player, most valid games first.

    Args:
        reconstruction: Reconstructed batch.

    Returns:
        PlayerSummary tuples sorted by game count (descending, stable).
    """

    sessions = {session.session_id: session for session in reconstruction.sessions}
    summaries: list[PlayerSummary] = []
    for player in reconstruction.players:
        if not player.identified:
            continue
        games = _player_games(reconstruction, player)
        levels = {mode: [g.max_level for g in games if g.mode is mode and g.max_level is not None] for mode in MODES}
        durations = [
            duration
            for duration in (sessions[sid].duration_seconds for sid in player.session_ids if sid in sessions)
            if duration is not None
        ]
        summaries.append(
            PlayerSummary(
                player_id=player.player_id,
                session_count=len(player.session_ids),
                game_count=len(player.game_references),
                highest_level_ar=_highest(levels[GameMode.AR]),
                lowest_level_ar=_lowest_attained(levels[GameMode.AR]),
                average_level_ar=_average_attained(levels[GameMode.AR]),
                highest_level_2d=_highest(levels[GameMode.TWO_D]),
                lowest_level_2d=_lowest_attained(levels[GameMode.TWO_D]),
                average_level_2d=_average_attained(levels[GameMode.TWO_D]),
                longest_session_seconds=max(durations) if durations else None,
                shortest_session_seconds=min(durations) if durations else None,
                average_session_seconds=(sum(durations) / len(durations)) if durations else None,
            )
        )
    summaries.sort(key=lambda summary: summary.game_count, reverse=True)
    return tuple(summaries)


def _player_games(reconstruction: Reconstruction, player: Player) -> list[Game]:
    """Return the valid games attributed to a player."""

    wanted = set(player.game_references)
    return [game for game in reconstruction.games if game.game_reference in wanted]


def _highest(levels: list[int]) -> int | None:
    """Return the highest level, keeping 0 when it is the only value."""

    return max(levels) if levels else None


def _lowest_attained(levels: list[int]) -> int | None:
    """Return the lowest level > 0; level 0 means level 1 was never reached."""

    attained = [level for level in levels if level > 0]
    return min(attained) if attained else None


def _average_attained(levels: list[int]) -> float | None:
    """Return the mean of levels > 0."""

    attained = [level for level in levels if level > 0]
    return (sum(attained) / len(attained)) if attained else None


def response_times(reconstruction: Reconstruction) -> list[float]:
    """Return every response time in seconds."""

    return [sample.seconds for sample in reconstruction.samples]


def response_times_by_mode(reconstruction: Reconstruction) -> dict[GameMode, list[float]]:
    """Return response times grouped by mode category."""

    grouped: dict[GameMode, list[float]] = {mode: [] for mode in MODES}
    for sample in reconstruction.samples:
        if sample.mode is not None:
            grouped[sample.mode].append(sample.seconds)
    return grouped


def response_times_by_level(reconstruction: Reconstruction) -> dict[int, list[float]]:
    """Return response times grouped by level, in ascending level order."""

    grouped: dict[int, list[float]] = {}
    for sample in reconstruction.samples:
        grouped.setdefault(sample.level, []).append(sample.seconds)
    return dict(sorted(grouped.items()))


def highest_levels(reconstruction: Reconstruction) -> list[int]:
    """Return the highest level (> 0) reached in each valid game."""

    return [game.highest_level for game in reconstruction.games if game.highest_level is not None]


def highest_levels_by_mode(reconstruction: Reconstruction) -> dict[GameMode, list[int]]:
    """Return per-game highest levels (> 0) grouped by mode category."""

    return {
        mode: [game.highest_level for game in games if game.highest_level is not None]
        for mode, games in games_by_mode(reconstruction).items()
    }


def session_durations_minutes(reconstruction: Reconstruction) -> list[float]:
    """Return positive valid-session durations in minutes."""

    return [
        session.duration_seconds / 60.0
        for session in reconstruction.sessions
        if session.duration_seconds is not None
    ]


def outcome_counts(reconstruction: Reconstruction) -> dict[str, int]:
    """Count valid games per tabulated outcome."""

    counts = {outcome.value: 0 for outcome in TABULATED_OUTCOMES}
    for game in reconstruction.games:
        if game.outcome in TABULATED_OUTCOMES:
            counts[game.outcome.value] += 1
    return counts


def outcome_table(reconstruction: Reconstruction) -> dict[str, dict[str, int]]:
    """Build the mode x outcome contingency table used by chi-square tests."""

    table = {mode.value: {outcome.value: 0 for outcome in TABULATED_OUTCOMES} for mode in MODES}
    for game in reconstruction.games:
        if game.mode is None or game.outcome is Outcome.UNKNOWN:
            continue
        table[game.mode.value][game.outcome.value] += 1
    return table


def _analysed_events(reconstruction: Reconstruction) -> list[RawEvent]:
    """Return events that do not belong to an invalid game."""

    invalid = set(reconstruction.invalid_game_references)
    return [event for event in reconstruction.events if event.game_reference not in invalid]


def event_type_counts(reconstruction: Reconstruction, *, limit: int | None = 10) -> dict[str, int]:
    """Count event types, most frequent first.

    Events belonging to invalid games are excluded.
    """

    counts = Counter(event.event_type for event in _analysed_events(reconstruction) if event.event_type)
    return dict(counts.most_common(limit))


def color_frequency(reconstruction: Reconstruction) -> dict[str, int]:
    """Count lower-cased game colors, most frequent first."""

    counts = Counter(
        event.game_color.lower() for event in _analysed_events(reconstruction) if event.game_color
    )
    return dict(counts.most_common())


def paired_mode_metrics(reconstruction: Reconstruction) -> tuple[PairedModeMetrics, ...]:
    """Return AR vs 2D metrics for identified players who played both modes."""

    paired: list[PairedModeMetrics] = []
    for player in reconstruction.players:
        if not player.identified:
            continue
        games = _player_games(reconstruction, player)
        by_mode = {mode: [game for game in games if game.mode is mode] for mode in MODES}
        if not by_mode[GameMode.AR] or not by_mode[GameMode.TWO_D]:
            continue
        seconds = {
            mode: [sample.seconds for game in mode_games for sample in game.response_times]
            for mode, mode_games in by_mode.items()
        }
        highest = {
            mode: [game.highest_level for game in mode_games if game.highest_level is not None]
            for mode, mode_games in by_mode.items()
        }
        paired.append(
            PairedModeMetrics(
                player_id=player.player_id,
                ar_mean_response_time=average_metric(seconds[GameMode.AR], value_getter=float),
                two_d_mean_response_time=average_metric(seconds[GameMode.TWO_D], value_getter=float),
                ar_highest_level=max(highest[GameMode.AR]) if highest[GameMode.AR] else None,
                two_d_highest_level=max(highest[GameMode.TWO_D]) if highest[GameMode.TWO_D] else None,
            )
        )
    return tuple(paired)


def response_time_level_pairs(reconstruction: Reconstruction) -> list[tuple[int, float]]:
    """Return (level, response time) pairs for every sample."""

    return [(sample.level, sample.seconds) for sample in reconstruction.samples]


def session_duration_level_pairs(reconstruction: Reconstruction) -> list[tuple[float, int]]:
    """Return (duration minutes, max level) for sessions with both values."""

    pairs: list[tuple[float, int]] = []
    for session in reconstruction.sessions:
        duration = session.duration_seconds
        if duration is None or session.max_level is None:
            continue
        pairs.append((duration / 60.0, session.max_level))
    return pairs


def player_games_level_pairs(reconstruction: Reconstruction) -> list[tuple[int, int]]:
    """Return (valid game count, highest level) for identified players."""

    games = {game.game_reference: game for game in reconstruction.games}
    pairs: list[tuple[int, int]] = []
    for player in reconstruction.players:
        if not player.identified:
            continue
        levels = [
            games[ref].highest_level
            for ref in player.game_references
            if games[ref].highest_level is not None
        ]
        if not levels:
            continue
        pairs.append((len(player.game_references), max(levels)))  # type: ignore[type-var]
    return pairs


def regression_rows(reconstruction: Reconstruction) -> list[RegressionRow]:
    """Build regression observations, carrying the previous level's response time."""

    rows: list[RegressionRow] = []
    for game in reconstruction.games:
        previous = 0.0
        mode_indicator = 1.0 if game.mode is GameMode.AR else 0.0
        for sample in game.response_times:
            rows.append(
                RegressionRow(
                    level=float(sample.level),
                    mode_indicator=mode_indicator,
                    previous_response_time=previous,
                    response_time=sample.seconds,
                )
            )
            previous = sample.seconds
    return rows
