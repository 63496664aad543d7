"""Unit tests for the Metric Aggregator helpers."""

from __future__ import annotations

import pytest
from conftest import event

from analysis import aggregations
from analysis.modes import GameMode
from analysis.reconstruction import reconstruct

pytestmark = pytest.mark.unit


@pytest.fixture
def rec(sample_batch):
    return reconstruct(sample_batch)


def test_dashboard_totals_count_valid_entities_only(rec) -> None:
    """Invalid games and their sessions never reach the totals."""

    totals = aggregations.dashboard_totals(rec)

    assert totals.total_games == 3
    assert totals.total_sessions == 2
    assert totals.total_players == 2
    assert totals.average_games_per_session == 1.5
    modes = {summary.mode: summary for summary in totals.modes}
    assert modes[GameMode.AR].game_count == 1
    assert modes[GameMode.AR].average_highest_level == 2.0
    assert modes[GameMode.TWO_D].game_count == 2
    assert modes[GameMode.TWO_D].average_highest_level == 2.5


def test_player_summaries_sorted_by_game_count(rec) -> None:
    """Players with more valid games come first; levels split by mode."""

    first, second = aggregations.player_summaries(rec)

    assert (first.player_id, first.game_count, first.session_count) == ("P1", 2, 1)
    assert (first.highest_level_ar, first.lowest_level_ar, first.average_level_ar) == (2, 2, 2.0)
    assert first.longest_session_seconds == 40.0
    assert (second.player_id, second.game_count) == ("P2", 1)
    assert second.highest_level_ar is None
    assert second.highest_level_2d == 3
    assert second.average_session_seconds == 15.0


def test_lowest_level_ignores_zero_but_highest_keeps_it() -> None:
    """Level 0 means level 1 was never reached."""

    batch = [
        event("simon_select", 0, game="G1", level=0, mode="2D", session="S1", player="P1"),
        event("game_over", 3, game="G1", level=0, mode="2D", session="S1", player="P1"),
    ]

    (summary,) = aggregations.player_summaries(reconstruct(batch))

    assert summary.highest_level_2d == 0
    assert summary.lowest_level_2d is None
    assert summary.average_level_2d is None


def test_unknown_player_is_excluded_from_player_statistics() -> None:
    """Anonymous games count as games but not as a player."""

    batch = [
        event("simon_select", 0, game="G1", level=1, mode="2D", session="S1"),
        event("level_complete", 2, game="G1", level=2, mode="2D", session="S1"),
    ]
    rec = reconstruct(batch)

    assert aggregations.player_summaries(rec) == ()
    assert aggregations.dashboard_totals(rec).total_players == 0
    assert aggregations.dashboard_totals(rec).total_games == 1


def test_response_time_groupings(rec) -> None:
    """Samples are grouped by mode and by ascending level."""

    assert aggregations.response_times_by_mode(rec) == {GameMode.AR: [3.0, 4.0], GameMode.TWO_D: [5.0, 2.0, 5.0]}
    assert aggregations.response_times_by_level(rec) == {1: [3.0, 5.0, 2.0], 2: [4.0, 5.0]}


def test_outcome_table_and_counts(rec) -> None:
    """Outcomes are tabulated per mode across the four outcome columns."""

    assert aggregations.outcome_counts(rec) == {
        "Game Over": 1,
        "Level Complete": 0,
        "Restarted": 1,
        "Player Left": 1,
    }
    table = aggregations.outcome_table(rec)
    assert table["AR"]["Game Over"] == 1
    assert table["2D"] == {"Game Over": 0, "Level Complete": 0, "Restarted": 1, "Player Left": 1}


def test_frequencies_exclude_invalid_games(rec) -> None:
    """The invalid game's events are not counted."""

    types = aggregations.event_type_counts(rec)
    assert types["simon_select"] == 5
    assert types["level_complete"] == 4
    assert list(types)[0] == "simon_select"
    assert aggregations.color_frequency(rec) == {"red": 4, "blue": 2, "green": 2, "yellow": 1}


def test_paired_metrics_require_both_modes(rec) -> None:
    """Only players with AR and 2D games are paired."""

    (paired,) = aggregations.paired_mode_metrics(rec)

    assert paired.player_id == "P1"
    assert paired.ar_mean_response_time == 3.5
    assert paired.two_d_mean_response_time == 5.0
    assert (paired.ar_highest_level, paired.two_d_highest_level) == (2, 2)


def test_correlation_pairs(rec) -> None:
    """Session and player pairs use valid games only."""

    assert aggregations.session_duration_level_pairs(rec) == [(40 / 60, 2), (0.25, 3)]
    assert aggregations.player_games_level_pairs(rec) == [(2, 2), (1, 3)]
    assert aggregations.session_durations_minutes(rec) == [40 / 60, 0.25]


def test_regression_rows_carry_previous_response_time(rec) -> None:
    """The previous level's response time resets for every game."""

    rows = [
        (row.level, row.mode_indicator, row.previous_response_time, row.response_time)
        for row in aggregations.regression_rows(rec)
    ]

    assert rows == [
        (1.0, 1.0, 0.0, 3.0),
        (2.0, 1.0, 3.0, 4.0),
        (1.0, 0.0, 0.0, 5.0),
        (1.0, 0.0, 0.0, 2.0),
        (2.0, 0.0, 2.0, 5.0),
    ]


def test_average_metric_skips_missing_values() -> None:
    """None values are skipped instead of being treated as zero."""

    assert aggregations.average_metric([1, None, 3], value_getter=lambda v: v) == 2.0
    assert aggregations.average_metric([None], value_getter=lambda v: v) is None
