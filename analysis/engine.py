"""Orchestration entry points for the Analysis Engine.

The Analysis Engine is a pure, non-Django module that accepts in-memory inputs
and returns DTOs. It must not import Django or perform database writes; event
loading is delegated to an injected `EventSource`.

Reconstruction is memoized on the identity of the loaded batch: every section
requested against the same batch reuses one `Reconstruction`, and each section
derives its own containers from it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Callable, Protocol

from . import aggregations
from .descriptive import box_summary, describe, histogram, mean, median
from .dto import DashboardTotals, Game, PlayerSummary, Reconstruction
from .events import EventBatchError
from .inference import (
    DEFAULT_ALPHA,
    chi_square_independence,
    independent_t_test,
    one_way_anova,
    paired_t_test,
    pearson,
    spearman,
)
from .modes import GameMode
from .payloads import game_payload, reconstruction_payload, to_jsonable
from .reconstruction import reconstruct
from .regression import multiple_linear_regression, simple_linear_regression
from .stats_dto import InsufficientData

logger = logging.getLogger(__name__)


class EventSource(Protocol):
    """Data-access interface supplying the raw event batch."""

    def load(self) -> Sequence[Mapping[str, Any]]:
        """Return the complete batch of raw event records."""


@dataclass(frozen=True, slots=True)
class StaticEventSource:
    """EventSource over an already-loaded, in-memory batch."""

    records: Sequence[Mapping[str, Any]]

    def load(self) -> Sequence[Mapping[str, Any]]:
        return self.records


@dataclass(frozen=True, slots=True)
class EngineConfig:
    """Tunable parameters for the analysis sections.

    Attributes:
        alpha: Significance level applied by every test.
        response_time_bins: Bucket count for the response-time histogram.
        level_bins: Bucket count for the level histogram.
    """

    alpha: float = DEFAULT_ALPHA
    response_time_bins: int = 15
    level_bins: int = 10


SECTIONS: tuple[str, ...] = (
    "dashboard",
    "reconstruction",
    "players",
    "games",
    "descriptive",
    "correlation",
    "inferential",
    "regression",
)


class AnalysisEngine:
    """Run analysis sections over one batch from an injected event source."""

    def __init__(self, source: EventSource, *, config: EngineConfig | None = None) -> None:
        """Initialize the engine.

        Args:
            source: Data-access object owned by the caller.
            config: Optional analysis parameters; defaults apply when omitted.
        """

        self.source = source
        self.config = config or EngineConfig()
        self._batch: Sequence[Mapping[str, Any]] | None = None
        self._cached_batch: Sequence[Mapping[str, Any]] | None = None
        self._cached: Reconstruction | None = None
        self.reconstruction_count = 0

    def batch(self) -> Sequence[Mapping[str, Any]]:
        """Return the current batch, loading it from the source on first use.

        Raises:
            EventBatchError: When the source returns something other than an
                array of records.
        """

        if self._batch is None:
            loaded = self.source.load()
            if isinstance(loaded, (str, bytes)) or not isinstance(loaded, Sequence):
                raise EventBatchError(f"expected an array of event records, got {type(loaded).__name__}")
            self._batch = loaded
            logger.info("Loaded %d telemetry records", len(loaded))
        return self._batch

    def refresh(self) -> None:
        """Reload the batch from the source.

        Reconstruction only reruns when the source hands back a different
        batch object.
        """

        self._batch = None
        self.batch()

    def reconstruction(self) -> Reconstruction:
        """Return the memoized reconstruction of the current batch.

        Raises:
            EventBatchError: When the batch is malformed.
        """

        batch = self.batch()
        if self._cached is None or self._cached_batch is not batch:
            self._cached = reconstruct(batch)
            self._cached_batch = batch
            self.reconstruction_count += 1
        return self._cached

    def dashboard(self) -> DashboardTotals:
        return aggregations.dashboard_totals(self.reconstruction())

    def players(self) -> tuple[PlayerSummary, ...]:
        return aggregations.player_summaries(self.reconstruction())

    def games(self) -> tuple[Game, ...]:
        return self.reconstruction().games

    def game(self, game_reference: str) -> Game | None:
        return self.reconstruction().game(game_reference)

    def descriptive(self) -> dict[str, Any]:
        """Build frequency tables, histograms and descriptive statistics."""

        rec = self.reconstruction()
        by_mode = aggregations.response_times_by_mode(rec)
        all_times = aggregations.response_times(rec)
        levels = aggregations.highest_levels(rec)
        return {
            "eventTypes": aggregations.event_type_counts(rec),
            "colors": aggregations.color_frequency(rec),
            "gamesPerMode": {summary.mode: summary.game_count for summary in aggregations.mode_summaries(rec)},
            "outcomes": aggregations.outcome_counts(rec),
            "responseTimeByMode": {
                mode: {"mean": mean(values), "median": median(values), "count": len(values)}
                for mode, values in by_mode.items()
            },
            "responseTimeHistogram": histogram(all_times, self.config.response_time_bins),
            "levelHistogram": histogram(levels, self.config.level_bins),
            "responseTimes": describe(all_times),
            "levels": describe(levels),
            "sessionDurations": describe(aggregations.session_durations_minutes(rec)),
            "boxPlots": {mode: box_summary(values) for mode, values in by_mode.items()},
        }

    def correlation(self) -> dict[str, Any]:
        """Correlate response time, session length and games played against level."""

        rec = self.reconstruction()
        alpha = self.config.alpha
        response_level = aggregations.response_time_level_pairs(rec)
        duration_level = aggregations.session_duration_level_pairs(rec)
        games_level = aggregations.player_games_level_pairs(rec)
        return {
            "responseTimeVsLevel": pearson(
                [seconds for _, seconds in response_level],
                [level for level, _ in response_level],
                alpha=alpha,
            ),
            "sessionDurationVsMaxLevel": pearson(
                [minutes for minutes, _ in duration_level],
                [level for _, level in duration_level],
                alpha=alpha,
            ),
            "gamesPlayedVsMaxLevel": spearman(
                [count for count, _ in games_level],
                [level for _, level in games_level],
                alpha=alpha,
            ),
        }

    def inferential(self) -> dict[str, Any]:
        """Run the mode, level and outcome hypothesis tests."""

        rec = self.reconstruction()
        alpha = self.config.alpha
        by_mode = aggregations.response_times_by_mode(rec)
        paired = [
            metrics
            for metrics in aggregations.paired_mode_metrics(rec)
            if metrics.ar_mean_response_time is not None and metrics.two_d_mean_response_time is not None
        ]
        return {
            "modeTTest": independent_t_test(by_mode[GameMode.AR], by_mode[GameMode.TWO_D], alpha=alpha),
            "levelAnova": one_way_anova(aggregations.response_times_by_level(rec), alpha=alpha),
            "modeOutcomeChiSquare": chi_square_independence(aggregations.outcome_table(rec), alpha=alpha),
            "pairedModeTTest": paired_t_test(
                [metrics.ar_mean_response_time for metrics in paired],
                [metrics.two_d_mean_response_time for metrics in paired],
                alpha=alpha,
            ),
        }

    def regression(self) -> dict[str, Any]:
        """Fit response time against level, mode and the previous response time."""

        rows = aggregations.regression_rows(self.reconstruction())
        response = [row.response_time for row in rows]
        return {
            "simple": simple_linear_regression(
                [row.level for row in rows],
                response,
                alpha=self.config.alpha,
            ),
            "multiple": multiple_linear_regression(
                {
                    "level": [row.level for row in rows],
                    "gameMode": [row.mode_indicator for row in rows],
                    "previousResponseTime": [row.previous_response_time for row in rows],
                },
                response,
            ),
        }

    def section_payload(self, name: str) -> Any:
        """Compute one section and encode it as JSON-ready data.

        Raises:
            ValueError: For an unknown section name.
        """

        if name not in SECTIONS:
            raise ValueError(f"Unknown analysis section: {name!r}")
        if name == "reconstruction":
            return reconstruction_payload(self.reconstruction())
        if name == "games":
            return [game_payload(game) for game in self.games()]
        compute: Callable[[], Any] = getattr(self, name)
        return to_jsonable(compute())

    def analyze_all(self, sections: Iterable[str] | None = None) -> dict[str, Any]:
        """Compute several sections, isolating failures per section.

        Args:
            sections: Section names to compute; all sections when omitted.

        Returns:
            Mapping of section name to payload. A section that raised is
            reported as `{"error": ...}` without affecting the others.

        Raises:
            EventBatchError: When the batch itself is malformed.
            ValueError: For an unknown section name.
        """

        names = list(SECTIONS if sections is None else sections)
        unknown = [name for name in names if name not in SECTIONS]
        if unknown:
            raise ValueError(f"Unknown analysis section(s): {', '.join(unknown)}")

        self.reconstruction()
        results: dict[str, Any] = {}
        for name in names:
            try:
                results[name] = self.section_payload(name)
            except Exception as exc:
                logger.exception("Analysis section %s failed", name)
                results[name] = to_jsonable(InsufficientData(f"{name} analysis failed: {exc}"))
        return results


def analyze_batch(
    records: Sequence[Mapping[str, Any]],
    *,
    sections: Iterable[str] | None = None,
    config: EngineConfig | None = None,
) -> dict[str, Any]:
    """Analyze an in-memory batch and return JSON-ready section payloads."""

    return AnalysisEngine(StaticEventSource(records), config=config).analyze_all(sections)
