"""DTO types returned by the statistics, inference and regression modules.

Every test or model either returns its result record or an
`InsufficientData` record explaining why it could not be computed.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TypeAlias


@dataclass(frozen=True, slots=True)
class InsufficientData:
    """A computation that could not run on the supplied observations.

    Attributes:
        reason: Human-readable reason (too few observations, zero variance).
    """

    reason: str


@dataclass(frozen=True, slots=True)
class DescriptiveStats:
    """Summary statistics for a numeric sample (population variance)."""

    count: int
    mean: float | None
    median: float | None
    mode: float | None
    std_dev: float | None
    variance: float | None


@dataclass(frozen=True, slots=True)
class HistogramBucket:
    """A single equal-width histogram bucket.

    Attributes:
        range: Display label, e.g. "1.0-2.5".
        count: Number of values in the bucket.
        lower: Inclusive lower edge.
        upper: Upper edge (inclusive only for the last bucket).
    """

    range: str
    count: int
    lower: float
    upper: float


@dataclass(frozen=True, slots=True)
class BoxSummary:
    """Five-number summary plus mean, used for box plots."""

    minimum: float
    q1: float
    median: float
    q3: float
    maximum: float
    mean: float


@dataclass(frozen=True, slots=True)
class CorrelationResult:
    """Result of a Pearson or Spearman correlation.

    Attributes:
        method: "pearson" or "spearman".
        coefficient: Correlation coefficient in [-1, 1].
        t_statistic: `r * sqrt((n - 2) / (1 - r^2))`.
        p_value: Two-tailed p-value.
        n: Number of valid pairs.
        significant: Whether `p_value < alpha`.
        strength: Descriptive label for `abs(coefficient)`.
    """

    method: str
    coefficient: float
    t_statistic: float
    p_value: float
    n: int
    significant: bool
    strength: str


@dataclass(frozen=True, slots=True)
class TTestResult:
    """Result of an independent two-sample (Welch) t-test."""

    t_statistic: float
    degrees_of_freedom: float
    p_value: float
    mean1: float
    mean2: float
    std_dev1: float
    std_dev2: float
    n1: int
    n2: int
    significant: bool


@dataclass(frozen=True, slots=True)
class PairedTTestResult:
    """Result of a paired-samples t-test on per-pair differences."""

    t_statistic: float
    degrees_of_freedom: int
    p_value: float
    mean_difference: float
    std_dev_difference: float
    n: int
    significant: bool


@dataclass(frozen=True)
class AnovaResult:
    """Result of a one-way ANOVA over named groups."""

    f_statistic: float
    p_value: float
    df_between: int
    df_within: int
    ssb: float
    ssw: float
    ms_between: float
    ms_within: float
    group_means: Mapping[str, float]
    group_sizes: Mapping[str, int]
    grand_mean: float
    significant: bool


@dataclass(frozen=True)
class ChiSquareResult:
    """Result of a chi-square test of independence."""

    chi_square: float
    degrees_of_freedom: int
    p_value: float
    observed: Mapping[str, Mapping[str, float]]
    expected: Mapping[str, Mapping[str, float]]
    residuals: Mapping[str, Mapping[str, float]]
    significant: bool


@dataclass(frozen=True)
class SimpleRegressionResult:
    """Result of a closed-form simple linear regression `y = a + b*x`.

    Standard errors, t-statistics and p-values are None when fewer than three
    observations leave no residual degrees of freedom.
    """

    intercept: float
    slope: float
    r_squared: float
    n: int
    se_slope: float | None
    se_intercept: float | None
    t_slope: float | None
    t_intercept: float | None
    p_value_slope: float | None
    p_value_intercept: float | None
    significant: bool
    predicted_line: tuple[tuple[float, float], ...]
    equation: str


@dataclass(frozen=True)
class MultipleRegressionResult:
    """Result of the coordinate-wise multiple regression approximation."""

    intercept: float
    coefficients: Mapping[str, float]
    r_squared: float
    n: int
    equation: str


CorrelationOutcome: TypeAlias = CorrelationResult | InsufficientData
TTestOutcome: TypeAlias = TTestResult | InsufficientData
PairedTTestOutcome: TypeAlias = PairedTTestResult | InsufficientData
AnovaOutcome: TypeAlias = AnovaResult | InsufficientData
ChiSquareOutcome: TypeAlias = ChiSquareResult | InsufficientData
SimpleRegressionOutcome: TypeAlias = SimpleRegressionResult | InsufficientData
MultipleRegressionOutcome: TypeAlias = MultipleRegressionResult | InsufficientData
