"""Unit tests for correlation and hypothesis tests."""

from __future__ import annotations

import math

import pytest

from analysis.inference import (
    chi_square_independence,
    correlation_strength,
    independent_t_test,
    one_way_anova,
    paired_t_test,
    pearson,
    rank_values,
    spearman,
)
from analysis.stats_dto import (
    AnovaResult,
    ChiSquareResult,
    CorrelationResult,
    InsufficientData,
    PairedTTestResult,
    TTestResult,
)

pytestmark = pytest.mark.unit


def test_pearson_is_symmetric() -> None:
    """Swapping the series does not change the coefficient or p-value."""

    x = [1, 2, 3, 4, 5]
    y = [2, 1, 4, 3, 5]

    forward = pearson(x, y)
    backward = pearson(y, x)

    assert isinstance(forward, CorrelationResult)
    assert isinstance(backward, CorrelationResult)
    assert forward.coefficient == pytest.approx(0.8)
    assert backward.coefficient == pytest.approx(forward.coefficient)
    assert backward.p_value == pytest.approx(forward.p_value)
    assert forward.strength == "Strong"
    assert forward.significant is False


def test_pearson_perfect_fit_is_significant() -> None:
    """A perfect linear relationship gives r == 1 and a vanishing p-value."""

    result = pearson([1, 2, 3, 4], [2, 4, 6, 8])

    assert isinstance(result, CorrelationResult)
    assert result.coefficient == pytest.approx(1.0)
    assert result.p_value < 0.05
    assert result.significant is True


@pytest.mark.parametrize(
    ("x", "y"),
    [
        ([1, 1, 1], [1, 2, 3]),
        ([1, 2, 3], [1, 2]),
        ([1.0], [2.0]),
        ([1.0, float("nan"), None], [2.0, 3.0, 4.0]),
    ],
)
def test_pearson_reports_insufficient_data(x, y) -> None:
    """Degenerate input returns a reason instead of raising."""

    assert isinstance(pearson(x, y), InsufficientData)


def test_rank_values_gives_ties_the_first_rank() -> None:
    """Ties share the rank of their first sorted position."""

    assert rank_values([20, 10, 30, 20]) == [2.0, 1.0, 4.0, 2.0]


def test_spearman_detects_monotone_relationships() -> None:
    """A monotone but non-linear relationship has rank correlation 1."""

    result = spearman([1, 2, 3, 4], [1, 4, 9, 16])

    assert isinstance(result, CorrelationResult)
    assert result.method == "spearman"
    assert result.coefficient == pytest.approx(1.0)


@pytest.mark.parametrize(
    ("value", "label"),
    [(0.95, "Very Strong"), (-0.7, "Strong"), (0.5, "Moderate"), (0.3, "Weak"), (0.1, "Very Weak")],
)
def test_correlation_strength_labels(value, label) -> None:
    """Labels depend on the magnitude only."""

    assert correlation_strength(value) == label


def test_independent_t_test_separates_distinct_groups() -> None:
    """Clearly separated groups are significantly different."""

    result = independent_t_test([1, 2, 3], [10, 11, 12])

    assert isinstance(result, TTestResult)
    assert result.t_statistic == pytest.approx(-13.5)
    assert result.degrees_of_freedom == pytest.approx(4.0)
    assert result.p_value < 0.05
    assert result.significant is True
    assert (result.mean1, result.mean2) == (2.0, 11.0)


def test_independent_t_test_needs_two_samples_and_spread() -> None:
    """Tiny or constant groups cannot be tested."""

    assert isinstance(independent_t_test([1], [2, 3]), InsufficientData)
    assert isinstance(independent_t_test([2, 2], [2, 2]), InsufficientData)


def test_paired_t_test_on_differences() -> None:
    """The statistic is computed on per-pair differences."""

    result = paired_t_test([10, 12, 14], [8, 11, 11])

    assert isinstance(result, PairedTTestResult)
    assert result.mean_difference == 2.0
    assert result.degrees_of_freedom == 2
    assert result.t_statistic == pytest.approx(2 / (math.sqrt(2 / 3) / math.sqrt(3)))
    assert result.significant is True


def test_paired_t_test_rejects_constant_differences() -> None:
    """Identical differences have no spread to test against."""

    assert isinstance(paired_t_test([1, 2, 3], [0, 1, 2]), InsufficientData)
    assert isinstance(paired_t_test([1, 2], [1]), InsufficientData)


def test_one_way_anova_decomposes_sums_of_squares() -> None:
    """Between and within sums of squares follow the classic decomposition."""

    result = one_way_anova({1: [1, 2, 3], 2: [4, 5, 6], 3: [7, 8, 9]})

    assert isinstance(result, AnovaResult)
    assert (result.ssb, result.ssw) == (54.0, 6.0)
    assert (result.df_between, result.df_within) == (2, 6)
    assert result.f_statistic == pytest.approx(27.0)
    assert result.group_means == {"1": 2.0, "2": 5.0, "3": 8.0}
    assert 0.0 <= result.p_value <= 1.0


def test_one_way_anova_ignores_groups_with_one_sample() -> None:
    """Groups need at least two samples; fewer than two usable groups fails."""

    assert isinstance(one_way_anova({"a": [1, 2], "b": [3]}), InsufficientData)
    assert isinstance(one_way_anova({"a": [1, 1], "b": [2, 2]}), InsufficientData)


def test_chi_square_identical_proportions_is_not_significant() -> None:
    """Rows with identical proportions give a zero statistic."""

    result = chi_square_independence({"A": {"g1": 10, "g2": 10}, "B": {"g1": 10, "g2": 10}})

    assert isinstance(result, ChiSquareResult)
    assert result.chi_square == 0.0
    assert result.degrees_of_freedom == 1
    assert result.p_value == 1.0
    assert result.significant is False


def test_chi_square_strong_association_is_significant() -> None:
    """A perfectly split table is significant."""

    result = chi_square_independence({"A": {"x": 20, "y": 0}, "B": {"x": 0, "y": 20}})

    assert isinstance(result, ChiSquareResult)
    assert result.chi_square == pytest.approx(40.0)
    assert result.expected["A"]["x"] == 10.0
    assert result.significant is True


def test_chi_square_fills_missing_columns_with_zero() -> None:
    """Columns are the union of row keys."""

    result = chi_square_independence({"A": {"x": 5}, "B": {"y": 5}})

    assert isinstance(result, ChiSquareResult)
    assert result.observed["A"] == {"x": 5.0, "y": 0.0}
    assert result.chi_square == pytest.approx(10.0)


def test_chi_square_reports_insufficient_tables() -> None:
    """Single-row and empty tables cannot be tested."""

    assert isinstance(chi_square_independence({"A": {"x": 1, "y": 2}}), InsufficientData)
    assert isinstance(chi_square_independence({"A": {"x": 0, "y": 0}, "B": {"x": 0, "y": 0}}), InsufficientData)
