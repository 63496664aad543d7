"""Correlation and hypothesis tests.

Each function returns a result DTO or an `InsufficientData` record; none of
them raise on degenerate input. p-values come from the named approximations
in `analysis.distributions`.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence

from .descriptive import finite_values, stddev, variance
from .distributions import chi_square_upper_tail, f_upper_tail, two_tailed_t_p_value, welch_p_value
from .stats_dto import (
    AnovaOutcome,
    AnovaResult,
    ChiSquareOutcome,
    ChiSquareResult,
    CorrelationOutcome,
    CorrelationResult,
    InsufficientData,
    PairedTTestOutcome,
    PairedTTestResult,
    TTestOutcome,
    TTestResult,
)

DEFAULT_ALPHA = 0.05


def correlation_strength(coefficient: float) -> str:
    """Return a descriptive label for the magnitude of a correlation."""

    magnitude = abs(coefficient)
    if magnitude >= 0.9:
        return "Very Strong"
    if magnitude >= 0.7:
        return "Strong"
    if magnitude >= 0.5:
        return "Moderate"
    if magnitude >= 0.3:
        return "Weak"
    return "Very Weak"


def finite_pairs(
    x: Sequence[float | None],
    y: Sequence[float | None],
) -> list[tuple[float, float]]:
    """Return pairs where both values are finite numbers."""

    pairs: list[tuple[float, float]] = []
    for a, b in zip(x, y):
        if not finite_values((a,)) or not finite_values((b,)):
            continue
        pairs.append((float(a), float(b)))  # type: ignore[arg-type]
    return pairs


def pearson(
    x: Sequence[float | None],
    y: Sequence[float | None],
    *,
    alpha: float = DEFAULT_ALPHA,
) -> CorrelationOutcome:
    """Pearson product-moment correlation between two equal-length series.

    Args:
        x: First series.
        y: Second series.
        alpha: Significance level.

    Returns:
        CorrelationResult, or InsufficientData when the series differ in
        length, have fewer than two finite pairs, or either has zero variance.
    """

    if len(x) != len(y) or len(x) < 2:
        return InsufficientData("Insufficient data for Pearson correlation (need at least 2 pairs)")
    pairs = finite_pairs(x, y)
    if len(pairs) < 2:
        return InsufficientData("Insufficient valid data for Pearson correlation")
    return _correlate("pearson", [p[0] for p in pairs], [p[1] for p in pairs], alpha=alpha)


def spearman(
    x: Sequence[float | None],
    y: Sequence[float | None],
    *,
    alpha: float = DEFAULT_ALPHA,
) -> CorrelationOutcome:
    """Spearman rank correlation: Pearson correlation computed on ranks.

    Ties take the rank of their first occurrence in sorted order (1, 2, 2, 4).
    """

    if len(x) != len(y) or len(x) < 2:
        return InsufficientData("Insufficient data for Spearman correlation (need at least 2 pairs)")
    pairs = finite_pairs(x, y)
    if len(pairs) < 2:
        return InsufficientData("Insufficient valid data for Spearman correlation")
    x_ranks = rank_values([p[0] for p in pairs])
    y_ranks = rank_values([p[1] for p in pairs])
    return _correlate("spearman", x_ranks, y_ranks, alpha=alpha)


def rank_values(values: Sequence[float]) -> list[float]:
    """Rank values ascending; tied values share the rank of the first tie."""

    order = sorted(range(len(values)), key=lambda i: values[i])
    ranks = [0.0] * len(values)
    current = 1
    for position, index in enumerate(order):
        if position > 0 and values[index] != values[order[position - 1]]:
            current = position + 1
        ranks[index] = float(current)
    return ranks


def _correlate(method: str, xs: list[float], ys: list[float], *, alpha: float) -> CorrelationOutcome:
    """Correlate two clean series of equal length."""

    n = len(xs)
    mean_x = sum(xs) / n
    mean_y = sum(ys) / n
    sd_x = stddev(xs)
    sd_y = stddev(ys)
    if not sd_x or not sd_y:
        return InsufficientData("Cannot calculate correlation: one or both variables have zero variance")

    covariance = sum((a - mean_x) * (b - mean_y) for a, b in zip(xs, ys)) / n
    r = min(max(covariance / (sd_x * sd_y), -1.0), 1.0)
    t = correlation_t_statistic(r, n)
    p_value = two_tailed_t_p_value(t, n - 2)
    return CorrelationResult(
        method=method,
        coefficient=r,
        t_statistic=t,
        p_value=p_value,
        n=n,
        significant=p_value < alpha,
        strength=correlation_strength(r),
    )


def correlation_t_statistic(r: float, n: int) -> float:
    """Return `r * sqrt((n - 2) / (1 - r^2))`; infinite for a perfect fit."""

    if n <= 2:
        return 0.0
    remainder = 1.0 - r * r
    if remainder <= 0:
        return math.copysign(math.inf, r)
    return r * math.sqrt((n - 2) / remainder)


def independent_t_test(
    group1: Sequence[float | None],
    group2: Sequence[float | None],
    *,
    alpha: float = DEFAULT_ALPHA,
) -> TTestOutcome:
    """Welch's unequal-variance t-test between two independent groups.

    The standard error combines each group's population variance over its
    size; degrees of freedom follow Welch-Satterthwaite.
    """

    a = finite_values(group1)
    b = finite_values(group2)
    if len(a) < 2 or len(b) < 2:
        return InsufficientData("Insufficient data for t-test (need at least 2 samples per group)")

    n1, n2 = len(a), len(b)
    mean1, mean2 = sum(a) / n1, sum(b) / n2
    var1, var2 = variance(a) or 0.0, variance(b) or 0.0
    term1, term2 = var1 / n1, var2 / n2
    standard_error = math.sqrt(term1 + term2)
    if standard_error == 0:
        return InsufficientData("Cannot calculate t-test: pooled standard error is zero")

    t = (mean1 - mean2) / standard_error
    df = (term1 + term2) ** 2 / (term1**2 / (n1 - 1) + term2**2 / (n2 - 1))
    p_value = welch_p_value(t, df)
    return TTestResult(
        t_statistic=t,
        degrees_of_freedom=df,
        p_value=p_value,
        mean1=mean1,
        mean2=mean2,
        std_dev1=math.sqrt(var1),
        std_dev2=math.sqrt(var2),
        n1=n1,
        n2=n2,
        significant=p_value < alpha,
    )


def paired_t_test(
    before: Sequence[float | None],
    after: Sequence[float | None],
    *,
    alpha: float = DEFAULT_ALPHA,
) -> PairedTTestOutcome:
    """Paired-samples t-test on the differences `before - after`."""

    if len(before) != len(after):
        return InsufficientData("Paired t-test requires equal-length samples")
    differences = [a - b for a, b in finite_pairs(before, after)]
    if len(differences) < 2:
        return InsufficientData("Insufficient data for paired t-test (need at least 2 pairs)")

    n = len(differences)
    mean_difference = sum(differences) / n
    sd_difference = stddev(differences) or 0.0
    if sd_difference == 0:
        return InsufficientData("Cannot calculate paired t-test: differences have zero variance")

    t = mean_difference / (sd_difference / math.sqrt(n))
    df = n - 1
    p_value = welch_p_value(t, df)
    return PairedTTestResult(
        t_statistic=t,
        degrees_of_freedom=df,
        p_value=p_value,
        mean_difference=mean_difference,
        std_dev_difference=sd_difference,
        n=n,
        significant=p_value < alpha,
    )


def one_way_anova(
    groups: Mapping[object, Sequence[float | None]],
    *,
    alpha: float = DEFAULT_ALPHA,
) -> AnovaOutcome:
    """One-way ANOVA over named groups with at least two samples each.

    Args:
        groups: Mapping of group name to sample; names are stringified.
        alpha: Significance level.

    Returns:
        AnovaResult, or InsufficientData when fewer than two groups qualify or
        every group has zero internal variance.
    """

    cleaned = {str(key): finite_values(values) for key, values in groups.items()}
    usable = {key: values for key, values in cleaned.items() if len(values) >= 2}
    if len(usable) < 2:
        return InsufficientData("ANOVA requires at least 2 groups with at least 2 samples each")

    total_count = sum(len(values) for values in usable.values())
    grand_mean = sum(sum(values) for values in usable.values()) / total_count
    group_means = {key: sum(values) / len(values) for key, values in usable.items()}
    group_sizes = {key: len(values) for key, values in usable.items()}

    ssb = sum(group_sizes[key] * (group_means[key] - grand_mean) ** 2 for key in usable)
    ssw = sum((value - group_means[key]) ** 2 for key, values in usable.items() for value in values)

    df_between = len(usable) - 1
    df_within = total_count - len(usable)
    if df_within <= 0:
        return InsufficientData("Insufficient degrees of freedom for ANOVA")

    ms_between = ssb / df_between
    ms_within = ssw / df_within
    if ms_within == 0:
        return InsufficientData("Cannot calculate ANOVA: within-group variance is zero")

    f_statistic = ms_between / ms_within
    p_value = f_upper_tail(f_statistic, df_between, df_within)
    return AnovaResult(
        f_statistic=f_statistic,
        p_value=p_value,
        df_between=df_between,
        df_within=df_within,
        ssb=ssb,
        ssw=ssw,
        ms_between=ms_between,
        ms_within=ms_within,
        group_means=group_means,
        group_sizes=group_sizes,
        grand_mean=grand_mean,
        significant=p_value < alpha,
    )


def chi_square_independence(
    observed: Mapping[str, Mapping[str, float]],
    *,
    alpha: float = DEFAULT_ALPHA,
) -> ChiSquareOutcome:
    """Chi-square test of independence on a contingency table.

    Args:
        observed: Row label -> column label -> observed count. Columns are the
            union of every row's keys in first-seen order; missing cells are 0.
        alpha: Significance level.

    Returns:
        ChiSquareResult, or InsufficientData for fewer than two rows or
        columns or an empty table. Cells with zero expected count do not
        contribute to the statistic.
    """

    rows = list(observed)
    if len(rows) < 2:
        return InsufficientData("Chi-square test requires at least 2 categories")
    columns: list[str] = []
    for row in rows:
        for column in observed[row]:
            if column not in columns:
                columns.append(column)
    if len(columns) < 2:
        return InsufficientData("Chi-square test requires at least 2 groups")

    table = {row: {column: float(observed[row].get(column, 0) or 0) for column in columns} for row in rows}
    row_totals = {row: sum(table[row].values()) for row in rows}
    column_totals = {column: sum(table[row][column] for row in rows) for column in columns}
    grand_total = sum(row_totals.values())
    if grand_total == 0:
        return InsufficientData("No data for chi-square test")

    statistic = 0.0
    expected: dict[str, dict[str, float]] = {}
    residuals: dict[str, dict[str, float]] = {}
    for row in rows:
        expected[row] = {}
        residuals[row] = {}
        for column in columns:
            expected_value = row_totals[row] * column_totals[column] / grand_total
            expected[row][column] = expected_value
            if expected_value > 0:
                residual = table[row][column] - expected_value
                residuals[row][column] = residual
                statistic += residual**2 / expected_value

    df = (len(rows) - 1) * (len(columns) - 1)
    p_value = chi_square_upper_tail(statistic, df)
    return ChiSquareResult(
        chi_square=statistic,
        degrees_of_freedom=df,
        p_value=p_value,
        observed=table,
        expected=expected,
        residuals=residuals,
        significant=p_value < alpha,
    )
