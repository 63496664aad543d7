"""Linear regression models for response-time analysis.

`simple_linear_regression` is a closed-form ordinary least squares fit.
`coordinate_wise_regression` is the dashboard's multiple-regression
approximation: each slope is `Cov(x_i, y) / Var(x_i)` computed on its own, so
correlated predictors are not decorrelated. Swap in a matrix-based solve
behind `multiple_linear_regression` when exact coefficients are needed.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence

from .distributions import two_tailed_t_p_value
from .inference import DEFAULT_ALPHA, finite_pairs
from .stats_dto import (
    InsufficientData,
    MultipleRegressionOutcome,
    MultipleRegressionResult,
    SimpleRegressionOutcome,
    SimpleRegressionResult,
)


def simple_linear_regression(
    x: Sequence[float | None],
    y: Sequence[float | None],
    *,
    alpha: float = DEFAULT_ALPHA,
) -> SimpleRegressionOutcome:
    """Fit `y = a + b*x` by least squares.

    Args:
        x: Predictor values.
        y: Response values (same length as `x`).
        alpha: Significance level applied to the slope p-value.

    Returns:
        SimpleRegressionResult, or InsufficientData when fewer than two finite
        pairs exist or `x` has zero variance.
    """

    if len(x) != len(y) or len(x) < 2:
        return InsufficientData("Insufficient data for regression (need at least 2 pairs)")
    pairs = finite_pairs(x, y)
    if len(pairs) < 2:
        return InsufficientData("Insufficient valid data for regression")

    n = len(pairs)
    mean_x = sum(p[0] for p in pairs) / n
    mean_y = sum(p[1] for p in pairs) / n
    sxy = sum((px - mean_x) * (py - mean_y) for px, py in pairs)
    sxx = sum((px - mean_x) ** 2 for px, _ in pairs)
    if sxx == 0:
        return InsufficientData("Cannot calculate regression: X variable has zero variance")

    slope = sxy / sxx
    intercept = mean_y - slope * mean_x
    ss_res = sum((py - (intercept + slope * px)) ** 2 for px, py in pairs)
    ss_tot = sum((py - mean_y) ** 2 for _, py in pairs)
    r_squared = 0.0 if ss_tot == 0 else 1.0 - ss_res / ss_tot

    se_slope: float | None = None
    se_intercept: float | None = None
    t_slope: float | None = None
    t_intercept: float | None = None
    p_slope: float | None = None
    p_intercept: float | None = None
    if n > 2:
        mse = ss_res / (n - 2)
        se_slope = math.sqrt(mse / sxx)
        se_intercept = math.sqrt(mse * (1.0 / n + mean_x * mean_x / sxx))
        t_slope = _coefficient_t(slope, se_slope)
        t_intercept = _coefficient_t(intercept, se_intercept)
        p_slope = two_tailed_t_p_value(t_slope, n - 2)
        p_intercept = two_tailed_t_p_value(t_intercept, n - 2)

    min_x = min(p[0] for p in pairs)
    max_x = max(p[0] for p in pairs)
    return SimpleRegressionResult(
        intercept=intercept,
        slope=slope,
        r_squared=r_squared,
        n=n,
        se_slope=se_slope,
        se_intercept=se_intercept,
        t_slope=t_slope,
        t_intercept=t_intercept,
        p_value_slope=p_slope,
        p_value_intercept=p_intercept,
        significant=p_slope is not None and p_slope < alpha,
        predicted_line=(
            (min_x, intercept + slope * min_x),
            (max_x, intercept + slope * max_x),
        ),
        equation=f"y = {intercept:.4f} + {slope:.4f}x",
    )


def _coefficient_t(coefficient: float, standard_error: float) -> float:
    """Return coefficient / SE; a zero SE gives +/-inf (or 0 for a zero coefficient)."""

    if standard_error == 0:
        return 0.0 if coefficient == 0 else math.copysign(math.inf, coefficient)
    return coefficient / standard_error


def multiple_linear_regression(
    predictors: Mapping[str, Sequence[float | None]],
    y: Sequence[float | None],
) -> MultipleRegressionOutcome:
    """Fit `y` on several named predictors.

    Currently delegates to `coordinate_wise_regression`.
    """

    return coordinate_wise_regression(predictors, y)


def coordinate_wise_regression(
    predictors: Mapping[str, Sequence[float | None]],
    y: Sequence[float | None],
) -> MultipleRegressionOutcome:
    """Approximate a multiple regression one predictor at a time.

    Args:
        predictors: Predictor name -> values, each the same length as `y`.
        y: Response values.

    Returns:
        MultipleRegressionResult with per-predictor slopes
        `Cov(x_i, y) / Var(x_i)` (0 for a constant predictor), an intercept of
        `mean(y) - sum(b_i * mean(x_i))`, and R^2 of the joint prediction; or
        InsufficientData for fewer than three complete finite observations.
    """

    names = list(predictors)
    if not names:
        return InsufficientData("Multiple regression requires at least one predictor")
    if len(y) < 3 or any(len(predictors[name]) != len(y) for name in names):
        return InsufficientData("Insufficient data for multiple regression (need at least 3 observations)")

    rows: list[tuple[list[float], float]] = []
    for index, response in enumerate(y):
        values = [predictors[name][index] for name in names]
        row = [response, *values]
        if any(v is None or isinstance(v, bool) or not math.isfinite(float(v)) for v in row):
            continue
        rows.append(([float(v) for v in values], float(response)))  # type: ignore[arg-type]
    if len(rows) < 3:
        return InsufficientData("Insufficient valid data for multiple regression")

    n = len(rows)
    mean_y = sum(response for _, response in rows) / n
    means = [sum(values[i] for values, _ in rows) / n for i in range(len(names))]

    coefficients: dict[str, float] = {}
    for i, name in enumerate(names):
        sxy = sum((values[i] - means[i]) * (response - mean_y) for values, response in rows)
        sxx = sum((values[i] - means[i]) ** 2 for values, _ in rows)
        coefficients[name] = 0.0 if sxx == 0 else sxy / sxx

    intercept = mean_y - sum(coefficients[name] * means[i] for i, name in enumerate(names))

    ss_res = 0.0
    ss_tot = 0.0
    for values, response in rows:
        predicted = intercept + sum(coefficients[name] * values[i] for i, name in enumerate(names))
        ss_res += (response - predicted) ** 2
        ss_tot += (response - mean_y) ** 2
    r_squared = 0.0 if ss_tot == 0 else 1.0 - ss_res / ss_tot

    terms = " + ".join(f"{coefficients[name]:.4f}*{name}" for name in names)
    return MultipleRegressionResult(
        intercept=intercept,
        coefficients=coefficients,
        r_squared=r_squared,
        n=n,
        equation=f"y = {intercept:.4f} + {terms}",
    )
