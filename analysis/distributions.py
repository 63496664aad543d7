"""Closed-form distribution approximations used for p-values.

These are deliberate approximations kept for compatibility with the original
dashboard numbers:

- the t-distribution is approximated as `Phi(t / sqrt(df))`,
- the F-distribution upper tail uses a square-root-to-normal transform,
- the chi-square distribution uses `sqrt(2x) - sqrt(2df - 1)` on the normal.

Callers only go through the named functions below, so an exact
implementation (incomplete beta, proper F/chi-square CDFs) can replace any of
them without touching callers.
"""

from __future__ import annotations

import math

# Abramowitz & Stegun formula 7.1.26 coefficients.
_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911


def erf(x: float) -> float:
    """Approximate the error function (max absolute error about 1.5e-7)."""

    sign = -1.0 if x < 0 else 1.0
    x = abs(x)
    t = 1.0 / (1.0 + _P * x)
    y = 1.0 - (((((_A5 * t + _A4) * t) + _A3) * t + _A2) * t + _A1) * t * math.exp(-x * x)
    return sign * y


def normal_cdf(x: float) -> float:
    """Standard normal CDF built on the `erf` approximation."""

    return 0.5 * (1.0 + erf(x / math.sqrt(2.0)))


def t_cdf(t: float, df: float) -> float:
    """Approximate the Student t CDF as `normal_cdf(t / sqrt(df))`.

    Returns 0.5 for non-positive degrees of freedom.
    """

    if df <= 0:
        return 0.5
    return normal_cdf(t / math.sqrt(df))


def f_cdf(f: float, df1: float, df2: float) -> float:
    """Approximate the F CDF via a square-root transform onto the normal."""

    if f <= 0:
        return 0.0
    x = df2 / (df2 + df1 * f)
    return _incomplete_beta(x)


def _incomplete_beta(x: float) -> float:
    """Stand-in for the regularized incomplete beta used by `f_cdf`."""

    if x == 0:
        return 0.0
    if x == 1:
        return 1.0
    return normal_cdf(math.sqrt(x))


def chi_square_cdf(x: float, df: float) -> float:
    """Approximate the chi-square CDF with a Wilson-Hilferty-style transform."""

    if x <= 0:
        return 0.0
    z = math.sqrt(2.0 * x) - math.sqrt(max(2.0 * df - 1.0, 0.0))
    return normal_cdf(z)


def two_tailed_t_p_value(t: float, df: float) -> float:
    """Two-tailed p-value for a t statistic using `t_cdf`."""

    return clamp_probability(2.0 * (1.0 - t_cdf(abs(t), df)))


def two_tailed_normal_p_value(z: float) -> float:
    """Two-tailed p-value for a z statistic using `normal_cdf`."""

    return clamp_probability(2.0 * (1.0 - normal_cdf(abs(z))))


def welch_p_value(t: float, df: float) -> float:
    """Two-tailed p-value for t-tests: normal for df > 30, t approximation otherwise."""

    if df > 30:
        return two_tailed_normal_p_value(t)
    return two_tailed_t_p_value(t, df)


def f_upper_tail(f: float, df1: float, df2: float) -> float:
    """Upper-tail probability `1 - F_cdf(f)`."""

    return clamp_probability(1.0 - f_cdf(f, df1, df2))


def chi_square_upper_tail(x: float, df: float) -> float:
    """Upper-tail probability `1 - chi_square_cdf(x)`."""

    return clamp_probability(1.0 - chi_square_cdf(x, df))


def clamp_probability(value: float) -> float:
    """Clamp a probability into [0, 1]."""

    return min(max(value, 0.0), 1.0)
