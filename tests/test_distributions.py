"""Unit tests for the approximate distribution functions."""

from __future__ import annotations

import pytest

from analysis.distributions import (
    chi_square_upper_tail,
    erf,
    f_upper_tail,
    normal_cdf,
    t_cdf,
    two_tailed_t_p_value,
    welch_p_value,
)

pytestmark = pytest.mark.unit


def test_erf_matches_known_values() -> None:
    """The error function approximation is accurate to about 1e-7."""

    assert erf(0.0) == pytest.approx(0.0, abs=1e-7)
    assert erf(1.0) == pytest.approx(0.8427007929, abs=2e-7)
    assert erf(-1.0) == pytest.approx(-0.8427007929, abs=2e-7)


def test_normal_cdf_is_symmetric() -> None:
    """Phi(x) + Phi(-x) == 1."""

    assert normal_cdf(0.0) == pytest.approx(0.5, abs=1e-7)
    assert normal_cdf(1.96) == pytest.approx(0.975, abs=1e-3)
    assert normal_cdf(1.3) + normal_cdf(-1.3) == pytest.approx(1.0)


def test_t_cdf_scales_by_degrees_of_freedom() -> None:
    """The t approximation is the normal CDF of t / sqrt(df)."""

    assert t_cdf(4.0, 4) == pytest.approx(normal_cdf(2.0))
    assert t_cdf(3.0, 0) == 0.5


def test_p_values_stay_within_unit_interval() -> None:
    """Upper tails and two-tailed p-values are clamped to [0, 1]."""

    assert two_tailed_t_p_value(0.0, 10) == pytest.approx(1.0, abs=1e-6)
    assert two_tailed_t_p_value(float("inf"), 10) == 0.0
    assert chi_square_upper_tail(0.0, 1) == 1.0
    assert f_upper_tail(0.0, 1, 10) == 1.0
    assert 0.0 <= f_upper_tail(12.0, 2, 20) <= 1.0


def test_welch_p_value_switches_to_normal_for_large_df() -> None:
    """Above 30 degrees of freedom the statistic is read on the normal."""

    assert welch_p_value(2.0, 40) == pytest.approx(2 * (1 - normal_cdf(2.0)))
    assert welch_p_value(2.0, 4) == pytest.approx(2 * (1 - normal_cdf(1.0)))
