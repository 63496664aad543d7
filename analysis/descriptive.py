"""Descriptive statistics over numeric sequences.

All functions first drop non-finite values (NaN, +/-inf, None). Functions
return None for an empty sample instead of raising. Variance and standard
deviation use the population divisor (n).
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from .stats_dto import BoxSummary, DescriptiveStats, HistogramBucket


def finite_values(values: Iterable[float | int | None]) -> list[float]:
    """Return the finite numeric values of a sequence as floats."""

    cleaned: list[float] = []
    for value in values:
        if value is None or isinstance(value, bool):
            continue
        number = float(value)
        if math.isfinite(number):
            cleaned.append(number)
    return cleaned


def mean(values: Iterable[float | int | None]) -> float | None:
    """Compute the arithmetic mean, or None for an empty sample."""

    cleaned = finite_values(values)
    if not cleaned:
        return None
    return sum(cleaned) / len(cleaned)


def median(values: Iterable[float | int | None]) -> float | None:
    """Compute the median; even-length samples average the two middle values."""

    cleaned = sorted(finite_values(values))
    if not cleaned:
        return None
    mid = len(cleaned) // 2
    if len(cleaned) % 2 == 0:
        return (cleaned[mid - 1] + cleaned[mid]) / 2
    return cleaned[mid]


def mode(values: Iterable[float | int | None]) -> float | None:
    """Return the first-seen value with the highest frequency."""

    counts: dict[float, int] = {}
    for value in finite_values(values):
        counts[value] = counts.get(value, 0) + 1
    if not counts:
        return None
    highest = max(counts.values())
    return next(value for value, count in counts.items() if count == highest)


def variance(values: Iterable[float | int | None]) -> float | None:
    """Compute the population variance, or None for an empty sample."""

    cleaned = finite_values(values)
    if not cleaned:
        return None
    centre = sum(cleaned) / len(cleaned)
    return sum((value - centre) ** 2 for value in cleaned) / len(cleaned)


def stddev(values: Iterable[float | int | None]) -> float | None:
    """Compute the population standard deviation, or None for an empty sample."""

    var = variance(values)
    if var is None:
        return None
    return math.sqrt(var)


def percentile(values: Iterable[float | int | None], p: float) -> float | None:
    """Return the nearest-rank percentile of a sample.

    The rank is `p / 100 * n`; the value at index `ceil(rank) - 1` (clamped to
    the sample) is returned. The 50th percentile is the median, so even-length
    samples average their two middle values there.

    Args:
        values: Numeric sample.
        p: Percentile in [0, 100].

    Returns:
        The percentile value, or None for an empty sample.
    """

    cleaned = sorted(finite_values(values))
    n = len(cleaned)
    if n == 0:
        return None
    if p == 50:
        return median(cleaned)
    rank = p * n / 100.0
    index = min(max(math.ceil(rank) - 1, 0), n - 1)
    return cleaned[index]


def histogram(values: Iterable[float | int | None], bins: int) -> list[HistogramBucket]:
    """Bin a sample into equal-width buckets between its min and max.

    Args:
        values: Numeric sample.
        bins: Number of buckets (at least 1).

    Returns:
        Buckets in ascending order. A single bucket is returned when every
        value is identical; the last bucket includes the maximum.
    """

    cleaned = finite_values(values)
    if not cleaned:
        return []
    bins = max(int(bins), 1)
    low = min(cleaned)
    high = max(cleaned)
    if low == high:
        return [HistogramBucket(range=f"{low:.1f}", count=len(cleaned), lower=low, upper=high)]

    width = (high - low) / bins
    counts = [0] * bins
    for value in cleaned:
        index = min(int((value - low) // width), bins - 1)
        counts[index] += 1

    buckets: list[HistogramBucket] = []
    for index, count in enumerate(counts):
        lower = low + index * width
        upper = low + (index + 1) * width
        buckets.append(HistogramBucket(range=f"{lower:.1f}-{upper:.1f}", count=count, lower=lower, upper=upper))
    return buckets


def describe(values: Iterable[float | int | None]) -> DescriptiveStats:
    """Return mean, median, mode, standard deviation and variance together."""

    cleaned = finite_values(values)
    var = variance(cleaned)
    return DescriptiveStats(
        count=len(cleaned),
        mean=mean(cleaned),
        median=median(cleaned),
        mode=mode(cleaned),
        std_dev=None if var is None else math.sqrt(var),
        variance=var,
    )


def box_summary(values: Sequence[float | int | None]) -> BoxSummary | None:
    """Return min/quartiles/max/mean for a sample, or None when empty."""

    cleaned = finite_values(values)
    if not cleaned:
        return None
    q1 = percentile(cleaned, 25)
    mid = percentile(cleaned, 50)
    q3 = percentile(cleaned, 75)
    centre = mean(cleaned)
    assert q1 is not None and mid is not None and q3 is not None and centre is not None
    return BoxSummary(
        minimum=min(cleaned),
        q1=q1,
        median=mid,
        q3=q3,
        maximum=max(cleaned),
        mean=centre,
    )
