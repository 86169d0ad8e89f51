"""Series primitives for Breakout Analyst.

This module provides the small NumPy-based building blocks shared by every
pattern analyzer: moving averages, rising-streak counting, percentile ranks
and period returns.

All functions are total over their defined domains and signal "not enough
data" with an empty array or ``None`` instead of raising.
"""

import math

import numpy as np
from numpy.typing import NDArray


def simple_moving_average(
    values: list[float] | NDArray[np.float64], period: int
) -> NDArray[np.float64]:
    """Calculate Simple Moving Average (SMA) over every complete window.

    Unlike a NaN-padded SMA, the result only holds complete windows, so
    ``result[-1]`` is always the latest average.
    Formula: SMA = (P1 + P2 + ... + Pn) / n

    Args:
        values: Price data as list or numpy array
        period: Number of periods for the average (must be > 0)

    Returns:
        Array of length ``max(0, len(values) - period + 1)``. Empty if the
        series is shorter than ``period``.

    Raises:
        ValueError: If period <= 0

    Example:
        >>> simple_moving_average([1, 2, 3, 4, 5], 3)
        array([2., 3., 4.])
    """
    if period <= 0:
        raise ValueError("Period must be greater than 0")

    values_array = np.asarray(values, dtype=float)

    if len(values_array) < period:
        return np.array([], dtype=float)

    # Running sum: one pass, independent of period
    running = np.cumsum(np.concatenate([[0.0], values_array]))
    result: NDArray[np.float64] = (running[period:] - running[:-period]) / period
    return result


def consecutive_rising_count(series: list[float] | NDArray[np.float64]) -> int:
    """Count the most recent run of strictly increasing adjacent values.

    Scans backwards from the last value and stops at the first pair that does
    not rise. Used for "MA200 rising for a month" and RS-line trend length.

    Args:
        series: Values ordered oldest to newest

    Returns:
        Number of trailing rising steps (0 for fewer than 2 values)
    """
    values = np.asarray(series, dtype=float)
    count = 0
    for i in range(len(values) - 1, 0, -1):
        if values[i] > values[i - 1]:
            count += 1
        else:
            break
    return count


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def percentile_rank(
    value: float, population: list[float] | NDArray[np.float64]
) -> int | None:
    """Rank a value against a population on a 1-99 scale.

    The rank is the fraction of finite population members less than or equal
    to ``value``, scaled to a percent, rounded half up and clamped to [1, 99].

    Args:
        value: Value to rank
        population: Comparison population (non-finite members are ignored)

    Returns:
        Integer rank in [1, 99], or None if the population has no finite
        members or ``value`` is not finite
    """
    if value is None or not math.isfinite(value):
        return None

    population_array = np.asarray(population, dtype=float)
    ranked = np.sort(population_array[np.isfinite(population_array)])
    if len(ranked) == 0:
        return None

    at_or_below = int(np.searchsorted(ranked, value, side="right"))
    pct = at_or_below / len(ranked)
    return max(1, min(99, round_half_up(pct * 100)))


def period_return(
    closes: list[float] | NDArray[np.float64], lookback_days: int = 126
) -> float | None:
    """Calculate the fractional return over a fixed trailing window.

    Formula: last / first - 1, where first is ``lookback_days`` sessions
    before the last close.

    Args:
        closes: Closing prices, oldest to newest
        lookback_days: Window length in trading days (default 126, ~6 months)

    Returns:
        Fractional return (0.25 for +25%), or None if history is too short or
        either endpoint is zero
    """
    closes_array = np.asarray(closes, dtype=float)
    if len(closes_array) < lookback_days + 1:
        return None

    first = closes_array[-lookback_days - 1]
    last = closes_array[-1]
    if not first or not last:
        return None

    return float(last / first - 1)


def trailing_mean(values: list[float] | NDArray[np.float64], count: int) -> float | None:
    """Mean of the last ``count`` values (fewer when the series is shorter).

    Returns:
        The mean, or None for an empty series
    """
    values_array = np.asarray(values, dtype=float)
    tail = values_array[-count:]
    if len(tail) == 0:
        return None
    return float(np.mean(tail))


def last_value(values: NDArray[np.float64]) -> float | None:
    """Latest element of an indicator array, or None when it is empty."""
    if len(values) == 0:
        return None
    return float(values[-1])
