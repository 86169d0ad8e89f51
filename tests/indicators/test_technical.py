"""Unit tests for the series primitives.

Tests cover exact values, insufficient-data behavior and property-based
invariants.
"""

import math

import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from breakout_analyst.indicators.technical import (
    consecutive_rising_count,
    last_value,
    percentile_rank,
    period_return,
    round_half_up,
    simple_moving_average,
    trailing_mean,
)


class TestSimpleMovingAverage:
    """Test cases for the valid-window SMA."""

    def test_sma_basic_calculation(self):
        """Test SMA with known values."""
        result = simple_moving_average([1.0, 2.0, 3.0, 4.0, 5.0], 3)
        np.testing.assert_array_almost_equal(result, [2.0, 3.0, 4.0])

    def test_sma_period_one_returns_input(self):
        prices = [10.0, 20.0, 30.0]
        np.testing.assert_array_almost_equal(simple_moving_average(prices, 1), prices)

    def test_sma_insufficient_data_is_empty(self):
        """Test SMA when data length is less than period."""
        result = simple_moving_average([1.0, 2.0], 5)
        assert len(result) == 0
        assert last_value(result) is None

    def test_sma_full_length_window(self):
        result = simple_moving_average([2.0, 4.0, 6.0], 3)
        np.testing.assert_array_almost_equal(result, [4.0])

    def test_sma_invalid_period(self):
        """Test SMA with invalid period."""
        with pytest.raises(ValueError, match="Period must be greater than 0"):
            simple_moving_average([1.0, 2.0, 3.0], 0)

    @given(
        st.lists(st.floats(min_value=1.0, max_value=1000.0), min_size=1, max_size=80),
        st.integers(min_value=1, max_value=40),
    )
    @settings(max_examples=50, deadline=1000)
    def test_sma_length_and_bounds(self, values, period):
        """Every average lies between the min and max of the input."""
        result = simple_moving_average(values, period)
        assert len(result) == max(0, len(values) - period + 1)
        if len(result):
            assert np.all(result >= min(values) - 1e-6)
            assert np.all(result <= max(values) + 1e-6)


class TestConsecutiveRisingCount:
    """Test cases for the trailing rising streak counter."""

    def test_fully_rising(self):
        assert consecutive_rising_count([1, 2, 3, 4, 5]) == 4

    def test_stops_at_first_non_rise(self):
        assert consecutive_rising_count([5, 1, 2, 3]) == 2

    def test_equal_values_break_the_streak(self):
        assert consecutive_rising_count([1, 2, 3, 3]) == 0

    def test_short_series(self):
        assert consecutive_rising_count([]) == 0
        assert consecutive_rising_count([7.0]) == 0

    @given(st.lists(st.floats(min_value=-1e6, max_value=1e6), max_size=60))
    @settings(max_examples=50, deadline=1000)
    def test_count_is_bounded(self, values):
        count = consecutive_rising_count(values)
        assert 0 <= count <= max(0, len(values) - 1)
        if count:
            assert values[-1] > values[-1 - count]


class TestRoundHalfUp:
    def test_halves_round_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(3.5) == 4
        assert round_half_up(0.5) == 1

    def test_regular_rounding(self):
        assert round_half_up(2.49) == 2
        assert round_half_up(25.2) == 25


class TestPercentileRank:
    """Test cases for the 1-99 percentile rank."""

    def test_middle_value(self):
        # 3 of 5 values are <= 3
        assert percentile_rank(3.0, [1.0, 2.0, 3.0, 4.0, 5.0]) == 60

    def test_clamped_to_99(self):
        assert percentile_rank(10.0, [1.0, 2.0, 3.0]) == 99

    def test_clamped_to_1(self):
        assert percentile_rank(-10.0, [1.0, 2.0, 3.0]) == 1

    def test_empty_population(self):
        assert percentile_rank(1.0, []) is None

    def test_non_finite_value(self):
        assert percentile_rank(math.nan, [1.0, 2.0]) is None
        assert percentile_rank(math.inf, [1.0, 2.0]) is None

    def test_non_finite_members_ignored(self):
        assert percentile_rank(2.0, [1.0, 2.0, math.nan, 3.0, 4.0]) == 50

    @given(
        st.lists(st.floats(min_value=-100.0, max_value=100.0), min_size=1, max_size=50),
        st.floats(min_value=-100.0, max_value=100.0),
        st.floats(min_value=-100.0, max_value=100.0),
    )
    @settings(max_examples=50, deadline=1000)
    def test_rank_is_monotonic(self, population, a, b):
        """A larger value never ranks lower."""
        low, high = min(a, b), max(a, b)
        low_rank = percentile_rank(low, population)
        high_rank = percentile_rank(high, population)
        assert 1 <= low_rank <= high_rank <= 99


class TestPeriodReturn:
    def test_basic_return(self):
        closes = [100.0, 110.0, 120.0, 150.0]
        assert period_return(closes, lookback_days=3) == pytest.approx(0.5)

    def test_insufficient_history(self):
        assert period_return([100.0, 110.0], lookback_days=126) is None

    def test_zero_denominator(self):
        assert period_return([0.0, 1.0, 2.0], lookback_days=2) is None


class TestTrailingMean:
    def test_mean_of_tail(self):
        assert trailing_mean([1.0, 2.0, 3.0, 4.0], 2) == pytest.approx(3.5)

    def test_shorter_series_uses_all_values(self):
        assert trailing_mean([2.0, 4.0], 10) == pytest.approx(3.0)

    def test_empty_series(self):
        assert trailing_mean([], 10) is None
