"""Tests for the pandas true range and ATR ratio helpers."""

import math

import numpy as np
import pytest

from breakout_analyst.utils.technical_indicators import calculate_atr_ratio, calculate_true_range


class TestCalculateTrueRange:
    """Test cases for per-bar True Range."""

    def test_first_bar_is_undefined(self):
        true_range = calculate_true_range([10.0, 11.0], [9.0, 10.0], [9.5, 10.5])
        assert math.isnan(true_range.iloc[0])

    def test_uses_previous_close_gaps(self):
        # Gap up: |high - prev_close| dominates high - low
        true_range = calculate_true_range([10.0, 15.0], [9.0, 14.0], [10.0, 14.5])
        assert true_range.iloc[1] == pytest.approx(5.0)

    def test_gap_down(self):
        true_range = calculate_true_range([10.0, 8.0], [9.0, 7.0], [10.0, 7.5])
        assert true_range.iloc[1] == pytest.approx(3.0)

    def test_inside_bar_uses_range(self):
        true_range = calculate_true_range([10.0, 10.5], [9.0, 9.5], [10.0, 10.0])
        assert true_range.iloc[1] == pytest.approx(1.0)


class TestCalculateAtrRatio:
    """Test cases for ATR / close."""

    def test_flat_prices(self):
        prices = [100.0] * 20
        assert calculate_atr_ratio(prices, prices, prices) == 0.0

    def test_known_ratio(self):
        highs = [11.0] * 20
        lows = [9.0] * 20
        closes = [10.0] * 20
        assert calculate_atr_ratio(highs, lows, closes, period=14) == pytest.approx(0.2)

    def test_uses_only_last_period_values(self):
        # Early bars are wide, the last 14 are 1 point wide
        highs = [20.0] * 10 + [10.5] * 15
        lows = [1.0] * 10 + [9.5] * 15
        closes = [10.0] * 25
        assert calculate_atr_ratio(highs, lows, closes, period=14) == pytest.approx(0.1)

    def test_shorter_slice_uses_available_values(self):
        ratio = calculate_atr_ratio([11.0, 11.0, 11.0], [9.0, 9.0, 9.0], [10.0, 10.0, 10.0])
        assert ratio == pytest.approx(0.2)

    def test_too_few_bars(self):
        assert calculate_atr_ratio([10.0], [9.0], [9.5]) is None
        assert calculate_atr_ratio([], [], []) is None

    def test_accepts_numpy_arrays(self):
        prices = np.full(30, 50.0)
        assert calculate_atr_ratio(prices, prices, prices) == 0.0
