"""Unit tests for the relative-strength merge."""

import numpy as np
import pytest

from breakout_analyst.indicators.analysis import analyze
from breakout_analyst.indicators.relative_strength import (
    ProviderRating,
    RelativeStrength,
    apply_relative_strength,
    benchmark_strength,
    peer_percentile_rating,
    provider_rating,
    trend_weeks,
)
from breakout_analyst.indicators.trend_template import RS_CRITERION_ID
from tests.utils.mock_data import MockBarGenerator


def _rs_criterion(report):
    return next(c for c in report.criteria if c.id == RS_CRITERION_ID)


@pytest.fixture
def rising():
    bars = MockBarGenerator.bars_from_closes(MockBarGenerator.rising_closes())
    return bars, MockBarGenerator.series(bars)


@pytest.fixture
def flat_benchmark():
    return MockBarGenerator.series(MockBarGenerator.flat_bars(days=300))


def _peer_pool() -> dict[str, list[float]]:
    """Four peers with 6-month returns of 0%, 10%, 20% and 30%."""
    pool = {}
    for i, ret in enumerate([0.0, 0.1, 0.2, 0.3]):
        pool[f"P{i}"] = [100.0] * 173 + np.linspace(100.0, 100.0 * (1 + ret), 127).tolist()
    return pool


class TestTrendWeeks:
    def test_whole_weeks_only(self):
        assert trend_weeks(list(range(31))) == 6
        assert trend_weeks(list(range(30))) == 5

    def test_non_finite_values_dropped(self):
        assert trend_weeks([1.0, float("nan"), 2.0, 3.0, 4.0, 5.0, 6.0]) == 1


class TestProviderRating:
    def test_rating_rounded(self):
        rs = provider_rating(85.5, list(range(31)))
        assert rs.source == "provider"
        assert rs.rs_rating == 86
        assert rs.rs_trend_weeks == 6

    def test_rating_clamped(self):
        assert provider_rating(120.0).rs_rating == 99
        assert provider_rating(-3.0).rs_rating == 0

    def test_missing_rating(self):
        assert provider_rating(None) is None
        assert provider_rating(float("nan")) is None


class TestPeerPercentileRating:
    def test_top_of_pool(self, rising):
        _, series = rising
        rs = peer_percentile_rating(series.closes, _peer_pool())
        # The rising series returns far more than any peer
        assert rs.rs_rating == 99
        assert rs.pool_size == 5
        assert rs.source == "proxy-peers"

    def test_pool_too_small(self, rising):
        _, series = rising
        peers = dict(list(_peer_pool().items())[:3])
        assert peer_percentile_rating(series.closes, peers) is None

    def test_short_peers_are_left_out(self, rising):
        _, series = rising
        peers = _peer_pool()
        peers["SHORT"] = [1.0, 2.0]
        assert peer_percentile_rating(series.closes, peers).pool_size == 5

    def test_symbol_without_history(self):
        assert peer_percentile_rating([1.0, 2.0], _peer_pool()) is None


class TestBenchmarkStrength:
    def test_outperformance_against_flat_benchmark(self, rising, flat_benchmark):
        _, series = rising
        strength = benchmark_strength(series, flat_benchmark)

        assert strength.outperformance_pct == pytest.approx(200.0)
        assert strength.aligned_bars == 300
        assert strength.trend_weeks == 299 // 5

    def test_too_few_common_dates(self, rising):
        _, series = rising
        later = MockBarGenerator.series(
            MockBarGenerator.bars_from_closes([100.0] * 40, start=series.dates[-20])
        )
        assert benchmark_strength(series, later) is None


class TestApplyRelativeStrength:
    """Tests for the tiered merge into a report."""

    def test_empty_slot_by_default(self, rising):
        bars, _ = rising
        report = analyze(bars)
        assert report.rs == RelativeStrength()
        assert _rs_criterion(report).passed is False

    def test_provider_rating_decides_criterion(self, rising):
        bars, series = rising
        report = analyze(bars)

        merged = apply_relative_strength(
            report, series, rating=ProviderRating(rating=85.0, rs_line=list(range(40)))
        )

        assert merged.rs.source == "provider"
        assert merged.rs.rs_rating == 85
        assert _rs_criterion(merged).passed is True
        assert _rs_criterion(merged).detail == {"rs_rating": 85, "rs_trend_weeks": 7}

    def test_input_report_untouched(self, rising):
        bars, series = rising
        report = analyze(bars)
        apply_relative_strength(report, series, rating=ProviderRating(rating=85.0))
        assert report.rs == RelativeStrength()
        assert _rs_criterion(report).passed is False

    def test_peers_used_without_provider_rating(self, rising):
        bars, series = rising
        merged = apply_relative_strength(analyze(bars), series, peer_closes=_peer_pool())

        assert merged.rs.source == "proxy-peers"
        assert merged.rs.rs_rating == 99
        criterion = _rs_criterion(merged)
        assert criterion.passed is False
        assert criterion.detail["pool_size"] == 5

    def test_peers_ignored_when_provider_rated(self, rising):
        bars, series = rising
        merged = apply_relative_strength(
            analyze(bars),
            series,
            rating=ProviderRating(rating=50.0),
            peer_closes=_peer_pool(),
        )
        assert merged.rs.source == "provider"
        assert merged.rs.rs_rating == 50

    def test_zero_provider_rating_falls_through_to_peers(self, rising):
        bars, series = rising
        merged = apply_relative_strength(
            analyze(bars),
            series,
            rating=ProviderRating(rating=0.0),
            peer_closes=_peer_pool(),
        )
        assert merged.rs.source == "proxy-peers"

    def test_benchmark_adds_trend_to_existing_rating(self, rising, flat_benchmark):
        bars, series = rising
        merged = apply_relative_strength(
            analyze(bars), series, peer_closes=_peer_pool(), benchmark=flat_benchmark
        )

        assert merged.rs.source == "proxy-peers"
        assert merged.rs.benchmark == "SPY"
        assert merged.rs.rs_trend_weeks == 59
        assert merged.rs.rs_outperformance_pct == pytest.approx(200.0)
        criterion = _rs_criterion(merged)
        assert criterion.passed is True
        assert criterion.detail["benchmark"] == "SPY"
        assert criterion.detail["pool_size"] == 5

    def test_benchmark_fallback_without_rating(self, rising, flat_benchmark):
        bars, series = rising
        merged = apply_relative_strength(
            analyze(bars), series, benchmark=flat_benchmark, benchmark_symbol="QQQ"
        )

        assert merged.rs.source == "fallback-QQQ"
        assert merged.rs.rs_rating is None
        assert merged.rs.rs_approx == 100.0
        criterion = _rs_criterion(merged)
        assert criterion.passed is True
        assert set(criterion.detail) == {
            "rs_approx",
            "rs_trend_weeks",
            "rs_outperformance_pct",
            "benchmark",
        }

    def test_underperformer_fallback_is_clamped(self, flat_benchmark):
        bars = MockBarGenerator.bars_from_closes(np.linspace(150.0, 30.0, 300).tolist())
        series = MockBarGenerator.series(bars)
        merged = apply_relative_strength(analyze(bars), series, benchmark=flat_benchmark)

        assert merged.rs.rs_approx == 0.0
        assert _rs_criterion(merged).passed is False
