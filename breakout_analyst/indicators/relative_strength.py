"""Relative strength: filling the ``rs`` slot and trend template criterion 7.

The engine itself only reserves the slot. Ratings are merged in afterwards
from up to three sources, in priority order:

1. A rating provider (source ``provider``)
2. A percentile rank of the 6-month return against a peer pool
   (source ``proxy-peers``)
3. A benchmark comparison (source ``fallback-<benchmark>``), which either
   adds the RS-line trend to an existing rating or, without one, supplies
   an approximate rating of its own
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

from breakout_analyst.indicators.technical import (
    consecutive_rising_count,
    percentile_rank,
    period_return,
    round_half_up,
)
from breakout_analyst.indicators.trend_template import (
    RS_CRITERION_ID,
    RS_MIN_RATING,
    RS_MIN_TREND_WEEKS,
    CriterionResult,
)
from breakout_analyst.schemas.bars import PriceSeries

if TYPE_CHECKING:
    from breakout_analyst.indicators.analysis import AnalysisReport

PROVIDER_SOURCE = "provider"
PEER_SOURCE = "proxy-peers"
MERGED_SOURCE = "merged"
MIN_ALIGNED_BARS = 30
SESSIONS_PER_WEEK = 5


@dataclass
class ProviderRating:
    """Rating as delivered by an external relative-strength provider.

    Attributes:
        rating: Provider rating, nominally 0-99
        rs_line: Provider RS line (oldest to newest) used for the trend length
    """
    rating: float
    rs_line: list[float] = field(default_factory=list)


@dataclass
class RelativeStrength:
    """The ``rs`` section of the report. All fields are None until merged."""
    source: str | None = None
    rs_rating: int | None = None
    rs_trend_weeks: int | None = None
    benchmark: str | None = None
    rs_outperformance_pct: float | None = None
    rs_approx: float | None = None
    pool_size: int | None = None


@dataclass
class BenchmarkStrength:
    outperformance_pct: float
    trend_weeks: int
    aligned_bars: int


def trend_weeks(rs_line: Sequence[float] | NDArray[np.float64]) -> int:
    """Whole weeks the RS line has been rising without interruption."""
    values = np.asarray(rs_line, dtype=float)
    values = values[np.isfinite(values)]
    return consecutive_rising_count(values) // SESSIONS_PER_WEEK


def provider_rating(rating: float | None, rs_line: Sequence[float] | None = None) -> RelativeStrength | None:
    """Tier 1: take a provider rating as-is, clamped to 0-99."""
    if rating is None or not np.isfinite(rating):
        return None
    return RelativeStrength(
        source=PROVIDER_SOURCE,
        rs_rating=max(0, min(99, round_half_up(rating))),
        rs_trend_weeks=trend_weeks(rs_line or []),
    )


def peer_percentile_rating(
    closes: Sequence[float] | NDArray[np.float64],
    peer_closes: Mapping[str, Sequence[float] | NDArray[np.float64]],
    lookback_days: int = 126,
    min_pool_size: int = 5,
) -> RelativeStrength | None:
    """Tier 2: percentile rank of the symbol's return within its peer pool.

    The symbol's own return is part of the ranked population. Peers with too
    little history are left out of the pool.

    Args:
        closes: Symbol closes, oldest to newest
        peer_closes: Peer symbol -> closes
        lookback_days: Return window in trading days
        min_pool_size: Minimum number of returns (symbol included)

    Returns:
        RelativeStrength with ``rs_rating`` and ``pool_size``, or None when
        the symbol has no return or the pool is too small
    """
    own = period_return(closes, lookback_days)
    if own is None:
        return None

    returns = [own]
    for peer in peer_closes.values():
        peer_return = period_return(peer, lookback_days)
        if peer_return is not None:
            returns.append(peer_return)

    if len(returns) < min_pool_size:
        return None

    rank = percentile_rank(own, returns)
    if rank is None:
        return None
    return RelativeStrength(source=PEER_SOURCE, rs_rating=rank, pool_size=len(returns))


def benchmark_strength(
    series: PriceSeries,
    benchmark: PriceSeries,
    min_aligned_bars: int = MIN_ALIGNED_BARS,
) -> BenchmarkStrength | None:
    """Tier 3: compare the stock with a benchmark over their common dates.

    Returns:
        Outperformance in percent over the aligned span and the RS-line trend
        in weeks, or None with fewer than ``min_aligned_bars`` common dates
    """
    benchmark_by_date = dict(zip(benchmark.dates, benchmark.closes))
    aligned = [
        (float(close), float(benchmark_by_date[day]))
        for day, close in zip(series.dates, series.closes)
        if day in benchmark_by_date
    ]
    if len(aligned) < min_aligned_bars:
        return None

    stock = np.array([s for s, _ in aligned])
    bench = np.array([b for _, b in aligned])
    if not stock[0] or not bench[0] or not bench[-1]:
        return None

    relative = (stock[-1] / stock[0]) / (bench[-1] / bench[0])
    return BenchmarkStrength(
        outperformance_pct=float((relative - 1) * 100),
        trend_weeks=trend_weeks(stock / bench),
        aligned_bars=len(aligned),
    )


def _update_rs_criterion(
    criteria: list[CriterionResult], passed: bool, detail: dict[str, Any], merge: bool = True
) -> list[CriterionResult]:
    updated = []
    for criterion in criteria:
        if criterion.id == RS_CRITERION_ID:
            new_detail = {**criterion.detail, **detail} if merge else dict(detail)
            criterion = replace(criterion, passed=passed, detail=new_detail)
        updated.append(criterion)
    return updated


def apply_relative_strength(
    report: "AnalysisReport",
    series: PriceSeries,
    *,
    rating: ProviderRating | None = None,
    peer_closes: Mapping[str, Sequence[float] | NDArray[np.float64]] | None = None,
    benchmark: PriceSeries | None = None,
    benchmark_symbol: str = "SPY",
    lookback_days: int = 126,
    min_pool_size: int = 5,
    min_aligned_bars: int = MIN_ALIGNED_BARS,
) -> "AnalysisReport":
    """Merge the available relative-strength sources into a report.

    Args:
        report: Report produced by ``analyze`` for ``series``
        series: The analyzed price series
        rating: Provider rating (tier 1)
        peer_closes: Peer closes for the percentile proxy (tier 2)
        benchmark: Benchmark series (tier 3)
        benchmark_symbol: Benchmark name recorded in the result
        lookback_days: Return window for the peer proxy
        min_pool_size: Minimum peer pool size, symbol included
        min_aligned_bars: Minimum common dates with the benchmark

    Returns:
        A new report; ``report`` is left untouched
    """
    rs = report.rs
    criteria = list(report.criteria)

    if rating is not None:
        from_provider = provider_rating(rating.rating, rating.rs_line)
        if from_provider is not None:
            rs = from_provider
            criteria = _update_rs_criterion(
                criteria,
                passed=rs.rs_rating >= RS_MIN_RATING and (rs.rs_trend_weeks or 0) >= RS_MIN_TREND_WEEKS,
                detail={"rs_rating": rs.rs_rating, "rs_trend_weeks": rs.rs_trend_weeks},
            )

    # A zero rating counts as missing
    if not rs.rs_rating and peer_closes:
        from_peers = peer_percentile_rating(series.closes, peer_closes, lookback_days, min_pool_size)
        if from_peers is not None:
            rs = from_peers
            # Not decided until the RS-line trend is known
            criteria = _update_rs_criterion(
                criteria,
                passed=False,
                detail={"rs_rating": rs.rs_rating, "pool_size": rs.pool_size},
            )

    if benchmark is not None:
        strength = benchmark_strength(series, benchmark, min_aligned_bars)
        if strength is not None:
            if rs.rs_rating:
                rs = replace(
                    rs,
                    source=rs.source or MERGED_SOURCE,
                    benchmark=benchmark_symbol,
                    rs_outperformance_pct=strength.outperformance_pct,
                    rs_trend_weeks=strength.trend_weeks,
                )
                criteria = _update_rs_criterion(
                    criteria,
                    passed=rs.rs_rating >= RS_MIN_RATING and strength.trend_weeks >= RS_MIN_TREND_WEEKS,
                    detail={
                        "rs_rating": rs.rs_rating,
                        "rs_trend_weeks": strength.trend_weeks,
                        "benchmark": benchmark_symbol,
                    },
                )
            else:
                rs_approx = max(0.0, min(100.0, 50 + strength.outperformance_pct))
                rs = RelativeStrength(
                    source=f"fallback-{benchmark_symbol}",
                    benchmark=benchmark_symbol,
                    rs_approx=rs_approx,
                    rs_outperformance_pct=strength.outperformance_pct,
                    rs_trend_weeks=strength.trend_weeks,
                )
                criteria = _update_rs_criterion(
                    criteria,
                    passed=rs_approx >= RS_MIN_RATING and strength.trend_weeks >= RS_MIN_TREND_WEEKS,
                    detail={
                        "rs_approx": rs_approx,
                        "rs_trend_weeks": strength.trend_weeks,
                        "rs_outperformance_pct": strength.outperformance_pct,
                        "benchmark": benchmark_symbol,
                    },
                    merge=False,
                )

    return replace(report, rs=rs, criteria=criteria)
