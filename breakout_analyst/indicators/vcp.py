"""Volatility contraction pattern (VCP) detection.

Scans the trailing year for swing highs and lows, turns every swing-high to
next-swing-low pair into a contraction leg, and checks that the legs get
progressively shallower.

Two verdicts are reported and deliberately kept apart:
- ``VcpResult.is_vcp``: every leg in the window contracts (strict, whole window)
- ``VcpResult.best.is_vcp``: some trailing run of at least 3 legs contracts
"""

from dataclasses import dataclass, field
from datetime import date

import numpy as np
from numpy.typing import NDArray

from breakout_analyst.schemas.bars import PriceSeries

LOOKBACK_BARS = 252
MIN_WINDOW_BARS = 60
SWING_LEFT = 3
SWING_RIGHT = 3
MIN_CONTRACTIONS = 3
DECREASE_RATIO = 0.7
MAX_LAST_DEPTH_PCT = 15.0


@dataclass
class ContractionLeg:
    """One swing-high to swing-low decline inside the VCP window.

    Bar indices are positions in the trailing window, not the full series.
    """
    start_bar: int
    end_bar: int
    start_date: date
    end_date: date
    bars: int
    depth_pct: float
    high_price: float
    low_price: float


@dataclass
class VcpBest:
    """Rightmost run of contracting legs (indices into ``contractions``)."""
    is_vcp: bool = False
    start: int | None = None
    end: int | None = None
    depths: list[float] = field(default_factory=list)
    widths_bars: list[int] = field(default_factory=list)
    total_bars: int = 0
    count: int = 0


@dataclass
class VcpResult:
    """VCP scan result. The zero-result has no legs and an empty ``best``."""
    is_vcp: bool = False
    base_bars: int = 0
    contractions: list[ContractionLeg] = field(default_factory=list)
    best: VcpBest = field(default_factory=VcpBest)


@dataclass
class _Swing:
    index: int
    price: float
    is_high: bool


def find_swing_points(
    highs: NDArray[np.float64],
    lows: NDArray[np.float64],
    left: int = SWING_LEFT,
    right: int = SWING_RIGHT,
) -> tuple[list[int], list[int]]:
    """Find strict local highs and lows.

    Bar i is a swing high when its high is strictly greater than every high
    within ``left`` bars before and ``right`` bars after it; ties disqualify.
    Swing lows mirror this on the lows. Bars too close to either edge are
    never swings.

    Returns:
        Tuple of (swing_high_indices, swing_low_indices), ascending
    """
    high_idx: list[int] = []
    low_idx: list[int] = []
    for i in range(left, len(highs) - right):
        neighbours = np.r_[i - left : i, i + 1 : i + right + 1]
        if np.all(highs[i] > highs[neighbours]):
            high_idx.append(i)
        if np.all(lows[i] < lows[neighbours]):
            low_idx.append(i)
    return high_idx, low_idx


def _merge_swings(
    high_idx: list[int], low_idx: list[int], highs: NDArray[np.float64], lows: NDArray[np.float64]
) -> list[_Swing]:
    # Ordered by index; a high wins when a bar is both
    swings: list[_Swing] = []
    i = j = 0
    while i < len(high_idx) or j < len(low_idx):
        take_high = j >= len(low_idx) or (i < len(high_idx) and high_idx[i] <= low_idx[j])
        if take_high:
            swings.append(_Swing(high_idx[i], float(highs[high_idx[i]]), True))
            i += 1
        else:
            swings.append(_Swing(low_idx[j], float(lows[low_idx[j]]), False))
            j += 1
    return swings


def _contracts(older_depth: float, newer_depth: float) -> bool:
    return newer_depth <= older_depth * DECREASE_RATIO


def find_best_contraction_run(contractions: list[ContractionLeg]) -> VcpBest:
    """Select the rightmost run of contracting legs.

    Candidate end legs are tried from the most recent backwards; a candidate
    needs depth <= 15% and is extended leftwards while each newer leg is at
    most 0.7x its older neighbour. The first candidate whose run reaches 3
    legs wins. This is a greedy search that favours recency, not the longest
    or deepest run.
    """
    for end in range(len(contractions) - 1, -1, -1):
        if contractions[end].depth_pct > MAX_LAST_DEPTH_PCT:
            continue
        start = end
        while start > 0 and _contracts(
            contractions[start - 1].depth_pct, contractions[start].depth_pct
        ):
            start -= 1
        count = end - start + 1
        if count >= MIN_CONTRACTIONS:
            run = contractions[start : end + 1]
            return VcpBest(
                is_vcp=True,
                start=start,
                end=end,
                depths=[leg.depth_pct for leg in run],
                widths_bars=[leg.bars for leg in run],
                total_bars=sum(leg.bars for leg in run),
                count=count,
            )
    return VcpBest()


def analyze_vcp(series: PriceSeries) -> VcpResult:
    """Detect a volatility contraction pattern in the trailing 252 bars.

    Args:
        series: Full price series

    Returns:
        VcpResult. Windows shorter than 60 bars return the zero-result.
    """
    window = series.tail(LOOKBACK_BARS)
    if len(window) < MIN_WINDOW_BARS:
        return VcpResult()

    highs, lows = window.highs, window.lows
    high_idx, low_idx = find_swing_points(highs, lows)
    swings = _merge_swings(high_idx, low_idx, highs, lows)

    contractions = []
    for swing_high, swing_low in zip(swings, swings[1:]):
        if not (swing_high.is_high and not swing_low.is_high):
            continue
        depth_pct = max(0.0, (swing_high.price - swing_low.price) * 100.0 / swing_high.price)
        contractions.append(
            ContractionLeg(
                start_bar=swing_high.index,
                end_bar=swing_low.index,
                start_date=window.dates[swing_high.index],
                end_date=window.dates[swing_low.index],
                bars=max(1, swing_low.index - swing_high.index),
                depth_pct=depth_pct,
                high_price=swing_high.price,
                low_price=swing_low.price,
            )
        )

    base_bars = contractions[-1].end_bar - contractions[0].start_bar if contractions else 0

    is_vcp = (
        len(contractions) >= MIN_CONTRACTIONS
        and all(
            _contracts(older.depth_pct, newer.depth_pct)
            for older, newer in zip(contractions, contractions[1:])
        )
        and contractions[-1].depth_pct <= MAX_LAST_DEPTH_PCT
    )

    return VcpResult(
        is_vcp=is_vcp,
        base_bars=base_bars,
        contractions=contractions,
        best=find_best_contraction_run(contractions),
    )
