"""Trend template evaluation for Breakout Analyst.

Evaluates the fixed 8-point trend template (price versus the long moving
averages, 52-week range position, relative strength) plus the short-term
MA20/MA50 signal shown next to it.

Every criterion is independent. A moving average that cannot be computed
(insufficient history) makes the criteria using it fail; it never raises.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np

from breakout_analyst.indicators.technical import (
    consecutive_rising_count,
    last_value,
    simple_moving_average,
    trailing_mean,
)
from breakout_analyst.schemas.bars import PriceSeries

WEEK_52_BARS = 252
MA200_MIN_UP_DAYS = 21  # ~1 month of sessions
MIN_ABOVE_LOW_PCT = 25.0
MAX_BELOW_HIGH_PCT = 25.0
AVG_VOLUME_PERIOD = 20

RS_CRITERION_ID = 7
RS_MIN_RATING = 70
RS_MIN_TREND_WEEKS = 6


class SignalDirection(str, Enum):
    """Short-term MA crossover signal."""
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


@dataclass
class TrendIndicators:
    """Latest indicator snapshot of a series."""
    last_close: float
    ma20: float | None
    ma50: float | None
    ma150: float | None
    ma200: float | None
    avg_vol20: float | None
    high52w: float
    low52w: float


@dataclass
class CriterionResult:
    """Result of one trend template criterion.

    Attributes:
        id: Criterion number, 1-8
        title: Human-readable criterion
        passed: Whether the criterion holds
        detail: Values the decision was based on (None where unavailable)
    """
    id: int
    title: str
    passed: bool
    detail: dict[str, Any] = field(default_factory=dict)


def compute_trend_indicators(series: PriceSeries) -> TrendIndicators:
    """Compute the latest close, moving averages, volume average and 52-week range.

    Args:
        series: Non-empty price series

    Returns:
        TrendIndicators; moving averages are None when history is too short.
        The 52-week range uses whatever bars are available up to 252.
    """
    closes = series.closes
    year = series.tail(WEEK_52_BARS)

    avg_vol20 = None
    if len(series.volumes) >= AVG_VOLUME_PERIOD:
        avg_vol20 = trailing_mean(series.volumes, AVG_VOLUME_PERIOD)

    return TrendIndicators(
        last_close=float(closes[-1]),
        ma20=last_value(simple_moving_average(closes, 20)),
        ma50=last_value(simple_moving_average(closes, 50)),
        ma150=last_value(simple_moving_average(closes, 150)),
        ma200=last_value(simple_moving_average(closes, 200)),
        avg_vol20=avg_vol20,
        high52w=float(np.max(year.highs)),
        low52w=float(np.min(year.lows)),
    )


def detect_ma_crossover_signal(indicators: TrendIndicators) -> tuple[SignalDirection, list[str]]:
    """Classify MA20 versus MA50.

    Returns:
        Signal direction and the reasons explaining it (empty when neutral)
    """
    ma20, ma50 = indicators.ma20, indicators.ma50
    if not ma20 or not ma50:
        return SignalDirection.NEUTRAL, []
    if ma20 > ma50:
        return SignalDirection.BULLISH, ["MA20 is above MA50, short-term trend is strong"]
    if ma20 < ma50:
        return SignalDirection.BEARISH, ["MA20 is below MA50, short-term trend is weak"]
    return SignalDirection.NEUTRAL, []


def _above(value: float | None, *references: float | None) -> bool:
    if value is None or any(ref is None for ref in references):
        return False
    return all(value > ref for ref in references)


def evaluate_trend_template(
    series: PriceSeries, indicators: TrendIndicators | None = None
) -> list[CriterionResult]:
    """Evaluate the 8 trend template criteria in fixed order.

    Criterion 7 (relative strength) is only allocated here with
    ``passed=False``; relative-strength data is merged in afterwards by
    ``apply_relative_strength``.

    Args:
        series: Non-empty price series
        indicators: Precomputed snapshot (computed when omitted)

    Returns:
        List of 8 CriterionResult objects, ids 1 through 8
    """
    if indicators is None:
        indicators = compute_trend_indicators(series)

    close = indicators.last_close
    ma50, ma150, ma200 = indicators.ma50, indicators.ma150, indicators.ma200
    high52w, low52w = indicators.high52w, indicators.low52w

    up_days = consecutive_rising_count(simple_moving_average(series.closes, 200))
    above_low_pct = ((close - low52w) / low52w) * 100 if low52w else None
    below_high_pct = ((high52w - close) / high52w) * 100 if high52w else None

    return [
        CriterionResult(
            id=1,
            title="Price above the 150-day and 200-day moving averages",
            passed=_above(close, ma150, ma200),
            detail={"last_close": close, "ma150": ma150, "ma200": ma200},
        ),
        CriterionResult(
            id=2,
            title="150-day moving average above the 200-day moving average",
            passed=_above(ma150, ma200),
            detail={"ma150": ma150, "ma200": ma200},
        ),
        CriterionResult(
            id=3,
            title="200-day moving average trending up for at least 1 month",
            passed=up_days >= MA200_MIN_UP_DAYS,
            detail={"up_days": up_days},
        ),
        CriterionResult(
            id=4,
            title="50-day moving average above the 150-day and 200-day moving averages",
            passed=_above(ma50, ma150, ma200),
            detail={"ma50": ma50, "ma150": ma150, "ma200": ma200},
        ),
        CriterionResult(
            id=5,
            title="Price at least 25% above the 52-week low",
            passed=above_low_pct is not None and above_low_pct >= MIN_ABOVE_LOW_PCT,
            detail={"low52w": low52w, "above_low_pct": above_low_pct},
        ),
        CriterionResult(
            id=6,
            title="Price within 25% of the 52-week high",
            passed=below_high_pct is not None and below_high_pct <= MAX_BELOW_HIGH_PCT,
            detail={"high52w": high52w, "below_high_pct": below_high_pct},
        ),
        CriterionResult(
            id=RS_CRITERION_ID,
            title="Relative strength rank of 70 or more with a rising RS line",
            passed=False,
            detail={"rs_rating": None, "rs_trend_weeks": None},
        ),
        CriterionResult(
            id=8,
            title="Price above the 50-day moving average",
            passed=_above(close, ma50),
            detail={"last_close": close, "ma50": ma50},
        ),
    ]
