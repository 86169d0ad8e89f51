"""Cup-based cheat setups: the standard cheat and the low cheat.

Both setups share one recognizer. A cup is a left peak P, a later low L and a
right-side recovery high R inside the trailing ~45 weeks. The variants only
differ in where the early ("cheat") buy point may sit inside the cup and in
how many trailing bars form the plateau:

- standard cheat: pivot in [mid-line, left peak), 12-bar plateau, breakout
  must come with 1.8x the 10-day average volume
- low cheat: pivot at or below the lower third, 15-bar plateau

The pattern lifecycle is reported as four independent stages: downtrend,
uptrend, pause and breakout.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date
from enum import Enum

import numpy as np

from breakout_analyst.indicators.technical import (
    consecutive_rising_count,
    last_value,
    round_half_up,
    simple_moving_average,
    trailing_mean,
)
from breakout_analyst.schemas.bars import PriceSeries
from breakout_analyst.utils.technical_indicators import calculate_atr_ratio

MIN_HISTORY_BARS = 220
LOOKBACK_BARS = 225  # ~45 weeks
LOW_SEARCH_START = 10
LOW_SEARCH_END_OFFSET = 5

DEPTH_MIN_PCT = 15.0
DEPTH_MAX_PCT = 50.0
DEPTH_TOO_DEEP_PCT = 60.0
DURATION_MIN_WEEKS = 3
DURATION_MAX_WEEKS = 45
PRIOR_RUNUP_MIN_PCT = 25.0
RUNUP_LOOKBACK_MIN = 63  # ~3 months
RUNUP_LOOKBACK_MAX = 756  # ~36 months
MA200_MIN_UP_DAYS = 21

RECOUP_MIN = 0.3
RECOUP_MAX = 0.7
PLATEAU_WIDTH_MIN_PCT = 5.0
PLATEAU_WIDTH_MAX_PCT = 10.0
DRY_FACTOR = 0.7
ATR_PERIOD = 14
MAX_ATR_PCT = 0.03
BREAKOUT_VOLUME_MULT = 1.8
SHAKEOUT_MIN_LOOKBACK = 24


class BuyZone(str, Enum):
    """Vertical region of the cup where the early pivot may sit."""
    MIDDLE_AND_ABOVE = "middle_and_above"
    LOWER_THIRD = "lower_third"


@dataclass(frozen=True)
class CupVariant:
    """Parameters that distinguish the cheat setups."""
    name: str
    zone: BuyZone
    plateau_bars: int
    fallback_bars: int | None  # None: whole plateau
    breakout_needs_volume: bool


STANDARD_CHEAT = CupVariant(
    name="cheat",
    zone=BuyZone.MIDDLE_AND_ABOVE,
    plateau_bars=12,
    fallback_bars=10,
    breakout_needs_volume=True,
)

LOW_CHEAT = CupVariant(
    name="low_cheat",
    zone=BuyZone.LOWER_THIRD,
    plateau_bars=15,
    fallback_bars=None,
    breakout_needs_volume=False,
)


@dataclass
class PricePoint:
    price: float | None
    date: date | None
    index: int | None = None


@dataclass
class DepthRange:
    min: float
    max: float
    too_deep: float


@dataclass
class WeeksRange:
    min: int
    max: int


@dataclass
class PercentRange:
    min: float
    max: float


@dataclass
class CupThresholds:
    depth_pct: DepthRange
    duration_weeks: WeeksRange
    prior_runup_pct_min: float
    ma200_up_days_min: int
    plateau_width_pct: PercentRange
    atr_pct_max: float
    dry_factor: float
    breakout_vol_mult: float | None
    region: BuyZone


@dataclass
class CupWindow:
    start_date: date
    end_date: date


@dataclass
class CupShape:
    left_peak: PricePoint
    low_point: PricePoint
    right_high: PricePoint
    depth_pct: float
    base_bars: int
    duration_weeks: int
    mid_line: float
    upper_third: float
    lower_third: float


@dataclass
class CupTrend:
    above_200ma: bool
    ma200_slope_up: bool
    ma200_up_days: int


@dataclass
class PriorRunup:
    prior_runup_pct: float | None
    lookback_min_days: int
    lookback_max_days: int


@dataclass
class CupBuyPoints:
    early_pivot: PricePoint
    standard_pivot: PricePoint
    reference_high: PricePoint


@dataclass
class Plateau:
    length_bars: int
    high: float
    low: float
    width_pct: float | None
    width_ok: bool
    shakeout: bool


@dataclass
class EndMetrics:
    vol_sma10: float | None
    vol_sma50: float | None
    dry_ok: bool | None
    atr_pct: float | None
    tight_ok: bool | None
    breakout_vol_mult: float | None
    breakout_vol_needed: float | None
    last_volume: float


@dataclass
class CupSteps:
    downtrend: bool
    uptrend: bool
    pause: bool
    breakout: bool


@dataclass
class CupPattern:
    """Result of a cheat setup scan."""
    variant: str
    qualifies: bool
    reasons: list[str]
    thresholds: CupThresholds
    window: CupWindow
    cup: CupShape
    trend: CupTrend
    prior: PriorRunup
    buy_points: CupBuyPoints
    plateau: Plateau
    end_metrics: EndMetrics
    steps: CupSteps


def classify_cup_depth(depth_pct: float) -> tuple[bool, bool]:
    """Return (depth_in_range, too_deep) for a cup depth in percent."""
    depth_ok = DEPTH_MIN_PCT <= depth_pct <= DEPTH_MAX_PCT
    too_deep = depth_pct > DEPTH_TOO_DEEP_PCT
    return depth_ok, too_deep


def is_pause(width_ok: bool, dry_ok: bool | None, tight_ok: bool | None) -> bool:
    """Plateau pause stage.

    Missing volume or tightness data (None) does not block a pause; only an
    explicit False does.
    """
    return width_ok and dry_ok is not False and tight_ok is not False


def _zone_check(variant: CupVariant, peak: float, mid_line: float, lower_third: float) -> Callable[[float], bool]:
    if variant.zone is BuyZone.MIDDLE_AND_ABOVE:
        return lambda high: mid_line <= high < peak
    return lambda high: high <= lower_third


def find_early_pivot(
    plateau: PriceSeries,
    in_zone: Callable[[float], bool],
    fallback_bars: int | None,
) -> PricePoint:
    """Highest plateau high inside the buy zone.

    When no plateau bar is in the zone, the highest high of the trailing
    ``fallback_bars`` (whole plateau when None) is used if it is in the zone.
    Returns a PricePoint with ``price=None`` when nothing qualifies.
    """
    best_price: float | None = None
    best_date: date | None = None
    for high, day in zip(plateau.highs, plateau.dates):
        if in_zone(float(high)) and (best_price is None or high > best_price):
            best_price, best_date = float(high), day

    if best_price is None:
        fallback = plateau.tail(fallback_bars) if fallback_bars is not None else plateau
        peak = int(np.argmax(fallback.highs))
        candidate = float(fallback.highs[peak])
        if in_zone(candidate):
            best_price, best_date = candidate, fallback.dates[peak]

    return PricePoint(price=best_price, date=best_date)


def analyze_cup(series: PriceSeries, variant: CupVariant = STANDARD_CHEAT) -> CupPattern | None:
    """Scan for a cup with an early buy point.

    Args:
        series: Full price series
        variant: STANDARD_CHEAT or LOW_CHEAT

    Returns:
        CupPattern, or None when history is shorter than 220 bars or no cup
        shape (a genuine decline from a left peak) exists
    """
    if len(series) < MIN_HISTORY_BARS:
        return None

    ma200 = simple_moving_average(series.closes, 200)
    last_ma200 = last_value(ma200)
    last_close = float(series.closes[-1])
    ma200_up_days = consecutive_rising_count(ma200)
    ma200_slope_up = ma200_up_days >= MA200_MIN_UP_DAYS
    above_200ma = last_ma200 is not None and last_close > last_ma200

    start_idx = max(0, len(series) - LOOKBACK_BARS)
    window = series.slice(start_idx)
    highs, lows = window.highs, window.lows

    # L avoids both window edges; P is before it, R after it
    low_end = len(window) - LOW_SEARCH_END_OFFSET
    if low_end <= LOW_SEARCH_START:
        return None
    l_idx = LOW_SEARCH_START + int(np.argmin(lows[LOW_SEARCH_START:low_end]))
    p_idx = int(np.argmax(highs[:l_idx]))
    r_idx = l_idx + 1 + int(np.argmax(highs[l_idx + 1 :]))
    peak, low, right = float(highs[p_idx]), float(lows[l_idx]), float(highs[r_idx])

    if peak <= low:
        return None

    depth_pct = (peak - low) * 100.0 / peak
    base_bars = max(1, r_idx - p_idx)
    duration_weeks = round_half_up(base_bars / 5)
    depth_ok, too_deep = classify_cup_depth(depth_pct)
    duration_ok = DURATION_MIN_WEEKS <= duration_weeks <= DURATION_MAX_WEEKS

    # Prior run-up into the left peak, 3-36 months before it
    peak_global = start_idx + p_idx
    runup_start = max(0, peak_global - RUNUP_LOOKBACK_MAX)
    runup_end = max(0, peak_global - RUNUP_LOOKBACK_MIN)
    prior_low = float(np.min(series.lows[runup_start : runup_end + 1]))
    prior_runup_pct = (peak / prior_low - 1) * 100 if prior_low > 0 else None
    prior_runup_ok = prior_runup_pct is not None and prior_runup_pct >= PRIOR_RUNUP_MIN_PCT

    cup_height = peak - low
    lower_third = low + cup_height / 3
    mid_line = low + cup_height * 0.5
    upper_third = low + cup_height * 2 / 3

    plateau = window.tail(variant.plateau_bars)
    early_pivot = find_early_pivot(
        plateau,
        _zone_check(variant, peak, mid_line, lower_third),
        variant.fallback_bars,
    )

    plateau_peak = int(np.argmax(plateau.highs))
    plateau_high = float(plateau.highs[plateau_peak])
    plateau_low = float(np.min(plateau.lows))
    plateau_width_pct = (plateau_high - plateau_low) / plateau_high * 100 if plateau_high > 0 else None
    plateau_width_ok = (
        plateau_width_pct is not None
        and PLATEAU_WIDTH_MIN_PCT <= plateau_width_pct <= PLATEAU_WIDTH_MAX_PCT
    )

    # Shakeout: the plateau undercuts the low of the bars just before it
    pre_plateau = window.slice(
        max(0, len(window) - max(variant.plateau_bars * 2, SHAKEOUT_MIN_LOOKBACK)),
        len(window) - variant.plateau_bars,
    )
    shakeout = len(pre_plateau) > 0 and plateau_low < float(np.min(pre_plateau.lows))

    # Volume dry-up and tightness at the right edge
    vol_sma10 = trailing_mean(window.volumes, 10)
    vol_sma50 = trailing_mean(window.volumes, 50)
    dry_ok = None
    if vol_sma10 is not None and vol_sma50 is not None:
        dry_ok = vol_sma10 < vol_sma50 * DRY_FACTOR
    atr_pct = calculate_atr_ratio(window.highs, window.lows, window.closes, ATR_PERIOD)
    tight_ok = atr_pct <= MAX_ATR_PCT if atr_pct is not None else None

    last_volume = float(series.volumes[-1])
    breakout_vol_needed = None
    breakout_volume_ok = None
    if variant.breakout_needs_volume and vol_sma10 is not None:
        breakout_vol_needed = vol_sma10 * BREAKOUT_VOLUME_MULT
        breakout_volume_ok = last_volume >= breakout_vol_needed

    recoup_ratio = (right - low) / cup_height
    steps = CupSteps(
        downtrend=depth_pct > 0 and ma200_slope_up,
        uptrend=RECOUP_MIN <= recoup_ratio <= RECOUP_MAX,
        pause=is_pause(plateau_width_ok, dry_ok, tight_ok),
        breakout=last_close > plateau_high and breakout_volume_ok is not False,
    )

    checks = [
        (depth_ok, f"Cup depth {depth_pct:.1f}% is outside the 15%-50% range"),
        (not too_deep, f"Cup depth {depth_pct:.1f}% is too deep (>60%)"),
        (duration_ok, f"Base duration of {duration_weeks} weeks is outside the 3-45 week range"),
        (
            prior_runup_ok,
            f"Prior run-up is insufficient ({prior_runup_pct or 0.0:.1f}% < 25%)",
        ),
        (above_200ma, "Price is not above the 200-day moving average"),
        (ma200_slope_up, "200-day moving average has not risen for at least 1 month"),
        (
            early_pivot.price is not None,
            "No early buy-point pivot in the lower third of the cup"
            if variant.zone is BuyZone.LOWER_THIRD
            else "No early buy-point pivot between the cup mid-line and the left peak",
        ),
    ]
    reasons = [message for passed, message in checks if not passed]
    qualifies = all(passed for passed, _ in checks)

    return CupPattern(
        variant=variant.name,
        qualifies=qualifies,
        reasons=reasons,
        thresholds=CupThresholds(
            depth_pct=DepthRange(min=DEPTH_MIN_PCT, max=DEPTH_MAX_PCT, too_deep=DEPTH_TOO_DEEP_PCT),
            duration_weeks=WeeksRange(min=DURATION_MIN_WEEKS, max=DURATION_MAX_WEEKS),
            prior_runup_pct_min=PRIOR_RUNUP_MIN_PCT,
            ma200_up_days_min=MA200_MIN_UP_DAYS,
            plateau_width_pct=PercentRange(min=PLATEAU_WIDTH_MIN_PCT, max=PLATEAU_WIDTH_MAX_PCT),
            atr_pct_max=MAX_ATR_PCT,
            dry_factor=DRY_FACTOR,
            breakout_vol_mult=BREAKOUT_VOLUME_MULT if variant.breakout_needs_volume else None,
            region=variant.zone,
        ),
        window=CupWindow(start_date=window.dates[0], end_date=window.dates[-1]),
        cup=CupShape(
            left_peak=PricePoint(price=peak, date=window.dates[p_idx], index=p_idx),
            low_point=PricePoint(price=low, date=window.dates[l_idx], index=l_idx),
            right_high=PricePoint(price=right, date=window.dates[r_idx], index=r_idx),
            depth_pct=depth_pct,
            base_bars=base_bars,
            duration_weeks=duration_weeks,
            mid_line=mid_line,
            upper_third=upper_third,
            lower_third=lower_third,
        ),
        trend=CupTrend(
            above_200ma=above_200ma,
            ma200_slope_up=ma200_slope_up,
            ma200_up_days=ma200_up_days,
        ),
        prior=PriorRunup(
            prior_runup_pct=prior_runup_pct,
            lookback_min_days=RUNUP_LOOKBACK_MIN,
            lookback_max_days=RUNUP_LOOKBACK_MAX,
        ),
        buy_points=CupBuyPoints(
            early_pivot=early_pivot,
            standard_pivot=PricePoint(price=peak, date=window.dates[p_idx], index=p_idx),
            reference_high=PricePoint(price=plateau_high, date=plateau.dates[plateau_peak]),
        ),
        plateau=Plateau(
            length_bars=len(plateau),
            high=plateau_high,
            low=plateau_low,
            width_pct=plateau_width_pct,
            width_ok=plateau_width_ok,
            shakeout=shakeout,
        ),
        end_metrics=EndMetrics(
            vol_sma10=vol_sma10,
            vol_sma50=vol_sma50,
            dry_ok=dry_ok,
            atr_pct=atr_pct,
            tight_ok=tight_ok,
            breakout_vol_mult=BREAKOUT_VOLUME_MULT if variant.breakout_needs_volume else None,
            breakout_vol_needed=breakout_vol_needed,
            last_volume=last_volume,
        ),
        steps=steps,
    )


def analyze_cheat_setup(series: PriceSeries) -> CupPattern | None:
    """Standard cheat: early pivot between the cup mid-line and the left peak."""
    return analyze_cup(series, STANDARD_CHEAT)


def analyze_low_cheat(series: PriceSeries) -> CupPattern | None:
    """Low cheat: early pivot in the bottom third of the cup."""
    return analyze_cup(series, LOW_CHEAT)
