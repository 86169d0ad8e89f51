"""Pivot (breakout trigger) estimation on top of a VCP.

The pivot is the highest high inside the best contracting run found by the
VCP detector. Volume dry-up and price tightness at the end of that run are
reported as quality signals; the suggested breakout volume is advisory only.
"""

from dataclasses import dataclass
from datetime import date

import numpy as np

from breakout_analyst.indicators.technical import trailing_mean
from breakout_analyst.indicators.vcp import LOOKBACK_BARS, VcpResult
from breakout_analyst.schemas.bars import PriceSeries
from breakout_analyst.utils.technical_indicators import calculate_atr_ratio

MAX_CHASE_PCT = 3.0
DRY_FACTOR = 0.7  # 10-day avg volume < 0.7 x 50-day avg
EXTREME_LOW_FACTOR = 0.35
EXTREME_LOW_WINDOW = 10
ATR_PERIOD = 14
MAX_ATR_PCT = 0.03
BREAKOUT_VOLUME_MULT = 1.8


@dataclass
class DateRange:
    start_date: date
    end_date: date


@dataclass
class PriceZone:
    from_price: float
    to_price: float
    max_chase_pct: float


@dataclass
class PivotVolume:
    vol_sma10: float | None
    vol_sma50: float | None
    dry_ok: bool | None
    extreme_low_days: int
    extreme_factor: float
    dry_factor: float


@dataclass
class PivotTightness:
    atr_pct: float | None
    max_atr_pct: float
    tight_ok: bool | None


@dataclass
class BreakoutVolume:
    vol_mult: float
    vol_needed: float | None


@dataclass
class PivotResult:
    """Breakout trigger derived from a qualifying VCP run."""
    pivot: float
    pivot_date: date
    range: DateRange
    buy_zone: PriceZone
    last_close: float
    is_above_pivot: bool
    volume: PivotVolume
    tightness: PivotTightness
    breakout: BreakoutVolume


def analyze_pivot(series: PriceSeries, vcp: VcpResult | None) -> PivotResult | None:
    """Locate the pivot price of the best VCP run and grade its quality.

    Args:
        series: Full price series the VCP was computed on
        vcp: Result of ``analyze_vcp`` for the same series

    Returns:
        PivotResult, or None unless ``vcp.best.is_vcp`` is True
    """
    if vcp is None or not vcp.best.is_vcp or vcp.best.start is None or vcp.best.end is None:
        return None

    window = series.tail(LOOKBACK_BARS)
    start_bar = vcp.contractions[vcp.best.start].start_bar
    end_bar = vcp.contractions[vcp.best.end].end_bar

    segment = window.slice(start_bar, end_bar + 1)
    if len(segment) == 0:
        return None

    # First occurrence of the highest high
    peak = int(np.argmax(segment.highs))
    pivot = float(segment.highs[peak])

    # Volume and tightness measured up to the end of the run
    upto_end = window.slice(0, end_bar + 1)
    vol_sma10 = trailing_mean(upto_end.volumes, 10)
    vol_sma50 = trailing_mean(upto_end.volumes, 50)
    dry_ok = None
    if vol_sma10 is not None and vol_sma50 is not None:
        dry_ok = vol_sma10 < vol_sma50 * DRY_FACTOR

    extreme_low_days = 0
    if vol_sma50 is not None:
        recent = segment.volumes[-EXTREME_LOW_WINDOW:]
        extreme_low_days = int(np.sum(recent <= vol_sma50 * EXTREME_LOW_FACTOR))

    atr_pct = calculate_atr_ratio(upto_end.highs, upto_end.lows, upto_end.closes, ATR_PERIOD)
    tight_ok = atr_pct <= MAX_ATR_PCT if atr_pct is not None else None

    last_close = float(series.closes[-1])

    return PivotResult(
        pivot=pivot,
        pivot_date=segment.dates[peak],
        range=DateRange(start_date=segment.dates[0], end_date=segment.dates[-1]),
        buy_zone=PriceZone(
            from_price=pivot,
            to_price=pivot * (1 + MAX_CHASE_PCT / 100),
            max_chase_pct=MAX_CHASE_PCT,
        ),
        last_close=last_close,
        is_above_pivot=last_close >= pivot,
        volume=PivotVolume(
            vol_sma10=vol_sma10,
            vol_sma50=vol_sma50,
            dry_ok=dry_ok,
            extreme_low_days=extreme_low_days,
            extreme_factor=EXTREME_LOW_FACTOR,
            dry_factor=DRY_FACTOR,
        ),
        tightness=PivotTightness(atr_pct=atr_pct, max_atr_pct=MAX_ATR_PCT, tight_ok=tight_ok),
        breakout=BreakoutVolume(
            vol_mult=BREAKOUT_VOLUME_MULT,
            vol_needed=vol_sma10 * BREAKOUT_VOLUME_MULT if vol_sma10 is not None else None,
        ),
    )
