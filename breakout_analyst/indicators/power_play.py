"""Power play detection: an explosive run followed by a short, shallow base.

A power play needs a 40-session move of at least +100% on expanding volume,
then a 10-30 session consolidation that gives back at most 20% (25% for
stocks under $20). The breakout trigger (close above the base high) is
reported alongside but is not part of ``qualifies``.
"""

from dataclasses import dataclass, field
from datetime import date

import numpy as np

from breakout_analyst.schemas.bars import PriceSeries
from breakout_analyst.utils.technical_indicators import calculate_atr_ratio

MIN_HISTORY_BARS = 120
SCAN_BARS = 80
MAX_BASE_LOOKAHEAD = 40
BASE_LENGTHS = (15, 20, 25, 30, 12, 10)  # first fit wins
PRE_VOLUME_BARS = 50


@dataclass
class PowerPlayThresholds:
    explosive_pct_min: float = 100.0
    explosive_lookback_days: int = 40
    explosive_vol_mult: float = 2.0
    base_min_days: int = 15
    base_max_days: int = 30
    base_min_alt_days: int = 10
    correction_max_pct: float = 20.0
    correction_max_pct_low_price: float = 25.0
    low_price_threshold: float = 20.0
    no_tight_needed_pct: float = 10.0
    tight_atr_pct_max: float = 0.03
    pre_quiet_atr_pct_max: float = 0.03
    pre_quiet_days: int = 20


DEFAULT_THRESHOLDS = PowerPlayThresholds()


@dataclass
class ExplosiveMove:
    start_index: int
    end_index: int
    start_date: date
    end_date: date
    return_pct: float
    vol_mult: float | None
    pre_quiet: bool | None


@dataclass
class ConsolidationBase:
    start_index: int
    end_index: int
    start_date: date
    end_date: date
    days: int
    correction_pct: float
    is_low_price: bool
    tight_ok: bool
    high: float


@dataclass
class PowerPlayTrigger:
    breakout: bool
    last_close: float
    base_high: float


@dataclass
class PowerPlayPattern:
    """Result of a power play scan."""
    qualifies: bool
    reasons: list[str]
    explosive: ExplosiveMove
    base: ConsolidationBase
    trigger: PowerPlayTrigger
    thresholds: PowerPlayThresholds = field(default_factory=PowerPlayThresholds)


def find_explosive_move(
    series: PriceSeries, thresholds: PowerPlayThresholds = DEFAULT_THRESHOLDS
) -> ExplosiveMove | None:
    """Find the explosive window in the trailing 80 bars.

    Windows are scanned from the oldest candidate forwards and the first one
    returning at least ``explosive_pct_min`` is taken, so this returns the
    earliest qualifying window, not the most recent or the strongest one.
    """
    closes, volumes = series.closes, series.volumes
    n = len(series)
    span = thresholds.explosive_lookback_days

    for i in range(max(0, n - SCAN_BARS), n - span + 1):
        j = i + span - 1
        first, last = float(closes[i]), float(closes[j])
        if not first > 0:
            continue
        return_pct = (last / first - 1) * 100
        if return_pct < thresholds.explosive_pct_min:
            continue

        window_volume = float(np.mean(volumes[i : j + 1]))
        pre_volumes = volumes[max(0, i - PRE_VOLUME_BARS) : i]
        pre_volume = float(np.mean(pre_volumes)) if len(pre_volumes) else None
        vol_mult = window_volume / pre_volume if pre_volume else None

        # Quiet before the move: ATR/close over the bars leading into it
        pre_end = max(1, i)
        pre_start = max(1, pre_end - thresholds.pre_quiet_days)
        quiet = series.slice(pre_start - 1, pre_end)
        pre_atr_pct = calculate_atr_ratio(quiet.highs, quiet.lows, quiet.closes, period=len(quiet))
        pre_quiet = pre_atr_pct <= thresholds.pre_quiet_atr_pct_max if pre_atr_pct is not None else None

        return ExplosiveMove(
            start_index=i,
            end_index=j,
            start_date=series.dates[i],
            end_date=series.dates[j],
            return_pct=return_pct,
            vol_mult=vol_mult,
            pre_quiet=pre_quiet,
        )
    return None


def correction_limit(last_close: float, thresholds: PowerPlayThresholds = DEFAULT_THRESHOLDS) -> float:
    """Maximum base correction in percent; low-priced stocks get more room."""
    if last_close < thresholds.low_price_threshold:
        return thresholds.correction_max_pct_low_price
    return thresholds.correction_max_pct


def find_consolidation_base(
    series: PriceSeries, start: int, thresholds: PowerPlayThresholds = DEFAULT_THRESHOLDS
) -> ConsolidationBase | None:
    """Find the first base length that fits, starting at bar ``start``.

    Lengths are tried in the order 15, 20, 25, 30, 12, 10 and skipped when
    they do not fit into the next 40 bars. A base fits when its high-low
    range is within the correction limit and, for ranges above 10%, its
    ATR/close is at most 3%.

    Returns:
        ConsolidationBase, or None when no length fits
    """
    max_look = min(len(series) - start, MAX_BASE_LOOKAHEAD)
    if max_look <= 0:
        return None

    for length in BASE_LENGTHS:
        if length > max_look:
            continue
        segment = series.slice(start, start + length)
        high = float(np.max(segment.highs))
        low = float(np.min(segment.lows))
        if not high > 0:
            continue

        correction_pct = (high - low) / high * 100
        last_close = float(segment.closes[-1])
        is_low_price = last_close < thresholds.low_price_threshold
        correction_ok = correction_pct <= correction_limit(last_close, thresholds)

        tight_ok = True
        if correction_pct > thresholds.no_tight_needed_pct:
            atr_pct = calculate_atr_ratio(
                segment.highs, segment.lows, segment.closes, period=len(segment)
            )
            if atr_pct is not None:
                tight_ok = atr_pct <= thresholds.tight_atr_pct_max

        if correction_ok and tight_ok:
            return ConsolidationBase(
                start_index=start,
                end_index=start + length - 1,
                start_date=segment.dates[0],
                end_date=segment.dates[-1],
                days=length,
                correction_pct=correction_pct,
                is_low_price=is_low_price,
                tight_ok=tight_ok,
                high=high,
            )
    return None


def analyze_power_play(
    series: PriceSeries, thresholds: PowerPlayThresholds = DEFAULT_THRESHOLDS
) -> PowerPlayPattern | None:
    """Detect a power play setup.

    Args:
        series: Full price series
        thresholds: Detection thresholds

    Returns:
        PowerPlayPattern, or None when history is shorter than 120 bars, no
        explosive move exists, or no base fits after it
    """
    if len(series) < MIN_HISTORY_BARS:
        return None

    move = find_explosive_move(series, thresholds)
    if move is None:
        return None

    base = find_consolidation_base(series, move.end_index + 1, thresholds)
    if base is None:
        return None

    last_close = float(series.closes[-1])
    limit = (
        thresholds.correction_max_pct_low_price if base.is_low_price else thresholds.correction_max_pct
    )

    checks = [
        (
            move.vol_mult is not None and move.vol_mult < thresholds.explosive_vol_mult,
            f"Explosive move volume is too low ({move.vol_mult or 0.0:.2f}x < "
            f"{thresholds.explosive_vol_mult}x)",
        ),
        (
            base.days < thresholds.base_min_alt_days,
            f"Base is too short ({base.days} < {thresholds.base_min_alt_days} days)",
        ),
        (
            base.days > thresholds.base_max_days,
            f"Base is too long ({base.days} > {thresholds.base_max_days} days)",
        ),
        (
            base.correction_pct > limit,
            f"Base correction of {base.correction_pct:.1f}% exceeds the limit (>{limit:g}%)",
        ),
    ]
    failed = [message for failing, message in checks if failing]
    qualifies = move.return_pct >= thresholds.explosive_pct_min and not failed

    return PowerPlayPattern(
        qualifies=qualifies,
        reasons=failed,
        explosive=move,
        base=base,
        trigger=PowerPlayTrigger(
            breakout=last_close > base.high,
            last_close=last_close,
            base_high=base.high,
        ),
        thresholds=thresholds,
    )
