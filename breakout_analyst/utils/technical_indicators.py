"""Volatility helpers shared by the pivot, cup and power-play analyzers.

True range and ATR are computed with pandas, following the same approach as
the rolling indicator utilities elsewhere in the package.
"""
import numpy as np
import pandas as pd
from numpy.typing import NDArray


def calculate_true_range(
    highs: list[float] | NDArray[np.float64],
    lows: list[float] | NDArray[np.float64],
    closes: list[float] | NDArray[np.float64],
) -> pd.Series:
    """Calculate the per-bar True Range.

    True Range = max(high - low, |high - prev_close|, |low - prev_close|)

    The first bar has no previous close, so its True Range is NaN.

    Args:
        highs: High prices (oldest to newest)
        lows: Low prices (oldest to newest)
        closes: Closing prices (oldest to newest)

    Returns:
        Series of True Range values aligned with the input bars
    """
    data = pd.DataFrame({"High": highs, "Low": lows, "Close": closes}, dtype=float)
    prev_close = data["Close"].shift()
    high_low = data["High"] - data["Low"]
    high_close = (data["High"] - prev_close).abs()
    low_close = (data["Low"] - prev_close).abs()
    true_range = pd.concat([high_low, high_close, low_close], axis=1).max(axis=1)
    true_range[prev_close.isna()] = np.nan
    return true_range


def calculate_atr_ratio(
    highs: list[float] | NDArray[np.float64],
    lows: list[float] | NDArray[np.float64],
    closes: list[float] | NDArray[np.float64],
    period: int = 14,
) -> float | None:
    """Calculate the latest simple ATR as a fraction of the latest close.

    ATR here is the plain mean of the last ``period`` defined True Range
    values (fewer when the slice is shorter), not Wilder's smoothing.

    Args:
        highs: High prices (oldest to newest)
        lows: Low prices (oldest to newest)
        closes: Closing prices (oldest to newest)
        period: ATR period (default 14)

    Returns:
        ATR / close (e.g. 0.025 for 2.5%), or None if fewer than two bars,
        no defined True Range, or a non-positive close
    """
    if len(closes) < 2:
        return None

    true_range = calculate_true_range(highs, lows, closes).dropna().tail(period)
    if true_range.empty:
        return None

    atr = float(true_range.mean())
    last_close = float(closes[-1])
    if pd.isna(atr) or not last_close > 0:
        return None

    return atr / last_close
