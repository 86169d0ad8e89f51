"""Daily bar schema and the column view the analyzers work on.

``Bar`` is the single external input of the engine. ``parse_bars`` is the
only place input validation happens; everything downstream assumes a valid,
date-ascending series.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
import datetime as dt
from typing import Any

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from breakout_analyst.core.exceptions import DataValidationError


class Bar(BaseModel):
    """One daily OHLCV session.

    Frozen and strict about extra fields so a bar never changes after it
    enters the engine.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    date: dt.date
    open: float = Field(..., gt=0, allow_inf_nan=False, description="Opening price")
    high: float = Field(..., gt=0, allow_inf_nan=False, description="Session high")
    low: float = Field(..., gt=0, allow_inf_nan=False, description="Session low")
    close: float = Field(..., gt=0, allow_inf_nan=False, description="Closing price")
    volume: int = Field(..., ge=0, description="Shares traded")


def parse_bars(raw: Any) -> list[Bar]:
    """Validate raw input into a list of bars.

    Args:
        raw: Sequence of ``Bar`` instances or mappings with bar fields

    Returns:
        List of validated bars in input order

    Raises:
        DataValidationError: If input is not a sequence, is empty, or holds an invalid bar
    """
    if isinstance(raw, (str, bytes, Mapping)) or not isinstance(raw, Sequence):
        raise DataValidationError("Bar series must be a sequence of bars")

    if len(raw) == 0:
        raise DataValidationError("Bar series cannot be empty")

    bars: list[Bar] = []
    for index, item in enumerate(raw):
        if isinstance(item, Bar):
            bars.append(item)
            continue
        try:
            bars.append(Bar.model_validate(item))
        except ValidationError as e:
            raise DataValidationError(f"Invalid bar at index {index}: {e}") from e

    return bars


@dataclass(frozen=True)
class PriceSeries:
    """Column-oriented OHLCV arrays for a date-ascending bar series."""

    dates: tuple[dt.date, ...]
    opens: NDArray[np.float64]
    highs: NDArray[np.float64]
    lows: NDArray[np.float64]
    closes: NDArray[np.float64]
    volumes: NDArray[np.float64]

    @classmethod
    def from_bars(cls, bars: Sequence[Bar]) -> "PriceSeries":
        """Build the column view from validated bars."""
        return cls(
            dates=tuple(b.date for b in bars),
            opens=np.array([b.open for b in bars], dtype=float),
            highs=np.array([b.high for b in bars], dtype=float),
            lows=np.array([b.low for b in bars], dtype=float),
            closes=np.array([b.close for b in bars], dtype=float),
            volumes=np.array([b.volume for b in bars], dtype=float),
        )

    def __len__(self) -> int:
        return len(self.closes)

    def slice(self, start: int, stop: int | None = None) -> "PriceSeries":
        """Return the bars in ``[start, stop)`` as a new series."""
        return PriceSeries(
            dates=self.dates[start:stop],
            opens=self.opens[start:stop].copy(),
            highs=self.highs[start:stop].copy(),
            lows=self.lows[start:stop].copy(),
            closes=self.closes[start:stop].copy(),
            volumes=self.volumes[start:stop].copy(),
        )

    def tail(self, count: int) -> "PriceSeries":
        """Return the trailing ``count`` bars (all bars when shorter)."""
        return self.slice(max(0, len(self) - count))
