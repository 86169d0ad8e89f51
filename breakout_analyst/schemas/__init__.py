"""Pydantic schemas for engine input validation.

This module exports the bar model and the column view built from it.
"""

from breakout_analyst.schemas.bars import Bar, PriceSeries, parse_bars

__all__ = [
    "Bar",
    "PriceSeries",
    "parse_bars",
]
