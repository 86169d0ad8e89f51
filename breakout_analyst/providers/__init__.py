"""Data collaborator abstractions and implementations.

Available providers:
- InMemoryBarProvider: Pre-loaded daily bars for tests and local runs
- StaticRatingProvider: Fixed relative-strength ratings
"""

from breakout_analyst.providers.base import (
    DailyBarProviderInterface,
    RelativeStrengthProviderInterface,
)
from breakout_analyst.providers.mock import InMemoryBarProvider, StaticRatingProvider

__all__ = [
    "DailyBarProviderInterface",
    "RelativeStrengthProviderInterface",
    "InMemoryBarProvider",
    "StaticRatingProvider",
]
