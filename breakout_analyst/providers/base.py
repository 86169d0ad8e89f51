"""Collaborator interfaces for market data and relative-strength ratings.

The analysis engine never fetches anything itself. A service wires one bar
provider (and optionally a rating provider) to the engine.
"""
from abc import ABC, abstractmethod

from breakout_analyst.indicators.relative_strength import ProviderRating
from breakout_analyst.schemas.bars import Bar


class DailyBarProviderInterface(ABC):
    """
    Abstract interface for daily bar sources.

    Implementations distinguish three outcomes: bars, "no data" (an empty
    list) and failures (SymbolNotFoundError, RateLimitError).
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of this provider (e.g., 'in_memory')."""
        pass

    @abstractmethod
    async def fetch_daily_bars(self, symbol: str, limit: int) -> list[Bar]:
        """
        Fetch the most recent daily bars for a symbol.

        Args:
            symbol: Normalized ticker symbol (e.g., 'AAPL')
            limit: Maximum number of trailing bars to return

        Returns:
            Date-ascending bars, at most ``limit`` of them; empty when the
            source has no data for the symbol

        Raises:
            SymbolNotFoundError: If the symbol is unknown to the source
            RateLimitError: If the source throttles the request
        """
        pass


class RelativeStrengthProviderInterface(ABC):
    """Abstract interface for external relative-strength ratings."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of this provider."""
        pass

    @abstractmethod
    async def get_rating(self, symbol: str) -> ProviderRating | None:
        """
        Get the current rating for a symbol.

        Returns:
            ProviderRating, or None when the provider has no rating
        """
        pass
