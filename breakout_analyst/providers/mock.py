"""In-memory providers for tests and local runs.

Serve pre-loaded bars and ratings without touching any external API. Failures
can be scripted per symbol to exercise the service's error paths.
"""
from collections.abc import Mapping, Sequence

from breakout_analyst.core.exceptions import DataSourceError, SymbolNotFoundError
from breakout_analyst.indicators.relative_strength import ProviderRating
from breakout_analyst.providers.base import (
    DailyBarProviderInterface,
    RelativeStrengthProviderInterface,
)
from breakout_analyst.schemas.bars import Bar
from breakout_analyst.utils.structured_logging import get_logger

logger = get_logger(__name__)


class InMemoryBarProvider(DailyBarProviderInterface):
    """
    Bar provider backed by a symbol -> bars mapping.

    Unknown symbols raise SymbolNotFoundError. Symbols listed in ``errors``
    raise the given exception instead, e.g. ``{"SPY": RateLimitError("...")}``.
    """

    def __init__(
        self,
        bars_by_symbol: Mapping[str, Sequence[Bar]],
        errors: Mapping[str, DataSourceError] | None = None,
    ):
        self._bars = {symbol.upper(): list(bars) for symbol, bars in bars_by_symbol.items()}
        self._errors = dict(errors or {})
        self.calls: list[str] = []

    @property
    def provider_name(self) -> str:
        return "in_memory"

    async def fetch_daily_bars(self, symbol: str, limit: int) -> list[Bar]:
        """Return the trailing ``limit`` bars for ``symbol``."""
        self.calls.append(symbol)
        if symbol in self._errors:
            raise self._errors[symbol]
        if symbol not in self._bars:
            raise SymbolNotFoundError(f"Symbol '{symbol}' not found")

        bars = self._bars[symbol][-limit:] if limit > 0 else []
        logger.debug("bars_served", symbol=symbol, count=len(bars))
        return bars


class StaticRatingProvider(RelativeStrengthProviderInterface):
    """Rating provider returning fixed ratings; None for unknown symbols."""

    def __init__(self, ratings: Mapping[str, ProviderRating]):
        self._ratings = {symbol.upper(): rating for symbol, rating in ratings.items()}

    @property
    def provider_name(self) -> str:
        return "static"

    async def get_rating(self, symbol: str) -> ProviderRating | None:
        return self._ratings.get(symbol)
