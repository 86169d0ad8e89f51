"""Analysis service: fetch bars, run the engine, merge relative strength.

This is the orchestration layer around the pure engine. It handles:
- Symbol normalization and validation
- Fetching the symbol's daily bars from the injected provider
- Running ``analyze`` on them
- Merging relative strength from a rating provider, a peer pool and the
  configured benchmark, in that order
- Concurrent analysis of many symbols

Failures for the analyzed symbol itself propagate. Failures while fetching
relative-strength inputs (peers, benchmark, rating) are logged and that
source is skipped.
"""
import asyncio
from collections.abc import Sequence

from breakout_analyst.core.config import Settings, get_settings
from breakout_analyst.core.exceptions import DataSourceError, DataValidationError
from breakout_analyst.indicators.analysis import AnalysisReport, analyze_series
from breakout_analyst.indicators.relative_strength import ProviderRating, apply_relative_strength
from breakout_analyst.providers.base import (
    DailyBarProviderInterface,
    RelativeStrengthProviderInterface,
)
from breakout_analyst.schemas.bars import PriceSeries, parse_bars
from breakout_analyst.utils.structured_logging import get_logger, symbol_context
from breakout_analyst.utils.validation import clean_symbol

logger = get_logger(__name__)


class AnalysisService:
    """
    Runs the analysis engine for symbols served by a bar provider.

    Two operational modes:
    1. With a rating provider: provider ratings are the first RS source
    2. Without: RS comes from peers (when given) and the benchmark only
    """

    def __init__(
        self,
        bar_provider: DailyBarProviderInterface,
        rating_provider: RelativeStrengthProviderInterface | None = None,
        settings: Settings | None = None,
    ):
        """
        Initialize AnalysisService with its collaborators.

        Args:
            bar_provider: Source of daily bars
            rating_provider: Optional source of provider RS ratings
            settings: Settings (uses cached application settings if None)
        """
        self.bar_provider = bar_provider
        self.rating_provider = rating_provider
        self.settings = settings or get_settings()

    async def _fetch_series(self, symbol: str) -> PriceSeries:
        bars = await self.bar_provider.fetch_daily_bars(symbol, self.settings.history_bars)
        if not bars:
            raise DataValidationError(f"No price data available for {symbol}")
        return PriceSeries.from_bars(parse_bars(bars))

    async def _fetch_rating(self, symbol: str) -> ProviderRating | None:
        if self.rating_provider is None:
            return None
        try:
            return await self.rating_provider.get_rating(symbol)
        except DataSourceError as e:
            logger.warning("rating_fetch_failed", provider=self.rating_provider.provider_name, error=str(e))
            return None

    def _clean_peers(self, peers: Sequence[str]) -> list[str]:
        """Normalize peer symbols, skipping blanks, duplicates and invalid ones."""
        cleaned: dict[str, None] = {}
        for peer in peers:
            if not peer or not peer.strip():
                continue
            try:
                cleaned.setdefault(clean_symbol(peer), None)
            except DataValidationError as e:
                logger.warning("peer_symbol_invalid", peer=peer, error=str(e))
        return list(cleaned)

    async def _fetch_peer_closes(self, symbol: str, peers: list[str]) -> dict[str, list[float]]:
        peer_closes: dict[str, list[float]] = {}
        for peer in peers:
            if peer == symbol:
                continue
            try:
                series = await self._fetch_series(peer)
            except (DataSourceError, DataValidationError) as e:
                logger.warning("peer_fetch_failed", peer=peer, error=str(e))
                continue
            peer_closes[peer] = series.closes.tolist()
        return peer_closes

    async def _fetch_benchmark(self) -> PriceSeries | None:
        benchmark = self.settings.benchmark_symbol
        try:
            return await self._fetch_series(benchmark)
        except (DataSourceError, DataValidationError) as e:
            logger.warning("benchmark_fetch_failed", benchmark=benchmark, error=str(e))
            return None

    async def analyze_symbol(self, symbol: str, peers: Sequence[str] | None = None) -> AnalysisReport:
        """
        Analyze one symbol and merge its relative strength.

        Args:
            symbol: Ticker symbol (any case, surrounding whitespace allowed)
            peers: Optional peer symbols for the percentile RS proxy

        Returns:
            AnalysisReport with the ``rs`` section filled where data allowed

        Raises:
            DataValidationError: If the symbol is invalid or has no price data
            SymbolNotFoundError: If the bar provider does not know the symbol
            RateLimitError: If the bar provider throttles the symbol's request
        """
        symbol = clean_symbol(symbol)

        with symbol_context(symbol):
            peer_symbols = self._clean_peers(peers or [])
            series = await self._fetch_series(symbol)
            logger.info("bars_fetched", provider=self.bar_provider.provider_name, bars=len(series))

            report = analyze_series(series)

            rating = await self._fetch_rating(symbol)
            peer_closes = await self._fetch_peer_closes(symbol, peer_symbols) if peer_symbols else None
            benchmark = await self._fetch_benchmark() if symbol != self.settings.benchmark_symbol else None

            report = apply_relative_strength(
                report,
                series,
                rating=rating,
                peer_closes=peer_closes,
                benchmark=benchmark,
                benchmark_symbol=self.settings.benchmark_symbol,
                lookback_days=self.settings.rs_lookback_days,
                min_pool_size=self.settings.rs_min_pool_size,
                min_aligned_bars=self.settings.rs_min_aligned_bars,
            )

            logger.info(
                "symbol_analyzed",
                signal=report.signal.value,
                rs_source=report.rs.source,
                is_vcp=report.vcp.is_vcp,
            )
            return report

    async def analyze_many(
        self, symbols: Sequence[str], peers: Sequence[str] | None = None
    ) -> dict[str, AnalysisReport | Exception]:
        """
        Analyze many symbols concurrently.

        At most ``settings.analysis_concurrency`` symbols are in flight at a
        time. A failing symbol does not cancel the others.

        Returns:
            Mapping of each input symbol to its report or the raised exception
        """
        semaphore = asyncio.Semaphore(max(1, self.settings.analysis_concurrency))

        async def _bounded(symbol: str) -> AnalysisReport:
            async with semaphore:
                return await self.analyze_symbol(symbol, peers)

        results = await asyncio.gather(*(_bounded(s) for s in symbols), return_exceptions=True)

        outcome: dict[str, AnalysisReport | Exception] = {}
        for symbol, result in zip(symbols, results):
            if isinstance(result, Exception):
                logger.warning("symbol_analysis_failed", symbol=symbol, error=str(result))
            outcome[symbol] = result
        return outcome
