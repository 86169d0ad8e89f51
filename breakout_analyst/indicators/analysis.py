"""Analysis engine: runs every analyzer over one bar series.

``analyze`` is the single entry point. Input validation is the only
call-level failure; each pattern analyzer runs behind a guard that logs an
unexpected error and substitutes the analyzer's empty result, so one
failing analyzer never takes the others down.
"""

from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from breakout_analyst.indicators.cup import CupPattern, analyze_cheat_setup, analyze_low_cheat
from breakout_analyst.indicators.pivot import PivotResult, analyze_pivot
from breakout_analyst.indicators.power_play import PowerPlayPattern, analyze_power_play
from breakout_analyst.indicators.relative_strength import RelativeStrength
from breakout_analyst.indicators.trend_template import (
    CriterionResult,
    SignalDirection,
    TrendIndicators,
    compute_trend_indicators,
    detect_ma_crossover_signal,
    evaluate_trend_template,
)
from breakout_analyst.indicators.vcp import VcpResult, analyze_vcp
from breakout_analyst.schemas.bars import PriceSeries, parse_bars
from breakout_analyst.utils.structured_logging import get_logger

logger = get_logger(__name__)


class AnalyzerType(str, Enum):
    """Pattern analyzers run by the engine."""

    VCP = "vcp"
    CHEAT = "cheat"
    CHEAT_LOW = "cheat_low"
    POWER_PLAY = "power_play"


# Analyzer -> (function, factory for the empty result)
ANALYZER_REGISTRY: dict[AnalyzerType, tuple[Callable[[PriceSeries], Any], Callable[[], Any]]] = {
    AnalyzerType.VCP: (analyze_vcp, VcpResult),
    AnalyzerType.CHEAT: (analyze_cheat_setup, lambda: None),
    AnalyzerType.CHEAT_LOW: (analyze_low_cheat, lambda: None),
    AnalyzerType.POWER_PLAY: (analyze_power_play, lambda: None),
}


@dataclass
class AnalysisReport:
    """Aggregate result; every section is always present."""

    indicators: TrendIndicators
    signal: SignalDirection
    reasons: list[str]
    criteria: list[CriterionResult]
    rs: RelativeStrength = field(default_factory=RelativeStrength)
    vcp: VcpResult = field(default_factory=VcpResult)
    pivot: PivotResult | None = None
    cheat: CupPattern | None = None
    cheat_low: CupPattern | None = None
    power_play: PowerPlayPattern | None = None

    def to_dict(self) -> dict[str, Any]:
        """Plain dict with enum values and ISO dates, ready for JSON."""
        return _plain(asdict(self))


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


def run_analyzer(analyzer_type: AnalyzerType, series: PriceSeries) -> Any:
    """Run one registered analyzer, falling back to its empty result on error."""
    analyzer, empty = ANALYZER_REGISTRY[analyzer_type]
    try:
        return analyzer(series)
    except Exception as e:
        logger.warning(
            "analyzer_failed",
            analyzer=analyzer_type.value,
            error=str(e),
            error_type=type(e).__name__,
        )
        return empty()


def analyze_series(series: PriceSeries) -> AnalysisReport:
    """Analyze an already validated, non-empty price series."""
    indicators = compute_trend_indicators(series)
    signal, reasons = detect_ma_crossover_signal(indicators)
    criteria = evaluate_trend_template(series, indicators)

    vcp = run_analyzer(AnalyzerType.VCP, series)
    try:
        pivot = analyze_pivot(series, vcp)
    except Exception as e:
        logger.warning("analyzer_failed", analyzer="pivot", error=str(e), error_type=type(e).__name__)
        pivot = None

    report = AnalysisReport(
        indicators=indicators,
        signal=signal,
        reasons=reasons,
        criteria=criteria,
        vcp=vcp,
        pivot=pivot,
        cheat=run_analyzer(AnalyzerType.CHEAT, series),
        cheat_low=run_analyzer(AnalyzerType.CHEAT_LOW, series),
        power_play=run_analyzer(AnalyzerType.POWER_PLAY, series),
    )

    logger.debug(
        "analysis_completed",
        bars=len(series),
        signal=signal.value,
        is_vcp=vcp.is_vcp,
        has_pivot=pivot is not None,
    )
    return report


def analyze(bars: Any) -> AnalysisReport:
    """Analyze a daily bar series.

    Args:
        bars: Date-ascending sequence of ``Bar`` objects or bar mappings

    Returns:
        AnalysisReport with every section filled or set to its empty result

    Raises:
        DataValidationError: If ``bars`` is not a non-empty sequence of valid bars
    """
    series = PriceSeries.from_bars(parse_bars(bars))
    return analyze_series(series)
