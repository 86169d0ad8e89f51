"""Pattern analyzers for Breakout Analyst.

This package holds the deterministic analysis engine: series primitives,
the 8-point trend template, VCP detection with its pivot, the cheat and low
cheat cup setups, and the power play.

Available analyzers:
- Trend template and MA20/MA50 signal
- Volatility contraction pattern (VCP)
- Pivot and buy zone
- Cup cheat setups (standard and low)
- Power play
- Relative strength merge
"""

from .analysis import AnalysisReport, AnalyzerType, analyze, analyze_series
from .cup import (
    LOW_CHEAT,
    STANDARD_CHEAT,
    BuyZone,
    CupPattern,
    CupVariant,
    analyze_cheat_setup,
    analyze_cup,
    analyze_low_cheat,
)
from .pivot import PivotResult, analyze_pivot
from .power_play import PowerPlayPattern, analyze_power_play
from .relative_strength import (
    ProviderRating,
    RelativeStrength,
    apply_relative_strength,
)
from .technical import (
    consecutive_rising_count,
    percentile_rank,
    period_return,
    simple_moving_average,
)
from .trend_template import (
    CriterionResult,
    SignalDirection,
    TrendIndicators,
    evaluate_trend_template,
)
from .vcp import ContractionLeg, VcpResult, analyze_vcp

__all__ = [
    # Engine
    "AnalysisReport",
    "AnalyzerType",
    "analyze",
    "analyze_series",
    # Series primitives
    "consecutive_rising_count",
    "percentile_rank",
    "period_return",
    "simple_moving_average",
    # Trend template
    "CriterionResult",
    "SignalDirection",
    "TrendIndicators",
    "evaluate_trend_template",
    # VCP and pivot
    "ContractionLeg",
    "VcpResult",
    "analyze_vcp",
    "PivotResult",
    "analyze_pivot",
    # Cup setups
    "BuyZone",
    "CupPattern",
    "CupVariant",
    "LOW_CHEAT",
    "STANDARD_CHEAT",
    "analyze_cup",
    "analyze_cheat_setup",
    "analyze_low_cheat",
    # Power play
    "PowerPlayPattern",
    "analyze_power_play",
    # Relative strength
    "ProviderRating",
    "RelativeStrength",
    "apply_relative_strength",
]
