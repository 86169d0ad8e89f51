"""Core exception classes for the Breakout Analyst engine."""


class AnalysisError(Exception):
    """Base exception for analysis operations."""

    pass


class DataValidationError(AnalysisError):
    """Raised when the input bar series fails validation."""

    pass


class DataSourceError(AnalysisError):
    """Base exception for market data collaborator failures."""

    pass


class SymbolNotFoundError(DataSourceError):
    """Raised when a stock symbol is not known to the data source."""

    pass


class RateLimitError(DataSourceError):
    """Raised when the data source throttles requests."""

    pass
