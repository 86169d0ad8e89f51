"""Symbol validation utilities."""

from breakout_analyst.core.exceptions import DataValidationError

MAX_SYMBOL_LENGTH = 10


def is_valid_symbol(symbol: str) -> bool:
    """
    Validate stock/index symbol format.

    Allows alphanumerics plus periods (BRK.B), hyphens and a caret for
    index symbols (^GSPC).

    Args:
        symbol: The symbol to validate (should already be uppercase/stripped)

    Returns:
        True if symbol format is valid, False otherwise
    """
    if len(symbol) > MAX_SYMBOL_LENGTH:
        return False
    cleaned = symbol.replace("^", "").replace(".", "").replace("-", "")
    return cleaned.isalnum()


def normalize_symbol(symbol: str) -> str:
    """Uppercase and strip a symbol."""
    return symbol.upper().strip()


def clean_symbol(symbol: str) -> str:
    """
    Normalize and validate a symbol.

    Raises:
        DataValidationError: If the symbol is empty or has an invalid format
    """
    normalized = normalize_symbol(symbol or "")
    if not is_valid_symbol(normalized):
        raise DataValidationError(f"Invalid symbol format: {symbol!r}")
    return normalized
