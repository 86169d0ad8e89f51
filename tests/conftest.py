"""Shared pytest fixtures.

Environment variables are set before any package import so Settings picks
up the test configuration.
"""
import os

os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest

from breakout_analyst.core.config import Settings, get_settings
from breakout_analyst.schemas.bars import Bar, PriceSeries
from breakout_analyst.utils.structured_logging import configure_structured_logging
from tests.utils.mock_data import MockBarGenerator


@pytest.fixture(scope="session", autouse=True)
def configure_logging() -> None:
    """Configure structured logging once for the whole test session."""
    configure_structured_logging(log_level="WARNING", json_logs=True)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test see fresh settings."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def test_settings() -> Settings:
    return Settings(environment="test", log_level="WARNING", analysis_concurrency=2)


@pytest.fixture
def flat_bars() -> list[Bar]:
    """300 identical bars at 100 with volume 1000."""
    return MockBarGenerator.flat_bars()


@pytest.fixture
def rising_bars() -> list[Bar]:
    """300 bars rising linearly from 50 to 150."""
    return MockBarGenerator.bars_from_closes(MockBarGenerator.rising_closes())


@pytest.fixture
def vcp_series() -> PriceSeries:
    return MockBarGenerator.series(MockBarGenerator.bars_from_closes(MockBarGenerator.vcp_closes()))


@pytest.fixture
def cheat_series() -> PriceSeries:
    return MockBarGenerator.series(MockBarGenerator.bars_from_closes(MockBarGenerator.cheat_closes()))


@pytest.fixture
def low_cheat_series() -> PriceSeries:
    return MockBarGenerator.series(
        MockBarGenerator.bars_from_closes(MockBarGenerator.low_cheat_closes())
    )


@pytest.fixture
def power_play_series() -> PriceSeries:
    return MockBarGenerator.series(MockBarGenerator.bars_from_rows(MockBarGenerator.power_play_rows()))
