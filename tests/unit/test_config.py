"""Unit tests for application configuration.

Tests the Settings class in breakout_analyst.core.config, ensuring config
fields have correct default values and honor the environment.
"""
from breakout_analyst.core.config import Settings, get_settings


class TestSettingsDefaults:
    """Tests for Settings default values."""

    def test_market_data_defaults(self, monkeypatch) -> None:
        """Test market data config fields have correct defaults."""
        monkeypatch.delenv("HISTORY_BARS", raising=False)
        monkeypatch.delenv("BENCHMARK_SYMBOL", raising=False)
        settings = Settings()
        assert settings.history_bars == 260
        assert settings.benchmark_symbol == "SPY"

    def test_relative_strength_defaults(self) -> None:
        """Test relative-strength config fields have correct defaults."""
        settings = Settings()
        assert settings.rs_lookback_days == 126
        assert settings.rs_min_pool_size == 5
        assert settings.rs_min_aligned_bars == 30

    def test_concurrency_default(self) -> None:
        settings = Settings()
        assert settings.analysis_concurrency == 5

    def test_environment_flags(self) -> None:
        assert Settings(environment="development").is_development is True
        assert Settings(environment="Production").is_production is True
        assert Settings(environment="test").is_development is False


class TestSettingsEnvironment:
    """Tests for environment variable overrides."""

    def test_env_override_is_case_insensitive(self, monkeypatch) -> None:
        monkeypatch.setenv("benchmark_symbol", "QQQ")
        monkeypatch.setenv("ANALYSIS_CONCURRENCY", "9")
        settings = Settings()
        assert settings.benchmark_symbol == "QQQ"
        assert settings.analysis_concurrency == 9


class TestGetSettings:
    """Tests for get_settings() function."""

    def test_get_settings_returns_settings_instance(self) -> None:
        """Test that get_settings() returns a Settings instance."""
        get_settings.cache_clear()
        settings = get_settings()
        assert isinstance(settings, Settings)

    def test_get_settings_is_cached(self) -> None:
        get_settings.cache_clear()
        assert get_settings() is get_settings()
