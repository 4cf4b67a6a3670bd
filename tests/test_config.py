"""Tests for configuration loading and validation."""

import pytest

from token_risk.config import (
    CacheSettings,
    LoggingSettings,
    ScoringSettings,
    Settings,
    get_settings,
    load_from_env,
)
from token_risk.errors import ConfigurationError


class TestLoadFromEnv:
    """Test suite for load_from_env."""

    def test_defaults(self):
        settings = load_from_env()
        assert settings.scoring.CRITICAL_FLOOR == 75
        assert settings.scoring.MEDIUM_THRESHOLD == 30
        assert settings.cache.TTL_OVERRIDES == {}
        assert settings.logging.LOG_LEVEL == "INFO"

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("TOKEN_RISK_MIN_LIQUIDITY_USD", "25000")
        monkeypatch.setenv("TOKEN_RISK_CRITICAL_FLOOR_COUNT", "4")
        monkeypatch.setenv("TOKEN_RISK_OPTIONAL_FIELD_PENALTY", "1.5")
        monkeypatch.setenv("TOKEN_RISK_LOG_LEVEL", "debug")
        monkeypatch.setenv("TOKEN_RISK_LOG_JSON", "false")
        settings = load_from_env()
        assert settings.scoring.MIN_LIQUIDITY_USD == 25_000
        assert settings.scoring.CRITICAL_FLOOR_COUNT == 4
        assert settings.scoring.OPTIONAL_FIELD_PENALTY == 1.5
        assert settings.logging.LOG_LEVEL == "DEBUG"
        assert settings.logging.LOG_JSON is False

    def test_ttl_overrides(self, monkeypatch):
        monkeypatch.setenv("TOKEN_RISK_TTL_HOLDER_HISTORY", "120")
        assert load_from_env().cache.TTL_OVERRIDES == {"holder_history": 120.0}

    def test_bad_number(self, monkeypatch):
        monkeypatch.setenv("TOKEN_RISK_CACHE_SHARDS", "many")
        with pytest.raises(ConfigurationError):
            load_from_env()


class TestValidation:
    """Test suite for settings validation."""

    def test_defaults_are_valid(self):
        Settings().validate()

    @pytest.mark.parametrize("settings", [
        ScoringSettings(MIN_LIQUIDITY_USD=0),
        ScoringSettings(CRITICAL_FLOOR=120),
        ScoringSettings(CRITICAL_FLOOR_COUNT=0),
        ScoringSettings(MEDIUM_THRESHOLD=70, HIGH_THRESHOLD=60),
        ScoringSettings(MIN_CONFIDENCE=0),
        ScoringSettings(OPTIONAL_FIELD_PENALTY=0),
        CacheSettings(CACHE_SHARDS=0),
        CacheSettings(TTL_OVERRIDES={"trade_pattern": -1}),
        LoggingSettings(LOG_LEVEL="LOUD"),
    ])
    def test_invalid(self, settings):
        with pytest.raises(ConfigurationError):
            settings.validate()


class TestGetSettings:
    """Test suite for get_settings."""

    def test_cached(self):
        assert get_settings() is get_settings()

    def test_invalid_environment(self, monkeypatch):
        monkeypatch.setenv("TOKEN_RISK_CRITICAL_THRESHOLD", "10")
        with pytest.raises(ConfigurationError):
            get_settings()
