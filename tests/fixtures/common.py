"""Common test fixtures for token risk engine tests.

This module provides fixtures that can be reused across different test modules.
"""

import os
from datetime import datetime, timezone

import pytest

from token_risk.analyzer import RiskAnalyzer
from token_risk.config import Settings, reset_settings
from token_risk.models.risk import DataQualityTracker
from token_risk.models.token import TokenData
from token_risk.services.cache_service import BehavioralCache

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable clock returning epoch seconds."""

    def __init__(self, start: float = FIXED_NOW.timestamp()):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Isolate tests from TOKEN_RISK_* variables and cached settings."""
    for key in list(os.environ):
        if key.startswith("TOKEN_RISK_"):
            monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def settings():
    """Default settings."""
    return Settings()


@pytest.fixture
def fake_clock():
    """Clock for cache TTL tests."""
    return FakeClock()


@pytest.fixture
def cache(fake_clock):
    """Empty behavioral cache driven by the fake clock."""
    return BehavioralCache(clock=fake_clock)


@pytest.fixture
def analyzer(settings, cache):
    """Analyzer with default settings, an isolated cache and a fixed clock."""
    return RiskAnalyzer(settings=settings, cache=cache, clock=lambda: FIXED_NOW)


@pytest.fixture
def tracker():
    """Fresh data quality tracker."""
    return DataQualityTracker()


@pytest.fixture
def scam_token_data():
    """A two-day-old honeypot with concentrated holders and thin liquidity."""
    return {
        "chain": "ethereum",
        "address": "0xScAm000000000000000000000000000000000001",
        "name": "Rug Token",
        "symbol": "RUG",
        "top10_holder_pct": 85,
        "liquidity_usd": 5_000,
        "market_cap": 50_000,
        "is_honeypot": True,
        "is_mintable": True,
        "owner_renounced": False,
        "age_days": 2,
    }


@pytest.fixture
def stablecoin_token_data():
    """A $50B stablecoin with deep liquidity."""
    return {
        "chain": "ethereum",
        "address": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        "name": "USD Coin",
        "symbol": "USDC",
        "market_cap": 50_000_000_000,
        "liquidity_usd": 900_000_000,
        "top10_holder_pct": 15,
        "is_honeypot": False,
        "owner_renounced": True,
        "age_days": 1800,
    }


@pytest.fixture
def complete_token_data():
    """A mid-cap token with every required field present."""
    return {
        "chain": "ethereum",
        "address": "0x1111111111111111111111111111111111111111",
        "name": "Example Network",
        "symbol": "EXN",
        "market_cap": 120_000_000,
        "fdv": 180_000_000,
        "liquidity_usd": 6_000_000,
        "volume_24h": 4_000_000,
        "total_supply": 1_000_000_000,
        "circulating_supply": 650_000_000,
        "max_supply": 1_000_000_000,
        "burned_supply": 20_000_000,
        "holder_count": 42_000,
        "top10_holder_pct": 38,
        "tx_count_24h": 3_500,
        "age_days": 700,
        "is_honeypot": False,
        "is_mintable": False,
        "owner_renounced": True,
        "buy_tax": 0,
        "sell_tax": 0,
    }


@pytest.fixture
def scam_token(scam_token_data):
    return TokenData(**scam_token_data)


@pytest.fixture
def stablecoin_token(stablecoin_token_data):
    return TokenData(**stablecoin_token_data)


@pytest.fixture
def complete_token(complete_token_data):
    return TokenData(**complete_token_data)
