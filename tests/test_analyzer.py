"""Tests for the end-to-end risk analysis."""

from datetime import timedelta

import pytest

from token_risk import analyze_risk
from token_risk.analyzer import RiskAnalyzer
from token_risk.errors import InvalidInputError
from token_risk.models.risk import RiskLevel
from token_risk.models.token import TokenData, TradePattern
from token_risk.services.cache_service import BehavioralCache, BehavioralDataClass

from tests.fixtures.common import FIXED_NOW


class TestScenarios:
    """Reference tokens with known outcomes."""

    def test_honeypot_rug_is_critical(self, analyzer, scam_token_data):
        result = analyzer.analyze_risk(scam_token_data)
        assert result.risk_level == RiskLevel.CRITICAL
        assert result.overall_risk_score >= 75
        assert result.override_applied
        assert "honeypot" in result.override_reason
        assert len(result.critical_flags) == 2

    def test_large_cap_honeypot_keeps_maximal_contract_control(self, analyzer, complete_token_data):
        data = {**complete_token_data, "market_cap": 2_000_000_000, "is_honeypot": True}
        result = analyzer.analyze_risk(data)
        assert result.breakdown["contract_control"] == 100
        assert any("Honeypot" in flag for flag in result.critical_flags)

    def test_large_stablecoin_is_low_risk(self, analyzer, stablecoin_token_data):
        result = analyzer.analyze_risk(stablecoin_token_data)
        assert result.risk_level == RiskLevel.LOW
        assert result.overall_risk_score < 30
        assert result.archetype == "STABLECOIN"
        assert result.critical_flags == []
        assert not result.override_applied
        assert len(result.positive_signals) >= 3

    def test_young_token_concentration_is_relaxed(self, analyzer):
        raw = {"address": "0xabc", "top10_holder_pct": 85, "liquidity_usd": 500_000}
        young = analyzer.analyze_risk({**raw, "age_days": 2})
        old = analyzer.analyze_risk({**raw, "age_days": 400})
        assert any("Top 10 holders" in flag for flag in young.warning_flags)
        assert any("Top 10 holders" in flag for flag in old.critical_flags)
        assert not any("Top 10 holders" in flag for flag in young.critical_flags)


class TestResultInvariants:
    """Properties that hold for every analysis."""

    def test_identical_input_identical_result(self, settings, fake_clock, complete_token_data):
        first = RiskAnalyzer(settings, BehavioralCache(clock=fake_clock), clock=lambda: FIXED_NOW)
        second = RiskAnalyzer(settings, BehavioralCache(clock=fake_clock), clock=lambda: FIXED_NOW)
        assert first.analyze_risk(complete_token_data) == second.analyze_risk(complete_token_data)

    def test_repeat_analysis_is_stable(self, analyzer, complete_token_data):
        assert analyzer.analyze_risk(complete_token_data) == analyzer.analyze_risk(complete_token_data)

    @pytest.mark.parametrize("data", [
        {},
        {"is_honeypot": True, "is_mintable": True, "owner_renounced": False,
         "freeze_authority_exists": True, "holder_count": 3, "age_days": 1000,
         "top10_holder_pct": 100, "liquidity_usd": 0, "market_cap": 90_000_000},
        {"market_cap": 900_000_000_000, "liquidity_usd": 50_000_000_000, "age_days": 5000},
    ])
    def test_scores_within_bounds(self, analyzer, data):
        result = analyzer.analyze_risk(data)
        assert 0 <= result.overall_risk_score <= 100
        assert 20 <= result.confidence_score <= 100
        assert 0.0 <= result.data_freshness <= 1.0

    def test_breakdown_lists_every_factor(self, analyzer, complete_token_data):
        result = analyzer.analyze_risk(complete_token_data)
        assert len(result.breakdown) == 10
        assert [f["name"] for f in result.factors] == list(result.breakdown)
        assert sum(f["weight"] for f in result.factors) == pytest.approx(100)

    def test_confidence_reflects_missing_data(self, analyzer, complete_token_data, scam_token_data):
        complete = analyzer.analyze_risk(complete_token_data)
        sparse = analyzer.analyze_risk(scam_token_data)
        # Only the three behavioral records are missing
        assert complete.confidence_score == 94
        assert sparse.confidence_score < complete.confidence_score
        assert "holder_count" in sparse.data_quality["missing"]

    def test_any_missing_field_lowers_confidence(self, analyzer, complete_token_data):
        complete = analyzer.analyze_risk(complete_token_data)
        without_burn = {k: v for k, v in complete_token_data.items() if k != "burned_supply"}
        reduced = analyzer.analyze_risk(without_burn)
        assert len(reduced.data_quality["missing"]) == len(complete.data_quality["missing"]) + 1
        assert reduced.confidence_score < complete.confidence_score

    def test_missing_data_never_raises(self, analyzer):
        result = analyzer.analyze_risk({"address": "0xdef"})
        assert result.breakdown["holder_concentration"] == 50
        assert result.confidence_score == 20


class TestInvalidInput:
    """Structurally invalid input is rejected."""

    def test_negative_value(self, analyzer):
        with pytest.raises(InvalidInputError) as exc_info:
            analyzer.analyze_risk({"market_cap": -5})
        assert "market_cap" in exc_info.value.fields

    def test_nan_value(self, analyzer):
        with pytest.raises(InvalidInputError):
            analyzer.analyze_risk({"liquidity_usd": float("nan")})

    def test_inconsistent_supply(self, analyzer):
        with pytest.raises(InvalidInputError):
            analyzer.analyze_risk({"total_supply": 100, "circulating_supply": 200})

    def test_not_a_mapping(self, analyzer):
        with pytest.raises(InvalidInputError):
            analyzer.analyze_risk(["not", "a", "token"])


class TestProfileSelection:
    """Archetype hints and metadata."""

    def test_default_heuristics(self, analyzer, complete_token_data):
        assert analyzer.analyze_risk(complete_token_data).archetype == "STANDARD"

    def test_explicit_profile(self, analyzer, complete_token_data):
        assert analyzer.analyze_risk(complete_token_data, profile="meme").archetype == "MEME"

    def test_metadata_name_used_for_classification(self, analyzer, complete_token_data):
        result = analyzer.analyze_risk(complete_token_data, metadata={"name": "Pepe", "request_id": "r-1"})
        assert result.archetype == "MEME"

    def test_profile_changes_weights(self, analyzer, complete_token_data):
        standard = analyzer.analyze_risk(complete_token_data, profile="STANDARD")
        meme = analyzer.analyze_risk(complete_token_data, profile="MEME")
        assert standard.breakdown == meme.breakdown
        assert standard.factors != meme.factors


class TestBehavioralCacheIntegration:
    """The analyzer reads and writes behavioral data through the cache."""

    def test_cached_history_fills_missing_data(self, analyzer, complete_token_data):
        baseline = analyzer.analyze_risk(complete_token_data)
        analyzer.cache.set(
            "ethereum",
            complete_token_data["address"],
            BehavioralDataClass.HOLDER_HISTORY,
            {"current": 600, "day_7_ago": 1000, "day_30_ago": 1000},
        )
        enriched = analyzer.analyze_risk(complete_token_data)
        assert baseline.breakdown["holder_velocity"] == 50
        assert enriched.breakdown["holder_velocity"] == 100
        assert enriched.overall_risk_score >= baseline.overall_risk_score

    def test_present_records_written_through(self, analyzer, complete_token_data):
        pattern = {"tx_count": 400, "unique_wallets": 250, "buyers": 140, "sellers": 110}
        first = analyzer.analyze_risk({**complete_token_data, "trade_pattern": pattern})
        cached = analyzer.cache.get(
            "ethereum", complete_token_data["address"], BehavioralDataClass.TRADE_PATTERN
        )
        assert isinstance(cached, TradePattern)
        second = analyzer.analyze_risk(complete_token_data)
        assert second.breakdown["wash_trading"] == first.breakdown["wash_trading"]

    def test_malformed_cached_value_ignored(self, analyzer, complete_token_data):
        analyzer.cache.set(
            "ethereum",
            complete_token_data["address"],
            BehavioralDataClass.HOLDER_HISTORY,
            {"current": -1},
        )
        assert analyzer.analyze_risk(complete_token_data).breakdown["holder_velocity"] == 50

    def test_chain_specific_data_only_for_matching_chain(self, analyzer, complete_token_data):
        baseline = analyzer.analyze_risk(complete_token_data)
        analyzer.cache.set(
            "ethereum",
            complete_token_data["address"],
            BehavioralDataClass.SOLANA_SECURITY,
            {"mint_authority": True},
        )
        assert analyzer.analyze_risk(complete_token_data) == baseline

    def test_token_without_address_skips_cache(self, analyzer):
        token = TokenData(holder_history={"current": 10})
        assert analyzer.enrich_from_cache(token) is token
        assert analyzer.cache.cached_tokens() == []


class TestFreshness:
    """Data freshness is measured against the analyzer clock."""

    def test_fresh_market_snapshot(self, analyzer, complete_token_data):
        data = {**complete_token_data, "fetched_at": FIXED_NOW - timedelta(seconds=60)}
        assert analyzer.analyze_risk(data).data_freshness == 1.0

    def test_stale_market_snapshot(self, analyzer, complete_token_data):
        data = {**complete_token_data, "fetched_at": FIXED_NOW - timedelta(hours=1)}
        assert analyzer.analyze_risk(data).data_freshness == 0.0

    def test_mixed_freshness(self, analyzer, complete_token_data):
        data = {
            **complete_token_data,
            "fetched_at": FIXED_NOW - timedelta(hours=1),
            "wallet_profile": {
                "avg_holder_wallet_age_days": 300,
                "observed_at": FIXED_NOW - timedelta(minutes=5),
            },
        }
        assert analyzer.analyze_risk(data).data_freshness == 0.5


def test_module_level_analyze_risk(scam_token_data):
    result = analyze_risk(scam_token_data)
    assert result.risk_level == RiskLevel.CRITICAL
