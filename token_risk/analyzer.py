"""Token risk analysis entry point."""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ValidationError

from token_risk.chains import ChainType
from token_risk.config import Settings, get_settings
from token_risk.errors import InvalidInputError
from token_risk.logging_config import get_logger, log_with_context
from token_risk.models.risk import DataQualityTracker, RiskAnalysisResult
from token_risk.models.token import (
    CardanoSecurity,
    HistorySnapshot,
    SolanaSecurity,
    TokenData,
    TradePattern,
    WalletProfile,
)
from token_risk.scoring.aggregator import (
    FreshnessPoint,
    RiskThresholds,
    confidence_score,
    data_freshness,
    data_tier,
    final_score,
    weighted_baseline,
)
from token_risk.scoring.archetype import TokenArchetype, classify_archetype
from token_risk.scoring.factors import calculate_factors
from token_risk.scoring.flags import categorize_flags, validate_flags
from token_risk.scoring.override import compute_override
from token_risk.scoring.weights import select_profile
from token_risk.services.cache_service import BehavioralCache, BehavioralDataClass

logger = get_logger(__name__)

# TokenData attribute and model for each cached data class
BEHAVIORAL_FIELDS = {
    BehavioralDataClass.HOLDER_HISTORY: ("holder_history", HistorySnapshot),
    BehavioralDataClass.LIQUIDITY_HISTORY: ("liquidity_history", HistorySnapshot),
    BehavioralDataClass.TRADE_PATTERN: ("trade_pattern", TradePattern),
    BehavioralDataClass.WALLET_PROFILE: ("wallet_profile", WalletProfile),
    BehavioralDataClass.SOLANA_SECURITY: ("solana", SolanaSecurity),
    BehavioralDataClass.CARDANO_SECURITY: ("cardano", CardanoSecurity),
}

CHAIN_SPECIFIC_CLASSES = {
    BehavioralDataClass.SOLANA_SECURITY: ChainType.SOLANA,
    BehavioralDataClass.CARDANO_SECURITY: ChainType.CARDANO,
}

TREND_CLASSES = (
    BehavioralDataClass.HOLDER_HISTORY,
    BehavioralDataClass.LIQUIDITY_HISTORY,
    BehavioralDataClass.TRADE_PATTERN,
    BehavioralDataClass.WALLET_PROFILE,
)

TokenInput = Union[TokenData, Mapping[str, Any]]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RiskAnalyzer:
    """Scores tokens using an injected cache and settings."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        cache: Optional[BehavioralCache] = None,
        clock: Callable[[], datetime] = _utc_now
    ):
        """Initialize the analyzer.

        Args:
            settings: Engine settings, loaded from the environment if None
            cache: Behavioral cache, a fresh in-memory cache if None
            clock: Returns the current timezone-aware time
        """
        self.settings = settings or get_settings()
        self.cache = cache if cache is not None else BehavioralCache(settings=self.settings.cache)
        self.clock = clock
        self.thresholds = RiskThresholds.from_settings(self.settings.scoring)

    @staticmethod
    def _coerce(token_data: TokenInput) -> TokenData:
        if isinstance(token_data, TokenData):
            return token_data
        return TokenData.from_provider(token_data)

    def enrich_from_cache(self, token: TokenData) -> TokenData:
        """Fill missing behavioral records from the cache and store present ones.

        Tokens without an address are returned unchanged.
        """
        if not token.address:
            return token

        updates: Dict[str, Any] = {}
        for data_class, (attribute, model) in BEHAVIORAL_FIELDS.items():
            required_chain = CHAIN_SPECIFIC_CLASSES.get(data_class)
            if required_chain is not None and token.chain_type != required_chain:
                continue

            value = getattr(token, attribute)
            if value is not None:
                self.cache.set(token.chain, token.address, data_class, value)
                continue

            cached = self.cache.get(token.chain, token.address, data_class)
            if cached is None:
                continue
            if not isinstance(cached, model):
                try:
                    cached = model.model_validate(
                        cached.model_dump() if isinstance(cached, BaseModel) else cached
                    )
                except ValidationError as e:
                    log_with_context(
                        logger,
                        "warning",
                        "Discarding malformed cached behavioral data",
                        data_class=data_class.value,
                        address=token.address,
                        error=str(e),
                    )
                    continue
            updates[attribute] = cached

        if not updates:
            return token
        return token.model_copy(update=updates)

    def _freshness_points(self, token: TokenData) -> List[FreshnessPoint]:
        points: List[FreshnessPoint] = [(token.fetched_at, self.settings.scoring.MARKET_DATA_TTL)]
        for data_class in TREND_CLASSES:
            attribute, _ = BEHAVIORAL_FIELDS[data_class]
            record = getattr(token, attribute)
            if record is not None:
                points.append((record.observed_at, self.cache.ttl_for(data_class)))
        for data_class in CHAIN_SPECIFIC_CLASSES:
            attribute, _ = BEHAVIORAL_FIELDS[data_class]
            if getattr(token, attribute) is not None:
                points.append((None, self.cache.ttl_for(data_class)))
        return points

    def analyze_risk(
        self,
        token_data: TokenInput,
        profile: Union[str, TokenArchetype, None] = None,
        metadata: Optional[Mapping[str, Any]] = None
    ) -> RiskAnalysisResult:
        """Analyze a token and produce its risk score.

        Args:
            token_data: TokenData or a mapping with TokenData fields
            profile: Optional archetype hint selecting the weight profile
            metadata: Optional extra context (name, symbol, description,
                request_id) used for classification and logging

        Returns:
            RiskAnalysisResult for the token

        Raises:
            InvalidInputError: If the token data is structurally invalid
        """
        metadata = dict(metadata or {})
        request_id = metadata.get("request_id")

        try:
            token = self._coerce(token_data)
        except InvalidInputError as e:
            log_with_context(
                logger,
                "warning",
                "Rejected invalid token data",
                request_id=request_id,
                fields=e.fields,
            )
            raise

        token = self.enrich_from_cache(token)
        scoring = self.settings.scoring

        archetype = classify_archetype(
            name=metadata.get("name") or token.name,
            symbol=metadata.get("symbol") or token.symbol,
            description=metadata.get("description") or token.description,
            hint=profile,
        )
        weights = select_profile(archetype)

        tracker = DataQualityTracker()
        factors = calculate_factors(token, tracker, scoring.MIN_LIQUIDITY_USD)
        baseline = weighted_baseline(factors, weights)

        flags = validate_flags(token)
        override = compute_override(flags, baseline, scoring)
        score = final_score(override.final_score)

        quality = tracker.build()
        freshness = data_freshness(self._freshness_points(token), self.clock())
        has_behavioral = any(
            getattr(token, BEHAVIORAL_FIELDS[data_class][0]) is not None
            for data_class in TREND_CLASSES
        )
        categorized = categorize_flags(flags)

        result = RiskAnalysisResult(
            overall_risk_score=score,
            risk_level=self.thresholds.level_for(score),
            confidence_score=confidence_score(quality, scoring),
            breakdown={factor.name: round(factor.score, 2) for factor in factors},
            critical_flags=categorized["critical_flags"],
            warning_flags=categorized["warning_flags"],
            positive_signals=categorized["positive_signals"],
            data_tier=data_tier(quality, freshness, has_behavioral),
            data_freshness=round(freshness, 4),
            archetype=archetype.value,
            calculated_score=round(baseline, 2),
            override_applied=override.applied,
            override_reason=override.reason,
            factors=[factor.to_dict() for factor in factors],
            data_quality=quality.to_dict(),
        )

        log_with_context(
            logger,
            "info",
            "Token risk analysis completed",
            request_id=request_id,
            address=token.address,
            chain=str(token.chain),
            archetype=archetype.value,
            score=result.overall_risk_score,
            risk_level=result.risk_level.value,
            critical_count=override.critical_count,
        )
        return result


def analyze_risk(
    token_data: TokenInput,
    profile: Union[str, TokenArchetype, None] = None,
    metadata: Optional[Mapping[str, Any]] = None,
    cache: Optional[BehavioralCache] = None
) -> RiskAnalysisResult:
    """Analyze a token with a default analyzer.

    Args:
        token_data: TokenData or a mapping with TokenData fields
        profile: Optional archetype hint
        metadata: Optional classification and logging context
        cache: Cache to use; a fresh one per call if None

    Returns:
        RiskAnalysisResult for the token
    """
    return RiskAnalyzer(cache=cache).analyze_risk(token_data, profile=profile, metadata=metadata)
