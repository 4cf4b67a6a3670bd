"""
Risk aggregation.

Combines weighted factors and the override result into the final score and
derives the risk level, confidence score, data freshness and data tier.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional, Sequence, Tuple

from token_risk.config import ScoringSettings
from token_risk.errors import ConfigurationError
from token_risk.models.risk import DataQuality, DataTier, RiskFactor, RiskLevel
from token_risk.scoring.normalization import clamp
from token_risk.scoring.weights import WeightProfile

REQUIRED_FIELDS = (
    "market_cap",
    "liquidity_usd",
    "volume_24h",
    "holder_count",
    "top10_holder_pct",
    "tx_count_24h",
    "age_days",
    "total_supply",
    "circulating_supply",
    "fdv",
    "is_honeypot",
    "is_mintable",
    "owner_renounced",
)

# (observed_at, ttl seconds); observed_at None means observed at scoring time
FreshnessPoint = Tuple[Optional[datetime], float]


@dataclass(frozen=True)
class RiskThresholds:
    """Lower bounds of the MEDIUM, HIGH and CRITICAL levels."""
    medium: int = 30
    high: int = 60
    critical: int = 80

    def __post_init__(self):
        if not 0 < self.medium < self.high < self.critical <= 100:
            raise ConfigurationError(
                "Risk level thresholds must be increasing within 1-100",
                details={"medium": self.medium, "high": self.high, "critical": self.critical}
            )

    @classmethod
    def from_settings(cls, settings: ScoringSettings) -> "RiskThresholds":
        return cls(
            medium=settings.MEDIUM_THRESHOLD,
            high=settings.HIGH_THRESHOLD,
            critical=settings.CRITICAL_THRESHOLD,
        )

    def level_for(self, score: float) -> RiskLevel:
        """Risk level of a score; monotonic in the score."""
        if score >= self.critical:
            return RiskLevel.CRITICAL
        if score >= self.high:
            return RiskLevel.HIGH
        if score >= self.medium:
            return RiskLevel.MEDIUM
        return RiskLevel.LOW


def weighted_baseline(factors: Sequence[RiskFactor], profile: WeightProfile) -> float:
    """Weighted sum of factor scores; fills in each factor's weight and contribution."""
    total = 0.0
    for factor in factors:
        factor.weight = profile.weight_for(factor.name)
        factor.contribution = factor.score * factor.weight / 100
        total += factor.contribution
    return total


def final_score(value: float) -> int:
    """Clamp to 0-100 and round to an integer score."""
    return int(round(clamp(value)))


def risk_level_for(score: float, thresholds: Optional[RiskThresholds] = None) -> RiskLevel:
    return (thresholds or RiskThresholds()).level_for(score)


def confidence_score(quality: DataQuality, settings: Optional[ScoringSettings] = None) -> int:
    """Confidence from data completeness.

    Starts at 100 and loses a fixed penalty per missing field (larger for
    required fields than for optional ones) and per estimated field, never
    going below the configured minimum.
    """
    settings = settings or ScoringSettings()
    missing_required = sum(1 for name in quality.missing if name in REQUIRED_FIELDS)
    missing_optional = quality.missing_count - missing_required
    confidence = (
        100
        - settings.MISSING_FIELD_PENALTY * missing_required
        - settings.OPTIONAL_FIELD_PENALTY * missing_optional
        - settings.ESTIMATED_FIELD_PENALTY * quality.estimated_count
    )
    return int(round(max(settings.MIN_CONFIDENCE, confidence)))


def data_freshness(points: Iterable[FreshnessPoint], now: datetime) -> float:
    """Fraction of data points still within their TTL at ``now``.

    Returns 0.0 when there are no data points.
    """
    points = list(points)
    if not points:
        return 0.0
    fresh = 0
    for observed_at, ttl in points:
        if observed_at is None or now - observed_at <= timedelta(seconds=ttl):
            fresh += 1
    return fresh / len(points)


def data_tier(quality: DataQuality, freshness: float, has_behavioral_data: bool) -> DataTier:
    """Grade the inputs by completeness, freshness and behavioral coverage."""
    completeness = quality.completeness
    if has_behavioral_data and freshness > 0.85 and completeness > 0.80:
        return DataTier.TIER_1_PREMIUM
    if freshness > 0.70 and completeness > 0.60:
        return DataTier.TIER_2_STANDARD
    if completeness > 0.40:
        return DataTier.TIER_3_LIMITED
    return DataTier.TIER_4_INSUFFICIENT
