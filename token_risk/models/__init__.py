"""Data models for the token risk engine."""

from token_risk.models.risk import (
    DataQuality,
    DataQualityTracker,
    DataTier,
    FactorQuality,
    FlagSeverity,
    RiskAnalysisResult,
    RiskFactor,
    RiskFlag,
    RiskLevel,
)
from token_risk.models.token import (
    CardanoSecurity,
    EvmSecurity,
    HistorySnapshot,
    SolanaSecurity,
    TokenData,
    TradePattern,
    WalletProfile,
)

__all__ = [
    "CardanoSecurity",
    "DataQuality",
    "DataQualityTracker",
    "DataTier",
    "EvmSecurity",
    "FactorQuality",
    "FlagSeverity",
    "HistorySnapshot",
    "RiskAnalysisResult",
    "RiskFactor",
    "RiskFlag",
    "RiskLevel",
    "SolanaSecurity",
    "TokenData",
    "TradePattern",
    "WalletProfile",
]
