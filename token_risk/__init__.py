"""Token Risk Engine.

Scores a blockchain token's market, holder and security data into a 0-100
risk score with a risk level, a confidence rating and human-readable flags.
"""

from token_risk.analyzer import RiskAnalyzer, analyze_risk
from token_risk.errors import (
    CacheUnavailableError,
    ConfigurationError,
    InvalidInputError,
    TokenRiskError,
)
from token_risk.models import RiskAnalysisResult, RiskLevel, TokenData
from token_risk.services.cache_service import BehavioralCache, BehavioralDataClass
from token_risk.version import __version__

__all__ = [
    "BehavioralCache",
    "BehavioralDataClass",
    "CacheUnavailableError",
    "ConfigurationError",
    "InvalidInputError",
    "RiskAnalysisResult",
    "RiskAnalyzer",
    "RiskLevel",
    "TokenData",
    "TokenRiskError",
    "__version__",
    "analyze_risk",
]
