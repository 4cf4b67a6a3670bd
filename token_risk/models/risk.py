"""
Risk analysis models.

Intermediate values (factors, flags, data quality) are plain dataclasses that
live for one scoring call. The final result is a pydantic model so callers can
serialize it directly.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field


class FactorQuality(str, Enum):
    """How trustworthy the inputs behind one factor were."""
    VERIFIED = "verified"
    ESTIMATED = "estimated"
    UNKNOWN = "unknown"


class FlagSeverity(str, Enum):
    """Severity of a validated flag, ordered INFO < WARNING < CRITICAL."""
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def relax_to(self, other: "FlagSeverity") -> "FlagSeverity":
        """Return the less severe of this severity and ``other``."""
        return self if self.rank <= other.rank else other


_SEVERITY_RANK = {
    FlagSeverity.INFO: 0,
    FlagSeverity.WARNING: 1,
    FlagSeverity.CRITICAL: 2,
}


class RiskLevel(str, Enum):
    """Categorical risk level derived from the final score."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class DataTier(str, Enum):
    """Coarse grade of how complete and fresh the inputs were."""
    TIER_1_PREMIUM = "TIER_1_PREMIUM"
    TIER_2_STANDARD = "TIER_2_STANDARD"
    TIER_3_LIMITED = "TIER_3_LIMITED"
    TIER_4_INSUFFICIENT = "TIER_4_INSUFFICIENT"


@dataclass
class RiskFactor:
    """One scored factor of the weighted sum."""
    name: str
    score: float  # 0-100 (higher = riskier)
    quality: FactorQuality = FactorQuality.VERIFIED
    signals: List[str] = field(default_factory=list)
    weight: float = 0.0
    contribution: float = 0.0
    discount_applied: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "score": round(self.score, 2),
            "quality": self.quality.value,
            "weight": self.weight,
            "contribution": round(self.contribution, 2),
            "signals": list(self.signals),
        }


@dataclass(frozen=True)
class DataQuality:
    """Which input fields were present, missing or estimated in one analysis."""
    present: Tuple[str, ...] = ()
    missing: Tuple[str, ...] = ()
    estimated: Tuple[str, ...] = ()

    @property
    def missing_count(self) -> int:
        return len(self.missing)

    @property
    def estimated_count(self) -> int:
        return len(self.estimated)

    @property
    def completeness(self) -> float:
        """Fraction of tracked fields that were present and not estimated."""
        total = len(self.present) + len(self.missing) + len(self.estimated)
        if total == 0:
            return 0.0
        return len(self.present) / total

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "present": list(self.present),
            "missing": list(self.missing),
            "estimated": list(self.estimated),
        }


class DataQualityTracker:
    """Mutable collector for field availability, frozen into DataQuality.

    A field reported missing or estimated by any calculator stays that way
    even if another calculator saw it as present; estimated wins over
    present, missing wins over both.
    """

    def __init__(self):
        self._status: Dict[str, str] = {}

    def _mark(self, name: str, status: str) -> None:
        order = {"present": 0, "estimated": 1, "missing": 2}
        current = self._status.get(name)
        if current is None or order[status] > order[current]:
            self._status[name] = status

    def present(self, *names: str) -> None:
        for name in names:
            self._mark(name, "present")

    def missing(self, *names: str) -> None:
        for name in names:
            self._mark(name, "missing")

    def estimated(self, *names: str) -> None:
        for name in names:
            self._mark(name, "estimated")

    def check(self, token: Any, *names: str) -> bool:
        """Record each named attribute of ``token`` and report if all are set."""
        all_present = True
        for name in names:
            if getattr(token, name, None) is None:
                self.missing(name)
                all_present = False
            else:
                self.present(name)
        return all_present

    def build(self) -> DataQuality:
        def pick(status: str) -> Tuple[str, ...]:
            return tuple(sorted(n for n, s in self._status.items() if s == status))

        return DataQuality(
            present=pick("present"),
            missing=pick("missing"),
            estimated=pick("estimated"),
        )


@dataclass(frozen=True)
class RiskFlag:
    """A raw signal with its baseline hint and context-validated severity."""
    code: str
    raw_severity_hint: FlagSeverity
    validated_severity: FlagSeverity
    message: str
    context: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "context", MappingProxyType(dict(self.context)))

    @property
    def downgraded(self) -> bool:
        return self.validated_severity.rank < self.raw_severity_hint.rank


class RiskAnalysisResult(BaseModel):
    """Final output of one risk analysis."""
    overall_risk_score: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    confidence_score: int = Field(..., ge=0, le=100)
    breakdown: Dict[str, float] = Field(default_factory=dict)
    critical_flags: List[str] = Field(default_factory=list)
    warning_flags: List[str] = Field(default_factory=list)
    positive_signals: List[str] = Field(default_factory=list)
    data_tier: DataTier
    data_freshness: float = Field(..., ge=0, le=1)

    archetype: str
    calculated_score: float
    override_applied: bool = False
    override_reason: Optional[str] = None
    factors: List[Dict[str, Any]] = Field(default_factory=list)
    data_quality: Dict[str, List[str]] = Field(default_factory=dict)
