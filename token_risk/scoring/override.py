"""
Override engine.

Converts validated flags into a score adjustment. One or two critical flags
add a graduated penalty to the weighted baseline; enough independent critical
flags additionally force a floor under the final score. The adjustment never
lowers the baseline, and WARNING or INFO flags never move the score.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from token_risk.config import ScoringSettings
from token_risk.models.risk import FlagSeverity, RiskFlag
from token_risk.scoring.normalization import clamp


@dataclass(frozen=True)
class OverrideResult:
    """Outcome of applying critical flags to a baseline score."""
    baseline: float
    penalty: float
    critical_count: int
    floor_applied: bool
    final_score: float  # clamped to 0-100, not rounded
    reason: Optional[str] = None

    @property
    def applied(self) -> bool:
        return self.penalty > 0 or self.floor_applied


def count_critical(flags: Sequence[RiskFlag]) -> int:
    """Number of distinct flag codes validated as CRITICAL."""
    return len({flag.code for flag in flags if flag.validated_severity == FlagSeverity.CRITICAL})


def critical_penalty(critical_count: int, settings: ScoringSettings) -> float:
    """Graduated additive penalty, zero without critical flags."""
    if critical_count <= 0:
        return 0.0
    return min(settings.CRITICAL_FLAG_PENALTY * critical_count, settings.MAX_CRITICAL_PENALTY)


def compute_override(
    flags: Sequence[RiskFlag],
    baseline: float,
    settings: Optional[ScoringSettings] = None
) -> OverrideResult:
    """Apply validated flags to the weighted baseline.

    Args:
        flags: Validated flags of one analysis
        baseline: Weighted factor score before any override
        settings: Scoring calibration, defaults when omitted

    Returns:
        OverrideResult with the clamped final score
    """
    settings = settings or ScoringSettings()
    critical_count = count_critical(flags)
    penalty = critical_penalty(critical_count, settings)
    adjusted = baseline + penalty

    floor_applied = False
    if critical_count >= settings.CRITICAL_FLOOR_COUNT and adjusted < settings.CRITICAL_FLOOR:
        adjusted = settings.CRITICAL_FLOOR
        floor_applied = True

    reason = None
    if critical_count:
        codes = sorted({f.code for f in flags if f.validated_severity == FlagSeverity.CRITICAL})
        reason = f"{critical_count} critical flag(s) ({', '.join(codes)}): +{penalty:g} penalty"
        if floor_applied:
            reason += f", raised to floor {settings.CRITICAL_FLOOR:g}"

    return OverrideResult(
        baseline=baseline,
        penalty=penalty,
        critical_count=critical_count,
        floor_applied=floor_applied,
        final_score=clamp(adjusted),
        reason=reason,
    )
