"""Weight profiles for the weighted factor sum."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping

from token_risk.errors import ConfigurationError
from token_risk.scoring.archetype import TokenArchetype
from token_risk.scoring.factors import FACTOR_NAMES

WEIGHT_TOTAL = 100.0
WEIGHT_TOLERANCE = 0.01


@dataclass(frozen=True)
class WeightProfile:
    """A named factor -> weight mapping whose weights sum to 100."""
    name: str
    weights: Mapping[str, float]

    def __post_init__(self):
        weights = dict(self.weights)
        unknown = sorted(set(weights) - set(FACTOR_NAMES))
        if unknown:
            raise ConfigurationError(
                f"Weight profile {self.name} has unknown factors",
                details={"profile": self.name, "unknown": unknown}
            )

        negative = sorted(name for name, weight in weights.items() if weight < 0)
        if negative:
            raise ConfigurationError(
                f"Weight profile {self.name} has negative weights",
                details={"profile": self.name, "factors": negative}
            )

        total = sum(weights.values())
        if abs(total - WEIGHT_TOTAL) > WEIGHT_TOLERANCE:
            raise ConfigurationError(
                f"Weights of profile {self.name} sum to {total}, expected {WEIGHT_TOTAL}",
                details={"profile": self.name, "total": total}
            )

        object.__setattr__(self, "weights", MappingProxyType(weights))

    def weight_for(self, factor_name: str) -> float:
        """Weight of a factor, 0 for factors the profile leaves out."""
        return self.weights.get(factor_name, 0.0)

    def to_dict(self) -> Dict[str, float]:
        return dict(self.weights)


STANDARD_PROFILE = WeightProfile("STANDARD", {
    "contract_control": 20,
    "holder_concentration": 15,
    "liquidity_depth": 15,
    "market_activity": 10,
    "supply_dilution": 10,
    "burn_deflation": 5,
    "token_age": 10,
    "holder_velocity": 5,
    "wash_trading": 5,
    "smart_money": 5,
})

# Peg safety is about who controls the contract, not trading activity
STABLECOIN_PROFILE = WeightProfile("STABLECOIN", {
    "contract_control": 30,
    "holder_concentration": 15,
    "liquidity_depth": 15,
    "market_activity": 5,
    "supply_dilution": 10,
    "burn_deflation": 5,
    "token_age": 10,
    "holder_velocity": 4,
    "wash_trading": 3,
    "smart_money": 3,
})

MEME_PROFILE = WeightProfile("MEME", {
    "contract_control": 15,
    "holder_concentration": 18,
    "liquidity_depth": 17,
    "market_activity": 15,
    "supply_dilution": 5,
    "burn_deflation": 2,
    "token_age": 8,
    "holder_velocity": 7,
    "wash_trading": 8,
    "smart_money": 5,
})

DEFI_PROFILE = WeightProfile("DEFI", {
    "contract_control": 22,
    "holder_concentration": 14,
    "liquidity_depth": 16,
    "market_activity": 10,
    "supply_dilution": 12,
    "burn_deflation": 4,
    "token_age": 8,
    "holder_velocity": 5,
    "wash_trading": 5,
    "smart_money": 4,
})

PROFILES: Mapping[TokenArchetype, WeightProfile] = MappingProxyType({
    TokenArchetype.STANDARD: STANDARD_PROFILE,
    TokenArchetype.STABLECOIN: STABLECOIN_PROFILE,
    TokenArchetype.MEME: MEME_PROFILE,
    TokenArchetype.DEFI: DEFI_PROFILE,
})


def select_profile(archetype: TokenArchetype) -> WeightProfile:
    """Weight profile for an archetype."""
    return PROFILES.get(archetype, STANDARD_PROFILE)
