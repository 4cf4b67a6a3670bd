"""
Factor calculators.

Each calculator scores one risk factor from TokenData and records which
inputs it found in the DataQualityTracker. A calculator whose required input
is missing returns NEUTRAL_SCORE with UNKNOWN quality; it never raises.
"""

from typing import Callable, Dict, List, Optional

from token_risk.chains import ChainType
from token_risk.models.risk import DataQualityTracker, FactorQuality, RiskFactor
from token_risk.models.token import TokenData
from token_risk.scoring import normalization as norm

NEUTRAL_SCORE = 50.0

CONTRACT_CONTROL = "contract_control"
HOLDER_CONCENTRATION = "holder_concentration"
LIQUIDITY_DEPTH = "liquidity_depth"
MARKET_ACTIVITY = "market_activity"
SUPPLY_DILUTION = "supply_dilution"
BURN_DEFLATION = "burn_deflation"
TOKEN_AGE = "token_age"
HOLDER_VELOCITY = "holder_velocity"
WASH_TRADING = "wash_trading"
SMART_MONEY = "smart_money"

FACTOR_NAMES = (
    CONTRACT_CONTROL,
    HOLDER_CONCENTRATION,
    LIQUIDITY_DEPTH,
    MARKET_ACTIVITY,
    SUPPLY_DILUTION,
    BURN_DEFLATION,
    TOKEN_AGE,
    HOLDER_VELOCITY,
    WASH_TRADING,
    SMART_MONEY,
)

# Factors dampened for large market caps
DISCOUNTED_FACTORS = frozenset({
    CONTRACT_CONTROL,
    HOLDER_CONCENTRATION,
    LIQUIDITY_DEPTH,
    SUPPLY_DILUTION,
})

LARGE_CAP_CONTROL_THRESHOLD = 50_000_000_000
LARGE_CAP_CONTROL_MAX = 10.0


def _neutral(name: str, reason: str) -> RiskFactor:
    return RiskFactor(
        name=name,
        score=NEUTRAL_SCORE,
        quality=FactorQuality.UNKNOWN,
        signals=[f"Insufficient data: {reason}"],
    )


def _tax_points(token: TokenData, signals: List[str]) -> float:
    points = 0.0
    sell_tax = token.sell_tax or 0.0
    buy_tax = token.buy_tax or 0.0
    if sell_tax > 30:
        points += 30
    elif sell_tax > 20:
        points += 20
    elif sell_tax > 10:
        points += 10
    if buy_tax > 15:
        points += 10
    if points:
        signals.append(f"Trading taxes: buy {buy_tax:.1f}%, sell {sell_tax:.1f}%")
    return min(points, 30.0)


def _solana_points(token: TokenData, signals: List[str]) -> float:
    sol = token.solana
    points = 0.0
    if sol.freeze_authority:
        points += 50
        signals.append("Freeze authority active - holders' accounts can be frozen")
    if sol.mint_authority:
        if token.age_days is None or token.age_days < 90:
            points += 40
            signals.append("Mint authority active on a young token")
        else:
            points += 20
            signals.append("Mint authority active")
    if sol.program_authority:
        points += 25
        signals.append("Program is upgradeable")
    if sol.all_revoked:
        signals.append("All Solana authorities revoked")
    return points


def _cardano_points(token: TokenData, signals: List[str]) -> float:
    policy = token.cardano
    if policy.policy_locked and policy.policy_expired:
        points = 0.0
        signals.append("Minting policy locked and expired")
    elif policy.policy_locked:
        points = 15.0
        signals.append("Minting policy locked but not yet expired")
    else:
        points = 60.0
        signals.append("Minting policy unlocked - supply can change")
    if policy.policy_script and len(policy.policy_script) > 100:
        points += 10
        signals.append("Complex minting policy script")
    return points


def _evm_points(token: TokenData, signals: List[str]) -> float:
    evm = token.evm
    points = 0.0
    if evm.cannot_buy:
        points += 90
        signals.append("Token cannot be bought")
    if evm.is_proxy:
        points += 15
        signals.append("Upgradeable proxy contract")
    if evm.is_pausable:
        points += 15
        signals.append("Transfers can be paused")
    if evm.tax_modifiable:
        points += 10
        signals.append("Owner can modify taxes")
    if evm.is_open_source is False:
        points += 10
        signals.append("Contract source not verified")
    return points


def _ownership_points(token: TokenData, signals: List[str]) -> float:
    points = 0.0
    mintable = token.is_mintable
    renounced = token.owner_renounced
    if mintable and renounced is not True:
        points += 60
        signals.append("Mintable with active owner")
    elif mintable:
        points += 15
        signals.append("Mintable, ownership renounced")
    elif renounced is False:
        points += 30
        signals.append("Ownership not renounced")
    elif renounced and mintable is False:
        signals.append("Ownership renounced and supply fixed")
    return points


def calculate_contract_control(token: TokenData, tracker: DataQualityTracker) -> RiskFactor:
    """Score how much control insiders retain over the token contract.

    Chain specific security data (Solana authorities, Cardano policy, EVM
    scanner flags) is used when present. Without any security data the
    score falls back to holder and age proxies and is marked ESTIMATED.
    """
    tracker.check(token, "is_honeypot", "is_mintable", "owner_renounced")

    if token.is_honeypot:
        # Maximal at any market cap, so never discounted
        return RiskFactor(
            name=CONTRACT_CONTROL,
            score=100.0,
            signals=["Honeypot detected - tokens cannot be sold"],
            discount_applied=True,
        )

    signals: List[str] = []
    chain = token.chain_type
    has_generic = any(
        value is not None
        for value in (
            token.is_mintable,
            token.owner_renounced,
            token.freeze_authority_exists,
            token.buy_tax,
            token.sell_tax,
        )
    )
    has_solana = chain == ChainType.SOLANA and token.solana is not None
    has_cardano = chain == ChainType.CARDANO and token.cardano is not None
    has_evm = token.evm is not None

    if not (has_generic or has_solana or has_cardano or has_evm):
        return _contract_control_fallback(token, tracker)

    score = 0.0
    if has_solana:
        score += _solana_points(token, signals)
    elif token.freeze_authority_exists:
        score += 40
        signals.append("Freeze authority exists")
    if has_cardano:
        score += _cardano_points(token, signals)
    if has_evm:
        score += _evm_points(token, signals)
    if not has_solana:
        score += _ownership_points(token, signals)
    score += _tax_points(token, signals)

    if (token.market_cap or 0) > LARGE_CAP_CONTROL_THRESHOLD:
        if score > LARGE_CAP_CONTROL_MAX:
            signals.append("Control risk capped for mega-cap token")
        score = min(score, LARGE_CAP_CONTROL_MAX)

    return RiskFactor(name=CONTRACT_CONTROL, score=norm.clamp(score), signals=signals)


def _contract_control_fallback(token: TokenData, tracker: DataQualityTracker) -> RiskFactor:
    tracker.estimated("contract_security")
    score = 20.0
    signals = ["Contract security data unavailable - estimated from holder proxies"]
    if token.top10_holder_pct is not None and token.top10_holder_pct > 80:
        score += 35
    if token.holder_count is not None and token.holder_count < 100:
        score += 25
    if token.age_days is not None and token.age_days < 7:
        score += 20
    return RiskFactor(
        name=CONTRACT_CONTROL,
        score=norm.clamp(score),
        quality=FactorQuality.ESTIMATED,
        signals=signals,
    )


def calculate_holder_concentration(token: TokenData, tracker: DataQualityTracker) -> RiskFactor:
    """Score supply concentration among the ten largest holders."""
    tracker.check(token, "holder_count")
    if not tracker.check(token, "top10_holder_pct"):
        return _neutral(HOLDER_CONCENTRATION, "top 10 holder share unknown")

    score = norm.concentration_risk(token.top10_holder_pct)
    signals = []
    if token.top10_holder_pct >= 50:
        signals.append(f"Top 10 holders control {token.top10_holder_pct:.1f}% of supply")
    if token.holder_count is not None and token.holder_count < 100:
        score += 10
        signals.append(f"Only {token.holder_count} holders")

    return RiskFactor(name=HOLDER_CONCENTRATION, score=norm.clamp(score), signals=signals)


def liquidity_stability_points(token: TokenData) -> Optional[float]:
    """Extra liquidity risk (0-50) from the liquidity trend, None without history."""
    history = token.liquidity_history
    if history is None or history.change_7d is None:
        return None

    change = history.change_7d
    points = 0.0
    if change < -30:
        points += 50
    elif change < -15:
        points += 25
    elif change > 200 and token.age_days is not None and token.age_days < 30:
        points += 30
    elif -10 <= change <= 10:
        points -= 5
    return norm.clamp(points, 0, 50)


def calculate_liquidity_depth(
    token: TokenData,
    tracker: DataQualityTracker,
    min_liquidity_usd: float = 10_000.0
) -> RiskFactor:
    """Score liquidity depth relative to market cap, adjusted by its trend."""
    tracker.check(token, "market_cap")
    if not tracker.check(token, "liquidity_usd"):
        return _neutral(LIQUIDITY_DEPTH, "liquidity unknown")

    score = norm.liquidity_risk(token.liquidity_usd, token.market_cap, min_liquidity_usd)
    signals = []
    if token.liquidity_usd < min_liquidity_usd:
        signals.append(f"Very low liquidity: ${token.liquidity_usd:,.0f}")

    stability = liquidity_stability_points(token)
    if stability is not None:
        change = token.liquidity_history.change_7d
        if stability > 0:
            signals.append(f"Liquidity changed {change:+.1f}% over 7 days")
        score += stability

    return RiskFactor(name=LIQUIDITY_DEPTH, score=norm.clamp(score), signals=signals)


def calculate_market_activity(token: TokenData, tracker: DataQualityTracker) -> RiskFactor:
    """Score trading activity; dead markets and implausible turnover are risky."""
    has_tx = tracker.check(token, "tx_count_24h")
    has_volume = tracker.check(token, "volume_24h")
    if not has_tx and not has_volume:
        return _neutral(MARKET_ACTIVITY, "no 24h activity data")

    score = norm.activity_risk(token.tx_count_24h, token.volume_24h, token.market_cap)
    signals = []
    if score >= 85:
        signals.append("Little or no trading activity in 24h")
    elif token.volume_24h and token.market_cap and token.volume_24h > 2 * token.market_cap:
        signals.append("24h volume exceeds twice the market cap")

    quality = FactorQuality.VERIFIED if has_tx and has_volume else FactorQuality.ESTIMATED
    return RiskFactor(name=MARKET_ACTIVITY, score=score, quality=quality, signals=signals)


def calculate_supply_dilution(token: TokenData, tracker: DataQualityTracker) -> RiskFactor:
    """Score future dilution from FDV and from unreleased supply."""
    has_fdv = tracker.check(token, "fdv")
    tracker.check(token, "circulating_supply", "total_supply")

    parts = []
    quality = FactorQuality.VERIFIED
    if has_fdv and token.market_cap:
        parts.append(norm.fdv_dilution_risk(token.fdv, token.market_cap))

    if token.circulating_supply is not None:
        if token.max_supply is not None:
            parts.append(norm.supply_overhang_risk(token.max_supply, token.circulating_supply))
        elif token.total_supply is not None:
            tracker.estimated("max_supply")
            quality = FactorQuality.ESTIMATED
            parts.append(norm.supply_overhang_risk(token.total_supply, token.circulating_supply))

    if not parts:
        return _neutral(SUPPLY_DILUTION, "no valuation or supply data")

    score = max(parts)
    signals = []
    if score >= 40:
        signals.append("Large share of supply not yet circulating")
    return RiskFactor(name=SUPPLY_DILUTION, score=score, quality=quality, signals=signals)


def calculate_burn_deflation(token: TokenData, tracker: DataQualityTracker) -> RiskFactor:
    """Score burned supply; more burn means less risk, within bounds."""
    has_total = token.total_supply is not None
    if token.burned_supply is None:
        tracker.missing("burned_supply")
        return _neutral(BURN_DEFLATION, "burned supply unknown")
    tracker.present("burned_supply")
    if not has_total:
        return _neutral(BURN_DEFLATION, "total supply unknown")

    score = norm.burn_risk(token.burned_supply, token.total_supply)
    signals = []
    if token.total_supply and token.burned_supply / token.total_supply >= 0.2:
        signals.append(f"{token.burned_supply / token.total_supply:.0%} of supply burned")
    return RiskFactor(name=BURN_DEFLATION, score=score, signals=signals)


def calculate_token_age(token: TokenData, tracker: DataQualityTracker) -> RiskFactor:
    """Score token age; very young tokens are penalized steeply."""
    if not tracker.check(token, "age_days"):
        return _neutral(TOKEN_AGE, "token age unknown")

    signals = []
    if token.age_days < 7:
        signals.append(f"Very new token ({token.age_days:.0f} days old)")
    return RiskFactor(name=TOKEN_AGE, score=norm.age_risk(token.age_days), signals=signals)


def calculate_holder_velocity(token: TokenData, tracker: DataQualityTracker) -> RiskFactor:
    """Score the holder count trend over 7 and 30 days."""
    history = token.holder_history
    if history is None or (history.change_7d is None and history.change_30d is None):
        tracker.missing("holder_history")
        return _neutral(HOLDER_VELOCITY, "no holder history")
    tracker.present("holder_history")

    points = 0.0
    signals = []
    change_7d = history.change_7d
    change_30d = history.change_30d
    if change_7d is not None:
        if change_7d < -30:
            points += 40
            signals.append(f"Holders dropped {change_7d:.1f}% in 7 days")
        elif change_7d < -15:
            points += 25
            signals.append(f"Holders declining: {change_7d:.1f}% in 7 days")
        elif change_7d > 100 and (history.current or 0) < 1000:
            points += 20
            signals.append(f"Suspicious holder spike: {change_7d:+.1f}% in 7 days")
    if change_30d is not None:
        if change_30d < -20:
            points += 15
            signals.append(f"Holders down {change_30d:.1f}% over 30 days")
        elif 20 < change_30d < 100:
            points -= 5

    points = norm.clamp(points, 0, 50)
    return RiskFactor(name=HOLDER_VELOCITY, score=points * 2, signals=signals)


def calculate_wash_trading(token: TokenData, tracker: DataQualityTracker) -> RiskFactor:
    """Score patterns typical of wash trading."""
    pattern = token.trade_pattern
    if pattern is None or pattern.tx_count is None or pattern.unique_wallets is None:
        tracker.missing("trade_pattern")
        return _neutral(WASH_TRADING, "no trade pattern data")
    tracker.present("trade_pattern")

    points = 0.0
    signals = []
    if pattern.tx_count > 50 and pattern.unique_wallets < 20:
        points += 35
        signals.append(
            f"{pattern.tx_count} transactions from only {pattern.unique_wallets} wallets"
        )
    if pattern.buyers is not None and pattern.sellers is not None:
        ratio = pattern.buyers / max(pattern.sellers, 1)
        if ratio > 5 or ratio < 0.2:
            points += 25
            signals.append(f"Unbalanced buyer/seller ratio: {ratio:.2f}")
    if pattern.volume_usd and pattern.avg_wallet_size_usd and pattern.unique_wallets:
        per_wallet = pattern.volume_usd / pattern.unique_wallets
        if per_wallet > 10 * pattern.avg_wallet_size_usd:
            points += 20
            signals.append("Volume per wallet far above typical wallet size")

    points = min(points, 50.0)
    return RiskFactor(name=WASH_TRADING, score=points * 2, signals=signals)


def calculate_smart_money(token: TokenData, tracker: DataQualityTracker) -> RiskFactor:
    """Score holder and deployer wallet provenance."""
    profile = token.wallet_profile
    if profile is None or all(
        value is None
        for value in (
            profile.avg_holder_wallet_age_days,
            profile.deployer_wallet_age_days,
            profile.vc_holder_count,
        )
    ):
        tracker.missing("wallet_profile")
        return _neutral(SMART_MONEY, "no wallet profile")
    tracker.present("wallet_profile")

    score = 50.0
    signals = []
    if profile.vc_holder_count:
        score -= 20
        signals.append(f"{profile.vc_holder_count} known fund wallets hold the token")
    holder_age = profile.avg_holder_wallet_age_days
    if holder_age is not None:
        if holder_age < 30:
            score += 25
            signals.append("Holders are mostly fresh wallets")
        elif holder_age > 365:
            score -= 10
    deployer_age = profile.deployer_wallet_age_days
    if deployer_age is not None:
        if deployer_age < 7:
            score += 20
            signals.append("Deployer wallet is less than a week old")
        elif deployer_age > 365:
            score -= 5

    return RiskFactor(name=SMART_MONEY, score=norm.clamp(score), signals=signals)


def apply_market_cap_discount(factor: RiskFactor, market_cap: Optional[float]) -> RiskFactor:
    """Dampen a factor for large market caps, at most once per factor.

    Factors outside DISCOUNTED_FACTORS, UNKNOWN factors and factors already
    marked as discounted (such as a honeypot's contract control) are left
    as is.
    """
    if (
        factor.discount_applied
        or factor.name not in DISCOUNTED_FACTORS
        or factor.quality == FactorQuality.UNKNOWN
    ):
        return factor

    multiplier = norm.market_cap_multiplier(market_cap)
    factor.score = norm.clamp(factor.score * multiplier)
    factor.discount_applied = True
    return factor


CALCULATORS: Dict[str, Callable[[TokenData, DataQualityTracker], RiskFactor]] = {
    CONTRACT_CONTROL: calculate_contract_control,
    HOLDER_CONCENTRATION: calculate_holder_concentration,
    LIQUIDITY_DEPTH: calculate_liquidity_depth,
    MARKET_ACTIVITY: calculate_market_activity,
    SUPPLY_DILUTION: calculate_supply_dilution,
    BURN_DEFLATION: calculate_burn_deflation,
    TOKEN_AGE: calculate_token_age,
    HOLDER_VELOCITY: calculate_holder_velocity,
    WASH_TRADING: calculate_wash_trading,
    SMART_MONEY: calculate_smart_money,
}


def calculate_factors(
    token: TokenData,
    tracker: DataQualityTracker,
    min_liquidity_usd: float = 10_000.0
) -> List[RiskFactor]:
    """Run every calculator in FACTOR_NAMES order and apply market cap discounts."""
    factors = []
    for name in FACTOR_NAMES:
        if name == LIQUIDITY_DEPTH:
            factor = calculate_liquidity_depth(token, tracker, min_liquidity_usd)
        else:
            factor = CALCULATORS[name](token, tracker)
        factors.append(apply_market_cap_discount(factor, token.market_cap))
    return factors
