"""
Flag validation.

Each ``check_*`` rule turns one raw signal into a RiskFlag. A rule declares a
baseline severity hint in BASELINE_HINTS; token context (age, market cap,
chain) may relax the severity below that hint but can never raise it above.
"""

from typing import Callable, Dict, List, Optional, Sequence

from token_risk.chains import ChainType
from token_risk.models.risk import FlagSeverity, RiskFlag
from token_risk.models.token import TokenData

CRITICAL = FlagSeverity.CRITICAL
WARNING = FlagSeverity.WARNING
INFO = FlagSeverity.INFO

# Age below which a token gets grace for naturally thin holder data
NEW_TOKEN_DAYS = 7
# Market cap and age above which a token counts as established
ESTABLISHED_MARKET_CAP = 1_000_000_000
ESTABLISHED_AGE_DAYS = 365

BASELINE_HINTS: Dict[str, FlagSeverity] = {
    "honeypot": CRITICAL,
    "cannot_buy": CRITICAL,
    "freeze_authority": CRITICAL,
    "mint_authority": CRITICAL,
    "low_holder_count": CRITICAL,
    "holder_concentration": CRITICAL,
    "low_liquidity": CRITICAL,
    "liquidity_ratio": CRITICAL,
    "high_tax": CRITICAL,
    "lp_unlocked_owner": CRITICAL,
    "cardano_policy_unlocked": WARNING,
    "not_honeypot": INFO,
    "owner_renounced": INFO,
    "lp_locked": INFO,
    "solana_authorities_revoked": INFO,
    "cardano_policy_final": INFO,
    "established_token": INFO,
}

POSITIVE_CODES = frozenset({
    "not_honeypot",
    "owner_renounced",
    "lp_locked",
    "solana_authorities_revoked",
    "cardano_policy_final",
    "established_token",
})

FLAG_PREFIXES = {
    CRITICAL: "🚨",
    WARNING: "⚠️",
    INFO: "ℹ️",
}
POSITIVE_PREFIX = "✅"


def make_flag(code: str, severity: FlagSeverity, message: str, **context) -> RiskFlag:
    """Build a flag whose validated severity never exceeds the code's hint."""
    hint = BASELINE_HINTS[code]
    return RiskFlag(
        code=code,
        raw_severity_hint=hint,
        validated_severity=severity.relax_to(hint),
        message=message,
        context=context,
    )


def is_new_token(token: TokenData) -> bool:
    return token.age_days is not None and token.age_days < NEW_TOKEN_DAYS


def is_established(token: TokenData) -> bool:
    return (
        (token.market_cap or 0) > ESTABLISHED_MARKET_CAP
        and token.age_days is not None
        and token.age_days > ESTABLISHED_AGE_DAYS
    )


def check_honeypot(token: TokenData) -> Optional[RiskFlag]:
    if not token.is_honeypot:
        return None
    return make_flag("honeypot", CRITICAL, "Honeypot detected - tokens cannot be sold")


def check_cannot_buy(token: TokenData) -> Optional[RiskFlag]:
    if token.evm is None or not token.evm.cannot_buy:
        return None
    return make_flag("cannot_buy", CRITICAL, "Token cannot be bought")


def check_freeze_authority(token: TokenData) -> Optional[RiskFlag]:
    """Freeze authority lets the issuer lock holders' balances.

    Established large caps (regulated stablecoins) keep the authority for
    compliance, so the flag is relaxed to WARNING for them.
    """
    active = token.freeze_authority_exists
    if token.solana is not None and token.solana.freeze_authority is not None:
        active = token.solana.freeze_authority
    if not active:
        return None

    severity = WARNING if is_established(token) else CRITICAL
    return make_flag(
        "freeze_authority",
        severity,
        "Freeze authority active - issuer can freeze holder accounts",
        market_cap=token.market_cap,
        age_days=token.age_days,
    )


def check_mint_authority(token: TokenData) -> Optional[RiskFlag]:
    """Active mint authority; critical while the token is young.

    Solana tokens get a longer young window because revoking the mint
    authority is the norm there.
    """
    if token.chain_type == ChainType.SOLANA and token.solana is not None \
            and token.solana.mint_authority is not None:
        active = token.solana.mint_authority
        young_days = 90
    else:
        active = bool(token.is_mintable) and token.owner_renounced is not True
        young_days = 30
    if not active:
        return None

    if token.age_days is None or token.age_days < young_days:
        severity = CRITICAL
        message = "Active mint authority on a young token - supply can be inflated"
    else:
        severity = WARNING
        message = "Active mint authority - supply can be inflated"
    return make_flag(
        "mint_authority",
        severity,
        message,
        age_days=token.age_days,
        young_days=young_days,
    )


def check_holder_count(token: TokenData) -> Optional[RiskFlag]:
    """Very few holders; new tokens naturally start with few."""
    count = token.holder_count
    if count is None or count >= 50:
        return None

    if count < 10:
        severity = CRITICAL
    elif (token.market_cap or 0) > 1_000_000:
        severity = CRITICAL
    else:
        severity = WARNING
    if is_new_token(token):
        severity = severity.relax_to(WARNING)

    return make_flag(
        "low_holder_count",
        severity,
        f"Only {count} holders",
        holder_count=count,
        market_cap=token.market_cap,
        age_days=token.age_days,
    )


def check_concentration(token: TokenData) -> Optional[RiskFlag]:
    """Top-10 holder concentration; new tokens get grace."""
    pct = token.top10_holder_pct
    if pct is None or pct < 60:
        return None

    if pct >= 80:
        severity = WARNING if is_new_token(token) else CRITICAL
    else:
        severity = WARNING
    return make_flag(
        "holder_concentration",
        severity,
        f"Top 10 holders control {pct:.1f}% of supply",
        top10_holder_pct=pct,
        age_days=token.age_days,
    )


def check_liquidity(token: TokenData) -> Optional[RiskFlag]:
    """Thin or draining liquidity; reports the most severe finding."""
    liquidity = token.liquidity_usd
    if liquidity is None:
        return None
    market_cap = token.market_cap or 0

    findings = []
    if liquidity < 1_000 and market_cap > 100_000:
        findings.append((CRITICAL, f"Liquidity of ${liquidity:,.0f} cannot support the market cap"))
    elif liquidity < 10_000 and market_cap > 1_000_000:
        findings.append((CRITICAL, f"Liquidity of ${liquidity:,.0f} on a $1M+ market cap"))

    history = token.liquidity_history
    change = history.change_7d if history is not None else None
    if change is not None:
        if change < -50:
            findings.append((CRITICAL, f"Liquidity drained {change:.1f}% in 7 days"))
        elif change < -15:
            findings.append((WARNING, f"Liquidity down {change:.1f}% in 7 days"))

    if market_cap > 100_000 and liquidity / market_cap < 0.01:
        findings.append((WARNING, "Liquidity below 1% of market cap"))

    if not findings:
        return None
    severity, message = max(findings, key=lambda finding: finding[0].rank)
    return make_flag(
        "low_liquidity",
        severity,
        message,
        liquidity_usd=liquidity,
        market_cap=token.market_cap,
        change_7d=change,
    )


def check_liquidity_ratio(token: TokenData) -> Optional[RiskFlag]:
    """Market cap far above liquidity means the price cannot be realised."""
    if not token.liquidity_usd or not token.market_cap:
        return None
    ratio = token.market_cap / token.liquidity_usd
    age = token.age_days

    if ratio > 1000:
        severity = CRITICAL if age is None or age < 30 else WARNING
    elif ratio > 500:
        severity = INFO if age is not None and age > 365 else WARNING
    else:
        return None
    return make_flag(
        "liquidity_ratio",
        severity,
        f"Market cap is {ratio:,.0f}x liquidity",
        ratio=ratio,
        age_days=age,
    )


def check_high_tax(token: TokenData) -> Optional[RiskFlag]:
    sell_tax = token.sell_tax or 0.0
    buy_tax = token.buy_tax or 0.0
    if sell_tax > 50:
        severity = CRITICAL
        message = f"Sell tax of {sell_tax:.1f}%"
    elif sell_tax > 20 or buy_tax > 20:
        severity = WARNING
        message = f"High trading tax: buy {buy_tax:.1f}%, sell {sell_tax:.1f}%"
    else:
        return None
    return make_flag("high_tax", severity, message, buy_tax=buy_tax, sell_tax=sell_tax)


def check_lp_owner(token: TokenData) -> Optional[RiskFlag]:
    """Unlocked liquidity held mostly by the owner can be pulled."""
    pct = token.lp_owner_pct
    if pct is None or pct <= 50 or token.lp_locked:
        return None

    age = token.age_days
    severity = CRITICAL if age is None or age < 30 else WARNING
    return make_flag(
        "lp_unlocked_owner",
        severity,
        f"Owner wallet holds {pct:.1f}% of unlocked liquidity",
        lp_owner_pct=pct,
        age_days=age,
    )


def check_cardano_policy(token: TokenData) -> Optional[RiskFlag]:
    if token.chain_type != ChainType.CARDANO or token.cardano is None:
        return None
    if token.cardano.policy_locked is not False:
        return None
    return make_flag(
        "cardano_policy_unlocked",
        WARNING,
        "Minting policy is not time-locked",
    )


def check_positive_signals(token: TokenData) -> List[RiskFlag]:
    """Informational signals that lower perceived risk."""
    signals = []
    if token.is_honeypot is False:
        signals.append(make_flag("not_honeypot", INFO, "Passed honeypot check"))
    if token.owner_renounced and not token.is_mintable:
        signals.append(make_flag("owner_renounced", INFO, "Ownership renounced"))
    if token.lp_locked:
        signals.append(make_flag("lp_locked", INFO, "Liquidity is locked"))
    if token.chain_type == ChainType.SOLANA and token.solana is not None \
            and token.solana.all_revoked:
        signals.append(
            make_flag("solana_authorities_revoked", INFO, "Mint and freeze authorities revoked")
        )
    if token.chain_type == ChainType.CARDANO and token.cardano is not None \
            and token.cardano.policy_locked and token.cardano.policy_expired:
        signals.append(
            make_flag("cardano_policy_final", INFO, "Minting policy locked and expired")
        )
    if is_established(token):
        signals.append(
            make_flag(
                "established_token",
                INFO,
                f"Established token: {token.age_days:.0f} days old",
                market_cap=token.market_cap,
                age_days=token.age_days,
            )
        )
    return signals


RULES: Sequence[Callable[[TokenData], Optional[RiskFlag]]] = (
    check_honeypot,
    check_cannot_buy,
    check_freeze_authority,
    check_mint_authority,
    check_holder_count,
    check_concentration,
    check_liquidity,
    check_liquidity_ratio,
    check_high_tax,
    check_lp_owner,
    check_cardano_policy,
)


def sort_flags(flags: Sequence[RiskFlag]) -> List[RiskFlag]:
    """Order flags by descending severity, keeping input order within a severity."""
    return sorted(flags, key=lambda flag: -flag.validated_severity.rank)


def validate_flags(token: TokenData) -> List[RiskFlag]:
    """Run every rule against the token.

    Returns:
        Validated flags sorted by descending severity
    """
    flags = [flag for flag in (rule(token) for rule in RULES) if flag is not None]
    flags.extend(check_positive_signals(token))
    return sort_flags(flags)


def format_flag(flag: RiskFlag) -> str:
    if flag.code in POSITIVE_CODES:
        return f"{POSITIVE_PREFIX} {flag.message}"
    return f"{FLAG_PREFIXES[flag.validated_severity]} {flag.message}"


def categorize_flags(flags: Sequence[RiskFlag]) -> Dict[str, List[str]]:
    """Split validated flags into the three output lists.

    INFO flags that are not positive signals are reported with the warnings.
    """
    result: Dict[str, List[str]] = {
        "critical_flags": [],
        "warning_flags": [],
        "positive_signals": [],
    }
    for flag in sort_flags(flags):
        if flag.code in POSITIVE_CODES:
            result["positive_signals"].append(format_flag(flag))
        elif flag.validated_severity == CRITICAL:
            result["critical_flags"].append(format_flag(flag))
        else:
            result["warning_flags"].append(format_flag(flag))
    return result
