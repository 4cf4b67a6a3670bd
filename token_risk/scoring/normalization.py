"""
Normalization primitives.

Each primitive turns one or two raw metrics into a 0-100 sub-risk
(0 = safest, 100 = riskiest) using piecewise-linear calibration curves.
All functions are pure; curve points are calibration defaults.
"""

from typing import Optional, Sequence, Tuple

Curve = Sequence[Tuple[float, float]]

# Top-10 holder percentage -> risk
CONCENTRATION_CURVE: Curve = (
    (0, 0), (20, 5), (30, 12), (40, 25), (50, 40),
    (60, 55), (70, 70), (80, 85), (90, 95), (100, 100),
)

# Liquidity / market cap -> risk
LIQUIDITY_RATIO_CURVE: Curve = (
    (0, 100), (0.005, 85), (0.01, 70), (0.02, 55),
    (0.05, 35), (0.10, 15), (0.20, 5), (0.5, 0),
)

# Absolute liquidity USD -> risk
LIQUIDITY_DEPTH_CURVE: Curve = (
    (0, 100), (10_000, 75), (100_000, 45),
    (1_000_000, 25), (10_000_000, 10), (100_000_000, 0),
)

# Minimum risk for liquidity below the configured minimum, on the 0..1
# fraction of that minimum
LIQUIDITY_FLOOR_CURVE: Curve = ((0, 100), (0.1, 95), (0.5, 85), (1.0, 75))

# Market cap thresholds -> multiplier, checked top down
MARKET_CAP_DISCOUNTS: Sequence[Tuple[float, float]] = (
    (50_000_000_000, 0.2),
    (10_000_000_000, 0.4),
    (1_000_000_000, 0.6),
    (100_000_000, 0.85),
)

# FDV / market cap (or max / circulating supply) -> risk
DILUTION_CURVE: Curve = (
    (1, 0), (1.5, 10), (2, 20), (4, 40),
    (10, 65), (20, 80), (50, 95), (100, 100),
)

# Burned / total supply -> risk
BURN_CURVE: Curve = ((0, 60), (0.01, 50), (0.05, 40), (0.2, 25), (0.5, 10), (1, 10))

# Age in days -> risk
AGE_CURVE: Curve = (
    (0, 100), (1, 90), (7, 70), (30, 45), (90, 30),
    (180, 20), (365, 10), (730, 5), (1825, 0),
)

# 24h transaction count -> risk
TX_COUNT_CURVE: Curve = ((0, 100), (5, 85), (25, 65), (100, 40), (500, 15), (2000, 0))

# 24h volume / market cap -> risk; rises again for implausible turnover
TURNOVER_CURVE: Curve = (
    (0, 100), (0.0001, 85), (0.001, 60), (0.01, 25),
    (0.05, 5), (0.5, 5), (2, 20), (5, 45),
)


def clamp(value: float, lo: float = 0.0, hi: float = 100.0) -> float:
    """Clamp a value into [lo, hi]."""
    return max(lo, min(hi, value))


def interpolate(x: float, points: Curve) -> float:
    """Piecewise-linear interpolation over sorted (x, y) points.

    Values outside the curve take the value of the nearest end point.
    """
    if x <= points[0][0]:
        return float(points[0][1])
    for (x0, y0), (x1, y1) in zip(points, points[1:]):
        if x <= x1:
            if x1 == x0:
                return float(y1)
            return y0 + (y1 - y0) * (x - x0) / (x1 - x0)
    return float(points[-1][1])


def concentration_risk(top10_pct: float) -> float:
    """Risk from the share of supply held by the ten largest holders."""
    return clamp(interpolate(top10_pct, CONCENTRATION_CURVE))


def liquidity_risk(
    liquidity_usd: float,
    market_cap: Optional[float],
    min_liquidity_usd: float = 10_000.0
) -> float:
    """Risk from liquidity depth relative to market cap and in absolute terms.

    Args:
        liquidity_usd: Pool liquidity in USD
        market_cap: Market cap in USD, None or 0 to score depth only
        min_liquidity_usd: Liquidity below this gets a risk floor

    Returns:
        Risk 0-100
    """
    depth = interpolate(liquidity_usd, LIQUIDITY_DEPTH_CURVE)
    if market_cap:
        ratio = interpolate(liquidity_usd / market_cap, LIQUIDITY_RATIO_CURVE)
        risk = (ratio + depth) / 2
    else:
        risk = depth

    if liquidity_usd < min_liquidity_usd:
        floor = interpolate(liquidity_usd / min_liquidity_usd, LIQUIDITY_FLOOR_CURVE)
        risk = max(risk, floor)

    return clamp(risk)


def market_cap_multiplier(market_cap: Optional[float]) -> float:
    """Single multiplier for the market cap bracket; 1.0 below all thresholds."""
    if not market_cap:
        return 1.0
    for threshold, multiplier in MARKET_CAP_DISCOUNTS:
        if market_cap >= threshold:
            return multiplier
    return 1.0


def fdv_dilution_risk(fdv: float, market_cap: float) -> float:
    """Risk from fully-diluted valuation exceeding market cap."""
    if market_cap <= 0:
        return 100.0 if fdv > 0 else 50.0
    return clamp(interpolate(fdv / market_cap, DILUTION_CURVE))


def supply_overhang_risk(max_supply: float, circulating_supply: float) -> float:
    """Risk from supply still to be released (max / circulating)."""
    if circulating_supply <= 0:
        return 100.0 if max_supply > 0 else 50.0
    return clamp(interpolate(max_supply / circulating_supply, DILUTION_CURVE))


def burn_risk(burned_supply: float, total_supply: float) -> float:
    """Risk reduced by burned supply; bounded between 10 and 60."""
    if total_supply <= 0:
        return interpolate(0, BURN_CURVE)
    return clamp(interpolate(burned_supply / total_supply, BURN_CURVE))


def age_risk(age_days: float) -> float:
    """Risk decreasing with token age, flat after maturity."""
    return clamp(interpolate(age_days, AGE_CURVE))


def activity_risk(
    tx_count_24h: Optional[int],
    volume_24h: Optional[float],
    market_cap: Optional[float]
) -> float:
    """Risk from 24h transactions and volume relative to market cap.

    Either input may be None; at least one must be given. No activity at all
    on a token with a nonzero market cap is maximal risk.
    """
    observed = tx_count_24h is not None or volume_24h is not None
    if observed and not tx_count_24h and not volume_24h and market_cap:
        return 100.0

    parts = []
    if tx_count_24h is not None:
        parts.append(interpolate(tx_count_24h, TX_COUNT_CURVE))
    if volume_24h is not None and market_cap:
        parts.append(interpolate(volume_24h / market_cap, TURNOVER_CURVE))
    if not parts:
        return 50.0
    return clamp(sum(parts) / len(parts))
