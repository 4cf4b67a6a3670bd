"""Token archetype classification from name, symbol and description keywords."""

import re
from enum import Enum
from typing import Dict, List, Optional, Union

from token_risk.logging_config import get_logger, log_with_context

logger = get_logger(__name__)


class TokenArchetype(str, Enum):
    """Token archetypes, each with its own weight profile."""
    STANDARD = "STANDARD"
    MEME = "MEME"
    STABLECOIN = "STABLECOIN"
    DEFI = "DEFI"


# Checked in this order; the first archetype with a match wins
ARCHETYPE_KEYWORDS: Dict[TokenArchetype, List[str]] = {
    TokenArchetype.STABLECOIN: [
        "usd", "usdt", "usdc", "dai", "busd", "tusd", "fdusd", "pyusd", "usde",
        "stable", "stablecoin", "dollar", "tether", "peg", "pegged", "eurc", "euro",
    ],
    TokenArchetype.MEME: [
        "meme", "doge", "pepe", "shib", "inu", "floki", "bonk", "wojak", "elon",
        "moon", "rocket", "safe", "baby", "maga", "trump", "cat", "dog", "frog",
        "ape", "chad", "based", "corgi", "pup", "doggo", "dogwifhat",
    ],
    TokenArchetype.DEFI: [
        "swap", "yield", "farm", "stake", "staking", "dao", "governance", "lend",
        "lending", "borrow", "amm", "pool", "vault", "oracle", "dex", "perp",
        "aave", "compound", "curve", "sushi", "pancake", "uniswap", "finance",
    ],
}

_PATTERNS = {
    archetype: [(keyword, re.compile(r"\b" + re.escape(keyword) + r"\b")) for keyword in keywords]
    for archetype, keywords in ARCHETYPE_KEYWORDS.items()
}


def parse_archetype(hint: Union[str, TokenArchetype, None]) -> Optional[TokenArchetype]:
    """Convert an explicit classification hint into an archetype.

    Returns None for a missing hint. An unrecognised hint is logged and
    also returns None so classification falls back to heuristics.
    """
    if hint is None or isinstance(hint, TokenArchetype):
        return hint
    value = str(hint).strip().upper()
    if not value:
        return None
    try:
        return TokenArchetype(value)
    except ValueError:
        log_with_context(
            logger,
            "warning",
            "Unknown archetype hint ignored",
            hint=hint,
            valid=[a.value for a in TokenArchetype],
        )
        return None


def matched_keywords(text: str, archetype: TokenArchetype) -> List[str]:
    """Keywords of an archetype found as whole words in text."""
    lowered = text.lower()
    return [keyword for keyword, pattern in _PATTERNS[archetype] if pattern.search(lowered)]


def classify_archetype(
    name: Optional[str] = None,
    symbol: Optional[str] = None,
    description: Optional[str] = None,
    hint: Union[str, TokenArchetype, None] = None
) -> TokenArchetype:
    """Classify a token into an archetype.

    Args:
        name: Token name
        symbol: Token symbol
        description: Free-form token description
        hint: Explicit classification, overrides the keyword heuristics

    Returns:
        TokenArchetype, STANDARD when nothing matches
    """
    explicit = parse_archetype(hint)
    if explicit is not None:
        return explicit

    text = " ".join(part for part in (name, symbol, description) if part)
    if not text:
        return TokenArchetype.STANDARD

    for archetype in ARCHETYPE_KEYWORDS:
        if matched_keywords(text, archetype):
            return archetype

    return TokenArchetype.STANDARD
