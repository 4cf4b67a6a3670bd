"""Chain family detection and address normalization."""

from enum import Enum
from typing import Union

EVM_CHAIN_IDS = {1, 56, 137, 43114, 250, 42161, 10, 8453, 11155111}
SOLANA_CHAIN_ID = 501
CARDANO_CHAIN_ID = 1815

EVM_CHAIN_NAMES = {
    "ethereum", "eth", "bsc", "bnb", "binance-smart-chain", "polygon", "matic",
    "avalanche", "avax", "fantom", "ftm", "arbitrum", "optimism", "base",
    "sepolia", "evm",
}
SOLANA_CHAIN_NAMES = {"solana", "sol"}
CARDANO_CHAIN_NAMES = {"cardano", "ada"}


class ChainType(str, Enum):
    """Chain families with distinct security models."""
    EVM = "evm"
    SOLANA = "solana"
    CARDANO = "cardano"
    OTHER = "other"


def detect_chain_type(chain: Union[str, int, None]) -> ChainType:
    """Detect the chain family from a chain name or numeric chain id.

    Args:
        chain: Chain name ("ethereum", "solana"), numeric id (1, 501) or
            a numeric id given as a string

    Returns:
        ChainType of the chain, OTHER when unrecognised
    """
    if chain is None:
        return ChainType.OTHER

    if isinstance(chain, str):
        value = chain.strip().lower()
        if value.isdigit():
            return detect_chain_type(int(value))
        if value in SOLANA_CHAIN_NAMES:
            return ChainType.SOLANA
        if value in CARDANO_CHAIN_NAMES:
            return ChainType.CARDANO
        if value in EVM_CHAIN_NAMES:
            return ChainType.EVM
        return ChainType.OTHER

    if chain == SOLANA_CHAIN_ID:
        return ChainType.SOLANA
    if chain == CARDANO_CHAIN_ID:
        return ChainType.CARDANO
    if chain in EVM_CHAIN_IDS:
        return ChainType.EVM
    return ChainType.OTHER


def normalize_chain(chain: Union[str, int, None]) -> str:
    """Normalize a chain identifier for use in cache keys."""
    if chain is None:
        return ""
    return str(chain).strip().lower()


def normalize_address(address: str) -> str:
    """Normalize a token address for use in cache keys.

    Addresses are compared case-insensitively, so EVM checksummed and
    lower-case forms map to the same key.
    """
    return (address or "").strip().lower()
