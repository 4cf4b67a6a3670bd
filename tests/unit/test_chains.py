"""Unit tests for chain detection."""

import pytest

from token_risk.chains import ChainType, detect_chain_type, normalize_address, normalize_chain


@pytest.mark.parametrize("chain,expected", [
    ("ethereum", ChainType.EVM),
    (" BSC ", ChainType.EVM),
    (1, ChainType.EVM),
    ("8453", ChainType.EVM),
    ("solana", ChainType.SOLANA),
    (501, ChainType.SOLANA),
    ("ADA", ChainType.CARDANO),
    (1815, ChainType.CARDANO),
    ("tron", ChainType.OTHER),
    (999999, ChainType.OTHER),
    (None, ChainType.OTHER),
])
def test_detect_chain_type(chain, expected):
    assert detect_chain_type(chain) == expected


def test_normalization():
    assert normalize_chain(" Ethereum ") == "ethereum"
    assert normalize_chain(56) == "56"
    assert normalize_chain(None) == ""
    assert normalize_address(" 0xAbCd ") == "0xabcd"
    assert normalize_address(None) == ""
