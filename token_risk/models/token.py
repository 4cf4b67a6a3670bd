"""
Token data models for the token risk engine.

This module defines the normalized, immutable input shape the engine scores.
Provider adapters map their raw payloads onto these models; the engine never
sees provider-specific field names.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from token_risk.chains import ChainType, detect_chain_type
from token_risk.errors import InvalidInputError

MODEL_CONFIG = ConfigDict(frozen=True, extra="ignore", allow_inf_nan=False)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _percent_change(current: Optional[float], reference: Optional[float]) -> Optional[float]:
    if current is None or not reference:
        return None
    return (current - reference) / reference * 100


class EvmSecurity(BaseModel):
    """EVM contract security flags as reported by a contract scanner."""
    model_config = MODEL_CONFIG

    is_proxy: Optional[bool] = None
    is_pausable: Optional[bool] = None
    is_open_source: Optional[bool] = None
    cannot_buy: Optional[bool] = None
    tax_modifiable: Optional[bool] = None


class SolanaSecurity(BaseModel):
    """Solana SPL token authorities; True means the authority is still set."""
    model_config = MODEL_CONFIG

    mint_authority: Optional[bool] = None
    freeze_authority: Optional[bool] = None
    program_authority: Optional[bool] = None

    @property
    def all_revoked(self) -> bool:
        return (
            self.mint_authority is False
            and self.freeze_authority is False
            and self.program_authority is not True
        )


class CardanoSecurity(BaseModel):
    """Cardano native asset minting policy state."""
    model_config = MODEL_CONFIG

    policy_locked: Optional[bool] = None
    policy_expired: Optional[bool] = None
    policy_script: Optional[str] = None


class HistorySnapshot(BaseModel):
    """
    A metric (holder count or liquidity USD) sampled now, 7 and 30 days ago.
    """
    model_config = MODEL_CONFIG

    current: Optional[float] = Field(None, ge=0)
    day_7_ago: Optional[float] = Field(None, ge=0)
    day_30_ago: Optional[float] = Field(None, ge=0)
    observed_at: Optional[datetime] = None

    @field_validator("observed_at")
    @classmethod
    def observed_at_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    @property
    def change_7d(self) -> Optional[float]:
        """Percent change over seven days, None when not computable."""
        return _percent_change(self.current, self.day_7_ago)

    @property
    def change_30d(self) -> Optional[float]:
        """Percent change over thirty days, None when not computable."""
        return _percent_change(self.current, self.day_30_ago)


class TradePattern(BaseModel):
    """Recent trading activity used by the wash trading heuristic."""
    model_config = MODEL_CONFIG

    tx_count: Optional[int] = Field(None, ge=0)
    unique_wallets: Optional[int] = Field(None, ge=0)
    buyers: Optional[int] = Field(None, ge=0)
    sellers: Optional[int] = Field(None, ge=0)
    volume_usd: Optional[float] = Field(None, ge=0)
    avg_wallet_size_usd: Optional[float] = Field(None, ge=0)
    observed_at: Optional[datetime] = None

    @field_validator("observed_at")
    @classmethod
    def observed_at_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)


class WalletProfile(BaseModel):
    """Age and provenance of the wallets holding and deploying a token."""
    model_config = MODEL_CONFIG

    avg_holder_wallet_age_days: Optional[float] = Field(None, ge=0)
    deployer_wallet_age_days: Optional[float] = Field(None, ge=0)
    vc_holder_count: Optional[int] = Field(None, ge=0)
    observed_at: Optional[datetime] = None

    @field_validator("observed_at")
    @classmethod
    def observed_at_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)


class TokenData(BaseModel):
    """
    Normalized snapshot of a token's market, holder and security data.

    Numeric fields left as None are treated as missing. Percentages
    (top10_holder_pct, buy_tax, sell_tax, lp_owner_pct) are on a 0-100 scale.
    """
    model_config = MODEL_CONFIG

    # Identity
    chain: Union[str, int] = "ethereum"
    address: str = ""
    name: Optional[str] = None
    symbol: Optional[str] = None
    description: Optional[str] = None

    # Market
    market_cap: Optional[float] = Field(None, ge=0)
    fdv: Optional[float] = Field(None, ge=0)
    liquidity_usd: Optional[float] = Field(None, ge=0)
    volume_24h: Optional[float] = Field(None, ge=0)

    # Supply
    total_supply: Optional[float] = Field(None, ge=0)
    circulating_supply: Optional[float] = Field(None, ge=0)
    max_supply: Optional[float] = Field(None, ge=0)
    burned_supply: Optional[float] = Field(None, ge=0)

    # Holders and activity
    holder_count: Optional[int] = Field(None, ge=0)
    top10_holder_pct: Optional[float] = Field(None, ge=0, le=100)
    tx_count_24h: Optional[int] = Field(None, ge=0)
    age_days: Optional[float] = Field(None, ge=0)

    # Critical-condition indicators
    is_honeypot: Optional[bool] = None
    is_mintable: Optional[bool] = None
    owner_renounced: Optional[bool] = None
    freeze_authority_exists: Optional[bool] = None
    buy_tax: Optional[float] = Field(None, ge=0, le=100)
    sell_tax: Optional[float] = Field(None, ge=0, le=100)
    lp_locked: Optional[bool] = None
    lp_owner_pct: Optional[float] = Field(None, ge=0, le=100)

    # Chain specific security
    evm: Optional[EvmSecurity] = None
    solana: Optional[SolanaSecurity] = None
    cardano: Optional[CardanoSecurity] = None

    # Behavioral data
    holder_history: Optional[HistorySnapshot] = None
    liquidity_history: Optional[HistorySnapshot] = None
    trade_pattern: Optional[TradePattern] = None
    wallet_profile: Optional[WalletProfile] = None

    fetched_at: Optional[datetime] = None

    @field_validator("fetched_at")
    @classmethod
    def fetched_at_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Treat naive timestamps as UTC."""
        return _as_utc(v)

    @field_validator("address")
    @classmethod
    def strip_address(cls, v: str) -> str:
        """Strip surrounding whitespace from the address."""
        return v.strip()

    @model_validator(mode="after")
    def check_supply_consistency(self) -> "TokenData":
        """Reject supply figures that cannot describe a real token."""
        if self.total_supply is not None:
            if self.circulating_supply is not None and self.circulating_supply > self.total_supply:
                raise ValueError("circulating_supply cannot exceed total_supply")
            if self.burned_supply is not None and self.burned_supply > self.total_supply:
                raise ValueError("burned_supply cannot exceed total_supply")
        return self

    @property
    def chain_type(self) -> ChainType:
        """Chain family of this token."""
        return detect_chain_type(self.chain)

    @classmethod
    def from_provider(cls, data: Mapping[str, Any]) -> "TokenData":
        """Build TokenData from an already-normalized provider mapping.

        Args:
            data: Mapping with TokenData field names

        Returns:
            Validated TokenData

        Raises:
            InvalidInputError: If the mapping is structurally invalid
        """
        if not isinstance(data, Mapping):
            raise InvalidInputError(
                f"Token data must be a mapping, got {type(data).__name__}"
            )

        try:
            return cls.model_validate(dict(data))
        except ValidationError as e:
            fields = []
            problems: Dict[str, str] = {}
            for error in e.errors():
                location = ".".join(str(part) for part in error["loc"]) or "__root__"
                fields.append(location)
                problems[location] = error["msg"]
            raise InvalidInputError(
                "Invalid token data",
                fields=fields,
                details={"errors": problems}
            ) from e
