"""
Configuration management for the token risk engine.

Every scoring constant is a calibration default. Settings are plain
dataclasses loaded from ``TOKEN_RISK_*`` environment variables (a ``.env``
file is honoured) and validated before use.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv

from token_risk.errors import ConfigurationError
from token_risk.logging_config import get_logger

logger = get_logger(__name__)

ENV_PREFIX = "TOKEN_RISK_"


@dataclass
class ScoringSettings:
    """Calibration parameters for scoring, overrides and confidence."""

    # Liquidity below this USD amount gets a floor on its risk
    MIN_LIQUIDITY_USD: float = 10_000.0

    # Override engine
    CRITICAL_FLAG_PENALTY: float = 15.0
    MAX_CRITICAL_PENALTY: float = 30.0
    CRITICAL_FLOOR: float = 75.0
    CRITICAL_FLOOR_COUNT: int = 3

    # Risk level cutoffs (lower bound of each level)
    MEDIUM_THRESHOLD: int = 30
    HIGH_THRESHOLD: int = 60
    CRITICAL_THRESHOLD: int = 80

    # Confidence
    MISSING_FIELD_PENALTY: float = 6.0
    OPTIONAL_FIELD_PENALTY: float = 2.0
    ESTIMATED_FIELD_PENALTY: float = 3.0
    MIN_CONFIDENCE: float = 20.0

    # Market snapshot is considered fresh for this many seconds
    MARKET_DATA_TTL: float = 300.0

    def validate(self) -> None:
        """Validate scoring settings.

        Raises:
            ConfigurationError: If settings are invalid
        """
        if self.MIN_LIQUIDITY_USD <= 0:
            raise ConfigurationError(
                "Minimum liquidity must be positive",
                details={"setting": "MIN_LIQUIDITY_USD", "value": self.MIN_LIQUIDITY_USD}
            )

        if self.CRITICAL_FLAG_PENALTY < 0 or self.MAX_CRITICAL_PENALTY < 0:
            raise ConfigurationError(
                "Critical flag penalties must be non-negative",
                details={
                    "CRITICAL_FLAG_PENALTY": self.CRITICAL_FLAG_PENALTY,
                    "MAX_CRITICAL_PENALTY": self.MAX_CRITICAL_PENALTY,
                }
            )

        if not 0 <= self.CRITICAL_FLOOR <= 100:
            raise ConfigurationError(
                f"Critical floor must be within 0-100: {self.CRITICAL_FLOOR}",
                details={"setting": "CRITICAL_FLOOR", "value": self.CRITICAL_FLOOR}
            )

        if self.CRITICAL_FLOOR_COUNT < 1:
            raise ConfigurationError(
                "Critical floor count must be at least 1",
                details={"setting": "CRITICAL_FLOOR_COUNT", "value": self.CRITICAL_FLOOR_COUNT}
            )

        if not 0 < self.MEDIUM_THRESHOLD < self.HIGH_THRESHOLD < self.CRITICAL_THRESHOLD <= 100:
            raise ConfigurationError(
                "Risk level thresholds must be increasing within 1-100",
                details={
                    "MEDIUM_THRESHOLD": self.MEDIUM_THRESHOLD,
                    "HIGH_THRESHOLD": self.HIGH_THRESHOLD,
                    "CRITICAL_THRESHOLD": self.CRITICAL_THRESHOLD,
                }
            )

        if (
            self.MISSING_FIELD_PENALTY <= 0
            or self.OPTIONAL_FIELD_PENALTY <= 0
            or self.ESTIMATED_FIELD_PENALTY <= 0
        ):
            raise ConfigurationError(
                "Confidence penalties must be positive",
                details={
                    "MISSING_FIELD_PENALTY": self.MISSING_FIELD_PENALTY,
                    "OPTIONAL_FIELD_PENALTY": self.OPTIONAL_FIELD_PENALTY,
                    "ESTIMATED_FIELD_PENALTY": self.ESTIMATED_FIELD_PENALTY,
                }
            )

        if not 0 < self.MIN_CONFIDENCE <= 100:
            raise ConfigurationError(
                f"Minimum confidence must be within 1-100: {self.MIN_CONFIDENCE}",
                details={"setting": "MIN_CONFIDENCE", "value": self.MIN_CONFIDENCE}
            )

        if self.MARKET_DATA_TTL <= 0:
            raise ConfigurationError(
                "Market data TTL must be positive",
                details={"setting": "MARKET_DATA_TTL", "value": self.MARKET_DATA_TTL}
            )


@dataclass
class CacheSettings:
    """Behavioral cache settings."""

    CACHE_SHARDS: int = 16
    FETCH_TIMEOUT: float = 5.0

    # Per data class TTL overrides in seconds, keyed by data class value
    TTL_OVERRIDES: Dict[str, float] = field(default_factory=dict)

    def validate(self) -> None:
        """Validate cache settings.

        Raises:
            ConfigurationError: If settings are invalid
        """
        if self.CACHE_SHARDS <= 0:
            raise ConfigurationError(
                f"Cache shard count must be positive: {self.CACHE_SHARDS}",
                details={"setting": "CACHE_SHARDS", "value": self.CACHE_SHARDS}
            )

        if self.FETCH_TIMEOUT <= 0:
            raise ConfigurationError(
                f"Fetch timeout must be positive: {self.FETCH_TIMEOUT}",
                details={"setting": "FETCH_TIMEOUT", "value": self.FETCH_TIMEOUT}
            )

        for data_class, ttl in self.TTL_OVERRIDES.items():
            if ttl <= 0:
                raise ConfigurationError(
                    f"TTL for {data_class} must be positive",
                    details={"setting": "TTL_OVERRIDES", "data_class": data_class, "value": ttl}
                )


@dataclass
class LoggingSettings:
    """Logging configuration settings."""

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    def validate(self) -> None:
        """Validate logging settings.

        Raises:
            ConfigurationError: If settings are invalid
        """
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if self.LOG_LEVEL not in valid_levels:
            raise ConfigurationError(
                f"Invalid log level: {self.LOG_LEVEL}",
                details={
                    "setting": "LOG_LEVEL",
                    "value": self.LOG_LEVEL,
                    "valid_values": valid_levels
                }
            )


@dataclass
class Settings:
    """Global engine settings."""

    scoring: ScoringSettings = field(default_factory=ScoringSettings)
    cache: CacheSettings = field(default_factory=CacheSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    def validate(self) -> None:
        """Validate all settings.

        Raises:
            ConfigurationError: If any settings are invalid
        """
        self.scoring.validate()
        self.cache.validate()
        self.logging.validate()


def _env(name: str, default: str) -> str:
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


def _env_number(name: str, default: float, cast=float):
    raw = os.environ.get(f"{ENV_PREFIX}{name}")
    if raw is None or raw == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(
            f"Invalid numeric value for {ENV_PREFIX}{name}: {raw!r}",
            details={"setting": name, "value": raw}
        )


def load_from_env() -> Settings:
    """Load settings from environment variables.

    Returns:
        Settings object with values from environment variables
    """
    load_dotenv()

    defaults = ScoringSettings()
    scoring = ScoringSettings(
        MIN_LIQUIDITY_USD=_env_number("MIN_LIQUIDITY_USD", defaults.MIN_LIQUIDITY_USD),
        CRITICAL_FLAG_PENALTY=_env_number("CRITICAL_FLAG_PENALTY", defaults.CRITICAL_FLAG_PENALTY),
        MAX_CRITICAL_PENALTY=_env_number("MAX_CRITICAL_PENALTY", defaults.MAX_CRITICAL_PENALTY),
        CRITICAL_FLOOR=_env_number("CRITICAL_FLOOR", defaults.CRITICAL_FLOOR),
        CRITICAL_FLOOR_COUNT=_env_number("CRITICAL_FLOOR_COUNT", defaults.CRITICAL_FLOOR_COUNT, int),
        MEDIUM_THRESHOLD=_env_number("MEDIUM_THRESHOLD", defaults.MEDIUM_THRESHOLD, int),
        HIGH_THRESHOLD=_env_number("HIGH_THRESHOLD", defaults.HIGH_THRESHOLD, int),
        CRITICAL_THRESHOLD=_env_number("CRITICAL_THRESHOLD", defaults.CRITICAL_THRESHOLD, int),
        MISSING_FIELD_PENALTY=_env_number("MISSING_FIELD_PENALTY", defaults.MISSING_FIELD_PENALTY),
        OPTIONAL_FIELD_PENALTY=_env_number("OPTIONAL_FIELD_PENALTY", defaults.OPTIONAL_FIELD_PENALTY),
        ESTIMATED_FIELD_PENALTY=_env_number("ESTIMATED_FIELD_PENALTY", defaults.ESTIMATED_FIELD_PENALTY),
        MIN_CONFIDENCE=_env_number("MIN_CONFIDENCE", defaults.MIN_CONFIDENCE),
        MARKET_DATA_TTL=_env_number("MARKET_DATA_TTL", defaults.MARKET_DATA_TTL),
    )

    # Per-class TTLs, e.g. TOKEN_RISK_TTL_HOLDER_HISTORY=120
    ttl_overrides = {}
    ttl_prefix = f"{ENV_PREFIX}TTL_"
    for key in os.environ:
        if key.startswith(ttl_prefix):
            data_class = key[len(ttl_prefix):].lower()
            ttl_overrides[data_class] = _env_number(f"TTL_{data_class.upper()}", 0.0)

    cache = CacheSettings(
        CACHE_SHARDS=_env_number("CACHE_SHARDS", 16, int),
        FETCH_TIMEOUT=_env_number("FETCH_TIMEOUT", 5.0),
        TTL_OVERRIDES=ttl_overrides,
    )

    logging_settings = LoggingSettings(
        LOG_LEVEL=_env("LOG_LEVEL", "INFO").upper(),
        LOG_JSON=_env("LOG_JSON", "true").lower() in ("true", "1", "yes", "on"),
    )

    return Settings(scoring=scoring, cache=cache, logging=logging_settings)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the process-wide settings, loading and validating them on first use.

    Returns:
        Validated Settings object

    Raises:
        ConfigurationError: If the environment holds invalid settings
    """
    global _settings

    if _settings is None:
        settings = load_from_env()
        try:
            settings.validate()
        except ConfigurationError as e:
            logger.error("Configuration error", error=str(e))
            raise
        _settings = settings

    return _settings


def reset_settings() -> None:
    """Forget the cached settings so the next call reloads them."""
    global _settings
    _settings = None
