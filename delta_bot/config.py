"""
Configuration management for the hedging bot.
Uses Pydantic for validation and environment variable loading.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from delta_bot.exceptions import ConfigError


class ExchangeConfig(BaseSettings):
    """Delta Exchange credentials and transport settings."""

    model_config = SettingsConfigDict(env_prefix="DELTA_")

    api_key: str = ""
    api_secret: str = ""
    base_url: str = "https://api.delta.exchange"
    request_timeout_seconds: float = 10.0


class AgentConfig(BaseSettings):
    """Initial hedging parameters."""

    model_config = SettingsConfigDict(env_prefix="AGENT_")

    delta_threshold: float = 0.15  # Fraction of notional
    check_interval_ms: int = 60000
    min_hedge_size: float = 0.01  # Contracts
    hedge_product_id: int = 27  # ETH perpetual


class Settings(BaseSettings):
    """Main settings container."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Sub-configurations
    exchange: ExchangeConfig = Field(default_factory=ExchangeConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)

    # Paths
    project_root: Path = Path(__file__).parent.parent
    log_dir: Path = Field(default_factory=lambda: Path(__file__).parent.parent / "logs")

    # Logging
    log_level: str = "INFO"


class BotSettings(BaseModel):
    """Runtime settings owned by the engine."""

    model_config = ConfigDict(frozen=True)

    # Strict: no bools, numeric strings or fractional intervals
    delta_threshold: float = Field(default=0.15, ge=0, strict=True)
    check_interval_ms: int = Field(default=60000, gt=0, strict=True)
    min_hedge_size: float = Field(default=0.01, ge=0, strict=True)
    hedge_product_id: int = Field(default=27, gt=0, strict=True)

    @classmethod
    def from_config(cls, config: AgentConfig) -> "BotSettings":
        try:
            return cls(
                delta_threshold=config.delta_threshold,
                check_interval_ms=config.check_interval_ms,
                min_hedge_size=config.min_hedge_size,
                hedge_product_id=config.hedge_product_id,
            )
        except ValidationError as e:
            raise ConfigError(_describe(e)) from e

    @property
    def check_interval_seconds(self) -> float:
        return self.check_interval_ms / 1000.0


# Accepts the dashboard's camelCase names alongside snake_case
_SETTING_ALIASES = {
    "deltaThreshold": "delta_threshold",
    "delta_threshold": "delta_threshold",
    "checkInterval": "check_interval_ms",
    "checkIntervalMs": "check_interval_ms",
    "check_interval_ms": "check_interval_ms",
    "minHedgeSize": "min_hedge_size",
    "min_hedge_size": "min_hedge_size",
    "hedgeProductId": "hedge_product_id",
    "hedge_product_id": "hedge_product_id",
}


@dataclass(frozen=True)
class SettingsUpdate:
    """Outcome of merging a partial settings update."""

    settings: BotSettings
    restart_required: bool


def apply_settings_update(
    current: BotSettings,
    partial: Mapping[str, Any],
) -> SettingsUpdate:
    """
    Merge a partial update into the current settings.

    Args:
        current: Settings currently in effect
        partial: Mapping of setting name to new value. None values are ignored.

    Returns:
        SettingsUpdate with the merged settings and whether the timer must be re-armed

    Raises:
        ConfigError: If a key is unknown or a value fails validation.
            The current settings are never modified.
    """
    unknown = sorted(k for k in partial if k not in _SETTING_ALIASES)
    if unknown:
        raise ConfigError(f"Unknown setting(s): {', '.join(unknown)}")

    changes = {
        _SETTING_ALIASES[key]: value
        for key, value in partial.items()
        if value is not None
    }

    merged = current.model_dump()
    merged.update(changes)

    try:
        new_settings = BotSettings.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(_describe(e)) from e

    return SettingsUpdate(
        settings=new_settings,
        restart_required=new_settings.check_interval_ms != current.check_interval_ms,
    )


def _describe(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        field = ".".join(str(loc) for loc in item["loc"]) or "settings"
        parts.append(f"{field}: {item['msg']}")
    return "Invalid settings: " + "; ".join(parts)


# Global settings instance
settings = Settings()
