"""Configuration for market_sync.

Loaded from YAML; every section is optional:

    exchanges: [bybit, hyperliquid]
    orderbook:
      quote_decimals: 2
      tick_size: 0.5
    signing:
      is_testnet: true
      private_key_env: MARKET_SYNC_PRIVATE_KEY
    log_level: DEBUG

Private keys never live in the config file; `signing.private_key_env` names
the environment variable (or .env entry) holding it.
"""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from market_sync.core.models import ExchangeName


class OrderBookConfig(BaseModel):
    """Display settings for derived book views."""

    quote_decimals: int = Field(
        default=2,
        ge=0,
        description="Decimals kept when converting amounts to quote currency",
    )
    tick_size: float | None = Field(
        default=None,
        gt=0,
        description="Bucket width for aggregated views (None = raw levels)",
    )


class SigningConfig(BaseModel):
    is_testnet: bool = Field(default=False, description="Sign with the testnet Agent source")
    private_key_env: str = Field(
        default="MARKET_SYNC_PRIVATE_KEY",
        description="Environment variable holding the signing key",
    )


class MarketSyncConfig(BaseModel):
    exchanges: list[ExchangeName] = Field(
        default_factory=lambda: list(ExchangeName),
        description="Exchange subtrees created in the state tree",
    )
    orderbook: OrderBookConfig = Field(default_factory=OrderBookConfig)
    signing: SigningConfig = Field(default_factory=SigningConfig)
    log_level: str = Field(default="INFO", description="Root log level for the CLI")


def load_config(path: str | Path | None = None) -> MarketSyncConfig:
    """Load configuration from a YAML file.

    Args:
        path: YAML file. None (or an empty file) gives the defaults.

    Raises:
        pydantic.ValidationError: If the file doesn't match the schema
    """
    if path is None:
        return MarketSyncConfig()

    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    return MarketSyncConfig(**raw)


def read_private_key(config: MarketSyncConfig) -> str | None:
    """Fetch the signing key from the environment (after loading .env)."""
    load_dotenv()
    return os.environ.get(config.signing.private_key_env)
