"""
Central configuration for mintgate.

This module provides a single, typed configuration object that reads from
environment variables (12-factor style) using pydantic-settings.

Usage:

    from mintgate.core.settings import get_settings

    settings = get_settings()
    engine = IssuanceEngine.from_settings(settings, ledger=ledger)
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mintgate.merkle.tree import node_hex, to_node


class SaleSettings(BaseSettings):
    price: int = Field(
        default=0,
        ge=0,
        description="Public sale price per token, in the smallest value unit.",
    )
    mint_limit: int = Field(
        default=10,
        ge=0,
        description="Maximum tokens per public mint call.",
    )
    reserve: int = Field(
        default=0,
        ge=0,
        description="Tokens held back for the privileged reserve path.",
    )
    max_supply: Optional[int] = Field(
        default=None,
        ge=0,
        description="Hard cap on total issued tokens; unset means uncapped.",
    )

    model_config = SettingsConfigDict(env_prefix="MINTGATE_", extra="ignore")


class PresaleSettings(BaseSettings):
    merkle_root: Optional[str] = Field(
        default=None,
        description="Allowlist Merkle root, 32 bytes hex (0x prefix optional).",
    )
    presale_cap: int = Field(
        default=1,
        ge=0,
        description="Maximum tokens each allowlisted identity may claim.",
    )

    @field_validator("merkle_root")
    @classmethod
    def _normalize_root(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return node_hex(to_node(v))

    model_config = SettingsConfigDict(env_prefix="MINTGATE_", extra="ignore")


class RevealSettings(BaseSettings):
    placeholder_uri: str = Field(
        default="",
        description="Metadata URI every token resolves to before reveal.",
    )
    base_uri: str = Field(
        default="",
        description="Prefix for per-token metadata after reveal.",
    )
    reveal_timestamp: Optional[int] = Field(
        default=None,
        description="Unix time of automatic reveal; unset means manual reveal.",
    )

    model_config = SettingsConfigDict(env_prefix="MINTGATE_", extra="ignore")


class RuntimeSettings(BaseSettings):
    log_level: str = Field(
        default="INFO",
        description="mintgate log level (DEBUG/INFO/WARNING/ERROR).",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        v = (v or "INFO").strip().upper()
        if v == "WARN":
            v = "WARNING"
        if not isinstance(logging.getLevelName(v), int):
            raise ValueError(f"unknown log level: {v}")
        return v

    model_config = SettingsConfigDict(env_prefix="MINTGATE_", extra="ignore")


class MintGateSettings(BaseSettings):
    """
    Root configuration object for mintgate.

    Aggregates:
      - Sale (price, per-call limit, reserve, supply cap)
      - Presale (allowlist root, per-identity cap)
      - Reveal (URIs, optional reveal time)
      - Runtime (logging)
    """

    sale: SaleSettings = Field(default_factory=SaleSettings)
    presale: PresaleSettings = Field(default_factory=PresaleSettings)
    reveal: RevealSettings = Field(default_factory=RevealSettings)
    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)

    @model_validator(mode="after")
    def _reserve_fits_supply(self) -> "MintGateSettings":
        cap = self.sale.max_supply
        if cap is not None and self.sale.reserve > cap:
            raise ValueError(
                f"MINTGATE_RESERVE ({self.sale.reserve}) exceeds MINTGATE_MAX_SUPPLY ({cap})"
            )
        return self

    model_config = SettingsConfigDict(env_prefix="MINTGATE_", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> MintGateSettings:
    """
    Cached accessor for MintGateSettings.

    Usage:
        from mintgate.core.settings import get_settings
        settings = get_settings()
    """
    return MintGateSettings()
