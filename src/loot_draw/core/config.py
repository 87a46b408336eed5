"""Configuration management.

Loads from TOML config files + environment variables.
Uses pydantic-settings for validation and env var overriding.
"""

from __future__ import annotations

import random
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from .errors import ConfigError, ValidationError


# ---------------------------------------------------------------------------
# Sub-configs
# ---------------------------------------------------------------------------

class DrawConfig(BaseModel):
    single_cost: int = Field(default=100, ge=0)
    ten_pull_cost: int = Field(default=1000, ge=0)
    reason: str = "draw"
    random_seed: int | None = None  # None = nondeterministic


class HandlerConfig(BaseModel):
    low_balance_threshold: int = 100
    large_spending_threshold: int = 1000
    rapid_spending_window_seconds: int = 300  # 5 minutes
    rapid_spending_count: int = 5
    notify_importance: int = 8  # Push notice at or above this level
    history_max_entries: int = Field(default=1000, gt=0)  # Per account
    history_ttl_seconds: int = Field(default=86_400, gt=0)
    notices_max_entries: int = Field(default=10_000, gt=0)
    handled_max_entries: int = Field(default=10_000, gt=0)  # Per handler
    effect_latency_ms: int = 0  # Simulated presentation latency


class ObservabilityConfig(BaseModel):
    log_level: str = "INFO"
    log_format: str = "json"  # "json" or "console"

    @field_validator("log_format")
    @classmethod
    def _check_format(cls, v: str) -> str:
        if v not in ("json", "console"):
            raise ValueError(f"log_format must be 'json' or 'console', got {v!r}")
        return v


class CatalogEntryConfig(BaseModel):
    id: str
    name: str
    tier: str
    weight: float


def _default_catalog() -> list[CatalogEntryConfig]:
    rows = [
        ("potion_001", "Healing Potion", "N", 25),
        ("bread_001", "Hard Bread", "N", 25),
        ("sword_001", "Steel Sword", "R", 15),
        ("shield_001", "Iron Shield", "R", 15),
        ("bow_001", "Elven Bow", "SR", 8),
        ("staff_001", "Sage's Staff", "SR", 7),
        ("sword_002", "Excalibur", "SSR", 4),
        ("sword_999", "Blade of the Gods", "UR", 1),
    ]
    return [
        CatalogEntryConfig(id=i, name=n, tier=t, weight=w) for i, n, t, w in rows
    ]


# ---------------------------------------------------------------------------
# Top-level settings
# ---------------------------------------------------------------------------

class Settings(BaseSettings):
    """Top-level application settings.

    Loaded from TOML config files, overridden by environment variables.
    """

    draw: DrawConfig = Field(default_factory=DrawConfig)
    handlers: HandlerConfig = Field(default_factory=HandlerConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)
    catalog: list[CatalogEntryConfig] = Field(default_factory=_default_catalog)

    model_config = {"env_prefix": "LOOT_", "env_nested_delimiter": "__"}

    def build_pool(self, rng: random.Random | None = None):
        """Build a ``RewardPool`` from ``catalog``.

        Raises ``ConfigError`` if the catalog is empty or invalid.
        """
        from loot_draw.domain.catalog import CatalogEntry
        from loot_draw.domain.pool import RewardPool

        if rng is None and self.draw.random_seed is not None:
            rng = random.Random(self.draw.random_seed)
        try:
            entries = [
                CatalogEntry(id=c.id, name=c.name, tier=c.tier, weight=c.weight)
                for c in self.catalog
            ]
            return RewardPool(entries, rng=rng)
        except ValidationError as exc:
            raise ConfigError(f"Invalid catalog: {exc}") from exc

    def cost_for(self, mode: str) -> int:
        """Configured cost of a draw in *mode*."""
        from .enums import DrawMode

        if DrawMode(mode) is DrawMode.TEN_PULL:
            return self.draw.ten_pull_cost
        return self.draw.single_cost


def load_settings(
    config_path: str | Path | None = None,
    overrides: dict[str, Any] | None = None,
) -> Settings:
    """Load settings from TOML file + env vars.

    Args:
        config_path: Path to TOML config file (optional).
        overrides: Dict of overrides to apply on top.
    """
    data: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            import tomli

            with open(path, "rb") as f:
                data = tomli.load(f)

    if overrides:
        data.update(overrides)

    return Settings(**data)
