"""Shared fixtures for the loot-draw test suite."""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone

import pytest

from loot_draw.core.clock import SimClock
from loot_draw.domain.account import Account
from loot_draw.domain.catalog import CatalogEntry
from loot_draw.domain.pool import RewardPool
from loot_draw.domain.tier import Tier
from loot_draw.infrastructure.event_bus import EventBus
from loot_draw.infrastructure.stats_store import InMemoryStatsStore


class FixedRandom(random.Random):
    """``random.Random`` that replays a fixed sequence of ``random()`` values."""

    def __init__(self, values: list[float]) -> None:
        super().__init__(0)
        self._values = list(values)
        self._index = 0

    def random(self) -> float:
        value = self._values[self._index % len(self._values)]
        self._index += 1
        return value


# ---------------------------------------------------------------------------
# Catalog / pool
# ---------------------------------------------------------------------------

@pytest.fixture
def demo_entries() -> list[CatalogEntry]:
    """The eight-entry demo catalog (total weight 100)."""
    return [
        CatalogEntry("potion_001", "Healing Potion", Tier.N, 25),
        CatalogEntry("bread_001", "Hard Bread", Tier.N, 25),
        CatalogEntry("sword_001", "Steel Sword", Tier.R, 15),
        CatalogEntry("shield_001", "Iron Shield", Tier.R, 15),
        CatalogEntry("bow_001", "Elven Bow", Tier.SR, 8),
        CatalogEntry("staff_001", "Sage's Staff", Tier.SR, 7),
        CatalogEntry("sword_002", "Excalibur", Tier.SSR, 4),
        CatalogEntry("sword_999", "Blade of the Gods", Tier.UR, 1),
    ]


@pytest.fixture
def fixed_random():
    """Factory for ``FixedRandom`` instances."""
    return FixedRandom


@pytest.fixture
def seeded_pool(demo_entries) -> RewardPool:
    return RewardPool(demo_entries, rng=random.Random(42))


@pytest.fixture
def ur_pool(demo_entries) -> RewardPool:
    """Demo pool whose sampler always lands on the UR entry."""
    return RewardPool(demo_entries, rng=FixedRandom([0.999]))


# ---------------------------------------------------------------------------
# Account
# ---------------------------------------------------------------------------

@pytest.fixture
def account() -> Account:
    return Account("player_001", "Taro", balance=2000)


# ---------------------------------------------------------------------------
# Infrastructure
# ---------------------------------------------------------------------------

@pytest.fixture
def bus() -> EventBus:
    return EventBus()


@pytest.fixture
def sim_clock() -> SimClock:
    return SimClock(start=datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store(sim_clock) -> InMemoryStatsStore:
    return InMemoryStatsStore(
        max_entries=50,
        ttl=timedelta(hours=1),
        max_notices=100,
        clock=sim_clock,
    )
