"""Weighted loot draws with event-driven side effects."""

from loot_draw.core.enums import DrawMode, EventKind
from loot_draw.domain.account import Account, GrantResult
from loot_draw.domain.catalog import CatalogEntry, Reward
from loot_draw.domain.pool import RewardPool
from loot_draw.domain.tier import Tier
from loot_draw.infrastructure.event_bus import EventBus
from loot_draw.services.draw import DrawOutcome, DrawTransaction, draw_once, try_draw

__all__ = [
    "Account",
    "CatalogEntry",
    "DrawMode",
    "DrawOutcome",
    "DrawTransaction",
    "EventBus",
    "EventKind",
    "GrantResult",
    "Reward",
    "RewardPool",
    "Tier",
    "draw_once",
    "try_draw",
]
