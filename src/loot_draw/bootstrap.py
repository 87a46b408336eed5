"""Application bootstrap.

Wires settings, logging, the reward pool, the event bus, the stats store and
the stock handlers into a ``LootEngine``.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from .core.clock import IClock, WallClock
from .core.config import Settings, load_settings
from .core.enums import DrawMode
from .domain.account import Account
from .domain.catalog import Reward
from .domain.pool import RewardPool
from .handlers import register_default_handlers
from .infrastructure.event_bus import EventBus
from .infrastructure.stats_store import InMemoryStatsStore
from .observability.logger import dispatch_scope, setup_logging
from .services.draw import DrawTransaction

logger = logging.getLogger(__name__)


@dataclass
class LootEngine:
    """A fully wired draw pipeline."""

    settings: Settings
    pool: RewardPool
    bus: EventBus
    store: InMemoryStatsStore
    transaction: DrawTransaction

    async def draw(
        self,
        account: Account,
        mode: DrawMode | str = DrawMode.SINGLE,
    ) -> Reward:
        """Run one draw at the configured cost and deliver its events.

        ``AffordabilityError`` propagates before anything is mutated.
        ``DispatchFailure`` propagates after the draw has been applied; the
        undelivered events stay queued on *account* for a later
        ``bus.dispatch_entity_events(account)``.
        """
        cost = self.settings.cost_for(mode)
        reward = self.transaction.execute(account, cost, mode)
        with dispatch_scope():
            await self.bus.dispatch_entity_events(account)
        return reward


def build_engine(
    settings: Settings | None = None,
    *,
    rng: random.Random | None = None,
    clock: IClock | None = None,
    configure_logging: bool = True,
) -> LootEngine:
    """Assemble a ``LootEngine`` from *settings* (defaults if omitted)."""
    settings = settings or Settings()

    if configure_logging:
        obs = settings.observability
        setup_logging(level=obs.log_level, format=obs.log_format)

    pool = settings.build_pool(rng)
    hcfg = settings.handlers
    store = InMemoryStatsStore(
        max_entries=hcfg.history_max_entries,
        ttl=timedelta(seconds=hcfg.history_ttl_seconds),
        max_notices=hcfg.notices_max_entries,
        max_handled=hcfg.handled_max_entries,
        clock=clock or WallClock(),
    )
    bus = EventBus()
    register_default_handlers(bus, store, hcfg)

    logger.info(
        "Loot engine ready: %d catalog entries, total weight %s",
        len(pool), pool.total_weight,
    )
    return LootEngine(
        settings=settings,
        pool=pool,
        bus=bus,
        store=store,
        transaction=DrawTransaction(pool, reason=settings.draw.reason),
    )


def build_engine_from_config(
    config_path: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> LootEngine:
    """Load settings from TOML + env and build an engine."""
    return build_engine(load_settings(config_path=config_path, overrides=overrides))
