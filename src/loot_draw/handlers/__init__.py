"""Event handlers that consume loot domain events.

Handlers receive frozen event snapshots only and keep all of their state in
the injected ``IStatsStore``.
"""

from __future__ import annotations

from loot_draw.core.config import HandlerConfig
from loot_draw.handlers.balance_debited import BalanceDebitedHandler
from loot_draw.handlers.draw_executed import DrawExecutedHandler
from loot_draw.handlers.reward_granted import RewardGrantedHandler
from loot_draw.infrastructure.event_bus import EventBus
from loot_draw.infrastructure.stats_store import IStatsStore


def register_default_handlers(
    bus: EventBus,
    store: IStatsStore,
    config: HandlerConfig | None = None,
) -> None:
    """Subscribe the stock handlers for every event kind to *bus*."""
    config = config or HandlerConfig()
    handlers = (
        BalanceDebitedHandler(store, config),
        RewardGrantedHandler(store, config),
        DrawExecutedHandler(store),
    )
    for handler in handlers:
        bus.subscribe(handler.kind, handler.handle)


__all__ = [
    "BalanceDebitedHandler",
    "DrawExecutedHandler",
    "RewardGrantedHandler",
    "register_default_handlers",
]
