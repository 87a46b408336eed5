"""Handler for ``RewardGranted``: presentation, collection and item stats."""

from __future__ import annotations

import asyncio
from typing import ClassVar

from loot_draw.core.config import HandlerConfig
from loot_draw.core.enums import EventKind, NoticeType
from loot_draw.domain.events import RewardGranted, importance, is_rare, is_ultra_rare
from loot_draw.domain.tier import Tier
from loot_draw.infrastructure.stats_store import CollectionEntry, IStatsStore, Notice
from loot_draw.observability.logger import get_logger

log = get_logger(__name__)

#: Per-tier collection sizes that trigger a milestone notice.
COLLECTION_MILESTONES: frozenset[int] = frozenset({1, 5, 10, 25, 50, 100})


def effect_for(event: RewardGranted) -> str:
    """Name of the reveal effect for *event*."""
    if is_ultra_rare(event):
        return "rainbow_explosion"
    if is_rare(event):
        return "gold_sparkle"
    return "normal_glow"


class RewardGrantedHandler:
    kind: ClassVar[EventKind] = EventKind.REWARD_GRANTED
    name: ClassVar[str] = "reward_granted"

    def __init__(
        self,
        store: IStatsStore,
        config: HandlerConfig | None = None,
    ) -> None:
        self._store = store
        self._config = config or HandlerConfig()

    async def handle(self, event: RewardGranted) -> None:
        if self._store.is_handled(self.name, event.event_id):
            log.debug("event_already_handled", handler=self.name, event_id=event.event_id)
            return
        await self._present(event)
        if event.first_time:
            self._register_collection(event)
        self._notify(event)
        self._update_stats(event)
        self._store.mark_handled(self.name, event.event_id)

    async def _present(self, event: RewardGranted) -> None:
        effect = effect_for(event)
        log.info(
            "reward_granted",
            account_id=event.account_id,
            item_id=event.item_id,
            tier=Tier.parse(event.tier).value,
            first_time=event.first_time,
            salvage_credited=event.salvage_credited,
            effect=effect,
        )
        if self._config.effect_latency_ms > 0:
            await asyncio.sleep(self._config.effect_latency_ms / 1000)

    def _register_collection(self, event: RewardGranted) -> None:
        tier = Tier.parse(event.tier)
        self._store.add_to_collection(
            CollectionEntry(
                account_id=event.account_id,
                item_id=event.item_id,
                item_name=event.item_name,
                tier=tier,
                first_obtained_at=event.timestamp,
            )
        )
        count = sum(
            1 for e in self._store.collection(event.account_id) if e.tier is tier
        )
        if count in COLLECTION_MILESTONES:
            self._store.push_notice(
                Notice(
                    account_id=event.account_id,
                    notice_type=NoticeType.COLLECTION_MILESTONE,
                    message=f"Collected {count} {tier.display_name} item(s)",
                    data={"tier": tier.value, "count": count},
                )
            )

    def _notify(self, event: RewardGranted) -> None:
        if importance(event) >= self._config.notify_importance:
            self._store.push_notice(
                Notice(
                    account_id=event.account_id,
                    notice_type=NoticeType.RARE_REWARD,
                    message=(
                        f"Rare reward! {Tier.parse(event.tier).value} "
                        f"{event.item_name or event.item_id}"
                    ),
                    priority="high",
                    data={"item_id": event.item_id},
                )
            )

    def _update_stats(self, event: RewardGranted) -> None:
        stats = self._store.item_stats(event.account_id)
        tier = Tier.parse(event.tier)
        stats.total_obtained += 1
        stats.by_tier[tier] = stats.by_tier.get(tier, 0) + 1
        if event.first_time:
            stats.unique_obtained += 1
