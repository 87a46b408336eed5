"""Handler for ``DrawExecuted``: draw counters and achievements."""

from __future__ import annotations

from typing import ClassVar

from loot_draw.core.enums import DrawMode, EventKind, NoticeType
from loot_draw.domain.events import DrawExecuted
from loot_draw.infrastructure.stats_store import IStatsStore, Notice
from loot_draw.observability.logger import get_logger

log = get_logger(__name__)

#: Total-draw counts that unlock an achievement.
DRAW_MILESTONES: dict[int, str] = {
    1: "First Draw",
    10: "Draw Master (10 draws)",
    100: "Draw Devotee (100 draws)",
}
FIRST_TEN_PULL = "First Ten-Pull"


class DrawExecutedHandler:
    kind: ClassVar[EventKind] = EventKind.DRAW_EXECUTED
    name: ClassVar[str] = "draw_executed"

    def __init__(self, store: IStatsStore) -> None:
        self._store = store

    async def handle(self, event: DrawExecuted) -> None:
        if self._store.is_handled(self.name, event.event_id):
            log.debug("event_already_handled", handler=self.name, event_id=event.event_id)
            return
        stats = self._store.draw_stats(event.account_id)
        stats.total_draws += 1
        stats.total_spent += event.cost
        if DrawMode(event.mode) is DrawMode.TEN_PULL:
            stats.ten_pull_count += 1
        else:
            stats.single_count += 1

        log.info(
            "draw_executed",
            account_id=event.account_id,
            mode=DrawMode(event.mode).value,
            cost=event.cost,
            total_draws=stats.total_draws,
        )

        unlocked: list[str] = []
        if stats.total_draws in DRAW_MILESTONES:
            unlocked.append(DRAW_MILESTONES[stats.total_draws])
        if DrawMode(event.mode) is DrawMode.TEN_PULL and stats.ten_pull_count == 1:
            unlocked.append(FIRST_TEN_PULL)

        for title in unlocked:
            self._store.push_notice(
                Notice(
                    account_id=event.account_id,
                    notice_type=NoticeType.ACHIEVEMENT,
                    message=f"Achievement unlocked: {title}",
                    data={"achievement": title},
                )
            )

        self._store.mark_handled(self.name, event.event_id)
