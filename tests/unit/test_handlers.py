"""Tests for the stock event handlers.

Handlers are exercised directly (no bus) against a store wired to a
``SimClock``.  Spending records are stamped with the store's clock, so
windows follow simulated time whatever the event timestamps say.
"""

from __future__ import annotations

import pytest

from loot_draw.core.config import HandlerConfig
from loot_draw.core.enums import DrawMode, EventKind, NoticeType
from loot_draw.domain.events import BalanceDebited, DrawExecuted, RewardGranted
from loot_draw.domain.tier import Tier
from loot_draw.handlers import (
    BalanceDebitedHandler,
    DrawExecutedHandler,
    RewardGrantedHandler,
    register_default_handlers,
)
from loot_draw.handlers.reward_granted import effect_for


def _types(store, account_id="p1"):
    return [n.notice_type for n in store.notices(account_id)]


# ---------------------------------------------------------------------------
# BalanceDebited
# ---------------------------------------------------------------------------

class TestBalanceDebitedHandler:
    def _debit(self, clock, amount=100, balance_after=1900, reason="draw"):
        return BalanceDebited(
            account_id="p1",
            timestamp=clock.now(),
            amount=amount,
            balance_after=balance_after,
            reason=reason,
        )

    @pytest.mark.asyncio
    async def test_records_history_and_stats(self, store, sim_clock):
        handler = BalanceDebitedHandler(store)
        await handler.handle(self._debit(sim_clock, 100, reason="draw"))
        await handler.handle(self._debit(sim_clock, 50, balance_after=1850, reason="shop"))

        stats = store.spending_stats("p1")
        assert stats.total_spent == 150
        assert stats.total_transactions == 2
        assert stats.by_reason == {"draw": 100, "shop": 50}
        assert stats.max_single == 100
        assert [r.amount for r in store.history("p1")] == [100, 50]

    @pytest.mark.asyncio
    async def test_ordinary_debit_is_quiet(self, store, sim_clock):
        await BalanceDebitedHandler(store).handle(self._debit(sim_clock))
        assert store.notices() == []

    @pytest.mark.asyncio
    async def test_low_balance(self, store, sim_clock):
        await BalanceDebitedHandler(store).handle(
            self._debit(sim_clock, amount=50, balance_after=80)
        )
        assert _types(store) == [NoticeType.LOW_BALANCE]

    @pytest.mark.asyncio
    async def test_zero_balance_is_high_importance(self, store, sim_clock):
        event = self._debit(sim_clock, amount=100, balance_after=0)
        await BalanceDebitedHandler(store).handle(event)

        assert _types(store) == [
            NoticeType.ZERO_BALANCE,
            NoticeType.HIGH_IMPORTANCE_SPENDING,
        ]
        high = store.notices("p1", NoticeType.HIGH_IMPORTANCE_SPENDING)[0]
        assert high.priority == "high"
        assert high.data["event_id"] == event.event_id

    @pytest.mark.asyncio
    async def test_large_spending(self, store, sim_clock):
        await BalanceDebitedHandler(store).handle(
            self._debit(sim_clock, amount=1000, balance_after=5000)
        )
        assert _types(store) == [NoticeType.LARGE_SPENDING]
        assert store.notices()[0].priority == "high"

    @pytest.mark.asyncio
    async def test_very_large_spending_also_high_importance(self, store, sim_clock):
        await BalanceDebitedHandler(store).handle(
            self._debit(sim_clock, amount=5000, balance_after=5000)
        )
        assert set(_types(store)) == {
            NoticeType.HIGH_IMPORTANCE_SPENDING,
            NoticeType.LARGE_SPENDING,
        }

    @pytest.mark.asyncio
    async def test_rapid_spending(self, store, sim_clock):
        handler = BalanceDebitedHandler(store)
        for _ in range(4):
            await handler.handle(self._debit(sim_clock))
            sim_clock.advance(10)
        assert store.notices("p1", NoticeType.RAPID_SPENDING) == []

        await handler.handle(self._debit(sim_clock))
        (notice,) = store.notices("p1", NoticeType.RAPID_SPENDING)
        assert notice.message.startswith("5 debits")

    @pytest.mark.asyncio
    async def test_spread_out_spending_is_not_rapid(self, store, sim_clock):
        handler = BalanceDebitedHandler(store)
        for _ in range(5):
            await handler.handle(self._debit(sim_clock))
            sim_clock.advance(120)
        assert store.notices("p1", NoticeType.RAPID_SPENDING) == []

    @pytest.mark.asyncio
    async def test_thresholds_come_from_config(self, store, sim_clock):
        config = HandlerConfig(low_balance_threshold=5000, large_spending_threshold=50)
        await BalanceDebitedHandler(store, config).handle(self._debit(sim_clock))
        assert set(_types(store)) == {NoticeType.LOW_BALANCE, NoticeType.LARGE_SPENDING}


# ---------------------------------------------------------------------------
# RewardGranted
# ---------------------------------------------------------------------------

class TestRewardGrantedHandler:
    def _grant(self, clock, item_id="potion_001", tier=Tier.N, first_time=True):
        return RewardGranted(
            account_id="p1",
            timestamp=clock.now(),
            item_id=item_id,
            item_name=item_id.title(),
            tier=tier,
            first_time=first_time,
            salvage_credited=0 if first_time else tier.salvage_value,
        )

    @pytest.mark.parametrize(
        "tier,expected",
        [
            (Tier.N, "normal_glow"),
            (Tier.R, "normal_glow"),
            (Tier.SR, "gold_sparkle"),
            (Tier.SSR, "gold_sparkle"),
            (Tier.UR, "rainbow_explosion"),
        ],
    )
    def test_effect_for(self, tier, expected):
        assert effect_for(RewardGranted(tier=tier)) == expected

    @pytest.mark.asyncio
    async def test_first_time_joins_collection(self, store, sim_clock):
        await RewardGrantedHandler(store).handle(self._grant(sim_clock))

        (entry,) = store.collection("p1")
        assert entry.item_id == "potion_001"
        assert entry.first_obtained_at == sim_clock.now()
        assert _types(store) == [NoticeType.COLLECTION_MILESTONE]
        assert store.notices()[0].message == "Collected 1 Normal item(s)"

    @pytest.mark.asyncio
    async def test_duplicate_does_not_touch_collection(self, store, sim_clock):
        handler = RewardGrantedHandler(store)
        await handler.handle(self._grant(sim_clock))
        await handler.handle(self._grant(sim_clock, first_time=False))

        assert len(store.collection("p1")) == 1
        stats = store.item_stats("p1")
        assert stats.total_obtained == 2
        assert stats.unique_obtained == 1
        assert stats.by_tier == {Tier.N: 2}

    @pytest.mark.asyncio
    async def test_milestones_counted_per_tier(self, store, sim_clock):
        handler = RewardGrantedHandler(store)
        for i in range(5):
            await handler.handle(self._grant(sim_clock, item_id=f"n_{i}"))
        await handler.handle(self._grant(sim_clock, item_id="r_0", tier=Tier.R))

        messages = [
            n.message for n in store.notices("p1", NoticeType.COLLECTION_MILESTONE)
        ]
        assert messages == [
            "Collected 1 Normal item(s)",
            "Collected 5 Normal item(s)",
            "Collected 1 Rare item(s)",
        ]

    @pytest.mark.asyncio
    async def test_rare_reward_notice(self, store, sim_clock):
        await RewardGrantedHandler(store).handle(
            self._grant(sim_clock, item_id="sword_999", tier=Tier.UR, first_time=False)
        )
        (notice,) = store.notices("p1", NoticeType.RARE_REWARD)
        assert notice.priority == "high"
        assert notice.data == {"item_id": "sword_999"}

    @pytest.mark.asyncio
    async def test_sr_is_below_notice_threshold(self, store, sim_clock):
        await RewardGrantedHandler(store).handle(
            self._grant(sim_clock, item_id="bow_001", tier=Tier.SR)
        )
        assert store.notices("p1", NoticeType.RARE_REWARD) == []


# ---------------------------------------------------------------------------
# DrawExecuted
# ---------------------------------------------------------------------------

class TestDrawExecutedHandler:
    @pytest.mark.asyncio
    async def test_counters(self, store):
        handler = DrawExecutedHandler(store)
        await handler.handle(DrawExecuted(account_id="p1", cost=100))
        await handler.handle(DrawExecuted(account_id="p1", cost=1000, mode=DrawMode.TEN_PULL))

        stats = store.draw_stats("p1")
        assert stats.total_draws == 2
        assert stats.total_spent == 1100
        assert stats.single_count == 1
        assert stats.ten_pull_count == 1

    @pytest.mark.asyncio
    async def test_achievements(self, store):
        handler = DrawExecutedHandler(store)
        await handler.handle(DrawExecuted(account_id="p1", mode=DrawMode.TEN_PULL))
        for _ in range(9):
            await handler.handle(DrawExecuted(account_id="p1"))
        await handler.handle(DrawExecuted(account_id="p1", mode=DrawMode.TEN_PULL))

        titles = [n.data["achievement"] for n in store.notices("p1", NoticeType.ACHIEVEMENT)]
        assert titles == ["First Draw", "First Ten-Pull", "Draw Master (10 draws)"]


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

class TestRegistration:
    def test_one_handler_per_kind(self, bus, store):
        register_default_handlers(bus, store)
        stats = bus.stats()
        assert stats.total_handlers == 3
        assert set(stats.breakdown) == set(EventKind)


# ---------------------------------------------------------------------------
# Redelivery
# ---------------------------------------------------------------------------

class TestRedelivery:
    @pytest.mark.asyncio
    async def test_debit_applied_once(self, store, sim_clock):
        handler = BalanceDebitedHandler(store)
        event = BalanceDebited(account_id="p1", amount=100, balance_after=0)
        await handler.handle(event)
        await handler.handle(event)

        assert store.spending_stats("p1").total_transactions == 1
        assert len(store.history("p1")) == 1
        assert len(store.notices("p1", NoticeType.ZERO_BALANCE)) == 1

    @pytest.mark.asyncio
    async def test_grant_applied_once(self, store):
        handler = RewardGrantedHandler(store)
        event = RewardGranted(account_id="p1", item_id="sword_999", tier=Tier.UR)
        await handler.handle(event)
        await handler.handle(event)

        stats = store.item_stats("p1")
        assert (stats.total_obtained, stats.unique_obtained) == (1, 1)
        assert len(store.notices("p1", NoticeType.RARE_REWARD)) == 1

    @pytest.mark.asyncio
    async def test_draw_applied_once(self, store):
        handler = DrawExecutedHandler(store)
        event = DrawExecuted(account_id="p1", cost=100)
        await handler.handle(event)
        await handler.handle(event)

        assert store.draw_stats("p1").total_draws == 1
        assert len(store.notices("p1", NoticeType.ACHIEVEMENT)) == 1

    @pytest.mark.asyncio
    async def test_distinct_events_with_same_payload_both_apply(self, store):
        handler = DrawExecutedHandler(store)
        await handler.handle(DrawExecuted(account_id="p1", cost=100))
        await handler.handle(DrawExecuted(account_id="p1", cost=100))
        assert store.draw_stats("p1").total_draws == 2


# ---------------------------------------------------------------------------
# Time base
# ---------------------------------------------------------------------------

class TestSpendingTimeBase:
    @pytest.mark.asyncio
    async def test_records_stamped_with_store_clock(self, store, sim_clock):
        # Event carries wall-clock time; the store runs on simulated time.
        event = BalanceDebited(account_id="p1", amount=100, balance_after=1900)
        await BalanceDebitedHandler(store).handle(event)

        (record,) = store.history("p1")
        assert record.timestamp == sim_clock.now()

        sim_clock.advance(3600)
        assert store.history("p1") == []

    @pytest.mark.asyncio
    async def test_rapid_window_uses_store_clock(self, store, sim_clock):
        handler = BalanceDebitedHandler(store)
        for _ in range(5):
            await handler.handle(
                BalanceDebited(account_id="p1", amount=100, balance_after=1900)
            )
            sim_clock.advance(120)
        assert store.notices("p1", NoticeType.RAPID_SPENDING) == []
