"""Per-account accumulator store for event handlers.

Handlers never keep state of their own; each one is constructed with an
``IStatsStore`` and reads/writes through it.  That keeps tests isolated
(a fresh store per test) and gives retention a single owner.

Retention
---------
*  Spending history is capped per account (``max_entries``) and entries
   older than ``ttl`` are evicted on every append and read.
*  The notice outbox is capped globally (oldest dropped first).
*  Handled event ids are remembered per consumer up to ``max_handled`` so
   a redelivered event is applied once.
*  Counters and collections grow with the number of accounts and catalog
   items respectively.
"""

from __future__ import annotations

from collections import defaultdict, deque
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Protocol

from loot_draw.core.clock import IClock, WallClock
from loot_draw.core.enums import NoticeType
from loot_draw.domain.tier import Tier


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass
class DrawStats:
    total_draws: int = 0
    total_spent: int = 0
    single_count: int = 0
    ten_pull_count: int = 0


@dataclass
class SpendingStats:
    total_spent: int = 0
    total_transactions: int = 0
    by_reason: dict[str, int] = field(default_factory=dict)
    max_single: int = 0

    @property
    def average(self) -> float:
        return self.total_spent / max(self.total_transactions, 1)


@dataclass
class ItemStats:
    total_obtained: int = 0
    unique_obtained: int = 0
    by_tier: dict[Tier, int] = field(default_factory=dict)


@dataclass(frozen=True)
class SpendingRecord:
    amount: int
    reason: str
    timestamp: datetime
    balance_after: int


@dataclass(frozen=True)
class CollectionEntry:
    account_id: str
    item_id: str
    item_name: str
    tier: Tier
    first_obtained_at: datetime


@dataclass(frozen=True)
class Notice:
    """Something a handler wants surfaced to the player or operators."""

    account_id: str
    notice_type: NoticeType
    message: str
    priority: str = "normal"  # normal | high
    data: dict[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

class IStatsStore(Protocol):
    """Accumulator state shared by handlers."""

    def draw_stats(self, account_id: str) -> DrawStats: ...

    def spending_stats(self, account_id: str) -> SpendingStats: ...

    def item_stats(self, account_id: str) -> ItemStats: ...

    def append_spending(self, account_id: str, record: SpendingRecord) -> None: ...

    def recent_spending(
        self, account_id: str, window: timedelta,
    ) -> list[SpendingRecord]: ...

    def now(self) -> datetime: ...

    def is_handled(self, consumer: str, event_id: str) -> bool: ...

    def mark_handled(self, consumer: str, event_id: str) -> None: ...

    def add_to_collection(self, entry: CollectionEntry) -> None: ...

    def collection(self, account_id: str) -> list[CollectionEntry]: ...

    def push_notice(self, notice: Notice) -> None: ...

    def notices(
        self,
        account_id: str | None = None,
        notice_type: NoticeType | None = None,
    ) -> list[Notice]: ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

class InMemoryStatsStore:
    """Dict-backed store.  No persistence across restarts.

    Parameters
    ----------
    max_entries
        Spending-history capacity per account.
    ttl
        Spending-history retention window.
    max_notices
        Capacity of the notice outbox.
    max_handled
        Number of handled event ids remembered per consumer.
    clock
        Time source for TTL eviction and for stamping spending records.
    """

    def __init__(
        self,
        *,
        max_entries: int = 1000,
        ttl: timedelta = timedelta(days=1),
        max_notices: int = 10_000,
        max_handled: int = 10_000,
        clock: IClock | None = None,
    ) -> None:
        if max_entries <= 0:
            raise ValueError(f"max_entries must be > 0, got {max_entries}")
        if max_handled <= 0:
            raise ValueError(f"max_handled must be > 0, got {max_handled}")
        self._max_entries = max_entries
        self._max_handled = max_handled
        self._ttl = ttl
        self._clock = clock or WallClock()
        self._handled: dict[str, deque[str]] = {}
        self._seen_ids: dict[str, set[str]] = {}

        self._draws: dict[str, DrawStats] = defaultdict(DrawStats)
        self._spending: dict[str, SpendingStats] = defaultdict(SpendingStats)
        self._items: dict[str, ItemStats] = defaultdict(ItemStats)
        self._history: dict[str, deque[SpendingRecord]] = {}
        self._collections: dict[str, dict[str, CollectionEntry]] = defaultdict(dict)
        self._notices: deque[Notice] = deque(maxlen=max_notices)

    def now(self) -> datetime:
        """Current time on the store's clock."""
        return self._clock.now()

    # -- Handled events ----------------------------------------------------

    def is_handled(self, consumer: str, event_id: str) -> bool:
        return event_id in self._seen_ids.get(consumer, ())

    def mark_handled(self, consumer: str, event_id: str) -> None:
        """Remember that *consumer* applied *event_id*.  Oldest ids age out."""
        seen = self._seen_ids.setdefault(consumer, set())
        if event_id in seen:
            return
        order = self._handled.setdefault(consumer, deque())
        if len(order) >= self._max_handled:
            seen.discard(order.popleft())
        order.append(event_id)
        seen.add(event_id)

    # -- Counters ----------------------------------------------------------

    def draw_stats(self, account_id: str) -> DrawStats:
        return self._draws[account_id]

    def spending_stats(self, account_id: str) -> SpendingStats:
        return self._spending[account_id]

    def item_stats(self, account_id: str) -> ItemStats:
        return self._items[account_id]

    # -- Spending history --------------------------------------------------

    def append_spending(self, account_id: str, record: SpendingRecord) -> None:
        history = self._history.get(account_id)
        if history is None:
            history = deque(maxlen=self._max_entries)
            self._history[account_id] = history
        history.append(record)
        self._evict(account_id)

    def recent_spending(
        self, account_id: str, window: timedelta,
    ) -> list[SpendingRecord]:
        self._evict(account_id)
        cutoff = self._clock.now() - window
        return [
            r for r in self._history.get(account_id, ())
            if r.timestamp > cutoff
        ]

    def history(self, account_id: str) -> list[SpendingRecord]:
        self._evict(account_id)
        return list(self._history.get(account_id, ()))

    def _evict(self, account_id: str) -> None:
        history = self._history.get(account_id)
        if not history:
            return
        cutoff = self._clock.now() - self._ttl
        while history and history[0].timestamp <= cutoff:
            history.popleft()
        if not history:
            del self._history[account_id]

    # -- Collections -------------------------------------------------------

    def add_to_collection(self, entry: CollectionEntry) -> None:
        self._collections[entry.account_id].setdefault(entry.item_id, entry)

    def collection(self, account_id: str) -> list[CollectionEntry]:
        return list(self._collections.get(account_id, {}).values())

    # -- Notices -----------------------------------------------------------

    def push_notice(self, notice: Notice) -> None:
        self._notices.append(notice)

    def notices(
        self,
        account_id: str | None = None,
        notice_type: NoticeType | None = None,
    ) -> list[Notice]:
        return [
            n for n in self._notices
            if (account_id is None or n.account_id == account_id)
            and (notice_type is None or n.notice_type is notice_type)
        ]

    # -- Testing helpers ---------------------------------------------------

    def clear(self) -> None:
        """Drop all state.  Testing only."""
        self._draws.clear()
        self._spending.clear()
        self._items.clear()
        self._history.clear()
        self._collections.clear()
        self._notices.clear()
        self._handled.clear()
        self._seen_ids.clear()
