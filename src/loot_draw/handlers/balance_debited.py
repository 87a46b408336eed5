"""Handler for ``BalanceDebited``.

Keeps per-account spending history and statistics, warns on low or empty
balances, and flags spending that looks unusual: single large debits,
bursts of debits inside a short window, and debits far above the
account's running average.
"""

from __future__ import annotations

from datetime import timedelta
from typing import ClassVar

from loot_draw.core.config import HandlerConfig
from loot_draw.core.enums import EventKind, NoticeType
from loot_draw.domain.events import (
    BalanceDebited,
    event_payload,
    importance,
    is_large_spending,
    is_low_balance,
)
from loot_draw.infrastructure.stats_store import IStatsStore, Notice, SpendingRecord
from loot_draw.observability.logger import get_logger

log = get_logger(__name__)

#: A debit this many times the running average is logged as anomalous.
ANOMALY_FACTOR = 5


class BalanceDebitedHandler:
    kind: ClassVar[EventKind] = EventKind.BALANCE_DEBITED
    name: ClassVar[str] = "balance_debited"

    def __init__(
        self,
        store: IStatsStore,
        config: HandlerConfig | None = None,
    ) -> None:
        self._store = store
        self._config = config or HandlerConfig()

    async def handle(self, event: BalanceDebited) -> None:
        if self._store.is_handled(self.name, event.event_id):
            log.debug("event_already_handled", handler=self.name, event_id=event.event_id)
            return
        self._record(event)
        self._check_balance(event)
        self._detect_suspicious(event)
        self._store.mark_handled(self.name, event.event_id)

    def _record(self, event: BalanceDebited) -> None:
        self._store.append_spending(
            event.account_id,
            SpendingRecord(
                amount=event.amount,
                reason=event.reason,
                timestamp=self._store.now(),
                balance_after=event.balance_after,
            ),
        )
        stats = self._store.spending_stats(event.account_id)
        stats.total_spent += event.amount
        stats.total_transactions += 1
        stats.by_reason[event.reason] = stats.by_reason.get(event.reason, 0) + event.amount
        stats.max_single = max(stats.max_single, event.amount)

        log.info(
            "balance_debited",
            account_id=event.account_id,
            amount=event.amount,
            reason=event.reason,
            balance_after=event.balance_after,
        )

    def _check_balance(self, event: BalanceDebited) -> None:
        cfg = self._config
        if event.balance_after == 0:
            self._notify(
                event, NoticeType.ZERO_BALANCE,
                "You are out of coins. Top up to keep drawing!",
            )
        elif is_low_balance(event, cfg.low_balance_threshold):
            self._notify(
                event, NoticeType.LOW_BALANCE,
                "Your coins are running low. Check out the top-up packs!",
            )

        if importance(event, cfg.low_balance_threshold) >= cfg.notify_importance:
            self._notify(
                event, NoticeType.HIGH_IMPORTANCE_SPENDING,
                f"High-importance spending of {event.amount}",
                priority="high",
                data=event_payload(event),
            )

    def _detect_suspicious(self, event: BalanceDebited) -> None:
        cfg = self._config
        if is_large_spending(event, cfg.large_spending_threshold):
            self._notify(
                event, NoticeType.LARGE_SPENDING,
                f"Large spending of {event.amount}",
                priority="high",
            )

        window = timedelta(seconds=cfg.rapid_spending_window_seconds)
        recent = self._store.recent_spending(event.account_id, window)
        if len(recent) >= cfg.rapid_spending_count:
            self._notify(
                event, NoticeType.RAPID_SPENDING,
                f"{len(recent)} debits within {cfg.rapid_spending_window_seconds}s",
            )

        stats = self._store.spending_stats(event.account_id)
        if event.amount > stats.average * ANOMALY_FACTOR:
            log.warning(
                "unusual_spending_pattern",
                account_id=event.account_id,
                amount=event.amount,
                average=round(stats.average, 2),
            )

    def _notify(
        self,
        event: BalanceDebited,
        notice_type: NoticeType,
        message: str,
        *,
        priority: str = "normal",
        data: dict | None = None,
    ) -> None:
        self._store.push_notice(
            Notice(
                account_id=event.account_id,
                notice_type=notice_type,
                message=message,
                priority=priority,
                data=data or {},
            )
        )
