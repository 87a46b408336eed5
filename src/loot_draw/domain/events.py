"""Domain events for the loot engine.

Design invariants
-----------------
1.  Every event is **immutable** (``frozen=True``).
2.  The set of event types is **closed**: ``DrawExecuted``,
    ``BalanceDebited`` and ``RewardGranted``.  Each carries a class-level
    ``kind`` tag that the event bus routes on.
3.  ``event_id`` is a UUID4 generated at creation time and ``timestamp`` is
    the UTC creation time.  Neither changes after construction.
4.  Behaviour that depends on the variant lives in free functions below
    (``event_payload``, ``importance`` ...), which dispatch on ``kind`` and
    reject foreign types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, ClassVar, Union

from loot_draw.core.enums import DrawMode, EventKind
from loot_draw.core.ids import new_id as _uuid
from loot_draw.core.ids import utc_now as _now
from loot_draw.domain.tier import Tier

# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DomainEvent:
    """Immutable base for every domain event.

    Shared fields
    ~~~~~~~~~~~~~
    event_id        Unique identity (UUID4).
    timestamp       UTC creation time.
    account_id      The account whose state transition this records.
    """

    kind: ClassVar[EventKind]

    event_id: str = field(default_factory=_uuid)
    timestamp: datetime = field(default_factory=_now)
    account_id: str = ""


# =========================================================================
# Variants
# =========================================================================

@dataclass(frozen=True)
class DrawExecuted(DomainEvent):
    """A draw transaction completed against an account."""

    kind: ClassVar[EventKind] = EventKind.DRAW_EXECUTED

    cost: int = 0
    mode: DrawMode = DrawMode.SINGLE


@dataclass(frozen=True)
class BalanceDebited(DomainEvent):
    """Currency was taken from an account."""

    kind: ClassVar[EventKind] = EventKind.BALANCE_DEBITED

    amount: int = 0
    balance_after: int = 0
    reason: str = "unknown"


@dataclass(frozen=True)
class RewardGranted(DomainEvent):
    """An item was granted.  ``first_time=False`` means it was salvaged."""

    kind: ClassVar[EventKind] = EventKind.REWARD_GRANTED

    item_id: str = ""
    item_name: str = ""
    tier: Tier = Tier.N
    first_time: bool = True
    salvage_credited: int = 0


#: Closed union of every event variant.
DomainEventT = Union[DrawExecuted, BalanceDebited, RewardGranted]

#: All event types in a deterministic order, keyed by routing tag.
EVENT_TYPES: dict[EventKind, type[DomainEvent]] = {
    EventKind.DRAW_EXECUTED: DrawExecuted,
    EventKind.BALANCE_DEBITED: BalanceDebited,
    EventKind.REWARD_GRANTED: RewardGranted,
}


def _check(event: Any) -> EventKind:
    if type(event) not in EVENT_TYPES.values():
        raise TypeError(f"Not a loot domain event: {type(event).__name__}")
    return event.kind


# =========================================================================
# Variant-dispatching helpers
# =========================================================================

def event_payload(event: DomainEventT) -> dict[str, Any]:
    """Return a JSON-friendly snapshot of *event*."""
    kind = _check(event)
    data: dict[str, Any] = {
        "event_name": kind.value,
        "event_id": event.event_id,
        "account_id": event.account_id,
        "occurred_at": event.timestamp.isoformat(),
    }
    if kind is EventKind.DRAW_EXECUTED:
        data.update(cost=event.cost, mode=DrawMode(event.mode).value)
    elif kind is EventKind.BALANCE_DEBITED:
        data.update(
            amount=event.amount,
            balance_after=event.balance_after,
            reason=event.reason,
        )
    else:
        data.update(
            item_id=event.item_id,
            item_name=event.item_name,
            tier=Tier.parse(event.tier).value,
            first_time=event.first_time,
            salvage_credited=event.salvage_credited,
        )
    return data


_TIER_IMPORTANCE: dict[Tier, int] = {
    Tier.N: 2,
    Tier.R: 4,
    Tier.SR: 6,
    Tier.SSR: 8,
    Tier.UR: 10,
}


def importance(event: DomainEventT, low_balance_threshold: int = 100) -> int:
    """Score *event* from 1 (routine) to 10 (urgent).

    Rewards score by tier, plus one for a first-time grant.  Debits score by
    amount, plus two when the remaining balance is low; an emptied balance
    is always 10.
    """
    kind = _check(event)
    if kind is EventKind.REWARD_GRANTED:
        level = _TIER_IMPORTANCE[Tier.parse(event.tier)]
        if event.first_time:
            level += 1
        return min(level, 10)

    if kind is EventKind.BALANCE_DEBITED:
        level = 1
        if event.amount >= 5000:
            level = 8
        elif event.amount >= 1000:
            level = 6
        elif event.amount >= 500:
            level = 4
        elif event.amount >= 100:
            level = 2
        if is_low_balance(event, low_balance_threshold):
            level += 2
        if event.balance_after == 0:
            level = 10
        return min(level, 10)

    return 1


def is_low_balance(event: BalanceDebited, threshold: int = 100) -> bool:
    return event.balance_after <= threshold


def is_large_spending(event: BalanceDebited, threshold: int = 1000) -> bool:
    return event.amount >= threshold


def is_rare(event: RewardGranted) -> bool:
    """SR and above."""
    return Tier.parse(event.tier).is_rare


def is_ultra_rare(event: RewardGranted) -> bool:
    return Tier.parse(event.tier) is Tier.UR
