"""Account aggregate root.

An account owns a non-negative integer balance, a set of owned item ids and
an ordered queue of pending domain events.  All state changes go through the
methods below; each one either applies fully or raises before touching
anything.

Dedup policy
------------
Granting an item the account already owns does not add a second copy.
Instead the account is credited the tier's salvage value and the emitted
``RewardGranted`` carries ``first_time=False``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from loot_draw.core.errors import InsufficientFunds, InvalidAmount, ValidationError
from loot_draw.core.ids import utc_now
from loot_draw.domain.events import BalanceDebited, DomainEvent, RewardGranted
from loot_draw.domain.tier import Tier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GrantResult:
    """Outcome of ``Account.grant_item``."""

    first_time: bool
    salvage_credited: int = 0

    @property
    def duplicate(self) -> bool:
        return not self.first_time


class Account:
    """Balance, inventory and pending-event queue for one player."""

    def __init__(
        self,
        account_id: str,
        name: str,
        balance: int = 0,
        created_at: datetime | None = None,
    ) -> None:
        if not account_id or not account_id.strip():
            raise ValidationError("Account id cannot be empty")
        if not name or not name.strip():
            raise ValidationError("Account name cannot be empty")
        if balance < 0:
            raise ValidationError(f"Account balance cannot be negative: {balance}")

        self._id = account_id
        self._name = name
        self._balance = balance
        self._created_at = created_at or utc_now()
        self._owned: set[str] = set()
        self._pending: list[DomainEvent] = []

    # -- Read-only views ---------------------------------------------------

    @property
    def id(self) -> str:
        return self._id

    @property
    def name(self) -> str:
        return self._name

    @property
    def balance(self) -> int:
        return self._balance

    @property
    def created_at(self) -> datetime:
        return self._created_at

    @property
    def owned_item_ids(self) -> frozenset[str]:
        return frozenset(self._owned)

    @property
    def pending_events(self) -> tuple[DomainEvent, ...]:
        return tuple(self._pending)

    def owns(self, item_id: str) -> bool:
        return item_id in self._owned

    def can_afford(self, cost: int) -> bool:
        return cost >= 0 and self._balance >= cost

    # -- Mutations ---------------------------------------------------------

    def debit(self, amount: int, reason: str) -> None:
        """Take *amount* from the balance and record ``BalanceDebited``.

        Raises
        ------
        InvalidAmount
            If *amount* is negative.
        InsufficientFunds
            If *amount* exceeds the balance.
        """
        if amount < 0:
            raise InvalidAmount(amount, "debit")
        if amount > self._balance:
            raise InsufficientFunds(required=amount, balance=self._balance)

        self._balance -= amount
        self.record_event(
            BalanceDebited(
                account_id=self._id,
                amount=amount,
                balance_after=self._balance,
                reason=reason,
            )
        )
        logger.debug(
            "Debited account=%s amount=%d balance=%d reason=%s",
            self._id, amount, self._balance, reason,
        )

    def credit(self, amount: int) -> None:
        """Add *amount* to the balance.  Emits no event."""
        if amount < 0:
            raise InvalidAmount(amount, "credit")
        self._balance += amount

    def grant_item(self, item_id: str, tier: Tier | str, item_name: str = "") -> GrantResult:
        """Grant *item_id*, salvaging it if already owned.

        Always records a ``RewardGranted`` describing the outcome.
        """
        if not item_id or not item_id.strip():
            raise ValidationError("item_id cannot be empty")
        tier = Tier.parse(tier)

        if item_id in self._owned:
            salvage = tier.salvage_value
            self.credit(salvage)
            result = GrantResult(first_time=False, salvage_credited=salvage)
        else:
            self._owned.add(item_id)
            result = GrantResult(first_time=True)

        self.record_event(
            RewardGranted(
                account_id=self._id,
                item_id=item_id,
                item_name=item_name,
                tier=tier,
                first_time=result.first_time,
                salvage_credited=result.salvage_credited,
            )
        )
        logger.debug(
            "Granted account=%s item=%s tier=%s first_time=%s salvage=%d",
            self._id, item_id, tier.value, result.first_time,
            result.salvage_credited,
        )
        return result

    # -- Event queue -------------------------------------------------------

    def record_event(self, event: DomainEvent) -> None:
        self._pending.append(event)

    def drain_events(self) -> list[DomainEvent]:
        """Hand over the pending queue and start a fresh one.

        The swap is a single step with no suspension point, so events
        recorded afterwards land in the new queue only.
        """
        drained, self._pending = self._pending, []
        return drained

    def requeue_events(self, events: Iterable[DomainEvent]) -> None:
        """Put undelivered *events* back at the head of the queue, in order."""
        events = list(events)
        if events:
            self._pending[:0] = events

    def __repr__(self) -> str:
        return (
            f"Account(id={self._id!r}, name={self._name!r}, "
            f"balance={self._balance}, items={len(self._owned)})"
        )
