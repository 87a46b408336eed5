"""Draw transaction service.

One draw runs these steps against an account, synchronously and without
suspension:

1. reject with ``AffordabilityError`` if the cost is negative or
   unaffordable (nothing is mutated);
2. debit the cost (``BalanceDebited``);
3. sample the pool;
4. grant the sampled item (``RewardGranted``; duplicates are salvaged);
5. record ``DrawExecuted`` for the transaction as a whole.

Events reach the bus later, when the caller dispatches the account's queue.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from loot_draw.core.enums import DrawMode
from loot_draw.core.errors import AffordabilityError, ValidationError
from loot_draw.domain.account import Account
from loot_draw.domain.catalog import Reward
from loot_draw.domain.events import DrawExecuted
from loot_draw.domain.pool import RewardPool
from loot_draw.domain.tier import Tier

logger = logging.getLogger(__name__)

DRAW_REASON = "draw"

_FLAVOUR_TEXT: dict[Tier, str] = {
    Tier.UR: "A mythic weapon said to hold the power to reshape the world.",
    Tier.SSR: "A masterwork once wielded by heroes, unrivalled in quality.",
    Tier.SR: "A fine piece forged with the full devotion of a master smith.",
    Tier.R: "Well-made gear favoured by seasoned adventurers.",
    Tier.N: "An everyday item suited to basic needs.",
}


def default_description(tier: Tier) -> str:
    return _FLAVOUR_TEXT.get(tier, "An item shrouded in mystery.")


@dataclass(frozen=True)
class DrawOutcome:
    """Result value for callers that branch on affordability."""

    reward: Reward | None = None
    rejection: AffordabilityError | None = None

    @property
    def accepted(self) -> bool:
        return self.rejection is None


class DrawTransaction:
    """Runs draws against a fixed pool.

    Parameters
    ----------
    pool
        The weighted catalog to sample from.
    describe
        Builds the reward description for a tier.  Presentation only.
    reason
        Reason tag recorded on the ``BalanceDebited`` event.
    """

    def __init__(
        self,
        pool: RewardPool,
        describe: Callable[[Tier], str] = default_description,
        reason: str = DRAW_REASON,
    ) -> None:
        self._pool = pool
        self._describe = describe
        self._reason = reason

    @property
    def pool(self) -> RewardPool:
        return self._pool

    def execute(
        self,
        account: Account,
        cost: int,
        mode: DrawMode | str = DrawMode.SINGLE,
    ) -> Reward:
        """Run one draw and return the reward.

        Raises
        ------
        AffordabilityError
            If *cost* is negative or exceeds the balance.  The account is
            left untouched.
        """
        try:
            mode = DrawMode(mode)
        except ValueError:
            raise ValidationError(f"Unknown draw mode: {mode!r}") from None
        if not account.can_afford(cost):
            logger.info(
                "Draw rejected account=%s cost=%d balance=%d",
                account.id, cost, account.balance,
            )
            raise AffordabilityError(cost=cost, balance=account.balance)

        account.debit(cost, self._reason)
        entry = self._pool.sample()
        grant = account.grant_item(entry.id, entry.tier, entry.name)
        account.record_event(
            DrawExecuted(account_id=account.id, cost=cost, mode=mode)
        )

        logger.info(
            "Draw account=%s mode=%s item=%s tier=%s first_time=%s",
            account.id, mode.value, entry.id, entry.tier.value, grant.first_time,
        )
        return Reward.from_entry(entry, self._describe(entry.tier))

    def try_execute(
        self,
        account: Account,
        cost: int,
        mode: DrawMode | str = DrawMode.SINGLE,
    ) -> DrawOutcome:
        """Like ``execute`` but returns the rejection instead of raising."""
        try:
            return DrawOutcome(reward=self.execute(account, cost, mode))
        except AffordabilityError as exc:
            return DrawOutcome(rejection=exc)


def draw_once(
    account: Account,
    pool: RewardPool,
    cost: int,
    mode: DrawMode | str = DrawMode.SINGLE,
) -> Reward:
    """Run one draw of *pool* for *account*.  See ``DrawTransaction.execute``."""
    return DrawTransaction(pool).execute(account, cost, mode)


def try_draw(
    account: Account,
    pool: RewardPool,
    cost: int,
    mode: DrawMode | str = DrawMode.SINGLE,
) -> DrawOutcome:
    """Run one draw, returning a ``DrawOutcome`` instead of raising."""
    return DrawTransaction(pool).try_execute(account, cost, mode)
