"""Enumerations used across the loot engine."""

from enum import Enum


class EventKind(str, Enum):
    """Routing tag carried by every domain event."""

    DRAW_EXECUTED = "DrawExecuted"
    BALANCE_DEBITED = "BalanceDebited"
    REWARD_GRANTED = "RewardGranted"


class DrawMode(str, Enum):
    SINGLE = "single"
    TEN_PULL = "ten_pull"


class NoticeType(str, Enum):
    """Categories of handler-produced notices kept in the stats store."""

    LOW_BALANCE = "low_balance"
    ZERO_BALANCE = "zero_balance"
    HIGH_IMPORTANCE_SPENDING = "high_importance_spending"
    LARGE_SPENDING = "large_spending"
    RAPID_SPENDING = "rapid_spending"
    RARE_REWARD = "rare_reward"
    COLLECTION_MILESTONE = "collection_milestone"
    ACHIEVEMENT = "achievement"
