"""Custom exception hierarchy for the loot engine."""

from __future__ import annotations

from typing import Any


class LootDrawError(Exception):
    """Base exception for all loot engine errors."""


# --- Configuration ---
class ConfigError(LootDrawError):
    """Invalid or missing configuration."""


# --- Validation ---
class ValidationError(LootDrawError, ValueError):
    """A constructor or method precondition was violated (empty id, bad weight)."""


class InvalidAmount(ValidationError):
    """A currency amount argument was negative."""

    def __init__(self, amount: int, operation: str):
        self.amount = amount
        self.operation = operation
        super().__init__(f"{operation} amount must be >= 0, got {amount}")


# --- Funds ---
class InsufficientFunds(LootDrawError):
    """Balance cannot cover a debit."""

    def __init__(self, required: int, balance: int):
        self.required = required
        self.balance = balance
        super().__init__(
            f"Insufficient funds: required={required}, balance={balance}"
        )


class AffordabilityError(InsufficientFunds):
    """A draw was rejected before any mutation took place."""

    def __init__(self, cost: int, balance: int):
        self.cost = cost
        super().__init__(required=cost, balance=balance)
        self.args = (f"Cannot afford draw: cost={cost}, balance={balance}",)


# --- Dispatch ---
class DispatchFailure(LootDrawError):
    """One or more handlers failed while delivering an event.

    ``cause`` is the first failing handler's error in registration order;
    ``errors`` holds every handler error for the event.  When raised from a
    batch delivery, ``undelivered`` holds the failing event and every event
    after it, and ``delivered`` counts the events that fully succeeded.
    """

    def __init__(
        self,
        event: Any,
        errors: list[BaseException],
        undelivered: list[Any] | None = None,
        delivered: int = 0,
    ):
        self.event = event
        self.errors = list(errors)
        self.cause = self.errors[0] if self.errors else None
        self.undelivered = list(undelivered) if undelivered is not None else [event]
        self.delivered = delivered
        kind = getattr(event, "kind", type(event).__name__)
        super().__init__(
            f"Dispatch of {getattr(kind, 'value', kind)} failed in "
            f"{len(self.errors)} handler(s): {self.cause!r}"
        )
