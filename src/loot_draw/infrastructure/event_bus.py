"""Event bus: kind-routed, concurrent fan-out delivery of domain events.

Design goals
------------
1.  **Kind-routed dispatching**: subscribers register for an ``EventKind``.
    When an event is dispatched the bus routes it to every handler
    registered for ``event.kind`` and to no other.
2.  **Concurrent fan-out**: handlers for one event are scheduled together
    (registration order) and run concurrently on the event loop.
3.  **Settle-all failure reporting**: ``dispatch()`` waits for every
    handler of the event to finish, success or failure, and only then
    raises ``DispatchFailure`` carrying the first failing handler's error
    (registration order) plus all the others.  No handler is cancelled.
4.  **Strictly ordered batches**: ``dispatch_all()`` awaits each event's
    dispatch before starting the next; a failure stops the batch.
5.  **Redeliverable tails**: ``dispatch_entity_events()`` drains an
    entity's queue and, on failure or cancellation, puts the interrupted
    event and everything after it back at the head of that queue.  Fully
    delivered events are not redelivered.

There is no timeout: a handler that never finishes stalls its batch.
Callers that need one wrap the call in ``asyncio.wait_for``; the queue is
restored when it fires.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from loot_draw.core.enums import EventKind
from loot_draw.core.errors import DispatchFailure
from loot_draw.domain.events import DomainEvent

logger = logging.getLogger(__name__)

# Type alias for async event handlers.
EventHandler = Callable[[DomainEvent], Awaitable[None]]


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------

@runtime_checkable
class EventSource(Protocol):
    """An entity that accumulates events for later delivery."""

    def drain_events(self) -> list[DomainEvent]:
        """Return pending events and start a fresh queue."""
        ...

    def requeue_events(self, events: Iterable[DomainEvent]) -> None:
        """Put undelivered events back at the head of the queue."""
        ...


@dataclass(frozen=True)
class BusStats:
    """Snapshot of the subscription table."""

    total_kinds: int = 0
    total_handlers: int = 0
    breakdown: dict[EventKind, int] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Implementation
# ---------------------------------------------------------------------------

class EventBus:
    """In-process event bus for loot domain events."""

    def __init__(self) -> None:
        self._handlers: dict[EventKind, list[EventHandler]] = defaultdict(list)
        self._error_counts: dict[str, int] = defaultdict(int)
        self._dead_letters: list[tuple[DomainEvent, str]] = []
        self._messages_processed: int = 0

    # -- Subscriptions -----------------------------------------------------

    def subscribe(self, kind: EventKind, handler: EventHandler) -> None:
        """Register *handler* for events of *kind*.  Duplicates allowed."""
        kind = EventKind(kind)
        self._handlers[kind].append(handler)
        logger.debug(
            "Handler registered for %s (total=%d)",
            kind.value, len(self._handlers[kind]),
        )

    def unsubscribe(self, kind: EventKind) -> None:
        """Remove every handler registered for *kind*."""
        if self._handlers.pop(EventKind(kind), None) is not None:
            logger.debug("Handlers removed for %s", EventKind(kind).value)

    def clear(self) -> None:
        """Remove all subscriptions."""
        self._handlers.clear()

    def has_handlers(self, kind: EventKind) -> bool:
        return bool(self._handlers.get(EventKind(kind)))

    def registered_kinds(self) -> list[EventKind]:
        return [k for k, hs in self._handlers.items() if hs]

    def stats(self) -> BusStats:
        breakdown = {k: len(hs) for k, hs in self._handlers.items() if hs}
        return BusStats(
            total_kinds=len(breakdown),
            total_handlers=sum(breakdown.values()),
            breakdown=breakdown,
        )

    # -- Delivery ----------------------------------------------------------

    async def dispatch(self, event: DomainEvent) -> None:
        """Deliver *event* to every handler registered for its kind.

        Raises
        ------
        DispatchFailure
            After all handlers have settled, if any of them raised.
        """
        kind = event.kind
        handlers = list(self._handlers.get(kind, ()))
        if not handlers:
            logger.debug("No handlers for %s", kind.value)
            return

        results = await asyncio.gather(
            *(self._invoke(handler, event) for handler in handlers),
            return_exceptions=True,
        )

        errors: list[BaseException] = []
        for result in results:
            if isinstance(result, BaseException):
                errors.append(result)
                self._error_counts[kind.value] += 1
                self._dead_letters.append((event, str(result)))
                logger.error(
                    "Handler error on %s event=%s: %s",
                    kind.value, event.event_id, result,
                    exc_info=result,
                )
            else:
                self._messages_processed += 1

        if errors:
            raise DispatchFailure(event, errors) from errors[0]

    @staticmethod
    async def _invoke(handler: EventHandler, event: DomainEvent) -> None:
        # A handler that raises before returning, or returns a
        # non-awaitable, fails on its own instead of aborting the gather.
        await handler(event)

    async def dispatch_all(self, events: Iterable[DomainEvent]) -> None:
        """Deliver *events* one at a time, in order.

        A failure on event *k* stops the batch; the raised
        ``DispatchFailure`` lists events *k..n* as undelivered.
        """
        await self._deliver(list(events))

    async def dispatch_entity_events(self, entity: EventSource) -> None:
        """Drain *entity*'s queue and deliver it.

        On success the entity's queue holds only events recorded since the
        drain.  If delivery stops for any reason (a ``DispatchFailure``,
        cancellation, a timeout around the call) the events not yet fully
        delivered are requeued ahead of those and the exception propagates
        to the caller.
        """
        events = entity.drain_events()
        if not events:
            return
        await self._deliver(events, entity)

    async def _deliver(
        self,
        batch: list[DomainEvent],
        source: EventSource | None = None,
    ) -> None:
        delivered = 0
        try:
            for event in batch:
                await self.dispatch(event)
                delivered += 1
        except BaseException as exc:
            undelivered = batch[delivered:]
            if isinstance(exc, DispatchFailure):
                exc.undelivered = undelivered
                exc.delivered = delivered
            logger.warning(
                "Batch stopped at %d/%d (%s: %s)",
                delivered + 1, len(batch), type(exc).__name__,
                batch[delivered].kind.value,
            )
            if source is not None:
                source.requeue_events(undelivered)
                logger.warning(
                    "Requeued %d undelivered event(s)", len(undelivered),
                )
            raise

    # -- Observability -----------------------------------------------------

    def get_error_counts(self) -> dict[str, int]:
        """Return ``{event_kind: error_count}``."""
        return dict(self._error_counts)

    @property
    def dead_letters(self) -> list[tuple[DomainEvent, str]]:
        """Events whose handlers failed, with the error message."""
        return list(self._dead_letters)

    def clear_dead_letters(self) -> list[tuple[DomainEvent, str]]:
        """Drain and return dead letters."""
        drained = self._dead_letters[:]
        self._dead_letters.clear()
        return drained

    @property
    def messages_processed(self) -> int:
        """Successful handler invocations."""
        return self._messages_processed
