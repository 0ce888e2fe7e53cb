"""Append-only event log shared by the ledger and the arbiter registry.

Records are stamped with a global, gap-free sequence number. Subscribers are
called synchronously after each append; a failing subscriber is logged and
does not affect the operation that produced the event.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from typing import TYPE_CHECKING

from deal_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from deal_escrow.domain.enums import EventType
    from deal_escrow.domain.events import LedgerEvent

logger = get_logger(__name__)

Subscriber = Callable[["LedgerEvent"], None]


class EventLog:
    """Sequenced, append-only list of LedgerEvent records."""

    def __init__(self) -> None:
        self._events: list[LedgerEvent] = []
        self._subscribers: list[Subscriber] = []

    def __len__(self) -> int:
        return len(self._events)

    def append(self, event: LedgerEvent) -> LedgerEvent:
        """Stamp and store an event, then notify subscribers."""
        stamped = dataclasses.replace(event, sequence=len(self._events))
        self._events.append(stamped)
        logger.debug(
            "events.appended",
            sequence=stamped.sequence,
            event_type=stamped.event_type.value,
            deal_id=stamped.deal_id,
        )
        for subscriber in list(self._subscribers):
            try:
                subscriber(stamped)
            except Exception:
                logger.exception("events.subscriber_failed", sequence=stamped.sequence)
        return stamped

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a subscriber. Returns a callable that unsubscribes it."""
        self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    def since(self, sequence: int) -> list[LedgerEvent]:
        """Events with sequence >= `sequence`, oldest first."""
        return self._events[sequence:]

    def for_deal(self, deal_id: int) -> list[LedgerEvent]:
        return [e for e in self._events if e.deal_id == deal_id]

    def of_type(self, event_type: EventType) -> list[LedgerEvent]:
        return [e for e in self._events if e.event_type == event_type]
