"""Typed event records emitted by the ledger and the arbiter registry.

One frozen dataclass per event kind. The EventLog stamps each record with a
global sequence number when it is appended; before that `sequence` is -1.
Records carry ids, addresses and amounts only.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import ClassVar

from deal_escrow.domain.enums import EventType


@dataclass(frozen=True, kw_only=True)
class LedgerEvent:
    """Base record. Subclasses set `event_type`."""

    event_type: ClassVar[EventType]

    deal_id: int | None = None
    actor: str | None = None
    sequence: int = -1

    def payload(self) -> dict:
        """Event-specific fields, without the envelope."""
        data = dataclasses.asdict(self)
        for key in ("deal_id", "actor", "sequence"):
            data.pop(key, None)
        return data

    def to_dict(self) -> dict:
        return {
            "sequence": self.sequence,
            "event_type": self.event_type.value,
            "deal_id": self.deal_id,
            "actor": self.actor,
            "payload": self.payload(),
        }


# --- Deal lifecycle ---


@dataclass(frozen=True, kw_only=True)
class DealCreated(LedgerEvent):
    event_type: ClassVar[EventType] = EventType.DEAL_CREATED

    buyer: str
    seller: str
    arbiter: str
    asset: str
    amount: int


@dataclass(frozen=True, kw_only=True)
class PaymentReceived(LedgerEvent):
    event_type: ClassVar[EventType] = EventType.PAYMENT_RECEIVED

    payer: str
    amount: int


@dataclass(frozen=True, kw_only=True)
class ItemShipped(LedgerEvent):
    event_type: ClassVar[EventType] = EventType.ITEM_SHIPPED


# --- Disputes ---


@dataclass(frozen=True, kw_only=True)
class DisputeRaised(LedgerEvent):
    event_type: ClassVar[EventType] = EventType.DISPUTE_RAISED

    reason: str
    initiator: str
    is_cancellation_request: bool = False


@dataclass(frozen=True, kw_only=True)
class DisputeResolved(LedgerEvent):
    event_type: ClassVar[EventType] = EventType.DISPUTE_RESOLVED

    winner: str
    refund_to_buyer: bool


# --- Settlement ---


@dataclass(frozen=True, kw_only=True)
class DealCompleted(LedgerEvent):
    event_type: ClassVar[EventType] = EventType.DEAL_COMPLETED

    recipient: str
    amount: int


@dataclass(frozen=True, kw_only=True)
class Refunded(LedgerEvent):
    event_type: ClassVar[EventType] = EventType.REFUNDED

    recipient: str
    amount: int


@dataclass(frozen=True, kw_only=True)
class DealCancelled(LedgerEvent):
    event_type: ClassVar[EventType] = EventType.DEAL_CANCELLED

    cancelled_by: str


# --- Registry ---


@dataclass(frozen=True, kw_only=True)
class ArbiterAdded(LedgerEvent):
    event_type: ClassVar[EventType] = EventType.ARBITER_ADDED

    arbiter: str


@dataclass(frozen=True, kw_only=True)
class ArbiterRemoved(LedgerEvent):
    event_type: ClassVar[EventType] = EventType.ARBITER_REMOVED

    arbiter: str


@dataclass(frozen=True, kw_only=True)
class OwnershipTransferred(LedgerEvent):
    event_type: ClassVar[EventType] = EventType.OWNERSHIP_TRANSFERRED

    previous_owner: str | None
    new_owner: str | None
