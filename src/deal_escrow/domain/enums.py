"""Domain enumerations for the deal escrow ledger.

These enums define the canonical states and event kinds used throughout the
system. They are framework-agnostic (no SQLAlchemy, no FastAPI imports).
"""

import enum


class DealState(enum.StrEnum):
    """Lifecycle states of an escrow deal.

    State transitions are enforced by the DealStateMachine guard.
    See domain/state_machine.py for the transition table.
    """

    AWAITING_PAYMENT = "AWAITING_PAYMENT"
    AWAITING_DELIVERY = "AWAITING_DELIVERY"
    SHIPPED = "SHIPPED"
    DISPUTED = "DISPUTED"
    COMPLETED = "COMPLETED"
    REFUNDED = "REFUNDED"
    CANCELLED = "CANCELLED"

    @property
    def code(self) -> int:
        """Ordinal used by the on-chain encoding of getDeal (0..6)."""
        return list(DealState).index(self)

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATES

    @classmethod
    def from_code(cls, code: int) -> "DealState":
        members = list(cls)
        if not 0 <= code < len(members):
            raise ValueError(f"Unknown deal state code: {code}")
        return members[code]


_TERMINAL_STATES = frozenset(
    {DealState.COMPLETED, DealState.REFUNDED, DealState.CANCELLED}
)


class EventType(enum.StrEnum):
    """Kinds of records appended to the ledger event log.

    Every successful state transition produces at least one event.
    This is the append-only trail the UI subscribes to.
    """

    # Deal lifecycle
    DEAL_CREATED = "DealCreated"
    PAYMENT_RECEIVED = "PaymentReceived"
    ITEM_SHIPPED = "ItemShipped"

    # Disputes
    DISPUTE_RAISED = "DisputeRaised"
    DISPUTE_RESOLVED = "DisputeResolved"

    # Settlement
    DEAL_COMPLETED = "DealCompleted"
    REFUNDED = "Refunded"
    DEAL_CANCELLED = "DealCancelled"

    # Registry
    ARBITER_ADDED = "ArbiterAdded"
    ARBITER_REMOVED = "ArbiterRemoved"
    OWNERSHIP_TRANSFERRED = "OwnershipTransferred"


class AssetKind(enum.StrEnum):
    """How a deal's funds are held in custody."""

    NATIVE = "native"
    TOKEN = "token"
