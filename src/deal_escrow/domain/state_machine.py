"""Deal State Machine Guard.

Uses python-statemachine to enforce legal state transitions at the domain level.
No matter what the API or a callback does, an illegal transition
(e.g., AWAITING_PAYMENT -> COMPLETED) will raise TransitionNotAllowed, which
validate_transition turns into InvalidStateTransitionError.

The ledger instantiates a machine at the deal's current state and fires the
named event before it writes the new state onto the deal.

Transition table:
    AWAITING_PAYMENT   -> AWAITING_DELIVERY  (payment_received)
    AWAITING_PAYMENT   -> CANCELLED          (deal_cancelled)
    AWAITING_DELIVERY  -> SHIPPED            (item_shipped)
    AWAITING_DELIVERY  -> DISPUTED           (dispute_raised)
    SHIPPED            -> COMPLETED          (receipt_confirmed)
    SHIPPED            -> DISPUTED           (dispute_raised)
    DISPUTED           -> COMPLETED          (dispute_resolved_for_seller)
    DISPUTED           -> REFUNDED           (dispute_resolved_for_buyer)
"""

from __future__ import annotations

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from deal_escrow.domain.enums import DealState
from deal_escrow.domain.exceptions import InvalidStateTransitionError


class DealStateMachine(StateMachine):
    """State machine that guards escrow deal lifecycle transitions.

    Usage:
        sm = DealStateMachine(current_state="SHIPPED")
        sm.receipt_confirmed()  # transitions to COMPLETED
        sm.deal_state           # "COMPLETED"
    """

    # --- States ---
    AWAITING_PAYMENT = State("AWAITING_PAYMENT", initial=True)
    AWAITING_DELIVERY = State("AWAITING_DELIVERY")
    SHIPPED = State("SHIPPED")
    DISPUTED = State("DISPUTED")
    COMPLETED = State("COMPLETED", final=True)
    REFUNDED = State("REFUNDED", final=True)
    CANCELLED = State("CANCELLED", final=True)

    # --- Events / Transitions ---

    # Funding
    payment_received = AWAITING_PAYMENT.to(AWAITING_DELIVERY)
    deal_cancelled = AWAITING_PAYMENT.to(CANCELLED)

    # Delivery
    item_shipped = AWAITING_DELIVERY.to(SHIPPED)
    receipt_confirmed = SHIPPED.to(COMPLETED)

    # Disputes
    dispute_raised = AWAITING_DELIVERY.to(DISPUTED) | SHIPPED.to(DISPUTED)
    dispute_resolved_for_seller = DISPUTED.to(COMPLETED)
    dispute_resolved_for_buyer = DISPUTED.to(REFUNDED)

    def __init__(self, current_state: str = "AWAITING_PAYMENT") -> None:
        """Initialize the state machine at a given deal state.

        Args:
            current_state: The current DealState value (e.g., "SHIPPED").
        """
        valid_values = {s.value for s in self.states}
        if current_state not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(f"Unknown state '{current_state}'. Valid states: {valid}")
        super().__init__(start_value=current_state)

    @property
    def deal_state(self) -> str:
        """Return the current state value as a string (matches DealState enum)."""
        return str(self.current_state.value)

    def get_allowed_events(self) -> list[str]:
        """Return a list of event names that can fire from the current state."""
        return [getattr(event, "id", None) or event.name for event in self.allowed_events]


def validate_transition(current_state: DealState | str, event_name: str) -> DealState:
    """Fire `event_name` on a machine at `current_state` and return where it lands.

    Raises:
        InvalidStateTransitionError: If the event may not fire from this state.
        ValueError: If the state or event name is unknown.
    """
    current = DealState(current_state)
    sm = DealStateMachine(current_state=current.value)

    event_method = getattr(sm, event_name, None)
    if event_method is None or not callable(event_method):
        raise ValueError(
            f"Unknown event '{event_name}'. "
            f"Allowed events from {current.value}: {sm.get_allowed_events()}"
        )

    try:
        event_method()
    except TransitionNotAllowed as err:
        raise InvalidStateTransitionError(current.value, event_name) from err
    return DealState(sm.deal_state)
