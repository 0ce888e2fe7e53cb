"""Tests for the DealStateMachine domain guard.

These tests verify that:
    1. All valid transitions are allowed.
    2. All invalid transitions are blocked.
    3. The convenience function validate_transition works.
    4. Terminal states accept no further events.
"""

from __future__ import annotations

import pytest
from statemachine.exceptions import TransitionNotAllowed

from deal_escrow.domain.enums import DealState
from deal_escrow.domain.exceptions import InvalidStateTransitionError
from deal_escrow.domain.state_machine import (
    DealStateMachine,
    validate_transition,
)


class TestHappyPath:
    """Test the full happy-path lifecycle: AWAITING_PAYMENT -> COMPLETED."""

    def test_full_lifecycle(self) -> None:
        sm = DealStateMachine("AWAITING_PAYMENT")
        assert sm.deal_state == "AWAITING_PAYMENT"

        sm.payment_received()
        assert sm.deal_state == "AWAITING_DELIVERY"

        sm.item_shipped()
        assert sm.deal_state == "SHIPPED"

        sm.receipt_confirmed()
        assert sm.deal_state == "COMPLETED"

    def test_default_state_is_awaiting_payment(self) -> None:
        assert DealStateMachine().deal_state == "AWAITING_PAYMENT"


class TestCancellation:
    def test_cancel_before_payment(self) -> None:
        sm = DealStateMachine("AWAITING_PAYMENT")
        sm.deal_cancelled()
        assert sm.deal_state == "CANCELLED"

    def test_cannot_cancel_after_payment(self) -> None:
        sm = DealStateMachine("AWAITING_DELIVERY")
        with pytest.raises(TransitionNotAllowed):
            sm.deal_cancelled()


class TestDisputePath:
    """Test dispute transitions."""

    def test_dispute_from_awaiting_delivery(self) -> None:
        sm = DealStateMachine("AWAITING_DELIVERY")
        sm.dispute_raised()
        assert sm.deal_state == "DISPUTED"

    def test_dispute_from_shipped(self) -> None:
        sm = DealStateMachine("SHIPPED")
        sm.dispute_raised()
        assert sm.deal_state == "DISPUTED"

    def test_dispute_resolved_for_seller(self) -> None:
        sm = DealStateMachine("DISPUTED")
        sm.dispute_resolved_for_seller()
        assert sm.deal_state == "COMPLETED"

    def test_dispute_resolved_for_buyer(self) -> None:
        sm = DealStateMachine("DISPUTED")
        sm.dispute_resolved_for_buyer()
        assert sm.deal_state == "REFUNDED"

    def test_no_dispute_before_payment(self) -> None:
        sm = DealStateMachine("AWAITING_PAYMENT")
        with pytest.raises(TransitionNotAllowed):
            sm.dispute_raised()


class TestIllegalTransitions:
    """Verify that illegal transitions raise TransitionNotAllowed."""

    def test_awaiting_payment_to_shipped(self) -> None:
        sm = DealStateMachine("AWAITING_PAYMENT")
        with pytest.raises(TransitionNotAllowed):
            sm.item_shipped()

    def test_receipt_before_shipment(self) -> None:
        sm = DealStateMachine("AWAITING_DELIVERY")
        with pytest.raises(TransitionNotAllowed):
            sm.receipt_confirmed()

    def test_double_payment(self) -> None:
        sm = DealStateMachine("AWAITING_DELIVERY")
        with pytest.raises(TransitionNotAllowed):
            sm.payment_received()

    @pytest.mark.parametrize("state", ["COMPLETED", "REFUNDED", "CANCELLED"])
    def test_terminal_states_are_final(self, state: str) -> None:
        sm = DealStateMachine(state)
        assert sm.get_allowed_events() == []


class TestAllowedEvents:
    """Test the get_allowed_events helper."""

    def test_awaiting_payment_allowed(self) -> None:
        allowed = DealStateMachine("AWAITING_PAYMENT").get_allowed_events()
        assert set(allowed) == {"payment_received", "deal_cancelled"}

    def test_awaiting_delivery_allowed(self) -> None:
        allowed = DealStateMachine("AWAITING_DELIVERY").get_allowed_events()
        assert set(allowed) == {"item_shipped", "dispute_raised"}

    def test_shipped_allowed(self) -> None:
        allowed = DealStateMachine("SHIPPED").get_allowed_events()
        assert set(allowed) == {"receipt_confirmed", "dispute_raised"}

    def test_disputed_allowed(self) -> None:
        allowed = DealStateMachine("DISPUTED").get_allowed_events()
        assert set(allowed) == {"dispute_resolved_for_seller", "dispute_resolved_for_buyer"}


class TestValidateTransitionFunction:
    """Test the convenience function."""

    def test_valid_transition(self) -> None:
        assert validate_transition("SHIPPED", "receipt_confirmed") is DealState.COMPLETED

    def test_accepts_enum_state(self) -> None:
        assert validate_transition(DealState.DISPUTED, "dispute_resolved_for_buyer") is DealState.REFUNDED

    def test_invalid_event_name(self) -> None:
        with pytest.raises(ValueError, match="Unknown event"):
            validate_transition("SHIPPED", "nonexistent_event")

    def test_illegal_transition_raises(self) -> None:
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            validate_transition("AWAITING_PAYMENT", "receipt_confirmed")
        assert exc_info.value.current_state == "AWAITING_PAYMENT"
        assert exc_info.value.attempted == "receipt_confirmed"

    def test_invalid_state(self) -> None:
        with pytest.raises(ValueError, match="Unknown state"):
            DealStateMachine("INVALID_STATE")
