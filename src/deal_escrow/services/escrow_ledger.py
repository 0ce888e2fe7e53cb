"""Escrow Ledger — deal records, custody and the settlement rules.

This is the heart of the system. It coordinates between:
    - ArbiterRegistry (who may be named arbiter at creation time)
    - DealStateMachine (transition guard)
    - PaymentService (the only code that moves value)
    - EventLog (audit trail the UI subscribes to)

Every operation is synchronous and runs to completion; the caller's address
is passed explicitly as `caller`. Checks run in a fixed order: deal exists,
caller holds the role, deal is not in flight, state allows the transition,
arguments are valid. The first failing check raises and nothing changes.

Fund-moving transitions write the new state before calling out to the asset,
and a per-deal in-flight flag rejects any callback into the same deal until
the operation returns. If the transfer fails, the state write is undone.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from deal_escrow.domain.enums import AssetKind, DealState
from deal_escrow.domain.events import (
    DealCancelled,
    DealCompleted,
    DealCreated,
    DisputeRaised,
    DisputeResolved,
    ItemShipped,
    PaymentReceived,
    Refunded,
)
from deal_escrow.domain.exceptions import (
    AuthorizationError,
    DealNotFoundError,
    InvalidArgumentError,
    ReentrantCallError,
)
from deal_escrow.domain.models import (
    CANCELLATION_PREFIX,
    NATIVE_ASSET,
    Deal,
    is_zero_address,
    normalize_address,
)
from deal_escrow.domain.state_machine import DealStateMachine, validate_transition
from deal_escrow.logging_config import get_deal_logger, get_logger
from deal_escrow.services.event_log import EventLog

if TYPE_CHECKING:
    from deal_escrow.config import Settings
    from deal_escrow.domain.asset_protocol import NativeCurrency, TokenResolver
    from deal_escrow.domain.events import LedgerEvent
    from deal_escrow.domain.models import DealView
    from deal_escrow.services.arbiter_registry import ArbiterRegistry
    from deal_escrow.services.payment_service import PaymentService

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class EscrowLedger:
    """Owns all deals and custodies their funds between deposit and settlement."""

    def __init__(
        self,
        registry: ArbiterRegistry,
        payments: PaymentService,
        events: EventLog | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.registry = registry
        self.payments = payments
        self.events = events if events is not None else EventLog()
        self._clock = clock
        self._deals: list[Deal] = []
        self._in_flight: set[int] = set()
        self._custody: dict[str, int] = {}

    # ------------------------------------------------------------------
    # Deal Creation
    # ------------------------------------------------------------------

    def create_deal(
        self,
        caller: str,
        seller: str,
        arbiter: str,
        asset: str,
        amount: int,
    ) -> int:
        """Create a deal in AWAITING_PAYMENT with the caller as buyer. Returns its id."""
        buyer = normalize_address(caller, "caller")
        seller = normalize_address(seller, "seller")
        arbiter = normalize_address(arbiter, "arbiter")
        asset = normalize_address(asset, "asset")

        if is_zero_address(seller):
            raise InvalidArgumentError("Invalid seller: zero address", field="seller")
        if is_zero_address(arbiter):
            raise InvalidArgumentError("Invalid arbiter: zero address", field="arbiter")
        if not self.registry.is_approved(arbiter):
            raise InvalidArgumentError(f"Not an approved arbiter: {arbiter}", field="arbiter")
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise InvalidArgumentError("Amount must be > 0", field="amount")
        if not self.payments.is_known_asset(asset):
            raise InvalidArgumentError(f"Unknown asset: {asset}", field="asset")

        deal = Deal(
            deal_id=len(self._deals),
            buyer=buyer,
            seller=seller,
            arbiter=arbiter,
            asset=asset,
            amount=amount,
            created_at=self._clock(),
        )
        self._deals.append(deal)

        self.events.append(
            DealCreated(
                deal_id=deal.deal_id,
                actor=buyer,
                buyer=buyer,
                seller=seller,
                arbiter=arbiter,
                asset=asset,
                amount=amount,
            )
        )
        get_deal_logger(deal.deal_id).info(
            "deal.created",
            buyer=buyer,
            seller=seller,
            arbiter=arbiter,
            asset=asset,
            amount=amount,
        )
        return deal.deal_id

    # ------------------------------------------------------------------
    # Funding
    # ------------------------------------------------------------------

    def deposit_eth(self, caller: str, deal_id: int, value: int) -> None:
        """Buyer pays a native-currency deal; `value` is the attached amount."""
        deal = self._get_deal_or_raise(deal_id)
        caller = self._require_role(caller, "buyer", deal.buyer)

        with self._in_flight_guard(deal, "deposit_eth"):
            self._check_transition(deal, "payment_received")
            if deal.asset_kind is not AssetKind.NATIVE:
                raise InvalidArgumentError("Not a native-currency deal", field="asset")
            if isinstance(value, bool) or not isinstance(value, int) or value != deal.amount:
                raise InvalidArgumentError(
                    f"Incorrect amount: expected {deal.amount}, got {value}",
                    field="value",
                )
            self._transition(
                deal,
                "payment_received",
                transfer=lambda: self.payments.collect_native(caller, deal.amount),
                custody_delta=deal.amount,
                events=[PaymentReceived(deal_id=deal.deal_id, actor=caller, payer=caller, amount=deal.amount)],
            )
        get_deal_logger(deal.deal_id).info("deal.payment_received", asset=NATIVE_ASSET)

    def deposit_token(self, caller: str, deal_id: int) -> None:
        """Buyer pays a token deal; requires a prior allowance to the ledger."""
        deal = self._get_deal_or_raise(deal_id)
        caller = self._require_role(caller, "buyer", deal.buyer)

        with self._in_flight_guard(deal, "deposit_token"):
            self._check_transition(deal, "payment_received")
            if deal.asset_kind is not AssetKind.TOKEN:
                raise InvalidArgumentError("Not a token deal", field="asset")
            self._transition(
                deal,
                "payment_received",
                transfer=lambda: self.payments.collect_token(deal.asset, caller, deal.amount),
                custody_delta=deal.amount,
                events=[PaymentReceived(deal_id=deal.deal_id, actor=caller, payer=caller, amount=deal.amount)],
            )
        get_deal_logger(deal.deal_id).info("deal.payment_received", asset=deal.asset)

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def confirm_shipment(self, caller: str, deal_id: int) -> None:
        deal = self._get_deal_or_raise(deal_id)
        caller = self._require_role(caller, "seller", deal.seller)

        with self._in_flight_guard(deal, "confirm_shipment"):
            self._transition(
                deal,
                "item_shipped",
                events=[ItemShipped(deal_id=deal.deal_id, actor=caller)],
            )
        get_deal_logger(deal.deal_id).info("deal.item_shipped")

    def confirm_receipt(self, caller: str, deal_id: int) -> None:
        """Buyer confirms delivery; custody is released to the seller."""
        deal = self._get_deal_or_raise(deal_id)
        caller = self._require_role(caller, "buyer", deal.buyer)

        with self._in_flight_guard(deal, "confirm_receipt"):
            self._transition(
                deal,
                "receipt_confirmed",
                transfer=lambda: self.payments.pay_out(deal.asset, deal.seller, deal.amount),
                custody_delta=-deal.amount,
                events=[
                    DealCompleted(
                        deal_id=deal.deal_id,
                        actor=caller,
                        recipient=deal.seller,
                        amount=deal.amount,
                    )
                ],
            )
        get_deal_logger(deal.deal_id).info("deal.completed", paid_to=deal.seller)

    # ------------------------------------------------------------------
    # Disputes
    # ------------------------------------------------------------------

    def raise_dispute(
        self,
        caller: str,
        deal_id: int,
        reason: str,
        is_cancellation_request: bool = False,
    ) -> None:
        """Buyer or seller moves a funded deal to DISPUTED.

        `is_cancellation_request` is advisory: it is recorded (and prefixed to
        the stored reason) for the arbiter but does not change how the dispute
        can be resolved.
        """
        deal = self._get_deal_or_raise(deal_id)
        caller = self._require_role(caller, "buyer or seller", deal.buyer, deal.seller)

        with self._in_flight_guard(deal, "raise_dispute"):
            self._check_transition(deal, "dispute_raised")
            if not isinstance(reason, str) or not reason.strip():
                raise InvalidArgumentError("Dispute reason must not be empty", field="reason")
            if not isinstance(is_cancellation_request, bool):
                raise InvalidArgumentError(
                    "is_cancellation_request must be a bool", field="is_cancellation_request"
                )

            stored_reason = f"{CANCELLATION_PREFIX}{reason}" if is_cancellation_request else reason
            self._transition(
                deal,
                "dispute_raised",
                updates={
                    "dispute_reason": stored_reason,
                    "dispute_initiator": caller,
                    "is_cancellation_request": bool(is_cancellation_request),
                },
                events=[
                    DisputeRaised(
                        deal_id=deal.deal_id,
                        actor=caller,
                        reason=stored_reason,
                        initiator=caller,
                        is_cancellation_request=bool(is_cancellation_request),
                    )
                ],
            )
        get_deal_logger(deal.deal_id).info(
            "deal.dispute_raised",
            by=caller,
            cancellation_request=bool(is_cancellation_request),
        )

    def resolve_dispute(self, caller: str, deal_id: int, refund_to_buyer: bool) -> None:
        """The deal's own arbiter settles a dispute in full to one side."""
        deal = self._get_deal_or_raise(deal_id)
        caller = self._require_role(caller, "the deal's arbiter", deal.arbiter)

        with self._in_flight_guard(deal, "resolve_dispute"):
            self._check_transition(deal, "dispute_resolved_for_buyer")
            if not isinstance(refund_to_buyer, bool):
                raise InvalidArgumentError("refund_to_buyer must be a bool", field="refund_to_buyer")

            if refund_to_buyer:
                event_name, winner = "dispute_resolved_for_buyer", deal.buyer
                outcome = Refunded(deal_id=deal.deal_id, actor=caller, recipient=winner, amount=deal.amount)
            else:
                event_name, winner = "dispute_resolved_for_seller", deal.seller
                outcome = DealCompleted(deal_id=deal.deal_id, actor=caller, recipient=winner, amount=deal.amount)

            self._transition(
                deal,
                event_name,
                transfer=lambda: self.payments.pay_out(deal.asset, winner, deal.amount),
                custody_delta=-deal.amount,
                events=[
                    DisputeResolved(
                        deal_id=deal.deal_id,
                        actor=caller,
                        winner=winner,
                        refund_to_buyer=refund_to_buyer,
                    ),
                    outcome,
                ],
            )
        get_deal_logger(deal.deal_id).info(
            "deal.dispute_resolved",
            winner=winner,
            refunded=refund_to_buyer,
        )

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    def cancel_deal(self, caller: str, deal_id: int) -> None:
        """Buyer or seller cancels before any payment; nothing is transferred."""
        deal = self._get_deal_or_raise(deal_id)
        caller = self._require_role(caller, "buyer or seller", deal.buyer, deal.seller)

        with self._in_flight_guard(deal, "cancel_deal"):
            self._transition(
                deal,
                "deal_cancelled",
                events=[DealCancelled(deal_id=deal.deal_id, actor=caller, cancelled_by=caller)],
            )
        get_deal_logger(deal.deal_id).info("deal.cancelled", by=caller)

    # ------------------------------------------------------------------
    # Registry passthrough
    # ------------------------------------------------------------------

    def add_arbiter(self, caller: str, address: str) -> None:
        self.registry.add_arbiter(caller, address)

    def remove_arbiter(self, caller: str, address: str) -> None:
        self.registry.remove_arbiter(caller, address)

    def is_arbiter_approved(self, address: str) -> bool:
        return self.registry.is_approved(address)

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    @property
    def next_deal_id(self) -> int:
        return len(self._deals)

    def get_deal(self, deal_id: int) -> DealView:
        return self._get_deal_or_raise(deal_id).snapshot()

    def list_deals(self, party: str | None = None, state: DealState | None = None) -> list[DealView]:
        """Deals in id order, optionally filtered by participant and state."""
        party = party.lower() if party else None
        return [
            deal.snapshot()
            for deal in self._deals
            if (party is None or party in (deal.buyer, deal.seller, deal.arbiter))
            and (state is None or deal.state == state)
        ]

    def allowed_actions(self, deal_id: int) -> list[str]:
        deal = self._get_deal_or_raise(deal_id)
        return DealStateMachine(current_state=deal.state.value).get_allowed_events()

    def custody_balance(self, asset: str = NATIVE_ASSET) -> int:
        """Total currently escrowed for an asset across all active deals."""
        return self._custody.get(asset.lower(), 0)

    def events_for(self, deal_id: int) -> list[LedgerEvent]:
        self._get_deal_or_raise(deal_id)
        return self.events.for_deal(deal_id)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _get_deal_or_raise(self, deal_id: int) -> Deal:
        if isinstance(deal_id, bool) or not isinstance(deal_id, int) or not 0 <= deal_id < len(self._deals):
            raise DealNotFoundError(deal_id)
        return self._deals[deal_id]

    @staticmethod
    def _require_role(caller: str, role: str, *allowed: str) -> str:
        caller = normalize_address(caller, "caller")
        if caller not in allowed:
            raise AuthorizationError(caller, role)
        return caller

    @contextmanager
    def _in_flight_guard(self, deal: Deal, attempted: str) -> Iterator[None]:
        if deal.deal_id in self._in_flight:
            get_deal_logger(deal.deal_id).warning("deal.reentrant_call_blocked", attempted=attempted)
            raise ReentrantCallError(deal.deal_id, attempted)
        self._in_flight.add(deal.deal_id)
        try:
            yield
        finally:
            self._in_flight.discard(deal.deal_id)

    def _check_transition(self, deal: Deal, event_name: str) -> DealState:
        """Validate a state machine transition and return the resulting state.

        Raises InvalidStateTransitionError if the transition is illegal.
        """
        return validate_transition(deal.state, event_name)

    def _transition(
        self,
        deal: Deal,
        event_name: str,
        *,
        transfer: Callable[[], None] | None = None,
        custody_delta: int = 0,
        updates: dict | None = None,
        events: Iterable[LedgerEvent] = (),
    ) -> None:
        """Write the new state, then move funds, then publish events.

        The state (and any extra field updates) are written before the
        transfer runs, so a callback from the asset sees the post-transition
        deal. A failed transfer restores the previous values and re-raises.
        """
        new_state = self._check_transition(deal, event_name)
        updates = dict(updates or {})
        previous = {"state": deal.state, **{name: getattr(deal, name) for name in updates}}

        deal.state = new_state
        for name, value in updates.items():
            setattr(deal, name, value)

        if transfer is not None:
            try:
                transfer()
            except Exception:
                for name, value in previous.items():
                    setattr(deal, name, value)
                logger.warning(
                    "deal.transition_rolled_back",
                    deal_id=deal.deal_id,
                    attempted=event_name,
                    state=deal.state.value,
                )
                raise

        if custody_delta:
            self._custody[deal.asset] = self._custody.get(deal.asset, 0) + custody_delta

        for event in events:
            self.events.append(event)


def build_ledger(settings: Settings, native: NativeCurrency, tokens: TokenResolver) -> EscrowLedger:
    """Wire a ledger, its registry and its payment service from configuration."""
    from deal_escrow.services.arbiter_registry import ArbiterRegistry
    from deal_escrow.services.payment_service import PaymentService

    events = EventLog()
    registry = ArbiterRegistry(
        owner=settings.registry_owner,
        bootstrap=settings.bootstrap_arbiter_list,
        events=events,
    )
    payments = PaymentService(native=native, tokens=tokens, custody_address=settings.ledger_address)
    return EscrowLedger(registry=registry, payments=payments, events=events)
