"""Shared test fixtures for the Deal Escrow test suite.

Provides:
    - Well-known addresses for the three deal parties and the registry owner
    - Simulated native currency and token, pre-funded for the buyer
    - A ledger wired to them with a fixed clock
    - Factory helpers that drive a deal to a given state
"""

from __future__ import annotations

import pytest

from deal_escrow.domain.models import NATIVE_ASSET
from deal_escrow.infrastructure.assets import SimulatedNativeBank, SimulatedToken, TokenDirectory
from deal_escrow.services.arbiter_registry import ArbiterRegistry
from deal_escrow.services.escrow_ledger import EscrowLedger
from deal_escrow.services.event_log import EventLog
from deal_escrow.services.payment_service import PaymentService
from tests.factories import (
    ARBITER,
    BUYER,
    FIXED_NOW,
    LEDGER_ADDRESS,
    ONE_ETH,
    OTHER_ARBITER,
    OWNER,
    SELLER,
    TOKEN_ADDRESS,
)


# ---------------------------------------------------------------------------
# Asset Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def bank() -> SimulatedNativeBank:
    """Native currency with 10 ETH for the buyer."""
    native = SimulatedNativeBank()
    native.mint(BUYER, 10 * ONE_ETH)
    return native


@pytest.fixture
def token() -> SimulatedToken:
    """Token with 1000 units for the buyer and no allowance yet."""
    nxt = SimulatedToken(TOKEN_ADDRESS, symbol="NXT")
    nxt.mint(BUYER, 1000 * ONE_ETH)
    return nxt


@pytest.fixture
def directory(token: SimulatedToken) -> TokenDirectory:
    return TokenDirectory([token])


# ---------------------------------------------------------------------------
# Service Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def events() -> EventLog:
    return EventLog()


@pytest.fixture
def registry(events: EventLog) -> ArbiterRegistry:
    return ArbiterRegistry(owner=OWNER, bootstrap=[ARBITER, OTHER_ARBITER], events=events)


@pytest.fixture
def payments(bank: SimulatedNativeBank, directory: TokenDirectory) -> PaymentService:
    return PaymentService(native=bank, tokens=directory, custody_address=LEDGER_ADDRESS)


@pytest.fixture
def ledger(registry: ArbiterRegistry, payments: PaymentService, events: EventLog) -> EscrowLedger:
    return EscrowLedger(registry=registry, payments=payments, events=events, clock=lambda: FIXED_NOW)


# ---------------------------------------------------------------------------
# Deal Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_deal(ledger: EscrowLedger):
    """Create a native deal and drive it to `state` along the happy path."""

    def _make(state: str = "AWAITING_PAYMENT", amount: int = ONE_ETH) -> int:
        deal_id = ledger.create_deal(BUYER, SELLER, ARBITER, NATIVE_ASSET, amount)
        if state == "AWAITING_PAYMENT":
            return deal_id
        ledger.deposit_eth(BUYER, deal_id, amount)
        if state == "AWAITING_DELIVERY":
            return deal_id
        if state == "DISPUTED":
            ledger.raise_dispute(BUYER, deal_id, "Item never arrived")
            return deal_id
        ledger.confirm_shipment(SELLER, deal_id)
        if state == "SHIPPED":
            return deal_id
        raise ValueError(f"Unsupported fixture state: {state}")

    return _make
