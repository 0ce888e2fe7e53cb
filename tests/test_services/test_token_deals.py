"""Tests for token-denominated deals (allowance-based deposits)."""

from __future__ import annotations

import pytest

from deal_escrow.domain.enums import DealState
from deal_escrow.domain.exceptions import (
    ExternalTransferError,
    InvalidArgumentError,
)
from deal_escrow.domain.models import NATIVE_ASSET
from deal_escrow.infrastructure.assets import SimulatedToken
from deal_escrow.services.escrow_ledger import EscrowLedger
from tests.factories import ARBITER, BUYER, LEDGER_ADDRESS, ONE_ETH, SELLER, TOKEN_ADDRESS

AMOUNT = 50 * ONE_ETH


@pytest.fixture
def token_deal(ledger: EscrowLedger) -> int:
    return ledger.create_deal(BUYER, SELLER, ARBITER, TOKEN_ADDRESS, AMOUNT)


class TestTokenDeposit:
    def test_without_allowance_fails(self, ledger: EscrowLedger, token_deal: int) -> None:
        with pytest.raises(ExternalTransferError):
            ledger.deposit_token(BUYER, token_deal)
        assert ledger.get_deal(token_deal).state is DealState.AWAITING_PAYMENT

    def test_partial_allowance_fails(
        self, ledger: EscrowLedger, token: SimulatedToken, token_deal: int
    ) -> None:
        token.approve(BUYER, LEDGER_ADDRESS, AMOUNT - 1)
        with pytest.raises(ExternalTransferError, match="allowance"):
            ledger.deposit_token(BUYER, token_deal)
        assert token.balance_of(BUYER) == 1000 * ONE_ETH

    def test_insufficient_balance_fails(self, ledger: EscrowLedger, token: SimulatedToken) -> None:
        deal_id = ledger.create_deal(BUYER, SELLER, ARBITER, TOKEN_ADDRESS, 2000 * ONE_ETH)
        token.approve(BUYER, LEDGER_ADDRESS, 2000 * ONE_ETH)
        with pytest.raises(ExternalTransferError, match="balance"):
            ledger.deposit_token(BUYER, deal_id)

    def test_approve_then_retry(
        self, ledger: EscrowLedger, token: SimulatedToken, token_deal: int
    ) -> None:
        with pytest.raises(ExternalTransferError):
            ledger.deposit_token(BUYER, token_deal)

        token.approve(BUYER, LEDGER_ADDRESS, AMOUNT)
        ledger.deposit_token(BUYER, token_deal)

        assert ledger.get_deal(token_deal).state is DealState.AWAITING_DELIVERY
        assert token.balance_of(LEDGER_ADDRESS) == AMOUNT
        assert token.allowance(BUYER, LEDGER_ADDRESS) == 0
        assert ledger.custody_balance(TOKEN_ADDRESS) == AMOUNT
        assert ledger.custody_balance(NATIVE_ASSET) == 0

    def test_wrong_deposit_function(self, ledger: EscrowLedger, token_deal: int) -> None:
        with pytest.raises(InvalidArgumentError):
            ledger.deposit_eth(BUYER, token_deal, AMOUNT)

    def test_token_function_on_native_deal(self, ledger: EscrowLedger, make_deal) -> None:
        deal_id = make_deal()
        with pytest.raises(InvalidArgumentError):
            ledger.deposit_token(BUYER, deal_id)


class TestTokenSettlement:
    def test_receipt_pays_seller_in_tokens(
        self, ledger: EscrowLedger, token: SimulatedToken, token_deal: int
    ) -> None:
        token.approve(BUYER, LEDGER_ADDRESS, AMOUNT)
        ledger.deposit_token(BUYER, token_deal)
        ledger.confirm_shipment(SELLER, token_deal)
        ledger.confirm_receipt(BUYER, token_deal)

        assert token.balance_of(SELLER) == AMOUNT
        assert ledger.custody_balance(TOKEN_ADDRESS) == 0

    def test_refund_returns_tokens(
        self, ledger: EscrowLedger, token: SimulatedToken, token_deal: int
    ) -> None:
        token.approve(BUYER, LEDGER_ADDRESS, AMOUNT)
        ledger.deposit_token(BUYER, token_deal)
        ledger.raise_dispute(SELLER, token_deal, "out of stock", is_cancellation_request=True)
        ledger.resolve_dispute(ARBITER, token_deal, refund_to_buyer=True)

        assert token.balance_of(BUYER) == 1000 * ONE_ETH
        assert token.balance_of(SELLER) == 0
        assert ledger.get_deal(token_deal).state is DealState.REFUNDED
