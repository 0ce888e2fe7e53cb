"""Tests for PaymentService, the only code that moves value."""

from __future__ import annotations

import pytest

from deal_escrow.domain.exceptions import ExternalTransferError, InvalidArgumentError
from deal_escrow.domain.models import NATIVE_ASSET
from deal_escrow.infrastructure.assets import SimulatedNativeBank, SimulatedToken
from deal_escrow.services.payment_service import PaymentService
from tests.factories import BUYER, LEDGER_ADDRESS, ONE_ETH, SELLER, STRANGER, TOKEN_ADDRESS


class TestAssets:
    def test_known_assets(self, payments: PaymentService) -> None:
        assert payments.is_known_asset(NATIVE_ASSET)
        assert payments.is_known_asset(TOKEN_ADDRESS)
        assert not payments.is_known_asset(STRANGER)

    def test_balance_of(self, payments: PaymentService) -> None:
        assert payments.balance_of(NATIVE_ASSET, BUYER) == 10 * ONE_ETH
        assert payments.balance_of(TOKEN_ADDRESS, BUYER) == 1000 * ONE_ETH

    def test_unknown_token(self, payments: PaymentService) -> None:
        with pytest.raises(InvalidArgumentError):
            payments.pay_out(STRANGER, SELLER, 1)


class TestNative:
    def test_collect_and_pay_out(self, payments: PaymentService, bank: SimulatedNativeBank) -> None:
        payments.collect_native(BUYER, ONE_ETH)
        assert bank.balance_of(LEDGER_ADDRESS) == ONE_ETH

        payments.pay_out(NATIVE_ASSET, SELLER, ONE_ETH)
        assert bank.balance_of(SELLER) == ONE_ETH
        assert bank.balance_of(LEDGER_ADDRESS) == 0

    def test_refused_transfer(self, payments: PaymentService) -> None:
        with pytest.raises(ExternalTransferError):
            payments.pay_out(NATIVE_ASSET, SELLER, ONE_ETH)

    def test_raising_transfer_is_wrapped(self, payments: PaymentService, bank: SimulatedNativeBank) -> None:
        payments.collect_native(BUYER, ONE_ETH)

        def hook(_sender: str, _amount: int) -> None:
            raise RuntimeError("recipient rejects")

        bank.set_receive_hook(SELLER, hook)
        with pytest.raises(ExternalTransferError, match="recipient rejects"):
            payments.pay_out(NATIVE_ASSET, SELLER, ONE_ETH)
        assert bank.balance_of(LEDGER_ADDRESS) == ONE_ETH


class TestToken:
    def test_collect_uses_allowance(self, payments: PaymentService, token: SimulatedToken) -> None:
        token.approve(BUYER, LEDGER_ADDRESS, 5)
        payments.collect_token(TOKEN_ADDRESS, BUYER, 5)
        assert token.balance_of(LEDGER_ADDRESS) == 5

    def test_collect_without_allowance(self, payments: PaymentService) -> None:
        with pytest.raises(ExternalTransferError) as exc_info:
            payments.collect_token(TOKEN_ADDRESS, BUYER, 5)
        assert exc_info.value.asset == TOKEN_ADDRESS
