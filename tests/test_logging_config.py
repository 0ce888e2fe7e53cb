"""Tests for the structlog setup and the deal-bound logger."""

from __future__ import annotations

from structlog.testing import capture_logs

from deal_escrow.domain.models import NATIVE_ASSET
from deal_escrow.logging_config import (
    MAX_SAFE_JSON_INT,
    get_deal_logger,
    stringify_wei_amounts,
)
from deal_escrow.services.escrow_ledger import EscrowLedger
from tests.factories import ARBITER, BUYER, ONE_ETH, SELLER


class TestDealLogger:
    def test_binds_deal_id_and_context(self) -> None:
        with capture_logs() as logs:
            get_deal_logger(3, caller=BUYER).info("deal.item_shipped")

        assert logs == [
            {"event": "deal.item_shipped", "log_level": "info", "deal_id": 3, "caller": BUYER}
        ]

    def test_ledger_operations_log_their_deal(self, ledger: EscrowLedger) -> None:
        with capture_logs() as logs:
            deal_id = ledger.create_deal(BUYER, SELLER, ARBITER, NATIVE_ASSET, ONE_ETH)

        created = [entry for entry in logs if entry["event"] == "deal.created"]
        assert len(created) == 1
        assert created[0]["deal_id"] == deal_id
        assert created[0]["amount"] == ONE_ETH


class TestAmountRendering:
    def test_large_amounts_become_strings(self) -> None:
        event = {"event": "deal.created", "amount": 5 * ONE_ETH, "deal_id": 0, "refunded": True}

        rendered = stringify_wei_amounts(None, "info", event)

        assert rendered["amount"] == str(5 * ONE_ETH)
        assert rendered["deal_id"] == 0
        assert rendered["refunded"] is True

    def test_safe_integers_untouched(self) -> None:
        rendered = stringify_wei_amounts(None, "info", {"amount": MAX_SAFE_JSON_INT})
        assert rendered["amount"] == MAX_SAFE_JSON_INT
