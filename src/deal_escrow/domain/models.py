"""Deal records and address helpers.

The ledger owns every Deal instance; callers only ever see a DealView, an
immutable snapshot. Addresses are 0x-prefixed, 40 hex digits, compared
case-insensitively and stored lowercase.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from deal_escrow.domain.enums import AssetKind, DealState
from deal_escrow.domain.exceptions import InvalidArgumentError

if TYPE_CHECKING:
    from datetime import datetime

ZERO_ADDRESS = "0x" + "0" * 40

# The native currency is referenced by the zero address, as on-chain.
NATIVE_ASSET = ZERO_ADDRESS

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")

CANCELLATION_PREFIX = "Cancellation request: "


def normalize_address(value: str, field: str = "address") -> str:
    """Return the canonical lowercase form of an address.

    Raises:
        InvalidArgumentError: If the value is not a 0x-prefixed 20-byte hex string.
    """
    if not isinstance(value, str) or not _ADDRESS_RE.match(value):
        raise InvalidArgumentError(f"Malformed {field}: {value!r}", field=field)
    return value.lower()


def is_zero_address(value: str) -> bool:
    return value.lower() == ZERO_ADDRESS


@dataclass
class Deal:
    """Mutable deal record, owned exclusively by the EscrowLedger.

    Only `state` and the dispute fields ever change after creation.
    """

    deal_id: int
    buyer: str
    seller: str
    arbiter: str
    asset: str
    amount: int
    created_at: datetime
    state: DealState = DealState.AWAITING_PAYMENT
    dispute_reason: str = ""
    dispute_initiator: str | None = None
    is_cancellation_request: bool = False

    @property
    def asset_kind(self) -> AssetKind:
        return AssetKind.NATIVE if self.asset == NATIVE_ASSET else AssetKind.TOKEN

    def snapshot(self) -> DealView:
        return DealView(
            deal_id=self.deal_id,
            buyer=self.buyer,
            seller=self.seller,
            arbiter=self.arbiter,
            asset=self.asset,
            amount=self.amount,
            state=self.state,
            dispute_reason=self.dispute_reason,
            created_at=self.created_at,
            dispute_initiator=self.dispute_initiator,
            is_cancellation_request=self.is_cancellation_request,
        )


@dataclass(frozen=True)
class DealView:
    """Read-only snapshot of a deal, as returned by get_deal."""

    deal_id: int
    buyer: str
    seller: str
    arbiter: str
    asset: str
    amount: int
    state: DealState
    dispute_reason: str
    created_at: datetime
    dispute_initiator: str | None = None
    is_cancellation_request: bool = False

    @property
    def asset_kind(self) -> AssetKind:
        return AssetKind.NATIVE if self.asset == NATIVE_ASSET else AssetKind.TOKEN

    def as_tuple(self) -> tuple:
        """Return (buyer, seller, arbiter, asset, amount, state, reason, created_at)."""
        return (
            self.buyer,
            self.seller,
            self.arbiter,
            self.asset,
            self.amount,
            self.state,
            self.dispute_reason,
            self.created_at,
        )

    def to_dict(self) -> dict:
        return {
            "deal_id": self.deal_id,
            "buyer": self.buyer,
            "seller": self.seller,
            "arbiter": self.arbiter,
            "asset": self.asset,
            "amount": self.amount,
            "state": self.state.value,
            "state_code": self.state.code,
            "dispute_reason": self.dispute_reason,
            "dispute_initiator": self.dispute_initiator,
            "is_cancellation_request": self.is_cancellation_request,
            "created_at": self.created_at.isoformat(),
        }
