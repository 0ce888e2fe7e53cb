"""Pydantic schemas for the Escrow API.

These schemas define the request/response shapes for the REST API. They are
separate from the domain records and the ORM models to keep clean boundaries
between the API, the ledger and the database layers.

Addresses are validated for shape only here; the ledger normalizes them and
raises InvalidArgumentError for anything it will not accept.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from deal_escrow.domain.models import ZERO_ADDRESS

ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"


def _address(description: str, **kwargs):
    return Field(
        ...,
        pattern=ADDRESS_PATTERN,
        description=description,
        examples=["0x70997970C51812dc3A010C7d01b50e0d17dc79C8"],
        **kwargs,
    )


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class CallerRequest(BaseModel):
    """Request body carrying only the acting address."""

    caller: str = _address("Address performing the action")


class CreateDealRequest(CallerRequest):
    """Request body for creating a new deal. The caller becomes the buyer."""

    seller: str = _address("Seller address")
    arbiter: str = _address("Approved arbiter who may resolve disputes on this deal")
    asset: str = Field(
        default=ZERO_ADDRESS,
        pattern=ADDRESS_PATTERN,
        description="Zero address for the native currency, otherwise a token address",
    )
    amount: int = Field(..., gt=0, description="Amount in the asset's smallest unit")


class DepositEthRequest(CallerRequest):
    """Request body for paying a native-currency deal."""

    value: int = Field(..., ge=0, description="Attached value; must equal the deal amount")


class RaiseDisputeRequest(CallerRequest):
    """Request body for raising a dispute on a funded deal."""

    reason: str = Field(..., min_length=1, max_length=2000, description="Reason for the dispute")
    is_cancellation_request: bool = Field(
        default=False,
        description="Advisory flag recorded for the arbiter",
    )


class ResolveDisputeRequest(CallerRequest):
    """Request body for the deal's arbiter settling a dispute."""

    refund_to_buyer: bool = Field(
        ...,
        description="True refunds the buyer, False pays the seller",
    )


class ArbiterRequest(CallerRequest):
    """Request body for adding an arbiter to the registry (owner only)."""

    address: str = _address("Arbiter address")


class FaucetRequest(BaseModel):
    """Development only: credit simulated funds to an address."""

    address: str = _address("Recipient address")
    amount: int = Field(..., gt=0)
    asset: str = Field(default=ZERO_ADDRESS, pattern=ADDRESS_PATTERN)


class ApproveRequest(BaseModel):
    """Development only: grant the ledger an allowance on a simulated token."""

    owner: str = _address("Token holder granting the allowance")
    asset: str = _address("Token address")
    amount: int = Field(..., ge=0)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class DealResponse(BaseModel):
    """Response schema for a deal snapshot."""

    model_config = ConfigDict(from_attributes=True)

    deal_id: int
    buyer: str
    seller: str
    arbiter: str
    asset: str
    amount: int
    state: str
    state_code: int
    dispute_reason: str
    dispute_initiator: str | None
    is_cancellation_request: bool
    created_at: datetime


class DealStatusResponse(BaseModel):
    """Lightweight status check response."""

    deal_id: int
    state: str
    state_code: int
    is_terminal: bool
    allowed_actions: list[str] = Field(
        description="State machine events that can fire from the current state"
    )


class LedgerEventResponse(BaseModel):
    """Response schema for a persisted ledger event."""

    model_config = ConfigDict(from_attributes=True)

    sequence: int
    event_type: str
    deal_id: int | None
    actor: str | None
    payload: dict | None
    created_at: datetime


class ArbiterStatusResponse(BaseModel):
    address: str
    approved: bool


class ArbiterListResponse(BaseModel):
    owner: str | None
    arbiters: list[str]


class NextDealIdResponse(BaseModel):
    next_deal_id: int


class BalanceResponse(BaseModel):
    """Development only: simulated balances of one address."""

    address: str
    native: int
    tokens: dict[str, int] = Field(default_factory=dict)
    allowances: dict[str, int] = Field(
        default_factory=dict,
        description="Allowance granted to the ledger, per token",
    )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    database: str = "unknown"
    deals: int = 0
