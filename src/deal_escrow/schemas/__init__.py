"""Pydantic API schemas."""

from deal_escrow.schemas.escrow import (
    ApproveRequest,
    ArbiterListResponse,
    ArbiterRequest,
    ArbiterStatusResponse,
    BalanceResponse,
    CallerRequest,
    CreateDealRequest,
    DealResponse,
    DealStatusResponse,
    DepositEthRequest,
    FaucetRequest,
    HealthResponse,
    LedgerEventResponse,
    NextDealIdResponse,
    RaiseDisputeRequest,
    ResolveDisputeRequest,
)

__all__ = [
    "ApproveRequest",
    "ArbiterListResponse",
    "ArbiterRequest",
    "ArbiterStatusResponse",
    "BalanceResponse",
    "CallerRequest",
    "CreateDealRequest",
    "DealResponse",
    "DealStatusResponse",
    "DepositEthRequest",
    "FaucetRequest",
    "HealthResponse",
    "LedgerEventResponse",
    "NextDealIdResponse",
    "RaiseDisputeRequest",
    "ResolveDisputeRequest",
]
