"""Deal REST API routes.

These endpoints provide the HTTP interface for creating deals, paying,
shipping, confirming receipt, disputing and cancelling. simulation.py calls
the same service layer, so both paths behave identically.

Routes:
    POST   /api/v1/deals                    — Create a deal (caller = buyer)
    GET    /api/v1/deals                    — List deals (filter by party/state)
    GET    /api/v1/deals/next-id            — Id the next deal will get
    GET    /api/v1/deals/{id}               — Get deal snapshot
    GET    /api/v1/deals/{id}/status        — Get lightweight status check
    GET    /api/v1/deals/{id}/events        — Get audit trail
    POST   /api/v1/deals/{id}/deposit-eth   — Pay a native-currency deal
    POST   /api/v1/deals/{id}/deposit-token — Pay a token deal
    POST   /api/v1/deals/{id}/ship          — Seller confirms shipment
    POST   /api/v1/deals/{id}/receipt       — Buyer confirms receipt
    POST   /api/v1/deals/{id}/dispute       — Raise dispute
    POST   /api/v1/deals/{id}/resolve       — Arbiter resolves dispute
    POST   /api/v1/deals/{id}/cancel        — Cancel before payment
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from deal_escrow.api.deps import get_escrow_service, get_ledger
from deal_escrow.domain.enums import DealState
from deal_escrow.domain.models import DealView
from deal_escrow.logging_config import get_logger
from deal_escrow.schemas.escrow import (
    CallerRequest,
    CreateDealRequest,
    DealResponse,
    DealStatusResponse,
    DepositEthRequest,
    LedgerEventResponse,
    NextDealIdResponse,
    RaiseDisputeRequest,
    ResolveDisputeRequest,
)
from deal_escrow.services.escrow_ledger import EscrowLedger
from deal_escrow.services.escrow_service import EscrowService

router = APIRouter(prefix="/api/v1/deals", tags=["Deals"])
logger = get_logger(__name__)


def _to_response(view: DealView) -> DealResponse:
    return DealResponse.model_validate(view.to_dict())


# ---------------------------------------------------------------------------
# Create / Read
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=DealResponse,
    status_code=201,
    summary="Create a new deal",
)
async def create_deal(
    request: CreateDealRequest,
    svc: EscrowService = Depends(get_escrow_service),
) -> DealResponse:
    """Create a deal in AWAITING_PAYMENT with the caller as buyer."""
    view = await svc.create_deal(
        caller=request.caller,
        seller=request.seller,
        arbiter=request.arbiter,
        asset=request.asset,
        amount=request.amount,
    )
    return _to_response(view)


@router.get(
    "",
    response_model=list[DealResponse],
    summary="List deals",
)
async def list_deals(
    party: str | None = Query(default=None, description="Buyer, seller or arbiter address"),
    state: DealState | None = Query(default=None),
    ledger: EscrowLedger = Depends(get_ledger),
) -> list[DealResponse]:
    return [_to_response(view) for view in ledger.list_deals(party=party, state=state)]


@router.get(
    "/next-id",
    response_model=NextDealIdResponse,
    summary="Get the id the next deal will receive",
)
async def next_deal_id(ledger: EscrowLedger = Depends(get_ledger)) -> NextDealIdResponse:
    return NextDealIdResponse(next_deal_id=ledger.next_deal_id)


@router.get(
    "/{deal_id}",
    response_model=DealResponse,
    summary="Get deal details",
)
async def get_deal(deal_id: int, ledger: EscrowLedger = Depends(get_ledger)) -> DealResponse:
    return _to_response(ledger.get_deal(deal_id))


@router.get(
    "/{deal_id}/status",
    response_model=DealStatusResponse,
    summary="Lightweight status check",
)
async def get_deal_status(
    deal_id: int,
    svc: EscrowService = Depends(get_escrow_service),
) -> DealStatusResponse:
    """Return the current state and the actions that may fire next."""
    return DealStatusResponse(**svc.get_status(deal_id))


@router.get(
    "/{deal_id}/events",
    response_model=list[LedgerEventResponse],
    summary="Get audit trail",
)
async def get_deal_events(
    deal_id: int,
    svc: EscrowService = Depends(get_escrow_service),
) -> list[LedgerEventResponse]:
    """Return the persisted events of one deal in sequence order."""
    events = await svc.get_events(deal_id)
    return [LedgerEventResponse.model_validate(e) for e in events]


# ---------------------------------------------------------------------------
# Funding
# ---------------------------------------------------------------------------


@router.post(
    "/{deal_id}/deposit-eth",
    response_model=DealResponse,
    summary="Pay a native-currency deal",
)
async def deposit_eth(
    deal_id: int,
    request: DepositEthRequest,
    svc: EscrowService = Depends(get_escrow_service),
) -> DealResponse:
    """Buyer pays exactly the deal amount. AWAITING_PAYMENT -> AWAITING_DELIVERY."""
    view = await svc.deposit_eth(caller=request.caller, deal_id=deal_id, value=request.value)
    return _to_response(view)


@router.post(
    "/{deal_id}/deposit-token",
    response_model=DealResponse,
    summary="Pay a token deal",
)
async def deposit_token(
    deal_id: int,
    request: CallerRequest,
    svc: EscrowService = Depends(get_escrow_service),
) -> DealResponse:
    """Buyer pays from a prior allowance. AWAITING_PAYMENT -> AWAITING_DELIVERY."""
    view = await svc.deposit_token(caller=request.caller, deal_id=deal_id)
    return _to_response(view)


# ---------------------------------------------------------------------------
# Delivery
# ---------------------------------------------------------------------------


@router.post(
    "/{deal_id}/ship",
    response_model=DealResponse,
    summary="Seller confirms shipment",
)
async def confirm_shipment(
    deal_id: int,
    request: CallerRequest,
    svc: EscrowService = Depends(get_escrow_service),
) -> DealResponse:
    view = await svc.confirm_shipment(caller=request.caller, deal_id=deal_id)
    return _to_response(view)


@router.post(
    "/{deal_id}/receipt",
    response_model=DealResponse,
    summary="Buyer confirms receipt",
)
async def confirm_receipt(
    deal_id: int,
    request: CallerRequest,
    svc: EscrowService = Depends(get_escrow_service),
) -> DealResponse:
    """Release custody to the seller. SHIPPED -> COMPLETED."""
    view = await svc.confirm_receipt(caller=request.caller, deal_id=deal_id)
    return _to_response(view)


# ---------------------------------------------------------------------------
# Disputes
# ---------------------------------------------------------------------------


@router.post(
    "/{deal_id}/dispute",
    response_model=DealResponse,
    summary="Raise dispute",
)
async def raise_dispute(
    deal_id: int,
    request: RaiseDisputeRequest,
    svc: EscrowService = Depends(get_escrow_service),
) -> DealResponse:
    view = await svc.raise_dispute(
        caller=request.caller,
        deal_id=deal_id,
        reason=request.reason,
        is_cancellation_request=request.is_cancellation_request,
    )
    return _to_response(view)


@router.post(
    "/{deal_id}/resolve",
    response_model=DealResponse,
    summary="Arbiter resolves dispute",
)
async def resolve_dispute(
    deal_id: int,
    request: ResolveDisputeRequest,
    svc: EscrowService = Depends(get_escrow_service),
) -> DealResponse:
    """Pay the full amount to one side. DISPUTED -> REFUNDED or COMPLETED."""
    view = await svc.resolve_dispute(
        caller=request.caller,
        deal_id=deal_id,
        refund_to_buyer=request.refund_to_buyer,
    )
    return _to_response(view)


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


@router.post(
    "/{deal_id}/cancel",
    response_model=DealResponse,
    summary="Cancel before payment",
)
async def cancel_deal(
    deal_id: int,
    request: CallerRequest,
    svc: EscrowService = Depends(get_escrow_service),
) -> DealResponse:
    view = await svc.cancel_deal(caller=request.caller, deal_id=deal_id)
    return _to_response(view)
