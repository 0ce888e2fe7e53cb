"""Arbiter registry REST API routes.

Routes:
    GET    /api/v1/arbiters            — Registry owner and approved arbiters
    GET    /api/v1/arbiters/{address}  — Whether one address is approved
    POST   /api/v1/arbiters            — Add an arbiter (owner only)
    DELETE /api/v1/arbiters/{address}  — Remove an arbiter (owner only)

DELETE has no body; the acting address comes from the X-Caller-Address header.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header

from deal_escrow.api.deps import get_escrow_service, get_ledger
from deal_escrow.schemas.escrow import (
    ArbiterListResponse,
    ArbiterRequest,
    ArbiterStatusResponse,
)
from deal_escrow.services.escrow_ledger import EscrowLedger
from deal_escrow.services.escrow_service import EscrowService

router = APIRouter(prefix="/api/v1/arbiters", tags=["Arbiters"])


@router.get("", response_model=ArbiterListResponse, summary="List approved arbiters")
async def list_arbiters(ledger: EscrowLedger = Depends(get_ledger)) -> ArbiterListResponse:
    return ArbiterListResponse(
        owner=ledger.registry.owner,
        arbiters=ledger.registry.approved_arbiters(),
    )


@router.get(
    "/{address}",
    response_model=ArbiterStatusResponse,
    summary="Check arbiter approval",
)
async def get_arbiter(address: str, ledger: EscrowLedger = Depends(get_ledger)) -> ArbiterStatusResponse:
    return ArbiterStatusResponse(
        address=address.lower(),
        approved=ledger.is_arbiter_approved(address),
    )


@router.post(
    "",
    response_model=ArbiterStatusResponse,
    status_code=201,
    summary="Add an arbiter",
)
async def add_arbiter(
    request: ArbiterRequest,
    svc: EscrowService = Depends(get_escrow_service),
) -> ArbiterStatusResponse:
    await svc.add_arbiter(caller=request.caller, address=request.address)
    return ArbiterStatusResponse(address=request.address.lower(), approved=True)


@router.delete(
    "/{address}",
    response_model=ArbiterStatusResponse,
    summary="Remove an arbiter",
)
async def remove_arbiter(
    address: str,
    x_caller_address: str = Header(..., alias="X-Caller-Address"),
    svc: EscrowService = Depends(get_escrow_service),
) -> ArbiterStatusResponse:
    """Existing deals keep the arbiter they were created with."""
    await svc.remove_arbiter(caller=x_caller_address, address=address)
    return ArbiterStatusResponse(address=address.lower(), approved=False)
