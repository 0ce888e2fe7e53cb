"""Health check endpoint.

Verifies database connectivity and reports the ledger size.
Used by Docker healthchecks, load balancers, and monitoring systems.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text

from deal_escrow import __version__
from deal_escrow.api.deps import get_ledger
from deal_escrow.infrastructure.database.engine import _get_engine
from deal_escrow.logging_config import get_logger
from deal_escrow.schemas.escrow import HealthResponse
from deal_escrow.services.escrow_ledger import EscrowLedger

router = APIRouter(tags=["Health"])
logger = get_logger(__name__)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the health status of the application and its database.",
)
async def health_check(ledger: EscrowLedger = Depends(get_ledger)) -> HealthResponse:
    db_status = "unknown"

    try:
        engine = _get_engine()
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        db_status = "healthy"
    except Exception as exc:
        db_status = f"unhealthy: {exc}"
        logger.error("health.db_check_failed", error=str(exc))

    return HealthResponse(
        status="ok" if db_status == "healthy" else "degraded",
        version=__version__,
        database=db_status,
        deals=ledger.next_deal_id,
    )
