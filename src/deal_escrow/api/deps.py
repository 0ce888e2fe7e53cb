"""FastAPI dependency injection providers.

These are used with Depends() in route handlers to inject database sessions,
the process-wide ledger, the escrow service and configuration.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from deal_escrow.config import Settings, get_settings
from deal_escrow.infrastructure.database.engine import get_async_session
from deal_escrow.services.escrow_ledger import EscrowLedger
from deal_escrow.services.escrow_service import EscrowService


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session for a request."""
    async for session in get_async_session():
        yield session


def get_ledger(request: Request) -> EscrowLedger:
    """Provide the ledger built at startup."""
    return request.app.state.ledger


async def get_escrow_service(
    session: AsyncSession = Depends(get_db_session),
    ledger: EscrowLedger = Depends(get_ledger),
) -> EscrowService:
    """Provide an EscrowService bound to the current session."""
    return EscrowService(session, ledger)


def get_app_settings() -> Settings:
    """Provide the application settings."""
    return get_settings()
