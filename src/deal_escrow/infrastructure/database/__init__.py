"""Database infrastructure — engine, ORM models, and repositories."""

from deal_escrow.infrastructure.database.engine import (
    close_db,
    get_async_session,
    init_db,
)
from deal_escrow.infrastructure.database.orm_models import (
    ArbiterRecord,
    Base,
    DealRecord,
    LedgerEventRecord,
)
from deal_escrow.infrastructure.database.repositories import (
    ArbiterRepository,
    DealRepository,
    EventRepository,
)

__all__ = [
    "Base",
    "ArbiterRecord",
    "DealRecord",
    "LedgerEventRecord",
    "ArbiterRepository",
    "DealRepository",
    "EventRepository",
    "get_async_session",
    "init_db",
    "close_db",
]
