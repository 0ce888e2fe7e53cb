"""Repository classes for database access.

Repositories encapsulate all SQL queries and provide a clean interface
to the service layer. They accept an AsyncSession and never manage
their own transactions (that's the caller's responsibility).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select

from deal_escrow.infrastructure.database.orm_models import (
    ArbiterRecord,
    DealRecord,
    LedgerEventRecord,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from deal_escrow.domain.events import LedgerEvent
    from deal_escrow.domain.models import DealView


class DealRepository:
    """Data access for deal snapshots."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save(self, view: DealView) -> DealRecord:
        """Insert or refresh the snapshot for one deal."""
        record = await self._session.get(DealRecord, view.deal_id)
        if record is None:
            record = DealRecord(
                id=view.deal_id,
                buyer=view.buyer,
                seller=view.seller,
                arbiter=view.arbiter,
                asset=view.asset,
                amount=str(view.amount),
                created_at=view.created_at,
            )
            self._session.add(record)
        record.state = view.state.value
        record.dispute_reason = view.dispute_reason
        record.dispute_initiator = view.dispute_initiator
        record.is_cancellation_request = view.is_cancellation_request
        await self._session.flush()
        return record

    async def get_by_id(self, deal_id: int) -> DealRecord | None:
        return await self._session.get(DealRecord, deal_id)

    async def get_by_state(self, state: str) -> list[DealRecord]:
        result = await self._session.execute(
            select(DealRecord).where(DealRecord.state == state).order_by(DealRecord.id)
        )
        return list(result.scalars().all())

    async def count(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(DealRecord))
        return result.scalar_one()

    async def clear(self) -> None:
        await self._session.execute(delete(DealRecord))


class ArbiterRepository:
    """Data access for registry membership."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def set_approved(self, address: str, approved: bool) -> ArbiterRecord:
        record = await self._session.get(ArbiterRecord, address)
        if record is None:
            record = ArbiterRecord(address=address, approved=approved)
            self._session.add(record)
        else:
            record.approved = approved
        await self._session.flush()
        return record

    async def get_approved(self) -> list[ArbiterRecord]:
        result = await self._session.execute(
            select(ArbiterRecord)
            .where(ArbiterRecord.approved.is_(True))
            .order_by(ArbiterRecord.address)
        )
        return list(result.scalars().all())

    async def clear(self) -> None:
        await self._session.execute(delete(ArbiterRecord))


class EventRepository:
    """Data access for the append-only audit event log."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record(self, event: LedgerEvent) -> LedgerEventRecord:
        """Append one ledger event. This is the ONLY write operation allowed."""
        record = LedgerEventRecord(
            sequence=event.sequence,
            event_type=event.event_type.value,
            deal_id=event.deal_id,
            actor=event.actor,
            payload=event.payload(),
        )
        self._session.add(record)
        await self._session.flush()
        return record

    async def get_by_deal(self, deal_id: int) -> list[LedgerEventRecord]:
        """Fetch all events for a deal in sequence order."""
        result = await self._session.execute(
            select(LedgerEventRecord)
            .where(LedgerEventRecord.deal_id == deal_id)
            .order_by(LedgerEventRecord.sequence.asc())
        )
        return list(result.scalars().all())

    async def latest_sequence(self) -> int | None:
        result = await self._session.execute(
            select(LedgerEventRecord.sequence).order_by(LedgerEventRecord.sequence.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def count(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(LedgerEventRecord))
        return result.scalar_one()

    async def clear(self) -> None:
        """Drop the audit copy. Only used when resetting a stale projection."""
        await self._session.execute(delete(LedgerEventRecord))
