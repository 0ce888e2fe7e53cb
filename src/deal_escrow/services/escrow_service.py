"""Escrow Service — runs ledger operations and persists what they changed.

This is the application layer that coordinates between:
    - EscrowLedger (the authoritative, synchronous state machine)
    - Repositories (deal snapshots, registry membership, event copies)

The ledger operation and the collection of the events it produced happen
with no await in between, so on a single event loop no other operation can
interleave. Persistence happens afterwards inside the caller's session; if
the operation raises, nothing is written. If the write itself fails, the
ledger has already moved on and the failure surfaces as ProjectionError.

REST routes and simulation.py both call into this service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from deal_escrow.domain.enums import EventType
from deal_escrow.domain.exceptions import ProjectionError, StaleProjectionError
from deal_escrow.infrastructure.database.repositories import (
    ArbiterRepository,
    DealRepository,
    EventRepository,
)
from deal_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from deal_escrow.domain.events import LedgerEvent
    from deal_escrow.domain.models import DealView
    from deal_escrow.infrastructure.database.orm_models import LedgerEventRecord
    from deal_escrow.services.escrow_ledger import EscrowLedger

logger = get_logger(__name__)

T = TypeVar("T")


class EscrowService:
    """Manages the deal lifecycle on top of a shared EscrowLedger."""

    def __init__(self, session: AsyncSession, ledger: EscrowLedger) -> None:
        self._session = session
        self._ledger = ledger
        self._deal_repo = DealRepository(session)
        self._arbiter_repo = ArbiterRepository(session)
        self._event_repo = EventRepository(session)

    # ------------------------------------------------------------------
    # Deal lifecycle
    # ------------------------------------------------------------------

    async def create_deal(
        self,
        caller: str,
        seller: str,
        arbiter: str,
        asset: str,
        amount: int,
    ) -> DealView:
        deal_id = await self._apply(
            lambda: self._ledger.create_deal(caller, seller, arbiter, asset, amount)
        )
        return self._ledger.get_deal(deal_id)

    async def deposit_eth(self, caller: str, deal_id: int, value: int) -> DealView:
        await self._apply(lambda: self._ledger.deposit_eth(caller, deal_id, value))
        return self._ledger.get_deal(deal_id)

    async def deposit_token(self, caller: str, deal_id: int) -> DealView:
        await self._apply(lambda: self._ledger.deposit_token(caller, deal_id))
        return self._ledger.get_deal(deal_id)

    async def confirm_shipment(self, caller: str, deal_id: int) -> DealView:
        await self._apply(lambda: self._ledger.confirm_shipment(caller, deal_id))
        return self._ledger.get_deal(deal_id)

    async def confirm_receipt(self, caller: str, deal_id: int) -> DealView:
        await self._apply(lambda: self._ledger.confirm_receipt(caller, deal_id))
        return self._ledger.get_deal(deal_id)

    async def raise_dispute(
        self,
        caller: str,
        deal_id: int,
        reason: str,
        is_cancellation_request: bool = False,
    ) -> DealView:
        await self._apply(
            lambda: self._ledger.raise_dispute(caller, deal_id, reason, is_cancellation_request)
        )
        return self._ledger.get_deal(deal_id)

    async def resolve_dispute(self, caller: str, deal_id: int, refund_to_buyer: bool) -> DealView:
        await self._apply(lambda: self._ledger.resolve_dispute(caller, deal_id, refund_to_buyer))
        return self._ledger.get_deal(deal_id)

    async def cancel_deal(self, caller: str, deal_id: int) -> DealView:
        await self._apply(lambda: self._ledger.cancel_deal(caller, deal_id))
        return self._ledger.get_deal(deal_id)

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    async def add_arbiter(self, caller: str, address: str) -> None:
        await self._apply(lambda: self._ledger.add_arbiter(caller, address))

    async def remove_arbiter(self, caller: str, address: str) -> None:
        await self._apply(lambda: self._ledger.remove_arbiter(caller, address))

    async def transfer_ownership(self, caller: str, new_owner: str) -> None:
        await self._apply(lambda: self._ledger.registry.transfer_ownership(caller, new_owner))

    async def renounce_ownership(self, caller: str) -> None:
        await self._apply(lambda: self._ledger.registry.renounce_ownership(caller))

    async def prepare_projection(self, reset: bool = False) -> None:
        """Make sure the tables describe no run other than the current one.

        The ledger starts empty on every boot, so deals or events left by an
        earlier run would collide with the ids and sequences it hands out.
        They are cleared when `reset` is set; otherwise startup is refused.
        Registry rows are always rewritten from the bootstrap set.
        """
        deals = await self._deal_repo.count()
        events = await self._event_repo.count()
        if deals or events:
            if not reset:
                raise StaleProjectionError(deals=deals, events=events)
            await self._event_repo.clear()
            await self._deal_repo.clear()
            logger.warning("projection.reset", deals=deals, events=events)
        await self._arbiter_repo.clear()

    async def sync_registry(self) -> int:
        """Write the registry's current members (bootstrap set at startup)."""
        approved = self._ledger.registry.approved_arbiters()
        for address in approved:
            await self._arbiter_repo.set_approved(address, True)
        logger.info("registry.synced", arbiters=len(approved))
        return len(approved)

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def get_deal(self, deal_id: int) -> DealView:
        return self._ledger.get_deal(deal_id)

    def get_status(self, deal_id: int) -> dict:
        """Get deal state with the actions that may fire next."""
        view = self._ledger.get_deal(deal_id)
        return {
            "deal_id": view.deal_id,
            "state": view.state.value,
            "state_code": view.state.code,
            "is_terminal": view.state.is_terminal,
            "allowed_actions": self._ledger.allowed_actions(deal_id),
        }

    async def get_events(self, deal_id: int) -> list[LedgerEventRecord]:
        """Get the persisted audit trail of one deal."""
        self._ledger.get_deal(deal_id)
        return await self._event_repo.get_by_deal(deal_id)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _apply(self, operation: Callable[[], T]) -> T:
        """Run one ledger operation, then persist its events and touched records."""
        marker = len(self._ledger.events)
        result = operation()
        new_events = self._ledger.events.since(marker)
        snapshots = {
            e.deal_id: self._ledger.get_deal(e.deal_id) for e in new_events if e.deal_id is not None
        }

        try:
            for view in snapshots.values():
                await self._deal_repo.save(view)
            for event in new_events:
                await self._record(event)
        except SQLAlchemyError as exc:
            logger.error(
                "escrow.projection_failed",
                events=[e.sequence for e in new_events],
                deals=sorted(snapshots),
                error=str(exc),
            )
            raise ProjectionError(type(exc).__name__, deal_ids=sorted(snapshots)) from exc

        logger.debug("escrow.persisted", events=len(new_events), deals=sorted(snapshots))
        return result

    async def _record(self, event: LedgerEvent) -> None:
        if event.event_type == EventType.ARBITER_ADDED:
            await self._arbiter_repo.set_approved(event.arbiter, True)
        elif event.event_type == EventType.ARBITER_REMOVED:
            await self._arbiter_repo.set_approved(event.arbiter, False)
        await self._event_repo.record(event)
