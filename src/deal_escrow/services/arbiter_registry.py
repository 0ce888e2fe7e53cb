"""Arbiter Registry — who may be named as a deal's arbiter.

The registry is consulted only when a deal is created. Removing an arbiter
later does not touch deals already assigned to them; their authority over
those deals is fixed on the deal record.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from deal_escrow.domain.events import ArbiterAdded, ArbiterRemoved, OwnershipTransferred
from deal_escrow.domain.exceptions import (
    ArbiterNotFoundError,
    AuthorizationError,
    DuplicateArbiterError,
    InvalidArgumentError,
)
from deal_escrow.domain.models import is_zero_address, normalize_address
from deal_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from deal_escrow.services.event_log import EventLog

logger = get_logger(__name__)


class ArbiterRegistry:
    """Owner-gated set of approved arbiter addresses."""

    def __init__(
        self,
        owner: str,
        bootstrap: Iterable[str] = (),
        events: EventLog | None = None,
    ) -> None:
        """Create the registry.

        Args:
            owner: Address allowed to add and remove arbiters.
            bootstrap: Arbiters approved from the start (from configuration).
            events: Log that receives ArbiterAdded/ArbiterRemoved records.
        """
        self._owner: str | None = normalize_address(owner, "owner")
        self._approved: set[str] = set()
        self._events = events
        for address in bootstrap:
            self._approved.add(self._valid_arbiter(address))
        logger.info("registry.initialized", owner=self._owner, arbiters=len(self._approved))

    @property
    def owner(self) -> str | None:
        return self._owner

    def is_approved(self, address: str) -> bool:
        """Pure membership lookup; malformed addresses are simply not approved."""
        try:
            return normalize_address(address) in self._approved
        except InvalidArgumentError:
            return False

    def approved_arbiters(self) -> list[str]:
        return sorted(self._approved)

    def add_arbiter(self, caller: str, address: str) -> None:
        self._require_owner(caller)
        address = self._valid_arbiter(address)
        if address in self._approved:
            raise DuplicateArbiterError(address)
        self._approved.add(address)
        self._emit(ArbiterAdded(arbiter=address, actor=self._owner))
        logger.info("arbiter.added", arbiter=address)

    def remove_arbiter(self, caller: str, address: str) -> None:
        self._require_owner(caller)
        address = normalize_address(address, "arbiter")
        if address not in self._approved:
            raise ArbiterNotFoundError(address)
        self._approved.remove(address)
        self._emit(ArbiterRemoved(arbiter=address, actor=self._owner))
        logger.info("arbiter.removed", arbiter=address)

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self._require_owner(caller)
        new_owner = normalize_address(new_owner, "new_owner")
        if is_zero_address(new_owner):
            raise InvalidArgumentError("New owner is the zero address", field="new_owner")
        previous, self._owner = self._owner, new_owner
        self._emit(OwnershipTransferred(previous_owner=previous, new_owner=new_owner, actor=previous))
        logger.info("registry.ownership_transferred", previous=previous, new=new_owner)

    def renounce_ownership(self, caller: str) -> None:
        """Give up ownership for good; the arbiter set is frozen afterwards."""
        self._require_owner(caller)
        previous, self._owner = self._owner, None
        self._emit(OwnershipTransferred(previous_owner=previous, new_owner=None, actor=previous))
        logger.info("registry.ownership_renounced", previous=previous)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _require_owner(self, caller: str) -> None:
        if self._owner is None or caller.lower() != self._owner:
            raise AuthorizationError(caller, "owner")

    @staticmethod
    def _valid_arbiter(address: str) -> str:
        address = normalize_address(address, "arbiter")
        if is_zero_address(address):
            raise InvalidArgumentError("Arbiter is the zero address", field="arbiter")
        return address

    def _emit(self, event) -> None:  # noqa: ANN001
        if self._events is not None:
            self._events.append(event)
