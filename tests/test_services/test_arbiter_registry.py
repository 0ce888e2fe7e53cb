"""Tests for the owner-gated ArbiterRegistry."""

from __future__ import annotations

import pytest

from deal_escrow.domain.enums import EventType
from deal_escrow.domain.exceptions import (
    ArbiterNotFoundError,
    AuthorizationError,
    DuplicateArbiterError,
    InvalidArgumentError,
)
from deal_escrow.domain.models import ZERO_ADDRESS
from deal_escrow.services.arbiter_registry import ArbiterRegistry
from deal_escrow.services.event_log import EventLog
from tests.factories import ARBITER, BUYER, OTHER_ARBITER, OWNER, STRANGER


class TestMembership:
    def test_bootstrap_arbiters_approved(self, registry: ArbiterRegistry) -> None:
        assert registry.is_approved(ARBITER)
        assert registry.is_approved(OTHER_ARBITER)
        assert registry.approved_arbiters() == sorted([ARBITER, OTHER_ARBITER])

    def test_lookup_is_case_insensitive(self, registry: ArbiterRegistry) -> None:
        assert registry.is_approved(ARBITER.upper().replace("0X", "0x"))

    def test_malformed_address_is_not_approved(self, registry: ArbiterRegistry) -> None:
        assert registry.is_approved("not-an-address") is False

    def test_zero_address_bootstrap_rejected(self) -> None:
        with pytest.raises(InvalidArgumentError):
            ArbiterRegistry(owner=OWNER, bootstrap=[ZERO_ADDRESS])


class TestAddArbiter:
    def test_owner_adds(self, registry: ArbiterRegistry, events: EventLog) -> None:
        registry.add_arbiter(OWNER, STRANGER)
        assert registry.is_approved(STRANGER)
        assert events.of_type(EventType.ARBITER_ADDED)[-1].arbiter == STRANGER

    def test_non_owner_rejected(self, registry: ArbiterRegistry) -> None:
        with pytest.raises(AuthorizationError) as exc_info:
            registry.add_arbiter(BUYER, STRANGER)
        assert exc_info.value.required_role == "owner"
        assert not registry.is_approved(STRANGER)

    def test_duplicate_rejected(self, registry: ArbiterRegistry) -> None:
        with pytest.raises(DuplicateArbiterError):
            registry.add_arbiter(OWNER, ARBITER)

    def test_zero_address_rejected(self, registry: ArbiterRegistry) -> None:
        with pytest.raises(InvalidArgumentError):
            registry.add_arbiter(OWNER, ZERO_ADDRESS)

    def test_role_checked_before_arguments(self, registry: ArbiterRegistry) -> None:
        with pytest.raises(AuthorizationError):
            registry.add_arbiter(STRANGER, ZERO_ADDRESS)


class TestRemoveArbiter:
    def test_owner_removes(self, registry: ArbiterRegistry, events: EventLog) -> None:
        registry.remove_arbiter(OWNER, ARBITER)
        assert not registry.is_approved(ARBITER)
        assert events.of_type(EventType.ARBITER_REMOVED)[-1].arbiter == ARBITER

    def test_unknown_arbiter(self, registry: ArbiterRegistry) -> None:
        with pytest.raises(ArbiterNotFoundError):
            registry.remove_arbiter(OWNER, STRANGER)

    def test_non_owner_rejected(self, registry: ArbiterRegistry) -> None:
        with pytest.raises(AuthorizationError):
            registry.remove_arbiter(ARBITER, ARBITER)

    def test_readd_after_remove(self, registry: ArbiterRegistry) -> None:
        registry.remove_arbiter(OWNER, ARBITER)
        registry.add_arbiter(OWNER, ARBITER)
        assert registry.is_approved(ARBITER)


class TestOwnership:
    def test_transfer(self, registry: ArbiterRegistry, events: EventLog) -> None:
        registry.transfer_ownership(OWNER, STRANGER)
        assert registry.owner == STRANGER
        event = events.of_type(EventType.OWNERSHIP_TRANSFERRED)[-1]
        assert (event.previous_owner, event.new_owner) == (OWNER, STRANGER)

        registry.add_arbiter(STRANGER, BUYER)
        with pytest.raises(AuthorizationError):
            registry.add_arbiter(OWNER, OWNER)

    def test_transfer_to_zero_rejected(self, registry: ArbiterRegistry) -> None:
        with pytest.raises(InvalidArgumentError):
            registry.transfer_ownership(OWNER, ZERO_ADDRESS)

    def test_renounce_freezes_set(self, registry: ArbiterRegistry) -> None:
        registry.renounce_ownership(OWNER)
        assert registry.owner is None
        with pytest.raises(AuthorizationError):
            registry.add_arbiter(OWNER, STRANGER)
        with pytest.raises(AuthorizationError):
            registry.remove_arbiter(OWNER, ARBITER)
