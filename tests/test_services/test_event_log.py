"""Tests for the sequenced EventLog."""

from __future__ import annotations

from deal_escrow.domain.enums import EventType
from deal_escrow.domain.events import ArbiterAdded, ItemShipped
from deal_escrow.services.event_log import EventLog
from tests.factories import ARBITER, SELLER


class TestAppend:
    def test_sequence_is_gap_free(self, events: EventLog) -> None:
        first = events.append(ItemShipped(deal_id=0, actor=SELLER))
        second = events.append(ArbiterAdded(arbiter=ARBITER))
        assert (first.sequence, second.sequence) == (0, 1)
        assert len(events) == 2

    def test_original_record_untouched(self, events: EventLog) -> None:
        event = ItemShipped(deal_id=0, actor=SELLER)
        events.append(event)
        assert event.sequence == -1

    def test_since_and_filters(self, events: EventLog) -> None:
        events.append(ItemShipped(deal_id=0, actor=SELLER))
        events.append(ArbiterAdded(arbiter=ARBITER))
        events.append(ItemShipped(deal_id=1, actor=SELLER))
        assert [e.sequence for e in events.since(1)] == [1, 2]
        assert [e.sequence for e in events.for_deal(1)] == [2]
        assert len(events.of_type(EventType.ITEM_SHIPPED)) == 2


class TestSubscribers:
    def test_subscriber_receives_stamped_events(self, events: EventLog) -> None:
        seen = []
        events.subscribe(seen.append)
        events.append(ItemShipped(deal_id=0, actor=SELLER))
        assert seen[0].sequence == 0

    def test_unsubscribe(self, events: EventLog) -> None:
        seen = []
        unsubscribe = events.subscribe(seen.append)
        unsubscribe()
        events.append(ItemShipped(deal_id=0, actor=SELLER))
        assert seen == []

    def test_failing_subscriber_does_not_block_append(self, events: EventLog) -> None:
        def broken(_event) -> None:
            raise RuntimeError("boom")

        seen = []
        events.subscribe(broken)
        events.subscribe(seen.append)
        events.append(ItemShipped(deal_id=0, actor=SELLER))
        assert len(events) == 1
        assert len(seen) == 1
