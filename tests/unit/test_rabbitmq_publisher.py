"""Unit tests for event routing and serialisation; pika is patched out."""
import json
from decimal import Decimal
from unittest.mock import patch
from uuid import uuid4

import pytest

from src.domain.events.domain_events import (
    BidAcceptedEvent,
    BidRejectedEvent,
    BidSubmittedEvent,
    DomainEvent,
    ListingCreatedEvent,
    ListingDeletedEvent,
    ListingUpdatedEvent,
)
from src.infrastructure.messaging.rabbitmq_publisher import (
    RabbitMQPublisher,
    event_to_routing_key,
    serialise_event,
)


class TestRouting:
    @pytest.mark.parametrize(
        ("event", "routing_key"),
        [
            (ListingCreatedEvent(), "listing.created"),
            (ListingUpdatedEvent(), "listing.updated"),
            (ListingDeletedEvent(), "listing.deleted"),
            (BidSubmittedEvent(), "listing.bid.submitted"),
            (BidAcceptedEvent(), "listing.bid.accepted"),
            (BidRejectedEvent(), "listing.bid.rejected"),
            (DomainEvent(), "event.unknown"),
        ],
    )
    def test_routing_keys(self, event: DomainEvent, routing_key: str) -> None:
        assert event_to_routing_key(event) == routing_key


class TestSerialisation:
    def test_bid_accepted_payload(self) -> None:
        swept = uuid4()
        event = BidAcceptedEvent(
            listing_id=uuid4(),
            bid_id=uuid4(),
            agent_id="agent-a",
            commission=Decimal("150000.00"),
            rejected_bid_ids=(swept,),
        )

        payload = json.loads(serialise_event(event))

        assert payload["event_type"] == "listing.bid.accepted"
        assert payload["event_id"] == str(event.event_id)
        assert payload["occurred_at"] == event.occurred_at.isoformat()
        assert payload["commission"] == "150000.00"
        assert payload["rejected_bid_ids"] == [str(swept)]


class TestPublish:
    @pytest.mark.asyncio
    async def test_broker_failure_is_swallowed(self) -> None:
        publisher = RabbitMQPublisher(rabbitmq_url="amqp://nowhere", exchange="listings.events")

        with patch(
            "src.infrastructure.messaging.rabbitmq_publisher._blocking_publish",
            side_effect=ConnectionError("broker down"),
        ):
            await publisher.publish(ListingCreatedEvent())

    @pytest.mark.asyncio
    async def test_publishes_to_configured_exchange(self) -> None:
        publisher = RabbitMQPublisher(rabbitmq_url="amqp://broker", exchange="listings.events")
        event = ListingDeletedEvent(listing_id=uuid4(), deleted_by="landlord-1")

        with patch(
            "src.infrastructure.messaging.rabbitmq_publisher._blocking_publish"
        ) as blocking_publish:
            await publisher.publish_many([event])

        url, exchange, routing_key, body = blocking_publish.call_args.args
        assert (url, exchange, routing_key) == ("amqp://broker", "listings.events", "listing.deleted")
        assert json.loads(body)["deleted_by"] == "landlord-1"
