"""
RabbitMQ event publisher.

Listing and bid events go to a topic exchange; the email notifier binds its
queues to the routing keys below. pika runs in a thread-pool executor so
blocking I/O doesn't stall the asyncio event loop.
"""
import asyncio
import dataclasses
import json
from datetime import datetime
from functools import partial
from typing import Any

import pika
import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.config import settings
from src.domain.events.domain_events import (
    BidAcceptedEvent,
    BidRejectedEvent,
    BidSubmittedEvent,
    DomainEvent,
    ListingCreatedEvent,
    ListingDeletedEvent,
    ListingUpdatedEvent,
)

logger = structlog.get_logger(__name__)

ROUTING_KEYS: dict[type[DomainEvent], str] = {
    ListingCreatedEvent: "listing.created",
    ListingUpdatedEvent: "listing.updated",
    ListingDeletedEvent: "listing.deleted",
    BidSubmittedEvent: "listing.bid.submitted",
    BidAcceptedEvent: "listing.bid.accepted",
    BidRejectedEvent: "listing.bid.rejected",
}


def event_to_routing_key(event: DomainEvent) -> str:
    return ROUTING_KEYS.get(type(event), "event.unknown")


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    # UUID, Decimal
    return str(value)


def serialise_event(event: DomainEvent) -> str:
    payload: dict[str, Any] = {"event_type": event_to_routing_key(event)}
    payload.update(dataclasses.asdict(event))
    return json.dumps(payload, default=_json_default)


def _blocking_publish(rabbitmq_url: str, exchange: str, routing_key: str, body: str) -> None:
    connection = pika.BlockingConnection(pika.URLParameters(rabbitmq_url))
    try:
        channel = connection.channel()
        channel.exchange_declare(exchange=exchange, exchange_type="topic", durable=True)
        channel.basic_publish(
            exchange=exchange,
            routing_key=routing_key,
            body=body.encode(),
            properties=pika.BasicProperties(
                delivery_mode=pika.DeliveryMode.Persistent,
                content_type="application/json",
            ),
        )
    finally:
        connection.close()


class RabbitMQPublisher(EventPublisher):
    """Publishes domain events to a RabbitMQ topic exchange."""

    def __init__(
        self,
        rabbitmq_url: str = settings.rabbitmq_url,
        exchange: str = settings.events_exchange,
    ) -> None:
        self._url = rabbitmq_url
        self._exchange = exchange

    async def publish(self, event: DomainEvent) -> None:
        routing_key = event_to_routing_key(event)
        body = serialise_event(event)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                partial(_blocking_publish, self._url, self._exchange, routing_key, body),
            )
            logger.debug("event_published", routing_key=routing_key, event_id=str(event.event_id))
        except Exception as exc:
            # The listing is already committed; a lost notification must not fail the request
            logger.error(
                "failed_to_publish_event",
                routing_key=routing_key,
                event_id=str(event.event_id),
                error=str(exc),
            )
