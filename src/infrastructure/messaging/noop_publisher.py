"""
In-process event publisher for tests and for running without RabbitMQ.
"""
import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.domain.events.domain_events import DomainEvent

logger = structlog.get_logger(__name__)


class NoOpEventPublisher(EventPublisher):
    """Keeps published events in memory instead of sending them anywhere."""

    def __init__(self) -> None:
        self.published: list[DomainEvent] = []

    async def publish(self, event: DomainEvent) -> None:
        self.published.append(event)
        logger.debug("noop_event_recorded", event_type=type(event).__name__)

    def of_type(self, event_type: type[DomainEvent]) -> list[DomainEvent]:
        return [e for e in self.published if isinstance(e, event_type)]
