from abc import ABC, abstractmethod
from collections.abc import Iterable

from src.domain.events.domain_events import DomainEvent


class EventPublisher(ABC):
    """
    Port for handing listing and bid events to the notifier.

    Delivery is best-effort: implementations log failures instead of raising,
    because the change that produced the event is already persisted.
    """

    @abstractmethod
    async def publish(self, event: DomainEvent) -> None:
        ...

    async def publish_many(self, events: Iterable[DomainEvent]) -> None:
        for event in events:
            await self.publish(event)
