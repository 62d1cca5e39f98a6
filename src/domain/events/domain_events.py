from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class ListingCreatedEvent(DomainEvent):
    """Published when a landlord or agent creates a listing."""

    listing_id: UUID = field(default_factory=uuid4)
    creator_id: str = ""
    creator_role: str = ""
    title: str = ""
    invite_agent_to_bid: bool = False


@dataclass(frozen=True)
class ListingUpdatedEvent(DomainEvent):
    listing_id: UUID = field(default_factory=uuid4)
    updated_by: str = ""
    fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class ListingDeletedEvent(DomainEvent):
    listing_id: UUID = field(default_factory=uuid4)
    deleted_by: str = ""


@dataclass(frozen=True)
class BidSubmittedEvent(DomainEvent):
    """Published when an agent bids on a listing; the landlord gets an email."""

    listing_id: UUID = field(default_factory=uuid4)
    bid_id: UUID = field(default_factory=uuid4)
    agent_id: str = ""
    landlord_id: str = ""
    proposed_commission: Decimal = Decimal("0")


@dataclass(frozen=True)
class BidAcceptedEvent(DomainEvent):
    """Published when the landlord selects an agent; every bidder is notified."""

    listing_id: UUID = field(default_factory=uuid4)
    bid_id: UUID = field(default_factory=uuid4)
    agent_id: str = ""
    commission: Decimal = Decimal("0")
    rejected_bid_ids: tuple[UUID, ...] = ()


@dataclass(frozen=True)
class BidRejectedEvent(DomainEvent):
    listing_id: UUID = field(default_factory=uuid4)
    bid_id: UUID = field(default_factory=uuid4)
    agent_id: str = ""
