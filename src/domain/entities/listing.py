from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from src.domain.entities.bid import Bid, BidLedger
from src.domain.enums.listing_attributes import Availability, ListingPurpose, PaymentFrequency
from src.domain.enums.listing_status import BidStatus, ListingStatus
from src.domain.enums.user_role import UserRole
from src.domain.errors import (
    ForbiddenError,
    NotAcceptingBidsError,
    NotActiveError,
    ValidationError,
)
from src.domain.events.domain_events import (
    BidAcceptedEvent,
    BidRejectedEvent,
    BidSubmittedEvent,
    DomainEvent,
    ListingCreatedEvent,
    ListingDeletedEvent,
    ListingUpdatedEvent,
)
from src.domain.policies.normalization import apply_invite_gating, clean_listing_fields
from src.domain.value_objects import (
    AgentInviteDetails,
    Creator,
    Photo,
    SelectedAgent,
    VideoLink,
)

DEFAULT_LISTING_TTL = timedelta(days=30)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Listing:
    """
    Aggregate root for a rental listing and its agent-bidding workflow.

    Owns its BidLedger; bids have no life outside the listing. Emits domain
    events on every mutation; callers collect and publish them after the
    repository has persisted the change.
    """

    creator: Creator

    # Identity
    id: UUID = field(default_factory=uuid4)

    # Basic listing information
    title: str = ""
    purpose: ListingPurpose = ListingPurpose.FOR_RENT
    state: str = ""
    locality: str = ""
    area: str = ""
    street_estate_neighbourhood: str = ""
    property_type: str = ""

    # Property details
    bedrooms: int | None = None
    bathrooms: int | None = None
    toilets: int | None = None
    kitchens: int | None = None
    property_size: int | None = None
    facilities: list[str] = field(default_factory=list)
    rent_amount: Decimal = Decimal("0")
    payment_frequency: PaymentFrequency = PaymentFrequency.YEARLY
    availability: Availability = Availability.YES
    description: str = ""
    landlord_lives_in_compound: bool = False

    # Media
    images: list[Photo] = field(default_factory=list)
    photo_notes: str | None = None
    video_links: list[VideoLink] = field(default_factory=list)

    # Agent bidding
    invite_agent_to_bid: bool = False
    agent_invite_details: AgentInviteDetails | None = None
    bids: BidLedger = field(default_factory=BidLedger)
    selected_agent: SelectedAgent | None = None

    # Lifecycle
    status: ListingStatus = ListingStatus.ACTIVE
    views: int = 0
    is_featured: bool = False
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    expires_at: datetime = field(default_factory=lambda: _utcnow() + DEFAULT_LISTING_TTL)

    # Revision used by the repository for compare-and-swap; 0 means never stored
    version: int = 0

    _events: list[DomainEvent] = field(default_factory=list, repr=False, compare=False)

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def create(
        cls,
        payload: Mapping[str, Any],
        creator: Creator,
        *,
        ttl: timedelta = DEFAULT_LISTING_TTL,
    ) -> "Listing":
        if not creator.role.can_create_listings:
            raise ForbiddenError("Only landlords and agents can create listings")

        cleaned = clean_listing_fields(payload, partial=False)
        now = _utcnow()
        listing = cls(
            creator=creator, created_at=now, updated_at=now, expires_at=now + ttl, **cleaned
        )
        listing.enforce_invite_policy()

        listing._events.append(
            ListingCreatedEvent(
                listing_id=listing.id,
                creator_id=creator.id,
                creator_role=creator.role.value,
                title=listing.title,
                invite_agent_to_bid=listing.invite_agent_to_bid,
            )
        )
        return listing

    # -------------------------------------------------------------------------
    # Read-side helpers
    # -------------------------------------------------------------------------

    @property
    def agent_bids(self) -> list[Bid]:
        return list(self.bids)

    @property
    def active_bids_count(self) -> int:
        return self.bids.pending_count

    def is_expired(self, now: datetime | None = None) -> bool:
        return self.expires_at < (now or _utcnow())

    def is_owned_by(self, user_id: str) -> bool:
        return self.creator.id == user_id

    # -------------------------------------------------------------------------
    # Owner edits
    # -------------------------------------------------------------------------

    def apply_update(self, patch: Mapping[str, Any], updated_by: str) -> None:
        """
        Apply an owner's partial update. Ownership is checked by the service;
        the invite policy must be re-run afterwards via enforce_invite_policy().
        """
        cleaned = clean_listing_fields(
            patch, partial=True, existing_invite_details=self.agent_invite_details
        )
        for name, value in cleaned.items():
            setattr(self, name, value)
        self.updated_at = _utcnow()

        self._events.append(
            ListingUpdatedEvent(
                listing_id=self.id,
                updated_by=updated_by,
                fields=tuple(sorted(cleaned)),
            )
        )

    def enforce_invite_policy(self) -> None:
        """Re-apply invite gating; bidding stays closed once an agent is selected."""
        self.invite_agent_to_bid, self.agent_invite_details = apply_invite_gating(
            self.creator.role,
            self.invite_agent_to_bid,
            self.agent_invite_details,
            bidding_closed=self.selected_agent is not None,
        )
        if self.invite_agent_to_bid and self.agent_invite_details is None:
            raise ValidationError(
                ["agentInviteDetails is required when inviteAgentToBid is true"]
            )

    def delete(self, acting_user_id: str) -> None:
        """Authorise a hard delete; the repository removes the row."""
        self._require_owner(acting_user_id, "delete")
        self._events.append(ListingDeletedEvent(listing_id=self.id, deleted_by=acting_user_id))

    # -------------------------------------------------------------------------
    # Bidding
    # -------------------------------------------------------------------------

    def submit_bid(
        self,
        agent_id: str,
        role: UserRole,
        proposed_commission: object,
        cover_letter: object,
        experience: object = None,
    ) -> Bid:
        if role is not UserRole.AGENT:
            raise ForbiddenError("Only agents can submit bids")
        if not self.invite_agent_to_bid:
            raise NotAcceptingBidsError()
        if self.status is not ListingStatus.ACTIVE:
            raise NotActiveError()

        bid = self.bids.submit(agent_id, proposed_commission, cover_letter, experience)
        self.updated_at = _utcnow()

        self._events.append(
            BidSubmittedEvent(
                listing_id=self.id,
                bid_id=bid.id,
                agent_id=agent_id,
                landlord_id=self.creator.id,
                proposed_commission=bid.proposed_commission,
            )
        )
        return bid

    def accept_bid(self, bid_id: UUID, acting_user_id: str) -> Bid:
        """Select the bidding agent and close bidding for good."""
        self._require_owner(acting_user_id, "accept bids on")
        open_before = {b.id for b in self.bids if b.status is not BidStatus.REJECTED}

        bid = self.bids.accept(bid_id)
        now = _utcnow()

        if self.selected_agent is None or self.selected_agent.agent_id != bid.agent_id:
            self.selected_agent = SelectedAgent(
                agent_id=bid.agent_id,
                commission=bid.proposed_commission,
                selected_at=now,
            )
        self.invite_agent_to_bid = False
        self.agent_invite_details = None
        self.updated_at = now

        self._events.append(
            BidAcceptedEvent(
                listing_id=self.id,
                bid_id=bid.id,
                agent_id=bid.agent_id,
                commission=bid.proposed_commission,
                rejected_bid_ids=tuple(
                    b.id for b in self.bids if b.id in open_before and b.id != bid.id
                ),
            )
        )
        return bid

    def reject_bid(self, bid_id: UUID, acting_user_id: str) -> Bid:
        self._require_owner(acting_user_id, "reject bids on")
        bid = self.bids.reject(bid_id)
        self.updated_at = _utcnow()

        self._events.append(
            BidRejectedEvent(listing_id=self.id, bid_id=bid.id, agent_id=bid.agent_id)
        )
        return bid

    def _require_owner(self, acting_user_id: str, action: str) -> None:
        if not self.is_owned_by(acting_user_id):
            raise ForbiddenError(f"You can only {action} your own listings")

    # -------------------------------------------------------------------------
    # Event collection
    # -------------------------------------------------------------------------

    def collect_events(self) -> list[DomainEvent]:
        """Return pending events and clear the internal buffer."""
        events = list(self._events)
        self._events.clear()
        return events
