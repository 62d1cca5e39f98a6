"""
SQLAlchemy ORM models.

These are purely infrastructure concerns; domain entities are mapped to/from
these models inside the repository implementations.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.domain.enums.listing_status import BidStatus, ListingStatus
from src.domain.enums.user_role import UserRole
from src.infrastructure.database.connection import Base

_listing_status_enum = SAEnum(
    ListingStatus,
    name="listing_status",
    values_callable=lambda obj: [e.value for e in obj],
)

_bid_status_enum = SAEnum(
    BidStatus,
    name="bid_status",
    values_callable=lambda obj: [e.value for e in obj],
)

_creator_role_enum = SAEnum(
    UserRole,
    name="creator_role",
    values_callable=lambda obj: [e.value for e in obj],
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ListingModel(Base):
    __tablename__ = "listings"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Creator
    creator_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    creator_role: Mapped[UserRole] = mapped_column(_creator_role_enum, nullable=False)

    # Basic listing information
    title: Mapped[str] = mapped_column(Text, nullable=False)
    purpose: Mapped[str] = mapped_column(String(32), nullable=False)
    state: Mapped[str] = mapped_column(Text, nullable=False)
    locality: Mapped[str] = mapped_column(Text, nullable=False)
    area: Mapped[str] = mapped_column(Text, nullable=False)
    street_estate_neighbourhood: Mapped[str] = mapped_column(Text, nullable=False)
    property_type: Mapped[str] = mapped_column(Text, nullable=False, index=True)

    # Property details
    bedrooms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    bathrooms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    toilets: Mapped[int | None] = mapped_column(Integer, nullable=True)
    kitchens: Mapped[int | None] = mapped_column(Integer, nullable=True)
    property_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    facilities: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)  # type: ignore[type-arg]
    rent_amount: Mapped[Decimal] = mapped_column(Numeric, nullable=False, index=True)
    payment_frequency: Mapped[str] = mapped_column(String(16), nullable=False)
    availability: Mapped[str] = mapped_column(String(8), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    landlord_lives_in_compound: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Media
    images: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)  # type: ignore[type-arg]
    photo_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    video_links: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)  # type: ignore[type-arg]

    # Agent bidding
    invite_agent_to_bid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    agent_invite_details: Mapped[dict | None] = mapped_column(JSONB, nullable=True)  # type: ignore[type-arg]
    selected_agent_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    selected_agent_commission: Mapped[Decimal | None] = mapped_column(Numeric, nullable=True)
    selected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Lifecycle
    status: Mapped[ListingStatus] = mapped_column(_listing_status_enum, nullable=False, index=True)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    # Every UPDATE is issued as ... WHERE version = :loaded_version
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    bids: Mapped[list["ListingBidModel"]] = relationship(
        "ListingBidModel",
        back_populates="listing",
        cascade="all, delete-orphan",
        order_by="ListingBidModel.position",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("ix_listings_location", "state", "locality", "area"),
        Index("ix_listings_status_created_at", "status", "created_at"),
        Index("ix_listings_invite_agent_to_bid", "invite_agent_to_bid"),
    )


class ListingBidModel(Base):
    __tablename__ = "listing_bids"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    listing_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    agent_id: Mapped[str] = mapped_column(Text, nullable=False)
    proposed_commission: Mapped[Decimal] = mapped_column(Numeric, nullable=False)
    cover_letter: Mapped[str] = mapped_column(String(1000), nullable=False)
    experience: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[BidStatus] = mapped_column(_bid_status_enum, nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow
    )

    listing: Mapped[ListingModel] = relationship("ListingModel", back_populates="bids")

    __table_args__ = (
        # One bid per agent per listing, even with concurrent writers
        UniqueConstraint("listing_id", "agent_id", name="uq_listing_bids_listing_agent"),
    )
