"""initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM, JSONB, UUID

from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

listing_status = ENUM(
    "active", "inactive", "rented", "under_negotiation", name="listing_status", create_type=False
)
bid_status = ENUM("pending", "accepted", "rejected", name="bid_status", create_type=False)
creator_role = ENUM("tenant", "landlord", "agent", name="creator_role", create_type=False)


def upgrade() -> None:
    bind = op.get_bind()
    for enum in (listing_status, bid_status, creator_role):
        enum.create(bind, checkfirst=True)

    op.create_table(
        "listings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        # Creator
        sa.Column("creator_id", sa.Text(), nullable=False),
        sa.Column("creator_role", creator_role, nullable=False),
        # Basic listing information
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("purpose", sa.String(32), nullable=False),
        sa.Column("state", sa.Text(), nullable=False),
        sa.Column("locality", sa.Text(), nullable=False),
        sa.Column("area", sa.Text(), nullable=False),
        sa.Column("street_estate_neighbourhood", sa.Text(), nullable=False),
        sa.Column("property_type", sa.Text(), nullable=False),
        # Property details
        sa.Column("bedrooms", sa.Integer(), nullable=True),
        sa.Column("bathrooms", sa.Integer(), nullable=True),
        sa.Column("toilets", sa.Integer(), nullable=True),
        sa.Column("kitchens", sa.Integer(), nullable=True),
        sa.Column("property_size", sa.Integer(), nullable=True),
        sa.Column("facilities", JSONB, nullable=False, server_default=sa.text("'[]'")),
        sa.Column("rent_amount", sa.Numeric(), nullable=False),
        sa.Column("payment_frequency", sa.String(16), nullable=False),
        sa.Column("availability", sa.String(8), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("landlord_lives_in_compound", sa.Boolean(), nullable=False, server_default=sa.false()),
        # Media
        sa.Column("images", JSONB, nullable=False, server_default=sa.text("'[]'")),
        sa.Column("photo_notes", sa.Text(), nullable=True),
        sa.Column("video_links", JSONB, nullable=False, server_default=sa.text("'[]'")),
        # Agent bidding
        sa.Column("invite_agent_to_bid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("agent_invite_details", JSONB, nullable=True),
        sa.Column("selected_agent_id", sa.Text(), nullable=True),
        sa.Column("selected_agent_commission", sa.Numeric(), nullable=True),
        sa.Column("selected_at", sa.DateTime(timezone=True), nullable=True),
        # Lifecycle
        sa.Column("status", listing_status, nullable=False),
        sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_featured", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("version", sa.Integer(), nullable=False),
    )

    op.create_index("ix_listings_creator_id", "listings", ["creator_id"])
    op.create_index("ix_listings_property_type", "listings", ["property_type"])
    op.create_index("ix_listings_rent_amount", "listings", ["rent_amount"])
    op.create_index("ix_listings_status", "listings", ["status"])
    op.create_index("ix_listings_location", "listings", ["state", "locality", "area"])
    op.create_index("ix_listings_status_created_at", "listings", ["status", "created_at"])
    op.create_index("ix_listings_invite_agent_to_bid", "listings", ["invite_agent_to_bid"])

    op.create_table(
        "listing_bids",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "listing_id",
            UUID(as_uuid=True),
            sa.ForeignKey("listings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("agent_id", sa.Text(), nullable=False),
        sa.Column("proposed_commission", sa.Numeric(), nullable=False),
        sa.Column("cover_letter", sa.String(1000), nullable=False),
        sa.Column("experience", sa.String(500), nullable=True),
        sa.Column("status", bid_status, nullable=False),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("listing_id", "agent_id", name="uq_listing_bids_listing_agent"),
    )
    op.create_index("ix_listing_bids_listing_id", "listing_bids", ["listing_id"])


def downgrade() -> None:
    op.drop_table("listing_bids")
    op.drop_table("listings")
    bind = op.get_bind()
    for enum in (creator_role, bid_status, listing_status):
        enum.drop(bind, checkfirst=True)
