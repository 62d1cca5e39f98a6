"""
Request bodies.

Fields are deliberately loose (mostly optional, amounts accept strings):
the Listing aggregate owns required-field, range and coercion rules so the
same messages come back whether a rule is broken over HTTP or in-process.
"""
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    def to_payload(self) -> dict[str, Any]:
        """Snake_case dict of the keys the client actually sent."""
        return self.model_dump(exclude_unset=True)


class PhotoPayload(RequestModel):
    url: str | None = None
    is_cover: bool = False
    storage_id: str | None = None


class VideoLinkPayload(RequestModel):
    url: str | None = None
    platform: str | None = None
    title: str | None = None


class AgentInviteDetailsPayload(RequestModel):
    preferred_agent_type: str | None = None
    additional_requirements: str | None = None
    commission_rate: Decimal | str | None = None


class ListingPayload(RequestModel):
    """Body for both create (POST) and partial update (PUT)."""

    title: str | None = None
    purpose: str | None = None
    state: str | None = None
    locality: str | None = None
    area: str | None = None
    street_estate_neighbourhood: str | None = None
    property_type: str | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None
    toilets: int | None = None
    kitchens: int | None = None
    property_size: int | None = None
    facilities: list[str] | None = None
    rent_amount: Decimal | str | None = None
    payment_frequency: str | None = None
    availability: str | None = None
    description: str | None = None
    landlord_lives_in_compound: bool | None = None
    images: list[PhotoPayload] | None = None
    photo_notes: str | None = None
    video_links: list[VideoLinkPayload] | None = None
    invite_agent_to_bid: bool | None = None
    agent_invite_details: AgentInviteDetailsPayload | None = None
    status: str | None = None


class BidPayload(RequestModel):
    proposed_commission: Decimal | str | None = None
    cover_letter: str | None = None
    experience: str | None = None
