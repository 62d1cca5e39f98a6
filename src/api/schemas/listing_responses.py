from datetime import datetime
from decimal import Decimal
from typing import Generic, TypeVar
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from src.domain.enums.listing_attributes import (
    Availability,
    ListingPurpose,
    PaymentFrequency,
    PreferredAgentType,
    VideoPlatform,
)
from src.domain.enums.listing_status import BidStatus, ListingStatus
from src.domain.enums.user_role import UserRole

T = TypeVar("T")


class ResponseModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Envelope(ResponseModel, Generic[T]):
    message: str
    data: T | None = None
    errors: list[str] | None = None


class CreatorResponse(ResponseModel):
    id: str
    role: UserRole


class PhotoResponse(ResponseModel):
    url: str
    is_cover: bool
    storage_id: str | None = None


class VideoLinkResponse(ResponseModel):
    url: str
    platform: VideoPlatform
    title: str


class AgentInviteDetailsResponse(ResponseModel):
    preferred_agent_type: PreferredAgentType
    additional_requirements: str
    commission_rate: Decimal | None = None


class SelectedAgentResponse(ResponseModel):
    agent_id: str
    commission: Decimal
    selected_at: datetime


class BidResponse(ResponseModel):
    id: UUID
    agent_id: str
    proposed_commission: Decimal
    cover_letter: str
    experience: str | None = None
    status: BidStatus
    submitted_at: datetime
    updated_at: datetime


class ListingResponse(ResponseModel):
    id: UUID
    creator: CreatorResponse
    title: str
    purpose: ListingPurpose
    state: str
    locality: str
    area: str
    street_estate_neighbourhood: str
    property_type: str
    bedrooms: int | None = None
    bathrooms: int | None = None
    toilets: int | None = None
    kitchens: int | None = None
    property_size: int | None = None
    facilities: list[str]
    rent_amount: Decimal
    payment_frequency: PaymentFrequency
    availability: Availability
    description: str
    landlord_lives_in_compound: bool
    images: list[PhotoResponse]
    photo_notes: str | None = None
    video_links: list[VideoLinkResponse]
    invite_agent_to_bid: bool
    agent_invite_details: AgentInviteDetailsResponse | None = None
    # Only filled for the listing's owner
    agent_bids: list[BidResponse] | None = None
    selected_agent: SelectedAgentResponse | None = None
    active_bids_count: int
    status: ListingStatus
    views: int
    is_featured: bool
    is_expired: bool
    expires_at: datetime
    created_at: datetime
    updated_at: datetime


class PaginationResponse(ResponseModel):
    current_page: int
    total_pages: int
    total_count: int


class ListingPageResponse(ResponseModel):
    listings: list[ListingResponse]
    pagination: PaginationResponse


class ListingBidSummary(ResponseModel):
    id: UUID
    title: str
    invite_agent_to_bid: bool
    agent_invite_details: AgentInviteDetailsResponse | None = None
    selected_agent: SelectedAgentResponse | None = None


class ListingBidsResponse(ResponseModel):
    listing: ListingBidSummary
    bids: list[BidResponse]


class UploadResponse(ResponseModel):
    url: str
    storage_id: str
