from decimal import Decimal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from src.api.dependencies import get_current_principal, get_listing_service
from src.api.schemas.listing_requests import BidPayload, ListingPayload
from src.api.schemas.listing_responses import (
    AgentInviteDetailsResponse,
    BidResponse,
    CreatorResponse,
    Envelope,
    ListingBidSummary,
    ListingBidsResponse,
    ListingPageResponse,
    ListingResponse,
    PaginationResponse,
    PhotoResponse,
    SelectedAgentResponse,
    VideoLinkResponse,
)
from src.application.interfaces.listing_repository import ListingQuery
from src.application.services.listing_service import ListingService, SubmitBidInput
from src.domain.entities.bid import Bid
from src.domain.entities.listing import Listing
from src.domain.value_objects import AgentInviteDetails, Principal, SelectedAgent

router = APIRouter(prefix="/api", tags=["listings"])


def _invite_to_response(details: AgentInviteDetails | None) -> AgentInviteDetailsResponse | None:
    if details is None:
        return None
    return AgentInviteDetailsResponse(
        preferred_agent_type=details.preferred_agent_type,
        additional_requirements=details.additional_requirements,
        commission_rate=details.commission_rate,
    )


def _selected_to_response(selected: SelectedAgent | None) -> SelectedAgentResponse | None:
    if selected is None:
        return None
    return SelectedAgentResponse(
        agent_id=selected.agent_id,
        commission=selected.commission,
        selected_at=selected.selected_at,
    )


def _bid_to_response(bid: Bid) -> BidResponse:
    return BidResponse(
        id=bid.id,
        agent_id=bid.agent_id,
        proposed_commission=bid.proposed_commission,
        cover_letter=bid.cover_letter,
        experience=bid.experience,
        status=bid.status,
        submitted_at=bid.submitted_at,
        updated_at=bid.updated_at,
    )


def _listing_to_response(listing: Listing, *, include_bids: bool = False) -> ListingResponse:
    return ListingResponse(
        id=listing.id,
        creator=CreatorResponse(id=listing.creator.id, role=listing.creator.role),
        title=listing.title,
        purpose=listing.purpose,
        state=listing.state,
        locality=listing.locality,
        area=listing.area,
        street_estate_neighbourhood=listing.street_estate_neighbourhood,
        property_type=listing.property_type,
        bedrooms=listing.bedrooms,
        bathrooms=listing.bathrooms,
        toilets=listing.toilets,
        kitchens=listing.kitchens,
        property_size=listing.property_size,
        facilities=listing.facilities,
        rent_amount=listing.rent_amount,
        payment_frequency=listing.payment_frequency,
        availability=listing.availability,
        description=listing.description,
        landlord_lives_in_compound=listing.landlord_lives_in_compound,
        images=[
            PhotoResponse(url=p.url, is_cover=p.is_cover, storage_id=p.storage_id)
            for p in listing.images
        ],
        photo_notes=listing.photo_notes,
        video_links=[
            VideoLinkResponse(url=v.url, platform=v.platform, title=v.title)
            for v in listing.video_links
        ],
        invite_agent_to_bid=listing.invite_agent_to_bid,
        agent_invite_details=_invite_to_response(listing.agent_invite_details),
        agent_bids=[_bid_to_response(b) for b in listing.bids] if include_bids else None,
        selected_agent=_selected_to_response(listing.selected_agent),
        active_bids_count=listing.active_bids_count,
        status=listing.status,
        views=listing.views,
        is_featured=listing.is_featured,
        is_expired=listing.is_expired(),
        expires_at=listing.expires_at,
        created_at=listing.created_at,
        updated_at=listing.updated_at,
    )


# ---- Listings ---------------------------------------------------------------

@router.post(
    "/listings",
    response_model=Envelope[ListingResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
@router.post(
    "/listing",
    response_model=Envelope[ListingResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    include_in_schema=False,
)
async def create_listing(
    body: ListingPayload,
    principal: Principal = Depends(get_current_principal),
    service: ListingService = Depends(get_listing_service),
) -> Envelope[ListingResponse]:
    listing = await service.create_listing(principal, body.to_payload())
    return Envelope(
        message="Listing created successfully",
        data=_listing_to_response(listing, include_bids=True),
    )


@router.get(
    "/listings",
    response_model=Envelope[ListingPageResponse],
    response_model_exclude_none=True,
)
async def list_listings(
    state: str | None = Query(default=None),
    locality: str | None = Query(default=None),
    area: str | None = Query(default=None),
    property_type: str | None = Query(default=None, alias="propertyType"),
    bedrooms: int | None = Query(default=None),
    bathrooms: int | None = Query(default=None),
    invite_agent_to_bid: bool | None = Query(default=None, alias="inviteAgentToBid"),
    min_rent: Decimal | None = Query(default=None, alias="minRent"),
    max_rent: Decimal | None = Query(default=None, alias="maxRent"),
    page: int = Query(default=1),
    limit: int = Query(default=10),
    sort: str = Query(default="-createdAt"),
    service: ListingService = Depends(get_listing_service),
) -> Envelope[ListingPageResponse]:
    """Public search over active listings."""
    result = await service.list_listings(
        ListingQuery(
            state=state,
            locality=locality,
            area=area,
            property_type=property_type,
            bedrooms=bedrooms,
            bathrooms=bathrooms,
            invite_agent_to_bid=invite_agent_to_bid,
            min_rent=min_rent,
            max_rent=max_rent,
            page=page,
            page_size=limit,
            sort=sort,
        )
    )
    return Envelope(
        message="Listings retrieved successfully",
        data=ListingPageResponse(
            listings=[_listing_to_response(l) for l in result.listings],
            pagination=PaginationResponse(
                current_page=result.current_page,
                total_pages=result.total_pages,
                total_count=result.total_count,
            ),
        ),
    )


@router.get(
    "/listings/{listing_id}",
    response_model=Envelope[ListingResponse],
    response_model_exclude_none=True,
)
async def get_listing(
    listing_id: UUID,
    service: ListingService = Depends(get_listing_service),
) -> Envelope[ListingResponse]:
    listing = await service.get_listing(listing_id)
    return Envelope(message="Listing retrieved successfully", data=_listing_to_response(listing))


@router.put(
    "/listings/{listing_id}",
    response_model=Envelope[ListingResponse],
    response_model_exclude_none=True,
)
async def update_listing(
    listing_id: UUID,
    body: ListingPayload,
    principal: Principal = Depends(get_current_principal),
    service: ListingService = Depends(get_listing_service),
) -> Envelope[ListingResponse]:
    listing = await service.update_listing(principal, listing_id, body.to_payload())
    return Envelope(
        message="Listing updated successfully",
        data=_listing_to_response(listing, include_bids=True),
    )


@router.delete(
    "/listings/{listing_id}",
    response_model=Envelope[None],
    response_model_exclude_none=True,
)
async def delete_listing(
    listing_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: ListingService = Depends(get_listing_service),
) -> Envelope[None]:
    await service.delete_listing(principal, listing_id)
    return Envelope(message="Listing deleted successfully")


# ---- Bids -------------------------------------------------------------------

@router.post(
    "/listings/{listing_id}/bids",
    response_model=Envelope[BidResponse],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def submit_bid(
    listing_id: UUID,
    body: BidPayload,
    principal: Principal = Depends(get_current_principal),
    service: ListingService = Depends(get_listing_service),
) -> Envelope[BidResponse]:
    bid = await service.submit_bid(
        principal,
        listing_id,
        SubmitBidInput(
            proposed_commission=body.proposed_commission,
            cover_letter=body.cover_letter,
            experience=body.experience,
        ),
    )
    return Envelope(message="Bid submitted successfully", data=_bid_to_response(bid))


@router.put(
    "/listings/{listing_id}/bids/{bid_id}/accept",
    response_model=Envelope[ListingResponse],
    response_model_exclude_none=True,
)
async def accept_bid(
    listing_id: UUID,
    bid_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: ListingService = Depends(get_listing_service),
) -> Envelope[ListingResponse]:
    listing = await service.accept_bid(principal, listing_id, bid_id)
    return Envelope(
        message="Bid accepted successfully",
        data=_listing_to_response(listing, include_bids=True),
    )


@router.put(
    "/listings/{listing_id}/bids/{bid_id}/reject",
    response_model=Envelope[ListingResponse],
    response_model_exclude_none=True,
)
async def reject_bid(
    listing_id: UUID,
    bid_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: ListingService = Depends(get_listing_service),
) -> Envelope[ListingResponse]:
    listing = await service.reject_bid(principal, listing_id, bid_id)
    return Envelope(
        message="Bid rejected successfully",
        data=_listing_to_response(listing, include_bids=True),
    )


@router.get(
    "/listings/{listing_id}/bids",
    response_model=Envelope[ListingBidsResponse],
    response_model_exclude_none=True,
)
async def list_bids(
    listing_id: UUID,
    principal: Principal = Depends(get_current_principal),
    service: ListingService = Depends(get_listing_service),
) -> Envelope[ListingBidsResponse]:
    listing = await service.list_bids(principal, listing_id)
    return Envelope(
        message="Bids retrieved successfully",
        data=ListingBidsResponse(
            listing=ListingBidSummary(
                id=listing.id,
                title=listing.title,
                invite_agent_to_bid=listing.invite_agent_to_bid,
                agent_invite_details=_invite_to_response(listing.agent_invite_details),
                selected_agent=_selected_to_response(listing.selected_agent),
            ),
            bids=[_bid_to_response(b) for b in listing.bids],
        ),
    )
