from decimal import Decimal
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from src.application.interfaces.listing_repository import ListingQuery, ListingRepository
from src.domain.entities.bid import Bid, BidLedger
from src.domain.entities.listing import Listing
from src.domain.enums.listing_attributes import (
    Availability,
    ListingPurpose,
    PaymentFrequency,
    PreferredAgentType,
    VideoPlatform,
)
from src.domain.enums.listing_status import ListingStatus
from src.domain.errors import (
    ConcurrentModificationError,
    DuplicateBidError,
    ListingNotFoundError,
)
from src.domain.value_objects import (
    AgentInviteDetails,
    Creator,
    Photo,
    SelectedAgent,
    VideoLink,
)
from src.infrastructure.database.models import ListingBidModel, ListingModel

logger = structlog.get_logger(__name__)

_BID_UNIQUE_CONSTRAINT = "uq_listing_bids_listing_agent"

# Columns copied 1:1 between Listing and ListingModel on every save
_SCALAR_FIELDS = (
    "title",
    "state",
    "locality",
    "area",
    "street_estate_neighbourhood",
    "property_type",
    "bedrooms",
    "bathrooms",
    "toilets",
    "kitchens",
    "property_size",
    "rent_amount",
    "description",
    "landlord_lives_in_compound",
    "photo_notes",
    "invite_agent_to_bid",
    "status",
    "views",
    "is_featured",
    "expires_at",
    "updated_at",
)


# -----------------------------------------------------------------------------
# JSON column helpers
# -----------------------------------------------------------------------------

def _photos_to_json(photos: list[Photo]) -> list[dict[str, Any]]:
    return [{"url": p.url, "is_cover": p.is_cover, "storage_id": p.storage_id} for p in photos]


def _videos_to_json(links: list[VideoLink]) -> list[dict[str, Any]]:
    return [{"url": v.url, "platform": v.platform.value, "title": v.title} for v in links]


def _invite_to_json(details: AgentInviteDetails | None) -> dict[str, Any] | None:
    if details is None:
        return None
    data: dict[str, Any] = {
        "preferred_agent_type": details.preferred_agent_type.value,
        "additional_requirements": details.additional_requirements,
    }
    if details.commission_rate is not None:
        data["commission_rate"] = str(details.commission_rate)
    return data


def _invite_from_json(data: dict[str, Any] | None) -> AgentInviteDetails | None:
    if data is None:
        return None
    rate = data.get("commission_rate")
    return AgentInviteDetails(
        preferred_agent_type=PreferredAgentType(data.get("preferred_agent_type", "any")),
        additional_requirements=data.get("additional_requirements", ""),
        commission_rate=Decimal(rate) if rate is not None else None,
    )


# -----------------------------------------------------------------------------
# Mapping
# -----------------------------------------------------------------------------

def _bid_to_domain(model: ListingBidModel) -> Bid:
    return Bid(
        id=model.id,
        agent_id=model.agent_id,
        proposed_commission=Decimal(str(model.proposed_commission)),
        cover_letter=model.cover_letter,
        experience=model.experience,
        status=model.status,
        submitted_at=model.submitted_at,
        updated_at=model.updated_at,
    )


def _bid_to_model(bid: Bid, position: int) -> ListingBidModel:
    return ListingBidModel(
        id=bid.id,
        position=position,
        agent_id=bid.agent_id,
        proposed_commission=bid.proposed_commission,
        cover_letter=bid.cover_letter,
        experience=bid.experience,
        status=bid.status,
        submitted_at=bid.submitted_at,
        updated_at=bid.updated_at,
    )


def _to_domain(model: ListingModel) -> Listing:
    selected_agent = None
    if model.selected_agent_id is not None:
        selected_agent = SelectedAgent(
            agent_id=model.selected_agent_id,
            commission=Decimal(str(model.selected_agent_commission)),
            selected_at=model.selected_at,  # type: ignore[arg-type]
        )

    return Listing(
        id=model.id,
        creator=Creator(id=model.creator_id, role=model.creator_role),
        title=model.title,
        purpose=ListingPurpose(model.purpose),
        state=model.state,
        locality=model.locality,
        area=model.area,
        street_estate_neighbourhood=model.street_estate_neighbourhood,
        property_type=model.property_type,
        bedrooms=model.bedrooms,
        bathrooms=model.bathrooms,
        toilets=model.toilets,
        kitchens=model.kitchens,
        property_size=model.property_size,
        facilities=list(model.facilities or []),
        rent_amount=Decimal(str(model.rent_amount)),
        payment_frequency=PaymentFrequency(model.payment_frequency),
        availability=Availability(model.availability),
        description=model.description,
        landlord_lives_in_compound=model.landlord_lives_in_compound,
        images=[
            Photo(url=p["url"], is_cover=p.get("is_cover", False), storage_id=p.get("storage_id"))
            for p in model.images or []
        ],
        photo_notes=model.photo_notes,
        video_links=[
            VideoLink(
                url=v["url"],
                platform=VideoPlatform(v.get("platform", "other")),
                title=v.get("title", ""),
            )
            for v in model.video_links or []
        ],
        invite_agent_to_bid=model.invite_agent_to_bid,
        agent_invite_details=_invite_from_json(model.agent_invite_details),
        bids=BidLedger(_bid_to_domain(b) for b in model.bids),
        selected_agent=selected_agent,
        status=ListingStatus(model.status),
        views=model.views,
        is_featured=model.is_featured,
        created_at=model.created_at,
        updated_at=model.updated_at,
        expires_at=model.expires_at,
        version=model.version,
    )


def _apply_to_model(listing: Listing, model: ListingModel) -> None:
    for name in _SCALAR_FIELDS:
        setattr(model, name, getattr(listing, name))
    model.purpose = listing.purpose.value
    model.payment_frequency = listing.payment_frequency.value
    model.availability = listing.availability.value
    model.facilities = list(listing.facilities)
    model.images = _photos_to_json(listing.images)
    model.video_links = _videos_to_json(listing.video_links)
    model.agent_invite_details = _invite_to_json(listing.agent_invite_details)

    selected = listing.selected_agent
    model.selected_agent_id = selected.agent_id if selected else None
    model.selected_agent_commission = selected.commission if selected else None
    model.selected_at = selected.selected_at if selected else None


def _sync_bids(listing: Listing, model: ListingModel) -> None:
    """Bids are append-only; existing rows only ever change status."""
    stored = {b.id: b for b in model.bids}
    for position, bid in enumerate(listing.bids):
        row = stored.get(bid.id)
        if row is None:
            model.bids.append(_bid_to_model(bid, position))
        elif row.status != bid.status:
            row.status = bid.status
            row.updated_at = bid.updated_at


def _to_model(listing: Listing) -> ListingModel:
    model = ListingModel(
        id=listing.id,
        creator_id=listing.creator.id,
        creator_role=listing.creator.role,
        created_at=listing.created_at,
        bids=[],
    )
    _apply_to_model(listing, model)
    _sync_bids(listing, model)
    return model


class SqlAlchemyListingRepository(ListingRepository):
    """SQLAlchemy implementation for listing persistence."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, listing: Listing) -> None:
        model = _to_model(listing)
        self._session.add(model)
        await self._session.flush()
        listing.version = model.version

    async def get_by_id(self, listing_id: UUID) -> Listing | None:
        model = await self._session.get(ListingModel, listing_id)
        return _to_domain(model) if model is not None else None

    async def save(self, listing: Listing) -> None:
        model = await self._session.get(ListingModel, listing.id)
        if model is None:
            raise ListingNotFoundError(listing.id)
        if model.version != listing.version:
            raise ConcurrentModificationError(listing.id)

        _apply_to_model(listing, model)
        _sync_bids(listing, model)
        try:
            await self._session.flush()
        except StaleDataError as exc:
            logger.warning("listing_version_conflict", listing_id=str(listing.id))
            raise ConcurrentModificationError(listing.id) from exc
        except IntegrityError as exc:
            if _BID_UNIQUE_CONSTRAINT not in str(exc.orig):
                raise
            logger.warning("duplicate_bid_rejected_by_store", listing_id=str(listing.id))
            raise DuplicateBidError() from exc

        listing.version = model.version

    async def delete(self, listing_id: UUID) -> bool:
        model = await self._session.get(ListingModel, listing_id)
        if model is None:
            return False
        await self._session.delete(model)
        await self._session.flush()
        return True

    async def increment_views(self, listing_id: UUID) -> None:
        # Single statement so concurrent readers never lose a view; version is untouched.
        # Callers load the listing afterwards, so the identity map is not synchronised.
        await self._session.execute(
            update(ListingModel)
            .where(ListingModel.id == listing_id)
            .values(views=ListingModel.views + 1)
            .execution_options(synchronize_session=False)
        )

    async def search(self, query: ListingQuery) -> tuple[list[Listing], int]:
        conditions = [ListingModel.status == ListingStatus.ACTIVE]

        if query.state:
            conditions.append(ListingModel.state.icontains(query.state, autoescape=True))
        if query.locality:
            conditions.append(ListingModel.locality.icontains(query.locality, autoescape=True))
        if query.area:
            conditions.append(ListingModel.area.icontains(query.area, autoescape=True))
        if query.property_type is not None:
            conditions.append(ListingModel.property_type == query.property_type)
        if query.bedrooms is not None:
            conditions.append(ListingModel.bedrooms == query.bedrooms)
        if query.bathrooms is not None:
            conditions.append(ListingModel.bathrooms == query.bathrooms)
        if query.invite_agent_to_bid is not None:
            conditions.append(ListingModel.invite_agent_to_bid == query.invite_agent_to_bid)
        if query.min_rent is not None:
            conditions.append(ListingModel.rent_amount >= query.min_rent)
        if query.max_rent is not None:
            conditions.append(ListingModel.rent_amount <= query.max_rent)

        attribute, descending = query.order
        column = getattr(ListingModel, attribute)

        stmt = (
            select(ListingModel)
            .where(*conditions)
            .order_by(column.desc() if descending else column.asc(), ListingModel.id)
            .limit(query.page_size)
            .offset(query.offset)
        )
        count_stmt = select(func.count()).select_from(ListingModel).where(*conditions)

        result = await self._session.execute(stmt)
        models = result.scalars().all()

        count_result = await self._session.execute(count_stmt)
        total = count_result.scalar_one()

        return [_to_domain(m) for m in models], total
