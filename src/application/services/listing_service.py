import functools
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, ParamSpec, TypeVar
from uuid import UUID

import structlog

from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.identity_provider import IdentityProvider
from src.application.interfaces.listing_repository import (
    ListingPage,
    ListingQuery,
    ListingRepository,
    parse_sort,
)
from src.domain.entities.bid import Bid
from src.domain.entities.listing import DEFAULT_LISTING_TTL, Listing
from src.domain.errors import (
    DomainError,
    ForbiddenError,
    ListingNotFoundError,
    UnauthorizedError,
    UnexpectedError,
    ValidationError,
)
from src.domain.policies.permissions import ListingAction, can_mutate
from src.domain.value_objects import Creator, Principal

logger = structlog.get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

_FORBIDDEN_MESSAGES: dict[ListingAction, str] = {
    ListingAction.CREATE: "Only landlords and agents can create listings",
    ListingAction.UPDATE: "You can only update your own listings",
    ListingAction.DELETE: "You can only delete your own listings",
    ListingAction.SUBMIT_BID: "Only agents can submit bids",
    ListingAction.ACCEPT_BID: "You can only accept bids on your own listings",
    ListingAction.REJECT_BID: "You can only reject bids on your own listings",
    ListingAction.VIEW_BIDS: "You can only view bids on your own listings",
}


def _guarded(operation: str) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Let domain errors through; log anything else and hide it behind UnexpectedError."""

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            try:
                return await func(*args, **kwargs)
            except DomainError:
                raise
            except Exception as exc:
                logger.exception("listing_operation_failed", operation=operation)
                raise UnexpectedError(operation) from exc

        return wrapper

    return decorator


@dataclass
class SubmitBidInput:
    proposed_commission: object
    cover_letter: object
    experience: object = None


class ListingService:
    """
    API-facing coordination of listings and agent bids.

    Resolves the caller, runs the capability check, applies the aggregate
    operation, persists through the repository (single attempt, no retries)
    and publishes the resulting domain events.
    """

    def __init__(
        self,
        listing_repo: ListingRepository,
        identity_provider: IdentityProvider,
        event_publisher: EventPublisher,
        *,
        listing_ttl: timedelta = DEFAULT_LISTING_TTL,
    ) -> None:
        self._listing_repo = listing_repo
        self._identity_provider = identity_provider
        self._event_publisher = event_publisher
        self._listing_ttl = listing_ttl

    async def resolve_principal(self, credential: str | None) -> Principal:
        if not credential:
            raise UnauthorizedError()
        return await self._identity_provider.authenticate(credential)

    # -------------------------------------------------------------------------
    # Listings
    # -------------------------------------------------------------------------

    @_guarded("create_listing")
    async def create_listing(self, principal: Principal, payload: Mapping[str, Any]) -> Listing:
        self._authorize(principal, None, ListingAction.CREATE)

        listing = Listing.create(
            payload,
            Creator(id=principal.id, role=principal.role),
            ttl=self._listing_ttl,
        )
        await self._listing_repo.add(listing)
        await self._publish(listing)

        logger.info(
            "listing_created",
            listing_id=str(listing.id),
            creator_id=principal.id,
            creator_role=principal.role.value,
            invite_agent_to_bid=listing.invite_agent_to_bid,
        )
        return listing

    @_guarded("get_listings")
    async def list_listings(self, query: ListingQuery) -> ListingPage:
        if query.page < 1 or query.page_size < 1:
            raise ValidationError(["page and limit must be positive"])
        parse_sort(query.sort)

        listings, total = await self._listing_repo.search(query)
        return ListingPage(
            listings=listings,
            current_page=query.page,
            page_size=query.page_size,
            total_count=total,
        )

    @_guarded("get_listing")
    async def get_listing(self, listing_id: UUID) -> Listing:
        await self._listing_repo.increment_views(listing_id)
        return await self._load(listing_id)

    @_guarded("update_listing")
    async def update_listing(
        self, principal: Principal, listing_id: UUID, patch: Mapping[str, Any]
    ) -> Listing:
        listing = await self._load(listing_id)
        self._authorize(principal, listing, ListingAction.UPDATE)

        listing.apply_update(patch, updated_by=principal.id)
        # creator.role is immutable, so gating is re-checked against the patched state
        listing.enforce_invite_policy()

        await self._listing_repo.save(listing)
        await self._publish(listing)

        logger.info("listing_updated", listing_id=str(listing.id), updated_by=principal.id)
        return listing

    @_guarded("delete_listing")
    async def delete_listing(self, principal: Principal, listing_id: UUID) -> None:
        listing = await self._load(listing_id)
        self._authorize(principal, listing, ListingAction.DELETE)

        listing.delete(principal.id)
        if not await self._listing_repo.delete(listing_id):
            raise ListingNotFoundError(listing_id)
        await self._publish(listing)

        logger.info("listing_deleted", listing_id=str(listing_id), deleted_by=principal.id)

    # -------------------------------------------------------------------------
    # Bids
    # -------------------------------------------------------------------------

    @_guarded("submit_bid")
    async def submit_bid(
        self, principal: Principal, listing_id: UUID, input_data: SubmitBidInput
    ) -> Bid:
        listing = await self._load(listing_id)
        self._authorize(principal, listing, ListingAction.SUBMIT_BID)

        bid = listing.submit_bid(
            principal.id,
            principal.role,
            input_data.proposed_commission,
            input_data.cover_letter,
            input_data.experience,
        )
        await self._listing_repo.save(listing)
        await self._publish(listing)

        logger.info(
            "bid_submitted",
            listing_id=str(listing.id),
            bid_id=str(bid.id),
            agent_id=principal.id,
            proposed_commission=str(bid.proposed_commission),
        )
        return bid

    @_guarded("accept_bid")
    async def accept_bid(self, principal: Principal, listing_id: UUID, bid_id: UUID) -> Listing:
        listing = await self._load(listing_id)
        self._authorize(principal, listing, ListingAction.ACCEPT_BID)

        bid = listing.accept_bid(bid_id, principal.id)
        await self._listing_repo.save(listing)
        await self._publish(listing)

        logger.info(
            "bid_accepted",
            listing_id=str(listing.id),
            bid_id=str(bid.id),
            agent_id=bid.agent_id,
        )
        return listing

    @_guarded("reject_bid")
    async def reject_bid(self, principal: Principal, listing_id: UUID, bid_id: UUID) -> Listing:
        listing = await self._load(listing_id)
        self._authorize(principal, listing, ListingAction.REJECT_BID)

        bid = listing.reject_bid(bid_id, principal.id)
        await self._listing_repo.save(listing)
        await self._publish(listing)

        logger.info("bid_rejected", listing_id=str(listing.id), bid_id=str(bid.id))
        return listing

    @_guarded("get_listing_bids")
    async def list_bids(self, principal: Principal, listing_id: UUID) -> Listing:
        listing = await self._load(listing_id)
        self._authorize(principal, listing, ListingAction.VIEW_BIDS)
        return listing

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _load(self, listing_id: UUID) -> Listing:
        listing = await self._listing_repo.get_by_id(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return listing

    @staticmethod
    def _authorize(principal: Principal, listing: Listing | None, action: ListingAction) -> None:
        if not can_mutate(principal, listing, action):
            logger.info(
                "listing_action_forbidden",
                action=action.value,
                principal_id=principal.id,
                listing_id=str(listing.id) if listing else None,
            )
            raise ForbiddenError(_FORBIDDEN_MESSAGES[action])

    async def _publish(self, listing: Listing) -> None:
        await self._event_publisher.publish_many(listing.collect_events())
