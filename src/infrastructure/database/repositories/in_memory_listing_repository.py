import asyncio
import copy
from uuid import UUID

import structlog

from src.application.interfaces.listing_repository import ListingQuery, ListingRepository
from src.domain.entities.listing import Listing
from src.domain.errors import (
    ConcurrentModificationError,
    DuplicateBidError,
    ListingNotFoundError,
)

logger = structlog.get_logger(__name__)


def _snapshot(listing: Listing) -> Listing:
    stored = copy.deepcopy(listing)
    stored.collect_events()
    return stored


class InMemoryListingRepository(ListingRepository):
    """
    Process-local listing store. Useful for testing and local development.

    Readers always get a private copy, so two requests that load the same
    listing race exactly like they would against the database: the second
    save fails the version check.
    """

    def __init__(self) -> None:
        self._listings: dict[UUID, Listing] = {}
        self._lock = asyncio.Lock()

    async def add(self, listing: Listing) -> None:
        async with self._lock:
            listing.version = 1
            self._listings[listing.id] = _snapshot(listing)

    async def get_by_id(self, listing_id: UUID) -> Listing | None:
        stored = self._listings.get(listing_id)
        return copy.deepcopy(stored) if stored is not None else None

    async def save(self, listing: Listing) -> None:
        async with self._lock:
            stored = self._listings.get(listing.id)
            if stored is None:
                raise ListingNotFoundError(listing.id)
            if stored.version != listing.version:
                logger.warning("listing_version_conflict", listing_id=str(listing.id))
                raise ConcurrentModificationError(listing.id)

            agents = [b.agent_id for b in listing.bids]
            if len(agents) != len(set(agents)):
                raise DuplicateBidError()

            listing.version += 1
            snapshot = _snapshot(listing)
            # Views only move through increment_views, which skips the version
            snapshot.views = stored.views
            self._listings[listing.id] = snapshot

    async def delete(self, listing_id: UUID) -> bool:
        async with self._lock:
            return self._listings.pop(listing_id, None) is not None

    async def increment_views(self, listing_id: UUID) -> None:
        async with self._lock:
            stored = self._listings.get(listing_id)
            if stored is not None:
                stored.views += 1

    async def search(self, query: ListingQuery) -> tuple[list[Listing], int]:
        attribute, descending = query.order
        matches = sorted(
            (l for l in self._listings.values() if query.matches(l)),
            key=lambda l: str(l.id),
        )
        # Missing values sort last in ascending order, like NULLs in Postgres
        matches.sort(
            key=lambda l: (getattr(l, attribute) is None, getattr(l, attribute) or 0),
            reverse=descending,
        )
        page = matches[query.offset : query.offset + query.page_size]
        return [copy.deepcopy(l) for l in page], len(matches)
