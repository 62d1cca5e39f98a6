import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from src.domain.entities.listing import Listing
from src.domain.enums.listing_status import ListingStatus
from src.domain.errors import ValidationError

# API sort key -> Listing attribute
SORTABLE_FIELDS: dict[str, str] = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "rentAmount": "rent_amount",
    "views": "views",
    "bedrooms": "bedrooms",
}


def parse_sort(sort: str | None) -> tuple[str, bool]:
    """'-createdAt' -> ('created_at', True). Returns (attribute, descending)."""
    sort = (sort or "-createdAt").strip()
    descending = sort.startswith("-")
    key = sort.lstrip("-+")
    if key not in SORTABLE_FIELDS:
        raise ValidationError(
            [f"sort must be one of {sorted(SORTABLE_FIELDS)}, optionally prefixed with '-'"]
        )
    return SORTABLE_FIELDS[key], descending


@dataclass(frozen=True)
class ListingQuery:
    """Public search filters. status=active is always applied."""

    state: str | None = None
    locality: str | None = None
    area: str | None = None
    property_type: str | None = None
    bedrooms: int | None = None
    bathrooms: int | None = None
    invite_agent_to_bid: bool | None = None
    min_rent: Decimal | None = None
    max_rent: Decimal | None = None
    page: int = 1
    page_size: int = 10
    sort: str = "-createdAt"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def order(self) -> tuple[str, bool]:
        return parse_sort(self.sort)

    def matches(self, listing: Listing) -> bool:
        """In-process version of the predicate the SQL repository builds."""
        if listing.status is not ListingStatus.ACTIVE:
            return False
        for name in ("state", "locality", "area"):
            needle = getattr(self, name)
            if needle and needle.lower() not in getattr(listing, name).lower():
                return False
        if self.property_type is not None and listing.property_type != self.property_type:
            return False
        if self.bedrooms is not None and listing.bedrooms != self.bedrooms:
            return False
        if self.bathrooms is not None and listing.bathrooms != self.bathrooms:
            return False
        if (
            self.invite_agent_to_bid is not None
            and listing.invite_agent_to_bid != self.invite_agent_to_bid
        ):
            return False
        if self.min_rent is not None and listing.rent_amount < self.min_rent:
            return False
        if self.max_rent is not None and listing.rent_amount > self.max_rent:
            return False
        return True


@dataclass
class ListingPage:
    listings: list[Listing]
    current_page: int
    page_size: int
    total_count: int
    total_pages: int = field(init=False)

    def __post_init__(self) -> None:
        self.total_pages = math.ceil(self.total_count / self.page_size) if self.page_size else 0


class ListingRepository(ABC):
    """Port for persisting and querying Listing aggregates."""

    @abstractmethod
    async def add(self, listing: Listing) -> None:
        """Insert a new listing; sets listing.version to the stored revision."""
        ...

    @abstractmethod
    async def get_by_id(self, listing_id: UUID) -> Listing | None:
        ...

    @abstractmethod
    async def save(self, listing: Listing) -> None:
        """
        Persist a loaded listing only if nobody saved it since it was read.

        Raises ConcurrentModificationError on a stale version and
        DuplicateBidError if the store already holds a bid from the same agent.
        """
        ...

    @abstractmethod
    async def delete(self, listing_id: UUID) -> bool:
        ...

    @abstractmethod
    async def increment_views(self, listing_id: UUID) -> None:
        ...

    @abstractmethod
    async def search(self, query: ListingQuery) -> tuple[list[Listing], int]:
        """Return (page of listings, total_count)."""
        ...
