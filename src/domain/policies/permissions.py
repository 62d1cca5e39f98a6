from enum import Enum
from typing import TYPE_CHECKING

from src.domain.enums.user_role import UserRole
from src.domain.value_objects import Principal

if TYPE_CHECKING:
    from src.domain.entities.listing import Listing


class ListingAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    SUBMIT_BID = "submit_bid"
    ACCEPT_BID = "accept_bid"
    REJECT_BID = "reject_bid"
    VIEW_BIDS = "view_bids"


_OWNER_ACTIONS = frozenset(
    {
        ListingAction.UPDATE,
        ListingAction.DELETE,
        ListingAction.ACCEPT_BID,
        ListingAction.REJECT_BID,
        ListingAction.VIEW_BIDS,
    }
)


def can_mutate(principal: Principal, listing: "Listing | None", action: ListingAction) -> bool:
    """
    Single capability check used by the service before touching an aggregate.

    CREATE needs no listing; every other action is evaluated against it.
    """
    if action is ListingAction.CREATE:
        return principal.role.can_create_listings
    if listing is None:
        return False
    if action is ListingAction.SUBMIT_BID:
        return principal.role is UserRole.AGENT
    if action in _OWNER_ACTIONS:
        return listing.is_owned_by(principal.id)
    return False
