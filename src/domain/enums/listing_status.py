from enum import Enum


class ListingStatus(str, Enum):
    """Lifecycle status of a listing on the marketplace."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    RENTED = "rented"
    UNDER_NEGOTIATION = "under_negotiation"


class BidStatus(str, Enum):
    """All possible states of an agent bid."""

    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        """An accepted bid cannot be transitioned out of."""
        return self is BidStatus.ACCEPTED
