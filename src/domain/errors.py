"""
Domain error taxonomy.

The API layer maps each class to an HTTP status in one place
(src/api/errors.py); nothing in here knows about HTTP.
"""
from uuid import UUID


class DomainError(Exception):
    """Base class for every error the listing service raises on purpose."""

    default_message = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(DomainError):
    """One or more fields are missing or out of range."""

    default_message = "Validation failed"

    def __init__(self, errors: list[str], message: str | None = None) -> None:
        self.errors = list(errors)
        super().__init__(message)


class UnauthorizedError(DomainError):
    default_message = "Not authorized"


class ForbiddenError(DomainError):
    default_message = "You are not allowed to perform this action"


class NotFoundError(DomainError):
    default_message = "Not found"


class ListingNotFoundError(NotFoundError):
    def __init__(self, listing_id: UUID) -> None:
        self.listing_id = listing_id
        super().__init__("Listing not found")


class BidNotFoundError(NotFoundError):
    def __init__(self, bid_id: UUID) -> None:
        self.bid_id = bid_id
        super().__init__("Bid not found")


class DuplicateBidError(DomainError):
    default_message = "Agent has already submitted a bid for this listing"

    def __init__(self, agent_id: str | None = None) -> None:
        self.agent_id = agent_id
        super().__init__()


class NotAcceptingBidsError(DomainError):
    default_message = "This listing is not accepting agent bids"


class NotActiveError(DomainError):
    default_message = "This listing is not active"


class ConflictError(DomainError):
    default_message = "Conflict"


class ConcurrentModificationError(ConflictError):
    """The stored listing changed after it was loaded."""

    def __init__(self, listing_id: UUID) -> None:
        self.listing_id = listing_id
        super().__init__("Listing was modified by another request, please retry")


class AgentAlreadySelectedError(ConflictError):
    default_message = "An agent has already been selected for this listing"


class InvalidBidTransitionError(ConflictError):
    def __init__(self, from_status: str, to_status: str, allowed: list[str]) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cannot move bid from {from_status} to {to_status}. "
            f"Allowed transitions: {allowed}"
        )


class UploadError(DomainError):
    default_message = "Image upload failed"


class UnexpectedError(DomainError):
    """Wraps anything unrecognised; the message never carries internal detail."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Failed to {operation.replace('_', ' ')}")
