from src.domain.enums.listing_status import BidStatus
from src.domain.errors import InvalidBidTransitionError

# Mapping of valid transitions: from_status -> set of allowed to_statuses
VALID_TRANSITIONS: dict[BidStatus, frozenset[BidStatus]] = {
    BidStatus.PENDING: frozenset({BidStatus.ACCEPTED, BidStatus.REJECTED}),
    # A landlord may still pick a bid they turned down earlier
    BidStatus.REJECTED: frozenset({BidStatus.ACCEPTED}),
    BidStatus.ACCEPTED: frozenset(),
}


class BidStateMachine:
    """
    Validates status transitions for a single agent bid.

    Stateless; call validate_transition() with explicit statuses.
    """

    def can_transition(self, from_status: BidStatus, to_status: BidStatus) -> bool:
        """Return True if moving from_status → to_status is permitted."""
        if from_status.is_terminal:
            return False
        return to_status in VALID_TRANSITIONS.get(from_status, frozenset())

    def validate_transition(self, from_status: BidStatus, to_status: BidStatus) -> None:
        """Raise InvalidBidTransitionError if the transition is not permitted."""
        if not self.can_transition(from_status, to_status):
            raise InvalidBidTransitionError(
                from_status.value,
                to_status.value,
                sorted(s.value for s in self.get_allowed_transitions(from_status)),
            )

    def get_allowed_transitions(self, from_status: BidStatus) -> frozenset[BidStatus]:
        return VALID_TRANSITIONS.get(from_status, frozenset())
