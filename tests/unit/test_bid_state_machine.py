"""Unit tests for the bid state machine."""
import pytest

from src.domain.enums.listing_status import BidStatus
from src.domain.errors import InvalidBidTransitionError
from src.domain.state_machine.bid_state_machine import BidStateMachine


@pytest.fixture()
def sm() -> BidStateMachine:
    return BidStateMachine()


class TestValidTransitions:
    def test_pending_to_accepted(self, sm: BidStateMachine) -> None:
        assert sm.can_transition(BidStatus.PENDING, BidStatus.ACCEPTED) is True

    def test_pending_to_rejected(self, sm: BidStateMachine) -> None:
        assert sm.can_transition(BidStatus.PENDING, BidStatus.REJECTED) is True

    def test_rejected_bid_can_still_be_accepted(self, sm: BidStateMachine) -> None:
        assert sm.can_transition(BidStatus.REJECTED, BidStatus.ACCEPTED) is True


class TestInvalidTransitions:
    def test_accepted_is_terminal(self, sm: BidStateMachine) -> None:
        for status in BidStatus:
            assert sm.can_transition(BidStatus.ACCEPTED, status) is False

    def test_cannot_return_to_pending(self, sm: BidStateMachine) -> None:
        assert sm.can_transition(BidStatus.REJECTED, BidStatus.PENDING) is False

    def test_validate_raises_with_allowed_list(self, sm: BidStateMachine) -> None:
        with pytest.raises(InvalidBidTransitionError) as exc_info:
            sm.validate_transition(BidStatus.REJECTED, BidStatus.PENDING)
        assert exc_info.value.from_status == "rejected"
        assert exc_info.value.to_status == "pending"
        assert "['accepted']" in exc_info.value.message

    def test_validate_accepted_to_rejected_raises(self, sm: BidStateMachine) -> None:
        with pytest.raises(InvalidBidTransitionError):
            sm.validate_transition(BidStatus.ACCEPTED, BidStatus.REJECTED)


class TestAllowedTransitions:
    def test_pending(self, sm: BidStateMachine) -> None:
        assert sm.get_allowed_transitions(BidStatus.PENDING) == {
            BidStatus.ACCEPTED,
            BidStatus.REJECTED,
        }

    def test_accepted_has_none(self, sm: BidStateMachine) -> None:
        assert sm.get_allowed_transitions(BidStatus.ACCEPTED) == frozenset()

    def test_only_accepted_is_terminal(self) -> None:
        assert [s for s in BidStatus if s.is_terminal] == [BidStatus.ACCEPTED]
