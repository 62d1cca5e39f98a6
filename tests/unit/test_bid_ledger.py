"""Unit tests for BidLedger: one bid per agent, at most one accepted."""
from decimal import Decimal
from uuid import uuid4

import pytest

from src.domain.entities.bid import BidLedger
from src.domain.enums.listing_status import BidStatus
from src.domain.errors import (
    AgentAlreadySelectedError,
    BidNotFoundError,
    DuplicateBidError,
    InvalidBidTransitionError,
    NotFoundError,
    ValidationError,
)


def _ledger_with(*agent_ids: str) -> BidLedger:
    ledger = BidLedger()
    for agent_id in agent_ids:
        ledger.submit(agent_id, "5%", f"Cover letter from {agent_id}")
    return ledger


class TestSubmit:
    def test_appends_pending_bid(self) -> None:
        ledger = BidLedger()
        bid = ledger.submit("agent-1", 50000, "I know the area well", "5 years")

        assert len(ledger) == 1
        assert bid.status == BidStatus.PENDING
        assert bid.proposed_commission == Decimal("50000")
        assert bid.experience == "5 years"

    def test_parses_formatted_commission(self) -> None:
        bid = BidLedger().submit("agent-1", "₦75,000.50", "Hello")
        assert bid.proposed_commission == Decimal("75000.50")

    def test_keeps_insertion_order(self) -> None:
        ledger = _ledger_with("a", "b", "c")
        assert [b.agent_id for b in ledger] == ["a", "b", "c"]

    def test_second_bid_from_same_agent_is_rejected(self) -> None:
        ledger = _ledger_with("agent-1")

        with pytest.raises(DuplicateBidError):
            ledger.submit("agent-1", 10, "Trying again")

        assert len(ledger) == 1

    def test_missing_cover_letter(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            BidLedger().submit("agent-1", 10, "   ")
        assert exc_info.value.errors == ["coverLetter is required"]

    def test_cover_letter_too_long(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            BidLedger().submit("agent-1", 10, "x" * 1001)
        assert exc_info.value.errors == ["coverLetter must be at most 1000 characters"]

    def test_missing_commission(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            BidLedger().submit("agent-1", None, "Hello")
        assert "proposedCommission is required" in exc_info.value.errors

    def test_zero_commission_is_allowed(self) -> None:
        bid = BidLedger().submit("agent-1", 0, "Hello")
        assert bid.proposed_commission == Decimal("0")


class TestAccept:
    def test_rejects_every_other_bid(self) -> None:
        ledger = _ledger_with("a", "b", "c")
        target = ledger.find_by_agent("b")
        assert target is not None

        ledger.accept(target.id)

        assert [b.status for b in ledger] == [
            BidStatus.REJECTED,
            BidStatus.ACCEPTED,
            BidStatus.REJECTED,
        ]
        assert ledger.accepted is target

    def test_reaccepting_same_bid_keeps_single_accepted(self) -> None:
        ledger = _ledger_with("a", "b")
        target = ledger.find_by_agent("a")
        assert target is not None

        ledger.accept(target.id)
        ledger.accept(target.id)

        assert sum(1 for b in ledger if b.status == BidStatus.ACCEPTED) == 1

    def test_accepting_a_different_bid_after_selection_fails(self) -> None:
        ledger = _ledger_with("a", "b")
        first, second = list(ledger)
        ledger.accept(first.id)

        with pytest.raises(AgentAlreadySelectedError):
            ledger.accept(second.id)

        assert ledger.accepted is first
        assert second.status == BidStatus.REJECTED

    def test_previously_rejected_bid_can_be_accepted(self) -> None:
        ledger = _ledger_with("a", "b")
        first, second = list(ledger)
        ledger.reject(first.id)

        ledger.accept(first.id)

        assert first.status == BidStatus.ACCEPTED
        assert second.status == BidStatus.REJECTED

    def test_unknown_bid(self) -> None:
        ledger = _ledger_with("a")
        with pytest.raises(BidNotFoundError):
            ledger.accept(uuid4())


class TestReject:
    def test_rejects_pending_bid(self) -> None:
        ledger = _ledger_with("a", "b")
        first, second = list(ledger)

        ledger.reject(first.id)

        assert first.status == BidStatus.REJECTED
        assert second.status == BidStatus.PENDING
        assert ledger.pending_count == 1

    def test_rejecting_twice_is_a_no_op(self) -> None:
        ledger = _ledger_with("a")
        bid = next(iter(ledger))
        ledger.reject(bid.id)
        updated_at = bid.updated_at

        ledger.reject(bid.id)

        assert bid.status == BidStatus.REJECTED
        assert bid.updated_at == updated_at

    def test_accepted_bid_cannot_be_rejected(self) -> None:
        ledger = _ledger_with("a")
        bid = next(iter(ledger))
        ledger.accept(bid.id)

        with pytest.raises(InvalidBidTransitionError):
            ledger.reject(bid.id)

    def test_unknown_bid_leaves_ledger_unchanged(self) -> None:
        ledger = _ledger_with("a", "b")
        before = [(b.id, b.status) for b in ledger]

        with pytest.raises(NotFoundError):
            ledger.reject(uuid4())

        assert [(b.id, b.status) for b in ledger] == before
