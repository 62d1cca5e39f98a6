from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from src.domain.enums.listing_status import BidStatus
from src.domain.errors import AgentAlreadySelectedError, BidNotFoundError, DuplicateBidError
from src.domain.policies.normalization import clean_bid_fields
from src.domain.state_machine.bid_state_machine import BidStateMachine

_state_machine = BidStateMachine()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Bid:
    """An agent's commission proposal. Only exists inside a listing's ledger."""

    agent_id: str
    proposed_commission: Decimal
    cover_letter: str
    experience: str | None = None
    id: UUID = field(default_factory=uuid4)
    status: BidStatus = BidStatus.PENDING
    submitted_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def _move_to(self, status: BidStatus, now: datetime) -> None:
        _state_machine.validate_transition(self.status, status)
        self.status = status
        self.updated_at = now


class BidLedger:
    """
    Ordered bids attached to one listing.

    Enforces one bid per agent and at most one accepted bid. Bids keep
    insertion order; status changes never re-sort them.
    """

    def __init__(self, bids: Iterable[Bid] = ()) -> None:
        self._bids: list[Bid] = list(bids)

    def __iter__(self) -> Iterator[Bid]:
        return iter(self._bids)

    def __len__(self) -> int:
        return len(self._bids)

    def get(self, bid_id: UUID) -> Bid | None:
        return next((b for b in self._bids if b.id == bid_id), None)

    def find_by_agent(self, agent_id: str) -> Bid | None:
        return next((b for b in self._bids if b.agent_id == agent_id), None)

    @property
    def accepted(self) -> Bid | None:
        return next((b for b in self._bids if b.status is BidStatus.ACCEPTED), None)

    @property
    def pending_count(self) -> int:
        return sum(1 for b in self._bids if b.status is BidStatus.PENDING)

    def submit(
        self,
        agent_id: str,
        proposed_commission: object,
        cover_letter: object,
        experience: object = None,
    ) -> Bid:
        if self.find_by_agent(agent_id) is not None:
            raise DuplicateBidError(agent_id)

        commission, letter, experience_text = clean_bid_fields(
            proposed_commission, cover_letter, experience
        )
        bid = Bid(
            agent_id=agent_id,
            proposed_commission=commission,
            cover_letter=letter,
            experience=experience_text,
        )
        self._bids.append(bid)
        return bid

    def accept(self, bid_id: UUID) -> Bid:
        """
        Accept one bid and reject every other one.

        Accepting the bid that is already accepted only re-runs the sweep;
        accepting a different bid once an agent is selected is refused.
        """
        bid = self._require(bid_id)
        current = self.accepted
        if current is not None and current.id != bid.id:
            raise AgentAlreadySelectedError()

        now = _utcnow()
        if bid.status is not BidStatus.ACCEPTED:
            bid._move_to(BidStatus.ACCEPTED, now)

        for other in self._bids:
            if other is not bid and other.status is not BidStatus.REJECTED:
                other._move_to(BidStatus.REJECTED, now)
        return bid

    def reject(self, bid_id: UUID) -> Bid:
        bid = self._require(bid_id)
        if bid.status is not BidStatus.REJECTED:
            bid._move_to(BidStatus.REJECTED, _utcnow())
        return bid

    def _require(self, bid_id: UUID) -> Bid:
        bid = self.get(bid_id)
        if bid is None:
            raise BidNotFoundError(bid_id)
        return bid
