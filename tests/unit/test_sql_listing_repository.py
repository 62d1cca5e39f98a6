"""Unit tests for the SQLAlchemy listing repository, run against a mocked session."""
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import Text
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from src.application.interfaces.listing_repository import ListingQuery
from src.domain.entities.listing import Listing
from src.domain.enums.listing_attributes import PreferredAgentType, VideoPlatform
from src.domain.enums.listing_status import BidStatus
from src.domain.enums.user_role import UserRole
from src.domain.errors import (
    ConcurrentModificationError,
    DuplicateBidError,
    ListingNotFoundError,
)
from src.domain.value_objects import AgentInviteDetails, Creator, Photo, VideoLink
from src.infrastructure.database.models import ListingBidModel, ListingModel
from src.infrastructure.database.repositories.listing_repository import (
    SqlAlchemyListingRepository,
    _invite_from_json,
    _invite_to_json,
    _sync_bids,
    _to_domain,
    _to_model,
)


def _make_listing() -> Listing:
    return Listing(
        creator=Creator(id="landlord-1", role=UserRole.LANDLORD),
        title="Two bedroom flat",
        state="Lagos",
        locality="Ikeja",
        area="Alausa",
        street_estate_neighbourhood="Obafemi Awolowo Way",
        property_type="Flat",
        bedrooms=2,
        facilities=["Water", "Parking"],
        rent_amount=Decimal("1200000"),
        images=[Photo(url="https://img.example/1.jpg", is_cover=True, storage_id="listings/1")],
        video_links=[
            VideoLink(url="https://youtu.be/abc", platform=VideoPlatform.YOUTUBE, title="Tour")
        ],
        invite_agent_to_bid=True,
        agent_invite_details=AgentInviteDetails(
            preferred_agent_type=PreferredAgentType.LOCAL,
            additional_requirements="Must know Ikeja",
            commission_rate=Decimal("7.5"),
        ),
        version=1,
    )


def _stored(listing: Listing) -> ListingModel:
    model = _to_model(listing)
    model.version = listing.version
    return model


def _make_session(model: ListingModel | None) -> MagicMock:
    session = MagicMock()
    session.get = AsyncMock(return_value=model)
    session.flush = AsyncMock()
    session.execute = AsyncMock()
    return session


class TestMapping:
    def test_round_trip_keeps_listing_fields(self) -> None:
        listing = _make_listing()
        listing.title = "x" * 600
        listing.rent_amount = Decimal("1200.505")

        restored = _to_domain(_stored(listing))

        assert restored.id == listing.id
        assert restored.creator == listing.creator
        assert restored.title == "x" * 600
        assert restored.rent_amount == Decimal("1200.505")
        assert restored.facilities == ["Water", "Parking"]
        assert restored.images == listing.images
        assert restored.video_links == listing.video_links
        assert restored.agent_invite_details == listing.agent_invite_details
        assert restored.status == listing.status
        assert restored.expires_at == listing.expires_at
        assert restored.version == 1

    def test_round_trip_keeps_bids_and_selected_agent(self) -> None:
        listing = _make_listing()
        chosen = listing.submit_bid("agent-1", UserRole.AGENT, "5", "I know the area")
        listing.submit_bid("agent-2", UserRole.AGENT, "6", "Ten years in Ikeja")
        listing.accept_bid(chosen.id, "landlord-1")

        restored = _to_domain(_stored(listing))

        assert [b.agent_id for b in restored.bids] == ["agent-1", "agent-2"]
        assert [b.status for b in restored.bids] == [BidStatus.ACCEPTED, BidStatus.REJECTED]
        assert restored.selected_agent == listing.selected_agent
        assert restored.agent_invite_details is None
        assert restored.invite_agent_to_bid is False

    def test_sync_appends_new_bids_and_updates_status_in_place(self) -> None:
        listing = _make_listing()
        first = listing.submit_bid("agent-1", UserRole.AGENT, "5", "First")
        model = _stored(listing)
        row = model.bids[0]

        listing.submit_bid("agent-2", UserRole.AGENT, "6", "Second")
        listing.reject_bid(first.id, "landlord-1")
        _sync_bids(listing, model)

        assert len(model.bids) == 2
        assert model.bids[0] is row
        assert row.status is BidStatus.REJECTED
        assert [b.position for b in model.bids] == [0, 1]
        assert model.bids[1].agent_id == "agent-2"


class TestInviteDetailsJson:
    def test_round_trip_with_commission(self) -> None:
        details = AgentInviteDetails(
            preferred_agent_type=PreferredAgentType.PREMIUM,
            additional_requirements="Weekend viewings",
            commission_rate=Decimal("10.25"),
        )

        assert _invite_from_json(_invite_to_json(details)) == details

    def test_missing_commission_is_omitted_and_read_back_as_none(self) -> None:
        data = _invite_to_json(AgentInviteDetails(preferred_agent_type=PreferredAgentType.LOCAL))

        assert data is not None
        assert "commission_rate" not in data
        restored = _invite_from_json(data)
        assert restored is not None
        assert restored.commission_rate is None

    def test_empty_object_reads_as_defaults(self) -> None:
        assert _invite_from_json({}) == AgentInviteDetails()

    def test_none_stays_none(self) -> None:
        assert _invite_to_json(None) is None
        assert _invite_from_json(None) is None


class TestSave:
    @pytest.mark.asyncio
    async def test_copies_changes_onto_loaded_row(self) -> None:
        listing = _make_listing()
        model = _stored(listing)
        session = _make_session(model)
        repo = SqlAlchemyListingRepository(session)

        listing.title = "Renamed"
        await repo.save(listing)

        assert model.title == "Renamed"
        session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_row_raises_not_found(self) -> None:
        repo = SqlAlchemyListingRepository(_make_session(None))

        with pytest.raises(ListingNotFoundError):
            await repo.save(_make_listing())

    @pytest.mark.asyncio
    async def test_version_mismatch_is_refused_before_flush(self) -> None:
        listing = _make_listing()
        model = _stored(listing)
        model.version = 2
        session = _make_session(model)
        repo = SqlAlchemyListingRepository(session)

        with pytest.raises(ConcurrentModificationError):
            await repo.save(listing)

        session.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_stale_data_becomes_concurrent_modification(self) -> None:
        listing = _make_listing()
        session = _make_session(_stored(listing))
        session.flush.side_effect = StaleDataError(
            "UPDATE statement on table 'listings' expected to update 1 row(s); 0 were matched."
        )
        repo = SqlAlchemyListingRepository(session)

        with pytest.raises(ConcurrentModificationError):
            await repo.save(listing)

    @pytest.mark.asyncio
    async def test_bid_unique_violation_becomes_duplicate_bid(self) -> None:
        listing = _make_listing()
        session = _make_session(_stored(listing))
        session.flush.side_effect = IntegrityError(
            "INSERT INTO listing_bids ...",
            {},
            Exception('duplicate key value violates unique constraint "uq_listing_bids_listing_agent"'),
        )
        repo = SqlAlchemyListingRepository(session)

        with pytest.raises(DuplicateBidError):
            await repo.save(listing)

    @pytest.mark.asyncio
    async def test_other_integrity_errors_propagate(self) -> None:
        listing = _make_listing()
        session = _make_session(_stored(listing))
        session.flush.side_effect = IntegrityError(
            "INSERT INTO listing_bids ...",
            {},
            Exception('insert violates foreign key constraint "listing_bids_listing_id_fkey"'),
        )
        repo = SqlAlchemyListingRepository(session)

        with pytest.raises(IntegrityError):
            await repo.save(listing)


class TestSearch:
    @pytest.mark.asyncio
    async def test_location_filters_treat_wildcards_literally(self) -> None:
        rows = MagicMock()
        rows.scalars.return_value.all.return_value = []
        count = MagicMock()
        count.scalar_one.return_value = 0
        session = _make_session(None)
        session.execute = AsyncMock(side_effect=[rows, count])
        repo = SqlAlchemyListingRepository(session)

        listings, total = await repo.search(ListingQuery(state="100%", area="a_b"))

        assert listings == []
        assert total == 0
        compiled = session.execute.await_args_list[0].args[0].compile(
            dialect=postgresql.dialect()
        )
        assert "ESCAPE '/'" in str(compiled)
        assert "100/%" in compiled.params.values()
        assert "a/_b" in compiled.params.values()


class TestColumnTypes:
    def test_free_text_columns_are_unbounded(self) -> None:
        columns = ListingModel.__table__.c
        for name in (
            "creator_id",
            "title",
            "state",
            "locality",
            "area",
            "street_estate_neighbourhood",
            "property_type",
            "selected_agent_id",
        ):
            assert isinstance(columns[name].type, Text), name
        assert isinstance(ListingBidModel.__table__.c.agent_id.type, Text)

    def test_money_columns_keep_every_digit(self) -> None:
        for column in (
            ListingModel.__table__.c.rent_amount,
            ListingModel.__table__.c.selected_agent_commission,
            ListingBidModel.__table__.c.proposed_commission,
        ):
            assert column.type.precision is None, column.name
            assert column.type.scale is None, column.name
