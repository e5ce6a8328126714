"""Tests for land stand allocation."""

from datetime import date

import pytest
from sqlalchemy import update
from sqlalchemy.orm.exc import StaleDataError

from tcms import land
from tcms.errors import InvalidArgumentError, InvalidStateError, NotFoundError
from tcms.models import LandStand
from tcms.schemas import RoleName, StandType


@pytest.fixture
def stand(db, village):
    return land.create_stand(db, "STAND-001", StandType.RESIDENTIAL, 600.0, village.id)


class TestAllocate:

    def test_allocates(self, db, stand, make_member):
        member = make_member()
        land.allocate_stand(db, stand.id, member.id)
        assert stand.allocated
        assert stand.allocated_to_id == member.id
        assert stand.allocation_date == date.today()
        assert stand.fee_paid is False

    def test_already_allocated_fails_for_anyone(self, db, stand, make_member):
        owner = make_member()
        land.allocate_stand(db, stand.id, owner.id)
        for requester in (owner, make_member()):
            with pytest.raises(InvalidStateError):
                land.allocate_stand(db, stand.id, requester.id)
        assert stand.allocated_to_id == owner.id

    def test_other_organization(self, db, stand, make_member, other_village):
        with pytest.raises(InvalidArgumentError):
            land.allocate_stand(db, stand.id, make_member(org=other_village).id)
        assert not stand.allocated

    def test_stand_without_organization_accepts_anyone(self, db, make_member, other_village):
        unassigned = land.create_stand(db, "STAND-999")
        land.allocate_stand(db, unassigned.id, make_member(org=other_village).id)
        assert unassigned.allocated

    def test_unknown_stand(self, db, make_member):
        with pytest.raises(NotFoundError):
            land.allocate_stand(db, 999, make_member().id)

    def test_unknown_member(self, db, stand):
        with pytest.raises(NotFoundError):
            land.allocate_stand(db, stand.id, 999)

    def test_lost_race_is_rejected(self, db, stand, make_member):
        rival, member = make_member(), make_member()
        # Another transaction allocated the stand after we loaded it
        db.execute(
            update(LandStand)
            .where(LandStand.id == stand.id)
            .values(allocated=True, allocated_to_id=rival.id)
            .execution_options(synchronize_session=False)
        )
        assert stand.allocated is False

        with pytest.raises(InvalidStateError):
            land.allocate_stand(db, stand.id, member.id)

    def test_allocation_bumps_version(self, db, stand, make_member):
        before = stand.version
        land.allocate_stand(db, stand.id, make_member().id)
        assert stand.version == before + 1


class TestApply:

    def test_records_application_only(self, db, stand, make_member):
        member = make_member()
        land.apply_for_stand(db, stand.id, member.id)
        assert stand.applicant_id == member.id
        assert stand.application_date == date.today()
        assert not stand.allocated

    def test_allocated_stand(self, db, stand, make_member):
        land.allocate_stand(db, stand.id, make_member().id)
        with pytest.raises(InvalidStateError):
            land.apply_for_stand(db, stand.id, make_member().id)

    def test_other_organization(self, db, stand, make_member, other_village):
        with pytest.raises(InvalidArgumentError):
            land.apply_for_stand(db, stand.id, make_member(org=other_village).id)

    def test_stale_write_is_detected(self, db, stand, make_member):
        db.execute(
            update(LandStand)
            .where(LandStand.id == stand.id)
            .values(version=LandStand.version + 1)
            .execution_options(synchronize_session=False)
        )
        with pytest.raises(StaleDataError):
            land.apply_for_stand(db, stand.id, make_member().id)


class TestCouncilAssign:

    def test_council_member_assigns(self, db, stand, councillor, make_member):
        beneficiary = make_member()
        land.assign_stand_by_council(db, stand.id, councillor.id, beneficiary.id)
        assert stand.allocated_to_id == beneficiary.id

    def test_requires_council_role(self, db, stand, make_member):
        with pytest.raises(InvalidArgumentError):
            land.assign_stand_by_council(db, stand.id, make_member().id, make_member().id)

    def test_council_member_of_other_village(self, db, stand, make_member, other_village):
        outsider = make_member(org=other_village, roles=[RoleName.COUNCIL_MEMBER])
        with pytest.raises(InvalidArgumentError):
            land.assign_stand_by_council(db, stand.id, outsider.id, make_member().id)

    def test_already_allocated(self, db, stand, councillor, make_member):
        land.allocate_stand(db, stand.id, make_member().id)
        with pytest.raises(InvalidStateError):
            land.assign_stand_by_council(db, stand.id, councillor.id, make_member().id)


class TestFeeAndSearch:

    def test_fee_paid_on_allocated_stand(self, db, stand, make_member):
        land.allocate_stand(db, stand.id, make_member().id)
        land.mark_stand_fee_paid(db, stand.id)
        assert stand.fee_paid

    def test_fee_on_unallocated_stand(self, db, stand):
        with pytest.raises(InvalidStateError):
            land.mark_stand_fee_paid(db, stand.id)

    def test_search(self, db, village, stand, make_member):
        farm = land.create_stand(db, "FARM-01", StandType.AGRICULTURAL, 5000.0, village.id)
        land.allocate_stand(db, farm.id, make_member().id)

        assert land.search_stands(db, organization_id=village.id) == [stand, farm]
        assert land.search_stands(db, allocated=False) == [stand]
        assert land.search_stands(db, stand_type=StandType.AGRICULTURAL) == [farm]
        assert land.search_stands(db, limit=1, offset=1) == [farm]
