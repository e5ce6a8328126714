"""Tests for the dispute case workflow."""

from datetime import date

import pytest

from tcms import disputes
from tcms.errors import InvalidArgumentError, InvalidStateError, NotFoundError
from tcms.schemas import CaseStatus, RoleName


@pytest.fixture
def accused(make_member):
    return make_member(age=35)


@pytest.fixture
def case(db, village, accused):
    return disputes.open_case(db, "Boundary dispute", accused.id, village.id)


class TestStatusForNotices:

    @pytest.mark.parametrize(
        "count,expected",
        [
            (0, CaseStatus.OPEN),
            (1, CaseStatus.NOTICE_1_SENT),
            (2, CaseStatus.NOTICE_2_SENT),
            (3, CaseStatus.NOTICE_3_SENT),
            (4, CaseStatus.REFERRED),
            (7, CaseStatus.REFERRED),
        ],
    )
    def test_status_is_function_of_count(self, count, expected):
        assert disputes.status_for_notices(count) == expected


class TestOpenAndFile:

    def test_open_case(self, case, accused, village):
        assert case.status == CaseStatus.OPEN
        assert case.notices_sent == 0
        assert case.opened_date == date.today()
        assert case.closed_date is None
        assert case.accused_id == accused.id
        assert case.organization_id == village.id
        assert case.complainant_id is None

    def test_open_case_unknown_accused(self, db, village):
        with pytest.raises(NotFoundError):
            disputes.open_case(db, "x", 999, village.id)

    def test_open_case_unknown_organization(self, db, accused):
        with pytest.raises(NotFoundError):
            disputes.open_case(db, "x", accused.id, 999)

    def test_file_case_records_complainant(self, db, village, accused, make_member):
        complainant = make_member(age=50)
        filed = disputes.file_case(db, "Stolen goat", complainant.id, accused.id, village.id)
        assert filed.complainant_id == complainant.id
        assert filed.status == CaseStatus.OPEN

    def test_file_case_unknown_complainant(self, db, village, accused):
        with pytest.raises(NotFoundError):
            disputes.file_case(db, "x", 999, accused.id, village.id)


class TestNotices:

    @pytest.mark.parametrize(
        "n,expected",
        [
            (1, CaseStatus.NOTICE_1_SENT),
            (2, CaseStatus.NOTICE_2_SENT),
            (3, CaseStatus.NOTICE_3_SENT),
            (4, CaseStatus.REFERRED),
            (6, CaseStatus.REFERRED),
        ],
    )
    def test_n_notices(self, db, case, n, expected):
        for _ in range(n):
            disputes.send_notice(db, case.id)
        assert case.notices_sent == n
        assert case.status == expected

    def test_closed_case_takes_no_notices(self, db, case):
        disputes.close_case(db, case.id)
        with pytest.raises(InvalidStateError):
            disputes.send_notice(db, case.id)
        assert case.notices_sent == 0


class TestDefense:

    def test_accused_submits_defense(self, db, case, accused):
        disputes.dispute_case(db, case.id, accused.id, "I was elsewhere")
        assert case.defense_statement == "I was elsewhere"
        assert case.defense_date == date.today()

    def test_later_defense_overwrites(self, db, case, accused):
        disputes.dispute_case(db, case.id, accused.id, "First")
        disputes.dispute_case(db, case.id, accused.id, "Second")
        assert case.defense_statement == "Second"

    def test_only_accused_may_defend(self, db, case, make_member):
        stranger = make_member()
        with pytest.raises(InvalidArgumentError):
            disputes.dispute_case(db, case.id, stranger.id, "Not me")
        assert case.defense_statement is None

    def test_closed_case_cannot_be_disputed(self, db, case, accused):
        disputes.close_case(db, case.id)
        with pytest.raises(InvalidStateError):
            disputes.dispute_case(db, case.id, accused.id, "Too late")


class TestAdjudicators:

    def test_assigns_council_members(self, db, case, make_member):
        first = make_member(roles=[RoleName.COUNCIL_MEMBER])
        second = make_member(roles=[RoleName.COUNCIL_MEMBER])

        disputes.assign_adjudicators(db, case.id, [first.id, second.id])

        assert case.adjudicator_ids == sorted([first.id, second.id])

    def test_replaces_previous_panel(self, db, case, make_member):
        first = make_member(roles=[RoleName.COUNCIL_MEMBER])
        second = make_member(roles=[RoleName.COUNCIL_MEMBER])
        disputes.assign_adjudicators(db, case.id, [first.id])
        disputes.assign_adjudicators(db, case.id, [second.id])
        assert case.adjudicator_ids == [second.id]

    def test_duplicate_ids_collapse(self, db, case, councillor):
        disputes.assign_adjudicators(db, case.id, [councillor.id, councillor.id])
        assert case.adjudicator_ids == [councillor.id]

    def test_unknown_id(self, db, case, councillor):
        with pytest.raises(InvalidArgumentError, match="not found"):
            disputes.assign_adjudicators(db, case.id, [councillor.id, 999])

    def test_empty_list_clears_panel(self, db, case, councillor):
        disputes.assign_adjudicators(db, case.id, [councillor.id])
        disputes.assign_adjudicators(db, case.id, [])
        assert case.adjudicator_ids == []

    def test_other_village(self, db, case, make_member, other_village):
        outsider = make_member(org=other_village, roles=[RoleName.COUNCIL_MEMBER])
        with pytest.raises(InvalidArgumentError, match="not in this village"):
            disputes.assign_adjudicators(db, case.id, [outsider.id])

    def test_non_council_member(self, db, case, make_member):
        citizen = make_member(roles=[RoleName.CITIZEN])
        with pytest.raises(InvalidArgumentError, match="not a council member"):
            disputes.assign_adjudicators(db, case.id, [citizen.id])
        assert case.adjudicator_ids == []


class TestClose:

    def test_close_without_adjudication(self, db, case):
        disputes.close_case(db, case.id)
        assert case.status == CaseStatus.CLOSED
        assert case.closed_date == date.today()

    def test_closed_is_terminal(self, db, case):
        disputes.close_case(db, case.id)
        with pytest.raises(InvalidStateError):
            disputes.close_case(db, case.id)

    def test_end_to_end(self, db, case):
        assert (case.status, case.notices_sent) == (CaseStatus.OPEN, 0)
        for _ in range(3):
            disputes.send_notice(db, case.id)
        assert case.status == CaseStatus.NOTICE_3_SENT
        disputes.send_notice(db, case.id)
        assert case.status == CaseStatus.REFERRED
        disputes.close_case(db, case.id)
        assert case.status == CaseStatus.CLOSED
        assert case.closed_date is not None


class TestListCases:

    def test_filters(self, db, village, other_village, accused, make_member):
        here = disputes.open_case(db, "a", accused.id, village.id)
        elsewhere = disputes.open_case(db, "b", make_member(org=other_village).id, other_village.id)
        closed = disputes.open_case(db, "c", accused.id, village.id)
        disputes.close_case(db, closed.id)

        assert disputes.list_cases(db, org_id=village.id) == [here, closed]
        assert disputes.list_cases(db, status=CaseStatus.CLOSED) == [closed]
        assert disputes.list_cases(db, org_id=other_village.id) == [elsewhere]
        assert disputes.list_cases(db, accused_id=accused.id, limit=1, offset=1) == [closed]
