"""Tests for the levy ledger, residency and village events."""

from datetime import date
from decimal import Decimal

import pytest

from tcms import events, levy, residents
from tcms.errors import InvalidArgumentError, InvalidStateError, NotFoundError
from tcms.models import LevyPayment
from tcms.schemas import EventStatus, EventType, LevyStatus

THIS_YEAR = date.today().year


@pytest.fixture
def family(db, village):
    return residents.create_family(db, "STAND-001", "12 Main Road, Mothomeng", village.id)


@pytest.fixture
def resident(db, family):
    return residents.add_resident(
        db, family.id, first_name="Palesa", last_name="Mokoena", is_head_of_household=True
    )


class TestLevy:

    def test_payment_makes_family_up_to_date(self, db, family):
        levy.record_payment(db, family.id, Decimal("150.00"), THIS_YEAR)
        assert levy.is_levy_up_to_date(db, family.id)

    def test_untouched_family_is_not_up_to_date(self, db, family):
        assert not levy.is_levy_up_to_date(db, family.id)

    def test_last_year_does_not_count(self, db, family):
        levy.record_payment(db, family.id, Decimal("150.00"), THIS_YEAR - 1)
        assert not levy.is_levy_up_to_date(db, family.id)

    @pytest.mark.parametrize("amount", [None, Decimal("0"), Decimal("-5")])
    def test_missing_amount_uses_default(self, db, family, amount):
        payment = levy.record_payment(db, family.id, amount, THIS_YEAR)
        assert payment.amount == levy.DEFAULT_ANNUAL_LEVY
        assert payment.status == LevyStatus.PAID

    def test_second_payment_overwrites_same_year(self, db, family):
        first = levy.record_payment(db, family.id, Decimal("50.00"), THIS_YEAR)
        second = levy.record_payment(db, family.id, Decimal("80.00"), THIS_YEAR)
        assert first.id == second.id
        assert second.amount == Decimal("80.00")
        assert db.query(LevyPayment).count() == 1

    def test_pending_payment_is_not_up_to_date(self, db, family):
        db.add(LevyPayment(
            family=family, financial_year=THIS_YEAR, amount=Decimal("100"),
            status=LevyStatus.PENDING,
        ))
        db.flush()
        assert not levy.is_levy_up_to_date(db, family.id)

    def test_unknown_family(self, db):
        with pytest.raises(NotFoundError):
            levy.record_payment(db, 999, Decimal("10"), THIS_YEAR)


class TestProofOfResidence:

    def test_good_standing(self, db, family, resident):
        levy.record_payment(db, family.id, None, THIS_YEAR)
        assert residents.generate_proof_of_residence(db, resident.id) == (
            "This confirms that Palesa Mokoena resides at 12 Main Road, Mothomeng "
            "and is in good standing."
        )

    def test_arrears(self, db, resident):
        with pytest.raises(InvalidStateError, match="arrears"):
            residents.generate_proof_of_residence(db, resident.id)

    def test_resident_without_family(self, db):
        from tcms.models import Resident

        orphan = Resident(first_name="No", last_name="Family")
        db.add(orphan)
        db.flush()
        with pytest.raises(NotFoundError):
            residents.generate_proof_of_residence(db, orphan.id)

    def test_unknown_resident(self, db):
        with pytest.raises(NotFoundError):
            residents.generate_proof_of_residence(db, 999)


class TestVillageEvents:

    def test_funeral_has_fixed_fee(self, db, village, family):
        event = events.create_event(
            db, village.id, family.id, EventType.FUNERAL, "Funeral of Ntate Mokoena",
            fee_amount=Decimal("500"), has_death_certificate=True, has_id_copies=True,
        )
        assert event.fee_amount == events.FUNERAL_FEE
        assert event.status == EventStatus.PENDING_APPROVAL

    @pytest.mark.parametrize(
        "certificate,copies", [(False, True), (True, False), (False, False)]
    )
    def test_funeral_requires_documents(self, db, village, family, certificate, copies):
        with pytest.raises(InvalidArgumentError):
            events.create_event(
                db, village.id, family.id, EventType.FUNERAL, "Funeral",
                has_death_certificate=certificate, has_id_copies=copies,
            )

    def test_party_defaults_fee_to_zero(self, db, village, family):
        event = events.create_event(db, village.id, family.id, EventType.PARTY, "Wedding")
        assert event.fee_amount == Decimal("0")

    def test_ceremony_keeps_requested_fee(self, db, village, family):
        event = events.create_event(
            db, village.id, family.id, EventType.TRADITIONAL_CEREMONY, "Initiation",
            fee_amount=Decimal("20"),
        )
        assert event.fee_amount == Decimal("20")

    def test_unknown_family(self, db, village):
        with pytest.raises(NotFoundError):
            events.create_event(db, village.id, 999, EventType.PARTY, "Wedding")
