"""Family levy ledger: one payment row per family and financial year."""

import logging
import os
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from . import directory
from .models import LevyPayment
from .schemas import LevyStatus

logger = logging.getLogger(__name__)

DEFAULT_ANNUAL_LEVY = Decimal(os.getenv("DEFAULT_ANNUAL_LEVY", "100.00"))


def record_payment(
    db: Session, family_id: int, amount: Decimal | None, year: int
) -> LevyPayment:
    """Record (or overwrite) the family's payment for `year` as PAID.

    A missing or non-positive amount is replaced by the default annual levy.
    """
    logger.info(f"Recording levy payment for family {family_id}: amount {amount} year {year}")
    family = directory.get_family(db, family_id)

    effective_amount = amount if amount is not None and amount > 0 else DEFAULT_ANNUAL_LEVY

    payment = directory.find_payment_by_family_and_year(db, family_id, year)
    if payment is None:
        payment = LevyPayment(family=family, financial_year=year)
    payment.amount = effective_amount
    payment.payment_date = date.today()
    payment.status = LevyStatus.PAID

    directory.save(db, payment)
    logger.info(
        f"Levy payment {payment.id} recorded for family {family_id} year {year} "
        f"amount {payment.amount} status {payment.status.value}"
    )
    return payment


def is_levy_up_to_date(db: Session, family_id: int) -> bool:
    """True only if a PAID payment exists for the current calendar year."""
    current_year = date.today().year
    payment = directory.find_payment_by_family_and_year(db, family_id, current_year)
    up_to_date = payment is not None and payment.status == LevyStatus.PAID
    logger.info(f"Levy status for family {family_id} in {current_year}: up_to_date={up_to_date}")
    return up_to_date
