"""Eligibility rules for council seats and succession.

Both checks are pure predicates over state fetched at call time.

Council: age >= 21, not disqualified, and no open dispute case
(OPEN or any NOTICE_n_SENT) against the member.

Heir: FAMILY lineage and age >= 18.

A member with no recorded birth date has no known age and fails every
age-based rule.
"""

from sqlalchemy.orm import Session

from . import directory
from .models import Member
from .schemas import OPEN_CASE_STATUSES, Lineage

COUNCIL_MIN_AGE = 21
HEIR_MIN_AGE = 18


def meets_age(member: Member, minimum: int) -> bool:
    age = member.age
    return age is not None and age >= minimum


def has_open_case(db: Session, member: Member) -> bool:
    return directory.exists_open_case_for_accused(db, member.id, OPEN_CASE_STATUSES)


def is_council_eligible(db: Session, member: Member) -> bool:
    if member.disqualified:
        return False
    if not meets_age(member, COUNCIL_MIN_AGE):
        return False
    return not has_open_case(db, member)


def is_heir_eligible(member: Member) -> bool:
    return member.lineage == Lineage.FAMILY and meets_age(member, HEIR_MIN_AGE)
