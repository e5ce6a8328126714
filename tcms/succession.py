"""Heir designation.

Only an NTONA or CHIEF may name an heir, the heir must be FAMILY lineage
and at least 18, and both must belong to the same organization.

A leader may end up with several heirs if this is called repeatedly with
different targets; `directory.find_heirs` lists them.
"""

import logging

from sqlalchemy.orm import Session

from . import directory
from .eligibility import HEIR_MIN_AGE, meets_age
from .errors import InvalidArgumentError
from .models import Member
from .organizations import require_same_organization
from .schemas import LEADERSHIP_ROLES, Lineage

logger = logging.getLogger(__name__)


def define_heir(db: Session, leader_id: int, heir_id: int) -> Member:
    leader = directory.get_member(db, leader_id)
    heir = directory.get_member(db, heir_id)

    if heir.lineage != Lineage.FAMILY:
        raise InvalidArgumentError("Heir must be from the family lineage")
    if not meets_age(heir, HEIR_MIN_AGE):
        raise InvalidArgumentError(f"Heir must be at least {HEIR_MIN_AGE} years old")
    if not any(leader.has_role(role) for role in LEADERSHIP_ROLES):
        raise InvalidArgumentError("Only Ntona or Chief can define an heir")
    require_same_organization(
        leader.organization_id,
        heir.organization_id,
        "Leader and heir must belong to the same organization",
    )

    heir.heir_to = leader
    directory.save(db, heir)
    logger.info(f"Member {heir_id} designated heir to leader {leader_id}")
    return heir
