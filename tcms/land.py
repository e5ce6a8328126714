"""Land stand allocation.

Every operation on a stand is guarded by "not already allocated". Reading
the flag and then writing it would let two simultaneous allocations both
pass the check, so the allocation itself is a single conditional UPDATE
(`... WHERE allocated = false`) that also bumps the row version. Whoever
loses the race sees zero affected rows and gets InvalidStateError. Other
writes go through the ORM and are protected by the version column; a stale
write surfaces as sqlalchemy.orm.exc.StaleDataError.
"""

import logging
from datetime import date

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from . import directory
from .errors import InvalidArgumentError, InvalidStateError
from .models import LandStand, Member
from .organizations import require_same_organization
from .schemas import RoleName, StandType

logger = logging.getLogger(__name__)

SAME_ORGANIZATION_MESSAGE = "Member and stand must belong to the same organization"


def _require_unallocated(stand: LandStand) -> None:
    if stand.allocated:
        raise InvalidStateError(f"Stand {stand.stand_number} is already allocated")


def _claim(db: Session, stand: LandStand, member: Member) -> LandStand:
    """Atomically flip `allocated` from false to true for this stand."""
    result = db.execute(
        update(LandStand)
        .where(LandStand.id == stand.id, LandStand.allocated.is_(False))
        .values(
            allocated=True,
            allocated_to_id=member.id,
            allocation_date=date.today(),
            fee_paid=False,
            version=LandStand.version + 1,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise InvalidStateError(f"Stand {stand.stand_number} is already allocated")
    db.refresh(stand)
    return stand


def create_stand(
    db: Session,
    stand_number: str,
    stand_type: StandType = StandType.RESIDENTIAL,
    size_in_square_meters: float = 0.0,
    organization_id: int | None = None,
) -> LandStand:
    org = directory.get_organization(db, organization_id) if organization_id is not None else None
    stand = LandStand(
        stand_number=stand_number,
        stand_type=stand_type,
        size_in_square_meters=size_in_square_meters,
        organization=org,
    )
    directory.save(db, stand)
    logger.info(f"Created stand {stand.id} ({stand_number}) in organization {organization_id}")
    return stand


def allocate_stand(db: Session, stand_id: int, member_id: int) -> LandStand:
    """Allocate a stand directly to a member, bypassing the application queue."""
    stand = directory.get_stand(db, stand_id)
    _require_unallocated(stand)
    member = directory.get_member(db, member_id)
    require_same_organization(stand.organization_id, member.organization_id, SAME_ORGANIZATION_MESSAGE)

    _claim(db, stand, member)
    logger.info(f"Stand {stand.id} allocated to member {member_id}")
    return stand


def apply_for_stand(db: Session, stand_id: int, member_id: int) -> LandStand:
    """Record a member's application. The council may allocate later."""
    stand = directory.get_stand(db, stand_id)
    _require_unallocated(stand)
    member = directory.get_member(db, member_id)
    require_same_organization(stand.organization_id, member.organization_id, SAME_ORGANIZATION_MESSAGE)

    stand.applicant = member
    stand.application_date = date.today()
    directory.save(db, stand)
    logger.info(f"Member {member_id} applied for stand {stand.id}")
    return stand


def assign_stand_by_council(
    db: Session, stand_id: int, acting_member_id: int, beneficiary_id: int
) -> LandStand:
    """Council member assigns a stand in their own organization to a beneficiary."""
    acting = directory.get_member(db, acting_member_id)
    if not acting.has_role(RoleName.COUNCIL_MEMBER):
        raise InvalidArgumentError("Only council members can assign stands directly")

    stand = directory.get_stand(db, stand_id)
    require_same_organization(
        acting.organization_id,
        stand.organization_id,
        "Council member may only assign stands within their organization",
    )
    _require_unallocated(stand)
    logger.info(f"Council member {acting_member_id} assigning stand {stand_id} to {beneficiary_id}")
    return allocate_stand(db, stand_id, beneficiary_id)


def mark_stand_fee_paid(db: Session, stand_id: int) -> LandStand:
    stand = directory.get_stand(db, stand_id)
    if not stand.allocated:
        raise InvalidStateError("Cannot pay for a stand that is not allocated")
    stand.fee_paid = True
    directory.save(db, stand)
    logger.info(f"Fee paid for stand {stand.id}")
    return stand


def search_stands(
    db: Session,
    organization_id: int | None = None,
    allocated: bool | None = None,
    stand_type: StandType | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[LandStand]:
    query = select(LandStand)
    if organization_id is not None:
        query = query.where(LandStand.organization_id == organization_id)
    if allocated is not None:
        query = query.where(LandStand.allocated.is_(allocated))
    if stand_type is not None:
        query = query.where(LandStand.stand_type == stand_type)
    query = query.order_by(LandStand.id).offset(offset).limit(limit)
    return list(db.scalars(query))
