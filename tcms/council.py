"""Council appointment: selecting and seating the ten-member council.

Ranking puts FAMILY lineage ahead of every other lineage, then older members
ahead of younger ones, then lower member id first. The best twenty ranked
candidates are shortlisted and split into up to six FAMILY seats and up to
four seats for everyone else, keeping rank order inside each group.
"""

import logging

from sqlalchemy.orm import Session

from . import directory
from .eligibility import COUNCIL_MIN_AGE, has_open_case, is_council_eligible, meets_age
from .errors import InvalidArgumentError, InvalidStateError
from .models import Member
from .schemas import Lineage, RoleName

logger = logging.getLogger(__name__)

COUNCIL_SIZE = 10
FAMILY_SEATS = 6
OTHER_SEATS = 4
SHORTLIST_SIZE = 20


def rank_key(member: Member) -> tuple[int, int, int]:
    """Sort key: FAMILY first, then older first, then id."""
    return (
        0 if member.lineage == Lineage.FAMILY else 1,
        -(member.age or 0),
        member.id,
    )


def rank_candidates(candidates: list[Member]) -> list[Member]:
    return sorted(candidates, key=rank_key)


def select_council(ranked: list[Member]) -> list[Member]:
    """Split a ranked list into FAMILY and other seats.

    Returns family seats followed by other seats, each in rank order.
    May return fewer than COUNCIL_SIZE members.
    """
    shortlist = ranked[:SHORTLIST_SIZE]
    family = [m for m in shortlist if m.lineage == Lineage.FAMILY][:FAMILY_SEATS]
    others = [m for m in shortlist if m.lineage != Lineage.FAMILY][:OTHER_SEATS]
    return family + others


def appoint_top_council(db: Session, org_id: int, size: int = COUNCIL_SIZE) -> list[Member]:
    """Appoint the ten-member council of an organization.

    The council is replaced, not topped up: current seat holders who are not
    selected lose COUNCIL_MEMBER, so the organization ends with exactly ten.

    Raises:
        InvalidArgumentError: size is not 10
        NotFoundError: the organization or the COUNCIL_MEMBER role is missing
        InvalidStateError: fewer than ten eligible candidates
    """
    if size != COUNCIL_SIZE:
        raise InvalidArgumentError(f"Top Council must have exactly {COUNCIL_SIZE} members")

    logger.info(f"Appointing top council for organization {org_id}")
    directory.get_organization(db, org_id)
    council_role = directory.get_role(db, RoleName.COUNCIL_MEMBER)

    candidates = [
        m for m in directory.find_eligible_members_by_organization(db, org_id)
        if is_council_eligible(db, m)
    ]
    council = select_council(rank_candidates(candidates))

    if len(council) < COUNCIL_SIZE:
        raise InvalidStateError(
            f"Not enough eligible candidates to form Top {COUNCIL_SIZE} Council "
            f"({len(council)} found)"
        )

    unseated = [
        m for m in directory.find_members_with_role(db, org_id, RoleName.COUNCIL_MEMBER)
        if m not in council
    ]
    for member in unseated:
        member.roles.discard(council_role)
    for member in council:
        member.add_role(council_role)
    directory.save_all(db, council + unseated)
    if unseated:
        logger.info(f"Vacated council seats of {[m.id for m in unseated]} in organization {org_id}")

    logger.info(
        f"Appointed {len(council)} council members for organization {org_id}: "
        f"{[m.id for m in council]}"
    )
    return council


def appoint_member_to_council(db: Session, member_id: int) -> Member:
    """Seat a single member on the council if a seat is free.

    Raises:
        NotFoundError: member or COUNCIL_MEMBER role missing
        InvalidStateError: member disqualified, has an open case, or council full
        InvalidArgumentError: member younger than 21 (or age unknown)
    """
    member = directory.get_member(db, member_id)
    if member.disqualified:
        raise InvalidStateError("Cannot appoint a disqualified member")
    if not meets_age(member, COUNCIL_MIN_AGE):
        raise InvalidArgumentError(f"Council members must be at least {COUNCIL_MIN_AGE} years old")
    if has_open_case(db, member):
        raise InvalidStateError("Member has an open case and cannot be appointed")

    council_role = directory.get_role(db, RoleName.COUNCIL_MEMBER)
    seated = directory.count_members_with_role(db, member.organization_id, RoleName.COUNCIL_MEMBER)
    if seated >= COUNCIL_SIZE:
        raise InvalidStateError(
            f"Top {COUNCIL_SIZE} council is already full for this organization"
        )

    member.add_role(council_role)
    directory.save(db, member)
    logger.info(f"Member {member_id} appointed to council of organization {member.organization_id}")
    return member
