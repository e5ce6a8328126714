"""Lookup and save access to organizations, members, cases, stands and families.

Every governance operation reads through these functions and writes through
`save`/`save_all`. `get_*` functions raise NotFoundError when the row is
missing; `find_*` functions return None or an empty list instead.

`save` flushes so new rows get their identity immediately. Committing is the
caller's job: one request is one unit of work (see database.get_db).
"""

from collections.abc import Iterable, Sequence

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .errors import NotFoundError
from .models import (
    DisputeCase,
    Family,
    LandStand,
    LevyPayment,
    Member,
    Organization,
    Resident,
    Role,
)
from .schemas import CaseStatus, RoleName


def get_organization(db: Session, org_id: int) -> Organization:
    org = db.get(Organization, org_id)
    if org is None:
        raise NotFoundError("Organization", org_id)
    return org


def find_sub_organizations(db: Session, parent_id: int) -> list[Organization]:
    return list(db.scalars(
        select(Organization).where(Organization.parent_id == parent_id).order_by(Organization.id)
    ))


def get_member(db: Session, member_id: int) -> Member:
    member = db.get(Member, member_id)
    if member is None:
        raise NotFoundError("Member", member_id)
    return member


def find_members_by_ids(db: Session, member_ids: Iterable[int]) -> list[Member]:
    """Members for the given ids. Unknown ids are silently absent from the result."""
    ids = set(member_ids)
    if not ids:
        return []
    return list(db.scalars(select(Member).where(Member.id.in_(ids)).order_by(Member.id)))


def find_eligible_members_by_organization(db: Session, org_id: int) -> list[Member]:
    """Members of the organization who are not disqualified, in id order."""
    return list(db.scalars(
        select(Member)
        .where(Member.organization_id == org_id, Member.disqualified.is_(False))
        .order_by(Member.id)
    ))


def find_heirs(db: Session, leader_id: int) -> list[Member]:
    return list(db.scalars(
        select(Member).where(Member.heir_to_id == leader_id).order_by(Member.id)
    ))


def count_members(db: Session, org_id: int) -> int:
    return db.scalar(
        select(func.count(Member.id)).where(Member.organization_id == org_id)
    ) or 0


def get_role(db: Session, name: RoleName | str) -> Role:
    try:
        role_name = RoleName(name)
    except ValueError:
        raise NotFoundError("Role", name) from None
    role = db.scalar(select(Role).where(Role.name == role_name))
    if role is None:
        raise NotFoundError("Role", role_name.value)
    return role


def count_members_with_role(db: Session, org_id: int, role: RoleName) -> int:
    return db.scalar(
        select(func.count(Member.id))
        .join(Member.roles)
        .where(Member.organization_id == org_id, Role.name == role)
    ) or 0


def find_members_with_role(db: Session, org_id: int, role: RoleName) -> list[Member]:
    return list(db.scalars(
        select(Member)
        .join(Member.roles)
        .where(Member.organization_id == org_id, Role.name == role)
        .order_by(Member.id)
    ))


def exists_open_case_for_accused(
    db: Session, member_id: int, statuses: Sequence[CaseStatus]
) -> bool:
    return db.scalar(
        select(
            select(DisputeCase.id)
            .where(DisputeCase.accused_id == member_id, DisputeCase.status.in_(statuses))
            .exists()
        )
    ) or False


def get_case(db: Session, case_id: int) -> DisputeCase:
    case = db.get(DisputeCase, case_id)
    if case is None:
        raise NotFoundError("Dispute case", case_id)
    return case


def get_stand(db: Session, stand_id: int) -> LandStand:
    stand = db.get(LandStand, stand_id)
    if stand is None:
        raise NotFoundError("Stand", stand_id)
    return stand


def get_family(db: Session, family_id: int) -> Family:
    family = db.get(Family, family_id)
    if family is None:
        raise NotFoundError("Family", family_id)
    return family


def get_resident(db: Session, resident_id: int) -> Resident:
    resident = db.get(Resident, resident_id)
    if resident is None:
        raise NotFoundError("Resident", resident_id)
    return resident


def find_payment_by_family_and_year(
    db: Session, family_id: int, year: int
) -> LevyPayment | None:
    return db.scalar(
        select(LevyPayment).where(
            LevyPayment.family_id == family_id,
            LevyPayment.financial_year == year,
        )
    )


def save(db: Session, entity):
    """Persist one entity and return it with its identity assigned."""
    db.add(entity)
    db.flush()
    return entity


def save_all(db: Session, entities: Iterable):
    """Persist a batch of entities in a single flush."""
    items = list(entities)
    db.add_all(items)
    db.flush()
    return items
