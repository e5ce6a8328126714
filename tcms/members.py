"""Member registry: creating members, granting roles and disqualification."""

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from . import directory
from .errors import InvalidArgumentError
from .models import Member, Role
from .schemas import Lineage, RoleName

logger = logging.getLogger(__name__)

DEFAULT_ROLE_DESCRIPTIONS = {
    RoleName.COUNCIL_MEMBER: "Member of the Top 10 council",
    RoleName.NTONA: "Traditional leader (Ntona)",
    RoleName.CHIEF: "Traditional leader",
    RoleName.ADMIN: "System Administrator",
    RoleName.CITIZEN: "Standard User",
}


def create_role(db: Session, name: RoleName | str, description: str | None = None) -> Role:
    try:
        role_name = RoleName(name)
    except ValueError:
        raise InvalidArgumentError(f"Unknown role: {name}") from None
    role = directory.save(db, Role(name=role_name, description=description))
    logger.info(f"Created role {role_name.value}")
    return role


def ensure_default_roles(db: Session) -> list[Role]:
    """Create any of the standard roles that do not exist yet."""
    existing = {r.name for r in db.scalars(select(Role))}
    created = [
        Role(name=name, description=description)
        for name, description in DEFAULT_ROLE_DESCRIPTIONS.items()
        if name not in existing
    ]
    if created:
        directory.save_all(db, created)
        logger.info(f"Seeded roles: {[r.name.value for r in created]}")
    return created


def create_member(
    db: Session,
    full_name: str,
    lineage: Lineage | str,
    organization_id: int,
    birth_date: date | None = None,
) -> Member:
    """Register a member under an organization, with no roles and not disqualified."""
    try:
        lineage = Lineage(lineage)
    except ValueError:
        raise InvalidArgumentError(f"Unknown lineage: {lineage}") from None
    org = directory.get_organization(db, organization_id)
    member = Member(
        full_name=full_name,
        lineage=lineage,
        organization=org,
        birth_date=birth_date,
        disqualified=False,
    )
    directory.save(db, member)
    logger.info(f"Created member {member.id} in organization {organization_id}")
    return member


def assign_role(db: Session, member_id: int, role_name: RoleName | str) -> Member:
    """Grant a role. Granting a role the member already holds is a no-op."""
    member = directory.get_member(db, member_id)
    role = directory.get_role(db, role_name)
    member.add_role(role)
    return directory.save(db, member)


def disqualify_member(db: Session, member_id: int, reason: str) -> Member:
    """Disqualify a member (e.g. imprisonment over 12 months) and vacate their council seat."""
    member = directory.get_member(db, member_id)
    member.disqualified = True
    member.disqualification_reason = reason
    member.roles = {r for r in member.roles if r.name != RoleName.COUNCIL_MEMBER}
    directory.save(db, member)
    logger.info(f"Member {member_id} disqualified: {reason}")
    return member


def list_members(db: Session, organization_id: int) -> list[Member]:
    return list(db.scalars(
        select(Member).where(Member.organization_id == organization_id).order_by(Member.full_name)
    ))
