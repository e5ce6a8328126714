"""Organization tree: creation, re-parenting and hierarchy retrieval.

The parent link is a plain foreign key, so storage will happily accept a
cycle. Every write that sets a parent goes through `_check_no_cycle`, and
hierarchy walks keep a visited set so a corrupted tree still terminates.
"""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from . import directory
from .errors import InvalidArgumentError
from .models import Organization
from .schemas import OrganizationNode

logger = logging.getLogger(__name__)


def require_same_organization(first_id: int | None, second_id: int | None, message: str) -> None:
    """Raise InvalidArgumentError when both organizations are known and differ."""
    if first_id is not None and second_id is not None and first_id != second_id:
        raise InvalidArgumentError(message)


def _check_no_cycle(org: Organization, parent: Organization | None) -> None:
    """Reject a parent that is the organization itself or one of its descendants."""
    seen: set[int] = set()
    node = parent
    while node is not None and node.id not in seen:
        if node.id == org.id:
            raise InvalidArgumentError(
                f"Organization {org.id} cannot be placed under its own descendant {parent.id}"
            )
        seen.add(node.id)
        node = node.parent


def create_organization(
    db: Session, name: str, org_type: str | None = None, parent_id: int | None = None
) -> Organization:
    parent = directory.get_organization(db, parent_id) if parent_id is not None else None
    org = directory.save(db, Organization(name=name, org_type=org_type, parent=parent))
    logger.info(f"Created organization {org.id} '{name}' (parent: {parent_id})")
    return org


def reparent_organization(db: Session, org_id: int, parent_id: int | None) -> Organization:
    org = directory.get_organization(db, org_id)
    parent = directory.get_organization(db, parent_id) if parent_id is not None else None
    if parent is not None:
        _check_no_cycle(org, parent)
    org.parent = parent
    directory.save(db, org)
    logger.info(f"Organization {org_id} moved under {parent_id}")
    return org


def list_organizations(db: Session, org_type: str | None = None) -> list[Organization]:
    query = select(Organization).order_by(Organization.id)
    if org_type is not None:
        query = query.where(Organization.org_type == org_type)
    return list(db.scalars(query))


def get_hierarchy(db: Session, org_id: int) -> OrganizationNode:
    """Full tree under an organization (e.g. an authority and all its villages)."""
    root = directory.get_organization(db, org_id)
    visited: set[int] = set()

    def build(org: Organization) -> OrganizationNode:
        visited.add(org.id)
        node = OrganizationNode(
            id=org.id,
            name=org.name,
            org_type=org.org_type,
            member_count=directory.count_members(db, org.id),
        )
        for child in directory.find_sub_organizations(db, org.id):
            if child.id in visited:
                logger.warning(f"Cycle in organization tree at {child.id}; not descending")
                continue
            node.children.append(build(child))
        return node

    return build(root)
