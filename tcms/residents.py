"""Families, residents and proof of residence."""

import logging

from sqlalchemy.orm import Session

from . import directory
from .errors import InvalidStateError, NotFoundError
from .levy import is_levy_up_to_date
from .models import Family, Resident

logger = logging.getLogger(__name__)


def create_family(
    db: Session,
    reference_number: str | None = None,
    address: str | None = None,
    organization_id: int | None = None,
) -> Family:
    org = directory.get_organization(db, organization_id) if organization_id is not None else None
    family = directory.save(
        db, Family(reference_number=reference_number, address=address, organization=org)
    )
    logger.info(f"Created family {family.id} ({reference_number})")
    return family


def add_resident(db: Session, family_id: int, **fields) -> Resident:
    family = directory.get_family(db, family_id)
    resident = directory.save(db, Resident(family=family, **fields))
    logger.info(f"Added resident {resident.id} to family {family_id}")
    return resident


def generate_proof_of_residence(db: Session, resident_id: int) -> str:
    """Confirmation letter text for a resident whose family levy is paid up."""
    resident = directory.get_resident(db, resident_id)
    family = resident.family
    if family is None:
        raise NotFoundError("Family for resident", resident_id)

    if not is_levy_up_to_date(db, family.id):
        raise InvalidStateError("Levy payments are in arrears.")

    return (
        f"This confirms that {resident.display_name} resides at "
        f"{family.address or ''} and is in good standing."
    )
