"""Village event requests (funerals, parties, ceremonies)."""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from . import directory
from .errors import InvalidArgumentError
from .models import VillageEvent
from .schemas import EventStatus, EventType

logger = logging.getLogger(__name__)

FUNERAL_FEE = Decimal("50")


def event_fee(event_type: EventType, requested: Decimal | None) -> Decimal:
    if event_type == EventType.FUNERAL:
        return FUNERAL_FEE
    if requested is None:
        return Decimal("0")
    return requested


def create_event(
    db: Session,
    organization_id: int,
    family_id: int,
    event_type: EventType,
    name: str,
    description: str | None = None,
    event_date: date | None = None,
    location: str | None = None,
    fee_amount: Decimal | None = None,
    death_cert_url: str | None = None,
    id_copy_url: str | None = None,
    has_death_certificate: bool = False,
    has_id_copies: bool = False,
) -> VillageEvent:
    """Create an event awaiting the chief's approval.

    Funerals need both a death certificate and ID copies and carry a fixed fee.
    """
    org = directory.get_organization(db, organization_id)
    family = directory.get_family(db, family_id)

    if event_type == EventType.FUNERAL and not (has_death_certificate and has_id_copies):
        raise InvalidArgumentError("FUNERAL events require death certificate and ID copies")

    event = VillageEvent(
        organization=org,
        family=family,
        event_type=event_type,
        name=name,
        description=description,
        event_date=event_date,
        location=location,
        fee_amount=event_fee(event_type, fee_amount),
        death_cert_url=death_cert_url,
        id_copy_url=id_copy_url,
        has_death_certificate=has_death_certificate,
        has_id_copies=has_id_copies,
        status=EventStatus.PENDING_APPROVAL,
    )
    directory.save(db, event)

    # TODO: replace with a real notification once chiefs have a contact channel
    logger.info(
        f"Notify Chief: New {event_type.value} event '{name}' requested by family "
        f"{family_id} in organization {organization_id}"
    )
    return event
