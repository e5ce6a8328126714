"""Dispute case workflow.

State machine:

    OPEN → NOTICE_1_SENT → NOTICE_2_SENT → NOTICE_3_SENT → REFERRED
    any state except CLOSED → CLOSED

The escalation status is a pure function of `notices_sent`: one notice is
NOTICE_1_SENT, two NOTICE_2_SENT, three NOTICE_3_SENT and four or more
REFERRED (escalated beyond local handling). CLOSED is terminal.

Lifecycle steps are separate operations on purpose: open/file → notices and
defense → adjudicator assignment → close. Closing does not require that
adjudication happened. Closing an already CLOSED case is rejected with
InvalidStateError rather than re-stamping `closed_date`; no transition
leaves CLOSED.
"""

import logging
from collections.abc import Iterable
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from . import directory
from .errors import InvalidArgumentError, InvalidStateError
from .models import DisputeCase
from .schemas import CaseStatus, RoleName

logger = logging.getLogger(__name__)

_NOTICE_STATUSES = {
    1: CaseStatus.NOTICE_1_SENT,
    2: CaseStatus.NOTICE_2_SENT,
    3: CaseStatus.NOTICE_3_SENT,
}


def status_for_notices(notices_sent: int) -> CaseStatus:
    if notices_sent <= 0:
        return CaseStatus.OPEN
    return _NOTICE_STATUSES.get(notices_sent, CaseStatus.REFERRED)


def _require_not_closed(case: DisputeCase, action: str) -> None:
    if case.status == CaseStatus.CLOSED:
        raise InvalidStateError(f"Cannot {action} a closed case")


def open_case(db: Session, description: str, accused_id: int, org_id: int) -> DisputeCase:
    logger.info(f"Opening dispute case against member {accused_id} in org {org_id}")
    accused = directory.get_member(db, accused_id)
    org = directory.get_organization(db, org_id)

    case = DisputeCase(
        description=description,
        accused=accused,
        organization=org,
        status=CaseStatus.OPEN,
        notices_sent=0,
        opened_date=date.today(),
    )
    directory.save(db, case)
    logger.info(f"Dispute case {case.id} opened (status: {case.status.value})")
    return case


def file_case(
    db: Session, description: str, complainant_id: int, accused_id: int, org_id: int
) -> DisputeCase:
    """Open a case with the complainant who raised it recorded."""
    logger.info(
        f"Filing dispute: complainant {complainant_id} vs accused {accused_id} in org {org_id}"
    )
    complainant = directory.get_member(db, complainant_id)
    case = open_case(db, description, accused_id, org_id)
    case.complainant = complainant
    directory.save(db, case)
    logger.info(f"Dispute case {case.id} filed with complainant {complainant_id}")
    return case


def send_notice(db: Session, case_id: int) -> DisputeCase:
    case = directory.get_case(db, case_id)
    _require_not_closed(case, "send a notice for")

    case.notices_sent += 1
    case.status = status_for_notices(case.notices_sent)
    directory.save(db, case)
    logger.info(
        f"Notice sent for case {case.id} (count: {case.notices_sent}, status: {case.status.value})"
    )
    return case


def dispute_case(db: Session, case_id: int, accused_id: int, defense_statement: str) -> DisputeCase:
    """Record the accused's defense statement. A later call replaces the earlier one."""
    case = directory.get_case(db, case_id)
    if case.accused_id != accused_id:
        raise InvalidArgumentError("Only the accused member can submit a defense for this case")
    _require_not_closed(case, "dispute")

    case.defense_statement = defense_statement
    case.defense_date = date.today()
    directory.save(db, case)
    logger.info(f"Defense submitted for case {case.id} on {case.defense_date}")
    return case


def assign_adjudicators(db: Session, case_id: int, adjudicator_ids: Iterable[int]) -> DisputeCase:
    """Replace the case's adjudicators. Each must be a council member of the case's organization."""
    case = directory.get_case(db, case_id)
    requested = list(dict.fromkeys(adjudicator_ids))
    adjudicators = directory.find_members_by_ids(db, requested)
    if len(adjudicators) != len(requested):
        missing = sorted(set(requested) - {m.id for m in adjudicators})
        raise InvalidArgumentError(f"Some adjudicators not found: {missing}")

    for member in adjudicators:
        if member.organization_id != case.organization_id:
            raise InvalidArgumentError(f"{member.full_name} is not in this village")
        if not member.has_role(RoleName.COUNCIL_MEMBER):
            raise InvalidArgumentError(f"{member.full_name} is not a council member")

    case.adjudicators = set(adjudicators)
    directory.save(db, case)
    logger.info(f"Assigned {len(adjudicators)} adjudicators to case {case.id}")
    return case


def close_case(db: Session, case_id: int) -> DisputeCase:
    case = directory.get_case(db, case_id)
    _require_not_closed(case, "close")

    case.status = CaseStatus.CLOSED
    case.closed_date = date.today()
    directory.save(db, case)
    logger.info(f"Case {case.id} closed on {case.closed_date}")
    return case


def list_cases(
    db: Session,
    org_id: int | None = None,
    status: CaseStatus | None = None,
    accused_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
) -> list[DisputeCase]:
    query = select(DisputeCase)
    if org_id is not None:
        query = query.where(DisputeCase.organization_id == org_id)
    if status is not None:
        query = query.where(DisputeCase.status == status)
    if accused_id is not None:
        query = query.where(DisputeCase.accused_id == accused_id)
    query = query.order_by(DisputeCase.id).offset(offset).limit(limit)
    return list(db.scalars(query))
