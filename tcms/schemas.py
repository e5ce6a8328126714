"""Pydantic schemas and canonical value sets for the council management system.

The enums here are the closed vocabularies the rule engine matches on.
Role names and lineage tags used to be free-form strings compared by value,
which let a typo silently switch a rule off; they are enumerations now and
every comparison goes through them.

Request models validate what the HTTP layer can check on its own (shape,
positivity). Governance rules that depend on stored state live in the
engine modules, not here.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================================
# ENUMS: Canonical value sets with descriptions
# =============================================================================


class RoleName(str, Enum):
    """Named roles a member can hold. Roles are seeded once and never mutated."""

    COUNCIL_MEMBER = "COUNCIL_MEMBER"
    """Seat on the ten-member council of an organization."""

    NTONA = "NTONA"
    """Traditional leader who may designate an heir."""

    CHIEF = "CHIEF"
    """Traditional leader who may designate an heir."""

    ADMIN = "ADMIN"
    """System administrator."""

    CITIZEN = "CITIZEN"
    """Ordinary member of the community."""


LEADERSHIP_ROLES = frozenset({RoleName.NTONA, RoleName.CHIEF})


class Lineage(str, Enum):
    """Lineage classification used for council ranking and heir eligibility."""

    FAMILY = "FAMILY"
    """Member of the ruling family. Ranked first; the only lineage that may inherit."""

    COMMUNITY = "COMMUNITY"
    """Member of the wider community."""

    OTHER = "OTHER"
    """Any other lineage. Treated like COMMUNITY by every rule."""


class CaseStatus(str, Enum):
    """Dispute case lifecycle.

    OPEN → NOTICE_1_SENT → NOTICE_2_SENT → NOTICE_3_SENT → REFERRED,
    and any state except CLOSED may move to CLOSED. Nothing leaves CLOSED.
    """

    OPEN = "OPEN"
    NOTICE_1_SENT = "NOTICE_1_SENT"
    NOTICE_2_SENT = "NOTICE_2_SENT"
    NOTICE_3_SENT = "NOTICE_3_SENT"
    REFERRED = "REFERRED"
    """Escalated to the higher authority after the third notice."""

    CLOSED = "CLOSED"


# A member with a case in one of these states cannot sit on the council.
OPEN_CASE_STATUSES = (
    CaseStatus.OPEN,
    CaseStatus.NOTICE_1_SENT,
    CaseStatus.NOTICE_2_SENT,
    CaseStatus.NOTICE_3_SENT,
)


class StandType(str, Enum):
    """Intended use of a land stand."""

    RESIDENTIAL = "RESIDENTIAL"
    COMMERCIAL = "COMMERCIAL"
    AGRICULTURAL = "AGRICULTURAL"
    COMMUNITY = "COMMUNITY"
    """Schools, churches, halls and other shared facilities."""


class LevyStatus(str, Enum):
    """Payment status of a family's levy for one financial year."""

    PENDING = "PENDING"
    PAID = "PAID"


class EventType(str, Enum):
    """Kinds of village events a family can request."""

    FUNERAL = "FUNERAL"
    """Requires a death certificate and ID copies. Fixed fee."""

    PARTY = "PARTY"
    TRADITIONAL_CEREMONY = "TRADITIONAL_CEREMONY"


class EventStatus(str, Enum):
    """Approval state of a village event request."""

    PENDING_APPROVAL = "PENDING_APPROVAL"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================


class OrganizationCreate(BaseModel):
    """A new village, authority or other governing body."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255, description="Official name.")
    org_type: str | None = Field(
        default=None,
        max_length=100,
        description="Free-form type, e.g. 'Monarchy', 'Regional', 'VILLAGE'.",
    )
    parent_id: int | None = Field(
        default=None, gt=0, description="Owning organization, if any."
    )


class OrganizationReparent(BaseModel):
    """Move an organization under a different parent (or to the top level)."""

    parent_id: int | None = Field(default=None, gt=0)


class MemberCreate(BaseModel):
    """A new member of an organization."""

    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str = Field(min_length=1, max_length=200)
    lineage: Lineage = Field(description="FAMILY, COMMUNITY or OTHER.")
    organization_id: int = Field(gt=0)
    birth_date: date | None = Field(
        default=None, description="Needed for every age-based rule."
    )


class DisqualifyRequest(BaseModel):
    """Reason a member is removed from leadership (e.g. imprisonment > 12 months)."""

    reason: str = Field(min_length=1)


class CouncilAppointment(BaseModel):
    """Request to appoint the full council of an organization."""

    size: int = Field(default=10, description="Must be exactly 10.")


class CaseCreate(BaseModel):
    """Open a dispute case. With a complainant, the case is filed on their behalf."""

    model_config = ConfigDict(str_strip_whitespace=True)

    description: str = Field(min_length=1)
    accused_id: int = Field(gt=0)
    organization_id: int = Field(gt=0)
    complainant_id: int | None = Field(default=None, gt=0)


class DefenseSubmission(BaseModel):
    """Defense statement submitted by the accused."""

    accused_id: int = Field(gt=0, description="Must be the accused on the case.")
    defense_statement: str = Field(min_length=1)


class AdjudicatorAssignment(BaseModel):
    """Replacement set of adjudicators for a case."""

    adjudicator_ids: list[int] = Field(
        default_factory=list, description="Replaces the panel; an empty list clears it."
    )

    @field_validator("adjudicator_ids")
    @classmethod
    def ids_are_positive(cls, v: list[int]) -> list[int]:
        if any(i <= 0 for i in v):
            raise ValueError("adjudicator ids must be positive")
        return v


class StandCreate(BaseModel):
    """A new land stand."""

    model_config = ConfigDict(str_strip_whitespace=True)

    stand_number: str = Field(min_length=1, max_length=50)
    stand_type: StandType = StandType.RESIDENTIAL
    size_in_square_meters: float = Field(default=0, ge=0)
    organization_id: int | None = Field(default=None, gt=0)


class StandRequest(BaseModel):
    """A member applying for, or being allocated, a stand."""

    member_id: int = Field(gt=0)


class CouncilStandAssignment(BaseModel):
    """Direct assignment of a stand by a council member."""

    acting_member_id: int = Field(gt=0)
    beneficiary_id: int = Field(gt=0)


class PaymentCreate(BaseModel):
    """A levy payment. Year defaults to the current calendar year."""

    amount: Decimal = Field(gt=0, description="Amount paid; must be greater than 0.")
    year: int | None = Field(default=None, gt=0)


class FamilyCreate(BaseModel):
    """A family (household) registered under a stand reference."""

    model_config = ConfigDict(str_strip_whitespace=True)

    reference_number: str | None = Field(default=None, max_length=50)
    address: str | None = None
    organization_id: int | None = Field(default=None, gt=0)


class ResidentCreate(BaseModel):
    """A resident belonging to a family."""

    model_config = ConfigDict(str_strip_whitespace=True)

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    id_number: str | None = Field(default=None, max_length=50)
    phone_number: str | None = Field(default=None, max_length=30)
    email: str | None = Field(default=None, max_length=255)
    is_head_of_household: bool = False


class EventCreate(BaseModel):
    """Request for a village event."""

    model_config = ConfigDict(str_strip_whitespace=True)

    organization_id: int = Field(gt=0)
    family_id: int = Field(gt=0)
    event_type: EventType
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    event_date: date | None = None
    location: str | None = None
    fee_amount: Decimal | None = Field(default=None, ge=0)
    death_cert_url: str | None = None
    id_copy_url: str | None = None
    has_death_certificate: bool = False
    has_id_copies: bool = False


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================


class OrganizationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    org_type: str | None = None
    parent_id: int | None = None


class OrganizationNode(BaseModel):
    """One node of an organization hierarchy."""

    id: int
    name: str
    org_type: str | None = None
    member_count: int = 0
    children: list["OrganizationNode"] = Field(default_factory=list)


class MemberRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    lineage: Lineage
    birth_date: date | None = None
    age: int | None = None
    organization_id: int
    roles: list[RoleName] = Field(default_factory=list)
    disqualified: bool = False
    disqualification_reason: str | None = None
    heir_to_id: int | None = None

    @field_validator("roles", mode="before")
    @classmethod
    def role_names(cls, v):
        """Accept Role rows as well as plain names."""
        return sorted(getattr(r, "name", r) for r in v)


class DisputeCaseRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    description: str | None = None
    status: CaseStatus
    notices_sent: int
    opened_date: date | None = None
    closed_date: date | None = None
    accused_id: int
    complainant_id: int | None = None
    organization_id: int
    defense_statement: str | None = None
    defense_date: date | None = None
    adjudicator_ids: list[int] = Field(default_factory=list)


class LandStandRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    stand_number: str
    stand_type: StandType
    size_in_square_meters: float
    allocated: bool
    allocation_date: date | None = None
    fee_paid: bool
    allocated_to_id: int | None = None
    applicant_id: int | None = None
    application_date: date | None = None
    organization_id: int | None = None


class FamilyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    reference_number: str | None = None
    address: str | None = None
    organization_id: int | None = None


class ResidentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str | None = None
    last_name: str | None = None
    is_head_of_household: bool = False
    family_id: int | None = None


class LevyPaymentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    family_id: int
    financial_year: int
    amount: Decimal
    payment_date: date | None = None
    status: LevyStatus


class LevyStatusResponse(BaseModel):
    family_id: int
    year: int
    up_to_date: bool


class EligibilityResponse(BaseModel):
    member_id: int
    council_eligible: bool
    heir_eligible: bool


class ProofOfResidenceResponse(BaseModel):
    resident_id: int
    statement: str


class VillageEventRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str | None = None
    event_type: EventType
    status: EventStatus
    event_date: date | None = None
    location: str | None = None
    fee_amount: Decimal | None = None
    organization_id: int | None = None
    family_id: int | None = None


class ApiError(BaseModel):
    """Consistent error body for rule failures."""

    timestamp: datetime
    status: int
    error: str
    message: str
    path: str
