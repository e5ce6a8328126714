"""SQLAlchemy models for the traditional council management system.

Data Architecture Overview:
- Organization is a tree (villages under an authority); parent is a plain FK
  and the tree must stay acyclic (enforced in organizations.py, not storage)
- Member belongs to exactly one organization and holds a set of Roles
- DisputeCase, LandStand and Family/LevyPayment hang off members and organizations

Key Concepts:
- Council: the ten members of an organization holding COUNCIL_MEMBER
- Lineage: FAMILY vs everything else; drives ranking and succession
- heir_to: weak back-reference from an heir to the leader they succeed

Every operation re-reads the rows it needs and writes whole rows back;
nothing here caches state between requests.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum as SQLEnum,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Table,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base
from .schemas import (
    CaseStatus,
    EventStatus,
    EventType,
    LevyStatus,
    Lineage,
    RoleName,
    StandType,
)


def years_between(start: date, end: date) -> int:
    """Whole years elapsed from start to end (a birthday counts on the day)."""
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return years


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )


member_roles = Table(
    "member_roles",
    Base.metadata,
    Column("member_id", Integer, ForeignKey("members.id"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id"), primary_key=True),
)

case_adjudicators = Table(
    "case_adjudicators",
    Base.metadata,
    Column("case_id", Integer, ForeignKey("dispute_cases.id"), primary_key=True),
    Column("member_id", Integer, ForeignKey("members.id"), primary_key=True),
)


class Organization(TimestampMixin, Base):
    """A village, authority or other governing body.

    Examples:
    - "Royal House" (type Monarchy, no parent)
    - "Mothomeng village" (type Regional, parent Royal House)
    """

    __tablename__ = "organizations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    org_type: Mapped[str | None] = mapped_column(
        String(100),
        doc="Free-form type: 'Monarchy', 'Regional', 'VILLAGE', ..."
    )
    parent_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("organizations.id"), index=True
    )

    parent: Mapped["Organization | None"] = relationship(
        "Organization", remote_side=[id], back_populates="children"
    )
    children: Mapped[list["Organization"]] = relationship(
        "Organization", back_populates="parent"
    )
    members: Mapped[list["Member"]] = relationship("Member", back_populates="organization")

    def __repr__(self) -> str:
        return f"<Organization {self.name}>"


class Role(TimestampMixin, Base):
    """A named role. Created once at setup, referenced but never mutated."""

    __tablename__ = "roles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[RoleName] = mapped_column(SQLEnum(RoleName), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<Role {self.name.value}>"


class Member(TimestampMixin, Base):
    """A member of an organization.

    Eligibility inputs: lineage, birth_date (for age), disqualified flag and
    the member's open dispute cases.
    """

    __tablename__ = "members"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    lineage: Mapped[Lineage] = mapped_column(
        SQLEnum(Lineage), nullable=False, default=Lineage.COMMUNITY, index=True
    )
    birth_date: Mapped[date | None] = mapped_column(Date)
    disqualified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    disqualification_reason: Mapped[str | None] = mapped_column(Text)

    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.id"), nullable=False, index=True
    )
    heir_to_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("members.id"),
        doc="Leader this member is designated to succeed"
    )

    organization: Mapped["Organization"] = relationship("Organization", back_populates="members")
    roles: Mapped[set["Role"]] = relationship("Role", secondary=member_roles, collection_class=set)
    heir_to: Mapped["Member | None"] = relationship("Member", remote_side=[id])

    def __repr__(self) -> str:
        return f"<Member {self.full_name}>"

    @property
    def age(self) -> int | None:
        """Whole years since birth, or None when the birth date is unknown."""
        if self.birth_date is None:
            return None
        return years_between(self.birth_date, date.today())

    def has_role(self, role: RoleName) -> bool:
        return any(r.name == role for r in self.roles)

    def add_role(self, role: "Role") -> None:
        self.roles.add(role)


class DisputeCase(TimestampMixin, Base):
    """A dispute raised against a member.

    Lifecycle: open → notices (escalating to referral) → defense →
    adjudication → close. See disputes.py for the transitions.
    """

    __tablename__ = "dispute_cases"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    description: Mapped[str | None] = mapped_column(Text)
    status: Mapped[CaseStatus] = mapped_column(
        SQLEnum(CaseStatus), nullable=False, default=CaseStatus.OPEN, index=True
    )
    notices_sent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    opened_date: Mapped[date | None] = mapped_column(Date)
    closed_date: Mapped[date | None] = mapped_column(Date)

    accused_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("members.id"), nullable=False, index=True
    )
    complainant_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("members.id"))
    organization_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("organizations.id"), nullable=False, index=True
    )

    defense_statement: Mapped[str | None] = mapped_column(Text)
    defense_date: Mapped[date | None] = mapped_column(Date)

    accused: Mapped["Member"] = relationship("Member", foreign_keys=[accused_id])
    complainant: Mapped["Member | None"] = relationship("Member", foreign_keys=[complainant_id])
    organization: Mapped["Organization"] = relationship("Organization")
    adjudicators: Mapped[set["Member"]] = relationship(
        "Member", secondary=case_adjudicators, collection_class=set
    )

    def __repr__(self) -> str:
        return f"<DisputeCase {self.id}: {self.status.value}>"

    @property
    def adjudicator_ids(self) -> list[int]:
        return sorted(m.id for m in self.adjudicators)


class LandStand(TimestampMixin, Base):
    """A plot of land that can be applied for and allocated to one member.

    `version` is the optimistic-lock counter; allocation itself is a
    conditional update on `allocated` (see land.py).
    """

    __tablename__ = "land_stands"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    stand_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    stand_type: Mapped[StandType] = mapped_column(
        SQLEnum(StandType), nullable=False, default=StandType.RESIDENTIAL, index=True
    )
    size_in_square_meters: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    allocated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    allocation_date: Mapped[date | None] = mapped_column(Date)
    fee_paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    allocated_to_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("members.id"))

    # Pending application, independent of allocation
    applicant_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("members.id"))
    application_date: Mapped[date | None] = mapped_column(Date)

    organization_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("organizations.id"), index=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    allocated_to: Mapped["Member | None"] = relationship("Member", foreign_keys=[allocated_to_id])
    applicant: Mapped["Member | None"] = relationship("Member", foreign_keys=[applicant_id])
    organization: Mapped["Organization | None"] = relationship("Organization")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<LandStand {self.stand_number}>"


class Family(TimestampMixin, Base):
    """A household registered under a reference (stand) number."""

    __tablename__ = "families"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    reference_number: Mapped[str | None] = mapped_column(
        String(50), index=True,
        doc="Also referred to as the stand number"
    )
    address: Mapped[str | None] = mapped_column(Text)
    organization_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("organizations.id"))

    organization: Mapped["Organization | None"] = relationship("Organization")
    residents: Mapped[list["Resident"]] = relationship("Resident", back_populates="family")
    levy_payments: Mapped[list["LevyPayment"]] = relationship(
        "LevyPayment", back_populates="family"
    )

    def __repr__(self) -> str:
        return f"<Family {self.reference_number}>"


class Resident(TimestampMixin, Base):
    """A person living in a family household."""

    __tablename__ = "residents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))
    id_number: Mapped[str | None] = mapped_column(String(50))
    phone_number: Mapped[str | None] = mapped_column(String(30))
    email: Mapped[str | None] = mapped_column(String(255))
    is_head_of_household: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    family_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("families.id"), index=True)

    family: Mapped["Family | None"] = relationship("Family", back_populates="residents")

    def __repr__(self) -> str:
        return f"<Resident {self.first_name} {self.last_name}>"

    @property
    def display_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class LevyPayment(TimestampMixin, Base):
    """A family's levy for one financial year. One row per (family, year)."""

    __tablename__ = "levy_payments"
    __table_args__ = (
        UniqueConstraint("family_id", "financial_year", name="uq_levy_family_year"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    family_id: Mapped[int] = mapped_column(Integer, ForeignKey("families.id"), nullable=False)
    financial_year: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payment_date: Mapped[date | None] = mapped_column(Date)
    status: Mapped[LevyStatus] = mapped_column(
        SQLEnum(LevyStatus), nullable=False, default=LevyStatus.PENDING
    )

    family: Mapped["Family"] = relationship("Family", back_populates="levy_payments")

    def __repr__(self) -> str:
        return f"<LevyPayment family={self.family_id} year={self.financial_year} {self.status.value}>"


class VillageEvent(TimestampMixin, Base):
    """A funeral, party or ceremony requested by a family."""

    __tablename__ = "village_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str | None] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text)
    event_type: Mapped[EventType] = mapped_column(SQLEnum(EventType), nullable=False)
    status: Mapped[EventStatus] = mapped_column(
        SQLEnum(EventStatus), nullable=False, default=EventStatus.PENDING_APPROVAL
    )
    event_date: Mapped[date | None] = mapped_column(Date)
    location: Mapped[str | None] = mapped_column(Text)
    fee_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))

    # Document placeholders; the files themselves are stored elsewhere
    death_cert_url: Mapped[str | None] = mapped_column(Text)
    id_copy_url: Mapped[str | None] = mapped_column(Text)
    has_death_certificate: Mapped[bool] = mapped_column(Boolean, default=False)
    has_id_copies: Mapped[bool] = mapped_column(Boolean, default=False)

    organization_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("organizations.id"))
    family_id: Mapped[int | None] = mapped_column(Integer, ForeignKey("families.id"))

    organization: Mapped["Organization | None"] = relationship("Organization")
    family: Mapped["Family | None"] = relationship("Family")

    def __repr__(self) -> str:
        return f"<VillageEvent {self.event_type.value}: {self.name}>"
