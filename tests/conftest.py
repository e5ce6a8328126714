"""
Pytest configuration and fixtures
"""
import itertools
import os
from datetime import date

# The application engine is built at import time; keep it off PostgreSQL
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from tcms import members, organizations
from tcms.database import Base
import tcms.models  # noqa: F401
from tcms.schemas import Lineage, RoleName

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def birth_date_for_age(age: int) -> date:
    """A birth date that makes the member exactly `age` years old today."""
    return date(date.today().year - age, 1, 1)


@pytest.fixture(scope="function")
def db() -> Session:
    """Fresh schema with the standard roles seeded."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    members.ensure_default_roles(session)
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def village(db):
    return organizations.create_organization(db, "Mothomeng", "VILLAGE")


@pytest.fixture
def other_village(db):
    return organizations.create_organization(db, "Ha Ramabanta", "VILLAGE")


@pytest.fixture
def make_member(db, village):
    """Factory: make_member(age=30, lineage=Lineage.FAMILY, org=None, roles=())."""
    counter = itertools.count(1)

    def _make(age=30, lineage=Lineage.FAMILY, org=None, roles=(), birth_date="auto"):
        org = org or village
        if birth_date == "auto":
            birth_date = birth_date_for_age(age)
        member = members.create_member(
            db, f"Member {next(counter)}", lineage, org.id, birth_date
        )
        for role in roles:
            members.assign_role(db, member.id, role)
        return member

    return _make


@pytest.fixture
def councillor(make_member):
    return make_member(age=45, roles=[RoleName.COUNCIL_MEMBER])
