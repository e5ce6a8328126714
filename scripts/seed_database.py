"""Seed a development database with a small traditional authority.

Creates the standard roles, a Royal House with one village under it, a
handful of members of both lineages, an unallocated stand and an open
dispute case.

Usage:
    uv run python scripts/seed_database.py            # Seed (skips if already seeded)
    uv run python scripts/seed_database.py --members 30
    uv run python scripts/seed_database.py --stats    # Show row counts
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tcms import disputes, land, members, organizations
from tcms.database import SessionLocal, init_db
from tcms.models import DisputeCase, LandStand, Member, Organization, Role
from tcms.schemas import Lineage, StandType

logger = logging.getLogger(__name__)


def birth_date_for_age(age: int) -> date:
    today = date.today()
    return date(today.year - age, 1, 1)


def seed(db: Session, member_count: int = 20) -> None:
    if db.scalar(select(func.count(Role.id))):
        print("Roles already present, skipping seed")
        return

    members.ensure_default_roles(db)

    royal_house = organizations.create_organization(db, "Royal House", "MAIN_AUTHORITY")
    village = organizations.create_organization(db, "Mothomeng", "VILLAGE", royal_house.id)
    print(f"Created organizations: {royal_house.name} -> {village.name}")

    created = []
    for i in range(member_count):
        lineage = Lineage.FAMILY if i % 2 == 0 else Lineage.COMMUNITY
        member = members.create_member(
            db,
            f"Member {i + 1}",
            lineage,
            village.id,
            birth_date_for_age(25 + i),
        )
        created.append(member)
    print(f"Created {len(created)} members")

    stand = land.create_stand(db, "STAND-001", StandType.RESIDENTIAL, 600.0, village.id)
    print(f"Created stand {stand.stand_number}")

    if len(created) >= 2:
        case = disputes.file_case(
            db,
            "Boundary dispute over grazing land",
            created[0].id,
            created[1].id,
            village.id,
        )
        print(f"Opened dispute case {case.id}")


def show_stats(db: Session) -> None:
    print("\nDatabase statistics:")
    for label, model in [
        ("Organizations", Organization),
        ("Members", Member),
        ("Land stands", LandStand),
        ("Dispute cases", DisputeCase),
    ]:
        print(f"  {label}: {db.scalar(select(func.count(model.id)))}")


def main():
    parser = argparse.ArgumentParser(description="Seed the council database")
    parser.add_argument("--members", type=int, default=20, help="Number of members to create")
    parser.add_argument("--stats", action="store_true", help="Show statistics only")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    init_db()

    db = SessionLocal()
    try:
        if not args.stats:
            seed(db, args.members)
            db.commit()
        show_stats(db)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    main()
