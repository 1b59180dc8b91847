import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from blooddash.db.session import SessionLocal
from blooddash.db.triggers import bind_actor
from blooddash.models.center import Center
from blooddash.models.shortage import Shortage

logger = logging.getLogger(__name__)

CENTERS = [
    {
        "name": "National Blood Center",
        "district": "Colombo",
        "address": "555/5D, Elvitigala Mawatha, Narahenpita",
        "phone": "011-2369931",
        "opening_hours": {"monday": "8:00-16:00", "saturday": "8:00-12:00"},
        "shortages": [("O-", "critical"), ("A-", "low"), ("B+", "normal")],
    },
    {
        "name": "Kandy Teaching Hospital Blood Bank",
        "district": "Kandy",
        "address": "William Gopallawa Mawatha, Kandy",
        "phone": "081-2233337",
        "opening_hours": None,
        "shortages": [("AB-", "critical"), ("O+", "low")],
    },
    {
        "name": "Karapitiya Blood Bank",
        "district": "Galle",
        "address": "Teaching Hospital Karapitiya, Galle",
        "phone": None,
        "opening_hours": None,
        "shortages": [("B-", "low")],
    },
]


def seed():
    db: Session = SessionLocal()
    # seeded rows show up in audit_logs without an actor
    bind_actor(db, None, None)

    try:
        for entry in CENTERS:
            exists = db.execute(select(Center.id).where(Center.name == entry["name"])).first()
            if exists:
                continue

            center = Center(
                name=entry["name"],
                district=entry["district"],
                address=entry["address"],
                phone=entry["phone"],
                opening_hours=entry["opening_hours"],
            )
            db.add(center)
            db.flush()

            for blood_type, status in entry["shortages"]:
                db.add(Shortage(center_id=center.id, blood_type=blood_type, status=status))

            db.commit()
            logger.info("seeded center", extra={"center": entry["name"]})
    finally:
        db.close()


if __name__ == "__main__":
    seed()
