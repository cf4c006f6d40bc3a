# tests/test_db_basic.py
from datetime import date

from sqlalchemy import text
from sqlalchemy.orm import Session

from mentormesh.db.session import engine, SessionLocal
from mentormesh.models import AvailabilitySlot, Base, User


def test_db_can_create_schema():
    Base.metadata.create_all(bind=engine)

    with engine.connect() as conn:
        result = conn.execute(text("SELECT 1"))
        assert result.scalar() == 1


def test_slot_is_booked_is_derived_from_status():
    Base.metadata.create_all(bind=engine)

    db: Session = SessionLocal()
    try:
        db.query(AvailabilitySlot).delete()
        db.query(User).delete()
        db.commit()

        mentor = User(
            full_name="Grace Hopper",
            email="grace@example.com",
            roles=["mentor"],
            skills=["COBOL"],
            bio="Compilers and naval computing.",
        )
        db.add(mentor)
        db.commit()
        db.refresh(mentor)

        slot = AvailabilitySlot(
            mentor_id=mentor.id,
            date=date(2030, 1, 7),
            start_time="09:00",
            end_time="10:00",
        )
        db.add(slot)
        db.commit()
        db.refresh(slot)

        assert slot.status == "available"
        assert slot.timezone == "UTC"
        assert slot.is_booked is False

        slot.status = "booked"
        db.commit()

        booked = db.query(AvailabilitySlot).filter(AvailabilitySlot.is_booked).all()
        assert [s.id for s in booked] == [slot.id]
        assert slot.is_booked is True
    finally:
        db.close()
