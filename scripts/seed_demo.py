# scripts/seed_demo.py
"""
Seed a local database with one verified mentor, one mentee and a few
open slots, then book the first one.

Handy for poking at the API by hand:

    python -m scripts.seed_demo --days-ahead 3
    uvicorn mentormesh.main:app --reload
"""

from __future__ import annotations

import argparse
from datetime import timedelta

from mentormesh.db.session import engine, session_scope
from mentormesh.models import Base, User
from mentormesh.services import availability_service, booking_service, user_service
from mentormesh.services.clock import Clock


def _get_or_create(db, *, email: str, **fields) -> User:
    user = db.query(User).filter(User.email == email).first()
    if user:
        print(f"Reusing user id={user.id} ({email})")
        return user
    user = user_service.create_user(db, email=email, **fields)
    print(f"Created user id={user.id} ({email})")
    return user


def run_once(days_ahead: int, slot_count: int) -> None:
    Base.metadata.create_all(bind=engine)
    clock = Clock()
    slot_date = clock.today() + timedelta(days=days_ahead)

    with session_scope() as db:
        mentor = _get_or_create(
            db,
            email="mentor.demo@example.com",
            full_name="Demo Mentor",
            roles=["mentor"],
            mentor_profile={
                "skills": ["Python", "System Design"],
                "bio": "Ten years of backend work, happy to review designs.",
                "expertise": "Backend Engineering",
                "experience": 10,
            },
        )
        if not mentor.is_verified:
            user_service.verify_mentor(db, user_id=mentor.id)

        mentee = _get_or_create(
            db,
            email="mentee.demo@example.com",
            full_name="Demo Mentee",
            roles=["mentee"],
            mentee_profile={"interests": ["Python"], "goals": "Land a first backend role"},
        )

        existing = availability_service.list_mentor_availability(
            db, mentor_id=mentor.id, start_date=slot_date, end_date=slot_date
        )
        if existing:
            print(f"Mentor already has {len(existing)} slots on {slot_date}, skipping")
            return

        slots = availability_service.bulk_create_slots(
            db,
            mentor_id=mentor.id,
            slots=[
                {
                    "date": slot_date,
                    "start_time": f"{9 + i:02d}:00",
                    "end_time": f"{9 + i:02d}:45",
                }
                for i in range(slot_count)
            ],
            clock=clock,
        )
        print(f"Created {len(slots)} slots on {slot_date}")

        booked = booking_service.book_slot(
            db, slot_id=slots[0].id, mentee_id=mentee.id, clock=clock
        )
        print(f"Booked slot id={booked.id}, join at {booked.meeting_link}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed demo mentoring data")
    parser.add_argument("--days-ahead", type=int, default=1, help="Days from today for the slots")
    parser.add_argument("--slots", type=int, default=3, help="How many 45-minute slots to open")
    args = parser.parse_args()

    run_once(days_ahead=args.days_ahead, slot_count=max(1, min(args.slots, 14)))


if __name__ == "__main__":
    main()
