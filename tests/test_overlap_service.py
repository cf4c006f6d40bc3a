# tests/test_overlap_service.py
from datetime import date

import pytest
from sqlalchemy.orm import Session

from mentormesh.db.session import engine, SessionLocal
from mentormesh.models import AvailabilitySlot, Base, User
from mentormesh.services.overlap_service import (
    find_overlapping_slot,
    intervals_overlap,
    normalize_clock_time,
    parse_clock_time,
)

DAY = date(2030, 3, 4)


def setup_module(module):
    Base.metadata.create_all(bind=engine)


def _clean_db():
    db: Session = SessionLocal()
    try:
        db.query(AvailabilitySlot).delete()
        db.query(User).delete()
        db.commit()
    finally:
        db.close()


def test_parse_clock_time():
    assert parse_clock_time("00:00") == 0
    assert parse_clock_time("9:05") == 545
    assert parse_clock_time("23:59") == 1439
    assert parse_clock_time("24:00") is None
    assert parse_clock_time("12:60") is None
    assert parse_clock_time("noon") is None
    assert parse_clock_time("") is None


def test_normalize_clock_time_pads_hour():
    assert normalize_clock_time("9:05") == "09:05"
    assert normalize_clock_time("13:30") == "13:30"
    with pytest.raises(ValueError):
        normalize_clock_time("25:00")


@pytest.mark.parametrize(
    "candidate, expected",
    [
        ((540, 600), True),   # identical
        ((570, 630), True),   # starts inside
        ((510, 570), True),   # ends inside
        ((510, 630), True),   # contains
        ((550, 560), True),   # contained
        ((600, 660), False),  # starts exactly at end
        ((480, 540), False),  # ends exactly at start
    ],
)
def test_intervals_overlap_is_half_open(candidate, expected):
    assert intervals_overlap(candidate[0], candidate[1], 540, 600) is expected


def test_find_overlapping_slot_ignores_inactive_and_other_days():
    _clean_db()

    db: Session = SessionLocal()
    try:
        mentor = User(
            full_name="Ada Lovelace",
            email="ada@example.com",
            roles=["mentor"],
            skills=["Math"],
            bio="Analytical engines and notes.",
        )
        other = User(
            full_name="Alan Turing",
            email="alan@example.com",
            roles=["mentor"],
            skills=["Logic"],
            bio="Computability and machines.",
        )
        db.add_all([mentor, other])
        db.commit()

        db.add_all(
            [
                AvailabilitySlot(mentor_id=mentor.id, date=DAY, start_time="09:00", end_time="10:00"),
                AvailabilitySlot(
                    mentor_id=mentor.id,
                    date=DAY,
                    start_time="11:00",
                    end_time="12:00",
                    status="cancelled",
                ),
                AvailabilitySlot(
                    mentor_id=mentor.id,
                    date=DAY,
                    start_time="13:00",
                    end_time="14:00",
                    status="completed",
                ),
                AvailabilitySlot(mentor_id=other.id, date=DAY, start_time="15:00", end_time="16:00"),
                AvailabilitySlot(
                    mentor_id=mentor.id,
                    date=date(2030, 3, 5),
                    start_time="15:00",
                    end_time="16:00",
                ),
            ]
        )
        db.commit()

        hit = find_overlapping_slot(
            db, mentor_id=mentor.id, slot_date=DAY, start_time="09:30", end_time="10:30"
        )
        assert hit is not None
        assert hit.start_time == "09:00"

        # back-to-back is fine
        assert find_overlapping_slot(
            db, mentor_id=mentor.id, slot_date=DAY, start_time="10:00", end_time="11:00"
        ) is None

        # cancelled and completed slots free their time
        assert find_overlapping_slot(
            db, mentor_id=mentor.id, slot_date=DAY, start_time="11:00", end_time="14:00"
        ) is None

        # another mentor's slot and another date don't count
        assert find_overlapping_slot(
            db, mentor_id=mentor.id, slot_date=DAY, start_time="15:00", end_time="16:00"
        ) is None

        # a slot never conflicts with itself
        assert find_overlapping_slot(
            db,
            mentor_id=mentor.id,
            slot_date=DAY,
            start_time="09:15",
            end_time="09:45",
            exclude_slot_id=hit.id,
        ) is None
    finally:
        db.close()
