# mentormesh/services/overlap_service.py
import logging
import re
from datetime import date
from typing import Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from mentormesh.models.availability_slot import ACTIVE_STATUSES, AvailabilitySlot

logger = logging.getLogger(__name__)

# H:MM or HH:MM, 24-hour
_TIME_RE = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")


def parse_clock_time(value: str) -> Optional[int]:
    """
    "09:30" -> 570 (minutes since midnight). Returns None when the string
    is not a valid 24-hour H:MM / HH:MM time.
    """
    if not isinstance(value, str):
        return None
    match = _TIME_RE.match(value.strip())
    if not match:
        return None
    return int(match.group(1)) * 60 + int(match.group(2))


def normalize_clock_time(value: str) -> str:
    """"9:05" -> "09:05". Caller must have validated the value."""
    minutes = parse_clock_time(value)
    if minutes is None:
        raise ValueError(f"invalid time: {value!r}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def intervals_overlap(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """Half-open [start, end) intersection; touching edges do not overlap."""
    return start_a < end_b and start_b < end_a


def first_overlap(
    start: int,
    end: int,
    candidates: Iterable[Tuple[int, int, object]],
) -> Optional[object]:
    """Return the payload of the first (start, end, payload) that intersects [start, end)."""
    for other_start, other_end, payload in candidates:
        if intervals_overlap(start, end, other_start, other_end):
            return payload
    return None


def find_overlapping_slot(
    db: Session,
    *,
    mentor_id: int,
    slot_date: date,
    start_time: str,
    end_time: str,
    exclude_slot_id: Optional[int] = None,
) -> Optional[AvailabilitySlot]:
    """
    First available/booked slot of `mentor_id` on exactly `slot_date`
    whose interval intersects [start_time, end_time).

    Completed and cancelled slots never conflict. `exclude_slot_id` lets
    an edited slot ignore its own current interval.
    """
    start = parse_clock_time(start_time)
    end = parse_clock_time(end_time)
    if start is None or end is None:
        raise ValueError("start_time and end_time must be HH:MM")

    query = db.query(AvailabilitySlot).filter(
        AvailabilitySlot.mentor_id == mentor_id,
        AvailabilitySlot.date == slot_date,
        AvailabilitySlot.status.in_(ACTIVE_STATUSES),
    )
    if exclude_slot_id is not None:
        query = query.filter(AvailabilitySlot.id != exclude_slot_id)

    existing = query.order_by(AvailabilitySlot.start_time.asc()).all()

    conflict = first_overlap(
        start,
        end,
        (
            (parse_clock_time(s.start_time), parse_clock_time(s.end_time), s)
            for s in existing
        ),
    )
    if conflict is not None:
        logger.warning(
            "Slot %s-%s on %s for mentor %s overlaps slot %s",
            start_time,
            end_time,
            slot_date,
            mentor_id,
            conflict.id,
        )
    return conflict
