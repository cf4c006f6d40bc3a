# mentormesh/services/availability_service.py
import logging
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from mentormesh.models.availability_slot import (
    ACTIVE_STATUSES,
    AvailabilitySlot,
    SlotStatus,
)
from mentormesh.models.user import User
from mentormesh.errors import (
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    ValidationException,
)
from mentormesh.schemas.availability import slot_to_dict
from mentormesh.services.clock import Clock
from mentormesh.services.mentor_search_service import parse_skill_tokens, skills_match
from mentormesh.services.overlap_service import (
    find_overlapping_slot,
    first_overlap,
    normalize_clock_time,
    parse_clock_time,
)

logger = logging.getLogger(__name__)

NOTES_MAX_LENGTH = 500

# Statuses a slot may be moved to through a plain field update
EDITABLE_STATUSES = (SlotStatus.AVAILABLE.value, SlotStatus.CANCELLED.value)


def _validate_slot_fields(
    *,
    slot_date: Optional[date],
    start_time: Optional[str],
    end_time: Optional[str],
    notes: Optional[str],
    today: date,
    past_message: str = "Cannot create availability slot in the past",
) -> List[str]:
    """Every rule a slot's own fields must satisfy; returns all violations."""
    errors: List[str] = []

    if slot_date is None:
        errors.append("date is required")
    elif slot_date < today:
        errors.append(past_message)

    start = end = None
    if not start_time:
        errors.append("start_time is required")
    else:
        start = parse_clock_time(start_time)
        if start is None:
            errors.append("Start time must be in HH:MM format")

    if not end_time:
        errors.append("end_time is required")
    else:
        end = parse_clock_time(end_time)
        if end is None:
            errors.append("End time must be in HH:MM format")

    if start is not None and end is not None and end <= start:
        errors.append("End time must be after start time")

    if notes and len(notes) > NOTES_MAX_LENGTH:
        errors.append(f"Notes cannot exceed {NOTES_MAX_LENGTH} characters")

    return errors


def _require_mentor(db: Session, mentor_id: int) -> User:
    mentor = db.get(User, mentor_id)
    if mentor is None:
        raise NotFoundException("Mentor not found")
    if not mentor.is_mentor:
        raise ValidationException(
            "Validation failed",
            errors=["mentor_id must reference a user with the mentor role"],
        )
    return mentor


def get_slot_or_404(db: Session, slot_id: int) -> AvailabilitySlot:
    slot = db.get(AvailabilitySlot, slot_id)
    if slot is None:
        raise NotFoundException("Availability slot not found")
    return slot


def create_slot(
    db: Session,
    *,
    mentor_id: int,
    slot_date: date,
    start_time: str,
    end_time: str,
    clock: Clock,
    timezone: Optional[str] = None,
    notes: Optional[str] = None,
) -> AvailabilitySlot:
    """
    Create one `available` slot for a mentor.

    Rejects with ValidationException (all violations at once), then
    NotFoundException for an unknown mentor, then ConflictException
    carrying the overlapping slot.
    """
    errors = _validate_slot_fields(
        slot_date=slot_date,
        start_time=start_time,
        end_time=end_time,
        notes=notes,
        today=clock.today(),
    )
    if errors:
        raise ValidationException("Validation failed", errors=errors)

    _require_mentor(db, mentor_id)

    start_time = normalize_clock_time(start_time)
    end_time = normalize_clock_time(end_time)

    overlapping = find_overlapping_slot(
        db,
        mentor_id=mentor_id,
        slot_date=slot_date,
        start_time=start_time,
        end_time=end_time,
    )
    if overlapping is not None:
        raise ConflictException(
            "This time slot overlaps with an existing slot",
            extra={"existing_slot": slot_to_dict(overlapping)},
        )

    slot = AvailabilitySlot(
        mentor_id=mentor_id,
        date=slot_date,
        start_time=start_time,
        end_time=end_time,
        status=SlotStatus.AVAILABLE.value,
        timezone=timezone or "UTC",
        notes=notes or "",
    )
    db.add(slot)
    db.commit()
    db.refresh(slot)

    logger.info(
        "Created slot %s for mentor %s on %s %s-%s",
        slot.id,
        mentor_id,
        slot_date,
        start_time,
        end_time,
    )
    return slot


def bulk_create_slots(
    db: Session,
    *,
    mentor_id: int,
    slots: Iterable[Mapping[str, Any]],
    clock: Clock,
) -> List[AvailabilitySlot]:
    """
    Create many slots in one commit, or none at all.

    Each item is validated on its own (messages prefixed "Slot N:").
    Items must not overlap stored slots nor each other.
    """
    items = list(slots)
    if not items:
        raise ValidationException(
            "Validation failed",
            errors=["mentor_id and a non-empty slots array are required"],
        )

    today = clock.today()
    errors: List[str] = []
    for index, item in enumerate(items, start=1):
        item_errors = _validate_slot_fields(
            slot_date=item.get("date"),
            start_time=item.get("start_time"),
            end_time=item.get("end_time"),
            notes=item.get("notes"),
            today=today,
        )
        errors.extend(f"Slot {index}: {message}" for message in item_errors)

    if errors:
        raise ValidationException("Some slots have validation errors", errors=errors)

    _require_mentor(db, mentor_id)

    conflicts: List[str] = []
    accepted: Dict[date, List[Tuple[int, int, int]]] = {}
    new_slots: List[AvailabilitySlot] = []

    for index, item in enumerate(items, start=1):
        slot_date = item["date"]
        start_time = normalize_clock_time(item["start_time"])
        end_time = normalize_clock_time(item["end_time"])
        start = parse_clock_time(start_time)
        end = parse_clock_time(end_time)

        existing = find_overlapping_slot(
            db,
            mentor_id=mentor_id,
            slot_date=slot_date,
            start_time=start_time,
            end_time=end_time,
        )
        if existing is not None:
            conflicts.append(
                f"Slot {index}: overlaps existing slot {existing.id} "
                f"({existing.start_time}-{existing.end_time})"
            )
            continue

        earlier = first_overlap(start, end, accepted.get(slot_date, []))
        if earlier is not None:
            conflicts.append(f"Slot {index}: overlaps slot {earlier} in the same request")
            continue

        accepted.setdefault(slot_date, []).append((start, end, index))
        new_slots.append(
            AvailabilitySlot(
                mentor_id=mentor_id,
                date=slot_date,
                start_time=start_time,
                end_time=end_time,
                status=SlotStatus.AVAILABLE.value,
                timezone=item.get("timezone") or "UTC",
                notes=item.get("notes") or "",
            )
        )

    if conflicts:
        raise ConflictException("Some slots overlap existing availability", errors=conflicts)

    db.add_all(new_slots)
    db.commit()
    for slot in new_slots:
        db.refresh(slot)

    logger.info("Created %d slots for mentor %s", len(new_slots), mentor_id)
    return new_slots


def _validate_status_filter(status: Optional[str]) -> None:
    if status and status not in {s.value for s in SlotStatus}:
        raise ValidationException(
            "Validation failed",
            errors=[f"status must be one of: {', '.join(s.value for s in SlotStatus)}"],
        )


def list_mentor_availability(
    db: Session,
    *,
    mentor_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: Optional[str] = None,
    include_booked: bool = False,
) -> List[AvailabilitySlot]:
    """
    A mentor's slots ordered by (date, start_time).

    `status` filters exactly. Without it only available/booked slots are
    returned, unless `include_booked` asks for the full history.
    """
    _validate_status_filter(status)

    query = (
        db.query(AvailabilitySlot)
        .options(joinedload(AvailabilitySlot.booked_by))
        .filter(AvailabilitySlot.mentor_id == mentor_id)
    )
    if start_date is not None:
        query = query.filter(AvailabilitySlot.date >= start_date)
    if end_date is not None:
        query = query.filter(AvailabilitySlot.date <= end_date)

    if status:
        query = query.filter(AvailabilitySlot.status == status)
    elif not include_booked:
        query = query.filter(AvailabilitySlot.status.in_(ACTIVE_STATUSES))

    return query.order_by(
        AvailabilitySlot.date.asc(),
        AvailabilitySlot.start_time.asc(),
    ).all()


@dataclass
class MentorSlots:
    mentor: User
    slots: List[AvailabilitySlot]


def list_available_slots_for_date(
    db: Session,
    *,
    slot_date: date,
    skills: Optional[str] = None,
) -> List[MentorSlots]:
    """
    Open slots on one date, grouped by mentor (in order of each mentor's
    earliest slot). `skills` is a comma-separated list; a mentor matches
    when any token is a case-insensitive substring of one of their skills.
    """
    tokens = parse_skill_tokens(skills)

    slots = (
        db.query(AvailabilitySlot)
        .options(joinedload(AvailabilitySlot.mentor))
        .filter(
            AvailabilitySlot.date == slot_date,
            AvailabilitySlot.status == SlotStatus.AVAILABLE.value,
        )
        .order_by(AvailabilitySlot.start_time.asc(), AvailabilitySlot.id.asc())
        .all()
    )

    groups: Dict[int, MentorSlots] = {}
    for slot in slots:
        mentor = slot.mentor
        if mentor is None:
            continue
        if tokens and not skills_match(mentor.skills, tokens):
            continue
        groups.setdefault(mentor.id, MentorSlots(mentor=mentor, slots=[])).slots.append(slot)

    return list(groups.values())


def update_slot(
    db: Session,
    *,
    slot_id: int,
    changes: Mapping[str, Any],
    clock: Clock,
) -> AvailabilitySlot:
    """
    Apply a partial update. Only keys present in `changes` are touched.

    - date/time edits are refused on booked or completed slots
    - status may only be set to available (reopen) or cancelled (withdraw)
    - a changed interval, or a reopened slot, is checked for overlap
    """
    slot = get_slot_or_404(db, slot_id)

    time_keys = ("date", "start_time", "end_time")
    reschedules = any(changes.get(key) for key in time_keys)

    if reschedules and slot.is_booked:
        raise BusinessRuleException(
            "Cannot update date/time of a booked slot. Cancel it first or update other fields only."
        )
    if reschedules and slot.status == SlotStatus.COMPLETED.value:
        raise BusinessRuleException("Cannot update date/time of a completed slot")

    new_status = changes.get("status")
    status_changes = bool(new_status) and new_status != slot.status
    if status_changes and slot.status in (SlotStatus.BOOKED.value, SlotStatus.COMPLETED.value):
        raise BusinessRuleException(
            f"Cannot change status of a {slot.status} slot; use cancel or complete instead"
        )

    new_date = changes.get("date") or slot.date
    new_start = changes.get("start_time") or slot.start_time
    new_end = changes.get("end_time") or slot.end_time

    errors = _validate_slot_fields(
        slot_date=new_date,
        start_time=new_start,
        end_time=new_end,
        notes=changes.get("notes"),
        # untouched past dates stay legal; only a new date must be upcoming
        today=clock.today() if changes.get("date") else date.min,
        past_message="Cannot set date in the past",
    )
    if status_changes and new_status not in EDITABLE_STATUSES:
        errors.append("status can only be set to 'available' or 'cancelled'")
    if errors:
        raise ValidationException("Validation failed", errors=errors)

    new_start = normalize_clock_time(new_start)
    new_end = normalize_clock_time(new_end)
    target_status = new_status if status_changes else slot.status

    reopening = (
        slot.status == SlotStatus.CANCELLED.value
        and target_status == SlotStatus.AVAILABLE.value
    )
    if target_status in ACTIVE_STATUSES and (reschedules or reopening):
        overlapping = find_overlapping_slot(
            db,
            mentor_id=slot.mentor_id,
            slot_date=new_date,
            start_time=new_start,
            end_time=new_end,
            exclude_slot_id=slot.id,
        )
        if overlapping is not None:
            raise ConflictException(
                "This time slot overlaps with an existing slot",
                extra={"existing_slot": slot_to_dict(overlapping)},
            )

    slot.date = new_date
    slot.start_time = new_start
    slot.end_time = new_end
    slot.status = target_status
    if changes.get("timezone"):
        slot.timezone = changes["timezone"]
    if "notes" in changes:
        slot.notes = changes["notes"] or ""
    if "meeting_link" in changes:
        slot.meeting_link = changes["meeting_link"]

    db.commit()
    db.refresh(slot)
    logger.info("Updated slot %s (status=%s)", slot.id, slot.status)
    return slot


def delete_slot(db: Session, *, slot_id: int) -> None:
    slot = get_slot_or_404(db, slot_id)

    if slot.is_booked:
        raise BusinessRuleException("Cannot delete a booked slot. Cancel the booking first.")
    if slot.status == SlotStatus.COMPLETED.value:
        raise BusinessRuleException("Cannot delete a completed slot; it is part of the session history")

    db.delete(slot)
    db.commit()
    logger.info("Deleted slot %s", slot_id)


@dataclass
class MeetingDetails:
    slot: AvailabilitySlot
    can_join: bool
    time_until_meeting: int  # whole minutes, never negative


def get_meeting_details(
    db: Session,
    *,
    slot_id: int,
    clock: Clock,
    join_window_minutes: int = 10,
) -> MeetingDetails:
    """
    Joining opens `join_window_minutes` before the scheduled start and
    stays open afterwards.
    """
    slot = get_slot_or_404(db, slot_id)
    if not slot.is_booked:
        raise BusinessRuleException("This slot is not booked yet")

    remaining = slot.starts_at - clock.now()
    seconds = remaining.total_seconds()

    return MeetingDetails(
        slot=slot,
        can_join=remaining <= timedelta(minutes=join_window_minutes),
        time_until_meeting=math.floor(seconds / 60) if seconds > 0 else 0,
    )


def mentor_stats(db: Session, *, mentor_id: int, clock: Clock) -> Dict[str, int]:
    def count(*criteria) -> int:
        return (
            db.query(func.count(AvailabilitySlot.id))
            .filter(AvailabilitySlot.mentor_id == mentor_id, *criteria)
            .scalar()
            or 0
        )

    return {
        "total_slots": count(),
        "booked_slots": count(AvailabilitySlot.is_booked),
        "available_slots": count(
            AvailabilitySlot.status == SlotStatus.AVAILABLE.value,
            AvailabilitySlot.date >= clock.today(),
        ),
        "completed_slots": count(AvailabilitySlot.status == SlotStatus.COMPLETED.value),
        "cancelled_slots": count(AvailabilitySlot.status == SlotStatus.CANCELLED.value),
    }


def mentee_bookings(
    db: Session,
    *,
    mentee_id: int,
    clock: Clock,
    include_past: bool = False,
) -> List[AvailabilitySlot]:
    """Booked and completed sessions of a mentee, upcoming only by default."""
    query = (
        db.query(AvailabilitySlot)
        .options(joinedload(AvailabilitySlot.mentor))
        .filter(
            AvailabilitySlot.booked_by_id == mentee_id,
            AvailabilitySlot.status.in_(
                (SlotStatus.BOOKED.value, SlotStatus.COMPLETED.value)
            ),
        )
    )
    if not include_past:
        query = query.filter(AvailabilitySlot.date >= clock.today())

    return query.order_by(
        AvailabilitySlot.date.asc(),
        AvailabilitySlot.start_time.asc(),
    ).all()
