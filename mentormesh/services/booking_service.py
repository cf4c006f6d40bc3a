# mentormesh/services/booking_service.py
"""
Booking state machine for availability slots.

    available --book--> booked --complete--> completed
        ^                 |
        +-----cancel------+

Every transition is one conditional UPDATE keyed on the slot id *and*
the status it expects to leave. If another request moved the slot first,
no row matches and the caller gets a rejection instead of a silent
double booking.
"""
import logging
from typing import Any, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from mentormesh.errors import (
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    ValidationException,
)
from mentormesh.models.availability_slot import AvailabilitySlot, SlotStatus
from mentormesh.models.base import utcnow
from mentormesh.models.user import User
from mentormesh.services.availability_service import get_slot_or_404
from mentormesh.services.clock import Clock
from mentormesh.services.meeting_links import build_meeting_link

logger = logging.getLogger(__name__)


def transition_slot(
    db: Session,
    *,
    slot_id: int,
    expected: SlotStatus,
    **values: Any,
) -> bool:
    """
    Compare-and-set: write `values` only if the row still has status
    `expected`. Commits and returns whether this call won.
    """
    result = db.execute(
        update(AvailabilitySlot)
        .where(
            AvailabilitySlot.id == slot_id,
            AvailabilitySlot.status == expected.value,
        )
        .values(updated_at=utcnow(), **values)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def book_slot(
    db: Session,
    *,
    slot_id: int,
    mentee_id: int,
    clock: Clock,
    booking_id: Optional[str] = None,
) -> AvailabilitySlot:
    slot = get_slot_or_404(db, slot_id)

    mentee = db.get(User, mentee_id)
    if mentee is None:
        raise NotFoundException("Mentee not found")
    if not mentee.is_mentee:
        raise ValidationException(
            "Validation failed",
            errors=["mentee_id must reference a user with the mentee role"],
        )
    if mentee.id == slot.mentor_id:
        raise BusinessRuleException("Mentors cannot book their own slot")

    if slot.is_booked:
        raise ConflictException("This slot is already booked")
    if slot.status != SlotStatus.AVAILABLE.value:
        raise BusinessRuleException(f"Cannot book a {slot.status} slot")

    if slot.starts_at <= clock.now():
        raise ValidationException(
            "Cannot book a slot in the past",
            errors=["Slot start must be in the future"],
        )

    meeting_link = build_meeting_link(slot.mentor_id, slot.id)

    won = transition_slot(
        db,
        slot_id=slot.id,
        expected=SlotStatus.AVAILABLE,
        status=SlotStatus.BOOKED.value,
        booked_by_id=mentee.id,
        booking_id=booking_id,
        meeting_link=meeting_link,
    )
    if not won:
        logger.warning("Lost booking race for slot %s (mentee %s)", slot.id, mentee.id)
        raise ConflictException("This slot is already booked")

    db.refresh(slot)
    logger.info("Slot %s booked by mentee %s", slot.id, mentee.id)
    return slot


def cancel_booking(db: Session, *, slot_id: int) -> AvailabilitySlot:
    """Return a booked slot to the pool, clearing every booking field."""
    slot = get_slot_or_404(db, slot_id)
    if not slot.is_booked:
        raise BusinessRuleException("This slot is not booked")

    won = transition_slot(
        db,
        slot_id=slot.id,
        expected=SlotStatus.BOOKED,
        status=SlotStatus.AVAILABLE.value,
        booked_by_id=None,
        booking_id=None,
        meeting_link=None,
    )
    if not won:
        raise BusinessRuleException("This slot is not booked")

    db.refresh(slot)
    logger.info("Booking on slot %s cancelled", slot.id)
    return slot


def complete_slot(db: Session, *, slot_id: int) -> AvailabilitySlot:
    """Mark a booked session as held. Booker and link stay for history."""
    slot = get_slot_or_404(db, slot_id)
    if not slot.is_booked:
        raise BusinessRuleException("Only booked slots can be completed")

    won = transition_slot(
        db,
        slot_id=slot.id,
        expected=SlotStatus.BOOKED,
        status=SlotStatus.COMPLETED.value,
    )
    if not won:
        raise BusinessRuleException("Only booked slots can be completed")

    db.refresh(slot)
    logger.info("Slot %s marked completed", slot.id)
    return slot
