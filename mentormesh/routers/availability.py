# mentormesh/routers/availability.py
from datetime import date
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from mentormesh.config import get_settings
from mentormesh.db.session import get_db
from mentormesh.schemas.availability import (
    BookSlotRequest,
    BulkSlotCreate,
    SlotCreate,
    SlotUpdate,
    slot_to_dict,
    user_summary,
)
from mentormesh.services import availability_service, booking_service
from mentormesh.services.clock import Clock, get_clock
from mentormesh.services.mentor_search_service import search_mentors

router = APIRouter(prefix="/availability", tags=["availability"])


@router.post("", status_code=201)
def create_availability_slot(
    payload: SlotCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> Dict[str, Any]:
    """
    Create a single slot. 409 with `existing_slot` when it overlaps one of
    the mentor's available/booked slots on that date.
    """
    slot = availability_service.create_slot(
        db,
        mentor_id=payload.mentor_id,
        slot_date=payload.date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        timezone=payload.timezone,
        notes=payload.notes,
        clock=clock,
    )
    return {
        "success": True,
        "message": "Availability slot created successfully",
        "data": {"availability": slot_to_dict(slot)},
    }


@router.post("/bulk", status_code=201)
def bulk_create_availability_slots(
    payload: BulkSlotCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> Dict[str, Any]:
    slots = availability_service.bulk_create_slots(
        db,
        mentor_id=payload.mentor_id,
        slots=[item.model_dump() for item in payload.slots],
        clock=clock,
    )
    return {
        "success": True,
        "message": f"{len(slots)} availability slots created successfully",
        "data": {
            "count": len(slots),
            "slots": [slot_to_dict(s) for s in slots],
        },
    }


@router.get("/mentor/{mentor_id}")
def get_mentor_availability(
    mentor_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    status: Optional[str] = None,
    include_booked: bool = False,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    slots = availability_service.list_mentor_availability(
        db,
        mentor_id=mentor_id,
        start_date=start_date,
        end_date=end_date,
        status=status,
        include_booked=include_booked,
    )
    return {
        "success": True,
        "data": {
            "mentor_id": mentor_id,
            "count": len(slots),
            "availability": [slot_to_dict(s, include_booker=True) for s in slots],
        },
    }


@router.get("/mentor/{mentor_id}/stats")
def get_mentor_stats(
    mentor_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> Dict[str, Any]:
    stats = availability_service.mentor_stats(db, mentor_id=mentor_id, clock=clock)
    return {"success": True, "data": {"mentor_id": mentor_id, **stats}}


@router.get("/date/{slot_date}")
def get_available_slots_for_date(
    slot_date: date,
    skills: Optional[str] = None,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    """
    Open slots on one day grouped by mentor. `skills` is comma-separated,
    e.g. `?skills=python,react`.
    """
    groups = availability_service.list_available_slots_for_date(
        db,
        slot_date=slot_date,
        skills=skills,
    )
    return {
        "success": True,
        "data": {
            "date": slot_date.isoformat(),
            "count": len(groups),
            "total_slots": sum(len(g.slots) for g in groups),
            "mentors": [
                {
                    "mentor": user_summary(g.mentor, include_profile=True),
                    "slots": [slot_to_dict(s) for s in g.slots],
                }
                for g in groups
            ],
        },
    }


@router.get("/mentors/search")
def search_mentor_directory(
    skills: Optional[str] = None,
    min_experience: Optional[int] = Query(None, ge=0),
    max_experience: Optional[int] = Query(None, ge=0),
    expertise: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "experience",
    limit: int = Query(20, ge=1),
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    limit = min(limit, get_settings().SEARCH_MAX_LIMIT)
    result = search_mentors(
        db,
        skills=skills,
        min_experience=min_experience,
        max_experience=max_experience,
        expertise=expertise,
        search=search,
        sort_by=sort_by,
        limit=limit,
        page=page,
    )
    return {
        "success": True,
        "data": {
            "mentors": [
                {
                    **user_summary(m, include_profile=True),
                    "created_at": m.created_at.isoformat() if m.created_at else None,
                    "last_login": m.last_login.isoformat() if m.last_login else None,
                }
                for m in result.mentors
            ],
            "pagination": {
                "current_page": result.page,
                "total_pages": result.total_pages,
                "total_count": result.total_count,
                "limit": result.limit,
                "has_more": result.has_more,
            },
        },
    }


@router.get("/mentee/{mentee_id}/bookings")
def get_mentee_bookings(
    mentee_id: int,
    include_past: bool = False,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> Dict[str, Any]:
    bookings = availability_service.mentee_bookings(
        db,
        mentee_id=mentee_id,
        include_past=include_past,
        clock=clock,
    )
    return {
        "success": True,
        "data": {
            "mentee_id": mentee_id,
            "count": len(bookings),
            "bookings": [slot_to_dict(s, include_mentor=True) for s in bookings],
        },
    }


@router.get("/{slot_id}")
def get_availability_slot(slot_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    slot = availability_service.get_slot_or_404(db, slot_id)
    return {
        "success": True,
        "data": {"availability": slot_to_dict(slot, include_mentor=True, include_booker=True)},
    }


@router.put("/{slot_id}")
def update_availability_slot(
    slot_id: int,
    payload: SlotUpdate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> Dict[str, Any]:
    slot = availability_service.update_slot(
        db,
        slot_id=slot_id,
        changes=payload.model_dump(exclude_unset=True),
        clock=clock,
    )
    return {
        "success": True,
        "message": "Availability slot updated successfully",
        "data": {"availability": slot_to_dict(slot)},
    }


@router.delete("/{slot_id}")
def delete_availability_slot(slot_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    availability_service.delete_slot(db, slot_id=slot_id)
    return {"success": True, "message": "Availability slot deleted successfully"}


@router.post("/{slot_id}/book")
def book_availability_slot(
    slot_id: int,
    payload: BookSlotRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> Dict[str, Any]:
    slot = booking_service.book_slot(
        db,
        slot_id=slot_id,
        mentee_id=payload.mentee_id,
        booking_id=payload.booking_id,
        clock=clock,
    )
    return {
        "success": True,
        "message": "Slot booked successfully",
        "data": {
            "availability": slot_to_dict(slot, include_mentor=True, include_booker=True),
            "meeting_link": slot.meeting_link,
        },
    }


@router.get("/{slot_id}/meeting")
def get_meeting_details(
    slot_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> Dict[str, Any]:
    details = availability_service.get_meeting_details(
        db,
        slot_id=slot_id,
        clock=clock,
        join_window_minutes=get_settings().JOIN_WINDOW_MINUTES,
    )
    slot = details.slot
    return {
        "success": True,
        "data": {
            "meeting_link": slot.meeting_link,
            "mentor": {"name": slot.mentor.full_name, "email": slot.mentor.email},
            "mentee": {"name": slot.booked_by.full_name, "email": slot.booked_by.email},
            "schedule": {
                "date": slot.date.isoformat(),
                "start_time": slot.start_time,
                "end_time": slot.end_time,
                "timezone": slot.timezone,
            },
            "can_join": details.can_join,
            "time_until_meeting": details.time_until_meeting,
        },
    }


@router.post("/{slot_id}/cancel")
def cancel_slot_booking(slot_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    slot = booking_service.cancel_booking(db, slot_id=slot_id)
    return {
        "success": True,
        "message": "Booking cancelled successfully",
        "data": {"availability": slot_to_dict(slot)},
    }


@router.post("/{slot_id}/complete")
def complete_availability_slot(slot_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    slot = booking_service.complete_slot(db, slot_id=slot_id)
    return {
        "success": True,
        "message": "Slot marked as completed",
        "data": {"availability": slot_to_dict(slot)},
    }
