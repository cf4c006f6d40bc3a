# mentormesh/schemas/availability.py
from datetime import date as date_type
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from mentormesh.models.availability_slot import AvailabilitySlot
from mentormesh.models.user import User


class SlotCreate(BaseModel):
    mentor_id: int
    date: date_type
    start_time: str
    end_time: str
    timezone: Optional[str] = None
    notes: Optional[str] = None


class BulkSlotItem(BaseModel):
    # Everything optional here: missing fields are reported per slot index
    date: Optional[date_type] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    timezone: Optional[str] = None
    notes: Optional[str] = None


class BulkSlotCreate(BaseModel):
    mentor_id: int
    slots: List[BulkSlotItem] = Field(default_factory=list)


class SlotUpdate(BaseModel):
    date: Optional[date_type] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    timezone: Optional[str] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    meeting_link: Optional[str] = None


class BookSlotRequest(BaseModel):
    mentee_id: int
    booking_id: Optional[str] = None


def user_summary(user: Optional[User], *, include_profile: bool = False) -> Optional[Dict[str, Any]]:
    if user is None:
        return None
    data: Dict[str, Any] = {
        "id": user.id,
        "full_name": user.full_name,
        "email": user.email,
    }
    if include_profile:
        data["mentor_profile"] = {
            "skills": list(user.skills or []),
            "bio": user.bio,
            "expertise": user.expertise,
            "experience": user.experience,
        }
    return data


def slot_to_dict(
    slot: AvailabilitySlot,
    *,
    include_mentor: bool = False,
    include_booker: bool = False,
) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": slot.id,
        "mentor_id": slot.mentor_id,
        "date": slot.date.isoformat(),
        "start_time": slot.start_time,
        "end_time": slot.end_time,
        "status": slot.status,
        "is_booked": slot.is_booked,
        "booked_by_id": slot.booked_by_id,
        "booking_id": slot.booking_id,
        "meeting_link": slot.meeting_link,
        "timezone": slot.timezone,
        "notes": slot.notes,
        "created_at": slot.created_at.isoformat() if slot.created_at else None,
        "updated_at": slot.updated_at.isoformat() if slot.updated_at else None,
    }
    if include_mentor:
        data["mentor"] = user_summary(slot.mentor, include_profile=True)
    if include_booker:
        data["booked_by"] = user_summary(slot.booked_by)
    return data
