# mentormesh/services/meeting_links.py
from typing import Optional

from mentormesh.config import get_settings


def build_meeting_link(
    mentor_id: int,
    slot_id: int,
    *,
    base_url: Optional[str] = None,
    room_prefix: Optional[str] = None,
) -> str:
    """
    Deterministic video-room URL for a booked slot.

    The room name only depends on (mentor_id, slot_id), so re-booking the
    same slot always yields the same link and nothing is called remotely.
    """
    settings = get_settings()
    base = (base_url or settings.MEETING_BASE_URL).rstrip("/")
    prefix = room_prefix or settings.MEETING_ROOM_PREFIX
    return f"{base}/{prefix}-{mentor_id}-{slot_id}"
