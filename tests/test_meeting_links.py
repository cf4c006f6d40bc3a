# tests/test_meeting_links.py
from mentormesh.services.meeting_links import build_meeting_link


def test_meeting_link_is_deterministic():
    first = build_meeting_link(7, 42)
    assert first == "https://meet.jit.si/mentormesh-7-42"
    assert build_meeting_link(7, 42) == first
    assert build_meeting_link(7, 43) != first


def test_meeting_link_accepts_custom_base():
    link = build_meeting_link(1, 2, base_url="https://video.example.org/", room_prefix="mm")
    assert link == "https://video.example.org/mm-1-2"
