# mentormesh/services/mentor_search_service.py
import math
from dataclasses import dataclass
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from mentormesh.models.user import AccountStatus, User

SORT_KEYS = ("experience", "name", "newest")


def parse_skill_tokens(skills: Optional[str]) -> List[str]:
    """"Python, ,react " -> ["python", "react"]"""
    if not skills:
        return []
    return [token.strip().lower() for token in skills.split(",") if token.strip()]


def skills_match(mentor_skills: Optional[Iterable[str]], tokens: List[str]) -> bool:
    """True when any token is a case-insensitive substring of any skill."""
    lowered = [skill.lower() for skill in (mentor_skills or []) if isinstance(skill, str)]
    return any(token in skill for token in tokens for skill in lowered)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _contains(column, value: str):
    return column.ilike(f"%{_escape_like(value)}%", escape="\\")


@dataclass
class MentorSearchResult:
    mentors: List[User]
    page: int
    limit: int
    total_count: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.limit) if self.limit else 0

    @property
    def has_more(self) -> bool:
        return self.page < self.total_pages


def search_mentors(
    db: Session,
    *,
    skills: Optional[str] = None,
    min_experience: Optional[int] = None,
    max_experience: Optional[int] = None,
    expertise: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "experience",
    limit: int = 20,
    page: int = 1,
) -> MentorSearchResult:
    """
    Public mentor directory: only verified, active mentors.

    Scalar filters run in SQL; role and skill membership live in JSON
    arrays and are matched in Python before paginating.
    """
    query = db.query(User).filter(
        User.account_status == AccountStatus.ACTIVE.value,
        User.is_verified.is_(True),
    )

    if min_experience is not None:
        query = query.filter(User.experience >= min_experience)
    if max_experience is not None:
        query = query.filter(User.experience <= max_experience)
    if expertise:
        query = query.filter(_contains(User.expertise, expertise))
    if search:
        query = query.filter(or_(_contains(User.full_name, search), _contains(User.bio, search)))

    if sort_by == "name":
        query = query.order_by(User.full_name.asc(), User.id.asc())
    elif sort_by == "newest":
        query = query.order_by(User.created_at.desc(), User.id.desc())
    else:
        query = query.order_by(User.experience.desc().nulls_last(), User.id.asc())

    tokens = parse_skill_tokens(skills)
    mentors = [
        user
        for user in query.all()
        if user.is_mentor and (not tokens or skills_match(user.skills, tokens))
    ]

    offset = (page - 1) * limit
    return MentorSearchResult(
        mentors=mentors[offset : offset + limit],
        page=page,
        limit=limit,
        total_count=len(mentors),
    )
