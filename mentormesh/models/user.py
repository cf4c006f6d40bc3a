# mentormesh/models/user.py
from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text

from mentormesh.models.base import Base, utcnow


class UserRole(str, Enum):
    MENTOR = "mentor"
    MENTEE = "mentee"
    ADMIN = "admin"


class AccountStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    SUSPENDED = "suspended"


class MenteeLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class User(Base):
    """
    A directory entry for a mentor, a mentee, or both.

    Roles and skill/interest lists are JSON arrays of strings. Credentials
    live with the identity provider, not here.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)

    roles = Column(JSON, nullable=False, default=list)

    # Mentor profile
    skills = Column(JSON, nullable=False, default=list)
    bio = Column(Text, nullable=True)
    expertise = Column(String(255), nullable=True)
    experience = Column(Integer, nullable=True)  # years

    # Mentee profile
    interests = Column(JSON, nullable=False, default=list)
    goals = Column(Text, nullable=True)
    current_level = Column(String(16), nullable=False, default=MenteeLevel.BEGINNER.value)
    mentee_bio = Column(Text, nullable=True)
    learning_goals = Column(JSON, nullable=False, default=list)

    is_verified = Column(Boolean, nullable=False, default=False)
    account_status = Column(
        String(16),
        nullable=False,
        default=AccountStatus.PENDING.value,
        index=True,
    )

    mentor_completion = Column(Integer, nullable=False, default=0)
    mentee_completion = Column(Integer, nullable=False, default=0)
    overall_completion = Column(Integer, nullable=False, default=0)

    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def has_role(self, role: UserRole) -> bool:
        return role.value in (self.roles or [])

    @property
    def is_mentor(self) -> bool:
        return self.has_role(UserRole.MENTOR)

    @property
    def is_mentee(self) -> bool:
        return self.has_role(UserRole.MENTEE)
