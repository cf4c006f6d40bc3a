# mentormesh/schemas/users.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, EmailStr, Field

from mentormesh.models.user import User


class MentorProfileIn(BaseModel):
    skills: Optional[List[str]] = None
    bio: Optional[str] = None
    expertise: Optional[str] = None
    experience: Optional[int] = None


class MenteeProfileIn(BaseModel):
    interests: Optional[List[str]] = None
    goals: Optional[str] = None
    current_level: Optional[str] = None
    bio: Optional[str] = None
    learning_goals: Optional[List[str]] = None


class UserCreate(BaseModel):
    full_name: str
    email: EmailStr
    roles: List[str] = Field(default_factory=list)
    mentor_profile: Optional[MentorProfileIn] = None
    mentee_profile: Optional[MenteeProfileIn] = None


class ProfileUpdate(BaseModel):
    full_name: Optional[str] = None
    mentor_profile: Optional[MentorProfileIn] = None
    mentee_profile: Optional[MenteeProfileIn] = None


class AddRoleRequest(BaseModel):
    role: str
    profile: Optional[Dict[str, Any]] = None


def user_to_dict(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "full_name": user.full_name,
        "email": user.email,
        "roles": list(user.roles or []),
        "mentor_profile": {
            "skills": list(user.skills or []),
            "bio": user.bio,
            "expertise": user.expertise,
            "experience": user.experience,
        },
        "mentee_profile": {
            "interests": list(user.interests or []),
            "goals": user.goals,
            "current_level": user.current_level,
            "bio": user.mentee_bio,
            "learning_goals": list(user.learning_goals or []),
        },
        "is_verified": user.is_verified,
        "account_status": user.account_status,
        "profile_completion": {
            "mentor": user.mentor_completion,
            "mentee": user.mentee_completion,
            "overall": user.overall_completion,
        },
        "last_login": user.last_login.isoformat() if user.last_login else None,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }
