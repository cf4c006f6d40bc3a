# mentormesh/services/user_service.py
import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from mentormesh.errors import (
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    ValidationException,
    describe_validation_error,
)
from mentormesh.models.user import AccountStatus, MenteeLevel, User, UserRole
from mentormesh.schemas.users import MenteeProfileIn, MentorProfileIn

logger = logging.getLogger(__name__)

BIO_MAX_LENGTH = 1000

# profile field -> weight, as percentages of a full profile
MENTOR_WEIGHTS = {"skills": 30, "bio": 30, "expertise": 20, "experience": 20}
MENTEE_WEIGHTS = {"interests": 25, "goals": 25, "current_level": 20, "mentee_bio": 15}
BASE_FIELD_WEIGHT = 100 / 9

# Request keys -> model columns
MENTOR_FIELDS = {"skills": "skills", "bio": "bio", "expertise": "expertise", "experience": "experience"}
MENTEE_FIELDS = {
    "interests": "interests",
    "goals": "goals",
    "current_level": "current_level",
    "bio": "mentee_bio",
    "learning_goals": "learning_goals",
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _filled(value: Any) -> bool:
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return bool(value)


def compute_profile_completion(user: User) -> None:
    """
    Fill mentor/mentee/overall completion percentages on `user`.

    Name and email make up the shared base; each role adds its weighted
    profile fields, capped at 100. Overall is the mean over held roles.
    """
    base = sum(BASE_FIELD_WEIGHT for value in (user.full_name, user.email) if value)

    scores: List[int] = []
    if user.is_mentor:
        score = base + sum(w for f, w in MENTOR_WEIGHTS.items() if _filled(getattr(user, f)))
        user.mentor_completion = min(100, _round_half_up(score))
        scores.append(user.mentor_completion)
    if user.is_mentee:
        score = base + sum(w for f, w in MENTEE_WEIGHTS.items() if _filled(getattr(user, f)))
        user.mentee_completion = min(100, _round_half_up(score))
        scores.append(user.mentee_completion)

    user.overall_completion = _round_half_up(sum(scores) / len(scores)) if scores else 0


def _clean_list(values: Optional[Iterable[str]]) -> List[str]:
    return [v.strip() for v in (values or []) if isinstance(v, str) and v.strip()]


def _validate_user(user: User) -> List[str]:
    errors: List[str] = []

    name = (user.full_name or "").strip()
    if len(name) < 2:
        errors.append("Full name must be at least 2 characters")
    elif len(name) > 100:
        errors.append("Full name cannot exceed 100 characters")

    # format is checked by EmailStr at the request boundary
    if not user.email:
        errors.append("Please enter a valid email")

    roles = user.roles or []
    if not roles:
        errors.append("At least one role must be selected")
    valid_roles = {r.value for r in UserRole}
    for role in roles:
        if role not in valid_roles:
            errors.append(f"Unknown role: {role}")

    if user.is_mentor:
        if not user.skills:
            errors.append("Skills are required for mentors")
        if not user.bio or len(user.bio.strip()) < 10:
            errors.append("Bio is required for mentors and must be at least 10 characters")
    if user.bio and len(user.bio) > BIO_MAX_LENGTH:
        errors.append(f"Bio cannot exceed {BIO_MAX_LENGTH} characters")
    if user.mentee_bio and len(user.mentee_bio) > BIO_MAX_LENGTH:
        errors.append(f"Mentee bio cannot exceed {BIO_MAX_LENGTH} characters")

    if user.experience is not None and user.experience < 0:
        errors.append("Experience cannot be negative")
    if user.current_level not in {level.value for level in MenteeLevel}:
        errors.append("current_level must be beginner, intermediate or advanced")

    return errors


def _apply_profile(user: User, data: Optional[Mapping[str, Any]], fields: Dict[str, str]) -> None:
    if not data:
        return
    for key, column in fields.items():
        if key not in data or data[key] is None:
            continue
        value = data[key]
        if isinstance(value, list):
            value = _clean_list(value)
        elif isinstance(value, str):
            value = value.strip()
        setattr(user, column, value)


def _save(db: Session, user: User) -> User:
    errors = _validate_user(user)
    if errors:
        db.rollback()
        raise ValidationException("Validation failed", errors=errors)

    compute_profile_completion(user)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundException("User not found")
    return user


def create_user(
    db: Session,
    *,
    full_name: str,
    email: str,
    roles: Iterable[str],
    mentor_profile: Optional[Mapping[str, Any]] = None,
    mentee_profile: Optional[Mapping[str, Any]] = None,
) -> User:
    email = (email or "").strip().lower()
    if db.query(User).filter(User.email == email).first() is not None:
        raise ConflictException("An account with this email already exists")

    user = User(
        full_name=(full_name or "").strip(),
        email=email,
        roles=list(dict.fromkeys(r.strip().lower() for r in roles)),
        skills=[],
        interests=[],
        learning_goals=[],
        current_level=MenteeLevel.BEGINNER.value,
        is_verified=False,
        account_status=AccountStatus.PENDING.value,
    )
    _apply_profile(user, mentor_profile, MENTOR_FIELDS)
    _apply_profile(user, mentee_profile, MENTEE_FIELDS)

    user = _save(db, user)
    logger.info("Created user %s with roles %s", user.id, user.roles)
    return user


def update_profile(
    db: Session,
    *,
    user_id: int,
    full_name: Optional[str] = None,
    mentor_profile: Optional[Mapping[str, Any]] = None,
    mentee_profile: Optional[Mapping[str, Any]] = None,
) -> User:
    """Merge profile fields; each profile only applies to a held role."""
    user = get_user_or_404(db, user_id)

    if full_name:
        user.full_name = full_name.strip()
    if user.is_mentor:
        _apply_profile(user, mentor_profile, MENTOR_FIELDS)
    if user.is_mentee:
        _apply_profile(user, mentee_profile, MENTEE_FIELDS)

    return _save(db, user)


def add_role(
    db: Session,
    *,
    user_id: int,
    role: str,
    profile: Optional[Mapping[str, Any]] = None,
) -> User:
    user = get_user_or_404(db, user_id)

    role = (role or "").strip().lower()
    if role not in (UserRole.MENTOR.value, UserRole.MENTEE.value):
        raise ValidationException("Validation failed", errors=["role must be mentor or mentee"])
    if role in (user.roles or []):
        raise BusinessRuleException(f"User already has the {role} role")

    is_mentor_role = role == UserRole.MENTOR.value
    profile_model = MentorProfileIn if is_mentor_role else MenteeProfileIn
    try:
        checked = profile_model.model_validate(dict(profile or {}))
    except ValidationError as exc:
        raise ValidationException(
            "Validation failed",
            errors=[f"profile.{describe_validation_error(e)}" for e in exc.errors()],
        ) from exc

    # reassign so the JSON column is flagged dirty
    user.roles = list(user.roles or []) + [role]
    _apply_profile(
        user,
        checked.model_dump(exclude_none=True),
        MENTOR_FIELDS if is_mentor_role else MENTEE_FIELDS,
    )

    user = _save(db, user)
    logger.info("Added role %s to user %s", role, user.id)
    return user


def verify_mentor(db: Session, *, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None or not user.is_mentor:
        raise NotFoundException("Mentor not found")
    if user.account_status == AccountStatus.ACTIVE.value:
        raise BusinessRuleException("Mentor is already verified")

    user.account_status = AccountStatus.ACTIVE.value
    user.is_verified = True
    db.commit()
    db.refresh(user)
    logger.info("Mentor %s verified", user.id)
    return user


def suspend_user(db: Session, *, user_id: int) -> User:
    user = get_user_or_404(db, user_id)
    if user.has_role(UserRole.ADMIN):
        raise BusinessRuleException("Cannot suspend admin users")
    if user.account_status == AccountStatus.SUSPENDED.value:
        raise BusinessRuleException("User is already suspended")

    user.account_status = AccountStatus.SUSPENDED.value
    db.commit()
    db.refresh(user)
    logger.info("User %s suspended", user.id)
    return user


def reactivate_user(db: Session, *, user_id: int) -> User:
    user = get_user_or_404(db, user_id)
    if user.account_status != AccountStatus.SUSPENDED.value:
        raise BusinessRuleException("Only suspended users can be reactivated")

    user.account_status = AccountStatus.ACTIVE.value
    db.commit()
    db.refresh(user)
    logger.info("User %s reactivated", user.id)
    return user
