# mentormesh/routers/users.py
from typing import Any, Dict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from mentormesh.db.session import get_db
from mentormesh.schemas.users import AddRoleRequest, ProfileUpdate, UserCreate, user_to_dict
from mentormesh.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


def _profile(model) -> Dict[str, Any]:
    return model.model_dump(exclude_none=True) if model is not None else {}


@router.post("", status_code=201)
def create_user(payload: UserCreate, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """
    Register a directory entry. New accounts start `pending` and
    unverified; mentors appear in search once verified.
    """
    user = user_service.create_user(
        db,
        full_name=payload.full_name,
        email=payload.email,
        roles=payload.roles,
        mentor_profile=_profile(payload.mentor_profile),
        mentee_profile=_profile(payload.mentee_profile),
    )
    return {"success": True, "message": "User created successfully", "data": {"user": user_to_dict(user)}}


@router.post("/mentors/{user_id}/verify")
def verify_mentor(user_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    user = user_service.verify_mentor(db, user_id=user_id)
    return {"success": True, "message": "Mentor verified successfully", "data": {"user": user_to_dict(user)}}


@router.get("/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    user = user_service.get_user_or_404(db, user_id)
    return {"success": True, "data": {"user": user_to_dict(user)}}


@router.put("/{user_id}/profile")
def update_user_profile(
    user_id: int,
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    user = user_service.update_profile(
        db,
        user_id=user_id,
        full_name=payload.full_name,
        mentor_profile=_profile(payload.mentor_profile),
        mentee_profile=_profile(payload.mentee_profile),
    )
    return {"success": True, "message": "Profile updated successfully", "data": {"user": user_to_dict(user)}}


@router.post("/{user_id}/roles")
def add_user_role(
    user_id: int,
    payload: AddRoleRequest,
    db: Session = Depends(get_db),
) -> Dict[str, Any]:
    user = user_service.add_role(db, user_id=user_id, role=payload.role, profile=payload.profile)
    return {
        "success": True,
        "message": f"{payload.role} role added successfully",
        "data": {"user": user_to_dict(user)},
    }


@router.post("/{user_id}/suspend")
def suspend_user(user_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    user = user_service.suspend_user(db, user_id=user_id)
    return {"success": True, "message": "User suspended", "data": {"user": user_to_dict(user)}}


@router.post("/{user_id}/reactivate")
def reactivate_user(user_id: int, db: Session = Depends(get_db)) -> Dict[str, Any]:
    user = user_service.reactivate_user(db, user_id=user_id)
    return {"success": True, "message": "User reactivated", "data": {"user": user_to_dict(user)}}
