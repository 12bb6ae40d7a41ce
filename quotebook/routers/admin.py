from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quotebook.auth.deps import require_admin
from quotebook.db import get_db
from quotebook.models.profile import Profile
from quotebook.schemas.profile import (
    CompanySettingsIn,
    CompanySettingsOut,
    InviteUserIn,
    ProfileOut,
    UpdateUserIn,
)
from quotebook.services import profile_service

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=list[ProfileOut])
def list_users(
    db: Session = Depends(get_db),
    user: Profile = Depends(require_admin),
):
    return profile_service.list_profiles(db)


@router.post("/users/invite", response_model=ProfileOut, status_code=201)
def invite_user(
    payload: InviteUserIn,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_admin),
):
    return profile_service.invite_profile(db, payload.model_dump(), user)


@router.patch("/users/{profile_id}", response_model=ProfileOut)
def update_user(
    profile_id: str,
    payload: UpdateUserIn,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_admin),
):
    return profile_service.update_profile(
        db, profile_id, payload.model_dump(exclude_unset=True), user
    )


@router.get("/settings", response_model=CompanySettingsOut)
def get_settings(
    db: Session = Depends(get_db),
    user: Profile = Depends(require_admin),
):
    row = profile_service.get_company_settings(db)
    return row if row is not None else CompanySettingsOut()


@router.put("/settings", response_model=CompanySettingsOut)
def put_settings(
    payload: CompanySettingsIn,
    db: Session = Depends(get_db),
    user: Profile = Depends(require_admin),
):
    return profile_service.save_company_settings(db, payload.model_dump(), user)
