# quotebook/services/profile_service.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy.orm import Session

from quotebook.auth.google import is_allowed_email
from quotebook.core.errors import (
    ConflictError,
    DomainValidationError,
    NotFoundError,
    PermissionDeniedError,
)
from quotebook.core.logging_config import logger
from quotebook.core.settings import settings
from quotebook.models.company_settings import CompanySettings
from quotebook.models.profile import Profile
from quotebook.services import notification_service

ROLE_LABELS = {"member": "멤버", "admin": "관리자", "super_admin": "최고관리자"}


def _is_super_admin_email(email: str) -> bool:
    return email in {e.strip().lower() for e in settings.SUPER_ADMIN_EMAILS}


def _notify_joined(db: Session, profile: Profile) -> None:
    notification_service.notify_many(
        db,
        notification_service.admin_ids(db),
        exclude=profile.id,
        title="새 사용자",
        message=f"{profile.full_name or profile.email} 님이 가입했습니다.",
        type="system_user_joined",
        entity_type="profile",
        entity_id=profile.id,
    )


def upsert_google_profile(db: Session, userinfo: dict) -> Profile:
    """
    Na een geslaagde Google login: profiel ophalen of aanmaken.
    Eerste profiel (of een e-mail in SUPER_ADMIN_EMAILS) wordt super_admin.
    """
    email = (userinfo.get("email") or "").strip().lower()
    if not email or not userinfo.get("email_verified"):
        raise PermissionDeniedError("Google account e-mail is not verified")
    if not is_allowed_email(email):
        raise PermissionDeniedError(
            f"Only @{settings.ALLOWED_EMAIL_DOMAIN} accounts may sign in"
        )

    profile = db.query(Profile).filter(Profile.email == email).first()
    now = datetime.now(timezone.utc)
    created = False

    if profile is None:
        first = db.query(Profile.id).first() is None
        profile = Profile(
            id=str(uuid4()),
            email=email,
            full_name=userinfo.get("name"),
            role="super_admin" if first or _is_super_admin_email(email) else "member",
        )
        db.add(profile)
        created = True
    elif not profile.is_active:
        raise PermissionDeniedError("Account is deactivated")

    if not profile.full_name and userinfo.get("name"):
        profile.full_name = userinfo.get("name")
    profile.last_login_at = now
    db.flush()

    if created:
        _notify_joined(db, profile)
    db.commit()
    db.refresh(profile)

    logger.bind(user_id=profile.id).info(
        "login", email=profile.email, role=profile.role, new_profile=created
    )
    return profile


def list_profiles(db: Session) -> list[Profile]:
    return db.query(Profile).order_by(Profile.created_at.asc(), Profile.email).all()


def invite_profile(db: Session, values: dict, actor: Profile) -> Profile:
    email = values["email"].strip().lower()
    if not is_allowed_email(email):
        raise DomainValidationError(
            f"Only @{settings.ALLOWED_EMAIL_DOMAIN} addresses can be invited"
        )
    if values.get("role") == "super_admin" and actor.role != "super_admin":
        raise PermissionDeniedError("Only a super_admin can grant super_admin")
    if db.query(Profile.id).filter(Profile.email == email).first():
        raise ConflictError(f"Profile {email} already exists")

    profile = Profile(id=str(uuid4()), **{**values, "email": email})
    db.add(profile)
    db.flush()
    _notify_joined(db, profile)
    db.commit()
    db.refresh(profile)
    logger.bind(user_id=actor.id).info("profile_invited", email=email, role=profile.role)
    return profile


def update_profile(db: Session, profile_id: str, values: dict, actor: Profile) -> Profile:
    profile = db.get(Profile, profile_id)
    if not profile:
        raise NotFoundError(f"Profile {profile_id} not found")

    new_role: Optional[str] = values.pop("role", None)
    new_active: Optional[bool] = values.pop("is_active", None)

    if profile.id == actor.id:
        if new_active is False:
            raise PermissionDeniedError("You cannot deactivate yourself")
        if new_role is not None and new_role != profile.role:
            raise PermissionDeniedError("You cannot change your own role")

    touches_super = new_role == "super_admin" or (
        profile.role == "super_admin" and (new_role not in (None, "super_admin") or new_active is False)
    )
    if touches_super and actor.role != "super_admin":
        raise PermissionDeniedError("Only a super_admin can grant or revoke super_admin")

    for key, value in values.items():
        setattr(profile, key, value)
    if new_active is not None:
        profile.is_active = new_active

    if new_role is not None and new_role != profile.role:
        old_role = profile.role
        profile.role = new_role
        notification_service.create_notification(
            db,
            user_id=profile.id,
            title="권한 변경",
            message=f"권한이 {ROLE_LABELS[old_role]}에서 {ROLE_LABELS[new_role]}(으)로 변경되었습니다.",
            type="system_permission_changed",
            priority="high",
            entity_type="profile",
            entity_id=profile.id,
        )
        logger.bind(user_id=actor.id).info(
            "role_changed", target=profile.id, from_role=old_role, to_role=new_role
        )

    db.commit()
    db.refresh(profile)
    return profile


def get_company_settings(db: Session) -> Optional[CompanySettings]:
    return db.query(CompanySettings).first()


def save_company_settings(db: Session, values: dict, actor: Profile) -> CompanySettings:
    row = get_company_settings(db)
    if row is None:
        row = CompanySettings(company_name=values.get("company_name") or settings.APP_NAME)
        db.add(row)
    for key, value in values.items():
        if value is not None:
            setattr(row, key, value)
    db.commit()
    db.refresh(row)
    logger.bind(user_id=actor.id).info("company_settings_saved")
    return row
