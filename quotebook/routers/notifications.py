from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from quotebook.auth.deps import get_current_user, require_admin
from quotebook.db import get_db
from quotebook.models.profile import Profile
from quotebook.schemas.common import MAX_PER_PAGE
from quotebook.schemas.notification import (
    NotificationList,
    NotificationOut,
    NotificationSettingsIO,
    SweepResult,
)
from quotebook.services import notification_service

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationList)
def list_notifications(
    unread_only: bool = False,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=MAX_PER_PAGE),
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    items, total, unread = notification_service.list_notifications(
        db, user.id, unread_only=unread_only, page=page, per_page=per_page
    )
    return NotificationList(
        items=[NotificationOut.model_validate(n) for n in items],
        unread_count=unread,
        total=total,
        has_more=page * per_page < total,
    )


@router.get("/settings", response_model=NotificationSettingsIO)
def get_notification_settings(
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    row = notification_service.get_settings(db, user.id)
    db.commit()
    return row


@router.put("/settings", response_model=NotificationSettingsIO)
def put_notification_settings(
    payload: NotificationSettingsIO,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return notification_service.update_settings(db, user.id, payload.model_dump())


@router.post("/mark-all-read")
def mark_all_read(
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return {"updated": notification_service.mark_all_read(db, user.id)}


@router.post("/background-check", response_model=SweepResult)
def background_check(
    db: Session = Depends(get_db),
    user: Profile = Depends(require_admin),
):
    return notification_service.run_notification_checks(db)


@router.patch("/{notification_id}", response_model=NotificationOut)
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    return notification_service.mark_read(db, user.id, notification_id)


@router.delete("/{notification_id}", status_code=204)
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    user: Profile = Depends(get_current_user),
):
    notification_service.delete_notification(db, user.id, notification_id)
    return Response(status_code=204)
